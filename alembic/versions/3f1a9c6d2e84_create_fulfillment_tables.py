"""Create analyses, leads, purchases and pdf_reports

Revision ID: 3f1a9c6d2e84
Revises:
Create Date: 2026-10-19 12:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f1a9c6d2e84'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'analyses',
        sa.Column('id', sa.Text(), primary_key=True),
        sa.Column('url', sa.Text(), nullable=False),
        sa.Column('domain', sa.Text(), nullable=False),
        sa.Column('overall_score', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('checks', sa.JSON(), nullable=False),
        sa.Column('metadata', sa.JSON(), nullable=True),
        sa.Column('ai_insights', sa.JSON(), nullable=True),
        sa.Column('ai_overall_readiness', sa.Text(), nullable=True),
        sa.Column('ai_top_priorities', sa.JSON(), nullable=True),
        sa.Column('enhanced_score', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    )

    op.create_table(
        'leads',
        sa.Column('id', sa.Text(), primary_key=True),
        sa.Column('email', sa.Text(), nullable=False),
        sa.Column('analysis_id', sa.Text(), nullable=True),
        sa.Column('company_name', sa.Text(), nullable=True),
        sa.Column('marketing_consent', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('privacy_accepted', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('consent_timestamp', sa.DateTime(timezone=True), nullable=True),
        sa.Column('utm_source', sa.Text(), nullable=True),
        sa.Column('utm_medium', sa.Text(), nullable=True),
        sa.Column('utm_campaign', sa.Text(), nullable=True),
        sa.Column('utm_term', sa.Text(), nullable=True),
        sa.Column('utm_content', sa.Text(), nullable=True),
        sa.Column('referrer', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_leads_email', 'leads', ['email'])
    op.create_index('ix_leads_analysis_id', 'leads', ['analysis_id'])

    op.create_table(
        'purchases',
        sa.Column('id', sa.Text(), primary_key=True),
        sa.Column('analysis_id', sa.Text(), nullable=True),
        sa.Column('lead_id', sa.Text(), nullable=True),
        sa.Column('stripe_checkout_session_id', sa.Text(), nullable=False),
        sa.Column('stripe_payment_intent_id', sa.Text(), nullable=True),
        sa.Column('status', sa.Text(), nullable=False, server_default='pending'),
        sa.Column('amount_cents', sa.Integer(), nullable=False),
        sa.Column('currency', sa.Text(), nullable=False, server_default='usd'),
        sa.Column('email', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('refunded_at', sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint('stripe_checkout_session_id'),
    )
    op.create_index('ix_purchases_analysis_id', 'purchases', ['analysis_id'])
    op.create_index('ix_purchases_stripe_payment_intent_id', 'purchases', ['stripe_payment_intent_id'])

    op.create_table(
        'pdf_reports',
        sa.Column('id', sa.Text(), primary_key=True),
        sa.Column('analysis_id', sa.Text(), nullable=True),
        sa.Column('purchase_id', sa.Text(), sa.ForeignKey('purchases.id'), nullable=True),
        sa.Column('attempt', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('status', sa.Text(), nullable=False, server_default='pending'),
        sa.Column('pdf_url', sa.Text(), nullable=True),
        sa.Column('pdf_storage_key', sa.Text(), nullable=True),
        sa.Column('error_message', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('started_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint('purchase_id', 'attempt', name='uq_pdf_report_purchase_attempt'),
    )
    op.create_index('ix_pdf_reports_analysis_id', 'pdf_reports', ['analysis_id'])
    op.create_index('ix_pdf_reports_purchase_id', 'pdf_reports', ['purchase_id'])


def downgrade() -> None:
    op.drop_index('ix_pdf_reports_purchase_id', table_name='pdf_reports')
    op.drop_index('ix_pdf_reports_analysis_id', table_name='pdf_reports')
    op.drop_table('pdf_reports')
    op.drop_index('ix_purchases_stripe_payment_intent_id', table_name='purchases')
    op.drop_index('ix_purchases_analysis_id', table_name='purchases')
    op.drop_table('purchases')
    op.drop_index('ix_leads_analysis_id', table_name='leads')
    op.drop_index('ix_leads_email', table_name='leads')
    op.drop_table('leads')
    op.drop_table('analyses')
