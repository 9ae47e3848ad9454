"""
PdfReport model — one generation/delivery attempt for a paid report.

pending → generating → completed | failed. Terminal rows are never mutated;
regeneration inserts attempt N+1 for the same purchase.
"""
from sqlalchemy import Column, Integer, Text, DateTime, ForeignKey, UniqueConstraint

from readiness.database import Base
from readiness.models.common import new_id, utcnow


class PdfReport(Base):
    __tablename__ = 'pdf_reports'
    __table_args__ = (
        UniqueConstraint('purchase_id', 'attempt', name='uq_pdf_report_purchase_attempt'),
    )

    id = Column(Text, primary_key=True, default=new_id)
    analysis_id = Column(Text, nullable=True, index=True)
    purchase_id = Column(Text, ForeignKey('purchases.id'), nullable=True, index=True)
    attempt = Column(Integer, nullable=False, default=1)
    status = Column(Text, nullable=False, default='pending')
    pdf_url = Column(Text, nullable=True)
    pdf_storage_key = Column(Text, nullable=True)
    error_message = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    started_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
