"""
Purchase model — one checkout attempt for one analysis.

The checkout session id is the idempotency key (UNIQUE). Status only moves
forward: pending → completed → refunded, or pending → expired.
"""
from sqlalchemy import Column, Integer, Text, DateTime

from readiness.database import Base
from readiness.models.common import new_id, utcnow


class Purchase(Base):
    __tablename__ = 'purchases'

    id = Column(Text, primary_key=True, default=new_id)
    analysis_id = Column(Text, nullable=True, index=True)
    lead_id = Column(Text, nullable=True)
    stripe_checkout_session_id = Column(Text, nullable=False, unique=True)
    stripe_payment_intent_id = Column(Text, nullable=True, index=True)
    status = Column(Text, nullable=False, default='pending')
    amount_cents = Column(Integer, nullable=False)
    currency = Column(Text, nullable=False, default='usd')
    email = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    refunded_at = Column(DateTime(timezone=True), nullable=True)
