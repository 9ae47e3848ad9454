"""
Lead model — a captured contact, linked to zero or one analysis.

The lead for an analysis is canonical: repeated capture updates it.
"""
from sqlalchemy import Column, Boolean, Text, DateTime

from readiness.database import Base
from readiness.models.common import new_id, utcnow


class Lead(Base):
    __tablename__ = 'leads'

    id = Column(Text, primary_key=True, default=new_id)
    email = Column(Text, nullable=False, index=True)
    analysis_id = Column(Text, nullable=True, index=True)
    company_name = Column(Text, nullable=True)
    marketing_consent = Column(Boolean, default=False)
    privacy_accepted = Column(Boolean, default=False)
    consent_timestamp = Column(DateTime(timezone=True), nullable=True)
    utm_source = Column(Text, nullable=True)
    utm_medium = Column(Text, nullable=True)
    utm_campaign = Column(Text, nullable=True)
    utm_term = Column(Text, nullable=True)
    utm_content = Column(Text, nullable=True)
    referrer = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)
