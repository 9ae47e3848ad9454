"""
Analysis model — one scored website, produced by the upstream scoring engine.

Immutable after creation except for the AI-enhancement columns.
"""
from sqlalchemy import Column, Integer, Text, DateTime, JSON

from readiness.database import Base
from readiness.models.common import new_id, utcnow, isoformat


class Analysis(Base):
    __tablename__ = 'analyses'

    id = Column(Text, primary_key=True, default=new_id)
    url = Column(Text, nullable=False)
    domain = Column(Text, nullable=False)
    overall_score = Column(Integer, nullable=False, default=0)
    checks = Column(JSON, nullable=False, default=list)   # [{id, label, status, score, details, recommendation}]
    meta = Column('metadata', JSON, nullable=True)         # {title, description, analyzedAt}
    ai_insights = Column(JSON, nullable=True)
    ai_overall_readiness = Column(Text, nullable=True)
    ai_top_priorities = Column(JSON, nullable=True)
    enhanced_score = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    def to_dict(self):
        """Client-facing projection (camelCase keys)."""
        return {
            'id': self.id,
            'url': self.url,
            'domain': self.domain,
            'overallScore': self.overall_score,
            'checks': self.checks or [],
            'metadata': self.meta or {},
            'aiInsights': self.ai_insights,
            'aiOverallReadiness': self.ai_overall_readiness,
            'aiTopPriorities': self.ai_top_priorities,
            'enhancedScore': self.enhanced_score,
            'createdAt': isoformat(self.created_at),
        }

    def to_snapshot(self):
        """Plain-dict copy handed to the report renderer (detached from the session)."""
        return {
            'id': self.id,
            'url': self.url,
            'domain': self.domain,
            'overall_score': self.overall_score or 0,
            'checks': list(self.checks or []),
            'metadata': dict(self.meta or {}),
        }
