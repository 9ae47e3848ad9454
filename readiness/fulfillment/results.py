"""
Result types returned by the fulfillment orchestrator.

Primary outcomes live in the result fields; secondary failures that did not
abort the operation are collected as SideEffect entries so callers can log or
alert on them without treating them as request failures.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional

from readiness.models.common import isoformat


@dataclass
class SideEffect:
    """A non-fatal secondary step and whether it succeeded."""
    name: str
    ok: bool
    error: Optional[str] = None


@dataclass
class _WithSideEffects:
    side_effects: List[SideEffect] = field(default_factory=list, kw_only=True)

    def record(self, name: str, error: Exception = None):
        self.side_effects.append(SideEffect(name=name, ok=error is None, error=str(error) if error else None))

    @property
    def failures(self) -> List[SideEffect]:
        return [s for s in self.side_effects if not s.ok]


@dataclass
class CheckoutResult(_WithSideEffects):
    checkout_url: str
    session_id: str
    purchase_id: Optional[str] = None

    def to_dict(self) -> Dict:
        return {'checkoutUrl': self.checkout_url, 'sessionId': self.session_id}


@dataclass
class EventAck(_WithSideEffects):
    event_type: str
    purchase_changed: bool = False
    report_id: Optional[str] = None

    def to_dict(self) -> Dict:
        return {'received': True}


@dataclass
class ReportResult(_WithSideEffects):
    success: bool
    pdf_url: Optional[str] = None
    report_id: Optional[str] = None
    error: Optional[str] = None

    @property
    def message(self) -> str:
        if not self.success:
            return self.error or 'PDF generation failed'
        if self.pdf_url:
            return 'PDF generated and sent successfully'
        return 'PDF generated and sent (storage unavailable)'

    def to_dict(self) -> Dict:
        return {'success': self.success, 'pdfUrl': self.pdf_url, 'message': self.message}


@dataclass
class FulfillmentStatus:
    """Read-only projection of the latest report for a purchase or analysis."""
    status: str
    pdf_url: Optional[str] = None
    created_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    @classmethod
    def not_found(cls) -> 'FulfillmentStatus':
        return cls(status='not_found')

    @classmethod
    def from_report(cls, report) -> 'FulfillmentStatus':
        return cls(
            status=report.status,
            pdf_url=report.pdf_url,
            created_at=report.created_at,
            completed_at=report.completed_at,
        )

    def to_dict(self) -> Dict:
        if self.status == 'not_found':
            return {'status': 'not_found'}
        return {
            'status': self.status,
            'pdfUrl': self.pdf_url,
            'createdAt': isoformat(self.created_at),
            'completedAt': isoformat(self.completed_at),
        }


@dataclass
class CheckoutVerification:
    """Outcome of GET /checkout/verify. `paid=False` maps to HTTP 202."""
    paid: bool
    email: Optional[str] = None
    domain: Optional[str] = None
    analysis_id: Optional[str] = None
    pdf_status: Optional[str] = None

    def to_dict(self) -> Dict:
        if not self.paid:
            return {'status': 'processing'}
        return {
            'success': True,
            'email': self.email,
            'domain': self.domain,
            'analysisId': self.analysis_id,
            'pdfStatus': self.pdf_status,
        }


@dataclass
class RedriveSummary(_WithSideEffects):
    redriven: List[str] = field(default_factory=list)
    recreated: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict:
        return {
            'redriven': len(self.redriven),
            'recreated': len(self.recreated),
            'reportIds': self.redriven + self.recreated,
        }
