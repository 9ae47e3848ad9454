"""
Record store — every read and write of analyses, leads, purchases and reports.

Each method opens its own session and closes it before returning, so records
handed back are detached snapshots. Every mutation is a single-row update
scoped by a unique key; row-level atomicity at the database is the only
concurrency guard. SQLAlchemy errors surface as PersistenceError (or
DuplicateRecord for unique-key violations) — callers decide whether a failure
is fatal.
"""
import logging
from contextlib import contextmanager
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from sqlalchemy import exists, text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from readiness.config import PURCHASE_TRANSITIONS
from readiness.errors import DuplicateRecord, PersistenceError
from readiness.models.analysis import Analysis
from readiness.models.common import utcnow
from readiness.models.lead import Lead
from readiness.models.pdf_report import PdfReport
from readiness.models.purchase import Purchase

logger = logging.getLogger('services.store')

_UTM_FIELDS = ('utm_source', 'utm_medium', 'utm_campaign', 'utm_term', 'utm_content', 'referrer')


def _is_unique_violation(error: IntegrityError) -> bool:
    # 23505 is Postgres unique_violation; SQLite only reports it in the message.
    if getattr(error.orig, 'pgcode', None) == '23505':
        return True
    return 'unique' in str(error.orig).lower()


class RecordStore:

    def __init__(self, session_factory=None):
        if session_factory is None:
            from readiness.database import get_session
            session_factory = get_session
        self._session_factory = session_factory

    @contextmanager
    def _session(self):
        session = self._session_factory()
        try:
            yield session
        except IntegrityError as e:
            session.rollback()
            if _is_unique_violation(e):
                raise DuplicateRecord(str(e.orig)) from e
            logger.error("Integrity violation: %s", e.orig)
            raise PersistenceError('Database constraint violated') from e
        except SQLAlchemyError as e:
            session.rollback()
            logger.error("Database operation failed", exc_info=True)
            raise PersistenceError('Database operation failed') from e
        finally:
            session.close()

    def ping(self) -> bool:
        with self._session() as session:
            session.execute(text('SELECT 1'))
        return True

    # ── Analyses ─────────────────────────────────────────────────────────────

    def get_analysis(self, analysis_id: str) -> Optional[Analysis]:
        with self._session() as session:
            return session.get(Analysis, analysis_id)

    def update_analysis(self, analysis_id: str, fields: Dict) -> Optional[Analysis]:
        """Set the given columns on one analysis. Returns None if it does not exist."""
        with self._session() as session:
            analysis = session.get(Analysis, analysis_id)
            if analysis is None:
                return None
            for column, value in fields.items():
                setattr(analysis, column, value)
            session.commit()
            return analysis

    # ── Leads ────────────────────────────────────────────────────────────────

    def find_lead_for_analysis(self, analysis_id: str, email: str = None) -> Optional[Lead]:
        with self._session() as session:
            query = session.query(Lead).filter_by(analysis_id=analysis_id)
            if email:
                query = query.filter_by(email=email)
            return query.order_by(Lead.created_at.asc()).first()

    def capture_lead(
        self, email: str, analysis_id: str = None, company_name: str = None,
        marketing_consent: bool = False, privacy_accepted: bool = False,
        consent_timestamp: datetime = None, utm_params: Dict = None,
    ) -> Tuple[Lead, bool]:
        """
        Insert a lead, or update the canonical lead for `analysis_id`.

        Returns (lead, created).
        """
        with self._session() as session:
            if analysis_id:
                existing = session.query(Lead).filter_by(
                    analysis_id=analysis_id,
                ).order_by(Lead.created_at.asc()).first()
                if existing is not None:
                    existing.email = email
                    existing.company_name = company_name or None
                    existing.marketing_consent = bool(marketing_consent)
                    session.commit()
                    return existing, False

            utm_params = utm_params or {}
            lead = Lead(
                email=email,
                analysis_id=analysis_id or None,
                company_name=company_name or None,
                marketing_consent=bool(marketing_consent),
                privacy_accepted=bool(privacy_accepted),
                consent_timestamp=consent_timestamp or utcnow(),
                **{field: utm_params.get(field) or None for field in _UTM_FIELDS},
            )
            session.add(lead)
            session.commit()
            return lead, True

    def delete_contact_data(self, email: str) -> Tuple[int, int]:
        """
        Delete every lead with this email, then each of their analyses that no
        remaining lead references.

        Returns (leads_deleted, analyses_deleted).
        """
        with self._session() as session:
            leads = session.query(Lead).filter_by(email=email).all()
            if not leads:
                return 0, 0

            analysis_ids = {lead.analysis_id for lead in leads if lead.analysis_id}
            for lead in leads:
                session.delete(lead)
            session.flush()

            still_referenced = set()
            if analysis_ids:
                still_referenced = {
                    row.analysis_id for row in
                    session.query(Lead.analysis_id).filter(Lead.analysis_id.in_(analysis_ids)).all()
                }
            to_delete = analysis_ids - still_referenced
            if to_delete:
                session.query(Analysis).filter(Analysis.id.in_(to_delete)).delete(synchronize_session=False)

            session.commit()
            return len(leads), len(to_delete)

    # ── Purchases ────────────────────────────────────────────────────────────

    def create_purchase(self, **fields) -> Purchase:
        """INSERT a purchase. Raises DuplicateRecord if the session id exists."""
        with self._session() as session:
            purchase = Purchase(**fields)
            session.add(purchase)
            session.commit()
            return purchase

    def get_purchase(self, purchase_id: str) -> Optional[Purchase]:
        with self._session() as session:
            return session.get(Purchase, purchase_id)

    def get_purchase_by_session(self, session_id: str) -> Optional[Purchase]:
        with self._session() as session:
            return session.query(Purchase).filter_by(stripe_checkout_session_id=session_id).first()

    def transition_purchase(
        self, to_status: str, session_id: str = None, payment_intent_id: str = None, **fields,
    ) -> Tuple[bool, Optional[Purchase]]:
        """
        Conditionally move one purchase to `to_status`.

        Only rows currently in a state that may legally move to `to_status`
        are touched, so re-applying an event is a no-op. The purchase is
        matched by checkout session id, or by payment intent id for refunds.

        Returns (changed, purchase) — purchase is None when no row matches.
        """
        from_statuses = [s for s, targets in PURCHASE_TRANSITIONS.items() if to_status in targets]
        with self._session() as session:
            base = session.query(Purchase)
            if session_id:
                base = base.filter(Purchase.stripe_checkout_session_id == session_id)
            elif payment_intent_id:
                base = base.filter(Purchase.stripe_payment_intent_id == payment_intent_id)
            else:
                return False, None

            changed = base.filter(Purchase.status.in_(from_statuses)).update(
                {'status': to_status, **fields}, synchronize_session=False,
            )
            session.commit()
            return changed > 0, base.first()

    def completed_purchases_without_report(self) -> List[Purchase]:
        with self._session() as session:
            has_report = exists().where(PdfReport.purchase_id == Purchase.id)
            return session.query(Purchase).filter(
                Purchase.status == 'completed',
                Purchase.analysis_id.isnot(None),
                ~has_report,
            ).all()

    # ── PDF reports ──────────────────────────────────────────────────────────

    def create_report(
        self, analysis_id: str, purchase_id: str = None, attempt: int = 1,
        status: str = 'pending', started_at: datetime = None,
    ) -> PdfReport:
        """INSERT a report. Raises DuplicateRecord if (purchase, attempt) exists."""
        with self._session() as session:
            report = PdfReport(
                analysis_id=analysis_id,
                purchase_id=purchase_id,
                attempt=attempt,
                status=status,
                started_at=started_at,
            )
            session.add(report)
            session.commit()
            return report

    def get_report(self, report_id: str) -> Optional[PdfReport]:
        with self._session() as session:
            return session.get(PdfReport, report_id)

    def latest_report_for_purchase(self, purchase_id: str) -> Optional[PdfReport]:
        with self._session() as session:
            return session.query(PdfReport).filter_by(
                purchase_id=purchase_id,
            ).order_by(PdfReport.attempt.desc()).first()

    def latest_report_for_analysis(self, analysis_id: str) -> Optional[PdfReport]:
        with self._session() as session:
            return session.query(PdfReport).filter_by(
                analysis_id=analysis_id,
            ).order_by(PdfReport.created_at.desc(), PdfReport.attempt.desc()).first()

    def transition_report(self, report_id: str, from_statuses, to_status: str, **fields) -> bool:
        """Conditionally move one report; False if it was not in `from_statuses`."""
        with self._session() as session:
            changed = session.query(PdfReport).filter(
                PdfReport.id == report_id,
                PdfReport.status.in_(list(from_statuses)),
            ).update({'status': to_status, **fields}, synchronize_session=False)
            session.commit()
            return changed > 0

    def stalled_reports(self, cutoff: datetime) -> List[Tuple[PdfReport, Purchase]]:
        """Reports stuck in pending/generating since before `cutoff`, with their purchase."""
        with self._session() as session:
            rows = session.query(PdfReport, Purchase).join(
                Purchase, Purchase.id == PdfReport.purchase_id,
            ).filter(
                ((PdfReport.status == 'pending') & (PdfReport.created_at < cutoff))
                | ((PdfReport.status == 'generating') & (PdfReport.started_at < cutoff))
            ).order_by(PdfReport.created_at.asc()).all()
            return [(report, purchase) for report, purchase in rows]
