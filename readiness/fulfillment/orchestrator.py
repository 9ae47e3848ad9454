"""
Fulfillment orchestrator — the purchase → report → delivery state machine.

Purchase:   pending → completed | expired,  completed → refunded
PdfReport:  pending → generating → completed | failed

Every status change is a conditional single-row update in the record store, so
re-applying an event or re-invoking generation never moves a record backward.
Primary failures (no checkout session, no document, unknown analysis) are
raised or returned to the caller. Secondary failures (purchase insert after
checkout, report insert after payment, storage upload, email send) are
recorded as SideEffect entries, logged, and posted to the operator channel.
"""
import logging
from datetime import timedelta
from typing import Callable, Optional

from readiness.config import (
    PUBLIC_BASE_URL, REPORT_PRODUCT_NAME, REPORT_PRICE_CENTS, REPORT_CURRENCY,
    STALLED_REPORT_MINUTES, TERMINAL_REPORT_STATUSES,
)
from readiness.errors import (
    DeliveryError, DuplicateRecord, NotFound, PersistenceError, RenderError,
    StorageError, UpstreamError, ValidationError,
)
from readiness.fulfillment.results import (
    CheckoutResult, CheckoutVerification, EventAck, FulfillmentStatus,
    RedriveSummary, ReportResult,
)
from readiness.logging_config import CONTEXT_FIELDS
from readiness.models.common import utcnow
from readiness.reporting import build_report_email, render_report, report_filename
from readiness.services.delivery import Attachment
from readiness.services.notifications import notify_fulfillment_issue, notify_redrive_summary
from readiness.services.payments import (
    ChargeRefunded, CheckoutCompleted, CheckoutExpired, LineItem,
)

logger = logging.getLogger('fulfillment.orchestrator')

ACTIVE_REPORT_STATUSES = {'pending', 'generating'}


def _validate_email(email):
    if not isinstance(email, str) or '@' not in email:
        raise ValidationError('A valid email is required')


class FulfillmentOrchestrator:
    """
    Coordinates the record store, payment gateway, renderer and dispatcher.

    All collaborators are injected. `schedule(analysis_id, purchase_id, email)`
    hands report generation to an external trigger (the RQ worker in
    production); when it is None, reports stay pending until the redrive sweep
    runs them inline.
    """

    def __init__(
        self, store, gateway, dispatcher,
        renderer: Callable = render_report,
        schedule: Optional[Callable] = None,
        notifier: Callable = notify_fulfillment_issue,
        base_url: str = PUBLIC_BASE_URL,
        price_cents: int = REPORT_PRICE_CENTS,
        currency: str = REPORT_CURRENCY,
        clock: Callable = utcnow,
    ):
        self.store = store
        self.gateway = gateway
        self.dispatcher = dispatcher
        self.renderer = renderer
        self.schedule = schedule
        self.notifier = notifier
        self.base_url = base_url.rstrip('/')
        self.price_cents = price_cents
        self.currency = currency
        self.clock = clock

    def _alert(self, stage, error, **context):
        logger.error(
            "Step %s failed: %s %s", stage, error, context,
            exc_info=error if isinstance(error, BaseException) else None,
            extra={k: v for k, v in context.items() if k in CONTEXT_FIELDS},
        )
        self.notifier(stage, error, **context)

    def _secondary_failure(self, result, stage, error, **context):
        """Record, log and alert on a failure that must not abort the operation."""
        self._alert(stage, error, **context)
        result.record(stage, error)

    # ── Checkout ─────────────────────────────────────────────────────────────

    def initiate_checkout(self, analysis_id: str, email: str) -> CheckoutResult:
        if not analysis_id or not email:
            raise ValidationError('Missing required fields: analysisId, email')
        _validate_email(email)

        analysis = self.store.get_analysis(analysis_id)
        if analysis is None:
            raise NotFound('Analysis not found', analysis_id=analysis_id)

        lead_id = None
        lead_error = None
        try:
            lead = self.store.find_lead_for_analysis(analysis_id)
            lead_id = lead.id if lead else None
        except PersistenceError as e:
            lead_error = e

        metadata = {'analysis_id': analysis_id, 'email': email}
        if lead_id:
            metadata['lead_id'] = lead_id

        session = self.gateway.create_session(
            LineItem(
                name=REPORT_PRODUCT_NAME,
                description=f"Detailed AI readiness analysis for {analysis.domain}",
                unit_amount=self.price_cents,
                currency=self.currency,
                metadata={'analysis_id': analysis_id, 'domain': analysis.domain},
            ),
            metadata=metadata,
            success_url=f"{self.base_url}/success?session_id={{CHECKOUT_SESSION_ID}}",
            cancel_url=f"{self.base_url}/?cancelled=true",
            customer_email=email,
        )

        result = CheckoutResult(checkout_url=session.url, session_id=session.id)
        if lead_error is not None:
            result.record('lead_lookup', lead_error)

        try:
            purchase = self.store.create_purchase(
                analysis_id=analysis_id,
                lead_id=lead_id,
                stripe_checkout_session_id=session.id,
                status='pending',
                amount_cents=self.price_cents,
                currency=self.currency,
                email=email,
            )
            result.purchase_id = purchase.id
            result.record('purchase_insert')
        except PersistenceError as e:
            # The webhook reconciles the purchase from session metadata.
            self._secondary_failure(result, 'purchase_insert', e, session_id=session.id, analysis_id=analysis_id)

        logger.info(
            "Checkout initiated for analysis %s: session %s", analysis_id, session.id,
            extra={"analysis_id": analysis_id, "session_id": session.id},
        )
        return result

    def verify_checkout(self, session_id: str) -> CheckoutVerification:
        if not session_id:
            raise ValidationError('Session ID required')

        verified = self.gateway.verify_session(session_id)
        if not verified.paid:
            return CheckoutVerification(paid=False)

        analysis_id = verified.metadata.get('analysis_id')
        email = verified.email
        pdf_status = 'pending'
        domain = verified.metadata.get('domain') or 'your website'

        try:
            purchase = self.store.get_purchase_by_session(session_id)
            if purchase is not None:
                analysis_id = purchase.analysis_id or analysis_id
                email = purchase.email or email
                report = self.store.latest_report_for_purchase(purchase.id)
                if report is not None:
                    pdf_status = report.status
            if analysis_id:
                analysis = self.store.get_analysis(analysis_id)
                domain = analysis.domain if analysis else domain
        except PersistenceError as e:
            logger.warning("Falling back to session metadata for %s: %s", session_id, e)

        return CheckoutVerification(
            paid=True, email=email, domain=domain, analysis_id=analysis_id, pdf_status=pdf_status,
        )

    # ── Payment events ───────────────────────────────────────────────────────

    def handle_payment_event(self, raw_body, signature: str) -> EventAck:
        """
        Authenticate and apply one webhook delivery.

        InvalidSignature propagates (nothing is touched). Failure of the
        purchase write itself propagates too so the provider redelivers; every
        later step is secondary.
        """
        event = self.gateway.parse_event(raw_body, signature)
        ack = EventAck(event_type=event.type)

        if isinstance(event, CheckoutCompleted):
            self._on_checkout_completed(event, ack)
        elif isinstance(event, CheckoutExpired):
            changed, _ = self.store.transition_purchase('expired', session_id=event.session_id)
            ack.purchase_changed = changed
            logger.info("Checkout expired: %s (changed=%s)", event.session_id, changed)
        elif isinstance(event, ChargeRefunded):
            self._on_charge_refunded(event, ack)
        else:
            logger.info("Ignoring payment event %s (%s)", event.event_id, event.type)

        return ack

    def _on_checkout_completed(self, event: CheckoutCompleted, ack: EventAck):
        now = self.clock()
        changed, purchase = self.store.transition_purchase(
            'completed', session_id=event.session_id,
            stripe_payment_intent_id=event.payment_intent_id, completed_at=now,
        )

        if purchase is None:
            logger.warning("No purchase for session %s, reconciling from event metadata", event.session_id)
            try:
                purchase = self.store.create_purchase(
                    analysis_id=event.analysis_id,
                    lead_id=event.lead_id,
                    stripe_checkout_session_id=event.session_id,
                    stripe_payment_intent_id=event.payment_intent_id,
                    status='completed',
                    amount_cents=event.amount_total if event.amount_total is not None else self.price_cents,
                    currency=event.currency or self.currency,
                    email=event.email,
                    completed_at=now,
                )
                changed = True
            except DuplicateRecord:
                # The checkout insert landed between our update and insert.
                changed, purchase = self.store.transition_purchase(
                    'completed', session_id=event.session_id,
                    stripe_payment_intent_id=event.payment_intent_id, completed_at=now,
                )

        ack.purchase_changed = changed
        logger.info(
            "Checkout completed: %s (changed=%s)", event.session_id, changed,
            extra={"session_id": event.session_id, "purchase_id": purchase.id},
        )

        analysis_id = purchase.analysis_id or event.analysis_id
        email = purchase.email or event.email
        if purchase.status != 'completed' or not analysis_id:
            return

        try:
            report = self._ensure_report(analysis_id, purchase.id)
        except PersistenceError as e:
            self._secondary_failure(ack, 'report_insert', e, purchase_id=purchase.id, analysis_id=analysis_id)
            return
        if report is None:
            return

        ack.report_id = report.id
        ack.record('report_insert')
        self._schedule(ack, analysis_id, purchase.id, email)

    def _on_charge_refunded(self, event: ChargeRefunded, ack: EventAck):
        if not event.payment_intent_id:
            logger.warning("Refund %s carries no payment intent, ignoring", event.charge_id)
            return
        changed, purchase = self.store.transition_purchase(
            'refunded', payment_intent_id=event.payment_intent_id, refunded_at=self.clock(),
        )
        ack.purchase_changed = changed
        if purchase is None:
            logger.warning("No purchase for refunded payment intent %s", event.payment_intent_id)
        else:
            logger.info("Charge refunded: %s (changed=%s)", event.payment_intent_id, changed)

    def _ensure_report(self, analysis_id, purchase_id):
        """Create the first pending report for a purchase. None if one already exists."""
        if self.store.latest_report_for_purchase(purchase_id) is not None:
            return None
        try:
            return self.store.create_report(analysis_id, purchase_id=purchase_id, attempt=1, status='pending')
        except DuplicateRecord:
            return None

    def _schedule(self, result, analysis_id, purchase_id, email):
        if self.schedule is None:
            return False
        if not email:
            self._secondary_failure(result, 'schedule_generation', 'No email on purchase', purchase_id=purchase_id)
            return False
        try:
            self.schedule(analysis_id, purchase_id, email)
        except UpstreamError as e:
            self._secondary_failure(result, 'schedule_generation', e, purchase_id=purchase_id)
            return False
        result.record('schedule_generation')
        return True

    # ── Report generation ────────────────────────────────────────────────────

    def _claim_report(self, analysis_id, purchase_id):
        """
        Move the purchase's report into `generating` and return it.

        Missing → attempt 1; pending → generating; generating → reused (a
        redrive of a stalled run); completed/failed → a new attempt.
        Returns None for an unknown purchase; generation then runs untracked.
        """
        if self.store.get_purchase(purchase_id) is None:
            logger.warning(
                "Purchase %s not found; generating without a report record", purchase_id,
                extra={"analysis_id": analysis_id, "purchase_id": purchase_id},
            )
            return None

        now = self.clock()
        latest = self.store.latest_report_for_purchase(purchase_id)

        if latest is None or latest.status in TERMINAL_REPORT_STATUSES:
            attempt = latest.attempt + 1 if latest else 1
            try:
                return self.store.create_report(
                    analysis_id, purchase_id=purchase_id, attempt=attempt,
                    status='generating', started_at=now,
                )
            except DuplicateRecord:
                latest = self.store.latest_report_for_purchase(purchase_id)
                if latest is None:
                    return None

        if latest.status == 'pending':
            self.store.transition_report(latest.id, {'pending'}, 'generating', started_at=now)
        return latest

    def _fail_report(self, report, message):
        if report is None:
            return
        try:
            self.store.transition_report(report.id, ACTIVE_REPORT_STATUSES, 'failed', error_message=message)
        except PersistenceError as e:
            logger.error("Could not mark report %s failed: %s", report.id, e)

    def generate_report(self, analysis_id: str, email: str, purchase_id: str = None) -> ReportResult:
        """
        Render, store and email one report.

        Without `purchase_id` no report record is touched (preview path).
        Raises NotFound for an unknown analysis; a render failure is returned
        as `success=False`; storage and email failures degrade the result
        without failing it.
        """
        if not analysis_id or not email:
            raise ValidationError('Missing required fields: analysisId, email')
        _validate_email(email)

        result = ReportResult(success=False)
        report = None
        if purchase_id:
            try:
                report = self._claim_report(analysis_id, purchase_id)
                if report is not None:
                    result.report_id = report.id
            except PersistenceError as e:
                self._secondary_failure(result, 'report_claim', e, purchase_id=purchase_id)

        analysis = self.store.get_analysis(analysis_id)
        if analysis is None:
            self._fail_report(report, 'Analysis not found')
            raise NotFound('Analysis not found', analysis_id=analysis_id)
        snapshot = analysis.to_snapshot()

        try:
            pdf_bytes = self.renderer(snapshot, email)
        except RenderError as e:
            self._fail_report(report, 'PDF generation failed')
            self._alert('render', e, analysis_id=analysis_id, purchase_id=purchase_id)
            result.error = 'PDF generation failed'
            return result

        now = self.clock()
        storage_key = f"reports/{analysis_id}-{int(now.timestamp() * 1000)}.pdf"
        pdf_url = None
        try:
            pdf_url = self.dispatcher.store(pdf_bytes, storage_key)
            result.record('storage')
        except StorageError as e:
            storage_key = None
            self._secondary_failure(result, 'storage', e, analysis_id=analysis_id, purchase_id=purchase_id)

        subject, html = build_report_email(snapshot, pdf_url)
        try:
            self.dispatcher.send_email(
                email, subject, html,
                attachment=Attachment(filename=report_filename(analysis.domain), content=pdf_bytes),
            )
            result.record('email')
        except DeliveryError as e:
            self._secondary_failure(result, 'email', e, analysis_id=analysis_id, purchase_id=purchase_id, email=email)

        if report is not None:
            try:
                completed = self.store.transition_report(
                    report.id, ACTIVE_REPORT_STATUSES, 'completed',
                    pdf_url=pdf_url, pdf_storage_key=storage_key, completed_at=self.clock(),
                )
                if not completed:
                    logger.warning("Report %s was no longer active; left as is", report.id)
            except PersistenceError as e:
                self._secondary_failure(result, 'report_complete', e, report_id=report.id)

        result.success = True
        result.pdf_url = pdf_url
        logger.info(
            "Report for analysis %s delivered to %s (url=%s)", analysis_id, email, pdf_url,
            extra={"analysis_id": analysis_id, "purchase_id": purchase_id, "report_id": result.report_id},
        )
        return result

    # ── Status ───────────────────────────────────────────────────────────────

    def get_status(self, session_id: str = None, analysis_id: str = None) -> FulfillmentStatus:
        """Current persisted state only; an unresolved reference is `not_found`."""
        if not session_id and not analysis_id:
            raise ValidationError('session_id or analysis_id required')

        if session_id:
            purchase = self.store.get_purchase_by_session(session_id)
            report = self.store.latest_report_for_purchase(purchase.id) if purchase else None
        else:
            report = self.store.latest_report_for_analysis(analysis_id)

        if report is None:
            return FulfillmentStatus.not_found()
        return FulfillmentStatus.from_report(report)

    # ── Recovery ─────────────────────────────────────────────────────────────

    def redrive_stalled_reports(self, older_than: timedelta = None, inline: bool = False) -> RedriveSummary:
        """
        Re-trigger generation for reports stuck in pending/generating, and
        create the missing report for completed purchases that never got one.

        Runs generation in-process when `inline` is set or no scheduler is
        configured.
        """
        older_than = older_than or timedelta(minutes=STALLED_REPORT_MINUTES)
        cutoff = self.clock() - older_than
        summary = RedriveSummary()

        for report, purchase in self.store.stalled_reports(cutoff):
            if self._redrive(summary, report.analysis_id, purchase, inline):
                summary.redriven.append(report.id)

        for purchase in self.store.completed_purchases_without_report():
            try:
                report = self._ensure_report(purchase.analysis_id, purchase.id)
            except PersistenceError as e:
                self._secondary_failure(summary, 'report_insert', e, purchase_id=purchase.id)
                continue
            if report is not None and self._redrive(summary, purchase.analysis_id, purchase, inline):
                summary.recreated.append(report.id)

        logger.info("Redrive: %d stalled, %d recreated", len(summary.redriven), len(summary.recreated))
        notify_redrive_summary(len(summary.redriven), len(summary.recreated))
        return summary

    def _redrive(self, summary, analysis_id, purchase, inline):
        if inline or self.schedule is None:
            if not purchase.email:
                self._secondary_failure(summary, 'redrive', 'No email on purchase', purchase_id=purchase.id)
                return False
            try:
                result = self.generate_report(analysis_id, purchase.email, purchase_id=purchase.id)
            except (NotFound, PersistenceError) as e:
                self._secondary_failure(summary, 'redrive', e, purchase_id=purchase.id)
                return False
            summary.side_effects.extend(result.failures)
            return result.success
        return self._schedule(summary, analysis_id, purchase.id, purchase.email)
