"""
Stripe payment gateway — checkout sessions, session verification, webhook events.

Webhook payloads are authenticated against the signing secret before any field
is read, then narrowed into one event dataclass per handled kind. Unknown kinds
become OtherEvent. No stripe exception escapes this module.
"""
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Union

import stripe

from readiness.errors import InvalidSignature, NotFound, UpstreamError

logger = logging.getLogger('services.payments')

# Seconds a signed payload stays valid (replay window).
SIGNATURE_TOLERANCE = 300


# ── Value types ───────────────────────────────────────────────────────────────

@dataclass
class LineItem:
    name: str
    description: str
    unit_amount: int          # minor currency units
    currency: str = 'usd'
    quantity: int = 1
    metadata: Dict[str, str] = field(default_factory=dict)


@dataclass
class CheckoutSession:
    id: str
    url: str


@dataclass
class VerifiedSession:
    id: str
    paid: bool
    email: Optional[str]
    metadata: Dict[str, str]


# ── Webhook events (tagged union) ─────────────────────────────────────────────

@dataclass
class CheckoutCompleted:
    event_id: str
    session_id: str
    payment_intent_id: Optional[str]
    analysis_id: Optional[str]
    lead_id: Optional[str]
    email: Optional[str]
    amount_total: Optional[int]
    currency: Optional[str]
    type: str = 'checkout.session.completed'


@dataclass
class CheckoutExpired:
    event_id: str
    session_id: str
    type: str = 'checkout.session.expired'


@dataclass
class ChargeRefunded:
    event_id: str
    charge_id: str
    payment_intent_id: Optional[str]
    type: str = 'charge.refunded'


@dataclass
class OtherEvent:
    event_id: str
    type: str


PaymentEvent = Union[CheckoutCompleted, CheckoutExpired, ChargeRefunded, OtherEvent]


def _object_id(value: Any) -> Optional[str]:
    """Stripe references are either an id string or an expanded object."""
    if isinstance(value, dict):
        return value.get('id')
    return value or None


def event_from_payload(payload: Dict[str, Any]) -> PaymentEvent:
    """Narrow a verified, decoded Stripe event into its dataclass."""
    event_id = payload.get('id', '')
    kind = payload.get('type', '')
    obj = (payload.get('data') or {}).get('object') or {}

    if kind == 'checkout.session.completed':
        metadata = obj.get('metadata') or {}
        customer_details = obj.get('customer_details') or {}
        return CheckoutCompleted(
            event_id=event_id,
            session_id=obj.get('id', ''),
            payment_intent_id=_object_id(obj.get('payment_intent')),
            analysis_id=metadata.get('analysis_id') or None,
            lead_id=metadata.get('lead_id') or None,
            email=metadata.get('email') or obj.get('customer_email') or customer_details.get('email'),
            amount_total=obj.get('amount_total'),
            currency=obj.get('currency'),
        )
    if kind == 'checkout.session.expired':
        return CheckoutExpired(event_id=event_id, session_id=obj.get('id', ''))
    if kind == 'charge.refunded':
        return ChargeRefunded(
            event_id=event_id,
            charge_id=obj.get('id', ''),
            payment_intent_id=_object_id(obj.get('payment_intent')),
        )
    return OtherEvent(event_id=event_id, type=kind)


# ── Gateway ───────────────────────────────────────────────────────────────────

class StripeGateway:
    """Stripe Checkout adapter. Keys are passed per call; no global stripe state."""

    def __init__(self, api_key: Optional[str], webhook_secret: Optional[str]):
        self.api_key = api_key
        self.webhook_secret = webhook_secret
        if not api_key:
            logger.warning("STRIPE_SECRET_KEY not set — checkout is disabled")

    def _require_key(self):
        if not self.api_key:
            raise UpstreamError('Payment provider not configured')

    def create_session(
        self, line_item: LineItem, metadata: Dict[str, str],
        success_url: str, cancel_url: str, customer_email: str = None,
    ) -> CheckoutSession:
        self._require_key()
        try:
            session = stripe.checkout.Session.create(
                api_key=self.api_key,
                payment_method_types=['card'],
                mode='payment',
                customer_email=customer_email,
                line_items=[{
                    'price_data': {
                        'currency': line_item.currency,
                        'product_data': {
                            'name': line_item.name,
                            'description': line_item.description,
                            'metadata': line_item.metadata,
                        },
                        'unit_amount': line_item.unit_amount,
                    },
                    'quantity': line_item.quantity,
                }],
                metadata=metadata,
                success_url=success_url,
                cancel_url=cancel_url,
            )
        except stripe.StripeError as e:
            logger.error("Checkout session creation failed: %s", e)
            raise UpstreamError('Failed to create checkout session') from e

        logger.info("Created checkout session %s", session['id'])
        return CheckoutSession(id=session['id'], url=session['url'])

    def verify_session(self, session_id: str) -> VerifiedSession:
        self._require_key()
        try:
            session = stripe.checkout.Session.retrieve(session_id, api_key=self.api_key)
        except stripe.InvalidRequestError as e:
            if getattr(e, 'code', None) == 'resource_missing':
                raise NotFound('Checkout session not found', session_id=session_id) from e
            logger.error("Checkout session lookup failed for %s: %s", session_id, e)
            raise UpstreamError('Failed to verify payment') from e
        except stripe.StripeError as e:
            logger.error("Checkout session lookup failed for %s: %s", session_id, e)
            raise UpstreamError('Failed to verify payment') from e

        metadata = dict(session.get('metadata') or {})
        return VerifiedSession(
            id=session['id'],
            paid=session.get('payment_status') == 'paid',
            email=session.get('customer_email') or metadata.get('email'),
            metadata=metadata,
        )

    def parse_event(self, raw_body, signature: str) -> PaymentEvent:
        """Authenticate `raw_body` against `signature`, then decode it."""
        if not signature:
            raise InvalidSignature('Missing signature')
        if not self.webhook_secret:
            logger.error("STRIPE_WEBHOOK_SECRET not set — rejecting webhook")
            raise InvalidSignature('Webhook secret not configured')

        # The signature is computed over the decoded text, not the bytes repr.
        if isinstance(raw_body, bytes):
            try:
                raw_body = raw_body.decode('utf-8')
            except UnicodeDecodeError as e:
                raise InvalidSignature('Invalid payload') from e

        try:
            stripe.WebhookSignature.verify_header(
                raw_body, signature, self.webhook_secret, tolerance=SIGNATURE_TOLERANCE,
            )
        except stripe.SignatureVerificationError as e:
            logger.warning("Webhook signature verification failed: %s", e)
            raise InvalidSignature('Invalid signature') from e

        try:
            payload = json.loads(raw_body)
        except ValueError as e:
            raise InvalidSignature('Invalid payload') from e
        if not isinstance(payload, dict):
            raise InvalidSignature('Invalid payload')

        return event_from_payload(payload)
