"""
Wires the orchestrator to the production adapters. One instance per process.
"""
from readiness.config import (
    STRIPE_SECRET_KEY, STRIPE_WEBHOOK_SECRET,
    RESEND_API_KEY, REPORT_FROM_EMAIL,
    R2_BUCKET_NAME, R2_PUBLIC_URL,
)
from readiness.fulfillment.jobs import enqueue_report_generation
from readiness.fulfillment.orchestrator import FulfillmentOrchestrator
from readiness.services.delivery import DeliveryDispatcher
from readiness.services.payments import StripeGateway
from readiness.services.store import RecordStore


def build_store():
    return RecordStore()


def build_orchestrator(store=None, schedule=enqueue_report_generation):
    from readiness.extensions import r2_client

    return FulfillmentOrchestrator(
        store=store or build_store(),
        gateway=StripeGateway(STRIPE_SECRET_KEY, STRIPE_WEBHOOK_SECRET),
        dispatcher=DeliveryDispatcher(
            r2_client=r2_client,
            bucket=R2_BUCKET_NAME,
            public_url=R2_PUBLIC_URL,
            resend_api_key=RESEND_API_KEY,
            from_email=REPORT_FROM_EMAIL,
        ),
        schedule=schedule,
    )
