"""
Background report generation via RQ.

The webhook handler only enqueues; the worker process runs
`run_report_generation`, which builds its own orchestrator.
"""
import logging

from redis.exceptions import RedisError

from readiness.config import GENERATION_JOB_TIMEOUT
from readiness.errors import UpstreamError

logger = logging.getLogger('fulfillment.jobs')


# ── Lazy RQ queue (no Redis connection at import time) ───────────────────────

_queue = None

def _get_queue():
    global _queue
    if _queue is None:
        from readiness.extensions import redis_client
        from rq import Queue
        _queue = Queue('reports', connection=redis_client)
    return _queue


def enqueue_report_generation(analysis_id, purchase_id, email):
    """Schedule one generateReport call. RedisError surfaces as UpstreamError."""
    try:
        job = _get_queue().enqueue(
            run_report_generation, analysis_id, purchase_id, email,
            job_timeout=GENERATION_JOB_TIMEOUT,
        )
    except RedisError as e:
        logger.error("Failed to enqueue report for purchase %s: %s", purchase_id, e)
        raise UpstreamError('Job queue unavailable', purchase_id=purchase_id) from e

    logger.info("Enqueued report generation for purchase %s (job %s)", purchase_id, job.id)
    return job.id


# ── Worker entry point ───────────────────────────────────────────────────────

def run_report_generation(analysis_id, purchase_id, email):
    from readiness.fulfillment.factory import build_orchestrator

    result = build_orchestrator().generate_report(analysis_id, email, purchase_id=purchase_id)
    if not result.success:
        logger.error("Report generation failed for purchase %s: %s", purchase_id, result.error)
    return result.to_dict()
