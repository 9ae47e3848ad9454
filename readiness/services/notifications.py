"""
Notifications — Slack webhook alerts for fulfillment problems an operator must reconcile.

Notification failure never blocks the flow.
"""
import logging
import requests

from readiness.config import SLACK_WEBHOOK_URL

logger = logging.getLogger('services.notifications')


def notify_fulfillment_issue(stage, message, **context):
    """Post a secondary-failure alert (e.g. purchase insert failed after checkout)."""
    if not SLACK_WEBHOOK_URL:
        return

    try:
        fields = [
            {"type": "mrkdwn", "text": f"*{key.replace('_', ' ').capitalize()}:* {value}"}
            for key, value in sorted(context.items())
            if value is not None
        ]

        blocks = [
            {
                "type": "header",
                "text": {"type": "plain_text", "text": f"Fulfillment issue — {stage}"},
            },
            {
                "type": "section",
                "text": {"type": "mrkdwn", "text": f"```{str(message)[:500]}```"},
            },
        ]
        if fields:
            blocks.append({"type": "section", "fields": fields[:10]})

        requests.post(SLACK_WEBHOOK_URL, json={"blocks": blocks}, timeout=10)
        logger.info("Fulfillment issue notification sent for %s", stage)

    except Exception:
        logger.error("Failed to send fulfillment issue notification for %s", stage, exc_info=True)


def notify_redrive_summary(redriven, recreated):
    """Post a summary after the stalled-report sweep re-scheduled anything."""
    if not SLACK_WEBHOOK_URL or not (redriven or recreated):
        return

    try:
        text = f"Re-scheduled {redriven} stalled report(s); recreated {recreated} missing report(s)."
        requests.post(SLACK_WEBHOOK_URL, json={"text": text}, timeout=10)
    except Exception:
        logger.error("Failed to send redrive summary", exc_info=True)
