"""
Delivery dispatcher — persists rendered reports to R2 and emails them via Resend.

Both operations raise (StorageError / DeliveryError) instead of returning
sentinels; the orchestrator decides that neither is fatal.
"""
import base64
import logging
from dataclasses import dataclass
from typing import Optional

import requests
import resend
from resend.exceptions import ResendError
from botocore.exceptions import BotoCoreError, ClientError

from readiness.errors import DeliveryError, StorageError

logger = logging.getLogger('services.delivery')


@dataclass
class Attachment:
    filename: str
    content: bytes


class DeliveryDispatcher:

    def __init__(
        self, r2_client=None, bucket: Optional[str] = None, public_url: Optional[str] = None,
        resend_api_key: Optional[str] = None, from_email: Optional[str] = None,
    ):
        self.r2_client = r2_client
        self.bucket = bucket
        self.public_url = (public_url or '').rstrip('/')
        self.resend_api_key = resend_api_key
        self.from_email = from_email

        if resend_api_key:
            resend.api_key = resend_api_key
        else:
            logger.warning("RESEND_API_KEY not set — email delivery disabled")

    def store(self, data: bytes, key: str, content_type: str = 'application/pdf') -> str:
        """Upload `data` under `key`; return its public URL."""
        if not self.r2_client or not self.bucket:
            raise StorageError('Storage not configured', key=key)

        try:
            self.r2_client.put_object(
                Bucket=self.bucket, Key=key,
                Body=data, ContentType=content_type,
            )
        except (BotoCoreError, ClientError) as e:
            logger.error("R2 upload failed for %s: %s", key, e)
            raise StorageError('Upload failed', key=key) from e

        url = f"{self.public_url}/{key}"
        logger.info("Uploaded %d bytes to R2: %s", len(data), key)
        return url

    def send_email(self, to: str, subject: str, html: str, attachment: Attachment = None) -> Optional[str]:
        """Send one email; returns the provider message id."""
        if not self.resend_api_key:
            raise DeliveryError('Email delivery not configured', to=to)

        params = {
            'from': self.from_email,
            'to': [to],
            'subject': subject,
            'html': html,
        }
        if attachment is not None:
            params['attachments'] = [{
                'filename': attachment.filename,
                'content': base64.b64encode(attachment.content).decode('utf-8'),
            }]

        try:
            response = resend.Emails.send(params)
        except (ResendError, requests.RequestException) as e:
            logger.error("Email to %s failed: %s", to, e)
            raise DeliveryError('Email send failed', to=to) from e

        message_id = response.get('id') if isinstance(response, dict) else None
        logger.info("Email sent to %s: %s", to, message_id or 'unknown')
        return message_id
