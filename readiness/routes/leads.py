"""
Lead routes — email capture and compliance data deletion.
"""
import logging
from datetime import datetime
from flask import Blueprint, current_app, jsonify, request

from readiness.errors import ValidationError

logger = logging.getLogger('routes.leads')

bp = Blueprint('leads', __name__)


def _required_email(data):
    email = data.get('email')
    if not isinstance(email, str) or '@' not in email:
        raise ValidationError('Valid email is required')
    return email.strip()


def _parse_timestamp(value):
    if not value:
        return None
    try:
        return datetime.fromisoformat(str(value).replace('Z', '+00:00'))
    except ValueError:
        return None


@bp.route('/email-capture', methods=['POST'])
def capture_email():
    data = request.get_json(silent=True) or {}
    email = _required_email(data)

    utm = data.get('utmParams') or {}
    lead, created = current_app.extensions['record_store'].capture_lead(
        email=email,
        analysis_id=data.get('analysisId'),
        company_name=data.get('companyName'),
        marketing_consent=data.get('marketingConsent', False),
        privacy_accepted=data.get('privacyAccepted', False),
        consent_timestamp=_parse_timestamp(data.get('consentTimestamp')),
        utm_params={
            'utm_source': utm.get('utm_source'),
            'utm_medium': utm.get('utm_medium'),
            'utm_campaign': utm.get('utm_campaign'),
            'utm_term': utm.get('utm_term'),
            'utm_content': utm.get('utm_content'),
            'referrer': utm.get('referrer'),
        },
    )
    logger.info("Lead %s %s", lead.id, 'created' if created else 'updated')
    return jsonify({
        'success': True,
        'message': 'Lead captured' if created else 'Lead updated',
        'leadId': lead.id,
    })


@bp.route('/data-deletion', methods=['POST'])
def delete_data():
    """
    Erase a contact. The response never reveals whether records existed.
    """
    data = request.get_json(silent=True) or {}
    email = _required_email(data)

    leads_deleted, analyses_deleted = current_app.extensions['record_store'].delete_contact_data(email)
    logger.info(
        "Data deletion processed: leads=%d analyses=%d reason=%s",
        leads_deleted, analyses_deleted, data.get('reason') or 'not provided',
    )
    return jsonify({
        'success': True,
        'message': 'If we have any data associated with this email, it has been deleted.',
    })
