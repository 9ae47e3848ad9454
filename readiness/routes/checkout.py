"""
Checkout routes — start a Stripe Checkout session, verify it after redirect.
"""
import logging
from flask import Blueprint, current_app, jsonify, request

logger = logging.getLogger('routes.checkout')

bp = Blueprint('checkout', __name__)


@bp.route('/checkout', methods=['POST'])
def create_checkout():
    data = request.get_json(silent=True) or {}
    orchestrator = current_app.extensions['orchestrator']

    result = orchestrator.initiate_checkout(data.get('analysisId'), data.get('email'))
    for effect in result.failures:
        logger.warning("Checkout %s: %s failed (%s)", result.session_id, effect.name, effect.error)
    return jsonify(result.to_dict())


@bp.route('/checkout/verify')
def verify_checkout():
    """Paid → 200 with purchase details; not yet paid → 202 processing."""
    orchestrator = current_app.extensions['orchestrator']
    verification = orchestrator.verify_checkout(request.args.get('session_id'))
    return jsonify(verification.to_dict()), (200 if verification.paid else 202)
