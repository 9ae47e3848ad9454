"""
Payment webhook — Stripe delivers checkout and refund events here.

The body is read raw: the signature covers the exact bytes sent.
"""
from flask import Blueprint, current_app, jsonify, request

bp = Blueprint('webhooks', __name__)


@bp.route('/webhooks/payment', methods=['POST'])
def payment_webhook():
    orchestrator = current_app.extensions['orchestrator']
    ack = orchestrator.handle_payment_event(
        request.get_data(),
        request.headers.get('Stripe-Signature'),
    )
    return jsonify(ack.to_dict())
