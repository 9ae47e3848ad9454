"""
PDF routes — generation trigger, status polling, and an authenticated preview.
"""
import logging
from flask import Blueprint, Response, current_app, jsonify, request

from readiness.errors import NotFound, ValidationError
from readiness.reporting import render_report

logger = logging.getLogger('routes.pdf')

bp = Blueprint('pdf', __name__)

PREVIEW_EMAIL = 'preview@example.com'


@bp.route('/pdf/generate', methods=['POST'])
def generate_pdf():
    data = request.get_json(silent=True) or {}
    orchestrator = current_app.extensions['orchestrator']

    result = orchestrator.generate_report(
        data.get('analysisId'), data.get('email'), purchase_id=data.get('purchaseId'),
    )
    if not result.success:
        return jsonify({'success': False, 'error': result.message}), 500
    return jsonify(result.to_dict())


@bp.route('/pdf/status')
def pdf_status():
    orchestrator = current_app.extensions['orchestrator']
    status = orchestrator.get_status(
        session_id=request.args.get('session_id'),
        analysis_id=request.args.get('analysis_id'),
    )
    return jsonify(status.to_dict())


@bp.route('/pdf/preview')
def preview_pdf():
    """Render a report inline for inspection. No payment check; login required."""
    analysis_id = request.args.get('id')
    if not analysis_id:
        raise ValidationError('Analysis ID required')

    analysis = current_app.extensions['record_store'].get_analysis(analysis_id)
    if analysis is None:
        raise NotFound('Analysis not found', analysis_id=analysis_id)

    pdf_bytes = render_report(analysis.to_snapshot(), PREVIEW_EMAIL)
    return Response(
        pdf_bytes,
        mimetype='application/pdf',
        headers={'Content-Disposition': f'inline; filename="ai-readiness-{analysis.domain}.pdf"'},
    )
