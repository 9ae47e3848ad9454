"""
Analysis routes — read an analysis, attach AI-enhancement fields.
"""
from flask import Blueprint, current_app, jsonify, request

from readiness.config import ANALYSIS_PATCHABLE_FIELDS
from readiness.errors import NotFound, ValidationError

bp = Blueprint('analysis', __name__)


@bp.route('/analysis/<analysis_id>')
def get_analysis(analysis_id):
    analysis = current_app.extensions['record_store'].get_analysis(analysis_id)
    if analysis is None:
        raise NotFound('Analysis not found', analysis_id=analysis_id)
    return jsonify(analysis.to_dict())


@bp.route('/analysis/<analysis_id>', methods=['PATCH'])
def update_analysis(analysis_id):
    """Only the AI-enhancement allow-list is writable; other keys are ignored."""
    data = request.get_json(silent=True) or {}
    fields = {
        column: data[key]
        for key, column in ANALYSIS_PATCHABLE_FIELDS.items()
        if key in data
    }
    if not fields:
        raise ValidationError('No valid fields to update')

    analysis = current_app.extensions['record_store'].update_analysis(analysis_id, fields)
    if analysis is None:
        raise NotFound('Analysis not found', analysis_id=analysis_id)
    return jsonify(analysis.to_dict())
