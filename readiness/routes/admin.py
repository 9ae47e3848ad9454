"""
Admin routes — operator recovery actions. Behind the ADMIN_PASSWORD login.
"""
from datetime import timedelta
from flask import Blueprint, current_app, jsonify, request

from readiness.errors import ValidationError

bp = Blueprint('admin', __name__)


@bp.route('/admin/reports/redrive', methods=['POST'])
def redrive_reports():
    """Re-trigger stalled reports. Optional JSON {olderThanMinutes, inline}."""
    data = request.get_json(silent=True) or {}
    older_than = None
    if data.get('olderThanMinutes') is not None:
        try:
            older_than = timedelta(minutes=int(data['olderThanMinutes']))
        except (TypeError, ValueError):
            raise ValidationError('olderThanMinutes must be an integer')

    summary = current_app.extensions['orchestrator'].redrive_stalled_reports(
        older_than=older_than, inline=bool(data.get('inline')),
    )
    return jsonify(summary.to_dict())
