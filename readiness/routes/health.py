"""
Health check.
"""
import logging
from flask import Blueprint, current_app, jsonify

from readiness.errors import PersistenceError

logger = logging.getLogger('routes.health')

bp = Blueprint('health', __name__)


@bp.route('/health')
def health_check():
    try:
        current_app.extensions['record_store'].ping()
    except PersistenceError:
        return jsonify({"status": "unhealthy", "database": "unreachable"}), 503
    return jsonify({"status": "healthy"}), 200
