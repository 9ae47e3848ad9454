"""
Flask application factory.

Creates the app, wires the fulfillment orchestrator and record store into
`app.extensions`, and registers all blueprints.
"""
import logging
import os
from flask import Flask, jsonify, request, session, redirect, render_template_string

logger = logging.getLogger('readiness')


LOGIN_PAGE = '''
<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>Login — AI Readiness Admin</title>
    <style>
        body { font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif;
               min-height: 100vh; display: flex; align-items: center; justify-content: center;
               background: #F5F5F5; margin: 0; }
        .card { background: white; border-radius: 12px; box-shadow: 0 2px 8px rgba(0,0,0,0.06);
                padding: 2.5rem; width: 100%; max-width: 360px; }
        input { width: 100%; box-sizing: border-box; border: 1px solid #E5E5E5; border-radius: 8px;
                padding: 10px 12px; margin-bottom: 16px; }
        button { width: 100%; border: none; border-radius: 8px; padding: 10px; color: white;
                 background: #0D0D0D; cursor: pointer; }
    </style>
</head>
<body>
    <div class="card">
        <h1 style="font-size:18px;margin:0 0 4px 0;">AI Readiness Admin</h1>
        <p style="font-size:13px;color:#A3A3A3;margin:0 0 24px 0;">Enter password to continue</p>
        {% if error %}
        <p style="font-size:12px;color:#EF4444;">Wrong password</p>
        {% endif %}
        <form method="POST" action="/login">
            <input type="password" name="password" autofocus placeholder="Password">
            <button type="submit">Log in</button>
        </form>
    </div>
</body>
</html>
'''

# Only these prefixes require the admin login; the public API stays open.
PROTECTED_PREFIXES = ('/pdf/preview', '/admin/')


def create_app(orchestrator=None, store=None):
    """Create and configure the Flask application."""
    from readiness.config import ADMIN_PASSWORD
    from readiness.errors import FulfillmentError
    from readiness.logging_config import configure_logging

    app = Flask(__name__)

    configure_logging(app)

    # Secret key for sessions
    app.secret_key = os.getenv('SECRET_KEY', 'dev-secret-change-me')

    # ── Services ────────────────────────────────────────────────────────
    if store is None:
        from readiness.fulfillment.factory import build_store
        store = build_store()
    if orchestrator is None:
        from readiness.fulfillment.factory import build_orchestrator
        orchestrator = build_orchestrator(store=store)

    app.extensions['record_store'] = store
    app.extensions['orchestrator'] = orchestrator

    # ── Simple password auth (admin surfaces only) ──────────────────────

    @app.before_request
    def require_login():
        if not ADMIN_PASSWORD:
            return  # No password set, open access (local dev)
        if not request.path.startswith(PROTECTED_PREFIXES):
            return
        if session.get('authenticated'):
            return
        return redirect('/login')

    @app.route('/login', methods=['GET', 'POST'])
    def login():
        if request.method == 'POST':
            if ADMIN_PASSWORD and request.form.get('password') == ADMIN_PASSWORD:
                session['authenticated'] = True
                return redirect('/health')
            return render_template_string(LOGIN_PAGE, error=True), 401
        return render_template_string(LOGIN_PAGE, error=False)

    @app.route('/logout')
    def logout():
        session.clear()
        return redirect('/login')

    # ── Errors ──────────────────────────────────────────────────────────

    @app.errorhandler(FulfillmentError)
    def handle_fulfillment_error(error):
        if error.status_code >= 500:
            logger.error("%s %s failed: %s %s", request.method, request.path, error.message, error.context)
        else:
            logger.info("%s %s rejected: %s", request.method, request.path, error.message)
        return jsonify({'error': error.message}), error.status_code

    # Register blueprints
    from readiness.routes.admin import bp as admin_bp
    from readiness.routes.analysis import bp as analysis_bp
    from readiness.routes.checkout import bp as checkout_bp
    from readiness.routes.health import bp as health_bp
    from readiness.routes.leads import bp as leads_bp
    from readiness.routes.pdf import bp as pdf_bp
    from readiness.routes.webhooks import bp as webhooks_bp

    app.register_blueprint(admin_bp)
    app.register_blueprint(analysis_bp)
    app.register_blueprint(checkout_bp)
    app.register_blueprint(health_bp)
    app.register_blueprint(leads_bp)
    app.register_blueprint(pdf_bp)
    app.register_blueprint(webhooks_bp)

    # Import models so Base.metadata knows about them.
    # Schema is managed by Alembic; no create_all() call.
    import importlib
    importlib.import_module('readiness.models.analysis')
    importlib.import_module('readiness.models.lead')
    importlib.import_module('readiness.models.purchase')
    importlib.import_module('readiness.models.pdf_report')

    return app
