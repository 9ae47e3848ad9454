"""
Centralized configuration — all env vars, product constants, status values.
"""
import os


# ── Logging ──────────────────────────────────────────────────────────────────
LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')
LOG_FORMAT = os.getenv('LOG_FORMAT', 'text')

# ── Redis (job queue) ─────────────────────────────────────────────────────────
REDIS_URL = os.getenv('REDIS_URL', 'redis://localhost:6379/0')

# ── PostgreSQL ────────────────────────────────────────────────────────────────
DATABASE_URL = os.getenv('DATABASE_URL', 'sqlite:///local.db')

# ── Stripe ────────────────────────────────────────────────────────────────────
STRIPE_SECRET_KEY = os.getenv('STRIPE_SECRET_KEY')
STRIPE_WEBHOOK_SECRET = os.getenv('STRIPE_WEBHOOK_SECRET')

# ── Resend (email) ────────────────────────────────────────────────────────────
RESEND_API_KEY = os.getenv('RESEND_API_KEY')
REPORT_FROM_EMAIL = os.getenv('REPORT_FROM_EMAIL', 'AI Readiness <reports@ellypsis.ai>')
SUPPORT_EMAIL = os.getenv('SUPPORT_EMAIL', 'support@ellypsis.ai')

# ── Cloudflare R2 ─────────────────────────────────────────────────────────────
R2_ACCESS_KEY_ID = os.getenv('R2_ACCESS_KEY_ID')
R2_SECRET_ACCESS_KEY = os.getenv('R2_SECRET_ACCESS_KEY')
R2_BUCKET_NAME = os.getenv('R2_BUCKET_NAME')
R2_ENDPOINT_URL = os.getenv('R2_ENDPOINT_URL')
R2_PUBLIC_URL = os.getenv('R2_PUBLIC_URL')

# ── Public site ───────────────────────────────────────────────────────────────
PUBLIC_BASE_URL = os.getenv('PUBLIC_BASE_URL', 'http://localhost:3000')

# ── Slack notifications ──────────────────────────────────────────────────────
SLACK_WEBHOOK_URL = os.getenv('SLACK_WEBHOOK_URL')

# ── Auth ─────────────────────────────────────────────────────────────────────
ADMIN_PASSWORD = os.getenv('ADMIN_PASSWORD')

# ── Product (single SKU) ─────────────────────────────────────────────────────
REPORT_PRODUCT_NAME = 'AI Readiness Report'
REPORT_PRICE_CENTS = 4900
REPORT_CURRENCY = 'usd'

# ── Report generation ────────────────────────────────────────────────────────
TOP_ACTIONS_COUNT = 5
GENERATION_JOB_TIMEOUT = 600  # seconds
STALLED_REPORT_MINUTES = int(os.getenv('STALLED_REPORT_MINUTES', '15'))

# ── Status values ─────────────────────────────────────────────────────────────
PURCHASE_STATUSES = [
    'pending',
    'completed',
    'expired',
    'refunded',
]

PDF_REPORT_STATUSES = [
    'pending',
    'generating',
    'completed',
    'failed',
]

# Allowed forward moves; anything else is an idempotent no-op.
PURCHASE_TRANSITIONS = {
    'pending': {'completed', 'expired'},
    'completed': {'refunded'},
}

TERMINAL_REPORT_STATUSES = {'completed', 'failed'}

# Fields the client may PATCH onto an analysis (request key → column).
ANALYSIS_PATCHABLE_FIELDS = {
    'aiInsights': 'ai_insights',
    'aiOverallReadiness': 'ai_overall_readiness',
    'aiTopPriorities': 'ai_top_priorities',
    'enhancedScore': 'enhanced_score',
}
