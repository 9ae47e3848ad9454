"""
Report renderer — analysis snapshot + recipient email → PDF bytes.

The HTML is built from Jinja2 templates and converted with WeasyPrint. Given
the same snapshot, email and `generated_at`, the HTML is byte-identical; the
timestamp is the only varying input.
"""
import logging
from datetime import datetime, timezone
from typing import Dict, Optional, Tuple

from jinja2 import Environment, PackageLoader, select_autoescape

from readiness.config import SUPPORT_EMAIL, TOP_ACTIONS_COUNT
from readiness.errors import RenderError
from readiness.reporting.actions import generate_action_items, score_color, score_grade, score_summary

logger = logging.getLogger('reporting.renderer')

_env = Environment(
    loader=PackageLoader('readiness', 'templates'),
    autoescape=select_autoescape(['html']),
    trim_blocks=True,
    lstrip_blocks=True,
)
_env.filters['score_color'] = score_color


def _format_date(value) -> str:
    """'October 19, 2026'."""
    months = ('January', 'February', 'March', 'April', 'May', 'June', 'July',
              'August', 'September', 'October', 'November', 'December')
    return f"{months[value.month - 1]} {value.day}, {value.year}"


def _parse_analyzed_at(metadata: Dict) -> Optional[datetime]:
    raw = (metadata or {}).get('analyzedAt')
    if not raw:
        return None
    try:
        return datetime.fromisoformat(str(raw).replace('Z', '+00:00'))
    except ValueError:
        return None


def report_filename(domain: str) -> str:
    return f"ai-readiness-report-{domain.replace('.', '-')}.pdf"


def build_report_html(analysis: Dict, email: str, generated_at: datetime = None) -> str:
    """Render the three-page report (summary, detailed metrics, action plan) to HTML."""
    generated_at = generated_at or datetime.now(timezone.utc)
    checks = analysis.get('checks') or []
    score = analysis.get('overall_score') or 0
    domain = analysis.get('domain', '')
    actions = generate_action_items(checks)
    analyzed_at = _parse_analyzed_at(analysis.get('metadata'))

    template = _env.get_template('report.html')
    return template.render(
        analysis=analysis,
        domain=domain,
        score=score,
        grade=score_grade(score),
        color=score_color(score),
        summary=score_summary(score, domain),
        checks=checks,
        passed=sum(1 for c in checks if c.get('status') == 'pass'),
        top_actions=actions[:TOP_ACTIONS_COUNT],
        actions=actions,
        email=email,
        support_email=SUPPORT_EMAIL,
        generated_on=_format_date(generated_at),
        generated_iso=generated_at.isoformat(),
        analyzed_on=_format_date(analyzed_at) if analyzed_at else None,
    )


def _html_to_pdf(html: str) -> bytes:
    """Convert HTML to PDF using WeasyPrint."""
    from weasyprint import HTML
    return HTML(string=html).write_pdf()


def render_report(analysis: Dict, email: str, generated_at: datetime = None) -> bytes:
    """Produce the PDF. Any failure surfaces as RenderError."""
    try:
        html = build_report_html(analysis, email, generated_at)
        pdf_bytes = _html_to_pdf(html)
    except Exception as e:
        logger.error("PDF generation failed for %s: %s", analysis.get('domain'), e)
        raise RenderError('PDF generation failed', analysis_id=analysis.get('id')) from e

    logger.info("Generated PDF for %s: %d bytes", analysis.get('domain'), len(pdf_bytes))
    return pdf_bytes


def build_report_email(analysis: Dict, pdf_url: Optional[str] = None) -> Tuple[str, str]:
    """Subject and HTML body for the delivery email."""
    domain = analysis.get('domain', '')
    subject = f"Your AI Readiness Report for {domain}"
    html = _env.get_template('email_report.html').render(
        domain=domain,
        score=analysis.get('overall_score') or 0,
        check_count=len(analysis.get('checks') or []) or 8,
        pdf_url=pdf_url,
        support_email=SUPPORT_EMAIL,
    )
    return subject, html
