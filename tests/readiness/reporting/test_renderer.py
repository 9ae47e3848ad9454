"""Tests for report HTML/PDF rendering and the delivery email."""
from datetime import datetime, timezone
from unittest.mock import patch

import pytest

from readiness.errors import RenderError
from readiness.reporting import build_report_email, build_report_html, render_report, report_filename

GENERATED_AT = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def snapshot():
    return {
        'id': 'A1',
        'url': 'https://www.example.com',
        'domain': 'example.com',
        'overall_score': 62,
        'checks': [
            {'label': 'AI Crawler Access', 'status': 'fail', 'score': 10,
             'details': 'Blocked.', 'recommendation': 'Allow AI crawlers'},
            {'label': 'Structured Data', 'status': 'warning', 'score': 50,
             'details': 'Partial.', 'recommendation': 'Add schema'},
            {'label': 'Sitemap', 'status': 'pass', 'score': 100,
             'details': 'Valid.', 'recommendation': 'None'},
        ],
        'metadata': {'analyzedAt': '2026-10-18T09:30:00Z'},
    }


def _weasyprint_available():
    try:
        from weasyprint import HTML  # noqa: F401
    except (ImportError, OSError):
        return False
    return True


class TestBuildReportHtml:

    def test_identical_inputs_identical_output(self, snapshot):
        first = build_report_html(snapshot, 'u@x.com', GENERATED_AT)
        second = build_report_html(dict(snapshot), 'u@x.com', GENERATED_AT)
        assert first == second

    def test_only_timestamp_varies(self, snapshot):
        later = datetime(2026, 10, 20, 8, 0, tzinfo=timezone.utc)
        first = build_report_html(snapshot, 'u@x.com', GENERATED_AT)
        second = build_report_html(snapshot, 'u@x.com', later)
        normalized = second.replace(later.isoformat(), GENERATED_AT.isoformat()) \
                           .replace('October 20, 2026', 'October 19, 2026')
        assert first != second
        assert normalized == first

    def test_contains_sections(self, snapshot):
        html = build_report_html(snapshot, 'u@x.com', GENERATED_AT)
        assert 'Executive Summary' in html
        assert 'Detailed Metrics' in html
        assert 'Complete Action Plan' in html
        assert 'Prepared for u@x.com' in html
        assert 'Needs Work AI Readiness' in html
        assert '1 of 3 checks passed' in html
        assert 'Analyzed on October 18, 2026' in html

    def test_actions_in_priority_order(self, snapshot):
        html = build_report_html(snapshot, 'u@x.com', GENERATED_AT)
        assert html.index('AI Crawler Access: Allow AI crawlers') < html.index('Structured Data: Add schema')

    def test_congratulates_when_no_actions(self, snapshot):
        snapshot['checks'] = [{'label': 'Sitemap', 'status': 'pass', 'score': 100,
                               'details': '', 'recommendation': ''}]
        html = build_report_html(snapshot, 'u@x.com', GENERATED_AT)
        assert 'Congratulations!' in html

    def test_escapes_check_content(self, snapshot):
        snapshot['checks'][0]['details'] = '<script>alert(1)</script>'
        html = build_report_html(snapshot, 'u@x.com', GENERATED_AT)
        assert '<script>alert(1)</script>' not in html


class TestRenderReport:

    def test_converter_failure_is_render_error(self, snapshot):
        with patch('readiness.reporting.renderer._html_to_pdf', side_effect=ValueError('bad css')):
            with pytest.raises(RenderError):
                render_report(snapshot, 'u@x.com', GENERATED_AT)

    def test_malformed_checks_are_render_error(self, snapshot):
        snapshot['checks'].append({'label': 'Meta', 'status': 'pass', 'score': '85'})
        with patch('readiness.reporting.renderer._html_to_pdf') as convert:
            with pytest.raises(RenderError):
                render_report(snapshot, 'u@x.com', GENERATED_AT)
        convert.assert_not_called()

    def test_returns_converter_bytes(self, snapshot):
        with patch('readiness.reporting.renderer._html_to_pdf', return_value=b'%PDF-1.7') as convert:
            assert render_report(snapshot, 'u@x.com', GENERATED_AT) == b'%PDF-1.7'
        assert 'example.com' in convert.call_args.args[0]

    @pytest.mark.skipif(not _weasyprint_available(), reason='WeasyPrint system libraries not installed')
    def test_real_pdf(self, snapshot):
        pdf = render_report(snapshot, 'u@x.com', GENERATED_AT)
        assert pdf.startswith(b'%PDF')


class TestEmail:

    def test_subject_and_download_link(self, snapshot):
        subject, html = build_report_email(snapshot, 'https://cdn.example.com/reports/A1.pdf')
        assert subject == 'Your AI Readiness Report for example.com'
        assert 'https://cdn.example.com/reports/A1.pdf' in html
        assert 'all 3 metrics' in html

    def test_no_link_without_url(self, snapshot):
        _, html = build_report_email(snapshot, None)
        assert 'download your report here' not in html

    def test_filename(self):
        assert report_filename('www.example.co.uk') == 'ai-readiness-report-www-example-co-uk.pdf'
