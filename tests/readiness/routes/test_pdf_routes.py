"""Tests for /pdf/generate, /pdf/status and /pdf/preview."""
from unittest.mock import patch

from readiness.errors import RenderError


class TestGenerate:

    def test_success(self, client, make_analysis):
        make_analysis()
        resp = client.post('/pdf/generate', json={'analysisId': 'A1', 'email': 'u@x.com'})
        assert resp.status_code == 200
        data = resp.get_json()
        assert data['success'] is True
        assert data['pdfUrl'].startswith('https://reports.example.com/reports/A1-')
        assert data['message'] == 'PDF generated and sent successfully'

    def test_missing_fields_400(self, client):
        assert client.post('/pdf/generate', json={'analysisId': 'A1'}).status_code == 400

    def test_numeric_email_400(self, client, dispatcher, make_analysis):
        make_analysis()
        resp = client.post('/pdf/generate', json={'analysisId': 'A1', 'email': 123})
        assert resp.status_code == 400
        dispatcher.send_email.assert_not_called()

    def test_unknown_purchase_still_delivers(self, client, store, dispatcher, make_analysis):
        make_analysis()
        resp = client.post('/pdf/generate', json={
            'analysisId': 'A1', 'email': 'u@x.com', 'purchaseId': 'no-such-purchase',
        })
        assert resp.status_code == 200
        assert resp.get_json()['success'] is True
        dispatcher.send_email.assert_called_once()
        assert store.latest_report_for_purchase('no-such-purchase') is None

    def test_unknown_analysis_404(self, client):
        resp = client.post('/pdf/generate', json={'analysisId': 'nope', 'email': 'u@x.com'})
        assert resp.status_code == 404

    def test_render_failure_500(self, client, renderer, make_analysis):
        make_analysis()
        renderer.side_effect = RenderError('PDF generation failed')
        resp = client.post('/pdf/generate', json={'analysisId': 'A1', 'email': 'u@x.com'})
        assert resp.status_code == 500
        assert resp.get_json() == {'success': False, 'error': 'PDF generation failed'}


class TestStatus:

    def test_requires_a_key(self, client):
        assert client.get('/pdf/status').status_code == 400

    def test_not_found_is_200(self, client):
        resp = client.get('/pdf/status?session_id=cs_missing')
        assert resp.status_code == 200
        assert resp.get_json() == {'status': 'not_found'}

    def test_by_analysis(self, client, make_report):
        make_report(status='generating')
        data = client.get('/pdf/status?analysis_id=A1').get_json()
        assert data['status'] == 'generating'
        assert data['pdfUrl'] is None
        assert set(data) == {'status', 'pdfUrl', 'createdAt', 'completedAt'}


class TestPreview:

    def test_returns_inline_pdf(self, client, make_analysis):
        make_analysis()
        with patch('readiness.routes.pdf.render_report', return_value=b'%PDF-1.7 preview') as render:
            resp = client.get('/pdf/preview?id=A1')
        assert resp.status_code == 200
        assert resp.mimetype == 'application/pdf'
        assert resp.headers['Content-Disposition'] == 'inline; filename="ai-readiness-example.com.pdf"'
        assert resp.data == b'%PDF-1.7 preview'
        assert render.call_args.args[1] == 'preview@example.com'

    def test_missing_id_400(self, client):
        assert client.get('/pdf/preview').status_code == 400

    def test_unknown_analysis_404(self, client):
        assert client.get('/pdf/preview?id=nope').status_code == 404
