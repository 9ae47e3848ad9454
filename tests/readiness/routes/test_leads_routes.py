"""Tests for /email-capture and /data-deletion."""


class TestEmailCapture:

    def test_creates_lead(self, client, store):
        resp = client.post('/email-capture', json={
            'email': 'u@x.com', 'analysisId': 'A1', 'privacyAccepted': True,
            'consentTimestamp': '2026-10-19T10:00:00Z',
            'utmParams': {'utm_source': 'linkedin', 'utm_campaign': 'launch'},
        })
        assert resp.status_code == 200
        data = resp.get_json()
        assert data['success'] is True
        assert data['message'] == 'Lead captured'
        lead = store.find_lead_for_analysis('A1')
        assert lead.id == data['leadId']
        assert lead.utm_source == 'linkedin'
        assert lead.privacy_accepted is True

    def test_second_capture_updates(self, client):
        first = client.post('/email-capture', json={'email': 'u@x.com', 'analysisId': 'A1'}).get_json()
        second = client.post('/email-capture', json={'email': 'v@x.com', 'analysisId': 'A1'}).get_json()
        assert second['message'] == 'Lead updated'
        assert second['leadId'] == first['leadId']

    def test_invalid_email_400(self, client):
        resp = client.post('/email-capture', json={'email': 'nope'})
        assert resp.status_code == 400
        assert resp.get_json() == {'error': 'Valid email is required'}

    def test_numeric_email_400(self, client):
        resp = client.post('/email-capture', json={'email': 123, 'analysisId': 'A1'})
        assert resp.status_code == 400
        assert resp.get_json() == {'error': 'Valid email is required'}


class TestDataDeletion:

    def test_deletes_lead_and_orphaned_analysis(self, client, store, make_analysis, make_lead):
        make_analysis(id='X')
        make_lead(email='a@b.com', analysis_id='X')

        resp = client.post('/data-deletion', json={'email': 'a@b.com', 'reason': 'no longer needed'})

        assert resp.status_code == 200
        assert resp.get_json()['success'] is True
        assert store.get_analysis('X') is None
        assert store.find_lead_for_analysis('X') is None

    def test_same_response_when_nothing_matched(self, client, make_analysis, make_lead):
        make_analysis(id='X')
        make_lead(email='a@b.com', analysis_id='X')
        existing = client.post('/data-deletion', json={'email': 'a@b.com'}).get_json()
        missing = client.post('/data-deletion', json={'email': 'ghost@b.com'}).get_json()
        assert missing == existing == {
            'success': True,
            'message': 'If we have any data associated with this email, it has been deleted.',
        }

    def test_invalid_email_400(self, client):
        assert client.post('/data-deletion', json={}).status_code == 400

    def test_numeric_email_400(self, client):
        resp = client.post('/data-deletion', json={'email': 123})
        assert resp.status_code == 400
        assert resp.get_json() == {'error': 'Valid email is required'}
