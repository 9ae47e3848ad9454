"""Tests for GET/PATCH /analysis/<id>."""


class TestGetAnalysis:

    def test_camel_case_projection(self, client, make_analysis):
        make_analysis()
        resp = client.get('/analysis/A1')
        assert resp.status_code == 200
        data = resp.get_json()
        assert data['id'] == 'A1'
        assert data['overallScore'] == 62
        assert data['metadata']['title'] == 'Example'
        assert data['enhancedScore'] is None
        assert len(data['checks']) == 4

    def test_unknown_404(self, client):
        assert client.get('/analysis/nope').status_code == 404


class TestPatchAnalysis:

    def test_updates_allow_listed_fields(self, client, store, make_analysis):
        make_analysis()
        resp = client.patch('/analysis/A1', json={
            'enhancedScore': 71,
            'aiTopPriorities': ['Add schema'],
            'overallScore': 100,
        })
        assert resp.status_code == 200
        data = resp.get_json()
        assert data['enhancedScore'] == 71
        assert data['aiTopPriorities'] == ['Add schema']
        assert data['overallScore'] == 62
        assert store.get_analysis('A1').overall_score == 62

    def test_no_allowed_fields_400(self, client, make_analysis):
        make_analysis()
        resp = client.patch('/analysis/A1', json={'overallScore': 100})
        assert resp.status_code == 400

    def test_unknown_404(self, client):
        assert client.patch('/analysis/nope', json={'enhancedScore': 1}).status_code == 404
