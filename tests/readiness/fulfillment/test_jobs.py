"""Tests for the RQ report-generation job wiring."""
from unittest.mock import MagicMock, patch

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from readiness.errors import UpstreamError
from readiness.fulfillment import jobs
from readiness.fulfillment.results import ReportResult


@pytest.fixture
def mock_queue():
    queue = MagicMock()
    queue.enqueue.return_value = MagicMock(id='job-1')
    with patch.object(jobs, '_get_queue', return_value=queue):
        yield queue


class TestEnqueue:

    def test_enqueues_worker_entry_point(self, mock_queue):
        assert jobs.enqueue_report_generation('A1', 'p1', 'u@x.com') == 'job-1'
        args = mock_queue.enqueue.call_args
        assert args.args == (jobs.run_report_generation, 'A1', 'p1', 'u@x.com')
        assert args.kwargs['job_timeout'] == 600

    def test_redis_failure_is_upstream_error(self, mock_queue):
        mock_queue.enqueue.side_effect = RedisConnectionError('refused')
        with pytest.raises(UpstreamError):
            jobs.enqueue_report_generation('A1', 'p1', 'u@x.com')


class TestRunReportGeneration:

    def test_runs_generate_report(self):
        orchestrator = MagicMock()
        orchestrator.generate_report.return_value = ReportResult(success=True, pdf_url='https://r/x.pdf')
        with patch('readiness.fulfillment.factory.build_orchestrator', return_value=orchestrator):
            result = jobs.run_report_generation('A1', 'p1', 'u@x.com')

        orchestrator.generate_report.assert_called_once_with('A1', 'u@x.com', purchase_id='p1')
        assert result['pdfUrl'] == 'https://r/x.pdf'
