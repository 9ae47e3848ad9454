"""Tests for structured logging configuration."""
import json
import logging
import os
from unittest.mock import MagicMock, patch

import pytest

from readiness.logging_config import configure_logging, JSONFormatter


@pytest.fixture(autouse=True)
def _reset_root_logger():
    """Reset root logger state after each test."""
    root = logging.getLogger()
    original_level = root.level
    original_handlers = root.handlers[:]
    yield
    root.setLevel(original_level)
    root.handlers = original_handlers


class TestConfigureLogging:

    def test_default_level_is_info(self):
        with patch.dict(os.environ, {}, clear=False):
            os.environ.pop('LOG_LEVEL', None)
            configure_logging()
        assert logging.getLogger().level == logging.INFO

    def test_log_level_case_insensitive(self):
        with patch.dict(os.environ, {'LOG_LEVEL': 'debug'}):
            configure_logging()
        assert logging.getLogger().level == logging.DEBUG

    def test_invalid_log_level_defaults_to_info(self):
        with patch.dict(os.environ, {'LOG_LEVEL': 'NONSENSE'}):
            configure_logging()
        assert logging.getLogger().level == logging.INFO

    def test_json_format_carries_fulfillment_context(self, capsys):
        with patch.dict(os.environ, {'LOG_FORMAT': 'json'}):
            configure_logging()
        logging.getLogger('fulfillment.test').info(
            "checkout completed", extra={'purchase_id': 'p1', 'session_id': 'cs_1'},
        )
        parsed = json.loads(capsys.readouterr().err.strip())
        assert parsed['message'] == 'checkout completed'
        assert parsed['purchase_id'] == 'p1'
        assert parsed['session_id'] == 'cs_1'
        assert 'analysis_id' not in parsed

    def test_provider_loggers_quieted_to_warning(self):
        configure_logging()
        for name in ['urllib3', 'botocore', 'stripe', 'weasyprint']:
            assert logging.getLogger(name).level == logging.WARNING

    def test_no_duplicate_handlers_on_repeated_calls(self):
        configure_logging()
        configure_logging()
        assert len(logging.getLogger().handlers) == 1

    def test_flask_logger_propagates_to_root(self):
        app = MagicMock()
        app.logger = logging.getLogger('flask.test.app')
        app.logger.propagate = False
        configure_logging(app)
        assert app.logger.propagate is True


class TestJSONFormatter:

    def test_format_includes_exception(self):
        formatter = JSONFormatter()
        try:
            raise ValueError("boom")
        except ValueError:
            import sys
            record = logging.LogRecord(
                name='test', level=logging.ERROR, pathname='', lineno=0,
                msg='failed %s', args=('hard',), exc_info=sys.exc_info(),
            )
        parsed = json.loads(formatter.format(record))
        assert parsed['message'] == 'failed hard'
        assert 'ValueError' in parsed['exception']
