"""
Unit tests for logging setup.
"""

import logging

import json_log_formatter
import pytest

from dynamodb_graph import GraphConfig, ObservabilityConfig
from dynamodb_graph.log import setup_logging


@pytest.fixture
def root_logger():
    """Root logger with its handlers and level restored afterwards."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield root
    root.handlers = handlers
    root.setLevel(level)


class TestSetupLogging:
    """Tests for setup_logging()."""

    def test_json_format(self, root_logger):
        setup_logging(GraphConfig(observability=ObservabilityConfig(log_level="DEBUG", log_format="json")))

        [handler] = root_logger.handlers
        assert isinstance(handler.formatter, json_log_formatter.JSONFormatter)
        assert root_logger.level == logging.DEBUG

    def test_text_format(self, root_logger):
        setup_logging(GraphConfig(observability=ObservabilityConfig(log_level="WARNING", log_format="text")))

        [handler] = root_logger.handlers
        assert not isinstance(handler.formatter, json_log_formatter.JSONFormatter)
        assert root_logger.level == logging.WARNING

    def test_quiets_botocore(self, root_logger):
        setup_logging(GraphConfig())

        assert logging.getLogger("botocore").level == logging.WARNING
