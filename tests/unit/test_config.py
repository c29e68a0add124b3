"""
Unit tests for configuration loading.

Tests cover:
- Defaults
- Environment parsing
- Validation
"""

import pytest

from dynamodb_graph.config import DynamoDBConfig, GraphConfig, ObservabilityConfig


class TestDynamoDBConfig:
    """Tests for DynamoDBConfig."""

    def test_defaults(self):
        """Defaults target a local table named Graph."""
        config = DynamoDBConfig()
        assert config.table == "Graph"
        assert config.batch_size == 25
        assert config.consistent_read is False
        assert config.endpoint_url is None

    def test_from_env(self, monkeypatch):
        """Environment variables override defaults."""
        monkeypatch.setenv("GRAPH_TABLE", "Books")
        monkeypatch.setenv("AWS_REGION", "eu-west-1")
        monkeypatch.setenv("DYNAMODB_ENDPOINT_URL", "http://localhost:8000")
        monkeypatch.setenv("DYNAMODB_CONSISTENT_READ", "true")
        monkeypatch.setenv("DYNAMODB_MAX_RETRIES", "5")

        config = DynamoDBConfig.from_env()

        assert config.table == "Books"
        assert config.region == "eu-west-1"
        assert config.endpoint_url == "http://localhost:8000"
        assert config.consistent_read is True
        assert config.max_retries == 5


class TestGraphConfig:
    """Tests for GraphConfig."""

    def test_from_env_max_gsik(self, monkeypatch):
        """GRAPH_MAX_GSIK sets the table default."""
        monkeypatch.setenv("GRAPH_MAX_GSIK", "4")
        monkeypatch.setenv("GRAPH_TENANT", "acme")

        config = GraphConfig.from_env()

        assert config.max_gsik == 4
        assert config.tenant == "acme"

    def test_from_env_without_max_gsik(self, monkeypatch):
        """Unset GRAPH_MAX_GSIK leaves the ceiling to be resolved per node."""
        monkeypatch.delenv("GRAPH_MAX_GSIK", raising=False)
        monkeypatch.delenv("GRAPH_TENANT", raising=False)

        config = GraphConfig.from_env()

        assert config.max_gsik is None
        assert config.tenant is None

    def test_negative_max_gsik_rejected(self):
        """Negative ceilings fail validation."""
        with pytest.raises(ValueError, match="GRAPH_MAX_GSIK"):
            GraphConfig(max_gsik=-1).validate()

    def test_batch_size_limit(self):
        """Batch size cannot exceed the DynamoDB limit."""
        config = GraphConfig(dynamodb=DynamoDBConfig(batch_size=26))
        with pytest.raises(ValueError, match="BATCH_SIZE"):
            config.validate()

    def test_invalid_log_format(self):
        """Only json and text log formats are accepted."""
        config = GraphConfig(observability=ObservabilityConfig(log_format="xml"))
        with pytest.raises(ValueError, match="LOG_FORMAT"):
            config.validate()
