"""
Configuration management for DynamoDB Graph.

All configuration can be loaded from environment variables; every class can
also be constructed directly for programmatic use and tests.

Invariants:
    - All settings have sensible defaults for local development
    - max_gsik is a per-table setting and must never decrease once items exist
    - Secrets are never logged or exposed in error messages

How to change safely:
    - Add new settings with defaults that maintain backward compatibility
    - Never change the default max_gsik of an existing table
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)


def _optional_int(value: str | None) -> int | None:
    if value is None or value == "":
        return None
    return int(value)


@dataclass(frozen=True)
class DynamoDBConfig:
    """DynamoDB table and client configuration.

    Attributes:
        table: Table name holding the graph
        region: AWS region
        endpoint_url: Custom endpoint URL (for DynamoDB Local / LocalStack)
        consistent_read: Whether queries use strongly consistent reads
        max_retries: Maximum re-submissions of unprocessed batch items
        batch_size: Maximum put requests per BatchWriteItem call
        gsik_index: Name of the index keyed by GSIK
        type_index: Name of the index keyed by Type, used by collections
    """

    table: str = "Graph"
    region: str = "us-east-1"
    endpoint_url: str | None = None
    consistent_read: bool = False
    max_retries: int = 3
    batch_size: int = 25  # DynamoDB BatchWriteItem limit
    gsik_index: str = "ByGSIK"
    type_index: str = "ByType"

    @classmethod
    def from_env(cls) -> DynamoDBConfig:
        """Load configuration from environment variables."""
        return cls(
            table=os.getenv("GRAPH_TABLE", "Graph"),
            region=os.getenv("AWS_REGION", os.getenv("AWS_DEFAULT_REGION", "us-east-1")),
            endpoint_url=os.getenv("DYNAMODB_ENDPOINT_URL"),
            consistent_read=os.getenv("DYNAMODB_CONSISTENT_READ", "false").lower() == "true",
            max_retries=int(os.getenv("DYNAMODB_MAX_RETRIES", "3")),
            batch_size=int(os.getenv("DYNAMODB_BATCH_SIZE", "25")),
            gsik_index=os.getenv("DYNAMODB_GSIK_INDEX", "ByGSIK"),
            type_index=os.getenv("DYNAMODB_TYPE_INDEX", "ByType"),
        )


@dataclass(frozen=True)
class ObservabilityConfig:
    """Logging configuration.

    Attributes:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_format: Log format (json, text)
    """

    log_level: str = "INFO"
    log_format: str = "json"

    @classmethod
    def from_env(cls) -> ObservabilityConfig:
        """Load configuration from environment variables."""
        return cls(
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_format=os.getenv("LOG_FORMAT", "json"),
        )


@dataclass
class GraphConfig:
    """Complete graph configuration.

    Attributes:
        max_gsik: Default shard-count ceiling for new nodes (None = resolve per node)
        tenant: Default tenant for entities created by a Graph
        dynamodb: DynamoDB configuration
        observability: Logging configuration
    """

    max_gsik: int | None = None
    tenant: str | None = None
    dynamodb: DynamoDBConfig = field(default_factory=DynamoDBConfig)
    observability: ObservabilityConfig = field(default_factory=ObservabilityConfig)

    @classmethod
    def from_env(cls) -> GraphConfig:
        """Load complete configuration from environment variables.

        Raises:
            ValueError: If configuration is invalid.
        """
        config = cls(
            max_gsik=_optional_int(os.getenv("GRAPH_MAX_GSIK")),
            tenant=os.getenv("GRAPH_TENANT") or None,
            dynamodb=DynamoDBConfig.from_env(),
            observability=ObservabilityConfig.from_env(),
        )
        config.validate()
        return config

    def validate(self) -> None:
        """Validate configuration consistency.

        Raises:
            ValueError: If configuration is invalid.
        """
        if self.max_gsik is not None and (
            isinstance(self.max_gsik, bool) or not isinstance(self.max_gsik, int) or self.max_gsik < 0
        ):
            raise ValueError(f"GRAPH_MAX_GSIK must be a non-negative integer, got {self.max_gsik!r}")
        if not self.dynamodb.table:
            raise ValueError("GRAPH_TABLE is required")
        if not 1 <= self.dynamodb.batch_size <= 25:
            raise ValueError("DYNAMODB_BATCH_SIZE must be between 1 and 25")
        if self.observability.log_format not in ("json", "text"):
            raise ValueError(
                f"Invalid LOG_FORMAT '{self.observability.log_format}'. Must be one of: json, text"
            )

    def log_config(self) -> None:
        """Log configuration."""
        logger.info(
            "Graph configuration loaded",
            extra={
                "table": self.dynamodb.table,
                "region": self.dynamodb.region,
                "endpoint": self.dynamodb.endpoint_url or "AWS",
                "max_gsik": self.max_gsik,
                "tenant": self.tenant,
                "consistent_read": self.dynamodb.consistent_read,
                "log_level": self.observability.log_level,
            },
        )
