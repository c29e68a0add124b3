"""
Base protocol for the key-value store behind the graph.

The graph layer talks to DynamoDB through document-style request payloads
(plain Python values, no attribute-value type tags). The same payloads are
recorded as the history of every graph operation, so a store only has to
translate them into its client calls.

Invariants:
    - put() is an unconditional upsert keyed by (Node, Type)
    - batch_write() returns only after every request was accepted or retries ran out
    - query() returns only the projected attributes of matching rows
    - Failures surface as StoreError; the graph layer never retries them
"""

from __future__ import annotations

from abc import abstractmethod
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class DocumentStore(Protocol):
    """Protocol for graph table backends.

    Example:
        >>> store = DynamoDBStore(config)
        >>> await store.connect()
        >>> await store.put({"TableName": "Graph", "Item": {...}})
    """

    @abstractmethod
    async def connect(self) -> None:
        """Connect to the backend.

        Raises:
            StoreConnectionError: If connection fails
        """
        ...

    @abstractmethod
    async def close(self) -> None:
        """Release client resources."""
        ...

    @abstractmethod
    async def put(self, request: dict[str, Any]) -> dict[str, Any]:
        """Upsert one item.

        Args:
            request: {"TableName": ..., "Item": {...}}

        Returns:
            The store response

        Raises:
            StoreError: If the request is rejected
        """
        ...

    @abstractmethod
    async def batch_write(self, request: dict[str, Any]) -> dict[str, Any]:
        """Upsert up to 25 items in one request.

        Args:
            request: {"RequestItems": {table: [{"PutRequest": {"Item": ...}}, ...]}}

        Raises:
            StoreError: If the request is rejected or items stay unprocessed
        """
        ...

    @abstractmethod
    async def query(self, request: dict[str, Any]) -> dict[str, Any]:
        """Run a projected query.

        Args:
            request: Query payload with KeyConditionExpression and ProjectionExpression

        Returns:
            {"Items": [...], "Count": n} plus "LastEvaluatedKey" when paginated

        Raises:
            StoreError: If the query is rejected
        """
        ...
