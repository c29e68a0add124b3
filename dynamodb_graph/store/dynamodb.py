"""
Amazon DynamoDB store implementation.

Uses aiobotocore for async calls and boto3's TypeSerializer/TypeDeserializer
to translate document-style payloads to and from DynamoDB attribute values.

Invariants:
    - Requests are passed through unchanged apart from attribute-value marshalling
    - Unprocessed batch items are re-submitted with exponential backoff, at most
      config.max_retries times
    - ClientError is mapped to StoreError with the AWS error code attached

How to change safely:
    - Test against DynamoDB Local (DYNAMODB_ENDPOINT_URL) before deploying
    - Keep the table definition in table_definition() in sync with items.py
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from aiobotocore.session import get_session
from boto3.dynamodb.types import TypeDeserializer, TypeSerializer
from botocore.exceptions import ClientError, EndpointConnectionError

from ..config import DynamoDBConfig
from ..errors import StoreConnectionError, StoreError

logger = logging.getLogger(__name__)


def _backoff_seconds(attempt: int) -> float:
    return min(0.05 * (2.0 ** (attempt - 1)), 1.0)


def table_definition(config: DynamoDBConfig) -> dict[str, Any]:
    """CreateTable request for the graph table and its indexes."""
    return {
        "TableName": config.table,
        "AttributeDefinitions": [
            {"AttributeName": "Node", "AttributeType": "S"},
            {"AttributeName": "Type", "AttributeType": "S"},
            {"AttributeName": "GSIK", "AttributeType": "S"},
        ],
        "KeySchema": [
            {"AttributeName": "Node", "KeyType": "HASH"},
            {"AttributeName": "Type", "KeyType": "RANGE"},
        ],
        "GlobalSecondaryIndexes": [
            {
                "IndexName": config.gsik_index,
                "KeySchema": [
                    {"AttributeName": "GSIK", "KeyType": "HASH"},
                    {"AttributeName": "Type", "KeyType": "RANGE"},
                ],
                "Projection": {"ProjectionType": "ALL"},
            },
            {
                "IndexName": config.type_index,
                "KeySchema": [
                    {"AttributeName": "Type", "KeyType": "HASH"},
                    {"AttributeName": "Node", "KeyType": "RANGE"},
                ],
                "Projection": {"ProjectionType": "ALL"},
            },
        ],
        "BillingMode": "PAY_PER_REQUEST",
    }


class DynamoDBStore:
    """DynamoDB implementation of the DocumentStore protocol.

    Attributes:
        config: DynamoDB configuration

    Example:
        >>> store = DynamoDBStore(DynamoDBConfig(table="Graph"))
        >>> await store.connect()
        >>> await store.put({"TableName": "Graph", "Item": {"Node": "n1", "Type": "Book"}})
    """

    def __init__(self, config: DynamoDBConfig | None = None) -> None:
        self.config = config or DynamoDBConfig()
        self._session = None
        self._client_ctx = None
        self._client = None
        self._serializer = TypeSerializer()
        self._deserializer = TypeDeserializer()

    @property
    def is_connected(self) -> bool:
        return self._client is not None

    async def connect(self) -> None:
        """Create the DynamoDB client.

        Raises:
            StoreConnectionError: If the client cannot be created
        """
        if self._client is not None:
            return

        client_config: dict[str, Any] = {"region_name": self.config.region}
        if self.config.endpoint_url:
            client_config["endpoint_url"] = self.config.endpoint_url

        try:
            self._session = get_session()
            self._client_ctx = self._session.create_client("dynamodb", **client_config)
            self._client = await self._client_ctx.__aenter__()
        except EndpointConnectionError as e:
            raise StoreConnectionError(f"Failed to connect to DynamoDB endpoint: {e}") from e

        logger.info(
            "Connected to DynamoDB",
            extra={
                "table": self.config.table,
                "region": self.config.region,
                "endpoint": self.config.endpoint_url or "AWS",
            },
        )

    async def close(self) -> None:
        if self._client_ctx is not None:
            await self._client_ctx.__aexit__(None, None, None)
        self._client = None
        self._client_ctx = None
        self._session = None
        logger.info("DynamoDB connection closed")

    async def __aenter__(self) -> DynamoDBStore:
        await self.connect()
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    def _require_client(self) -> Any:
        if self._client is None:
            raise StoreConnectionError("Not connected to DynamoDB")
        return self._client

    # =========================================================================
    # Marshalling
    # =========================================================================

    def _serialize(self, values: dict[str, Any]) -> dict[str, Any]:
        return {k: self._serializer.serialize(v) for k, v in values.items()}

    def _deserialize(self, values: dict[str, Any]) -> dict[str, Any]:
        return {k: self._deserializer.deserialize(v) for k, v in values.items()}

    def _serialize_request_items(self, request_items: dict[str, Any]) -> dict[str, Any]:
        return {
            table: [{"PutRequest": {"Item": self._serialize(r["PutRequest"]["Item"])}} for r in requests]
            for table, requests in request_items.items()
        }

    def _deserialize_request_items(self, request_items: dict[str, Any]) -> dict[str, Any]:
        return {
            table: [{"PutRequest": {"Item": self._deserialize(r["PutRequest"]["Item"])}} for r in requests]
            for table, requests in request_items.items()
        }

    # =========================================================================
    # Operations
    # =========================================================================

    async def put(self, request: dict[str, Any]) -> dict[str, Any]:
        client = self._require_client()
        params = dict(request)
        params["Item"] = self._serialize(request["Item"])

        try:
            await client.put_item(**params)
        except ClientError as e:
            raise self._store_error("put", e) from e

        logger.debug(
            "Item put",
            extra={
                "table": request["TableName"],
                "node": request["Item"].get("Node"),
                "type": request["Item"].get("Type"),
            },
        )
        return {"Item": request["Item"]}

    async def batch_write(self, request: dict[str, Any]) -> dict[str, Any]:
        client = self._require_client()
        pending = request["RequestItems"]
        attempt = 0

        while True:
            try:
                response = await client.batch_write_item(
                    RequestItems=self._serialize_request_items(pending)
                )
            except ClientError as e:
                raise self._store_error("batch_write", e) from e

            unprocessed = response.get("UnprocessedItems") or {}
            if not unprocessed:
                break

            attempt += 1
            if attempt > self.config.max_retries:
                raise StoreError(
                    f"Batch write left unprocessed items after {self.config.max_retries} retries",
                    operation="batch_write",
                )

            pending = self._deserialize_request_items(unprocessed)
            logger.warning(
                "Retrying unprocessed batch items",
                extra={
                    "attempt": attempt,
                    "unprocessed": sum(len(r) for r in pending.values()),
                },
            )
            await asyncio.sleep(_backoff_seconds(attempt))

        logger.debug(
            "Batch written",
            extra={"requests": sum(len(r) for r in request["RequestItems"].values())},
        )
        return {"UnprocessedItems": {}}

    async def query(self, request: dict[str, Any]) -> dict[str, Any]:
        client = self._require_client()
        params = dict(request)
        params["ExpressionAttributeValues"] = self._serialize(request["ExpressionAttributeValues"])
        if "ExclusiveStartKey" in request:
            params["ExclusiveStartKey"] = self._serialize(request["ExclusiveStartKey"])

        try:
            response = await client.query(**params)
        except ClientError as e:
            raise self._store_error("query", e) from e

        result: dict[str, Any] = {
            "Items": [self._deserialize(item) for item in response.get("Items", [])],
            "Count": response.get("Count", 0),
        }
        if response.get("LastEvaluatedKey"):
            result["LastEvaluatedKey"] = self._deserialize(response["LastEvaluatedKey"])

        logger.debug(
            "Query executed",
            extra={
                "table": request["TableName"],
                "index": request.get("IndexName"),
                "projection": request.get("ProjectionExpression"),
                "count": result["Count"],
            },
        )
        return result

    async def create_table(self) -> dict[str, Any]:
        """Create the graph table and wait until it is active."""
        client = self._require_client()
        try:
            response = await client.create_table(**table_definition(self.config))
            waiter = client.get_waiter("table_exists")
            await waiter.wait(TableName=self.config.table)
        except ClientError as e:
            raise self._store_error("create_table", e) from e

        logger.info("Table created", extra={"table": self.config.table})
        return response["TableDescription"]

    def _store_error(self, operation: str, error: ClientError) -> StoreError:
        error_code = error.response.get("Error", {}).get("Code", "")
        return StoreError(
            f"DynamoDB {operation} failed: {error}",
            operation=operation,
            aws_code=error_code or None,
        )
