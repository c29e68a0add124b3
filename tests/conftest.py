"""
Shared fixtures for DynamoDB Graph tests.

Two store doubles are provided:
- RecordingStore: records every request and answers queries with canned
  responses keyed by ProjectionExpression
- InMemoryTable: keeps items in a dict and evaluates the query shapes the
  codec produces, for end-to-end flows without DynamoDB
"""

from __future__ import annotations

import itertools
from typing import Any, Callable

import pytest

from dynamodb_graph import DynamoDBConfig, Graph, GraphConfig

TABLE = "TestTable"

Response = dict[str, Any] | Callable[[dict[str, Any]], dict[str, Any]]


class RecordingStore:
    """Store double that records requests and returns canned query responses."""

    def __init__(self, responses: dict[str, Response] | None = None) -> None:
        self.responses: dict[str, Response] = dict(responses or {})
        self.requests: list[tuple[str, dict[str, Any]]] = []
        self.connected = False

    async def connect(self) -> None:
        self.connected = True

    async def close(self) -> None:
        self.connected = False

    async def put(self, request: dict[str, Any]) -> dict[str, Any]:
        self.requests.append(("put", request))
        return {"Item": request["Item"]}

    async def batch_write(self, request: dict[str, Any]) -> dict[str, Any]:
        self.requests.append(("batch_write", request))
        return {"UnprocessedItems": {}}

    async def query(self, request: dict[str, Any]) -> dict[str, Any]:
        self.requests.append(("query", request))
        response = self.responses.get(request["ProjectionExpression"], {"Items": []})
        if callable(response):
            return response(request)
        return response

    def operations(self) -> list[str]:
        return [op for op, _ in self.requests]


class InMemoryTable:
    """Store double holding items keyed by (Node, Type)."""

    def __init__(self, type_index: str = "ByType") -> None:
        self.type_index = type_index
        self.items: dict[tuple[str, str], dict[str, Any]] = {}

    async def connect(self) -> None:
        pass

    async def close(self) -> None:
        pass

    async def put(self, request: dict[str, Any]) -> dict[str, Any]:
        item = dict(request["Item"])
        self.items[(item["Node"], item["Type"])] = item
        return {"Item": item}

    async def batch_write(self, request: dict[str, Any]) -> dict[str, Any]:
        for requests in request["RequestItems"].values():
            for put in requests:
                item = dict(put["PutRequest"]["Item"])
                self.items[(item["Node"], item["Type"])] = item
        return {"UnprocessedItems": {}}

    async def query(self, request: dict[str, Any]) -> dict[str, Any]:
        values = request["ExpressionAttributeValues"]

        if request.get("IndexName") == self.type_index:
            prefix = values.get(":Tenant", "")
            rows = sorted(
                (
                    i
                    for i in self.items.values()
                    if i["Type"] == values[":Type"] and i["Node"].startswith(prefix)
                ),
                key=lambda i: i["Node"],
            )
        else:
            rows = sorted(
                (i for i in self.items.values() if i["Node"] == values[":Node"]),
                key=lambda i: i["Type"],
            )

        rows = [row for row in rows if self._matches(request.get("FilterExpression"), row, values)]
        names = [name.strip().lstrip("#") for name in request["ProjectionExpression"].split(",")]
        projected = [{n: row[n] for n in names if n in row} for row in rows]
        return {"Items": projected, "Count": len(projected)}

    @staticmethod
    def _matches(expression: str | None, row: dict[str, Any], values: dict[str, Any]) -> bool:
        if expression is None:
            return True
        if expression == "attribute_exists(#MaxGSIK)":
            return "MaxGSIK" in row
        if expression == "#Target = :Node":
            return row.get("Target") == values[":Node"]
        if expression == "attribute_not_exists(#Target)":
            return "Target" not in row
        if expression == "attribute_exists(#Target) AND #Target <> :Node":
            return "Target" in row and row["Target"] != values[":Node"]
        raise AssertionError(f"Unexpected filter expression: {expression}")


@pytest.fixture
def config():
    """Graph configuration with a single shard."""
    return GraphConfig(max_gsik=0, dynamodb=DynamoDBConfig(table=TABLE))


@pytest.fixture
def store():
    """Recording store double."""
    return RecordingStore()


@pytest.fixture
def graph(config, store):
    """Graph bound to the recording store."""
    return Graph(config, store=store)


@pytest.fixture
def table():
    """In-memory table double."""
    return InMemoryTable()


@pytest.fixture
def memory_graph(config, table):
    """Graph bound to the in-memory table, with predictable node ids."""
    counter = itertools.count(1)
    return Graph(config, store=table, id_factory=lambda: f"node-{next(counter)}")
