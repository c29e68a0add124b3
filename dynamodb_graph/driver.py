"""
Graph driver: graph-level reads and writes over a DocumentStore.

The driver turns graph intents into item writes and projected queries:
- put_node / put_properties: root item and batched property items
- create_property / create_edge: single property or edge writes
- resolve_max_gsik / resolve_target_data: lookups needed before writing
- get_node: the three projected queries that rebuild a node
- get_nodes_with_properties_and_edges: per-type listing grouped by node

Every method takes an optional history list; each request payload is
appended to it right before it is issued, so the list is the ordered audit
trail of the operation.

Invariants:
    - Validation errors are raised before any store call
    - Store errors propagate unchanged; nothing is retried here
    - Edge Data is the target's root Data as stored, never re-encoded
    - Node ids are scoped by tenant in every item and query; returned ids are
      unscoped again
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from . import items as codec
from .config import DynamoDBConfig
from .errors import (
    DataUndefinedError,
    MaxGSIKNotFoundError,
    MaxGSIKUndefinedError,
    NodeUndefinedError,
    TargetNotFoundError,
    TargetUndefinedError,
    TypeUndefinedError,
)
from .store.base import DocumentStore

logger = logging.getLogger(__name__)

History = list[Any]


def _record(history: History | None, request: Any) -> None:
    if history is not None:
        history.append(request)


class GraphDriver:
    """Graph operations on a single DynamoDB table.

    Attributes:
        store: Store the requests are issued to
        config: Table configuration

    Example:
        >>> driver = GraphDriver(store, DynamoDBConfig(table="Graph"))
        >>> await driver.create_property(node="n1", type="Genre", data="Fantasy", max_gsik=4)
    """

    def __init__(self, store: DocumentStore, config: DynamoDBConfig | None = None) -> None:
        self.store = store
        self.config = config or DynamoDBConfig()

    @property
    def table(self) -> str:
        return self.config.table

    # =========================================================================
    # Store calls
    # =========================================================================

    async def _put(self, item: dict[str, Any], history: History | None) -> dict[str, Any]:
        request = codec.put_request(self.table, item)
        _record(history, request)
        return await self.store.put(request)

    async def _query(self, request: dict[str, Any], history: History | None) -> dict[str, Any]:
        _record(history, request)
        return await self.store.query(request)

    # =========================================================================
    # Resolution
    # =========================================================================

    async def resolve_max_gsik(
        self,
        node: str,
        history: History | None = None,
        *,
        tenant: str | None = None,
    ) -> int:
        """Read the MaxGSIK stored on node's root item.

        Raises:
            MaxGSIKNotFoundError: If the node has no root item
        """
        response = await self._query(
            codec.max_gsik_query(self.table, node, self.config.consistent_read, tenant=tenant),
            history,
        )
        max_gsik = codec.decode_max_gsik(response)
        if max_gsik is None:
            raise MaxGSIKNotFoundError(node)

        logger.debug(
            "Max GSIK resolved",
            extra={"tenant": tenant, "node": node, "max_gsik": max_gsik},
        )
        return max_gsik

    async def resolve_target_data(
        self,
        target: str,
        history: History | None = None,
        *,
        tenant: str | None = None,
    ) -> str:
        """Read the raw (JSON-encoded) root Data of target.

        Raises:
            TargetNotFoundError: If the target has no root item
        """
        response = await self._query(
            codec.root_data_query(
                self.table, target, self.config.consistent_read, tenant=tenant
            ),
            history,
        )
        item = codec.first_item(response)
        if item is None or item.get(codec.DATA) is None:
            raise TargetNotFoundError(target)
        return item[codec.DATA]

    # =========================================================================
    # Writes
    # =========================================================================

    async def put_node(
        self,
        node: str,
        type: str,
        data: Any,
        max_gsik: int,
        history: History | None = None,
        *,
        tenant: str | None = None,
    ) -> dict[str, Any]:
        """Write the root item of a node."""
        item = codec.node_item(node, type, data, max_gsik, tenant)
        await self._put(item, history)
        return item

    async def put_properties(
        self,
        node: str,
        properties: list[tuple[str, Any]],
        max_gsik: int,
        history: History | None = None,
        *,
        tenant: str | None = None,
    ) -> list[dict[str, Any]]:
        """Write several property items of one node with BatchWriteItem.

        The history receives a single entry: the list of batch payloads.
        """
        property_items = [
            codec.property_item(node, type, data, max_gsik, tenant) for type, data in properties
        ]
        requests = codec.batch_write_requests(self.table, property_items, self.config.batch_size)
        _record(history, requests)

        for request in requests:
            await self.store.batch_write(request)

        logger.debug(
            "Properties written",
            extra={
                "tenant": tenant,
                "node": node,
                "count": len(property_items),
                "batches": len(requests),
            },
        )
        return property_items

    async def create_property(
        self,
        *,
        node: str | None,
        type: str | None,
        data: Any,
        max_gsik: int | None,
        tenant: str | None = None,
        history: History | None = None,
    ) -> dict[str, Any]:
        """Write one property item.

        Returns:
            {"Item": item}

        Raises:
            NodeUndefinedError, TypeUndefinedError, DataUndefinedError,
            MaxGSIKUndefinedError: On missing input
        """
        if node is None:
            raise NodeUndefinedError(field_name="node")
        if type is None:
            raise TypeUndefinedError(field_name="type")
        if data is None:
            raise DataUndefinedError(field_name="data")
        if max_gsik is None:
            raise MaxGSIKUndefinedError(field_name="max_gsik")

        item = codec.property_item(node, type, data, max_gsik, tenant)
        await self._put(item, history)
        logger.debug("Property created", extra={"tenant": tenant, "node": node, "type": type})
        return {"Item": item}

    async def create_edge(
        self,
        *,
        node: str | None,
        type: str | None,
        target: str | None,
        max_gsik: int | None,
        tenant: str | None = None,
        data: str | None = None,
        history: History | None = None,
    ) -> dict[str, Any]:
        """Write one edge item from node to target.

        Args:
            data: Raw root Data of the target if already known; otherwise it
                is queried before the edge is written

        Returns:
            {"Item": item}, where item["Data"] is the target's root Data

        Raises:
            NodeUndefinedError, TargetUndefinedError, TypeUndefinedError,
            MaxGSIKUndefinedError: On missing input
            TargetNotFoundError: If the target has no root item
        """
        if node is None:
            raise NodeUndefinedError(field_name="node")
        if target is None:
            raise TargetUndefinedError(field_name="target")
        if type is None:
            raise TypeUndefinedError(field_name="type")
        if max_gsik is None:
            raise MaxGSIKUndefinedError(field_name="max_gsik")

        if data is None:
            data = await self.resolve_target_data(target, history, tenant=tenant)

        item = codec.edge_item(node, type, target, data, max_gsik, tenant)
        await self._put(item, history)
        logger.debug(
            "Edge created",
            extra={"tenant": tenant, "node": node, "type": type, "target": target},
        )
        return {"Item": item}

    # =========================================================================
    # Reads
    # =========================================================================

    async def get_node(
        self,
        node: str,
        history: History | None = None,
        *,
        tenant: str | None = None,
    ) -> dict[str, Any]:
        """Fetch a node's data, properties and edges.

        The root item is found by its Target, so the node's type does not
        have to be known.

        Returns:
            {"node", "data", "properties": {type: data}, "edges": {type: edge}}
        """
        consistent = self.config.consistent_read
        root, properties, edges = await asyncio.gather(
            self._query(codec.root_data_query(self.table, node, consistent, tenant=tenant), history),
            self._query(codec.properties_query(self.table, node, consistent, tenant=tenant), history),
            self._query(codec.edges_query(self.table, node, consistent, tenant=tenant), history),
        )

        item = codec.first_item(root)
        return {
            "node": node,
            "data": codec.decode(item.get(codec.DATA)) if item else None,
            "properties": codec.decode_properties(properties.get("Items", [])),
            "edges": codec.decode_edges(edges.get("Items", []), node, tenant),
        }

    async def get_nodes_with_properties_and_edges(
        self,
        *,
        type: str,
        tenant: str | None = None,
        limit: int | None = None,
        cursor: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """List the nodes of a type, each grouped with its property and edge rows.

        With a tenant only that tenant's nodes are listed, and the Node and
        Target values in the groups are returned without the tenant prefix.
        Without a tenant every node of the type is listed with its stored keys.

        Returns:
            {"Items": [{"Node", "Type", "Data", "MaxGSIK", "Properties", "Edges"}],
             "Count": n} plus "LastEvaluatedKey" when more pages exist
        """
        if type is None:
            raise TypeUndefinedError(field_name="type")

        response = await self.store.query(
            codec.type_index_query(
                self.table, self.config.type_index, type, limit, cursor, tenant=tenant
            )
        )
        roots = response.get("Items", [])
        groups = await asyncio.gather(*(self._group(root, tenant) for root in roots))

        result: dict[str, Any] = {"Items": list(groups), "Count": len(groups)}
        if response.get("LastEvaluatedKey"):
            result["LastEvaluatedKey"] = response["LastEvaluatedKey"]

        logger.debug(
            "Collection fetched",
            extra={"tenant": tenant, "type": type, "count": len(groups)},
        )
        return result

    async def _group(self, root: dict[str, Any], tenant: str | None) -> dict[str, Any]:
        # root Node is already the stored key
        key = root[codec.NODE]
        consistent = self.config.consistent_read
        properties, edges = await asyncio.gather(
            self.store.query(codec.properties_query(self.table, key, consistent)),
            self.store.query(codec.edges_query(self.table, key, consistent)),
        )
        return {
            "Node": codec.unscoped_key(key, tenant),
            "Type": root.get(codec.TYPE),
            "Data": codec.decode(root.get(codec.DATA)),
            "MaxGSIK": int(root[codec.MAX_GSIK]) if root.get(codec.MAX_GSIK) is not None else None,
            "Properties": [
                {
                    **row,
                    codec.NODE: codec.unscoped_key(row[codec.NODE], tenant),
                    codec.DATA: codec.decode(row.get(codec.DATA)),
                }
                for row in properties.get("Items", [])
            ],
            "Edges": [
                {
                    **row,
                    codec.TARGET: codec.unscoped_key(row[codec.TARGET], tenant),
                    codec.DATA: codec.decode(row.get(codec.DATA)),
                }
                for row in edges.get("Items", [])
            ],
        }
