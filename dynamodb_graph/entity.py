"""
Entity handles and the Graph factory.

This module provides the main interface:
- Graph: holds the store, driver and configuration; creates entities
- Entity: a typed reference to one node, used to run graph operations
- Result: handle fields plus the ordered history of issued requests

Example:
    >>> async with Graph(GraphConfig(max_gsik=4)) as graph:
    ...     book = graph.entity("Book")
    ...     await book.create("Elantris", properties={"Genre": "Fantasy"})
    ...     await book.connect(author, "Author")
    ...     result = await book.get()

Invariants:
    - Handles are single-writer; do not share one across concurrent operations
    - set() rebinds the node and clears cached data, properties and edges
    - max_gsik of an existing node must never change; a smaller value would
      orphan items written under the old shard labels, and nothing here
      rebalances them
    - A tenant is a namespace: the same node id in two tenants names two
      different nodes, and edges never cross tenants
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from . import items as codec
from .config import GraphConfig
from .driver import GraphDriver, History
from .errors import (
    DataUndefinedError,
    InvalidArgumentError,
    InvalidMaxGSIKError,
    MaxGSIKUndefinedError,
    MissingTypeError,
    NodeUndefinedError,
    TargetUndefinedError,
    TypeUndefinedError,
)
from .store.base import DocumentStore
from .store.dynamodb import DynamoDBStore

logger = logging.getLogger(__name__)


@dataclass
class Result:
    """Outcome of an entity operation.

    Attributes:
        node: Node identifier
        tenant: Tenant identifier
        type: Node type
        max_gsik: Shard-count ceiling in effect
        data: Node data
        properties: Property type to value
        edges: Edge type to {"node", "type", "data"}
        history: Request payloads in issuance order
    """

    node: str | None
    tenant: str | None
    type: str
    max_gsik: int | None
    data: Any = None
    properties: Any = field(default_factory=dict)
    edges: Any = field(default_factory=dict)
    history: list[Any] = field(default_factory=list)

    @classmethod
    def from_entity(cls, entity: Entity, history: History) -> Result:
        return cls(
            node=entity.node,
            tenant=entity.tenant,
            type=entity.type,
            max_gsik=entity.max_gsik,
            data=entity.data,
            properties=_copy(entity.properties),
            edges=_copy(entity.edges),
            history=history,
        )


def _copy(value: Any) -> Any:
    if isinstance(value, dict):
        return dict(value)
    if isinstance(value, list):
        return list(value)
    return value


def _check_max_gsik(max_gsik: Any) -> int | None:
    if max_gsik is None:
        return None
    if isinstance(max_gsik, bool) or not isinstance(max_gsik, int) or max_gsik < 0:
        raise InvalidMaxGSIKError(field_name="max_gsik")
    return max_gsik


class Entity:
    """Reference to one node of the graph.

    Entities are created with Graph.entity(). They do not own any stored
    record: creating an Entity writes nothing, and dropping it deletes
    nothing.

    Attributes:
        tenant: Tenant namespace of the node id (None for the shared namespace)
        node: Node identifier, without any tenant prefix
        type: Node type (the Type of the root item)
        max_gsik: Shard-count ceiling, resolved from the table when None
        data: Cached node data
        properties: Cached properties (dict, or raw rows for collection results)
        edges: Cached edges (dict, or raw rows for collection results)
    """

    def __init__(
        self,
        graph: Graph,
        type: str | None,
        *,
        node: str | None = None,
        tenant: str | None = None,
        max_gsik: int | None = None,
        data: Any = None,
        properties: Any = None,
        edges: Any = None,
    ) -> None:
        if type is None:
            raise MissingTypeError(field_name="type")

        self._graph = graph
        self.type = type
        self.tenant = codec.validate_tenant(tenant)
        self.max_gsik = _check_max_gsik(max_gsik)
        self.node = node if node is not None else graph.new_id()
        self.data = data
        self.properties = properties if properties is not None else {}
        self.edges = edges if edges is not None else {}

    def __repr__(self) -> str:
        return f"Entity(type={self.type!r}, node={self.node!r}, tenant={self.tenant!r})"

    @property
    def driver(self) -> GraphDriver:
        return self._graph.driver

    def set(self, node: str) -> Entity:
        """Rebind the handle to another node, dropping cached state.

        Tenant, type and max_gsik are kept.
        """
        self.node = node
        self.data = None
        self.properties = {}
        self.edges = {}
        return self

    async def _ensure_max_gsik(self, history: History) -> int:
        if self.max_gsik is None:
            self.max_gsik = await self.driver.resolve_max_gsik(
                self.node, history, tenant=self.tenant
            )
        return self.max_gsik

    async def create(
        self,
        data: Any = None,
        properties: Mapping[str, Any] | Iterable[Any] | None = None,
    ) -> Result:
        """Write the root item, then the properties in one batch.

        Args:
            data: Node data
            properties: Mapping or list of [type, value] pairs

        Raises:
            DataUndefinedError: If data is None
            MaxGSIKUndefinedError: If the handle has no max_gsik
        """
        if data is None:
            raise DataUndefinedError(field_name="data")
        if self.max_gsik is None:
            raise MaxGSIKUndefinedError(field_name="max_gsik")

        pairs = codec.property_pairs(properties)
        history: History = []

        await self.driver.put_node(
            self.node, self.type, data, self.max_gsik, history, tenant=self.tenant
        )
        if pairs:
            await self.driver.put_properties(
                self.node, pairs, self.max_gsik, history, tenant=self.tenant
            )

        self.data = data
        self.properties = dict(pairs)
        self.edges = {}

        logger.info(
            "Node created",
            extra={
                "tenant": self.tenant,
                "node": self.node,
                "type": self.type,
                "properties": len(pairs),
            },
        )
        return Result.from_entity(self, history)

    async def add(self, type: str | None = None, data: Any = None) -> Result:
        """Add or overwrite one property of the node.

        Raises:
            NodeUndefinedError, TypeUndefinedError, DataUndefinedError: On missing input
            MaxGSIKNotFoundError: If max_gsik has to be resolved and the node has no root item
        """
        if self.node is None:
            raise NodeUndefinedError(field_name="node")
        if type is None:
            raise TypeUndefinedError(field_name="type")
        if data is None:
            raise DataUndefinedError(field_name="data")

        history: History = []
        max_gsik = await self._ensure_max_gsik(history)
        await self.driver.create_property(
            node=self.node,
            type=type,
            data=data,
            max_gsik=max_gsik,
            tenant=self.tenant,
            history=history,
        )

        if isinstance(self.properties, dict):
            self.properties[type] = data
        return Result.from_entity(self, history)

    async def connect(self, target: Entity | str | None = None, type: str | None = None) -> Result:
        """Create an edge from this node to target.

        Args:
            target: Another Entity or a raw node id
            type: Edge label

        Raises:
            NodeUndefinedError, TargetUndefinedError, TypeUndefinedError: On missing input
            MaxGSIKNotFoundError: If max_gsik has to be resolved and the node has no root item
            TargetNotFoundError: If the target data has to be read and the target does not exist
            InvalidArgumentError: If a target Entity belongs to another tenant
        """
        if self.node is None:
            raise NodeUndefinedError(field_name="node")
        if target is None:
            raise TargetUndefinedError(field_name="target")
        if type is None:
            raise TypeUndefinedError(field_name="type")

        if isinstance(target, Entity):
            if target.tenant != self.tenant:
                raise InvalidArgumentError(
                    f"Cannot connect tenant {self.tenant!r} to tenant {target.tenant!r}",
                    field_name="target",
                )
            target_node = target.node
            target_data = codec.encode(target.data) if target.data is not None else None
        else:
            target_node = target
            target_data = None
        if target_node is None:
            raise TargetUndefinedError(field_name="target")

        history: History = []
        max_gsik = await self._ensure_max_gsik(history)
        response = await self.driver.create_edge(
            node=self.node,
            type=type,
            target=target_node,
            max_gsik=max_gsik,
            tenant=self.tenant,
            data=target_data,
            history=history,
        )

        if isinstance(self.edges, dict):
            self.edges[type] = codec.decode_edge(response["Item"], self.tenant)
        return Result.from_entity(self, history)

    async def get(self) -> Result:
        """Fetch the node with its properties and edges.

        The root item is looked up by node alone, so a handle rebound with
        set() to a node of another type still finds its data. Edges are keyed
        by type; when several edges share a type only the last one returned
        by the table is kept.

        Raises:
            NodeUndefinedError: If the handle has no node
        """
        if self.node is None:
            raise NodeUndefinedError(field_name="node")

        history: History = []
        node = await self.driver.get_node(self.node, history, tenant=self.tenant)

        self.data = node["data"]
        self.properties = node["properties"]
        self.edges = node["edges"]
        return Result.from_entity(self, history)

    async def collection(
        self,
        limit: int | None = None,
        cursor: dict[str, Any] | None = None,
    ) -> list[Entity]:
        """List the nodes of this handle's type as entities.

        Only nodes of this handle's tenant are listed. Each entity carries
        this handle's tenant, type and max_gsik, and the node, data, property
        rows and edge rows of its group.

        The listing reads the Type index, whose partition key is the node
        type, so all nodes of one type share a single index partition. The
        GSIK shards spread per-node items over the GSIK index instead; a type
        with a very high write rate concentrates on one Type index partition.
        """
        response = await self.driver.get_nodes_with_properties_and_edges(
            type=self.type,
            tenant=self.tenant,
            limit=limit,
            cursor=cursor,
        )
        return [
            self._graph.entity(
                self.type,
                node=group["Node"],
                tenant=self.tenant,
                max_gsik=self.max_gsik,
                data=group.get("Data"),
                properties=group.get("Properties", []),
                edges=group.get("Edges", []),
            )
            for group in response.get("Items", [])
        ]


class Graph:
    """Factory for entities bound to one table.

    The store defaults to a DynamoDBStore built from config; pass a store or
    driver to substitute another collaborator.

    Example:
        >>> async with Graph(GraphConfig(max_gsik=0)) as graph:
        ...     task = graph.entity("Task", tenant="acme")
        ...     await task.create({"title": "Write docs"})
    """

    def __init__(
        self,
        config: GraphConfig | None = None,
        *,
        store: DocumentStore | None = None,
        driver: GraphDriver | None = None,
        id_factory: Callable[[], str] | None = None,
    ) -> None:
        self.config = config or GraphConfig()
        self.store = store if store is not None else DynamoDBStore(self.config.dynamodb)
        self.driver = driver if driver is not None else GraphDriver(self.store, self.config.dynamodb)
        self._id_factory = id_factory or (lambda: str(uuid.uuid4()))

    async def connect(self) -> None:
        await self.store.connect()

    async def close(self) -> None:
        await self.store.close()

    async def __aenter__(self) -> Graph:
        await self.connect()
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    def new_id(self) -> str:
        return self._id_factory()

    def entity(
        self,
        type: str | None = None,
        *,
        node: str | None = None,
        tenant: str | None = None,
        max_gsik: int | None = None,
        data: Any = None,
        properties: Any = None,
        edges: Any = None,
    ) -> Entity:
        """Create an entity handle.

        tenant and max_gsik fall back to the graph configuration; a node id
        is generated when none is given.

        Raises:
            MissingTypeError: If type is None
            InvalidMaxGSIKError: If max_gsik is not a non-negative integer
            InvalidArgumentError: If tenant is empty or contains '#'
        """
        return Entity(
            self,
            type,
            node=node,
            tenant=tenant if tenant is not None else self.config.tenant,
            max_gsik=max_gsik if max_gsik is not None else self.config.max_gsik,
            data=data,
            properties=properties,
            edges=edges,
        )
