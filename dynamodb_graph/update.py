"""
Document updates.

A DocumentUpdate knows which keys of a plain document are properties and
which are edges of a node type. Applying it to a partial document writes
only the recognized keys present in that document, so a client can send
back just the fields it changed.

Example:
    >>> update = DocumentUpdate(
    ...     db=graph.driver,
    ...     type="Book",
    ...     key="id",
    ...     max_gsik=4,
    ...     properties=["Genre"],
    ...     edges=["Author"],
    ... )
    >>> await update({"id": book_id, "Genre": "Fantasy", "Author": author_id})
    {'id': '...', 'Genre': 'Fantasy', 'Author': '...', '@Author': 'Brandon Sanderson'}

Invariants:
    - Writes for distinct fields run concurrently; none depends on another
    - A failed write fails the update, but writes already issued are not
      rolled back; property and edge writes are idempotent by key, so
      re-applying the same document is safe
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable
from typing import Any, Protocol

from .errors import (
    DBUndefinedError,
    KeyUndefinedError,
    MaxGSIKUndefinedError,
    NodeUndefinedError,
    TypeUndefinedError,
)
from .items import decode, validate_tenant

logger = logging.getLogger(__name__)


class GraphWriter(Protocol):
    """Writer collaborator; GraphDriver implements it."""

    async def create_property(self, **kwargs: Any) -> dict[str, Any]: ...

    async def create_edge(self, **kwargs: Any) -> dict[str, Any]: ...


class DocumentUpdate:
    """Apply the recognized fields of a document to a node.

    Attributes:
        db: Writer exposing create_property and create_edge
        type: Node type
        key: Document key holding the node id
        max_gsik: Shard-count ceiling of the node type
        tenant: Tenant namespace of the node and edge targets
        properties: Document keys stored as properties
        edges: Document keys stored as edges (values are target node ids)
    """

    def __init__(
        self,
        db: GraphWriter | None = None,
        type: str | None = None,
        key: str | None = None,
        max_gsik: int | None = None,
        *,
        tenant: str | None = None,
        properties: Iterable[str] = (),
        edges: Iterable[str] = (),
    ) -> None:
        if db is None:
            raise DBUndefinedError(field_name="db")
        if type is None:
            raise TypeUndefinedError(field_name="type")
        if key is None:
            raise KeyUndefinedError(field_name="key")
        if max_gsik is None:
            raise MaxGSIKUndefinedError(field_name="max_gsik")

        self.db = db
        self.type = type
        self.key = key
        self.max_gsik = max_gsik
        self.tenant = validate_tenant(tenant)
        self.properties = list(properties)
        self.edges = list(edges)

    async def __call__(self, doc: dict[str, Any]) -> dict[str, Any]:
        """Write the recognized fields present in doc.

        Returns:
            doc merged with an "@<edge>" entry per edge written, holding the
            target's data

        Raises:
            NodeUndefinedError: If doc has no value under the key field
        """
        node = doc.get(self.key)
        if node is None:
            raise NodeUndefinedError(field_name=self.key)

        props = [name for name in self.properties if doc.get(name) is not None]
        edges = [name for name in self.edges if doc.get(name) is not None]

        writes = [
            self.db.create_property(
                tenant=self.tenant,
                type=name,
                node=node,
                data=doc[name],
                max_gsik=self.max_gsik,
            )
            for name in props
        ]
        writes.extend(
            self.db.create_edge(
                tenant=self.tenant,
                type=name,
                node=node,
                target=doc[name],
                max_gsik=self.max_gsik,
            )
            for name in edges
        )

        responses = await asyncio.gather(*writes)
        edge_responses = responses[len(props) :]

        logger.debug(
            "Document applied",
            extra={
                "tenant": self.tenant,
                "node": node,
                "type": self.type,
                "properties": props,
                "edges": edges,
            },
        )

        result = dict(doc)
        for name, response in zip(edges, edge_responses):
            result[f"@{name}"] = decode(response["Item"]["Data"])
        return result
