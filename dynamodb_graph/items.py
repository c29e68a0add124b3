"""
Item codec for the single-table graph layout.

Nodes, properties and edges are all stored as flat items of one table and
are told apart only by their attribute shape:

    root item      Node, Type, Data, Target == Node, GSIK, MaxGSIK
    property item  Node, Type, Data, GSIK
    edge item      Node, Type, Data, Target != Node, GSIK

This module builds those items, the document-style request payloads sent to
the store (which double as the operation history) and the projected queries
used to read them back, and decodes query rows into graph values.

Invariants:
    - Data is always stored JSON-encoded
    - Every item of a node carries the same GSIK
    - Queries project exactly the attributes their decode step reads
    - ExpressionAttributeNames only lists names used by the expressions
    - With a tenant, stored Node and Target values are "<tenant>#<node>"; node
      ids handed back to callers never carry the prefix
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Iterable, Mapping
from typing import Any

from .errors import InvalidArgumentError
from .sharding import gsik

logger = logging.getLogger(__name__)

NODE = "Node"
TYPE = "Type"
DATA = "Data"
TARGET = "Target"
GSIK = "GSIK"
MAX_GSIK = "MaxGSIK"

ROOT_DATA_PROJECTION = "#Data"
MAX_GSIK_PROJECTION = "#MaxGSIK"
PROPERTIES_PROJECTION = "#Node, #Type, #Data"
EDGES_PROJECTION = "#Type, #Data, #Target"
ROOT_PROJECTION = "#Node, #Type, #Data, #MaxGSIK"

_NAME_RE = re.compile(r"#(\w+)")

TENANT_SEPARATOR = "#"


def encode(data: Any) -> str:
    """Serialize a value for the Data attribute."""
    return json.dumps(data)


def decode(raw: Any) -> Any:
    """Deserialize a Data attribute; missing attributes decode to None."""
    if raw is None:
        return None
    return json.loads(raw)


# =============================================================================
# Tenant scoping
# =============================================================================


def validate_tenant(tenant: str | None) -> str | None:
    """Return tenant if it can prefix stored keys unambiguously.

    Raises:
        InvalidArgumentError: If tenant is empty or contains the separator
    """
    if tenant is None:
        return None
    if not isinstance(tenant, str) or not tenant or TENANT_SEPARATOR in tenant:
        raise InvalidArgumentError(
            f"Tenant must be a non-empty string without '{TENANT_SEPARATOR}', got {tenant!r}",
            field_name="tenant",
        )
    return tenant


def tenant_prefix(tenant: str) -> str:
    return f"{validate_tenant(tenant)}{TENANT_SEPARATOR}"


def scoped_key(node: str, tenant: str | None = None) -> str:
    """Stored Node/Target value of a node id within a tenant."""
    if tenant is None:
        return node
    return f"{tenant_prefix(tenant)}{node}"


def unscoped_key(key: str, tenant: str | None = None) -> str:
    """Node id of a stored Node/Target value; inverse of scoped_key()."""
    if tenant is None or key is None:
        return key
    prefix = tenant_prefix(tenant)
    return key[len(prefix) :] if key.startswith(prefix) else key


# =============================================================================
# Items
# =============================================================================


def node_item(
    node: str,
    type: str,
    data: Any,
    max_gsik: int,
    tenant: str | None = None,
) -> dict[str, Any]:
    """Root item of a node."""
    key = scoped_key(node, tenant)
    return {
        NODE: key,
        TYPE: type,
        DATA: encode(data),
        TARGET: key,
        GSIK: gsik(key, max_gsik),
        MAX_GSIK: max_gsik,
    }


def property_item(
    node: str,
    type: str,
    data: Any,
    max_gsik: int,
    tenant: str | None = None,
) -> dict[str, Any]:
    key = scoped_key(node, tenant)
    return {
        NODE: key,
        TYPE: type,
        DATA: encode(data),
        GSIK: gsik(key, max_gsik),
    }


def edge_item(
    node: str,
    type: str,
    target: str,
    raw_data: str,
    max_gsik: int,
    tenant: str | None = None,
) -> dict[str, Any]:
    """Edge item from node to target; both ends live in the same tenant.

    raw_data is the target's root Data exactly as stored, so it is not
    encoded a second time.
    """
    key = scoped_key(node, tenant)
    return {
        NODE: key,
        TYPE: type,
        DATA: raw_data,
        TARGET: scoped_key(target, tenant),
        GSIK: gsik(key, max_gsik),
    }


def property_pairs(properties: Mapping[str, Any] | Iterable[Any] | None) -> list[tuple[str, Any]]:
    """Normalize a property map or a list of [type, value] pairs."""
    if not properties:
        return []
    if isinstance(properties, Mapping):
        return list(properties.items())
    return [(type, value) for type, value in properties]


# =============================================================================
# Request payloads
# =============================================================================


def put_request(table: str, item: dict[str, Any]) -> dict[str, Any]:
    return {"TableName": table, "Item": item}


def batch_write_requests(
    table: str,
    items: list[dict[str, Any]],
    batch_size: int = 25,
) -> list[dict[str, Any]]:
    """Split put requests into BatchWriteItem payloads of at most batch_size."""
    return [
        {
            "RequestItems": {
                table: [{"PutRequest": {"Item": item}} for item in items[i : i + batch_size]]
            }
        }
        for i in range(0, len(items), batch_size)
    ]


def _query(
    table: str,
    key_condition: str,
    projection: str,
    values: dict[str, Any],
    *,
    filter_expression: str | None = None,
    index: str | None = None,
    consistent_read: bool = False,
    limit: int | None = None,
    cursor: dict[str, Any] | None = None,
) -> dict[str, Any]:
    expressions = [key_condition, projection, filter_expression or ""]
    names = sorted({name for expr in expressions for name in _NAME_RE.findall(expr)})

    request: dict[str, Any] = {
        "TableName": table,
        "KeyConditionExpression": key_condition,
        "ProjectionExpression": projection,
        "ExpressionAttributeNames": {f"#{name}": name for name in names},
        "ExpressionAttributeValues": values,
    }
    if filter_expression:
        request["FilterExpression"] = filter_expression
    if index:
        request["IndexName"] = index
    elif consistent_read:
        # GSIs do not support strongly consistent reads
        request["ConsistentRead"] = True
    if limit is not None:
        request["Limit"] = limit
    if cursor:
        request["ExclusiveStartKey"] = cursor
    return request


def max_gsik_query(
    table: str,
    node: str,
    consistent_read: bool = False,
    *,
    tenant: str | None = None,
) -> dict[str, Any]:
    """Fetch only the MaxGSIK attribute of node's root item."""
    return _query(
        table,
        "#Node = :Node",
        MAX_GSIK_PROJECTION,
        {":Node": scoped_key(node, tenant)},
        filter_expression="attribute_exists(#MaxGSIK)",
        consistent_read=consistent_read,
    )


def root_data_query(
    table: str,
    node: str,
    consistent_read: bool = False,
    *,
    tenant: str | None = None,
) -> dict[str, Any]:
    """Fetch the Data of node's root item, the item whose Target is its Node.

    The node's type is not part of the condition, so the lookup works for a
    node of any type.
    """
    return _query(
        table,
        "#Node = :Node",
        ROOT_DATA_PROJECTION,
        {":Node": scoped_key(node, tenant)},
        filter_expression="#Target = :Node",
        consistent_read=consistent_read,
    )


def properties_query(
    table: str,
    node: str,
    consistent_read: bool = False,
    *,
    tenant: str | None = None,
) -> dict[str, Any]:
    return _query(
        table,
        "#Node = :Node",
        PROPERTIES_PROJECTION,
        {":Node": scoped_key(node, tenant)},
        filter_expression="attribute_not_exists(#Target)",
        consistent_read=consistent_read,
    )


def edges_query(
    table: str,
    node: str,
    consistent_read: bool = False,
    *,
    tenant: str | None = None,
) -> dict[str, Any]:
    return _query(
        table,
        "#Node = :Node",
        EDGES_PROJECTION,
        {":Node": scoped_key(node, tenant)},
        filter_expression="attribute_exists(#Target) AND #Target <> :Node",
        consistent_read=consistent_read,
    )


def type_index_query(
    table: str,
    index: str,
    type: str,
    limit: int | None = None,
    cursor: dict[str, Any] | None = None,
    *,
    tenant: str | None = None,
) -> dict[str, Any]:
    """Page through the root items of every node of a type.

    With a tenant the index range key is limited to that tenant's prefix.
    """
    key_condition = "#Type = :Type"
    values: dict[str, Any] = {":Type": type}
    if tenant is not None:
        key_condition += " AND begins_with(#Node, :Tenant)"
        values[":Tenant"] = tenant_prefix(tenant)

    return _query(
        table,
        key_condition,
        ROOT_PROJECTION,
        values,
        filter_expression="attribute_exists(#MaxGSIK)",
        index=index,
        limit=limit,
        cursor=cursor,
    )


# =============================================================================
# Decoding
# =============================================================================


def first_item(response: Mapping[str, Any]) -> dict[str, Any] | None:
    items = response.get("Items") or []
    return items[0] if items else None


def decode_max_gsik(response: Mapping[str, Any]) -> int | None:
    """MaxGSIK of the first row; numbers come back from DynamoDB as Decimal."""
    item = first_item(response)
    if item is None or item.get(MAX_GSIK) is None:
        return None
    return int(item[MAX_GSIK])


def decode_properties(rows: Iterable[Mapping[str, Any]]) -> dict[str, Any]:
    return {row[TYPE]: decode(row.get(DATA)) for row in rows}


def decode_edge(row: Mapping[str, Any], tenant: str | None = None) -> dict[str, Any]:
    return {
        "node": unscoped_key(row[TARGET], tenant),
        "type": row[TYPE],
        "data": decode(row.get(DATA)),
    }


def decode_edges(
    rows: Iterable[Mapping[str, Any]],
    node: str | None = None,
    tenant: str | None = None,
) -> dict[str, Any]:
    """Map edge type to edge; the last row wins when several share a type."""
    edges: dict[str, Any] = {}
    for row in rows:
        edge = decode_edge(row, tenant)
        if edge["type"] in edges:
            logger.warning(
                "Multiple edges share a type, keeping the last one",
                extra={"node": node, "type": edge["type"], "target": edge["node"]},
            )
        edges[edge["type"]] = edge
    return edges
