"""
Table CLI tool for DynamoDB Graph.

Commands:
- create-table: Create the graph table with its GSIK and Type indexes
- get: Print a node with its properties and edges as JSON
- put-node: Create a node from a JSON value

Usage:
    dynamodb-graph create-table
    dynamodb-graph get NODE_ID --type Book
    dynamodb-graph put-node Book '"Elantris"' --property Genre='"Fantasy"'

Configuration comes from the environment (see config.py).

Invariants:
    - Output on stdout is JSON only; logs go to stderr
    - Exit code is non-zero on any GraphError
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from typing import Any

from ..config import GraphConfig
from ..entity import Graph
from ..errors import GraphError
from ..log import setup_logging
from ..store.dynamodb import DynamoDBStore

logger = logging.getLogger(__name__)


def _parse_property(value: str) -> tuple[str, Any]:
    name, sep, raw = value.partition("=")
    if not sep or not name:
        raise argparse.ArgumentTypeError(f"Expected NAME=JSON, got '{value}'")
    try:
        return name, json.loads(raw)
    except json.JSONDecodeError as e:
        raise argparse.ArgumentTypeError(f"Invalid JSON for property '{name}': {e}") from e


class TableCLI:
    """CLI commands bound to one Graph.

    Example:
        >>> cli = TableCLI(graph)
        >>> print(await cli.get("node-1", "Book"))
    """

    def __init__(self, graph: Graph) -> None:
        self.graph = graph

    async def create_table(self) -> str:
        store = self.graph.store
        if not isinstance(store, DynamoDBStore):
            raise GraphError("create-table requires a DynamoDB store")
        description = await store.create_table()
        return json.dumps(
            {
                "TableName": description.get("TableName"),
                "TableStatus": description.get("TableStatus"),
            },
            indent=2,
        )

    async def get(self, node: str, type: str) -> str:
        result = await self.graph.entity(type, node=node).get()
        return json.dumps(
            {
                "node": result.node,
                "type": result.type,
                "data": result.data,
                "properties": result.properties,
                "edges": result.edges,
            },
            indent=2,
            default=str,
        )

    async def put_node(
        self,
        type: str,
        data: Any,
        properties: list[tuple[str, Any]],
        node: str | None = None,
    ) -> str:
        result = await self.graph.entity(type, node=node).create(data, properties)
        return json.dumps({"node": result.node, "requests": len(result.history)}, indent=2)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="DynamoDB Graph table tool")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("create-table", help="Create the graph table and indexes")

    get_parser = subparsers.add_parser("get", help="Print a node as JSON")
    get_parser.add_argument("node", help="Node identifier")
    get_parser.add_argument("--type", required=True, help="Node type")

    put_parser = subparsers.add_parser("put-node", help="Create a node")
    put_parser.add_argument("type", help="Node type")
    put_parser.add_argument("data", type=json.loads, help="Node data as JSON")
    put_parser.add_argument("--node", help="Node identifier (generated if omitted)")
    put_parser.add_argument(
        "--property",
        "-p",
        dest="properties",
        action="append",
        default=[],
        type=_parse_property,
        help="Property as NAME=JSON (repeatable)",
    )
    return parser


async def run(args: argparse.Namespace, graph: Graph) -> str:
    cli = TableCLI(graph)
    async with graph:
        if args.command == "create-table":
            return await cli.create_table()
        if args.command == "get":
            return await cli.get(args.node, args.type)
        return await cli.put_node(args.type, args.data, args.properties, args.node)


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for the table tool."""
    args = build_parser().parse_args(argv)

    config = GraphConfig.from_env()
    setup_logging(config)
    config.log_config()

    try:
        output = asyncio.run(run(args, Graph(config)))
    except GraphError as e:
        logger.error(e.message, extra={"code": e.code, **e.details})
        print(f"Error: {e.message}", file=sys.stderr)
        sys.exit(1)

    print(output)


if __name__ == "__main__":
    main()
