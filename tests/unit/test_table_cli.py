"""
Unit tests for the table CLI tool.

Tests cover:
- Argument parsing
- Command output against an in-memory table
- Error exit codes
"""

import argparse
import json
from unittest.mock import patch

import pytest

from dynamodb_graph.errors import GraphError
from dynamodb_graph.tools import table_cli
from dynamodb_graph.tools.table_cli import TableCLI, _parse_property, build_parser, run


class TestParsing:
    """Tests for the argument parser."""

    def test_parse_property(self):
        assert _parse_property('Genre="Fantasy"') == ("Genre", "Fantasy")
        assert _parse_property("Pages=622") == ("Pages", 622)

    @pytest.mark.parametrize("value", ["Genre", "=1", "Pages=not json"])
    def test_parse_property_rejects(self, value):
        with pytest.raises(argparse.ArgumentTypeError):
            _parse_property(value)

    def test_put_node_arguments(self):
        args = build_parser().parse_args(
            ["put-node", "Book", '"Elantris"', "--node", "b1", "-p", 'Genre="Fantasy"', "-p", "Pages=622"]
        )

        assert args.command == "put-node"
        assert args.type == "Book"
        assert args.data == "Elantris"
        assert args.node == "b1"
        assert args.properties == [("Genre", "Fantasy"), ("Pages", 622)]

    def test_get_requires_type(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["get", "b1"])


class TestCommands:
    """Tests for TableCLI against the in-memory table."""

    @pytest.mark.asyncio
    async def test_put_node_then_get(self, memory_graph):
        cli = TableCLI(memory_graph)

        created = json.loads(await cli.put_node("Book", "Elantris", [("Genre", "Fantasy")], node="b1"))
        fetched = json.loads(await cli.get("b1", "Book"))

        assert created == {"node": "b1", "requests": 2}
        assert fetched == {
            "node": "b1",
            "type": "Book",
            "data": "Elantris",
            "properties": {"Genre": "Fantasy"},
            "edges": {},
        }

    @pytest.mark.asyncio
    async def test_put_node_generates_id(self, memory_graph):
        created = json.loads(await TableCLI(memory_graph).put_node("Book", "Elantris", []))

        assert created == {"node": "node-1", "requests": 1}

    @pytest.mark.asyncio
    async def test_create_table_needs_dynamodb(self, memory_graph):
        with pytest.raises(GraphError, match="requires a DynamoDB store"):
            await TableCLI(memory_graph).create_table()

    @pytest.mark.asyncio
    async def test_run_dispatches(self, memory_graph):
        args = build_parser().parse_args(["put-node", "Book", "1", "--node", "b1"])

        output = await run(args, memory_graph)

        assert json.loads(output)["node"] == "b1"


class TestMain:
    """Tests for the entry point."""

    def test_graph_error_exits_non_zero(self, memory_graph, capsys, monkeypatch):
        monkeypatch.setenv("GRAPH_MAX_GSIK", "0")
        with patch.object(table_cli, "Graph", return_value=memory_graph), patch.object(
            table_cli, "setup_logging"
        ):
            with pytest.raises(SystemExit) as exc_info:
                table_cli.main(["create-table"])

        assert exc_info.value.code == 1
        assert "requires a DynamoDB store" in capsys.readouterr().err
