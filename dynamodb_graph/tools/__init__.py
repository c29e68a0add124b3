"""
CLI tools for DynamoDB Graph administration.

This module provides command-line tools for:
- table: Create the graph table, inspect and create nodes
"""

from .table_cli import TableCLI, main

__all__ = ["TableCLI", "main"]
