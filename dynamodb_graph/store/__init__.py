"""
Store backends for DynamoDB Graph.

This module provides:
- DocumentStore: Protocol every backend implements
- DynamoDBStore: aiobotocore-based DynamoDB backend
"""

from .base import DocumentStore
from .dynamodb import DynamoDBStore, table_definition

__all__ = [
    "DocumentStore",
    "DynamoDBStore",
    "table_definition",
]
