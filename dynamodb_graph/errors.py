"""
Error types for DynamoDB Graph.

This module defines all exception types raised by the library:
- GraphError: Base exception
- ValidationError: Missing or malformed input, raised before any store call
- ResolutionError: A value that had to be read from the table was not found
- StoreError: The DynamoDB client rejected a request

Invariants:
    - All errors inherit from GraphError
    - Errors include context for debugging
    - Store errors are propagated unchanged by the mapping layer
"""

from __future__ import annotations

from typing import Any


class GraphError(Exception):
    """Base exception for all DynamoDB Graph errors.

    Attributes:
        message: Error message
        code: Error code for programmatic handling
        details: Additional error context
    """

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or "GRAPH_ERROR"
        self.details = details or {}


class ValidationError(GraphError):
    """Required input is missing or malformed.

    Raised when:
    - Data, Type, Node, Target or Key is undefined
    - maxGSIK is undefined or not a number
    """

    default_message = "Validation failed"
    default_code = "VALIDATION_ERROR"

    def __init__(
        self,
        message: str | None = None,
        field_name: str | None = None,
    ) -> None:
        super().__init__(
            message or self.default_message,
            code=self.default_code,
            details={"field": field_name},
        )
        self.field_name = field_name


class DataUndefinedError(ValidationError):
    default_message = "Data is undefined"
    default_code = "DATA_UNDEFINED"


class TypeUndefinedError(ValidationError):
    default_message = "Type is undefined"
    default_code = "TYPE_UNDEFINED"


class MissingTypeError(TypeUndefinedError):
    """Entity factory was called without a node type."""

    default_code = "MISSING_TYPE"


class NodeUndefinedError(ValidationError):
    default_message = "Node is undefined"
    default_code = "NODE_UNDEFINED"


class TargetUndefinedError(ValidationError):
    default_message = "Target is undefined"
    default_code = "TARGET_UNDEFINED"


class KeyUndefinedError(ValidationError):
    default_message = "Key is undefined"
    default_code = "KEY_UNDEFINED"


class DBUndefinedError(ValidationError):
    default_message = "DB driver is undefined"
    default_code = "DB_UNDEFINED"


class MaxGSIKUndefinedError(ValidationError):
    default_message = "Max GSIK is undefined"
    default_code = "MAX_GSIK_UNDEFINED"


class InvalidMaxGSIKError(ValidationError):
    default_message = "Max GSIK is not a number"
    default_code = "INVALID_MAX_GSIK"


class InvalidArgumentError(ValidationError):
    default_message = "Invalid argument"
    default_code = "INVALID_ARGUMENT"


class ResolutionError(GraphError):
    """A value needed by an operation could not be found in the table.

    Attributes:
        node: The node whose root item was queried
    """

    def __init__(self, message: str, node: str, code: str = "RESOLUTION_ERROR") -> None:
        super().__init__(message, code=code, details={"node": node})
        self.node = node


class MaxGSIKNotFoundError(ResolutionError):
    """No root item carrying MaxGSIK exists for the node."""

    def __init__(self, node: str) -> None:
        super().__init__(
            f"Max GSIK is undefined and no root item was found for node '{node}'",
            node=node,
            code="MAX_GSIK_UNDEFINED",
        )


class TargetNotFoundError(ResolutionError):
    """The edge target has no root item to copy data from."""

    def __init__(self, node: str) -> None:
        super().__init__(
            f"Target node '{node}' was not found",
            node=node,
            code="TARGET_NOT_FOUND",
        )


class StoreError(GraphError):
    """The DynamoDB client rejected a request.

    Attributes:
        operation: Store operation that failed (put, batch_write, query)
        aws_code: Error code reported by DynamoDB, if any
    """

    def __init__(
        self,
        message: str,
        operation: str | None = None,
        aws_code: str | None = None,
    ) -> None:
        super().__init__(
            message,
            code="STORE_ERROR",
            details={"operation": operation, "aws_code": aws_code},
        )
        self.operation = operation
        self.aws_code = aws_code


class StoreConnectionError(StoreError):
    """Store is not connected or the endpoint is unreachable."""
