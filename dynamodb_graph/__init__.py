"""
DynamoDB Graph - a property graph stored in a single DynamoDB table.

Nodes, properties and edges are stored as items of one table. Every item of
a node carries a GSIK shard label so writes and queries on the secondary
index spread over max_gsik + 1 shards instead of one hot partition.

Example:
    >>> from dynamodb_graph import Graph, GraphConfig
    >>>
    >>> async with Graph(GraphConfig(max_gsik=4)) as graph:
    ...     author = graph.entity("Author")
    ...     await author.create("Brandon Sanderson")
    ...     book = graph.entity("Book")
    ...     await book.create("Elantris", properties={"Genre": "Fantasy"})
    ...     await book.connect(author, "Author")
    ...     result = await book.get()

Invariants:
    - Every item of a node carries the same GSIK
    - max_gsik of a node never decreases
    - Operations never retry store failures

Version: 1.0.0
"""

__version__ = "1.0.0"

from .config import DynamoDBConfig, GraphConfig, ObservabilityConfig
from .driver import GraphDriver
from .entity import Entity, Graph, Result
from .errors import (
    DataUndefinedError,
    DBUndefinedError,
    GraphError,
    InvalidArgumentError,
    InvalidMaxGSIKError,
    KeyUndefinedError,
    MaxGSIKNotFoundError,
    MaxGSIKUndefinedError,
    MissingTypeError,
    NodeUndefinedError,
    ResolutionError,
    StoreConnectionError,
    StoreError,
    TargetNotFoundError,
    TargetUndefinedError,
    TypeUndefinedError,
    ValidationError,
)
from .sharding import gsik, shard
from .store import DocumentStore, DynamoDBStore
from .update import DocumentUpdate

__all__ = [
    # Version
    "__version__",
    # Configuration
    "GraphConfig",
    "DynamoDBConfig",
    "ObservabilityConfig",
    # Sharding
    "shard",
    "gsik",
    # Graph
    "Graph",
    "Entity",
    "Result",
    "GraphDriver",
    "DocumentUpdate",
    # Stores
    "DocumentStore",
    "DynamoDBStore",
    # Errors
    "GraphError",
    "ValidationError",
    "DataUndefinedError",
    "TypeUndefinedError",
    "MissingTypeError",
    "NodeUndefinedError",
    "TargetUndefinedError",
    "KeyUndefinedError",
    "DBUndefinedError",
    "MaxGSIKUndefinedError",
    "InvalidMaxGSIKError",
    "InvalidArgumentError",
    "ResolutionError",
    "MaxGSIKNotFoundError",
    "TargetNotFoundError",
    "StoreError",
    "StoreConnectionError",
]
