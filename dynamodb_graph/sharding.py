"""
Shard key assignment (GSIK).

Every item of a node carries the same GSIK label so that all of a node's
items land in one partition of the GSIK index, while different nodes are
spread over max_gsik + 1 shards.

Invariants:
    - shard() is a pure function of (node, max_gsik)
    - The result always lies in [0, max_gsik]
    - max_gsik == 0 always yields shard 0

How to change safely:
    - Never change the hash: existing items would no longer match their labels
"""

from __future__ import annotations

import hashlib

from .errors import InvalidArgumentError


def validate_max_gsik(max_gsik: object) -> int:
    """Return max_gsik if it is a non-negative integer.

    Raises:
        InvalidArgumentError: For negatives, bools and non-integers
    """
    if isinstance(max_gsik, bool) or not isinstance(max_gsik, int) or max_gsik < 0:
        raise InvalidArgumentError(
            f"Max GSIK must be a non-negative integer, got {max_gsik!r}",
            field_name="max_gsik",
        )
    return max_gsik


def shard(node: str, max_gsik: int) -> int:
    """Map a node id to a shard in [0, max_gsik].

    Example:
        >>> shard("any-node", 0)
        0
    """
    validate_max_gsik(max_gsik)
    if max_gsik == 0:
        return 0
    digest = hashlib.md5(node.encode("utf-8")).hexdigest()
    return int(digest, 16) % (max_gsik + 1)


def gsik(node: str, max_gsik: int) -> str:
    """Shard label stored in the GSIK attribute of every item of node."""
    return f"{node}#{shard(node, max_gsik)}"
