"""
Unit tests for GSIK shard assignment.

Tests cover:
- Determinism and range
- Single-shard degenerate case
- Argument validation
"""

import pytest

from dynamodb_graph.errors import InvalidArgumentError, ValidationError
from dynamodb_graph.sharding import gsik, shard


class TestShard:
    """Tests for shard()."""

    @pytest.mark.parametrize("max_gsik", [0, 1, 4, 9, 100])
    def test_shard_in_range(self, max_gsik):
        """Shard always lies in [0, max_gsik]."""
        for i in range(200):
            assert 0 <= shard(f"node-{i}", max_gsik) <= max_gsik

    def test_shard_is_stable(self):
        """Same node always maps to the same shard."""
        results = {shard("cjld2cjxh0000qzrmn831i7rn", 9) for _ in range(20)}
        assert len(results) == 1

    def test_zero_max_gsik_is_single_shard(self):
        """max_gsik 0 always yields shard 0."""
        assert {shard(f"node-{i}", 0) for i in range(50)} == {0}

    def test_nodes_spread_over_shards(self):
        """Different nodes use more than one shard."""
        shards = {shard(f"node-{i}", 4) for i in range(100)}
        assert len(shards) > 1

    @pytest.mark.parametrize("max_gsik", [-1, 1.5, "4", None, True])
    def test_invalid_max_gsik(self, max_gsik):
        """Negative and non-integer ceilings are rejected."""
        with pytest.raises(InvalidArgumentError) as exc_info:
            shard("node", max_gsik)

        assert isinstance(exc_info.value, ValidationError)
        assert exc_info.value.code == "INVALID_ARGUMENT"


class TestGsik:
    """Tests for gsik()."""

    def test_single_shard_label(self):
        """Label is node#0 with a single shard."""
        assert gsik("abc", 0) == "abc#0"

    def test_label_uses_shard(self):
        """Label suffix is the node's shard."""
        assert gsik("abc", 7) == f"abc#{shard('abc', 7)}"
