"""Tests for HistoryBuffer capacity and eviction."""

import pytest

from sspa_dashboard.buffer import HistoryBuffer


class TestHistoryBuffer:
    """Tests for push/snapshot behaviour."""

    def test_eviction_keeps_last_lines(self):
        """Capacity-3 buffer fed a, b, c, d should hold b, c, d."""
        buffer = HistoryBuffer(capacity=3)
        for line in ("a", "b", "c", "d"):
            buffer.push(line)

        assert buffer.snapshot() == "bcd"
        assert len(buffer) == 3

    def test_size_never_exceeds_capacity(self):
        """Size is bounded for any number of pushes."""
        buffer = HistoryBuffer(capacity=5)
        for i in range(100):
            buffer.push(f"{i}\n")
            assert len(buffer) <= 5

        assert buffer.get_lines() == [f"{i}\n" for i in range(95, 100)]

    def test_snapshot_keeps_line_terminators(self):
        """Lines are concatenated as-is, no separators added or removed."""
        buffer = HistoryBuffer(capacity=10)
        buffer.push("PING localhost\n")
        buffer.push("64 bytes\r\n")
        buffer.push("partial")

        assert buffer.snapshot() == "PING localhost\n64 bytes\r\npartial"

    def test_empty_snapshot(self):
        """A new buffer snapshots to an empty string."""
        assert HistoryBuffer(capacity=1).snapshot() == ""

    def test_get_lines_tail(self):
        """get_lines(n) returns the newest n lines."""
        buffer = HistoryBuffer(capacity=10)
        for line in ("x", "y", "z"):
            buffer.push(line)

        assert buffer.get_lines(2) == ["y", "z"]
        assert buffer.get_lines(0) == []
        assert list(buffer) == ["x", "y", "z"]

    def test_capacity_is_reported(self):
        assert HistoryBuffer(capacity=47).capacity == 47

    @pytest.mark.parametrize("capacity", [0, -1])
    def test_rejects_non_positive_capacity(self, capacity):
        """A buffer must hold at least one line."""
        with pytest.raises(ValueError, match="capacity"):
            HistoryBuffer(capacity=capacity)
