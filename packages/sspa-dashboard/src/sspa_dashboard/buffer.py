"""
HistoryBuffer for retaining the tail of a child process's output.

Uses collections.deque with maxlen for automatic oldest-removal when the
buffer is full. Lines are stored exactly as received, including their line
terminators, so snapshot() is a plain concatenation.
"""

from collections import deque
from collections.abc import Iterator


class HistoryBuffer:
    """
    Fixed-capacity line history with FIFO eviction.

    Owned by a single consumer (the dashboard tick that drains the
    corresponding process), so no locking is done here.

    Example:
        buffer = HistoryBuffer(capacity=3)
        for line in ("a", "b", "c", "d"):
            buffer.push(line)
        buffer.snapshot()  # "bcd"
    """

    def __init__(self, capacity: int) -> None:
        """
        Initialize an empty buffer.

        Args:
            capacity: Maximum number of lines retained (must be positive)

        Raises:
            ValueError: If capacity is not positive
        """
        if capacity <= 0:
            raise ValueError(f"capacity must be positive, got {capacity}")
        self._lines: deque[str] = deque(maxlen=capacity)

    @property
    def capacity(self) -> int:
        """Maximum number of lines this buffer holds."""
        return self._lines.maxlen  # type: ignore[return-value]

    def push(self, line: str) -> None:
        """
        Append a line, evicting the oldest one when at capacity.

        Args:
            line: Line of text, stored unmodified
        """
        self._lines.append(line)

    def snapshot(self) -> str:
        """Return all held lines concatenated, oldest first."""
        return "".join(self._lines)

    def get_lines(self, n: int | None = None) -> list[str]:
        """
        Get last n lines (or all if n is None).

        Args:
            n: Number of lines to return, or None for all lines

        Returns:
            List of lines, newest last
        """
        lines = list(self._lines)
        if n is not None:
            return lines[-n:] if n > 0 else []
        return lines

    def __len__(self) -> int:
        return len(self._lines)

    def __iter__(self) -> Iterator[str]:
        return iter(self._lines)
