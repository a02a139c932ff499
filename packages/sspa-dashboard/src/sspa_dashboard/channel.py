"""
Bounded single-producer/single-consumer channel.

Each background source (the input pump, one multiplexer per process)
talks to the dashboard loop through exactly one Channel:

- The producer thread calls send(), which blocks while the channel is full
  and fails once the consumer has gone away.
- The dashboard loop calls try_recv(), which never blocks and tells apart
  "nothing yet" (ChannelEmpty) from "producer finished" (ChannelClosedError).

Closure flags are threading.Event instances so either side can observe the
other without a lock of its own; queue.Queue handles the item hand-off.
"""

import queue
import threading
from typing import Generic, TypeVar

from sspa_dashboard.exceptions import ChannelClosedError, ChannelEmpty

T = TypeVar("T")

DEFAULT_CAPACITY = 128

# How often a blocked send() re-checks whether the receiver is gone
SEND_POLL_INTERVAL = 0.1


class Channel(Generic[T]):
    """
    Bounded FIFO hand-off between one producer and one consumer.

    Example:
        channel = Channel(capacity=128)
        # producer thread
        channel.send("line\\n")
        channel.close_sender()
        # dashboard loop
        try:
            item = channel.try_recv()
        except ChannelEmpty:
            ...  # nothing this tick
        except ChannelClosedError:
            ...  # producer is done
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        if capacity <= 0:
            raise ValueError(f"capacity must be positive, got {capacity}")
        self._queue: queue.Queue[T] = queue.Queue(maxsize=capacity)
        self._sender_closed = threading.Event()
        self._receiver_closed = threading.Event()

    @property
    def capacity(self) -> int:
        return self._queue.maxsize

    @property
    def sender_closed(self) -> bool:
        return self._sender_closed.is_set()

    @property
    def receiver_closed(self) -> bool:
        return self._receiver_closed.is_set()

    def send(self, item: T) -> None:
        """
        Queue an item, blocking while the channel is full.

        Args:
            item: Value to hand to the consumer

        Raises:
            ChannelClosedError: If the receiver has been closed
        """
        while True:
            if self._receiver_closed.is_set():
                raise ChannelClosedError("receiver is gone")
            try:
                self._queue.put(item, timeout=SEND_POLL_INTERVAL)
                return
            except queue.Full:
                continue

    def try_recv(self) -> T:
        """
        Take the oldest queued item without blocking.

        Returns:
            The next item

        Raises:
            ChannelEmpty: Nothing queued and the sender is still alive
            ChannelClosedError: Sender finished and the queue is drained
        """
        try:
            return self._queue.get_nowait()
        except queue.Empty:
            pass
        if not self._sender_closed.is_set():
            raise ChannelEmpty()
        # The sender's last put happens before it closes, so check once more
        try:
            return self._queue.get_nowait()
        except queue.Empty:
            raise ChannelClosedError("sender is gone") from None

    def close_sender(self) -> None:
        """Mark the producer as finished. Queued items stay receivable."""
        self._sender_closed.set()

    def close_receiver(self) -> None:
        """Mark the consumer as gone so the next send() fails."""
        self._receiver_closed.set()

    def __len__(self) -> int:
        return self._queue.qsize()
