"""
Exception classes for the dashboard's background plumbing.

This module defines the failures that cross a component boundary:
- SpawnError: A monitored child process could not be started
- InputReadError: The raw terminal input could not be read
- ChannelClosedError: The other end of a channel is gone
- ChannelEmpty: A non-blocking receive found nothing queued

Stream-level read errors on a child's output are not represented here.
They close that stream only and are logged by the multiplexer.
"""


class SpawnError(Exception):
    """
    Raised when a monitored command cannot be launched.

    Spawn failure ends the dashboard session; there is no retry.

    Attributes:
        command: The command line that was attempted
        reason: Why the launch failed
    """

    def __init__(self, command: str, reason: str) -> None:
        self.command = command
        self.reason = reason
        super().__init__(f"Failed to execute process '{command}': {reason}")


class InputReadError(Exception):
    """
    Raised when reading raw events from the terminal fails.

    Terminal input is infrastructure the dashboard cannot run without,
    so this is fatal to the whole program.
    """

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"Terminal event reader failed: {reason}")


class ChannelClosedError(Exception):
    """
    Raised when the peer of a channel has gone away.

    On send: the receiver was closed, the producer should stop.
    On receive: the sender finished and every queued item was consumed.
    """


class ChannelEmpty(Exception):
    """Raised by a non-blocking receive when nothing is queued yet."""
