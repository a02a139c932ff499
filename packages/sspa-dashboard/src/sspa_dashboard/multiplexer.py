"""
Stream multiplexing for monitored child processes.

This module runs the two long-lived commands the dashboard tails (the
local diagnostics session and the remote SSH session) and surfaces their
output line by line:

- StreamMultiplexer: owns one child process and reads its stdout and
  stderr through a single selectors poller, forwarding decoded lines to
  a bounded Channel. Runs on its own daemon thread.
- ManagedProcess: the dashboard-side view of a multiplexer. Drains the
  channel without blocking into a HistoryBuffer and returns the snapshot.
- SubprocessManager: launches and tracks the monitored processes by name.

Per-stream state lives in a small registry keyed by stream name, so the
read loop has no stream-specific branches. A stream that hits EOF or a
read error is unregistered on its own; the loop only ends when every
registered stream is closed.
"""

import codecs
import logging
import os
import selectors
import subprocess
import threading
from dataclasses import dataclass, field

from sspa_dashboard.buffer import HistoryBuffer
from sspa_dashboard.channel import DEFAULT_CAPACITY, Channel
from sspa_dashboard.exceptions import ChannelClosedError, ChannelEmpty, SpawnError

logger = logging.getLogger(__name__)

READ_CHUNK_SIZE = 4096


def parse_command(command: str) -> tuple[str, list[str]]:
    """
    Split a command line into program and arguments.

    Splitting is plain whitespace tokenization; quotes are not interpreted.

    Args:
        command: Command line such as "ping localhost"

    Returns:
        Tuple of (program, args)

    Raises:
        ValueError: If the command is empty
    """
    tokens = command.split()
    if not tokens:
        raise ValueError("command is empty")
    return tokens[0], tokens[1:]


class LineDecoder:
    """
    Incremental bytes-to-lines decoder for one stream.

    Holds the text after the last newline until more bytes arrive or
    the stream ends. Lines keep their trailing newline.
    """

    def __init__(self, encoding: str = "utf-8") -> None:
        self._decoder = codecs.getincrementaldecoder(encoding)(errors="replace")
        self._pending = ""

    def feed(self, data: bytes) -> list[str]:
        """Decode a chunk and return every line it completes."""
        self._pending += self._decoder.decode(data)
        parts = self._pending.split("\n")
        self._pending = parts.pop()
        return [part + "\n" for part in parts]

    def flush(self) -> list[str]:
        """Return any unterminated text left at end of stream."""
        self._pending += self._decoder.decode(b"", final=True)
        rest, self._pending = self._pending, ""
        return [rest] if rest else []


@dataclass
class StreamState:
    """
    Registry entry for one output stream of the child.

    Attributes:
        name: Stream identity used as the poller key ("stdout", "stderr")
        fd: File descriptor being read
        decoder: Line decoder holding partial text for this stream
        closed: True once EOF or a read error was seen
    """

    name: str
    fd: int
    decoder: LineDecoder = field(default_factory=LineDecoder)
    closed: bool = False


class StreamMultiplexer:
    """
    Reads every output stream of one child process into a Channel.

    Example:
        channel = Channel(capacity=128)
        mux = StreamMultiplexer("ping localhost", channel)
        mux.spawn()
        threading.Thread(target=mux.run, daemon=True).start()
    """

    def __init__(self, command: str, channel: Channel[str]) -> None:
        """
        Args:
            command: Command line to run (whitespace split)
            channel: Channel receiving decoded lines
        """
        self.command = command
        self.channel = channel
        self.process: subprocess.Popen[bytes] | None = None
        self._streams: dict[str, StreamState] = {}

    @property
    def streams(self) -> dict[str, StreamState]:
        """Registry of the child's output streams, keyed by name."""
        return self._streams

    def spawn(self) -> subprocess.Popen[bytes]:
        """
        Start the child with stdout and stderr captured.

        The child gets /dev/null for stdin so it never competes with the
        dashboard for keystrokes, and runs in its own session.

        Returns:
            The Popen handle

        Raises:
            SpawnError: If the command is empty or cannot be executed
        """
        try:
            program, args = parse_command(self.command)
        except ValueError as e:
            raise SpawnError(self.command, str(e)) from e

        # Python children flush every write, so panes update line by line
        child_env = os.environ.copy()
        child_env["PYTHONUNBUFFERED"] = "1"

        try:
            self.process = subprocess.Popen(
                [program, *args],
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                env=child_env,
                start_new_session=True,
            )
        except OSError as e:
            raise SpawnError(self.command, e.strerror or str(e)) from e

        self._streams = {
            "stdout": StreamState("stdout", self.process.stdout.fileno()),
            "stderr": StreamState("stderr", self.process.stderr.fileno()),
        }
        logger.info(f"Spawned '{self.command}' (pid {self.process.pid})")
        return self.process

    def run(self) -> None:
        """
        Forward lines until every stream is closed or the receiver is gone.

        Blocks on the poller without a timeout. Always closes the sender
        side of the channel on the way out.
        """
        if self.process is None:
            self.spawn()

        selector = selectors.DefaultSelector()
        try:
            for stream in self._streams.values():
                selector.register(stream.fd, selectors.EVENT_READ, data=stream.name)

            while any(not s.closed for s in self._streams.values()):
                for key, _ in selector.select():
                    self._service(selector, self._streams[key.data])
        except ChannelClosedError:
            logger.warning(
                f"Dashboard stopped listening to '{self.command}', ending reader"
            )
        finally:
            selector.close()
            self.process.stdout.close()
            self.process.stderr.close()
            self.channel.close_sender()

        logger.info(f"All streams of '{self.command}' closed")
        returncode = self.process.poll()
        if returncode is not None:
            logger.info(f"'{self.command}' exited with code {returncode}")

    def _service(self, selector: selectors.BaseSelector, stream: StreamState) -> None:
        """Read one chunk from a ready stream and forward complete lines."""
        try:
            chunk = os.read(stream.fd, READ_CHUNK_SIZE)
        except OSError as e:
            logger.warning(f"{stream.name} of '{self.command}' read error: {e}")
            chunk = b""

        if chunk:
            for line in stream.decoder.feed(chunk):
                self.channel.send(line)
            return

        logger.info(f"{stream.name} of '{self.command}' closed")
        stream.closed = True
        selector.unregister(stream.fd)
        for line in stream.decoder.flush():
            self.channel.send(line)


class ManagedProcess:
    """
    Dashboard-side handle for one monitored process.

    Only the dashboard loop calls read(), so the buffer has a single owner.

    Attributes:
        name: Identifier for this process (e.g., "terminal", "ssh")
        buffer: History of the most recent output lines
        multiplexer: The producer reading the child's streams
    """

    def __init__(
        self, name: str, multiplexer: StreamMultiplexer, buffer: HistoryBuffer
    ) -> None:
        self.name = name
        self.multiplexer = multiplexer
        self.buffer = buffer
        self._channel: Channel[str] | None = multiplexer.channel
        self.thread: threading.Thread | None = None

    @property
    def finished(self) -> bool:
        """True once the producer ended and every line was consumed."""
        return self._channel is None

    def start(self) -> None:
        """Run the multiplexer on a daemon thread that is never joined."""
        self.thread = threading.Thread(
            target=self.multiplexer.run,
            name=f"mux-{self.name}",
            daemon=True,
        )
        self.thread.start()

    def read(self) -> str:
        """
        Drain queued lines into the buffer and return its snapshot.

        After the producer has finished the last snapshot is returned
        unchanged.
        """
        if self._channel is not None:
            while True:
                try:
                    line = self._channel.try_recv()
                except ChannelEmpty:
                    break
                except ChannelClosedError:
                    logger.info(f"Output of '{self.name}' ended")
                    self._channel = None
                    break
                self.buffer.push(line)
        return self.buffer.snapshot()

    def close(self) -> None:
        """Stop listening; the producer fails its next send and exits."""
        self.multiplexer.channel.close_receiver()
        self._channel = None


class SubprocessManager:
    """
    Launches the monitored processes and keeps them by name.

    Example:
        mgr = SubprocessManager()
        mgr.launch("terminal", "ping localhost", buffer_size=47)
        text = mgr.read("terminal")
        # ... later ...
        mgr.terminate_all()
    """

    def __init__(self, channel_capacity: int = DEFAULT_CAPACITY) -> None:
        self._channel_capacity = channel_capacity
        self._processes: dict[str, ManagedProcess] = {}

    def launch(self, name: str, command: str, buffer_size: int) -> ManagedProcess:
        """
        Spawn a command and start reading it in the background.

        Args:
            name: Identifier for this process
            command: Command line (whitespace split)
            buffer_size: History capacity in lines

        Returns:
            The started ManagedProcess

        Raises:
            ValueError: If a process with this name is already running
            SpawnError: If the command cannot be executed
        """
        if name in self._processes:
            raise ValueError(f"process '{name}' is already launched")

        channel: Channel[str] = Channel(capacity=self._channel_capacity)
        multiplexer = StreamMultiplexer(command, channel)
        multiplexer.spawn()

        managed = ManagedProcess(name, multiplexer, HistoryBuffer(buffer_size))
        managed.start()
        self._processes[name] = managed
        return managed

    def get(self, name: str) -> ManagedProcess | None:
        return self._processes.get(name)

    def read(self, name: str) -> str:
        """Return the current snapshot for a process ("" if unknown)."""
        managed = self._processes.get(name)
        if managed is None:
            return ""
        return managed.read()

    def terminate(self, name: str, timeout: float = 2.0) -> None:
        """
        Terminate a child process and forget it.

        Sends SIGTERM, waits, escalates to SIGKILL. The reader thread is
        not joined; it exits on EOF or on its next failed send.

        Args:
            name: Identifier of the process
            timeout: Seconds to wait before SIGKILL
        """
        managed = self._processes.pop(name, None)
        if managed is None:
            return

        managed.close()
        proc = managed.multiplexer.process
        if proc is None or proc.poll() is not None:
            return

        proc.terminate()
        try:
            proc.wait(timeout=timeout)
        except subprocess.TimeoutExpired:
            logger.warning(f"'{managed.multiplexer.command}' ignored SIGTERM, killing")
            proc.kill()
            proc.wait()
        logger.info(f"Terminated '{managed.multiplexer.command}'")

    def terminate_all(self, timeout: float = 2.0) -> None:
        for name in list(self._processes.keys()):
            self.terminate(name, timeout=timeout)
