"""
Terminal input for the dashboard.

This module keeps blocking terminal reads off the render loop:
- RawTerminal: puts stdin in cbreak mode (no echo, no line buffering,
  CR/NL translation off) and reads one decoded event at a time
- InputEventPump: a daemon thread that reads events and forwards the
  ones navigation cares about through a bounded Channel
- focus_command / cursor_command: map a forwarded event to navigation

The quit key ('q', 'Q' or Escape) is handled inside the pump: it stops
reading for good, and the dashboard loop sees the channel close. That
closure is the only shutdown signal the loop listens for.

Escape sequences are read to completion using select() with a short
timeout, so a lone Escape press is still recognised.
"""

import codecs
import logging
import os
import select
import sys
import termios
import threading
from typing import Protocol, TextIO

from sspa_dashboard.channel import DEFAULT_CAPACITY, Channel
from sspa_dashboard.events import (
    ESC,
    KeyCode,
    KeyEvent,
    Modifiers,
    MouseEvent,
    RawEvent,
    decode_sequence,
    is_csi_final,
)
from sspa_dashboard.exceptions import ChannelClosedError, ChannelEmpty, InputReadError
from sspa_dashboard.navigation import (
    CommandTarget,
    Direction,
    NavigationCommand,
    NavigationState,
)

logger = logging.getLogger(__name__)

# Max wait for the rest of an escape sequence after ESC
ESCAPE_TIMEOUT = 0.05

# Button press/release, drag and SGR extended coordinates
MOUSE_CAPTURE_ON = "\x1b[?1000h\x1b[?1002h\x1b[?1006h"
MOUSE_CAPTURE_OFF = "\x1b[?1006l\x1b[?1002l\x1b[?1000l"

_ARROW_DIRECTIONS = {
    KeyCode.UP: Direction.UP,
    KeyCode.DOWN: Direction.DOWN,
    KeyCode.LEFT: Direction.LEFT,
    KeyCode.RIGHT: Direction.RIGHT,
}

_VI_DIRECTIONS = {
    "k": Direction.UP,
    "j": Direction.DOWN,
    "h": Direction.LEFT,
    "l": Direction.RIGHT,
}


class EventSource(Protocol):
    """Anything that blocks until the next raw terminal event."""

    def read_event(self) -> RawEvent: ...


class RawTerminal:
    """
    Context manager owning terminal input mode.

    Example:
        with RawTerminal(mouse_capture=True) as terminal:
            event = terminal.read_event()
    """

    def __init__(
        self,
        stdin: TextIO | None = None,
        stdout: TextIO | None = None,
        mouse_capture: bool = True,
    ) -> None:
        self._stdin = stdin if stdin is not None else sys.stdin
        self._stdout = stdout if stdout is not None else sys.stdout
        self._mouse_capture = mouse_capture
        self._fd: int | None = None
        self._old_settings: list | None = None
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")

    def __enter__(self) -> "RawTerminal":
        fd = self._stdin.fileno()
        self._fd = fd
        self._old_settings = termios.tcgetattr(fd)

        mode = termios.tcgetattr(fd)
        mode[0] &= ~(termios.ICRNL | termios.IXON)
        mode[3] &= ~(termios.ICANON | termios.ECHO)
        mode[6][termios.VMIN] = 1
        mode[6][termios.VTIME] = 0
        termios.tcsetattr(fd, termios.TCSAFLUSH, mode)

        if self._mouse_capture:
            self._stdout.write(MOUSE_CAPTURE_ON)
            self._stdout.flush()
        return self

    def __exit__(self, *exc_info: object) -> None:
        if self._mouse_capture:
            self._stdout.write(MOUSE_CAPTURE_OFF)
            self._stdout.flush()
        if self._fd is not None and self._old_settings is not None:
            termios.tcsetattr(self._fd, termios.TCSADRAIN, self._old_settings)

    def _ready(self, timeout: float) -> bool:
        return bool(select.select([self._fd], [], [], timeout)[0])

    def _read_char(self) -> str:
        """Block until one full character has been read."""
        while True:
            data = os.read(self._fd, 1)
            if not data:
                raise InputReadError("end of input")
            char = self._decoder.decode(data)
            if char:
                return char

    def read_event(self) -> RawEvent:
        """
        Block until the next input sequence and decode it.

        Raises:
            InputReadError: If stdin reaches end of input
            OSError: If the read itself fails
        """
        if self._fd is None:
            raise InputReadError("terminal is not set up")

        char = self._read_char()
        if char != ESC or not self._ready(ESCAPE_TIMEOUT):
            return decode_sequence(char)

        seq = ESC + self._read_char()
        if seq[1] == "[":
            while self._ready(ESCAPE_TIMEOUT):
                char = self._read_char()
                seq += char
                if is_csi_final(char):
                    break
        elif seq[1] == "O" and self._ready(ESCAPE_TIMEOUT):
            seq += self._read_char()
        return decode_sequence(seq)


def is_quit_event(event: RawEvent) -> bool:
    """True for 'q', 'Q' or Escape, regardless of modifiers."""
    if not isinstance(event, KeyEvent):
        return False
    if event.code is KeyCode.ESC:
        return True
    return event.code is KeyCode.CHAR and event.char in ("q", "Q")


def _direction(event: KeyEvent) -> Direction | None:
    if event.code in _ARROW_DIRECTIONS:
        return _ARROW_DIRECTIONS[event.code]
    if event.code is KeyCode.CHAR:
        return _VI_DIRECTIONS.get(event.char.lower())
    return None


def _command(
    event: KeyEvent | MouseEvent, modifiers: Modifiers, target: CommandTarget
) -> NavigationCommand | None:
    if not isinstance(event, KeyEvent) or event.modifiers != modifiers:
        return None
    direction = _direction(event)
    if direction is None:
        return None
    return NavigationCommand(direction, target)


def focus_command(event: KeyEvent | MouseEvent) -> NavigationCommand | None:
    """Ctrl + arrow or Ctrl + h/j/k/l changes the focused panel."""
    return _command(event, Modifiers.CONTROL, CommandTarget.FOCUS)


def cursor_command(event: KeyEvent | MouseEvent) -> NavigationCommand | None:
    """Unmodified arrow or h/j/k/l moves the cursor in the focused panel."""
    return _command(event, Modifiers.NONE, CommandTarget.CURSOR)


class InputEventPump:
    """
    Background reader that republishes key and mouse events.

    The dashboard loop calls drain() once per tick; it never waits.

    Example:
        with RawTerminal() as terminal:
            pump = InputEventPump(terminal)
            pump.start()
            while not pump.drain(navigation):
                render()
    """

    def __init__(self, source: EventSource, capacity: int = DEFAULT_CAPACITY) -> None:
        self._source = source
        self._channel: Channel[KeyEvent | MouseEvent] = Channel(capacity=capacity)
        self._error: BaseException | None = None
        self.thread: threading.Thread | None = None

    @property
    def error(self) -> BaseException | None:
        """The read failure that ended the pump, if any."""
        return self._error

    @property
    def stopped(self) -> bool:
        return self._channel.sender_closed

    def start(self) -> None:
        """Run the pump on a daemon thread that is never joined."""
        self.thread = threading.Thread(target=self.run, name="input-pump", daemon=True)
        self.thread.start()

    def run(self) -> None:
        """Read and forward events until quit, read failure or receiver loss."""
        try:
            while True:
                try:
                    event = self._source.read_event()
                except (OSError, InputReadError) as e:
                    logger.error(f"Terminal read failed: {e}")
                    self._error = e
                    return

                if is_quit_event(event):
                    logger.info("Quit key pressed, stopping input pump")
                    return
                if isinstance(event, (KeyEvent, MouseEvent)):
                    self._channel.send(event)
                else:
                    logger.debug(f"Discarding {event!r}")
        except ChannelClosedError:
            logger.warning("Dashboard stopped listening to input, ending pump")
        finally:
            self._channel.close_sender()

    def stop(self) -> None:
        """
        Stop the pump from outside (signal handlers).

        Queued events are still drained; the next drain after them
        reports the pump as stopped.
        """
        self._channel.close_receiver()
        self._channel.close_sender()

    def drain(self, navigation: NavigationState) -> bool:
        """
        Apply every queued event to the navigation state.

        For each event the focus command is applied before the cursor
        command, events in arrival order.

        Args:
            navigation: State machine to update

        Returns:
            True once the pump has stopped for good, False otherwise
            (including when nothing was queued)

        Raises:
            InputReadError: If the pump stopped because reading failed
        """
        while True:
            try:
                event = self._channel.try_recv()
            except ChannelEmpty:
                return False
            except ChannelClosedError:
                if isinstance(self._error, InputReadError):
                    raise self._error
                if self._error is not None:
                    raise InputReadError(str(self._error)) from self._error
                return True
            navigation.apply(focus_command(event))
            navigation.apply(cursor_command(event))
