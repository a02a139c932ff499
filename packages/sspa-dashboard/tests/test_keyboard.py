"""Tests for InputEventPump and key classification."""

import time
from unittest.mock import MagicMock

import pytest

from sspa_dashboard.events import (
    FocusEvent,
    KeyCode,
    KeyEvent,
    Modifiers,
    MouseEvent,
    MouseKind,
    UnknownEvent,
)
from sspa_dashboard.exceptions import InputReadError
from sspa_dashboard.keyboard import (
    InputEventPump,
    cursor_command,
    focus_command,
    is_quit_event,
)
from sspa_dashboard.navigation import (
    CommandTarget,
    Direction,
    NavigationCommand,
    NavigationState,
    Panel,
)

QUIT = KeyEvent(KeyCode.CHAR, "q")
DOWN = KeyEvent(KeyCode.DOWN)
CTRL_RIGHT = KeyEvent(KeyCode.RIGHT, modifiers=Modifiers.CONTROL)


class FakeSource:
    """Event source replaying a fixed list, then failing like a closed tty."""

    def __init__(self, events, error: Exception | None = None):
        self.events = list(events)
        self.error = error
        self.reads = 0

    def read_event(self):
        self.reads += 1
        if self.events:
            return self.events.pop(0)
        raise self.error or InputReadError("end of input")


class TestQuitKey:
    """Tests for the pump's only shutdown trigger."""

    @pytest.mark.parametrize(
        "event",
        [
            KeyEvent(KeyCode.CHAR, "q"),
            KeyEvent(KeyCode.CHAR, "Q"),
            KeyEvent(KeyCode.ESC),
            KeyEvent(KeyCode.CHAR, "q", Modifiers.CONTROL),
        ],
    )
    def test_quit_events(self, event):
        assert is_quit_event(event)

    @pytest.mark.parametrize(
        "event",
        [KeyEvent(KeyCode.CHAR, "x"), DOWN, MouseEvent(MouseKind.DOWN, 0, 1, 1)],
    )
    def test_other_events_do_not_quit(self, event):
        assert not is_quit_event(event)

    def test_quit_stops_pump_permanently(self):
        """After quit, drains report "stopped" rather than "empty"."""
        source = FakeSource([QUIT, DOWN])
        pump = InputEventPump(source)
        nav = NavigationState()

        pump.run()

        assert pump.stopped
        assert pump.drain(nav) is True
        assert pump.drain(nav) is True
        assert source.reads == 1

    def test_empty_is_not_an_exit_signal(self):
        pump = InputEventPump(FakeSource([]))
        assert pump.drain(NavigationState()) is False

    def test_events_before_quit_are_applied(self):
        pump = InputEventPump(FakeSource([CTRL_RIGHT, DOWN, DOWN, QUIT]))
        nav = NavigationState()

        pump.run()

        assert pump.drain(nav) is True
        assert nav.focus is Panel.DAC
        assert nav.cursor(Panel.DAC) == 2


class TestForwarding:
    """Tests for which raw events reach the dashboard loop."""

    def test_only_key_and_mouse_events_are_forwarded(self):
        mouse = MouseEvent(MouseKind.DOWN, 0, 3, 4)
        pump = InputEventPump(
            FakeSource([mouse, FocusEvent(gained=True), UnknownEvent("\x1b[99x"), QUIT])
        )
        nav = MagicMock()

        pump.run()
        pump.drain(nav)

        # Focus then cursor command for the single forwarded mouse event
        assert nav.apply.call_count == 2
        nav.apply.assert_called_with(None)

    def test_drain_applies_in_arrival_order(self):
        ctrl_k = KeyEvent(KeyCode.CHAR, "k", Modifiers.CONTROL)
        pump = InputEventPump(FakeSource([ctrl_k, DOWN, QUIT]))
        nav = MagicMock()

        pump.run()
        pump.drain(nav)

        assert [c.args[0] for c in nav.apply.call_args_list] == [
            NavigationCommand(Direction.UP, CommandTarget.FOCUS),
            None,
            None,
            NavigationCommand(Direction.DOWN, CommandTarget.CURSOR),
        ]

    def test_background_thread(self):
        """start() runs the pump without blocking the caller."""
        pump = InputEventPump(FakeSource([DOWN, QUIT]))
        nav = NavigationState()
        pump.start()

        deadline = time.monotonic() + 5
        while not pump.drain(nav):
            assert time.monotonic() < deadline, "pump never stopped"
            time.sleep(0.01)

        assert nav.cursor(nav.focus) == 1


class TestFailures:
    """Tests for read failures and external stop."""

    def test_read_failure_is_fatal_on_drain(self):
        pump = InputEventPump(FakeSource([DOWN]))
        nav = NavigationState()

        pump.run()

        with pytest.raises(InputReadError, match="end of input"):
            pump.drain(nav)
        # Events read before the failure were still applied
        assert nav.cursor(nav.focus) == 1

    def test_os_error_is_wrapped(self):
        error = OSError(5, "Input/output error")
        pump = InputEventPump(FakeSource([], error=error))

        pump.run()

        with pytest.raises(InputReadError) as exc_info:
            pump.drain(NavigationState())
        assert exc_info.value.__cause__ is error
        assert pump.error is error

    def test_stop_reports_stopped(self):
        pump = InputEventPump(FakeSource([DOWN, QUIT]))
        pump.stop()

        assert pump.drain(NavigationState()) is True

    def test_pump_exits_when_receiver_is_gone(self):
        """A failed forward ends the pump quietly."""
        source = FakeSource([DOWN, DOWN, QUIT])
        pump = InputEventPump(source)
        pump.stop()

        pump.run()

        assert source.reads == 1


class TestClassification:
    """Tests for mapping key events to navigation commands."""

    @pytest.mark.parametrize(
        "event, direction",
        [
            (KeyEvent(KeyCode.UP, modifiers=Modifiers.CONTROL), Direction.UP),
            (KeyEvent(KeyCode.LEFT, modifiers=Modifiers.CONTROL), Direction.LEFT),
            (KeyEvent(KeyCode.CHAR, "j", Modifiers.CONTROL), Direction.DOWN),
            (KeyEvent(KeyCode.CHAR, "l", Modifiers.CONTROL), Direction.RIGHT),
        ],
    )
    def test_focus_keys(self, event, direction):
        assert focus_command(event) == NavigationCommand(direction, CommandTarget.FOCUS)
        assert cursor_command(event) is None

    @pytest.mark.parametrize(
        "event, direction",
        [
            (KeyEvent(KeyCode.DOWN), Direction.DOWN),
            (KeyEvent(KeyCode.RIGHT), Direction.RIGHT),
            (KeyEvent(KeyCode.CHAR, "k"), Direction.UP),
            (KeyEvent(KeyCode.CHAR, "H"), Direction.LEFT),
        ],
    )
    def test_cursor_keys(self, event, direction):
        assert cursor_command(event) == NavigationCommand(direction, CommandTarget.CURSOR)
        assert focus_command(event) is None

    @pytest.mark.parametrize(
        "event",
        [
            KeyEvent(KeyCode.CHAR, "j", Modifiers.ALT),
            KeyEvent(KeyCode.UP, modifiers=Modifiers.CONTROL | Modifiers.SHIFT),
            KeyEvent(KeyCode.CHAR, "x"),
            KeyEvent(KeyCode.ENTER),
            MouseEvent(MouseKind.SCROLL_UP, None, 0, 0),
        ],
    )
    def test_unrelated_events(self, event):
        assert focus_command(event) is None
        assert cursor_command(event) is None
