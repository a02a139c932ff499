"""Tests for RawTerminal over a pseudo-terminal."""

import io
import os
import pty
import termios
from unittest.mock import patch

import pytest

from sspa_dashboard.events import KeyCode, KeyEvent, Modifiers, MouseEvent, MouseKind
from sspa_dashboard.exceptions import InputReadError
from sspa_dashboard.keyboard import (
    MOUSE_CAPTURE_OFF,
    MOUSE_CAPTURE_ON,
    InputEventPump,
    RawTerminal,
)
from sspa_dashboard.navigation import NavigationState


@pytest.fixture
def pty_pair():
    """Yield (master fd, slave file) with the slave acting as stdin."""
    master, slave = pty.openpty()
    stdin = os.fdopen(slave, "rb", buffering=0)
    yield master, stdin
    stdin.close()
    os.close(master)


class TestTerminalMode:
    """Tests for entering and leaving cbreak mode."""

    def test_settings_restored_on_exit(self, pty_pair):
        _, stdin = pty_pair
        before = termios.tcgetattr(stdin.fileno())

        with RawTerminal(stdin=stdin, mouse_capture=False):
            during = termios.tcgetattr(stdin.fileno())
            assert not during[3] & termios.ICANON
            assert not during[3] & termios.ECHO
            assert not during[0] & termios.ICRNL

        assert termios.tcgetattr(stdin.fileno()) == before

    def test_mouse_capture_toggled(self, pty_pair):
        _, stdin = pty_pair
        stdout = io.StringIO()

        with RawTerminal(stdin=stdin, stdout=stdout, mouse_capture=True):
            assert stdout.getvalue() == MOUSE_CAPTURE_ON

        assert stdout.getvalue() == MOUSE_CAPTURE_ON + MOUSE_CAPTURE_OFF

    def test_read_requires_setup(self):
        with pytest.raises(InputReadError, match="not set up"):
            RawTerminal().read_event()


class TestReadEvent:
    """Tests for reading whole sequences from the terminal."""

    def test_lone_escape_is_escape_key(self, pty_pair):
        master, stdin = pty_pair

        with RawTerminal(stdin=stdin, mouse_capture=False) as terminal:
            os.write(master, b"\x1b")
            assert terminal.read_event() == KeyEvent(KeyCode.ESC)

    def test_modified_arrow_read_to_completion(self, pty_pair):
        master, stdin = pty_pair

        with RawTerminal(stdin=stdin, mouse_capture=False) as terminal:
            os.write(master, b"\x1b[1;5Ax")
            assert terminal.read_event() == KeyEvent(
                KeyCode.UP, modifiers=Modifiers.CONTROL
            )
            assert terminal.read_event() == KeyEvent(KeyCode.CHAR, "x")

    def test_sgr_mouse_read_to_final_byte(self, pty_pair):
        master, stdin = pty_pair

        with RawTerminal(stdin=stdin, mouse_capture=False) as terminal:
            os.write(master, b"\x1b[<0;10;5Mq")
            assert terminal.read_event() == MouseEvent(MouseKind.DOWN, 0, 9, 4)
            assert terminal.read_event() == KeyEvent(KeyCode.CHAR, "q")

    def test_multibyte_character(self, pty_pair):
        master, stdin = pty_pair

        with RawTerminal(stdin=stdin, mouse_capture=False) as terminal:
            os.write(master, "é".encode())
            assert terminal.read_event() == KeyEvent(KeyCode.CHAR, "é")

    def test_enter_and_ctrl_j_stay_distinct(self, pty_pair):
        master, stdin = pty_pair

        with RawTerminal(stdin=stdin, mouse_capture=False) as terminal:
            os.write(master, b"\r\n")
            assert terminal.read_event() == KeyEvent(KeyCode.ENTER)
            assert terminal.read_event() == KeyEvent(
                KeyCode.CHAR, "j", Modifiers.CONTROL
            )

    def test_end_of_input_raises(self, pty_pair):
        _, stdin = pty_pair

        with RawTerminal(stdin=stdin, mouse_capture=False) as terminal:
            with patch("sspa_dashboard.keyboard.os.read", return_value=b""):
                with pytest.raises(InputReadError, match="end of input"):
                    terminal.read_event()

    def test_pump_over_terminal(self, pty_pair):
        """Events typed on the terminal reach navigation; 'q' ends the pump."""
        master, stdin = pty_pair
        navigation = NavigationState()

        with RawTerminal(stdin=stdin, mouse_capture=False) as terminal:
            os.write(master, b"\x1b[Bq")
            pump = InputEventPump(terminal)
            pump.run()

        assert pump.drain(navigation) is True
        assert navigation.cursor(navigation.focus) == 1
