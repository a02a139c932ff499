"""
Panel focus and list cursor state for the dashboard.

The same four directions drive two independent transitions:
- Focus change: jump to the neighbouring panel given by FOCUS_TRANSITIONS
  and select the first item of the new panel
- Cursor move: Up/Down within the focused panel, saturating at both ends

FOCUS_TRANSITIONS is a hand-authored map of the screen layout rather than
a grid, so it need not be symmetric (Up then Down may land elsewhere).

Only the focused panel has a cursor. NavigationState keeps a single cursor
value and derives every panel's visible cursor from the current focus when
asked, so a panel that lost focus always reports None.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Mapping


class Panel(Enum):
    """Navigable panels of the dashboard."""

    REGISTERS = "registers"
    HARD_RESET = "hard_reset"
    EXT = "ext"
    EXT_PRESETS = "ext_presets"
    COMPILE = "compile"
    DAC = "dac"
    OFFSETS = "offsets"
    CONTROL = "control"


class Direction(Enum):
    LEFT = "left"
    DOWN = "down"
    UP = "up"
    RIGHT = "right"


class CommandTarget(Enum):
    """Which transition a navigation command drives."""

    FOCUS = "focus"
    CURSOR = "cursor"


@dataclass(frozen=True)
class NavigationCommand:
    direction: Direction
    target: CommandTarget


TransitionTable = Mapping[Panel, Mapping[Direction, Panel]]

_L, _D, _U, _R = Direction.LEFT, Direction.DOWN, Direction.UP, Direction.RIGHT

FOCUS_TRANSITIONS: TransitionTable = {
    Panel.REGISTERS: {
        _L: Panel.REGISTERS,
        _D: Panel.HARD_RESET,
        _U: Panel.REGISTERS,
        _R: Panel.EXT_PRESETS,
    },
    Panel.HARD_RESET: {
        _L: Panel.HARD_RESET,
        _D: Panel.HARD_RESET,
        _U: Panel.REGISTERS,
        _R: Panel.COMPILE,
    },
    Panel.EXT: {
        _L: Panel.REGISTERS,
        _D: Panel.EXT_PRESETS,
        _U: Panel.EXT,
        _R: Panel.DAC,
    },
    Panel.EXT_PRESETS: {
        _L: Panel.REGISTERS,
        _D: Panel.COMPILE,
        _U: Panel.EXT,
        _R: Panel.OFFSETS,
    },
    Panel.COMPILE: {
        _L: Panel.HARD_RESET,
        _D: Panel.COMPILE,
        _U: Panel.EXT_PRESETS,
        _R: Panel.OFFSETS,
    },
    Panel.DAC: {
        _L: Panel.EXT,
        _D: Panel.OFFSETS,
        _U: Panel.DAC,
        _R: Panel.CONTROL,
    },
    Panel.OFFSETS: {
        _L: Panel.EXT_PRESETS,
        _D: Panel.OFFSETS,
        _U: Panel.DAC,
        _R: Panel.CONTROL,
    },
    Panel.CONTROL: {
        _L: Panel.DAC,
        _D: Panel.CONTROL,
        _U: Panel.CONTROL,
        _R: Panel.CONTROL,
    },
}

# Number of selectable items per panel; panels with no list still get one
PANEL_ITEM_COUNTS: Mapping[Panel, int] = {
    Panel.REGISTERS: 10,
    Panel.HARD_RESET: 1,
    Panel.EXT: 8,
    Panel.EXT_PRESETS: 1,
    Panel.COMPILE: 5,
    Panel.DAC: 9,
    Panel.OFFSETS: 8,
    Panel.CONTROL: 10,
}

INITIAL_PANEL = Panel.EXT


def validate_transitions(table: TransitionTable) -> None:
    """
    Check that every panel has a neighbour in every direction.

    Args:
        table: Focus transition table to check

    Raises:
        ValueError: Listing every missing (panel, direction) pair
    """
    missing = [
        f"{panel.name}/{direction.name}"
        for panel in Panel
        for direction in Direction
        if direction not in table.get(panel, {})
    ]
    if missing:
        raise ValueError(f"Focus transition table is missing: {', '.join(missing)}")


class NavigationState:
    """
    Focus and cursor state machine.

    Mutated only by the dashboard loop.

    Example:
        nav = NavigationState()
        nav.apply(NavigationCommand(Direction.RIGHT, CommandTarget.FOCUS))
        nav.focus            # Panel.DAC
        nav.cursor(Panel.DAC)  # 0
        nav.cursor(Panel.EXT)  # None
    """

    def __init__(
        self,
        transitions: TransitionTable = FOCUS_TRANSITIONS,
        item_counts: Mapping[Panel, int] = PANEL_ITEM_COUNTS,
        initial: Panel = INITIAL_PANEL,
    ) -> None:
        """
        Args:
            transitions: Total focus transition table
            item_counts: Item count per panel, each at least 1
            initial: Panel focused at startup

        Raises:
            ValueError: If the table is not total or a count is missing or < 1
        """
        validate_transitions(transitions)
        bad_counts = [p.name for p in Panel if item_counts.get(p, 0) < 1]
        if bad_counts:
            raise ValueError(f"Item count must be at least 1 for: {', '.join(bad_counts)}")

        self._transitions = transitions
        self._item_counts = dict(item_counts)
        self._focus = initial
        self._cursor = 0

    @property
    def focus(self) -> Panel:
        return self._focus

    def item_count(self, panel: Panel) -> int:
        return self._item_counts[panel]

    def is_focused(self, panel: Panel) -> bool:
        return panel == self._focus

    def cursor(self, panel: Panel) -> int | None:
        """Cursor of a panel, or None if the panel is not focused."""
        if panel != self._focus:
            return None
        return self._cursor

    def apply(self, command: NavigationCommand | None) -> None:
        """Apply one command; None is ignored."""
        if command is None:
            return
        if command.target is CommandTarget.FOCUS:
            self.change_focus(command.direction)
        else:
            self.move_cursor(command.direction)

    def change_focus(self, direction: Direction) -> Panel:
        """
        Move focus along the transition table and select the first item.

        Returns:
            The newly focused panel
        """
        self._focus = self._transitions[self._focus][direction]
        self._cursor = 0
        return self._focus

    def move_cursor(self, direction: Direction) -> int:
        """
        Move the focused panel's cursor.

        Up stops at 0, Down stops at the last item, Left/Right do nothing.

        Returns:
            The cursor after the move
        """
        if direction is Direction.UP:
            self._cursor = max(self._cursor - 1, 0)
        elif direction is Direction.DOWN:
            self._cursor = min(self._cursor + 1, self._item_counts[self._focus] - 1)
        return self._cursor
