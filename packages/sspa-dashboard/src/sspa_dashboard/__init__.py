"""
Terminal dashboard for monitoring and operating an SSPA power amplifier.

This package provides the building blocks of the dashboard:
- HistoryBuffer: Fixed-capacity line history for a process pane
- Channel: Bounded single-producer/single-consumer hand-off
- StreamMultiplexer: Reads a child's stdout and stderr through one poller
- ManagedProcess, SubprocessManager: Dashboard-side process handles
- InputEventPump, RawTerminal: Background terminal input
- NavigationState: Panel focus and list cursor state machine
- Register, DeviceState: Register decoding and placeholder device state
- create_layout, render: Rich layout of the dashboard
- DashboardController: The control loop
"""

from sspa_dashboard.buffer import HistoryBuffer
from sspa_dashboard.channel import Channel
from sspa_dashboard.config import DashboardSettings
from sspa_dashboard.controller import DashboardController
from sspa_dashboard.exceptions import (
    ChannelClosedError,
    ChannelEmpty,
    InputReadError,
    SpawnError,
)
from sspa_dashboard.keyboard import InputEventPump, RawTerminal
from sspa_dashboard.layout import create_layout, render
from sspa_dashboard.multiplexer import (
    ManagedProcess,
    StreamMultiplexer,
    SubprocessManager,
    parse_command,
)
from sspa_dashboard.navigation import (
    CommandTarget,
    Direction,
    NavigationCommand,
    NavigationState,
    Panel,
)
from sspa_dashboard.registers import DeviceState, Register, RegisterState, SSPAState

__all__ = [
    "Channel",
    "ChannelClosedError",
    "ChannelEmpty",
    "CommandTarget",
    "DashboardController",
    "DashboardSettings",
    "DeviceState",
    "Direction",
    "HistoryBuffer",
    "InputEventPump",
    "InputReadError",
    "ManagedProcess",
    "NavigationCommand",
    "NavigationState",
    "Panel",
    "RawTerminal",
    "Register",
    "RegisterState",
    "SSPAState",
    "SpawnError",
    "StreamMultiplexer",
    "SubprocessManager",
    "create_layout",
    "parse_command",
    "render",
]
