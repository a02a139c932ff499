"""
DashboardController: the single control loop of the SSPA dashboard.

Each tick the controller:
1. Drains the input pump into the navigation state (never waits)
2. Drains both monitored processes into their history buffers
3. Re-renders the layout and refreshes the Live display

Background sources (input pump, one multiplexer per process) run on daemon
threads and only talk to this loop through their channels. The loop ends
when the input pump reports it has stopped, which happens on the quit key
or when SIGINT/SIGTERM stops the pump. Reader threads still blocked at
that point are abandoned; their children are terminated.

Startup order:
1. Register signal handlers
2. Launch processes (a spawn failure aborts before the screen is taken)
3. Enter terminal input mode, then the Live alternate screen
4. Start the input pump and tick until it stops
"""

import asyncio
import contextlib
import functools
import logging
import signal

from rich.console import Console
from rich.live import Live

from sspa_dashboard.config import DashboardSettings
from sspa_dashboard.keyboard import EventSource, InputEventPump, RawTerminal
from sspa_dashboard.layout import create_layout, render
from sspa_dashboard.multiplexer import SubprocessManager
from sspa_dashboard.navigation import NavigationState
from sspa_dashboard.registers import DeviceState

logger = logging.getLogger(__name__)

TERMINAL_PROCESS = "terminal"
SSH_PROCESS = "ssh"


class DashboardController:
    """
    Runs the dashboard until the operator quits.

    Example:
        controller = DashboardController(DashboardSettings())
        await controller.run()  # Runs until 'q' or Esc
    """

    def __init__(
        self,
        settings: DashboardSettings | None = None,
        console: Console | None = None,
        event_source: EventSource | None = None,
    ) -> None:
        """
        Initialize the controller.

        Args:
            settings: Dashboard configuration (defaults from environment)
            console: Rich Console to render on (creates default if None)
            event_source: Raw event source; None means the real terminal
        """
        self.settings = settings if settings is not None else DashboardSettings()
        self.console = console if console is not None else Console()
        self.navigation = NavigationState()
        self.device = DeviceState()
        self._event_source = event_source
        self._layout = create_layout()
        self._subprocess_mgr = SubprocessManager(
            channel_capacity=self.settings.channel_capacity
        )
        self._pump: InputEventPump | None = None
        self._stop_requested = False

    @property
    def processes(self) -> SubprocessManager:
        return self._subprocess_mgr

    async def run(self) -> None:
        """
        Run the dashboard until the input pump stops.

        Raises:
            SpawnError: If either monitored command cannot be started
            InputReadError: If terminal input fails
        """
        loop = asyncio.get_running_loop()
        signals = (signal.SIGINT, signal.SIGTERM)
        for sig in signals:
            loop.add_signal_handler(sig, functools.partial(self._handle_signal, sig))

        try:
            self._launch_processes()
            with contextlib.ExitStack() as stack:
                source = self._event_source
                if source is None:
                    source = stack.enter_context(
                        RawTerminal(mouse_capture=self.settings.mouse_capture)
                    )
                live = stack.enter_context(
                    Live(
                        self._layout,
                        console=self.console,
                        screen=True,
                        auto_refresh=False,
                    )
                )
                self._pump = InputEventPump(
                    source, capacity=self.settings.channel_capacity
                )
                if self._stop_requested:
                    self._pump.stop()
                self._pump.start()

                while not self.tick():
                    live.refresh()
                    await asyncio.sleep(self.settings.refresh_interval)
        finally:
            for sig in signals:
                loop.remove_signal_handler(sig)
            self._subprocess_mgr.terminate_all(timeout=self.settings.terminate_timeout)
        logger.info("Dashboard shut down")

    def _launch_processes(self) -> None:
        self._subprocess_mgr.launch(
            TERMINAL_PROCESS,
            self.settings.terminal_command,
            buffer_size=self.settings.terminal_history,
        )
        self._subprocess_mgr.launch(
            SSH_PROCESS,
            self.settings.ssh_command,
            buffer_size=self.settings.ssh_history,
        )

    def tick(self) -> bool:
        """
        Run one control loop iteration.

        Returns:
            True when the dashboard should exit
        """
        if self._pump is None:
            raise RuntimeError("input pump is not running")
        if self._pump.drain(self.navigation):
            return True
        render(
            self._layout,
            self.device,
            self.navigation,
            self._subprocess_mgr.read(TERMINAL_PROCESS),
            self._subprocess_mgr.read(SSH_PROCESS),
        )
        return False

    def _handle_signal(self, sig: signal.Signals) -> None:
        """
        Stop the input pump so the loop exits on its next drain.

        Args:
            sig: Signal received (SIGINT or SIGTERM)
        """
        logger.info(f"Received {sig.name}, shutting down")
        self._stop_requested = True
        if self._pump is not None:
            self._pump.stop()
