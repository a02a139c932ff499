"""Environment-based configuration for the SSPA dashboard."""

from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings

DEFAULT_LOG_FILE = Path.home() / ".sspa-dashboard" / "dashboard.log"


class DashboardSettings(BaseSettings):
    """SSPA dashboard configuration.

    All settings can be overridden via environment variables with
    SSPA_DASHBOARD_ prefix. For example:
        SSPA_DASHBOARD_SSH_COMMAND="ssh -tt pi@10.0.0.5 sspa -v"
        SSPA_DASHBOARD_REFRESH_INTERVAL=0.1
    """

    # Diagnostics session shown in the Terminal pane
    terminal_command: str = "ping localhost"
    terminal_history: int = Field(default=47, gt=0)

    # Remote session shown in the SSH pane
    ssh_command: str = "ssh -tt dietpi@192.168.1.16 sspa -v -H -M"
    ssh_history: int = Field(default=20, gt=0)

    # Background source -> dashboard loop queues
    channel_capacity: int = Field(default=128, gt=0)

    # Dashboard loop
    refresh_interval: float = Field(default=0.05, gt=0)  # seconds per tick
    mouse_capture: bool = True

    # Child cleanup on exit
    terminate_timeout: float = Field(default=2.0, gt=0)

    # Logging goes to a file; the terminal belongs to the dashboard
    log_file: Path = DEFAULT_LOG_FILE
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"

    model_config = {"env_prefix": "SSPA_DASHBOARD_"}
