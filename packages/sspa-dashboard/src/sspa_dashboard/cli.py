"""SSPA dashboard CLI - terminal dashboard for the SSPA power amplifier."""

import asyncio
import logging
from pathlib import Path

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from sspa_dashboard.config import DashboardSettings
from sspa_dashboard.controller import DashboardController
from sspa_dashboard.exceptions import InputReadError, SpawnError
from sspa_dashboard.navigation import (
    FOCUS_TRANSITIONS,
    INITIAL_PANEL,
    PANEL_ITEM_COUNTS,
    Direction,
    Panel,
)

app = typer.Typer(
    name="sspa-dashboard",
    help="Terminal dashboard for monitoring and operating an SSPA",
    no_args_is_help=True,
)


def configure_logging(log_file: Path, level: str) -> None:
    """Send log records to a file so they never land on the dashboard screen."""
    log_file.parent.mkdir(parents=True, exist_ok=True)
    logging.basicConfig(
        filename=log_file,
        level=level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@app.command("run")
def run_dashboard(
    terminal_command: str = typer.Option(
        None,
        "--terminal-command",
        "-t",
        envvar="SSPA_DASHBOARD_TERMINAL_COMMAND",
        help="Diagnostics command shown in the Terminal pane",
    ),
    ssh_command: str = typer.Option(
        None,
        "--ssh-command",
        "-s",
        envvar="SSPA_DASHBOARD_SSH_COMMAND",
        help="Remote session command shown in the SSH pane",
    ),
    refresh: float = typer.Option(
        None, "--refresh", "-r", help="Seconds between dashboard ticks"
    ),
    no_mouse: bool = typer.Option(
        False, "--no-mouse", help="Do not capture mouse events"
    ),
    log_file: Path = typer.Option(None, "--log-file", help="Path of the log file"),
    log_level: str = typer.Option(None, "--log-level", help="Logging level"),
) -> None:
    """
    Run the dashboard.

    Keys:
        arrows / h j k l          move the cursor in the focused panel
        Ctrl + arrows / h j k l   move focus to another panel
        q / Esc                   quit
    """
    overrides = {
        "terminal_command": terminal_command,
        "ssh_command": ssh_command,
        "refresh_interval": refresh,
        "log_file": log_file,
        "log_level": log_level.upper() if log_level else None,
        "mouse_capture": False if no_mouse else None,
    }
    console = Console()
    try:
        settings = DashboardSettings(
            **{k: v for k, v in overrides.items() if v is not None}
        )
        configure_logging(settings.log_file, settings.log_level)
    except ValidationError as e:
        for error in e.errors():
            field = ".".join(str(part) for part in error["loc"])
            console.print(f"[red]ERROR: Invalid {field}: {escape(error['msg'])}[/red]")
        raise typer.Exit(1)
    except OSError as e:
        console.print(f"[red]ERROR: Cannot open log file: {escape(str(e))}[/red]")
        raise typer.Exit(1)

    controller = DashboardController(settings, console=console)
    try:
        asyncio.run(controller.run())
    except SpawnError as e:
        console.print(f"[red]ERROR: {e}[/red]")
        raise typer.Exit(1)
    except InputReadError as e:
        console.print(f"[red]ERROR: {e}[/red]")
        raise typer.Exit(1)


@app.command("panels")
def show_panels() -> None:
    """Print the focus transition table and item counts."""
    console = Console()
    table = Table(title="Panel navigation (Ctrl + direction)")
    table.add_column("Panel", style="cyan")
    for direction in Direction:
        table.add_column(direction.name.title())
    table.add_column("Items", justify="right")

    for panel in Panel:
        name = f"{panel.name} *" if panel is INITIAL_PANEL else panel.name
        table.add_row(
            name,
            *(FOCUS_TRANSITIONS[panel][d].name for d in Direction),
            str(PANEL_ITEM_COUNTS[panel]),
        )

    console.print(table)
    console.print("[dim]* focused at startup[/dim]")


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
