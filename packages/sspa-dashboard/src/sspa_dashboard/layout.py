"""
Layout and panel rendering for the SSPA dashboard.

Layout structure:
+-------------------------------------------------------------------+
|  Status (3 rows)                                                  |
+----------------+----------------+-----------+------------+--------+
| ADC (10)       | Ext (14)       | DAC (12)  | Control    | SSH    |
+----------------+                +-----------+ (42 cols)  |        |
| Registers (40) +----------------+ Offsets   |            |        |
|                | Ext Presets    | (10)      |            |        |
|                |                +-----------+------------+--------+
+----------------+                | Terminal                        |
| State (3)      +----------------+                                 |
|                | Compile (13)   |                                 |
| Firmware (3)   |                |                                 |
| Hard Reset (3) |                |                                 |
+----------------+----------------+---------------------------------+

Left and middle columns are 40 characters wide. Selectable panels get a
green border when focused and bold underline on the cursor item.
Process panes show the newest lines that fit.
"""

from rich.console import Console, ConsoleOptions, RenderResult
from rich.layout import Layout
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from sspa_dashboard.navigation import NavigationState, Panel as PanelId
from sspa_dashboard.registers import (
    DeviceState,
    bits,
    firmware_version,
    flag_color,
    register_color,
    state_color,
)

STATUS_FLAGS = [
    "SSPA_Active",
    "HW_Reflected_Power",
    "HW_Over_temperature",
    "HW_Over_drive",
    "HW_Gan1",
    "HW_Gan2",
    "HW_Gan3",
    "HW_Gan4",
    "SW_Reflected_Power",
    "SW_Direct_Power",
    "SW_Under_drive",
    "SW_Over_drive",
    "SW_Duty_Cycle",
    "SW_Over_Temperature",
    "SW_Over_Current",
]

MEASUREMENT_LABELS = [
    "Output Power",
    "Reflected Power",
    "Drive Level",
    "Temperature",
    "Gan 1 Current",
    "Gan 2 Current",
    "Gan 3 Current",
    "Gan 4 Current",
]

THRESHOLD_LABELS = [
    "Over Temperature Threshold",
    "Temperature Threshold Hysteresis",
    "Over Current Threshold",
    "Duty Cycle protection Threshold",
    "Pulse Length protection Threshold",
    "Over Drive protection Threshold",
    "Under Drive alarm Threshold",
    "Output Power protection Threshold",
    "Reflected Power protection Threshold",
    "SSPA serial number",
]

COMPILE_ACTIONS = [
    "[Build]",
    "[Clean Build]",
    "[Clean Build and Flash]",
    "[Build and Flash]",
    "[Flash]",
]

CONTROL_ACTIONS = [
    "[Store to Non Volatile Memory]",
    "[Load from Non Volatile Memory]",
    "[Alarms Reset]",
    "[SSPA Reset]",
    "[SSPA Disable]",
]

# Control register bit (MSB-first index) -> protection disable label
CONTROL_FLAGS = [
    (10, "SW Reflected Power protection disable"),
    (11, "SW Over drive protection disable"),
    (12, "SW Duty cycle protection disable"),
    (13, "SW Over temperature protection disable"),
    (14, "SW Over current protection disable"),
]


class TailText:
    """Renders only the last lines of a text that fit the available height."""

    def __init__(self, text: Text) -> None:
        self.text = text

    def __rich_console__(self, console: Console, options: ConsoleOptions) -> RenderResult:
        lines = list(self.text.wrap(console, options.max_width))
        if options.height is not None:
            if options.height <= 0:
                return
            lines = lines[-options.height :]
        yield Text("\n").join(lines)


def create_layout() -> Layout:
    """
    Create the dashboard layout.

    Access regions by name, e.g. layout["registers"] or layout["ssh"].

    Returns:
        Layout with one named region per panel
    """
    layout = Layout(name="root")
    layout.split_column(
        Layout(name="status", size=3),
        Layout(name="body"),
    )
    layout["body"].split_row(
        Layout(name="left", size=40),
        Layout(name="ext_column", size=40),
        Layout(name="right"),
    )
    layout["left"].split_column(
        Layout(name="adc", size=10),
        Layout(name="registers", size=40),
        Layout(name="state", size=3),
        Layout(name="spacer"),
        Layout(name="firmware", size=3),
        Layout(name="hard_reset", size=3),
    )
    layout["ext_column"].split_column(
        Layout(name="ext", size=14),
        Layout(name="ext_presets"),
        Layout(name="compile", size=13),
    )
    layout["right"].split_column(
        Layout(name="controls", size=22),
        Layout(name="terminal"),
    )
    layout["controls"].split_row(
        Layout(name="dac_column", size=40),
        Layout(name="control", size=42),
        Layout(name="ssh"),
    )
    layout["dac_column"].split_column(
        Layout(name="dac", size=12),
        Layout(name="offsets", size=10),
    )
    layout["spacer"].update(Text(""))
    return layout


def make_panel(content, title: str, style: str = "white") -> Panel:
    """
    Create a bordered panel.

    Args:
        content: Renderable or markup string
        title: Panel title
        style: Border style color
    """
    return Panel(content, title=title, title_align="left", border_style=style)


def make_selectable_panel(
    panel_id: PanelId,
    title: str,
    items: list[Text],
    navigation: NavigationState,
) -> Panel:
    """
    Create a list panel that reflects focus and cursor.

    Args:
        panel_id: Which navigable panel this is
        title: Panel title
        items: One Text per selectable item (may span several lines)
        navigation: Current focus/cursor state

    Returns:
        Panel with green border when focused and the cursor item underlined
    """
    focused = navigation.is_focused(panel_id)
    cursor = navigation.cursor(panel_id)
    body = Text(style="green" if focused else "white")
    for index, item in enumerate(items):
        line = item.copy()
        if index == cursor:
            line.stylize("bold underline")
        if index:
            body.append("\n")
        body.append_text(line)
    return make_panel(body, title, "green" if focused else "white")


def _measurement_line(label: str, value: int, style: str = "") -> Text:
    return Text(f"{label:<15}:{value:>20}", style=style)


def render_status(device: DeviceState) -> Panel:
    flags = bits(device.status_register)
    grid = Table.grid(padding=(0, 2))
    for _ in STATUS_FLAGS:
        grid.add_column(no_wrap=True)
    grid.add_row(
        *(Text(name, style=flag_color(on)) for name, on in zip(STATUS_FLAGS, flags))
    )
    return make_panel(grid, "Status", register_color(device.status_register))


def render_adc(device: DeviceState) -> Panel:
    body = Text("\n").join(
        _measurement_line(label, reg.value, register_color(reg))
        for label, reg in zip(MEASUREMENT_LABELS, device.adc)
    )
    return make_panel(body, "ADC Measurements")


def render_registers(device: DeviceState, navigation: NavigationState) -> Panel:
    items = [
        Text(f"{label}\n{reg.value:^30}\n", style=register_color(reg))
        for label, reg in zip(THRESHOLD_LABELS, device.thresholds)
    ]
    return make_selectable_panel(PanelId.REGISTERS, "Registers", items, navigation)


def render_state(device: DeviceState) -> Panel:
    text = Text(device.sspa_state.value, style=state_color(device.sspa_state), justify="center")
    return make_panel(text, "State")


def render_firmware(device: DeviceState) -> Panel:
    major, minor, patch = firmware_version(device.version_number)
    text = Text(
        f"v{major}.{minor}.{patch}",
        style=register_color(device.version_number),
        justify="center",
    )
    return make_panel(text, "Firmware Version")


def render_hard_reset(navigation: NavigationState) -> Panel:
    focused = navigation.is_focused(PanelId.HARD_RESET)
    text = Text("HARD RESET", style="red", justify="center")
    return make_panel(text, "Hard Reset", "green" if focused else "white")


def render_ext(device: DeviceState, navigation: NavigationState) -> Panel:
    period, pulse_width, count = device.cache_tnr
    items = [
        Text("Power Enable", style=flag_color(device.power_enable)),
        Text(f"TnR:\n{'Current':>12}:{device.current_tnr}"),
        Text(f"{'Period':>12}:{period:>20}"),
        Text(f"{'Pulse Width':>12}:{pulse_width:>20}"),
        Text(f"{'Count':>12}:{count:>20}"),
        Text(f"\n{'[LAUNCH]':^38}"),
        Text(f"\n{'[STOP]':^38}"),
        Text(f"\n{'[SAVE]':^38}"),
    ]
    return make_selectable_panel(PanelId.EXT, "Ext Signals", items, navigation)


def render_ext_presets(navigation: NavigationState) -> Panel:
    return make_selectable_panel(PanelId.EXT_PRESETS, "Ext Signals Presets", [], navigation)


def render_compile(navigation: NavigationState) -> Panel:
    items = [Text(f"\n{action:^38}") for action in COMPILE_ACTIONS]
    return make_selectable_panel(PanelId.COMPILE, "Compile", items, navigation)


def render_dac(device: DeviceState, navigation: NavigationState) -> Panel:
    items = [
        _measurement_line(label, value)
        for label, value in zip(MEASUREMENT_LABELS, device.dac)
    ]
    items.append(Text(f"\n{'[CLEAR]':^38}"))
    return make_selectable_panel(PanelId.DAC, "DAC", items, navigation)


def render_offsets(device: DeviceState, navigation: NavigationState) -> Panel:
    items = [
        _measurement_line(label, value)
        for label, value in zip(MEASUREMENT_LABELS, device.offsets)
    ]
    return make_selectable_panel(PanelId.OFFSETS, "Offsets", items, navigation)


def render_control(device: DeviceState, navigation: NavigationState) -> Panel:
    reg = device.control_register
    flags = bits(reg)
    items = [Text(f"\n{action:^40}", style=register_color(reg)) for action in CONTROL_ACTIONS]
    for position, (bit, label) in enumerate(CONTROL_FLAGS):
        prefix = "\n" if position == 0 else ""
        items.append(Text(f"{prefix}{label:^40}", style=flag_color(flags[bit])))
    return make_selectable_panel(PanelId.CONTROL, "Control", items, navigation)


def render_output(text: str, title: str) -> Panel:
    """Pane showing the tail of a process's output."""
    body = Text.from_ansi(text.replace("\r\n", "\n"))
    return make_panel(TailText(body), title)


def render(
    layout: Layout,
    device: DeviceState,
    navigation: NavigationState,
    terminal_text: str,
    ssh_text: str,
) -> Layout:
    """
    Fill every region of the layout from the current state.

    Args:
        layout: Layout from create_layout()
        device: Register snapshot
        navigation: Focus/cursor state
        terminal_text: Snapshot of the diagnostics process
        ssh_text: Snapshot of the remote shell process

    Returns:
        The same layout, updated
    """
    layout["status"].update(render_status(device))
    layout["adc"].update(render_adc(device))
    layout["registers"].update(render_registers(device, navigation))
    layout["state"].update(render_state(device))
    layout["firmware"].update(render_firmware(device))
    layout["hard_reset"].update(render_hard_reset(navigation))
    layout["ext"].update(render_ext(device, navigation))
    layout["ext_presets"].update(render_ext_presets(navigation))
    layout["compile"].update(render_compile(navigation))
    layout["dac"].update(render_dac(device, navigation))
    layout["offsets"].update(render_offsets(device, navigation))
    layout["control"].update(render_control(device, navigation))
    layout["ssh"].update(render_output(ssh_text, "SSH"))
    layout["terminal"].update(render_output(terminal_text, "Terminal"))
    return layout
