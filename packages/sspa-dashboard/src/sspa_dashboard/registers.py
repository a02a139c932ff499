"""
SSPA register decoding and display attributes.

Registers are 16-bit words whose most significant bit makes the total
number of set bits even. Decoding yields:
- PARITY_ERROR when the bit count is odd
- WARNING for 0xFFFF (all ones, typically an unread register)
- OK otherwise

The payload is the low 15 bits. Colors are Rich color names so the layout
can use them directly in styles.

Register values shown by the dashboard are placeholders; nothing here
talks to the amplifier.
"""

from dataclasses import dataclass, field
from enum import Enum

REGISTER_MASK = 0x7FFF
REGISTER_BITS = 15


class RegisterState(Enum):
    PARITY_ERROR = "parity_error"
    WARNING = "warning"
    OK = "ok"


class SSPAState(Enum):
    """Operating state reported by the amplifier."""

    INVALID = "Invalid"
    BOOT = "Boot"
    STANDBY = "StandBy"
    FAILURE = "Failure"
    DISABLED = "Disabled"
    NOMINAL = "Nominal"
    WARNING = "Warning"
    PROTECTION_HW = "ProtectionHW"
    PROTECTION = "Protection"


@dataclass(frozen=True)
class Register:
    """
    A decoded register word.

    Attributes:
        state: Parity/validity of the raw word
        value: Payload (low 15 bits)
    """

    state: RegisterState
    value: int

    @classmethod
    def from_raw(cls, raw: int) -> "Register":
        """
        Decode a raw 16-bit word.

        Args:
            raw: Word as read from the device (0..0xFFFF)

        Raises:
            ValueError: If raw does not fit in 16 bits
        """
        if not 0 <= raw <= 0xFFFF:
            raise ValueError(f"register word out of range: {raw:#x}")
        if bin(raw).count("1") % 2:
            state = RegisterState.PARITY_ERROR
        elif raw == 0xFFFF:
            state = RegisterState.WARNING
        else:
            state = RegisterState.OK
        return cls(state=state, value=raw & REGISTER_MASK)


def bits(register: Register) -> list[bool]:
    """Payload bits, most significant (bit 14) first."""
    return [bool(register.value & (1 << n)) for n in reversed(range(REGISTER_BITS))]


def firmware_version(register: Register) -> tuple[int, int, int]:
    """Split a version register into (major, minor, patch)."""
    value = register.value
    return (value >> 8) & 0x7F, (value >> 4) & 0x0F, value & 0x0F


def register_color(register: Register) -> str:
    if register.state is RegisterState.PARITY_ERROR:
        return "red"
    if register.state is RegisterState.WARNING:
        return "yellow"
    return "white"


def flag_color(flag: bool) -> str:
    return "white" if flag else "bright_black"


def state_color(state: SSPAState) -> str:
    if state in (SSPAState.INVALID, SSPAState.FAILURE, SSPAState.PROTECTION):
        return "red"
    if state in (SSPAState.WARNING, SSPAState.PROTECTION_HW):
        return "yellow"
    if state is SSPAState.BOOT:
        return "blue"
    return "white"


def _registers(count: int) -> list[Register]:
    return [Register.from_raw(0) for _ in range(count)]


@dataclass
class DeviceState:
    """
    Placeholder snapshot of every register group the dashboard shows.

    Attributes:
        status_register: Alarm and activity flags
        adc: Output/reflected power, drive, temperature, four GaN currents
        thresholds: Protection thresholds and the serial number
        sspa_state: Operating state
        version_number: Firmware version register
        power_enable: External power enable line
        current_tnr: Live TnR (period, pulse width, count)
        cache_tnr: TnR values staged for the next launch
        dac: DAC setpoints, same order as adc
        offsets: Calibration offsets, same order as adc
        control_register: Control flags
    """

    status_register: Register = field(default_factory=lambda: Register.from_raw(0))
    adc: list[Register] = field(default_factory=lambda: _registers(8))
    thresholds: list[Register] = field(default_factory=lambda: _registers(10))
    sspa_state: SSPAState = SSPAState.INVALID
    version_number: Register = field(default_factory=lambda: Register.from_raw(0))
    power_enable: bool = True
    current_tnr: list[int] = field(default_factory=lambda: [0, 0, 0])
    cache_tnr: list[int] = field(default_factory=lambda: [0, 0, 0])
    dac: list[int] = field(default_factory=lambda: [0] * 8)
    offsets: list[int] = field(default_factory=lambda: [0] * 8)
    control_register: Register = field(default_factory=lambda: Register.from_raw(0))
