"""
MCP2210 Settings Changes
========================

Change sets collect requested modifications to one settings block and
apply them with a single read-modify-write cycle:

1. Fetch the current block (GET command or NVRAM_GET)
2. Change only the requested fields
3. Send the block back (SET command or NVRAM_SET)

Builders are chained and applied explicitly:

    SpiChanges(Target.RUNTIME).bitrate(1_000_000).mode(3).apply(handle)

Several change sets can be applied together with apply_changes(), which
always writes the blocks in the same order (GPIO values, GPIO
directions, chip settings, SPI settings, USB key, manufacturer, product;
runtime before NVRAM) regardless of the order they are passed in.

Values are validated when they are recorded, so an invalid request
raises ValueError before any I/O happens. An empty change set performs
no I/O at all.
"""

import logging
from enum import Enum
from typing import Callable, Dict, List, Optional, Tuple, Union

from mcp2210.protocol import codec
from mcp2210.protocol.commands import (
    PASSWORD_LEN,
    USB_STRING_MAX,
    AccessControl,
    Command,
    Gp6Mode,
    NvramParam,
    PinFunction,
)
from mcp2210.protocol.frame import Frame, check_pin
from mcp2210.protocol.transport import (
    DeviceHandle,
    exchange,
    get_command,
    get_nvram,
    set_nvram,
)

# Configure module logger
logger = logging.getLogger(__name__)

# Type alias for a recorded field update
FieldSetter = Callable[[Frame], None]

# Accepted SPI clock range (bit/s)
BITRATE_MIN = 1464
BITRATE_MAX = 12_000_000

# Highest requestable USB bus current (mA)
CURRENT_MAX_MA = 0x1FF


class Target(Enum):
    """Where a change set is written."""
    RUNTIME = "runtime"
    NVRAM = "nvram"


def _check_range(name: str, value: int, low: int, high: int) -> int:
    if not low <= value <= high:
        raise ValueError(f"{name} must be {low}-{high}, got {value}")
    return value


# =============================================================================
# Change Set Base
# =============================================================================

class _Changes:
    """
    Common read-modify-write machinery.

    A change set addresses either a runtime block (``read_command`` /
    ``write_command``) or, when ``param`` is set, an NVRAM block.
    Subclasses record field updates with _record(). ``order`` positions
    the change set within apply_changes().
    """

    order = 0
    read_command: Command
    write_command: Command

    def __init__(self, param: Optional[NvramParam] = None):
        self.param = param
        self.fields: Dict[str, FieldSetter] = {}

    @property
    def empty(self) -> bool:
        return not self.fields

    def _record(self, name: str, setter: FieldSetter) -> None:
        # A later request for the same field replaces the earlier one
        self.fields[name] = setter

    def _fetch(self, handle: DeviceHandle) -> Frame:
        if self.param is not None:
            return get_nvram(handle, Frame(), self.param)
        return get_command(handle, Frame(), self.read_command)

    def mutate(self, frame: Frame) -> Frame:
        """Apply the recorded changes to a frame without any I/O."""
        for setter in self.fields.values():
            setter(frame)
        return frame

    def apply(self, handle: DeviceHandle) -> Optional[Frame]:
        """
        Fetch, modify and send the settings block.

        Returns:
            A copy of the frame that was sent, or None if there was
            nothing to change.
        """
        if self.empty:
            return None

        frame = self.mutate(self._fetch(handle))
        if self.param is not None:
            frame.command = Command.NVRAM_SET
            frame.subcommand = self.param
            sent = frame.copy()
            set_nvram(handle, frame, self.param)
        else:
            frame.command = self.write_command
            sent = frame.copy()
            exchange(handle, frame, self.write_command)

        logger.debug(
            "%s: applied %s", type(self).__name__, ", ".join(self.fields)
        )
        return sent

    def __repr__(self) -> str:
        return f"{type(self).__name__}({', '.join(self.fields)})"


class _TargetedChanges(_Changes):
    """Change set for a block that exists both at runtime and in NVRAM."""

    nvram_block: NvramParam
    runtime_order = 0
    nvram_order = 0

    def __init__(self, target: Target = Target.RUNTIME):
        super().__init__(self.nvram_block if target is Target.NVRAM else None)
        self.target = target
        self.order = self.nvram_order if target is Target.NVRAM else self.runtime_order


# =============================================================================
# GPIO
# =============================================================================

class GpioChanges(_Changes):
    """
    Runtime GPIO output values or pin directions.

    Args:
        direction: Change pin directions instead of output values.
    """

    def __init__(self, direction: bool = False):
        super().__init__()
        self.direction = direction
        if direction:
            self.order = 1
            self.read_command = Command.GPIO_DIR_GET
            self.write_command = Command.GPIO_DIR_SET
        else:
            self.order = 0
            self.read_command = Command.GPIO_VAL_GET
            self.write_command = Command.GPIO_VAL_SET

    def pin(self, pin: int, value: int) -> "GpioChanges":
        """Set one pin (value: 0/1, or 1 = input for directions)."""
        check_pin(pin)
        bit = 1 if value else 0
        self._record(
            f"gp{pin}", lambda frame: codec.gpio_set_pin(frame, pin, bit)
        )
        return self

    def pins(self, values: Dict[int, int]) -> "GpioChanges":
        """Set several pins from a {pin: value} map."""
        for pin, value in values.items():
            self.pin(pin, value)
        return self


# =============================================================================
# Chip Settings
# =============================================================================

class ChipChanges(_TargetedChanges):
    """Pin designations and power-up defaults."""

    read_command = Command.CHIP_GET
    write_command = Command.CHIP_SET
    nvram_block = NvramParam.CHIP
    runtime_order = 2
    nvram_order = 3

    def function(self, pin: int, function: PinFunction) -> "ChipChanges":
        check_pin(pin)
        function = PinFunction(function)
        self._record(
            f"function{pin}",
            lambda frame: codec.chip_set_function(frame, pin, function),
        )
        return self

    def default_output(self, pin: int, value: int) -> "ChipChanges":
        check_pin(pin)
        bit = 1 if value else 0
        self._record(
            f"default_output{pin}",
            lambda frame: codec.chip_set_default_output(frame, pin, bit),
        )
        return self

    def default_direction(self, pin: int, value: int) -> "ChipChanges":
        check_pin(pin)
        bit = 1 if value else 0
        self._record(
            f"default_direction{pin}",
            lambda frame: codec.chip_set_default_direction(frame, pin, bit),
        )
        return self

    def gp6_mode(self, mode: Gp6Mode) -> "ChipChanges":
        mode = Gp6Mode(mode)
        self._record("gp6_mode", lambda frame: codec.chip_set_gp6_mode(frame, mode))
        return self

    def wakeup(self, enabled: bool) -> "ChipChanges":
        self._record("wakeup", lambda frame: codec.chip_set_wakeup(frame, enabled))
        return self

    def no_spi_release(self, no_release: bool) -> "ChipChanges":
        self._record(
            "no_spi_release",
            lambda frame: codec.chip_set_no_spi_release(frame, no_release),
        )
        return self

    def access_control(self, setting: AccessControl) -> "ChipChanges":
        """Protection level; only stored in NVRAM."""
        self._require_nvram("Access control")
        setting = AccessControl(setting)
        self._record(
            "access_control",
            lambda frame: codec.chip_set_access_control(frame, setting),
        )
        return self

    def password(self, password: Union[bytes, str]) -> "ChipChanges":
        """New access password, NUL-padded to 8 bytes; only stored in NVRAM."""
        self._require_nvram("Password")
        if isinstance(password, str):
            password = password.encode("ascii")
        if len(password) > PASSWORD_LEN:
            raise ValueError(
                f"Password must be at most {PASSWORD_LEN} bytes, got {len(password)}"
            )
        padded = password.ljust(PASSWORD_LEN, b"\x00")
        self._record(
            "password", lambda frame: codec.chip_set_access_password(frame, padded)
        )
        return self

    def _require_nvram(self, what: str) -> None:
        if self.target is not Target.NVRAM:
            raise ValueError(f"{what} can only be changed in NVRAM")


# =============================================================================
# SPI Settings
# =============================================================================

class SpiChanges(_TargetedChanges):
    """SPI transfer settings."""

    read_command = Command.SPI_GET
    write_command = Command.SPI_SET
    nvram_block = NvramParam.SPI
    runtime_order = 4
    nvram_order = 5

    def bitrate(self, bitrate: int) -> "SpiChanges":
        _check_range("Bit rate", bitrate, BITRATE_MIN, BITRATE_MAX)
        self._record("bitrate", lambda frame: codec.spi_set_bitrate(frame, bitrate))
        return self

    def active_cs(self, pin: int, value: int) -> "SpiChanges":
        """Chip-select level of a pin while a transfer runs."""
        check_pin(pin)
        bit = 1 if value else 0
        self._record(
            f"active_cs{pin}",
            lambda frame: codec.spi_set_pin_active_cs(frame, pin, bit),
        )
        return self

    def idle_cs(self, pin: int, value: int) -> "SpiChanges":
        """Chip-select level of a pin between transfers."""
        check_pin(pin)
        bit = 1 if value else 0
        self._record(
            f"idle_cs{pin}",
            lambda frame: codec.spi_set_pin_idle_cs(frame, pin, bit),
        )
        return self

    def cs_data_delay(self, delay_us: int) -> "SpiChanges":
        units = codec.delay_us_to_units(delay_us)
        self._record(
            "cs_data_delay",
            lambda frame: codec.spi_set_cs_data_delay_100us(frame, units),
        )
        return self

    def data_cs_delay(self, delay_us: int) -> "SpiChanges":
        units = codec.delay_us_to_units(delay_us)
        self._record(
            "data_cs_delay",
            lambda frame: codec.spi_set_data_cs_delay_100us(frame, units),
        )
        return self

    def byte_delay(self, delay_us: int) -> "SpiChanges":
        units = codec.delay_us_to_units(delay_us)
        self._record(
            "byte_delay",
            lambda frame: codec.spi_set_byte_delay_100us(frame, units),
        )
        return self

    def transaction_size(self, size: int) -> "SpiChanges":
        _check_range("Transaction size", size, 1, 0xFFFF)
        self._record(
            "transaction_size",
            lambda frame: codec.spi_set_transaction_size(frame, size),
        )
        return self

    def mode(self, mode: int) -> "SpiChanges":
        _check_range("SPI mode", mode, 0, 3)
        self._record("mode", lambda frame: codec.spi_set_mode(frame, mode))
        return self


# =============================================================================
# USB Key
# =============================================================================

class UsbKeyChanges(_Changes):
    """
    USB identity and power parameters (NVRAM only).

    The fetched block comes back in the NVRAM_GET layout; it is remapped
    to the NVRAM_SET layout before the changes are applied.
    """

    order = 6

    def __init__(self):
        super().__init__(NvramParam.USB_KEY)

    def vid(self, vid: int) -> "UsbKeyChanges":
        _check_range("Vendor ID", vid, 0, 0xFFFF)
        self._record("vid", lambda frame: codec.usb_key_set_vid(frame, vid))
        return self

    def pid(self, pid: int) -> "UsbKeyChanges":
        _check_range("Product ID", pid, 0, 0xFFFF)
        self._record("pid", lambda frame: codec.usb_key_set_pid(frame, pid))
        return self

    def host_powered(self, on: bool) -> "UsbKeyChanges":
        self._record(
            "host_powered", lambda frame: codec.usb_key_set_host_powered(frame, on)
        )
        return self

    def self_powered(self, on: bool) -> "UsbKeyChanges":
        self._record(
            "self_powered", lambda frame: codec.usb_key_set_self_powered(frame, on)
        )
        return self

    def remote_wakeup(self, on: bool) -> "UsbKeyChanges":
        self._record(
            "remote_wakeup", lambda frame: codec.usb_key_set_remote_wakeup(frame, on)
        )
        return self

    def current(self, current_ma: int) -> "UsbKeyChanges":
        """Requested bus current in mA (even, 0-510)."""
        _check_range("Current", current_ma, 0, CURRENT_MAX_MA)
        if current_ma % 2:
            raise ValueError(f"Current must be even, got {current_ma} mA")
        self._record(
            "current",
            lambda frame: codec.usb_key_set_current_2ma(frame, current_ma // 2),
        )
        return self

    def _fetch(self, handle: DeviceHandle) -> Frame:
        fetched = get_nvram(handle, Frame(), NvramParam.USB_KEY)
        return codec.usb_key_get_to_set(fetched)


# =============================================================================
# USB Strings
# =============================================================================

class UsbStringChange(_Changes):
    """
    Replace the product or manufacturer string (NVRAM only).

    Args:
        param: NvramParam.PRODUCT or NvramParam.MANUFACTURER.
        value: New string, as text or raw UTF-16LE payload (max 58 bytes).
    """

    def __init__(
        self, param: NvramParam, value: Optional[Union[str, bytes]] = None
    ):
        if param not in (NvramParam.PRODUCT, NvramParam.MANUFACTURER):
            raise ValueError(f"Not a USB string parameter: {param!r}")
        super().__init__(NvramParam(param))
        self.order = 8 if self.param is NvramParam.PRODUCT else 7
        if value is not None:
            self.set(value)

    def set(self, value: Union[str, bytes]) -> "UsbStringChange":
        payload = (
            codec.encode_usb_string(value) if isinstance(value, str) else bytes(value)
        )
        if len(payload) > USB_STRING_MAX:
            raise ValueError(
                f"USB string too long: {len(payload)} bytes, max {USB_STRING_MAX}"
            )
        self._record("string", lambda frame: codec.usb_string_set(frame, payload))
        return self


# =============================================================================
# Batch Apply
# =============================================================================

ChangeSet = Union[GpioChanges, ChipChanges, SpiChanges, UsbKeyChanges, UsbStringChange]


def apply_changes(
    handle: DeviceHandle, *changes: ChangeSet
) -> List[Tuple[ChangeSet, Frame]]:
    """
    Apply several change sets in the fixed block order.

    Empty change sets are skipped. The first failure stops the batch;
    blocks written before it stay written.

    Returns:
        (change set, sent frame) pairs in the order they were applied.
    """
    applied = []
    for change in sorted(changes, key=lambda c: c.order):
        if change.empty:
            continue
        applied.append((change, change.apply(handle)))
    return applied
