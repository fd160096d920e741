"""
MCP2210 Settings Views
======================

Typed snapshots of the settings blocks carried in command frames. Each
view decodes a frame with ``from_frame()`` and writes its fields back
with ``to_frame()``. ``to_frame()`` only touches the bytes and bits that
belong to the view's fields, so encoding a freshly decoded view into a
copy of its source frame reproduces that frame exactly.

All byte and bit positions come from ``mcp2210.protocol.codec``; the
views add names, units and range checks on top.

Usage:
    spi = SpiSettings.from_frame(get_command(handle, Frame(), Command.SPI_GET))
    print(f"{spi.bitrate} bit/s, mode {spi.mode}")
"""

from dataclasses import dataclass, field
from typing import Tuple

from mcp2210.protocol import codec
from mcp2210.protocol.commands import GPIO_PINS, PASSWORD_LEN, USB_STRING_MAX
from mcp2210.protocol.frame import PIN_MASK, Frame, check_pin

# Number of configurable pins (GP0..GP8)
PIN_COUNT = GPIO_PINS + 1


def _check_mask(name: str, mask: int) -> None:
    if not 0 <= mask <= PIN_MASK:
        raise ValueError(f"{name} must be a 9-bit pin mask, got 0x{mask:X}")


def _check_range(name: str, value: int, low: int, high: int) -> None:
    if not low <= value <= high:
        raise ValueError(f"{name} must be {low}-{high}, got {value}")


def _check_delay(name: str, delay_us: int) -> None:
    try:
        codec.delay_us_to_units(delay_us)
    except ValueError as e:
        raise ValueError(f"{name}: {e}") from e


# =============================================================================
# GPIO
# =============================================================================

@dataclass
class GpioPins:
    """
    GPIO values or directions (GPIO_VAL_* / GPIO_DIR_*).

    Structure:
        Offset  Size    Description
        ------  ----    -----------
        4       2       Pin bitmask, bit n = GPn (only bit 0 of byte 5)
    """
    mask: int = 0

    def __post_init__(self) -> None:
        _check_mask("GPIO mask", self.mask)

    def __getitem__(self, pin: int) -> int:
        return (self.mask >> check_pin(pin)) & 1

    @classmethod
    def from_frame(cls, frame: Frame) -> "GpioPins":
        return cls(mask=codec.gpio_get_pins(frame))

    def to_frame(self, frame: Frame) -> Frame:
        codec.gpio_set_pins(frame, self.mask)
        return frame


# =============================================================================
# SPI Settings
# =============================================================================

@dataclass
class SpiSettings:
    """
    SPI transfer settings (SPI_GET/SET and NVRAM SPI).

    Structure:
        Offset  Size    Description
        ------  ----    -----------
        4       4       Bit rate (bit/s)
        8       2       Active chip-select values
        10      2       Idle chip-select values
        12      2       CS to first data byte delay (100 us units)
        14      2       Last data byte to CS delay (100 us units)
        16      2       Delay between data bytes (100 us units)
        18      2       Bytes per SPI transaction
        20      1       SPI mode

    Delays are held in microseconds and must be multiples of 100.
    """
    bitrate: int = 0
    active_cs: int = 0
    idle_cs: int = 0
    cs_data_delay_us: int = 0
    data_cs_delay_us: int = 0
    byte_delay_us: int = 0
    transaction_size: int = 0
    mode: int = 0

    def __post_init__(self) -> None:
        _check_range("Bit rate", self.bitrate, 0, 0xFFFFFFFF)
        _check_mask("Active CS mask", self.active_cs)
        _check_mask("Idle CS mask", self.idle_cs)
        _check_delay("CS to data delay", self.cs_data_delay_us)
        _check_delay("Data to CS delay", self.data_cs_delay_us)
        _check_delay("Byte delay", self.byte_delay_us)
        _check_range("Transaction size", self.transaction_size, 0, 0xFFFF)
        _check_range("SPI mode", self.mode, 0, 0xFF)

    @classmethod
    def from_frame(cls, frame: Frame) -> "SpiSettings":
        return cls(
            bitrate=codec.spi_get_bitrate(frame),
            active_cs=codec.spi_get_active_cs(frame),
            idle_cs=codec.spi_get_idle_cs(frame),
            cs_data_delay_us=codec.delay_units_to_us(
                codec.spi_get_cs_data_delay_100us(frame)
            ),
            data_cs_delay_us=codec.delay_units_to_us(
                codec.spi_get_data_cs_delay_100us(frame)
            ),
            byte_delay_us=codec.delay_units_to_us(
                codec.spi_get_byte_delay_100us(frame)
            ),
            transaction_size=codec.spi_get_transaction_size(frame),
            mode=codec.spi_get_mode(frame),
        )

    def to_frame(self, frame: Frame) -> Frame:
        codec.spi_set_bitrate(frame, self.bitrate)
        codec.spi_set_active_cs(frame, self.active_cs)
        codec.spi_set_idle_cs(frame, self.idle_cs)
        codec.spi_set_cs_data_delay_100us(
            frame, codec.delay_us_to_units(self.cs_data_delay_us)
        )
        codec.spi_set_data_cs_delay_100us(
            frame, codec.delay_us_to_units(self.data_cs_delay_us)
        )
        codec.spi_set_byte_delay_100us(
            frame, codec.delay_us_to_units(self.byte_delay_us)
        )
        codec.spi_set_transaction_size(frame, self.transaction_size)
        codec.spi_set_mode(frame, self.mode)
        return frame


# =============================================================================
# Chip Settings
# =============================================================================

@dataclass
class ChipSettings:
    """
    Pin designations and power-up defaults (CHIP_GET/SET and NVRAM CHIP).

    Structure:
        Offset  Size    Description
        ------  ----    -----------
        4       9       Pin functions GP0..GP8 (see PinFunction)
        13      2       Default output values
        15      2       Default directions (1 = input)
        17      1       Flags: bit 0 no SPI release, bits 1-3 GP6 mode,
                        bit 4 remote wake-up
        18      1       Access control (see AccessControl)
        19      8       Password
    """
    functions: Tuple[int, ...] = field(default=(0,) * PIN_COUNT)
    default_output: int = 0
    default_direction: int = 0
    no_spi_release: bool = False
    gp6_mode: int = 0
    wakeup: bool = False
    access_control: int = 0
    password: bytes = bytes(PASSWORD_LEN)

    def __post_init__(self) -> None:
        self.functions = tuple(self.functions)
        if len(self.functions) != PIN_COUNT:
            raise ValueError(
                f"Need {PIN_COUNT} pin functions, got {len(self.functions)}"
            )
        for pin, function in enumerate(self.functions):
            _check_range(f"GP{pin} function", function, 0, 0xFF)
        _check_mask("Default output mask", self.default_output)
        _check_mask("Default direction mask", self.default_direction)
        _check_range("GP6 mode", self.gp6_mode, 0, 7)
        _check_range("Access control", self.access_control, 0, 0xFF)
        if len(self.password) != PASSWORD_LEN:
            raise ValueError(
                f"Password must be {PASSWORD_LEN} bytes, got {len(self.password)}"
            )

    @classmethod
    def from_frame(cls, frame: Frame) -> "ChipSettings":
        return cls(
            functions=tuple(
                codec.chip_get_function(frame, pin) for pin in range(PIN_COUNT)
            ),
            default_output=frame.get_pins(codec.CHIP_DEFAULT_OUTPUT),
            default_direction=frame.get_pins(codec.CHIP_DEFAULT_DIRECTION),
            no_spi_release=codec.chip_get_no_spi_release(frame),
            gp6_mode=codec.chip_get_gp6_mode(frame),
            wakeup=codec.chip_get_wakeup(frame),
            access_control=codec.chip_get_access_control(frame),
            password=codec.chip_get_access_password(frame),
        )

    def to_frame(self, frame: Frame) -> Frame:
        for pin, function in enumerate(self.functions):
            codec.chip_set_function(frame, pin, function)
        frame.set_pins(codec.CHIP_DEFAULT_OUTPUT, self.default_output)
        frame.set_pins(codec.CHIP_DEFAULT_DIRECTION, self.default_direction)
        codec.chip_set_no_spi_release(frame, self.no_spi_release)
        codec.chip_set_gp6_mode(frame, self.gp6_mode)
        codec.chip_set_wakeup(frame, self.wakeup)
        codec.chip_set_access_control(frame, self.access_control)
        codec.chip_set_access_password(frame, self.password)
        return frame


# =============================================================================
# USB Key
# =============================================================================

@dataclass
class UsbKeySettings:
    """
    USB identity and power parameters (NVRAM USB_KEY).

    The byte layout depends on whether the frame was read (NVRAM_GET)
    or is being written (NVRAM_SET); see codec.UsbKeyLayout. Both
    from_frame() and to_frame() pick the layout from byte 0 of the frame
    they are given.
    """
    vid: int = 0
    pid: int = 0
    host_powered: bool = False
    self_powered: bool = False
    remote_wakeup: bool = False
    current_ma: int = 0

    def __post_init__(self) -> None:
        _check_range("Vendor ID", self.vid, 0, 0xFFFF)
        _check_range("Product ID", self.pid, 0, 0xFFFF)
        _check_range("Current", self.current_ma, 0, 0x1FF)
        if self.current_ma % 2:
            raise ValueError(f"Current must be even, got {self.current_ma} mA")

    @classmethod
    def from_frame(cls, frame: Frame) -> "UsbKeySettings":
        layout = codec.UsbKeyLayout.of(frame)
        return cls(
            vid=codec.usb_key_get_vid(frame, layout),
            pid=codec.usb_key_get_pid(frame, layout),
            host_powered=codec.usb_key_get_host_powered(frame, layout),
            self_powered=codec.usb_key_get_self_powered(frame, layout),
            remote_wakeup=codec.usb_key_get_remote_wakeup(frame, layout),
            current_ma=codec.usb_key_get_current_2ma(frame, layout) * 2,
        )

    def to_frame(self, frame: Frame) -> Frame:
        layout = codec.UsbKeyLayout.of(frame)
        codec.usb_key_set_vid(frame, self.vid, layout)
        codec.usb_key_set_pid(frame, self.pid, layout)
        codec.usb_key_set_host_powered(frame, self.host_powered, layout)
        codec.usb_key_set_self_powered(frame, self.self_powered, layout)
        codec.usb_key_set_remote_wakeup(frame, self.remote_wakeup, layout)
        codec.usb_key_set_current_2ma(frame, self.current_ma // 2, layout)
        return frame


# =============================================================================
# USB Strings
# =============================================================================

@dataclass
class UsbString:
    """
    Product or manufacturer string (NVRAM PRODUCT / MANUFACTURER).

    Holds the raw UTF-16LE descriptor payload; ``text`` decodes it.
    """
    payload: bytes = b""

    def __post_init__(self) -> None:
        if len(self.payload) > USB_STRING_MAX:
            raise ValueError(
                f"USB string too long: {len(self.payload)} bytes, max {USB_STRING_MAX}"
            )

    @property
    def text(self) -> str:
        return codec.decode_usb_string(self.payload)

    @classmethod
    def from_text(cls, text: str) -> "UsbString":
        return cls(payload=codec.encode_usb_string(text))

    @classmethod
    def from_frame(cls, frame: Frame) -> "UsbString":
        return cls(payload=codec.usb_string_get(frame))

    def to_frame(self, frame: Frame) -> Frame:
        # A length byte below the header decodes as empty; keep it as is
        if codec.usb_string_get(frame) != self.payload:
            codec.usb_string_set(frame, self.payload)
        return frame


# =============================================================================
# Chip Status
# =============================================================================

@dataclass
class ChipStatus:
    """
    Bus arbitration and password state (STATUS_GET, SPI_CANCEL).

    The two flags keep the raw byte the chip reported; any non-zero
    value means set.
    """
    no_ext_request: int = 0
    bus_owner: int = 0
    password_count: int = 0
    password_guessed: int = 0

    @classmethod
    def from_frame(cls, frame: Frame) -> "ChipStatus":
        return cls(
            no_ext_request=codec.status_no_ext_request(frame),
            bus_owner=codec.status_bus_owner(frame),
            password_count=codec.status_password_count(frame),
            password_guessed=codec.status_password_guessed(frame),
        )

    def to_frame(self, frame: Frame) -> Frame:
        frame[codec.STATUS_EXT_REQUEST] = self.no_ext_request
        frame[codec.STATUS_BUS_OWNER] = self.bus_owner
        frame[codec.STATUS_PASSWORD_COUNT] = self.password_count
        frame[codec.STATUS_PASSWORD_GUESSED] = self.password_guessed
        return frame
