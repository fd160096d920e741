"""
MCP2210 Field Codec
===================

Pure accessors translating between logical settings and byte/bit
positions inside a Frame. Every logical field has a getter and a setter;
none of them perform I/O and none check that the frame's command matches
the field being accessed. Use them on the frame returned by the matching
GET command (or on a frame being built for the matching SET command).

Frame Layouts
-------------
Status (STATUS_GET):
    2 external request flag, 3 bus owner, 4 password attempts,
    5 password guessed

GPIO value/direction (GPIO_VAL_*, GPIO_DIR_*):
    4-5 pin bitmask

Chip settings (CHIP_GET/SET, NVRAM CHIP):
    4-12 pin functions, 13-14 default output, 15-16 default direction,
    17 flags (bit 0 no SPI release, bits 1-3 GP6 mode, bit 4 wake-up),
    18 access control, 19-26 password

SPI settings (SPI_GET/SET, NVRAM SPI):
    4-7 bit rate, 8-9 active CS, 10-11 idle CS, 12-13 CS-to-data delay,
    14-15 data-to-CS delay, 16-17 inter-byte delay, 18-19 transaction
    size, 20 SPI mode

USB key (NVRAM USB_KEY):
    The same logical fields live at different offsets in a frame read
    with NVRAM_GET and in a frame written with NVRAM_SET:

        field       GET layout   SET layout
        VID         12-13        4-5
        PID         14-15        6-7
        power flags 29           8
        current     30           9

    The layout is chosen from byte 0 of the frame. A fetched frame must
    be remapped with usb_key_get_to_set() before it can be sent.

USB strings (NVRAM PRODUCT / MANUFACTURER):
    4 descriptor length (payload + 2), 6-63 UTF-16LE payload
"""

from dataclasses import dataclass
from enum import Enum
from typing import Final, Optional

from mcp2210.protocol.commands import (
    PASSWORD_LEN,
    USB_STRING_MAX,
    Command,
)
from mcp2210.protocol.frame import Frame, check_pin


# =============================================================================
# Field Offsets
# =============================================================================

# Status
STATUS_EXT_REQUEST: Final[int] = 2
STATUS_BUS_OWNER: Final[int] = 3
STATUS_PASSWORD_COUNT: Final[int] = 4
STATUS_PASSWORD_GUESSED: Final[int] = 5

# GPIO
GPIO_PINS_OFFSET: Final[int] = 4

# Chip settings
CHIP_FUNCTION: Final[int] = 4
CHIP_DEFAULT_OUTPUT: Final[int] = 13
CHIP_DEFAULT_DIRECTION: Final[int] = 15
CHIP_FLAGS: Final[int] = 17
CHIP_ACCESS_CONTROL: Final[int] = 18
CHIP_PASSWORD: Final[int] = 19

CHIP_FLAG_NO_SPI_RELEASE: Final[int] = 0x01
CHIP_FLAG_GP6_MODE: Final[int] = 0x0E
CHIP_FLAG_WAKEUP: Final[int] = 0x10

# SPI settings
SPI_BITRATE: Final[int] = 4
SPI_ACTIVE_CS: Final[int] = 8
SPI_IDLE_CS: Final[int] = 10
SPI_CS_DATA_DELAY: Final[int] = 12
SPI_DATA_CS_DELAY: Final[int] = 14
SPI_BYTE_DELAY: Final[int] = 16
SPI_TRANSACTION_SIZE: Final[int] = 18
SPI_MODE: Final[int] = 20

# USB key power flags
USB_HOST_POWERED: Final[int] = 0x80
USB_SELF_POWERED: Final[int] = 0x40
USB_REMOTE_WAKEUP: Final[int] = 0x20

# USB string descriptor
USB_STRING_LENGTH: Final[int] = 4
USB_STRING_PAYLOAD: Final[int] = 6

# Length byte counts the 2-byte descriptor header as well
USB_STRING_HEADER: Final[int] = 2

# Delay fields count units of 100 microseconds
DELAY_UNIT_US: Final[int] = 100


# =============================================================================
# Status
# =============================================================================

def status_no_ext_request(frame: Frame) -> int:
    """Raw flag byte, non-zero if no external master has requested the bus."""
    return frame[STATUS_EXT_REQUEST]


def status_bus_owner(frame: Frame) -> int:
    """Current SPI bus owner (see BusOwner)."""
    return frame[STATUS_BUS_OWNER]


def status_password_count(frame: Frame) -> int:
    """Number of password attempts made so far."""
    return frame[STATUS_PASSWORD_COUNT]


def status_password_guessed(frame: Frame) -> int:
    """Raw flag byte, non-zero once the access password has been supplied."""
    return frame[STATUS_PASSWORD_GUESSED]


# =============================================================================
# GPIO Values and Directions
# =============================================================================

def gpio_get_pin(frame: Frame, pin: int) -> int:
    return frame.get_pin(GPIO_PINS_OFFSET, pin)


def gpio_set_pin(frame: Frame, pin: int, value: int) -> None:
    frame.set_pin(GPIO_PINS_OFFSET, pin, value)


def gpio_get_pins(frame: Frame) -> int:
    return frame.get_pins(GPIO_PINS_OFFSET)


def gpio_set_pins(frame: Frame, mask: int) -> None:
    frame.set_pins(GPIO_PINS_OFFSET, mask)


# =============================================================================
# Chip Settings
# =============================================================================

def chip_get_function(frame: Frame, pin: int) -> int:
    """Pin designation (see PinFunction)."""
    return frame[CHIP_FUNCTION + check_pin(pin)]


def chip_set_function(frame: Frame, pin: int, function: int) -> None:
    frame[CHIP_FUNCTION + check_pin(pin)] = function


def chip_get_default_output(frame: Frame, pin: int) -> int:
    return frame.get_pin(CHIP_DEFAULT_OUTPUT, pin)


def chip_set_default_output(frame: Frame, pin: int, value: int) -> None:
    frame.set_pin(CHIP_DEFAULT_OUTPUT, pin, value)


def chip_get_default_direction(frame: Frame, pin: int) -> int:
    return frame.get_pin(CHIP_DEFAULT_DIRECTION, pin)


def chip_set_default_direction(frame: Frame, pin: int, value: int) -> None:
    frame.set_pin(CHIP_DEFAULT_DIRECTION, pin, value)


def chip_get_wakeup(frame: Frame) -> bool:
    return frame.get_flag(CHIP_FLAGS, CHIP_FLAG_WAKEUP)


def chip_set_wakeup(frame: Frame, enabled: bool) -> None:
    frame.set_flag(CHIP_FLAGS, CHIP_FLAG_WAKEUP, enabled)


def chip_get_gp6_mode(frame: Frame) -> int:
    """GP6 event counter mode (see Gp6Mode)."""
    return (frame[CHIP_FLAGS] >> 1) & 0x07


def chip_set_gp6_mode(frame: Frame, mode: int) -> None:
    frame[CHIP_FLAGS] = (frame[CHIP_FLAGS] & ~CHIP_FLAG_GP6_MODE & 0xFF) | (
        (mode & 0x07) << 1
    )


def chip_get_no_spi_release(frame: Frame) -> bool:
    """True if the chip keeps the SPI bus between transfers."""
    return frame.get_flag(CHIP_FLAGS, CHIP_FLAG_NO_SPI_RELEASE)


def chip_set_no_spi_release(frame: Frame, no_release: bool) -> None:
    frame.set_flag(CHIP_FLAGS, CHIP_FLAG_NO_SPI_RELEASE, no_release)


def chip_get_access_control(frame: Frame) -> int:
    """Settings protection level (see AccessControl)."""
    return frame[CHIP_ACCESS_CONTROL]


def chip_set_access_control(frame: Frame, setting: int) -> None:
    frame[CHIP_ACCESS_CONTROL] = setting


def chip_get_access_password(frame: Frame) -> bytes:
    return bytes(frame[CHIP_PASSWORD:CHIP_PASSWORD + PASSWORD_LEN])


def chip_set_access_password(frame: Frame, password: bytes) -> None:
    """
    Copy exactly 8 password bytes into the frame.

    Padding a shorter password is up to the caller.

    Raises:
        ValueError: If password is not exactly 8 bytes long.
    """
    if len(password) != PASSWORD_LEN:
        raise ValueError(
            f"Password must be {PASSWORD_LEN} bytes, got {len(password)}"
        )
    frame[CHIP_PASSWORD:CHIP_PASSWORD + PASSWORD_LEN] = bytes(password)


# =============================================================================
# SPI Settings
# =============================================================================

def spi_get_bitrate(frame: Frame) -> int:
    """SPI clock in bits per second."""
    return frame.get_u32(SPI_BITRATE)


def spi_set_bitrate(frame: Frame, bitrate: int) -> None:
    frame.set_u32(SPI_BITRATE, bitrate)


def spi_get_pin_active_cs(frame: Frame, pin: int) -> int:
    return frame.get_pin(SPI_ACTIVE_CS, pin)


def spi_set_pin_active_cs(frame: Frame, pin: int, value: int) -> None:
    frame.set_pin(SPI_ACTIVE_CS, pin, value)


def spi_get_pin_idle_cs(frame: Frame, pin: int) -> int:
    return frame.get_pin(SPI_IDLE_CS, pin)


def spi_set_pin_idle_cs(frame: Frame, pin: int, value: int) -> None:
    frame.set_pin(SPI_IDLE_CS, pin, value)


def spi_get_active_cs(frame: Frame) -> int:
    return frame.get_pins(SPI_ACTIVE_CS)


def spi_set_active_cs(frame: Frame, mask: int) -> None:
    frame.set_pins(SPI_ACTIVE_CS, mask)


def spi_get_idle_cs(frame: Frame) -> int:
    return frame.get_pins(SPI_IDLE_CS)


def spi_set_idle_cs(frame: Frame, mask: int) -> None:
    frame.set_pins(SPI_IDLE_CS, mask)


def spi_get_cs_data_delay_100us(frame: Frame) -> int:
    return frame.get_u16(SPI_CS_DATA_DELAY)


def spi_set_cs_data_delay_100us(frame: Frame, delay_100us: int) -> None:
    frame.set_u16(SPI_CS_DATA_DELAY, delay_100us)


def spi_get_data_cs_delay_100us(frame: Frame) -> int:
    return frame.get_u16(SPI_DATA_CS_DELAY)


def spi_set_data_cs_delay_100us(frame: Frame, delay_100us: int) -> None:
    frame.set_u16(SPI_DATA_CS_DELAY, delay_100us)


def spi_get_byte_delay_100us(frame: Frame) -> int:
    return frame.get_u16(SPI_BYTE_DELAY)


def spi_set_byte_delay_100us(frame: Frame, delay_100us: int) -> None:
    frame.set_u16(SPI_BYTE_DELAY, delay_100us)


def spi_get_transaction_size(frame: Frame) -> int:
    return frame.get_u16(SPI_TRANSACTION_SIZE)


def spi_set_transaction_size(frame: Frame, size: int) -> None:
    frame.set_u16(SPI_TRANSACTION_SIZE, size)


def spi_get_mode(frame: Frame) -> int:
    return frame[SPI_MODE]


def spi_set_mode(frame: Frame, mode: int) -> None:
    frame[SPI_MODE] = mode


def delay_us_to_units(delay_us: int) -> int:
    """
    Convert a delay in microseconds to the 100 us units stored on the chip.

    Raises:
        ValueError: If the delay is not a multiple of 100 us or the scaled
                    value does not fit in 16 bits.
    """
    if delay_us % DELAY_UNIT_US:
        raise ValueError(f"Delay not a multiple of 100 us: {delay_us}")
    units = delay_us // DELAY_UNIT_US
    if not 0 <= units <= 0xFFFF:
        raise ValueError(f"Delay out of range: {delay_us} us")
    return units


def delay_units_to_us(units: int) -> int:
    """Convert 100 us units back to microseconds."""
    return units * DELAY_UNIT_US


# =============================================================================
# USB Key Descriptor
# =============================================================================

@dataclass(frozen=True)
class _UsbKeyOffsets:
    vid: int
    pid: int
    flags: int
    current: int


class UsbKeyLayout(Enum):
    """
    Byte layout of a USB key settings frame.

    GET is the shape of an NVRAM_GET response, SET the shape of an
    NVRAM_SET request. Both carry the same logical fields.
    """

    GET = _UsbKeyOffsets(vid=12, pid=14, flags=29, current=30)
    SET = _UsbKeyOffsets(vid=4, pid=6, flags=8, current=9)

    @classmethod
    def of(cls, frame: Frame) -> "UsbKeyLayout":
        """
        Determine the layout from byte 0 of the frame.

        Raises:
            ValueError: If byte 0 is neither NVRAM_GET nor NVRAM_SET.
        """
        if frame.command == Command.NVRAM_SET:
            return cls.SET
        if frame.command == Command.NVRAM_GET:
            return cls.GET
        raise ValueError(
            f"Not a USB key frame: command byte 0x{frame.command:02X}"
        )


def _layout(frame: Frame, layout: Optional[UsbKeyLayout]) -> _UsbKeyOffsets:
    return (layout or UsbKeyLayout.of(frame)).value


def usb_key_get_vid(frame: Frame, layout: Optional[UsbKeyLayout] = None) -> int:
    return frame.get_u16(_layout(frame, layout).vid)


def usb_key_set_vid(
    frame: Frame, vid: int, layout: Optional[UsbKeyLayout] = None
) -> None:
    frame.set_u16(_layout(frame, layout).vid, vid)


def usb_key_get_pid(frame: Frame, layout: Optional[UsbKeyLayout] = None) -> int:
    return frame.get_u16(_layout(frame, layout).pid)


def usb_key_set_pid(
    frame: Frame, pid: int, layout: Optional[UsbKeyLayout] = None
) -> None:
    frame.set_u16(_layout(frame, layout).pid, pid)


def usb_key_get_host_powered(
    frame: Frame, layout: Optional[UsbKeyLayout] = None
) -> bool:
    return frame.get_flag(_layout(frame, layout).flags, USB_HOST_POWERED)


def usb_key_set_host_powered(
    frame: Frame, on: bool, layout: Optional[UsbKeyLayout] = None
) -> None:
    frame.set_flag(_layout(frame, layout).flags, USB_HOST_POWERED, on)


def usb_key_get_self_powered(
    frame: Frame, layout: Optional[UsbKeyLayout] = None
) -> bool:
    return frame.get_flag(_layout(frame, layout).flags, USB_SELF_POWERED)


def usb_key_set_self_powered(
    frame: Frame, on: bool, layout: Optional[UsbKeyLayout] = None
) -> None:
    frame.set_flag(_layout(frame, layout).flags, USB_SELF_POWERED, on)


def usb_key_get_remote_wakeup(
    frame: Frame, layout: Optional[UsbKeyLayout] = None
) -> bool:
    return frame.get_flag(_layout(frame, layout).flags, USB_REMOTE_WAKEUP)


def usb_key_set_remote_wakeup(
    frame: Frame, on: bool, layout: Optional[UsbKeyLayout] = None
) -> None:
    frame.set_flag(_layout(frame, layout).flags, USB_REMOTE_WAKEUP, on)


def usb_key_get_current_2ma(
    frame: Frame, layout: Optional[UsbKeyLayout] = None
) -> int:
    """Requested bus current in units of 2 mA."""
    return frame[_layout(frame, layout).current]


def usb_key_set_current_2ma(
    frame: Frame, current: int, layout: Optional[UsbKeyLayout] = None
) -> None:
    frame[_layout(frame, layout).current] = current


def usb_key_get_to_set(get_frame: Frame) -> Frame:
    """
    Remap a fetched USB key frame into a new frame ready for NVRAM_SET.

    The two layouts overlap, so this is a field-by-field copy rather
    than a byte copy.
    """
    src = UsbKeyLayout.GET.value
    dst = UsbKeyLayout.SET.value

    set_frame = Frame()
    set_frame.command = Command.NVRAM_SET
    set_frame[1] = get_frame[1]
    set_frame.set_u16(dst.vid, get_frame.get_u16(src.vid))
    set_frame.set_u16(dst.pid, get_frame.get_u16(src.pid))
    set_frame[dst.flags] = get_frame[src.flags]
    set_frame[dst.current] = get_frame[src.current]
    return set_frame


# =============================================================================
# USB String Descriptors
# =============================================================================

def usb_string_get_len(frame: Frame) -> int:
    """Payload length in bytes (descriptor length minus the header)."""
    return max(frame[USB_STRING_LENGTH] - USB_STRING_HEADER, 0)


def usb_string_get(frame: Frame) -> bytes:
    """Raw UTF-16LE payload of a product or manufacturer string."""
    length = min(usb_string_get_len(frame), USB_STRING_MAX)
    return bytes(frame[USB_STRING_PAYLOAD:USB_STRING_PAYLOAD + length])


def usb_string_set(frame: Frame, payload: bytes) -> None:
    """
    Store a raw UTF-16LE payload and its descriptor length.

    Raises:
        ValueError: If the payload exceeds 58 bytes.
    """
    if len(payload) > USB_STRING_MAX:
        raise ValueError(
            f"USB string too long: {len(payload)} bytes, max {USB_STRING_MAX}"
        )
    frame[USB_STRING_PAYLOAD:USB_STRING_PAYLOAD + len(payload)] = bytes(payload)
    frame[USB_STRING_LENGTH] = len(payload) + USB_STRING_HEADER


def encode_usb_string(text: str) -> bytes:
    """Encode text as a USB string descriptor payload."""
    return text.encode("utf-16-le")


def decode_usb_string(payload: bytes) -> str:
    """Decode a USB string descriptor payload, replacing broken units."""
    return payload.decode("utf-16-le", errors="replace")
