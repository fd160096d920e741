"""
MCP2210 Protocol Module
=======================

This module talks to a Microchip MCP2210 USB-to-SPI bridge over its
64-byte HID report interface. The caller opens the device; everything
from there on (framing, field encoding, chunked SPI transfers, settings
changes) is handled here.

Module Structure
----------------
- **commands**: Command codes, NVRAM parameters and enumerations
- **frame**: The 64-byte report buffer and its bit/word helpers
- **transport**: One request/response exchange with error checking
- **handles**: Adapters for hidraw files and hidapi devices
- **codec**: Field accessors for every settings block
- **views**: Typed dataclass snapshots of settings blocks
- **transfer**: Chunked full-duplex SPI transactions
- **operations**: EEPROM, password unlock, GP6 counter, status
- **changes**: Read-modify-write change sets for settings blocks

Quick Start
-----------
**Reading a JEDEC ID from a SPI flash** (CS on GP1):

    import hid
    from mcp2210.protocol import (
        Frame, Command, HidapiHandle, SpiSettings,
        get_command, transfer_bytes,
    )

    dev = hid.device()
    dev.open(0x04D8, 0x00DE)
    handle = HidapiHandle(dev)

    spi = get_command(handle, Frame(), Command.SPI_GET)
    print(SpiSettings.from_frame(spi))
    reply = transfer_bytes(handle, b"\\x9f\\x00\\x00\\x00", spi_frame=spi)
    print(reply.hex())

**Changing settings** (applied in a fixed order):

    apply_changes(
        handle,
        SpiChanges(Target.RUNTIME).bitrate(1_000_000).mode(0),
        GpioChanges().pin(3, 1),
    )

Error Handling
--------------
All communication errors inherit from `CommsError`:

- `IoError`: The handle failed or moved fewer than 64 bytes
- `DeviceError`: The chip answered with a non-zero status byte
- `ProtocolError`: The response does not match the request

These exceptions are defined in `mcp2210.errors`. Invalid argument
values raise `ValueError` before any I/O.

Thread Safety
-------------
The communication functions are NOT thread-safe. A handle must be used
from a single thread, or protected by external synchronization.
"""

# =============================================================================
# Public API Exports
# =============================================================================

# Constants and enumerations
from mcp2210.protocol.commands import (
    EEPROM_SIZE,
    GPIO_PINS,
    PACKET_SIZE,
    PASSWORD_LEN,
    SPI_CHUNK,
    SPI_TX_MAX,
    USB_STRING_MAX,
    AccessControl,
    BusOwner,
    Command,
    Gp6Mode,
    NvramParam,
    PinDirection,
    PinFunction,
    SpiStatus,
)

# Frame buffer
from mcp2210.protocol.frame import Frame, check_pin

# Packet transport
from mcp2210.protocol.transport import (
    DeviceHandle,
    exchange,
    get_command,
    get_nvram,
    set_nvram,
    sub_exchange,
)

# Device handle adapters
from mcp2210.protocol.handles import (
    MCP2210_PID,
    MCP2210_VID,
    FileHandle,
    HidapiHandle,
)

# Field codec
from mcp2210.protocol.codec import (
    UsbKeyLayout,
    decode_usb_string,
    delay_units_to_us,
    delay_us_to_units,
    encode_usb_string,
    usb_key_get_to_set,
)

# Settings views
from mcp2210.protocol.views import (
    ChipSettings,
    ChipStatus,
    GpioPins,
    SpiSettings,
    UsbKeySettings,
    UsbString,
)

# SPI transfers
from mcp2210.protocol.transfer import (
    SleepFunction,
    SpiTransfer,
    cancel,
    chunk_duration_ns,
    spi_transfer,
    transfer_bytes,
)

# Single-command operations
from mcp2210.protocol.operations import (
    get_status,
    gp6_count,
    read_eeprom,
    read_eeprom_range,
    unlock,
    write_eeprom,
)

# Settings changes
from mcp2210.protocol.changes import (
    ChipChanges,
    GpioChanges,
    SpiChanges,
    Target,
    UsbKeyChanges,
    UsbStringChange,
    apply_changes,
)

# Public API - what gets exported with "from mcp2210.protocol import *"
__all__ = [
    # Constants
    "EEPROM_SIZE",
    "GPIO_PINS",
    "PACKET_SIZE",
    "PASSWORD_LEN",
    "SPI_CHUNK",
    "SPI_TX_MAX",
    "USB_STRING_MAX",
    "MCP2210_PID",
    "MCP2210_VID",
    # Enums
    "AccessControl",
    "BusOwner",
    "Command",
    "Gp6Mode",
    "NvramParam",
    "PinDirection",
    "PinFunction",
    "SpiStatus",
    "Target",
    "UsbKeyLayout",
    # Frame and transport
    "Frame",
    "check_pin",
    "DeviceHandle",
    "exchange",
    "sub_exchange",
    "get_command",
    "get_nvram",
    "set_nvram",
    # Handles
    "FileHandle",
    "HidapiHandle",
    # Codec helpers
    "decode_usb_string",
    "encode_usb_string",
    "delay_units_to_us",
    "delay_us_to_units",
    "usb_key_get_to_set",
    # Views
    "ChipSettings",
    "ChipStatus",
    "GpioPins",
    "SpiSettings",
    "UsbKeySettings",
    "UsbString",
    # Transfers
    "SleepFunction",
    "SpiTransfer",
    "cancel",
    "chunk_duration_ns",
    "spi_transfer",
    "transfer_bytes",
    # Operations
    "get_status",
    "gp6_count",
    "read_eeprom",
    "read_eeprom_range",
    "unlock",
    "write_eeprom",
    # Changes
    "ChipChanges",
    "GpioChanges",
    "SpiChanges",
    "UsbKeyChanges",
    "UsbStringChange",
    "apply_changes",
]
