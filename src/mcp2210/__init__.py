"""
MCP2210 - Host-Side Library for the Microchip USB-to-SPI Bridge
===============================================================

The MCP2210 is a USB HID device that exposes an SPI master, nine GPIO
pins, a small user EEPROM and a set of power-up settings stored in its
NVRAM. Every interaction is a 64-byte report sent to the chip followed
by a 64-byte response.

Main Components
---------------
- **protocol**: Report framing, field codec, SPI transfers, settings
    views and change sets
- **errors**: Exception hierarchy and error code descriptions
- **config**: Tunables of the SPI transfer engine

Quick Start
-----------
    >>> import hid
    >>> from mcp2210 import HidapiHandle, transfer_bytes
    >>> dev = hid.device()
    >>> dev.open(0x04D8, 0x00DE)
    >>> transfer_bytes(HidapiHandle(dev), b"\\x9f\\x00\\x00\\x00").hex()
    '00ef4018'

Opening and enumerating devices is left to the caller (hidapi, or a
``/dev/hidraw*`` node wrapped in ``FileHandle``).
"""

__version__ = "1.0.0"

# =============================================================================
# Public API Exports
# =============================================================================

from mcp2210.errors import (
    MCP2210Error,
    CommsError,
    IoError,
    ShortWriteError,
    ShortReadError,
    DeviceError,
    ProtocolError,
    CommandMismatch,
    SubcommandMismatch,
    AddressMismatch,
    TransferStatusError,
    describe_error,
)
from mcp2210.protocol import (
    Command,
    NvramParam,
    Frame,
    DeviceHandle,
    FileHandle,
    HidapiHandle,
    exchange,
    sub_exchange,
    SpiTransfer,
    spi_transfer,
    transfer_bytes,
    cancel,
    ChipSettings,
    ChipStatus,
    GpioPins,
    SpiSettings,
    UsbKeySettings,
    UsbString,
    ChipChanges,
    GpioChanges,
    SpiChanges,
    Target,
    UsbKeyChanges,
    UsbStringChange,
    apply_changes,
)

# Imported after the protocol package, which loads it through the transfer engine
from mcp2210.config import TransferConfig

__all__ = [
    "__version__",
    # Configuration
    "TransferConfig",
    # Errors
    "MCP2210Error",
    "CommsError",
    "IoError",
    "ShortWriteError",
    "ShortReadError",
    "DeviceError",
    "ProtocolError",
    "CommandMismatch",
    "SubcommandMismatch",
    "AddressMismatch",
    "TransferStatusError",
    "describe_error",
    # Protocol
    "Command",
    "NvramParam",
    "Frame",
    "DeviceHandle",
    "FileHandle",
    "HidapiHandle",
    "exchange",
    "sub_exchange",
    "SpiTransfer",
    "spi_transfer",
    "transfer_bytes",
    "cancel",
    # Views
    "ChipSettings",
    "ChipStatus",
    "GpioPins",
    "SpiSettings",
    "UsbKeySettings",
    "UsbString",
    # Changes
    "ChipChanges",
    "GpioChanges",
    "SpiChanges",
    "Target",
    "UsbKeyChanges",
    "UsbStringChange",
    "apply_changes",
]
