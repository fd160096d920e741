"""
MCP2210 Command Codes and Protocol Constants
============================================

Numeric constants of the MCP2210 HID report protocol, as defined by the
Microchip datasheet (DS22288A). Every exchange with the chip is a single
64-byte report in each direction:

    Request:   [command] [sub-command / length / address] [payload ...]
    Response:  [command echo] [status, 0 = OK] [payload ...]

References
----------
- http://ww1.microchip.com/downloads/en/DeviceDoc/22288A.pdf
"""

from enum import IntEnum
from typing import Final


# =============================================================================
# Size Constants
# =============================================================================

# Size of every HID report, in both directions
PACKET_SIZE: Final[int] = 64

# Largest SPI transaction the chip accepts
SPI_TX_MAX: Final[int] = 65535

# Largest SPI payload carried by one report
SPI_CHUNK: Final[int] = 58

# Highest GPIO pin index (GP0-GP8)
GPIO_PINS: Final[int] = 8

# Largest USB string descriptor payload in bytes
USB_STRING_MAX: Final[int] = 58

# Length of the access password
PASSWORD_LEN: Final[int] = 8

# Highest EEPROM address
EEPROM_SIZE: Final[int] = 256


# =============================================================================
# Commands
# =============================================================================

class Command(IntEnum):
    """MCP2210 HID command codes (byte 0 of a request)."""

    STATUS_GET = 0x10
    SPI_CANCEL = 0x11
    GP6_COUNT_GET = 0x12

    CHIP_GET = 0x20
    CHIP_SET = 0x21

    GPIO_VAL_SET = 0x30
    GPIO_VAL_GET = 0x31
    GPIO_DIR_SET = 0x32
    GPIO_DIR_GET = 0x33

    SPI_SET = 0x40
    SPI_GET = 0x41
    SPI_TRANSFER = 0x42

    EEPROM_READ = 0x50
    EEPROM_WRITE = 0x51

    NVRAM_SET = 0x60
    NVRAM_GET = 0x61

    SEND_PASSWORD = 0x70


class NvramParam(IntEnum):
    """
    Sub-commands of NVRAM_GET / NVRAM_SET.

    These select which block of power-up settings is read or written.
    The sub-command is sent in byte 1 and echoed back in byte 2.
    """

    SPI = 0x10
    CHIP = 0x20
    USB_KEY = 0x30
    PRODUCT = 0x40
    MANUFACTURER = 0x50


# =============================================================================
# SPI Transfer Status
# =============================================================================

class SpiStatus(IntEnum):
    """Transfer status markers in byte 3 of an SPI_TRANSFER response."""

    END = 0x10
    STARTED = 0x20
    DATA = 0x30


# =============================================================================
# Chip Settings Values
# =============================================================================

class PinFunction(IntEnum):
    """Pin designation codes in chip settings bytes 4-12."""

    GPIO = 0x00
    CHIP_SELECT = 0x01
    DEDICATED = 0x02


class Gp6Mode(IntEnum):
    """GP6 event counter mode (chip settings byte 17, bits 1-3)."""

    NONE = 0x0
    FALLING_EDGES = 0x1
    RISING_EDGES = 0x2
    LOW_PULSES = 0x3
    HIGH_PULSES = 0x4


class AccessControl(IntEnum):
    """Settings protection level (chip settings byte 18)."""

    NONE = 0x00
    PASSWORD = 0x40
    LOCKED = 0x80


class BusOwner(IntEnum):
    """Current SPI bus owner reported by STATUS_GET (byte 3)."""

    NONE = 0x00
    USB = 0x01
    EXTERNAL = 0x02


class PinDirection(IntEnum):
    """GPIO direction bit values."""

    OUTPUT = 0
    INPUT = 1
