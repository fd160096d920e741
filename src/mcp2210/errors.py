"""
MCP2210 Error Hierarchy
=======================

This module defines the exception hierarchy for the MCP2210 package.
All exceptions inherit from MCP2210Error, allowing callers to catch all
bridge-related errors with a single except clause if desired.

Exception Hierarchy
-------------------
MCP2210Error (base)
└── CommsError (device communication)
    ├── IoError - write/read on the device handle failed
    │   ├── ShortWriteError - fewer than 64 bytes written
    │   └── ShortReadError - fewer than 64 bytes read
    ├── DeviceError - chip rejected the request (non-zero status byte)
    └── ProtocolError - response did not echo what was requested
        ├── CommandMismatch - wrong command code echoed
        ├── SubcommandMismatch - wrong NVRAM sub-command echoed
        ├── AddressMismatch - wrong EEPROM address echoed
        └── TransferStatusError - unknown SPI transfer status marker

Error Codes
-----------
Every CommsError carries a numeric ``code``. Codes 0xF7-0xFD are reported
by the chip in byte 1 of a response; codes 0x101-0x106 are raised by this
library when a response fails an integrity check. Codes below the device
range are operating-system errno values.
"""

import os
from typing import Final, Optional


# =============================================================================
# Error Codes
# =============================================================================

# Device error codes (response byte 1)
ESPIBUSY: Final[int] = 0xF7          # External master controls the bus
ESPIINPROGRESS: Final[int] = 0xF8    # SPI transfer already in progress
ENOCMD: Final[int] = 0xF9            # Unknown command
EWRFAIL: Final[int] = 0xFA           # EEPROM write failure
ELOCKED: Final[int] = 0xFB           # EEPROM locked
ENOACCESS: Final[int] = 0xFC         # Access rejected
ECONDACCESS: Final[int] = 0xFD       # Bad password

# Library error codes
EWRSHORT: Final[int] = 0x101
ERDSHORT: Final[int] = 0x102
EBADCMD: Final[int] = 0x103
EBADSUBCMD: Final[int] = 0x104
EBADADDR: Final[int] = 0x105
EBADTXSTAT: Final[int] = 0x106

# Lowest code that is interpreted as chip-reported rather than errno
DEVICE_ERROR_THRESHOLD: Final[int] = ESPIBUSY

_DESCRIPTIONS: Final[dict[int, str]] = {
    ESPIBUSY: "External master controls the SPI bus",
    ESPIINPROGRESS: "SPI transfer already in progress",
    ENOCMD: "No such command",
    EWRFAIL: "EEPROM write failed",
    ELOCKED: "EEPROM is locked",
    ENOACCESS: "Access rejected",
    ECONDACCESS: "Bad password",
    EWRSHORT: "Short write",
    ERDSHORT: "Short read",
    EBADCMD: "Response command code mismatch",
    EBADSUBCMD: "Response sub-command code mismatch",
    EBADADDR: "Response address mismatch",
    EBADTXSTAT: "Invalid SPI transfer status",
}


def describe_error(code: int) -> str:
    """
    Get the human-readable description of an error code.

    Codes below the device error range are looked up with os.strerror,
    everything else comes from the chip/library table.

    Args:
        code: Device, library or errno code.

    Returns:
        Description text, "Unknown error" for unrecognized codes.
    """
    if 0 < code < DEVICE_ERROR_THRESHOLD:
        return os.strerror(code)
    return _DESCRIPTIONS.get(code, "Unknown error")


# =============================================================================
# Base Exception Classes
# =============================================================================

class MCP2210Error(Exception):
    """
    Base exception for all MCP2210 errors.

    All exceptions in the package inherit from this class:

        try:
            spi_transfer(handle, spi_frame, buffer)
        except MCP2210Error as e:
            print(f"Error: {e}")
    """
    pass


class CommsError(MCP2210Error):
    """
    Base exception for errors talking to the bridge.

    Attributes:
        code: Numeric device, library or errno code.
    """

    def __init__(self, code: int, message: str = ""):
        self.code = code
        if not message:
            message = describe_error(code)
        super().__init__(message)


# =============================================================================
# I/O Errors
# =============================================================================

class IoError(CommsError):
    """
    Writing to or reading from the device handle failed.

    When the failure comes from the operating system the original
    OSError is chained as ``__cause__`` and its errno is used as code.
    """
    pass


class ShortWriteError(IoError):
    """The handle accepted fewer bytes than a full frame."""

    def __init__(self, written: int = 0):
        self.written = written
        super().__init__(EWRSHORT, f"Short write ({written} bytes)")


class ShortReadError(IoError):
    """The handle returned fewer bytes than a full frame."""

    def __init__(self, read: int = 0):
        self.read = read
        super().__init__(ERDSHORT, f"Short read ({read} bytes)")


# =============================================================================
# Device Errors
# =============================================================================

class DeviceError(CommsError):
    """
    Error reported by the MCP2210 in byte 1 of a response.

    Common codes:
    - 0xF7: External master controls the SPI bus
    - 0xF8: SPI transfer already in progress (retryable)
    - 0xF9: No such command
    - 0xFA: EEPROM write failed
    - 0xFB: EEPROM is locked
    - 0xFC: Access rejected
    - 0xFD: Bad password
    """

    def __init__(self, code: int, command: Optional[int] = None):
        self.command = command
        super().__init__(code)

    @property
    def busy(self) -> bool:
        """True when the chip is still busy with a previous transfer."""
        return self.code == ESPIINPROGRESS


# =============================================================================
# Protocol Errors
# =============================================================================

class ProtocolError(CommsError):
    """
    Response integrity error.

    Raised when the device answers with status 0 but the response does
    not match the request that was sent.
    """

    def __init__(self, code: int, expected: Optional[int], actual: int):
        self.expected = expected
        self.actual = actual
        if expected is None:
            message = f"{describe_error(code)}: 0x{actual:02X}"
        else:
            message = (
                f"{describe_error(code)}: expected 0x{expected:02X}, "
                f"got 0x{actual:02X}"
            )
        super().__init__(code, message)


class CommandMismatch(ProtocolError):
    """Response byte 0 does not echo the requested command."""

    def __init__(self, expected: int, actual: int):
        super().__init__(EBADCMD, expected, actual)


class SubcommandMismatch(ProtocolError):
    """Response byte 2 does not echo the requested NVRAM sub-command."""

    def __init__(self, expected: int, actual: int):
        super().__init__(EBADSUBCMD, expected, actual)


class AddressMismatch(ProtocolError):
    """EEPROM read response does not echo the requested address."""

    def __init__(self, expected: int, actual: int):
        super().__init__(EBADADDR, expected, actual)


class TransferStatusError(ProtocolError):
    """
    SPI transfer response carried an unknown status marker.

    Valid markers are 0x10 (transfer ended), 0x20 (transfer started)
    and 0x30 (data available).
    """

    def __init__(self, actual: int):
        super().__init__(EBADTXSTAT, None, actual)
