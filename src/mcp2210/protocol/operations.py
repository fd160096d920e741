"""
MCP2210 Single-Command Operations
=================================

Small operations that each need exactly one exchange (or a simple loop
of them): user EEPROM access, password unlock, the GP6 event counter
and the chip status.

Every operation builds its own zeroed frame; callers that want to
inspect the raw response can use the transport directly.
"""

import logging
from typing import Union

from mcp2210.errors import AddressMismatch
from mcp2210.protocol.commands import EEPROM_SIZE, PASSWORD_LEN, Command
from mcp2210.protocol.frame import Frame
from mcp2210.protocol.transport import DeviceHandle, exchange, get_command
from mcp2210.protocol.views import ChipStatus

# Configure module logger
logger = logging.getLogger(__name__)

# Request/response offsets
EEPROM_ADDRESS = 1
EEPROM_ECHO = 2
EEPROM_VALUE = 3
EEPROM_WRITE_VALUE = 2
PASSWORD_OFFSET = 4
GP6_NO_RESET = 1
GP6_COUNT = 4


def _check_address(address: int) -> None:
    if not 0 <= address < EEPROM_SIZE:
        raise ValueError(f"EEPROM address must be 0-{EEPROM_SIZE - 1}, got {address}")


# =============================================================================
# User EEPROM
# =============================================================================

def read_eeprom(handle: DeviceHandle, address: int) -> int:
    """
    Read one byte of user EEPROM.

    Raises:
        ValueError: If address is outside 0-255.
        AddressMismatch: If the response is for a different address.
    """
    _check_address(address)
    frame = Frame()
    frame[EEPROM_ADDRESS] = address
    exchange(handle, frame, Command.EEPROM_READ)

    if frame[EEPROM_ECHO] != address:
        raise AddressMismatch(address, frame[EEPROM_ECHO])

    return frame[EEPROM_VALUE]


def write_eeprom(handle: DeviceHandle, address: int, value: int) -> None:
    """Write one byte of user EEPROM."""
    _check_address(address)
    if not 0 <= value <= 0xFF:
        raise ValueError(f"EEPROM value must be a byte, got {value}")

    frame = Frame()
    frame[EEPROM_ADDRESS] = address
    frame[EEPROM_WRITE_VALUE] = value
    exchange(handle, frame, Command.EEPROM_WRITE)
    logger.debug("EEPROM[0x%02X] <- 0x%02X", address, value)


def read_eeprom_range(
    handle: DeviceHandle, start: int = 0, stop: int = EEPROM_SIZE
) -> bytes:
    """
    Read consecutive EEPROM bytes, one exchange per byte.

    The defaults read the whole 256-byte EEPROM. The first failing
    read aborts with its error.
    """
    if not 0 <= start <= stop <= EEPROM_SIZE:
        raise ValueError(f"Invalid EEPROM range {start}-{stop}")
    return bytes(read_eeprom(handle, address) for address in range(start, stop))


# =============================================================================
# Access Control
# =============================================================================

def unlock(handle: DeviceHandle, password: Union[bytes, str]) -> None:
    """
    Send the access password to unlock protected settings.

    Shorter passwords are padded with NUL bytes to 8 bytes.

    Raises:
        ValueError: If the password is longer than 8 bytes.
        DeviceError: Rejected password (ECONDACCESS) or chip locked.
    """
    if isinstance(password, str):
        password = password.encode("ascii")
    if len(password) > PASSWORD_LEN:
        raise ValueError(
            f"Password must be at most {PASSWORD_LEN} bytes, got {len(password)}"
        )

    frame = Frame()
    frame[PASSWORD_OFFSET:PASSWORD_OFFSET + PASSWORD_LEN] = password.ljust(
        PASSWORD_LEN, b"\x00"
    )
    exchange(handle, frame, Command.SEND_PASSWORD)
    logger.info("Device unlocked")


# =============================================================================
# Counters and Status
# =============================================================================

def gp6_count(handle: DeviceHandle, reset: bool = True) -> int:
    """
    Read the GP6 event counter.

    Args:
        handle: Device handle to talk to.
        reset: Clear the counter after reading it.

    Returns:
        The 16-bit event count.
    """
    frame = Frame()
    frame[GP6_NO_RESET] = 0 if reset else 1
    exchange(handle, frame, Command.GP6_COUNT_GET)
    return frame.get_u16(GP6_COUNT)


def get_status(handle: DeviceHandle) -> ChipStatus:
    """Read bus arbitration and password state."""
    return ChipStatus.from_frame(get_command(handle, Frame(), Command.STATUS_GET))
