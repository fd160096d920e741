"""
MCP2210 Packet Transport
========================

This module performs exactly one request/response exchange with the
MCP2210 and classifies the outcome. It handles:

- Writing the command code (and sub-command) into the request frame
- Sending the full 64-byte report and reading a full 64-byte response
- Detecting short writes and short reads
- Turning a non-zero status byte into a DeviceError
- Verifying the command and sub-command echoes

Response Classification
-----------------------
After a complete response has been read into the frame:

1. Byte 1 != 0          -> DeviceError(byte 1)
2. Byte 0 != command    -> CommandMismatch
3. (sub-commands only) byte 2 != sub-command -> SubcommandMismatch

No retries happen at this layer. The SPI transfer engine is the only
component that knows which failures are transient.

Device Handle
-------------
Any object with blocking ``write(data) -> int`` and ``read(size) -> bytes``
methods can be used as a handle; see ``mcp2210.protocol.handles`` for
adapters around a hidraw file and an hidapi device.
"""

import logging
from typing import Protocol

from mcp2210.errors import (
    CommandMismatch,
    DeviceError,
    IoError,
    ShortReadError,
    ShortWriteError,
    SubcommandMismatch,
)
from mcp2210.protocol.commands import PACKET_SIZE, Command
from mcp2210.protocol.frame import Frame

# Configure module logger
logger = logging.getLogger(__name__)


class DeviceHandle(Protocol):
    """A blocking, report-oriented connection to one MCP2210."""

    def write(self, data: bytes) -> int:
        """Send one report, returning the number of bytes accepted."""
        ...

    def read(self, size: int) -> bytes:
        """Receive one report of at most size bytes."""
        ...


# =============================================================================
# Single Exchange
# =============================================================================

def exchange(handle: DeviceHandle, frame: Frame, command: int) -> Frame:
    """
    Issue a command and read its response into the same frame.

    Fills in the command code, sends the whole frame, replaces the frame
    contents with the response and does the error checking. The caller
    supplies (and owns) the frame.

    Args:
        handle: Device handle to talk to.
        frame: Request frame; holds the response on return.
        command: Command code written into byte 0.

    Returns:
        The same frame, now holding the response.

    Raises:
        IoError: If the handle fails or transfers fewer than 64 bytes.
        DeviceError: If the chip reports a non-zero status.
        CommandMismatch: If the response echoes a different command.
    """
    frame.command = command
    _send(handle, frame)
    _receive(handle, frame)

    if frame.status != 0:
        logger.debug(
            "Command 0x%02X rejected with status 0x%02X", command, frame.status
        )
        raise DeviceError(frame.status, command=command)

    if frame.command != command:
        raise CommandMismatch(command, frame.command)

    return frame


def sub_exchange(
    handle: DeviceHandle, frame: Frame, command: int, subcommand: int
) -> Frame:
    """
    Issue a command with a sub-command and verify the sub-command echo.

    Used for all NVRAM accesses, which are sub-commands of the generic
    NVRAM_GET / NVRAM_SET commands.

    Raises:
        SubcommandMismatch: If response byte 2 differs from subcommand.
        (plus everything exchange() raises)
    """
    frame.subcommand = subcommand
    exchange(handle, frame, command)

    if frame[2] != subcommand:
        raise SubcommandMismatch(subcommand, frame[2])

    return frame


# =============================================================================
# Convenience Wrappers
# =============================================================================

def get_command(handle: DeviceHandle, frame: Frame, command: int) -> Frame:
    """Zero the frame and issue a read-type command."""
    frame.clear()
    return exchange(handle, frame, command)


def get_nvram(handle: DeviceHandle, frame: Frame, param: int) -> Frame:
    """Zero the frame and read one block of power-up settings."""
    frame.clear()
    return sub_exchange(handle, frame, Command.NVRAM_GET, param)


def set_nvram(handle: DeviceHandle, frame: Frame, param: int) -> Frame:
    """Write one block of power-up settings from a populated frame."""
    sub_exchange(handle, frame, Command.NVRAM_SET, param)
    logger.info("Wrote NVRAM block 0x%02X", param)
    return frame


# =============================================================================
# Low-Level Report I/O
# =============================================================================

def _send(handle: DeviceHandle, frame: Frame) -> None:
    """Write the full frame, failing on error or short write."""
    try:
        written = handle.write(bytes(frame))
    except OSError as e:
        raise IoError(e.errno or 0, f"Write failed: {e}") from e

    if written != PACKET_SIZE:
        raise ShortWriteError(written or 0)

    logger.debug("TX: %s", bytes(frame[:16]).hex())


def _receive(handle: DeviceHandle, frame: Frame) -> None:
    """Read a full response into the frame, failing on error or short read."""
    try:
        data = handle.read(PACKET_SIZE)
    except OSError as e:
        raise IoError(e.errno or 0, f"Read failed: {e}") from e

    if data is None or len(data) != PACKET_SIZE:
        raise ShortReadError(len(data) if data else 0)

    frame.load(data)
    logger.debug("RX: %s", bytes(frame[:16]).hex())
