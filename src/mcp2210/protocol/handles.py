"""
Device Handle Adapters
======================

The packet transport talks to any object with blocking ``write`` and
``read`` methods moving one 64-byte report at a time. This module adapts
the two common ways of holding an already-opened MCP2210:

- **FileHandle**: a Linux ``/dev/hidraw<n>`` node opened in binary mode
  (or its raw file descriptor). Reports are written and read verbatim.
- **HidapiHandle**: a ``hid.device`` from the ``hidapi`` package.
  hidapi expects a leading report ID byte on writes; the MCP2210 uses
  report ID 0.

Finding and opening the device is left to the caller:

    import hid
    dev = hid.device()
    dev.open(0x04D8, 0x00DE)
    handle = HidapiHandle(dev)
"""

import logging
import os
from typing import TYPE_CHECKING, BinaryIO, Final, Union


if TYPE_CHECKING:
    import hid

# Configure module logger
logger = logging.getLogger(__name__)

# Microchip default USB IDs
MCP2210_VID: Final[int] = 0x04D8
MCP2210_PID: Final[int] = 0x00DE

# Report ID prepended to hidapi writes
REPORT_ID: Final[int] = 0x00


class FileHandle:
    """
    Handle over an opened hidraw file object or file descriptor.

    Args:
        file: Binary file object opened read/write without buffering,
              or an integer file descriptor.
    """

    def __init__(self, file: Union[BinaryIO, int]):
        self.file = file

    def write(self, data: bytes) -> int:
        if isinstance(self.file, int):
            return os.write(self.file, data)
        return self.file.write(data) or 0

    def read(self, size: int) -> bytes:
        if isinstance(self.file, int):
            return os.read(self.file, size)
        return self.file.read(size) or b""

    def close(self) -> None:
        if isinstance(self.file, int):
            os.close(self.file)
        else:
            self.file.close()


class HidapiHandle:
    """
    Handle over an opened hidapi device.

    hidapi counts the report ID byte in the write length, so a complete
    write reports PACKET_SIZE + 1; the adapter removes it again so the
    transport sees the report length only.

    Args:
        device: Opened ``hid.device`` instance.
        timeout_ms: Read timeout; 0 blocks until a report arrives.
    """

    def __init__(self, device: "hid.device", timeout_ms: int = 0):
        self.device = device
        self.timeout_ms = timeout_ms

    def write(self, data: bytes) -> int:
        written = self.device.write(bytes([REPORT_ID]) + bytes(data))
        if written < 0:
            raise OSError(f"hidapi write failed: {self.device.error()}")
        return max(written - 1, 0)

    def read(self, size: int) -> bytes:
        if self.timeout_ms:
            report = self.device.read(size, self.timeout_ms)
        else:
            report = self.device.read(size)
        logger.debug("hidapi read %d bytes", len(report))
        return bytes(report)

    def close(self) -> None:
        self.device.close()
