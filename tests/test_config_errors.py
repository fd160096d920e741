"""
Tests for Configuration and Errors
==================================

- TransferConfig defaults, validation and environment loading
- Error hierarchy, codes and descriptions
- Hardware tests (skipped unless a device is configured)
"""

import errno
import os

import pytest

from mcp2210.config import TransferConfig
from mcp2210.errors import (
    AddressMismatch,
    CommandMismatch,
    CommsError,
    DeviceError,
    IoError,
    MCP2210Error,
    ProtocolError,
    ShortReadError,
    ShortWriteError,
    SubcommandMismatch,
    TransferStatusError,
    describe_error,
)


# =============================================================================
# Configuration Tests
# =============================================================================

class TestTransferConfig:
    """Tests for transfer engine configuration."""

    def test_defaults(self):
        config = TransferConfig()
        assert config.chunk_size == 58
        assert config.busy_retry_delay == 0.005
        assert config.byte_delay_overhead_ns == 30_000
        assert config.pace is True

    @pytest.mark.parametrize("kwargs", [
        {"chunk_size": 0},
        {"chunk_size": 59},
        {"busy_retry_delay": -1},
        {"byte_delay_overhead_ns": -1},
    ])
    def test_invalid(self, kwargs):
        with pytest.raises(ValueError):
            TransferConfig(**kwargs)

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("MCP2210_CHUNK_SIZE", "32")
        monkeypatch.setenv("MCP2210_BUSY_RETRY_DELAY", "0.01")
        monkeypatch.setenv("MCP2210_PACE", "off")
        config = TransferConfig.from_env()
        assert config.chunk_size == 32
        assert config.busy_retry_delay == 0.01
        assert config.pace is False

    def test_from_env_defaults(self, monkeypatch):
        for name in ("MCP2210_CHUNK_SIZE", "MCP2210_BUSY_RETRY_DELAY", "MCP2210_PACE"):
            monkeypatch.delenv(name, raising=False)
        assert TransferConfig.from_env() == TransferConfig()

    def test_from_env_invalid(self, monkeypatch):
        monkeypatch.setenv("MCP2210_PACE", "maybe")
        with pytest.raises(ValueError):
            TransferConfig.from_env()


# =============================================================================
# Error Tests
# =============================================================================

class TestErrors:
    """Tests for error classes."""

    def test_hierarchy(self):
        assert issubclass(CommsError, MCP2210Error)
        assert issubclass(IoError, CommsError)
        assert issubclass(ShortWriteError, IoError)
        assert issubclass(ShortReadError, IoError)
        assert issubclass(DeviceError, CommsError)
        for cls in (CommandMismatch, SubcommandMismatch, AddressMismatch, TransferStatusError):
            assert issubclass(cls, ProtocolError)

    @pytest.mark.parametrize("code, text", [
        (0xF7, "External master controls the SPI bus"),
        (0xF8, "SPI transfer already in progress"),
        (0xF9, "No such command"),
        (0xFA, "EEPROM write failed"),
        (0xFB, "EEPROM is locked"),
        (0xFC, "Access rejected"),
        (0xFD, "Bad password"),
        (0x101, "Short write"),
        (0x102, "Short read"),
        (0x103, "Response command code mismatch"),
        (0x104, "Response sub-command code mismatch"),
        (0x105, "Response address mismatch"),
        (0x106, "Invalid SPI transfer status"),
        (0xFE, "Unknown error"),
    ])
    def test_descriptions(self, code, text):
        assert describe_error(code) == text

    def test_errno_description(self):
        """Small codes are operating system errors."""
        assert describe_error(errno.EIO) == os.strerror(errno.EIO)

    def test_device_error_message(self):
        error = DeviceError(0xFD)
        assert error.code == 0xFD
        assert str(error) == "Bad password"
        assert not error.busy
        assert DeviceError(0xF8).busy

    def test_protocol_error_message(self):
        error = CommandMismatch(0x41, 0x21)
        assert "expected 0x41, got 0x21" in str(error)
        assert "0x30" not in str(TransferStatusError(0x55))
        assert str(TransferStatusError(0x55)).endswith("0x55")

    def test_catch_all(self):
        with pytest.raises(MCP2210Error):
            raise ShortReadError(3)


# =============================================================================
# Hardware Tests
# =============================================================================

# Real device tests need MCP2210_DEVICE=/dev/hidrawN
hardware_marker = pytest.mark.skipif(
    not os.environ.get("MCP2210_DEVICE"),
    reason="Hardware tests require a real MCP2210 (set MCP2210_DEVICE)"
)


@pytest.mark.hardware
@hardware_marker
class TestHardware:
    """Tests that require real MCP2210 hardware."""

    def _open(self):
        from mcp2210.protocol.handles import FileHandle
        fd = os.open(os.environ["MCP2210_DEVICE"], os.O_RDWR)
        return FileHandle(fd)

    def test_status(self):
        """Read the chip status."""
        from mcp2210.protocol.operations import get_status
        handle = self._open()
        try:
            status = get_status(handle)
            assert status.bus_owner in (0, 1, 2)
        finally:
            handle.close()

    def test_spi_settings(self):
        """Read the runtime SPI settings."""
        from mcp2210.protocol import Command, Frame, SpiSettings, get_command
        handle = self._open()
        try:
            spi = SpiSettings.from_frame(get_command(handle, Frame(), Command.SPI_GET))
            assert spi.bitrate > 0
        finally:
            handle.close()
