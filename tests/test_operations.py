"""
Tests for Single-Command Operations
===================================

EEPROM access, password unlock, GP6 counter and chip status.
"""

import pytest

from mcp2210.errors import AddressMismatch, DeviceError
from mcp2210.protocol.commands import BusOwner, Command
from mcp2210.protocol.operations import (
    get_status,
    gp6_count,
    read_eeprom,
    read_eeprom_range,
    unlock,
    write_eeprom,
)


class TestEeprom:
    """Tests for user EEPROM access."""

    def test_read(self, handle):
        """The address goes in byte 1, the value comes back in byte 3."""
        handle.reply(Command.EEPROM_READ, values={2: 0x42, 3: 0x99})
        assert read_eeprom(handle, 0x42) == 0x99
        assert handle.writes[0][:2] == bytes([Command.EEPROM_READ, 0x42])

    def test_read_address_mismatch(self, handle):
        """A response for another address is rejected."""
        handle.reply(Command.EEPROM_READ, values={2: 0x43, 3: 0x99})
        with pytest.raises(AddressMismatch) as exc_info:
            read_eeprom(handle, 0x42)
        assert exc_info.value.code == 0x105
        assert (exc_info.value.expected, exc_info.value.actual) == (0x42, 0x43)

    def test_write(self, handle):
        """Address in byte 1, value in byte 2."""
        handle.reply(Command.EEPROM_WRITE)
        write_eeprom(handle, 0x10, 0xAB)
        assert handle.writes[0][:3] == bytes([Command.EEPROM_WRITE, 0x10, 0xAB])

    def test_write_locked(self, handle):
        """A locked EEPROM reports ELOCKED."""
        handle.reply(Command.EEPROM_WRITE, status=0xFB)
        with pytest.raises(DeviceError) as exc_info:
            write_eeprom(handle, 0, 0)
        assert exc_info.value.code == 0xFB

    @pytest.mark.parametrize("address", [-1, 256])
    def test_invalid_address(self, handle, address):
        with pytest.raises(ValueError):
            read_eeprom(handle, address)
        assert handle.writes == []

    def test_dump(self, make_handle):
        """The whole EEPROM is read one byte at a time."""
        def device(request):
            address = request[1]
            report = bytearray(64)
            report[0] = Command.EEPROM_READ
            report[2] = address
            report[3] = address ^ 0x5A
            return bytes(report)

        handle = make_handle(device)
        data = read_eeprom_range(handle)
        assert len(data) == 256
        assert len(handle.writes) == 256
        assert data[0x10] == 0x10 ^ 0x5A

    def test_range_stops_on_error(self, handle):
        """The first failed read aborts the range."""
        handle.reply(Command.EEPROM_READ, values={2: 0, 3: 1})
        handle.reply(Command.EEPROM_READ, status=0xF9)
        with pytest.raises(DeviceError):
            read_eeprom_range(handle, 0, 4)
        assert len(handle.writes) == 2


class TestUnlock:
    """Tests for the password unlock."""

    def test_padded_password(self, handle):
        """Short passwords are NUL-padded into bytes 4-11."""
        handle.reply(Command.SEND_PASSWORD)
        unlock(handle, "abc")
        sent = handle.writes[0]
        assert sent[0] == Command.SEND_PASSWORD
        assert sent[4:12] == b"abc\x00\x00\x00\x00\x00"
        assert sent[12:] == bytes(52)

    def test_bad_password(self, handle):
        """A rejected password raises ECONDACCESS."""
        handle.reply(Command.SEND_PASSWORD, status=0xFD)
        with pytest.raises(DeviceError, match="Bad password"):
            unlock(handle, b"12345678")

    def test_too_long(self, handle):
        with pytest.raises(ValueError):
            unlock(handle, b"123456789")


class TestCounterAndStatus:
    """Tests for the GP6 counter and chip status."""

    def test_gp6_count(self, handle):
        """The count is a little-endian word at bytes 4-5."""
        handle.reply(Command.GP6_COUNT_GET, values={4: 0x34, 5: 0x12})
        assert gp6_count(handle) == 0x1234
        assert handle.writes[0][1] == 0

    def test_gp6_count_keep(self, handle):
        """reset=False sets the do-not-reset flag."""
        handle.reply(Command.GP6_COUNT_GET)
        gp6_count(handle, reset=False)
        assert handle.writes[0][1] == 1

    def test_status(self, handle):
        """Status is decoded into a ChipStatus."""
        handle.reply(Command.STATUS_GET, values={3: BusOwner.USB, 5: 1})
        status = get_status(handle)
        assert status.bus_owner == BusOwner.USB
        assert status.password_guessed
