"""
Tests for the Frame buffer and the Field Codec
==============================================

- Frame construction, integer and pin helpers
- Pin accessors: round-trip and no perturbation of other bits
- Chip, SPI and status fields at their documented offsets
- USB key dual layout and the get -> set remap
- USB string descriptors
"""

import pytest

from mcp2210.protocol import codec
from mcp2210.protocol.commands import PACKET_SIZE, Command, Gp6Mode
from mcp2210.protocol.frame import Frame, check_pin


# =============================================================================
# Frame Tests
# =============================================================================

class TestFrame:
    """Tests for the 64-byte frame buffer."""

    def test_new_frame_is_zeroed(self):
        """A new frame holds 64 zero bytes."""
        frame = Frame()
        assert len(frame) == PACKET_SIZE
        assert bytes(frame) == bytes(PACKET_SIZE)
        assert Frame.zeroed() == Frame()

    def test_wrong_size_rejected(self):
        """Frames are exactly 64 bytes."""
        with pytest.raises(ValueError):
            Frame(bytes(63))
        with pytest.raises(ValueError):
            Frame().load(bytes(65))

    def test_copy_is_independent(self):
        """Changing a copy leaves the original untouched."""
        frame = Frame.from_values({0: 0x41, 10: 0xAA})
        dup = frame.copy()
        dup[10] = 0x55
        assert frame[10] == 0xAA
        assert dup.command == 0x41

    def test_clear(self):
        """clear() zeroes every byte."""
        frame = Frame(bytes(range(64)))
        frame.clear()
        assert frame == bytes(PACKET_SIZE)

    def test_u16_little_endian(self):
        """16-bit values are stored low byte first."""
        frame = Frame()
        frame.set_u16(4, 0x1234)
        assert frame[4] == 0x34
        assert frame[5] == 0x12
        assert frame.get_u16(4) == 0x1234

    def test_u32_little_endian(self):
        """32-bit values are stored low byte first."""
        frame = Frame()
        frame.set_u32(4, 12_000_000)
        assert bytes(frame[4:8]) == (12_000_000).to_bytes(4, "little")
        assert frame.get_u32(4) == 12_000_000

    def test_header_properties(self):
        """command, status and subcommand map to bytes 0 and 1."""
        frame = Frame()
        frame.command = Command.NVRAM_GET
        frame.subcommand = 0x30
        assert frame[0] == 0x61
        assert frame.status == 0x30


class TestPins:
    """Tests for pin bitmask accessors."""

    @pytest.mark.parametrize("pin", range(9))
    def test_pin_round_trip_without_perturbation(self, pin):
        """Setting one pin reads back and leaves every other byte unchanged."""
        original = Frame(bytes((i * 37) & 0xFF for i in range(64)))
        for value in (1, 0):
            frame = original.copy()
            codec.gpio_set_pin(frame, pin, value)
            assert codec.gpio_get_pin(frame, pin) == value
            for other in range(9):
                if other != pin:
                    assert codec.gpio_get_pin(frame, other) == codec.gpio_get_pin(original, other)
            changed = [i for i in range(64) if frame[i] != original[i]]
            assert set(changed) <= {4, 5}

    def test_pin_eight_lives_in_high_byte(self):
        """Pin 8 is bit 0 of the second mask byte."""
        frame = Frame()
        codec.spi_set_pin_idle_cs(frame, 8, 1)
        assert frame[10] == 0x00
        assert frame[11] == 0x01

    @pytest.mark.parametrize("pin", [-1, 9, 100])
    def test_invalid_pin(self, pin):
        """Pins outside 0-8 raise ValueError."""
        with pytest.raises(ValueError):
            check_pin(pin)
        with pytest.raises(ValueError):
            codec.gpio_set_pin(Frame(), pin, 1)

    def test_set_pins_preserves_reserved_bits(self):
        """Writing a full mask keeps bits 1-7 of the high byte."""
        frame = Frame.from_values({5: 0xF0})
        codec.gpio_set_pins(frame, 0x1A5)
        assert frame[4] == 0xA5
        assert frame[5] == 0xF1
        assert codec.gpio_get_pins(frame) == 0x1A5


# =============================================================================
# Chip / SPI / Status Field Tests
# =============================================================================

class TestChipFields:
    """Tests for chip settings accessors."""

    def test_pin_functions(self):
        """Pin function bytes start at offset 4."""
        frame = Frame()
        codec.chip_set_function(frame, 0, 1)
        codec.chip_set_function(frame, 8, 2)
        assert frame[4] == 1
        assert frame[12] == 2
        assert codec.chip_get_function(frame, 8) == 2

    def test_flags_share_one_byte(self):
        """GP6 mode, wake-up and SPI release bits do not disturb each other."""
        frame = Frame.from_values({17: 0xE0})
        codec.chip_set_gp6_mode(frame, Gp6Mode.HIGH_PULSES)
        codec.chip_set_wakeup(frame, True)
        codec.chip_set_no_spi_release(frame, True)
        assert frame[17] == 0xE0 | 0x10 | (4 << 1) | 0x01
        assert codec.chip_get_gp6_mode(frame) == Gp6Mode.HIGH_PULSES
        codec.chip_set_wakeup(frame, False)
        assert frame[17] == 0xE0 | (4 << 1) | 0x01

    def test_password(self):
        """The password occupies bytes 19-26."""
        frame = Frame()
        codec.chip_set_access_password(frame, b"secret\x00\x00")
        assert bytes(frame[19:27]) == b"secret\x00\x00"
        assert codec.chip_get_access_password(frame) == b"secret\x00\x00"

    def test_password_must_be_eight_bytes(self):
        """The raw setter does not pad."""
        with pytest.raises(ValueError):
            codec.chip_set_access_password(Frame(), b"short")


class TestSpiFields:
    """Tests for SPI settings accessors."""

    def test_offsets(self):
        """Every SPI field lands at its documented offset."""
        frame = Frame()
        codec.spi_set_bitrate(frame, 1_000_000)
        codec.spi_set_cs_data_delay_100us(frame, 2)
        codec.spi_set_data_cs_delay_100us(frame, 3)
        codec.spi_set_byte_delay_100us(frame, 4)
        codec.spi_set_transaction_size(frame, 0x0102)
        codec.spi_set_mode(frame, 3)
        assert frame.get_u32(4) == 1_000_000
        assert frame.get_u16(12) == 2
        assert frame.get_u16(14) == 3
        assert frame.get_u16(16) == 4
        assert (frame[18], frame[19]) == (0x02, 0x01)
        assert frame[20] == 3

    def test_delay_conversion(self):
        """Delays are entered in microseconds and stored in 100 us units."""
        assert codec.delay_us_to_units(0) == 0
        assert codec.delay_us_to_units(2500) == 25
        assert codec.delay_units_to_us(25) == 2500

    @pytest.mark.parametrize("delay_us", [50, 150, 0x10000 * 100])
    def test_invalid_delay(self, delay_us):
        """Delays must be multiples of 100 us and fit in 16 bits once scaled."""
        with pytest.raises(ValueError):
            codec.delay_us_to_units(delay_us)


class TestStatusFields:
    """Tests for the chip status accessors."""

    def test_status(self):
        """Status bytes 2-5."""
        frame = Frame.from_values({2: 1, 3: 2, 4: 5, 5: 1})
        assert codec.status_no_ext_request(frame) == 1
        assert codec.status_bus_owner(frame) == 2
        assert codec.status_password_count(frame) == 5
        assert codec.status_password_guessed(frame) == 1


# =============================================================================
# USB Key Tests
# =============================================================================

class TestUsbKey:
    """Tests for the USB key dual layout."""

    def test_get_layout(self):
        """A fetched frame carries VID at 12 and PID at 14."""
        frame = Frame.from_values({0: Command.NVRAM_GET, 12: 0xD8, 13: 0x04, 14: 0xDD, 15: 0x00})
        assert codec.usb_key_get_vid(frame) == 0x04D8
        assert codec.usb_key_get_pid(frame) == 0x00DD

    def test_set_layout(self):
        """A frame being written carries VID at 4 and PID at 6."""
        frame = Frame.from_values({0: Command.NVRAM_SET, 4: 0xD8, 5: 0x04, 6: 0xDD, 7: 0x00})
        assert codec.usb_key_get_vid(frame) == 0x04D8
        assert codec.usb_key_get_pid(frame) == 0x00DD

    def test_setters_follow_layout(self):
        """Setters pick the layout from byte 0."""
        frame = Frame.from_values({0: Command.NVRAM_SET})
        codec.usb_key_set_vid(frame, 0x1234)
        codec.usb_key_set_current_2ma(frame, 50)
        codec.usb_key_set_self_powered(frame, True)
        assert frame.get_u16(4) == 0x1234
        assert frame[9] == 50
        assert frame[8] == 0x40

    def test_explicit_layout(self):
        """An explicit layout overrides byte 0."""
        frame = Frame()
        codec.usb_key_set_pid(frame, 0xBEEF, codec.UsbKeyLayout.GET)
        assert frame.get_u16(14) == 0xBEEF

    def test_unknown_command_byte(self):
        """Frames that are neither NVRAM_GET nor NVRAM_SET are rejected."""
        with pytest.raises(ValueError):
            codec.usb_key_get_vid(Frame.from_values({0: Command.CHIP_GET}))

    def test_get_to_set_remap(self):
        """Remapping moves every field to the NVRAM_SET offsets."""
        fetched = Frame.from_values({
            0: Command.NVRAM_GET, 1: 0x00, 2: 0x30,
            12: 0xD8, 13: 0x04, 14: 0xDE, 15: 0x00,
            29: 0xA0, 30: 50,
        })
        remapped = codec.usb_key_get_to_set(fetched)
        assert remapped.command == Command.NVRAM_SET
        assert codec.usb_key_get_vid(remapped) == 0x04D8
        assert codec.usb_key_get_pid(remapped) == 0x00DE
        assert codec.usb_key_get_host_powered(remapped)
        assert not codec.usb_key_get_self_powered(remapped)
        assert codec.usb_key_get_remote_wakeup(remapped)
        assert codec.usb_key_get_current_2ma(remapped) == 50
        # Source frame untouched
        assert fetched.command == Command.NVRAM_GET


# =============================================================================
# USB String Tests
# =============================================================================

class TestUsbString:
    """Tests for USB string descriptors."""

    def test_length_counts_header(self):
        """A descriptor length of 6 means a 4-byte payload."""
        frame = Frame.from_values({4: 6, 6: ord("M"), 8: ord("C")})
        assert codec.usb_string_get_len(frame) == 4
        assert codec.usb_string_get(frame) == b"M\x00C\x00"
        assert codec.decode_usb_string(codec.usb_string_get(frame)) == "MC"

    def test_set(self):
        """Setting stores the payload at 6 and payload length + 2 at 4."""
        frame = Frame()
        payload = codec.encode_usb_string("MCP2210")
        codec.usb_string_set(frame, payload)
        assert frame[4] == len(payload) + 2
        assert bytes(frame[6:6 + len(payload)]) == payload

    def test_maximum_length(self):
        """58 bytes fit, 59 do not."""
        frame = Frame()
        codec.usb_string_set(frame, bytes(58))
        assert frame[4] == 60
        with pytest.raises(ValueError):
            codec.usb_string_set(frame, bytes(59))

    def test_short_length_clamped(self):
        """A length below the header size reads as empty."""
        assert codec.usb_string_get_len(Frame.from_values({4: 1})) == 0
