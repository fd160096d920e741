"""
MCP2210 Frame Buffer
====================

The Frame is the unit of exchange with the MCP2210: a fixed 64-byte
buffer carrying one command in one direction. The same Frame object is
reused for request and response, exactly like the chip's report
protocol - the response overwrites the request in place.

    ┌──────────┬───────────────────────┬──────────────────────────┐
    │  Byte 0  │        Byte 1         │       Bytes 2-63         │
    │ command  │ sub-command / status  │ command-specific payload │
    └──────────┴───────────────────────┴──────────────────────────┘

Multi-byte integers inside a frame are little-endian. Pin bitmasks
cover nine pins split across two bytes: pins 0-7 in the low byte, pin 8
in bit 0 of the high byte.
"""

from typing import Final, Iterator, Optional, Union

from mcp2210.protocol.commands import GPIO_PINS, PACKET_SIZE

BytesLike = Union[bytes, bytearray, memoryview]

# Mask for a 9-pin bitmask
PIN_MASK: Final[int] = 0x1FF


def check_pin(pin: int) -> int:
    """
    Validate a GPIO pin index.

    Raises:
        ValueError: If pin is outside 0-8.
    """
    if not 0 <= pin <= GPIO_PINS:
        raise ValueError(f"Pin number out of range (0 - {GPIO_PINS}): {pin}")
    return pin


class Frame:
    """
    A 64-byte MCP2210 report buffer.

    Example:
        frame = Frame.zeroed()
        frame.command = Command.SPI_GET
        frame.set_u16(4, 0x1234)
        assert frame[4] == 0x34
    """

    __slots__ = ("data",)

    def __init__(self, data: Optional[BytesLike] = None):
        if data is None:
            self.data = bytearray(PACKET_SIZE)
        else:
            if len(data) != PACKET_SIZE:
                raise ValueError(
                    f"Frame must be {PACKET_SIZE} bytes, got {len(data)}"
                )
            self.data = bytearray(data)

    @classmethod
    def zeroed(cls) -> "Frame":
        """Create an all-zero frame."""
        return cls()

    @classmethod
    def from_values(cls, values: dict[int, int]) -> "Frame":
        """Create a zeroed frame with the given offset -> byte values."""
        frame = cls()
        for offset, value in values.items():
            frame[offset] = value
        return frame

    def clear(self) -> None:
        """Zero the whole frame."""
        self.data[:] = bytes(PACKET_SIZE)

    def copy(self) -> "Frame":
        """Return an independent copy of this frame."""
        return Frame(self.data)

    def load(self, data: BytesLike) -> None:
        """Replace the frame contents with exactly PACKET_SIZE bytes."""
        if len(data) != PACKET_SIZE:
            raise ValueError(f"Frame must be {PACKET_SIZE} bytes, got {len(data)}")
        self.data[:] = data

    # -------------------------------------------------------------------------
    # Header Fields
    # -------------------------------------------------------------------------

    @property
    def command(self) -> int:
        """Byte 0: command code (request) or command echo (response)."""
        return self.data[0]

    @command.setter
    def command(self, value: int) -> None:
        self.data[0] = value

    @property
    def status(self) -> int:
        """Byte 1 of a response: 0 on success, device error code otherwise."""
        return self.data[1]

    @property
    def subcommand(self) -> int:
        """Byte 1 of a request."""
        return self.data[1]

    @subcommand.setter
    def subcommand(self, value: int) -> None:
        self.data[1] = value

    # -------------------------------------------------------------------------
    # Integer Helpers
    # -------------------------------------------------------------------------

    def get_u16(self, offset: int) -> int:
        """Read a little-endian 16-bit value."""
        return self.data[offset] | (self.data[offset + 1] << 8)

    def set_u16(self, offset: int, value: int) -> None:
        """Write a little-endian 16-bit value."""
        self.data[offset] = value & 0xFF
        self.data[offset + 1] = (value >> 8) & 0xFF

    def get_u32(self, offset: int) -> int:
        """Read a little-endian 32-bit value."""
        return int.from_bytes(self.data[offset:offset + 4], "little")

    def set_u32(self, offset: int, value: int) -> None:
        """Write a little-endian 32-bit value."""
        self.data[offset:offset + 4] = (value & 0xFFFFFFFF).to_bytes(4, "little")

    def get_flag(self, offset: int, mask: int) -> bool:
        """Return True if any bit of mask is set at offset."""
        return bool(self.data[offset] & mask)

    def set_flag(self, offset: int, mask: int, on: bool) -> None:
        """Set or clear the bits of mask at offset."""
        if on:
            self.data[offset] |= mask
        else:
            self.data[offset] &= ~mask & 0xFF

    # -------------------------------------------------------------------------
    # Pin Bitmask Helpers
    # -------------------------------------------------------------------------

    def get_pin(self, base: int, pin: int) -> int:
        """
        Read one pin bit from the 9-pin bitmask starting at base.

        Pins 0-7 live in byte base, pin 8 in bit 0 of byte base + 1.
        """
        check_pin(pin)
        return (self.get_u16(base) >> pin) & 1

    def set_pin(self, base: int, pin: int, value: int) -> None:
        """Set or clear one pin bit, leaving all other pins untouched."""
        check_pin(pin)
        offset = base + (1 if pin >= 8 else 0)
        self.set_flag(offset, 1 << (pin % 8), bool(value))

    def get_pins(self, base: int) -> int:
        """Read the whole 9-pin bitmask."""
        return self.get_u16(base) & PIN_MASK

    def set_pins(self, base: int, mask: int) -> None:
        """
        Write the whole 9-pin bitmask.

        Bits 1-7 of the high byte are reserved and preserved.
        """
        self.data[base] = mask & 0xFF
        self.data[base + 1] = (self.data[base + 1] & 0xFE) | ((mask >> 8) & 0x01)

    # -------------------------------------------------------------------------
    # Sequence Protocol
    # -------------------------------------------------------------------------

    def __len__(self) -> int:
        return PACKET_SIZE

    def __getitem__(self, index):
        return self.data[index]

    def __setitem__(self, index, value) -> None:
        self.data[index] = value

    def __iter__(self) -> Iterator[int]:
        return iter(self.data)

    def __bytes__(self) -> bytes:
        return bytes(self.data)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Frame):
            return self.data == other.data
        if isinstance(other, (bytes, bytearray)):
            return self.data == other
        return NotImplemented

    def __repr__(self) -> str:
        # Trailing zeros are almost always reserved padding
        used = bytes(self.data).rstrip(b"\x00")
        return f"Frame(cmd=0x{self.data[0]:02X}, data[{len(used)}]={used.hex()})"
