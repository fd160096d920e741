"""
MCP2210 SPI Transfer Engine
===========================

This module drives one logical full-duplex SPI transaction over the
packet transport. The MCP2210 carries at most 58 payload bytes per HID
report, so a transaction of N bytes is split into chunks:

    HOST                                   MCP2210
      | ── SPI_TRANSFER len=58 data ──────→ |  first chunk, CS asserted
      | ←──── status=STARTED rx=0 ───────── |
      |            (paced sleep)            |
      | ── SPI_TRANSFER len=58 data ──────→ |
      | ←──── status=DATA rx=58 data ────── |  bytes clocked in so far
      |            (paced sleep)            |
      | ── SPI_TRANSFER len=4 data ───────→ |  last chunk
      | ←──── status=DATA rx=58 data ────── |
      | ── SPI_TRANSFER len=0 ────────────→ |  poll for the tail
      | ←──── status=END rx=4 data ──────── |  CS released
      |                                     |

Transfer State
--------------
- ``written``: bytes handed to the chip so far
- ``received``: response bytes copied back so far

Request and response share one caller-supplied buffer. Each iteration
copies an unsent chunk out before a response chunk is copied back to
an earlier-or-equal offset, so ``received <= written`` holds at the
start of every iteration. The transaction is complete when
``received == N``. The chip reports how many bytes it returned; that
count is trusted (bounded by the bytes still expected) rather than
assumed equal to the chunk just sent.

Pacing and Busy Retry
---------------------
After every exchange the engine sleeps for the estimated on-wire time
of the chunk (clock time plus configured inter-byte delays, plus the
CS-to-data delay on the first chunk and the data-to-CS delay on the
last one). This is a heuristic that keeps USB polling close to the bus
speed; correctness comes from the busy retry: when the chip answers
"SPI transfer already in progress" the same chunk is re-sent after a
fixed 5 ms delay, indefinitely. Any other error aborts the transaction
and leaves the buffer partially overwritten.
"""

import logging
import time
from typing import Callable, Final, Optional, Union

from mcp2210.config import TransferConfig
from mcp2210.errors import DeviceError, TransferStatusError
from mcp2210.protocol.codec import (
    spi_get_bitrate,
    spi_get_byte_delay_100us,
    spi_get_cs_data_delay_100us,
    spi_get_data_cs_delay_100us,
    spi_set_transaction_size,
)
from mcp2210.protocol.commands import SPI_TX_MAX, Command, SpiStatus
from mcp2210.protocol.frame import Frame
from mcp2210.protocol.transport import DeviceHandle, exchange, get_command

# Configure module logger
logger = logging.getLogger(__name__)

# Type alias for the sleep primitive (seconds)
SleepFunction = Callable[[float], None]

# Nanoseconds per second and per 100 us delay unit
NS_PER_SECOND: Final[int] = 1_000_000_000
NS_PER_DELAY_UNIT: Final[int] = 100_000

# Response offsets of an SPI_TRANSFER report
RX_LENGTH: Final[int] = 2
RX_STATUS: Final[int] = 3
RX_PAYLOAD: Final[int] = 4

# Request offsets of an SPI_TRANSFER report
TX_LENGTH: Final[int] = 1
# Payload at byte 2 is what chips answering this library expect; the
# datasheet shows byte 4. Verify on hardware before changing it.
TX_PAYLOAD: Final[int] = 2

_VALID_STATUSES: Final[frozenset[int]] = frozenset(s.value for s in SpiStatus)


# =============================================================================
# Pacing
# =============================================================================

def chunk_duration_ns(
    spi_frame: Frame,
    size: int,
    first: bool,
    last: bool,
    overhead_ns: int = 30_000,
) -> int:
    """
    Estimate how long one chunk takes on the SPI bus.

    Args:
        spi_frame: SPI settings frame the transfer runs with.
        size: Chunk size in bytes.
        first: True for the first chunk of the transaction.
        last: True for the final chunk of the transaction.
        overhead_ns: Extra time per 100 us unit of inter-byte and
                     data-to-CS delay.

    Returns:
        Duration in nanoseconds.

    Raises:
        ValueError: If the configured bit rate is not positive.
    """
    bit_rate = spi_get_bitrate(spi_frame)
    if bit_rate <= 0:
        raise ValueError(f"SPI bit rate must be positive, got {bit_rate}")

    bits = size * 8
    seconds = bits // bit_rate
    nanoseconds = (bits % bit_rate) * (NS_PER_SECOND // bit_rate)

    unit_with_overhead = NS_PER_DELAY_UNIT + overhead_ns
    nanoseconds += size * spi_get_byte_delay_100us(spi_frame) * unit_with_overhead
    if first:
        nanoseconds += spi_get_cs_data_delay_100us(spi_frame) * NS_PER_DELAY_UNIT
    if last:
        nanoseconds += spi_get_data_cs_delay_100us(spi_frame) * unit_with_overhead

    return seconds * NS_PER_SECOND + nanoseconds


# =============================================================================
# Transfer Engine
# =============================================================================

class SpiTransfer:
    """
    One chunked, full-duplex SPI transaction.

    The instance keeps the progress counters so that a caller can see
    how far a failed transaction got.

    This class is NOT thread-safe. The device handle must not be used
    by anyone else while a transaction runs.

    Usage:
        spi = get_command(handle, Frame(), Command.SPI_GET)
        buffer = bytearray(b"\\x9f\\x00\\x00\\x00")
        SpiTransfer(handle, spi).run(buffer)
        print(buffer.hex())
    """

    def __init__(
        self,
        handle: DeviceHandle,
        spi_frame: Frame,
        config: Optional[TransferConfig] = None,
        sleep: SleepFunction = time.sleep,
    ):
        """
        Initialize the transfer.

        Args:
            handle: Device handle to talk to.
            spi_frame: Current SPI settings (used for pacing only).
            config: Engine tunables (default TransferConfig()).
            sleep: Sleep primitive taking seconds.
        """
        self.handle = handle
        self.spi_frame = spi_frame
        self.config = config or TransferConfig()
        self.sleep = sleep
        self.written = 0
        self.received = 0
        self.exchanges = 0
        self.retries = 0

    def run(self, buffer: Union[bytearray, memoryview], length: Optional[int] = None) -> None:
        """
        Transmit the first length bytes of buffer and replace them with
        the bytes received.

        Args:
            buffer: Mutable buffer holding the data to send.
            length: Number of bytes to transfer (default: whole buffer).

        Raises:
            ValueError: If length is invalid or the bit rate is zero.
            DeviceError: Chip rejected a chunk for a reason other than busy.
            TransferStatusError: Unknown transfer status marker.
            IoError, CommandMismatch: From the packet transport.
        """
        if length is None:
            length = len(buffer)
        if not 0 <= length <= min(len(buffer), SPI_TX_MAX):
            raise ValueError(
                f"Transfer length must be 0-{min(len(buffer), SPI_TX_MAX)}, got {length}"
            )
        if length and spi_get_bitrate(self.spi_frame) <= 0:
            raise ValueError("SPI bit rate must be positive")

        self.written = 0
        self.received = 0
        self.exchanges = 0
        self.retries = 0
        chunk = self.config.chunk_size

        while self.received < length:
            wr_len = min(chunk, length - self.written)
            rd_len = min(chunk, length - self.received)

            delay_ns = chunk_duration_ns(
                self.spi_frame,
                rd_len,
                first=self.written == 0,
                last=self.received + rd_len == length,
                overhead_ns=self.config.byte_delay_overhead_ns,
            )

            frame = self._send_chunk(buffer, wr_len, delay_ns)
            self.written += wr_len

            status = frame[RX_STATUS]
            if status not in _VALID_STATUSES:
                raise TransferStatusError(status)

            count = min(frame[RX_LENGTH], rd_len)
            buffer[self.received:self.received + count] = bytes(
                frame[RX_PAYLOAD:RX_PAYLOAD + count]
            )
            self.received += count

            logger.debug(
                "Chunk: sent %d, got %d (status 0x%02X), progress %d/%d",
                wr_len, count, status, self.received, length
            )

        logger.info(
            "SPI transfer complete: %d bytes in %d exchanges (%d busy retries)",
            length, self.exchanges, self.retries
        )

    def _send_chunk(
        self, buffer: Union[bytearray, memoryview], size: int, delay_ns: int
    ) -> Frame:
        """
        Send one chunk, re-sending it for as long as the chip is busy.

        Every attempt is followed by a sleep whatever its outcome: the
        paced delay after the first, the fixed busy retry delay after
        each retry. With pacing disabled only busy answers cause a sleep.
        """
        delay = delay_ns / NS_PER_SECOND

        while True:
            frame = Frame()
            frame[TX_LENGTH] = size
            frame[TX_PAYLOAD:TX_PAYLOAD + size] = bytes(
                buffer[self.written:self.written + size]
            )

            error: Optional[DeviceError] = None
            try:
                exchange(self.handle, frame, Command.SPI_TRANSFER)
            except DeviceError as e:
                error = e
            finally:
                self.exchanges += 1
                if self.config.pace:
                    self.sleep(delay)

            if error is None:
                return frame
            if not error.busy:
                raise error

            if not self.config.pace:
                self.sleep(self.config.busy_retry_delay)
            self.retries += 1
            logger.debug("SPI busy, retrying chunk at offset %d", self.written)
            delay = self.config.busy_retry_delay


# =============================================================================
# Convenience Functions
# =============================================================================

def spi_transfer(
    handle: DeviceHandle,
    spi_frame: Frame,
    buffer: Union[bytearray, memoryview],
    length: Optional[int] = None,
    config: Optional[TransferConfig] = None,
    sleep: SleepFunction = time.sleep,
) -> None:
    """
    Run one SPI transaction, replacing buffer contents with received data.

    See SpiTransfer.run for details.
    """
    SpiTransfer(handle, spi_frame, config=config, sleep=sleep).run(buffer, length)


def transfer_bytes(
    handle: DeviceHandle,
    data: bytes,
    spi_frame: Optional[Frame] = None,
    config: Optional[TransferConfig] = None,
    sleep: SleepFunction = time.sleep,
) -> bytes:
    """
    Configure the transaction size for data and transfer it.

    Fetches the runtime SPI settings when spi_frame is not given, sets
    the transaction size to len(data), applies the settings and runs
    the transfer.

    Args:
        handle: Device handle to talk to.
        data: Bytes to clock out (1-65535 bytes).
        spi_frame: Runtime SPI settings already fetched by the caller.

    Returns:
        The bytes clocked in.

    Raises:
        ValueError: If data is empty or too long.
    """
    if not 0 < len(data) <= SPI_TX_MAX:
        raise ValueError(
            f"SPI transfer must be 1-{SPI_TX_MAX} bytes, got {len(data)}"
        )

    if spi_frame is None:
        spi_frame = get_command(handle, Frame(), Command.SPI_GET)

    settings = spi_frame.copy()
    spi_set_transaction_size(settings, len(data))
    # The SET response overwrites the frame, pacing uses the settings copy
    exchange(handle, settings.copy(), Command.SPI_SET)

    buffer = bytearray(data)
    spi_transfer(handle, settings, buffer, config=config, sleep=sleep)
    return bytes(buffer)


def cancel(handle: DeviceHandle) -> Frame:
    """
    Cancel the SPI transfer in progress.

    Sends SPI_CANCEL with an all-zero frame.

    Returns:
        The response frame (same layout as STATUS_GET).
    """
    logger.info("Cancelling SPI transfer")
    return exchange(handle, Frame(), Command.SPI_CANCEL)
