"""
MCP2210 Transfer Configuration
==============================

Tunables of the SPI transfer engine. Configuration can come from:
- Default values (defined here)
- Keyword arguments
- Environment variables (TransferConfig.from_env)

The defaults reproduce the chip's documented behavior and normally need
no changes. Timing values in the SPI settings frame (bit rate, delays)
are device settings and are not configured here.
"""

import os
from dataclasses import dataclass
from typing import Final

from mcp2210.protocol.commands import SPI_CHUNK

# Accepted spellings for boolean environment variables
_TRUE_VALUES: Final[frozenset[str]] = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES: Final[frozenset[str]] = frozenset({"0", "false", "no", "off"})


@dataclass
class TransferConfig:
    """
    Configuration for SPI transfers.

    Attributes:
        chunk_size: Payload bytes per report (1-58, default 58)
        busy_retry_delay: Seconds to wait before re-sending a chunk the
            chip rejected as busy (default 5 ms)
        byte_delay_overhead_ns: Extra time added to every 100 us unit of
            inter-byte and data-to-CS delay when pacing (default 30 us)
        pace: Sleep for the estimated on-wire time after each chunk
    """

    chunk_size: int = SPI_CHUNK
    busy_retry_delay: float = 0.005
    byte_delay_overhead_ns: int = 30_000
    pace: bool = True

    def __post_init__(self) -> None:
        if not 1 <= self.chunk_size <= SPI_CHUNK:
            raise ValueError(
                f"Chunk size must be 1-{SPI_CHUNK}, got {self.chunk_size}"
            )
        if self.busy_retry_delay < 0:
            raise ValueError(
                f"Busy retry delay must not be negative: {self.busy_retry_delay}"
            )
        if self.byte_delay_overhead_ns < 0:
            raise ValueError(
                f"Delay overhead must not be negative: {self.byte_delay_overhead_ns}"
            )

    @classmethod
    def from_env(cls) -> "TransferConfig":
        """
        Create TransferConfig from environment variables.

        Environment variables (all optional):
            MCP2210_CHUNK_SIZE: Payload bytes per report (integer)
            MCP2210_BUSY_RETRY_DELAY: Busy retry delay in seconds (float)
            MCP2210_PACE: Enable pacing sleeps (1/0, true/false, yes/no)

        Returns:
            TransferConfig with values from environment variables

        Raises:
            ValueError: If a variable holds an invalid value.
        """
        kwargs = {}

        if chunk := os.environ.get("MCP2210_CHUNK_SIZE"):
            kwargs["chunk_size"] = int(chunk)

        if delay := os.environ.get("MCP2210_BUSY_RETRY_DELAY"):
            kwargs["busy_retry_delay"] = float(delay)

        if pace := os.environ.get("MCP2210_PACE"):
            value = pace.strip().lower()
            if value in _TRUE_VALUES:
                kwargs["pace"] = True
            elif value in _FALSE_VALUES:
                kwargs["pace"] = False
            else:
                raise ValueError(f"Invalid MCP2210_PACE value: {pace!r}")

        return cls(**kwargs)
