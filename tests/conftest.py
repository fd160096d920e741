"""
Shared fixtures for the MCP2210 tests.

The FakeHandle stands in for an opened device: it records every report
written to it and answers reads from a queue of prepared responses, or
from a responder callable that sees the last request.
"""

from collections import deque
from typing import Callable, Dict, Optional

import pytest

from mcp2210.protocol.commands import PACKET_SIZE


def make_report(command: int, status: int = 0, values: Optional[Dict[int, int]] = None) -> bytes:
    """Build a 64-byte response report."""
    report = bytearray(PACKET_SIZE)
    report[0] = command
    report[1] = status
    for offset, value in (values or {}).items():
        report[offset] = value
    return bytes(report)


class FakeHandle:
    """Scripted device handle."""

    def __init__(self, responder: Optional[Callable[[bytes], bytes]] = None):
        self.writes = []
        self.responses = deque()
        self.responder = responder
        self.write_count: Optional[int] = None
        self.write_error: Optional[OSError] = None
        self.read_error: Optional[OSError] = None

    def queue(self, *reports: bytes) -> "FakeHandle":
        self.responses.extend(bytes(r) for r in reports)
        return self

    def reply(self, command: int, status: int = 0, values: Optional[Dict[int, int]] = None) -> "FakeHandle":
        return self.queue(make_report(command, status, values))

    def write(self, data: bytes) -> int:
        self.writes.append(bytes(data))
        if self.write_error is not None:
            raise self.write_error
        return len(data) if self.write_count is None else self.write_count

    def read(self, size: int) -> bytes:
        if self.read_error is not None:
            raise self.read_error
        if self.responses:
            return self.responses.popleft()
        if self.responder is not None:
            return bytes(self.responder(self.writes[-1]))
        raise AssertionError("Unexpected read: no response queued")

    @property
    def commands(self):
        """Command bytes of all written reports, in order."""
        return [w[0] for w in self.writes]


@pytest.fixture
def handle():
    """A FakeHandle with nothing queued."""
    return FakeHandle()


@pytest.fixture
def make_handle():
    """Factory for FakeHandles with a responder."""
    return FakeHandle


@pytest.fixture
def report():
    """Builder for raw response reports."""
    return make_report
