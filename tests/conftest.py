"""
Test Configuration
==================

Pytest fixtures and test doubles for aiduino.
"""

import asyncio
import json
from typing import List, Optional, Sequence

import pytest

from aiduino.models.sample import Sample


class FakeByteSource:
    """
    Scripted byte source.

    Chunks are queued with feed(); end() queues end of stream; fail()
    queues a read error. read() blocks until something is queued, which
    makes it a pending read that disconnect() has to interrupt.
    """

    def __init__(self, open_error: Optional[Exception] = None) -> None:
        self.open_error = open_error
        self.open_calls = 0
        self.close_calls = 0
        self.cancel_calls = 0
        self.reads_started = 0
        self._queue: "asyncio.Queue[object]" = asyncio.Queue()

    def feed(self, *chunks: bytes) -> None:
        for chunk in chunks:
            self._queue.put_nowait(chunk)

    def end(self) -> None:
        self._queue.put_nowait(b"")

    def fail(self, error: Exception) -> None:
        self._queue.put_nowait(error)

    async def open(self) -> None:
        self.open_calls += 1
        if self.open_error is not None:
            raise self.open_error

    async def read(self) -> bytes:
        self.reads_started += 1
        item = await self._queue.get()
        if isinstance(item, Exception):
            raise item
        return item

    def cancel_read(self) -> None:
        self.cancel_calls += 1

    async def close(self) -> None:
        self.close_calls += 1


class FakeSummarizer:
    """Summarizer double that records calls and can be held or made to fail."""

    def __init__(self, text: str = "Readings are stable.", error: Optional[Exception] = None) -> None:
        self.text = text
        self.error = error
        self.calls: List[Sequence[Sample]] = []
        self.gate: Optional[asyncio.Event] = None

    async def summarize(self, samples: Sequence[Sample]) -> str:
        self.calls.append(tuple(samples))
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return self.text


async def settle(rounds: int = 5) -> None:
    """Let pending tasks on the loop run."""
    for _ in range(rounds):
        await asyncio.sleep(0)


def make_samples(count: int, start: int = 1) -> List[Sample]:
    return [Sample(timestamp=ts, data={"t": ts}) for ts in range(start, start + count)]


@pytest.fixture
def sample_lines():
    """Newline-delimited device output with a multi-byte character."""
    return (
        '{"temp": 21.5, "hum": 40}\n'
        '{"temp": 21.7, "hum": 41, "unit": "°C"}\n'
        '\n'
        '   {"temp": 22.0, "hum": 42}   \n'
        '{"label": "Grüße ✓"}\n'
    ).encode("utf-8")


@pytest.fixture
def ms_clock():
    """Deterministic millisecond clock starting at 1000."""
    ticks = {"now": 1000}

    def clock() -> int:
        ticks["now"] += 1
        return ticks["now"]

    return clock


class FakeResponse:
    """Stand-in for requests.Response."""

    def __init__(self, status_code=200, body=None, text=None):
        self.status_code = status_code
        self._body = body
        if text is None:
            text = json.dumps(body) if body is not None else ""
        self.text = text

    @property
    def ok(self):
        return 200 <= self.status_code < 400

    def json(self):
        if self._body is None:
            raise ValueError("No JSON body")
        return self._body


class FakeSession:
    """Stand-in for requests.Session that records posts."""

    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.requests = []

    def post(self, url, **kwargs):
        self.requests.append((url, kwargs))
        if self.error is not None:
            raise self.error
        return self.response
