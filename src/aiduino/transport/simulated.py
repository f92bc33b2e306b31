"""
Simulated Byte Source
=====================

Deterministic synthetic device for development and testing.

Emits one JSON line per tick with slowly varying readings, then hands
the bytes out in randomly sized chunks so the framer sees lines (and
multi-byte characters) split at arbitrary boundaries, just like a real
serial link delivers them.

The simulation:
    - Sinusoidal variation per field (period ~period_lines lines)
    - Small seeded noise for realism
    - Optional malformed line every corrupt_every lines
    - Optional end of stream after max_lines lines
"""

import asyncio
import json
import logging
import math
import random
from typing import Dict, Optional, Tuple


logger = logging.getLogger(__name__)


DEFAULT_FIELDS: Dict[str, Tuple[float, float]] = {
    # name: (base value, amplitude)
    "temp": (22.0, 3.0),
    "hum": (45.0, 8.0),
}


class SimulatedByteSource:
    """
    Synthetic sensor byte source.

    Attributes:
        interval_seconds: Delay between generated lines
        max_lines: Lines to emit before end of stream (0 = unlimited)
        corrupt_every: Emit a malformed line every N lines (0 = never)
        max_chunk_size: Upper bound for each delivered chunk
    """

    def __init__(
        self,
        interval_seconds: float = 1.0,
        max_lines: int = 0,
        corrupt_every: int = 0,
        max_chunk_size: int = 16,
        period_lines: int = 120,
        fields: Optional[Dict[str, Tuple[float, float]]] = None,
        seed: int = 7,
    ) -> None:
        self.interval_seconds = max(0.0, interval_seconds)
        self.max_lines = max(0, max_lines)
        self.corrupt_every = max(0, corrupt_every)
        self.max_chunk_size = max(1, max_chunk_size)
        self.period_lines = max(1, period_lines)
        self.fields = dict(fields or DEFAULT_FIELDS)

        self._rng = random.Random(seed)
        self._pending: bytes = b""
        self._lines_emitted: int = 0
        self._open: bool = False

    @property
    def lines_emitted(self) -> int:
        """Lines generated so far."""
        return self._lines_emitted

    async def open(self) -> None:
        self._open = True
        logger.info(
            f"SimulatedByteSource opened: fields={list(self.fields)}, "
            f"interval={self.interval_seconds}s, max_lines={self.max_lines or 'unlimited'}"
        )

    def _next_line(self) -> bytes:
        index = self._lines_emitted
        self._lines_emitted += 1

        if self.corrupt_every and self._lines_emitted % self.corrupt_every == 0:
            return b'{"temp": 21.\xc2\xb0 garbage\n'

        phase = (2 * math.pi * index) / self.period_lines
        reading = {}
        for name, (base, amplitude) in self.fields.items():
            noise = (self._rng.random() - 0.5) * amplitude * 0.2
            reading[name] = round(base + amplitude * math.sin(phase) + noise, 2)
        reading["seq"] = index
        return (json.dumps(reading) + "\n").encode("utf-8")

    async def read(self) -> bytes:
        """Return the next chunk, generating a new line when needed."""
        if not self._open:
            return b""

        if not self._pending:
            if self.max_lines and self._lines_emitted >= self.max_lines:
                return b""
            # Always yield to the loop, like a real transport would
            await asyncio.sleep(self.interval_seconds if self._lines_emitted else 0)
            self._pending = self._next_line()

        size = self._rng.randint(1, self.max_chunk_size)
        chunk, self._pending = self._pending[:size], self._pending[size:]
        return chunk

    def cancel_read(self) -> None:
        """The only wait is an asyncio.sleep, interrupted by task cancellation."""
        pass

    async def close(self) -> None:
        if self._open:
            logger.info(f"SimulatedByteSource closed after {self._lines_emitted} lines")
        self._open = False
        self._pending = b""
