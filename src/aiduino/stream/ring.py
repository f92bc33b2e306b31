"""
Sample Ring
===========

Fixed-capacity circular store for the most recent samples.

This module provides the SampleRing class, the rolling window between the
stream pump (single writer) and every reader (renderers, summary scheduler).

Design Rules:
    - Fixed capacity chosen at construction (drops oldest on overflow)
    - push() is O(1) and never fails
    - Readers only ever see snapshot() copies, never internal storage
    - Exposes minimal metrics for observability
"""

import logging
from collections import deque
from typing import Deque, Tuple

from aiduino.models.sample import Sample


logger = logging.getLogger(__name__)


DEFAULT_CAPACITY = 60


class SampleRing:
    """
    Bounded FIFO of samples in arrival order.

    Once full, each push evicts exactly the single oldest sample. No
    locking is needed: there is one writer and readers copy within a
    single event-loop turn.

    Attributes:
        capacity: Maximum number of samples held
        evicted_count: Number of samples evicted due to overflow

    Example:
        ring = SampleRing(capacity=60)
        ring.push(sample)
        window = ring.snapshot()  # oldest first
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        """
        Initialize sample ring.

        Args:
            capacity: Maximum samples to hold. Must be >= 1.
        """
        if capacity < 1:
            raise ValueError("capacity must be >= 1")

        self._capacity = capacity
        self._items: Deque[Sample] = deque(maxlen=capacity)
        self._evicted_count: int = 0
        self._total_pushed: int = 0

    @property
    def capacity(self) -> int:
        """Maximum ring size."""
        return self._capacity

    @property
    def size(self) -> int:
        """Current number of samples held."""
        return len(self._items)

    @property
    def is_full(self) -> bool:
        """Whether the next push will evict the oldest sample."""
        return len(self._items) == self._capacity

    @property
    def evicted_count(self) -> int:
        """Number of samples evicted due to overflow."""
        return self._evicted_count

    @property
    def total_pushed(self) -> int:
        """Total samples ever pushed into the ring."""
        return self._total_pushed

    def __len__(self) -> int:
        return len(self._items)

    def push(self, sample: Sample) -> None:
        """
        Append a sample, evicting the oldest one if the ring is full.

        Args:
            sample: Sample to append
        """
        if len(self._items) == self._capacity:
            # deque(maxlen=...) drops the left end on append
            self._evicted_count += 1
        self._items.append(sample)
        self._total_pushed += 1

    def snapshot(self) -> Tuple[Sample, ...]:
        """
        Copy of the current window, oldest to newest.

        The returned tuple is independent of later pushes.
        """
        return tuple(self._items)

    def latest(self) -> Sample:
        """Most recently pushed sample. Raises IndexError when empty."""
        return self._items[-1]

    def clear(self) -> int:
        """
        Drop all samples.

        Returns:
            Number of samples cleared.
        """
        cleared = len(self._items)
        self._items.clear()
        return cleared

    def metrics(self) -> dict:
        """
        Get ring metrics for observability.

        Returns:
            Dict with size, capacity, evicted_count, total_pushed
        """
        return {
            "size": self.size,
            "capacity": self._capacity,
            "evicted_count": self._evicted_count,
            "total_pushed": self._total_pushed,
        }
