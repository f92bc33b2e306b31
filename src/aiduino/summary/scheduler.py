"""
Summary Scheduler
=================

Periodically summarizes the session's sample window.

Rules:
    - Nothing happens while the session is not streaming or holds fewer
      than min_samples samples
    - First summary when the window first reaches min_samples, then one
      every interval_seconds while streaming
    - At most one summarizer call in flight per connection; a tick that
      finds one running is skipped, not queued
    - Any summarizer failure degrades to local_summary()
    - Leaving STREAMING cancels the timer; a call still in flight may
      finish but its result is discarded, and it does not hold back the
      next connection's first summary
"""

import asyncio
import logging
import time
from typing import Callable, Optional, Sequence, Set

from aiduino.models.sample import Sample
from aiduino.models.summary import SummaryOrigin, SummaryResult
from aiduino.stream.pump import SessionState, StreamSession
from aiduino.summary.client import Summarizer
from aiduino.summary.fallback import local_summary


logger = logging.getLogger(__name__)


MSG_DISCONNECTED = "Connect to device to start generating summaries."
MSG_COLLECTING = "Collecting data for first summary..."
MSG_WAITING = "Waiting for data to generate summary..."
MSG_GENERATING = "Generating new summary..."


class SummaryScheduler:
    """
    Timer-driven summarization of a StreamSession's ring.

    Registers itself as a session listener: it starts its timer when the
    session starts streaming and stops it when the session goes back to
    IDLE.

    Attributes:
        latest: Most recent accepted SummaryResult
        min_samples: Samples required before summarizing
        interval_seconds: Period between summaries while streaming

    Example:
        scheduler = SummaryScheduler(session, HttpSummarizer(url))
        await session.connect()   # timer starts
        ...
        print(scheduler.latest.text)
    """

    def __init__(
        self,
        session: StreamSession,
        summarizer: Summarizer,
        min_samples: int = 10,
        interval_seconds: float = 60.0,
        on_summary: Optional[Callable[[SummaryResult], None]] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """
        Initialize summary scheduler.

        Args:
            session: Session whose ring is summarized
            summarizer: Remote summary backend
            min_samples: Minimum window size before summarizing
            interval_seconds: Seconds between periodic summaries
            on_summary: Called with every accepted result
            clock: Wall clock in seconds (for generated_at)
        """
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be > 0")

        self.session = session
        self.summarizer = summarizer
        self.min_samples = max(1, min_samples)
        self.interval_seconds = interval_seconds
        self.latest: Optional[SummaryResult] = None

        self._on_summary = on_summary
        self._clock = clock
        self._timer_task: Optional[asyncio.Task] = None
        self._in_flight: Optional[asyncio.Task] = None
        self._in_flight_generation: int = 0
        self._pending: Set[asyncio.Task] = set()
        self._generation: int = 0
        self._threshold_reached: bool = False

        self.dispatched_count: int = 0
        self.skipped_count: int = 0
        self.fallback_count: int = 0
        self.discarded_count: int = 0

        session.add_listener(self)

    @property
    def running(self) -> bool:
        """Whether the periodic timer is active."""
        return self._timer_task is not None and not self._timer_task.done()

    @property
    def in_flight(self) -> bool:
        """
        Whether a summarizer call for the current connection is pending.

        A call left over from before a disconnect does not count; its
        result will be discarded anyway.
        """
        return (
            self._in_flight is not None
            and not self._in_flight.done()
            and self._in_flight_generation == self._generation
        )

    # ------------------------------------------------------------------
    # Session listener
    # ------------------------------------------------------------------

    def on_state_change(self, state: SessionState) -> None:
        if state is SessionState.STREAMING:
            self.start()
        elif state in (SessionState.CLOSING, SessionState.IDLE):
            self.stop()

    def on_sample(self, sample: Sample) -> None:
        if self._threshold_reached:
            return
        if len(self.session.ring) >= self.min_samples:
            self._threshold_reached = True
            logger.info(f"Sample threshold ({self.min_samples}) reached, requesting first summary")
            self.trigger()

    # ------------------------------------------------------------------
    # Timer
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Start the periodic timer for a new connection."""
        self.stop()
        self._threshold_reached = False
        self._timer_task = asyncio.create_task(self._tick_loop(), name="summary_timer")
        logger.debug(f"Summary timer started (every {self.interval_seconds}s)")

    def stop(self) -> None:
        """
        Cancel the timer. An in-flight call keeps running, but its
        result will be discarded.
        """
        self._generation += 1
        task, self._timer_task = self._timer_task, None
        if task is not None and not task.done():
            task.cancel()
            logger.debug("Summary timer stopped")

    async def shutdown(self) -> None:
        """Stop the timer and cancel every pending call (service shutdown)."""
        self.stop()
        self._in_flight = None
        pending, self._pending = list(self._pending), set()
        for task in pending:
            if task.done():
                continue
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

    async def _tick_loop(self) -> None:
        while True:
            await asyncio.sleep(self.interval_seconds)
            self.trigger()

    def trigger(self) -> bool:
        """
        Summarize the current window if allowed.

        Returns:
            True if a summarizer call was dispatched.
        """
        if not self.session.connected:
            return False
        if len(self.session.ring) < self.min_samples:
            return False
        if self.in_flight:
            self.skipped_count += 1
            logger.info("Summary still in flight, skipping tick")
            return False

        snapshot = self.session.ring.snapshot()
        self.dispatched_count += 1
        task = asyncio.create_task(
            self.summarize(snapshot, self._generation),
            name="summary_request",
        )
        self._in_flight = task
        self._in_flight_generation = self._generation
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return True

    # ------------------------------------------------------------------
    # Summarization
    # ------------------------------------------------------------------

    async def summarize(
        self,
        snapshot: Sequence[Sample],
        generation: Optional[int] = None,
    ) -> Optional[SummaryResult]:
        """
        Summarize a snapshot, falling back locally on any failure.

        Args:
            snapshot: Samples to summarize, oldest first
            generation: Timer generation the request belongs to; the
                result is discarded if the timer was stopped since

        Returns:
            The accepted SummaryResult, or None if it was discarded.
        """
        if generation is None:
            generation = self._generation

        origin = SummaryOrigin.REMOTE
        try:
            text = await self.summarizer.summarize(snapshot)
            if not isinstance(text, str) or not text.strip():
                raise ValueError("summarizer returned empty text")
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.warning(f"Summarization failed, using local summary: {e}")
            text = local_summary(snapshot)
            origin = SummaryOrigin.FALLBACK
            self.fallback_count += 1

        if generation != self._generation:
            self.discarded_count += 1
            logger.info("Session disconnected during summarization, result discarded")
            return None

        result = SummaryResult(
            text=text.strip(),
            origin=origin,
            sample_count=len(snapshot),
            generated_at=int(self._clock() * 1000),
        )
        self.latest = result
        logger.info(f"Summary updated ({origin.value}, {len(snapshot)} samples)")

        if self._on_summary is not None:
            try:
                self._on_summary(result)
            except Exception:
                logger.exception("on_summary callback failed")
        return result

    def status_message(self) -> str:
        """Text a summary card should show right now."""
        if self.in_flight:
            return MSG_GENERATING
        if not self.session.connected:
            return self.latest.text if self.latest else MSG_DISCONNECTED
        if self.latest is not None:
            return self.latest.text
        if len(self.session.ring) == 0:
            return MSG_WAITING
        return MSG_COLLECTING

    def get_metrics(self) -> dict:
        return {
            "running": self.running,
            "in_flight": self.in_flight,
            "dispatched": self.dispatched_count,
            "skipped": self.skipped_count,
            "fallbacks": self.fallback_count,
            "discarded": self.discarded_count,
        }
