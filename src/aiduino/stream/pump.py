"""
Stream Session
==============

Owns one device connection: the byte source, the line framer, and the
SampleRing the decoded samples land in.

This module provides the StreamSession class which:
    - Opens a byte source (scoped: released on every exit path)
    - Reads chunks, frames lines, decodes samples, pushes them into the ring
    - Logs decode failures but keeps streaming
    - Stops cleanly on end of stream, disconnect(), or transport error
    - Exposes metrics and listener hooks for the rest of the application

State machine:
    IDLE -> CONNECTING -> STREAMING -> CLOSING -> IDLE
    CONNECTING --(open failed)--> IDLE
    STREAMING --(transport error)--> CLOSING -> IDLE

Design Rules:
    - Exactly one read task per session
    - The ring is mutated ONLY by the read task
    - connect() while not IDLE is a no-op returning False
    - disconnect() never raises on the cancellation path
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional, Protocol

from aiduino.models.sample import Sample
from aiduino.stream.decoder import (
    MalformedJSONError,
    SampleDecodeError,
    UnexpectedShapeError,
    decode_line,
)
from aiduino.stream.framer import LineFramer
from aiduino.stream.ring import DEFAULT_CAPACITY, SampleRing
from aiduino.transport.base import ByteSource, SourceConnectionError, TransportError


logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    """Lifecycle states of a StreamSession."""

    IDLE = "IDLE"
    CONNECTING = "CONNECTING"
    STREAMING = "STREAMING"
    CLOSING = "CLOSING"


class NotificationLevel(str, Enum):
    """Severity of a user-facing notification."""

    INFO = "info"
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True, slots=True)
class Notification:
    """User-visible lifecycle message (connect, disconnect, failures)."""

    level: NotificationLevel
    title: str
    description: str = ""


class SessionListener(Protocol):
    """Observer interface for session events. Callbacks run on the event loop."""

    def on_sample(self, sample: Sample) -> None:
        ...

    def on_state_change(self, state: SessionState) -> None:
        ...


class StreamMetrics:
    """Metrics for StreamSession observability."""

    __slots__ = (
        "chunks_received",
        "bytes_received",
        "lines_framed",
        "samples_decoded",
        "malformed_lines",
        "unexpected_shape_lines",
        "connect_count",
        "connection_errors",
        "transport_errors",
        "discarded_fragments",
        "last_sample_timestamp",
    )

    def __init__(self) -> None:
        self.chunks_received: int = 0
        self.bytes_received: int = 0
        self.lines_framed: int = 0
        self.samples_decoded: int = 0
        self.malformed_lines: int = 0
        self.unexpected_shape_lines: int = 0
        self.connect_count: int = 0
        self.connection_errors: int = 0
        self.transport_errors: int = 0
        self.discarded_fragments: int = 0
        self.last_sample_timestamp: int = 0

    @property
    def decode_errors(self) -> int:
        return self.malformed_lines + self.unexpected_shape_lines

    def to_dict(self) -> dict:
        """Export metrics as dict."""
        return {name: getattr(self, name) for name in self.__slots__}


def _epoch_ms() -> int:
    return int(time.time() * 1000)


class StreamSession:
    """
    One device connection and its rolling sample window.

    The session is an explicit object handed to whoever needs it (HTTP
    handlers, the summary scheduler); nothing about the current
    connection lives in module globals.

    Attributes:
        ring: SampleRing holding the current window
        state: Current SessionState
        metrics: Operational counters
        last_error: Most recent connection or transport error, if any

    Example:
        session = StreamSession(lambda: SimulatedByteSource(), capacity=60)

        await session.connect()
        ...
        window = session.ring.snapshot()
        await session.disconnect()
    """

    def __init__(
        self,
        source_factory: Callable[[], ByteSource],
        capacity: int = DEFAULT_CAPACITY,
        clock: Callable[[], int] = _epoch_ms,
        notify: Optional[Callable[[Notification], None]] = None,
    ) -> None:
        """
        Initialize stream session.

        Args:
            source_factory: Builds a fresh, unopened byte source per connect()
            capacity: Ring capacity (samples kept in the window)
            clock: Returns the current time in epoch milliseconds
            notify: Receives user-facing notifications
        """
        self.ring = SampleRing(capacity=capacity)
        self.metrics = StreamMetrics()
        self.last_error: Optional[Exception] = None

        self._source_factory = source_factory
        self._clock = clock
        self._notify_cb = notify
        self._framer = LineFramer()
        self._listeners: List[SessionListener] = []

        self._state: SessionState = SessionState.IDLE
        self._source: Optional[ByteSource] = None
        self._read_task: Optional[asyncio.Task] = None
        self._abort_connect: bool = False
        self._last_timestamp: int = 0

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def connected(self) -> bool:
        """Whether samples are currently being streamed."""
        return self._state is SessionState.STREAMING

    @property
    def source(self) -> Optional[ByteSource]:
        """Byte source held while connected, None otherwise."""
        return self._source

    def add_listener(self, listener: SessionListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: SessionListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def connect(self) -> bool:
        """
        Open a byte source and start streaming.

        Returns:
            True if a new stream was started, False if the session was
            not IDLE (the call is ignored).

        Raises:
            SourceConnectionError: If the byte source could not be opened.
                The session is back in IDLE when this is raised.
        """
        if self._state is not SessionState.IDLE:
            logger.warning(f"connect() ignored: session is {self._state.value}")
            return False

        self._abort_connect = False
        self._set_state(SessionState.CONNECTING)

        source = self._source_factory()
        self._source = source
        try:
            await source.open()
        except asyncio.CancelledError:
            await self._release_source()
            self._set_state(SessionState.IDLE)
            raise
        except Exception as e:
            self.metrics.connection_errors += 1
            await self._release_source()
            self._set_state(SessionState.IDLE)

            error = e if isinstance(e, SourceConnectionError) else SourceConnectionError(str(e))
            self.last_error = error
            logger.error(f"Connection failed: {e}")
            self._notify(NotificationLevel.ERROR, "Connection Failed", str(e))
            if error is e:
                raise
            raise error from e

        if self._abort_connect:
            logger.info("Disconnect requested while connecting, aborting")
            await self._release_source()
            self._set_state(SessionState.IDLE)
            return False

        # New connection, new window
        self.ring.clear()
        self._framer.reset()
        self._last_timestamp = 0
        self.last_error = None
        self.metrics.connect_count += 1

        self._set_state(SessionState.STREAMING)
        self._read_task = asyncio.create_task(
            self._stream(source),
            name="stream_pump",
        )
        logger.info("Byte source connected, streaming started")
        self._notify(NotificationLevel.SUCCESS, "Device Connected")
        return True

    async def disconnect(self) -> None:
        """
        Stop streaming and release the byte source.

        Safe to call in any state; cancellation is the normal path here
        and is never propagated to the caller.

        During CONNECTING this only requests an abort and returns at once:
        the session stays CONNECTING and keeps the source until the
        pending open() returns, after which connect() releases the
        source, goes back to IDLE and returns False.
        """
        if self._state is SessionState.IDLE:
            return

        if self._state is SessionState.CONNECTING:
            # Picked up by connect() once open() returns
            self._abort_connect = True
            return

        if self._state is SessionState.CLOSING:
            # Stream is already winding down on its own
            await self.wait_closed()
            return

        logger.info("Disconnecting byte source...")
        task = self._read_task
        self._set_state(SessionState.CLOSING)
        if self._source is not None:
            self._source.cancel_read()

        if task is not None and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

        # A task cancelled before its first step never runs its cleanup
        self._read_task = None
        await self._release_source()
        self._framer.reset()
        self._set_state(SessionState.IDLE)

        self._notify(NotificationLevel.INFO, "Device Disconnected")

    async def wait_closed(self) -> None:
        """Wait until the current read task has finished."""
        task = self._read_task
        if task is None:
            return
        try:
            await asyncio.shield(task)
        except asyncio.CancelledError:
            if not task.cancelled():
                raise

    # ------------------------------------------------------------------
    # Streaming
    # ------------------------------------------------------------------

    async def _stream(self, source: ByteSource) -> None:
        """Read chunks until end of stream, cancellation, or transport error."""
        try:
            while True:
                chunk = await source.read()
                if not chunk:
                    logger.info("Byte source reached end of stream")
                    self._notify(NotificationLevel.INFO, "Stream Ended")
                    break
                self.ingest(chunk)

        except asyncio.CancelledError:
            logger.info("Stream read cancelled")
            raise

        except Exception as e:
            error = e if isinstance(e, TransportError) else TransportError(str(e))
            self.metrics.transport_errors += 1
            self.last_error = error
            logger.error(f"Transport error while streaming: {e}")
            self._notify(NotificationLevel.ERROR, "Serial Read Error", str(e))

        finally:
            if self._state is not SessionState.CLOSING:
                self._set_state(SessionState.CLOSING)
            if self._framer.finish().strip():
                self.metrics.discarded_fragments += 1
            await self._release_source()
            self._read_task = None
            self._set_state(SessionState.IDLE)
            logger.info(
                f"Stream closed: {self.metrics.samples_decoded} samples decoded, "
                f"{self.metrics.decode_errors} decode errors"
            )

    def ingest(self, chunk: bytes) -> List[Sample]:
        """
        Frame, decode and store one chunk.

        Returns:
            Samples pushed into the ring for this chunk.
        """
        self.metrics.chunks_received += 1
        self.metrics.bytes_received += len(chunk)

        pushed: List[Sample] = []
        for line in self._framer.feed(chunk):
            self.metrics.lines_framed += 1
            try:
                sample = decode_line(line, self._capture_time())
            except MalformedJSONError as e:
                self.metrics.malformed_lines += 1
                logger.warning(f"Failed to parse JSON line {line!r}: {e}")
                continue
            except UnexpectedShapeError as e:
                self.metrics.unexpected_shape_lines += 1
                logger.warning(f"Received non-object JSON line {line!r}: {e}")
                continue

            self.ring.push(sample)
            self.metrics.samples_decoded += 1
            self.metrics.last_sample_timestamp = sample.timestamp
            pushed.append(sample)

            for listener in list(self._listeners):
                try:
                    listener.on_sample(sample)
                except Exception:
                    logger.exception("Session listener failed in on_sample")

        return pushed

    def _capture_time(self) -> int:
        # Clamp so timestamps never go backwards within one connection
        now = max(self._clock(), self._last_timestamp)
        self._last_timestamp = now
        return now

    async def _release_source(self) -> None:
        """Close the held byte source exactly once."""
        source, self._source = self._source, None
        if source is None:
            return
        try:
            await source.close()
        except Exception as e:
            logger.warning(f"Error closing byte source: {e}")

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def _set_state(self, state: SessionState) -> None:
        if state is self._state:
            return
        logger.debug(f"Session state {self._state.value} -> {state.value}")
        self._state = state
        for listener in list(self._listeners):
            try:
                listener.on_state_change(state)
            except Exception:
                logger.exception("Session listener failed in on_state_change")

    def _notify(self, level: NotificationLevel, title: str, description: str = "") -> None:
        if self._notify_cb is None:
            return
        try:
            self._notify_cb(Notification(level=level, title=title, description=description))
        except Exception:
            logger.exception("Notification callback failed")


__all__ = [
    "SampleDecodeError",
    "SessionState",
    "SessionListener",
    "Notification",
    "NotificationLevel",
    "StreamMetrics",
    "StreamSession",
]
