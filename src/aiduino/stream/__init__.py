"""
Stream Module
=============

Byte-stream ingestion and sample buffering components.

This module provides the ingestion layer for aiduino:
    - SampleRing: Fixed-capacity window (drops oldest on overflow)
    - LineFramer: Newline framing across arbitrary chunk boundaries
    - decode_line: JSON line -> Sample
    - StreamSession: Connection state machine driving the above

Example:
    from aiduino.stream import StreamSession
    from aiduino.transport import SimulatedByteSource

    session = StreamSession(SimulatedByteSource, capacity=60)
    await session.connect()

    # Read the current window
    for sample in session.ring.snapshot():
        render(sample)
"""

from aiduino.stream.ring import SampleRing
from aiduino.stream.framer import LineFramer
from aiduino.stream.decoder import (
    MalformedJSONError,
    SampleDecodeError,
    UnexpectedShapeError,
    decode_line,
)
from aiduino.stream.pump import (
    Notification,
    NotificationLevel,
    SessionListener,
    SessionState,
    StreamMetrics,
    StreamSession,
)


__all__ = [
    "SampleRing",
    "LineFramer",
    "decode_line",
    "SampleDecodeError",
    "MalformedJSONError",
    "UnexpectedShapeError",
    "StreamSession",
    "StreamMetrics",
    "SessionState",
    "SessionListener",
    "Notification",
    "NotificationLevel",
]
