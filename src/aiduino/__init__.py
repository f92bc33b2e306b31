"""
aiduino
=======

Live sensor streaming with a bounded sample window and periodic
natural-language summaries.

A device writes one JSON object per line to a byte stream (serial link,
WebSocket bridge, or the built-in simulator). aiduino frames and decodes
those lines, keeps the most recent readings in a fixed-size ring, and
hands snapshots of that window to renderers and to a summarizer.

Components:
    - stream: SampleRing, LineFramer, decoder, StreamSession state machine
    - transport: Byte sources (serial, websocket, simulated)
    - summary: Summarizers, local fallback, SummaryScheduler
    - main: FastAPI service exposing the session

Example:
    from aiduino.stream import StreamSession
    from aiduino.transport import SimulatedByteSource

    session = StreamSession(SimulatedByteSource)
    await session.connect()
"""

__version__ = "0.1.0"

__all__ = [
    "__version__",
]
