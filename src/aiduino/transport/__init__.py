"""
Transport Module
================

Byte sources that feed the stream session.

Components:
    - ByteSource: Protocol every transport satisfies
    - SerialByteSource: pyserial-backed physical link
    - WebSocketByteSource: network bridge
    - SimulatedByteSource: deterministic synthetic device

Design Philosophy:
    The session treats every transport as an opaque capability. Real
    and simulated sources satisfy the identical contract.
"""

from aiduino.transport.base import ByteSource, SourceConnectionError, TransportError
from aiduino.transport.serial_source import SerialByteSource
from aiduino.transport.simulated import SimulatedByteSource
from aiduino.transport.websocket_source import WebSocketByteSource

__all__ = [
    "ByteSource",
    "SourceConnectionError",
    "TransportError",
    "SerialByteSource",
    "WebSocketByteSource",
    "SimulatedByteSource",
]
