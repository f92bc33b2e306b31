"""
Byte Source Contract
====================

The stream pump talks to every transport through the ByteSource protocol,
so it never knows whether bytes come from a real serial link, a
WebSocket, or the built-in simulator.

Contract:
    - open():        acquire the transport (raise on failure)
    - read():        next chunk of raw bytes; b"" means end of stream
    - cancel_read(): interrupt a pending read() (no-op when none)
    - close():       release the transport; safe to call repeatedly
"""

from typing import Protocol


class SourceConnectionError(ConnectionError):
    """Raised when a byte source cannot be opened."""
    pass


class TransportError(Exception):
    """Raised when an open byte source fails while reading."""
    pass


class ByteSource(Protocol):
    """
    Protocol for byte-stream transports.

    Implemented by:
        - SerialByteSource (physical serial link)
        - WebSocketByteSource (network bridge)
        - SimulatedByteSource (synthetic device for development and tests)
    """

    async def open(self) -> None:
        """Acquire the underlying transport."""
        ...

    async def read(self) -> bytes:
        """
        Wait for the next chunk.

        Returns:
            Raw bytes, or b"" once the stream has ended.

        Raises:
            TransportError: If the transport fails mid-stream
        """
        ...

    def cancel_read(self) -> None:
        """Interrupt a pending read()."""
        ...

    async def close(self) -> None:
        """Release the transport. Idempotent."""
        ...
