"""
WebSocket Byte Source
=====================

Reads the device stream through a WebSocket bridge (for example a
serial-to-network relay running next to the board).

Text frames are UTF-8 encoded, binary frames passed through unchanged.
Frames are NOT assumed to align with lines; the framer handles that.
"""

import asyncio
import logging
from typing import Optional

import websockets
from websockets.exceptions import (
    ConnectionClosedError,
    ConnectionClosedOK,
    InvalidHandshake,
    InvalidURI,
)

from aiduino.transport.base import SourceConnectionError, TransportError


logger = logging.getLogger(__name__)


class WebSocketByteSource:
    """
    Byte source backed by a WebSocket connection.

    A normal close (code 1000/1001) is end of stream; an abnormal close
    is a transport error.

    Attributes:
        url: WebSocket URL to connect to
        open_timeout: Seconds allowed for the opening handshake
    """

    def __init__(self, url: str, open_timeout: float = 10.0) -> None:
        self.url = url
        self.open_timeout = open_timeout

        self._websocket: Optional[object] = None

    async def open(self) -> None:
        """Connect to the bridge. Raises SourceConnectionError on failure."""
        try:
            self._websocket = await websockets.connect(
                self.url,
                open_timeout=self.open_timeout,
                ping_interval=20,
                ping_timeout=10,
                close_timeout=5,
            )
        except (InvalidURI, InvalidHandshake, OSError, asyncio.TimeoutError) as e:
            raise SourceConnectionError(f"Failed to connect to {self.url}: {e}") from e

        logger.info(f"Connected to WebSocket source: {self.url}")

    async def read(self) -> bytes:
        """Receive the next frame as bytes."""
        ws = self._websocket
        if ws is None:
            return b""
        try:
            message = await ws.recv()
        except ConnectionClosedOK:
            logger.info("WebSocket source closed normally")
            return b""
        except ConnectionClosedError as e:
            raise TransportError(f"WebSocket closed with error: {e}") from e

        if isinstance(message, str):
            return message.encode("utf-8")
        return bytes(message)

    def cancel_read(self) -> None:
        """Pending recv() is interrupted by task cancellation; nothing to do."""
        pass

    async def close(self) -> None:
        """Close the connection if it is open."""
        ws, self._websocket = self._websocket, None
        if ws is None:
            return
        try:
            await ws.close()
        except Exception as e:
            logger.warning(f"Error closing WebSocket source: {e}")
        else:
            logger.info("Disconnected from WebSocket source")
