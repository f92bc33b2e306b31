"""
Serial Byte Source
==================

Physical serial link (USB CDC, UART bridge) read through pyserial.

pyserial is blocking, so open/read/close run in worker threads via
asyncio.to_thread. A pending read is interrupted with
Serial.cancel_read(), which makes the blocked read() return early.
"""

import asyncio
import logging
from typing import Optional

import serial

from aiduino.transport.base import SourceConnectionError, TransportError


logger = logging.getLogger(__name__)


class SerialByteSource:
    """
    Byte source backed by a serial port.

    Attributes:
        port: Device path or name (e.g. /dev/ttyACM0, COM5)
        baud_rate: Line speed
        read_timeout: Seconds a single blocking read may wait
        read_size: Maximum bytes fetched per chunk
    """

    def __init__(
        self,
        port: str,
        baud_rate: int = 9600,
        read_timeout: float = 0.5,
        read_size: int = 256,
    ) -> None:
        self.port = port
        self.baud_rate = baud_rate
        self.read_timeout = read_timeout
        self.read_size = max(1, read_size)

        self._serial: Optional[serial.Serial] = None
        self._cancelled: bool = False

    async def open(self) -> None:
        """Open the port. Raises SourceConnectionError on failure."""
        try:
            self._serial = await asyncio.to_thread(
                serial.Serial,
                self.port,
                self.baud_rate,
                timeout=self.read_timeout,
            )
        except (serial.SerialException, OSError, ValueError) as e:
            raise SourceConnectionError(
                f"Failed to open serial port {self.port}: {e}"
            ) from e

        self._cancelled = False
        logger.info(f"Serial port opened: {self.port} @ {self.baud_rate} baud")

    def _read_blocking(self) -> bytes:
        ser = self._serial
        if ser is None:
            return b""
        waiting = ser.in_waiting
        return ser.read(min(max(1, waiting), self.read_size))

    async def read(self) -> bytes:
        """
        Wait for the next non-empty chunk.

        A serial link has no natural end of stream; b"" is only returned
        once the source has been cancelled or closed.
        """
        while not self._cancelled and self._serial is not None:
            try:
                data = await asyncio.to_thread(self._read_blocking)
            except (serial.SerialException, OSError) as e:
                raise TransportError(f"Serial read failed on {self.port}: {e}") from e
            if data:
                return data
        return b""

    def cancel_read(self) -> None:
        """Unblock a reader thread waiting on the port."""
        self._cancelled = True
        if self._serial is not None:
            try:
                self._serial.cancel_read()
            except (serial.SerialException, OSError, AttributeError) as e:
                # Not every platform backend implements cancel_read
                logger.debug(f"cancel_read unsupported on {self.port}: {e}")

    async def close(self) -> None:
        """Close the port if it is open."""
        ser, self._serial = self._serial, None
        self._cancelled = True
        if ser is None:
            return
        try:
            await asyncio.to_thread(ser.close)
        except (serial.SerialException, OSError) as e:
            logger.warning(f"Error closing serial port {self.port}: {e}")
        else:
            logger.info(f"Serial port closed: {self.port}")
