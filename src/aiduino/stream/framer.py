"""
Line Framer
===========

Reassembles newline-delimited text from an arbitrary sequence of byte chunks.

Chunk boundaries carry no meaning: a line, or a single multi-byte UTF-8
character, may be split across any number of chunks. Bytes are decoded
with an incremental decoder so a split character is completed by the
next chunk instead of being corrupted.

Invalid byte sequences are replaced with U+FFFD rather than raising; the
resulting line then fails JSON decoding downstream like any other noise.
"""

import codecs
import logging
from typing import List


logger = logging.getLogger(__name__)


class LineFramer:
    """
    Incremental newline framer over raw bytes.

    Example:
        framer = LineFramer()
        for chunk in chunks:
            for line in framer.feed(chunk):
                handle(line)
        framer.finish()  # unterminated remainder is discarded
    """

    def __init__(self, encoding: str = "utf-8") -> None:
        self._encoding = encoding
        self._decoder = codecs.getincrementaldecoder(encoding)(errors="replace")
        self._buffer: str = ""

    @property
    def pending(self) -> str:
        """Text received after the last newline."""
        return self._buffer

    def feed(self, chunk: bytes) -> List[str]:
        """
        Consume one chunk and return every line it completes.

        Lines are stripped of surrounding whitespace; blank lines are
        dropped.

        Args:
            chunk: Raw bytes from the byte source

        Returns:
            Completed non-empty lines, in stream order.
        """
        self._buffer += self._decoder.decode(chunk, final=False)

        lines: List[str] = []
        while True:
            newline_index = self._buffer.find("\n")
            if newline_index == -1:
                break
            line = self._buffer[:newline_index].strip()
            self._buffer = self._buffer[newline_index + 1:]
            if line:
                lines.append(line)
        return lines

    def finish(self) -> str:
        """
        Signal end of stream.

        Any unterminated text is discarded, never emitted, because a
        partial final line cannot be trusted. The framer is reset.

        Returns:
            The discarded remainder (for diagnostics).
        """
        remainder = self._buffer + self._decoder.decode(b"", final=True)
        if remainder.strip():
            logger.debug(f"Discarding unterminated fragment ({len(remainder)} chars)")
        self.reset()
        return remainder

    def reset(self) -> None:
        """Forget buffered text and any partial character."""
        self._decoder = codecs.getincrementaldecoder(self._encoding)(errors="replace")
        self._buffer = ""
