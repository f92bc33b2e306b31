"""
Sample Decoder
==============

Turns one framed line into a Sample.

Design Rules:
    - Any JSON object is accepted (no field or range validation)
    - Anything else is a SampleDecodeError, never fatal to the stream
    - NaN / Infinity literals are rejected like a strict JSON parser would
    - Numbers that overflow to infinity (1e400) are rejected too; a
      non-finite value cannot be rendered back to JSON
"""

import json
import math
from typing import NoReturn

from aiduino.models.sample import Sample


class SampleDecodeError(Exception):
    """Raised when a line cannot be turned into a Sample."""

    def __init__(self, message: str, line: str) -> None:
        super().__init__(message)
        self.line = line


class MalformedJSONError(SampleDecodeError):
    """The line is not valid JSON."""
    pass


class UnexpectedShapeError(SampleDecodeError):
    """The line is valid JSON but not an object."""
    pass


def _reject_constant(name: str) -> NoReturn:
    raise ValueError(f"non-standard JSON constant {name}")


def _parse_finite_float(text: str) -> float:
    value = float(text)
    if not math.isfinite(value):
        raise ValueError(f"number out of range: {text}")
    return value


def decode_line(line: str, captured_at: int) -> Sample:
    """
    Parse a line into a Sample stamped with the capture time.

    Args:
        line: One complete, trimmed line of text
        captured_at: Capture time in epoch milliseconds

    Returns:
        Sample with timestamp=captured_at and data=the parsed object

    Raises:
        MalformedJSONError: If the line is not valid JSON
        UnexpectedShapeError: If the JSON value is not an object
    """
    try:
        value = json.loads(
            line,
            parse_constant=_reject_constant,
            parse_float=_parse_finite_float,
        )
    except ValueError as e:
        # json.JSONDecodeError is a ValueError subclass
        raise MalformedJSONError(f"Malformed JSON: {e}", line) from e

    if not isinstance(value, dict):
        raise UnexpectedShapeError(
            f"Expected a JSON object, got {type(value).__name__}",
            line,
        )

    return Sample(timestamp=captured_at, data=value)
