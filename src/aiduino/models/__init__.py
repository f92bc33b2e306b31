"""
Data Models
===========

Models:
    - Sample: Immutable timestamped device reading
    - SummaryRequest / SummaryResponse / ErrorResponse: summary wire schema
    - SummaryResult: Summary accepted by the scheduler
"""

from aiduino.models.sample import JsonValue, Sample
from aiduino.models.summary import (
    ErrorResponse,
    SampleMessage,
    SummaryOrigin,
    SummaryRequest,
    SummaryResponse,
    SummaryResult,
)

__all__ = [
    "JsonValue",
    "Sample",
    "SampleMessage",
    "SummaryRequest",
    "SummaryResponse",
    "ErrorResponse",
    "SummaryOrigin",
    "SummaryResult",
]
