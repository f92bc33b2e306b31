"""
Summary Wire Schema
===================

Pydantic models for the summarization HTTP contract.

Request:
    {"samples": [{"timestamp": 1707321234567, "data": {"temp": 21.5}}, ...]}

Success response:
    {"text": "Temperature rose steadily ..."}

Failure response (non-2xx):
    {"message": "Error from AI service", "details": "..."}
"""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class SampleMessage(BaseModel):
    """One sample as it travels over the summary endpoint."""

    timestamp: int = Field(..., ge=0, description="Capture time in epoch milliseconds")
    data: Dict[str, Any] = Field(..., description="Parsed JSON object from the device")


class SummaryRequest(BaseModel):
    """Body of POST /api/summary."""

    samples: List[SampleMessage] = Field(
        ...,
        description="Ordered samples, oldest first",
    )

    class Config:
        """Pydantic model configuration."""

        json_schema_extra = {
            "example": {
                "samples": [
                    {"timestamp": 1707321234567, "data": {"temp": 21.5, "hum": 40}},
                    {"timestamp": 1707321235567, "data": {"temp": 21.7, "hum": 41}},
                ]
            }
        }


class SummaryResponse(BaseModel):
    """Successful summary body."""

    text: str


class ErrorResponse(BaseModel):
    """Failure body returned with a non-2xx status."""

    message: str
    details: Optional[str] = None


class SummaryOrigin(str, Enum):
    """Where a summary text came from."""

    REMOTE = "remote"
    FALLBACK = "fallback"


class SummaryResult(BaseModel):
    """
    Summary produced by the scheduler.

    Attributes:
        text: Summary text shown to the user
        origin: REMOTE when the summarizer answered, FALLBACK otherwise
        sample_count: Number of samples in the summarized snapshot
        generated_at: Epoch milliseconds when the result was accepted
    """

    text: str
    origin: SummaryOrigin
    sample_count: int = Field(..., ge=0)
    generated_at: int = Field(..., ge=0)
