"""
Summary Module
==============

Natural-language summaries of the sample window.

Components:
    - Summarizer: Protocol for summary backends
    - HttpSummarizer: Client for a {samples} -> {text} endpoint
    - ChatCompletionSummarizer: Direct chat-completions backend
    - local_summary: min/avg/max fallback computed in-process
    - SummaryScheduler: Threshold + periodic trigger with one call in flight
"""

from aiduino.summary.client import (
    ChatCompletionSummarizer,
    HttpSummarizer,
    SummarizationError,
    Summarizer,
)
from aiduino.summary.fallback import NO_DATA_MESSAGE, local_summary, numeric_fields
from aiduino.summary.scheduler import SummaryScheduler

__all__ = [
    "Summarizer",
    "SummarizationError",
    "HttpSummarizer",
    "ChatCompletionSummarizer",
    "local_summary",
    "numeric_fields",
    "NO_DATA_MESSAGE",
    "SummaryScheduler",
]
