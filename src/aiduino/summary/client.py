"""
Summarizers
===========

Clients that turn a snapshot of samples into a short text summary.

    - Summarizer: Protocol used by the SummaryScheduler
    - HttpSummarizer: Calls a summary endpoint ({samples} -> {text})
    - ChatCompletionSummarizer: Calls an OpenAI-style chat-completions
      API directly; this is what backs POST /api/summary

Design Rules:
    - requests is blocking, calls run in a worker thread
    - Every failure is raised as SummarizationError
    - Callers decide how to degrade (the scheduler falls back locally)
"""

import asyncio
import json
import logging
from typing import Any, Dict, List, Optional, Protocol, Sequence

import requests

from aiduino.models.sample import Sample


logger = logging.getLogger(__name__)


DEFAULT_SYSTEM_PROMPT = "You are a concise, insightful data analyst."
NO_SUMMARY_TEXT = "No summary generated."


class SummarizationError(Exception):
    """Raised when a summary could not be produced."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        details: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.details = details


class Summarizer(Protocol):
    """
    Protocol for summary backends.

    Implementations take the ordered snapshot (oldest first) and return
    a short text, or raise.
    """

    async def summarize(self, samples: Sequence[Sample]) -> str:
        ...


def _extract_body(response: requests.Response, limit: int = 512) -> str:
    try:
        text = response.text
    except Exception:
        return ""
    return text[:limit]


class HttpSummarizer:
    """
    Client for a summary endpoint.

    Wire contract:
        POST {"samples": [{"timestamp": ..., "data": {...}}, ...]}
        2xx  {"text": "..."}
        else {"message": "..."}

    Attributes:
        url: Summary endpoint URL
        timeout: Request timeout in seconds
    """

    def __init__(
        self,
        url: str,
        timeout: float = 30.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.url = url
        self.timeout = timeout
        self.session = session or requests.Session()

        self._call_count: int = 0
        self._error_count: int = 0

    async def summarize(self, samples: Sequence[Sample]) -> str:
        payload = {"samples": [sample.to_dict() for sample in samples]}
        self._call_count += 1
        try:
            return await asyncio.to_thread(self._post, payload)
        except SummarizationError:
            self._error_count += 1
            raise

    def _post(self, payload: Dict[str, Any]) -> str:
        try:
            response = self.session.post(self.url, json=payload, timeout=self.timeout)
        except requests.RequestException as e:
            raise SummarizationError(f"Summary request failed: {e}") from e

        if not response.ok:
            message = "Failed to fetch summary"
            try:
                body = response.json()
            except ValueError:
                body = None
            if isinstance(body, dict) and isinstance(body.get("message"), str):
                message = body["message"]
            raise SummarizationError(
                message,
                status_code=response.status_code,
                details=_extract_body(response),
            )

        try:
            body = response.json()
        except ValueError as e:
            raise SummarizationError("Summary response is not JSON") from e

        text = body.get("text") if isinstance(body, dict) else None
        if not isinstance(text, str) or not text.strip():
            raise SummarizationError("Summary response has no text")

        logger.debug(f"Summary received ({len(text)} chars) for {len(payload['samples'])} samples")
        return text.strip()

    def get_metrics(self) -> dict:
        return {
            "url": self.url,
            "call_count": self._call_count,
            "error_count": self._error_count,
        }


class ChatCompletionSummarizer:
    """
    Summarizer backed by a chat-completions API.

    Sends the samples as JSON inside the user prompt and asks for a
    summary of at most max_words words.

    Attributes:
        url: Chat-completions endpoint
        model: Model name sent with each request
        max_words: Word budget stated in the prompt
    """

    def __init__(
        self,
        url: str,
        model: str = "gpt-3.5-turbo",
        system_prompt: str = DEFAULT_SYSTEM_PROMPT,
        max_words: int = 60,
        timeout: float = 30.0,
        api_key: Optional[str] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.url = url
        self.model = model
        self.system_prompt = system_prompt
        self.max_words = max_words
        self.timeout = timeout
        self.api_key = api_key
        self.session = session or requests.Session()

    def build_messages(self, samples: List[Dict[str, Any]]) -> List[Dict[str, str]]:
        prompt = (
            f"Summarize the key trends, anomalies, or interesting insights "
            f"(≤{self.max_words} words) from the following JSON data:\n"
            f"{json.dumps(samples)}"
        )
        return [
            {"role": "system", "content": self.system_prompt},
            {"role": "user", "content": prompt},
        ]

    async def summarize(self, samples: Sequence[Sample]) -> str:
        return await self.summarize_payload([sample.to_dict() for sample in samples])

    async def summarize_payload(self, samples: List[Dict[str, Any]]) -> str:
        """Summarize samples that are already in wire form."""
        return await asyncio.to_thread(self._complete, samples)

    def _complete(self, samples: List[Dict[str, Any]]) -> str:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"

        body = {"model": self.model, "messages": self.build_messages(samples)}
        try:
            response = self.session.post(
                self.url,
                json=body,
                headers=headers,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise SummarizationError(f"AI service unreachable: {e}") from e

        if not response.ok:
            details = _extract_body(response)
            logger.error(f"AI service error ({response.status_code}): {details}")
            raise SummarizationError(
                "Error from AI service",
                status_code=response.status_code,
                details=details,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise SummarizationError("Invalid response structure from AI service") from e

        choices = data.get("choices") if isinstance(data, dict) else None
        if not choices:
            logger.error(f"Invalid response structure from AI service: {data}")
            raise SummarizationError("Invalid response structure from AI service")

        message = choices[0].get("message") if isinstance(choices[0], dict) else None
        content = message.get("content") if isinstance(message, dict) else None
        if isinstance(content, str) and content.strip():
            return content.strip()
        return NO_SUMMARY_TEXT
