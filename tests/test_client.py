"""
Summarizer Client Tests
=======================

Outbound HTTP is exercised through an injected fake requests session.
"""

import asyncio

import pytest
import requests

from aiduino.models.sample import Sample
from aiduino.summary.client import (
    NO_SUMMARY_TEXT,
    ChatCompletionSummarizer,
    HttpSummarizer,
    SummarizationError,
)

from conftest import FakeResponse, FakeSession


SAMPLES = [Sample(1, {"temp": 21.5}), Sample(2, {"temp": 22.0})]


class TestHttpSummarizer:
    """{samples} -> {text} contract."""

    def test_success(self):
        session = FakeSession(FakeResponse(200, {"text": "  Warming slowly.  "}))
        summarizer = HttpSummarizer("http://svc/api/summary", session=session)

        text = asyncio.run(summarizer.summarize(SAMPLES))

        assert text == "Warming slowly."
        url, kwargs = session.requests[0]
        assert url == "http://svc/api/summary"
        assert kwargs["json"] == {
            "samples": [
                {"timestamp": 1, "data": {"temp": 21.5}},
                {"timestamp": 2, "data": {"temp": 22.0}},
            ]
        }

    def test_error_message_is_propagated(self):
        session = FakeSession(FakeResponse(502, {"message": "Error from AI service"}))
        summarizer = HttpSummarizer("http://svc/api/summary", session=session)

        with pytest.raises(SummarizationError) as exc_info:
            asyncio.run(summarizer.summarize(SAMPLES))
        assert exc_info.value.message == "Error from AI service"
        assert exc_info.value.status_code == 502
        assert summarizer.get_metrics()["error_count"] == 1

    def test_error_without_json_body(self):
        session = FakeSession(FakeResponse(500, None, text="<html>oops</html>"))
        summarizer = HttpSummarizer("http://svc/api/summary", session=session)

        with pytest.raises(SummarizationError) as exc_info:
            asyncio.run(summarizer.summarize(SAMPLES))
        assert exc_info.value.message == "Failed to fetch summary"

    @pytest.mark.parametrize("body", [None, {"text": ""}, {"text": 5}, ["text"], {}])
    def test_malformed_success_body(self, body):
        session = FakeSession(FakeResponse(200, body))
        summarizer = HttpSummarizer("http://svc/api/summary", session=session)

        with pytest.raises(SummarizationError):
            asyncio.run(summarizer.summarize(SAMPLES))

    def test_network_error(self):
        session = FakeSession(error=requests.ConnectionError("refused"))
        summarizer = HttpSummarizer("http://svc/api/summary", session=session)

        with pytest.raises(SummarizationError):
            asyncio.run(summarizer.summarize(SAMPLES))


class TestChatCompletionSummarizer:
    """Chat-completions request and response handling."""

    def test_request_shape(self):
        body = {"choices": [{"message": {"content": " Stable readings. "}}]}
        session = FakeSession(FakeResponse(200, body))
        summarizer = ChatCompletionSummarizer(
            "https://ai.example/chat/completions",
            model="test-model",
            api_key="secret",
            session=session,
        )

        text = asyncio.run(summarizer.summarize(SAMPLES))

        assert text == "Stable readings."
        url, kwargs = session.requests[0]
        assert kwargs["json"]["model"] == "test-model"
        messages = kwargs["json"]["messages"]
        assert messages[0] == {"role": "system", "content": "You are a concise, insightful data analyst."}
        assert "≤60 words" in messages[1]["content"]
        assert '"temp": 21.5' in messages[1]["content"]
        assert kwargs["headers"]["Authorization"] == "Bearer secret"

    def test_upstream_error(self):
        session = FakeSession(FakeResponse(429, None, text="rate limited"))
        summarizer = ChatCompletionSummarizer("https://ai.example", session=session)

        with pytest.raises(SummarizationError) as exc_info:
            asyncio.run(summarizer.summarize(SAMPLES))
        assert exc_info.value.status_code == 429
        assert exc_info.value.details == "rate limited"

    def test_missing_choices(self):
        session = FakeSession(FakeResponse(200, {"choices": []}))
        summarizer = ChatCompletionSummarizer("https://ai.example", session=session)

        with pytest.raises(SummarizationError) as exc_info:
            asyncio.run(summarizer.summarize(SAMPLES))
        assert "Invalid response structure" in exc_info.value.message

    def test_empty_content(self):
        session = FakeSession(FakeResponse(200, {"choices": [{"message": {"content": ""}}]}))
        summarizer = ChatCompletionSummarizer("https://ai.example", session=session)

        assert asyncio.run(summarizer.summarize(SAMPLES)) == NO_SUMMARY_TEXT
