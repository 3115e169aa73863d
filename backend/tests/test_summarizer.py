import json

import pytest
import requests

from app.core.exceptions import SummarizerError, SummarizerUnavailableError
from app.services.summarizer import GeminiSummarizer, SummarizeAnnouncementInput


class FakeResponse:
    def __init__(self, status_code=200, payload=None, text=""):
        self.status_code = status_code
        self._payload = payload
        self.text = text

    def json(self):
        if self._payload is None:
            raise ValueError("no JSON body")
        return self._payload


class FakeSession:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.requests = []

    def post(self, url, **kwargs):
        self.requests.append((url, kwargs))
        if self.error is not None:
            raise self.error
        return self.response


def candidate(text):
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


def make_summarizer(session):
    return GeminiSummarizer("secret", model="test-model", base_url="https://ai.example/v1", timeout=5, session=session)


def test_summarize_posts_prompt_and_parses_schema_output():
    session = FakeSession(FakeResponse(payload=candidate(json.dumps({"summary": "- a\n- b"}))))

    output = make_summarizer(session).summarize(SummarizeAnnouncementInput(announcement_text="Field trip Friday"))

    assert output.summary == "- a\n- b"
    url, kwargs = session.requests[0]
    assert url == "https://ai.example/v1/models/test-model:generateContent"
    assert kwargs["headers"]["x-goog-api-key"] == "secret"
    assert kwargs["timeout"] == 5
    assert "Field trip Friday" in kwargs["json"]["contents"][0]["parts"][0]["text"]
    assert kwargs["json"]["generationConfig"]["responseMimeType"] == "application/json"


@pytest.mark.parametrize("error", [requests.ConnectionError("down"), requests.Timeout("slow")])
def test_connectivity_failures_are_reported_as_unavailable(error):
    summarizer = make_summarizer(FakeSession(error=error))

    with pytest.raises(SummarizerUnavailableError):
        summarizer.summarize(SummarizeAnnouncementInput(announcement_text="text"))


def test_error_status_is_a_summarizer_error():
    summarizer = make_summarizer(FakeSession(FakeResponse(status_code=500, text="boom")))

    with pytest.raises(SummarizerError, match="HTTP 500"):
        summarizer.summarize(SummarizeAnnouncementInput(announcement_text="text"))


@pytest.mark.parametrize(
    "payload",
    [
        None,
        {"candidates": []},
        candidate("not json"),
        candidate(json.dumps({"headline": "missing summary"})),
    ],
)
def test_malformed_responses_are_summarizer_errors(payload):
    summarizer = make_summarizer(FakeSession(FakeResponse(payload=payload)))

    with pytest.raises(SummarizerError, match="Malformed"):
        summarizer.summarize(SummarizeAnnouncementInput(announcement_text="text"))


class ClosingSession(FakeSession):
    def __init__(self, response=None, error=None):
        super().__init__(response, error)
        self.closed = False

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.closed = True


@pytest.mark.parametrize(
    "session",
    [
        ClosingSession(FakeResponse(payload=candidate(json.dumps({"summary": "- a"})))),
        ClosingSession(error=requests.ConnectionError("refused")),
    ],
)
def test_owned_session_is_closed_after_each_call(monkeypatch, session):
    monkeypatch.setattr(requests, "Session", lambda: session)
    summarizer = GeminiSummarizer("secret", model="test-model", base_url="https://ai.example/v1", timeout=5)

    try:
        summarizer.summarize(SummarizeAnnouncementInput(announcement_text="Field trip Friday"))
    except SummarizerUnavailableError:
        pass

    assert session.requests
    assert session.closed


def test_injected_session_is_left_open():
    session = ClosingSession(FakeResponse(payload=candidate(json.dumps({"summary": "- a"}))))

    make_summarizer(session).summarize(SummarizeAnnouncementInput(announcement_text="Field trip Friday"))

    assert session.closed is False
