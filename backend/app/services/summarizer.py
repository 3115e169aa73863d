"""Client for the hosted model that turns an announcement into bullet points."""
from __future__ import annotations

import json
import logging

from pydantic import BaseModel, Field, ValidationError
import requests

from app.core.config import get_settings
from app.core.exceptions import SummarizerError, SummarizerUnavailableError

logger = logging.getLogger(__name__)

SUMMARY_PROMPT = """Summarize the following announcement as concise Markdown bullet points.

Announcement:
{announcement_text}

Summary (Markdown bullet points):
"""

RESPONSE_SCHEMA = {
    "type": "OBJECT",
    "properties": {"summary": {"type": "STRING"}},
    "required": ["summary"],
}


class SummarizeAnnouncementInput(BaseModel):
    announcement_text: str = Field(min_length=1)


class SummarizeAnnouncementOutput(BaseModel):
    summary: str


class GeminiSummarizer:
    """Single-shot ``generateContent`` call with a JSON response schema.

    Connection failures and timeouts raise ``SummarizerUnavailableError``;
    error statuses and replies that do not match the output schema raise
    ``SummarizerError``.
    """

    def __init__(
        self,
        api_key: str,
        *,
        model: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        session: requests.Session | None = None,
    ):
        settings = get_settings()
        self.api_key = api_key
        self.model = model or settings.ai_model
        self.base_url = (base_url or settings.ai_api_base_url).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.ai_request_timeout_seconds
        self.session = session

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/models/{self.model}:generateContent"

    def _request_body(self, payload: SummarizeAnnouncementInput) -> dict:
        return {
            "contents": [
                {
                    "role": "user",
                    "parts": [{"text": SUMMARY_PROMPT.format(announcement_text=payload.announcement_text)}],
                }
            ],
            "generationConfig": {
                "responseMimeType": "application/json",
                "responseSchema": RESPONSE_SCHEMA,
            },
        }

    def summarize(self, payload: SummarizeAnnouncementInput) -> SummarizeAnnouncementOutput:
        if self.session is not None:
            return self._summarize(self.session, payload)
        with requests.Session() as session:
            return self._summarize(session, payload)

    def _summarize(self, session: requests.Session, payload: SummarizeAnnouncementInput) -> SummarizeAnnouncementOutput:
        logger.info("Requesting summary from %s (%d chars)", self.model, len(payload.announcement_text))
        try:
            response = session.post(
                self.endpoint,
                headers={"x-goog-api-key": self.api_key, "Content-Type": "application/json"},
                json=self._request_body(payload),
                timeout=self.timeout,
            )
        except (requests.ConnectionError, requests.Timeout) as exc:
            raise SummarizerUnavailableError(f"AI service unreachable: {exc}") from exc
        except requests.RequestException as exc:
            raise SummarizerError(f"AI request failed: {exc}") from exc

        if response.status_code >= 400:
            raise SummarizerError(f"AI service returned HTTP {response.status_code}: {response.text[:500]}")

        try:
            body = response.json()
            text = body["candidates"][0]["content"]["parts"][0]["text"]
            output = SummarizeAnnouncementOutput.model_validate(json.loads(text))
        except (ValueError, KeyError, IndexError, TypeError, ValidationError) as exc:
            raise SummarizerError(f"Malformed AI response: {exc}") from exc

        logger.info("Summary generated (%d chars)", len(output.summary))
        return output
