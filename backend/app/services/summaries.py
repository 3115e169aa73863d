"""Generate and delete AI summaries of general announcements.

Only ``ConfigurationError``, ``OfflineError`` and ``GenerationError`` leave
this module; whatever the store or the model client raised is classified
into one of those three. Empty ``class_id``/``date`` arguments are logged and
short-circuited: generation returns ``None`` and deletion does nothing, which
keeps the call sites free of validation branches.
"""
from __future__ import annotations

from datetime import datetime, timezone
from functools import partial
import logging
from typing import Callable, Protocol

from anyio import to_thread
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError

from app.core.config import Settings
from app.core.exceptions import (
    AppError,
    ConfigurationError,
    GenerationError,
    OfflineError,
    StorageUnavailableError,
    SummarizerUnavailableError,
)
from app.services.store import TimetableStore
from app.services.summarizer import GeminiSummarizer, SummarizeAnnouncementInput, SummarizeAnnouncementOutput

logger = logging.getLogger(__name__)

AI_NOT_CONFIGURED_MESSAGE = "AI features are not configured. Please contact an administrator."
OFFLINE_GENERATION_MESSAGE = "The summary could not be generated because the service is offline. Please try again."
OFFLINE_DELETION_MESSAGE = "The summary could not be deleted because the service is offline. Please try again."
GENERATION_FAILED_MESSAGE = "An unexpected error occurred while generating the summary."
DELETION_FAILED_MESSAGE = "An unexpected error occurred while deleting the summary."


class AiConfigProvider(Protocol):
    def api_key(self) -> str | None:
        ...


class Summarizer(Protocol):
    def summarize(self, payload: SummarizeAnnouncementInput) -> SummarizeAnnouncementOutput:
        ...


SummarizerFactory = Callable[[str], Summarizer]


class EnvironmentAiConfig:
    """Reads the credential from the environment on every call.

    The cached application settings are deliberately bypassed so that a
    rotated or newly provisioned key is picked up without a restart.
    """

    def api_key(self) -> str | None:
        try:
            key = Settings().google_genai_api_key
        except ValidationError as exc:
            logger.error("AI configuration could not be read from the environment: %s", exc)
            raise ConfigurationError(AI_NOT_CONFIGURED_MESSAGE) from exc
        if key is None or not key.strip():
            return None
        return key.strip()


class StaticAiConfig:
    def __init__(self, key: str | None):
        self._key = key

    def api_key(self) -> str | None:
        return self._key


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SummaryOrchestrator:
    def __init__(
        self,
        store: TimetableStore,
        config: AiConfigProvider,
        summarizer_factory: SummarizerFactory = GeminiSummarizer,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.store = store
        self.config = config
        self.summarizer_factory = summarizer_factory
        self.clock = clock

    async def request_summary_generation(self, class_id: str, date: str, user_id: str) -> str | None:
        if not class_id or not date:
            logger.error("Summary generation requested without class_id or date (class_id=%r, date=%r)", class_id, date)
            return None

        try:
            api_key = self.config.api_key()
        except ConfigurationError:
            raise
        except Exception as exc:
            logger.exception("Reading the AI configuration for class %s failed", class_id)
            raise ConfigurationError(AI_NOT_CONFIGURED_MESSAGE) from exc
        if not api_key:
            logger.warning("Summary generation for class %s on %s refused: AI is not configured", class_id, date)
            raise ConfigurationError(AI_NOT_CONFIGURED_MESSAGE)

        try:
            return await self._generate(api_key, class_id, date, user_id)
        except (OfflineError, GenerationError):
            await self._discard_stale_summary(class_id, date, user_id)
            raise
        except (StorageUnavailableError, SummarizerUnavailableError) as exc:
            logger.warning("Summary generation for class %s on %s failed: offline (%s)", class_id, date, exc)
            await self._discard_stale_summary(class_id, date, user_id)
            raise OfflineError(OFFLINE_GENERATION_MESSAGE) from exc
        except Exception as exc:
            logger.exception("Summary generation for class %s on %s failed", class_id, date)
            await self._discard_stale_summary(class_id, date, user_id)
            raise GenerationError(GENERATION_FAILED_MESSAGE, reason=str(exc)) from exc

    async def _generate(self, api_key: str, class_id: str, date: str, user_id: str) -> str | None:
        record = await to_thread.run_sync(self.store.get_general_announcement, class_id, date)
        content = (record.content or "").strip() if record is not None else ""
        if not content:
            logger.info("No announcement content for class %s on %s; nothing to summarize", class_id, date)
            if record is not None:
                await to_thread.run_sync(
                    partial(self.store.clear_ai_summary, class_id, date, user_id, action="clear_stale_ai_summary")
                )
            return None

        summarizer = self.summarizer_factory(api_key)
        payload = SummarizeAnnouncementInput(announcement_text=content)
        output = await to_thread.run_sync(summarizer.summarize, payload)
        summary = (output.summary if output is not None else "").strip()
        if not summary:
            raise GenerationError(GENERATION_FAILED_MESSAGE, reason="AI service returned no summary")

        await to_thread.run_sync(self.store.set_ai_summary, class_id, date, summary, self.clock(), user_id)
        logger.info("Stored summary for class %s on %s (%d chars)", class_id, date, len(summary))
        return summary

    async def _discard_stale_summary(self, class_id: str, date: str, user_id: str) -> None:
        try:
            await to_thread.run_sync(
                partial(self.store.clear_ai_summary, class_id, date, user_id, action="clear_stale_ai_summary")
            )
        except (AppError, StorageUnavailableError, SQLAlchemyError):
            logger.warning("Could not clear stale summary for class %s on %s", class_id, date, exc_info=True)

    async def request_summary_deletion(self, class_id: str, date: str, user_id: str) -> None:
        if not class_id or not date:
            logger.error("Summary deletion requested without class_id or date (class_id=%r, date=%r)", class_id, date)
            return

        try:
            cleared = await to_thread.run_sync(self.store.clear_ai_summary, class_id, date, user_id)
        except StorageUnavailableError as exc:
            logger.warning("Summary deletion for class %s on %s failed: offline (%s)", class_id, date, exc)
            raise OfflineError(OFFLINE_DELETION_MESSAGE) from exc
        except Exception as exc:
            logger.exception("Summary deletion for class %s on %s failed", class_id, date)
            raise GenerationError(DELETION_FAILED_MESSAGE, reason=str(exc)) from exc

        if not cleared:
            logger.info("No summary to delete for class %s on %s", class_id, date)
