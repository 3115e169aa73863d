from datetime import datetime, timezone

import pytest
from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from app.core.exceptions import (
    ConfigurationError,
    GenerationError,
    OfflineError,
    SummarizerError,
    SummarizerUnavailableError,
)
from app.models.activity_log import ActivityLog
from app.models.announcement import GeneralAnnouncement
from app.services.store import TimetableStore
from app.services.summaries import EnvironmentAiConfig, StaticAiConfig, SummaryOrchestrator

pytestmark = pytest.mark.anyio

FIXED_NOW = datetime(2024, 5, 1, 12, 30, tzinfo=timezone.utc)


def make_orchestrator(db_session, summarizer, key="test-key"):
    return SummaryOrchestrator(
        TimetableStore(db_session),
        StaticAiConfig(key),
        summarizer,
        clock=lambda: FIXED_NOW,
    )


def seed_announcement(db_session, content="Sports day on Friday. Bring water.", summary=None):
    record = GeneralAnnouncement(class_id="c1", date="2024-05-01", content=content, ai_summary=summary)
    if summary is not None:
        record.ai_summary_last_generated_at = FIXED_NOW
    db_session.add(record)
    db_session.commit()
    return record


def stored(db_session):
    db_session.expire_all()
    return db_session.get(GeneralAnnouncement, ("c1", "2024-05-01"))


async def test_generation_without_credentials_raises_and_writes_nothing(db_session, make_summarizer):
    seed_announcement(db_session)
    summarizer = make_summarizer()
    orchestrator = make_orchestrator(db_session, summarizer, key=None)

    with pytest.raises(ConfigurationError) as excinfo:
        await orchestrator.request_summary_generation("c1", "2024-05-01", "u1")

    assert excinfo.value.message == "AI features are not configured. Please contact an administrator."
    assert summarizer.calls == []
    assert stored(db_session).ai_summary is None
    assert db_session.execute(select(ActivityLog)).scalars().all() == []


async def test_generation_stores_summary_and_timestamp(db_session, make_summarizer):
    seed_announcement(db_session)
    summarizer = make_summarizer("- a\n- b")

    summary = await make_orchestrator(db_session, summarizer).request_summary_generation("c1", "2024-05-01", "u1")

    assert summary == "- a\n- b"
    assert summarizer.api_key == "test-key"
    assert summarizer.calls == ["Sports day on Friday. Bring water."]
    record = stored(db_session)
    assert record.ai_summary == "- a\n- b"
    assert record.ai_summary_last_generated_at is not None
    actions = [log.action for log in db_session.execute(select(ActivityLog)).scalars()]
    assert actions == ["generate_ai_summary"]


async def test_regeneration_overwrites_previous_summary(db_session, make_summarizer):
    seed_announcement(db_session, summary="- old")

    summary = await make_orchestrator(db_session, make_summarizer("- new")).request_summary_generation(
        "c1", "2024-05-01", "u1"
    )

    assert summary == "- new"
    assert stored(db_session).ai_summary == "- new"


async def test_missing_identifiers_short_circuit(db_session, make_summarizer):
    summarizer = make_summarizer()
    orchestrator = make_orchestrator(db_session, summarizer, key=None)

    assert await orchestrator.request_summary_generation("", "2024-05-01", "u1") is None
    assert await orchestrator.request_summary_generation("c1", "", "u1") is None
    assert await orchestrator.request_summary_deletion("", "2024-05-01", "u1") is None
    assert await orchestrator.request_summary_deletion("c1", "", "u1") is None
    assert summarizer.calls == []


async def test_empty_content_returns_none_and_clears_stale_summary(db_session, make_summarizer):
    seed_announcement(db_session, content="", summary="- stale")
    summarizer = make_summarizer()

    result = await make_orchestrator(db_session, summarizer).request_summary_generation("c1", "2024-05-01", "u1")

    assert result is None
    assert summarizer.calls == []
    record = stored(db_session)
    assert record.ai_summary is None
    assert record.ai_summary_last_generated_at is None


async def test_missing_announcement_returns_none(db_session, make_summarizer):
    result = await make_orchestrator(db_session, make_summarizer()).request_summary_generation(
        "c1", "2024-05-01", "u1"
    )

    assert result is None


@pytest.mark.parametrize("summary", [None, "", "   "])
async def test_blank_model_output_is_a_generation_error(db_session, summary, make_summarizer):
    seed_announcement(db_session, summary="- stale")

    with pytest.raises(GenerationError) as excinfo:
        await make_orchestrator(db_session, make_summarizer(summary)).request_summary_generation(
            "c1", "2024-05-01", "u1"
        )

    assert excinfo.value.message == "An unexpected error occurred while generating the summary."
    assert stored(db_session).ai_summary is None


async def test_unreachable_model_is_offline(db_session, make_summarizer):
    seed_announcement(db_session)
    summarizer = make_summarizer(error=SummarizerUnavailableError("connection refused"))

    with pytest.raises(OfflineError):
        await make_orchestrator(db_session, summarizer).request_summary_generation("c1", "2024-05-01", "u1")


async def test_malformed_model_reply_is_generation_error_with_reason(db_session, make_summarizer):
    seed_announcement(db_session)
    summarizer = make_summarizer(error=SummarizerError("Malformed AI response: bad json"))

    with pytest.raises(GenerationError) as excinfo:
        await make_orchestrator(db_session, summarizer).request_summary_generation("c1", "2024-05-01", "u1")

    assert "bad json" in excinfo.value.reason
    assert "bad json" not in excinfo.value.message


async def test_store_connectivity_loss_is_offline(db_session, monkeypatch, make_summarizer):
    seed_announcement(db_session)
    store = TimetableStore(db_session)

    def lost_connection(*args, **kwargs):
        raise OperationalError("SELECT 1", {}, Exception("server closed the connection"))

    monkeypatch.setattr(db_session, "get", lost_connection)
    orchestrator = SummaryOrchestrator(store, StaticAiConfig("test-key"), make_summarizer())

    with pytest.raises(OfflineError):
        await orchestrator.request_summary_generation("c1", "2024-05-01", "u1")
    with pytest.raises(OfflineError):
        await orchestrator.request_summary_deletion("c1", "2024-05-01", "u1")


async def test_deletion_clears_summary_and_is_idempotent(db_session, make_summarizer):
    seed_announcement(db_session, summary="- a")
    orchestrator = make_orchestrator(db_session, make_summarizer())

    await orchestrator.request_summary_deletion("c1", "2024-05-01", "u1")
    record = stored(db_session)
    assert record.ai_summary is None
    assert record.ai_summary_last_generated_at is None
    assert record.content == "Sports day on Friday. Bring water."

    await orchestrator.request_summary_deletion("c1", "2024-05-01", "u1")
    await orchestrator.request_summary_deletion("c1", "2024-06-01", "u1")

    actions = [log.action for log in db_session.execute(select(ActivityLog)).scalars()]
    assert actions == ["delete_ai_summary"]


def test_environment_config_is_read_on_every_call(monkeypatch):
    config = EnvironmentAiConfig()

    monkeypatch.delenv("GOOGLE_GENAI_API_KEY", raising=False)
    assert config.api_key() is None

    monkeypatch.setenv("GOOGLE_GENAI_API_KEY", "  rotated-key  ")
    assert config.api_key() == "rotated-key"

    monkeypatch.setenv("GOOGLE_GENAI_API_KEY", "   ")
    assert config.api_key() is None


def test_invalid_environment_settings_surface_as_configuration_error(monkeypatch):
    monkeypatch.setenv("GOOGLE_GENAI_API_KEY", "k")
    monkeypatch.setenv("AI_REQUEST_TIMEOUT_SECONDS", "soon")

    with pytest.raises(ConfigurationError) as excinfo:
        EnvironmentAiConfig().api_key()

    assert excinfo.value.message == "AI features are not configured. Please contact an administrator."


async def test_generation_with_invalid_environment_is_a_configuration_error(db_session, make_summarizer, monkeypatch):
    seed_announcement(db_session)
    monkeypatch.setenv("GOOGLE_GENAI_API_KEY", "k")
    monkeypatch.setenv("AI_REQUEST_TIMEOUT_SECONDS", "soon")
    summarizer = make_summarizer()
    orchestrator = SummaryOrchestrator(TimetableStore(db_session), EnvironmentAiConfig(), summarizer)

    with pytest.raises(ConfigurationError):
        await orchestrator.request_summary_generation("c1", "2024-05-01", "u1")

    assert summarizer.calls == []
    assert stored(db_session).ai_summary is None


async def test_failing_config_provider_is_a_configuration_error(db_session, make_summarizer):
    class BrokenConfig:
        def api_key(self):
            raise RuntimeError("secret store unreachable")

    seed_announcement(db_session)
    orchestrator = SummaryOrchestrator(TimetableStore(db_session), BrokenConfig(), make_summarizer())

    with pytest.raises(ConfigurationError):
        await orchestrator.request_summary_generation("c1", "2024-05-01", "u1")
