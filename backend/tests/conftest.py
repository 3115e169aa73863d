import os

# The app engine is built at import time; keep it off the default postgres URL.
os.environ["DATABASE_URL"] = "sqlite+pysqlite:///:memory:"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.api.deps import get_ai_config, get_db, get_summarizer_factory
from app.core.security import UserRole, create_access_token
from app.db.base import Base
from app.main import app
from app.services.summaries import StaticAiConfig
from app.services.summarizer import SummarizeAnnouncementOutput

CLASS_ID = "class-1"


class FakeSummarizer:
    def __init__(self, summary: str | None = "- a\n- b", error: Exception | None = None):
        self.summary = summary
        self.error = error
        self.calls: list[str] = []

    def __call__(self, api_key: str) -> "FakeSummarizer":
        self.api_key = api_key
        return self

    def summarize(self, payload):
        self.calls.append(payload.announcement_text)
        if self.error is not None:
            raise self.error
        if self.summary is None:
            return None
        return SummarizeAnnouncementOutput(summary=self.summary)


@pytest.fixture()
def anyio_backend():
    return "asyncio"


@pytest.fixture()
def session_factory():
    engine = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


@pytest.fixture()
def db_session(session_factory):
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def make_summarizer():
    return FakeSummarizer


@pytest.fixture()
def fake_summarizer(make_summarizer):
    return make_summarizer()


@pytest.fixture()
def ai_config():
    return StaticAiConfig("test-key")


@pytest.fixture()
def client(session_factory, fake_summarizer, ai_config):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_ai_config] = lambda: ai_config
    app.dependency_overrides[get_summarizer_factory] = lambda: fake_summarizer

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


def auth_headers(role: UserRole = UserRole.class_admin, *, class_id: str = CLASS_ID, user_id: str = "user-1") -> dict:
    token = create_access_token(user_id, role=role, class_id=class_id)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def admin_headers():
    return auth_headers(UserRole.class_admin, user_id="admin-1")


@pytest.fixture()
def student_headers():
    return auth_headers(UserRole.student, user_id="student-1")


@pytest.fixture()
def headers_for():
    return auth_headers
