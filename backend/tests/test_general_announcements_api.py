from app.api.deps import get_ai_config
from app.core.exceptions import SummarizerUnavailableError
from app.services.summaries import StaticAiConfig

BASE = "/api/classes/class-1/general-announcements"


def test_general_announcement_lifecycle(client, admin_headers):
    assert client.get(f"{BASE}/2024-05-01", headers=admin_headers).status_code == 404

    created = client.put(f"{BASE}/2024-05-01", json={"content": "  # Notice\nSports day  "}, headers=admin_headers)
    assert created.status_code == 200
    body = created.json()
    assert body["content"] == "# Notice\nSports day"
    assert body["item_type"] == "general"
    assert body["id"] == "2024-05-01"

    fetched = client.get(f"{BASE}/2024-05-01", headers=admin_headers)
    assert fetched.json()["content"] == "# Notice\nSports day"


def test_students_need_permission_to_edit_general_announcements(client, student_headers):
    response = client.put(f"{BASE}/2024-05-01", json={"content": "hello"}, headers=student_headers)
    assert response.status_code == 403


def test_summary_generation_and_deletion(client, admin_headers, fake_summarizer):
    client.put(f"{BASE}/2024-05-01", json={"content": "Sports day on Friday."}, headers=admin_headers)

    response = client.post(f"{BASE}/2024-05-01/summary", headers=admin_headers)
    assert response.status_code == 200
    assert response.json() == {"summary": "- a\n- b"}
    assert fake_summarizer.calls == ["Sports day on Friday."]

    record = client.get(f"{BASE}/2024-05-01", headers=admin_headers).json()
    assert record["ai_summary"] == "- a\n- b"
    assert record["ai_summary_last_generated_at"] is not None

    deleted = client.delete(f"{BASE}/2024-05-01/summary", headers=admin_headers)
    assert deleted.status_code == 204
    record = client.get(f"{BASE}/2024-05-01", headers=admin_headers).json()
    assert record["ai_summary"] is None
    assert record["ai_summary_last_generated_at"] is None

    again = client.delete(f"{BASE}/2024-05-01/summary", headers=admin_headers)
    assert again.status_code == 204


def test_changed_content_invalidates_summary(client, admin_headers):
    client.put(f"{BASE}/2024-05-01", json={"content": "Sports day on Friday."}, headers=admin_headers)
    client.post(f"{BASE}/2024-05-01/summary", headers=admin_headers)

    unchanged = client.put(f"{BASE}/2024-05-01", json={"content": "Sports day on Friday. "}, headers=admin_headers)
    assert unchanged.json()["ai_summary"] == "- a\n- b"

    changed = client.put(f"{BASE}/2024-05-01", json={"content": "Sports day moved to Monday."}, headers=admin_headers)
    assert changed.json()["ai_summary"] is None

    client.post(f"{BASE}/2024-05-01/summary", headers=admin_headers)
    cleared = client.put(f"{BASE}/2024-05-01", json={"content": "   "}, headers=admin_headers)
    assert cleared.json()["content"] == ""
    assert cleared.json()["ai_summary"] is None


def test_summary_of_missing_announcement_is_null(client, admin_headers):
    response = client.post(f"{BASE}/2024-05-09/summary", headers=admin_headers)
    assert response.status_code == 200
    assert response.json() == {"summary": None}


def test_unconfigured_ai_is_reported_as_configuration_error(client, admin_headers):
    client.put(f"{BASE}/2024-05-01", json={"content": "Sports day on Friday."}, headers=admin_headers)
    client.app.dependency_overrides[get_ai_config] = lambda: StaticAiConfig(None)

    response = client.post(f"{BASE}/2024-05-01/summary", headers=admin_headers)
    assert response.status_code == 503
    body = response.json()
    assert body["code"] == "ai_not_configured"
    assert body["message"] == "AI features are not configured. Please contact an administrator."


def test_offline_ai_is_reported_as_offline(client, admin_headers, fake_summarizer):
    client.put(f"{BASE}/2024-05-01", json={"content": "Sports day on Friday."}, headers=admin_headers)
    fake_summarizer.error = SummarizerUnavailableError("connection refused")

    response = client.post(f"{BASE}/2024-05-01/summary", headers=admin_headers)
    assert response.status_code == 503
    assert response.json()["code"] == "offline"


def test_blank_summary_is_a_generation_failure(client, admin_headers, fake_summarizer):
    client.put(f"{BASE}/2024-05-01", json={"content": "Sports day on Friday."}, headers=admin_headers)
    fake_summarizer.summary = ""

    response = client.post(f"{BASE}/2024-05-01/summary", headers=admin_headers)
    assert response.status_code == 502
    assert response.json() == {
        "message": "An unexpected error occurred while generating the summary.",
        "code": "generation_failed",
        "details": {},
    }


def test_students_need_ai_permission(client, admin_headers, student_headers):
    client.put(f"{BASE}/2024-05-01", json={"content": "Sports day on Friday."}, headers=admin_headers)

    allowed = client.post(f"{BASE}/2024-05-01/summary", headers=student_headers)
    assert allowed.status_code == 200

    client.put(
        "/api/classes/class-1/settings",
        json={"student_permissions": {"can_use_ai_summary": False}},
        headers=admin_headers,
    )
    denied = client.post(f"{BASE}/2024-05-01/summary", headers=student_headers)
    assert denied.status_code == 403
