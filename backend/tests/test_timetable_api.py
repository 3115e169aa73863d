from app.core.security import UserRole


def test_requests_need_a_token_for_the_same_class(client, headers_for):
    assert client.get("/api/classes/class-1/settings").status_code in {401, 403}

    other_class = headers_for(UserRole.class_admin, class_id="class-2")
    response = client.get("/api/classes/class-1/settings", headers=other_class)
    assert response.status_code == 403

    bad_token = {"Authorization": "Bearer not-a-token"}
    assert client.get("/api/classes/class-1/settings", headers=bad_token).status_code == 401


def test_first_read_creates_default_settings_and_grid(client, student_headers, admin_headers):
    response = client.get("/api/classes/class-1/settings", headers=student_headers)
    assert response.status_code == 200
    settings = response.json()
    assert settings["number_of_periods"] == 7
    assert settings["active_days"] == [
        "Monday",
        "Tuesday",
        "Wednesday",
        "Thursday",
        "Friday",
        "Saturday",
        "Sunday",
    ]
    assert settings["student_permissions"]["can_edit_time_slots"] is True
    assert settings["student_permissions"]["can_edit_subjects"] is False

    slots = client.get("/api/classes/class-1/fixed-timetable", headers=student_headers).json()
    assert len(slots) == 49
    assert slots[0]["id"] == "Monday_1"
    assert slots[-1]["id"] == "Sunday_7"

    logs = client.get("/api/classes/class-1/logs", headers=admin_headers).json()
    assert [entry["action"] for entry in logs] == ["initialize_settings"]


def test_settings_update_reshapes_fixed_timetable(client, admin_headers):
    client.get("/api/classes/class-1/settings", headers=admin_headers)

    response = client.put(
        "/api/classes/class-1/settings",
        json={"number_of_periods": 3, "active_days": ["Tuesday", "Monday"]},
        headers=admin_headers,
    )
    assert response.status_code == 200
    assert response.json()["number_of_periods"] == 3

    slots = client.get("/api/classes/class-1/fixed-timetable", headers=admin_headers).json()
    assert [slot["id"] for slot in slots] == [
        "Monday_1",
        "Monday_2",
        "Monday_3",
        "Tuesday_1",
        "Tuesday_2",
        "Tuesday_3",
    ]

    response = client.put(
        "/api/classes/class-1/settings",
        json={"number_of_periods": 4},
        headers=admin_headers,
    )
    assert response.status_code == 200
    slots = client.get("/api/classes/class-1/fixed-timetable", headers=admin_headers).json()
    assert len(slots) == 8


def test_unchanged_settings_are_not_written(client, admin_headers):
    client.get("/api/classes/class-1/settings", headers=admin_headers)

    response = client.put(
        "/api/classes/class-1/settings",
        json={"active_days": ["Sunday", "Saturday", "Friday", "Thursday", "Wednesday", "Tuesday", "Monday"]},
        headers=admin_headers,
    )
    assert response.status_code == 200

    logs = client.get("/api/classes/class-1/logs", headers=admin_headers).json()
    assert [entry["action"] for entry in logs] == ["initialize_settings"]


def test_students_cannot_change_settings(client, student_headers):
    response = client.put(
        "/api/classes/class-1/settings",
        json={"number_of_periods": 3},
        headers=student_headers,
    )
    assert response.status_code == 403


def test_settings_validation(client, admin_headers):
    bad_day = client.put("/api/classes/class-1/settings", json={"active_days": ["Funday"]}, headers=admin_headers)
    assert bad_day.status_code == 422

    duplicate = client.put(
        "/api/classes/class-1/settings",
        json={"active_days": ["Monday", "Monday"]},
        headers=admin_headers,
    )
    assert duplicate.status_code == 422


def test_fixed_timetable_batch_update_skips_unchanged_slots(client, admin_headers):
    client.put(
        "/api/classes/class-1/settings",
        json={"number_of_periods": 2, "active_days": ["Monday"]},
        headers=admin_headers,
    )
    payload = {
        "slots": [
            {"day": "Monday", "period": 1, "subject_id": "math"},
            {"day": "Monday", "period": 2, "subject_id": None},
        ]
    }

    first = client.put("/api/classes/class-1/fixed-timetable", json=payload, headers=admin_headers)
    assert first.status_code == 200
    assert first.json() == {"updated": 1}

    again = client.put("/api/classes/class-1/fixed-timetable", json=payload, headers=admin_headers)
    assert again.json() == {"updated": 0}

    slots = client.get("/api/classes/class-1/fixed-timetable", headers=admin_headers).json()
    assert [(slot["id"], slot["subject_id"]) for slot in slots] == [("Monday_1", "math"), ("Monday_2", None)]


def test_fixed_timetable_rejects_slots_outside_the_grid(client, admin_headers):
    client.put(
        "/api/classes/class-1/settings",
        json={"number_of_periods": 2, "active_days": ["Monday"]},
        headers=admin_headers,
    )

    outside = client.put(
        "/api/classes/class-1/fixed-timetable",
        json={"slots": [{"day": "Tuesday", "period": 1, "subject_id": "math"}]},
        headers=admin_headers,
    )
    assert outside.status_code == 422

    duplicate = client.put(
        "/api/classes/class-1/fixed-timetable",
        json={
            "slots": [
                {"day": "Monday", "period": 1, "subject_id": "math"},
                {"day": "Monday", "period": 1, "subject_id": "eng"},
            ]
        },
        headers=admin_headers,
    )
    assert duplicate.status_code == 422


def test_fixed_timetable_reset_clears_subjects(client, admin_headers):
    client.put(
        "/api/classes/class-1/settings",
        json={"number_of_periods": 2, "active_days": ["Monday"]},
        headers=admin_headers,
    )
    client.put(
        "/api/classes/class-1/fixed-timetable",
        json={"slots": [{"day": "Monday", "period": 1, "subject_id": "math"}]},
        headers=admin_headers,
    )

    response = client.post("/api/classes/class-1/fixed-timetable/reset", headers=admin_headers)
    assert response.json() == {"updated": 1}

    slots = client.get("/api/classes/class-1/fixed-timetable", headers=admin_headers).json()
    assert all(slot["subject_id"] is None for slot in slots)
