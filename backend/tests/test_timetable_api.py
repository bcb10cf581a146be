import pytest

from conftest import XLSX_MIME


@pytest.fixture
def imported(client, section_workbook):
    response = client.post(
        "/api/upload/",
        files={"file": ("timetable.xlsx", section_workbook, XLSX_MIME)},
    )
    assert response.status_code == 200
    return client.get("/api/timetable/").json()


def test_timetable_lists_entries_with_related_names(imported):
    assert len(imported) == 7
    assert [entry["day"] for entry in imported] == ["Monday"] * 4 + ["Tuesday"] * 3

    first = imported[0]
    assert first["section"] == {"name": "2AA"}
    assert first["subject"] == {"name": "Data Structures", "code": "CSEN3021"}
    assert first["faculty"] == {"name": "Dr. A"}
    assert first["room"] == {"room_number": "ABI-329"}
    assert first["time_slot"]["start_time"] == "08:00:00"

    starts = [entry["time_slot"]["start_time"] for entry in imported[:4]]
    assert starts == sorted(starts)

    online = next(entry for entry in imported if entry["subject"]["code"] == "MATH2011" and entry["day"] == "Monday")
    assert online["room"] is None
    assert online["room_id"] is None


def test_timetable_filters(client, imported):
    first = imported[0]

    by_section = client.get(f"/api/timetable/section/{first['section_id']}").json()
    assert len(by_section) == 7

    by_faculty = client.get(f"/api/timetable/faculty/{first['faculty_id']}").json()
    assert {entry["subject"]["code"] for entry in by_faculty} == {"CSEN3021"}
    assert len(by_faculty) == 3

    by_room = client.get(f"/api/timetable/room/{first['room_id']}").json()
    assert len(by_room) == 2

    assert client.get("/api/timetable/section/missing").json() == []


def _manual_payload(entry, **overrides):
    payload = {
        "section_id": entry["section_id"],
        "subject_id": entry["subject_id"],
        "faculty_id": entry["faculty_id"],
        "room_id": entry["room_id"],
        "day": entry["day"],
        "time_slot_id": entry["time_slot_id"],
    }
    payload.update(overrides)
    return payload


def test_manual_entry_rejects_booked_faculty(client, imported):
    response = client.post("/api/timetable/", json=_manual_payload(imported[0]))

    assert response.status_code == 409
    assert response.json()["message"] == "Faculty is already booked at this time."


def test_manual_entry_created_in_free_slot(client, imported):
    payload = _manual_payload(imported[0], day="Saturday")

    response = client.post("/api/timetable/", json=payload)

    assert response.status_code == 201
    body = response.json()
    assert body["day"] == "Saturday"
    assert body["section_id"] == payload["section_id"]
    assert len(client.get("/api/timetable/").json()) == 8


def test_manual_entry_with_unknown_reference_is_404(client, imported):
    response = client.post("/api/timetable/", json=_manual_payload(imported[0], subject_id="missing", day="Friday"))

    assert response.status_code == 404
    assert response.json()["message"] == "Subject with id missing not found"


def test_manual_entry_rejects_unknown_day(client, imported):
    response = client.post("/api/timetable/", json=_manual_payload(imported[0], day="Sunday"))
    assert response.status_code == 422
