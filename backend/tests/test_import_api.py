from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from conftest import XLSX_MIME, build_workbook

from gridsched.api.deps import get_row_store
from gridsched.db.row_store import RowStore
from gridsched.main import app


def _upload(client, payload, *, dry_run=False):
    suffix = "?dryRun=true" if dry_run else ""
    return client.post(
        f"/api/upload/{suffix}",
        files={"file": ("timetable.xlsx", payload, XLSX_MIME)},
    )


def test_dry_run_previews_without_writing(client, section_workbook):
    response = _upload(client, section_workbook, dry_run=True)

    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Dry run successful"
    assert body["totalParsed"] == 7
    assert body["quality"] == {
        "totalEntries": 7,
        "missingRooms": 2,
        "nonOnlineMissing": 1,
        "onlineClasses": 1,
    }
    assert len(body["sample"]) == 7
    first = body["sample"][0]
    assert first["subjectCode"] == "CSEN3021"
    assert first["facultyName"] == "Dr. A"
    assert first["roomNumber"] == "ABI-329"
    assert first["startTime"] == "08:00:00"

    assert client.get("/api/timetable/").json() == []
    assert client.get("/api/subjects/").json() == []


def test_dry_run_sample_is_capped(client, settings, section_workbook):
    settings.preview_sample_size = 3

    body = _upload(client, section_workbook, dry_run=True).json()

    assert body["totalParsed"] == 7
    assert len(body["sample"]) == 3


def test_commit_persists_and_reimport_is_idempotent(client, section_workbook):
    first = _upload(client, section_workbook)
    assert first.status_code == 200
    body = first.json()
    assert body["message"] == "File processed successfully"
    assert body["results"]["totalParsed"] == 7
    assert body["results"]["inserted"] == 7
    assert body["results"]["failed"] == 0
    assert body["quality"]["missingRooms"] == 2

    second = _upload(client, section_workbook).json()
    assert second["results"]["inserted"] == 0
    assert second["results"]["duplicates"] == 7

    assert len(client.get("/api/timetable/").json()) == 7


def test_missing_file_is_rejected(client):
    response = client.post("/api/upload/")
    assert response.status_code == 400
    assert response.json()["detail"] == "No file uploaded."


def test_empty_file_is_rejected(client):
    response = _upload(client, b"")
    assert response.status_code == 400
    assert response.json()["detail"] == "Uploaded file is empty."


def test_workbook_without_timetable_grid_is_rejected(client):
    payload = build_workbook({"Notes": [["Nothing to see here"]]})

    response = _upload(client, payload)

    assert response.status_code == 400
    assert response.json()["message"] == "No valid timetable entries found in this Excel format."


def test_non_workbook_payload_is_rejected(client):
    response = _upload(client, b"definitely not a zip archive")

    assert response.status_code == 400
    assert response.json()["message"].startswith("Unable to read workbook")


def test_reset_deletes_imported_rows(client, section_workbook):
    _upload(client, section_workbook)

    response = client.delete("/api/upload/database")

    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Database data deleted successfully."
    assert body["summary"]["deleted"]["schedule_entries"] == 7
    assert body["summary"]["deleted"]["programs"] == 1
    assert body["summary"]["totalDeleted"] == 7 + 4 + 4 + 3 + 3 + 1 + 1
    assert client.get("/api/timetable/").json() == []


def test_reset_refused_when_disabled(client, settings):
    settings.allow_database_reset = False

    response = client.delete("/api/upload/database")

    assert response.status_code == 403
    assert "ALLOW_DATABASE_RESET" in response.json()["message"]


def test_misconfigured_preview_size_is_reported(client, settings, section_workbook):
    settings.preview_sample_size = 0

    response = _upload(client, section_workbook, dry_run=True)

    assert response.status_code == 500
    assert response.json() == {
        "message": "Invalid import settings: preview_sample_size",
        "details": {"settings": {"preview_sample_size": 0}},
    }


def test_reset_store_failure_uses_error_shape(client):
    empty_engine = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    session = sessionmaker(bind=empty_engine)()
    app.dependency_overrides[get_row_store] = lambda: RowStore(session)
    try:
        response = client.delete("/api/upload/database")
    finally:
        del app.dependency_overrides[get_row_store]
        session.close()
        empty_engine.dispose()

    assert response.status_code == 500
    body = response.json()
    assert body["message"].startswith("Count of schedule_entries failed")
    assert body["details"] == {}
