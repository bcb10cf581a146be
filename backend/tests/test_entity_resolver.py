from datetime import date

import pytest
from sqlalchemy import Column, Integer, MetaData, String, Table, create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from conftest import make_entry

from gridsched.core.exceptions import ConfigurationError, ImportAbortedError
from gridsched.core.security import verify_password
from gridsched.db.base import Base
from gridsched.db.row_store import RowStore, StoreError
from gridsched.services.entity_resolver import ScheduleImporter
from gridsched.services.workbook import parse_workbook

TODAY = date(2026, 1, 5)


def _importer(store, settings):
    return ScheduleImporter(store, settings, today=TODAY)


def _assert_counts_add_up(result):
    assert result.inserted + result.duplicates + result.failed == result.total_parsed


def test_import_creates_entities_once(store, settings, section_workbook):
    entries = parse_workbook(section_workbook)
    result = _importer(store, settings).apply(entries)

    assert result.total_parsed == 7
    assert result.inserted == 7
    assert result.duplicates == 0
    assert result.failed == 0
    assert result.errors == []
    _assert_counts_add_up(result)

    assert store.count("programs") == 1
    assert store.count("sections") == 1
    assert store.count("subjects") == 3
    assert store.count("faculty") == 3
    assert store.count("rooms") == 4
    assert store.count("time_slots") == 4
    assert store.count("schedule_entries") == 7

    program = store.select_one("programs", {"name": "B.Tech"})
    assert program["department"] == "Engineering"
    section = store.select_one("sections", {"name": "2AA"})
    assert section["program_id"] == program["id"]
    assert section["year"] == 2026
    assert store.select_one("rooms", {"room_number": "ABI-329"})["capacity"] == 60
    assert store.select_one("subjects", {"code": "MATH2011"})["credits"] == 3

    faculty = store.select_one("faculty", {"name": "Dr. A"})
    assert faculty["email"] == "dr.a@college.edu"
    assert faculty["department"] == "TBD"
    assert verify_password("ChangeMe@123", faculty["hashed_password"])
    assert store.select_one("faculty", {"name": "TBD Faculty"}) is not None


def test_reimport_only_reports_duplicates(store, settings, section_workbook):
    entries = parse_workbook(section_workbook)
    _importer(store, settings).apply(entries)

    result = _importer(store, settings).apply(entries)

    assert result.inserted == 0
    assert result.duplicates == 7
    assert result.updated == 0
    _assert_counts_add_up(result)
    assert store.count("schedule_entries") == 7
    assert store.count("faculty") == 3


def test_duplicate_entry_backfills_missing_room(store, settings):
    _importer(store, settings).apply([make_entry(room_number=None, raw_content="CSEN3021")])
    entry = store.select_one("schedule_entries", {"day": "Monday"})
    assert entry["room_id"] is None

    result = _importer(store, settings).apply([make_entry(room_number="ABI-329")])

    assert result.duplicates == 1
    assert result.updated == 1
    room = store.select_one("rooms", {"room_number": "ABI-329"})
    assert store.select_one("schedule_entries", {"id": entry["id"]})["room_id"] == room["id"]


def test_online_room_is_not_created(store, settings):
    result = _importer(store, settings).apply([make_entry(room_number="online")])

    assert result.inserted == 1
    assert store.count("rooms") == 0


def test_entry_missing_required_fields_is_counted_failed(store, settings):
    result = _importer(store, settings).apply(
        [make_entry(subject_code=""), make_entry(day="Tuesday")]
    )

    assert result.failed == 1
    assert result.inserted == 1
    assert result.errors == ["2AA | Monday | 08:00-08:50 -> missing section, subject, day or time"]
    _assert_counts_add_up(result)


def test_faculty_is_reused_by_derived_email(store, settings):
    existing = store.insert(
        "faculty",
        {"name": "A. Doctor", "email": "dr.a@college.edu", "department": "CSE"},
    )

    _importer(store, settings).apply([make_entry(faculty_name="Dr. A")])

    assert store.count("faculty") == 1
    assert store.select_one("schedule_entries", {"day": "Monday"})["faculty_id"] == existing["id"]


class RacingStore(RowStore):
    """Lets a concurrent writer create the section right after the lookup misses."""

    def __init__(self, session):
        super().__init__(session)
        self.raced = False

    def select_one(self, table_name, filters):
        if table_name == "sections" and not self.raced:
            self.raced = True
            super().insert("sections", {**filters, "year": 2025})
            return None
        return super().select_one(table_name, filters)


def test_losing_a_create_race_reuses_the_winner(db_session, settings):
    store = RacingStore(db_session)

    result = _importer(store, settings).apply([make_entry()])

    assert result.inserted == 1
    assert store.count("sections") == 1
    assert store.select_one("sections", {"name": "2AA"})["year"] == 2025


class FailingStore(RowStore):
    def __init__(self, session, failing_table):
        super().__init__(session)
        self.failing_table = failing_table

    def insert(self, table_name, values):
        if table_name == self.failing_table:
            raise StoreError("connection reset")
        return super().insert(table_name, values)


def test_program_failure_aborts_the_import(db_session, settings):
    store = FailingStore(db_session, "programs")

    with pytest.raises(ImportAbortedError, match="B.Tech"):
        _importer(store, settings).apply([make_entry()])
    assert store.count("schedule_entries") == 0


def test_store_failure_is_recorded_per_entry(db_session, settings):
    store = FailingStore(db_session, "rooms")

    result = _importer(store, settings).apply(
        [make_entry(), make_entry(day="Tuesday", room_number=None)]
    )

    assert result.failed == 1
    assert result.inserted == 1
    assert result.errors == ["2AA | Monday | 08:00-08:50 -> connection reset"]
    _assert_counts_add_up(result)


def test_error_list_is_capped(db_session, settings):
    settings.import_error_limit = 2
    store = FailingStore(db_session, "schedule_entries")
    entries = [make_entry(day=day) for day in ("Monday", "Tuesday", "Wednesday")]

    result = _importer(store, settings).apply(entries)

    assert result.failed == 3
    assert len(result.errors) == 2


def _legacy_metadata() -> MetaData:
    """Current schema, except faculty has no hashed_password column."""
    legacy = MetaData()
    Table(
        "faculty",
        legacy,
        Column("id", String(36), primary_key=True),
        Column("name", String(200), nullable=False),
        Column("email", String(255), nullable=False, unique=True),
        Column("department", String(200), nullable=False),
        Column("max_hours", Integer, nullable=True),
    )
    for name, table in Base.metadata.tables.items():
        if name != "faculty":
            table.to_metadata(legacy)
    return legacy


def test_import_into_faculty_table_without_password_column(settings):
    legacy = _legacy_metadata()
    engine = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    legacy.create_all(bind=engine)
    session = sessionmaker(bind=engine)()
    try:
        store = RowStore(session, legacy)

        result = _importer(store, settings).apply([make_entry()])

        assert result.inserted == 1
        faculty = store.select_one("faculty", {"name": "Dr. A"})
        assert faculty["email"] == "dr.a@college.edu"
        assert "hashed_password" not in faculty
    finally:
        session.close()
        engine.dispose()


def test_invalid_import_settings_are_rejected(store, settings):
    settings.import_error_limit = 0
    settings.default_room_capacity = -5

    with pytest.raises(ConfigurationError, match="default_room_capacity, import_error_limit") as exc_info:
        _importer(store, settings)

    assert exc_info.value.details == {"settings": {"import_error_limit": 0, "default_room_capacity": -5}}
    assert store.count("programs") == 0


class BadBindStore(RowStore):
    """Sends an unbindable timestamp with the first schedule entry."""

    def __init__(self, session):
        super().__init__(session)
        self.sabotaged = False

    def insert(self, table_name, values):
        if table_name == "schedule_entries" and not self.sabotaged:
            self.sabotaged = True
            values = {**values, "created_at": "not a timestamp"}
        return super().insert(table_name, values)


def test_statement_error_fails_only_its_entry(db_session, settings):
    store = BadBindStore(db_session)

    result = _importer(store, settings).apply([make_entry(), make_entry(day="Tuesday")])

    assert result.failed == 1
    assert result.inserted == 1
    assert result.errors[0].startswith("2AA | Monday | 08:00-08:50 -> Insert into schedule_entries failed")
    _assert_counts_add_up(result)
