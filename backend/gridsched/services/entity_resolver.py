"""Turn parsed timetable entries into persisted rows.

Every referenced program, section, subject, faculty member, room and time slot
is looked up by its natural key and created on first sight. Ids are cached for
the lifetime of one ``ScheduleImporter`` so repeated references do not hit the
store again. The store's unique constraints are the only arbiter between
concurrent imports: a create that loses a race re-reads the winning row.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import date
from typing import Any, TypeVar

from pydantic import ValidationError

from gridsched.core.config import Settings, check_import_settings, get_settings
from gridsched.core.exceptions import ImportAbortedError
from gridsched.core.security import get_password_hash
from gridsched.db.row_store import RowStore, SchemaMismatchError, StoreError, UniqueViolationError
from gridsched.schemas.imports import ImportResult, ParsedEntry
from gridsched.schemas.records import (
    FacultyRecord,
    ProgramRecord,
    RoomRecord,
    ScheduleEntryRecord,
    SectionRecord,
    StoreRecord,
    SubjectRecord,
    TimeSlotRecord,
)
from gridsched.services.cell_semantics import TBD_FACULTY, make_faculty_email, normalize_text

logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT", bound=StoreRecord)


def insert_faculty_row(store: RowStore, row: dict[str, Any], hashed_password: str) -> dict[str, Any]:
    """Insert a faculty row, with credentials when the live table can hold them.

    Only a schema mismatch on ``hashed_password`` falls back to the plain row;
    every other failure propagates.
    """
    try:
        return store.insert("faculty", {**row, "hashed_password": hashed_password})
    except SchemaMismatchError as exc:
        if "hashed_password" not in exc.columns:
            raise
        logger.info("faculty table has no hashed_password column; creating %r without credentials", row.get("name"))
        return store.insert("faculty", row)


@dataclass
class ResolutionCache:
    """Natural key -> id maps scoped to a single import run."""

    sections: dict[tuple[str, str], str] = field(default_factory=dict)
    subjects: dict[str, str] = field(default_factory=dict)
    faculty: dict[str, str] = field(default_factory=dict)
    rooms: dict[str, str] = field(default_factory=dict)
    time_slots: dict[tuple[str, str], str] = field(default_factory=dict)


class ScheduleImporter:
    def __init__(self, store: RowStore, settings: Settings | None = None, *, today: date | None = None) -> None:
        self.store = store
        self.settings = settings or get_settings()
        check_import_settings(self.settings)
        self.today = today or date.today()
        self.cache = ResolutionCache()
        self._program: ProgramRecord | None = None
        self._default_password_hash: str | None = None

    def apply(self, entries: Sequence[ParsedEntry]) -> ImportResult:
        result = ImportResult(total_parsed=len(entries))
        program = self.resolve_program()

        for entry in entries:
            self._apply_entry(entry, program, result)

        logger.info(
            "Import finished: parsed=%d inserted=%d duplicates=%d updated=%d failed=%d",
            result.total_parsed,
            result.inserted,
            result.duplicates,
            result.updated,
            result.failed,
        )
        return result

    def resolve_program(self) -> ProgramRecord:
        if self._program is not None:
            return self._program
        name = self.settings.default_program_name
        try:
            self._program = self._find_or_create(
                "programs",
                {"name": name},
                {"name": name, "department": self.settings.default_program_department},
                ProgramRecord,
            )
        except (StoreError, ValidationError) as exc:
            logger.exception("Unable to resolve default program %r", name)
            raise ImportAbortedError(f"Unable to resolve default program {name!r}: {exc}") from exc
        return self._program

    def resolve_section(self, program_id: str, name: str) -> str:
        key = (program_id, name.lower())
        if key not in self.cache.sections:
            section = self._find_or_create(
                "sections",
                {"name": name, "program_id": program_id},
                {"name": name, "program_id": program_id, "year": self.today.year, "advisor": None},
                SectionRecord,
            )
            self.cache.sections[key] = section.id
        return self.cache.sections[key]

    def resolve_subject(self, code: str, name: str) -> str:
        if code not in self.cache.subjects:
            subject = self._find_or_create(
                "subjects",
                {"code": code},
                {"code": code, "name": name or code, "credits": self.settings.default_subject_credits},
                SubjectRecord,
            )
            self.cache.subjects[code] = subject.id
        return self.cache.subjects[code]

    def resolve_faculty(self, name: str) -> str:
        key = name.lower()
        if key in self.cache.faculty:
            return self.cache.faculty[key]

        email = make_faculty_email(name, self.settings.faculty_email_domain)
        existing = self.store.select_one("faculty", {"name": name}) or self.store.select_one("faculty", {"email": email})
        if existing is not None:
            faculty = FacultyRecord.model_validate(existing)
        else:
            try:
                faculty = FacultyRecord.model_validate(self._insert_faculty(name, email))
            except UniqueViolationError:
                winner = self.store.select_one("faculty", {"email": email})
                if winner is None:
                    raise
                faculty = FacultyRecord.model_validate(winner)

        self.cache.faculty[key] = faculty.id
        return faculty.id

    def resolve_room(self, room_number: str | None) -> str | None:
        room_number = normalize_text(room_number)
        if not room_number or room_number.lower() == "online":
            return None
        key = room_number.lower()
        if key not in self.cache.rooms:
            room = self._find_or_create(
                "rooms",
                {"room_number": room_number},
                {"room_number": room_number, "capacity": self.settings.default_room_capacity},
                RoomRecord,
            )
            self.cache.rooms[key] = room.id
        return self.cache.rooms[key]

    def resolve_time_slot(self, start_time: str, end_time: str, slot_number: int | None) -> str:
        key = (start_time, end_time)
        if key not in self.cache.time_slots:
            slot = self._find_or_create(
                "time_slots",
                {"start_time": start_time, "end_time": end_time},
                {"start_time": start_time, "end_time": end_time, "slot_number": slot_number or 1},
                TimeSlotRecord,
            )
            self.cache.time_slots[key] = slot.id
        return self.cache.time_slots[key]

    def _apply_entry(self, entry: ParsedEntry, program: ProgramRecord, result: ImportResult) -> None:
        section_name = normalize_text(entry.section)
        subject_code = normalize_text(entry.subject_code).upper()
        if not (section_name and subject_code and entry.day and entry.start_time and entry.end_time):
            result.failed += 1
            self._record_error(result, f"{entry.context} -> missing section, subject, day or time")
            return

        try:
            section_id = self.resolve_section(program.id, section_name)
            subject_id = self.resolve_subject(subject_code, normalize_text(entry.subject_name) or subject_code)
            faculty_id = self.resolve_faculty(normalize_text(entry.faculty_name) or TBD_FACULTY)
            room_id = self.resolve_room(entry.room_number)
            slot_id = self.resolve_time_slot(entry.start_time, entry.end_time, entry.slot_number)

            try:
                self.store.insert(
                    "schedule_entries",
                    {
                        "section_id": section_id,
                        "subject_id": subject_id,
                        "faculty_id": faculty_id,
                        "room_id": room_id,
                        "day": entry.day,
                        "time_slot_id": slot_id,
                    },
                )
            except UniqueViolationError:
                result.duplicates += 1
                if room_id:
                    self._backfill_room(entry, section_id, slot_id, room_id, result)
                return
            result.inserted += 1
        except (StoreError, ValidationError) as exc:
            result.failed += 1
            message = exc.message if isinstance(exc, StoreError) else str(exc)
            logger.warning("Import entry failed (%s): %s", entry.context, message)
            self._record_error(result, f"{entry.context} -> {message}")

    def _backfill_room(
        self,
        entry: ParsedEntry,
        section_id: str,
        slot_id: str,
        room_id: str,
        result: ImportResult,
    ) -> None:
        """Give an existing room-less entry the room this duplicate carries."""
        try:
            existing = self.store.select_one(
                "schedule_entries",
                {"section_id": section_id, "day": entry.day, "time_slot_id": slot_id},
            )
            if existing is None:
                return
            record = ScheduleEntryRecord.model_validate(existing)
            if record.room_id:
                return
            self.store.update("schedule_entries", record.id, {"room_id": room_id})
            result.updated += 1
        except (StoreError, ValidationError) as exc:
            message = exc.message if isinstance(exc, StoreError) else str(exc)
            self._record_error(result, f"{entry.context} -> room backfill failed: {message}")

    def _insert_faculty(self, name: str, email: str) -> dict[str, Any]:
        row = {"name": name, "department": self.settings.default_faculty_department, "email": email}
        return insert_faculty_row(self.store, row, self._password_hash())

    def _password_hash(self) -> str:
        if self._default_password_hash is None:
            self._default_password_hash = get_password_hash(self.settings.default_faculty_password)
        return self._default_password_hash

    def _find_or_create(
        self,
        table: str,
        lookup: dict[str, Any],
        values: dict[str, Any],
        record_type: type[RecordT],
    ) -> RecordT:
        existing = self.store.select_one(table, lookup)
        if existing is not None:
            return record_type.model_validate(existing)
        try:
            created = self.store.insert(table, values)
        except UniqueViolationError:
            winner = self.store.select_one(table, lookup)
            if winner is None:
                raise
            logger.debug("Lost create race on %s %s; reusing existing row", table, lookup)
            return record_type.model_validate(winner)
        return record_type.model_validate(created)

    def _record_error(self, result: ImportResult, message: str) -> None:
        if len(result.errors) < self.settings.import_error_limit:
            result.errors.append(message)
