"""Typed views of rows coming back from the row store.

Rows are validated here instead of being passed around as loose dicts; unknown
columns (timestamps, legacy extras) are ignored.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class StoreRecord(BaseModel):
    model_config = ConfigDict(extra="ignore", from_attributes=True)

    id: str


class ProgramRecord(StoreRecord):
    name: str
    department: str | None = None


class SectionRecord(StoreRecord):
    program_id: str
    name: str
    year: int | None = None
    advisor: str | None = None


class SubjectRecord(StoreRecord):
    code: str
    name: str
    credits: int | None = None


class FacultyRecord(StoreRecord):
    name: str
    email: str | None = None
    department: str | None = None


class RoomRecord(StoreRecord):
    room_number: str
    capacity: int | None = None


class TimeSlotRecord(StoreRecord):
    start_time: str
    end_time: str
    slot_number: int | None = None


class ScheduleEntryRecord(StoreRecord):
    section_id: str
    subject_id: str
    faculty_id: str
    room_id: str | None = None
    day: str
    time_slot_id: str
