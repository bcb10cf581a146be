"""Occupancy checks for manually created timetable entries."""

from __future__ import annotations

from gridsched.db.row_store import RowStore

FACULTY_CONFLICT = "Faculty is already booked at this time."
ROOM_CONFLICT = "Room is already occupied at this time."
SECTION_CONFLICT = "Section already has a class at this time."


def _is_booked(store: RowStore, column: str, value: str, day: str, time_slot_id: str) -> bool:
    return store.select_one(
        "schedule_entries",
        {column: value, "day": day, "time_slot_id": time_slot_id},
    ) is not None


def check_conflicts(
    store: RowStore,
    *,
    section_id: str,
    faculty_id: str,
    room_id: str | None,
    day: str,
    time_slot_id: str,
) -> str | None:
    """Return the first conflict reason for the proposed booking, or None.

    Faculty is checked first, then the room (only when one is given), then
    the section.
    """
    if _is_booked(store, "faculty_id", faculty_id, day, time_slot_id):
        return FACULTY_CONFLICT
    if room_id and _is_booked(store, "room_id", room_id, day, time_slot_id):
        return ROOM_CONFLICT
    if _is_booked(store, "section_id", section_id, day, time_slot_id):
        return SECTION_CONFLICT
    return None
