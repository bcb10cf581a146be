"""Parse one section sheet of the institutional timetable workbook.

Expected layout (row/column positions vary between sheets)::

    DAY/TIME | 08:00-08:50 | 08:50-09:40 | ... | 12:00-01:00 | ...
    Monday   | CSEN3021 ABI-329 | LUNCH | ...
             | <second Monday row, day implied>
    Tuesday  | ...
    ...
    Code     | Subject Name | ... | Faculty (column 6)
    CSEN3021 | Data Structures | ... | 2AA1: Dr. A, 2AA2: Dr. B

Anything that cannot be interpreted is skipped; a sheet without a
``DAY/TIME`` header simply produces no entries.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence
from dataclasses import dataclass

from gridsched.schemas.imports import ParsedEntry
from gridsched.services.cell_semantics import (
    HALF_DAY_MINUTES,
    MINUTES_PER_DAY,
    extract_primary_faculty,
    extract_room_number,
    extract_subject_code,
    minutes_to_sql_time,
    normalize_day,
    normalize_text,
    parse_time_range,
)

logger = logging.getLogger(__name__)

RawGrid = Sequence[Sequence[object]]

HEADER_SCAN_LIMIT = 80
MIN_TIME_COLUMNS = 3
LEGEND_NAME_COLUMN = 1
LEGEND_FACULTY_COLUMN = 6

_NON_TEACHING_CELL = re.compile(r"^(break|lunch)$", re.IGNORECASE)


@dataclass(frozen=True)
class SheetTimeSlot:
    column_index: int
    slot_number: int
    label: str
    start_minutes: int
    end_minutes: int

    @property
    def start_time(self) -> str:
        return minutes_to_sql_time(self.start_minutes)

    @property
    def end_time(self) -> str:
        return minutes_to_sql_time(self.end_minutes)


@dataclass(frozen=True)
class SubjectCatalogEntry:
    code: str
    name: str
    faculty_raw: str


def _cell(row: Sequence[object] | None, index: int) -> str:
    if not row or index >= len(row):
        return ""
    return normalize_text(row[index])


def find_schedule_header_row(rows: RawGrid) -> int | None:
    for index, row in enumerate(rows[:HEADER_SCAN_LIMIT]):
        if "day/time" not in _cell(row, 0).lower():
            continue
        time_columns = [cell for cell in row[1:] if parse_time_range(cell) is not None]
        if len(time_columns) >= MIN_TIME_COLUMNS:
            return index
    return None


def find_legend_header_row(rows: RawGrid, start_index: int) -> int | None:
    for index in range(start_index, len(rows)):
        row = rows[index]
        if _cell(row, 0).lower() == "code" and "subject" in _cell(row, 1).lower():
            return index
    return None


def build_time_slots(header_row: Sequence[object]) -> list[SheetTimeSlot]:
    """Turn header labels into ordered slots, rolling afternoon labels past noon.

    Headers are written sequentially through the day, so ``12:00-01:00``
    following ``11:00-12:00`` means 12:00-13:00.
    """
    slots: list[SheetTimeSlot] = []
    previous_start: int | None = None
    for column_index in range(1, len(header_row)):
        parsed = parse_time_range(header_row[column_index])
        if parsed is None:
            continue
        label, start, end = parsed

        while previous_start is not None and start <= previous_start and start + HALF_DAY_MINUTES < MINUTES_PER_DAY:
            start += HALF_DAY_MINUTES
        while end <= start and end + HALF_DAY_MINUTES < MINUTES_PER_DAY:
            end += HALF_DAY_MINUTES

        previous_start = start
        slots.append(
            SheetTimeSlot(
                column_index=column_index,
                slot_number=len(slots) + 1,
                label=label,
                start_minutes=start,
                end_minutes=end,
            )
        )
    return slots


def build_subject_catalog(rows: RawGrid, legend_header_index: int | None) -> dict[str, SubjectCatalogEntry]:
    catalog: dict[str, SubjectCatalogEntry] = {}
    if legend_header_index is None:
        return catalog

    for row in rows[legend_header_index + 1:]:
        code = extract_subject_code(_cell(row, 0))
        if not code:
            continue
        name = _cell(row, LEGEND_NAME_COLUMN)
        faculty_raw = _cell(row, LEGEND_FACULTY_COLUMN)

        existing = catalog.get(code)
        if existing is None:
            catalog[code] = SubjectCatalogEntry(code=code, name=name, faculty_raw=faculty_raw)
            continue
        # Later legend rows only fill gaps.
        catalog[code] = SubjectCatalogEntry(
            code=code,
            name=existing.name or name,
            faculty_raw=existing.faculty_raw or faculty_raw,
        )
    return catalog


def parse_sheet(sheet_name: str, rows: RawGrid) -> list[ParsedEntry]:
    if not rows:
        return []

    header_index = find_schedule_header_row(rows)
    if header_index is None:
        logger.debug("Sheet %r has no DAY/TIME header; skipping", sheet_name)
        return []

    slots = build_time_slots(rows[header_index])
    if not slots:
        return []

    legend_index = find_legend_header_row(rows, header_index + 1)
    catalog = build_subject_catalog(rows, legend_index)
    schedule_end = len(rows) if legend_index is None else legend_index
    section = normalize_text(sheet_name)

    entries: list[ParsedEntry] = []
    current_day: str | None = None
    for row in rows[header_index + 1:schedule_end]:
        first_cell = _cell(row, 0)
        if first_cell:
            day = normalize_day(first_cell)
            if day:
                current_day = day
            elif first_cell.lower() == "code":
                break

        if current_day is None:
            continue

        for slot in slots:
            cell_text = _cell(row, slot.column_index)
            if not cell_text or _NON_TEACHING_CELL.match(cell_text):
                continue

            subject_code = extract_subject_code(cell_text)
            if not subject_code:
                continue

            subject = catalog.get(subject_code)
            faculty_raw = subject.faculty_raw if subject else ""
            entries.append(
                ParsedEntry(
                    section=section,
                    sheet_name=sheet_name,
                    day=current_day,
                    time_slot=slot.label,
                    start_time=slot.start_time,
                    end_time=slot.end_time,
                    slot_number=slot.slot_number,
                    subject_code=subject_code,
                    subject_name=(subject.name if subject else "") or subject_code,
                    faculty_raw=faculty_raw,
                    faculty_name=extract_primary_faculty(faculty_raw),
                    room_number=extract_room_number(cell_text),
                    raw_content=cell_text,
                )
            )
    return entries
