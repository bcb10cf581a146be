"""Pure helpers that read meaning out of free-text timetable cells."""

from __future__ import annotations

import re

DAY_MAP = {
    "monday": "Monday",
    "tuesday": "Tuesday",
    "wednesday": "Wednesday",
    "thursday": "Thursday",
    "friday": "Friday",
    "saturday": "Saturday",
}

TBD_FACULTY = "TBD Faculty"
MINUTES_PER_DAY = 1440
HALF_DAY_MINUTES = 720

SUBJECT_CODE_PATTERN = re.compile(r"[A-Z]{4}\d{4}[A-Z]*")
_SUBJECT_CODE_SEARCH = re.compile(r"\b([A-Z]{4}\d{4})[A-Z]*\b")

# ABI-329, ABVIII-205, ABIX-11, ABII-4004, AB-VIII-205
_ROOM_PATTERN = re.compile(r"\b[A-Z]{2,12}[A-Z0-9]{0,4}(?:-[A-Z0-9]{1,8})*-\d{1,4}[A-Z]?\b")
# ABXI-SMART MANUFACTURING LAB, ABXI-IIOT LAB
_NAMED_LAB_PATTERN = re.compile(r"\b[A-Z]{2,12}[A-Z0-9]{0,4}-[A-Z0-9]+(?:\s+[A-Z0-9]+){0,8}\s+LAB\b")

_TIME_24H = re.compile(r"^(\d{1,2}):(\d{2})(?::(\d{2}))?$")
_TIME_12H = re.compile(r"^(\d{1,2}):(\d{2})\s*(AM|PM)$")

_BATCH_COLON_PREFIX = re.compile(r"^[A-Za-z0-9.+-]+\s*:\s*")
_BATCH_SLASH_PREFIX = re.compile(r"^[A-Za-z0-9.+-]+\s*/\s*")
_PARENTHETICAL = re.compile(r"\(.*?\)")
_WHITESPACE = re.compile(r"\s+")
_SLUG_SEPARATORS = re.compile(r"[^a-z0-9]+")


def normalize_text(value: object) -> str:
    if value is None:
        return ""
    return _WHITESPACE.sub(" ", str(value)).strip()


def normalize_day(value: object) -> str | None:
    return DAY_MAP.get(normalize_text(value).lower())


def extract_subject_code(value: object) -> str | None:
    match = _SUBJECT_CODE_SEARCH.search(normalize_text(value).upper())
    return match.group(1) if match else None


def extract_room_number(value: object) -> str | None:
    """Return the most specific room reference in a cell, or None for online/unknown.

    When several rooms are concatenated in one cell the last one wins.
    """
    text = normalize_text(value).upper()
    if not text or "ONLINE" in text:
        return None

    rooms = _ROOM_PATTERN.findall(text)
    if rooms:
        return rooms[-1]

    labs = _NAMED_LAB_PATTERN.findall(text)
    if labs:
        return labs[-1]
    return None


def extract_primary_faculty(value: object) -> str:
    """Pick the first faculty name out of legend text.

    Handles per-batch annotations such as ``"2AA1: Dr. A, 2AA2: Dr. B"`` and
    ``"Prof. X, 2AA1:Ms. Y"``.
    """
    text = normalize_text(value)
    if not text:
        return TBD_FACULTY

    first_chunk = normalize_text(text.split(",")[0])
    faculty = _BATCH_COLON_PREFIX.sub("", first_chunk, count=1)
    faculty = _BATCH_SLASH_PREFIX.sub("", faculty, count=1)
    faculty = _PARENTHETICAL.sub("", faculty).strip()

    if not faculty:
        faculty = _PARENTHETICAL.sub("", text).strip()
    return faculty or TBD_FACULTY


def parse_time_token(token: object) -> int | None:
    """Minutes after midnight for ``H:MM[:SS]`` or ``H:MM AM/PM``; None if not a time."""
    text = normalize_text(token).upper()
    if not text:
        return None

    direct = _TIME_24H.match(text)
    if direct:
        hour, minute = int(direct.group(1)), int(direct.group(2))
        second = int(direct.group(3) or 0)
        if 0 <= hour <= 23 and 0 <= minute <= 59 and 0 <= second <= 59:
            return hour * 60 + minute

    ampm = _TIME_12H.match(text)
    if ampm:
        hour, minute, period = int(ampm.group(1)), int(ampm.group(2)), ampm.group(3)
        if 1 <= hour <= 12 and 0 <= minute <= 59:
            if period == "AM":
                hour = 0 if hour == 12 else hour
            else:
                hour = 12 if hour == 12 else hour + 12
            return hour * 60 + minute

    return None


def parse_time_range(value: object) -> tuple[str, int, int] | None:
    """Parse ``"08:00-08:50"`` style labels into ``(label, start, end)`` minutes."""
    raw = normalize_text(value).replace("–", "-").replace("—", "-")
    if "-" not in raw:
        return None

    parts = [normalize_text(part) for part in raw.split("-")]
    if len(parts) != 2:
        return None

    start = parse_time_token(parts[0])
    end = parse_time_token(parts[1])
    if start is None or end is None:
        return None
    return raw, start, end


def minutes_to_sql_time(minutes: int) -> str:
    wrapped = minutes % MINUTES_PER_DAY
    return f"{wrapped // 60:02d}:{wrapped % 60:02d}:00"


def slugify(value: object) -> str:
    return _SLUG_SEPARATORS.sub(".", normalize_text(value).lower()).strip(".")


def make_faculty_email(faculty_name: str, domain: str = "college.edu") -> str:
    return f"{slugify(faculty_name) or 'faculty'}@{domain}"
