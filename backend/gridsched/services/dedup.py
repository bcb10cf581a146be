from __future__ import annotations

from collections.abc import Iterable

from gridsched.schemas.imports import ParsedEntry


def entry_key(entry: ParsedEntry) -> tuple[str, str, str, str]:
    return (entry.section.lower(), entry.day, entry.start_time, entry.end_time)


def dedupe_entries(entries: Iterable[ParsedEntry]) -> list[ParsedEntry]:
    """Keep the first entry per section/day/slot, preserving order."""
    seen: set[tuple[str, str, str, str]] = set()
    deduped: list[ParsedEntry] = []
    for entry in entries:
        key = entry_key(entry)
        if key in seen:
            continue
        seen.add(key)
        deduped.append(entry)
    return deduped
