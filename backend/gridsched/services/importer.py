from __future__ import annotations

import logging
from collections.abc import Sequence

from gridsched.core.config import Settings, check_import_settings, get_settings
from gridsched.core.exceptions import EmptyImportError
from gridsched.db.row_store import RowStore
from gridsched.schemas.imports import ImportCommit, ImportPreview, ParsedEntry, QualitySummary
from gridsched.services.cell_semantics import normalize_text
from gridsched.services.entity_resolver import ScheduleImporter
from gridsched.services.workbook import parse_workbook

logger = logging.getLogger(__name__)


def build_quality_summary(entries: Sequence[ParsedEntry]) -> QualitySummary:
    summary = QualitySummary(total_entries=len(entries))
    for entry in entries:
        if normalize_text(entry.room_number):
            continue
        summary.missing_rooms += 1
        if "online" in normalize_text(entry.raw_content).lower():
            summary.online_classes += 1
        else:
            summary.non_online_missing += 1
    return summary


def run_import(
    store: RowStore | None,
    payload: bytes,
    *,
    dry_run: bool = False,
    settings: Settings | None = None,
) -> ImportPreview | ImportCommit:
    """Parse a timetable workbook and either preview it or persist it.

    A dry run never touches ``store``; it may be None.
    """
    settings = settings or get_settings()
    check_import_settings(settings)
    entries = parse_workbook(payload)
    quality = build_quality_summary(entries)

    if not entries:
        raise EmptyImportError()

    if dry_run:
        logger.info("Dry run parsed %d entries", len(entries))
        return ImportPreview(
            total_parsed=len(entries),
            quality=quality,
            sample=list(entries[: settings.preview_sample_size]),
        )

    if store is None:
        raise ValueError("A row store is required to commit an import")
    results = ScheduleImporter(store, settings).apply(entries)
    return ImportCommit(results=results, quality=quality)
