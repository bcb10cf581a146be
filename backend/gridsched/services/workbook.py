from __future__ import annotations

import io
import logging
import zipfile
from collections.abc import Iterator
from datetime import datetime, time

from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from gridsched.core.exceptions import WorkbookFormatError
from gridsched.schemas.imports import ParsedEntry
from gridsched.services.dedup import dedupe_entries
from gridsched.services.grid_parser import parse_sheet

logger = logging.getLogger(__name__)


def cell_to_text(value: object) -> str:
    if value is None:
        return ""
    if isinstance(value, datetime):
        value = value.time()
    if isinstance(value, time):
        return value.strftime("%H:%M")
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def iter_sheet_grids(payload: bytes) -> Iterator[tuple[str, list[list[str]]]]:
    """Yield ``(sheet_name, rows)`` for every worksheet in an ``.xlsx`` payload."""
    try:
        workbook = load_workbook(io.BytesIO(payload), read_only=True, data_only=True)
    except (InvalidFileException, zipfile.BadZipFile, KeyError, OSError) as exc:
        raise WorkbookFormatError(f"Unable to read workbook: {exc}") from exc

    try:
        for worksheet in workbook.worksheets:
            rows = [[cell_to_text(value) for value in row] for row in worksheet.iter_rows(values_only=True)]
            yield worksheet.title, rows
    finally:
        workbook.close()


def parse_workbook(payload: bytes) -> list[ParsedEntry]:
    entries: list[ParsedEntry] = []
    for sheet_name, rows in iter_sheet_grids(payload):
        sheet_entries = parse_sheet(sheet_name, rows)
        logger.debug("Sheet %r produced %d entries", sheet_name, len(sheet_entries))
        entries.extend(sheet_entries)
    return dedupe_entries(entries)
