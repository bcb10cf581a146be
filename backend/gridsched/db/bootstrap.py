from __future__ import annotations

import logging
from dataclasses import dataclass, field

from sqlalchemy import inspect
from sqlalchemy.engine import Connection

from gridsched.db.base import Base
from gridsched.db.session import engine

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS: dict[str, set[str]] = {
    "programs": {"id", "name", "department"},
    "sections": {"id", "program_id", "name", "year", "advisor"},
    "subjects": {"id", "code", "name", "credits"},
    "faculty": {"id", "name", "email", "department"},
    "rooms": {"id", "room_number", "capacity"},
    "time_slots": {"id", "start_time", "end_time", "slot_number"},
    "schedule_entries": {"id", "section_id", "subject_id", "faculty_id", "room_id", "day", "time_slot_id"},
}

# Present on current schemas; the importer checks for it per insert.
OPTIONAL_COLUMNS: dict[str, set[str]] = {
    "faculty": {"hashed_password"},
}


@dataclass
class SchemaReport:
    missing_tables: list[str] = field(default_factory=list)
    missing_columns: dict[str, list[str]] = field(default_factory=dict)
    optional_columns: dict[str, bool] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.missing_tables and not self.missing_columns


def inspect_schema(connection: Connection) -> SchemaReport:
    inspector = inspect(connection)
    table_names = set(inspector.get_table_names())
    report = SchemaReport()
    for table_name, required in REQUIRED_COLUMNS.items():
        if table_name not in table_names:
            report.missing_tables.append(table_name)
            continue
        existing = {item["name"] for item in inspector.get_columns(table_name)}
        missing = sorted(required - existing)
        if missing:
            report.missing_columns[table_name] = missing
        for column_name in sorted(OPTIONAL_COLUMNS.get(table_name, ())):
            report.optional_columns[f"{table_name}.{column_name}"] = column_name in existing
    return report


def _assert_required_columns() -> None:
    with engine.begin() as connection:
        report = inspect_schema(connection)
    if report.missing_tables:
        raise RuntimeError(f"Missing required tables: {', '.join(sorted(report.missing_tables))}")
    if report.missing_columns:
        columns = [f"{table}.{column}" for table, names in report.missing_columns.items() for column in names]
        raise RuntimeError(f"Missing required columns: {', '.join(columns)}")
    for column, present in report.optional_columns.items():
        if not present:
            logger.warning("Optional column %s is missing; rows are written without it", column)


def ensure_runtime_schema_compatibility() -> None:
    try:
        import gridsched.models  # noqa: F401

        Base.metadata.create_all(bind=engine)
        _assert_required_columns()
    except Exception as exc:  # pragma: no cover - runtime environment dependent
        logger.exception("Runtime schema compatibility bootstrap failed")
        raise RuntimeError("Runtime schema compatibility bootstrap failed") from exc
