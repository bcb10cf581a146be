"""Table-level row store used by the import pipeline and the conflict checker.

The store wraps a SQLAlchemy ``Session`` and speaks in plain column mappings so
callers stay independent of the ORM classes. Every write is committed on its
own; a failing write is rolled back and surfaced as one of the typed errors
below, leaving earlier writes intact.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Mapping
from typing import Any

from sqlalchemy import MetaData, Table, delete, func, select, update
from sqlalchemy.exc import DBAPIError, IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from gridsched.core.exceptions import AppError
from gridsched.db.base import Base
import gridsched.models  # noqa: F401

logger = logging.getLogger(__name__)

# SQLSTATE codes
UNIQUE_VIOLATION = "23505"
UNDEFINED_COLUMN = "42703"


class StoreError(AppError):
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message, status_code=500, details=details)


class UniqueViolationError(StoreError):
    """A write collided with a unique constraint."""

    def __init__(self, table: str, message: str):
        super().__init__(f"Duplicate row in {table}: {message}", details={"table": table})
        self.status_code = 409
        self.table = table


class SchemaMismatchError(StoreError):
    """The live table does not have the columns a write asked for."""

    def __init__(self, table: str, columns: list[str], message: str | None = None):
        text = message or f"Table {table} has no column(s): {', '.join(columns)}"
        super().__init__(text, details={"table": table, "columns": columns})
        self.table = table
        self.columns = columns


def _sqlstate(exc: DBAPIError) -> str | None:
    orig = getattr(exc, "orig", None)
    for attr in ("sqlstate", "pgcode"):
        value = getattr(orig, attr, None)
        if value:
            return str(value)
    return None


def _is_unique_violation(exc: IntegrityError) -> bool:
    if _sqlstate(exc) == UNIQUE_VIOLATION:
        return True
    text = str(exc.orig).lower()
    return "unique constraint" in text or "duplicate key" in text


def _is_undefined_column(exc: DBAPIError) -> bool:
    if _sqlstate(exc) == UNDEFINED_COLUMN:
        return True
    text = str(exc.orig).lower()
    return "no such column" in text or "has no column named" in text


class RowStore:
    def __init__(self, session: Session, metadata: MetaData | None = None) -> None:
        self.session = session
        self.metadata = metadata if metadata is not None else Base.metadata

    def table(self, name: str) -> Table:
        table = self.metadata.tables.get(name)
        if table is None:
            raise StoreError(f"Unknown table {name}")
        return table

    def select(
        self,
        table_name: str,
        filters: Mapping[str, Any] | None = None,
        *,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        table = self.table(table_name)
        stmt = select(table)
        for column, value in (filters or {}).items():
            if column not in table.c:
                raise SchemaMismatchError(table_name, [column])
            stmt = stmt.where(table.c[column] == value)
        if limit is not None:
            stmt = stmt.limit(limit)
        try:
            rows = self.session.execute(stmt).mappings().all()
        except SQLAlchemyError as exc:
            self.session.rollback()
            raise StoreError(f"Select from {table_name} failed: {exc}") from exc
        return [dict(row) for row in rows]

    def select_one(self, table_name: str, filters: Mapping[str, Any]) -> dict[str, Any] | None:
        rows = self.select(table_name, filters, limit=1)
        return rows[0] if rows else None

    def count(self, table_name: str, filters: Mapping[str, Any] | None = None) -> int:
        table = self.table(table_name)
        stmt = select(func.count()).select_from(table)
        for column, value in (filters or {}).items():
            if column not in table.c:
                raise SchemaMismatchError(table_name, [column])
            stmt = stmt.where(table.c[column] == value)
        try:
            return int(self.session.execute(stmt).scalar_one())
        except SQLAlchemyError as exc:
            self.session.rollback()
            raise StoreError(f"Count of {table_name} failed: {exc}") from exc

    def insert(self, table_name: str, values: Mapping[str, Any]) -> dict[str, Any]:
        table = self.table(table_name)
        unknown = sorted(set(values) - set(table.c.keys()))
        if unknown:
            raise SchemaMismatchError(table_name, unknown)

        row = dict(values)
        if "id" in table.c and row.get("id") is None:
            row["id"] = str(uuid.uuid4())

        try:
            self.session.execute(table.insert().values(**row))
            self.session.commit()
        except IntegrityError as exc:
            self.session.rollback()
            if _is_unique_violation(exc):
                raise UniqueViolationError(table_name, str(exc.orig)) from exc
            raise StoreError(f"Insert into {table_name} failed: {exc.orig}") from exc
        except DBAPIError as exc:
            self.session.rollback()
            if _is_undefined_column(exc):
                message = str(exc.orig)
                columns = [column for column in sorted(row) if column in message] or sorted(row)
                raise SchemaMismatchError(table_name, columns, message) from exc
            raise StoreError(f"Insert into {table_name} failed: {exc.orig}") from exc
        except SQLAlchemyError as exc:
            self.session.rollback()
            raise StoreError(f"Insert into {table_name} failed: {exc}") from exc

        created = self.select_one(table_name, {"id": row["id"]}) if "id" in row else None
        return created or row

    def update(self, table_name: str, row_id: str, values: Mapping[str, Any]) -> dict[str, Any] | None:
        table = self.table(table_name)
        unknown = sorted(set(values) - set(table.c.keys()))
        if unknown:
            raise SchemaMismatchError(table_name, unknown)
        try:
            self.session.execute(update(table).where(table.c.id == row_id).values(**values))
            self.session.commit()
        except IntegrityError as exc:
            self.session.rollback()
            if _is_unique_violation(exc):
                raise UniqueViolationError(table_name, str(exc.orig)) from exc
            raise StoreError(f"Update of {table_name} failed: {exc.orig}") from exc
        except SQLAlchemyError as exc:
            self.session.rollback()
            raise StoreError(f"Update of {table_name} failed: {exc}") from exc
        return self.select_one(table_name, {"id": row_id})

    def delete_all(self, table_name: str) -> int:
        table = self.table(table_name)
        try:
            result = self.session.execute(delete(table))
            self.session.commit()
        except SQLAlchemyError as exc:
            self.session.rollback()
            raise StoreError(f"Clearing {table_name} failed: {exc}") from exc
        logger.info("Cleared %s rows from %s", result.rowcount, table_name)
        return result.rowcount
