from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from gridsched.db.bootstrap import SchemaReport, inspect_schema
from gridsched.db.session import engine

router = APIRouter()
logger = logging.getLogger(__name__)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@router.get("/health")
def health() -> dict:
    return {"status": "ok"}


@router.get("/health/live")
def health_live() -> dict:
    return {"status": "ok", "timestamp": _now()}


@router.get("/health/ready")
def health_ready() -> JSONResponse:
    """Database reachability, schema completeness and importer capabilities."""
    report = SchemaReport()
    db_error: str | None = None
    try:
        with engine.connect() as connection:
            connection.execute(text("SELECT 1"))
            report = inspect_schema(connection)
    except SQLAlchemyError as exc:
        logger.warning("Readiness check could not reach the database: %s", exc)
        db_error = str(exc)

    ready = db_error is None and report.ok
    payload = {
        "status": "ok" if ready else "degraded",
        "timestamp": _now(),
        "database": {
            "ok": db_error is None,
            "schema_ok": report.ok,
            "missing_tables": report.missing_tables,
            "missing_columns": report.missing_columns,
            "error": db_error,
        },
        "importer": {
            "faculty_credentials": report.optional_columns.get("faculty.hashed_password", False),
        },
    }
    return JSONResponse(status_code=200 if ready else 503, content=payload)
