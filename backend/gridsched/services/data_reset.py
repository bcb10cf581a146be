from __future__ import annotations

import logging

from gridsched.core.config import Settings, get_settings
from gridsched.core.exceptions import ResetNotAllowedError
from gridsched.db.row_store import RowStore
from gridsched.schemas.imports import ResetSummary

logger = logging.getLogger(__name__)

# Children first so foreign keys never dangle mid-reset.
RESET_TABLES = (
    "schedule_entries",
    "time_slots",
    "rooms",
    "faculty",
    "subjects",
    "sections",
    "programs",
)


def reset_timetable_data(store: RowStore, settings: Settings | None = None) -> ResetSummary:
    settings = settings or get_settings()
    if not settings.database_reset_allowed:
        raise ResetNotAllowedError(
            "Database reset is disabled. Set ALLOW_DATABASE_RESET=true on the server to enable this action."
        )

    summary = ResetSummary()
    for table in RESET_TABLES:
        count = store.count(table)
        summary.deleted[table] = count
        if count > 0:
            store.delete_all(table)
        summary.total_deleted += count

    logger.warning("Timetable data reset: %d rows deleted", summary.total_deleted)
    return summary
