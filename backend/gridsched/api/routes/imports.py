from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile, status

from gridsched.api.deps import get_row_store
from gridsched.core.config import Settings, get_settings
from gridsched.db.row_store import RowStore
from gridsched.schemas.imports import ImportCommit, ImportPreview, ResetResponse
from gridsched.services.data_reset import reset_timetable_data
from gridsched.services.importer import run_import

router = APIRouter()


@router.post("/", response_model=ImportPreview | ImportCommit)
def upload_timetable(
    file: UploadFile | None = File(default=None),
    dry_run: bool = Query(default=False, alias="dryRun"),
    store: RowStore = Depends(get_row_store),
    settings: Settings = Depends(get_settings),
) -> ImportPreview | ImportCommit:
    if file is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No file uploaded.")
    payload = file.file.read()
    if not payload:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Uploaded file is empty.")
    return run_import(store, payload, dry_run=dry_run, settings=settings)


@router.delete("/database", response_model=ResetResponse)
def clear_database_data(
    store: RowStore = Depends(get_row_store),
    settings: Settings = Depends(get_settings),
) -> ResetResponse:
    return ResetResponse(summary=reset_timetable_data(store, settings))
