from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from gridsched.api.deps import get_db, get_row_store
from gridsched.core.config import Settings, get_settings
from gridsched.core.security import get_password_hash
from gridsched.db.row_store import RowStore, UniqueViolationError
from gridsched.models.faculty import Faculty
from gridsched.schemas.faculty import FacultyCreate, FacultyOut
from gridsched.services.entity_resolver import insert_faculty_row

router = APIRouter()


@router.get("/", response_model=list[FacultyOut])
def list_faculty(db: Session = Depends(get_db)) -> list[FacultyOut]:
    return list(db.execute(select(Faculty).order_by(Faculty.name.asc())).scalars())


@router.post("/", response_model=FacultyOut, status_code=status.HTTP_201_CREATED)
def create_faculty(
    payload: FacultyCreate,
    store: RowStore = Depends(get_row_store),
    settings: Settings = Depends(get_settings),
) -> FacultyOut:
    try:
        row = insert_faculty_row(
            store,
            payload.model_dump(),
            get_password_hash(settings.default_faculty_password),
        )
    except UniqueViolationError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Faculty email already exists") from exc
    return FacultyOut.model_validate(row)
