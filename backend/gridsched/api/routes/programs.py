from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from gridsched.api.deps import get_db
from gridsched.models.program import Program
from gridsched.models.section import Section
from gridsched.schemas.program import ProgramCreate, ProgramOut, SectionCreate, SectionOut

router = APIRouter()


@router.get("/programs", response_model=list[ProgramOut])
def list_programs(db: Session = Depends(get_db)) -> list[ProgramOut]:
    return list(db.execute(select(Program).order_by(Program.name.asc())).scalars())


@router.post("/programs", response_model=ProgramOut, status_code=status.HTTP_201_CREATED)
def create_program(payload: ProgramCreate, db: Session = Depends(get_db)) -> ProgramOut:
    existing = db.execute(select(Program).where(Program.name == payload.name)).scalar_one_or_none()
    if existing:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Program name already exists")
    program = Program(**payload.model_dump())
    db.add(program)
    db.commit()
    db.refresh(program)
    return program


@router.get("/sections", response_model=list[SectionOut])
def list_sections(
    program_id: str | None = Query(default=None, min_length=1, max_length=36),
    db: Session = Depends(get_db),
) -> list[SectionOut]:
    stmt = (
        select(Section, Program.name)
        .join(Program, Program.id == Section.program_id, isouter=True)
        .order_by(Section.name.asc())
    )
    if program_id is not None:
        stmt = stmt.where(Section.program_id == program_id)
    return [
        SectionOut.model_validate(section).model_copy(update={"program_name": program_name})
        for section, program_name in db.execute(stmt).all()
    ]


@router.post("/sections", response_model=SectionOut, status_code=status.HTTP_201_CREATED)
def create_section(payload: SectionCreate, db: Session = Depends(get_db)) -> SectionOut:
    program = db.get(Program, payload.program_id)
    if program is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Program not found")
    section = Section(**payload.model_dump())
    db.add(section)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Section already exists in this program") from exc
    db.refresh(section)
    return SectionOut.model_validate(section).model_copy(update={"program_name": program.name})
