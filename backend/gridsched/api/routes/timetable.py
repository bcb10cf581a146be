import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy import Select, select
from sqlalchemy.orm import Session

from gridsched.api.deps import get_db, get_row_store
from gridsched.core.exceptions import ResourceNotFoundError, ScheduleConflictError
from gridsched.db.row_store import RowStore, UniqueViolationError
from gridsched.models.faculty import Faculty
from gridsched.models.room import Room
from gridsched.models.schedule_entry import DayOfWeek, ScheduleEntry
from gridsched.models.section import Section
from gridsched.models.subject import Subject
from gridsched.models.time_slot import TimeSlot
from gridsched.schemas.records import ScheduleEntryRecord
from gridsched.schemas.timetable import (
    FacultyRef,
    RoomRef,
    ScheduleEntryCreate,
    ScheduleEntryDetail,
    ScheduleEntryOut,
    SectionRef,
    SubjectRef,
    TimeSlotRef,
)
from gridsched.services.conflict_service import SECTION_CONFLICT, check_conflicts

router = APIRouter()
logger = logging.getLogger(__name__)

DAY_ORDER = {day.value: index for index, day in enumerate(DayOfWeek)}


def detail_query() -> Select:
    return (
        select(ScheduleEntry, Section, Subject, Faculty, Room, TimeSlot)
        .join(Section, Section.id == ScheduleEntry.section_id, isouter=True)
        .join(Subject, Subject.id == ScheduleEntry.subject_id, isouter=True)
        .join(Faculty, Faculty.id == ScheduleEntry.faculty_id, isouter=True)
        .join(Room, Room.id == ScheduleEntry.room_id, isouter=True)
        .join(TimeSlot, TimeSlot.id == ScheduleEntry.time_slot_id, isouter=True)
    )


def load_entries(db: Session, stmt: Select) -> list[ScheduleEntryDetail]:
    details: list[ScheduleEntryDetail] = []
    for entry, section, subject, faculty, room, slot in db.execute(stmt).all():
        detail = ScheduleEntryDetail.model_validate(entry)
        detail.section = SectionRef(name=section.name) if section else None
        detail.subject = SubjectRef(name=subject.name, code=subject.code) if subject else None
        detail.faculty = FacultyRef(name=faculty.name) if faculty else None
        detail.room = RoomRef(room_number=room.room_number) if room else None
        detail.time_slot = (
            TimeSlotRef(start_time=slot.start_time, end_time=slot.end_time, slot_number=slot.slot_number)
            if slot
            else None
        )
        details.append(detail)
    details.sort(
        key=lambda item: (
            DAY_ORDER.get(item.day, len(DAY_ORDER)),
            item.time_slot.start_time if item.time_slot else "",
            item.section.name if item.section else "",
        )
    )
    return details


@router.get("/", response_model=list[ScheduleEntryDetail])
def list_timetable(db: Session = Depends(get_db)) -> list[ScheduleEntryDetail]:
    return load_entries(db, detail_query())


@router.get("/section/{section_id}", response_model=list[ScheduleEntryDetail])
def timetable_for_section(section_id: str, db: Session = Depends(get_db)) -> list[ScheduleEntryDetail]:
    return load_entries(db, detail_query().where(ScheduleEntry.section_id == section_id))


@router.get("/faculty/{faculty_id}", response_model=list[ScheduleEntryDetail])
def timetable_for_faculty(faculty_id: str, db: Session = Depends(get_db)) -> list[ScheduleEntryDetail]:
    return load_entries(db, detail_query().where(ScheduleEntry.faculty_id == faculty_id))


@router.get("/room/{room_id}", response_model=list[ScheduleEntryDetail])
def timetable_for_room(room_id: str, db: Session = Depends(get_db)) -> list[ScheduleEntryDetail]:
    return load_entries(db, detail_query().where(ScheduleEntry.room_id == room_id))


def _require_row(store: RowStore, table: str, row_id: str, label: str) -> None:
    if store.select_one(table, {"id": row_id}) is None:
        raise ResourceNotFoundError(label, row_id)


@router.post("/", response_model=ScheduleEntryOut, status_code=status.HTTP_201_CREATED)
def create_entry(payload: ScheduleEntryCreate, store: RowStore = Depends(get_row_store)) -> ScheduleEntryOut:
    _require_row(store, "sections", payload.section_id, "Section")
    _require_row(store, "subjects", payload.subject_id, "Subject")
    _require_row(store, "faculty", payload.faculty_id, "Faculty")
    _require_row(store, "time_slots", payload.time_slot_id, "Time slot")
    if payload.room_id:
        _require_row(store, "rooms", payload.room_id, "Room")

    conflict = check_conflicts(
        store,
        section_id=payload.section_id,
        faculty_id=payload.faculty_id,
        room_id=payload.room_id,
        day=payload.day.value,
        time_slot_id=payload.time_slot_id,
    )
    if conflict:
        raise ScheduleConflictError(conflict)

    try:
        row = store.insert("schedule_entries", payload.model_dump(mode="json"))
    except UniqueViolationError as exc:
        # Another request booked the section between the check and the insert.
        raise ScheduleConflictError(SECTION_CONFLICT) from exc
    logger.info("Manual entry %s created for section %s on %s", row["id"], payload.section_id, payload.day.value)
    return ScheduleEntryRecord.model_validate(row)
