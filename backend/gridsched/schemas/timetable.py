from pydantic import BaseModel, Field

from gridsched.models.schedule_entry import DayOfWeek


class ScheduleEntryCreate(BaseModel):
    section_id: str = Field(min_length=1, max_length=36)
    subject_id: str = Field(min_length=1, max_length=36)
    faculty_id: str = Field(min_length=1, max_length=36)
    room_id: str | None = Field(default=None, max_length=36)
    day: DayOfWeek
    time_slot_id: str = Field(min_length=1, max_length=36)


class ScheduleEntryOut(BaseModel):
    id: str
    section_id: str
    subject_id: str
    faculty_id: str
    room_id: str | None = None
    day: str
    time_slot_id: str

    model_config = {"from_attributes": True}


class SectionRef(BaseModel):
    name: str


class SubjectRef(BaseModel):
    name: str
    code: str


class FacultyRef(BaseModel):
    name: str


class RoomRef(BaseModel):
    room_number: str


class TimeSlotRef(BaseModel):
    start_time: str
    end_time: str
    slot_number: int


class ScheduleEntryDetail(ScheduleEntryOut):
    section: SectionRef | None = None
    subject: SubjectRef | None = None
    faculty: FacultyRef | None = None
    room: RoomRef | None = None
    time_slot: TimeSlotRef | None = None
