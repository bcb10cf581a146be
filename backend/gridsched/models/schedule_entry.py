import uuid
from datetime import datetime
from enum import Enum

from sqlalchemy import DateTime, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from gridsched.db.base import Base


class DayOfWeek(str, Enum):
    monday = "Monday"
    tuesday = "Tuesday"
    wednesday = "Wednesday"
    thursday = "Thursday"
    friday = "Friday"
    saturday = "Saturday"


class ScheduleEntry(Base):
    __tablename__ = "schedule_entries"
    __table_args__ = (
        UniqueConstraint("section_id", "day", "time_slot_id", name="uq_schedule_entries_section_day_slot"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    section_id: Mapped[str] = mapped_column(String(36), ForeignKey("sections.id"), index=True, nullable=False)
    subject_id: Mapped[str] = mapped_column(String(36), ForeignKey("subjects.id"), nullable=False)
    faculty_id: Mapped[str] = mapped_column(String(36), ForeignKey("faculty.id"), index=True, nullable=False)
    # Null for online or unspecified sessions.
    room_id: Mapped[str | None] = mapped_column(String(36), ForeignKey("rooms.id"), index=True, nullable=True)
    day: Mapped[str] = mapped_column(String(10), nullable=False)
    time_slot_id: Mapped[str] = mapped_column(String(36), ForeignKey("time_slots.id"), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), onupdate=func.now())
