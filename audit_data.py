from sqlalchemy import func, select

from gridsched.db.session import SessionLocal
from gridsched.models.faculty import Faculty
from gridsched.models.program import Program
from gridsched.models.room import Room
from gridsched.models.schedule_entry import ScheduleEntry
from gridsched.models.section import Section
from gridsched.models.subject import Subject
from gridsched.models.time_slot import TimeSlot

db = SessionLocal()
try:
    for label, model in (
        ("Programs", Program),
        ("Sections", Section),
        ("Subjects", Subject),
        ("Faculty", Faculty),
        ("Rooms", Room),
        ("Time Slots", TimeSlot),
        ("Schedule Entries", ScheduleEntry),
    ):
        print(f"{label}: {db.scalar(select(func.count()).select_from(model))}")

    roomless = db.scalar(select(func.count()).select_from(ScheduleEntry).where(ScheduleEntry.room_id.is_(None)))
    print(f"  - Without room: {roomless}")

    without_credentials = db.scalar(
        select(func.count()).select_from(Faculty).where(Faculty.hashed_password.is_(None))
    )
    print(f"Faculty Without Credentials: {without_credentials}")

    per_day = db.execute(
        select(ScheduleEntry.day, func.count()).group_by(ScheduleEntry.day).order_by(ScheduleEntry.day)
    ).all()
    for day, count in per_day:
        print(f"  - {day}: {count}")

    sample = db.execute(select(ScheduleEntry).limit(1)).scalar_one_or_none()
    if sample:
        print(f"Sample Entry: {sample.day} slot={sample.time_slot_id} section={sample.section_id}")

finally:
    db.close()
