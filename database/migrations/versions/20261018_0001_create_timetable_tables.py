"""create timetable tables

Revision ID: 20261018_0001
Revises: None
Create Date: 2026-10-18 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

revision = "20261018_0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "programs",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("department", sa.String(length=200), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_programs_name", "programs", ["name"], unique=True)

    op.create_table(
        "sections",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("program_id", sa.String(length=36), sa.ForeignKey("programs.id"), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("year", sa.Integer(), nullable=True),
        sa.Column("advisor", sa.String(length=200), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint("program_id", "name", name="uq_sections_program_name"),
    )
    op.create_index("ix_sections_program_id", "sections", ["program_id"])

    op.create_table(
        "subjects",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("code", sa.String(length=20), nullable=False),
        sa.Column("name", sa.String(length=300), nullable=False),
        sa.Column("credits", sa.Integer(), nullable=False, server_default="3"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_subjects_code", "subjects", ["code"], unique=True)

    op.create_table(
        "faculty",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("department", sa.String(length=200), nullable=False),
        sa.Column("hashed_password", sa.String(length=255), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_faculty_name", "faculty", ["name"])
    op.create_index("ix_faculty_email", "faculty", ["email"], unique=True)

    op.create_table(
        "rooms",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("room_number", sa.String(length=100), nullable=False),
        sa.Column("capacity", sa.Integer(), nullable=False, server_default="60"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_rooms_room_number", "rooms", ["room_number"], unique=True)

    op.create_table(
        "time_slots",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("start_time", sa.String(length=8), nullable=False),
        sa.Column("end_time", sa.String(length=8), nullable=False),
        sa.Column("slot_number", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint("start_time", "end_time", name="uq_time_slots_start_end"),
    )

    op.create_table(
        "schedule_entries",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("section_id", sa.String(length=36), sa.ForeignKey("sections.id"), nullable=False),
        sa.Column("subject_id", sa.String(length=36), sa.ForeignKey("subjects.id"), nullable=False),
        sa.Column("faculty_id", sa.String(length=36), sa.ForeignKey("faculty.id"), nullable=False),
        sa.Column("room_id", sa.String(length=36), sa.ForeignKey("rooms.id"), nullable=True),
        sa.Column("day", sa.String(length=10), nullable=False),
        sa.Column("time_slot_id", sa.String(length=36), sa.ForeignKey("time_slots.id"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint("section_id", "day", "time_slot_id", name="uq_schedule_entries_section_day_slot"),
    )
    op.create_index("ix_schedule_entries_section_id", "schedule_entries", ["section_id"])
    op.create_index("ix_schedule_entries_faculty_id", "schedule_entries", ["faculty_id"])
    op.create_index("ix_schedule_entries_room_id", "schedule_entries", ["room_id"])


def downgrade() -> None:
    op.drop_index("ix_schedule_entries_room_id", table_name="schedule_entries")
    op.drop_index("ix_schedule_entries_faculty_id", table_name="schedule_entries")
    op.drop_index("ix_schedule_entries_section_id", table_name="schedule_entries")
    op.drop_table("schedule_entries")
    op.drop_table("time_slots")
    op.drop_index("ix_rooms_room_number", table_name="rooms")
    op.drop_table("rooms")
    op.drop_index("ix_faculty_email", table_name="faculty")
    op.drop_index("ix_faculty_name", table_name="faculty")
    op.drop_table("faculty")
    op.drop_index("ix_subjects_code", table_name="subjects")
    op.drop_table("subjects")
    op.drop_index("ix_sections_program_id", table_name="sections")
    op.drop_table("sections")
    op.drop_index("ix_programs_name", table_name="programs")
    op.drop_table("programs")
