from gridsched.models.faculty import Faculty  # noqa: F401
from gridsched.models.program import Program  # noqa: F401
from gridsched.models.room import Room  # noqa: F401
from gridsched.models.schedule_entry import DayOfWeek, ScheduleEntry  # noqa: F401
from gridsched.models.section import Section  # noqa: F401
from gridsched.models.subject import Subject  # noqa: F401
from gridsched.models.time_slot import TimeSlot  # noqa: F401
