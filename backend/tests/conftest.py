import io
import os

# Point the app-level engine at SQLite before any gridsched module reads settings.
os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")

import pytest
from fastapi.testclient import TestClient #gives you a fake http client that can call your FastAPI routes without running a real server.
from openpyxl import Workbook
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import gridsched.models  # noqa: F401
from gridsched.api.deps import get_db
from gridsched.core.config import Settings, get_settings
from gridsched.db.base import Base
from gridsched.db.row_store import RowStore
from gridsched.main import app
from gridsched.schemas.imports import ParsedEntry

XLSX_MIME = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

SECTION_ROWS = [
    ["GITAM School of Technology"],
    ["Class Timetable - Section 2AA"],
    ["DAY/TIME", "08:00-08:50", "08:50-09:40", "09:40-10:30", "10:30-11:20", "11:20-12:10", "12:10-01:00", "01:00-01:50", "Remarks"],
    ["Monday", "CSEN3021 ABI-329", "CSEN3021 ABI-329", "BREAK", "MATH2011 ONLINE", "", "LUNCH", "CSEN3031 ABXI-SMART MANUFACTURING LAB"],
    ["", "", "", "", "", "Library hour"],
    ["Tuesday", "MATH2011 ABVIII-205", "", "", "CSEN3031"],
    ["", "MATH2011 ABVIII-206", "CSEN3021 AB-VIII-205"],
    [],
    ["Code", "Subject Name", "L", "T", "P", "C", "Faculty"],
    ["CSEN3021", "Data Structures", 3, 0, 0, 3, "2AA1: Dr. A, 2AA2: Dr. B"],
    ["MATH2011", "Linear Algebra", 3, 1, 0, 4, ""],
    ["MATH2011", "Linear Algebra II", 3, 1, 0, 4, "Prof. K (Coordinator)"],
    ["CSEN3031", "Operating Systems", 3, 0, 2, 4, ""],
]


def build_workbook(sheets: dict[str, list[list]]) -> bytes:
    workbook = Workbook()
    workbook.remove(workbook.active)
    for title, rows in sheets.items():
        worksheet = workbook.create_sheet(title)
        for row in rows:
            worksheet.append(row)
    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


def make_entry(**overrides) -> ParsedEntry:
    values = {
        "section": "2AA",
        "sheet_name": "2AA",
        "day": "Monday",
        "time_slot": "08:00-08:50",
        "start_time": "08:00:00",
        "end_time": "08:50:00",
        "slot_number": 1,
        "subject_code": "CSEN3021",
        "subject_name": "Data Structures",
        "faculty_raw": "Dr. A",
        "faculty_name": "Dr. A",
        "room_number": "ABI-329",
        "raw_content": "CSEN3021 ABI-329",
    }
    values.update(overrides)
    return ParsedEntry(**values)


@pytest.fixture()
def section_workbook() -> bytes:
    return build_workbook({"2AA": SECTION_ROWS, "Notes": [["Prepared by the timetable office"]]})


@pytest.fixture()
def settings() -> Settings:
    return Settings(_env_file=None, allow_database_reset=True)


@pytest.fixture()
def engine():
    engine = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def db_session(engine):
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def store(db_session) -> RowStore:
    return RowStore(db_session)


@pytest.fixture() #test client
def client(engine, settings): #fake http client
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    def override_get_db():
        db = TestingSessionLocal()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_settings] = lambda: settings

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
