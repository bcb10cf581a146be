from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ParsedEntry(CamelModel):
    """One class occurrence read from a sheet, before persistence."""

    section: str
    sheet_name: str
    day: str
    time_slot: str
    start_time: str
    end_time: str
    slot_number: int
    subject_code: str
    subject_name: str
    faculty_raw: str = ""
    faculty_name: str
    room_number: str | None = None
    raw_content: str

    @property
    def context(self) -> str:
        label = self.time_slot or f"{self.start_time}-{self.end_time}"
        return f"{self.section} | {self.day} | {label}"


class QualitySummary(CamelModel):
    total_entries: int = 0
    missing_rooms: int = 0
    non_online_missing: int = 0
    online_classes: int = 0


class ImportResult(CamelModel):
    total_parsed: int = 0
    inserted: int = 0
    updated: int = 0
    duplicates: int = 0
    failed: int = 0
    errors: list[str] = Field(default_factory=list)


class ImportPreview(CamelModel):
    message: str = "Dry run successful"
    total_parsed: int
    quality: QualitySummary
    sample: list[ParsedEntry]


class ImportCommit(CamelModel):
    message: str = "File processed successfully"
    results: ImportResult
    quality: QualitySummary


class ResetSummary(CamelModel):
    total_deleted: int = 0
    deleted: dict[str, int] = Field(default_factory=dict)


class ResetResponse(CamelModel):
    message: str = "Database data deleted successfully."
    summary: ResetSummary
