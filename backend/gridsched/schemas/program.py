from pydantic import BaseModel, Field


class ProgramCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    department: str = Field(min_length=1, max_length=200)


class ProgramOut(ProgramCreate):
    id: str

    model_config = {"from_attributes": True}


class SectionCreate(BaseModel):
    program_id: str = Field(min_length=1, max_length=36)
    name: str = Field(min_length=1, max_length=100)
    year: int | None = Field(default=None, ge=2000, le=2100)
    advisor: str | None = Field(default=None, max_length=200)


class SectionOut(SectionCreate):
    id: str
    program_name: str | None = None

    model_config = {"from_attributes": True}
