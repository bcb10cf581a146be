from pydantic import BaseModel, Field, field_validator

from gridsched.services.cell_semantics import SUBJECT_CODE_PATTERN


class SubjectBase(BaseModel):
    code: str = Field(min_length=8, max_length=20)
    name: str = Field(min_length=1, max_length=300)
    credits: int = Field(default=3, ge=0, le=40)

    @field_validator("code")
    @classmethod
    def validate_code(cls, value: str) -> str:
        code = value.strip().upper()
        if not SUBJECT_CODE_PATTERN.fullmatch(code):
            raise ValueError("Subject code must be 4 letters followed by 4 digits")
        return code


class SubjectCreate(SubjectBase):
    pass


class SubjectOut(SubjectBase):
    id: str

    model_config = {"from_attributes": True}
