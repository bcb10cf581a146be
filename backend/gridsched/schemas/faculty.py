from pydantic import BaseModel, Field, field_validator


class FacultyCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    email: str = Field(min_length=3, max_length=255)
    department: str = Field(default="TBD", min_length=1, max_length=200)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        email = value.strip().lower()
        if "@" not in email:
            raise ValueError("Invalid email address")
        return email


class FacultyOut(BaseModel):
    id: str
    name: str
    email: str
    department: str

    model_config = {"from_attributes": True}
