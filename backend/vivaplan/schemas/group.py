from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from vivaplan.schemas.common import normalize_codes
from vivaplan.schemas.directory import StudentBrief


class GroupCreate(BaseModel):
    department: str = Field(min_length=2, max_length=100)
    students: list[str] = Field(min_length=1, max_length=500)

    @field_validator("department")
    @classmethod
    def strip_department(cls, value: str) -> str:
        return value.strip()

    @field_validator("students")
    @classmethod
    def validate_students(cls, value: list[str]) -> list[str]:
        return list(dict.fromkeys(normalize_codes(value)))


class GroupUpdate(BaseModel):
    department: str | None = Field(default=None, min_length=2, max_length=100)
    students: list[str] | None = Field(default=None, min_length=1, max_length=500)

    @field_validator("students")
    @classmethod
    def validate_students(cls, value: list[str] | None) -> list[str] | None:
        if value is None:
            return None
        return list(dict.fromkeys(normalize_codes(value)))


class GroupCreated(BaseModel):
    message: str
    group_id: str


class GroupOut(BaseModel):
    id: str
    group_id: str = Field(validation_alias="group_code")
    department: str
    students: list[StudentBrief]
    created_at: datetime | None = None

    model_config = {"from_attributes": True, "populate_by_name": True}
