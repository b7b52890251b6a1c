from datetime import datetime

from pydantic import BaseModel, EmailStr, Field, field_validator

from vivaplan.schemas.common import normalize_code


def _normalize_department(value: str) -> str:
    department = value.strip().upper()
    if not department.isalnum():
        raise ValueError("Department must be alphanumeric")
    return department


class StudentCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    email: EmailStr
    phone: str | None = Field(default=None, max_length=50)
    department: str = Field(min_length=2, max_length=20)

    @field_validator("department")
    @classmethod
    def normalize_department(cls, value: str) -> str:
        return _normalize_department(value)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.strip().lower()


class StudentBrief(BaseModel):
    student_id: str = Field(validation_alias="student_code")
    name: str

    model_config = {"from_attributes": True, "populate_by_name": True}


class StudentOut(StudentBrief):
    id: str
    email: EmailStr
    phone: str | None = None
    department: str
    created_at: datetime | None = None


class ExaminerCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    email: EmailStr
    department: str = Field(min_length=2, max_length=20)

    @field_validator("department")
    @classmethod
    def normalize_department(cls, value: str) -> str:
        return _normalize_department(value)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.strip().lower()


class ExaminerBrief(BaseModel):
    examiner_id: str = Field(validation_alias="examiner_code")
    name: str
    email: EmailStr

    model_config = {"from_attributes": True, "populate_by_name": True}


class ExaminerOut(ExaminerBrief):
    id: str
    department: str
    created_at: datetime | None = None


class VenueCreate(BaseModel):
    venue_id: str = Field(min_length=1, max_length=32)
    name: str = Field(min_length=1, max_length=200)
    capacity: int = Field(default=30, ge=1, le=2000)

    @field_validator("venue_id")
    @classmethod
    def validate_code(cls, value: str) -> str:
        return normalize_code(value)


class VenueBrief(BaseModel):
    venue_id: str = Field(validation_alias="venue_code")
    name: str

    model_config = {"from_attributes": True, "populate_by_name": True}


class VenueOut(VenueBrief):
    id: str
    capacity: int


class ModuleCreate(BaseModel):
    module_code: str = Field(min_length=1, max_length=32)
    name: str = Field(min_length=1, max_length=200)

    @field_validator("module_code")
    @classmethod
    def validate_code(cls, value: str) -> str:
        return normalize_code(value)


class ModuleOut(BaseModel):
    id: str
    module_code: str
    name: str

    model_config = {"from_attributes": True, "populate_by_name": True}
