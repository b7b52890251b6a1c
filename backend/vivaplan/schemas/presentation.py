from __future__ import annotations

from datetime import date as DateType, datetime
from typing import Literal

from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator

from vivaplan.models.reschedule_request import RescheduleStatus
from vivaplan.schemas.common import normalize_code, normalize_codes, parse_time_to_minutes, validate_time
from vivaplan.schemas.directory import ExaminerBrief, StudentBrief, VenueBrief


class TimeRange(BaseModel):
    start_time: str = Field(alias="startTime")
    end_time: str = Field(alias="endTime")

    model_config = {"populate_by_name": True}

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time_format(cls, value: str) -> str:
        return validate_time(value)

    @model_validator(mode="after")
    def validate_order(self) -> "TimeRange":
        if parse_time_to_minutes(self.end_time) <= parse_time_to_minutes(self.start_time):
            raise ValueError("endTime must be after startTime")
        return self


class PresentationCreate(BaseModel):
    title: str = Field(min_length=1, max_length=300)
    department: str = Field(min_length=1, max_length=100)
    students: list[str] = Field(min_length=1, max_length=50)
    examiners: list[str] = Field(min_length=1, max_length=20)
    venue: str = Field(min_length=1, max_length=64)
    num_of_examiners: int = Field(alias="numOfExaminers", ge=1, le=20)
    date: DateType
    duration: int = Field(ge=5, le=480)
    time_range: TimeRange = Field(alias="timeRange")

    model_config = {"populate_by_name": True}

    @field_validator("students", "examiners")
    @classmethod
    def validate_codes(cls, value: list[str]) -> list[str]:
        return list(dict.fromkeys(normalize_codes(value)))

    @field_validator("venue")
    @classmethod
    def validate_venue(cls, value: str) -> str:
        return normalize_code(value)


class PresentationUpdate(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=300)
    department: str | None = Field(default=None, min_length=1, max_length=100)
    students: list[str] | None = Field(default=None, min_length=1, max_length=50)
    examiners: list[str] | None = Field(default=None, min_length=1, max_length=20)
    venue: str | None = Field(default=None, min_length=1, max_length=64)
    num_of_examiners: int | None = Field(default=None, alias="numOfExaminers", ge=1, le=20)
    date: DateType | None = None
    duration: int | None = Field(default=None, ge=5, le=480)
    time_range: TimeRange | None = Field(default=None, alias="timeRange")

    model_config = {"populate_by_name": True}

    @field_validator("students", "examiners")
    @classmethod
    def validate_codes(cls, value: list[str] | None) -> list[str] | None:
        if value is None:
            return None
        return list(dict.fromkeys(normalize_codes(value)))

    @field_validator("venue")
    @classmethod
    def validate_venue(cls, value: str | None) -> str | None:
        return None if value is None else normalize_code(value)


class PresentationOut(BaseModel):
    id: str
    title: str
    department: str
    date: DateType
    duration: int
    num_of_examiners: int = Field(serialization_alias="numOfExaminers")
    time_range: TimeRange = Field(serialization_alias="timeRange")
    venue: VenueBrief
    examiners: list[ExaminerBrief]
    students: list[StudentBrief]

    @classmethod
    def from_model(cls, presentation) -> "PresentationOut":
        return cls(
            id=presentation.id,
            title=presentation.title,
            department=presentation.department,
            date=presentation.date,
            duration=presentation.duration,
            num_of_examiners=presentation.num_of_examiners,
            time_range=TimeRange(start_time=presentation.start_time, end_time=presentation.end_time),
            venue=VenueBrief.model_validate(presentation.venue),
            examiners=[ExaminerBrief.model_validate(item) for item in presentation.examiners],
            students=[StudentBrief.model_validate(item) for item in presentation.students],
        )


class AvailabilityQuery(BaseModel):
    date: DateType
    department: str = Field(min_length=1, max_length=100)
    students: list[str] = Field(default_factory=list, max_length=50)
    examiners: list[str] = Field(default_factory=list, max_length=20)
    venue: str | None = Field(default=None, max_length=64)
    duration: int = Field(ge=1, le=600)

    @field_validator("students", "examiners")
    @classmethod
    def validate_codes(cls, value: list[str]) -> list[str]:
        return list(dict.fromkeys(normalize_codes(value)))


class AvailabilityWindow(BaseModel):
    time_slot: str = Field(serialization_alias="timeSlot")
    available: bool = True


class SuggestSlotRequest(BaseModel):
    students: list[str] = Field(min_length=1, max_length=50)
    num_examiners: int = Field(default=2, alias="numExaminers", ge=1, le=20)
    duration: int = Field(default=60, ge=5, le=480)

    model_config = {"populate_by_name": True}

    @field_validator("students")
    @classmethod
    def validate_codes(cls, value: list[str]) -> list[str]:
        return list(dict.fromkeys(normalize_codes(value)))


class RescheduleSuggestRequest(BaseModel):
    presentation_id: str = Field(alias="presentationId", min_length=1, max_length=36)

    model_config = {"populate_by_name": True}


class SlotSuggestionOut(BaseModel):
    date: DateType
    time_range: TimeRange = Field(serialization_alias="timeRange")
    examiners: list[ExaminerBrief]
    venue: VenueBrief
    department: str


class RescheduleRequestCreate(BaseModel):
    presentation_id: str = Field(alias="presentationId", min_length=1, max_length=36)
    date: DateType
    time_range: TimeRange = Field(alias="timeRange")
    venue: str = Field(min_length=1, max_length=64)
    reason: str | None = Field(default=None, max_length=1000)
    requestor_email: EmailStr | None = Field(default=None, alias="requestorEmail")

    model_config = {"populate_by_name": True}

    @field_validator("venue")
    @classmethod
    def validate_venue(cls, value: str) -> str:
        return normalize_code(value)


class RescheduleDecision(BaseModel):
    request_id: str = Field(alias="requestId", min_length=1, max_length=36)
    action: Literal["Approve", "Reject"]

    model_config = {"populate_by_name": True}


class RequestedSlotOut(BaseModel):
    date: DateType
    time_range: TimeRange = Field(serialization_alias="timeRange")
    venue: VenueBrief


class RescheduleRequestOut(BaseModel):
    id: str
    presentation_id: str = Field(serialization_alias="presentationId")
    presentation_title: str | None = Field(default=None, serialization_alias="presentationTitle")
    requested_by: dict[str, str] = Field(serialization_alias="requestedBy")
    requestor_email: str = Field(serialization_alias="requestorEmail")
    requested_slot: RequestedSlotOut = Field(serialization_alias="requestedSlot")
    reason: str | None = None
    status: RescheduleStatus
    decided_at: datetime | None = Field(default=None, serialization_alias="decidedAt")
    created_at: datetime | None = Field(default=None, serialization_alias="createdAt")

    @classmethod
    def from_model(cls, request) -> "RescheduleRequestOut":
        return cls(
            id=request.id,
            presentation_id=request.presentation_id,
            presentation_title=request.presentation.title if request.presentation is not None else None,
            requested_by={"userId": request.requested_by_user_id, "role": request.requested_by_role},
            requestor_email=request.requestor_email,
            requested_slot=RequestedSlotOut(
                date=request.requested_date,
                time_range=TimeRange(start_time=request.requested_start_time, end_time=request.requested_end_time),
                venue=VenueBrief.model_validate(request.requested_venue),
            ),
            reason=request.reason,
            status=request.status,
            decided_at=request.decided_at,
            created_at=request.created_at,
        )


class MessageOut(BaseModel):
    message: str


class RescheduleDecisionOut(BaseModel):
    message: str
    request: RescheduleRequestOut
