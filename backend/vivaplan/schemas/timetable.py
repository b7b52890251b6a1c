from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field, field_validator, model_validator

from vivaplan.schemas.common import normalize_code, parse_time_to_minutes, validate_time

Weekday = Literal["Monday", "Tuesday", "Wednesday", "Thursday", "Friday"]


class LecturePayload(BaseModel):
    start_time: str
    end_time: str
    module_code: str = Field(min_length=1, max_length=32)
    lecturer_id: str = Field(min_length=1, max_length=64)
    venue_id: str = Field(min_length=1, max_length=64)

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time_format(cls, value: str) -> str:
        return validate_time(value)

    @field_validator("module_code", "lecturer_id", "venue_id")
    @classmethod
    def validate_codes(cls, value: str) -> str:
        return normalize_code(value)

    @model_validator(mode="after")
    def validate_order(self) -> "LecturePayload":
        if parse_time_to_minutes(self.end_time) <= parse_time_to_minutes(self.start_time):
            raise ValueError("end_time must be after start_time")
        return self


class DaySchedulePayload(BaseModel):
    day: Weekday
    lectures: list[LecturePayload] = Field(min_length=1, max_length=30)


class TimetableSubmission(BaseModel):
    group_id: str = Field(min_length=1, max_length=64)
    schedule: list[DaySchedulePayload] = Field(min_length=1, max_length=5)

    @field_validator("group_id")
    @classmethod
    def validate_group(cls, value: str) -> str:
        return normalize_code(value)


class TimetableOut(BaseModel):
    id: str
    group_id: str
    schedule: list[DaySchedulePayload]
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_model(cls, timetable) -> "TimetableOut":
        return cls(
            id=timetable.id,
            group_id=timetable.group.group_code,
            schedule=timetable.schedule,
            created_at=timetable.created_at,
            updated_at=timetable.updated_at,
        )


class TimetableWriteResult(BaseModel):
    message: str
    timetable: TimetableOut


class FilteredTimetableOut(BaseModel):
    group_id: str
    schedule: list[dict]


class HourSlot(BaseModel):
    start_time: str = Field(serialization_alias="startTime")
    end_time: str = Field(serialization_alias="endTime")


class LecturerFreeTimesOut(BaseModel):
    lecturer_id: str = Field(serialization_alias="lecturerId")
    free_times: dict[str, list[HourSlot]] = Field(serialization_alias="freeTimes")
