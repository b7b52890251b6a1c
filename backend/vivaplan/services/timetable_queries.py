from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import date

from sqlalchemy import select
from sqlalchemy.orm import Session

from vivaplan.models.timetable import Timetable
from vivaplan.schemas.common import WEEKDAYS, minutes_to_hhmm

HOUR_SLOTS: list[tuple[str, str]] = [
    (minutes_to_hhmm(start), minutes_to_hhmm(start + 60)) for start in range(8 * 60, 17 * 60, 60)
]


@dataclass(frozen=True)
class LectureEntry:
    timetable_id: str
    group_code: str
    day: str
    start_time: str
    end_time: str
    module_code: str
    lecturer_id: str
    venue_id: str

    def overlaps(self, start_time: str, end_time: str) -> bool:
        return self.start_time < end_time and start_time < self.end_time


def weekday_name(value: date) -> str | None:
    index = value.weekday()
    return WEEKDAYS[index] if index < len(WEEKDAYS) else None


def load_timetables(db: Session, *, exclude_id: str | None = None) -> list[Timetable]:
    statement = select(Timetable)
    if exclude_id is not None:
        statement = statement.where(Timetable.id != exclude_id)
    return list(db.execute(statement).unique().scalars())


def iter_lectures(timetables: Iterable[Timetable]) -> Iterable[LectureEntry]:
    for timetable in timetables:
        group_code = timetable.group.group_code if timetable.group is not None else ""
        for day in timetable.schedule or []:
            for lecture in day.get("lectures", []):
                yield LectureEntry(
                    timetable_id=timetable.id,
                    group_code=group_code,
                    day=day["day"],
                    start_time=lecture["start_time"],
                    end_time=lecture["end_time"],
                    module_code=lecture["module_code"],
                    lecturer_id=lecture["lecturer_id"],
                    venue_id=lecture["venue_id"],
                )


def filter_schedule(timetable: Timetable, keep: Callable[[dict], bool]) -> list[dict]:
    return [
        {"day": day["day"], "lectures": [lecture for lecture in day.get("lectures", []) if keep(lecture)]}
        for day in timetable.schedule or []
    ]


def lecturer_free_times(timetables: Iterable[Timetable], lecturer_id: str) -> dict[str, list[tuple[str, str]]]:
    """Hour slots between 08:00 and 17:00 per weekday not touched by the lecturer's lectures."""
    free = {day: list(HOUR_SLOTS) for day in WEEKDAYS}
    for lecture in iter_lectures(timetables):
        if lecture.lecturer_id != lecturer_id or lecture.day not in free:
            continue
        free[lecture.day] = [
            (start, end) for start, end in free[lecture.day] if not lecture.overlaps(start, end)
        ]
    return free
