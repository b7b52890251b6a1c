"""Weekly lectures that collide with an examiner's presentations on a date.

The check only reports: each clashing lecture is paired with the first free
hour on the same weekday where the lecturer, the venue and the group are all
free, and the report is emailed to the examiner. Timetables are not changed.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date

from sqlalchemy import select
from sqlalchemy.orm import Session

from vivaplan.models.examiner import Examiner
from vivaplan.models.presentation import Presentation
from vivaplan.services.notifications import send_best_effort
from vivaplan.services.timetable_queries import (
    HOUR_SLOTS,
    LectureEntry,
    iter_lectures,
    load_timetables,
    weekday_name,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LectureClash:
    lecture: LectureEntry
    presentation_title: str
    suggested_start: str | None
    suggested_end: str | None


@dataclass
class LectureClashReport:
    examiner_code: str
    on_date: date
    weekday: str | None
    clashes: list[LectureClash] = field(default_factory=list)

    def render(self) -> str:
        lines = [f"Lecture clashes for {self.examiner_code} on {self.on_date.isoformat()} ({self.weekday}):"]
        for clash in self.clashes:
            lecture = clash.lecture
            move = (
                f"suggested {clash.suggested_start}-{clash.suggested_end}"
                if clash.suggested_start
                else "no free hour found"
            )
            lines.append(
                f"- {lecture.module_code} {lecture.start_time}-{lecture.end_time} in {lecture.venue_id} "
                f"(group {lecture.group_code}) clashes with '{clash.presentation_title}'; {move}"
            )
        return "\n".join(lines)


def _examiner_presentations(db: Session, examiner: Examiner, on_date: date) -> list[Presentation]:
    statement = (
        select(Presentation)
        .where(Presentation.date == on_date, Presentation.examiners.any(Examiner.id == examiner.id))
        .order_by(Presentation.start_time)
    )
    return list(db.execute(statement).unique().scalars())


def _first_free_hour(
    lecture: LectureEntry,
    same_day: list[LectureEntry],
    presentations: list[Presentation],
) -> tuple[str, str] | None:
    for start, end in HOUR_SLOTS:
        if any(item.start_time < end and start < item.end_time for item in presentations):
            continue
        busy = any(
            other.overlaps(start, end)
            for other in same_day
            if other is not lecture
            and (
                other.lecturer_id == lecture.lecturer_id
                or other.venue_id == lecture.venue_id
                or other.group_code == lecture.group_code
            )
        )
        if not busy:
            return start, end
    return None


def find_lecture_clashes(db: Session, examiner: Examiner, on_date: date) -> LectureClashReport:
    weekday = weekday_name(on_date)
    report = LectureClashReport(examiner_code=examiner.examiner_code, on_date=on_date, weekday=weekday)
    if weekday is None:
        return report

    presentations = _examiner_presentations(db, examiner, on_date)
    if not presentations:
        return report

    same_day = [item for item in iter_lectures(load_timetables(db)) if item.day == weekday]
    for lecture in same_day:
        if lecture.lecturer_id != examiner.examiner_code:
            continue
        hit = next((item for item in presentations if lecture.overlaps(item.start_time, item.end_time)), None)
        if hit is None:
            continue
        free = _first_free_hour(lecture, same_day, presentations)
        report.clashes.append(
            LectureClash(
                lecture=lecture,
                presentation_title=hit.title,
                suggested_start=free[0] if free else None,
                suggested_end=free[1] if free else None,
            )
        )
    return report


def notify_lecture_clashes(db: Session, examiners: list[Examiner], on_date: date) -> list[LectureClashReport]:
    """Run the clash check for every examiner; never raises."""
    reports: list[LectureClashReport] = []
    for examiner in examiners:
        try:
            report = find_lecture_clashes(db, examiner, on_date)
        except Exception:
            logger.warning("Lecture clash check failed for %s", examiner.examiner_code, exc_info=True)
            continue
        reports.append(report)
        if report.clashes:
            send_best_effort(examiner.email, "Lecture Clash Notice", report.render())
    return reports
