"""Greedy first-fit search for a presentation slot.

Candidate dates are ranked by the lecture workload of the examiners involved;
the earliest date with the lowest load wins. On that date the half-hour
ladder 08:00..16:30 is walked in order and the first start time that passes
the availability probe and yields a complete examiner/venue assignment is
returned. Nothing here tries to be globally optimal.
"""
from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import date, timedelta

from sqlalchemy import select
from sqlalchemy.orm import Session

from vivaplan.core.config import Settings, get_settings
from vivaplan.core.exceptions import SchedulerError
from vivaplan.models.examiner import Examiner
from vivaplan.models.presentation import Presentation
from vivaplan.models.reschedule_request import RescheduleRequest, RescheduleStatus
from vivaplan.models.student import Student
from vivaplan.models.venue import Venue
from vivaplan.schemas.common import minutes_to_hhmm, parse_time_to_minutes
from vivaplan.services.availability import is_slot_free
from vivaplan.services.timetable_queries import iter_lectures, load_timetables

logger = logging.getLogger(__name__)

TIME_LADDER: list[str] = [minutes_to_hhmm(minute) for minute in range(8 * 60, 16 * 60 + 31, 30)]
LAST_MINUTE_OF_DAY = 24 * 60 - 1


@dataclass
class SlotSuggestion:
    date: date
    start_time: str
    end_time: str
    examiners: list[Examiner]
    venue: Venue
    department: str


@dataclass
class _DayBookings:
    """Examiner -> venue pairings already in use on one date."""

    examiner_venue: dict[str, str] = field(default_factory=dict)
    venues_used: set[str] = field(default_factory=set)


def end_time_for(start_time: str, duration: int) -> str | None:
    end = parse_time_to_minutes(start_time) + duration
    if end > LAST_MINUTE_OF_DAY:
        return None
    return minutes_to_hhmm(end)


class SlotSuggestionEngine:
    def __init__(self, db: Session, settings: Settings | None = None, today: date | None = None):
        self.db = db
        self.settings = settings or get_settings()
        self.today = today or date.today()
        self._lecture_counts: dict[str, int] | None = None

    # -- workload ---------------------------------------------------------

    def _lecture_load(self) -> dict[str, int]:
        if self._lecture_counts is None:
            counts: dict[str, int] = {}
            for lecture in iter_lectures(load_timetables(self.db)):
                counts[lecture.lecturer_id] = counts.get(lecture.lecturer_id, 0) + 1
            self._lecture_counts = counts
        return self._lecture_counts

    def _date_load(self, on_date: date, examiner_codes: Sequence[str]) -> int:
        # Every lecture on record counts, whatever its weekday.
        counts = self._lecture_load()
        return sum(counts.get(code, 0) for code in examiner_codes)

    def candidate_dates(self, *, offset: int) -> list[date]:
        return [self.today + timedelta(days=offset + index) for index in range(self.settings.suggestion_horizon_days)]

    def pick_date(self, dates: Sequence[date], examiner_codes: Sequence[str]) -> date:
        best_date: date | None = None
        best_load: int | None = None
        for candidate in dates:
            load = self._date_load(candidate, examiner_codes)
            if best_load is None or load < best_load:
                best_date, best_load = candidate, load
        if best_date is None:
            raise SchedulerError("No suitable date found")
        return best_date

    # -- lookups ----------------------------------------------------------

    def _department_examiners(self, department: str) -> list[Examiner]:
        return list(
            self.db.execute(
                select(Examiner).where(Examiner.department == department).order_by(Examiner.examiner_code)
            ).scalars()
        )

    def _venues(self) -> list[Venue]:
        venues = list(self.db.execute(select(Venue).order_by(Venue.venue_code)).scalars())
        if not venues:
            raise SchedulerError("No venues found")
        return venues

    def _day_bookings(self, on_date: date) -> _DayBookings:
        bookings = _DayBookings()
        presentations = self.db.execute(
            select(Presentation).where(Presentation.date == on_date).order_by(Presentation.start_time)
        ).unique().scalars()
        for presentation in presentations:
            for examiner in presentation.examiners:
                bookings.examiner_venue[examiner.id] = presentation.venue_id
                bookings.venues_used.add(presentation.venue_id)
        return bookings

    # -- fresh scheduling -------------------------------------------------

    def _assign(
        self,
        examiners: Sequence[Examiner],
        venues: Sequence[Venue],
        bookings: _DayBookings,
        num_examiners: int,
    ) -> tuple[list[Examiner], str | None]:
        selected: list[Examiner] = []
        venue_id: str | None = None
        for examiner in examiners:
            if examiner.id in bookings.examiner_venue:
                venue_id = bookings.examiner_venue[examiner.id]
                selected.append(examiner)
                if len(selected) >= num_examiners:
                    break

        if len(selected) < num_examiners:
            unused = [item for item in examiners if item.id not in bookings.examiner_venue]
            if len(unused) >= num_examiners:
                selected = unused[:num_examiners]
                for venue in venues:
                    if venue.id not in bookings.venues_used:
                        venue_id = venue.id
                        bookings.venues_used.add(venue.id)
                        break
        return selected, venue_id

    def suggest(self, students: Sequence[Student], num_examiners: int = 2, duration: int = 60) -> SlotSuggestion:
        if not students:
            raise SchedulerError("No valid students found")
        department = students[0].department
        examiners = self._department_examiners(department)
        if not examiners:
            raise SchedulerError("No examiners found in this department")
        venues = self._venues()
        venues_by_id = {venue.id: venue for venue in venues}

        chosen = self.pick_date(self.candidate_dates(offset=0), [item.examiner_code for item in examiners])
        bookings = self._day_bookings(chosen)
        student_ids = [item.id for item in students]

        for start_time in TIME_LADDER:
            end_time = end_time_for(start_time, duration)
            if end_time is None:
                continue
            if not is_slot_free(self.db, on_date=chosen, start_time=start_time, end_time=end_time, student_ids=student_ids):
                continue
            selected, venue_id = self._assign(examiners, venues, bookings, num_examiners)
            if venue_id is None or len(selected) < num_examiners:
                continue
            logger.info("Suggested %s %s-%s for department %s", chosen, start_time, end_time, department)
            return SlotSuggestion(
                date=chosen,
                start_time=start_time,
                end_time=end_time,
                examiners=selected,
                venue=venues_by_id[venue_id],
                department=department,
            )
        raise SchedulerError("No suitable time slots available")

    # -- rescheduling -----------------------------------------------------

    def _claimed_ranges(self, on_date: date) -> list[tuple[int, int]]:
        rows = self.db.execute(
            select(RescheduleRequest.requested_start_time, RescheduleRequest.requested_end_time).where(
                RescheduleRequest.requested_date == on_date,
                RescheduleRequest.status != RescheduleStatus.rejected,
            )
        ).all()
        return [(parse_time_to_minutes(start), parse_time_to_minutes(end)) for start, end in rows]

    def suggest_for_reschedule(self, presentation: Presentation) -> SlotSuggestion:
        examiners = list(presentation.examiners)
        student_ids = [item.id for item in presentation.students]
        examiner_ids = [item.id for item in examiners]

        chosen = self.pick_date(self.candidate_dates(offset=1), [item.examiner_code for item in examiners])
        venues = self._venues()
        claimed = self._claimed_ranges(chosen)

        for start_time in TIME_LADDER:
            end_time = end_time_for(start_time, presentation.duration)
            if end_time is None:
                continue
            start, end = parse_time_to_minutes(start_time), parse_time_to_minutes(end_time)
            if any(start < other_end and end > other_start for other_start, other_end in claimed):
                continue
            if not is_slot_free(
                self.db,
                on_date=chosen,
                start_time=start_time,
                end_time=end_time,
                examiner_ids=examiner_ids,
                student_ids=student_ids,
                ignore_presentation_id=presentation.id,
            ):
                continue
            venue = next(
                (
                    item
                    for item in venues
                    if is_slot_free(
                        self.db,
                        on_date=chosen,
                        start_time=start_time,
                        end_time=end_time,
                        venue_id=item.id,
                        ignore_presentation_id=presentation.id,
                    )
                ),
                None,
            )
            if venue is None:
                continue
            logger.info("Suggested reschedule of %s to %s %s-%s", presentation.id, chosen, start_time, end_time)
            return SlotSuggestion(
                date=chosen,
                start_time=start_time,
                end_time=end_time,
                examiners=examiners,
                venue=venue,
                department=presentation.department,
            )
        raise SchedulerError("No suitable time slots available")
