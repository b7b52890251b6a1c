from __future__ import annotations

import logging
from collections.abc import Iterable

from vivaplan.models.presentation import Presentation
from vivaplan.services import email

logger = logging.getLogger(__name__)


def send_best_effort(to_email: str | None, subject: str, body: str) -> bool:
    """Send one email, logging instead of raising. Returns whether it was handed to SMTP."""
    if not to_email:
        return False
    try:
        email.send_email(to_email=to_email, subject=subject, text_content=body)
    except Exception:
        logger.warning("Email delivery to %s failed (%s)", to_email, subject, exc_info=True)
        return False
    return True


def _participants(presentation: Presentation) -> Iterable[tuple[str, str]]:
    for examiner in presentation.examiners:
        yield "Examiner", examiner.email
    for student in presentation.students:
        yield "Student", student.email


def _notify_participants(presentation: Presentation, subject: str, headline: str) -> int:
    delivered = 0
    for role, address in _participants(presentation):
        body = (
            f"Dear {role},\n\n{headline}\n"
            f"Title: {presentation.title}\n"
            f"Department: {presentation.department}\n"
            f"Date: {presentation.date.isoformat()}\n"
            f"Time: {presentation.start_time} - {presentation.end_time}\n"
            f"Venue: {presentation.venue.venue_code}\n"
        )
        delivered += send_best_effort(address, f"{subject} - {role} Notification", body)
    return delivered


def notify_presentation_scheduled(presentation: Presentation) -> int:
    return _notify_participants(presentation, "New Presentation Scheduled", "A new presentation has been scheduled:")


def notify_presentation_updated(presentation: Presentation) -> int:
    return _notify_participants(presentation, "Presentation Updated", "A presentation has been updated:")


def notify_presentation_rescheduled(presentation: Presentation) -> int:
    return _notify_participants(presentation, "Presentation Rescheduled", "A presentation has been rescheduled:")
