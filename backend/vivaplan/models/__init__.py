from vivaplan.models.activity_log import ActivityLog  # noqa: F401
from vivaplan.models.examiner import Examiner  # noqa: F401
from vivaplan.models.id_sequence import IdSequence  # noqa: F401
from vivaplan.models.module import Module  # noqa: F401
from vivaplan.models.presentation import (  # noqa: F401
    Presentation,
    presentation_examiners,
    presentation_students,
)
from vivaplan.models.reschedule_request import RescheduleRequest, RescheduleStatus  # noqa: F401
from vivaplan.models.student import Student  # noqa: F401
from vivaplan.models.student_group import StudentGroup, group_members  # noqa: F401
from vivaplan.models.timetable import Timetable  # noqa: F401
from vivaplan.models.user import User, UserRole  # noqa: F401
from vivaplan.models.venue import Venue  # noqa: F401
