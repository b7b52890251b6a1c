import uuid
from datetime import datetime

from sqlalchemy import JSON, DateTime, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from vivaplan.db.base import Base
from vivaplan.models.student_group import StudentGroup


class Timetable(Base):
    __tablename__ = "timetables"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    group_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("student_groups.id", ondelete="CASCADE"), unique=True, nullable=False
    )
    # [{"day": "Monday", "lectures": [{"start_time", "end_time", "module_code", "lecturer_id", "venue_id"}]}]
    schedule: Mapped[list[dict]] = mapped_column(JSON, nullable=False, default=list)
    updated_by_id: Mapped[str | None] = mapped_column(String(36), nullable=True)

    group: Mapped[StudentGroup] = relationship(StudentGroup, lazy="joined")

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), onupdate=func.now())
