import uuid
from datetime import date as DateType, datetime

from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, String, Table
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from vivaplan.db.base import Base
from vivaplan.models.examiner import Examiner
from vivaplan.models.student import Student
from vivaplan.models.venue import Venue

presentation_examiners = Table(
    "presentation_examiners",
    Base.metadata,
    Column("presentation_id", String(36), ForeignKey("presentations.id", ondelete="CASCADE"), primary_key=True),
    Column("examiner_id", String(36), ForeignKey("examiners.id", ondelete="CASCADE"), primary_key=True, index=True),
)

presentation_students = Table(
    "presentation_students",
    Base.metadata,
    Column("presentation_id", String(36), ForeignKey("presentations.id", ondelete="CASCADE"), primary_key=True),
    Column("student_id", String(36), ForeignKey("students.id", ondelete="CASCADE"), primary_key=True, index=True),
)


class Presentation(Base):
    __tablename__ = "presentations"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    title: Mapped[str] = mapped_column(String(300), nullable=False)
    department: Mapped[str] = mapped_column(String(100), index=True, nullable=False)
    date: Mapped[DateType] = mapped_column(Date, index=True, nullable=False)
    # HH:MM, zero padded, so lexical comparison matches chronological order.
    start_time: Mapped[str] = mapped_column(String(5), nullable=False)
    end_time: Mapped[str] = mapped_column(String(5), nullable=False)
    duration: Mapped[int] = mapped_column(Integer, nullable=False)
    num_of_examiners: Mapped[int] = mapped_column(Integer, nullable=False)
    venue_id: Mapped[str] = mapped_column(String(36), ForeignKey("venues.id"), index=True, nullable=False)

    venue: Mapped[Venue] = relationship(Venue, lazy="joined")
    examiners: Mapped[list[Examiner]] = relationship(
        Examiner, secondary=presentation_examiners, order_by=Examiner.examiner_code, lazy="selectin"
    )
    students: Mapped[list[Student]] = relationship(
        Student, secondary=presentation_students, order_by=Student.student_code, lazy="selectin"
    )

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), onupdate=func.now())
