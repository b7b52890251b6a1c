import uuid
from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, String, Table
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from vivaplan.db.base import Base
from vivaplan.models.student import Student

# student_id is unique: a student belongs to at most one group at a time.
group_members = Table(
    "student_group_members",
    Base.metadata,
    Column("group_id", String(36), ForeignKey("student_groups.id", ondelete="CASCADE"), primary_key=True),
    Column("student_id", String(36), ForeignKey("students.id", ondelete="CASCADE"), primary_key=True, unique=True),
)


class StudentGroup(Base):
    __tablename__ = "student_groups"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    group_code: Mapped[str] = mapped_column(String(32), unique=True, index=True, nullable=False)
    department: Mapped[str] = mapped_column(String(100), nullable=False)
    students: Mapped[list[Student]] = relationship(
        Student,
        secondary=group_members,
        order_by=Student.student_code,
        lazy="selectin",
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), onupdate=func.now())
