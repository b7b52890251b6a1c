import uuid
from datetime import date, datetime, timezone
from enum import Enum

from sqlalchemy import Date, DateTime, Enum as SAEnum, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from vivaplan.db.base import Base
from vivaplan.models.presentation import Presentation
from vivaplan.models.venue import Venue


class RescheduleStatus(str, Enum):
    pending = "Pending"
    approved = "Approved"
    rejected = "Rejected"


class RescheduleRequest(Base):
    __tablename__ = "reschedule_requests"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    presentation_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("presentations.id", ondelete="CASCADE"), index=True, nullable=False
    )
    requested_by_user_id: Mapped[str] = mapped_column(String(36), index=True, nullable=False)
    requested_by_role: Mapped[str] = mapped_column(String(20), nullable=False)
    requestor_email: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    requested_date: Mapped[date] = mapped_column(Date, index=True, nullable=False)
    requested_start_time: Mapped[str] = mapped_column(String(5), nullable=False)
    requested_end_time: Mapped[str] = mapped_column(String(5), nullable=False)
    requested_venue_id: Mapped[str] = mapped_column(String(36), ForeignKey("venues.id"), nullable=False)
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[RescheduleStatus] = mapped_column(
        SAEnum(RescheduleStatus, name="reschedule_status", values_callable=lambda items: [item.value for item in items]),
        index=True,
        nullable=False,
        default=RescheduleStatus.pending,
    )
    decided_by_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    decided_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc)
    )

    presentation: Mapped[Presentation] = relationship(Presentation, lazy="joined")
    requested_venue: Mapped[Venue] = relationship(Venue, lazy="joined")
