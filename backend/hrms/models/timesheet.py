"""Timesheet entry model."""
from datetime import date

from sqlalchemy import Date, Float, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from ..enums import ApprovalStatus
from .base import Base, TimestampMixin


class TimesheetEntry(TimestampMixin, Base):
    """Hours worked by one user on one calendar date."""

    __tablename__ = "timesheet_entries"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)
    work_date: Mapped[date] = mapped_column(Date, index=True)
    start_time: Mapped[str] = mapped_column(String)
    end_time: Mapped[str] = mapped_column(String)
    break_duration: Mapped[float] = mapped_column(Float, default=0.0)
    total_hours: Mapped[float] = mapped_column(Float)
    status: Mapped[str] = mapped_column(String, default=ApprovalStatus.PENDING.value, index=True)
    status_comment: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (
        UniqueConstraint("user_id", "work_date", name="uq_timesheet_entries_user_date"),
    )

    @property
    def is_pending(self) -> bool:
        return self.status == ApprovalStatus.PENDING.value
