"""Performance evaluation model."""
from datetime import date, datetime
from typing import Any

from sqlalchemy import JSON, Date, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from ..enums import EvaluationStatus
from .base import Base, TimestampMixin


class PerformanceEvaluation(TimestampMixin, Base):
    """Scored review of an employee for a period.

    ``categories`` holds an ordered list of ``{"name", "score", "comments"}``
    objects; ``overall_score`` is derived from it on every save.
    """

    __tablename__ = "performance_evaluations"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    employee_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)
    evaluator_id: Mapped[int] = mapped_column(ForeignKey("users.id"), index=True)
    period_start: Mapped[date] = mapped_column(Date)
    period_end: Mapped[date] = mapped_column(Date)
    categories: Mapped[list[dict[str, Any]]] = mapped_column(JSON, default=list)
    overall_score: Mapped[float] = mapped_column(Float, default=0.0)
    comments: Mapped[str] = mapped_column(Text, default="")
    status: Mapped[str] = mapped_column(String, default=EvaluationStatus.DRAFT.value)
    acknowledged_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    acknowledgement_comments: Mapped[str | None] = mapped_column(Text, nullable=True)

    @property
    def is_acknowledged(self) -> bool:
        return self.status == EvaluationStatus.ACKNOWLEDGED.value

    @property
    def period(self) -> dict[str, date]:
        return {"start_date": self.period_start, "end_date": self.period_end}

    @property
    def acknowledgement(self) -> dict[str, Any] | None:
        if self.acknowledged_at is None:
            return None
        return {"acknowledged_at": self.acknowledged_at, "comments": self.acknowledgement_comments or ""}
