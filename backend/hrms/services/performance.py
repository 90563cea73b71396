"""Performance evaluations: scoring, review updates and acknowledgement."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Iterable, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..enums import EvaluationStatus, Role
from ..exceptions import ImmutableEvaluation, NotFoundError, ValidationError
from ..logging_config import get_logger
from ..models import PerformanceEvaluation, User
from ..schemas import CategoryScore, EvaluationCreate, EvaluationUpdate
from ..websocket_manager import EventPublisher
from .notifications import (
    NEW_PERFORMANCE_REVIEW,
    PERFORMANCE_REVIEW_ACKNOWLEDGED,
    PERFORMANCE_REVIEW_UPDATED,
    NotificationService,
)

logger = get_logger(__name__)

RECENT_LIMIT = 2


def overall_score(categories: Iterable[CategoryScore]) -> float:
    """Mean category score rounded to one decimal place."""

    scores = [category.score for category in categories]
    if not scores:
        return 0.0
    return round(sum(scores) / len(scores), 1)


@dataclass(frozen=True)
class EvaluationSummary:
    total: int
    average_score: float
    latest_score: float


@dataclass(frozen=True)
class EvaluationOverview:
    """Evaluations of one employee, newest first, with evaluator names."""

    evaluations: list[tuple[PerformanceEvaluation, str]]
    summary: EvaluationSummary

    @property
    def recent(self) -> list[tuple[PerformanceEvaluation, str]]:
        return self.evaluations[:RECENT_LIMIT]


def summarize_scores(evaluations: Sequence[PerformanceEvaluation]) -> EvaluationSummary:
    """``evaluations`` must be ordered newest first."""

    if not evaluations:
        return EvaluationSummary(total=0, average_score=0.0, latest_score=0.0)
    average = sum(evaluation.overall_score for evaluation in evaluations) / len(evaluations)
    return EvaluationSummary(
        total=len(evaluations),
        average_score=round(average, 1),
        latest_score=evaluations[0].overall_score,
    )


def _serialize_categories(categories: Iterable[CategoryScore]) -> list[dict]:
    return [category.model_dump(mode="json") for category in categories]


class PerformanceService:
    def __init__(self, session: AsyncSession, publisher: EventPublisher) -> None:
        self._session = session
        self._publisher = publisher
        self._notifications = NotificationService(session, publisher)

    async def _get(self, evaluation_id: int) -> PerformanceEvaluation:
        evaluation = await self._session.get(PerformanceEvaluation, evaluation_id)
        if evaluation is None:
            raise NotFoundError("Evaluation not found")
        return evaluation

    async def create(self, evaluator: User, payload: EvaluationCreate) -> PerformanceEvaluation:
        employee = await self._session.get(User, payload.employee_id)
        if employee is None:
            raise NotFoundError("Employee not found")
        if payload.period.end_date < payload.period.start_date:
            raise ValidationError("Evaluation period ends before it starts")
        if payload.status == EvaluationStatus.ACKNOWLEDGED:
            raise ValidationError("Only the employee can acknowledge an evaluation")

        evaluation = PerformanceEvaluation(
            employee_id=employee.id,
            evaluator_id=evaluator.id,
            period_start=payload.period.start_date,
            period_end=payload.period.end_date,
            categories=_serialize_categories(payload.categories),
            overall_score=overall_score(payload.categories),
            comments=payload.comments,
            status=payload.status.value,
        )
        self._session.add(evaluation)
        await self._session.commit()
        logger.info(
            "Evaluation %s created for employee %s by %s (score %s)",
            evaluation.id,
            employee.id,
            evaluator.id,
            evaluation.overall_score,
        )

        self._publisher.publish(
            employee.id,
            "performance",
            "created",
            {"evaluationId": evaluation.id, "message": "You have a new performance evaluation"},
        )
        await self._notifications.send(employee.id, NEW_PERFORMANCE_REVIEW)
        return evaluation

    async def update(self, actor: User, evaluation_id: int, payload: EvaluationUpdate) -> PerformanceEvaluation:
        evaluation = await self._get(evaluation_id)
        if evaluation.is_acknowledged:
            raise ImmutableEvaluation()
        if payload.status == EvaluationStatus.ACKNOWLEDGED:
            raise ValidationError("Only the employee can acknowledge an evaluation")
        if payload.period is not None and payload.period.end_date < payload.period.start_date:
            raise ValidationError("Evaluation period ends before it starts")

        if payload.categories is not None:
            evaluation.categories = _serialize_categories(payload.categories)
            evaluation.overall_score = overall_score(payload.categories)
        if payload.comments is not None:
            evaluation.comments = payload.comments
        if payload.period is not None:
            evaluation.period_start = payload.period.start_date
            evaluation.period_end = payload.period.end_date
        if payload.status is not None:
            evaluation.status = payload.status.value
        await self._session.commit()
        logger.info("Evaluation %s updated by %s", evaluation.id, actor.id)

        self._publisher.publish(
            evaluation.employee_id,
            "performance",
            "updated",
            {"evaluationId": evaluation.id, "message": PERFORMANCE_REVIEW_UPDATED.message},
        )
        await self._notifications.send(evaluation.employee_id, PERFORMANCE_REVIEW_UPDATED)
        return evaluation

    async def acknowledge(self, employee: User, evaluation_id: int, comments: str = "") -> PerformanceEvaluation:
        evaluation = await self._get(evaluation_id)
        if evaluation.employee_id != employee.id:
            raise NotFoundError("Evaluation not found")
        if evaluation.is_acknowledged:
            raise ImmutableEvaluation("Evaluation already acknowledged")

        evaluation.status = EvaluationStatus.ACKNOWLEDGED.value
        evaluation.acknowledged_at = datetime.utcnow()
        evaluation.acknowledgement_comments = comments
        await self._session.commit()
        logger.info("Evaluation %s acknowledged by employee %s", evaluation.id, employee.id)

        self._publisher.publish(
            evaluation.evaluator_id,
            "performance",
            "acknowledged",
            {"evaluationId": evaluation.id, "message": PERFORMANCE_REVIEW_ACKNOWLEDGED.message},
        )
        await self._notifications.send(evaluation.evaluator_id, PERFORMANCE_REVIEW_ACKNOWLEDGED)
        return evaluation

    async def get_visible(self, viewer: User, evaluation_id: int) -> PerformanceEvaluation:
        evaluation = await self._get(evaluation_id)
        if evaluation.employee_id != viewer.id and viewer.role != Role.ADMIN.value:
            raise NotFoundError("Evaluation not found")
        return evaluation

    async def overview_for(self, employee: User) -> EvaluationOverview:
        result = await self._session.execute(
            select(PerformanceEvaluation, User.name)
            .join(User, User.id == PerformanceEvaluation.evaluator_id)
            .where(PerformanceEvaluation.employee_id == employee.id)
            .order_by(PerformanceEvaluation.created_at.desc(), PerformanceEvaluation.id.desc())
        )
        rows = [(evaluation, name) for evaluation, name in result.all()]
        return EvaluationOverview(
            evaluations=rows,
            summary=summarize_scores([evaluation for evaluation, _ in rows]),
        )

    async def list_all(
        self,
        employee_id: int | None = None,
        period_start: date | None = None,
        period_end: date | None = None,
    ) -> list[PerformanceEvaluation]:
        """Admin listing; a period filter keeps evaluations inside the window."""

        query = select(PerformanceEvaluation)
        if employee_id is not None:
            query = query.where(PerformanceEvaluation.employee_id == employee_id)
        if period_start is not None:
            query = query.where(PerformanceEvaluation.period_start >= period_start)
        if period_end is not None:
            query = query.where(PerformanceEvaluation.period_end <= period_end)
        result = await self._session.execute(
            query.order_by(PerformanceEvaluation.created_at.desc(), PerformanceEvaluation.id.desc())
        )
        return list(result.scalars().all())

    async def delete(self, actor: User, evaluation_id: int) -> None:
        evaluation = await self._get(evaluation_id)
        await self._session.delete(evaluation)
        await self._session.commit()
        logger.info("Evaluation %s deleted by %s", evaluation_id, actor.id)
