"""Performance evaluation endpoints."""
from datetime import date
from typing import Sequence

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..dependencies import get_admin_user, get_current_user, get_db_session
from ..models import PerformanceEvaluation, User
from ..schemas import (
    AcknowledgeRequest,
    EvaluationCreate,
    EvaluationListItem,
    EvaluationRead,
    EvaluationStats,
    EvaluationUpdate,
    MessageResponse,
    MyEvaluations,
    Period,
    RecentEvaluation,
)
from ..services.performance import PerformanceService
from ..websocket_manager import EventPublisher, get_publisher

router = APIRouter(prefix="/performance", tags=["performance"])


def get_performance_service(
    session: AsyncSession = Depends(get_db_session),
    publisher: EventPublisher = Depends(get_publisher),
) -> PerformanceService:
    return PerformanceService(session, publisher)


@router.get("/my-evaluations", response_model=MyEvaluations)
async def get_my_evaluations(
    current_user: User = Depends(get_current_user),
    service: PerformanceService = Depends(get_performance_service),
) -> MyEvaluations:
    """The caller's evaluations with the two latest and score statistics."""

    overview = await service.overview_for(current_user)
    return MyEvaluations(
        data=[
            EvaluationListItem(
                id=evaluation.id,
                score=evaluation.overall_score,
                created_at=evaluation.created_at,
                categories=evaluation.categories,
                comments=evaluation.comments,
                status=evaluation.status,
                period=Period.model_validate(evaluation.period),
                evaluator=evaluator_name,
            )
            for evaluation, evaluator_name in overview.evaluations
        ],
        recent=[
            RecentEvaluation(
                description=f"New performance evaluation from {evaluator_name}",
                created_at=evaluation.created_at,
            )
            for evaluation, evaluator_name in overview.recent
        ],
        summary=EvaluationStats(
            total=overview.summary.total,
            average_score=overview.summary.average_score,
            latest_score=overview.summary.latest_score,
        ),
    )


@router.get("/evaluation/{evaluation_id}", response_model=EvaluationRead)
async def get_evaluation(
    evaluation_id: int,
    current_user: User = Depends(get_current_user),
    service: PerformanceService = Depends(get_performance_service),
) -> PerformanceEvaluation:
    return await service.get_visible(current_user, evaluation_id)


@router.get("/", response_model=list[EvaluationRead])
async def list_evaluations(
    employee_id: int | None = Query(default=None, alias="employeeId"),
    start_date: date | None = Query(default=None, alias="startDate"),
    end_date: date | None = Query(default=None, alias="endDate"),
    _admin: User = Depends(get_admin_user),
    service: PerformanceService = Depends(get_performance_service),
) -> Sequence[PerformanceEvaluation]:
    return await service.list_all(employee_id, start_date, end_date)


@router.post("/", response_model=EvaluationRead, status_code=status.HTTP_201_CREATED)
async def create_evaluation(
    payload: EvaluationCreate,
    admin: User = Depends(get_admin_user),
    service: PerformanceService = Depends(get_performance_service),
) -> PerformanceEvaluation:
    return await service.create(admin, payload)


@router.put("/{evaluation_id}", response_model=EvaluationRead)
async def update_evaluation(
    evaluation_id: int,
    payload: EvaluationUpdate,
    admin: User = Depends(get_admin_user),
    service: PerformanceService = Depends(get_performance_service),
) -> PerformanceEvaluation:
    return await service.update(admin, evaluation_id, payload)


@router.delete("/{evaluation_id}", response_model=MessageResponse)
async def delete_evaluation(
    evaluation_id: int,
    admin: User = Depends(get_admin_user),
    service: PerformanceService = Depends(get_performance_service),
) -> MessageResponse:
    await service.delete(admin, evaluation_id)
    return MessageResponse(message="Evaluation removed")


@router.post("/{evaluation_id}/acknowledge", response_model=EvaluationRead)
async def acknowledge_evaluation(
    evaluation_id: int,
    payload: AcknowledgeRequest | None = None,
    current_user: User = Depends(get_current_user),
    service: PerformanceService = Depends(get_performance_service),
) -> PerformanceEvaluation:
    """Employee sign-off; an evaluation can be acknowledged only once."""

    comments = payload.comments if payload is not None else ""
    return await service.acknowledge(current_user, evaluation_id, comments)
