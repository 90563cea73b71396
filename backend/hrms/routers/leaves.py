"""Leave request endpoints."""
from typing import Sequence

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..dependencies import get_admin_user, get_current_user, get_db_session
from ..enums import ApprovalStatus, LeaveType
from ..models import LeaveRequest, User
from ..schemas import LeaveBalanceRead, LeaveCreate, LeavePage, LeaveRead, LeaveStatusUpdate, MessageResponse
from ..services.leaves import LeaveService
from ..websocket_manager import EventPublisher, get_publisher

router = APIRouter(prefix="/leaves", tags=["leaves"])


def get_leave_service(
    session: AsyncSession = Depends(get_db_session),
    publisher: EventPublisher = Depends(get_publisher),
) -> LeaveService:
    return LeaveService(session, publisher)


@router.get("/balance", response_model=dict[LeaveType, LeaveBalanceRead])
async def get_leave_balance(
    year: int | None = Query(default=None, ge=1900, le=9999),
    current_user: User = Depends(get_current_user),
    service: LeaveService = Depends(get_leave_service),
) -> dict[LeaveType, LeaveBalanceRead]:
    """Entitlement, used and remaining days per leave type for one year."""

    balances = await service.balances(current_user.id, year)
    return {
        leave_type: LeaveBalanceRead(
            total=balance.entitlement, used=balance.used, remaining=balance.remaining
        )
        for leave_type, balance in balances.items()
    }


@router.get("/my-leaves", response_model=list[LeaveRead])
async def list_my_leaves(
    current_user: User = Depends(get_current_user),
    service: LeaveService = Depends(get_leave_service),
) -> Sequence[LeaveRequest]:
    return await service.list_for_user(current_user.id)


@router.get("/", response_model=LeavePage)
@router.get("/all", response_model=LeavePage, include_in_schema=False)
async def list_leaves(
    page: int = Query(default=1, ge=1),
    status_filter: ApprovalStatus | None = Query(default=None, alias="status"),
    type_filter: LeaveType | None = Query(default=None, alias="type"),
    _admin: User = Depends(get_admin_user),
    service: LeaveService = Depends(get_leave_service),
) -> LeavePage:
    """All leave requests, newest first, ten per page."""

    leaves, pages, total = await service.list_all(page, status_filter, type_filter)
    return LeavePage(
        leaves=[LeaveRead.model_validate(leave) for leave in leaves],
        page=page,
        pages=pages,
        total=total,
    )


@router.get("/{leave_id}", response_model=LeaveRead)
async def get_leave(
    leave_id: int,
    current_user: User = Depends(get_current_user),
    service: LeaveService = Depends(get_leave_service),
) -> LeaveRequest:
    return await service.get_visible(current_user, leave_id)


@router.post("/", response_model=LeaveRead, status_code=status.HTTP_201_CREATED)
async def create_leave(
    payload: LeaveCreate,
    current_user: User = Depends(get_current_user),
    service: LeaveService = Depends(get_leave_service),
) -> LeaveRequest:
    return await service.create(current_user, payload)


@router.put("/{leave_id}/status", response_model=LeaveRead)
async def update_leave_status(
    leave_id: int,
    payload: LeaveStatusUpdate,
    admin: User = Depends(get_admin_user),
    service: LeaveService = Depends(get_leave_service),
) -> LeaveRequest:
    """Approve or reject a request; decided requests need ``override``."""

    return await service.set_status(admin, leave_id, payload.status, override=payload.override)


@router.delete("/{leave_id}", response_model=MessageResponse)
async def delete_leave(
    leave_id: int,
    current_user: User = Depends(get_current_user),
    service: LeaveService = Depends(get_leave_service),
) -> MessageResponse:
    await service.delete(current_user, leave_id)
    return MessageResponse(message="Leave request removed")
