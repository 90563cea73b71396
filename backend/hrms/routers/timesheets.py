"""Timesheet endpoints."""
from datetime import date

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..accounting.timesheet import EntryCandidate
from ..dependencies import get_admin_user, get_current_user, get_db_session
from ..enums import ApprovalStatus
from ..models import TimesheetEntry, User
from ..schemas import (
    BulkRequest,
    BulkResult,
    DaySlotRead,
    MessageResponse,
    Pagination,
    TimesheetPage,
    TimesheetRead,
    TimesheetStatusUpdate,
    TimesheetSubmit,
    TimesheetSummaryRead,
    TimesheetUpdate,
    WeekView,
)
from ..services.timesheets import DEFAULT_PAGE_SIZE, TimesheetFilters, TimesheetService
from ..websocket_manager import EventPublisher, get_publisher

router = APIRouter(prefix="/timesheet", tags=["timesheet"])


def get_timesheet_service(
    session: AsyncSession = Depends(get_db_session),
    publisher: EventPublisher = Depends(get_publisher),
) -> TimesheetService:
    return TimesheetService(session, publisher)


@router.get("/", response_model=WeekView)
async def get_week(
    anchor: date | None = Query(default=None, alias="date"),
    current_user: User = Depends(get_current_user),
    service: TimesheetService = Depends(get_timesheet_service),
) -> WeekView:
    """Seven day slots, Sunday first, for the week containing ``date``."""

    start, end, slots = await service.week(current_user, anchor)
    return WeekView(
        start_date=start,
        end_date=end,
        entries=[DaySlotRead.model_validate(slot) for slot in slots],
    )


@router.get("/summary", response_model=TimesheetSummaryRead)
async def get_summary(
    start_date: date | None = Query(default=None, alias="startDate"),
    end_date: date | None = Query(default=None, alias="endDate"),
    current_user: User = Depends(get_current_user),
    service: TimesheetService = Depends(get_timesheet_service),
) -> TimesheetSummaryRead:
    summary = await service.summary(current_user, start_date, end_date)
    return TimesheetSummaryRead.model_validate(summary)


@router.get("/all", response_model=TimesheetPage)
async def list_all_timesheets(
    start_date: date | None = Query(default=None, alias="startDate"),
    end_date: date | None = Query(default=None, alias="endDate"),
    user_id: int | None = Query(default=None, alias="userId"),
    status_filter: ApprovalStatus | None = Query(default=None, alias="status"),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=DEFAULT_PAGE_SIZE, ge=1, le=100),
    _admin: User = Depends(get_admin_user),
    service: TimesheetService = Depends(get_timesheet_service),
) -> TimesheetPage:
    filters = TimesheetFilters(
        start_date=start_date, end_date=end_date, user_id=user_id, status=status_filter
    )
    entries, total = await service.list_all(filters, page, limit)
    return TimesheetPage(
        timesheets=[TimesheetRead.model_validate(entry) for entry in entries],
        pagination=Pagination(
            current_page=page,
            total_pages=service.page_count(total, limit),
            total_entries=total,
            entries_per_page=limit,
        ),
    )


@router.post("/", response_model=TimesheetRead, status_code=status.HTTP_201_CREATED)
async def submit_timesheet(
    payload: TimesheetSubmit,
    current_user: User = Depends(get_current_user),
    service: TimesheetService = Depends(get_timesheet_service),
) -> TimesheetEntry:
    """Record hours for one date, replacing a still-pending entry."""

    return await service.submit(
        current_user,
        payload.work_date,
        payload.start_time,
        payload.end_time,
        payload.break_duration,
    )


@router.put("/bulk", response_model=BulkResult)
async def bulk_update_timesheet(
    payload: BulkRequest,
    current_user: User = Depends(get_current_user),
    service: TimesheetService = Depends(get_timesheet_service),
) -> BulkResult:
    candidates = [
        EntryCandidate(
            id=item.id,
            work_date=item.work_date,
            start_time=item.start_time,
            end_time=item.end_time,
            break_duration=item.break_duration,
        )
        for item in payload.entry
    ]
    outcome = await service.bulk_upsert(current_user, candidates)
    return BulkResult(modified=outcome.modified, inserted=outcome.inserted, total=outcome.total)


@router.put("/{entry_id}", response_model=TimesheetRead)
async def update_timesheet_entry(
    entry_id: int,
    payload: TimesheetUpdate,
    current_user: User = Depends(get_current_user),
    service: TimesheetService = Depends(get_timesheet_service),
) -> TimesheetEntry:
    return await service.update_entry(
        current_user, entry_id, payload.start_time, payload.end_time, payload.break_duration
    )


@router.put("/{entry_id}/status", response_model=TimesheetRead)
async def update_timesheet_status(
    entry_id: int,
    payload: TimesheetStatusUpdate,
    admin: User = Depends(get_admin_user),
    service: TimesheetService = Depends(get_timesheet_service),
) -> TimesheetEntry:
    return await service.set_status(admin, entry_id, payload.status, payload.comment)


@router.delete("/{entry_id}", response_model=MessageResponse)
async def delete_timesheet_entry(
    entry_id: int,
    current_user: User = Depends(get_current_user),
    service: TimesheetService = Depends(get_timesheet_service),
) -> MessageResponse:
    await service.delete(current_user, entry_id)
    return MessageResponse(message="Timesheet entry removed successfully")
