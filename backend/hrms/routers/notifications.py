"""Notification inbox endpoints."""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ..dependencies import get_current_user, get_db_session
from ..models import Notification, User
from ..schemas import MessageResponse, NotificationPage, NotificationRead, UnreadCount
from ..services.notifications import NotificationService
from ..websocket_manager import EventPublisher, get_publisher

router = APIRouter(prefix="/notifications", tags=["notifications"])


def get_notification_service(
    session: AsyncSession = Depends(get_db_session),
    publisher: EventPublisher = Depends(get_publisher),
) -> NotificationService:
    return NotificationService(session, publisher)


@router.get("/", response_model=NotificationPage)
async def list_notifications(
    page: int = Query(default=1, ge=1),
    current_user: User = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service),
) -> NotificationPage:
    """The caller's notifications, newest first, ten per page."""

    notifications, total = await service.list_for_user(current_user.id, page)
    return NotificationPage(
        notifications=[NotificationRead.model_validate(item) for item in notifications],
        page=page,
        pages=service.page_count(total),
        total=total,
    )


@router.get("/unread", response_model=UnreadCount)
async def get_unread_count(
    current_user: User = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service),
) -> UnreadCount:
    return UnreadCount(unread_count=await service.unread_count(current_user.id))


# Declared before "/{notification_id}/read" so the literal path wins
@router.put("/mark-all-read", response_model=MessageResponse)
async def mark_all_read(
    current_user: User = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service),
) -> MessageResponse:
    await service.mark_all_read(current_user.id)
    return MessageResponse(message="All notifications marked as read")


@router.put("/{notification_id}/read", response_model=NotificationRead)
async def mark_read(
    notification_id: int,
    current_user: User = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service),
) -> Notification:
    return await service.mark_read(current_user.id, notification_id)


@router.delete("/{notification_id}", response_model=MessageResponse)
async def delete_notification(
    notification_id: int,
    current_user: User = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service),
) -> MessageResponse:
    await service.delete(current_user.id, notification_id)
    return MessageResponse(message="Notification removed")
