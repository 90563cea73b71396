"""Persisted notifications and their real-time push."""
from __future__ import annotations

import math
from dataclasses import dataclass

from sqlalchemy import func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..enums import Importance, NotificationType, Role
from ..exceptions import NotFoundError
from ..logging_config import get_logger
from ..models import Notification, User
from ..websocket_manager import EventPublisher

logger = get_logger(__name__)

PAGE_SIZE = 10


@dataclass(frozen=True)
class NotificationTemplate:
    title: str
    message: str
    type: NotificationType
    importance: Importance = Importance.MEDIUM


def leave_request_template(requester_name: str) -> NotificationTemplate:
    return NotificationTemplate(
        title="New Leave Request",
        message=f"{requester_name} has submitted a new leave request",
        type=NotificationType.LEAVE_REQUEST,
    )


def leave_status_template(status: str) -> NotificationTemplate:
    return NotificationTemplate(
        title="Leave Request Update",
        message=f"Your leave request has been {status}",
        type=NotificationType.LEAVE_STATUS,
        importance=Importance.HIGH,
    )


def timesheet_status_template(status: str, comment: str | None = None) -> NotificationTemplate:
    message = f"Your timesheet entry has been {status}"
    if comment:
        message = f"{message}: {comment}"
    return NotificationTemplate(
        title="Timesheet Update",
        message=message,
        type=NotificationType.TIMESHEET_STATUS,
    )


TIMESHEET_REMINDER = NotificationTemplate(
    title="Timesheet Reminder",
    message="Please submit your timesheet for this week",
    type=NotificationType.TIMESHEET_REMINDER,
)

NEW_PERFORMANCE_REVIEW = NotificationTemplate(
    title="New Performance Review",
    message="A new performance review has been created for you",
    type=NotificationType.PERFORMANCE_REVIEW,
    importance=Importance.HIGH,
)

PERFORMANCE_REVIEW_UPDATED = NotificationTemplate(
    title="Performance Review Updated",
    message="Your performance evaluation has been updated",
    type=NotificationType.PERFORMANCE_REVIEW,
)

PERFORMANCE_REVIEW_ACKNOWLEDGED = NotificationTemplate(
    title="Evaluation Acknowledged",
    message="An evaluation has been acknowledged",
    type=NotificationType.PERFORMANCE_REVIEW,
    importance=Importance.LOW,
)


class NotificationService:
    def __init__(self, session: AsyncSession, publisher: EventPublisher) -> None:
        self._session = session
        self._publisher = publisher

    async def send(self, user_id: int, template: NotificationTemplate) -> Notification | None:
        """Store a notification for ``user_id`` and push it to their room.

        Failures are logged and swallowed so they never fail the request
        that triggered them.
        """

        notification = Notification(
            user_id=user_id,
            title=template.title,
            message=template.message,
            type=template.type.value,
            importance=template.importance.value,
        )
        try:
            self._session.add(notification)
            await self._session.commit()
        except SQLAlchemyError:
            logger.warning("Could not store %s notification for user %s", template.type.value, user_id, exc_info=True)
            await self._session.rollback()
            return None

        self._publisher.publish(
            user_id,
            "notifications",
            "created",
            {
                "id": notification.id,
                "title": notification.title,
                "message": notification.message,
                "type": notification.type,
                "importance": notification.importance,
            },
        )
        return notification

    async def send_to_admins(self, template: NotificationTemplate) -> int:
        result = await self._session.execute(
            select(User.id).where(User.role == Role.ADMIN.value, User.is_active.is_(True))
        )
        admin_ids = list(result.scalars().all())
        for admin_id in admin_ids:
            await self.send(admin_id, template)
        return len(admin_ids)

    async def list_for_user(self, user_id: int, page: int = 1) -> tuple[list[Notification], int]:
        page = max(page, 1)
        total = await self._session.scalar(
            select(func.count()).select_from(Notification).where(Notification.user_id == user_id)
        )
        result = await self._session.execute(
            select(Notification)
            .where(Notification.user_id == user_id)
            .order_by(Notification.created_at.desc(), Notification.id.desc())
            .limit(PAGE_SIZE)
            .offset(PAGE_SIZE * (page - 1))
        )
        return list(result.scalars().all()), int(total or 0)

    @staticmethod
    def page_count(total: int) -> int:
        return math.ceil(total / PAGE_SIZE)

    async def unread_count(self, user_id: int) -> int:
        count = await self._session.scalar(
            select(func.count())
            .select_from(Notification)
            .where(Notification.user_id == user_id, Notification.read.is_(False))
        )
        return int(count or 0)

    async def _get_own(self, user_id: int, notification_id: int) -> Notification:
        result = await self._session.execute(
            select(Notification).where(
                Notification.id == notification_id, Notification.user_id == user_id
            )
        )
        notification = result.scalar_one_or_none()
        if notification is None:
            raise NotFoundError("Notification not found")
        return notification

    async def mark_read(self, user_id: int, notification_id: int) -> Notification:
        notification = await self._get_own(user_id, notification_id)
        notification.read = True
        await self._session.commit()
        return notification

    async def mark_all_read(self, user_id: int) -> None:
        await self._session.execute(
            update(Notification)
            .where(Notification.user_id == user_id, Notification.read.is_(False))
            .values(read=True)
        )
        await self._session.commit()

    async def delete(self, user_id: int, notification_id: int) -> None:
        notification = await self._get_own(user_id, notification_id)
        await self._session.delete(notification)
        await self._session.commit()
