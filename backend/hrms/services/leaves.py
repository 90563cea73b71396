"""Leave request lifecycle: creation, review transitions and deletion."""
from __future__ import annotations

import math
from datetime import date

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..accounting.leave import LeaveAccounting, LeaveBalance, parse_leave_date
from ..enums import ApprovalStatus, LeaveType, Role
from ..exceptions import AlreadyFinalized, AuthorizationError, NotFoundError, NotFoundOrNotDeletable, ValidationError
from ..logging_config import get_logger
from ..models import LeaveRequest, User
from ..schemas import LeaveCreate
from ..websocket_manager import EventPublisher
from .notifications import NotificationService, leave_request_template, leave_status_template

logger = get_logger(__name__)

PAGE_SIZE = 10
DECISIONS = frozenset({ApprovalStatus.APPROVED, ApprovalStatus.REJECTED})


class LeaveService:
    """Orchestrates leave requests around ``LeaveAccounting``.

    Review transitions go ``pending -> approved | rejected``. A request that
    has already been decided can only be re-decided with ``override=True``.
    """

    def __init__(
        self,
        session: AsyncSession,
        publisher: EventPublisher,
        accounting: LeaveAccounting | None = None,
    ) -> None:
        self._session = session
        self._publisher = publisher
        self._accounting = accounting or LeaveAccounting()
        self._notifications = NotificationService(session, publisher)

    async def create(self, owner: User, payload: LeaveCreate) -> LeaveRequest:
        start = parse_leave_date(payload.start_date)
        end = parse_leave_date(payload.end_date)
        self._accounting.validate_request(start, end)

        leave = LeaveRequest(
            user_id=owner.id,
            type=payload.type.value,
            start_date=start,
            end_date=end,
            reason=payload.reason,
            status=ApprovalStatus.PENDING.value,
        )
        self._session.add(leave)
        await self._session.commit()
        logger.info("Leave %s created by user %s (%s to %s)", leave.id, owner.id, start, end)

        await self._notifications.send_to_admins(leave_request_template(owner.name))
        return leave

    async def get_visible(self, viewer: User, leave_id: int) -> LeaveRequest:
        """Return a leave the viewer owns (or any leave for admins)."""

        leave = await self._session.get(LeaveRequest, leave_id)
        if leave is None or (leave.user_id != viewer.id and viewer.role != Role.ADMIN.value):
            raise NotFoundError("Leave request not found")
        return leave

    async def list_for_user(self, user_id: int) -> list[LeaveRequest]:
        result = await self._session.execute(
            select(LeaveRequest)
            .where(LeaveRequest.user_id == user_id)
            .order_by(LeaveRequest.created_at.desc(), LeaveRequest.id.desc())
        )
        return list(result.scalars().all())

    async def list_all(
        self,
        page: int = 1,
        status: ApprovalStatus | None = None,
        leave_type: LeaveType | None = None,
    ) -> tuple[list[LeaveRequest], int, int]:
        """Paginated listing for reviewers; returns ``(leaves, pages, total)``."""

        page = max(page, 1)
        filters = []
        if status is not None:
            filters.append(LeaveRequest.status == status.value)
        if leave_type is not None:
            filters.append(LeaveRequest.type == leave_type.value)

        total = await self._session.scalar(
            select(func.count()).select_from(LeaveRequest).where(*filters)
        )
        result = await self._session.execute(
            select(LeaveRequest)
            .where(*filters)
            .order_by(LeaveRequest.created_at.desc(), LeaveRequest.id.desc())
            .limit(PAGE_SIZE)
            .offset(PAGE_SIZE * (page - 1))
        )
        total = int(total or 0)
        return list(result.scalars().all()), math.ceil(total / PAGE_SIZE), total

    async def balances(self, user_id: int, year: int | None = None) -> dict[LeaveType, LeaveBalance]:
        year = year or date.today().year
        result = await self._session.execute(
            select(LeaveRequest).where(
                LeaveRequest.user_id == user_id,
                LeaveRequest.status == ApprovalStatus.APPROVED.value,
                LeaveRequest.start_date >= date(year, 1, 1),
                LeaveRequest.start_date <= date(year, 12, 31),
            )
        )
        return self._accounting.compute_balances(result.scalars().all(), year)

    async def set_status(
        self,
        actor: User,
        leave_id: int,
        status: ApprovalStatus,
        override: bool = False,
    ) -> LeaveRequest:
        if actor.role != Role.ADMIN.value:
            raise AuthorizationError("Not authorized as admin")
        if status not in DECISIONS:
            raise ValidationError("Status must be approved or rejected")

        leave = await self._session.get(LeaveRequest, leave_id)
        if leave is None:
            raise NotFoundError("Leave request not found")
        if leave.status != ApprovalStatus.PENDING.value and not override:
            raise AlreadyFinalized(f"Leave request has already been {leave.status}")

        previous = leave.status
        leave.status = status.value
        leave.approved_by = actor.id
        await self._session.commit()
        logger.info("Leave %s moved %s -> %s by user %s", leave.id, previous, leave.status, actor.id)

        self._publisher.publish(
            leave.user_id,
            "leaves",
            "status_updated",
            {
                "leaveId": leave.id,
                "status": leave.status,
                "message": f"Your leave request has been {leave.status}",
            },
        )
        await self._notifications.send(leave.user_id, leave_status_template(leave.status))
        return leave

    async def delete(self, actor: User, leave_id: int) -> None:
        result = await self._session.execute(
            select(LeaveRequest).where(
                LeaveRequest.id == leave_id,
                LeaveRequest.user_id == actor.id,
                LeaveRequest.status == ApprovalStatus.PENDING.value,
            )
        )
        leave = result.scalar_one_or_none()
        if leave is None:
            raise NotFoundOrNotDeletable("Leave request not found or cannot be deleted")

        await self._session.delete(leave)
        await self._session.commit()
        logger.info("Leave %s deleted by owner %s", leave_id, actor.id)
