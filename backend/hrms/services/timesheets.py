"""Timesheet entry lifecycle on top of the hour accounting helpers."""
from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date
from typing import Any, Sequence

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..accounting.timesheet import (
    DaySlot,
    EntryCandidate,
    TimesheetSummary,
    build_week_view,
    compute_entry_hours,
    summarize,
    validate_batch,
    week_bounds,
)
from ..enums import ApprovalStatus
from ..exceptions import DuplicateEntry, ImmutableEntry, NotFoundError, NotFoundOrNotDeletable, ValidationError
from ..logging_config import get_logger
from ..models import TimesheetEntry, User
from ..websocket_manager import EventPublisher
from .notifications import NotificationService, timesheet_status_template

logger = get_logger(__name__)

DEFAULT_PAGE_SIZE = 10


@dataclass(frozen=True)
class BulkOutcome:
    modified: int
    inserted: int

    @property
    def total(self) -> int:
        return self.modified + self.inserted


@dataclass(frozen=True)
class TimesheetFilters:
    start_date: date | None = None
    end_date: date | None = None
    user_id: int | None = None
    status: ApprovalStatus | None = None


class TimesheetService:
    """One entry per user per calendar date; only pending entries change."""

    def __init__(self, session: AsyncSession, publisher: EventPublisher) -> None:
        self._session = session
        self._publisher = publisher
        self._notifications = NotificationService(session, publisher)

    async def _entry_for_date(self, user_id: int, work_date: date) -> TimesheetEntry | None:
        result = await self._session.execute(
            select(TimesheetEntry).where(
                TimesheetEntry.user_id == user_id, TimesheetEntry.work_date == work_date
            )
        )
        return result.scalar_one_or_none()

    async def submit(
        self,
        owner: User,
        work_date: date,
        start_time: str,
        end_time: str,
        break_duration: Any = 0,
    ) -> TimesheetEntry:
        """Create the entry for ``work_date`` or rewrite it while still pending."""

        if break_duration is None:
            break_duration = 0
        hours = compute_entry_hours(start_time, end_time, break_duration)

        entry = await self._entry_for_date(owner.id, work_date)
        if entry is None:
            entry = TimesheetEntry(
                user_id=owner.id,
                work_date=work_date,
                status=ApprovalStatus.PENDING.value,
            )
            self._session.add(entry)
        elif not entry.is_pending:
            raise ImmutableEntry()

        entry.start_time = start_time
        entry.end_time = end_time
        entry.break_duration = float(break_duration)
        entry.total_hours = hours
        # A concurrent submit for the same date can insert between lookup and commit
        try:
            await self._session.commit()
        except IntegrityError as exc:
            await self._session.rollback()
            raise DuplicateEntry() from exc
        logger.info("Timesheet entry %s saved for user %s on %s", entry.id, owner.id, work_date)
        return entry

    async def update_entry(
        self,
        owner: User,
        entry_id: int,
        start_time: str,
        end_time: str,
        break_duration: Any = 0,
    ) -> TimesheetEntry:
        result = await self._session.execute(
            select(TimesheetEntry).where(
                TimesheetEntry.id == entry_id, TimesheetEntry.user_id == owner.id
            )
        )
        entry = result.scalar_one_or_none()
        if entry is None:
            raise NotFoundError("Timesheet entry not found")
        if not entry.is_pending:
            raise ImmutableEntry()

        if break_duration is None:
            break_duration = 0
        entry.total_hours = compute_entry_hours(start_time, end_time, break_duration)
        entry.start_time = start_time
        entry.end_time = end_time
        entry.break_duration = float(break_duration)
        await self._session.commit()
        return entry

    async def bulk_upsert(self, owner: User, candidates: Sequence[EntryCandidate]) -> BulkOutcome:
        """Apply a batch of inserts and updates in a single transaction.

        Every candidate is validated before anything is written. Updates
        only touch the owner's pending entries; others are skipped. A
        second entry for an already-recorded date rejects the whole batch.
        """

        hours = validate_batch(candidates)

        # Autoflush can surface the duplicate while the batch is still being applied
        try:
            modified, inserted = await self._apply_batch(owner, candidates, hours)
            await self._session.commit()
        except IntegrityError as exc:
            await self._session.rollback()
            raise DuplicateEntry() from exc

        outcome = BulkOutcome(modified=modified, inserted=inserted)
        logger.info(
            "Bulk timesheet upsert for user %s: %s modified, %s inserted",
            owner.id,
            outcome.modified,
            outcome.inserted,
        )
        return outcome

    async def _apply_batch(
        self,
        owner: User,
        candidates: Sequence[EntryCandidate],
        hours: Sequence[float],
    ) -> tuple[int, int]:
        modified = inserted = 0
        for candidate, total_hours in zip(candidates, hours):
            fields = {
                "start_time": candidate.start_time,
                "end_time": candidate.end_time,
                "break_duration": float(candidate.break_duration),
                "total_hours": total_hours,
            }
            if candidate.is_insert:
                self._session.add(
                    TimesheetEntry(
                        user_id=owner.id,
                        work_date=candidate.work_date,
                        status=ApprovalStatus.PENDING.value,
                        **fields,
                    )
                )
                inserted += 1
                continue

            result = await self._session.execute(
                select(TimesheetEntry).where(
                    TimesheetEntry.id == candidate.id,
                    TimesheetEntry.user_id == owner.id,
                    TimesheetEntry.status == ApprovalStatus.PENDING.value,
                )
            )
            entry = result.scalar_one_or_none()
            if entry is None:
                logger.info("Bulk update skipped entry %s for user %s", candidate.id, owner.id)
                continue
            for name, value in fields.items():
                setattr(entry, name, value)
            if candidate.work_date is not None:
                entry.work_date = candidate.work_date
            modified += 1
        return modified, inserted

    async def set_status(
        self,
        actor: User,
        entry_id: int,
        status: ApprovalStatus,
        comment: str | None = None,
    ) -> TimesheetEntry:
        entry = await self._session.get(TimesheetEntry, entry_id)
        if entry is None:
            raise NotFoundError("Timesheet entry not found")

        previous = entry.status
        entry.status = status.value
        if comment:
            entry.status_comment = comment
        await self._session.commit()
        logger.info("Timesheet %s moved %s -> %s by user %s", entry.id, previous, entry.status, actor.id)

        self._publisher.publish(
            entry.user_id,
            "timesheets",
            "status_updated",
            {"timesheetId": entry.id, "status": entry.status, "comment": comment},
        )
        await self._notifications.send(entry.user_id, timesheet_status_template(entry.status, comment))
        return entry

    async def delete(self, owner: User, entry_id: int) -> None:
        result = await self._session.execute(
            select(TimesheetEntry).where(
                TimesheetEntry.id == entry_id,
                TimesheetEntry.user_id == owner.id,
                TimesheetEntry.status == ApprovalStatus.PENDING.value,
            )
        )
        entry = result.scalar_one_or_none()
        if entry is None:
            raise NotFoundOrNotDeletable("Timesheet entry not found or cannot be deleted")

        await self._session.delete(entry)
        await self._session.commit()
        logger.info("Timesheet entry %s deleted by owner %s", entry_id, owner.id)

    async def _entries_between(self, user_id: int, start: date, end: date) -> list[TimesheetEntry]:
        result = await self._session.execute(
            select(TimesheetEntry)
            .where(
                TimesheetEntry.user_id == user_id,
                TimesheetEntry.work_date >= start,
                TimesheetEntry.work_date <= end,
            )
            .order_by(TimesheetEntry.work_date)
        )
        return list(result.scalars().all())

    async def week(self, owner: User, anchor: date | None = None) -> tuple[date, date, list[DaySlot]]:
        anchor = anchor or date.today()
        start, end = week_bounds(anchor)
        entries = await self._entries_between(owner.id, start, end)
        return start, end, build_week_view(anchor, entries)

    async def summary(self, owner: User, start: date | None, end: date | None) -> TimesheetSummary:
        if start is None or end is None:
            raise ValidationError("Start date and end date are required")
        entries = await self._entries_between(owner.id, start, end)
        return summarize(entries, start, end)

    async def list_all(
        self,
        filters: TimesheetFilters,
        page: int = 1,
        limit: int = DEFAULT_PAGE_SIZE,
    ) -> tuple[list[TimesheetEntry], int]:
        """Entries across all users, newest date first; returns ``(entries, total)``."""

        page = max(page, 1)
        limit = max(limit, 1)
        conditions = []
        # A date window only applies when both bounds are given
        if filters.start_date is not None and filters.end_date is not None:
            conditions.append(TimesheetEntry.work_date >= filters.start_date)
            conditions.append(TimesheetEntry.work_date <= filters.end_date)
        if filters.user_id is not None:
            conditions.append(TimesheetEntry.user_id == filters.user_id)
        if filters.status is not None:
            conditions.append(TimesheetEntry.status == filters.status.value)

        total = await self._session.scalar(
            select(func.count()).select_from(TimesheetEntry).where(*conditions)
        )
        result = await self._session.execute(
            select(TimesheetEntry)
            .where(*conditions)
            .order_by(TimesheetEntry.work_date.desc(), TimesheetEntry.id.desc())
            .limit(limit)
            .offset(limit * (page - 1))
        )
        return list(result.scalars().all()), int(total or 0)

    @staticmethod
    def page_count(total: int, limit: int = DEFAULT_PAGE_SIZE) -> int:
        return math.ceil(total / max(limit, 1))
