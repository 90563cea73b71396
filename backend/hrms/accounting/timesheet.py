"""Timesheet hour arithmetic: per-entry totals, summaries and week views."""
from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any, Iterable, Protocol, Sequence

from ..enums import ApprovalStatus
from ..exceptions import (
    EndBeforeStart,
    InvalidTimeFormat,
    NegativeBreak,
    NonPositiveTotal,
    ValidationError,
)

REGULAR_DAY_HOURS = 8.0
REFERENCE_DATE = date(2000, 1, 1)
_TIME_FORMATS = ("%H:%M", "%H:%M:%S")


class TimesheetRecord(Protocol):
    """Read-only view of a stored timesheet entry."""

    id: int
    work_date: date
    start_time: str
    end_time: str
    break_duration: float
    total_hours: float
    status: str


@dataclass(frozen=True)
class TimesheetSummary:
    total_hours: float = 0.0
    regular_hours: float = 0.0
    overtime_hours: float = 0.0
    days_worked: int = 0
    approved_count: int = 0
    pending_count: int = 0
    rejected_count: int = 0


@dataclass(frozen=True)
class DaySlot:
    work_date: date
    id: int | None = None
    start_time: str = ""
    end_time: str = ""
    break_duration: float = 0.0
    total_hours: float = 0.0
    status: str = ApprovalStatus.PENDING.value


@dataclass(frozen=True)
class EntryCandidate:
    """One row of a bulk upsert; ``id`` set means update."""

    start_time: str | None
    end_time: str | None
    break_duration: Any = 0
    work_date: date | None = None
    id: int | None = None

    @property
    def is_insert(self) -> bool:
        return self.id is None


def _parse_time(value: str | None) -> datetime:
    raw = (value or "").strip()
    if not raw:
        raise InvalidTimeFormat()
    for fmt in _TIME_FORMATS:
        try:
            parsed = datetime.strptime(raw, fmt)
        except ValueError:
            continue
        return datetime.combine(REFERENCE_DATE, parsed.time())
    raise InvalidTimeFormat()


def _parse_break(value: Any) -> float:
    if value is None or isinstance(value, bool):
        raise NegativeBreak()
    try:
        hours = float(value)
    except (TypeError, ValueError) as exc:
        raise NegativeBreak() from exc
    if math.isnan(hours) or hours < 0:
        raise NegativeBreak()
    return hours


def compute_entry_hours(start_time: str | None, end_time: str | None, break_hours: Any) -> float:
    """Worked hours for one day: ``(end - start) - break``."""

    start = _parse_time(start_time)
    end = _parse_time(end_time)
    if end <= start:
        raise EndBeforeStart()
    break_value = _parse_break(break_hours)

    hours = (end - start) / timedelta(hours=1) - break_value
    if hours <= 0:
        raise NonPositiveTotal()
    return hours


def summarize(entries: Iterable[TimesheetRecord], start: date, end: date) -> TimesheetSummary:
    total = regular = overtime = 0.0
    days_worked = approved = pending = rejected = 0

    for entry in entries:
        if not (start <= entry.work_date <= end):
            continue
        hours = float(entry.total_hours or 0.0)
        regular += min(hours, REGULAR_DAY_HOURS)
        overtime += max(hours - REGULAR_DAY_HOURS, 0.0)
        total += hours
        if hours > 0:
            days_worked += 1

        if entry.status == ApprovalStatus.APPROVED.value:
            approved += 1
        elif entry.status == ApprovalStatus.PENDING.value:
            pending += 1
        elif entry.status == ApprovalStatus.REJECTED.value:
            rejected += 1

    # Round once, after accumulation
    return TimesheetSummary(
        total_hours=round(total, 2),
        regular_hours=round(regular, 2),
        overtime_hours=round(overtime, 2),
        days_worked=days_worked,
        approved_count=approved,
        pending_count=pending,
        rejected_count=rejected,
    )


def week_bounds(anchor: date) -> tuple[date, date]:
    """Sunday through Saturday of the week containing ``anchor``."""

    sunday = anchor - timedelta(days=(anchor.weekday() + 1) % 7)
    return sunday, sunday + timedelta(days=6)


def build_week_view(anchor: date, entries: Iterable[TimesheetRecord]) -> list[DaySlot]:
    sunday, _ = week_bounds(anchor)
    by_date = {entry.work_date: entry for entry in entries}

    slots: list[DaySlot] = []
    for offset in range(7):
        day = sunday + timedelta(days=offset)
        entry = by_date.get(day)
        if entry is None:
            slots.append(DaySlot(work_date=day))
            continue
        slots.append(
            DaySlot(
                work_date=day,
                id=entry.id,
                start_time=entry.start_time,
                end_time=entry.end_time,
                break_duration=entry.break_duration,
                total_hours=entry.total_hours,
                status=entry.status,
            )
        )
    return slots


def validate_batch(candidates: Sequence[EntryCandidate]) -> list[float]:
    """Compute hours for every candidate, or fail the whole batch."""

    hours: list[float] = []
    for position, candidate in enumerate(candidates, start=1):
        if candidate.is_insert and candidate.work_date is None:
            raise ValidationError(f"Entry {position}: date is required for new entries")
        try:
            hours.append(
                compute_entry_hours(
                    candidate.start_time, candidate.end_time, candidate.break_duration
                )
            )
        except ValidationError as exc:
            raise type(exc)(f"Entry {position}: {exc.message}") from exc
    return hours
