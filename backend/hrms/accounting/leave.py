"""Leave balance accounting.

Balances are derived, never stored: every call recomputes them from the
approved leave records of the requested year.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from types import MappingProxyType
from typing import Iterable, Mapping, Protocol

from ..enums import ApprovalStatus, LeaveType
from ..exceptions import InvalidDateFormat, InvalidRange

ONE_DAY = timedelta(days=1)

DEFAULT_LEAVE_POLICY: Mapping[LeaveType, int] = MappingProxyType(
    {
        LeaveType.VACATION: 21,
        LeaveType.SICK: 10,
        LeaveType.PERSONAL: 5,
    }
)


class LeaveRecord(Protocol):
    """Read-only view of a stored leave request."""

    type: str
    status: str
    start_date: date
    end_date: date


@dataclass(frozen=True)
class LeaveBalance:
    entitlement: int
    used: int
    remaining: int


def parse_leave_date(value: str | date | datetime | None) -> date:
    """Parse an ISO date (or datetime) sent by a client."""

    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        raise InvalidDateFormat()
    raw = value.strip()
    try:
        return date.fromisoformat(raw)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(raw.replace("Z", "+00:00")).date()
    except ValueError as exc:
        raise InvalidDateFormat() from exc


def leave_days(start: date, end: date) -> int:
    """Days charged for a leave spanning ``start`` to ``end`` inclusive."""

    span = datetime.combine(end, time.min) + ONE_DAY - datetime.combine(start, time.min)
    return math.ceil(span / ONE_DAY)


class LeaveAccounting:
    """Computes leave balances against an entitlement policy."""

    def __init__(self, policy: Mapping[LeaveType, int] = DEFAULT_LEAVE_POLICY) -> None:
        self._policy: Mapping[LeaveType, int] = MappingProxyType(
            {LeaveType(key): int(days) for key, days in policy.items()}
        )

    @property
    def policy(self) -> Mapping[LeaveType, int]:
        return self._policy

    def compute_balances(
        self, leaves: Iterable[LeaveRecord], year: int
    ) -> dict[LeaveType, LeaveBalance]:
        year_start = date(year, 1, 1)
        year_end = date(year, 12, 31)

        used: dict[LeaveType, int] = {leave_type: 0 for leave_type in self._policy}
        for leave in leaves:
            if leave.status != ApprovalStatus.APPROVED.value:
                continue
            if not (year_start <= leave.start_date <= year_end):
                continue
            try:
                leave_type = LeaveType(leave.type)
            except ValueError:
                continue
            # Types without an entitlement are not tracked
            if leave_type not in used:
                continue
            used[leave_type] += leave_days(leave.start_date, leave.end_date)

        return {
            leave_type: LeaveBalance(
                entitlement=entitlement,
                used=used[leave_type],
                remaining=entitlement - used[leave_type],
            )
            for leave_type, entitlement in self._policy.items()
        }

    @staticmethod
    def validate_request(start: date, end: date) -> None:
        if end < start:
            raise InvalidRange()
