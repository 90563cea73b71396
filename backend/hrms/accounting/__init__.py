"""Pure business-rule computation for leave and timesheets."""
from .leave import (
    DEFAULT_LEAVE_POLICY,
    LeaveAccounting,
    LeaveBalance,
    leave_days,
    parse_leave_date,
)
from .timesheet import (
    DaySlot,
    EntryCandidate,
    TimesheetSummary,
    build_week_view,
    compute_entry_hours,
    summarize,
    validate_batch,
    week_bounds,
)

__all__ = [
    "DEFAULT_LEAVE_POLICY",
    "DaySlot",
    "EntryCandidate",
    "LeaveAccounting",
    "LeaveBalance",
    "TimesheetSummary",
    "build_week_view",
    "compute_entry_hours",
    "leave_days",
    "parse_leave_date",
    "summarize",
    "validate_batch",
    "week_bounds",
]
