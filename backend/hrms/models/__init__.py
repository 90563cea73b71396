"""SQLAlchemy models exposed by the backend."""
from .base import Base
from .leave import LeaveRequest
from .notification import Notification
from .performance import PerformanceEvaluation
from .timesheet import TimesheetEntry
from .user import User

__all__ = [
    "Base",
    "LeaveRequest",
    "Notification",
    "PerformanceEvaluation",
    "TimesheetEntry",
    "User",
]
