"""String enumerations shared by models, schemas and services."""
from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """User roles used for authorization."""

    ADMIN = "admin"
    EMPLOYEE = "employee"


class ApprovalStatus(str, Enum):
    """Review state shared by leave requests and timesheet entries."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class LeaveType(str, Enum):
    VACATION = "vacation"
    SICK = "sick"
    PERSONAL = "personal"
    UNPAID = "unpaid"
    MATERNITY = "maternity"
    PATERNITY = "paternity"


class EvaluationStatus(str, Enum):
    DRAFT = "draft"
    SUBMITTED = "submitted"
    ACKNOWLEDGED = "acknowledged"


class NotificationType(str, Enum):
    LEAVE_REQUEST = "leave_request"
    LEAVE_STATUS = "leave_status"
    TIMESHEET_STATUS = "timesheet_status"
    TIMESHEET_REMINDER = "timesheet_reminder"
    PERFORMANCE_REVIEW = "performance_review"
    DOCUMENT_UPLOADED = "document_uploaded"


class Importance(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
