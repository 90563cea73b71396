"""Pydantic schemas used across the backend API.

JSON bodies use camelCase keys; Python code uses the snake_case field names.
"""
from datetime import date, datetime, timedelta, timezone
from typing import Any

from pydantic import BaseModel, EmailStr, Field
from pydantic.alias_generators import to_camel

from .enums import (
    ApprovalStatus,
    EvaluationStatus,
    Importance,
    LeaveType,
    NotificationType,
    Role,
)


class ApiModel(BaseModel):
    """Base for request/response bodies exchanged with the browser client."""

    model_config = {
        "alias_generator": to_camel,
        "populate_by_name": True,
        "from_attributes": True,
    }


class MessageResponse(ApiModel):
    message: str


# ---------------------------------------------------------------------------
# Auth and users
# ---------------------------------------------------------------------------


class TokenData(BaseModel):
    """Information encoded into JWTs."""

    id: int
    role: Role
    email: str


class UserRead(ApiModel):
    """Public representation of a user."""

    id: int
    name: str
    email: EmailStr
    role: Role
    department: str = ""
    position: str = ""
    is_active: bool = True


class LoginRequest(ApiModel):
    email: EmailStr
    password: str


class LoginResponse(ApiModel):
    success: bool = True
    token: str
    user: UserRead


class UserCreate(ApiModel):
    """Payload for admin-driven account creation."""

    name: str = Field(min_length=1)
    email: EmailStr
    password: str = Field(min_length=6)
    role: Role = Role.EMPLOYEE
    department: str = ""
    position: str = ""


class RegisterResponse(ApiModel):
    token: str
    user: UserRead


class ProfileUpdate(ApiModel):
    name: str | None = None
    email: EmailStr | None = None
    department: str | None = None
    position: str | None = None


class UserUpdate(ProfileUpdate):
    role: Role | None = None
    is_active: bool | None = None


class PasswordUpdate(ApiModel):
    current_password: str
    new_password: str = Field(min_length=6)


class TokenMessage(ApiModel):
    message: str
    token: str


class ForgotPasswordRequest(ApiModel):
    email: EmailStr


class ForgotPasswordResponse(ApiModel):
    message: str
    reset_token: str


class ResetPasswordRequest(ApiModel):
    password: str = Field(min_length=6)


class EmployeeStats(ApiModel):
    total: int
    active: int
    departments: list[str]


# ---------------------------------------------------------------------------
# Leave
# ---------------------------------------------------------------------------


class LeaveCreate(ApiModel):
    # Kept as strings so unparsable dates surface as "Invalid date format"
    start_date: str
    end_date: str
    type: LeaveType
    reason: str = Field(min_length=1)


class LeaveStatusUpdate(ApiModel):
    status: ApprovalStatus
    override: bool = False


class LeaveRead(ApiModel):
    id: int
    user_id: int
    type: LeaveType
    start_date: date
    end_date: date
    reason: str
    status: ApprovalStatus
    approved_by: int | None = None
    created_at: datetime
    updated_at: datetime


class LeavePage(ApiModel):
    leaves: list[LeaveRead]
    page: int
    pages: int
    total: int


class LeaveBalanceRead(ApiModel):
    total: int
    used: int
    remaining: int


# ---------------------------------------------------------------------------
# Timesheets
# ---------------------------------------------------------------------------


class TimesheetSubmit(ApiModel):
    work_date: date = Field(alias="date")
    start_time: str
    end_time: str
    break_duration: float | str | None = 0


class TimesheetUpdate(ApiModel):
    start_time: str
    end_time: str
    break_duration: float | str | None = 0


class BulkEntry(ApiModel):
    id: int | None = None
    work_date: date | None = Field(default=None, alias="date")
    start_time: str | None = None
    end_time: str | None = None
    break_duration: float | str | None = None


class BulkRequest(ApiModel):
    entry: list[BulkEntry]


class BulkResult(ApiModel):
    modified: int
    inserted: int
    total: int


class TimesheetStatusUpdate(ApiModel):
    status: ApprovalStatus
    comment: str | None = None


class TimesheetRead(ApiModel):
    id: int
    user_id: int
    work_date: date = Field(alias="date")
    start_time: str
    end_time: str
    break_duration: float
    total_hours: float
    status: ApprovalStatus
    status_comment: str | None = None
    created_at: datetime
    updated_at: datetime


class DaySlotRead(ApiModel):
    id: int | None = None
    work_date: date = Field(alias="date")
    start_time: str = ""
    end_time: str = ""
    break_duration: float = 0.0
    total_hours: float = 0.0
    status: ApprovalStatus = ApprovalStatus.PENDING


class WeekView(ApiModel):
    start_date: date
    end_date: date
    entries: list[DaySlotRead]


class TimesheetSummaryRead(ApiModel):
    total_hours: float
    regular_hours: float
    overtime_hours: float
    days_worked: int
    approved_count: int
    pending_count: int
    rejected_count: int


class Pagination(ApiModel):
    current_page: int
    total_pages: int
    total_entries: int
    entries_per_page: int


class TimesheetPage(ApiModel):
    timesheets: list[TimesheetRead]
    pagination: Pagination


# ---------------------------------------------------------------------------
# Performance
# ---------------------------------------------------------------------------


class CategoryScore(ApiModel):
    name: str = Field(min_length=1)
    score: float = Field(ge=0, le=5)
    comments: str | None = None


class Period(ApiModel):
    start_date: date
    end_date: date


class EvaluationCreate(ApiModel):
    employee_id: int
    period: Period
    categories: list[CategoryScore] = Field(min_length=1)
    comments: str = ""
    status: EvaluationStatus = EvaluationStatus.DRAFT


class EvaluationUpdate(ApiModel):
    period: Period | None = None
    categories: list[CategoryScore] | None = Field(default=None, min_length=1)
    comments: str | None = None
    status: EvaluationStatus | None = None


class AcknowledgeRequest(ApiModel):
    comments: str = ""


class Acknowledgement(ApiModel):
    acknowledged_at: datetime = Field(alias="date")
    comments: str = ""


class EvaluationRead(ApiModel):
    id: int
    employee_id: int
    evaluator_id: int
    period: Period
    categories: list[CategoryScore]
    overall_score: float
    comments: str = ""
    status: EvaluationStatus
    acknowledgement: Acknowledgement | None = None
    created_at: datetime
    updated_at: datetime


class EvaluationListItem(ApiModel):
    id: int
    score: float
    created_at: datetime = Field(alias="date")
    categories: list[CategoryScore]
    comments: str = ""
    status: EvaluationStatus
    period: Period
    evaluator: str


class RecentEvaluation(ApiModel):
    description: str
    created_at: datetime = Field(alias="date")


class EvaluationStats(ApiModel):
    total: int
    average_score: float
    latest_score: float


class MyEvaluations(ApiModel):
    data: list[EvaluationListItem]
    recent: list[RecentEvaluation]
    summary: EvaluationStats


# ---------------------------------------------------------------------------
# Notifications
# ---------------------------------------------------------------------------


class NotificationRead(ApiModel):
    id: int
    title: str
    message: str
    type: NotificationType
    read: bool
    importance: Importance
    created_at: datetime


class NotificationPage(ApiModel):
    notifications: list[NotificationRead]
    page: int
    pages: int
    total: int


class UnreadCount(ApiModel):
    unread_count: int


class RelayEvent(BaseModel):
    """Envelope pushed to WebSocket subscribers."""

    channel: str
    action: str
    data: dict[str, Any]


def compute_expiry(minutes: int) -> datetime:
    """Return an absolute expiration timestamp for tokens."""

    return datetime.now(timezone.utc) + timedelta(minutes=minutes)
