"""Domain exceptions raised by the accounting engines and services.

Each class carries the HTTP status the API answers with; ``hrms.main``
turns them into ``{"message": ...}`` responses.
"""


class DomainError(Exception):
    """Base exception for business rule violations."""

    status_code = 400
    default_message = "Request could not be processed"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)

    @property
    def message(self) -> str:
        return str(self)


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""

    default_message = "Invalid input"


class InvalidRange(ValidationError):
    default_message = "End date cannot be before start date"


class InvalidDateFormat(ValidationError):
    default_message = "Invalid date format"


class InvalidTimeFormat(ValidationError):
    default_message = "Invalid time format"


class EndBeforeStart(ValidationError):
    default_message = "End time must be after start time"


class NegativeBreak(ValidationError):
    default_message = "Invalid break duration"


class NonPositiveTotal(ValidationError):
    default_message = "Total working hours must be greater than 0"


class ImmutableEntry(ValidationError):
    default_message = "Cannot update approved or rejected timesheet entries"


class AlreadyFinalized(ValidationError):
    default_message = "Leave request has already been processed"


class ImmutableEvaluation(ValidationError):
    default_message = "Cannot update acknowledged evaluation"


class ConflictError(DomainError):
    """Raised when a natural key is already taken."""

    default_message = "Duplicate record"


class DuplicateEntry(ConflictError):
    default_message = "Duplicate entries found for the same date"


class DuplicateEmail(ConflictError):
    default_message = "User already exists"


class NotFoundError(DomainError):
    """Raised when a record is absent or the caller may not see it."""

    status_code = 404
    default_message = "Not found"


class NotFoundOrNotDeletable(NotFoundError):
    default_message = "Record not found or cannot be deleted"


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""

    status_code = 403
    default_message = "Not authorized"
