"""Custom exceptions, error kinds and error codes."""

from enum import StrEnum
from typing import Any


class ErrorKind(StrEnum):
    """Coarse error classification callers branch on (retry vs. surface)."""

    NOT_FOUND = "not_found"
    UNAUTHORIZED = "unauthorized"
    INVALID_STATE = "invalid_state"
    EXPIRED = "expired"
    CONFLICT = "conflict"
    UPSTREAM = "upstream"

    # API shell only
    UNAUTHENTICATED = "unauthenticated"
    VALIDATION = "validation"
    INTERNAL = "internal"


class ErrorCode(StrEnum):
    """Standardized error codes for the API."""

    # Authentication errors (401)
    UNAUTHORIZED = "UNAUTHORIZED"
    INVALID_TOKEN = "INVALID_TOKEN"
    TOKEN_EXPIRED = "TOKEN_EXPIRED"

    # Not found errors (404)
    GROUP_NOT_FOUND = "GROUP_NOT_FOUND"
    GROUP_MEMBER_NOT_FOUND = "GROUP_MEMBER_NOT_FOUND"
    NOT_A_MEMBER = "NOT_A_MEMBER"
    INVITATION_NOT_FOUND = "INVITATION_NOT_FOUND"
    TRANSACTION_NOT_FOUND = "TRANSACTION_NOT_FOUND"
    BUDGET_NOT_FOUND = "BUDGET_NOT_FOUND"
    RECORD_NOT_FOUND = "RECORD_NOT_FOUND"

    # Authorization errors (403)
    INSUFFICIENT_PERMISSIONS = "INSUFFICIENT_PERMISSIONS"

    # Invitation state errors
    INVITATION_NO_LONGER_VALID = "INVITATION_NO_LONGER_VALID"
    INVITATION_EXPIRED = "INVITATION_EXPIRED"

    # Conflict errors (409)
    ALREADY_A_GROUP_MEMBER = "ALREADY_A_GROUP_MEMBER"
    DUPLICATE_RECORD = "DUPLICATE_RECORD"

    # Validation errors (400/422)
    VALIDATION_ERROR = "VALIDATION_ERROR"
    CONSTRAINT_VIOLATION = "CONSTRAINT_VIOLATION"
    INVALID_FIELD = "INVALID_FIELD"

    # Rate limiting (429)
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"

    # Server errors (5xx)
    INTERNAL_ERROR = "INTERNAL_ERROR"
    DATABASE_ERROR = "DATABASE_ERROR"


class AppException(Exception):
    """Base application exception."""

    kind: ErrorKind = ErrorKind.INTERNAL

    def __init__(
        self,
        error_code: ErrorCode,
        message: str,
        status_code: int = 400,
        details: Any | None = None,
    ) -> None:
        self.error_code = error_code
        self.message = message
        self.status_code = status_code
        self.details = details
        super().__init__(self.message)


class AuthenticationError(AppException):
    """Authentication failed."""

    kind = ErrorKind.UNAUTHENTICATED

    def __init__(
        self,
        message: str = "Authentication required",
        error_code: ErrorCode = ErrorCode.UNAUTHORIZED,
    ) -> None:
        super().__init__(
            error_code=error_code,
            message=message,
            status_code=401,
        )


# --- NotFound ---


class NotFoundError(AppException):
    """An entity does not exist (or is not visible to the caller)."""

    kind = ErrorKind.NOT_FOUND


class GroupNotFoundError(NotFoundError):
    """Budget group not found."""

    def __init__(self, group_id: str) -> None:
        super().__init__(
            error_code=ErrorCode.GROUP_NOT_FOUND,
            message=f"Group not found: {group_id}",
            status_code=404,
            details={"group_id": group_id},
        )


class NotAMemberError(NotFoundError):
    """The user has no membership in the group, which means no access."""

    def __init__(self, group_id: str) -> None:
        super().__init__(
            error_code=ErrorCode.NOT_A_MEMBER,
            message="You are not a member of this group",
            status_code=404,
            details={"group_id": group_id},
        )


class GroupMemberNotFoundError(NotFoundError):
    """Target membership not found."""

    def __init__(self, user_id: str) -> None:
        super().__init__(
            error_code=ErrorCode.GROUP_MEMBER_NOT_FOUND,
            message="User is not a member of this group",
            status_code=404,
            details={"user_id": user_id},
        )


class InvitationNotFoundError(NotFoundError):
    """Invitation not found."""

    def __init__(self, invitation_id: str = "") -> None:
        super().__init__(
            error_code=ErrorCode.INVITATION_NOT_FOUND,
            message="Invitation not found",
            status_code=404,
            details={"invitation_id": invitation_id} if invitation_id else None,
        )


class TransactionNotFoundError(NotFoundError):
    """Group transaction not found."""

    def __init__(self, transaction_id: str) -> None:
        super().__init__(
            error_code=ErrorCode.TRANSACTION_NOT_FOUND,
            message=f"Transaction not found: {transaction_id}",
            status_code=404,
            details={"transaction_id": transaction_id},
        )


class BudgetNotFoundError(NotFoundError):
    """Group budget not found."""

    def __init__(self, budget_id: str) -> None:
        super().__init__(
            error_code=ErrorCode.BUDGET_NOT_FOUND,
            message=f"Budget not found: {budget_id}",
            status_code=404,
            details={"budget_id": budget_id},
        )


class RecordNotFoundError(NotFoundError):
    """The data store found no row for the given key."""

    def __init__(self, table: str, key: dict[str, Any]) -> None:
        super().__init__(
            error_code=ErrorCode.RECORD_NOT_FOUND,
            message=f"No {table} row matches {key}",
            status_code=404,
            details={"table": table, "key": {k: str(v) for k, v in key.items()}},
        )


# --- Unauthorized ---


class InsufficientPermissionsError(AppException):
    """The actor's role does not allow the requested operation."""

    kind = ErrorKind.UNAUTHORIZED

    def __init__(self, operation: str, role: str | None = None) -> None:
        super().__init__(
            error_code=ErrorCode.INSUFFICIENT_PERMISSIONS,
            message=f"Insufficient permissions for {operation}",
            status_code=403,
            details={"operation": operation, "role": role},
        )


# --- InvalidState / Expired ---


class InvitationNoLongerValidError(AppException):
    """The invitation already left the pending state."""

    kind = ErrorKind.INVALID_STATE

    def __init__(self, status: str) -> None:
        super().__init__(
            error_code=ErrorCode.INVITATION_NO_LONGER_VALID,
            message="Invitation is no longer valid",
            status_code=409,
            details={"status": status},
        )


class InvitationExpiredError(AppException):
    """Invitation is past its expiry date."""

    kind = ErrorKind.EXPIRED

    def __init__(self) -> None:
        super().__init__(
            error_code=ErrorCode.INVITATION_EXPIRED,
            message="This invitation has expired",
            status_code=410,
        )


# --- Conflict ---


class DuplicateRecordError(AppException):
    """A uniqueness constraint rejected the write."""

    kind = ErrorKind.CONFLICT

    def __init__(self, table: str, message: str = "") -> None:
        super().__init__(
            error_code=ErrorCode.DUPLICATE_RECORD,
            message=message or f"Duplicate {table} row",
            status_code=409,
            details={"table": table},
        )


class AlreadyAGroupMemberError(DuplicateRecordError):
    """User is already a member of the group."""

    def __init__(self, user_id: str) -> None:
        super().__init__("group_members", "User is already a member of this group")
        self.error_code = ErrorCode.ALREADY_A_GROUP_MEMBER
        self.details = {"user_id": user_id}


# --- Validation ---


class ConstraintViolationError(AppException):
    """A foreign-key or CHECK constraint rejected the write."""

    kind = ErrorKind.VALIDATION

    def __init__(self, table: str) -> None:
        super().__init__(
            error_code=ErrorCode.CONSTRAINT_VIOLATION,
            message=f"The {table} row violates a data constraint",
            status_code=422,
            details={"table": table},
        )


class InvalidFieldError(AppException):
    """A field value is not acceptable for this record."""

    kind = ErrorKind.VALIDATION

    def __init__(self, field: str, reason: str) -> None:
        super().__init__(
            error_code=ErrorCode.INVALID_FIELD,
            message=f"Invalid {field}: {reason}",
            status_code=422,
            details={"field": field},
        )


# --- Upstream ---


class DataStoreError(AppException):
    """The data store itself failed (network, driver, missing procedure)."""

    kind = ErrorKind.UPSTREAM

    def __init__(self, operation: str, table: str, reason: str = "") -> None:
        self.reason = reason
        super().__init__(
            error_code=ErrorCode.DATABASE_ERROR,
            message=f"Data store {operation} on {table} failed",
            status_code=502,
            details={"operation": operation, "table": table},
        )
