from dataclasses import dataclass
from fastapi import status


@dataclass(frozen=True)
class ErrorDefinition:
    code: str
    message: str
    status_code: int


class ErrorCatalog:
    INVALID_TOKEN = ErrorDefinition("INVALID_TOKEN", "Invalid token", status.HTTP_401_UNAUTHORIZED)
    INVALID_CREDENTIALS = ErrorDefinition(
        "INVALID_CREDENTIALS",
        "Invalid credentials",
        status.HTTP_401_UNAUTHORIZED,
    )
    USER_INACTIVE = ErrorDefinition(
        "USER_INACTIVE",
        "User is inactive",
        status.HTTP_403_FORBIDDEN,
    )
    NOT_FOUND = ErrorDefinition(
        "NOT_FOUND",
        "Resource not found",
        status.HTTP_404_NOT_FOUND,
    )
    INVALID_STATE = ErrorDefinition(
        "INVALID_STATE",
        "Operation not allowed in the current state",
        status.HTTP_409_CONFLICT,
    )
    INVALID_ROLE = ErrorDefinition(
        "INVALID_ROLE",
        "Caller lacks the required role",
        status.HTTP_403_FORBIDDEN,
    )
    WRONG_LOCATION = ErrorDefinition(
        "WRONG_LOCATION",
        "Caller is not assigned to the transfer destination",
        status.HTTP_403_FORBIDDEN,
    )
    DELETION_BLOCKED = ErrorDefinition(
        "DELETION_BLOCKED",
        "Deletion blocked: no reassignment target available",
        status.HTTP_409_CONFLICT,
    )
    DUPLICATE_KEY = ErrorDefinition(
        "DUPLICATE_KEY",
        "Duplicate key",
        status.HTTP_409_CONFLICT,
    )
    REAUTH_FAILED = ErrorDefinition(
        "REAUTH_FAILED",
        "Administrator re-authentication failed",
        status.HTTP_401_UNAUTHORIZED,
    )
    DB_UNAVAILABLE = ErrorDefinition(
        "DB_UNAVAILABLE",
        "Database unavailable",
        status.HTTP_503_SERVICE_UNAVAILABLE,
    )
    LOCK_TIMEOUT = ErrorDefinition(
        "LOCK_TIMEOUT",
        "Lock wait timeout",
        status.HTTP_409_CONFLICT,
    )
    VALIDATION_ERROR = ErrorDefinition(
        "VALIDATION_ERROR",
        "Validation error",
        status.HTTP_422_UNPROCESSABLE_ENTITY,
    )
    INTERNAL_ERROR = ErrorDefinition(
        "INTERNAL_ERROR",
        "Internal server error",
        status.HTTP_500_INTERNAL_SERVER_ERROR,
    )


class AppError(Exception):
    def __init__(self, error: ErrorDefinition, details: object | None = None):
        self.error = error
        self.details = details
        super().__init__(error.message)
