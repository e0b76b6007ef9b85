from dataclasses import dataclass
from fastapi import status


@dataclass(frozen=True)
class ErrorDefinition:
    code: str
    message: str
    status_code: int


class ErrorCatalog:
    INVALID_TOKEN = ErrorDefinition(
        "INVALID_TOKEN",
        "Session expired or unauthorized",
        status.HTTP_401_UNAUTHORIZED,
    )
    INVALID_CREDENTIALS = ErrorDefinition(
        "INVALID_CREDENTIALS",
        "Invalid credentials",
        status.HTTP_401_UNAUTHORIZED,
    )
    INVALID_API_KEY = ErrorDefinition(
        "INVALID_API_KEY",
        "Invalid API Key",
        status.HTTP_403_FORBIDDEN,
    )
    REPORT_NOT_FOUND = ErrorDefinition(
        "REPORT_NOT_FOUND",
        "Report not found",
        status.HTTP_404_NOT_FOUND,
    )
    PAYLOAD_TOO_LARGE = ErrorDefinition(
        "PAYLOAD_TOO_LARGE",
        "Request body too large",
        status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
    )
    SYNC_FAILED = ErrorDefinition(
        "SYNC_FAILED",
        "Sync failed",
        status.HTTP_500_INTERNAL_SERVER_ERROR,
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
