"""Service-level error taxonomy.

Services raise these with messages that are safe to show to end users;
`cargo_certs.core.observability.service_error_handler` renders them as
`{"detail", "code"}` JSON with the matching HTTP status.
"""

from __future__ import annotations


class ServiceError(Exception):
    status_code: int = 400
    code: str = "SERVICE_ERROR"
    default_message: str = "Request failed"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class NotAuthenticatedError(ServiceError):
    status_code = 401
    code = "NOT_AUTHENTICATED"
    default_message = "Not authenticated"


class UnauthorizedError(ServiceError):
    status_code = 403
    code = "UNAUTHORIZED"
    default_message = "Unauthorized"


class NotFoundError(ServiceError):
    status_code = 404
    code = "NOT_FOUND"
    default_message = "Not found"


class ValidationError(ServiceError):
    status_code = 400
    code = "VALIDATION_ERROR"
    default_message = "Invalid input"


class ValueLimitExceededError(ValidationError):
    code = "VALUE_LIMIT_EXCEEDED"

    def __init__(self, attempted: float, maximum: float) -> None:
        self.attempted = attempted
        self.maximum = maximum
        super().__init__(
            f"Value ({attempted:.2f} EUR) exceeds contract limit ({maximum:.2f} EUR)"
        )


class ConflictError(ServiceError):
    status_code = 409
    code = "CONFLICT"
    default_message = "Conflicting update"


class CurrencyApiError(ServiceError):
    status_code = 502
    code = "CURRENCY_API_ERROR"
    default_message = "Currency API unavailable"


class PersistenceError(ServiceError):
    status_code = 500
    code = "PERSISTENCE_ERROR"
    default_message = "Failed to save changes"
