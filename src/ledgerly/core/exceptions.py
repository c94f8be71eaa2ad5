"""Domain exceptions mapped to HTTP status codes by the API layer."""


class LedgerlyError(Exception):
    """Base exception for domain errors."""

    status_code = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotFoundError(LedgerlyError):
    """Requested resource does not exist in the caller's business."""

    status_code = 404


class BusinessRuleError(LedgerlyError):
    """Operation violates a business rule (invalid state, bad input)."""

    status_code = 400


class ConflictError(LedgerlyError):
    """Resource already exists."""

    status_code = 409


class ExternalServiceError(LedgerlyError):
    """Third-party HTTP service failed."""

    status_code = 502
