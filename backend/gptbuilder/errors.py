"""Service error kinds surfaced to API clients as ``{"error": ...}`` JSON."""

from fastapi import status


class ServiceError(Exception):
    """Base class for all errors returned to clients."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidArgumentError(ServiceError):
    """Malformed or missing input."""

    status_code = status.HTTP_400_BAD_REQUEST


class ConflictError(ServiceError):
    """An active subscription already exists."""

    status_code = status.HTTP_409_CONFLICT


class PreconditionFailedError(ServiceError):
    """Creator payout setup is incomplete."""

    status_code = status.HTTP_412_PRECONDITION_FAILED


class NotFoundError(ServiceError):
    """A referenced record does not exist."""

    status_code = status.HTTP_404_NOT_FOUND


class InternalError(ServiceError):
    """Downstream (Stripe, database, completion API) or unexpected failure."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
