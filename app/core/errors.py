# app/core/errors.py
from typing import Optional


class ServiceError(Exception):
    """Base class for errors surfaced by the orchestrator and its adapters.

    ``status_code`` is the HTTP status the API layer answers with.
    """
    status_code: int = 500
    default_detail: str = "Service error."

    def __init__(self, detail: Optional[str] = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class NotFoundError(ServiceError):
    """Borrowing request or item could not be resolved."""
    status_code = 404
    default_detail = "Resource not found."


class InvalidStateError(ServiceError):
    """Transition not permitted from the current borrowing status."""
    status_code = 409
    default_detail = "Operation not permitted in the current state."


class InputValidationError(ServiceError):
    status_code = 400
    default_detail = "Invalid input."


class InsufficientStockError(ServiceError):
    """Stock adjustment would drive available_quantity below zero."""
    status_code = 409
    default_detail = "Insufficient stock."


class RemoteUnavailableError(ServiceError):
    """A collaborator call could not complete (timeout, connection, 5xx)."""
    status_code = 503
    default_detail = "Remote service unavailable."


class NotificationDeliveryError(ServiceError):
    # Never fails an admin operation; see BorrowingOrchestrator.
    status_code = 502
    default_detail = "Notification could not be delivered."
