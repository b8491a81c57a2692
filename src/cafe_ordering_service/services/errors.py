"""Exceptions raised by the ordering layer.

These describe rule violations detected locally, before any call to the
order-persistence API. The HTTP layer maps each one to a status code.
"""


class OrderingError(Exception):
    """Base class for ordering rule violations."""


class EmptyCartError(OrderingError):
    """Raised when an empty cart is submitted."""

    def __init__(self, message: str = "Cart is empty") -> None:
        super().__init__(message)


class InvalidTableError(OrderingError):
    """Raised when a table number is missing or out of range."""


class SessionNotFoundError(OrderingError):
    """Raised when a session id is unknown."""


class SessionClosedError(OrderingError):
    """Raised when a customer session's active order has been paid."""


class OrderNotEditableError(OrderingError):
    """Raised when an order can no longer be changed."""


class SubmissionInProgressError(OrderingError):
    """Raised when a session is changed in a way a running submission forbids."""


class OrderServiceError(Exception):
    """A single call to the order-persistence API failed.

    Attributes:
        message: Human-readable reason, taken from the backend when available
        status_code: HTTP status of the response, None for transport errors
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
