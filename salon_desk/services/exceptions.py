class ServiceError(Exception):
    """Base exception for service layer failures."""

    def __init__(self, message: str, *, cause: Exception | None = None):
        super().__init__(message)
        self.cause = cause


class ValidationError(ServiceError):
    """Raised when a request carries malformed or missing input."""


class InsufficientPaymentError(ServiceError):
    """Raised when tendered payments fall short of the amount due."""

    def __init__(
        self,
        message: str = "Total payment is less than bill amount",
        *,
        paid: float = 0.0,
        due: float = 0.0,
        cause: Exception | None = None,
    ):
        super().__init__(message, cause=cause)
        self.paid = paid
        self.due = due


class NotFoundError(ServiceError):
    """Raised when a referenced record does not exist."""


class StorageError(ServiceError):
    """Raised when the database rejects a write; the transaction is rolled back."""
