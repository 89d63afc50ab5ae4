from fastapi import HTTPException

from salon_desk.services.exceptions import (
    InsufficientPaymentError,
    NotFoundError,
    ServiceError,
    StorageError,
    ValidationError,
)


def http_error(exc: ServiceError) -> HTTPException:
    """Translate a service failure into the HTTP error shown to the UI."""

    if isinstance(exc, (ValidationError, InsufficientPaymentError)):
        return HTTPException(status_code=400, detail=str(exc))
    if isinstance(exc, NotFoundError):
        return HTTPException(status_code=404, detail=str(exc))
    if isinstance(exc, StorageError):
        return HTTPException(status_code=500, detail="Unable to save changes, nothing was recorded")
    return HTTPException(status_code=500, detail=str(exc))
