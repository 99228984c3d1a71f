# booking/deps.py

from fastapi import HTTPException

from booking.errors import BookingError, InvalidInputError, NotFoundError, PersistenceError


def http_exception_for(exc: BookingError) -> HTTPException:
    """Map a booking error onto the HTTP error a FastAPI route should raise."""
    if isinstance(exc, NotFoundError):
        return HTTPException(status_code=404, detail=str(exc))
    if isinstance(exc, InvalidInputError):
        return HTTPException(status_code=422, detail=str(exc))
    if isinstance(exc, PersistenceError):
        return HTTPException(status_code=500, detail="Could not save appointment")
    return HTTPException(status_code=500, detail="Internal error")
