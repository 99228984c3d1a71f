# booking/errors.py
"""
Error taxonomy of the booking engine.

InvalidInputError  - the payload is malformed or points at the wrong records.
NotFoundError      - a lookup by id found nothing.
PersistenceError   - a write or commit failed and the transaction was rolled back.
"""


class BookingError(Exception):
    pass


class InvalidInputError(BookingError, ValueError):
    pass


class MissingFieldError(InvalidInputError):
    pass


class InvalidDatetimeError(InvalidInputError):
    pass


class DurationTooShortError(InvalidInputError):
    def __init__(self, minimum_duration: int):
        super().__init__(
            f"The appointment duration cannot be less than {minimum_duration} minutes."
        )
        self.minimum_duration = minimum_duration


class UnknownProviderError(InvalidInputError):
    pass


class UnknownCustomerError(InvalidInputError):
    pass


class UnknownServiceError(InvalidInputError):
    pass


class UnknownRelationError(InvalidInputError):
    pass


class NotFoundError(BookingError, LookupError):
    pass


class AppointmentNotFoundError(NotFoundError):
    def __init__(self, appointment_id):
        super().__init__(
            f"The provided appointment ID was not found in the database: {appointment_id}"
        )
        self.appointment_id = appointment_id


class PersistenceError(BookingError, RuntimeError):
    pass
