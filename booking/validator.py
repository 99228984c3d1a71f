# booking/validator.py

from datetime import datetime, timezone
from typing import Any, Mapping

from pydantic import TypeAdapter, ValidationError
from sqlmodel import Session

from booking.directory import service_defaults, service_exists, user_has_role
from booking.errors import (
    AppointmentNotFoundError,
    DurationTooShortError,
    InvalidDatetimeError,
    MissingFieldError,
    UnknownCustomerError,
    UnknownProviderError,
    UnknownServiceError,
)
from booking.models import Appointment
from booking.normalizer import collect_service_entries
from booking.schemas import UserRole

_datetime_adapter = TypeAdapter(datetime)

_TRUTHY = {"1", "true", "yes", "on"}


def parse_datetime(value: Any) -> datetime:
    """
    Parse a date-time value (datetime or ISO-8601 string).

    Aware values are converted to naive UTC, the storage convention.
    Raises InvalidDatetimeError when the value cannot be parsed.
    """
    if isinstance(value, str):
        value = value.strip()
    try:
        parsed = _datetime_adapter.validate_python(value)
    except ValidationError as exc:
        raise InvalidDatetimeError(f"Invalid date time value: {value!r}") from exc

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def is_truthy(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in _TRUTHY
    return bool(value)


def validate(
    session: Session,
    appointment: Mapping,
    *,
    require_notes: bool = False,
    minimum_duration: int = 5,
) -> None:
    """
    Validate a fully merged appointment payload (storage field names).

    Checks run in order and stop at the first failure. Nothing is written.

    Raises:
        AppointmentNotFoundError: an id is given but no such appointment exists
        MissingFieldError: a required field is empty
        InvalidDatetimeError: start or end is not a valid date time
        DurationTooShortError: the appointment is shorter than minimum_duration
        UnknownProviderError / UnknownCustomerError / UnknownServiceError:
            a reference does not resolve to a record of the right kind; every
            line item in "services" is checked against the catalog too
    """
    # 1) Existing appointment
    appointment_id = appointment.get("id")
    if appointment_id:
        try:
            found = session.get(Appointment, int(appointment_id))
        except (TypeError, ValueError):
            found = None
        if found is None:
            raise AppointmentNotFoundError(appointment_id)

    is_unavailability = is_truthy(appointment.get("is_unavailability"))

    # 2) Required fields
    missing = []
    if not appointment.get("start_datetime"):
        missing.append("start_datetime")
    if not appointment.get("end_datetime"):
        missing.append("end_datetime")
    if not is_unavailability:
        has_services = bool(collect_service_entries({"services": appointment.get("services")}))
        if not appointment.get("id_services") and not has_services:
            missing.append("id_services")
        if not appointment.get("id_users_customer"):
            missing.append("id_users_customer")
    if not appointment.get("id_users_provider"):
        missing.append("id_users_provider")
    if require_notes and not appointment.get("notes"):
        missing.append("notes")

    if missing:
        raise MissingFieldError(
            "Not all required fields are provided: " + ", ".join(missing)
        )

    # 3) Date times
    try:
        start = parse_datetime(appointment["start_datetime"])
    except InvalidDatetimeError as exc:
        raise InvalidDatetimeError("The appointment start date time is invalid.") from exc

    try:
        end = parse_datetime(appointment["end_datetime"])
    except InvalidDatetimeError as exc:
        raise InvalidDatetimeError("The appointment end date time is invalid.") from exc

    # 4) Minimum duration (minutes)
    if (end - start).total_seconds() / 60 < minimum_duration:
        raise DurationTooShortError(minimum_duration)

    # 5) Provider
    provider_id = appointment["id_users_provider"]
    if not user_has_role(session, provider_id, UserRole.provider):
        raise UnknownProviderError(
            f"The appointment provider ID was not found in the database: {provider_id}"
        )

    if not is_unavailability:
        # 6) Customer and primary service
        customer_id = appointment["id_users_customer"]
        if not user_has_role(session, customer_id, UserRole.customer):
            raise UnknownCustomerError(
                f"The appointment customer ID was not found in the database: {customer_id}"
            )

        service_id = appointment.get("id_services")
        if service_id is not None and not service_exists(session, service_id):
            raise UnknownServiceError(f"Appointment service id is invalid: {service_id}")

    # 7) Every line item service exists in the catalog
    if isinstance(appointment.get("services"), (list, tuple)):
        line_item_ids = [entry.service_id for entry in collect_service_entries(appointment)]
        known = service_defaults(session, set(line_item_ids))
        unknown = [sid for sid in dict.fromkeys(line_item_ids) if sid not in known]
        if unknown:
            raise UnknownServiceError(
                "Appointment line item service ids are invalid: " + ", ".join(map(str, unknown))
            )
