# booking/appointments.py
"""
Appointment persistence.

save() is the single write path: normalize the services payload, validate
the merged appointment, then write the appointment row and its service line
items inside one transaction. Either both land or neither does.

All functions take the SQLModel session explicitly; the caller owns its
lifetime (see booking.db.get_session).
"""

import logging
import secrets
import string
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Mapping, Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from booking.config import Settings, get_settings
from booking.directory import service_defaults
from booking.errors import (
    AppointmentNotFoundError,
    BookingError,
    InvalidInputError,
    PersistenceError,
    UnknownRelationError,
    UnknownServiceError,
)
from booking.models import Appointment, AppointmentService, Service, User
from booking.normalizer import normalize_services
from booking.schemas import LineItem
from booking.validator import is_truthy, parse_datetime, validate

logger = logging.getLogger(__name__)

STORAGE_FIELDS = [name for name in Appointment.model_fields if name != "id"]

_DATETIME_FIELDS = {"book_datetime", "start_datetime", "end_datetime"}
_INT_FIELDS = {"id_users_provider", "id_users_customer", "id_services", "total_duration"}

# Set once on insert, never rewritten by an update
_IMMUTABLE_FIELDS = {"hash", "book_datetime", "create_datetime"}

_HASH_ALPHABET = string.ascii_letters + string.digits


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def generate_hash(length: int = 12) -> str:
    return "".join(secrets.choice(_HASH_ALPHABET) for _ in range(length))


def _storage_values(appointment: Mapping) -> Dict[str, Any]:
    """Pick the storage columns out of a payload and coerce them to column types."""
    values = {}
    for field in STORAGE_FIELDS:
        if field not in appointment:
            continue
        value = appointment[field]
        if value is not None:
            try:
                if field in _DATETIME_FIELDS:
                    value = parse_datetime(value)
                elif field in _INT_FIELDS:
                    value = int(value)
                elif field == "total_price":
                    value = float(value)
                elif field == "is_unavailability":
                    value = is_truthy(value)
            except InvalidInputError:
                raise
            except (TypeError, ValueError) as exc:
                raise InvalidInputError(f"Invalid value for {field}: {value!r}") from exc
        values[field] = value
    return values


def _commit(session: Session, message: str) -> None:
    try:
        session.commit()
    except SQLAlchemyError as exc:
        session.rollback()
        logger.error(message, exc_info=True)
        raise PersistenceError(message) from exc


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------

def save(
    session: Session,
    appointment: Mapping,
    settings: Optional[Settings] = None,
) -> int:
    """
    Insert (no id) or update (with id) an appointment and its services.

    Args:
        session: open session; its transaction is the unit of work
        appointment: payload with storage field names, plus an optional
            "services" list (see booking.normalizer)
        settings: rule settings, defaults to get_settings()

    An update without a "services" key falls back to the legacy fields: the
    stored id_services and totals become a single synthesized line item that
    replaces the whole existing set. Send the full "services" list (as
    api_encode returns it) to keep a multi-service appointment intact.

    Returns:
        The appointment id.

    Raises:
        InvalidInputError / NotFoundError: before anything is written
        PersistenceError: a write or the commit failed; everything was rolled back
    """
    settings = settings or get_settings()
    appointment = dict(appointment)

    normalized = normalize_services(
        appointment, lambda ids: service_defaults(session, ids)
    )

    if normalized.main_service_id:
        appointment["id_services"] = normalized.main_service_id

    # validation sees only the entries normalization kept
    if "services" in appointment:
        appointment["services"] = [item.model_dump() for item in normalized.services]

    if normalized.services or "total_duration" in appointment:
        appointment["total_duration"] = normalized.total_duration
    if normalized.services or "total_price" in appointment:
        appointment["total_price"] = normalized.total_price

    try:
        validate(
            session,
            appointment,
            require_notes=settings.REQUIRE_NOTES,
            minimum_duration=settings.EVENT_MINIMUM_DURATION,
        )
    except BookingError as exc:
        logger.warning("Appointment rejected: %s", exc)
        raise

    try:
        appointment_id = _write(session, appointment, normalized.services, settings.HASH_LENGTH)
    except SQLAlchemyError as exc:
        session.rollback()
        logger.error("Could not save appointment transaction.", exc_info=True)
        raise PersistenceError("Could not save appointment transaction.") from exc

    _commit(session, "Could not save appointment transaction.")

    logger.info(
        "Saved appointment %s with %d service(s)",
        appointment_id,
        len(normalized.services),
    )
    return appointment_id


def _write(
    session: Session,
    appointment: Mapping,
    services: Sequence[LineItem],
    hash_length: int,
) -> int:
    """Unit of work: appointment row, then its line items. Flushes, never commits."""
    if appointment.get("id"):
        appointment_id = _update(session, appointment)
    else:
        appointment_id = _insert(session, appointment, hash_length)

    if services:
        _write_line_items(session, appointment_id, services)

    return appointment_id


def _insert(session: Session, appointment: Mapping, hash_length: int) -> int:
    values = _storage_values(appointment)
    for field in _IMMUTABLE_FIELDS:
        values.pop(field, None)

    now = _utcnow()
    row = Appointment(
        **values,
        book_datetime=now,
        create_datetime=now,
        update_datetime=now,
        hash=generate_hash(hash_length),
    )

    session.add(row)
    session.flush()  # fills row.id
    return row.id


def _update(session: Session, appointment: Mapping) -> int:
    appointment_id = int(appointment["id"])
    row = session.get(Appointment, appointment_id)
    if row is None:
        raise AppointmentNotFoundError(appointment_id)

    for field, value in _storage_values(appointment).items():
        if field in _IMMUTABLE_FIELDS:
            continue
        setattr(row, field, value)
    row.update_datetime = _utcnow()

    session.add(row)
    session.flush()
    return appointment_id


def _write_line_items(session: Session, appointment_id: int, services: Sequence[LineItem]) -> None:
    """Replace the appointment's line items: delete all, insert the new list."""
    existing = session.exec(
        select(AppointmentService).where(AppointmentService.appointment_id == appointment_id)
    ).all()
    for item in existing:
        session.delete(item)
    session.flush()

    for item in services:
        session.add(
            AppointmentService(
                appointment_id=appointment_id,
                service_id=item.service_id,
                duration=item.duration,
                price=item.price,
                position=item.position,
            )
        )
    session.flush()


def delete(session: Session, appointment_id: int) -> None:
    """Remove an appointment together with its line items."""
    row = session.get(Appointment, appointment_id)
    if row is None:
        raise AppointmentNotFoundError(appointment_id)

    items = session.exec(
        select(AppointmentService).where(AppointmentService.appointment_id == appointment_id)
    ).all()
    try:
        for item in items:
            session.delete(item)
        session.flush()  # line items go before their appointment
        session.delete(row)
    except SQLAlchemyError as exc:
        session.rollback()
        raise PersistenceError("Could not delete appointment.") from exc

    _commit(session, "Could not delete appointment.")
    logger.info("Deleted appointment %s", appointment_id)


def _clear_sync_field(session: Session, provider_id: int, field: str) -> None:
    rows = session.exec(
        select(Appointment).where(Appointment.id_users_provider == provider_id)
    ).all()
    for row in rows:
        setattr(row, field, None)
        session.add(row)

    _commit(session, f"Could not clear {field} for provider {provider_id}.")
    logger.info("Cleared %s on %d appointment(s) of provider %s", field, len(rows), provider_id)


def clear_google_sync_ids(session: Session, provider_id: int) -> None:
    """Forget every Google Calendar event id stored for the provider."""
    _clear_sync_field(session, provider_id, "id_google_calendar")


def clear_caldav_sync_ids(session: Session, provider_id: int) -> None:
    """Forget every CalDAV event id stored for the provider."""
    _clear_sync_field(session, provider_id, "id_caldav_calendar")


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------

def find(session: Session, appointment_id: int) -> Dict[str, Any]:
    row = session.get(Appointment, appointment_id)
    if row is None:
        raise AppointmentNotFoundError(appointment_id)
    return row.model_dump()


def _order_clauses(order_by: str):
    clauses = []
    for part in order_by.split(","):
        tokens = part.split()
        if not tokens:
            continue
        if len(tokens) > 2:
            raise InvalidInputError(f"Invalid order by clause: {part.strip()}")

        column = tokens[0]
        direction = tokens[1].lower() if len(tokens) == 2 else "asc"
        if column not in Appointment.model_fields:
            raise InvalidInputError(f"Unknown appointment column: {column}")
        if direction not in ("asc", "desc"):
            raise InvalidInputError(f"Invalid order direction: {tokens[1]}")

        attr = getattr(Appointment, column)
        clauses.append(attr.desc() if direction == "desc" else attr.asc())
    return clauses


def get(
    session: Session,
    where: Optional[Mapping[str, Any]] = None,
    limit: Optional[int] = None,
    offset: Optional[int] = None,
    order_by: Optional[str] = None,
) -> List[Dict[str, Any]]:
    """
    Appointments matching every column == value pair in `where`.

    Unavailability blocks are never returned. `order_by` takes
    "column [asc|desc], ..." over appointment columns.
    """
    stmt = select(Appointment).where(Appointment.is_unavailability == False)  # noqa: E712

    for column, value in (where or {}).items():
        if column not in Appointment.model_fields:
            raise InvalidInputError(f"Unknown appointment column: {column}")
        stmt = stmt.where(getattr(Appointment, column) == value)

    if order_by:
        stmt = stmt.order_by(*_order_clauses(order_by))

    if offset:
        stmt = stmt.offset(offset)
    if limit:
        stmt = stmt.limit(limit)

    return [row.model_dump() for row in session.exec(stmt).all()]


def value(session: Session, appointment_id: int, field: str) -> Any:
    if not field:
        raise InvalidInputError("The field argument cannot be empty.")
    if not appointment_id:
        raise InvalidInputError("The appointment ID argument cannot be empty.")

    appointment = find(session, appointment_id)

    if field not in appointment:
        raise InvalidInputError(f"The requested field was not found in the appointment data: {field}")
    return appointment[field]


def get_services_for_appointment(session: Session, appointment_id: int) -> List[Dict[str, Any]]:
    """Line items of an appointment, ordered by position."""
    if not appointment_id:
        return []

    rows = session.exec(
        select(AppointmentService)
        .where(AppointmentService.appointment_id == appointment_id)
        .order_by(AppointmentService.position, AppointmentService.id)
    ).all()

    return [
        {
            "service_id": row.service_id,
            "duration": row.duration,
            "price": row.price,
            "position": row.position,
        }
        for row in rows
    ]


def _related(session: Session, model, record_id) -> Optional[Dict[str, Any]]:
    if record_id is None:
        return None
    row = session.get(model, record_id)
    return row.model_dump() if row is not None else None


def load(session: Session, appointment: Dict[str, Any], relations: Sequence[str]) -> Dict[str, Any]:
    """
    Attach related records to an appointment dict (storage or API shape).

    Supported relations: "service", "provider", "customer".
    """
    if not appointment or not relations:
        return appointment

    for relation in relations:
        if relation == "service":
            service_id = appointment.get("id_services", appointment.get("serviceId"))
            appointment["service"] = _related(session, Service, service_id)
        elif relation == "provider":
            provider_id = appointment.get("id_users_provider", appointment.get("providerId"))
            appointment["provider"] = _related(session, User, provider_id)
        elif relation == "customer":
            customer_id = appointment.get("id_users_customer", appointment.get("customerId"))
            appointment["customer"] = _related(session, User, customer_id)
        else:
            raise UnknownRelationError(f"The requested appointment relation is not supported: {relation}")

    return appointment


def calculate_end_datetime(session: Session, appointment: Mapping) -> datetime:
    """Start plus the appointment's total duration, or the primary service's duration."""
    start = parse_datetime(appointment.get("start_datetime"))

    duration = appointment.get("total_duration")
    if duration is None:
        service_id = appointment.get("id_services")
        service = session.get(Service, service_id) if service_id is not None else None
        if service is None:
            raise UnknownServiceError(f"Appointment service id is invalid: {appointment.get('id_services')}")
        duration = service.duration

    if duration is None:
        raise InvalidInputError("The appointment duration is unknown.")

    return start + timedelta(minutes=int(duration))
