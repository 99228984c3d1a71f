# booking/conflicts.py
"""
Overlap counting over existing bookings.

An existing booking [s, e) overlaps a candidate window [S, E) when

    (s <= S and e > S) or (s < E and e >= E)

so a booking that ends exactly where the next one starts is not counted.
These are plain reads: they take no lock and never reject anything, the
caller decides what a count means for capacity.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import and_, func, or_
from sqlmodel import Session, select

from booking.models import Appointment
from booking.validator import parse_datetime


def overlaps(
    existing_start: datetime,
    existing_end: datetime,
    start: datetime,
    end: datetime,
) -> bool:
    existing_start, existing_end = parse_datetime(existing_start), parse_datetime(existing_end)
    start, end = parse_datetime(start), parse_datetime(end)
    return (existing_start <= start and existing_end > start) or (
        existing_start < end and existing_end >= end
    )


def _overlap_clause(start: datetime, end: datetime):
    # stored values are naive UTC
    start, end = parse_datetime(start), parse_datetime(end)
    return or_(
        and_(Appointment.start_datetime <= start, Appointment.end_datetime > start),
        and_(Appointment.start_datetime < end, Appointment.end_datetime >= end),
    )


def _count(session: Session, stmt, exclude_appointment_id: Optional[int]) -> int:
    if exclude_appointment_id:
        stmt = stmt.where(Appointment.id != exclude_appointment_id)
    return session.exec(stmt).one()


def attendants_for_period(
    session: Session,
    start: datetime,
    end: datetime,
    service_id: int,
    provider_id: int,
    exclude_appointment_id: Optional[int] = None,
) -> int:
    """
    Number of appointments of the same service and provider overlapping the window.

    Pass exclude_appointment_id when re-validating an edit so the appointment
    does not count against itself.
    """
    stmt = (
        select(func.count(Appointment.id))
        .where(_overlap_clause(start, end))
        .where(Appointment.id_services == service_id)
        .where(Appointment.id_users_provider == provider_id)
    )
    return _count(session, stmt, exclude_appointment_id)


def other_service_attendants(
    session: Session,
    start: datetime,
    end: datetime,
    service_id: int,
    provider_id: int,
    exclude_appointment_id: Optional[int] = None,
) -> int:
    """Number of the provider's appointments for any other service overlapping the window."""
    stmt = (
        select(func.count(Appointment.id))
        .where(_overlap_clause(start, end))
        .where(Appointment.id_services != service_id)
        .where(Appointment.id_users_provider == provider_id)
    )
    return _count(session, stmt, exclude_appointment_id)
