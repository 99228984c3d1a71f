# booking/directory.py
"""Lookups against the service catalog and the user directory."""

from typing import Dict, Iterable

from sqlmodel import Session, select

from booking.models import Service, User
from booking.schemas import ServiceDefaults, UserRole


def service_defaults(session: Session, service_ids: Iterable[int]) -> Dict[int, ServiceDefaults]:
    """Catalog duration/price for the given ids, fetched in one query."""
    ids = list(service_ids)
    if not ids:
        return {}

    rows = session.exec(select(Service).where(Service.id.in_(ids))).all()

    return {
        row.id: ServiceDefaults(duration=row.duration, price=row.price)
        for row in rows
    }


def service_exists(session: Session, service_id: int) -> bool:
    return session.get(Service, service_id) is not None


def user_has_role(session: Session, user_id: int, role: UserRole) -> bool:
    user = session.exec(
        select(User)
        .where(User.id == user_id)
        .where(User.role == role.value)
    ).first()
    return user is not None
