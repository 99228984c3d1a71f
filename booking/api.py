# booking/api.py
"""
Conversion between the storage shape of an appointment and its API resource.

    storage             resource
    -------             --------
    book_datetime       book
    start_datetime      start
    end_datetime        end
    id_services         serviceId
    id_users_provider   providerId
    id_users_customer   customerId
    id_google_calendar  googleCalendarId
    id_caldav_calendar  caldavCalendarId

id, location, color, status, notes and hash keep their names.
"""

from typing import Any, Dict, Mapping, Optional

from sqlmodel import Session

from booking.appointments import get_services_for_appointment

# resource key -> storage key
API_RESOURCE = {
    "id": "id",
    "book": "book_datetime",
    "start": "start_datetime",
    "end": "end_datetime",
    "location": "location",
    "color": "color",
    "status": "status",
    "notes": "notes",
    "hash": "hash",
    "serviceId": "id_services",
    "providerId": "id_users_provider",
    "customerId": "id_users_customer",
    "googleCalendarId": "id_google_calendar",
    "caldavCalendarId": "id_caldav_calendar",
}

_INTEGER_KEYS = {"id", "serviceId", "providerId", "customerId"}


def _int_or_none(value: Any) -> Optional[int]:
    return int(value) if value is not None else None


def api_encode(session: Session, appointment: Mapping) -> Dict[str, Any]:
    """Storage row -> API resource, with the ordered line items when the row is persisted."""
    encoded = {}
    for key, field in API_RESOURCE.items():
        value = appointment.get(field)
        encoded[key] = _int_or_none(value) if key in _INTEGER_KEYS else value

    if encoded["id"]:
        encoded["services"] = get_services_for_appointment(session, encoded["id"])

    return encoded


def api_decode(resource: Mapping, base: Optional[Mapping] = None) -> Dict[str, Any]:
    """
    API resource -> storage payload.

    Only keys present in `resource` overwrite `base` (a null value still
    overwrites). The result is never an unavailability block, and "services"
    is passed through as-is for save() to normalize.
    """
    decoded = dict(base or {})

    for key, field in API_RESOURCE.items():
        if key in resource:
            decoded[field] = resource[key]

    decoded["is_unavailability"] = False

    if isinstance(resource.get("services"), list):
        decoded["services"] = resource["services"]

    return decoded
