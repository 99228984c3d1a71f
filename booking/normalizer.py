# booking/normalizer.py
"""
Services payload normalization.

A booking payload names its services in one of two shapes:

    {"services": [3, {"service_id": 4, "duration": 45}, ...]}
    {"id_services": 3, "total_duration": 30, "total_price": 25.0}   (legacy)

normalize_services() turns either shape into an ordered list of line items
whose missing duration/price are filled from the service catalog, plus the
aggregate totals and the primary service id.
"""

from collections.abc import Mapping
from numbers import Number
from typing import Any, Callable, Dict, List, Optional

from booking.schemas import (
    ById,
    ByIdWithOverrides,
    LineItem,
    NormalizedServices,
    ServiceDefaults,
    ServiceEntry,
)

DefaultsFetcher = Callable[[List[int]], Mapping]


def _to_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _to_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _to_service_id(value: Any) -> Optional[int]:
    service_id = _to_int(value)
    if service_id is None or service_id <= 0:
        return None
    return service_id


def _parse_entry(raw: Any) -> Optional[ServiceEntry]:
    if isinstance(raw, (str, Number)):
        service_id = _to_service_id(raw)
        return ById(service_id=service_id) if service_id else None

    if isinstance(raw, Mapping):
        service_id = _to_service_id(raw.get("service_id", raw.get("serviceId")))
        if not service_id:
            return None
        return ByIdWithOverrides(
            service_id=service_id,
            duration=_to_int(raw.get("duration")),
            price=_to_float(raw.get("price")),
            position=_to_int(raw.get("position")),
        )

    return None


def collect_service_entries(payload: Mapping) -> List[ServiceEntry]:
    """Build the ordered raw entry list from either payload shape."""
    services = payload.get("services")

    if isinstance(services, (list, tuple)):
        entries = []
        for raw in services:
            entry = _parse_entry(raw)
            if entry is not None:
                entries.append(entry)
        return entries

    legacy_id = _to_service_id(payload.get("id_services"))
    if legacy_id:
        return [
            ByIdWithOverrides(
                service_id=legacy_id,
                duration=_to_int(payload.get("total_duration")),
                price=_to_float(payload.get("total_price")),
                position=1,
            )
        ]

    return []


def _pass_through(payload: Mapping) -> NormalizedServices:
    return NormalizedServices(
        services=[],
        total_duration=_to_int(payload.get("total_duration")),
        total_price=_to_float(payload.get("total_price")),
        main_service_id=_to_service_id(payload.get("id_services")),
    )


def normalize_services(payload: Mapping, fetch_defaults: DefaultsFetcher) -> NormalizedServices:
    """
    Resolve the services of a booking payload.

    Args:
        payload: raw appointment payload (storage field names)
        fetch_defaults: called once with the distinct service ids, returns a
            mapping of id -> ServiceDefaults for the ids found in the catalog

    Returns:
        NormalizedServices; with no usable entry the payload's own totals
        and id_services are passed through untouched (unavailability blocks).
    """
    entries = collect_service_entries(payload)

    if not entries:
        return _pass_through(payload)

    service_ids = list(dict.fromkeys(entry.service_id for entry in entries))
    defaults_map: Dict[int, ServiceDefaults] = dict(fetch_defaults(service_ids) or {})

    items = []
    total_duration = None
    total_price = None

    for counter, entry in enumerate(entries, start=1):
        defaults = defaults_map.get(entry.service_id) or ServiceDefaults()

        duration = defaults.duration
        price = defaults.price
        position = counter

        if isinstance(entry, ByIdWithOverrides):
            if entry.duration is not None:
                duration = entry.duration
            if entry.price is not None:
                price = entry.price
            if entry.position is not None:
                position = entry.position

        items.append(
            LineItem(
                service_id=entry.service_id,
                duration=duration,
                price=price,
                position=position,
            )
        )

        # running sums stay None until something contributes
        if duration is not None:
            total_duration = (total_duration or 0) + duration
        if price is not None:
            total_price = (total_price or 0.0) + price

    return NormalizedServices(
        services=items,
        total_duration=total_duration,
        total_price=total_price,
        main_service_id=items[0].service_id,
    )
