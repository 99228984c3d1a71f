# booking/schemas.py

from enum import Enum
from typing import List, Literal, Optional, Union

from pydantic import BaseModel, Field


class UserRole(str, Enum):
    provider = "provider"
    customer = "customer"
    admin = "admin"
    secretary = "secretary"


class ById(BaseModel):
    """A service referenced by id only; everything else comes from the catalog."""

    kind: Literal["by_id"] = "by_id"
    service_id: int


class ByIdWithOverrides(BaseModel):
    kind: Literal["by_id_with_overrides"] = "by_id_with_overrides"
    service_id: int
    duration: Optional[int] = None
    price: Optional[float] = None
    position: Optional[int] = None


ServiceEntry = Union[ById, ByIdWithOverrides]


class ServiceDefaults(BaseModel):
    duration: Optional[int] = None
    price: Optional[float] = None


class LineItem(BaseModel):
    service_id: int
    duration: Optional[int] = None
    price: Optional[float] = None
    position: int


class NormalizedServices(BaseModel):
    services: List[LineItem] = Field(default_factory=list)
    total_duration: Optional[int] = None
    total_price: Optional[float] = None
    main_service_id: Optional[int] = None
