# booking/models.py

from typing import Optional
from datetime import datetime

from sqlalchemy import Column, ForeignKey, Integer
from sqlmodel import SQLModel, Field


class Appointment(SQLModel, table=True):
    __tablename__ = "appointments"

    id: Optional[int] = Field(default=None, primary_key=True)

    book_datetime: Optional[datetime] = None
    start_datetime: Optional[datetime] = Field(default=None, index=True)
    end_datetime: Optional[datetime] = Field(default=None, index=True)
    location: Optional[str] = None
    color: Optional[str] = None
    status: Optional[str] = None
    notes: Optional[str] = None
    hash: Optional[str] = Field(default=None, index=True)
    is_unavailability: bool = False

    id_users_provider: Optional[int] = Field(default=None, foreign_key="users.id", index=True)
    id_users_customer: Optional[int] = Field(default=None, foreign_key="users.id")
    id_services: Optional[int] = Field(default=None, foreign_key="services.id")

    total_duration: Optional[int] = None  # minutes
    total_price: Optional[float] = None

    id_google_calendar: Optional[str] = None
    id_caldav_calendar: Optional[str] = None

    create_datetime: Optional[datetime] = None
    update_datetime: Optional[datetime] = None


class AppointmentService(SQLModel, table=True):
    """One service line item of an appointment."""

    __tablename__ = "appointment_services"

    id: Optional[int] = Field(default=None, primary_key=True)

    appointment_id: int = Field(
        sa_column=Column(
            Integer,
            ForeignKey("appointments.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        )
    )
    service_id: int = Field(foreign_key="services.id")
    duration: Optional[int] = None  # overrides the catalog duration
    price: Optional[float] = None  # overrides the catalog price
    position: int = 1


class Service(SQLModel, table=True):
    __tablename__ = "services"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    duration: Optional[int] = None  # minutes
    price: Optional[float] = None
    category: Optional[str] = None


class User(SQLModel, table=True):
    __tablename__ = "users"

    id: Optional[int] = Field(default=None, primary_key=True)
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = Field(default=None, index=True)
    role: str  # provider, customer, admin or secretary
