"""Shared database fixture for the booking tests."""

import unittest

from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, Session

from booking.config import Settings
from booking.db import make_engine
from booking.models import Service, User


class DatabaseTestCase(unittest.TestCase):
    """In-memory database seeded with two providers, a customer and three services."""

    def setUp(self) -> None:
        self.engine = make_engine("sqlite://", poolclass=StaticPool)
        SQLModel.metadata.create_all(self.engine)
        self.session = Session(self.engine)

        self.settings = Settings(
            _env_file=None,
            EVENT_MINIMUM_DURATION=10,
            REQUIRE_NOTES=False,
        )

        self.provider = User(first_name="Ada", email="ada@example.com", role="provider")
        self.other_provider = User(first_name="Bo", email="bo@example.com", role="provider")
        self.customer = User(first_name="Cy", email="cy@example.com", role="customer")
        self.secretary = User(first_name="Di", email="di@example.com", role="secretary")
        self.haircut = Service(name="Haircut", duration=30, price=20.0, category="hair")
        self.beard = Service(name="Beard trim", duration=15, price=10.0, category="hair")
        self.consult = Service(name="Consultation")

        self.session.add_all([
            self.provider,
            self.other_provider,
            self.customer,
            self.secretary,
            self.haircut,
            self.beard,
            self.consult,
        ])
        self.session.commit()
        for record in (
            self.provider,
            self.other_provider,
            self.customer,
            self.secretary,
            self.haircut,
            self.beard,
            self.consult,
        ):
            self.session.refresh(record)

    def tearDown(self) -> None:
        self.session.close()
        SQLModel.metadata.drop_all(self.engine)
        self.engine.dispose()

    def payload(self, **overrides) -> dict:
        """A valid booking payload for the seeded provider and customer."""
        data = {
            "start_datetime": "2024-01-01T10:00:00",
            "end_datetime": "2024-01-01T10:45:00",
            "id_users_provider": self.provider.id,
            "id_users_customer": self.customer.id,
            "notes": "First visit",
            "location": "Main street",
            "status": "Booked",
            "services": [self.haircut.id, self.beard.id],
        }
        data.update(overrides)
        return data
