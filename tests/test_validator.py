"""Tests for booking/validator.py"""

import copy
import unittest
from datetime import datetime

from booking.errors import (
    AppointmentNotFoundError,
    DurationTooShortError,
    InvalidDatetimeError,
    InvalidInputError,
    MissingFieldError,
    UnknownCustomerError,
    UnknownProviderError,
    UnknownServiceError,
)
from booking.validator import is_truthy, parse_datetime, validate
from tests.support import DatabaseTestCase


class ValidateTests(DatabaseTestCase):

    def _validate(self, appointment, **kwargs) -> None:
        kwargs.setdefault("minimum_duration", 10)
        validate(self.session, appointment, **kwargs)

    def test_valid_payload_passes(self) -> None:
        self._validate(self.payload(id_services=self.haircut.id))

    def test_validation_does_not_mutate_payload(self) -> None:
        appointment = self.payload(id_services=self.haircut.id)
        before = copy.deepcopy(appointment)

        self._validate(appointment)

        self.assertEqual(appointment, before)

    def test_unknown_id_is_not_found(self) -> None:
        with self.assertRaises(AppointmentNotFoundError):
            self._validate(self.payload(id=999))

    def test_missing_fields(self) -> None:
        for field in ("start_datetime", "end_datetime", "id_users_provider", "id_users_customer"):
            with self.subTest(field=field):
                with self.assertRaises(MissingFieldError):
                    self._validate(self.payload(**{field: None}))

    def test_service_or_services_required(self) -> None:
        with self.assertRaises(MissingFieldError):
            self._validate(self.payload(services=[]))

    def test_services_list_satisfies_service_requirement(self) -> None:
        self._validate(self.payload())

    def test_notes_required_only_when_configured(self) -> None:
        self._validate(self.payload(notes=""))

        with self.assertRaises(MissingFieldError):
            self._validate(self.payload(notes=""), require_notes=True)

    def test_invalid_start(self) -> None:
        with self.assertRaises(InvalidDatetimeError) as ctx:
            self._validate(self.payload(start_datetime="not a date"))
        self.assertIn("start", str(ctx.exception))

    def test_invalid_end(self) -> None:
        with self.assertRaises(InvalidDatetimeError) as ctx:
            self._validate(self.payload(end_datetime="2024-13-45 99:00"))
        self.assertIn("end", str(ctx.exception))

    def test_sub_minimum_duration(self) -> None:
        appointment = self.payload(
            start_datetime="2024-01-01T10:00:00",
            end_datetime="2024-01-01T10:05:00",
        )

        with self.assertRaises(DurationTooShortError) as ctx:
            self._validate(appointment, minimum_duration=10)
        self.assertIsInstance(ctx.exception, InvalidInputError)

    def test_exact_minimum_duration_is_accepted(self) -> None:
        self._validate(
            self.payload(end_datetime="2024-01-01T10:10:00"),
            minimum_duration=10,
        )

    def test_end_before_start_is_rejected(self) -> None:
        with self.assertRaises(DurationTooShortError):
            self._validate(self.payload(end_datetime="2024-01-01T09:00:00"))

    def test_provider_must_have_provider_role(self) -> None:
        with self.assertRaises(UnknownProviderError):
            self._validate(self.payload(id_users_provider=self.customer.id))

        with self.assertRaises(UnknownProviderError):
            self._validate(self.payload(id_users_provider=12345))

    def test_customer_must_have_customer_role(self) -> None:
        with self.assertRaises(UnknownCustomerError):
            self._validate(self.payload(id_users_customer=self.secretary.id))

    def test_primary_service_must_exist(self) -> None:
        with self.assertRaises(UnknownServiceError):
            self._validate(self.payload(id_services=4242))

    def test_every_line_item_service_must_exist(self) -> None:
        with self.assertRaises(UnknownServiceError):
            self._validate(self.payload(services=[self.haircut.id, {"service_id": 4242}]))

    def test_services_without_a_usable_entry_do_not_count(self) -> None:
        with self.assertRaises(MissingFieldError):
            self._validate(self.payload(services=["abc", 0, None]))

    def test_unavailability_skips_customer_and_service_checks(self) -> None:
        self._validate(
            self.payload(
                is_unavailability=True,
                id_users_customer=None,
                services=[],
                id_services=4242,
            )
        )

    def test_unavailability_still_checks_provider(self) -> None:
        with self.assertRaises(UnknownProviderError):
            self._validate(
                self.payload(is_unavailability="1", id_users_provider=self.customer.id)
            )


class HelperTests(unittest.TestCase):

    def test_parse_datetime_accepts_iso_and_space_separated(self) -> None:
        self.assertEqual(parse_datetime("2024-01-01T10:00:00"), datetime(2024, 1, 1, 10, 0))
        self.assertEqual(parse_datetime("2024-01-01 10:00:00"), datetime(2024, 1, 1, 10, 0))

    def test_parse_datetime_converts_aware_values_to_utc(self) -> None:
        self.assertEqual(
            parse_datetime("2024-01-01T10:00:00+02:00"),
            datetime(2024, 1, 1, 8, 0),
        )

    def test_parse_datetime_rejects_garbage(self) -> None:
        with self.assertRaises(InvalidDatetimeError):
            parse_datetime("tomorrow")

    def test_is_truthy(self) -> None:
        for value in (True, 1, "1", "true", "Yes", " on "):
            self.assertTrue(is_truthy(value), value)
        for value in (False, 0, None, "", "0", "false", "off"):
            self.assertFalse(is_truthy(value), value)


if __name__ == "__main__":
    unittest.main()
