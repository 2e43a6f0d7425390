from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from unittest.mock import Mock

import pytest
from sqlalchemy.exc import IntegrityError

from tablebook.core.exceptions import SlotUnavailableException
from tablebook.services.availability_checker import (
    SLOT_UNAVAILABLE_MESSAGE,
    AvailabilityChecker,
    is_slot_violation,
)

SLOT = datetime(2025, 6, 1, 19, 0, tzinfo=timezone.utc)


class _PgError(Exception):
    """Shape of a psycopg2 error: the constraint name lives on ``diag``."""

    def __init__(self, constraint_name):
        super().__init__(f"duplicate key value violates unique constraint \"{constraint_name}\"")
        self.diag = SimpleNamespace(constraint_name=constraint_name)


def _integrity_error(orig):
    return IntegrityError("INSERT INTO reservations ...", {}, orig)


class TestIsSlotViolation:
    def test_postgres_constraint_name(self):
        assert is_slot_violation(_integrity_error(_PgError("uq_reservations_active_slot")))
        assert not is_slot_violation(_integrity_error(_PgError("reservations_pkey")))

    def test_sqlite_reports_columns(self):
        orig = Exception("UNIQUE constraint failed: reservations.table_id, reservations.reserved_at")
        assert is_slot_violation(_integrity_error(orig))

    def test_other_constraints_are_not_slot_conflicts(self):
        orig = Exception("FOREIGN KEY constraint failed")
        assert not is_slot_violation(_integrity_error(orig))


@pytest.fixture
def checker():
    return AvailabilityChecker(Mock(), repository=Mock())


class TestAvailabilityChecker:
    def test_free_slot(self, checker):
        checker.repository.find_active_at.return_value = None
        check = checker.check_slot(3, SLOT)
        assert check.available
        assert check.source == "precheck"

    def test_naive_instants_are_treated_as_utc(self, checker):
        checker.repository.find_active_at.return_value = None
        checker.check_slot(3, datetime(2025, 6, 1, 19, 0))
        _, instant, _ = checker.repository.find_active_at.call_args.args
        assert instant == SLOT
        assert instant.tzinfo is not None

    def test_offset_instants_are_converted(self, checker):
        checker.repository.find_active_at.return_value = None
        paris = timezone(timedelta(hours=2))
        checker.check_slot(3, datetime(2025, 6, 1, 21, 0, tzinfo=paris))
        assert checker.repository.find_active_at.call_args.args[1] == SLOT

    def test_taken_slot_names_the_holder(self, checker):
        checker.repository.find_active_at.return_value = SimpleNamespace(id=42)
        check = checker.check_slot(3, SLOT)
        assert not check.available
        assert check.details()["conflicting_reservation_id"] == 42

    def test_excluded_reservation_is_forwarded(self, checker):
        checker.repository.find_active_at.return_value = None
        assert checker.is_available(3, SLOT, excluding_reservation_id=8)
        checker.repository.find_active_at.assert_called_once_with(3, SLOT, 8)

    def test_ensure_available_raises_same_error_for_both_paths(self, checker):
        checker.repository.find_active_at.return_value = SimpleNamespace(id=42)
        with pytest.raises(SlotUnavailableException) as precheck:
            checker.ensure_available(3, SLOT)

        raced = checker.classify_write_error(
            _integrity_error(_PgError("uq_reservations_active_slot")), 3, SLOT
        )
        constraint = checker.unavailable(raced)

        assert raced.source == "constraint"
        assert precheck.value.message == constraint.message == SLOT_UNAVAILABLE_MESSAGE
        assert precheck.value.code == constraint.code == "SLOT_UNAVAILABLE"
        assert constraint.status_code == 409

    def test_unrelated_integrity_error_is_not_classified(self, checker):
        assert checker.classify_write_error(_integrity_error(Exception("CHECK constraint failed")), 3, SLOT) is None
