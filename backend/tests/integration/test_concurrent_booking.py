"""
Many diners racing for one slot.

Each worker has its own session and connection to a file-backed SQLite
database, so the only thing that can serialize them is the partial unique
index on reservations.
"""

from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
import threading
from unittest.mock import Mock

import pytest
from sqlalchemy.orm import sessionmaker

from tablebook.core.enums import RoleName
from tablebook.core.exceptions import SlotUnavailableException
from tablebook.database import Base, build_engine
from tablebook.models import DiningTable, Reservation, Restaurant
from tablebook.models.reservation import ReservationStatus
from tablebook.principal import Principal
from tablebook.services.booking_service import BookingService
from tablebook.services.notification_service import NotificationService
from tablebook.services.principal_resolver import DirectoryPrincipalResolver

SLOT = datetime(2025, 6, 1, 19, 0, tzinfo=timezone.utc)

WORKERS = 8


@pytest.fixture
def file_engine(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'race.db'}", connect_args={"timeout": 30})
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def race_table_id(file_engine):
    Session = sessionmaker(bind=file_engine)
    with Session() as session:
        restaurant = Restaurant(name="Race Bistro", address="1 Track", phone="555-0001", owner_id="op-1")
        session.add(restaurant)
        session.flush()
        table = DiningTable(code="R1", capacity=2, restaurant_id=restaurant.id)
        session.add(table)
        session.commit()
        return table.id


def _book(file_engine, barrier: threading.Barrier, table_id: int, diner_id: str) -> str:
    Session = sessionmaker(autocommit=False, autoflush=False, bind=file_engine)
    session = Session()
    try:
        service = BookingService(
            session,
            notification_service=NotificationService(DirectoryPrincipalResolver(session), enabled=False),
        )
        barrier.wait()
        try:
            service.create_reservation(Principal(diner_id, RoleName.DINER), table_id, SLOT)
        except SlotUnavailableException:
            return "unavailable"
        return "booked"
    finally:
        session.close()


def test_exactly_one_diner_wins_the_slot(file_engine, race_table_id):
    barrier = threading.Barrier(WORKERS)

    with ThreadPoolExecutor(max_workers=WORKERS) as pool:
        futures = [
            pool.submit(_book, file_engine, barrier, race_table_id, f"diner-{n}") for n in range(WORKERS)
        ]
        outcomes = [future.result(timeout=60) for future in futures]

    assert outcomes.count("booked") == 1
    assert outcomes.count("unavailable") == WORKERS - 1

    Session = sessionmaker(bind=file_engine)
    with Session() as session:
        active = (
            session.query(Reservation)
            .filter(
                Reservation.table_id == race_table_id,
                Reservation.status != ReservationStatus.CANCELLED.value,
            )
            .all()
        )
    assert len(active) == 1
    assert active[0].reserved_at == SLOT


def test_writer_that_passed_the_advisory_check_still_loses_to_a_committed_booking(file_engine, race_table_id):
    Session = sessionmaker(autocommit=False, autoflush=False, bind=file_engine)
    with Session() as first, Session() as second:
        winner = BookingService(
            first, notification_service=NotificationService(DirectoryPrincipalResolver(first), enabled=False)
        )
        loser = BookingService(
            second, notification_service=NotificationService(DirectoryPrincipalResolver(second), enabled=False)
        )
        # The loser's check ran before the winner committed
        loser.availability_checker.ensure_available = Mock()

        winner.create_reservation(Principal("diner-a", RoleName.DINER), race_table_id, SLOT)

        with pytest.raises(SlotUnavailableException) as exc_info:
            loser.create_reservation(Principal("diner-b", RoleName.DINER), race_table_id, SLOT)

        assert exc_info.value.code == "SLOT_UNAVAILABLE"
        assert exc_info.value.details["table_id"] == race_table_id
        # The session is usable again after the rollback
        assert second.query(Reservation).filter(Reservation.table_id == race_table_id).count() == 1
