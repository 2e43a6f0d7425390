"""
Deleting a restaurant or table while a diner books it from another session.

The open-reservation check runs inside the delete transaction, after the
table rows are locked, so a reservation committed before that point always
blocks the delete instead of being removed by the cascade.
"""

from datetime import datetime, timezone

import pytest
from sqlalchemy.orm import sessionmaker

from tablebook.core.enums import RoleName
from tablebook.core.exceptions import ConflictException
from tablebook.database import Base, build_engine
from tablebook.models import DiningTable, Reservation, Restaurant
from tablebook.principal import Principal
from tablebook.services.booking_service import BookingService
from tablebook.services.notification_service import NotificationService
from tablebook.services.principal_resolver import DirectoryPrincipalResolver
from tablebook.services.restaurant_service import RestaurantService

SLOT = datetime(2025, 6, 1, 19, 0, tzinfo=timezone.utc)

ADMIN = Principal("admin-1", RoleName.ADMIN)
DINER = Principal("diner-1", RoleName.DINER)


@pytest.fixture
def file_engine(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'delete.db'}", connect_args={"timeout": 5})
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(file_engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=file_engine)


@pytest.fixture
def seeded(session_factory):
    with session_factory() as session:
        restaurant = Restaurant(name="Closing Soon", address="9 Last St", phone="555-0009", owner_id="op-1")
        session.add(restaurant)
        session.flush()
        table = DiningTable(code="Z1", capacity=4, restaurant_id=restaurant.id)
        session.add(table)
        session.commit()
        return restaurant.id, table.id


def _book_from_another_session(session_factory, table_id: int) -> None:
    with session_factory() as session:
        service = BookingService(
            session,
            notification_service=NotificationService(DirectoryPrincipalResolver(session), enabled=False),
        )
        service.create_reservation(DINER, table_id, SLOT)


@pytest.mark.parametrize("operation", ["delete_restaurant", "delete_table"])
def test_booking_that_lands_before_the_lock_blocks_the_delete(session_factory, seeded, operation):
    restaurant_id, table_id = seeded
    target_id = restaurant_id if operation == "delete_restaurant" else table_id

    with session_factory() as session:
        service = RestaurantService(session)
        lock_tables = service.table_repository.lock_tables

        def book_then_lock(**kwargs):
            _book_from_another_session(session_factory, table_id)
            return lock_tables(**kwargs)

        service.table_repository.lock_tables = book_then_lock

        with pytest.raises(ConflictException) as exc_info:
            getattr(service, operation)(ADMIN, target_id)

        assert exc_info.value.code == "ACTIVE_RESERVATIONS"

    with session_factory() as session:
        assert session.get(Restaurant, restaurant_id) is not None
        assert session.get(DiningTable, table_id) is not None
        assert session.query(Reservation).filter(Reservation.table_id == table_id).count() == 1


def test_delete_without_open_reservations_still_goes_through(session_factory, seeded):
    restaurant_id, table_id = seeded

    with session_factory() as session:
        RestaurantService(session).delete_restaurant(ADMIN, restaurant_id)

    with session_factory() as session:
        assert session.get(Restaurant, restaurant_id) is None
        assert session.get(DiningTable, table_id) is None
