# backend/tests/conftest.py
"""
Pytest configuration for the Tablebook backend.

Every test gets a fresh in-memory SQLite database (shared across threads
through a StaticPool so the FastAPI TestClient sees the same data), the
full schema including the partial unique slot index, and notification
plumbing that delivers synchronously into a recording dispatcher.
"""

import os

# CRITICAL: Set testing mode BEFORE any tablebook imports!
os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.pop("RESEND_API_KEY", None)

# CRITICAL: Mock Resend API globally to prevent real emails in ANY test
import unittest.mock

global_resend_mock = unittest.mock.patch("resend.Emails.send")
mocked_send = global_resend_mock.start()
mocked_send.return_value = {"id": "test-email-id"}

from concurrent.futures import Executor, Future
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Tuple

from fastapi.testclient import TestClient
import pytest
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from tablebook.api.dependencies.database import get_db
from tablebook.api.dependencies.services import get_notification_service
from tablebook.core.enums import RoleName
from tablebook.database import Base, build_engine
from tablebook.main import app
from tablebook.models import DiningTable, PrincipalContact, Reservation, Restaurant
from tablebook.principal import Principal
from tablebook.services.booking_service import BookingService
from tablebook.services.notification_service import NotificationService
from tablebook.services.principal_resolver import DirectoryPrincipalResolver
from tablebook.services.restaurant_service import RestaurantService
from tablebook.services.review_service import ReviewService

SLOT = datetime(2025, 6, 1, 19, 0, tzinfo=timezone.utc)

# ============================================================================
# Notification doubles
# ============================================================================


class SyncExecutor(Executor):
    """Runs submitted work inline so tests can assert on delivery."""

    def submit(self, fn: Callable[..., Any], /, *args: Any, **kwargs: Any) -> Future:
        future: Future = Future()
        try:
            future.set_result(fn(*args, **kwargs))
        except BaseException as exc:  # pragma: no cover - surfaced via the future
            future.set_exception(exc)
        return future


class RecordingDispatcher:
    """NotificationDispatcher that keeps every message it is asked to send."""

    def __init__(self, fail_with: Exception | None = None) -> None:
        self.sent: List[Tuple[str, str, str]] = []
        self.fail_with = fail_with

    def send(self, recipient: str, subject: str, body: str) -> bool:
        if self.fail_with is not None:
            raise self.fail_with
        self.sent.append((recipient, subject, body))
        return True

    def recipients(self) -> List[str]:
        return [recipient for recipient, _, _ in self.sent]


# ============================================================================
# Database
# ============================================================================


@pytest.fixture
def engine():
    test_engine = build_engine("sqlite://", poolclass=StaticPool)
    Base.metadata.create_all(bind=test_engine)
    yield test_engine
    Base.metadata.drop_all(bind=test_engine)
    test_engine.dispose()


@pytest.fixture
def db(engine) -> Session:
    """Create a new database session for each test."""
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    yield session
    session.rollback()
    session.close()


# ============================================================================
# Principals
# ============================================================================


@pytest.fixture
def admin() -> Principal:
    return Principal(id="admin-1", role=RoleName.ADMIN)


@pytest.fixture
def operator() -> Principal:
    return Principal(id="op-1", role=RoleName.OPERATOR)


@pytest.fixture
def other_operator() -> Principal:
    return Principal(id="op-2", role=RoleName.OPERATOR)


@pytest.fixture
def diner() -> Principal:
    return Principal(id="diner-1", role=RoleName.DINER)


@pytest.fixture
def other_diner() -> Principal:
    return Principal(id="diner-2", role=RoleName.DINER)


@pytest.fixture
def contacts(db: Session) -> Dict[str, PrincipalContact]:
    """Directory entries for the principals above."""
    rows = {
        "op-1": PrincipalContact(principal_id="op-1", email="owner@bistro.test", role="restaurant_operator"),
        "op-2": PrincipalContact(principal_id="op-2", email="owner@trattoria.test", role="restaurant_operator"),
        "diner-1": PrincipalContact(principal_id="diner-1", email="dana@diner.test", role="diner"),
        "diner-2": PrincipalContact(principal_id="diner-2", email="dev@diner.test", role="diner"),
    }
    db.add_all(rows.values())
    db.commit()
    return rows


# ============================================================================
# Restaurants, tables and reservations
# ============================================================================


@pytest.fixture
def restaurant(db: Session) -> Restaurant:
    bistro = Restaurant(name="Bistro Uno", address="1 Main St", phone="555-0100", owner_id="op-1")
    db.add(bistro)
    db.commit()
    return bistro


@pytest.fixture
def table(db: Session, restaurant: Restaurant) -> DiningTable:
    t1 = DiningTable(code="T1", capacity=4, restaurant_id=restaurant.id)
    db.add(t1)
    db.commit()
    return t1


@pytest.fixture
def second_table(db: Session, restaurant: Restaurant) -> DiningTable:
    t2 = DiningTable(code="T2", capacity=2, restaurant_id=restaurant.id)
    db.add(t2)
    db.commit()
    return t2


@pytest.fixture
def other_restaurant(db: Session) -> Restaurant:
    trattoria = Restaurant(name="Trattoria Due", address="2 Side St", phone="555-0200", owner_id="op-2")
    db.add(trattoria)
    db.commit()
    return trattoria


@pytest.fixture
def other_table(db: Session, other_restaurant: Restaurant) -> DiningTable:
    t9 = DiningTable(code="T9", capacity=6, restaurant_id=other_restaurant.id)
    db.add(t9)
    db.commit()
    return t9


@pytest.fixture
def make_reservation(db: Session) -> Callable[..., Reservation]:
    """Insert a reservation directly, bypassing the service checks."""

    def _make(table: DiningTable, diner_id: str = "diner-1", reserved_at: datetime = SLOT, status: str = "PENDING"):
        reservation = Reservation(table_id=table.id, diner_id=diner_id, reserved_at=reserved_at, status=status)
        db.add(reservation)
        db.commit()
        return reservation

    return _make


# ============================================================================
# Services
# ============================================================================


@pytest.fixture
def dispatcher() -> RecordingDispatcher:
    return RecordingDispatcher()


@pytest.fixture
def notification_service(db: Session, dispatcher: RecordingDispatcher) -> NotificationService:
    return NotificationService(
        DirectoryPrincipalResolver(db), dispatcher=dispatcher, executor=SyncExecutor(), enabled=True
    )


@pytest.fixture
def booking_service(db: Session, notification_service: NotificationService) -> BookingService:
    return BookingService(db, notification_service=notification_service)


@pytest.fixture
def review_service(db: Session) -> ReviewService:
    return ReviewService(db)


@pytest.fixture
def restaurant_service(db: Session) -> RestaurantService:
    return RestaurantService(db)


# ============================================================================
# HTTP
# ============================================================================


def auth_headers(principal: Principal) -> Dict[str, str]:
    return {"X-Principal-Id": principal.id, "X-Principal-Role": principal.role.value}


@pytest.fixture
def client(db: Session, notification_service: NotificationService):
    """Create a test client bound to the test session."""

    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_notification_service] = lambda: notification_service

    test_client = TestClient(app)
    yield test_client

    app.dependency_overrides.clear()
    test_client.close()


@pytest.fixture
def headers_for() -> Callable[[Principal], Dict[str, str]]:
    return auth_headers
