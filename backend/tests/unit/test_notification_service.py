from concurrent.futures import Executor, Future
from datetime import datetime, timezone
from types import SimpleNamespace
from unittest.mock import Mock

import pytest

from tablebook.core.enums import RoleName
from tablebook.core.exceptions import DependencyFailureException
from tablebook.services.notification_service import NotificationService
from tablebook.services.principal_resolver import ResolvedPrincipal


class InlineExecutor(Executor):
    def submit(self, fn, /, *args, **kwargs):
        future = Future()
        future.set_result(fn(*args, **kwargs))
        return future


RESERVATION = SimpleNamespace(id=17, diner_id="diner-1", reserved_at=datetime(2025, 6, 1, 19, 0, tzinfo=timezone.utc))
TABLE = SimpleNamespace(id=3, code="T1")
RESTAURANT = SimpleNamespace(id=1, name="Bistro Uno", owner_id="op-1")


def _resolver(**addresses):
    resolver = Mock()
    resolver.resolve.side_effect = lambda pid: (
        ResolvedPrincipal(pid, addresses[pid], RoleName.DINER) if pid in addresses else None
    )
    return resolver


@pytest.fixture
def dispatcher():
    dispatcher = Mock()
    dispatcher.send.return_value = True
    return dispatcher


def _service(resolver, dispatcher, enabled=True):
    return NotificationService(resolver, dispatcher=dispatcher, executor=InlineExecutor(), enabled=enabled)


def test_confirmation_goes_to_the_diner(dispatcher):
    service = _service(_resolver(**{"diner-1": "dana@diner.test"}), dispatcher)

    future = service.reservation_confirmed(RESERVATION, TABLE, RESTAURANT)

    assert future.result() is True
    recipient, subject, body = dispatcher.send.call_args.args
    assert recipient == "dana@diner.test"
    assert "Bistro Uno" in subject
    assert "#17" in body and "2025-06-01 19:00 UTC" in body


def test_request_goes_to_the_operator(dispatcher):
    service = _service(_resolver(**{"op-1": "owner@bistro.test"}), dispatcher)
    service.reservation_requested(RESERVATION, TABLE, RESTAURANT)
    assert dispatcher.send.call_args.args[0] == "owner@bistro.test"


def test_unclaimed_restaurant_has_nobody_to_notify(dispatcher):
    service = _service(_resolver(), dispatcher)
    unclaimed = SimpleNamespace(id=2, name="Nowhere", owner_id=None)
    assert service.reservation_requested(RESERVATION, TABLE, unclaimed) is None
    dispatcher.send.assert_not_called()


def test_unknown_recipient_is_skipped(dispatcher):
    service = _service(_resolver(), dispatcher)
    assert service.reservation_completed(RESERVATION, TABLE, RESTAURANT) is None
    dispatcher.send.assert_not_called()


def test_disabled_service_sends_nothing(dispatcher):
    service = _service(_resolver(**{"diner-1": "dana@diner.test"}), dispatcher, enabled=False)
    assert service.reservation_confirmed(RESERVATION, TABLE, RESTAURANT) is None
    dispatcher.send.assert_not_called()


def test_dispatcher_failure_is_swallowed(dispatcher):
    dispatcher.send.side_effect = DependencyFailureException("Email delivery failed")
    service = _service(_resolver(**{"diner-1": "dana@diner.test"}), dispatcher)

    future = service.reservation_confirmed(RESERVATION, TABLE, RESTAURANT)

    assert future.result() is False


def test_resolver_failure_is_swallowed(dispatcher):
    resolver = Mock()
    resolver.resolve.side_effect = RuntimeError("directory down")
    service = _service(resolver, dispatcher)

    assert service.reservation_confirmed(RESERVATION, TABLE, RESTAURANT) is None
    dispatcher.send.assert_not_called()


def test_rejected_delivery_reports_false(dispatcher):
    dispatcher.send.return_value = False
    service = _service(_resolver(**{"diner-1": "dana@diner.test"}), dispatcher)
    assert service.reservation_confirmed(RESERVATION, TABLE, RESTAURANT).result() is False


class ExpiredRestaurant:
    """Stands in for a row whose refresh fails after the triggering commit."""

    id = 1
    owner_id = "op-1"

    @property
    def name(self):
        raise RuntimeError("connection lost while refreshing restaurant")


def test_failure_while_preparing_the_message_is_swallowed(dispatcher):
    service = _service(_resolver(**{"op-1": "owner@bistro.test"}), dispatcher)

    assert service.reservation_requested(RESERVATION, TABLE, ExpiredRestaurant()) is None
    dispatcher.send.assert_not_called()


def test_failure_reading_the_recipient_is_swallowed(dispatcher):
    service = _service(_resolver(), dispatcher)

    class Unreadable:
        id = 9

        @property
        def owner_id(self):
            raise RuntimeError("row vanished")

    assert service.reservation_requested(RESERVATION, TABLE, Unreadable()) is None
    dispatcher.send.assert_not_called()
