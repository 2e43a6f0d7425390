# backend/tablebook/services/notification_service.py
"""
Notification boundary for reservation events.

Recipients are resolved on the calling thread (the lookup shares the
request's database session); delivery happens on a worker pool. Nothing
raised by resolution or delivery reaches the domain operation that
triggered the notification: failures are logged, counted and dropped.
"""

from __future__ import annotations

from concurrent.futures import Executor, Future, ThreadPoolExecutor
import logging
import threading
from typing import Callable, Optional

from ..core.config import settings
from ..models.reservation import Reservation
from ..models.restaurant import DiningTable, Restaurant
from ..monitoring.prometheus_metrics import prometheus_metrics
from .email import NotificationDispatcher, build_dispatcher
from .notification_templates import (
    DINER_RESERVATION_COMPLETED,
    DINER_RESERVATION_CONFIRMED,
    OPERATOR_RESERVATION_REQUESTED,
    NotificationTemplate,
    format_when,
)
from .principal_resolver import PrincipalResolver

logger = logging.getLogger(__name__)

_executor_lock = threading.Lock()
_shared_executor: Optional[ThreadPoolExecutor] = None


def get_notification_executor() -> ThreadPoolExecutor:
    """Process-wide worker pool for outbound notifications."""
    global _shared_executor
    with _executor_lock:
        if _shared_executor is None:
            _shared_executor = ThreadPoolExecutor(
                max_workers=settings.notification_workers,
                thread_name_prefix="notify",
            )
        return _shared_executor


def shutdown_notification_executor(wait: bool = True) -> None:
    global _shared_executor
    with _executor_lock:
        if _shared_executor is not None:
            _shared_executor.shutdown(wait=wait)
            _shared_executor = None


class NotificationService:
    """Fire-and-forget delivery of reservation notifications."""

    def __init__(
        self,
        resolver: PrincipalResolver,
        dispatcher: Optional[NotificationDispatcher] = None,
        executor: Optional[Executor] = None,
        enabled: Optional[bool] = None,
    ):
        self.resolver = resolver
        self.dispatcher = dispatcher or build_dispatcher()
        self.executor = executor or get_notification_executor()
        self.enabled = settings.notifications_enabled if enabled is None else enabled

    def reservation_requested(
        self, reservation: Reservation, table: DiningTable, restaurant: Restaurant
    ) -> Optional[Future]:
        """Tell the restaurant's operator about a new PENDING reservation."""
        return self._notify(
            OPERATOR_RESERVATION_REQUESTED, lambda: restaurant.owner_id, reservation, table, restaurant
        )

    def reservation_confirmed(
        self, reservation: Reservation, table: DiningTable, restaurant: Restaurant
    ) -> Optional[Future]:
        return self._notify(
            DINER_RESERVATION_CONFIRMED, lambda: reservation.diner_id, reservation, table, restaurant
        )

    def reservation_completed(
        self, reservation: Reservation, table: DiningTable, restaurant: Restaurant
    ) -> Optional[Future]:
        return self._notify(
            DINER_RESERVATION_COMPLETED, lambda: reservation.diner_id, reservation, table, restaurant
        )

    def _notify(
        self,
        template: NotificationTemplate,
        recipient_of: Callable[[], Optional[str]],
        reservation: Reservation,
        table: DiningTable,
        restaurant: Restaurant,
    ) -> Optional[Future]:
        if not self.enabled:
            prometheus_metrics.record_notification(template.type, "skipped")
            return None

        # Runs after the triggering commit: reading expired rows or resolving
        # the recipient can still fail, and that must not reach the caller
        try:
            return self._submit(template, recipient_of(), reservation, table, restaurant)
        except Exception as e:
            logger.error(f"Could not prepare {template.type}: {str(e)}")
            prometheus_metrics.record_notification(template.type, "failed")
            return None

    def _submit(
        self,
        template: NotificationTemplate,
        principal_id: Optional[str],
        reservation: Reservation,
        table: DiningTable,
        restaurant: Restaurant,
    ) -> Optional[Future]:
        if principal_id is None:
            logger.info(
                f"Restaurant {restaurant.id} is unclaimed; no operator to notify "
                f"for reservation {reservation.id}"
            )
            prometheus_metrics.record_notification(template.type, "skipped")
            return None

        contact = self.resolver.resolve(principal_id)
        if contact is None:
            logger.warning(f"No address for {principal_id}; skipping {template.type}")
            prometheus_metrics.record_notification(template.type, "skipped")
            return None

        subject, body = template.render(
            reservation_id=reservation.id,
            restaurant_name=restaurant.name,
            table_code=table.code,
            when=format_when(reservation.reserved_at),
        )
        return self.executor.submit(self._deliver, template.type, contact.email, subject, body)

    def _deliver(self, event_type: str, recipient: str, subject: str, body: str) -> bool:
        try:
            delivered = bool(self.dispatcher.send(recipient, subject, body))
        except Exception as e:
            logger.error(f"Notification {event_type} to {recipient} failed: {str(e)}")
            prometheus_metrics.record_notification(event_type, "failed")
            return False

        if not delivered:
            logger.warning(f"Notification {event_type} to {recipient} was not accepted")
        prometheus_metrics.record_notification(event_type, "sent" if delivered else "failed")
        return delivered
