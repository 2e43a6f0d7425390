from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from ..core.constants import BRAND_NAME


@dataclass(frozen=True)
class NotificationTemplate:
    type: str
    subject_template: str
    body_template: str

    def render(self, **context: Any) -> tuple[str, str]:
        return (
            self.subject_template.format(brand=BRAND_NAME, **context),
            self.body_template.format(brand=BRAND_NAME, **context),
        )


# Operator templates
OPERATOR_RESERVATION_REQUESTED = NotificationTemplate(
    type="reservation_requested",
    subject_template="New reservation request at {restaurant_name}",
    body_template=(
        "<p>A diner requested table <strong>{table_code}</strong> at "
        "{restaurant_name} for {when}.</p>"
        "<p>Reservation #{reservation_id} is waiting for your confirmation.</p>"
    ),
)

# Diner templates
DINER_RESERVATION_CONFIRMED = NotificationTemplate(
    type="reservation_confirmed",
    subject_template="Your table at {restaurant_name} is confirmed",
    body_template=(
        "<p>Good news! Your reservation #{reservation_id} at {restaurant_name} "
        "(table {table_code}) for {when} is confirmed.</p>"
    ),
)

DINER_RESERVATION_COMPLETED = NotificationTemplate(
    type="reservation_completed",
    subject_template="Thanks for dining at {restaurant_name}",
    body_template=(
        "<p>We hope you enjoyed your visit on {when}.</p>"
        "<p>You can now leave a review for reservation #{reservation_id} on {brand}.</p>"
    ),
)


def format_when(instant: datetime) -> str:
    return instant.strftime("%Y-%m-%d %H:%M UTC")
