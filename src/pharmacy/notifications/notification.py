"""Order notifications — the payload handed to the notification dispatcher.

Lifecycle operations build an `OrderNotification` after their primary write
has been persisted and pass it to an injected `NotificationDispatcher`.
Delivery is best-effort: dispatchers never report failure back to the
lifecycle operation that triggered them.
"""

import os
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum

from pharmacy.shared.money import round_money


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class NotificationKind(Enum):
    ORDER_PLACED = "OrderPlaced"
    ORDER_DELIVERED = "OrderDelivered"
    ORDER_CANCELLED = "OrderCancelled"


class NotificationChannel(Enum):
    EMAIL = "Email"
    PUSH = "Push"


def default_currency() -> str:
    return os.getenv("DEFAULT_CURRENCY", "USD")


# ---------------------------------------------------------------------------
# Payload
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class OrderNotification:
    """Rendered order summary addressed to the order's owner."""

    kind: NotificationKind
    order_id: str
    recipient_id: str
    amount: float
    recipient_name: str = ""
    email: str = ""
    device_tokens: tuple[str, ...] = ()
    currency: str = field(default_factory=default_currency)
    items: tuple[dict, ...] = ()

    @classmethod
    def for_order(cls, kind: NotificationKind, order, identity) -> "OrderNotification":
        """Summarize `order` for `identity`, the customer who owns it."""
        return cls(
            kind=kind,
            order_id=str(order.id),
            recipient_id=str(order.user_id),
            amount=round_money(order.total_amount),
            currency=order.currency or default_currency(),
            recipient_name=identity.name if identity else "",
            email=identity.email if identity else "",
            device_tokens=tuple(identity.device_tokens) if identity else (),
            items=tuple(
                {
                    "name": item.name or str(item.product_id),
                    "quantity": item.quantity,
                    "unit_price": round_money(item.unit_price),
                }
                for item in order.items
            ),
        )

    def context(self) -> dict:
        """Template context for rendering this notification."""
        return {
            "order_id": self.order_id,
            "recipient_name": self.recipient_name,
            "amount": f"{self.amount:.2f}",
            "currency": self.currency,
            "items": list(self.items),
        }


class NotificationDispatcher(ABC):
    """Accepts order notifications for fire-and-forget delivery."""

    @abstractmethod
    def dispatch(self, notification: OrderNotification) -> None: ...
