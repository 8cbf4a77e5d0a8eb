"""Order aggregate (CQRS) — the authoritative record of a placed order.

Prices, the delivery address and the masked payment method are captured
once, when the order is placed, and are never re-read from the catalogue or
the customer record afterwards. The total is computed from the captured
line items at placement and is never recomputed.

State Machine:
    PENDING → PAID → PROCESSING → COMPLETED → DELIVERED
    CANCELLED (by the owner, from PENDING, PAID, PROCESSING)
    DELIVERED and CANCELLED are terminal; only a staff status correction
    may still touch them.
"""

import json
from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import (
    DateTime,
    Float,
    HasMany,
    Identifier,
    Integer,
    String,
    ValueObject,
)

from pharmacy.domain import pharmacy
from pharmacy.ordering.events import (
    OrderCancelled,
    OrderDelivered,
    OrderPlaced,
    OrderStatusUpdated,
)
from pharmacy.shared.errors import AlreadyDelivered, InvalidTransition
from pharmacy.shared.money import line_total, round_money, total_of


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PENDING = "pending"
    PAID = "paid"
    PROCESSING = "processing"
    COMPLETED = "completed"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class DeliveryStatus(Enum):
    """Canonical delivery labels. Staff may still store any free-text label."""

    IN_PROGRESS = "In Progress"
    DELIVERED = "Delivered"
    CANCELLED = "Cancelled"


# States from which the owner may cancel
_CANCELLABLE_STATES = {
    OrderStatus.PENDING,
    OrderStatus.PAID,
    OrderStatus.PROCESSING,
}

_TERMINAL_STATES = {OrderStatus.DELIVERED, OrderStatus.CANCELLED}

# States (or delivery labels) after which the customer may review the order
_REVIEWABLE_STATES = {OrderStatus.DELIVERED, OrderStatus.COMPLETED}
_REVIEWABLE_LABELS = {"delivered", "completed"}


def parse_status(value) -> OrderStatus:
    """Parse a status string, raising ValidationError for unknown values."""
    try:
        return OrderStatus(str(value).strip().lower())
    except ValueError:
        allowed = ", ".join(s.value for s in OrderStatus)
        raise ValidationError({"status": [f"Unknown status '{value}'. Allowed: {allowed}"]})


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@pharmacy.value_object(part_of="Order")
class AddressSnapshot:
    """Delivery address copied verbatim from the customer at placement time."""

    full_name = String(max_length=255)
    phone = String(max_length=30)
    line1 = String(required=True, max_length=255)
    line2 = String(max_length=255)
    city = String(max_length=100)
    zip = String(max_length=20)


@pharmacy.value_object(part_of="Order")
class PaymentSnapshot:
    """Masked payment method copied at placement time. Never holds a full card number."""

    card_holder_name = String(max_length=255)
    masked_card_number = String(required=True, max_length=30)
    brand = String(max_length=30)
    expiry = String(max_length=7)


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@pharmacy.entity(part_of="Order")
class OrderItem:
    """A line item with its unit price frozen at placement."""

    product_id = Identifier(required=True)
    name = String(max_length=255)
    quantity = Integer(required=True, min_value=1)
    unit_price = Float(required=True, min_value=0.0)

    @property
    def subtotal(self) -> float:
        return round_money(line_total(self.unit_price, self.quantity))


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@pharmacy.aggregate
class Order:
    user_id = Identifier(required=True)
    items = HasMany(OrderItem)
    total_amount = Float(default=0.0)
    currency = String(max_length=3, default="USD")
    status = String(choices=OrderStatus, default=OrderStatus.PAID.value)
    delivery_status = String(max_length=50, default=DeliveryStatus.IN_PROGRESS.value)
    address = ValueObject(AddressSnapshot)
    payment = ValueObject(PaymentSnapshot)
    created_at = DateTime()
    updated_at = DateTime()
    delivered_at = DateTime()
    cancelled_at = DateTime()

    @invariant.post
    def total_matches_line_items(self):
        if not self.items:
            return
        expected = round_money(total_of(line_total(i.unit_price, i.quantity) for i in self.items))
        if round_money(self.total_amount) != expected:
            raise ValidationError({"total_amount": [f"Total {self.total_amount} does not match line items ({expected})"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def place(cls, user_id, lines, address, payment, currency="USD"):
        """Record a paid order.

        Args:
            user_id: The owning customer.
            lines: List of dicts with product_id, name, quantity, unit_price.
                   Prices must already be resolved from the catalogue.
            address: Dict with full_name, phone, line1, line2, city, zip.
            payment: Dict with card_holder_name, masked_card_number, brand, expiry.
        """
        now = datetime.now(UTC)
        items = [
            OrderItem(
                product_id=str(line["product_id"]),
                name=line.get("name"),
                quantity=line["quantity"],
                unit_price=round_money(line["unit_price"]),
            )
            for line in lines
        ]
        total = round_money(total_of(line_total(item.unit_price, item.quantity) for item in items))

        order = cls(
            user_id=str(user_id),
            items=items,
            total_amount=total,
            currency=currency,
            status=OrderStatus.PAID.value,
            delivery_status=DeliveryStatus.IN_PROGRESS.value,
            address=AddressSnapshot(**_pick(address, _ADDRESS_FIELDS)),
            payment=PaymentSnapshot(**_pick(payment, _PAYMENT_FIELDS)),
            created_at=now,
            updated_at=now,
        )
        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                user_id=str(user_id),
                items=json.dumps(
                    [
                        {
                            "product_id": str(item.product_id),
                            "name": item.name,
                            "quantity": item.quantity,
                            "unit_price": item.unit_price,
                        }
                        for item in items
                    ]
                ),
                item_count=len(items),
                total_amount=total,
                currency=currency,
                placed_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    def is_owned_by(self, user_id) -> bool:
        return str(self.user_id) == str(user_id)

    def contains_product(self, product_id) -> bool:
        return any(str(item.product_id) == str(product_id) for item in self.items)

    @property
    def is_reviewable(self) -> bool:
        """True once the order reached a delivered or completed state."""
        if self.status in {s.value for s in _REVIEWABLE_STATES}:
            return True
        return (self.delivery_status or "").strip().lower() in _REVIEWABLE_LABELS

    @property
    def is_terminal(self) -> bool:
        """Delivered and cancelled orders accept no further lifecycle transition."""
        return OrderStatus(self.status) in _TERMINAL_STATES

    @property
    def delivery_label_indicates_delivery(self) -> bool:
        return "deliver" in (self.delivery_status or "").lower()

    # -------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------
    def cancel(self):
        """Owner cancellation. Only pending, paid and processing orders can be cancelled."""
        current = OrderStatus(self.status)
        if current not in _CANCELLABLE_STATES:
            raise InvalidTransition({"status": [f"Cannot cancel an order in status {current.value}"]})

        now = datetime.now(UTC)
        self.status = OrderStatus.CANCELLED.value
        self.delivery_status = DeliveryStatus.CANCELLED.value
        self.cancelled_at = now
        self.updated_at = now

        self.raise_(
            OrderCancelled(
                order_id=str(self.id),
                user_id=str(self.user_id),
                previous_status=current.value,
                cancelled_at=now,
            )
        )

    def update_status(self, status=None, delivery_status=None):
        """Staff correction: assign status and/or delivery label without a transition check."""
        if status is None and delivery_status is None:
            raise ValidationError({"status": ["Provide a status or a delivery status"]})

        previous_status = self.status
        previous_delivery_status = self.delivery_status

        if status is not None:
            self.status = parse_status(status).value
        if delivery_status is not None:
            label = str(delivery_status).strip()
            if not label:
                raise ValidationError({"delivery_status": ["Delivery status cannot be blank"]})
            self.delivery_status = label

        now = datetime.now(UTC)
        self.updated_at = now

        self.raise_(
            OrderStatusUpdated(
                order_id=str(self.id),
                previous_status=previous_status,
                status=self.status,
                previous_delivery_status=previous_delivery_status,
                delivery_status=self.delivery_status,
                updated_at=now,
            )
        )

    def mark_delivered(self):
        if self.status == OrderStatus.DELIVERED.value or self.delivery_label_indicates_delivery:
            raise AlreadyDelivered({"status": ["Order is already delivered"]})
        if self.is_terminal:
            raise InvalidTransition({"status": [f"A {self.status} order cannot be delivered"]})

        now = datetime.now(UTC)
        self.status = OrderStatus.DELIVERED.value
        self.delivery_status = DeliveryStatus.DELIVERED.value
        self.delivered_at = now
        self.updated_at = now

        self.raise_(
            OrderDelivered(
                order_id=str(self.id),
                user_id=str(self.user_id),
                total_amount=self.total_amount,
                delivered_at=now,
            )
        )


_ADDRESS_FIELDS = ("full_name", "phone", "line1", "line2", "city", "zip")
_PAYMENT_FIELDS = ("card_holder_name", "masked_card_number", "brand", "expiry")


def _pick(data, fields) -> dict:
    """Keep only the snapshot's own keys; extra profile fields are dropped."""
    data = data or {}
    return {name: data[name] for name in fields if data.get(name) is not None}
