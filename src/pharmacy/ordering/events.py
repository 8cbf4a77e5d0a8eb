"""Domain events for the Order aggregate.

Raised on every lifecycle change and kept with the aggregate until the
repository persists it.
"""

from protean.fields import DateTime, Float, Identifier, Integer, String, Text

from pharmacy.domain import pharmacy


@pharmacy.event(part_of="Order")
class OrderPlaced:
    """An order was recorded with its prices, address and payment method frozen."""

    __version__ = 1

    order_id = Identifier(required=True)
    user_id = Identifier(required=True)
    items = Text(required=True)  # JSON: list of item dicts
    item_count = Integer(required=True)
    total_amount = Float(required=True)
    currency = String(default="USD")
    placed_at = DateTime(required=True)


@pharmacy.event(part_of="Order")
class OrderCancelled:
    """The owning customer cancelled the order."""

    __version__ = 1

    order_id = Identifier(required=True)
    user_id = Identifier(required=True)
    previous_status = String(required=True)
    cancelled_at = DateTime(required=True)


@pharmacy.event(part_of="Order")
class OrderStatusUpdated:
    """Staff corrected the order's status and/or delivery label."""

    __version__ = 1

    order_id = Identifier(required=True)
    previous_status = String()
    status = String()
    previous_delivery_status = String()
    delivery_status = String()
    updated_at = DateTime(required=True)


@pharmacy.event(part_of="Order")
class OrderDelivered:
    __version__ = 1

    order_id = Identifier(required=True)
    user_id = Identifier(required=True)
    total_amount = Float(required=True)
    delivered_at = DateTime(required=True)
