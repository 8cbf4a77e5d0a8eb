"""Tests for Order placement, snapshots and the total invariant."""

import json

import pytest
from protean.exceptions import ValidationError

from pharmacy.ordering.events import OrderPlaced
from pharmacy.ordering.order import DeliveryStatus, Order, OrderStatus, parse_status

ADDRESS = {
    "full_name": "Jane Doe",
    "phone": "555-0100",
    "line1": "12 Elm Street",
    "city": "Springfield",
    "zip": "62701",
    "country": "US",
}
PAYMENT = {
    "card_holder_name": "Jane Doe",
    "masked_card_number": "**** **** **** 4242",
    "brand": "visa",
}


def _make_order(lines=None, **overrides):
    kwargs = {
        "user_id": "user-001",
        "lines": lines
        or [
            {"product_id": "med-a", "name": "Paracetamol", "quantity": 2, "unit_price": 5.0},
            {"product_id": "med-b", "name": "Cetirizine", "quantity": 1, "unit_price": 3.0},
        ],
        "address": ADDRESS,
        "payment": PAYMENT,
    }
    kwargs.update(overrides)
    return Order.place(**kwargs)


class TestOrderPlacement:
    def test_total_is_sum_of_line_items(self):
        assert _make_order().total_amount == 13.0

    def test_starts_paid_and_in_progress(self):
        order = _make_order()
        assert order.status == OrderStatus.PAID.value
        assert order.delivery_status == DeliveryStatus.IN_PROGRESS.value

    def test_prices_are_rounded_to_cents(self):
        order = _make_order(lines=[{"product_id": "med-a", "quantity": 3, "unit_price": 0.105}])
        assert order.items[0].unit_price == 0.11
        assert order.total_amount == 0.33

    def test_line_item_subtotal(self):
        order = _make_order()
        subtotals = sorted(item.subtotal for item in order.items)
        assert subtotals == [3.0, 10.0]

    def test_address_snapshot_keeps_only_its_fields(self):
        order = _make_order()
        assert order.address.line1 == "12 Elm Street"
        assert "country" not in order.address.to_dict()

    def test_payment_snapshot_is_masked(self):
        assert _make_order().payment.masked_card_number == "**** **** **** 4242"

    def test_address_line1_required(self):
        with pytest.raises(ValidationError):
            _make_order(address={"city": "Springfield"})

    def test_quantity_must_be_positive(self):
        with pytest.raises(ValidationError):
            _make_order(lines=[{"product_id": "med-a", "quantity": 0, "unit_price": 5.0}])

    def test_raises_placed_event(self):
        order = _make_order()
        event = order._events[0]
        assert isinstance(event, OrderPlaced)
        assert event.total_amount == 13.0
        assert event.item_count == 2
        assert {item["product_id"] for item in json.loads(event.items)} == {"med-a", "med-b"}

    def test_timestamps_set(self):
        order = _make_order()
        assert order.created_at is not None
        assert order.updated_at is not None
        assert order.delivered_at is None


class TestOrderInvariant:
    def test_total_cannot_drift_from_line_items(self):
        order = _make_order()
        with pytest.raises(ValidationError):
            order.total_amount = 99.0


class TestOrderQueries:
    def test_ownership(self):
        order = _make_order()
        assert order.is_owned_by("user-001") is True
        assert order.is_owned_by("user-002") is False

    def test_contains_product(self):
        order = _make_order()
        assert order.contains_product("med-a") is True
        assert order.contains_product("med-z") is False

    def test_paid_order_is_not_reviewable(self):
        assert _make_order().is_reviewable is False

    def test_completed_order_is_reviewable(self):
        order = _make_order()
        order.update_status(status="completed")
        assert order.is_reviewable is True

    def test_delivered_label_makes_order_reviewable(self):
        order = _make_order()
        order.update_status(delivery_status="Delivered")
        assert order.is_reviewable is True


class TestParseStatus:
    def test_case_insensitive(self):
        assert parse_status(" Processing ") == OrderStatus.PROCESSING

    def test_unknown_status(self):
        with pytest.raises(ValidationError):
            parse_status("shipped")
