"""Tests for Order cancellation, delivery and staff status corrections."""

import pytest
from protean.exceptions import ValidationError

from pharmacy.ordering.events import OrderCancelled, OrderDelivered, OrderStatusUpdated
from pharmacy.ordering.order import DeliveryStatus, Order, OrderStatus
from pharmacy.shared.errors import AlreadyDelivered, InvalidState, InvalidTransition


def _make_order(status=None):
    order = Order.place(
        user_id="user-001",
        lines=[{"product_id": "med-a", "quantity": 1, "unit_price": 5.0}],
        address={"line1": "12 Elm Street"},
        payment={"masked_card_number": "**** **** **** 4242"},
    )
    if status is not None:
        order.update_status(status=status)
    return order


class TestCancel:
    @pytest.mark.parametrize("status", ["pending", "paid", "processing"])
    def test_cancellable_states(self, status):
        order = _make_order(status)
        order.cancel()
        assert order.status == OrderStatus.CANCELLED.value
        assert order.delivery_status == DeliveryStatus.CANCELLED.value
        assert order.cancelled_at is not None

    @pytest.mark.parametrize("status", ["completed", "delivered", "cancelled"])
    def test_non_cancellable_states(self, status):
        order = _make_order(status)
        with pytest.raises(InvalidTransition):
            order.cancel()
        assert order.status == status

    def test_cancel_records_previous_status(self):
        order = _make_order("processing")
        order.cancel()
        event = order._events[-1]
        assert isinstance(event, OrderCancelled)
        assert event.previous_status == "processing"

    def test_invalid_transition_is_an_invalid_state(self):
        order = _make_order("delivered")
        with pytest.raises(InvalidState):
            order.cancel()


class TestMarkDelivered:
    def test_mark_delivered(self):
        order = _make_order()
        order.mark_delivered()
        assert order.status == OrderStatus.DELIVERED.value
        assert order.delivery_status == DeliveryStatus.DELIVERED.value
        assert order.delivered_at is not None
        assert isinstance(order._events[-1], OrderDelivered)

    def test_twice_raises_already_delivered(self):
        order = _make_order()
        order.mark_delivered()
        with pytest.raises(AlreadyDelivered):
            order.mark_delivered()

    def test_delivered_label_counts_as_delivered(self):
        order = _make_order()
        order.update_status(delivery_status="Delivered to reception")
        with pytest.raises(AlreadyDelivered):
            order.mark_delivered()

    def test_cancelled_order_cannot_be_delivered(self):
        order = _make_order("processing")
        order.cancel()
        with pytest.raises(InvalidTransition):
            order.mark_delivered()

    def test_completed_order_can_be_delivered(self):
        order = _make_order("completed")
        order.mark_delivered()
        assert order.status == OrderStatus.DELIVERED.value


class TestTerminalStates:
    @pytest.mark.parametrize("status", ["delivered", "cancelled"])
    def test_terminal(self, status):
        assert _make_order(status).is_terminal is True

    @pytest.mark.parametrize("status", ["pending", "paid", "processing", "completed"])
    def test_not_terminal(self, status):
        assert _make_order(status).is_terminal is False

    def test_terminal_order_leaves_delivery_untouched(self):
        order = _make_order("cancelled")
        with pytest.raises(InvalidTransition):
            order.mark_delivered()
        assert order.delivered_at is None


class TestUpdateStatus:
    def test_staff_can_reopen_terminal_order(self):
        order = _make_order("cancelled")
        order.update_status(status="processing")
        assert order.status == OrderStatus.PROCESSING.value

    def test_free_text_delivery_label(self):
        order = _make_order()
        order.update_status(delivery_status="Out for delivery")
        assert order.delivery_status == "Out for delivery"
        assert order.status == OrderStatus.PAID.value

    def test_records_previous_values(self):
        order = _make_order()
        order.update_status(status="processing", delivery_status="Packed")
        event = order._events[-1]
        assert isinstance(event, OrderStatusUpdated)
        assert event.previous_status == "paid"
        assert event.status == "processing"
        assert event.delivery_status == "Packed"

    def test_requires_status_or_label(self):
        with pytest.raises(ValidationError):
            _make_order().update_status()

    def test_blank_label_rejected(self):
        with pytest.raises(ValidationError):
            _make_order().update_status(delivery_status="   ")

    def test_unknown_status_rejected(self):
        with pytest.raises(ValidationError):
            _make_order().update_status(status="lost")
