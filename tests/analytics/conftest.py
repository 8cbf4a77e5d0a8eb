"""Fixtures for analytics tests: orders stored with explicit placement times."""

import pytest
from protean import current_domain

from pharmacy.ordering.order import Order


@pytest.fixture()
def store_order():
    def _store(created_at, lines, user_id="user-001", status=None):
        order = Order.place(
            user_id=user_id,
            lines=lines,
            address={"line1": "12 Elm Street"},
            payment={"masked_card_number": "**** **** **** 4242"},
        )
        order.created_at = created_at
        if status is not None:
            order.update_status(status=status)
        current_domain.repository_for(Order).add(order)
        return order

    return _store
