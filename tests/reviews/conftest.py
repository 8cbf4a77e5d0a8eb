"""Shared fixtures for review tests: a customer with a delivered order."""

import pytest


@pytest.fixture()
def reviewer(make_identity):
    return make_identity(name="Riley Reviewer")


@pytest.fixture()
def medicine(make_medicine):
    return make_medicine(name="Omeprazole 20mg", price=8.0)


@pytest.fixture()
def other_medicine(make_medicine):
    return make_medicine(name="Loratadine 10mg", price=4.0)


@pytest.fixture()
def delivered_order(ledger, reviewer, medicine, other_medicine):
    order = ledger.place(
        reviewer,
        [
            {"product_id": str(medicine.id), "quantity": 1},
            {"product_id": str(other_medicine.id), "quantity": 2},
        ],
    )
    return ledger.mark_delivered(str(order.id))
