"""Shared BDD fixtures and step definitions for the order lifecycle."""

import pytest
from protean import current_domain
from pytest_bdd import given, parsers, then

from pharmacy.catalogue.medicine import Medicine
from pharmacy.ordering.order import Order


@pytest.fixture()
def medicines():
    return {}


def _lines(medicines, *pairs):
    return [{"product_id": str(medicines[name].id), "quantity": int(quantity)} for quantity, name in pairs]


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given("a customer with an address and a payment method", target_fixture="customer")
def _(make_identity):
    return make_identity(name="Bea Buyer")


@given(parsers.cfparse('a medicine "{name}" priced at {price:f}'))
def _(medicines, make_medicine, name, price):
    medicines[name] = make_medicine(name=name, price=price)


@given(parsers.re(r'the customer has ordered (?P<quantity>\d+) "(?P<name>[^"]+)"$'), target_fixture="order")
def _(ledger, customer, medicines, quantity, name):
    return ledger.place(customer, _lines(medicines, (quantity, name)))


@given(
    parsers.cfparse('the customer has ordered {first_qty:d} "{first}" and {second_qty:d} "{second}"'),
    target_fixture="order",
)
def _(ledger, customer, medicines, first_qty, first, second_qty, second):
    return ledger.place(customer, _lines(medicines, (first_qty, first), (second_qty, second)))


@given(parsers.cfparse('staff set the order status to "{status}"'), target_fixture="order")
def _(ledger, order, status):
    return ledger.update_status(str(order.id), status=status)


@given("staff mark the order delivered", target_fixture="order")
def _(ledger, order):
    return ledger.mark_delivered(str(order.id))


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the order status is "{status}"'))
def _(order, status):
    stored = current_domain.repository_for(Order).get(str(order.id))
    assert stored.status == status


@then(parsers.cfparse('the delivery status is "{label}"'))
def _(order, label):
    stored = current_domain.repository_for(Order).get(str(order.id))
    assert stored.delivery_status == label


@then(parsers.cfparse("the order total is {total:f}"))
def _(order, total):
    assert order.total_amount == total


@then(parsers.cfparse('an "{kind}" notification is sent'))
def _(dispatcher, kind):
    assert kind in dispatcher.kinds()


@then(parsers.cfparse('"{name}" has an average rating of {average:f} from {count:d} {noun}'))
def _(medicines, name, average, count, noun):
    stored = current_domain.repository_for(Medicine).get(str(medicines[name].id))
    assert stored.rating == average
    assert stored.reviews_count == count
