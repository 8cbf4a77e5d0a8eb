"""Fixtures for notification tests."""

import pytest

from pharmacy.notifications.channel import reset_channels
from pharmacy.notifications.channel.fake_email import FakeEmailAdapter
from pharmacy.notifications.channel.fake_push import FakePushAdapter
from pharmacy.notifications.notification import NotificationKind, OrderNotification


@pytest.fixture(autouse=True)
def _fresh_channels():
    reset_channels()
    yield
    reset_channels()


@pytest.fixture()
def email():
    return FakeEmailAdapter()


@pytest.fixture()
def push():
    return FakePushAdapter()


@pytest.fixture()
def make_notification():
    def _make(kind=NotificationKind.ORDER_PLACED, **overrides):
        defaults = {
            "kind": kind,
            "order_id": "order-001",
            "recipient_id": "user-001",
            "amount": 13.0,
            "recipient_name": "Jane Doe",
            "email": "jane@example.com",
            "device_tokens": ("device-1", "device-2"),
            "currency": "USD",
            "items": ({"name": "Paracetamol", "quantity": 2, "unit_price": 5.0},),
        }
        defaults.update(overrides)
        return OrderNotification(**defaults)

    return _make
