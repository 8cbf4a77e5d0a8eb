import os
from pathlib import Path

import pytest
from protean.integrations.pytest import DomainFixture


def pytest_addoption(parser):
    parser.addoption(
        "--env",
        action="store",
        default="test",
        help="Config environment to run tests on",
    )


def pytest_sessionstart(session):
    """Select the config overlay before the domain is imported and initialized."""
    os.environ["PROTEAN_ENV"] = session.config.option.env


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their directory location."""
    for item in items:
        test_path = str(Path(item.fspath))

        if "/domain/" in test_path:
            item.add_marker(pytest.mark.domain)
        elif "/application/" in test_path:
            item.add_marker(pytest.mark.application)
        elif "/integration/" in test_path or "/bdd/" in test_path:
            item.add_marker(pytest.mark.integration)
            if not any(m.name == "fast" for m in item.iter_markers()):
                item.add_marker(pytest.mark.slow)


@pytest.fixture(scope="session")
def pharmacy_bed():
    from pharmacy.domain import pharmacy

    bed = DomainFixture(pharmacy)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(pharmacy_bed):
    with pharmacy_bed.domain_context():
        yield


@pytest.fixture(autouse=True)
def run_around_tests(_ctx):
    """Clean up repositories and the event store after every test."""
    yield

    from protean import current_domain

    for _, provider in current_domain.providers.items():
        provider._data_reset()

    current_domain.event_store.store._data_reset()


# ---------------------------------------------------------------------------
# Collaborators
# ---------------------------------------------------------------------------
class RecordingDispatcher:
    """Notification dispatcher that keeps every notification it is handed."""

    def __init__(self):
        self.sent = []
        self.error = None

    def dispatch(self, notification):
        if self.error is not None:
            raise self.error
        self.sent.append(notification)

    def kinds(self):
        return [n.kind.value for n in self.sent]


@pytest.fixture()
def dispatcher():
    return RecordingDispatcher()


@pytest.fixture()
def ledger(dispatcher):
    from pharmacy.catalogue.snapshot import RepositoryCatalogReader
    from pharmacy.identity.provider import RepositoryIdentityProvider
    from pharmacy.ordering.ledger import OrderLedger

    return OrderLedger(
        catalog=RepositoryCatalogReader(),
        dispatcher=dispatcher,
        identities=RepositoryIdentityProvider(),
    )


@pytest.fixture()
def review_service():
    from pharmacy.listing.query import ListingQueryBuilder
    from pharmacy.reviews.rating import RatingAggregator
    from pharmacy.reviews.service import ReviewService

    return ReviewService(aggregator=RatingAggregator(), listings=ListingQueryBuilder())


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------
@pytest.fixture()
def make_medicine():
    from protean import current_domain

    from pharmacy.catalogue.medicine import Medicine

    def _make(name="Paracetamol 500mg", price=5.0, manufacturer="Acme Pharma", category="Analgesic"):
        medicine = Medicine.register(name=name, price=price, manufacturer=manufacturer, category=category)
        current_domain.repository_for(Medicine).add(medicine)
        return medicine

    return _make


@pytest.fixture()
def make_customer():
    from protean import current_domain

    from pharmacy.identity.customer import Customer

    counter = {"n": 0}

    def _make(
        name="Jane Doe",
        email=None,
        role="user",
        with_address=True,
        with_payment=True,
        device_tokens=(),
        city="Springfield",
    ):
        counter["n"] += 1
        customer = Customer.register(
            name=name,
            email=email or f"customer{counter['n']}@example.com",
            role=role,
        )
        if with_address:
            customer.update_address(
                full_name=name,
                phone="555-0100",
                line1="12 Elm Street",
                city=city,
                zip="62701",
            )
        if with_payment:
            customer.update_payment_method(
                card_holder_name=name,
                card_number="4242 4242 4242 4242",
                brand="visa",
                expiry="12/30",
            )
        for token in device_tokens:
            customer.register_device_token(token)
        current_domain.repository_for(Customer).add(customer)
        return customer

    return _make


@pytest.fixture()
def make_identity(make_customer):
    from pharmacy.identity.provider import Identity

    def _make(**kwargs):
        return Identity.from_customer(make_customer(**kwargs))

    return _make
