"""TestClient wiring for the HTTP API."""

import pytest
from fastapi import FastAPI, Request
from fastapi.testclient import TestClient

from pharmacy.api import admin_router, medicine_router, order_router, review_router
from pharmacy.api.deps import get_dispatcher
from pharmacy.api.errors import register_error_handlers
from pharmacy.domain import pharmacy


@pytest.fixture()
def client(dispatcher):
    app = FastAPI()

    @app.middleware("http")
    async def domain_context_middleware(request: Request, call_next):
        with pharmacy.domain_context():
            return await call_next(request)

    app.include_router(order_router)
    app.include_router(review_router)
    app.include_router(medicine_router)
    app.include_router(admin_router)
    register_error_handlers(app)
    app.dependency_overrides[get_dispatcher] = lambda: dispatcher
    return TestClient(app)


@pytest.fixture()
def customer(make_customer):
    return make_customer(name="Casey Customer")


@pytest.fixture()
def staff(make_customer):
    return make_customer(name="Sasha Staff", role="admin")


def headers_for(customer):
    return {"X-User-Id": str(customer.id)}


@pytest.fixture()
def as_customer(customer):
    return headers_for(customer)


@pytest.fixture()
def as_staff(staff):
    return headers_for(staff)
