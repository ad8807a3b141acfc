import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from storefront.api import ROUTERS, register_error_handlers


@pytest.fixture()
def client():
    app = FastAPI()
    for router in ROUTERS:
        app.include_router(router)
    register_error_handlers(app)
    return TestClient(app)


@pytest.fixture()
def customer_headers():
    return {"X-User-Id": "user-001", "X-User-Email": "ada@example.com"}


@pytest.fixture()
def other_headers():
    return {"X-User-Id": "user-002"}


@pytest.fixture()
def guest_headers():
    return {"X-Session-Key": "session-abc"}


@pytest.fixture()
def admin_headers():
    return {"X-User-Id": "admin-001", "X-User-Role": "admin"}


@pytest.fixture()
def billing_payload():
    return {"name": "Ada Writer", "email": "ada@example.com", "country": "US"}
