import json
import os
from datetime import UTC, datetime, timedelta

import pytest
from protean.utils.globals import current_domain

from storefront.cart.store import add_item
from storefront.catalogue.management import AddVariant, CreateService
from storefront.checkout.placement import place_order
from storefront.coupon.management import CreateCoupon
from storefront.files.storage import InMemoryBlobStore, reset_blob_store, set_blob_store
from storefront.gateway import reset_gateways
from storefront.identity import CallerIdentity, Role
from storefront.payment.initiation import create_payment_intent
from storefront.payment.reconciliation import handle_webhook


@pytest.fixture(scope="session")
def _storefront_domain(request):
    """Initialize the storefront domain once per session."""
    os.environ["PROTEAN_ENV"] = request.config.option.env

    from storefront.domain import storefront

    storefront.init()
    return storefront


@pytest.fixture(scope="session", autouse=True)
def setup_db(_storefront_domain):
    from storefront.utils.db import drop_db, setup_db

    setup_db(_storefront_domain)

    yield

    drop_db(_storefront_domain)


@pytest.fixture(autouse=True)
def run_around_tests(_storefront_domain):
    """Push domain context before each test, cleanup after."""
    ctx = _storefront_domain.domain_context()
    ctx.push()
    reset_gateways()
    set_blob_store(InMemoryBlobStore())

    yield

    for _, provider in current_domain.providers.items():
        provider._data_reset()

    for _, broker in current_domain.brokers.items():
        broker._data_reset()

    current_domain.event_store.store._data_reset()
    reset_gateways()
    reset_blob_store()
    ctx.pop()


# ---------------------------------------------------------------------------
# Callers
# ---------------------------------------------------------------------------
@pytest.fixture()
def customer():
    return CallerIdentity.user("user-001", email="ada@example.com")


@pytest.fixture()
def other_customer():
    return CallerIdentity.user("user-002", email="bob@example.com")


@pytest.fixture()
def guest():
    return CallerIdentity.guest("session-abc")


@pytest.fixture()
def admin():
    return CallerIdentity.user("admin-001", role=Role.ADMIN)


@pytest.fixture()
def editor():
    return CallerIdentity.user("editor-001", role=Role.EDITOR)


@pytest.fixture()
def billing():
    return {"name": "Ada Writer", "email": "ada@example.com", "country": "US"}


# ---------------------------------------------------------------------------
# Catalogue
# ---------------------------------------------------------------------------
def _create_service(title="Developmental Editing", service_type="editing", base_price=0.0):
    return current_domain.process(
        CreateService(title=title, service_type=service_type, base_price=base_price),
        asynchronous=False,
    )


def _create_variant(service_id, **overrides):
    fields = {
        "title": "Copy edit",
        "price": 0.02,
        "unit_type": "per_word",
        "turnaround_days": 14,
        "min_quantity": 1000,
        "max_quantity": 100000,
    }
    fields.update(overrides)
    return current_domain.process(AddVariant(service_id=service_id, **fields), asynchronous=False)


@pytest.fixture()
def service_id():
    return _create_service()


@pytest.fixture()
def per_word_variant_id(service_id):
    """$0.02 per word, 1,000 to 100,000 words, 14 day turnaround."""
    return _create_variant(service_id)


@pytest.fixture()
def fixed_variant_id(service_id):
    """A $50 flat-fee consultation, at most one per order."""
    return _create_variant(
        service_id,
        title="Manuscript consultation",
        price=50.0,
        unit_type="fixed",
        turnaround_days=7,
        min_quantity=1,
        max_quantity=1,
    )


def _create_coupon(code="SAVE10", coupon_type="percentage", value=10.0, **overrides):
    now = datetime.now(UTC)
    fields = {
        "valid_from": now - timedelta(days=1),
        "valid_to": now + timedelta(days=30),
    }
    fields.update(overrides)
    return current_domain.process(
        CreateCoupon(code=code, coupon_type=coupon_type, value=value, **fields),
        asynchronous=False,
    )


@pytest.fixture()
def make_service():
    return _create_service


@pytest.fixture()
def make_variant():
    return _create_variant


@pytest.fixture()
def make_coupon():
    return _create_coupon


# ---------------------------------------------------------------------------
# Orders and payments
# ---------------------------------------------------------------------------
def _checkout(caller, variant_id, quantity, billing, coupon_code=None, meta=None, payment_method="stripe"):
    add_item(caller, variant_id, quantity, meta)
    return place_order(caller, billing, payment_method, coupon_code=coupon_code)


def _webhook_body(event, gateway_payment_id, **extra):
    return json.dumps({"event": event, "gateway_payment_id": gateway_payment_id, **extra}).encode()


_WEBHOOK_HEADERS = {"X-Gateway-Signature": "test-signature"}


def _pay(caller, order_id, gateway="stripe"):
    """Create an intent and deliver its success webhook. Returns the intent."""
    intent = create_payment_intent(caller, order_id, gateway)
    handle_webhook(
        gateway,
        _webhook_body("payment.completed", intent["gateway_payment_id"], transaction_id="txn_001"),
        _WEBHOOK_HEADERS,
    )
    return intent


@pytest.fixture()
def checkout():
    return _checkout


@pytest.fixture()
def pay():
    return _pay


@pytest.fixture()
def placed_order(customer, per_word_variant_id, billing):
    """5,000 words at $0.02: a $100 order awaiting payment."""
    return _checkout(customer, per_word_variant_id, 5000, billing)


@pytest.fixture()
def paid_order(customer, placed_order):
    _pay(customer, placed_order["order_id"])
    return placed_order


@pytest.fixture()
def deliver_webhook():
    """Deliver a fake-gateway webhook and return the reconcile outcome."""

    def _deliver(gateway, event, gateway_payment_id, **extra):
        return handle_webhook(gateway, _webhook_body(event, gateway_payment_id, **extra), _WEBHOOK_HEADERS)

    return _deliver
