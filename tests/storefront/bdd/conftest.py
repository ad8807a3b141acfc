"""Shared BDD fixtures and step definitions for the storefront."""

import pytest
from protean.exceptions import ValidationError
from protean.utils.globals import current_domain
from pytest_bdd import given, parsers, then

from storefront.cart.store import add_item
from storefront.checkout.placement import place_order
from storefront.order.order import Order


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------
@pytest.fixture()
def error():
    """Container for captured validation errors."""
    return {"exc": None}


@pytest.fixture()
def checkout_result():
    return {}


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given("a $50 manuscript consultation is on offer", target_fixture="variant_id")
def consultation_on_offer(fixed_variant_id):
    return fixed_variant_id


@given("a copy edit priced at $0.02 per word is on offer", target_fixture="variant_id")
def copy_edit_on_offer(per_word_variant_id):
    return per_word_variant_id


@given(parsers.cfparse('a {percent:d}% coupon "{code}"'))
def percentage_coupon(make_coupon, percent, code):
    make_coupon(code, coupon_type="percentage", value=float(percent))


@given(parsers.cfparse('a {percent:d}% coupon "{code}" that can be used once'))
def single_use_coupon(make_coupon, percent, code):
    make_coupon(code, coupon_type="percentage", value=float(percent), usage_limit=1)


@given(parsers.cfparse("the customer has {quantity:d} of it in the cart"))
def customer_cart(customer, variant_id, quantity):
    add_item(customer, variant_id, quantity)


@given(parsers.cfparse("the customer has placed an order for {quantity:d} of it"), target_fixture="order_id")
def order_placed(customer, billing, variant_id, quantity, checkout_result):
    add_item(customer, variant_id, quantity)
    checkout_result.update(place_order(customer, billing, "stripe"))
    return checkout_result["order_id"]


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then("the action fails with a validation error")
def action_fails(error):
    assert error["exc"] is not None
    assert isinstance(error["exc"], ValidationError)


@then(parsers.cfparse('the order status is "{status}"'))
def order_status_is(order_id, status):
    assert current_domain.repository_for(Order).get(order_id).status == status
