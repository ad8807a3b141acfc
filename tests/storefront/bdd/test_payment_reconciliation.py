"""BDD tests for payment reconciliation from gateway webhooks."""

import pytest
from protean.utils.globals import current_domain
from pytest_bdd import given, parsers, scenarios, then, when

from storefront.order.order import Order
from storefront.payment.initiation import create_payment_intent
from storefront.payment.payment import Payment

scenarios("features/payment_reconciliation.feature")


@pytest.fixture()
def deliveries():
    return []


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse("the customer started paying with {gateway}"), target_fixture="intent")
def payment_started(customer, order_id, gateway):
    return create_payment_intent(customer, order_id, gateway)


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@when("the gateway reports the payment completed")
def payment_completed(intent, deliver_webhook, deliveries):
    deliveries.append(
        deliver_webhook(intent["gateway"], "payment.completed", intent["gateway_payment_id"], transaction_id="ch_1")
    )


@when("the gateway reports the payment failed")
def payment_failed(intent, deliver_webhook, deliveries):
    deliveries.append(
        deliver_webhook(intent["gateway"], "payment.failed", intent["gateway_payment_id"], failure_reason="Declined")
    )


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the payment status is "{status}"'))
def payment_status_is(intent, status):
    assert current_domain.repository_for(Payment).get(intent["payment_id"]).status == status


@then("the order was marked paid once")
def marked_paid_once(order_id):
    order = current_domain.repository_for(Order).get(order_id)
    assert [note.event for note in order.notes].count("paid") == 1


@then(parsers.cfparse('the last delivery was a "{outcome}"'))
def last_delivery(deliveries, outcome):
    assert deliveries[-1] == outcome
