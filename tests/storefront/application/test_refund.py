import pytest
from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from storefront.exceptions import GatewayError
from storefront.gateway import get_gateway
from storefront.order.lifecycle import StartWork
from storefront.order.order import Order, OrderStatus
from storefront.payment.payment import Payment, PaymentStatus
from storefront.payment.refund import RefundOrder


def _refund(order_id, reason="Author withdrew the manuscript"):
    return current_domain.process(RefundOrder(order_id=order_id, actor="admin-001", reason=reason), asynchronous=False)


class TestRefundOrder:
    def test_refund_moves_payment_and_order(self, paid_order):
        refund_id = _refund(paid_order["order_id"])

        assert refund_id.startswith("fake_ref_")
        order = current_domain.repository_for(Order).get(paid_order["order_id"])
        assert order.status == OrderStatus.REFUNDED.value
        assert "refunded" in [note.event for note in order.notes]

        payments = current_domain.repository_for(Payment).for_order(paid_order["order_id"])
        assert payments[0].status == PaymentStatus.REFUNDED.value

    def test_gateway_gets_the_captured_amount(self, paid_order):
        _refund(paid_order["order_id"])

        call = get_gateway("stripe").calls[-1]
        assert call["method"] == "create_refund"
        assert call["amount"] == 100.0
        assert call["gateway_transaction_id"] == "txn_001"

    def test_refused_refund_changes_nothing(self, paid_order):
        get_gateway("stripe").configure(should_succeed=False, failure_reason="Insufficient balance")

        with pytest.raises(GatewayError):
            _refund(paid_order["order_id"])

        order = current_domain.repository_for(Order).get(paid_order["order_id"])
        assert order.status == OrderStatus.PAID.value
        payments = current_domain.repository_for(Payment).for_order(paid_order["order_id"])
        assert payments[0].status == PaymentStatus.COMPLETED.value

    def test_unpaid_order_cannot_be_refunded(self, placed_order):
        with pytest.raises(ValidationError):
            _refund(placed_order["order_id"])

    def test_order_in_progress_cannot_be_refunded(self, paid_order):
        current_domain.process(StartWork(order_id=paid_order["order_id"], actor="admin-001"), asynchronous=False)

        with pytest.raises(ValidationError):
            _refund(paid_order["order_id"])
