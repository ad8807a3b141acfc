"""Order refunds — command and handler.

The gateway must confirm the refund before anything changes locally; a
refused refund leaves both the payment and the order untouched.
"""

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from storefront.domain import logger, storefront
from storefront.exceptions import GatewayError
from storefront.gateway import get_gateway
from storefront.order.order import Order, OrderStatus
from storefront.payment.payment import Payment
from storefront.payment.queries import completed_payment_for


@storefront.command(part_of="Payment")
class RefundOrder:
    order_id = Identifier(required=True)
    actor = String(required=True, max_length=100)
    reason = String(max_length=500)


@storefront.command_handler(part_of=Payment)
class RefundOrderHandler:
    @handle(RefundOrder)
    def refund_order(self, command):
        order_repo = current_domain.repository_for(Order)
        order = order_repo.get(command.order_id)
        if order.status != OrderStatus.PAID.value:
            raise ValidationError({"status": [f"Only paid orders can be refunded, order is {order.status}"]})

        payment = completed_payment_for(order.id)
        if payment is None:
            raise ValidationError({"order": [f"Order {order.order_number} has no completed payment"]})

        result = get_gateway(payment.gateway).create_refund(
            gateway_payment_id=payment.gateway_payment_id,
            gateway_transaction_id=payment.gateway_transaction_id,
            amount=payment.amount,
            currency=payment.currency,
            reason=command.reason or "Refund requested",
        )
        if not result.success:
            raise GatewayError(payment.gateway, result.failure_reason or "Refund refused")

        payment.mark_refunded(result.gateway_refund_id)
        current_domain.repository_for(Payment).add(payment)

        order.refund(command.actor, result.gateway_refund_id)
        order_repo.add(order)

        logger.info("order_refunded", order_id=str(order.id), gateway_refund_id=result.gateway_refund_id)
        return result.gateway_refund_id
