"""Payment intent creation — command and handler.

The gateway is called inside the handler's unit of work: when it fails the
``GatewayError`` rolls the unit back, no Payment row exists, the order stays
``created`` and the caller may simply retry.
"""

import json

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from storefront.domain import logger, storefront
from storefront.exceptions import AlreadyPaidError
from storefront.gateway import get_gateway
from storefront.order.order import Order, OrderStatus
from storefront.order.queries import get_order_for
from storefront.payment.payment import Payment
from storefront.payment.queries import order_is_paid


@storefront.command(part_of="Payment")
class CreatePaymentIntent:
    order_id = Identifier(required=True)
    gateway = String(required=True, max_length=20)


@storefront.command_handler(part_of=Payment)
class CreatePaymentIntentHandler:
    @handle(CreatePaymentIntent)
    def create_intent(self, command):
        order = current_domain.repository_for(Order).get(command.order_id)

        if order_is_paid(order.id):
            raise AlreadyPaidError(order.order_number)
        if order.status != OrderStatus.CREATED.value:
            raise ValidationError({"status": [f"Order {order.order_number} is {order.status} and cannot be paid"]})

        gateway = get_gateway(command.gateway)
        attempt = len(current_domain.repository_for(Payment).for_order(order.id)) + 1
        intent = gateway.create_intent(
            amount=order.total_amount,
            currency=order.currency,
            order_reference=order.order_number,
            customer_email=order.billing_details.email if order.billing_details else None,
            idempotency_key=f"{order.id}-{command.gateway}-{attempt}",
        )

        payment = Payment.initiate(
            order_id=str(order.id),
            gateway=command.gateway,
            gateway_payment_id=intent.gateway_payment_id,
            amount=order.total_amount,
            currency=order.currency,
            raw_response=intent.raw_response or json.dumps({}),
        )
        current_domain.repository_for(Payment).add(payment)

        logger.info(
            "payment_intent_created",
            order_id=str(order.id),
            payment_id=str(payment.id),
            gateway=command.gateway,
            gateway_payment_id=intent.gateway_payment_id,
        )

        return {
            "payment_id": str(payment.id),
            "gateway": command.gateway,
            "gateway_payment_id": intent.gateway_payment_id,
            "amount": order.total_amount,
            "currency": order.currency,
            **intent.client_data,
        }


def create_payment_intent(caller, order_id, gateway):
    """Start paying an order the caller can see through ``gateway``."""
    get_order_for(caller, order_id)
    get_gateway(gateway)  # unknown gateways fail before any work
    return current_domain.process(
        CreatePaymentIntent(order_id=order_id, gateway=gateway),
        asynchronous=False,
    )
