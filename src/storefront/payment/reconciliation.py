"""Payment reconciliation — applying verified gateway events to local state.

Every gateway's webhook is parsed by its adapter into a ``GatewayEvent`` and
lands in the one ``ReconcilePayment`` handler. Processing is keyed by
(gateway payment id, target status), so duplicated or reordered deliveries
converge on the same state:

- an unknown payment id is logged and acknowledged;
- a completed event completes the payment and moves the order from
  ``created`` to ``paid`` in the same unit of work, once;
- a failed event never overrides a completed or refunded payment.
"""

from protean import handle
from protean.fields import String, Text
from protean.utils.globals import current_domain

from storefront.domain import logger, storefront
from storefront.gateway import get_gateway
from storefront.gateway.port import GatewayEventKind
from storefront.order.order import Order, OrderStatus
from storefront.payment.payment import Payment


class ReconcileOutcome:
    APPLIED = "applied"
    DUPLICATE = "duplicate"
    UNKNOWN_PAYMENT = "unknown_payment"
    IGNORED = "ignored"


@storefront.command(part_of="Payment")
class ReconcilePayment:
    gateway = String(required=True, max_length=20)
    kind = String(required=True, max_length=30)
    gateway_payment_id = String(required=True, max_length=255)
    gateway_transaction_id = String(max_length=255)
    failure_reason = String(max_length=500)
    raw = Text()


@storefront.command_handler(part_of=Payment)
class ReconcilePaymentHandler:
    @handle(ReconcilePayment)
    def reconcile(self, command):
        log = logger.bind(gateway=command.gateway, gateway_payment_id=command.gateway_payment_id, kind=command.kind)

        payment_repo = current_domain.repository_for(Payment)
        payment = payment_repo.find_by_gateway_id(command.gateway, command.gateway_payment_id)
        if payment is None:
            log.warning("reconcile_unknown_payment")
            return ReconcileOutcome.UNKNOWN_PAYMENT

        if command.kind == GatewayEventKind.PAYMENT_FAILED.value:
            if not payment.mark_failed(command.failure_reason, command.raw):
                log.info("reconcile_failure_ignored", payment_status=payment.status)
                return ReconcileOutcome.DUPLICATE
            payment_repo.add(payment)
            log.info("payment_failed", payment_id=str(payment.id), reason=payment.failure_reason)
            return ReconcileOutcome.APPLIED

        if not payment.mark_completed(command.gateway_transaction_id, command.raw):
            log.info("reconcile_duplicate", payment_status=payment.status)
            return ReconcileOutcome.DUPLICATE
        payment_repo.add(payment)

        order_repo = current_domain.repository_for(Order)
        order = order_repo.get(payment.order_id)
        if order.status != OrderStatus.CREATED.value:
            # Money arrived for an order that is already paid or was cancelled
            log.warning(
                "payment_completed_for_settled_order",
                order_id=str(order.id),
                order_status=order.status,
                payment_id=str(payment.id),
            )
            return ReconcileOutcome.APPLIED

        order.record_payment(payment.id, payment.amount)
        order_repo.add(order)
        log.info("order_paid", order_id=str(order.id), payment_id=str(payment.id))
        return ReconcileOutcome.APPLIED


def handle_webhook(gateway_name, payload, headers):
    """Verify and apply a webhook delivery. Returns the reconcile outcome.

    Signature and parse failures propagate (``WebhookVerificationError`` /
    ``MalformedWebhookError``) so the endpoint can answer 400.
    """
    event = get_gateway(gateway_name).parse_webhook(payload, headers)

    if event.kind == GatewayEventKind.UNKNOWN:
        logger.info("webhook_ignored", gateway=gateway_name, event_type=event.event_type)
        return ReconcileOutcome.IGNORED
    if not event.gateway_payment_id:
        logger.warning("webhook_without_payment_id", gateway=gateway_name, event_type=event.event_type)
        return ReconcileOutcome.IGNORED

    return current_domain.process(
        ReconcilePayment(
            gateway=event.gateway,
            kind=event.kind.value,
            gateway_payment_id=event.gateway_payment_id,
            gateway_transaction_id=event.gateway_transaction_id,
            failure_reason=event.failure_reason,
            raw=event.raw,
        ),
        asynchronous=False,
    )
