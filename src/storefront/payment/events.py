"""Domain events for the Payment aggregate."""

from protean.fields import DateTime, Float, Identifier, String

from storefront.domain import storefront


@storefront.event(part_of="Payment")
class PaymentInitiated:
    """A gateway-side intent was created for an order."""

    __version__ = "v1"

    payment_id = Identifier(required=True)
    order_id = Identifier(required=True)
    gateway = String(required=True)
    gateway_payment_id = String(required=True)
    amount = Float(required=True)
    currency = String(required=True)
    initiated_at = DateTime(required=True)


@storefront.event(part_of="Payment")
class PaymentCompleted:
    __version__ = "v1"

    payment_id = Identifier(required=True)
    order_id = Identifier(required=True)
    gateway = String(required=True)
    gateway_transaction_id = String()
    amount = Float(required=True)
    completed_at = DateTime(required=True)


@storefront.event(part_of="Payment")
class PaymentFailed:
    __version__ = "v1"

    payment_id = Identifier(required=True)
    order_id = Identifier(required=True)
    reason = String()
    failed_at = DateTime(required=True)


@storefront.event(part_of="Payment")
class PaymentRefunded:
    __version__ = "v1"

    payment_id = Identifier(required=True)
    order_id = Identifier(required=True)
    gateway_refund_id = String()
    amount = Float(required=True)
    refunded_at = DateTime(required=True)
