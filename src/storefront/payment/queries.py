"""Payment-derived predicates. Paid status is always read from the payments, never cached."""

from protean.utils.globals import current_domain

from storefront.payment.payment import Payment, PaymentStatus


def completed_payment_for(order_id):
    return next(
        (p for p in current_domain.repository_for(Payment).for_order(order_id) if p.is_completed),
        None,
    )


def order_is_paid(order_id):
    """True when the order has a completed payment."""
    return completed_payment_for(order_id) is not None


def payment_payload(payment):
    return {
        "payment_id": str(payment.id),
        "order_id": str(payment.order_id),
        "gateway": payment.gateway,
        "gateway_payment_id": payment.gateway_payment_id,
        "amount": payment.amount,
        "currency": payment.currency,
        "status": payment.status,
        "failure_reason": payment.failure_reason if payment.status == PaymentStatus.FAILED.value else None,
        "processed_at": payment.processed_at.isoformat() if payment.processed_at else None,
    }
