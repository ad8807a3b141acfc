"""Payment aggregate — one attempt to pay an order through a gateway.

An order may collect several attempts; at most one completes. Status moves
are keyed by target status so a replayed webhook leaves the payment as it is:

    PENDING/PROCESSING → COMPLETED | FAILED
    FAILED → COMPLETED  (a late success beats an earlier failure)
    COMPLETED → REFUNDED
"""

import json
from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, Identifier, String, Text

from storefront.domain import storefront
from storefront.payment.events import PaymentCompleted, PaymentFailed, PaymentInitiated, PaymentRefunded


class PaymentStatus(Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"


class Gateway(Enum):
    STRIPE = "stripe"
    PAYPAL = "paypal"
    RAZORPAY = "razorpay"


_COMPLETABLE = {PaymentStatus.PENDING, PaymentStatus.PROCESSING, PaymentStatus.FAILED}
_FAILABLE = {PaymentStatus.PENDING, PaymentStatus.PROCESSING}


@storefront.aggregate
class Payment:
    order_id = Identifier(required=True)
    gateway = String(required=True, choices=Gateway)
    gateway_payment_id = String(required=True, max_length=255, unique=True)
    gateway_transaction_id = String(max_length=255)
    amount = Float(required=True, min_value=0.0)
    currency = String(max_length=3, default="USD")
    status = String(choices=PaymentStatus, default=PaymentStatus.PENDING.value)
    failure_reason = String(max_length=500)
    raw_response = Text()  # JSON, last gateway payload seen
    processed_at = DateTime()
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def initiate(cls, order_id, gateway, gateway_payment_id, amount, currency, raw_response=None):
        now = datetime.now(UTC)
        payment = cls(
            order_id=order_id,
            gateway=gateway,
            gateway_payment_id=gateway_payment_id,
            amount=amount,
            currency=currency,
            status=PaymentStatus.PENDING.value,
            raw_response=raw_response or json.dumps({}),
            created_at=now,
            updated_at=now,
        )
        payment.raise_(
            PaymentInitiated(
                payment_id=str(payment.id),
                order_id=str(order_id),
                gateway=gateway,
                gateway_payment_id=gateway_payment_id,
                amount=amount,
                currency=currency,
                initiated_at=now,
            )
        )
        return payment

    @property
    def is_completed(self):
        return self.status == PaymentStatus.COMPLETED.value

    def mark_completed(self, gateway_transaction_id=None, raw=None):
        """Record a completed gateway payment. Returns False when nothing changed."""
        if PaymentStatus(self.status) not in _COMPLETABLE:
            return False

        now = datetime.now(UTC)
        self.status = PaymentStatus.COMPLETED.value
        self.gateway_transaction_id = gateway_transaction_id or self.gateway_transaction_id
        self.failure_reason = None
        self.raw_response = raw or self.raw_response
        self.processed_at = now
        self.updated_at = now

        self.raise_(
            PaymentCompleted(
                payment_id=str(self.id),
                order_id=str(self.order_id),
                gateway=self.gateway,
                gateway_transaction_id=self.gateway_transaction_id,
                amount=self.amount,
                completed_at=now,
            )
        )
        return True

    def mark_failed(self, reason=None, raw=None):
        """Record a failed attempt. Completed and refunded payments never regress."""
        if PaymentStatus(self.status) not in _FAILABLE:
            return False

        now = datetime.now(UTC)
        self.status = PaymentStatus.FAILED.value
        self.failure_reason = (reason or "Payment failed")[:500]
        self.raw_response = raw or self.raw_response
        self.processed_at = now
        self.updated_at = now

        self.raise_(
            PaymentFailed(
                payment_id=str(self.id),
                order_id=str(self.order_id),
                reason=self.failure_reason,
                failed_at=now,
            )
        )
        return True

    def mark_refunded(self, gateway_refund_id=None):
        if not self.is_completed:
            raise ValidationError({"status": [f"Cannot refund a {self.status} payment"]})

        now = datetime.now(UTC)
        self.status = PaymentStatus.REFUNDED.value
        self.updated_at = now

        self.raise_(
            PaymentRefunded(
                payment_id=str(self.id),
                order_id=str(self.order_id),
                gateway_refund_id=gateway_refund_id,
                amount=self.amount,
                refunded_at=now,
            )
        )


@storefront.repository(part_of=Payment)
class PaymentRepository:
    def find_by_gateway_id(self, gateway, gateway_payment_id):
        return self._dao.query.filter(gateway=gateway, gateway_payment_id=gateway_payment_id).all().first

    def for_order(self, order_id):
        payments = self._dao.query.filter(order_id=str(order_id)).limit(None).all().items
        return sorted(payments, key=lambda p: p.created_at)
