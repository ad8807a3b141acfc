"""Configurable fake payment gateway for development and testing.

One instance stands in for each real gateway (``FakeGateway("stripe")`` and so
on), producing ids and client data shaped like that gateway's. Webhooks use a
gateway-neutral JSON body:

    {"event": "payment.completed" | "payment.failed" | <anything else>,
     "gateway_payment_id": "...", "transaction_id": "...", "failure_reason": "..."}

signed with the ``X-Gateway-Signature: test-signature`` header.
"""

import json
from collections.abc import Mapping
from uuid import uuid4

from storefront.exceptions import GatewayError, MalformedWebhookError, WebhookVerificationError
from storefront.gateway.port import (
    GatewayEvent,
    GatewayEventKind,
    IntentResult,
    PaymentGateway,
    RefundResult,
    header,
)

TEST_SIGNATURE = "test-signature"

_EVENT_KINDS = {
    "payment.completed": GatewayEventKind.PAYMENT_COMPLETED,
    "payment.failed": GatewayEventKind.PAYMENT_FAILED,
}

_ID_PREFIXES = {"stripe": "pi", "paypal": "PAYID", "razorpay": "order"}


class FakeGateway(PaymentGateway):
    """Configurable fake payment gateway."""

    def __init__(self, name: str = "stripe") -> None:
        self.name = name
        self.should_succeed: bool = True
        self.failure_reason: str = "Gateway unavailable"
        self.calls: list[dict] = []

    def configure(self, should_succeed: bool, failure_reason: str = "Gateway unavailable") -> None:
        """Configure gateway behavior at runtime."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def _client_data(self, payment_id: str) -> dict:
        if self.name == "paypal":
            return {"approval_url": f"https://www.sandbox.paypal.com/checkoutnow?token={payment_id}"}
        if self.name == "razorpay":
            return {"gateway_order_id": payment_id, "public_key": "rzp_test_fake"}
        return {"client_secret": f"{payment_id}_secret_{uuid4().hex[:8]}", "public_key": "pk_test_fake"}

    def create_intent(
        self,
        amount: float,
        currency: str,
        order_reference: str,
        customer_email: str | None,
        idempotency_key: str,
    ) -> IntentResult:
        self.calls.append(
            {
                "method": "create_intent",
                "amount": amount,
                "currency": currency,
                "order_reference": order_reference,
                "customer_email": customer_email,
                "idempotency_key": idempotency_key,
            }
        )

        if not self.should_succeed:
            raise GatewayError(self.name, self.failure_reason)

        payment_id = f"{_ID_PREFIXES.get(self.name, 'fake')}_{uuid4().hex[:14]}"
        return IntentResult(
            gateway_payment_id=payment_id,
            client_data=self._client_data(payment_id),
            gateway_status="created",
            raw_response=json.dumps({"id": payment_id, "amount": amount, "currency": currency}),
        )

    def parse_webhook(self, payload: bytes, headers: Mapping[str, str]) -> GatewayEvent:
        self.calls.append({"method": "parse_webhook"})

        if header(headers, "X-Gateway-Signature") != TEST_SIGNATURE:
            raise WebhookVerificationError("Invalid webhook signature")

        try:
            body = json.loads(payload)
            event_type = body["event"]
        except (ValueError, KeyError, TypeError) as exc:
            raise MalformedWebhookError(f"Unreadable webhook payload: {exc}") from exc

        return GatewayEvent(
            gateway=self.name,
            kind=_EVENT_KINDS.get(event_type, GatewayEventKind.UNKNOWN),
            event_type=event_type,
            gateway_payment_id=body.get("gateway_payment_id"),
            gateway_transaction_id=body.get("transaction_id"),
            failure_reason=body.get("failure_reason"),
            raw=payload.decode("utf-8") if isinstance(payload, bytes) else payload,
        )

    def create_refund(
        self,
        gateway_payment_id: str,
        gateway_transaction_id: str | None,
        amount: float,
        currency: str,
        reason: str,
    ) -> RefundResult:
        self.calls.append(
            {
                "method": "create_refund",
                "gateway_payment_id": gateway_payment_id,
                "gateway_transaction_id": gateway_transaction_id,
                "amount": amount,
                "currency": currency,
                "reason": reason,
            }
        )

        if self.should_succeed:
            return RefundResult(
                success=True,
                gateway_refund_id=f"fake_ref_{uuid4().hex[:12]}",
                gateway_status="succeeded",
            )
        return RefundResult(success=False, gateway_status="failed", failure_reason=self.failure_reason)
