"""Razorpay payment gateway adapter over the Razorpay REST API (httpx).

- Intents are Razorpay Orders; Checkout.js opens with ``gateway_order_id``
  and the public ``key_id``.
- Webhooks carry ``X-Razorpay-Signature``: the hex HMAC-SHA256 of the raw
  body under the webhook secret.
- The local payment is keyed by the Razorpay order id; the Razorpay payment
  id becomes the transaction id used for refunds.
"""

import hashlib
import hmac
import json
from collections.abc import Mapping

import httpx

from storefront.domain import logger
from storefront.exceptions import GatewayError, MalformedWebhookError, WebhookVerificationError
from storefront.gateway.port import (
    GatewayEvent,
    GatewayEventKind,
    IntentResult,
    PaymentGateway,
    RefundResult,
    header,
    to_minor_units,
)

API_URL = "https://api.razorpay.com"

_EVENT_KINDS = {
    "payment.captured": GatewayEventKind.PAYMENT_COMPLETED,
    "order.paid": GatewayEventKind.PAYMENT_COMPLETED,
    "payment.failed": GatewayEventKind.PAYMENT_FAILED,
}


def sign(payload: bytes, secret: str) -> str:
    return hmac.new(secret.encode("utf-8"), payload, hashlib.sha256).hexdigest()


class RazorpayGateway(PaymentGateway):
    name = "razorpay"

    def __init__(
        self,
        key_id: str,
        key_secret: str,
        webhook_secret: str,
        base_url: str = API_URL,
        timeout: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.key_id = key_id
        self.webhook_secret = webhook_secret
        self._client = httpx.Client(
            base_url=base_url,
            auth=(key_id, key_secret),
            timeout=timeout,
            transport=transport,
        )

    def _call(self, method: str, path: str, **kwargs) -> dict:
        try:
            response = self._client.request(method, path, **kwargs)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPError as exc:
            logger.warning("razorpay_call_failed", path=path, error=str(exc))
            raise GatewayError(self.name, str(exc)) from exc

    def create_intent(
        self,
        amount: float,
        currency: str,
        order_reference: str,
        customer_email: str | None,
        idempotency_key: str,
    ) -> IntentResult:
        body = self._call(
            "POST",
            "/v1/orders",
            json={
                "amount": to_minor_units(amount),
                "currency": currency.upper(),
                "receipt": order_reference[:40],
                "notes": {"order_reference": order_reference, "idempotency_key": idempotency_key},
            },
        )
        return IntentResult(
            gateway_payment_id=body["id"],
            client_data={"gateway_order_id": body["id"], "public_key": self.key_id},
            gateway_status=body.get("status"),
            raw_response=json.dumps(body),
        )

    def parse_webhook(self, payload: bytes, headers: Mapping[str, str]) -> GatewayEvent:
        signature = header(headers, "X-Razorpay-Signature")
        if not signature:
            raise WebhookVerificationError("Missing X-Razorpay-Signature header")
        if not hmac.compare_digest(sign(payload, self.webhook_secret), signature):
            raise WebhookVerificationError("Razorpay signature mismatch")

        try:
            event = json.loads(payload)
            event_type = event["event"]
        except (ValueError, KeyError, TypeError) as exc:
            raise MalformedWebhookError(f"Unreadable Razorpay webhook: {exc}") from exc

        entity = ((event.get("payload") or {}).get("payment") or {}).get("entity") or {}

        return GatewayEvent(
            gateway=self.name,
            kind=_EVENT_KINDS.get(event_type, GatewayEventKind.UNKNOWN),
            event_type=event_type,
            gateway_payment_id=entity.get("order_id"),
            gateway_transaction_id=entity.get("id"),
            failure_reason=entity.get("error_description"),
            raw=payload.decode("utf-8"),
        )

    def create_refund(
        self,
        gateway_payment_id: str,
        gateway_transaction_id: str | None,
        amount: float,
        currency: str,
        reason: str,
    ) -> RefundResult:
        if not gateway_transaction_id:
            return RefundResult(success=False, failure_reason="No Razorpay payment to refund")

        try:
            body = self._call(
                "POST",
                f"/v1/payments/{gateway_transaction_id}/refund",
                json={"amount": to_minor_units(amount), "notes": {"reason": reason}},
            )
        except GatewayError as exc:
            return RefundResult(success=False, gateway_status="failed", failure_reason=exc.message)

        return RefundResult(
            success=body.get("status") in ("processed", "pending"),
            gateway_refund_id=body.get("id"),
            gateway_status=body.get("status"),
        )
