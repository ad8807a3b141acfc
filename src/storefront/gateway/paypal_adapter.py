"""PayPal payment gateway adapter over the PayPal REST API (httpx).

- Intents are PayPal Orders (``intent=CAPTURE``); the buyer approves on the
  returned ``approval_url`` and the PayPal JS SDK captures the order.
- Webhooks are verified by PayPal's ``verify-webhook-signature`` endpoint
  using the transmission headers and the configured webhook id.
- The local payment is keyed by the PayPal order id, which capture events
  carry in ``resource.supplementary_data.related_ids.order_id``.
"""

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
)

SANDBOX_URL = "https://api-m.sandbox.paypal.com"

_EVENT_KINDS = {
    "PAYMENT.CAPTURE.COMPLETED": GatewayEventKind.PAYMENT_COMPLETED,
    "PAYMENT.CAPTURE.DENIED": GatewayEventKind.PAYMENT_FAILED,
    "PAYMENT.CAPTURE.DECLINED": GatewayEventKind.PAYMENT_FAILED,
}

_TRANSMISSION_HEADERS = {
    "transmission_id": "PAYPAL-TRANSMISSION-ID",
    "transmission_time": "PAYPAL-TRANSMISSION-TIME",
    "transmission_sig": "PAYPAL-TRANSMISSION-SIG",
    "cert_url": "PAYPAL-CERT-URL",
    "auth_algo": "PAYPAL-AUTH-ALGO",
}


class PayPalGateway(PaymentGateway):
    name = "paypal"

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        webhook_id: str,
        base_url: str = SANDBOX_URL,
        timeout: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.client_id = client_id
        self.client_secret = client_secret
        self.webhook_id = webhook_id
        self._client = httpx.Client(base_url=base_url, timeout=timeout, transport=transport)

    # -------------------------------------------------------------------
    # HTTP plumbing
    # -------------------------------------------------------------------
    def _access_token(self) -> str:
        response = self._client.post(
            "/v1/oauth2/token",
            auth=(self.client_id, self.client_secret),
            data={"grant_type": "client_credentials"},
        )
        response.raise_for_status()
        return response.json()["access_token"]

    def _call(self, method: str, path: str, **kwargs) -> dict:
        try:
            token = self._access_token()
            headers = {"Authorization": f"Bearer {token}", **kwargs.pop("headers", {})}
            response = self._client.request(method, path, headers=headers, **kwargs)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPError as exc:
            logger.warning("paypal_call_failed", path=path, error=str(exc))
            raise GatewayError(self.name, str(exc)) from exc

    # -------------------------------------------------------------------
    # Port
    # -------------------------------------------------------------------
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
            "/v2/checkout/orders",
            json={
                "intent": "CAPTURE",
                "purchase_units": [
                    {
                        "reference_id": order_reference,
                        "amount": {"currency_code": currency.upper(), "value": f"{amount:.2f}"},
                    }
                ],
            },
            headers={"PayPal-Request-Id": idempotency_key},
        )

        approval_url = next(
            (link["href"] for link in body.get("links", []) if link.get("rel") in ("approve", "payer-action")),
            None,
        )
        if approval_url is None:
            raise GatewayError(self.name, "PayPal order has no approval link")

        return IntentResult(
            gateway_payment_id=body["id"],
            client_data={"approval_url": approval_url, "public_key": self.client_id},
            gateway_status=body.get("status"),
            raw_response=json.dumps(body),
        )

    def parse_webhook(self, payload: bytes, headers: Mapping[str, str]) -> GatewayEvent:
        transmission = {field: header(headers, name) for field, name in _TRANSMISSION_HEADERS.items()}
        if not all(transmission.values()):
            raise WebhookVerificationError("Missing PayPal transmission headers")

        try:
            event = json.loads(payload)
            event_type = event["event_type"]
        except (ValueError, KeyError, TypeError) as exc:
            raise MalformedWebhookError(f"Unreadable PayPal webhook: {exc}") from exc

        verification = self._call(
            "POST",
            "/v1/notifications/verify-webhook-signature",
            json={**transmission, "webhook_id": self.webhook_id, "webhook_event": event},
        )
        if verification.get("verification_status") != "SUCCESS":
            raise WebhookVerificationError("PayPal rejected the webhook signature")

        resource = event.get("resource") or {}
        related = (resource.get("supplementary_data") or {}).get("related_ids") or {}
        status_details = resource.get("status_details") or {}

        return GatewayEvent(
            gateway=self.name,
            kind=_EVENT_KINDS.get(event_type, GatewayEventKind.UNKNOWN),
            event_type=event_type,
            gateway_payment_id=related.get("order_id"),
            gateway_transaction_id=resource.get("id"),
            failure_reason=status_details.get("reason"),
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
        if not gateway_transaction_id:
            return RefundResult(success=False, failure_reason="No PayPal capture to refund")

        try:
            body = self._call(
                "POST",
                f"/v2/payments/captures/{gateway_transaction_id}/refund",
                json={
                    "amount": {"currency_code": currency.upper(), "value": f"{amount:.2f}"},
                    "note_to_payer": reason[:255],
                },
            )
        except GatewayError as exc:
            return RefundResult(success=False, gateway_status="failed", failure_reason=exc.message)

        return RefundResult(
            success=body.get("status") in ("COMPLETED", "PENDING"),
            gateway_refund_id=body.get("id"),
            gateway_status=body.get("status"),
        )
