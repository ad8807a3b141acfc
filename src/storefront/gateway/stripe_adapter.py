"""Stripe payment gateway adapter built on the stripe-python SDK.

- Intents are Stripe PaymentIntents; the browser confirms them with the
  returned ``client_secret``.
- Webhooks are verified with ``stripe.Webhook.construct_event`` against the
  endpoint signing secret before anything in the payload is read.
"""

import json
from collections.abc import Mapping

import stripe

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

_EVENT_KINDS = {
    "payment_intent.succeeded": GatewayEventKind.PAYMENT_COMPLETED,
    "payment_intent.payment_failed": GatewayEventKind.PAYMENT_FAILED,
}


class StripeGateway(PaymentGateway):
    """Production Stripe gateway adapter."""

    name = "stripe"

    def __init__(self, api_key: str, webhook_secret: str, publishable_key: str | None = None) -> None:
        self.api_key = api_key
        self.webhook_secret = webhook_secret
        self.publishable_key = publishable_key

    def create_intent(
        self,
        amount: float,
        currency: str,
        order_reference: str,
        customer_email: str | None,
        idempotency_key: str,
    ) -> IntentResult:
        try:
            intent = stripe.PaymentIntent.create(
                amount=to_minor_units(amount),
                currency=currency.lower(),
                receipt_email=customer_email,
                metadata={"order_reference": order_reference},
                automatic_payment_methods={"enabled": True},
                idempotency_key=idempotency_key,
                api_key=self.api_key,
            )
        except stripe.StripeError as exc:
            logger.warning("stripe_intent_failed", order_reference=order_reference, error=str(exc))
            raise GatewayError(self.name, str(exc)) from exc

        return IntentResult(
            gateway_payment_id=intent.id,
            client_data={"client_secret": intent.client_secret, "public_key": self.publishable_key},
            gateway_status=intent.status,
            raw_response=json.dumps({"id": intent.id, "status": intent.status, "amount": intent.amount}),
        )

    def parse_webhook(self, payload: bytes, headers: Mapping[str, str]) -> GatewayEvent:
        signature = header(headers, "Stripe-Signature")
        if not signature:
            raise WebhookVerificationError("Missing Stripe-Signature header")

        try:
            event = stripe.Webhook.construct_event(payload, signature, self.webhook_secret)
        except stripe.SignatureVerificationError as exc:
            raise WebhookVerificationError(str(exc)) from exc
        except ValueError as exc:
            raise MalformedWebhookError(str(exc)) from exc

        try:
            event_type = event["type"]
            intent = event["data"]["object"]
            last_error = intent.get("last_payment_error") or {}
        except (KeyError, TypeError, AttributeError) as exc:
            raise MalformedWebhookError(f"Unexpected Stripe event shape: {exc}") from exc

        return GatewayEvent(
            gateway=self.name,
            kind=_EVENT_KINDS.get(event_type, GatewayEventKind.UNKNOWN),
            event_type=event_type,
            gateway_payment_id=intent.get("id"),
            gateway_transaction_id=intent.get("latest_charge"),
            failure_reason=last_error.get("message"),
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
        try:
            refund = stripe.Refund.create(
                payment_intent=gateway_payment_id,
                amount=to_minor_units(amount),
                reason="requested_by_customer",
                metadata={"reason": reason},
                api_key=self.api_key,
            )
        except stripe.StripeError as exc:
            return RefundResult(success=False, gateway_status="failed", failure_reason=str(exc))

        return RefundResult(
            success=refund.status in ("succeeded", "pending"),
            gateway_refund_id=refund.id,
            gateway_status=refund.status,
        )
