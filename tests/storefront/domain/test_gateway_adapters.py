"""Gateway adapters: webhook verification and event mapping, HTTP calls through mock transports."""

import hashlib
import hmac
import json
import time

import httpx
import pytest
from protean.exceptions import ConfigurationError, ObjectNotFoundError
from protean.utils.globals import current_domain

from storefront.exceptions import GatewayError, MalformedWebhookError, WebhookVerificationError
from storefront.gateway import get_gateway, set_gateway
from storefront.gateway.fake_adapter import TEST_SIGNATURE, FakeGateway
from storefront.gateway.paypal_adapter import PayPalGateway
from storefront.gateway.port import GatewayEventKind, header, to_minor_units
from storefront.gateway.razorpay_adapter import RazorpayGateway, sign
from storefront.gateway.stripe_adapter import StripeGateway


class TestPortHelpers:
    def test_header_lookup_is_case_insensitive(self):
        assert header({"stripe-signature": "t=1"}, "Stripe-Signature") == "t=1"
        assert header({}, "Stripe-Signature") is None

    def test_minor_units_are_cents(self):
        assert to_minor_units(45.0) == 4500
        assert to_minor_units(19.99) == 1999


class TestRegistry:
    def test_unknown_gateway_is_not_found(self):
        with pytest.raises(ObjectNotFoundError):
            get_gateway("bitcoin")

    def test_fake_gateway_without_credentials(self, monkeypatch):
        monkeypatch.delenv("STRIPE_SECRET_KEY", raising=False)
        assert isinstance(get_gateway("stripe"), FakeGateway)

    def test_missing_credentials_fail_closed_outside_test_and_development(self, monkeypatch):
        monkeypatch.delenv("STRIPE_SECRET_KEY", raising=False)
        monkeypatch.setitem(current_domain.config["custom"], "ALLOW_FAKE_GATEWAYS", False)

        with pytest.raises(ConfigurationError):
            get_gateway("stripe")

    def test_set_gateway_overrides(self):
        custom = FakeGateway("razorpay")
        set_gateway("razorpay", custom)
        assert get_gateway("razorpay") is custom


class TestFakeGateway:
    def test_intent_ids_follow_gateway_shape(self):
        intent = FakeGateway("stripe").create_intent(45.0, "USD", "PC-1", None, "key-1")
        assert intent.gateway_payment_id.startswith("pi_")
        assert "client_secret" in intent.client_data

        paypal = FakeGateway("paypal").create_intent(45.0, "USD", "PC-1", None, "key-1")
        assert "approval_url" in paypal.client_data

    def test_configured_failure_raises(self):
        gateway = FakeGateway("stripe")
        gateway.configure(should_succeed=False, failure_reason="Card network down")
        with pytest.raises(GatewayError, match="Card network down"):
            gateway.create_intent(45.0, "USD", "PC-1", None, "key-1")

    def test_webhook_requires_test_signature(self):
        payload = json.dumps({"event": "payment.completed", "gateway_payment_id": "pi_1"}).encode()
        with pytest.raises(WebhookVerificationError):
            FakeGateway("stripe").parse_webhook(payload, {"X-Gateway-Signature": "forged"})

    def test_webhook_maps_events(self):
        payload = json.dumps({"event": "payment.completed", "gateway_payment_id": "pi_1"}).encode()
        event = FakeGateway("stripe").parse_webhook(payload, {"x-gateway-signature": TEST_SIGNATURE})
        assert event.kind == GatewayEventKind.PAYMENT_COMPLETED
        assert event.gateway_payment_id == "pi_1"

    def test_unreadable_payload_is_malformed(self):
        with pytest.raises(MalformedWebhookError):
            FakeGateway("stripe").parse_webhook(b"not json", {"X-Gateway-Signature": TEST_SIGNATURE})


def _stripe_signature(payload: bytes, secret: str) -> str:
    timestamp = int(time.time())
    signed = f"{timestamp}.{payload.decode()}".encode()
    digest = hmac.new(secret.encode(), signed, hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={digest}"


class TestStripeWebhooks:
    secret = "whsec_test_secret"

    def _event(self, event_type, **intent):
        return json.dumps(
            {
                "id": "evt_1",
                "object": "event",
                "type": event_type,
                "data": {"object": {"id": "pi_123", "object": "payment_intent", **intent}},
            }
        ).encode()

    def test_signed_success_event(self):
        payload = self._event("payment_intent.succeeded", latest_charge="ch_1")
        gateway = StripeGateway(api_key="sk_test", webhook_secret=self.secret)

        event = gateway.parse_webhook(payload, {"Stripe-Signature": _stripe_signature(payload, self.secret)})

        assert event.kind == GatewayEventKind.PAYMENT_COMPLETED
        assert event.gateway_payment_id == "pi_123"
        assert event.gateway_transaction_id == "ch_1"

    def test_failed_event_carries_reason(self):
        payload = self._event("payment_intent.payment_failed", last_payment_error={"message": "Card declined"})
        gateway = StripeGateway(api_key="sk_test", webhook_secret=self.secret)

        event = gateway.parse_webhook(payload, {"Stripe-Signature": _stripe_signature(payload, self.secret)})

        assert event.kind == GatewayEventKind.PAYMENT_FAILED
        assert event.failure_reason == "Card declined"

    def test_other_events_are_unknown(self):
        payload = self._event("charge.updated")
        gateway = StripeGateway(api_key="sk_test", webhook_secret=self.secret)
        event = gateway.parse_webhook(payload, {"Stripe-Signature": _stripe_signature(payload, self.secret)})
        assert event.kind == GatewayEventKind.UNKNOWN

    def test_wrong_secret_is_rejected(self):
        payload = self._event("payment_intent.succeeded")
        gateway = StripeGateway(api_key="sk_test", webhook_secret=self.secret)
        with pytest.raises(WebhookVerificationError):
            gateway.parse_webhook(payload, {"Stripe-Signature": _stripe_signature(payload, "whsec_other")})

    def test_missing_signature_is_rejected(self):
        gateway = StripeGateway(api_key="sk_test", webhook_secret=self.secret)
        with pytest.raises(WebhookVerificationError):
            gateway.parse_webhook(self._event("payment_intent.succeeded"), {})

    def test_signed_event_without_data_is_malformed(self):
        payload = json.dumps({"id": "evt_2", "object": "event", "type": "payment_intent.succeeded"}).encode()
        gateway = StripeGateway(api_key="sk_test", webhook_secret=self.secret)
        with pytest.raises(MalformedWebhookError):
            gateway.parse_webhook(payload, {"Stripe-Signature": _stripe_signature(payload, self.secret)})


class TestRazorpayGateway:
    secret = "rzp_webhook_secret"

    def _gateway(self, handler=None):
        transport = httpx.MockTransport(handler or (lambda request: httpx.Response(500)))
        return RazorpayGateway("rzp_test_key", "key_secret", self.secret, transport=transport)

    def test_intent_posts_amount_in_minor_units(self):
        seen = {}

        def handler(request):
            seen["path"] = request.url.path
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"id": "order_abc", "status": "created"})

        intent = self._gateway(handler).create_intent(45.0, "INR", "PC-20260101-ABCDEF", None, "key-1")

        assert seen["path"] == "/v1/orders"
        assert seen["body"]["amount"] == 4500
        assert intent.gateway_payment_id == "order_abc"
        assert intent.client_data == {"gateway_order_id": "order_abc", "public_key": "rzp_test_key"}

    def test_http_failure_becomes_gateway_error(self):
        with pytest.raises(GatewayError):
            self._gateway().create_intent(45.0, "INR", "PC-1", None, "key-1")

    def test_signed_capture_event(self):
        payload = json.dumps(
            {
                "event": "payment.captured",
                "payload": {"payment": {"entity": {"id": "pay_1", "order_id": "order_abc"}}},
            }
        ).encode()

        event = self._gateway().parse_webhook(payload, {"X-Razorpay-Signature": sign(payload, self.secret)})

        assert event.kind == GatewayEventKind.PAYMENT_COMPLETED
        assert event.gateway_payment_id == "order_abc"
        assert event.gateway_transaction_id == "pay_1"

    def test_tampered_payload_is_rejected(self):
        payload = b'{"event": "payment.captured"}'
        signature = sign(payload, self.secret)
        with pytest.raises(WebhookVerificationError):
            self._gateway().parse_webhook(payload + b" ", {"X-Razorpay-Signature": signature})

    def test_refund_uses_payment_id(self):
        def handler(request):
            assert request.url.path == "/v1/payments/pay_1/refund"
            return httpx.Response(200, json={"id": "rfnd_1", "status": "processed"})

        result = self._gateway(handler).create_refund("order_abc", "pay_1", 45.0, "INR", "requested")
        assert result.success
        assert result.gateway_refund_id == "rfnd_1"


class TestPayPalGateway:
    def _gateway(self, routes):
        def handler(request):
            if request.url.path == "/v1/oauth2/token":
                return httpx.Response(200, json={"access_token": "token-1"})
            return routes(request)

        return PayPalGateway("client-id", "client-secret", "WH-1", transport=httpx.MockTransport(handler))

    def test_intent_returns_approval_url(self):
        def routes(request):
            assert request.headers["PayPal-Request-Id"] == "key-1"
            assert request.headers["Authorization"] == "Bearer token-1"
            return httpx.Response(
                201,
                json={
                    "id": "5O190127TN364715T",
                    "status": "CREATED",
                    "links": [{"rel": "approve", "href": "https://www.sandbox.paypal.com/checkoutnow?token=5O19"}],
                },
            )

        intent = self._gateway(routes).create_intent(45.0, "USD", "PC-1", None, "key-1")

        assert intent.gateway_payment_id == "5O190127TN364715T"
        assert intent.client_data["approval_url"].startswith("https://www.sandbox.paypal.com")

    def test_webhook_verified_by_paypal(self):
        headers = {
            "PAYPAL-TRANSMISSION-ID": "t-1",
            "PAYPAL-TRANSMISSION-TIME": "2026-01-01T00:00:00Z",
            "PAYPAL-TRANSMISSION-SIG": "sig",
            "PAYPAL-CERT-URL": "https://api.paypal.com/cert",
            "PAYPAL-AUTH-ALGO": "SHA256withRSA",
        }
        payload = json.dumps(
            {
                "event_type": "PAYMENT.CAPTURE.COMPLETED",
                "resource": {
                    "id": "CAPTURE-1",
                    "supplementary_data": {"related_ids": {"order_id": "5O190127TN364715T"}},
                },
            }
        ).encode()

        def routes(request):
            assert request.url.path == "/v1/notifications/verify-webhook-signature"
            assert json.loads(request.content)["webhook_id"] == "WH-1"
            return httpx.Response(200, json={"verification_status": "SUCCESS"})

        event = self._gateway(routes).parse_webhook(payload, headers)

        assert event.kind == GatewayEventKind.PAYMENT_COMPLETED
        assert event.gateway_payment_id == "5O190127TN364715T"
        assert event.gateway_transaction_id == "CAPTURE-1"

    def test_failed_verification_is_rejected(self):
        names = ("TRANSMISSION-ID", "TRANSMISSION-TIME", "TRANSMISSION-SIG", "CERT-URL", "AUTH-ALGO")
        headers = {f"PAYPAL-{name}": "x" for name in names}
        payload = json.dumps({"event_type": "PAYMENT.CAPTURE.COMPLETED"}).encode()

        gateway = self._gateway(lambda request: httpx.Response(200, json={"verification_status": "FAILURE"}))
        with pytest.raises(WebhookVerificationError):
            gateway.parse_webhook(payload, headers)

    def test_missing_transmission_headers_are_rejected(self):
        gateway = self._gateway(lambda request: httpx.Response(200, json={}))
        with pytest.raises(WebhookVerificationError):
            gateway.parse_webhook(b"{}", {})
