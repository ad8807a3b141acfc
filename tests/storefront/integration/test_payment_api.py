"""Integration tests for payment intents and gateway webhooks."""

import json

import pytest

from storefront.gateway import get_gateway

SIGNED = {"X-Gateway-Signature": "test-signature"}


@pytest.fixture()
def order_id(placed_order):
    return placed_order["order_id"]


def _intent(client, headers, order_id, gateway="stripe"):
    return client.post(f"/payments/{gateway}/intent", json={"order_id": order_id}, headers=headers)


def _webhook(client, gateway, event, gateway_payment_id, headers=SIGNED):
    return client.post(
        f"/webhooks/{gateway}",
        content=json.dumps({"event": event, "gateway_payment_id": gateway_payment_id, "transaction_id": "ch_1"}),
        headers={**headers, "Content-Type": "application/json"},
    )


class TestPaymentIntent:
    def test_create_intent(self, client, customer_headers, order_id):
        response = _intent(client, customer_headers, order_id)

        assert response.status_code == 201
        body = response.json()
        assert body["gateway_payment_id"].startswith("pi_")
        assert body["amount"] == 100.0

    def test_unknown_gateway(self, client, customer_headers, order_id):
        assert _intent(client, customer_headers, order_id, gateway="bitcoin").status_code == 404

    def test_gateway_down(self, client, customer_headers, order_id):
        get_gateway("stripe").configure(should_succeed=False)

        response = _intent(client, customer_headers, order_id)

        assert response.status_code == 502
        assert "error" in response.json()

    def test_someone_elses_order(self, client, other_headers, order_id):
        assert _intent(client, other_headers, order_id).status_code == 404

    def test_already_paid(self, client, customer_headers, order_id):
        payment_id = _intent(client, customer_headers, order_id).json()["gateway_payment_id"]
        _webhook(client, "stripe", "payment.completed", payment_id)

        assert _intent(client, customer_headers, order_id).status_code == 422


class TestWebhooks:
    def test_completion_marks_order_paid(self, client, customer_headers, order_id):
        intent = _intent(client, customer_headers, order_id).json()

        response = _webhook(client, "stripe", "payment.completed", intent["gateway_payment_id"])

        assert response.status_code == 200
        assert response.json() == {"status": "received", "outcome": "applied"}
        assert client.get(f"/orders/{order_id}", headers=customer_headers).json()["status"] == "paid"

        payment = client.get(f"/payments/{intent['payment_id']}", headers=customer_headers).json()
        assert payment["status"] == "completed"

    def test_duplicate_delivery_is_acknowledged(self, client, customer_headers, order_id):
        intent = _intent(client, customer_headers, order_id).json()
        _webhook(client, "stripe", "payment.completed", intent["gateway_payment_id"])

        response = _webhook(client, "stripe", "payment.completed", intent["gateway_payment_id"])

        assert response.status_code == 200
        assert response.json()["outcome"] == "duplicate"

    def test_unknown_payment_is_acknowledged(self, client):
        response = _webhook(client, "paypal", "payment.completed", "PAYID_missing")

        assert response.status_code == 200
        assert response.json()["outcome"] == "unknown_payment"

    def test_bad_signature(self, client, customer_headers, order_id):
        intent = _intent(client, customer_headers, order_id).json()

        response = _webhook(
            client, "stripe", "payment.completed", intent["gateway_payment_id"], headers={"X-Gateway-Signature": "x"}
        )

        assert response.status_code == 400
        assert client.get(f"/orders/{order_id}", headers=customer_headers).json()["status"] == "created"

    def test_malformed_payload(self, client):
        response = client.post("/webhooks/razorpay", content=b"{not json", headers=SIGNED)
        assert response.status_code == 400

    def test_unknown_gateway(self, client):
        assert _webhook(client, "bitcoin", "payment.completed", "x").status_code == 404

    def test_payment_status_is_private(self, client, customer_headers, other_headers, order_id):
        intent = _intent(client, customer_headers, order_id).json()
        assert client.get(f"/payments/{intent['payment_id']}", headers=other_headers).status_code == 404
