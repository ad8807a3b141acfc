"""Integration tests for checkout and order endpoints."""

import pytest


@pytest.fixture()
def filled_cart(client, customer_headers, per_word_variant_id):
    client.post("/cart/items", json={"variant_id": per_word_variant_id, "quantity": 5000}, headers=customer_headers)


def _checkout(client, headers, billing, **extra):
    return client.post(
        "/checkout",
        json={"billing_details": billing, "payment_method": "stripe", **extra},
        headers=headers,
    )


class TestCheckoutEndpoint:
    def test_checkout(self, client, customer_headers, billing_payload, filled_cart):
        response = _checkout(client, customer_headers, billing_payload)

        assert response.status_code == 201
        body = response.json()
        assert body["total_amount"] == 100.0
        assert body["payment_required"] is True
        assert client.get("/cart", headers=customer_headers).json()["items"] == []

    def test_empty_cart(self, client, customer_headers, billing_payload):
        response = _checkout(client, customer_headers, billing_payload)
        assert response.status_code == 422

    def test_second_checkout_is_rejected(self, client, customer_headers, billing_payload, filled_cart):
        _checkout(client, customer_headers, billing_payload)
        assert _checkout(client, customer_headers, billing_payload).status_code == 422

    def test_missing_billing_email(self, client, customer_headers, filled_cart):
        response = _checkout(client, customer_headers, {"name": "Ada Writer"})
        assert response.status_code == 422

    def test_unsupported_payment_method(self, client, customer_headers, billing_payload, filled_cart):
        response = client.post(
            "/checkout",
            json={"billing_details": billing_payload, "payment_method": "cash"},
            headers=customer_headers,
        )
        assert response.status_code == 422

    def test_exhausted_coupon(
        self, client, customer_headers, other_headers, billing_payload, per_word_variant_id, filled_cart, make_coupon
    ):
        make_coupon("ONCE", usage_limit=1)
        client.post("/cart/items", json={"variant_id": per_word_variant_id, "quantity": 5000}, headers=other_headers)
        assert _checkout(client, other_headers, billing_payload, coupon_code="ONCE").status_code == 201

        response = _checkout(client, customer_headers, billing_payload, coupon_code="ONCE")

        assert response.status_code == 422
        assert client.get("/cart", headers=customer_headers).json()["item_count"] == 5000


class TestOrderEndpoints:
    def test_order_detail_and_list(self, client, customer_headers, billing_payload, filled_cart):
        order_id = _checkout(client, customer_headers, billing_payload).json()["order_id"]

        detail = client.get(f"/orders/{order_id}", headers=customer_headers)
        assert detail.status_code == 200
        assert detail.json()["status"] == "created"
        assert detail.json()["history"][0]["event"] == "placed"

        listing = client.get("/orders", headers=customer_headers).json()
        assert [o["order_id"] for o in listing] == [order_id]
        assert "history" not in listing[0]

    def test_other_callers_get_404(self, client, customer_headers, other_headers, billing_payload, filled_cart):
        order_id = _checkout(client, customer_headers, billing_payload).json()["order_id"]
        assert client.get(f"/orders/{order_id}", headers=other_headers).status_code == 404

    def test_post_message(self, client, customer_headers, billing_payload, filled_cart):
        order_id = _checkout(client, customer_headers, billing_payload).json()["order_id"]

        response = client.post(
            f"/orders/{order_id}/messages", json={"message": "Please keep my Oxford commas"}, headers=customer_headers
        )

        assert response.status_code == 201
        history = client.get(f"/orders/{order_id}", headers=customer_headers).json()["history"]
        assert history[-1]["event"] == "message"
        assert history[-1]["actor"] == "user-001"

    def test_blank_message_is_rejected(self, client, customer_headers, billing_payload, filled_cart):
        order_id = _checkout(client, customer_headers, billing_payload).json()["order_id"]
        response = client.post(f"/orders/{order_id}/messages", json={"message": "   "}, headers=customer_headers)
        assert response.status_code == 422
