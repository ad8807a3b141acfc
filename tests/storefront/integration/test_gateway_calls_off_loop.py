"""Routes that call out to payment gateways run outside the event loop."""

import asyncio

import pytest


def _loop_running():
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return False
    return True


@pytest.fixture()
def loop_states():
    return []


class TestGatewayRoutes:
    def test_payment_intent(self, client, customer_headers, monkeypatch, loop_states):
        def fake_intent(caller, order_id, gateway):
            loop_states.append(_loop_running())
            return {"order_id": order_id, "gateway": gateway}

        monkeypatch.setattr("storefront.api.routes.create_payment_intent", fake_intent)

        response = client.post("/payments/stripe/intent", json={"order_id": "order-1"}, headers=customer_headers)

        assert response.status_code == 201
        assert loop_states == [False]

    def test_webhook(self, client, monkeypatch, loop_states):
        def fake_handle(gateway, payload, headers):
            loop_states.append(_loop_running())
            return "ignored"

        monkeypatch.setattr("storefront.api.routes.handle_webhook", fake_handle)

        response = client.post("/webhooks/stripe", content=b"{}")

        assert response.status_code == 200
        assert response.json()["outcome"] == "ignored"
        assert loop_states == [False]

    def test_refund(self, client, admin_headers, monkeypatch, loop_states):
        def fake_process(command):
            loop_states.append(_loop_running())
            return "re_001"

        monkeypatch.setattr("storefront.api.admin._process", fake_process)

        response = client.post("/admin/orders/order-1/refund", json={"reason": "Duplicate"}, headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["gateway_refund_id"] == "re_001"
        assert loop_states == [False]
