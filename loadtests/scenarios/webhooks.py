"""Duplicate webhook scenario.

Gateways retry deliveries. Every copy of a completion webhook must be
answered with 200 and the order must be paid exactly once.
"""

from locust import HttpUser, SequentialTaskSet, between, task

from loadtests.data_generators import WEBHOOK_HEADERS, cart_item, checkout_data, session_key, webhook_success
from loadtests.helpers.response import extract_error_detail
from loadtests.helpers.state import ShopperState
from loadtests.scenarios.checkout import seed_variant

DELIVERIES = 5


class DuplicateWebhookJourney(SequentialTaskSet):
    def on_start(self):
        self.state = ShopperState(session_key=session_key())
        self.state.variant_id = self.user.variant_id

    @task
    def place_order(self):
        headers = self.state.headers
        self.client.post("/cart/items", json=cart_item(self.state.variant_id), headers=headers, name="POST /cart/items")
        resp = self.client.post("/checkout", json=checkout_data(), headers=headers, name="POST /checkout")
        if resp.status_code != 201:
            self.interrupt()
        self.state.order_id = resp.json()["order_id"]

    @task
    def create_intent(self):
        with self.client.post(
            "/payments/stripe/intent",
            json={"order_id": self.state.order_id},
            headers=self.state.headers,
            catch_response=True,
            name="POST /payments/{gateway}/intent",
        ) as resp:
            if resp.status_code == 201:
                body = resp.json()
                self.state.payment_id = body["payment_id"]
                self.state.gateway_payment_id = body["gateway_payment_id"]
            else:
                resp.failure(f"Intent failed: {resp.status_code} — {extract_error_detail(resp)}")
                self.interrupt()

    @task
    def deliver_webhook_repeatedly(self):
        payload = webhook_success(self.state.gateway_payment_id)
        for _ in range(DELIVERIES):
            with self.client.post(
                "/webhooks/stripe",
                json=payload,
                headers=WEBHOOK_HEADERS,
                catch_response=True,
                name="POST /webhooks/{gateway}",
            ) as resp:
                if resp.status_code != 200:
                    resp.failure(f"Webhook rejected: {resp.status_code} — {extract_error_detail(resp)}")

    @task
    def verify_paid_once(self):
        with self.client.get(
            f"/orders/{self.state.order_id}",
            headers=self.state.headers,
            catch_response=True,
            name="GET /orders/{id}",
        ) as resp:
            history = [entry for entry in resp.json().get("history", []) if entry["event"] == "paid"]
            if resp.json().get("status") != "paid" or len(history) != 1:
                resp.failure("Order was not paid exactly once")

    @task
    def done(self):
        self.interrupt()


class DuplicateWebhookUser(HttpUser):
    tasks = [DuplicateWebhookJourney]
    wait_time = between(0.5, 2)

    def on_start(self):
        self.variant_id = seed_variant(self.client)
        if self.variant_id is None:
            self.stop()
