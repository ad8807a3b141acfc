"""Checkout load scenario.

Many shoppers fill a cart and check out concurrently. A repeated checkout of
the same cart must be rejected with 422.
"""

from locust import HttpUser, SequentialTaskSet, between, task

from loadtests.data_generators import ADMIN_HEADERS, cart_item, checkout_data, service_data, session_key, variant_data
from loadtests.helpers.response import extract_error_detail
from loadtests.helpers.state import ShopperState


def seed_variant(client) -> str | None:
    """Create a service with one variant through the admin API."""
    resp = client.post("/admin/services", json=service_data(), headers=ADMIN_HEADERS, name="POST /admin/services")
    if resp.status_code != 201:
        return None
    service_id = resp.json()["id"]
    resp = client.post(
        f"/admin/services/{service_id}/variants",
        json=variant_data(),
        headers=ADMIN_HEADERS,
        name="POST /admin/services/{id}/variants",
    )
    return resp.json()["id"] if resp.status_code == 201 else None


class CheckoutJourney(SequentialTaskSet):
    """Browse → add to cart → checkout → second checkout (rejected)."""

    def on_start(self):
        self.state = ShopperState(session_key=session_key())
        self.state.variant_id = self.user.variant_id

    @task
    def browse(self):
        self.client.get("/services", name="GET /services")

    @task
    def add_to_cart(self):
        with self.client.post(
            "/cart/items",
            json=cart_item(self.state.variant_id),
            headers=self.state.headers,
            catch_response=True,
            name="POST /cart/items",
        ) as resp:
            if resp.status_code != 201:
                resp.failure(f"Add to cart failed: {resp.status_code} — {extract_error_detail(resp)}")
                self.interrupt()

    @task
    def checkout(self):
        with self.client.post(
            "/checkout",
            json=checkout_data(),
            headers=self.state.headers,
            catch_response=True,
            name="POST /checkout",
        ) as resp:
            if resp.status_code == 201:
                self.state.order_id = resp.json()["order_id"]
            else:
                resp.failure(f"Checkout failed: {resp.status_code} — {extract_error_detail(resp)}")
                self.interrupt()

    @task
    def checkout_again(self):
        with self.client.post(
            "/checkout",
            json=checkout_data(),
            headers=self.state.headers,
            catch_response=True,
            name="POST /checkout (repeat)",
        ) as resp:
            if resp.status_code == 422:
                resp.success()
            else:
                resp.failure(f"Repeat checkout should be rejected, got {resp.status_code}")

    @task
    def done(self):
        self.interrupt()


class CheckoutUser(HttpUser):
    tasks = [CheckoutJourney]
    wait_time = between(0.5, 2)

    def on_start(self):
        self.variant_id = seed_variant(self.client)
        if self.variant_id is None:
            self.stop()
