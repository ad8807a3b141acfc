"""Per-user state for Locust scenarios.

Each simulated user keeps the ids returned by earlier requests so later steps
can refer to them. Nothing is shared between users.
"""

from dataclasses import dataclass


@dataclass
class ShopperState:
    session_key: str
    user_id: str | None = None
    variant_id: str | None = None
    order_id: str | None = None
    payment_id: str | None = None
    gateway_payment_id: str | None = None

    @property
    def headers(self) -> dict:
        headers = {"X-Session-Key": self.session_key}
        if self.user_id:
            headers["X-User-Id"] = self.user_id
        return headers
