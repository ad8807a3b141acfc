"""Payment gateway port (abstract interface).

Every gateway adapter turns the provider's API into three calls: create a
payment intent for an order, turn a signed webhook into a ``GatewayEvent``,
and refund a completed payment. Reconciliation only ever sees
``GatewayEvent`` values, never provider payloads.
"""

from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum


class GatewayEventKind(Enum):
    PAYMENT_COMPLETED = "payment_completed"
    PAYMENT_FAILED = "payment_failed"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class IntentResult:
    """Gateway-side payment object created for an order."""

    gateway_payment_id: str
    client_data: dict = field(default_factory=dict)  # client_secret / approval_url / gateway_order_id
    gateway_status: str | None = None
    raw_response: str | None = None


@dataclass(frozen=True)
class RefundResult:
    """Result of a refund attempt."""

    success: bool
    gateway_refund_id: str | None = None
    gateway_status: str | None = None
    failure_reason: str | None = None


@dataclass(frozen=True)
class GatewayEvent:
    """A verified webhook, reduced to what reconciliation needs."""

    gateway: str
    kind: GatewayEventKind
    event_type: str
    gateway_payment_id: str | None = None
    gateway_transaction_id: str | None = None
    failure_reason: str | None = None
    raw: str = ""


def header(headers: Mapping[str, str], name: str) -> str | None:
    """Case-insensitive header lookup that works for plain dicts too."""
    wanted = name.lower()
    for key, value in headers.items():
        if key.lower() == wanted:
            return value
    return None


def to_minor_units(amount: float) -> int:
    return int(round(amount * 100))


class PaymentGateway(ABC):
    """Abstract payment gateway interface."""

    name: str

    @abstractmethod
    def create_intent(
        self,
        amount: float,
        currency: str,
        order_reference: str,
        customer_email: str | None,
        idempotency_key: str,
    ) -> IntentResult:
        """Create the gateway-side payment object. Raises ``GatewayError`` on failure."""
        ...

    @abstractmethod
    def parse_webhook(self, payload: bytes, headers: Mapping[str, str]) -> GatewayEvent:
        """Verify the signature, then parse the payload.

        Raises ``WebhookVerificationError`` for a missing or bad signature and
        ``MalformedWebhookError`` for a payload that cannot be read.
        """
        ...

    @abstractmethod
    def create_refund(
        self,
        gateway_payment_id: str,
        gateway_transaction_id: str | None,
        amount: float,
        currency: str,
        reason: str,
    ) -> RefundResult:
        """Refund a completed payment."""
        ...
