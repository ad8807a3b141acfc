"""Payment gateway registry.

``get_gateway(name)`` returns the adapter for stripe, paypal or razorpay:
the real adapter when its credentials are present in the environment. Without
credentials a ``FakeGateway`` stands in only where ``ALLOW_FAKE_GATEWAYS`` is
set (the test and development overlays); anywhere else the lookup fails with
``ConfigurationError``. ``set_gateway`` / ``reset_gateways`` swap
implementations in tests.
"""

import os

from protean.exceptions import ConfigurationError, ObjectNotFoundError

from storefront.gateway.fake_adapter import FakeGateway
from storefront.gateway.paypal_adapter import SANDBOX_URL, PayPalGateway
from storefront.gateway.port import PaymentGateway
from storefront.gateway.razorpay_adapter import RazorpayGateway
from storefront.gateway.stripe_adapter import StripeGateway
from storefront.settings import setting

SUPPORTED_GATEWAYS = ("stripe", "paypal", "razorpay")

_gateways: dict[str, PaymentGateway] = {}


def _timeout() -> float:
    return float(os.environ.get("GATEWAY_TIMEOUT_SECONDS") or setting("GATEWAY_TIMEOUT_SECONDS"))


def _build(name: str) -> PaymentGateway:
    env = os.environ
    if name == "stripe" and env.get("STRIPE_SECRET_KEY"):
        return StripeGateway(
            api_key=env["STRIPE_SECRET_KEY"],
            webhook_secret=env.get("STRIPE_WEBHOOK_SECRET", ""),
            publishable_key=env.get("STRIPE_PUBLISHABLE_KEY"),
        )
    if name == "paypal" and env.get("PAYPAL_CLIENT_ID"):
        return PayPalGateway(
            client_id=env["PAYPAL_CLIENT_ID"],
            client_secret=env.get("PAYPAL_CLIENT_SECRET", ""),
            webhook_id=env.get("PAYPAL_WEBHOOK_ID", ""),
            base_url=env.get("PAYPAL_BASE_URL", SANDBOX_URL),
            timeout=_timeout(),
        )
    if name == "razorpay" and env.get("RAZORPAY_KEY_ID"):
        return RazorpayGateway(
            key_id=env["RAZORPAY_KEY_ID"],
            key_secret=env.get("RAZORPAY_KEY_SECRET", ""),
            webhook_secret=env.get("RAZORPAY_WEBHOOK_SECRET", ""),
            timeout=_timeout(),
        )
    if not setting("ALLOW_FAKE_GATEWAYS"):
        raise ConfigurationError(f"Credentials for the {name} gateway are not configured")
    return FakeGateway(name)


def get_gateway(name: str) -> PaymentGateway:
    """Return the adapter for ``name``; unknown gateways are reported as missing."""
    if name not in SUPPORTED_GATEWAYS:
        raise ObjectNotFoundError(f"Unknown payment gateway: {name}")
    if name not in _gateways:
        _gateways[name] = _build(name)
    return _gateways[name]


def set_gateway(name: str, gateway: PaymentGateway) -> None:
    """Override the adapter for one gateway (useful for tests)."""
    _gateways[name] = gateway


def reset_gateways() -> None:
    """Reset to default gateways."""
    _gateways.clear()
