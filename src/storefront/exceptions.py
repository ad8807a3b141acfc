"""Storefront error taxonomy.

Business-rule conflicts subclass Protean's ``ValidationError`` so they surface
as 422 with the usual ``{"field": ["message"]}`` payload. Missing coupons are a
flavour of ``ObjectNotFoundError`` (404). The remaining errors map to their own
status codes in ``storefront.api.errors``.
"""

from protean.exceptions import ObjectNotFoundError, ValidationError


class EmptyCartError(ValidationError):
    def __init__(self, message="Cart is empty"):
        super().__init__({"cart": [message]})


class AlreadyPaidError(ValidationError):
    def __init__(self, order_number):
        super().__init__({"order": [f"Order {order_number} is already paid"]})


class CouponExpiredError(ValidationError):
    def __init__(self, code):
        super().__init__({"coupon_code": [f"Coupon {code} is not valid at this time"]})


class CouponBelowMinimumError(ValidationError):
    def __init__(self, code, minimum_amount):
        super().__init__({"coupon_code": [f"Coupon {code} requires a subtotal of at least {minimum_amount:.2f}"]})


class CouponExhaustedError(ValidationError):
    def __init__(self, code):
        super().__init__({"coupon_code": [f"Coupon {code} has reached its usage limit"]})


class CouponNotFoundError(ObjectNotFoundError):
    def __init__(self, code):
        super().__init__(f"Coupon {code} does not exist or is inactive")
        self.code = code


class AccessDeniedError(Exception):
    """Caller is known to exist but may not touch the resource."""


class GatewayError(Exception):
    """A payment gateway call failed. Safe to retry."""

    def __init__(self, gateway, message):
        super().__init__(f"{gateway}: {message}")
        self.gateway = gateway
        self.message = message


class WebhookVerificationError(Exception):
    """Webhook signature is missing or does not match."""


class MalformedWebhookError(Exception):
    """Webhook payload could not be parsed."""


class InvariantViolationError(Exception):
    """Internal state that should be impossible was observed."""
