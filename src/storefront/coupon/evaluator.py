"""Coupon evaluation against a computed subtotal. Never records usage."""

from protean.utils.globals import current_domain

from storefront.coupon.coupon import Coupon, normalize_code
from storefront.exceptions import CouponNotFoundError


def load_coupon(code):
    """Return the coupon for ``code`` or raise ``CouponNotFoundError``."""
    coupon = current_domain.repository_for(Coupon).find_by_code(code)
    if coupon is None or not coupon.is_active:
        raise CouponNotFoundError(normalize_code(code))
    return coupon


def evaluate_coupon(code, subtotal, now=None):
    """Discount amount ``code`` grants on ``subtotal``."""
    return load_coupon(code).calculate_discount(subtotal, now=now)
