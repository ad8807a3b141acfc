"""Human-readable order numbers: ``<PREFIX>-<YYYYMMDD>-<6 hex>``."""

from datetime import UTC, datetime
from uuid import uuid4

from storefront.exceptions import InvariantViolationError

_MAX_ATTEMPTS = 10


def candidate_number(prefix, now=None):
    now = now or datetime.now(UTC)
    return f"{prefix}-{now:%Y%m%d}-{uuid4().hex[:6].upper()}"


def generate_order_number(prefix, is_taken, now=None):
    """Return a number ``is_taken`` does not know about.

    The unique column on ``Order.order_number`` still guards the insert.
    """
    for _ in range(_MAX_ATTEMPTS):
        number = candidate_number(prefix, now)
        if not is_taken(number):
            return number
    raise InvariantViolationError(f"Could not allocate a unique order number after {_MAX_ATTEMPTS} attempts")
