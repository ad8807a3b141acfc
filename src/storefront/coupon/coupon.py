"""Coupon aggregate — a discount code with a validity window and usage cap.

Checks run in a fixed order so callers always see the most fundamental
problem first: unknown/inactive, outside the validity window, subtotal below
the minimum, usage limit reached.
"""

from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, Integer, String, Text

from storefront.coupon.events import CouponCreated, CouponDeactivated, CouponRedeemed
from storefront.domain import storefront
from storefront.exceptions import (
    CouponBelowMinimumError,
    CouponExhaustedError,
    CouponExpiredError,
    CouponNotFoundError,
)


class CouponType(Enum):
    FIXED = "fixed"
    PERCENTAGE = "percentage"


def normalize_code(code):
    return (code or "").strip().upper()


def _aware(moment):
    if moment is not None and moment.tzinfo is None:
        return moment.replace(tzinfo=UTC)
    return moment


@storefront.aggregate
class Coupon:
    code = String(required=True, max_length=50, unique=True)
    name = String(max_length=255)
    description = Text()
    coupon_type = String(required=True, choices=CouponType)
    value = Float(required=True, min_value=0.0)
    minimum_amount = Float(min_value=0.0)
    maximum_discount = Float(min_value=0.0)
    valid_from = DateTime(required=True)
    valid_to = DateTime(required=True)
    usage_limit = Integer(min_value=1)
    used_count = Integer(default=0, min_value=0)
    is_active = Boolean(default=True)
    created_at = DateTime()

    @invariant.post
    def usage_must_not_exceed_limit(self):
        if self.usage_limit is not None and (self.used_count or 0) > self.usage_limit:
            raise ValidationError({"used_count": ["Coupon usage cannot exceed its limit"]})

    @invariant.post
    def validity_window_must_be_ordered(self):
        if self.valid_from and self.valid_to and _aware(self.valid_from) > _aware(self.valid_to):
            raise ValidationError({"valid_to": ["valid_to must not precede valid_from"]})

    @invariant.post
    def percentage_must_not_exceed_hundred(self):
        if self.coupon_type == CouponType.PERCENTAGE.value and self.value > 100:
            raise ValidationError({"value": ["A percentage coupon cannot exceed 100"]})

    @classmethod
    def create(
        cls,
        code,
        coupon_type,
        value,
        valid_from,
        valid_to,
        name=None,
        description=None,
        minimum_amount=None,
        maximum_discount=None,
        usage_limit=None,
    ):
        coupon = cls(
            code=normalize_code(code),
            name=name,
            description=description,
            coupon_type=coupon_type,
            value=value,
            minimum_amount=minimum_amount,
            maximum_discount=maximum_discount,
            valid_from=_aware(valid_from),
            valid_to=_aware(valid_to),
            usage_limit=usage_limit,
            used_count=0,
            is_active=True,
            created_at=datetime.now(UTC),
        )
        coupon.raise_(CouponCreated(coupon_id=str(coupon.id), code=coupon.code, coupon_type=coupon.coupon_type))
        return coupon

    # -------------------------------------------------------------------
    # Evaluation
    # -------------------------------------------------------------------
    def is_exhausted(self):
        return self.usage_limit is not None and (self.used_count or 0) >= self.usage_limit

    def assert_applicable(self, subtotal, now=None):
        now = now or datetime.now(UTC)
        if not self.is_active:
            raise CouponNotFoundError(self.code)
        if not (_aware(self.valid_from) <= now <= _aware(self.valid_to)):
            raise CouponExpiredError(self.code)
        if self.minimum_amount is not None and subtotal < self.minimum_amount:
            raise CouponBelowMinimumError(self.code, self.minimum_amount)
        if self.is_exhausted():
            raise CouponExhaustedError(self.code)

    def calculate_discount(self, subtotal, now=None):
        """Discount for a subtotal, never more than the subtotal or ``maximum_discount``."""
        self.assert_applicable(subtotal, now)

        if self.coupon_type == CouponType.PERCENTAGE.value:
            discount = subtotal * self.value / 100
        else:
            discount = self.value

        if self.maximum_discount is not None:
            discount = min(discount, self.maximum_discount)

        return round(max(0.0, min(discount, subtotal)), 2)

    # -------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------
    def redeem(self, order_id):
        if self.is_exhausted():
            raise CouponExhaustedError(self.code)
        self.used_count = (self.used_count or 0) + 1
        self.raise_(
            CouponRedeemed(
                coupon_id=str(self.id),
                code=self.code,
                order_id=str(order_id),
                used_count=self.used_count,
            )
        )

    def deactivate(self):
        if not self.is_active:
            return
        self.is_active = False
        self.raise_(CouponDeactivated(coupon_id=str(self.id), code=self.code))


@storefront.repository(part_of=Coupon)
class CouponRepository:
    def find_by_code(self, code):
        return self._dao.query.filter(code=normalize_code(code)).all().first
