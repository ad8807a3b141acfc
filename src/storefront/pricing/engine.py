"""Pricing engine — pure functions turning a variant selection into a price breakdown.

No repository access happens here. Callers pass anything exposing ``price``,
``unit_type``, ``turnaround_days``, ``min_quantity`` and ``max_quantity``
(a ``ServiceVariant`` in practice).

    base      = price x quantity   (per_word / per_page / per_hour)
              = price              (fixed)
    subtotal  = base x turnaround multiplier + sum(add-on prices)
"""

import math
from datetime import UTC, datetime, timedelta
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, Integer, List, String, ValueObject

from storefront.domain import storefront


class TurnaroundTier(Enum):
    STANDARD = "standard"
    RUSH = "rush"
    EXPRESS = "express"


TURNAROUND_MULTIPLIERS = {
    TurnaroundTier.STANDARD: 1.0,
    TurnaroundTier.RUSH: 1.5,
    TurnaroundTier.EXPRESS: 2.0,
}

# Fraction of the standard turnaround a faster tier takes
_TURNAROUND_DAY_FACTORS = {
    TurnaroundTier.STANDARD: 1.0,
    TurnaroundTier.RUSH: 0.5,
    TurnaroundTier.EXPRESS: 0.25,
}

ADD_ON_PRICES = {
    "priority_support": 25.0,
    "additional_revision": 15.0,
    "expedited_review": 35.0,
    "style_guide_creation": 50.0,
}

_PER_UNIT_TYPES = {"per_word", "per_page", "per_hour"}


@storefront.value_object
class PriceLine:
    kind = String(required=True, max_length=20)  # base, turnaround, add_on
    label = String(required=True, max_length=100)
    amount = Float(required=True, min_value=0.0)


@storefront.value_object
class PriceBreakdown:
    """Priced selection of one variant. ``to_dict()`` is the API payload."""

    quantity = Integer(required=True, min_value=1)
    unit_price = Float(required=True, min_value=0.0)
    base_price = Float(required=True, min_value=0.0)
    turnaround_tier = String(required=True, max_length=20)
    turnaround_multiplier = Float(required=True, min_value=1.0)
    add_ons_total = Float(default=0.0, min_value=0.0)
    subtotal = Float(required=True, min_value=0.0)
    turnaround_days = Integer(required=True, min_value=1)
    estimated_delivery = DateTime(required=True)
    lines = List(content_type=ValueObject(PriceLine))


def _money(value):
    return round(value + 0.0, 2)


def parse_tier(tier) -> TurnaroundTier:
    if isinstance(tier, TurnaroundTier):
        return tier
    try:
        return TurnaroundTier((tier or TurnaroundTier.STANDARD.value).lower())
    except ValueError:
        raise ValidationError({"turnaround_tier": [f"Unknown turnaround tier: {tier}"]}) from None


def validate_quantity(variant, quantity):
    """Reject quantities outside ``[min_quantity, max_quantity]`` (max unlimited when unset)."""
    minimum = variant.min_quantity or 1
    if quantity is None or quantity < 1:
        raise ValidationError({"quantity": ["Quantity must be at least 1"]})
    if quantity < minimum:
        raise ValidationError({"quantity": [f"Quantity must be at least {minimum}"]})
    if variant.max_quantity is not None and quantity > variant.max_quantity:
        raise ValidationError({"quantity": [f"Quantity cannot exceed {variant.max_quantity}"]})


def calculate_price(variant, quantity) -> float:
    """Base price for a quantity of the variant, before turnaround and add-ons."""
    validate_quantity(variant, quantity)
    if variant.unit_type in _PER_UNIT_TYPES:
        return _money(variant.price * quantity)
    return _money(variant.price)


def add_on_price(key) -> float:
    return ADD_ON_PRICES.get(key, 0.0)


def adjusted_turnaround_days(base_days, tier) -> int:
    tier = parse_tier(tier)
    if tier == TurnaroundTier.STANDARD:
        return base_days
    return max(1, math.ceil(base_days * _TURNAROUND_DAY_FACTORS[tier]))


def quote(variant, quantity, turnaround_tier=TurnaroundTier.STANDARD.value, add_ons=(), now=None) -> PriceBreakdown:
    """Full price breakdown for one selection."""
    tier = parse_tier(turnaround_tier)
    base = calculate_price(variant, quantity)
    multiplier = TURNAROUND_MULTIPLIERS[tier]
    turnaround_surcharge = _money(base * multiplier - base)

    lines = [PriceLine(kind="base", label=f"{quantity} x {variant.unit_type}", amount=base)]
    lines.append(PriceLine(kind="turnaround", label=tier.value, amount=turnaround_surcharge))

    add_ons_total = 0.0
    for key in sorted(set(add_ons or ())):
        amount = add_on_price(key)
        add_ons_total += amount
        lines.append(PriceLine(kind="add_on", label=key, amount=amount))

    days = adjusted_turnaround_days(variant.turnaround_days, tier)
    now = now or datetime.now(UTC)

    return PriceBreakdown(
        quantity=quantity,
        unit_price=_money(variant.price),
        base_price=base,
        turnaround_tier=tier.value,
        turnaround_multiplier=multiplier,
        add_ons_total=_money(add_ons_total),
        subtotal=_money(base * multiplier + add_ons_total),
        turnaround_days=days,
        estimated_delivery=now + timedelta(days=days),
        lines=lines,
    )
