"""ServiceVariant aggregate — a purchasable configuration of a Service.

Variants reference their service by id rather than living inside the Service
aggregate: carts and orders look variants up directly, and a price change on
one variant must not rewrite the whole service.
"""

from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, Identifier, Integer, String, Text

from storefront.catalogue.events import VariantAdded, VariantRepriced
from storefront.domain import storefront


class UnitType(Enum):
    FIXED = "fixed"
    PER_WORD = "per_word"
    PER_PAGE = "per_page"
    PER_HOUR = "per_hour"


@storefront.aggregate
class ServiceVariant:
    service_id = Identifier(required=True)
    title = String(required=True, max_length=255)
    description = Text()
    price = Float(required=True, min_value=0.0)
    unit_type = String(choices=UnitType, default=UnitType.FIXED.value)
    turnaround_days = Integer(required=True, min_value=1)
    min_quantity = Integer(default=1, min_value=1)
    max_quantity = Integer()  # None means unlimited
    is_active = Boolean(default=True)
    sort_order = Integer(default=0)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def quantity_bounds_must_be_ordered(self):
        if self.max_quantity is not None and self.min_quantity > self.max_quantity:
            raise ValidationError({"max_quantity": ["max_quantity must be greater than or equal to min_quantity"]})

    @classmethod
    def create(
        cls,
        service_id,
        title,
        price,
        turnaround_days,
        unit_type=UnitType.FIXED.value,
        min_quantity=1,
        max_quantity=None,
        description=None,
        sort_order=0,
    ):
        now = datetime.now(UTC)
        variant = cls(
            service_id=service_id,
            title=title,
            description=description,
            price=round(price, 2),
            unit_type=unit_type,
            turnaround_days=turnaround_days,
            min_quantity=min_quantity,
            max_quantity=max_quantity,
            is_active=True,
            sort_order=sort_order,
            created_at=now,
            updated_at=now,
        )
        variant.raise_(
            VariantAdded(
                variant_id=str(variant.id),
                service_id=str(service_id),
                title=title,
                price=variant.price,
                unit_type=variant.unit_type,
                turnaround_days=turnaround_days,
            )
        )
        return variant

    def reprice(self, new_price):
        previous = self.price
        self.price = round(new_price, 2)
        self.updated_at = datetime.now(UTC)
        if previous != self.price:
            self.raise_(
                VariantRepriced(
                    variant_id=str(self.id),
                    previous_price=previous,
                    new_price=self.price,
                )
            )

    def update_terms(self, title=None, turnaround_days=None, min_quantity=None, max_quantity=None, unit_type=None):
        if title is not None:
            self.title = title
        if turnaround_days is not None:
            self.turnaround_days = turnaround_days
        if min_quantity is not None:
            self.min_quantity = min_quantity
        if max_quantity is not None:
            self.max_quantity = max_quantity or None
        if unit_type is not None:
            self.unit_type = unit_type
        self.updated_at = datetime.now(UTC)

    def set_active(self, is_active):
        self.is_active = is_active
        self.updated_at = datetime.now(UTC)


@storefront.repository(part_of=ServiceVariant)
class ServiceVariantRepository:
    def for_service(self, service_id, active_only=True):
        query = self._dao.query.filter(service_id=str(service_id))
        if active_only:
            query = query.filter(is_active=True)
        variants = query.limit(None).all().items
        return sorted(variants, key=lambda v: (v.sort_order or 0, v.price))
