"""Domain events for the catalogue aggregates."""

from protean.fields import Boolean, Float, Identifier, Integer, String

from storefront.domain import storefront


@storefront.event(part_of="Service")
class ServiceCreated:
    """A new editing service was added to the catalogue."""

    __version__ = "v1"

    service_id = Identifier(required=True)
    slug = String(required=True)
    title = String(required=True)
    service_type = String(required=True)
    base_price = Float(required=True)


@storefront.event(part_of="Service")
class ServiceVisibilityChanged:
    """A service was activated, deactivated, featured or unfeatured."""

    __version__ = "v1"

    service_id = Identifier(required=True)
    is_active = Boolean(required=True)
    is_featured = Boolean(required=True)


@storefront.event(part_of="ServiceVariant")
class VariantAdded:
    """A purchasable variant was attached to a service."""

    __version__ = "v1"

    variant_id = Identifier(required=True)
    service_id = Identifier(required=True)
    title = String(required=True)
    price = Float(required=True)
    unit_type = String(required=True)
    turnaround_days = Integer(required=True)


@storefront.event(part_of="ServiceVariant")
class VariantRepriced:
    """A variant's price changed. Existing orders keep their snapshot price."""

    __version__ = "v1"

    variant_id = Identifier(required=True)
    previous_price = Float(required=True)
    new_price = Float(required=True)
