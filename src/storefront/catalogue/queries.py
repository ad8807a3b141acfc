"""Read-side helpers for the catalogue."""

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from storefront.catalogue.service import Service
from storefront.catalogue.variant import ServiceVariant


def find_active_variant(variant_id):
    """Return ``(service, variant)`` for a purchasable variant.

    An inactive variant, or an active variant whose service is inactive, is
    reported exactly like a missing one.
    """
    try:
        variant = current_domain.repository_for(ServiceVariant).get(variant_id)
        service = current_domain.repository_for(Service).get(variant.service_id)
    except ObjectNotFoundError:
        raise ObjectNotFoundError(f"Service variant {variant_id} does not exist") from None

    if not variant.is_active or not service.is_active:
        raise ObjectNotFoundError(f"Service variant {variant_id} does not exist")
    return service, variant


def service_payload(service, variants):
    return {
        "id": str(service.id),
        "slug": service.slug,
        "title": service.title,
        "description": service.description,
        "service_type": service.service_type,
        "base_price": service.base_price,
        "is_featured": service.is_featured,
        "variants": [
            {
                "id": str(v.id),
                "title": v.title,
                "price": v.price,
                "unit_type": v.unit_type,
                "turnaround_days": v.turnaround_days,
                "min_quantity": v.min_quantity,
                "max_quantity": v.max_quantity,
            }
            for v in variants
        ],
    }


def list_services(service_type=None, featured=None):
    variant_repo = current_domain.repository_for(ServiceVariant)
    services = current_domain.repository_for(Service).list_active()
    if service_type:
        services = [s for s in services if s.service_type == service_type]
    if featured is not None:
        services = [s for s in services if bool(s.is_featured) == featured]
    return [service_payload(s, variant_repo.for_service(s.id)) for s in services]


def get_service_by_slug(slug):
    service = current_domain.repository_for(Service).find_by_slug(slug)
    if service is None or not service.is_active:
        raise ObjectNotFoundError(f"Service {slug} does not exist")
    variants = current_domain.repository_for(ServiceVariant).for_service(service.id)
    return service_payload(service, variants)
