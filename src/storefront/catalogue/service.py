"""Service aggregate — an editing/formatting/design/illustration offering."""

import re
from datetime import UTC, datetime
from enum import Enum

from protean.fields import Boolean, DateTime, Float, Integer, String, Text

from storefront.catalogue.events import ServiceCreated, ServiceVisibilityChanged
from storefront.domain import storefront


class ServiceType(Enum):
    EDITING = "editing"
    FORMATTING = "formatting"
    DESIGN = "design"
    ILLUSTRATION = "illustration"


def slugify(value):
    slug = re.sub(r"[^a-z0-9]+", "-", str(value).lower()).strip("-")
    return slug or "service"


@storefront.aggregate
class Service:
    slug = String(required=True, max_length=255, unique=True)
    title = String(required=True, max_length=255)
    description = Text()
    service_type = String(required=True, choices=ServiceType)
    base_price = Float(required=True, min_value=0.0)
    is_active = Boolean(default=True)
    is_featured = Boolean(default=False)
    sort_order = Integer(default=0)
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def create(cls, title, service_type, base_price, slug=None, description=None, is_featured=False, sort_order=0):
        now = datetime.now(UTC)
        service = cls(
            slug=slug or slugify(title),
            title=title,
            description=description,
            service_type=service_type,
            base_price=round(base_price, 2),
            is_active=True,
            is_featured=is_featured,
            sort_order=sort_order,
            created_at=now,
            updated_at=now,
        )
        service.raise_(
            ServiceCreated(
                service_id=str(service.id),
                slug=service.slug,
                title=service.title,
                service_type=service.service_type,
                base_price=service.base_price,
            )
        )
        return service

    def update_details(self, title=None, description=None, base_price=None, sort_order=None):
        if title is not None:
            self.title = title
        if description is not None:
            self.description = description
        if base_price is not None:
            self.base_price = round(base_price, 2)
        if sort_order is not None:
            self.sort_order = sort_order
        self.updated_at = datetime.now(UTC)

    def set_visibility(self, is_active=None, is_featured=None):
        if is_active is not None:
            self.is_active = is_active
        if is_featured is not None:
            self.is_featured = is_featured
        self.updated_at = datetime.now(UTC)

        self.raise_(
            ServiceVisibilityChanged(
                service_id=str(self.id),
                is_active=self.is_active,
                is_featured=self.is_featured,
            )
        )


@storefront.repository(part_of=Service)
class ServiceRepository:
    def find_by_slug(self, slug):
        return self._dao.query.filter(slug=slug).all().first

    def list_active(self):
        services = self._dao.query.filter(is_active=True).limit(None).all().items
        return sorted(services, key=lambda s: (s.sort_order or 0, s.title))
