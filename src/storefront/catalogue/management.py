"""Catalogue management — admin commands and handlers for services and variants."""

from protean import handle
from protean.fields import Boolean, Float, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from storefront.catalogue.service import Service
from storefront.catalogue.variant import ServiceVariant
from storefront.domain import logger, storefront


@storefront.command(part_of="Service")
class CreateService:
    title = String(required=True, max_length=255)
    service_type = String(required=True, max_length=50)
    base_price = Float(required=True, min_value=0.0)
    slug = String(max_length=255)
    description = Text()
    is_featured = Boolean(default=False)
    sort_order = Integer(default=0)


@storefront.command(part_of="Service")
class UpdateService:
    service_id = Identifier(required=True)
    title = String(max_length=255)
    description = Text()
    base_price = Float(min_value=0.0)
    sort_order = Integer()


@storefront.command(part_of="Service")
class SetServiceVisibility:
    service_id = Identifier(required=True)
    is_active = Boolean()
    is_featured = Boolean()


@storefront.command(part_of="ServiceVariant")
class AddVariant:
    service_id = Identifier(required=True)
    title = String(required=True, max_length=255)
    price = Float(required=True, min_value=0.0)
    unit_type = String(required=True, max_length=20)
    turnaround_days = Integer(required=True, min_value=1)
    min_quantity = Integer(default=1, min_value=1)
    max_quantity = Integer()
    description = Text()
    sort_order = Integer(default=0)


@storefront.command(part_of="ServiceVariant")
class UpdateVariant:
    variant_id = Identifier(required=True)
    title = String(max_length=255)
    price = Float(min_value=0.0)
    unit_type = String(max_length=20)
    turnaround_days = Integer(min_value=1)
    min_quantity = Integer(min_value=1)
    max_quantity = Integer()


@storefront.command(part_of="ServiceVariant")
class SetVariantActive:
    variant_id = Identifier(required=True)
    is_active = Boolean(required=True)


@storefront.command_handler(part_of=Service)
class ManageServiceHandler:
    @handle(CreateService)
    def create_service(self, command):
        service = Service.create(
            title=command.title,
            service_type=command.service_type,
            base_price=command.base_price,
            slug=command.slug,
            description=command.description,
            is_featured=command.is_featured,
            sort_order=command.sort_order,
        )
        current_domain.repository_for(Service).add(service)
        logger.info("service_created", service_id=str(service.id), slug=service.slug)
        return str(service.id)

    @handle(UpdateService)
    def update_service(self, command):
        repo = current_domain.repository_for(Service)
        service = repo.get(command.service_id)
        service.update_details(
            title=command.title,
            description=command.description,
            base_price=command.base_price,
            sort_order=command.sort_order,
        )
        repo.add(service)

    @handle(SetServiceVisibility)
    def set_visibility(self, command):
        repo = current_domain.repository_for(Service)
        service = repo.get(command.service_id)
        service.set_visibility(is_active=command.is_active, is_featured=command.is_featured)
        repo.add(service)


@storefront.command_handler(part_of=ServiceVariant)
class ManageVariantHandler:
    @handle(AddVariant)
    def add_variant(self, command):
        # Raises ObjectNotFoundError for an unknown service
        current_domain.repository_for(Service).get(command.service_id)

        variant = ServiceVariant.create(
            service_id=command.service_id,
            title=command.title,
            price=command.price,
            unit_type=command.unit_type,
            turnaround_days=command.turnaround_days,
            min_quantity=command.min_quantity,
            max_quantity=command.max_quantity,
            description=command.description,
            sort_order=command.sort_order,
        )
        current_domain.repository_for(ServiceVariant).add(variant)
        return str(variant.id)

    @handle(UpdateVariant)
    def update_variant(self, command):
        repo = current_domain.repository_for(ServiceVariant)
        variant = repo.get(command.variant_id)
        variant.update_terms(
            title=command.title,
            turnaround_days=command.turnaround_days,
            min_quantity=command.min_quantity,
            max_quantity=command.max_quantity,
            unit_type=command.unit_type,
        )
        if command.price is not None:
            variant.reprice(command.price)
        repo.add(variant)

    @handle(SetVariantActive)
    def set_active(self, command):
        repo = current_domain.repository_for(ServiceVariant)
        variant = repo.get(command.variant_id)
        variant.set_active(command.is_active)
        repo.add(variant)
