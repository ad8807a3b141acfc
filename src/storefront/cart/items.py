"""Cart line management — commands and handler."""

import json

from protean import handle
from protean.fields import Identifier, Integer, Text
from protean.utils.globals import current_domain

from storefront.cart.cart import ShoppingCart
from storefront.catalogue.queries import find_active_variant
from storefront.domain import storefront
from storefront.pricing.engine import parse_tier, validate_quantity


def normalize_meta(meta):
    """Keep only the selections the pricing engine understands."""
    meta = meta or {}
    normalized = {"turnaround_tier": parse_tier(meta.get("turnaround_tier")).value}
    add_ons = meta.get("add_ons") or []
    normalized["add_ons"] = sorted({str(key) for key in add_ons})
    return normalized


@storefront.command(part_of="ShoppingCart")
class AddToCart:
    cart_id = Identifier(required=True)
    variant_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)
    item_meta = Text()  # JSON


@storefront.command(part_of="ShoppingCart")
class UpdateCartItem:
    cart_id = Identifier(required=True)
    variant_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=0)


@storefront.command(part_of="ShoppingCart")
class RemoveFromCart:
    cart_id = Identifier(required=True)
    variant_id = Identifier(required=True)


@storefront.command(part_of="ShoppingCart")
class ClearCart:
    cart_id = Identifier(required=True)


@storefront.command_handler(part_of=ShoppingCart)
class ManageCartItemsHandler:
    @handle(AddToCart)
    def add_to_cart(self, command):
        _, variant = find_active_variant(command.variant_id)

        repo = current_domain.repository_for(ShoppingCart)
        cart = repo.get(command.cart_id)

        # Bounds apply to the merged quantity, checked before the line changes
        validate_quantity(variant, cart.quantity_of(variant.id) + command.quantity)

        meta = json.loads(command.item_meta) if command.item_meta else None
        cart.add_item(
            variant_id=str(variant.id),
            quantity=command.quantity,
            meta=normalize_meta(meta) if meta is not None else None,
        )
        repo.add(cart)

    @handle(UpdateCartItem)
    def update_cart_item(self, command):
        repo = current_domain.repository_for(ShoppingCart)
        cart = repo.get(command.cart_id)

        if command.quantity > 0:
            if cart.line_for(command.variant_id) is not None:
                _, variant = find_active_variant(command.variant_id)
                validate_quantity(variant, command.quantity)

        cart.update_item(command.variant_id, command.quantity)
        repo.add(cart)

    @handle(RemoveFromCart)
    def remove_from_cart(self, command):
        repo = current_domain.repository_for(ShoppingCart)
        cart = repo.get(command.cart_id)
        if cart.remove_item(command.variant_id):
            repo.add(cart)

    @handle(ClearCart)
    def clear_cart(self, command):
        repo = current_domain.repository_for(ShoppingCart)
        cart = repo.get(command.cart_id)
        if cart.clear():
            repo.add(cart)
