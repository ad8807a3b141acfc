"""Cart management — commands and handler.

Handles cart creation and folding a guest cart into a user's cart at login.
"""

from protean import handle
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from storefront.cart.cart import ShoppingCart
from storefront.catalogue.queries import find_active_variant
from storefront.domain import logger, storefront
from storefront.pricing.engine import validate_quantity


@storefront.command(part_of="ShoppingCart")
class OpenCart:
    """Create the cart for a user or a guest session."""

    user_id = Identifier()
    session_key = String(max_length=255)


@storefront.command(part_of="ShoppingCart")
class MergeGuestCart:
    """Move every line of a guest session cart into a user's cart."""

    cart_id = Identifier(required=True)
    guest_cart_id = Identifier(required=True)


@storefront.command_handler(part_of=ShoppingCart)
class ManageCartHandler:
    @handle(OpenCart)
    def open_cart(self, command):
        cart = ShoppingCart.create(user_id=command.user_id, session_key=command.session_key)
        current_domain.repository_for(ShoppingCart).add(cart)
        return str(cart.id)

    @handle(MergeGuestCart)
    def merge_guest_cart(self, command):
        repo = current_domain.repository_for(ShoppingCart)
        cart = repo.get(command.cart_id)
        guest_cart = repo.get(command.guest_cart_id)

        merged, skipped = 0, 0
        for line in list(guest_cart.items):
            try:
                _, variant = find_active_variant(line.variant_id)
                validate_quantity(variant, cart.quantity_of(line.variant_id) + line.quantity)
            except (ObjectNotFoundError, ValidationError) as exc:
                logger.info("guest_line_dropped", variant_id=str(line.variant_id), reason=str(exc))
                skipped += 1
                continue
            cart.add_item(line.variant_id, line.quantity, meta=line.meta or None)
            merged += 1

        repo.add(cart)
        repo._dao.delete(guest_cart)

        logger.info("guest_cart_merged", cart_id=str(cart.id), merged=merged, skipped=skipped)
        return merged
