"""Wishlist commands and handler."""

from protean import handle
from protean.fields import Identifier
from protean.utils.globals import current_domain

from storefront.domain import logger, storefront
from storefront.wishlist.wishlist import WishlistEntry


@storefront.command(part_of="WishlistEntry")
class SaveToWishlist:
    user_id = Identifier(required=True)
    variant_id = Identifier(required=True)


@storefront.command(part_of="WishlistEntry")
class RemoveFromWishlist:
    entry_id = Identifier(required=True)


@storefront.command_handler(part_of=WishlistEntry)
class WishlistHandler:
    @handle(SaveToWishlist)
    def save(self, command):
        repo = current_domain.repository_for(WishlistEntry)
        existing = repo.find_entry(command.user_id, command.variant_id)
        if existing is not None:
            return str(existing.id)

        entry = WishlistEntry.create(command.user_id, command.variant_id)
        repo.add(entry)
        logger.info("wishlist_entry_saved", user_id=str(command.user_id), variant_id=str(command.variant_id))
        return str(entry.id)

    @handle(RemoveFromWishlist)
    def remove(self, command):
        repo = current_domain.repository_for(WishlistEntry)
        repo._dao.delete(repo.get(command.entry_id))
