"""Caller-facing wishlist operations.

Only signed-in customers keep a wishlist. Entries belonging to someone else
look missing.
"""

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from storefront.cart import store as cart_store
from storefront.catalogue.queries import find_active_variant
from storefront.domain import logger
from storefront.exceptions import AccessDeniedError
from storefront.wishlist.management import RemoveFromWishlist, SaveToWishlist
from storefront.wishlist.wishlist import WishlistEntry


def _require_user(caller):
    if not caller.user_id:
        raise AccessDeniedError("Sign in to use the wishlist")


def _entry_for(caller, entry_id):
    try:
        entry = current_domain.repository_for(WishlistEntry).get(entry_id)
    except ObjectNotFoundError:
        raise ObjectNotFoundError(f"Wishlist entry {entry_id} does not exist") from None
    if not entry.is_owned_by(caller):
        raise ObjectNotFoundError(f"Wishlist entry {entry_id} does not exist")
    return entry


def entry_payload(entry):
    payload = {
        "entry_id": str(entry.id),
        "variant_id": str(entry.variant_id),
        "added_at": entry.added_at.isoformat() if entry.added_at else None,
        "available": True,
    }
    try:
        service, variant = find_active_variant(entry.variant_id)
    except ObjectNotFoundError:
        payload["available"] = False
        return payload
    payload.update(
        service_title=service.title,
        variant_title=variant.title,
        price=variant.price,
        unit_type=variant.unit_type,
    )
    return payload


def list_wishlist(caller):
    _require_user(caller)
    return [entry_payload(e) for e in current_domain.repository_for(WishlistEntry).for_user(caller.user_id)]


def save_to_wishlist(caller, variant_id):
    _require_user(caller)
    find_active_variant(variant_id)
    entry_id = current_domain.process(
        SaveToWishlist(user_id=caller.user_id, variant_id=variant_id), asynchronous=False
    )
    return entry_payload(current_domain.repository_for(WishlistEntry).get(entry_id))


def remove_from_wishlist(caller, entry_id):
    _require_user(caller)
    _entry_for(caller, entry_id)
    current_domain.process(RemoveFromWishlist(entry_id=entry_id), asynchronous=False)


def move_to_cart(caller, entry_id, quantity=None):
    """Add the saved variant to the caller's cart, then drop the entry.

    Quantity defaults to the variant's minimum. The entry survives when the
    cart rejects the line.
    """
    _require_user(caller)
    entry = _entry_for(caller, entry_id)
    _, variant = find_active_variant(entry.variant_id)

    summary = cart_store.add_item(caller, str(entry.variant_id), quantity or variant.min_quantity or 1)
    current_domain.process(RemoveFromWishlist(entry_id=str(entry.id)), asynchronous=False)
    logger.info("wishlist_entry_moved_to_cart", entry_id=str(entry.id), variant_id=str(entry.variant_id))
    return summary
