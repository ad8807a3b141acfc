"""Wishlist — variants a signed-in customer saved for later.

One entry per (user, variant). Saving a variant twice returns the existing
entry.
"""

from datetime import UTC, datetime

from protean.fields import DateTime, Identifier

from storefront.domain import storefront


@storefront.aggregate
class WishlistEntry:
    user_id = Identifier(required=True)
    variant_id = Identifier(required=True)
    added_at = DateTime()

    @classmethod
    def create(cls, user_id, variant_id):
        return cls(user_id=str(user_id), variant_id=str(variant_id), added_at=datetime.now(UTC))

    def is_owned_by(self, caller):
        return bool(caller.user_id) and str(self.user_id) == str(caller.user_id)


@storefront.repository(part_of=WishlistEntry)
class WishlistEntryRepository:
    def for_user(self, user_id):
        entries = self._dao.query.filter(user_id=str(user_id)).limit(None).all().items
        return sorted(entries, key=lambda e: e.added_at, reverse=True)

    def find_entry(self, user_id, variant_id):
        return self._dao.query.filter(user_id=str(user_id), variant_id=str(variant_id)).all().first
