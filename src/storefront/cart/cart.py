"""Shopping Cart aggregate — one mutable cart per caller identity.

A cart belongs either to an authenticated user (``user_id``) or to an
anonymous session (``session_key``), never both. Both columns are unique, so
the store itself refuses a second cart for the same identity. Each variant
appears at most once; adding it again merges the quantity.
"""

import json
from datetime import UTC, datetime

from protean import invariant
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import DateTime, HasMany, Identifier, Integer, String, Text

from storefront.cart.events import CartCleared, CartItemAdded, CartItemRemoved, CartItemUpdated
from storefront.domain import storefront


@storefront.entity(part_of="ShoppingCart")
class CartItem:
    variant_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)
    item_meta = Text()  # JSON: {"turnaround_tier": "...", "add_ons": [...]}
    added_at = DateTime()

    @property
    def meta(self):
        return json.loads(self.item_meta) if self.item_meta else {}


@storefront.aggregate
class ShoppingCart:
    user_id = Identifier(unique=True)
    session_key = String(max_length=255, unique=True)
    items = HasMany(CartItem)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def cart_must_belong_to_exactly_one_identity(self):
        if bool(self.user_id) == bool(self.session_key):
            raise ValidationError({"cart": ["A cart belongs to either a user or a guest session"]})

    @invariant.post
    def variants_must_be_unique(self):
        variant_ids = [str(item.variant_id) for item in self.items]
        if len(variant_ids) != len(set(variant_ids)):
            raise ValidationError({"items": ["A variant may appear only once per cart"]})

    @classmethod
    def create(cls, user_id=None, session_key=None):
        now = datetime.now(UTC)
        return cls(
            user_id=user_id,
            session_key=None if user_id else session_key,
            created_at=now,
            updated_at=now,
        )

    # -------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------
    def line_for(self, variant_id):
        return next((i for i in self.items if str(i.variant_id) == str(variant_id)), None)

    def quantity_of(self, variant_id):
        line = self.line_for(variant_id)
        return line.quantity if line else 0

    @property
    def item_count(self):
        return sum(item.quantity for item in self.items)

    # -------------------------------------------------------------------
    # Item management
    # -------------------------------------------------------------------
    def add_item(self, variant_id, quantity, meta=None):
        """Add a variant, or increase the quantity of its existing line."""
        if quantity < 1:
            raise ValidationError({"quantity": ["Quantity must be at least 1"]})

        now = datetime.now(UTC)
        existing = self.line_for(variant_id)

        if existing:
            existing.quantity += quantity
            if meta:
                existing.item_meta = json.dumps(meta)
            new_quantity = existing.quantity
        else:
            self.add_items(
                CartItem(
                    variant_id=variant_id,
                    quantity=quantity,
                    item_meta=json.dumps(meta or {}),
                    added_at=now,
                )
            )
            new_quantity = quantity

        self.updated_at = now

        self.raise_(
            CartItemAdded(
                cart_id=str(self.id),
                variant_id=str(variant_id),
                quantity_added=quantity,
                new_quantity=new_quantity,
            )
        )

    def update_item(self, variant_id, quantity):
        """Replace a line's quantity. Zero removes the line."""
        line = self.line_for(variant_id)
        if line is None:
            raise ObjectNotFoundError(f"Variant {variant_id} is not in the cart")

        if quantity == 0:
            self.remove_item(variant_id)
            return

        previous_quantity = line.quantity
        line.quantity = quantity
        self.updated_at = datetime.now(UTC)

        self.raise_(
            CartItemUpdated(
                cart_id=str(self.id),
                variant_id=str(variant_id),
                previous_quantity=previous_quantity,
                new_quantity=quantity,
            )
        )

    def remove_item(self, variant_id):
        """Remove a line if present. Removing an absent line is a no-op."""
        line = self.line_for(variant_id)
        if line is None:
            return False

        self.remove_items(line)
        self.updated_at = datetime.now(UTC)

        self.raise_(CartItemRemoved(cart_id=str(self.id), variant_id=str(variant_id)))
        return True

    def clear(self):
        """Drop every line. Clearing an empty cart is a no-op."""
        lines = list(self.items)
        if not lines:
            return 0

        for line in lines:
            self.remove_items(line)
        self.updated_at = datetime.now(UTC)

        self.raise_(CartCleared(cart_id=str(self.id), items_removed=len(lines)))
        return len(lines)


@storefront.repository(part_of=ShoppingCart)
class ShoppingCartRepository:
    def find_for_user(self, user_id):
        return self._dao.query.filter(user_id=str(user_id)).all().first

    def find_for_session(self, session_key):
        return self._dao.query.filter(session_key=session_key).all().first

    def find_for(self, caller):
        if caller.user_id:
            return self.find_for_user(caller.user_id)
        return self.find_for_session(caller.session_key)
