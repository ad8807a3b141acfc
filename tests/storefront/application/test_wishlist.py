import pytest
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.utils.globals import current_domain

from storefront.cart.store import get_cart_summary
from storefront.catalogue.management import SetVariantActive
from storefront.exceptions import AccessDeniedError
from storefront.wishlist.service import list_wishlist, move_to_cart, remove_from_wishlist, save_to_wishlist


class TestSaving:
    def test_save_and_list(self, customer, per_word_variant_id):
        entry = save_to_wishlist(customer, per_word_variant_id)

        listing = list_wishlist(customer)
        assert [e["entry_id"] for e in listing] == [entry["entry_id"]]
        assert listing[0]["variant_title"] == "Copy edit"
        assert listing[0]["available"] is True

    def test_saving_twice_keeps_one_entry(self, customer, per_word_variant_id):
        first = save_to_wishlist(customer, per_word_variant_id)
        second = save_to_wishlist(customer, per_word_variant_id)

        assert first["entry_id"] == second["entry_id"]
        assert len(list_wishlist(customer)) == 1

    def test_unknown_variant(self, customer):
        with pytest.raises(ObjectNotFoundError):
            save_to_wishlist(customer, "missing-variant")

    def test_guests_have_no_wishlist(self, guest, per_word_variant_id):
        with pytest.raises(AccessDeniedError):
            save_to_wishlist(guest, per_word_variant_id)
        with pytest.raises(AccessDeniedError):
            list_wishlist(guest)

    def test_wishlists_are_private(self, customer, other_customer, per_word_variant_id):
        entry = save_to_wishlist(customer, per_word_variant_id)

        assert list_wishlist(other_customer) == []
        with pytest.raises(ObjectNotFoundError):
            remove_from_wishlist(other_customer, entry["entry_id"])

    def test_deactivated_variant_shows_unavailable(self, customer, per_word_variant_id):
        save_to_wishlist(customer, per_word_variant_id)
        current_domain.process(SetVariantActive(variant_id=per_word_variant_id, is_active=False), asynchronous=False)

        assert list_wishlist(customer)[0]["available"] is False

    def test_remove(self, customer, per_word_variant_id):
        entry = save_to_wishlist(customer, per_word_variant_id)
        remove_from_wishlist(customer, entry["entry_id"])

        assert list_wishlist(customer) == []


class TestMoveToCart:
    def test_moves_minimum_quantity_by_default(self, customer, per_word_variant_id):
        entry = save_to_wishlist(customer, per_word_variant_id)

        summary = move_to_cart(customer, entry["entry_id"])

        assert summary["items"][0]["quantity"] == 1000
        assert list_wishlist(customer) == []

    def test_explicit_quantity(self, customer, per_word_variant_id):
        entry = save_to_wishlist(customer, per_word_variant_id)

        move_to_cart(customer, entry["entry_id"], quantity=5000)

        assert get_cart_summary(customer)["subtotal"] == 100.0

    def test_rejected_line_keeps_the_entry(self, customer, per_word_variant_id):
        entry = save_to_wishlist(customer, per_word_variant_id)

        with pytest.raises(ValidationError):
            move_to_cart(customer, entry["entry_id"], quantity=10)

        assert [e["entry_id"] for e in list_wishlist(customer)] == [entry["entry_id"]]

    def test_someone_elses_entry(self, customer, other_customer, per_word_variant_id):
        entry = save_to_wishlist(customer, per_word_variant_id)

        with pytest.raises(ObjectNotFoundError):
            move_to_cart(other_customer, entry["entry_id"])
