"""Integration tests for the wishlist endpoints."""


def _save(client, headers, variant_id):
    return client.post("/wishlist", json={"variant_id": variant_id}, headers=headers)


class TestWishlist:
    def test_save_list_remove(self, client, customer_headers, per_word_variant_id):
        response = _save(client, customer_headers, per_word_variant_id)
        assert response.status_code == 201
        entry_id = response.json()["entry_id"]

        listing = client.get("/wishlist", headers=customer_headers).json()
        assert [e["entry_id"] for e in listing] == [entry_id]

        assert client.delete(f"/wishlist/{entry_id}", headers=customer_headers).json() == {"status": "removed"}
        assert client.get("/wishlist", headers=customer_headers).json() == []

    def test_guest_is_forbidden(self, client, guest_headers, per_word_variant_id):
        assert _save(client, guest_headers, per_word_variant_id).status_code == 403

    def test_unknown_variant(self, client, customer_headers):
        assert _save(client, customer_headers, "missing").status_code == 404

    def test_other_customers_entry_looks_missing(self, client, customer_headers, other_headers, per_word_variant_id):
        entry_id = _save(client, customer_headers, per_word_variant_id).json()["entry_id"]
        assert client.delete(f"/wishlist/{entry_id}", headers=other_headers).status_code == 404


class TestMoveToCart:
    def test_move_with_quantity(self, client, customer_headers, per_word_variant_id):
        entry_id = _save(client, customer_headers, per_word_variant_id).json()["entry_id"]

        response = client.post(f"/wishlist/{entry_id}/move-to-cart", json={"quantity": 5000}, headers=customer_headers)

        assert response.status_code == 200
        assert response.json()["subtotal"] == 100.0
        assert client.get("/wishlist", headers=customer_headers).json() == []

    def test_move_without_body_uses_minimum(self, client, customer_headers, per_word_variant_id):
        entry_id = _save(client, customer_headers, per_word_variant_id).json()["entry_id"]

        response = client.post(f"/wishlist/{entry_id}/move-to-cart", headers=customer_headers)

        assert response.status_code == 200
        assert response.json()["items"][0]["quantity"] == 1000

    def test_quantity_out_of_bounds(self, client, customer_headers, per_word_variant_id):
        entry_id = _save(client, customer_headers, per_word_variant_id).json()["entry_id"]

        response = client.post(f"/wishlist/{entry_id}/move-to-cart", json={"quantity": 10}, headers=customer_headers)

        assert response.status_code == 422
        assert len(client.get("/wishlist", headers=customer_headers).json()) == 1
