"""Integration tests for the public catalogue endpoints."""


class TestBrowse:
    def test_list_services(self, client, per_word_variant_id):
        response = client.get("/services")

        assert response.status_code == 200
        services = response.json()
        assert services[0]["slug"] == "developmental-editing"
        assert services[0]["variants"][0]["id"] == per_word_variant_id

    def test_service_detail(self, client, fixed_variant_id):
        response = client.get("/services/developmental-editing")

        assert response.status_code == 200
        assert response.json()["variants"][0]["price"] == 50.0

    def test_missing_service(self, client):
        response = client.get("/services/ghostwriting")
        assert response.status_code == 404


class TestCalculatePrice:
    def test_rush_with_add_on(self, client, per_word_variant_id):
        response = client.post(
            "/calculate-price",
            json={
                "variant_id": per_word_variant_id,
                "quantity": 80000,
                "turnaround_tier": "rush",
                "add_ons": ["additional_revision"],
            },
        )

        assert response.status_code == 200
        body = response.json()
        assert body["base_price"] == 1600.0
        assert body["subtotal"] == 2415.0
        assert body["turnaround_days"] == 7
        assert [line["kind"] for line in body["lines"]] == ["base", "turnaround", "add_on"]

    def test_quantity_outside_bounds(self, client, per_word_variant_id):
        response = client.post("/calculate-price", json={"variant_id": per_word_variant_id, "quantity": 500})

        assert response.status_code == 422
        assert "quantity" in response.json()["error"]

    def test_unknown_tier_is_a_schema_error(self, client, per_word_variant_id):
        response = client.post(
            "/calculate-price",
            json={"variant_id": per_word_variant_id, "quantity": 5000, "turnaround_tier": "overnight"},
        )
        assert response.status_code == 422

    def test_unknown_variant(self, client):
        response = client.post("/calculate-price", json={"variant_id": "nope", "quantity": 1})
        assert response.status_code == 404


class TestVariants:
    def test_variants_by_slug(self, client, per_word_variant_id, fixed_variant_id):
        response = client.get("/services/developmental-editing/variants")

        assert response.status_code == 200
        assert {v["id"] for v in response.json()} == {per_word_variant_id, fixed_variant_id}

    def test_missing_service(self, client):
        assert client.get("/services/ghostwriting/variants").status_code == 404
