import pytest
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.utils.globals import current_domain

from storefront.catalogue.management import SetServiceVisibility, UpdateService, UpdateVariant
from storefront.catalogue.queries import get_service_by_slug, list_services
from storefront.catalogue.variant import ServiceVariant


class TestServices:
    def test_slug_is_derived_from_title(self, make_service):
        make_service(title="Line & Copy Editing")
        assert get_service_by_slug("line-copy-editing")["title"] == "Line & Copy Editing"

    def test_listing_includes_active_variants(self, service_id, per_word_variant_id, fixed_variant_id):
        services = list_services()

        assert len(services) == 1
        assert {v["id"] for v in services[0]["variants"]} == {per_word_variant_id, fixed_variant_id}

    def test_listing_filters_by_type(self, make_service):
        make_service(title="Cover Design", service_type="design")
        make_service(title="Proofreading", service_type="editing")

        assert [s["title"] for s in list_services(service_type="design")] == ["Cover Design"]

    def test_hidden_service_disappears(self, service_id):
        current_domain.process(SetServiceVisibility(service_id=service_id, is_active=False), asynchronous=False)

        assert list_services() == []
        with pytest.raises(ObjectNotFoundError):
            get_service_by_slug("developmental-editing")

    def test_featured_filter(self, service_id, make_service):
        make_service(title="Cover Design", service_type="design")
        current_domain.process(SetServiceVisibility(service_id=service_id, is_featured=True), asynchronous=False)

        assert [s["title"] for s in list_services(featured=True)] == ["Developmental Editing"]

    def test_update_details(self, service_id):
        current_domain.process(UpdateService(service_id=service_id, title="Structural Editing"), asynchronous=False)
        assert get_service_by_slug("developmental-editing")["title"] == "Structural Editing"

    def test_unknown_service_type(self, make_service):
        with pytest.raises(ValidationError):
            make_service(title="Audiobook", service_type="narration")


class TestVariants:
    def test_variant_for_unknown_service(self, make_variant):
        with pytest.raises(ObjectNotFoundError):
            make_variant("no-such-service")

    def test_inverted_quantity_bounds(self, service_id, make_variant):
        with pytest.raises(ValidationError):
            make_variant(service_id, min_quantity=5000, max_quantity=1000)

    def test_reprice_rounds_to_cents(self, per_word_variant_id):
        current_domain.process(UpdateVariant(variant_id=per_word_variant_id, price=0.0349), asynchronous=False)
        assert current_domain.repository_for(ServiceVariant).get(per_word_variant_id).price == 0.03
