"""
Tests for global ingredient/supplement override resolution.
"""
import pytest

from menu_engine.models import PricingOption
from menu_engine.parsers.overrides import resolve_global_overrides
from tests.test_helpers import create_pack_item, create_pricing, create_regular_item


class TestOverrideChain:
    """Each key is taken from the first source that holds it."""

    def test_item_level_only(self):
        item = create_regular_item(offer_details={
            "global_ingredients": ["Salade"],
            "global_supplements": {"Sauce": 20},
        })
        overrides = resolve_global_overrides(item)
        assert overrides.ingredients == ["Salade"]
        assert overrides.supplements == {"Sauce": 20.0}
        assert overrides.hidden_supplements == []

    def test_pack_pricing_beats_item(self):
        item = create_pack_item(
            pack_offer_details={"global_supplements": {"Sauce": 30}},
            offer_details={"global_supplements": {"Sauce": 10}, "global_ingredients": ["Oignon"]},
        )
        overrides = resolve_global_overrides(item)
        assert overrides.supplements == {"Sauce": 30.0}
        # Key absent from the pack option falls through to the item
        assert overrides.ingredients == ["Oignon"]

    def test_selected_pricing_beats_pack_pricing(self):
        item = create_pack_item(pack_offer_details={"global_supplements": {"Sauce": 30}})
        selected = PricingOption.model_validate(
            create_pricing("promo", 90.0, offer_details={"global_supplements": {"Sauce": 5}})
        )
        assert resolve_global_overrides(item, selected).supplements == {"Sauce": 5.0}

    def test_hidden_global_supplements(self):
        item = create_regular_item(offer_details={
            "global_supplements": {"Sauce": 20, "Cheese": 50},
            "hidden_global_supplements": ["Cheese"],
        })
        overrides = resolve_global_overrides(item)
        assert overrides.visible_supplements == {"Sauce": 20.0}


class TestOverridePayloads:
    """Legacy and malformed payload values."""

    def test_legacy_list_of_names_is_free(self):
        item = create_regular_item(offer_details={"global_supplements": ["Sauce", "Cheese"]})
        assert resolve_global_overrides(item).supplements == {"Sauce": 0.0, "Cheese": 0.0}

    @pytest.mark.parametrize("value", [42, True, {"Sauce": "abc"}, {"Sauce": -3}])
    def test_malformed_supplements_degrade(self, value):
        item = create_regular_item(offer_details={"global_supplements": value})
        supplements = resolve_global_overrides(item).supplements
        assert all(price == 0.0 for price in supplements.values())

    def test_no_payload(self):
        overrides = resolve_global_overrides(create_regular_item())
        assert overrides.ingredients == []
        assert overrides.supplements == {}
        assert overrides.supplement_price("Sauce") == 0.0
