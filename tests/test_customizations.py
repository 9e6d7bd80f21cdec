"""
Tests for the customization record builder.
"""
import pydantic
import pytest

from menu_engine.models import IngredientPreference, SelectionState
from menu_engine.services.customizations import build_customizations, new_popup_session_id
from menu_engine.services.offers import OfferEffects, resolve_offer
from menu_engine.services.pricing import PricingEngine
from tests.test_helpers import create_pack_item, create_variant


# =============================================================================
# Pack Records
# =============================================================================

class TestPackSelections:
    """Per-variant slot selections and placeholders."""

    def test_placeholders_per_slot(self, pack_item):
        record = build_customizations(pack_item, SelectionState(), 1, "sess-1")

        # Burger declares options: one placeholder per slot
        assert record.pack_selections["Burger"] == {"0": "Not Selected", "1": "Not Selected"}
        # Frites declares no options: empty strings
        assert record.pack_selections["Frites"] == {"0": ""}

    def test_explicit_selections(self, pack_item):
        selection = SelectionState(variant_options={"v1": {0: "Poulet", 1: "Viande"}})
        record = build_customizations(pack_item, selection, 1, "sess-1")
        assert record.pack_selections["Burger"] == {"0": "Poulet", "1": "Viande"}

    def test_partial_selection_keeps_placeholder(self, pack_item):
        selection = SelectionState(variant_options={"v1": {1: "Viande"}})
        record = build_customizations(pack_item, selection, 1, "sess-1")
        assert record.pack_selections["Burger"] == {"0": "Not Selected", "1": "Viande"}

    def test_variant_entries(self, pack_item):
        record = build_customizations(pack_item, SelectionState(), 1, "sess-1")
        assert [(v.id, v.name, v.quantity) for v in record.variants] == [
            ("v1", "Burger", 2),
            ("v2", "Frites", 1),
        ]

    def test_bad_qty_gets_one_slot(self):
        item = create_pack_item(variants=[create_variant("v1", "Wrap", "qty:0|options:A,B")])
        record = build_customizations(item, SelectionState(), 1, "sess-1")
        assert record.pack_selections["Wrap"] == {"0": "Not Selected"}

    def test_unknown_variant_ids_are_skipped(self, pack_item):
        selection = SelectionState(
            variant_options={"ghost": {0: "X"}},
            variant_supplements={"ghost": {0: ["Cheese"]}},
        )
        record = build_customizations(pack_item, selection, 1, "sess-1")
        assert set(record.pack_selections) == {"Burger", "Frites"}
        assert record.pack_supplement_selections == {}


class TestPackSupplementRecords:
    """Supplement selections carry their resolved unit prices."""

    def test_supplement_selections_and_prices(self, pack_item):
        selection = SelectionState(
            variant_supplements={"v1": {0: ["Cheese"], 1: ["Cheese", "Bacon"]}},
            global_supplements=["Extra Sauce"],
        )
        record = build_customizations(
            pack_item, selection, 1, "sess-1", pricing=pack_item.pricing_options[0]
        )
        assert record.pack_supplement_selections == {
            "Burger": {"0": ["Cheese"], "1": ["Cheese", "Bacon"]},
        }
        assert record.pack_supplement_prices == {
            "Burger": {"0": {"Cheese": 50.0}, "1": {"Cheese": 50.0, "Bacon": 80.0}},
        }
        assert record.global_pack_supplements == ["Extra Sauce"]
        assert record.global_supplement_prices == {"Extra Sauce": 20.0}

    def test_hidden_supplements_recorded_at_charged_price(self):
        item = create_pack_item(
            variants=[
                create_variant("v1", "Burger", "hidden_supplements:Bacon|supplements:Cheese:50,Bacon:80"),
            ],
            pack_offer_details={
                "global_supplements": {"Extra Sauce": 20, "Truffle": 80},
                "hidden_global_supplements": ["Truffle"],
            },
        )
        pricing = item.pricing_options[0]
        selection = SelectionState(
            variant_supplements={"v1": {0: ["Cheese", "Bacon"]}},
            global_supplements=["Extra Sauce", "Truffle"],
        )

        record = build_customizations(item, selection, 1, "sess-1", pricing=pricing)
        breakdown = PricingEngine(item).calculate(selection, pricing)

        assert record.pack_supplement_prices == {"Burger": {"0": {"Cheese": 50.0, "Bacon": 0.0}}}
        assert record.global_supplement_prices == {"Extra Sauce": 20.0, "Truffle": 0.0}
        recorded = sum(
            price
            for slots in record.pack_supplement_prices.values()
            for prices in slots.values()
            for price in prices.values()
        ) + sum(record.global_supplement_prices.values())
        assert recorded == breakdown.supplements == 70.0


# =============================================================================
# Shared Fields
# =============================================================================

class TestRecordFields:
    """Fields common to every category."""

    def test_session_and_ids(self, pack_item):
        record = build_customizations(pack_item, SelectionState(), 0, "sess-42")
        assert record.popup_session_id == "sess-42"
        assert record.menu_item_id == "item-1"
        assert record.restaurant_id == "resto-1"
        assert record.main_item_quantity == 1
        assert record.item_category == "special_pack"

    def test_restaurant_override(self, regular_item):
        record = build_customizations(regular_item, SelectionState(), 2, "s", restaurant_id="r-9")
        assert record.restaurant_id == "r-9"
        assert record.item_category == "regular"
        assert record.variants == []

    def test_ingredient_preferences_skip_neutral(self, pack_item):
        selection = SelectionState(ingredient_preferences={
            "v1": {
                0: {"Tomato": "none", "Onion": "neutral", "Cheese": "less"},
                1: {"Onion": "neutral"},
            },
            "v2": {0: {"Salt": "IngredientPreference.unwanted"}},
        })
        record = build_customizations(pack_item, selection, 1, "s")
        assert record.ingredient_preferences == {
            "Burger": {"0": {"Tomato": "none", "Cheese": "less"}},
            "Frites": {"0": {"Salt": "none"}},
        }

    def test_drinks(self, pack_item):
        selection = SelectionState(drink_quantities={"cola": 2, "tea": 0})
        record = build_customizations(pack_item, selection, 1, "s")
        assert record.drink_quantities == {"cola": 2}

    def test_offer_fields(self, lto_item, now):
        offer = resolve_offer(lto_item, now=now)
        record = build_customizations(lto_item, SelectionState(), 1, "s", offer=offer)
        assert record.is_limited_offer is True
        assert "special_delivery" in record.lto_offer_types
        assert record.lto_offer_details == {"delivery_type": "free"}
        assert record.free_drink_ids == ["cola"]
        assert record.free_drinks_quantity == 1

    def test_no_offer_fields_without_active_offer(self, lto_item):
        record = build_customizations(lto_item, SelectionState(), 1, "s", offer=None)
        assert record.is_limited_offer is False
        assert record.lto_offer_types == []

    def test_pack_free_drinks_from_offer(self, pack_item):
        offer = OfferEffects(free_drink_ids=["tea"], free_drinks_quantity=1)
        record = build_customizations(
            pack_item, SelectionState(), 1, "s", pricing=pack_item.pricing_options[0], offer=offer
        )
        assert record.free_drink_ids == ["tea"]

    def test_new_session_ids_are_unique(self):
        assert new_popup_session_id() != new_popup_session_id()


class TestRecordImmutability:
    """Records are frozen and share nothing with the selection."""

    def test_record_is_frozen(self, pack_item):
        record = build_customizations(pack_item, SelectionState(), 1, "s")
        with pytest.raises(pydantic.ValidationError):
            record.main_item_quantity = 5

    def test_later_selection_edits_do_not_leak(self, pack_item):
        selection = SelectionState(
            variant_options={"v1": {0: "Poulet"}},
            variant_supplements={"v1": {0: ["Cheese"]}},
            global_supplements=["Extra Sauce"],
            drink_quantities={"cola": 1},
        )
        record = build_customizations(pack_item, selection, 1, "s")
        before = record.to_dict()

        selection.variant_options["v1"][0] = "Viande"
        selection.variant_supplements["v1"][0].append("Bacon")
        selection.global_supplements.append("Other")
        selection.drink_quantities["cola"] = 9
        selection.ingredient_preferences["v1"] = {0: {"Tomato": IngredientPreference.NONE}}

        assert record.to_dict() == before

    def test_to_dict_returns_fresh_copy(self, pack_item):
        record = build_customizations(pack_item, SelectionState(), 1, "s")
        data = record.to_dict()
        data["pack_selections"]["Burger"]["0"] = "changed"
        assert record.pack_selections["Burger"]["0"] == "Not Selected"
