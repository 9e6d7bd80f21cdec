"""
Tests for limited-time offer resolution.
"""
from datetime import datetime, timedelta, timezone

import pytest

from menu_engine.models import PricingOption
from menu_engine.services.offers import (
    DeliveryDiscount,
    OfferEffects,
    format_offer_text,
    is_offer_active,
    lto_cart_customizations,
    offer_summary,
    pack_free_drinks,
    resolve_offer,
    round_half_up,
    time_remaining,
)
from tests.test_helpers import create_lto_item, create_pack_item, create_pricing, create_regular_item


def windowed_item(start, end, **fields):
    return create_lto_item(offer_start_at=start, offer_end_at=end, **fields)


# =============================================================================
# Offer Window
# =============================================================================

class TestOfferWindow:
    """Offers outside their window have no effect."""

    def test_inside_window(self, now):
        item = windowed_item(now - timedelta(hours=1), now + timedelta(hours=1))
        assert is_offer_active(item, now=now)
        assert resolve_offer(item, now=now) is not None

    @pytest.mark.parametrize("offset,active", [
        (timedelta(seconds=-1), False),
        (timedelta(0), True),
        (timedelta(seconds=1), True),
    ])
    def test_start_boundary(self, now, offset, active):
        item = windowed_item(now, None)
        assert is_offer_active(item, now=now + offset) is active

    @pytest.mark.parametrize("offset,active", [
        (timedelta(seconds=-1), True),
        (timedelta(0), True),
        (timedelta(seconds=1), False),
        (timedelta(hours=1), False),
    ])
    def test_end_boundary(self, now, offset, active):
        item = windowed_item(None, now)
        assert is_offer_active(item, now=now + offset) is active

    def test_expired_offer_resolves_to_none(self, now):
        item = windowed_item(now - timedelta(days=2), now - timedelta(days=1))
        assert resolve_offer(item, now=now) is None

    def test_unbounded_offer_is_active(self, now):
        assert is_offer_active(create_lto_item(), now=now)

    def test_not_an_offer(self, now):
        assert not is_offer_active(create_regular_item(), now=now)
        assert resolve_offer(create_regular_item(), now=now) is None

    def test_naive_bounds_are_treated_as_utc(self, now):
        item = windowed_item(datetime(2026, 6, 1), datetime(2026, 7, 1))
        assert is_offer_active(item, now=now)

    def test_naive_now_is_treated_as_utc(self, now):
        item = windowed_item(None, now)
        naive = now.replace(tzinfo=None)
        assert is_offer_active(item, now=naive + timedelta(seconds=1)) is False
        assert is_offer_active(item, now=naive) is True
        assert naive.replace(tzinfo=timezone.utc) == now

    def test_pricing_window_overrides_item_window(self, now):
        item = windowed_item(now - timedelta(days=2), now - timedelta(days=1))
        pricing = PricingOption.model_validate(create_pricing(
            "promo", 90.0,
            is_limited_offer=True,
            offer_end_at=(now + timedelta(days=1)).isoformat(),
        ))
        assert is_offer_active(item, pricing, now=now)

    def test_time_remaining(self, now):
        item = windowed_item(None, now + timedelta(hours=3))
        assert time_remaining(item, now) == timedelta(hours=3)
        assert time_remaining(item, now + timedelta(hours=4)) is None
        assert time_remaining(create_lto_item(), now) is None


# =============================================================================
# Offer Effects
# =============================================================================

class TestDiscount:
    """Discount percentage from original vs live price."""

    def test_discount_from_original_price(self, lto_item, now):
        effects = resolve_offer(lto_item, now=now)
        assert effects.discount_percentage == 20.0

    def test_discount_rounds_half_up(self, now):
        # (200 - 175) / 200 = 12.5%
        item = create_lto_item(price=175.0, original_price=200.0)
        assert resolve_offer(item, now=now).discount_percentage == 13.0
        assert round_half_up(12.5) == 13.0
        assert round_half_up(12.4) == 12.0

    def test_explicit_discount_when_no_original(self, now):
        item = create_lto_item(discount_percentage=15)
        assert resolve_offer(item, now=now).discount_percentage == 15.0

    def test_discount_from_offer_details(self, now):
        item = create_lto_item(offer_details={"discount_percentage": "30"})
        assert resolve_offer(item, now=now).discount_percentage == 30.0

    def test_original_not_above_live_price(self, now):
        item = create_lto_item(price=500.0, original_price=400.0)
        assert resolve_offer(item, now=now).discount_percentage is None

    def test_pack_uses_selected_option_price(self, now):
        item = create_pack_item(pack_price=80.0, is_limited_offer=True, price=999.0)
        pricing = item.pricing_options[0]
        pricing.original_price = 100.0
        assert resolve_offer(item, pricing, now=now).discount_percentage == 20.0


class TestOfferTypeChains:
    """Offer types, free drinks and delivery discounts."""

    def test_offer_types_from_first_pricing_option(self, now):
        item = create_lto_item(
            offer_types=["special_price"],
            pricing_options=[create_pricing("p1", 0.0, offer_types=["free_drinks"])],
        )
        assert resolve_offer(item, now=now).offer_types == ["free_drinks"]

    def test_selected_pricing_offer_types_win(self, now):
        item = create_lto_item(
            pricing_options=[create_pricing("p1", 0.0, offer_types=["free_drinks"])],
        )
        selected = PricingOption.model_validate(
            create_pricing("p2", 0.0, offer_types=["special_delivery"])
        )
        assert resolve_offer(item, selected, now=now).offer_types == ["special_delivery"]

    def test_free_drinks_from_item(self, lto_item, now):
        effects = resolve_offer(lto_item, now=now)
        assert effects.free_drink_ids == ["cola"]
        assert effects.free_drinks_quantity == 1

    def test_free_drinks_from_selected_pricing(self, lto_item, now):
        pricing = PricingOption.model_validate(create_pricing(
            "xl", 100.0, free_drinks_list=["fanta", "sprite"], free_drinks_quantity=2,
        ))
        effects = resolve_offer(lto_item, pricing, now=now)
        assert effects.free_drink_ids == ["fanta", "sprite"]
        assert effects.free_drinks_quantity == 2

    def test_free_drinks_from_offer_details(self, now):
        item = create_lto_item(
            offer_types=["free_drinks"],
            offer_details={"free_drinks_list": [7, 8], "free_drinks_quantity": 1},
        )
        effects = resolve_offer(item, now=now)
        assert effects.free_drink_ids == ["7", "8"]
        assert effects.free_drinks_quantity == 1

    def test_free_drinks_require_offer_type(self, now):
        item = create_lto_item(offer_types=["special_price"], free_drinks_list=["cola"])
        assert resolve_offer(item, now=now).free_drink_ids == []

    def test_special_delivery(self, lto_item, now):
        assert resolve_offer(lto_item, now=now).special_delivery == DeliveryDiscount("free", 0.0)

    @pytest.mark.parametrize("details", [
        {"delivery_type": "teleport", "delivery_value": 10},
        {"delivery_type": "fixed", "delivery_value": "abc"},
        {"delivery_type": "percentage"},
        {},
    ])
    def test_malformed_special_delivery(self, now, details):
        item = create_lto_item(offer_types=["special_delivery"], offer_details=details)
        assert resolve_offer(item, now=now).special_delivery is None

    def test_pack_free_drinks_without_offer(self):
        item = create_pack_item(pricing_options=[create_pricing(
            "pack-1", 100.0, size="pack",
            free_drinks_included=True, free_drinks_list=["cola"], free_drinks_quantity=2,
        )])
        assert pack_free_drinks(item, item.pricing_options[0], None) == (["cola"], 2)

    def test_pack_free_drinks_from_offer(self, pack_item):
        effects = OfferEffects(free_drink_ids=["tea"], free_drinks_quantity=1)
        assert pack_free_drinks(pack_item, pack_item.pricing_options[0], effects) == (["tea"], 1)
        assert pack_free_drinks(pack_item, None, None) == ([], 0)


# =============================================================================
# Summary & Cart Data
# =============================================================================

class TestOfferSummary:
    """Badge labels for offers."""

    def test_full_summary(self, lto_item, now):
        effects = resolve_offer(lto_item, now=now)
        assert offer_summary(effects) == ["20% REMISE", "1 BOISSON GRATUITE", "LIVRAISON GRATUITE"]
        assert format_offer_text(effects) == "20% REMISE • 1 BOISSON GRATUITE • LIVRAISON GRATUITE"

    @pytest.mark.parametrize("delivery,label", [
        (DeliveryDiscount("percentage", 50), "50% LIVRAISON"),
        (DeliveryDiscount("fixed", 100), "LIVRAISON -100 DA"),
    ])
    def test_delivery_labels(self, delivery, label):
        assert offer_summary(OfferEffects(special_delivery=delivery)) == [label]

    def test_plural_drinks(self):
        effects = OfferEffects(free_drink_ids=["cola"], free_drinks_quantity=2)
        assert offer_summary(effects) == ["2 BOISSONS GRATUITES"]

    def test_no_offer(self):
        assert offer_summary(None) == []
        assert format_offer_text(None) == ""


class TestLtoCartCustomizations:
    """Offer data carried to the cart."""

    def test_regular_item_has_none(self):
        assert lto_cart_customizations(create_regular_item()) == {}

    def test_offer_data_is_copied(self, lto_item):
        data = lto_cart_customizations(lto_item)
        assert data["is_limited_offer"] is True
        assert data["lto_offer_types"] == ["special_price", "free_drinks", "special_delivery"]
        assert data["lto_offer_details"] == {"delivery_type": "free"}

        data["lto_offer_details"]["delivery_type"] = "fixed"
        assert lto_item.offer_details == {"delivery_type": "free"}
