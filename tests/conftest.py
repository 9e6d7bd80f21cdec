from datetime import datetime, timezone

import pytest

from tests.test_helpers import (
    create_lto_item,
    create_pack_item,
    create_pricing,
    create_regular_item,
)


@pytest.fixture
def now():
    """Fixed reference time for offer window checks."""
    return datetime(2026, 6, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def regular_item():
    """Regular burger with two sizes and two supplements."""
    return create_regular_item(
        pricing_options=[
            create_pricing("small", 350.0, size="S", is_default=True),
            create_pricing("large", 450.0, size="L", display_order=1),
        ],
        supplements=[
            {"id": "s1", "name": "Cheese", "price": 50},
            {"id": "s2", "name": "Egg", "price": 30, "available_for_variants": ["v-big"]},
        ],
    )


@pytest.fixture
def lto_item():
    """Discounted offer: 500 instead of 625, with an optional size extra."""
    return create_lto_item(
        price=500.0,
        original_price=625.0,
        offer_types=["special_price", "free_drinks", "special_delivery"],
        pricing_options=[create_pricing("xl", 100.0, size="XL")],
        supplements=[
            {"id": "s1", "name": "Cheese", "price": 10},
            {"id": "s2", "name": "Sauce", "price": 20},
        ],
        free_drinks_list=["cola"],
        free_drinks_quantity=1,
        offer_details={"delivery_type": "free"},
    )


@pytest.fixture
def pack_item():
    """Pack of 2 burgers and 1 fries at 100 with a global "Extra Sauce" supplement."""
    return create_pack_item(
        pack_price=100.0,
        pack_offer_details={
            "global_supplements": {"Extra Sauce": 20},
            "global_ingredients": ["Salade"],
        },
    )
