"""
Line item resolution.

One resolution pass over a catalog item and the popup selections:

    classify -> select pricing -> resolve offer -> price -> build record

Each step is also usable on its own through the services package; this
module only wires them together for hosts that want a single call.
"""

import logging
from dataclasses import dataclass
from datetime import datetime

from .models import CatalogItem, CustomizationRecord, PricingOption, SelectionState
from .services.classifier import ItemCategory, classify, display_name
from .services.customizations import build_customizations, new_popup_session_id
from .services.menu_item_utils import select_pricing
from .services.offers import OfferEffects, format_offer_text, pack_free_drinks, resolve_offer
from .services.pricing import PriceBreakdown, PricingEngine

logger = logging.getLogger(__name__)


@dataclass
class LineItemResolution:
    """Everything the host needs to show and add one configured line."""

    category: ItemCategory
    display_name: str
    pricing: PricingOption | None
    offer: OfferEffects | None
    price: PriceBreakdown
    record: CustomizationRecord

    @property
    def offer_text(self) -> str:
        return format_offer_text(self.offer)


def resolve_pricing(item: CatalogItem, selection: SelectionState) -> PricingOption | None:
    """
    Pricing option used for the line.

    Limited offers are priced from their live price, so they only use an
    option the caller selected explicitly. Packs and regular items fall back
    to the pack or default option.
    """
    category = classify(item)
    if category is ItemCategory.LIMITED_OFFER_REGULAR and selection.selected_pricing_id is None:
        return None
    return select_pricing(item, selection.selected_pricing_id, selection.selected_variant_id)


def resolve_line_item(
    item: CatalogItem,
    selection: SelectionState | None = None,
    quantity: int = 1,
    popup_session_id: str | None = None,
    restaurant_id: str | None = None,
    drink_prices: dict[str, float] | None = None,
    now: datetime | None = None,
) -> LineItemResolution:
    """
    Resolve category, offer, price and customization record for one line.

    Args:
        item: The catalog item
        selection: The popup selections (None means defaults only)
        quantity: Units ordered
        popup_session_id: Popup session token (a new one is generated if None)
        restaurant_id: Restaurant id (defaults to the item's)
        drink_prices: Drink id -> unit price, for drinks added to the line
        now: Reference time for the offer window

    Returns:
        LineItemResolution
    """
    selection = selection or SelectionState()
    category = classify(item)
    pricing = resolve_pricing(item, selection)
    offer = resolve_offer(item, pricing, now)

    if category is ItemCategory.SPECIAL_PACK:
        free_ids, free_quantity = pack_free_drinks(item, pricing, offer)
    elif offer is not None:
        free_ids, free_quantity = offer.free_drink_ids, offer.free_drinks_quantity
    else:
        free_ids, free_quantity = [], 0

    engine = PricingEngine(item)
    drinks = engine.drinks_price(selection.drink_quantities, drink_prices, free_ids, free_quantity)
    price = engine.calculate(selection, pricing, quantity, drinks)

    record = build_customizations(
        item,
        selection,
        quantity,
        popup_session_id or new_popup_session_id(),
        restaurant_id=restaurant_id,
        pricing=pricing,
        offer=offer,
    )

    logger.info(
        "Resolved item %s (%s): total %.2f, offer %s",
        item.id,
        category.value,
        price.total,
        "active" if offer else "none",
    )
    return LineItemResolution(
        category=category,
        display_name=display_name(item),
        pricing=pricing,
        offer=offer,
        price=price,
        record=record,
    )
