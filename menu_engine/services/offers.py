"""
Limited-Time Offer Resolution
=============================

This module turns the offer fields of a catalog item (and of its selected
pricing option) into concrete effects: a discount percentage, free drinks
and a delivery discount.

Resolution Chains:
------------------
Offer fields may live on the selected pricing option, on the first pricing
option of the item, or on the item itself. Each effect reads its own chain:

- offer types:    selected pricing -> first pricing option -> item
- window:         selected pricing (when it is an offer with bounds) -> item
- original price: selected pricing -> item
- free drinks:    selected pricing -> item fields -> item offer_details
- delivery:       selected pricing offer_details -> item offer_details

An offer outside its window has no effect at all: resolve_offer() returns
None and the item is priced from its live price only.

Usage:
------
    from menu_engine.services.offers import resolve_offer, format_offer_text

    effects = resolve_offer(item, pricing)
    if effects:
        banner = format_offer_text(effects)  # "20% REMISE • LIVRAISON GRATUITE"
"""

import copy
import logging
import math
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from ..config import (
    DELIVERY_DISCOUNT_TYPES,
    OFFER_TYPE_FREE_DRINKS,
    OFFER_TYPE_SPECIAL_DELIVERY,
)
from ..models import CatalogItem, PricingOption, ensure_utc
from .classifier import ItemCategory, classify

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DeliveryDiscount:
    """Delivery discount granted by a special_delivery offer."""

    type: str  # "free", "percentage" or "fixed"
    value: float


@dataclass
class OfferEffects:
    """Effects of an active limited-time offer."""

    offer_types: list[str] = field(default_factory=list)
    discount_percentage: float | None = None
    free_drink_ids: list[str] = field(default_factory=list)
    free_drinks_quantity: int = 0
    special_delivery: DeliveryDiscount | None = None
    offer_start_at: datetime | None = None
    offer_end_at: datetime | None = None

    def has_offer_type(self, offer_type: str) -> bool:
        return offer_type in self.offer_types

    @property
    def has_free_drinks(self) -> bool:
        return bool(self.free_drink_ids) and self.free_drinks_quantity > 0


def round_half_up(value: float) -> float:
    """Round to the nearest integer, halves away from zero (12.5 -> 13.0)."""
    return float(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _as_number(value: Any) -> float | None:
    if isinstance(value, bool) or value is None:
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def _now(now: datetime | None) -> datetime:
    return ensure_utc(now) if now is not None else datetime.now(timezone.utc)


# =============================================================================
# Offer Window
# =============================================================================

def is_limited_offer(item: CatalogItem, pricing: PricingOption | None = None) -> bool:
    """Check if the item or its selected pricing option is a limited-time offer."""
    return item.is_limited_offer or (pricing is not None and pricing.is_limited_offer)


def offer_window(
    item: CatalogItem, pricing: PricingOption | None = None
) -> tuple[datetime | None, datetime | None]:
    """Get the (start, end) bounds that govern the offer."""
    if pricing is not None and pricing.is_limited_offer and (
        pricing.offer_start_at is not None or pricing.offer_end_at is not None
    ):
        return pricing.offer_start_at, pricing.offer_end_at
    return item.offer_start_at, item.offer_end_at


def is_offer_active(
    item: CatalogItem,
    pricing: PricingOption | None = None,
    now: datetime | None = None,
) -> bool:
    """
    Check if a limited-time offer is in effect.

    Both bounds are inclusive; a missing bound does not constrain.

    Args:
        item: The catalog item
        pricing: The selected pricing option, if any
        now: Reference time (defaults to the current UTC time)

    Returns:
        False when the item is not an offer or now is outside the window
    """
    if not is_limited_offer(item, pricing):
        return False

    current = _now(now)
    start, end = offer_window(item, pricing)
    if start is not None and current < start:
        return False
    if end is not None and current > end:
        return False
    return True


def time_remaining(
    item: CatalogItem,
    now: datetime | None = None,
    pricing: PricingOption | None = None,
) -> timedelta | None:
    """Time left before the offer ends, None when unbounded or already over."""
    if not is_limited_offer(item, pricing):
        return None
    _, end = offer_window(item, pricing)
    if end is None:
        return None
    current = _now(now)
    if current > end:
        return None
    return end - current


# =============================================================================
# Offer Effects
# =============================================================================

def get_offer_types(item: CatalogItem, pricing: PricingOption | None = None) -> list[str]:
    if pricing is not None and pricing.offer_types:
        return list(pricing.offer_types)
    if item.pricing_options and item.pricing_options[0].offer_types:
        return list(item.pricing_options[0].offer_types)
    return list(item.offer_types)


def live_price(item: CatalogItem, pricing: PricingOption | None = None) -> float:
    """Price actually charged before extras: the pack option price for packs, else item.price."""
    if pricing is not None and classify(item) is ItemCategory.SPECIAL_PACK:
        return pricing.price
    return item.price


def get_discount_percentage(
    item: CatalogItem, pricing: PricingOption | None = None
) -> float | None:
    """
    Discount of the live price against the original price, in whole percent.

    Falls back to an explicit discount_percentage on the item, then in the
    offer_details payloads.
    """
    original = pricing.original_price if pricing is not None else None
    if original is None:
        original = item.original_price

    current = live_price(item, pricing)
    if original is not None and original > 0 and original > current:
        return round_half_up((original - current) / original * 100)

    if item.discount_percentage is not None:
        return item.discount_percentage

    for details in _offer_details_chain(item, pricing):
        explicit = _as_number(details.get("discount_percentage"))
        if explicit is not None:
            return explicit
    return None


def get_free_drinks(
    item: CatalogItem,
    pricing: PricingOption | None = None,
    offer_types: list[str] | None = None,
) -> tuple[list[str], int]:
    """Free drink ids and quantity granted by a free_drinks offer."""
    if offer_types is None:
        offer_types = get_offer_types(item, pricing)
    if OFFER_TYPE_FREE_DRINKS not in offer_types:
        return [], 0

    if pricing is not None and pricing.free_drinks_list:
        return list(pricing.free_drinks_list), pricing.free_drinks_quantity

    if item.free_drinks_list:
        return list(item.free_drinks_list), item.free_drinks_quantity

    details = item.offer_details
    drink_ids = details.get("free_drinks_list")
    if isinstance(drink_ids, list) and drink_ids:
        quantity = _as_number(details.get("free_drinks_quantity"))
        return [str(drink_id) for drink_id in drink_ids], int(quantity) if quantity else 0

    return [], 0


def parse_delivery_discount(details: Any) -> DeliveryDiscount | None:
    """
    Read a delivery discount from an offer_details map.

    Returns None when the keys are missing, the type is unknown, or the value
    is not a non-negative number.
    """
    if not isinstance(details, dict):
        return None
    delivery_type = details.get("delivery_type")
    if delivery_type is None:
        return None
    delivery_type = str(delivery_type).strip().lower()
    value = _as_number(details.get("delivery_value", 0 if delivery_type == "free" else None))
    if delivery_type not in DELIVERY_DISCOUNT_TYPES or value is None or value < 0:
        logger.debug("Ignoring malformed delivery discount %r", details)
        return None
    return DeliveryDiscount(type=delivery_type, value=value)


def get_special_delivery(
    item: CatalogItem,
    pricing: PricingOption | None = None,
    offer_types: list[str] | None = None,
) -> DeliveryDiscount | None:
    """Delivery discount granted by a special_delivery offer."""
    if offer_types is None:
        offer_types = get_offer_types(item, pricing)
    if OFFER_TYPE_SPECIAL_DELIVERY not in offer_types:
        return None

    sources = [pricing.offer_details] if pricing is not None else []
    sources.append(item.offer_details)
    for details in sources:
        if isinstance(details, dict) and details.get("delivery_type") is not None:
            return parse_delivery_discount(details)
    return None


def _offer_details_chain(item: CatalogItem, pricing: PricingOption | None) -> list[dict]:
    chain = []
    if pricing is not None and pricing.offer_details:
        chain.append(pricing.offer_details)
    if item.offer_details:
        chain.append(item.offer_details)
    return chain


def resolve_offer(
    item: CatalogItem,
    pricing: PricingOption | None = None,
    now: datetime | None = None,
) -> OfferEffects | None:
    """
    Resolve the effects of the item's limited-time offer.

    Args:
        item: The catalog item
        pricing: The selected pricing option, if any
        now: Reference time (defaults to the current UTC time)

    Returns:
        OfferEffects, or None when there is no offer or it is not active
    """
    if not is_offer_active(item, pricing, now):
        return None

    offer_types = get_offer_types(item, pricing)
    drink_ids, drinks_quantity = get_free_drinks(item, pricing, offer_types)
    start, end = offer_window(item, pricing)

    effects = OfferEffects(
        offer_types=offer_types,
        discount_percentage=get_discount_percentage(item, pricing),
        free_drink_ids=drink_ids,
        free_drinks_quantity=drinks_quantity,
        special_delivery=get_special_delivery(item, pricing, offer_types),
        offer_start_at=start,
        offer_end_at=end,
    )
    logger.debug("Offer effects for item %s: %s", item.id, effects)
    return effects


def pack_free_drinks(
    item: CatalogItem,
    pricing: PricingOption | None,
    effects: OfferEffects | None = None,
) -> tuple[list[str], int]:
    """
    Free drinks of a pack.

    A pack pricing option with free_drinks_included grants its drinks even
    when no offer is running; otherwise the offer's free drinks apply.
    """
    if pricing is not None and pricing.free_drinks_included and pricing.free_drinks_list:
        return list(pricing.free_drinks_list), pricing.free_drinks_quantity
    if effects is not None and effects.has_free_drinks:
        return list(effects.free_drink_ids), effects.free_drinks_quantity
    return [], 0


# =============================================================================
# Display & Cart
# =============================================================================

def _plural(quantity: int, word: str) -> str:
    return f"{word}S" if quantity > 1 else word


def offer_summary(effects: OfferEffects | None) -> list[str]:
    """
    Short badge labels for an active offer.

    Examples:
        ["20% REMISE", "2 BOISSONS GRATUITES", "LIVRAISON -100 DA"]
    """
    if effects is None:
        return []

    summary = []
    if effects.discount_percentage is not None and effects.discount_percentage > 0:
        summary.append(f"{effects.discount_percentage:.0f}% REMISE")

    if effects.has_free_drinks:
        quantity = effects.free_drinks_quantity
        summary.append(f"{quantity} {_plural(quantity, 'BOISSON')} {_plural(quantity, 'GRATUITE')}")

    delivery = effects.special_delivery
    if delivery is not None:
        if delivery.type == "free":
            summary.append("LIVRAISON GRATUITE")
        elif delivery.type == "percentage":
            summary.append(f"{delivery.value:.0f}% LIVRAISON")
        elif delivery.type == "fixed":
            summary.append(f"LIVRAISON -{delivery.value:.0f} DA")

    return summary


def format_offer_text(effects: OfferEffects | None) -> str:
    return " • ".join(offer_summary(effects))


def lto_cart_customizations(
    item: CatalogItem, pricing: PricingOption | None = None
) -> dict[str, Any]:
    """
    Offer data carried into the cart so it can apply delivery discounts.

    Returns:
        {} for non-offers, else a dict with is_limited_offer, lto_offer_types
        and lto_offer_details (a deep copy of the governing payload)
    """
    if not is_limited_offer(item, pricing):
        return {}

    if pricing is not None and pricing.offer_details:
        details = pricing.offer_details
    elif item.pricing_options and item.pricing_options[0].offer_details:
        details = item.pricing_options[0].offer_details
    else:
        details = item.offer_details

    return {
        "is_limited_offer": True,
        "lto_offer_types": get_offer_types(item, pricing),
        "lto_offer_details": copy.deepcopy(details),
    }
