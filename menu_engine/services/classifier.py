"""
Item Category Classification
============================

This module derives the behavioral category of a catalog item. The category
is never stored on the item; it is recomputed from the item on every call so
that catalog edits take effect immediately.

Derived Logic:
--------------
- SPECIAL_PACK: category label contains "pack", "combo" or "special"
  (case-insensitive)
- LIMITED_OFFER_REGULAR: is_limited_offer and not a special pack
- REGULAR: everything else

A pack that is also flagged as a limited offer is still a SPECIAL_PACK.

Usage:
------
    from menu_engine.services.classifier import classify, ItemCategory

    category = classify(item)
    if category.is_size_required:
        # Caller must pick a pricing option before adding to cart
        ...

    # Display name for listings ("Pack Duo (2)x Burger et Frites")
    name = display_name(item)
"""

from enum import Enum

from ..config import PACK_CATEGORY_KEYWORDS
from ..models import CatalogItem


class ItemCategory(str, Enum):
    """Behavioral category of a catalog item."""

    SPECIAL_PACK = "special_pack"
    LIMITED_OFFER_REGULAR = "lto_regular"
    REGULAR = "regular"

    @property
    def is_size_required(self) -> bool:
        """
        Whether a pricing option must be selected before add-to-cart.

        Limited offers already carry their live price, so the size is optional.
        """
        return self is not ItemCategory.LIMITED_OFFER_REGULAR

    @property
    def shows_free_drinks_at_pack_level(self) -> bool:
        return self is ItemCategory.SPECIAL_PACK

    @property
    def shows_free_drinks_at_variant_level(self) -> bool:
        return self is ItemCategory.LIMITED_OFFER_REGULAR


def is_pack_category(category_label: str | None) -> bool:
    """Check if a category label marks a special pack."""
    if not category_label:
        return False
    label = category_label.lower()
    return any(keyword in label for keyword in PACK_CATEGORY_KEYWORDS)


def classify(item: CatalogItem) -> ItemCategory:
    """
    Classify a catalog item.

    Args:
        item: The catalog item

    Returns:
        The item's ItemCategory. Every item maps to exactly one category.
    """
    if is_pack_category(item.category):
        return ItemCategory.SPECIAL_PACK
    if item.is_limited_offer:
        return ItemCategory.LIMITED_OFFER_REGULAR
    return ItemCategory.REGULAR


def is_special_pack(item: CatalogItem) -> bool:
    return classify(item) is ItemCategory.SPECIAL_PACK


def is_limited_offer_regular(item: CatalogItem) -> bool:
    return classify(item) is ItemCategory.LIMITED_OFFER_REGULAR


def is_regular(item: CatalogItem) -> bool:
    return classify(item) is ItemCategory.REGULAR


def is_size_required(item: CatalogItem) -> bool:
    return classify(item).is_size_required


def shows_free_drinks_at_pack_level(item: CatalogItem) -> bool:
    return classify(item).shows_free_drinks_at_pack_level


def shows_free_drinks_at_variant_level(item: CatalogItem) -> bool:
    return classify(item).shows_free_drinks_at_variant_level


# =============================================================================
# Display Names
# =============================================================================

def _is_already_formatted(item: CatalogItem) -> bool:
    name = item.name
    if " et " in name or ")x " in name:
        return True
    return any(variant.name and variant.name in name for variant in item.variants)


def format_pack_name(item: CatalogItem) -> str:
    """
    Build the listing name of a pack from its variants.

    Examples:
        "Pack Duo" + [Burger (qty:2), Frites, Boisson]
            -> "Pack Duo (2)x Burger, Frites et Boisson"

    Names that already look formatted are returned unchanged, so calling this
    on its own output is a no-op.
    """
    if not item.variants or _is_already_formatted(item):
        return item.name

    entries = []
    for variant in item.variants:
        if not variant.name:
            continue
        qty = variant.config.qty
        entries.append(f"({qty})x {variant.name}" if qty > 1 else variant.name)

    if not entries:
        return item.name

    if len(entries) == 1:
        listing = entries[0]
    else:
        listing = ", ".join(entries[:-1]) + " et " + entries[-1]
    return f"{item.name} {listing}"


def display_name(item: CatalogItem) -> str:
    """Display name: formatted for special packs, unchanged otherwise."""
    if is_special_pack(item):
        return format_pack_name(item)
    return item.name
