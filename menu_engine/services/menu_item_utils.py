"""
Menu Item Utilities.

This module provides lookups over a catalog item's variants, pricing options
and supplements. All functions are read-only and tolerate missing data by
returning None or an empty list.
"""

import logging

from ..models import CatalogItem, PricingOption, Supplement, Variant

logger = logging.getLogger(__name__)


def get_variant(item: CatalogItem, variant_id: str | None) -> Variant | None:
    """Find a variant of the item by id."""
    if variant_id is None:
        return None
    variant_id = str(variant_id)
    for variant in item.variants:
        if variant.id == variant_id:
            return variant
    return None


def get_available_variants(item: CatalogItem) -> list[Variant]:
    """Variants that can currently be selected, in display order."""
    available = [variant for variant in item.variants if variant.is_available]
    return sorted(available, key=lambda variant: variant.display_order)


def get_variant_pricing(item: CatalogItem, variant_id: str | None = None) -> list[PricingOption]:
    """
    Get the pricing options of one variant scope.

    Args:
        item: The catalog item
        variant_id: Variant id, or None for item-level options

    Returns:
        Pricing options of that scope sorted by display_order
    """
    scope = str(variant_id) if variant_id is not None else None
    options = [option for option in item.pricing_options if option.variant_id == scope]
    return sorted(options, key=lambda option: option.display_order)


def get_default_pricing(options: list[PricingOption]) -> PricingOption | None:
    """
    Pick the default pricing option from a list.

    The first option flagged is_default wins; when none is flagged the first
    option is used. Returns None for an empty list.
    """
    if not options:
        return None
    defaults = [option for option in options if option.is_default]
    if len(defaults) > 1:
        logger.debug("Multiple default pricing options, using %s", defaults[0].id)
    return defaults[0] if defaults else options[0]


def get_pricing_option(item: CatalogItem, pricing_id: str | None) -> PricingOption | None:
    """Find a pricing option of the item by id."""
    if pricing_id is None:
        return None
    pricing_id = str(pricing_id)
    for option in item.pricing_options:
        if option.id == pricing_id:
            return option
    logger.debug("Pricing option %s not found on item %s", pricing_id, item.id)
    return None


def find_pack_pricing(item: CatalogItem) -> PricingOption | None:
    """Find the pricing option that holds the price of the whole pack."""
    for option in item.pricing_options:
        if option.is_pack_pricing():
            return option
    return None


def select_pricing(
    item: CatalogItem,
    pricing_id: str | None = None,
    variant_id: str | None = None,
) -> PricingOption | None:
    """
    Resolve the pricing option to use for an item.

    An explicit pricing_id wins. Otherwise the pack pricing option is used when
    present, then the default option of the variant scope, then the default
    item-level option.
    """
    if pricing_id is not None:
        return get_pricing_option(item, pricing_id)

    pack_pricing = find_pack_pricing(item)
    if pack_pricing is not None:
        return pack_pricing

    if variant_id is not None:
        option = get_default_pricing(get_variant_pricing(item, variant_id))
        if option is not None:
            return option

    return get_default_pricing(get_variant_pricing(item, None)) or get_default_pricing(
        item.pricing_options
    )


def get_variant_supplements(item: CatalogItem, variant_id: str | None = None) -> list[Supplement]:
    """
    Get the supplements that can be offered for a variant.

    A supplement qualifies when it is available, is global or assigned to the
    variant, and is not hidden by the variant's description.
    """
    hidden: set[str] = set()
    variant = get_variant(item, variant_id)
    if variant is not None:
        hidden = set(variant.config.hidden_supplements)

    return [
        supplement
        for supplement in item.supplements
        if supplement.is_available
        and supplement.applies_to(variant_id)
        and supplement.name not in hidden
    ]
