"""
Customization record builder.

Turns the popup's SelectionState into the frozen CustomizationRecord handed to
the cart. The record shares no mutable state with the selection: later edits
in the popup never leak into a line that is already in the cart.

Per-variant maps in the record are keyed by variant name, with quantity slot
indices as strings:

    pack_selections = {"Burger": {"0": "Poulet", "1": "Not Selected"}}

Supplement prices are the prices the line is charged: hidden or unknown
supplements are recorded at 0.0.
"""

import logging
import uuid
from typing import Any

from ..config import NOT_SELECTED_PLACEHOLDER
from ..models import (
    CatalogItem,
    CustomizationRecord,
    IngredientPreference,
    PricingOption,
    SelectionState,
    Variant,
    VariantEntry,
)
from ..parsers.overrides import resolve_global_overrides
from .classifier import ItemCategory, classify
from .offers import OfferEffects, lto_cart_customizations, pack_free_drinks

logger = logging.getLogger(__name__)


def new_popup_session_id() -> str:
    """Generate a fresh popup session token."""
    return uuid.uuid4().hex


def _slot_selections(variant: Variant, chosen: dict[int, str]) -> dict[str, str]:
    """One entry per quantity slot: the choice, the placeholder, or ""."""
    config = variant.config
    filler = NOT_SELECTED_PLACEHOLDER if config.has_options else ""
    selections = {}
    for slot in range(config.slot_count):
        value = chosen.get(slot)
        selections[str(slot)] = value if value else filler

    extra = [slot for slot in chosen if slot < 0 or slot >= config.slot_count]
    if extra:
        logger.debug("Ignoring out-of-range slots %s for variant %s", extra, variant.id)
    return selections


def _skip_unknown(item: CatalogItem, selection_map: dict, label: str) -> None:
    known = {variant.id for variant in item.variants}
    for variant_id in selection_map:
        if variant_id not in known:
            logger.debug("Skipping %s for unknown variant %s on item %s", label, variant_id, item.id)


def _serialize_preferences(
    item: CatalogItem, selection: SelectionState
) -> dict[str, dict[str, dict[str, str]]]:
    _skip_unknown(item, selection.ingredient_preferences, "ingredient preferences")
    result = {}
    for variant in item.variants:
        slots = selection.ingredient_preferences.get(variant.id)
        if not slots:
            continue
        serialized = {}
        for slot, prefs in slots.items():
            kept = {
                ingredient: pref.value
                for ingredient, pref in prefs.items()
                if pref is not IngredientPreference.NEUTRAL
            }
            if kept:
                serialized[str(slot)] = kept
        if serialized:
            result[variant.name] = serialized
    return result


def _pack_fields(item: CatalogItem, selection: SelectionState) -> dict[str, Any]:
    _skip_unknown(item, selection.variant_options, "options")
    _skip_unknown(item, selection.variant_supplements, "supplements")

    variants = []
    pack_selections = {}
    supplement_selections = {}
    supplement_prices = {}

    for variant in item.variants:
        config = variant.config
        selections = _slot_selections(variant, selection.variant_options.get(variant.id, {}))
        variants.append(
            VariantEntry(
                id=variant.id,
                name=variant.name,
                description=variant.description,
                quantity=config.slot_count,
                selections=selections,
            )
        )
        pack_selections[variant.name] = selections

        chosen = {}
        prices = {}
        for slot, names in selection.variant_supplements.get(variant.id, {}).items():
            if not names:
                continue
            chosen[str(slot)] = list(names)
            prices[str(slot)] = {name: config.supplement_price(name) for name in names}
        if chosen:
            supplement_selections[variant.name] = chosen
            supplement_prices[variant.name] = prices

    return {
        "variants": variants,
        "pack_selections": pack_selections,
        "pack_supplement_selections": supplement_selections,
        "pack_supplement_prices": supplement_prices,
    }


def build_customizations(
    item: CatalogItem,
    selection: SelectionState,
    quantity: int,
    popup_session_id: str,
    restaurant_id: str | None = None,
    pricing: PricingOption | None = None,
    offer: OfferEffects | None = None,
) -> CustomizationRecord:
    """
    Build the customization record for one add-to-cart.

    Args:
        item: The catalog item being added
        selection: The popup selections
        quantity: Units ordered (values below 1 count as 1)
        popup_session_id: Token of the popup session, attached verbatim
        restaurant_id: Restaurant id (defaults to the item's)
        pricing: The selected pricing option, if any
        offer: Effects of the active offer, None when no offer is running

    Returns:
        A frozen CustomizationRecord
    """
    category = classify(item)

    fields: dict[str, Any] = {}
    if category is ItemCategory.SPECIAL_PACK:
        fields.update(_pack_fields(item, selection))
        free_drink_ids, free_quantity = pack_free_drinks(item, pricing, offer)
    elif offer is not None and offer.has_free_drinks:
        free_drink_ids, free_quantity = offer.free_drink_ids, offer.free_drinks_quantity
    else:
        free_drink_ids, free_quantity = [], 0

    global_names = list(dict.fromkeys(name for name in selection.global_supplements if name))
    overrides = resolve_global_overrides(item, pricing)

    if offer is not None:
        fields.update(lto_cart_customizations(item, pricing))

    record = CustomizationRecord(
        menu_item_id=item.id,
        restaurant_id=restaurant_id or item.restaurant_id or "",
        main_item_quantity=max(1, quantity),
        item_category=category.value,
        global_pack_supplements=global_names,
        global_supplement_prices={name: overrides.supplement_price(name) for name in global_names},
        selected_variant_id=selection.selected_variant_id,
        selected_pricing_id=pricing.id if pricing is not None else selection.selected_pricing_id,
        selected_supplements=list(selection.selected_supplements),
        drink_quantities={
            drink_id: qty for drink_id, qty in selection.drink_quantities.items() if qty > 0
        },
        free_drink_ids=list(free_drink_ids),
        free_drinks_quantity=free_quantity,
        ingredient_preferences=_serialize_preferences(item, selection),
        popup_session_id=popup_session_id,
        **fields,
    )
    logger.debug(
        "Built customizations for item %s (%s), session %s",
        item.id,
        category.value,
        popup_session_id,
    )
    return record
