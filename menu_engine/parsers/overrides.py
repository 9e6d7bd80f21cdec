"""
Global ingredient/supplement overrides.

Pack and offer payloads can declare item-wide overrides in their
offer_details map:

    {
        "global_ingredients": ["Cheese", "Tomato"],
        "global_supplements": {"Extra Sauce": 30, "Cheese": 50.0},
        "hidden_global_supplements": ["Cheese"]
    }

"global_supplements" may also be a legacy list of names, in which case every
entry is priced at 0.0.

Each key is resolved independently along a chain; the first source that holds
the key wins:

1. the selected pricing option's offer_details
2. the item's pack pricing option (size "pack") offer_details
3. the item-level offer_details
"""

import logging
from dataclasses import dataclass, field
from typing import Any

from ..models import CatalogItem, PricingOption
from .description import parse_csv, parse_price

logger = logging.getLogger(__name__)

KEY_GLOBAL_INGREDIENTS = "global_ingredients"
KEY_GLOBAL_SUPPLEMENTS = "global_supplements"
KEY_HIDDEN_GLOBAL_SUPPLEMENTS = "hidden_global_supplements"


@dataclass
class GlobalOverrides:
    """Item-wide ingredients and supplements resolved for one pricing choice."""

    ingredients: list[str] = field(default_factory=list)
    supplements: dict[str, float] = field(default_factory=dict)
    hidden_supplements: list[str] = field(default_factory=list)

    @property
    def visible_supplements(self) -> dict[str, float]:
        """Global supplements that are not hidden."""
        hidden = set(self.hidden_supplements)
        return {name: price for name, price in self.supplements.items() if name not in hidden}

    def supplement_price(self, name: str) -> float:
        return self.visible_supplements.get(name, 0.0)


def _as_name_list(value: Any) -> list[str]:
    if isinstance(value, str):
        return parse_csv(value)
    if isinstance(value, (list, tuple)):
        return [str(entry).strip() for entry in value if entry is not None and str(entry).strip()]
    return []


def _as_supplement_map(value: Any) -> dict[str, float]:
    if isinstance(value, dict):
        return {
            str(name).strip(): parse_price(price)
            for name, price in value.items()
            if str(name).strip()
        }
    # Legacy format: plain list of names, all free
    return {name: 0.0 for name in _as_name_list(value)}


def _override_sources(item: CatalogItem, pricing: PricingOption | None) -> list[dict]:
    """offer_details maps in resolution order."""
    sources = []
    if pricing is not None:
        sources.append(pricing.offer_details)
    pack_pricing = next((p for p in item.pricing_options if p.is_pack_pricing()), None)
    if pack_pricing is not None and pack_pricing is not pricing:
        sources.append(pack_pricing.offer_details)
    sources.append(item.offer_details)
    return [source for source in sources if isinstance(source, dict)]


def _first_with_key(sources: list[dict], key: str) -> Any:
    for source in sources:
        if source.get(key) is not None:
            return source[key]
    return None


def resolve_global_overrides(
    item: CatalogItem,
    pricing: PricingOption | None = None,
) -> GlobalOverrides:
    """
    Resolve the global overrides for an item and an optional selected pricing option.

    Args:
        item: The catalog item
        pricing: The pricing option currently selected, if any

    Returns:
        GlobalOverrides. Missing or malformed payloads give empty values.
    """
    sources = _override_sources(item, pricing)

    overrides = GlobalOverrides(
        ingredients=_as_name_list(_first_with_key(sources, KEY_GLOBAL_INGREDIENTS)),
        supplements=_as_supplement_map(_first_with_key(sources, KEY_GLOBAL_SUPPLEMENTS)),
        hidden_supplements=_as_name_list(_first_with_key(sources, KEY_HIDDEN_GLOBAL_SUPPLEMENTS)),
    )

    if overrides.supplements or overrides.ingredients:
        logger.debug(
            "Global overrides for item %s: %d ingredients, %d supplements (%d hidden)",
            item.id,
            len(overrides.ingredients),
            len(overrides.supplements),
            len(overrides.hidden_supplements),
        )
    return overrides
