"""
Pydantic models for catalog inputs, caller selections and engine output.

The catalog graph is read-only for a resolution pass:
- CatalogItem
  - PricingOption (item-level when variant_id is None)
  - Variant (description carries the per-variant mini-language)
  - Supplement (global when available_for_variants is empty)

SelectionState is owned and mutated by the caller (popup UI).
CustomizationRecord is produced once per add-to-cart and is frozen.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .config import PACK_PRICING_SIZE
from .parsers.description import VariantConfig, decode_description


def ensure_utc(value: datetime | None) -> datetime | None:
    """Attach UTC to naive datetimes so catalog and clock values compare."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class IngredientPreference(str, Enum):
    """Per-slot preference for an ingredient of a variant."""
    WANTED = "wanted"
    LESS = "less"
    NONE = "none"
    NEUTRAL = "neutral"

    @classmethod
    def parse(cls, value: Any) -> "IngredientPreference":
        """Parse a stored preference; unknown values are neutral."""
        if isinstance(value, cls):
            return value
        if value is None:
            return cls.NEUTRAL
        text = str(value).split(".")[-1].strip().lower()
        if text == "unwanted":
            return cls.NONE
        try:
            return cls(text)
        except ValueError:
            return cls.NEUTRAL


# =============================================================================
# Catalog Inputs
# =============================================================================

class CatalogModel(BaseModel):
    """Base for catalog rows: tolerate numeric ids and unknown keys."""

    model_config = ConfigDict(coerce_numbers_to_str=True, extra="ignore")

    @field_validator("*", mode="before")
    @classmethod
    def _none_to_default(cls, value: Any, info) -> Any:
        # Catalog rows frequently carry explicit nulls for collections and prices
        if value is not None:
            return value
        field = cls.model_fields[info.field_name]
        if field.is_required():
            return value
        if field.default_factory is not None:
            return field.default_factory()
        return field.default


class PricingOption(CatalogModel):
    """A priced size/portion choice attached to an item or one of its variants."""

    id: str = ""
    menu_item_id: str = ""
    variant_id: str | None = None
    size: str = ""
    portion: str = ""
    price: float = 0.0
    is_default: bool = False
    display_order: int = 0

    # Free drinks bundled with this option (packs/combos)
    free_drinks_included: bool = False
    free_drinks_list: list[str] = Field(default_factory=list)
    free_drinks_quantity: int = 1

    # Limited-time offer fields
    is_limited_offer: bool = False
    offer_types: list[str] = Field(default_factory=list)
    offer_start_at: datetime | None = None
    offer_end_at: datetime | None = None
    original_price: float | None = None
    offer_details: dict[str, Any] = Field(default_factory=dict)

    @field_validator("offer_start_at", "offer_end_at")
    @classmethod
    def _normalize_tz(cls, value: datetime | None) -> datetime | None:
        return ensure_utc(value)

    def is_pack_pricing(self) -> bool:
        """Check if this option carries the price of a whole pack."""
        return self.size.strip().lower() == PACK_PRICING_SIZE


class Variant(CatalogModel):
    """One bundled component (or one selectable size) of a catalog item."""

    id: str
    menu_item_id: str = ""
    name: str = ""
    description: str | None = None
    is_available: bool = True
    is_default: bool = False
    display_order: int = 0

    @property
    def config(self) -> VariantConfig:
        """Decoded description. Recomputed on each access."""
        return decode_description(self.description)


class Supplement(CatalogModel):
    """An optional additive charge (topping, sauce, extra)."""

    id: str = ""
    name: str
    price: float = 0.0
    is_available: bool = True
    available_for_variants: list[str] = Field(default_factory=list)

    def is_global(self) -> bool:
        """Supplements with no variant assignment apply to every variant."""
        return not self.available_for_variants

    def applies_to(self, variant_id: str | None) -> bool:
        """Check if this supplement can be offered for the given variant."""
        if self.is_global():
            return True
        if variant_id is None:
            return False
        return str(variant_id) in self.available_for_variants


class CatalogItem(CatalogModel):
    """A sellable catalog item. Its behavioral category is always derived."""

    id: str
    restaurant_id: str | None = None
    name: str = ""
    category: str = ""
    price: float = 0.0
    is_available: bool = True

    # Limited-time offer fields (item-level fallbacks)
    is_limited_offer: bool = False
    offer_types: list[str] = Field(default_factory=list)
    offer_start_at: datetime | None = None
    offer_end_at: datetime | None = None
    original_price: float | None = None
    discount_percentage: float | None = None
    offer_details: dict[str, Any] = Field(default_factory=dict)

    pricing_options: list[PricingOption] = Field(default_factory=list)
    variants: list[Variant] = Field(default_factory=list)
    supplements: list[Supplement] = Field(default_factory=list)

    # Item-level free drink entitlement
    free_drinks_list: list[str] = Field(default_factory=list)
    free_drinks_quantity: int = 0

    @field_validator("offer_start_at", "offer_end_at")
    @classmethod
    def _normalize_tz(cls, value: datetime | None) -> datetime | None:
        return ensure_utc(value)


# =============================================================================
# Caller Selections
# =============================================================================

class SelectionState(BaseModel):
    """
    Interactive selections held by the popup.

    Pack maps are keyed by variant id, then by quantity slot index.
    """

    variant_options: dict[str, dict[int, str]] = Field(default_factory=dict)
    variant_supplements: dict[str, dict[int, list[str]]] = Field(default_factory=dict)
    ingredient_preferences: dict[str, dict[int, dict[str, IngredientPreference]]] = Field(
        default_factory=dict
    )
    drink_quantities: dict[str, int] = Field(default_factory=dict)
    global_supplements: list[str] = Field(default_factory=list)

    # Non-pack items: one variant/size and a flat supplement list
    selected_variant_id: str | None = None
    selected_pricing_id: str | None = None
    selected_supplements: list[str] = Field(default_factory=list)

    @field_validator("ingredient_preferences", mode="before")
    @classmethod
    def _parse_preferences(cls, value: Any) -> Any:
        if not isinstance(value, dict):
            return value
        parsed: dict = {}
        for variant_id, slots in value.items():
            if not isinstance(slots, dict):
                continue
            parsed[variant_id] = {
                slot: {
                    str(ingredient): IngredientPreference.parse(pref)
                    for ingredient, pref in prefs.items()
                }
                for slot, prefs in slots.items()
                if isinstance(prefs, dict)
            }
        return parsed


# =============================================================================
# Engine Output
# =============================================================================

class VariantEntry(BaseModel):
    """A variant as handed to the cart, with its per-slot selections."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    description: str | None = None
    quantity: int = 1
    selections: dict[str, str] = Field(default_factory=dict)


class CustomizationRecord(BaseModel):
    """Immutable snapshot of a configured line item for the cart/order subsystem."""

    model_config = ConfigDict(frozen=True)

    menu_item_id: str
    restaurant_id: str = ""
    main_item_quantity: int = 1
    item_category: str

    variants: list[VariantEntry] = Field(default_factory=list)
    pack_selections: dict[str, dict[str, str]] = Field(default_factory=dict)
    pack_supplement_selections: dict[str, dict[str, list[str]]] = Field(default_factory=dict)
    pack_supplement_prices: dict[str, dict[str, dict[str, float]]] = Field(default_factory=dict)
    global_pack_supplements: list[str] = Field(default_factory=list)
    global_supplement_prices: dict[str, float] = Field(default_factory=dict)

    selected_variant_id: str | None = None
    selected_pricing_id: str | None = None
    selected_supplements: list[str] = Field(default_factory=list)

    drink_quantities: dict[str, int] = Field(default_factory=dict)
    free_drink_ids: list[str] = Field(default_factory=list)
    free_drinks_quantity: int = 0
    ingredient_preferences: dict[str, dict[str, dict[str, str]]] = Field(default_factory=dict)

    is_limited_offer: bool = False
    lto_offer_types: list[str] = Field(default_factory=list)
    lto_offer_details: dict[str, Any] = Field(default_factory=dict)

    popup_session_id: str

    def to_dict(self) -> dict[str, Any]:
        """Plain keyed structure for the cart. Always a fresh copy."""
        return self.model_dump(mode="json")
