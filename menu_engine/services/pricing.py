"""
Pricing Engine for Catalog Items.

This module computes unit and line prices for the three item categories:

    unit  = base + extra + supplements
    total = unit * quantity + drinks

| Category              | base                          | extra                  |
|-----------------------|-------------------------------|------------------------|
| SPECIAL_PACK          | selected option price         | 0                      |
| LIMITED_OFFER_REGULAR | item live (discounted) price  | selected option or 0   |
| REGULAR               | 0                             | selected option price  |

A special pack scales by the total quantity of its bundled variants instead:

    total = (base + supplements) * max(1, total_variant_qty) + drinks

Prices never raise. Missing data gives 0 (with a warning where a value was
expected) and every result is clamped to be non-negative.
"""

import logging
from dataclasses import dataclass

from ..models import CatalogItem, PricingOption, SelectionState
from ..parsers.overrides import resolve_global_overrides
from .classifier import ItemCategory, classify
from .fees import round_money
from .menu_item_utils import get_variant, get_variant_supplements

logger = logging.getLogger(__name__)


@dataclass
class PriceBreakdown:
    """Price components of one cart line."""

    base: float
    extra: float
    supplements: float
    drinks: float
    quantity: int
    total: float

    @property
    def unit_price(self) -> float:
        """Price of one unit without drinks, rounded to 2 decimals."""
        return round_money(self.base + self.extra + self.supplements)


def _unique(names) -> list[str]:
    return list(dict.fromkeys(name for name in names if name))


class PricingEngine:
    """
    Computes prices for one catalog item.

    The item's category is never stored on the item. calculate() classifies
    once and hands the category to each pricing step.
    """

    def __init__(self, item: CatalogItem):
        """
        Initialize the pricing engine.

        Args:
            item: The catalog item to price
        """
        self._item = item

    @property
    def category(self) -> ItemCategory:
        return classify(self._item)

    def _non_negative(self, value: float, label: str) -> float:
        if value < 0:
            logger.warning(
                "Negative %s %.2f for item %s clamped to 0", label, value, self._item.id
            )
            return 0.0
        return value

    # =========================================================================
    # Base & Extra
    # =========================================================================

    def base_price(
        self,
        pricing: PricingOption | None = None,
        category: ItemCategory | None = None,
    ) -> float:
        """
        Base price of one unit.

        Args:
            pricing: The selected pricing option, if any
            category: The item category (classified here when None)

        Returns:
            The pack option price for packs (item price when none is selected),
            the live price for limited offers, 0 for regular items
        """
        category = category or self.category
        if category is ItemCategory.SPECIAL_PACK:
            if pricing is None:
                logger.warning(
                    "Special pack %s has no pricing option selected, using item price",
                    self._item.id,
                )
                return self._non_negative(self._item.price, "item price")
            return self._non_negative(pricing.price, "pack price")

        if category is ItemCategory.LIMITED_OFFER_REGULAR:
            return self._non_negative(self._item.price, "offer price")

        return 0.0

    def extra_charge(
        self,
        pricing: PricingOption | None = None,
        category: ItemCategory | None = None,
    ) -> float:
        """
        Size/portion charge added on top of the base price.

        For regular items the selected option price is the whole price.
        """
        category = category or self.category
        if category is ItemCategory.SPECIAL_PACK:
            return 0.0

        if pricing is None:
            if category is ItemCategory.REGULAR:
                logger.warning(
                    "Regular item %s has no pricing option selected, pricing at 0",
                    self._item.id,
                )
            return 0.0

        return self._non_negative(pricing.price, "option price")

    # =========================================================================
    # Supplements
    # =========================================================================

    def global_supplements_price(
        self,
        names: list[str],
        pricing: PricingOption | None = None,
    ) -> float:
        """Sum of the selected global supplements, hidden ones excluded."""
        if not names:
            return 0.0
        visible = resolve_global_overrides(self._item, pricing).visible_supplements
        total = 0.0
        for name in _unique(names):
            if name not in visible:
                logger.debug("Global supplement %r not offered on item %s", name, self._item.id)
                continue
            total += visible[name]
        return total

    def variant_supplements_price(
        self,
        variant_id: str,
        slot_selections: dict[int, list[str]] | None,
        global_supplements: list[str] | None = None,
        include_global_supplements: bool = True,
        pricing: PricingOption | None = None,
    ) -> float:
        """
        Supplement price for one bundled variant of a pack.

        Per-slot selections are priced from the variant's own description.
        Global supplements are added only when include_global_supplements is
        True; callers pricing several variants must set it for one of them.

        Args:
            variant_id: The variant being priced
            slot_selections: Slot index -> selected supplement names
            global_supplements: Selected global supplement names
            include_global_supplements: Whether to add the global supplements
            pricing: The selected pricing option (for global overrides)

        Returns:
            Supplement price, never negative
        """
        total = 0.0

        variant = get_variant(self._item, variant_id)
        if variant is None:
            if slot_selections:
                logger.debug("Unknown variant %s on item %s", variant_id, self._item.id)
        elif slot_selections:
            prices = variant.config.visible_supplements
            for slot, names in slot_selections.items():
                for name in names or []:
                    if name not in prices:
                        logger.debug(
                            "Supplement %r not offered for variant %s slot %s", name, variant_id, slot
                        )
                        continue
                    total += prices[name]

        if include_global_supplements:
            total += self.global_supplements_price(global_supplements or [], pricing)

        return round_money(self._non_negative(total, "supplement price"))

    def pack_supplements_price(
        self,
        selection: SelectionState,
        pricing: PricingOption | None = None,
    ) -> float:
        """
        Supplement price of a whole pack.

        Global supplements are counted exactly once: with the first variant,
        or directly when the pack has no variants.
        """
        if not self._item.variants:
            return round_money(self.global_supplements_price(selection.global_supplements, pricing))

        total = 0.0
        for index, variant in enumerate(self._item.variants):
            total += self.variant_supplements_price(
                variant.id,
                selection.variant_supplements.get(variant.id),
                selection.global_supplements,
                include_global_supplements=(index == 0),
                pricing=pricing,
            )
        return round_money(total)

    def item_supplements_price(
        self,
        variant_id: str | None,
        names: list[str] | None,
    ) -> float:
        """
        Supplement price for a non-pack item.

        Only supplements offered for the variant (available, global or assigned,
        and not hidden) are charged.
        """
        if not names:
            return 0.0
        offered = {
            supplement.name: supplement.price
            for supplement in get_variant_supplements(self._item, variant_id)
        }
        total = 0.0
        for name in _unique(names):
            if name not in offered:
                logger.debug("Supplement %r not offered on item %s", name, self._item.id)
                continue
            total += self._non_negative(offered[name], "supplement price")
        return round_money(total)

    # =========================================================================
    # Drinks
    # =========================================================================

    @staticmethod
    def drinks_price(
        drink_quantities: dict[str, int] | None,
        drink_prices: dict[str, float] | None,
        free_drink_ids: list[str] | None = None,
        free_quantity: int = 0,
    ) -> float:
        """
        Price of the drinks added to a line.

        The free entitlement is consumed first by drinks in free_drink_ids;
        every remaining drink is charged at its price (0 when unknown).

        Examples (cola 100, free ["cola"] x1):
            {"cola": 2}            -> 100
            {"cola": 1, "tea": 1}  -> price of tea
        """
        if not drink_quantities:
            return 0.0
        prices = drink_prices or {}
        free_ids = set(free_drink_ids or [])
        free_left = max(0, free_quantity)

        total = 0.0
        for drink_id, quantity in drink_quantities.items():
            quantity = max(0, quantity)
            if drink_id in free_ids and free_left:
                free_now = min(quantity, free_left)
                free_left -= free_now
                quantity -= free_now
            if quantity:
                total += quantity * max(0.0, prices.get(drink_id, 0.0))
        return round_money(total)

    # =========================================================================
    # Totals
    # =========================================================================

    def total_variant_quantity(self) -> int:
        """Sum of the bundled quantities declared by the pack's variants."""
        return sum(variant.config.qty for variant in self._item.variants)

    def calculate(
        self,
        selection: SelectionState | None = None,
        pricing: PricingOption | None = None,
        quantity: int = 1,
        drinks_price: float = 0.0,
    ) -> PriceBreakdown:
        """
        Compute the price of one cart line.

        Args:
            selection: The popup selections (None means no extras)
            pricing: The selected pricing option, if any
            quantity: Units ordered; values below 1 count as 1 (non-pack items)
            drinks_price: Price of the drinks added to the line

        Returns:
            PriceBreakdown. For packs, quantity is the total bundled variant
            quantity.
        """
        selection = selection or SelectionState()
        drinks = self._non_negative(drinks_price, "drinks price")
        category = self.category
        base = self.base_price(pricing, category)
        extra = self.extra_charge(pricing, category)

        if category is ItemCategory.SPECIAL_PACK:
            supplements = self.pack_supplements_price(selection, pricing)
            line_quantity = max(1, self.total_variant_quantity())
            total = (base + supplements) * line_quantity + drinks
        else:
            supplements = round_money(
                self.item_supplements_price(
                    selection.selected_variant_id, selection.selected_supplements
                )
                + self.global_supplements_price(selection.global_supplements, pricing)
            )
            line_quantity = max(1, quantity)
            total = (base + extra + supplements) * line_quantity + drinks

        breakdown = PriceBreakdown(
            base=round_money(base),
            extra=round_money(extra),
            supplements=supplements,
            drinks=round_money(drinks),
            quantity=line_quantity,
            total=round_money(self._non_negative(total, "total")),
        )
        logger.debug("Price for item %s (%s): %s", self._item.id, category.value, breakdown)
        return breakdown
