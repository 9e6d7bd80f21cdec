"""
Money and delivery fee utilities.

This module provides the rounding helper shared by the pricing code and the
delivery fee adjustment applied by special_delivery offers in the cart.
"""

from dataclasses import dataclass
from typing import Any, Iterable

from ..config import DEFAULT_DELIVERY_FEE, OFFER_TYPE_SPECIAL_DELIVERY
from ..models import CustomizationRecord
from .offers import DeliveryDiscount, parse_delivery_discount


def round_money(amount: float) -> float:
    """Round to 2 decimal places for currency."""
    return round(amount, 2)


@dataclass
class DeliveryFeeBreakdown:
    """Delivery fee before and after offer discounts."""

    base_fee: float
    discount: float

    @property
    def fee(self) -> float:
        """Fee to charge, never negative, rounded to 2 decimals."""
        return round_money(max(0.0, self.base_fee - self.discount))


def delivery_discount_amount(fee: float, discount: DeliveryDiscount) -> float:
    """
    Amount a delivery discount takes off a fee.

    Examples (fee 300):
        free            -> 300
        percentage 50   -> 150
        fixed 100       -> 100
    """
    if discount.type == "free":
        return fee
    if discount.type == "percentage":
        return fee * min(discount.value, 100.0) / 100
    if discount.type == "fixed":
        return min(discount.value, fee)
    return 0.0


def cart_delivery_discounts(
    records: Iterable[CustomizationRecord | dict[str, Any]],
) -> list[DeliveryDiscount]:
    """Collect the delivery discounts carried by cart line customizations."""
    discounts = []
    for record in records:
        data = record.to_dict() if isinstance(record, CustomizationRecord) else record
        if not isinstance(data, dict):
            continue
        if OFFER_TYPE_SPECIAL_DELIVERY not in (data.get("lto_offer_types") or []):
            continue
        discount = parse_delivery_discount(data.get("lto_offer_details"))
        if discount is not None:
            discounts.append(discount)
    return discounts


def adjust_delivery_fee(
    base_fee: float | None,
    discounts: Iterable[DeliveryDiscount],
) -> DeliveryFeeBreakdown:
    """
    Apply the best delivery discount to a delivery fee.

    Discounts do not stack: the largest one wins.

    Args:
        base_fee: Delivery fee before discounts (None uses DEFAULT_DELIVERY_FEE)
        discounts: Delivery discounts from the cart's offers

    Returns:
        DeliveryFeeBreakdown with the base fee and the applied discount
    """
    fee = DEFAULT_DELIVERY_FEE if base_fee is None else max(0.0, base_fee)
    best = max((delivery_discount_amount(fee, discount) for discount in discounts), default=0.0)
    return DeliveryFeeBreakdown(base_fee=round_money(fee), discount=round_money(best))
