"""
Menu item pricing and customization engine.

    from menu_engine import resolve_line_item

    result = resolve_line_item(item, selection, quantity=2)
    result.price.total
    result.record.to_dict()
"""

from .engine import LineItemResolution, resolve_line_item
from .models import CatalogItem, CustomizationRecord, SelectionState

__all__ = [
    "CatalogItem",
    "CustomizationRecord",
    "LineItemResolution",
    "SelectionState",
    "resolve_line_item",
]
