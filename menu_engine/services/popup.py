"""
Popup host resolution.

Listings can expose each variant of a bundle as its own entry. Such entries
carry a synthetic id:

    "<parent_id>_variant_<index>_<Variant_Name>"    e.g. "42_variant_0_Big_Burger"

Before opening the customization popup the host resolves the parent bundle
item with one catalog fetch, so that pricing and customizations run against
the real item with the variant pre-selected. A fetch that fails, times out or
returns nothing falls back to the item that was supplied, without a
pre-selected variant.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

from ..config import PARENT_FETCH_TIMEOUT_SECONDS, VARIANT_ID_MARKER
from ..models import CatalogItem

logger = logging.getLogger(__name__)

FetchItem = Callable[[str], Awaitable[CatalogItem | dict[str, Any] | None]]


@dataclass
class PopupTarget:
    """The item a popup should open on."""

    item: CatalogItem
    preselected_variant_id: str | None = None
    preselected_variant_name: str | None = None
    resolved_from_parent: bool = False


def is_variant_item_id(item_id: str | None) -> bool:
    return bool(item_id) and VARIANT_ID_MARKER in str(item_id)


def original_item_id(item_id: str) -> str:
    """Parent id of a variant item id; other ids are returned unchanged."""
    return str(item_id).split(VARIANT_ID_MARKER, 1)[0]


def extract_variant_name(item_id: str) -> str | None:
    """
    Variant name encoded in a variant item id.

    Examples:
        "42_variant_0_Big_Burger" -> "Big Burger"
        "42_variant_0"            -> None
    """
    if not is_variant_item_id(item_id):
        return None
    rest = str(item_id).split(VARIANT_ID_MARKER, 1)[1]
    parts = rest.split("_")
    if len(parts) < 2:
        return None
    name = " ".join(part for part in parts[1:] if part)
    return name or None


def _match_variant(item: CatalogItem, name: str | None) -> str | None:
    if not name:
        return None
    wanted = name.strip().lower()
    for variant in item.variants:
        if variant.name.strip().lower() == wanted:
            return variant.id
    return None


async def resolve_popup_item(
    item: CatalogItem,
    fetch_item: FetchItem,
    timeout: float | None = None,
) -> PopupTarget:
    """
    Resolve the item a popup should open on.

    Args:
        item: The item supplied by the listing
        fetch_item: Async catalog lookup by item id. May return a CatalogItem,
                    a raw catalog dict, or None when the item does not exist.
        timeout: Seconds to wait for the lookup (default PARENT_FETCH_TIMEOUT_SECONDS)

    Returns:
        PopupTarget on the parent item, or on the supplied item when the id
        is not a variant id or the lookup did not succeed
    """
    if not is_variant_item_id(item.id):
        return PopupTarget(item=item)

    parent_id = original_item_id(item.id)
    variant_name = extract_variant_name(item.id)
    wait = PARENT_FETCH_TIMEOUT_SECONDS if timeout is None else timeout

    try:
        parent = await asyncio.wait_for(fetch_item(parent_id), timeout=wait)
        if isinstance(parent, dict):
            parent = CatalogItem.model_validate(parent)
    except asyncio.TimeoutError:
        logger.warning("Timed out after %.1fs fetching parent item %s", wait, parent_id)
        return PopupTarget(item=item)
    except Exception as e:
        logger.warning("Failed to fetch parent item %s: %s", parent_id, e)
        return PopupTarget(item=item)

    if parent is None:
        logger.warning("Parent item %s not found, using supplied item", parent_id)
        return PopupTarget(item=item)

    variant_id = _match_variant(parent, variant_name)
    if variant_id is None:
        logger.debug("No variant named %r on parent item %s", variant_name, parent_id)

    return PopupTarget(
        item=parent,
        preselected_variant_id=variant_id,
        preselected_variant_name=variant_name,
        resolved_from_parent=True,
    )
