"""
Configuration Module for the Menu Engine
========================================

This module centralizes the environment-driven settings and the domain
constants used by the pricing and customization engine. Everything that a
deployment may want to tune lives here; everything else is derived from the
catalog data passed in by the caller.

Configuration Categories:
-------------------------
- **Logging**: Log level for the engine loggers.

- **Host Lookups**: Timeout for the one catalog round trip performed when a
  popup is opened on a variant item id (see services/popup.py).

- **Delivery**: Fallback delivery fee used when the cart has no computed fee.

- **Catalog Conventions**: Keywords, markers and placeholder strings that the
  catalog and the cart subsystem agree on.

Environment Variables:
----------------------
- LOG_LEVEL: DEBUG, INFO, WARNING, ERROR or CRITICAL (default: "INFO")
- MENU_ENGINE_PARENT_FETCH_TIMEOUT: Parent item fetch timeout in seconds (default: 10.0)
- MENU_ENGINE_DEFAULT_DELIVERY_FEE: Fallback delivery fee (default: 2.99)

Usage:
------
    from menu_engine.config import (
        PACK_CATEGORY_KEYWORDS,
        PARENT_FETCH_TIMEOUT_SECONDS,
        DEFAULT_DELIVERY_FEE,
    )
"""

import os

from dotenv import load_dotenv

load_dotenv()


def _float_from_env(name: str, default: float) -> float:
    """Read a float env var, falling back to the default on bad values."""
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        return default


# =============================================================================
# Logging
# =============================================================================

LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()


# =============================================================================
# Host Lookups
# =============================================================================
# The popup host may need one catalog fetch to resolve a parent bundle item.
# A slow or failing fetch falls back to the item that was originally supplied.

PARENT_FETCH_TIMEOUT_SECONDS: float = _float_from_env(
    "MENU_ENGINE_PARENT_FETCH_TIMEOUT", 10.0
)


# =============================================================================
# Delivery
# =============================================================================

DEFAULT_DELIVERY_FEE: float = _float_from_env("MENU_ENGINE_DEFAULT_DELIVERY_FEE", 2.99)


# =============================================================================
# Catalog Conventions
# =============================================================================

# Category label fragments that mark an item as a special pack (case-insensitive)
PACK_CATEGORY_KEYWORDS: tuple[str, ...] = ("pack", "combo", "special")

# Size label of the pricing option that holds a pack's price and pack-level overrides
PACK_PRICING_SIZE: str = "pack"

# Slot placeholder for variants that declare options but received no selection
NOT_SELECTED_PLACEHOLDER: str = "Not Selected"

# Variant item ids look like "<parent_id>_variant_<index>_<Variant_Name>"
VARIANT_ID_MARKER: str = "_variant_"

# Offer types advertised by limited-time offers
OFFER_TYPE_SPECIAL_PRICE: str = "special_price"
OFFER_TYPE_FREE_DRINKS: str = "free_drinks"
OFFER_TYPE_SPECIAL_DELIVERY: str = "special_delivery"

# Delivery discount kinds carried by special_delivery offers
DELIVERY_DISCOUNT_TYPES: tuple[str, ...] = ("free", "percentage", "fixed")
