"""
Services Package for the Menu Engine
====================================

This package contains the business logic that turns a catalog item and the
popup selections into a category, a price and a cart customization record.

Available Services:
-------------------
- **classifier**: Derives the behavioral category of an item
- **offers**: Limited-time offer window, discount, free drinks and delivery
- **pricing**: PricingEngine for unit and line prices
- **customizations**: Builds the frozen CustomizationRecord for the cart
- **menu_item_utils**: Variant, pricing option and supplement lookups
- **fees**: Money rounding and delivery fee adjustment
- **popup**: Async resolution of variant listing ids to their parent item

Design Philosophy:
------------------
1. **Stateless**: Every service is a pure function of the catalog item and
   the selections passed in. Nothing is cached between calls.

2. **Fail-Soft**: Malformed catalog data degrades to documented defaults and
   a log line. Pricing never raises.

Usage:
------
    from menu_engine.services.classifier import classify
    from menu_engine.services.pricing import PricingEngine
    from menu_engine.services.customizations import build_customizations
"""
