"""
Parsers for catalog payloads.

- **description**: the per-variant description mini-language (decode/encode)
- **overrides**: item-wide ingredient and supplement overrides carried in
  offer_details payloads
"""
