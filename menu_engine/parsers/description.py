"""
Variant Description Parser.

Each variant of a catalog item carries a compact description string written
by the admin tooling:

    qty:2|options:Poulet,Viande|ingredients:Cheese,Tomato|hidden_supplements:Bacon|supplements:Cheese:50,Bacon:80.0

Grammar:
--------
    description := segment ("|" segment)*
    segment     := key ":" value
    key         := "qty" | "options" | "ingredients" | "hidden_supplements" | "supplements"
    value       := csv (for supplements: "name:price" or bare "name")

Segments may appear in any order and unknown keys are ignored. When a key
repeats, the first occurrence wins. A missing or empty description is
equivalent to "qty:1".

Decoding is fail-soft: a malformed field falls back to its default value and
the other fields are still decoded. decode_description() never raises.
"""

import logging
import math
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)

SEGMENT_SEPARATOR = "|"
KEY_SEPARATOR = ":"
LIST_SEPARATOR = ","

KEY_QTY = "qty"
KEY_OPTIONS = "options"
KEY_INGREDIENTS = "ingredients"
KEY_HIDDEN_SUPPLEMENTS = "hidden_supplements"
KEY_SUPPLEMENTS = "supplements"

DEFAULT_QTY = 1

_RESERVED_CHARS = (SEGMENT_SEPARATOR, LIST_SEPARATOR, KEY_SEPARATOR)


@dataclass(frozen=True)
class VariantConfig:
    """Structured form of a variant description."""
    qty: int = DEFAULT_QTY
    options: tuple[str, ...] = ()
    ingredients: tuple[str, ...] = ()
    hidden_supplements: tuple[str, ...] = ()
    supplements: dict[str, float] = field(default_factory=dict)

    @property
    def slot_count(self) -> int:
        """Number of quantity slots (always at least one)."""
        return max(1, self.qty)

    @property
    def has_options(self) -> bool:
        return bool(self.options)

    @property
    def visible_supplements(self) -> dict[str, float]:
        """Supplements that are not currently hidden."""
        hidden = set(self.hidden_supplements)
        return {name: price for name, price in self.supplements.items() if name not in hidden}

    def supplement_price(self, name: str) -> float:
        """Charged price of a supplement: 0.0 when hidden or unknown."""
        return self.visible_supplements.get(name, 0.0)


# =============================================================================
# Decoding
# =============================================================================

def _split_segments(description: str) -> dict[str, str]:
    """Split a description into {key: raw_value}, keeping the first occurrence."""
    segments: dict[str, str] = {}
    for segment in description.split(SEGMENT_SEPARATOR):
        if KEY_SEPARATOR not in segment:
            continue
        key, _, value = segment.partition(KEY_SEPARATOR)
        key = key.strip().lower()
        if key and key not in segments:
            segments[key] = value
    return segments


def parse_csv(value: str | None) -> list[str]:
    """Split a comma-separated value into trimmed, non-empty entries."""
    if not value:
        return []
    return [entry.strip() for entry in value.split(LIST_SEPARATOR) if entry.strip()]


def parse_quantity(value: str | None) -> int:
    """Parse a qty value; missing, unparsable or non-positive values give 1."""
    if value is None:
        return DEFAULT_QTY
    try:
        qty = int(value.strip())
    except ValueError:
        logger.debug("Unparsable qty %r, defaulting to %d", value, DEFAULT_QTY)
        return DEFAULT_QTY
    if qty < 1:
        logger.debug("Non-positive qty %d, defaulting to %d", qty, DEFAULT_QTY)
        return DEFAULT_QTY
    return qty


def parse_price(value: object) -> float:
    """Parse a supplement price; malformed, negative or non-finite values give 0.0."""
    try:
        price = float(str(value).strip())
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(price) or price < 0:
        return 0.0
    return price


def parse_supplements(value: str | None) -> dict[str, float]:
    """
    Parse the supplements csv.

    Examples:
        "Cheese:50,Bacon:80.0" -> {"Cheese": 50.0, "Bacon": 80.0}
        "Cheese,Bacon"         -> {"Cheese": 0.0, "Bacon": 0.0}
        "Cheese:abc"           -> {"Cheese": 0.0}
    """
    result: dict[str, float] = {}
    for entry in parse_csv(value):
        if KEY_SEPARATOR in entry:
            name, _, raw_price = entry.partition(KEY_SEPARATOR)
            # "name:price:junk" keeps only the first price field
            raw_price = raw_price.split(KEY_SEPARATOR)[0]
            name = name.strip()
            if name:
                result[name] = parse_price(raw_price)
        else:
            result[entry] = 0.0
    return result


def decode_description(description: str | None) -> VariantConfig:
    """
    Decode a variant description into a VariantConfig.

    Args:
        description: The raw description string (may be None or empty)

    Returns:
        VariantConfig with defaults for every missing or malformed field
    """
    if not description or not isinstance(description, str):
        return VariantConfig()

    try:
        segments = _split_segments(description)
    except Exception:
        logger.debug("Could not split description %r", description, exc_info=True)
        return VariantConfig()

    # Each field decodes independently so one bad field does not poison the rest
    def _safe(parser, key, default):
        try:
            return parser(segments.get(key))
        except Exception:
            logger.debug("Could not decode %s in %r", key, description, exc_info=True)
            return default

    return VariantConfig(
        qty=_safe(parse_quantity, KEY_QTY, DEFAULT_QTY),
        options=tuple(_safe(parse_csv, KEY_OPTIONS, [])),
        ingredients=tuple(_safe(parse_csv, KEY_INGREDIENTS, [])),
        hidden_supplements=tuple(_safe(parse_csv, KEY_HIDDEN_SUPPLEMENTS, [])),
        supplements=_safe(parse_supplements, KEY_SUPPLEMENTS, {}),
    )


# =============================================================================
# Encoding
# =============================================================================

def _check_name(name: str) -> str:
    name = name.strip()
    if any(char in name for char in _RESERVED_CHARS):
        raise ValueError(f"Name {name!r} contains a reserved delimiter (| , :)")
    return name


def _format_price(price: float) -> str:
    return repr(float(price))


def encode_description(config: VariantConfig) -> str:
    """
    Encode a VariantConfig into the canonical description string.

    The qty segment always comes first; empty list segments are omitted.

    Raises:
        ValueError: If an option, ingredient or supplement name contains
                    one of the reserved delimiters.
    """
    segments = [f"{KEY_QTY}{KEY_SEPARATOR}{max(1, config.qty)}"]

    list_fields = (
        (KEY_OPTIONS, config.options),
        (KEY_INGREDIENTS, config.ingredients),
        (KEY_HIDDEN_SUPPLEMENTS, config.hidden_supplements),
    )
    for key, values in list_fields:
        names = [_check_name(value) for value in values if value.strip()]
        if names:
            segments.append(f"{key}{KEY_SEPARATOR}{LIST_SEPARATOR.join(names)}")

    if config.supplements:
        entries = [
            f"{_check_name(name)}{KEY_SEPARATOR}{_format_price(price)}"
            for name, price in config.supplements.items()
            if name.strip()
        ]
        if entries:
            segments.append(f"{KEY_SUPPLEMENTS}{KEY_SEPARATOR}{LIST_SEPARATOR.join(entries)}")

    return SEGMENT_SEPARATOR.join(segments)
