"""
Widget Type Registry

Closed set of Feedspace widget layouts. Each variant is tied to the numeric
type id the Feedspace API reports (4-11) and to the string aliases used by
fixtures and developer API exports.
"""

import re
from enum import Enum
from typing import Any, Dict, Optional


class WidgetVariant(Enum):
    """Supported widget layouts"""
    CAROUSEL = "Carousel"
    MASONRY = "Masonry"
    STRIP_SLIDER = "StripSlider"
    AVATAR_GROUP = "AvatarGroup"
    AVATAR_SLIDER = "AvatarSlider"
    VERTICAL_SCROLL = "VerticalScroll"
    HORIZONTAL_SCROLL = "HorizontalScroll"
    FLOATING_CARDS = "FloatingCards"
    UNKNOWN = "Unknown"

    @property
    def type_id(self) -> Optional[int]:
        return _VARIANT_TO_ID.get(self)

    @property
    def key(self) -> str:
        """Lowercase key used in reports and configuration lookups"""
        return self.value.lower()


WIDGET_TYPE_IDS: Dict[int, WidgetVariant] = {
    4: WidgetVariant.CAROUSEL,           # CAROUSEL_SLIDER
    5: WidgetVariant.MASONRY,            # MASONRY
    6: WidgetVariant.STRIP_SLIDER,       # MARQUEE_STRIPE
    7: WidgetVariant.AVATAR_GROUP,       # AVATAR_GROUP
    8: WidgetVariant.AVATAR_SLIDER,      # SINGLE_SLIDER
    9: WidgetVariant.VERTICAL_SCROLL,    # MARQUEE_UPDOWN
    10: WidgetVariant.HORIZONTAL_SCROLL,  # MARQUEE_LEFTRIGHT
    11: WidgetVariant.FLOATING_CARDS,    # FLOATING_TOAST
}

_VARIANT_TO_ID = {variant: type_id for type_id, variant in WIDGET_TYPE_IDS.items()}

# API constant names and legacy spellings, already normalized
WIDGET_TYPE_ALIASES: Dict[str, WidgetVariant] = {
    "carouselslider": WidgetVariant.CAROUSEL,
    "marqueestripe": WidgetVariant.STRIP_SLIDER,
    "singleslider": WidgetVariant.AVATAR_SLIDER,
    "marqueeupdown": WidgetVariant.VERTICAL_SCROLL,
    "marqueeleftright": WidgetVariant.HORIZONTAL_SCROLL,
    "floatingtoast": WidgetVariant.FLOATING_CARDS,
}

_NORMALIZE_PATTERN = re.compile(r"[\s_\-]+")


def normalize_type_name(name: str) -> str:
    """Lowercase and strip underscores, dashes and whitespace"""
    return _NORMALIZE_PATTERN.sub("", name).lower()


def _resolve_single(value: Any) -> WidgetVariant:
    if value is None or isinstance(value, bool):
        return WidgetVariant.UNKNOWN

    if isinstance(value, WidgetVariant):
        return value

    if isinstance(value, int):
        return WIDGET_TYPE_IDS.get(value, WidgetVariant.UNKNOWN)

    if isinstance(value, str):
        text = value.strip()
        if text.isdigit():
            return WIDGET_TYPE_IDS.get(int(text), WidgetVariant.UNKNOWN)

        normalized = normalize_type_name(text)
        for variant in WidgetVariant:
            if variant is not WidgetVariant.UNKNOWN and variant.key == normalized:
                return variant
        return WIDGET_TYPE_ALIASES.get(normalized, WidgetVariant.UNKNOWN)

    return WidgetVariant.UNKNOWN


def resolve(id_or_name: Any, hint: Any = None) -> WidgetVariant:
    """
    Resolve a widget type id or name to a variant.

    Args:
        id_or_name: Numeric type id (4-11), numeric string, or variant name
            in any case with or without underscores
        hint: Optional second source (e.g. a string ``type`` next to a
            ``widget_type_id``). Used only when the first value is not a
            recognized numeric id.

    Returns:
        The matching variant, or WidgetVariant.UNKNOWN
    """
    primary = _resolve_single(id_or_name)
    if hint is None:
        return primary

    # A recognized numeric id wins over a disagreeing string hint
    primary_is_numeric = isinstance(id_or_name, int) or (
        isinstance(id_or_name, str) and id_or_name.strip().isdigit()
    )
    if primary_is_numeric and primary is not WidgetVariant.UNKNOWN:
        return primary

    secondary = _resolve_single(hint)
    if primary is WidgetVariant.UNKNOWN:
        return secondary

    hint_is_numeric = isinstance(hint, int) or (isinstance(hint, str) and hint.strip().isdigit())
    if hint_is_numeric and secondary is not WidgetVariant.UNKNOWN:
        return secondary
    return primary


def resolve_entry(entry: Optional[Dict[str, Any]]) -> WidgetVariant:
    """Resolve the variant of a widget entry from the developer API or a fixture"""
    if not entry:
        return WidgetVariant.UNKNOWN
    return resolve(
        entry.get("widget_type_id"),
        entry.get("type", entry.get("widget_type"))
    )
