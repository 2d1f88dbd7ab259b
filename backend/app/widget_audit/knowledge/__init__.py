"""
Widget Knowledge

Read-only tables shared by every audit: the widget type registry and the
per-variant selector catalog.
"""

from .widget_types import WidgetVariant, WIDGET_TYPE_IDS, resolve, resolve_entry
from .selector_catalog import (
    WIDGET_SELECTORS,
    FeatureProbe,
    ReconcileMode,
    VariantSelectors,
    get_variant_selectors,
    get_feature_probe,
)

__all__ = [
    "WidgetVariant",
    "WIDGET_TYPE_IDS",
    "resolve",
    "resolve_entry",
    "WIDGET_SELECTORS",
    "FeatureProbe",
    "ReconcileMode",
    "VariantSelectors",
    "get_variant_selectors",
    "get_feature_probe",
]
