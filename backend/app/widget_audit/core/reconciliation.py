"""
Configuration reconciliation: configured feature flags vs rendered DOM state.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from ..knowledge.selector_catalog import FeatureProbe, ReconcileMode
from . import browser_surface

# Configure logging
logger = logging.getLogger(__name__)

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}

FEATURE_LABELS: Dict[str, str] = {
    "is_show_ratings": "Ratings",
    "show_star_ratings": "Ratings",
    "allow_to_display_feed_date": "Date",
    "show_full_review": "Full Review Toggle",
    "show_platform_icon": "Platform Icon",
    "cta_enabled": "CTA",
    "allow_social_redirection": "Social Redirection",
    "allow_to_remove_branding": "Branding",
    "hideBranding": "Branding",
    "is_show_arrows_buttons": "Navigation Arrows",
    "is_show_indicators": "Carousel Indicators",
}


class ReconcileStatus(Enum):
    PASS = "pass"
    FAIL = "fail"
    ABSENT = "absent"    # no expectation configured
    SKIPPED = "skipped"  # value is not boolean-like


def normalize_flag(value: Any) -> Union[bool, str, None]:
    """
    Normalize a configuration value.

    Returns True/False for boolean-like values, None for absent values and
    the stripped string for anything else (enum values such as a position).
    """
    if value is None:
        return None
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    text = str(value).strip()
    if not text:
        return None
    lowered = text.lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    return text


def is_enabled(configuration: Mapping[str, Any], key: str) -> Optional[bool]:
    flag = normalize_flag(configuration.get(key))
    return flag if isinstance(flag, bool) else None


def reconcile(mode: ReconcileMode, config_value: Any, observed_visible: bool) -> ReconcileStatus:
    """Compare one configured flag with the observed element visibility"""
    expected = normalize_flag(config_value)
    if expected is None:
        return ReconcileStatus.ABSENT
    if not isinstance(expected, bool):
        return ReconcileStatus.SKIPPED

    effective = observed_visible if mode is ReconcileMode.DIRECT else not observed_visible
    return ReconcileStatus.PASS if effective == expected else ReconcileStatus.FAIL


@dataclass
class ReconciliationRow:
    feature: str
    configured: Any
    observed_visible: Optional[bool]
    status: ReconcileStatus
    mode: ReconcileMode
    observed_text: str = ""

    @property
    def label(self) -> str:
        return FEATURE_LABELS.get(self.feature, self.feature)

    @property
    def message(self) -> str:
        if self.status is ReconcileStatus.ABSENT:
            return f"{self.label}: '{self.feature}' not configured, UI state not compared"
        if self.status is ReconcileStatus.SKIPPED:
            return f"{self.label}: '{self.feature}' = {self.configured!r} is not a boolean flag"
        state = "visible" if self.observed_visible else "not visible"
        verdict = "matches" if self.status is ReconcileStatus.PASS else "does not match"
        return f"{self.label}: '{self.feature}' = {self.configured!r}, element {state} ({verdict} configuration)"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "feature": self.feature,
            "label": self.label,
            "configured": self.configured,
            "observed_visible": self.observed_visible,
            "observed_text": self.observed_text,
            "status": self.status.value,
            "mode": self.mode.value,
            "message": self.message,
        }


async def observe_feature(
    scope: Any,
    probe: FeatureProbe,
    fallbacks: Sequence[Any] = (),
    timeout_ms: int = 0,
) -> Tuple[bool, str]:
    """
    Observed visibility (and text, for text-bearing flags) of one probe.

    Page-level probes (branding) also look in each of ``fallbacks`` in order,
    typically the widget frame and then the top page.
    """
    visible = await browser_surface.any_visible(scope, probe.selector, timeout_ms=timeout_ms)
    if probe.page_level:
        for candidate in fallbacks:
            if visible:
                break
            if candidate is None or candidate is scope:
                continue
            scope = candidate
            visible = await browser_surface.any_visible(scope, probe.selector)

    text = ""
    if visible and probe.text_required:
        text = await browser_surface.visible_text(scope, probe.selector)
        visible = bool(text)
    return visible, text


async def reconcile_features(
    scope: Any,
    probes: Mapping[str, FeatureProbe],
    configuration: Mapping[str, Any],
    fallbacks: Sequence[Any] = (),
    timeout_ms: int = 0,
) -> List[ReconciliationRow]:
    """Reconcile every probed flag. Absent flags are reported without touching the DOM."""
    rows = []
    for feature, probe in probes.items():
        value = configuration.get(feature)
        if normalize_flag(value) is None:
            rows.append(ReconciliationRow(feature, value, None, ReconcileStatus.ABSENT, probe.mode))
            continue

        visible, text = await observe_feature(scope, probe, fallbacks, timeout_ms)
        status = reconcile(probe.mode, value, visible)
        logger.debug(f"Reconciled {feature}: configured={value!r} visible={visible} -> {status.value}")
        rows.append(ReconciliationRow(feature, value, visible, status, probe.mode, observed_text=text))
    return rows
