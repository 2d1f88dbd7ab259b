"""
Runtime settings for widget audits.
"""

import os
import pathlib
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple

from dotenv import load_dotenv


# backend/.env, next to the app folder
ENV_PATH = pathlib.Path(__file__).resolve().parent.parent.parent / ".env"

VIEWPORTS: Dict[str, Tuple[int, int]] = {
    "Mobile": (375, 812),
    "Tablet": (768, 1024),
    "Desktop": (1440, 900),
}


@dataclass
class AuditConfig:
    """Timeouts, caps and service settings for one audit run"""
    # Timeouts (ms)
    container_timeout_ms: int = 15000
    probe_timeout_ms: int = 500
    detector_settle_ms: int = 5000
    navigation_timeout_ms: int = 45000
    modal_timeout_ms: int = 5000
    # Reveal scroll
    scroll_step_px: int = 200
    scroll_interval_ms: int = 100
    max_scroll_steps: int = 200
    # Interaction caps
    max_modal_cards: int = 30
    max_load_more_clicks: int = 30
    load_more_wait_ms: int = 3000
    read_more_check_limit: int = 3
    marquee_sample_ms: int = 3000
    # Integrity tolerances (px)
    overlap_tolerance_px: int = 5
    text_overflow_tolerance_px: int = 2
    alignment_tolerance_px: int = 5
    # Browser
    viewport_width: int = 1920
    viewport_height: int = 1080
    headless: bool = True
    responsive_devices: List[str] = field(default_factory=list)
    # Output and services
    reports_dir: str = "reports"
    run_accessibility: bool = True
    axe_script_url: str = "https://cdnjs.cloudflare.com/ajax/libs/axe-core/4.8.2/axe.min.js"
    gemini_api_key: Optional[str] = None
    gemini_model: str = "gemini-2.0-flash"

    @classmethod
    def from_env(cls, env_file: Optional[pathlib.Path] = None) -> "AuditConfig":
        """Build settings from environment variables (backend/.env is loaded first)"""
        load_dotenv(env_file or ENV_PATH)
        config = cls()

        int_fields = {
            "WIDGET_CONTAINER_TIMEOUT_MS": "container_timeout_ms",
            "WIDGET_PROBE_TIMEOUT_MS": "probe_timeout_ms",
            "WIDGET_DETECTOR_SETTLE_MS": "detector_settle_ms",
            "WIDGET_NAVIGATION_TIMEOUT_MS": "navigation_timeout_ms",
            "WIDGET_MAX_MODAL_CARDS": "max_modal_cards",
            "WIDGET_MAX_LOAD_MORE_CLICKS": "max_load_more_clicks",
            "WIDGET_VIEWPORT_WIDTH": "viewport_width",
            "WIDGET_VIEWPORT_HEIGHT": "viewport_height",
        }
        for env_name, attr in int_fields.items():
            value = os.getenv(env_name)
            if value and value.strip().isdigit():
                setattr(config, attr, int(value))

        headless = os.getenv("HEADLESS")
        if headless is not None:
            config.headless = headless.strip().lower() not in ("0", "false", "no")

        devices = os.getenv("WIDGET_RESPONSIVE_DEVICES", "")
        config.responsive_devices = [d.strip() for d in devices.split(",") if d.strip() in VIEWPORTS]

        config.reports_dir = os.getenv("WIDGET_REPORTS_DIR", config.reports_dir)
        config.axe_script_url = os.getenv("AXE_SCRIPT_URL", config.axe_script_url)
        config.gemini_api_key = os.getenv("GEMINI_API_KEY") or None
        config.gemini_model = os.getenv("GEMINI_MODEL", config.gemini_model)
        config.run_accessibility = os.getenv("WIDGET_SKIP_ACCESSIBILITY", "").lower() not in ("1", "true")
        return config


class WidgetConfiguration(Mapping[str, Any]):
    """
    Read-only feature-flag mapping for one widget instance.

    Built from a developer API / fixture entry merged with its nested
    ``configurations`` object (nested values win).
    """

    def __init__(self, values: Optional[Mapping[str, Any]] = None):
        self._values: Dict[str, Any] = dict(values or {})

    @classmethod
    def from_entry(cls, entry: Optional[Mapping[str, Any]]) -> "WidgetConfiguration":
        if not entry:
            return cls()
        merged = {k: v for k, v in entry.items() if k != "configurations"}
        nested = entry.get("configurations")
        if isinstance(nested, Mapping):
            merged.update(nested)
        return cls(merged)

    def __getitem__(self, key: str) -> Any:
        return self._values[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"WidgetConfiguration({self._values!r})"

    def to_dict(self) -> Dict[str, Any]:
        return dict(self._values)
