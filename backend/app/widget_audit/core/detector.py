"""
Widget Detector

Finds which widget variants are rendered on a page and in which frame, by
combining two independent signals:

1. Network sniffing: responses from the "get widget" API carry the numeric
   widget type. The observer is registered before navigation and keeps
   listening for the life of the page.
2. Selector probing: each variant's container selector is checked for a
   visible match in the main document and in every attached frame.

API evidence for a scope fully replaces selector evidence for that scope.
When a variant is found both in the main document and in a child frame, the
child frame wins.
"""

import asyncio
import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from playwright.async_api import Error as PlaywrightError

from ..config import AuditConfig
from ..knowledge.selector_catalog import WIDGET_SELECTORS
from ..knowledge.widget_types import WidgetVariant, resolve
from . import browser_surface
from .browser_surface import Sleep

# Configure logging
logger = logging.getLogger(__name__)

WIDGET_API_PATTERN = re.compile(r"get[-_]?widget", re.IGNORECASE)

_TYPE_FIELDS = ("widget_type_id", "widget_type", "type")

# Legacy shim: specific embed ids whose frames render a Masonry wall without
# the variant's usual markers. Not a general mechanism.
LEGACY_FRAME_RULES = (
    ("78ee3e50-eca8-468c-9c54-dd91a7e7cd09", WidgetVariant.MASONRY, ".feedspace-element-container"),
)


@dataclass(frozen=True)
class DetectionResult:
    """One rendered widget instance"""
    variant: WidgetVariant
    scope: Any
    source: str  # "api" | "selector" | "hint"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "variant": self.variant.value,
            "type_id": self.variant.type_id,
            "scope_url": browser_surface.scope_url(self.scope),
            "source": self.source,
        }


def extract_widget_type(body: Any) -> Optional[int]:
    """Numeric widget type from a "get widget" response body, if any"""
    candidates = [body]
    if isinstance(body, dict):
        for key in ("data", "widget", "result"):
            candidates.append(body.get(key))

    for candidate in candidates:
        if isinstance(candidate, list) and candidate:
            candidate = candidate[0]
        if not isinstance(candidate, dict):
            continue
        for field_name in _TYPE_FIELDS:
            value = candidate.get(field_name)
            if isinstance(value, bool):
                continue
            if isinstance(value, int):
                return value
            if isinstance(value, str) and value.strip().isdigit():
                return int(value.strip())
    return None


def resolve_conflicts(detections: Sequence[DetectionResult], main_scope: Any) -> List[DetectionResult]:
    """
    Drop main-scope detections of a variant that a child scope also detected,
    then remove duplicate (variant, scope) pairs keeping the first.
    """
    child_variants = {d.variant for d in detections if d.scope is not main_scope}
    merged: List[DetectionResult] = []
    for detection in detections:
        if detection.scope is main_scope and detection.variant in child_variants:
            logger.info(f"Dropping main-document {detection.variant.value}: also rendered in a frame")
            continue
        if any(d.variant is detection.variant and d.scope is detection.scope for d in merged):
            continue
        merged.append(detection)
    return merged


class WidgetDetector:
    """
    Detects widget instances on one page.

    Usage:
        detector = WidgetDetector(page, config)
        detector.start_listening()       # before page.goto
        await page.goto(url)
        await detector.reveal_page()
        detections = await detector.detect(type_hint="Carousel")
    """

    def __init__(self, page: Any, config: Optional[AuditConfig] = None, sleep: Sleep = asyncio.sleep):
        self.page = page
        self.config = config or AuditConfig()
        self.sleep = sleep
        self._api_detections: Dict[Any, List[WidgetVariant]] = {}
        self._listening = False

    # ==================== Network Evidence ====================

    def start_listening(self) -> None:
        if self._listening:
            return
        self.page.on("response", self._on_response)
        self._listening = True

    def stop_listening(self) -> None:
        if not self._listening:
            return
        self.page.remove_listener("response", self._on_response)
        self._listening = False

    async def _on_response(self, response: Any) -> None:
        if not WIDGET_API_PATTERN.search(response.url or ""):
            return
        try:
            body = await response.json()
        except (PlaywrightError, ValueError) as e:
            logger.debug(f"Widget API response from {response.url} is not JSON: {e}")
            return

        type_id = extract_widget_type(body)
        variant = resolve(type_id)
        if variant is WidgetVariant.UNKNOWN:
            return

        try:
            frame = response.frame
        except PlaywrightError:
            frame = None
        self.record_api_detection(frame, variant)

    def record_api_detection(self, frame: Any, variant: WidgetVariant) -> None:
        scope = self._scope_for_frame(frame)
        variants = self._api_detections.setdefault(scope, [])
        if variant not in variants:
            variants.append(variant)
            logger.info(f"API reported {variant.value} in {browser_surface.scope_url(scope) or 'main document'}")

    def _scope_for_frame(self, frame: Any) -> Any:
        if frame is None or frame is self.page.main_frame:
            return self.page
        return frame

    # ==================== Reveal ====================

    async def reveal_page(self) -> None:
        """Scroll top to bottom in bounded steps so lazy widgets mount, then settle"""
        step = self.config.scroll_step_px
        interval = self.config.scroll_interval_ms / 1000
        try:
            height = await self.page.evaluate("() => document.body ? document.body.scrollHeight : 0")
            position = 0
            steps = 0
            while position < height and steps < self.config.max_scroll_steps:
                await self.page.evaluate("(y) => window.scrollBy(0, y)", step)
                position += step
                steps += 1
                await self.sleep(interval)
                height = await self.page.evaluate("() => document.body ? document.body.scrollHeight : 0")
            await self.page.evaluate("() => window.scrollTo(0, 0)")
            logger.info(f"Reveal scroll finished after {steps} steps ({position}px)")
        except PlaywrightError as e:
            logger.warning(f"Reveal scroll interrupted: {e}")
        await self.sleep(self.config.detector_settle_ms / 1000)

    # ==================== Detection ====================

    async def _probe_scope(self, scope: Any) -> List[WidgetVariant]:
        found = []
        for variant, selectors in WIDGET_SELECTORS.items():
            if selectors.detect is None:
                continue
            if await browser_surface.any_visible(scope, selectors.detect, limit=3, timeout_ms=self.config.probe_timeout_ms):
                found.append(variant)
        return found

    async def _apply_legacy_rules(self, frame: Any) -> List[WidgetVariant]:
        url = browser_surface.scope_url(frame)
        found = []
        for marker, variant, selector in LEGACY_FRAME_RULES:
            if marker in url and await browser_surface.any_visible(frame, selector, limit=1, timeout_ms=self.config.probe_timeout_ms):
                logger.info(f"Legacy frame rule matched {variant.value} for {url}")
                found.append(variant)
        return found

    async def detect(self, type_hint: Any = None) -> List[DetectionResult]:
        """
        Resolve (variant, scope) pairs. Never raises for "nothing found".

        Args:
            type_hint: Expected variant (name or id). Used only when nothing is
                detected and the hint is not "Auto".
        """
        main = self.page
        detections: List[DetectionResult] = []

        api_main = self._api_detections.get(main)
        if api_main:
            detections.extend(DetectionResult(v, main, "api") for v in api_main)
        else:
            detections.extend(DetectionResult(v, main, "selector") for v in await self._probe_scope(main))

        for frame in browser_surface.child_frames(self.page):
            api_frame = self._api_detections.get(frame)
            if api_frame:
                detections.extend(DetectionResult(v, frame, "api") for v in api_frame)
                continue
            variants = await self._probe_scope(frame)
            for variant in await self._apply_legacy_rules(frame):
                if variant not in variants:
                    variants.append(variant)
            detections.extend(DetectionResult(v, frame, "selector") for v in variants)

        merged = resolve_conflicts(detections, main)

        if not merged and type_hint is not None and str(type_hint).strip().lower() != "auto":
            hinted = resolve(type_hint)
            if hinted is not WidgetVariant.UNKNOWN:
                logger.warning(f"No widget detected, falling back to hinted type {hinted.value}")
                merged = [DetectionResult(hinted, main, "hint")]

        logger.info(f"Detected widgets: {[d.variant.value for d in merged]}")
        return merged
