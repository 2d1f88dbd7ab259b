"""
Widget Audit Runner

Page-level orchestration: launch the browser, register the detector before
navigation, detect widget instances and audit them one after another.
Batch runs group widget entries by URL and survive per-URL failures.
"""

import asyncio
import json
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence

import httpx
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import async_playwright

from .brain.vision_oracle import VisionOracle
from .config import AuditConfig
from .core.browser_surface import Sleep
from .core.detector import DetectionResult, WidgetDetector
from .exceptions import NavigationError
from .knowledge.widget_types import WidgetVariant, resolve_entry
from .widgets.base_widget import WidgetAuditResult
from .widgets.factory import create_controller

# Configure logging
logger = logging.getLogger(__name__)

URL_KEYS = ("url", "widget_url", "link")


@dataclass
class PageAuditReport:
    """Audit of one URL: detections plus one result per widget instance"""
    url: str
    status: str = "Completed"  # Completed | Failed | Widget Not Found
    type_hint: Optional[str] = None
    detections: List[Dict[str, Any]] = field(default_factory=list)
    instances: List[WidgetAuditResult] = field(default_factory=list)
    missing_widgets: List[str] = field(default_factory=list)
    error: Optional[str] = None
    report_id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])
    started_at: str = field(default_factory=lambda: datetime.now().isoformat())
    completed_at: Optional[str] = None

    @classmethod
    def failed(cls, url: str, reason: str, type_hint: Optional[str] = None) -> "PageAuditReport":
        report = cls(url=url, status="Failed", type_hint=type_hint, error=reason)
        report.completed_at = datetime.now().isoformat()
        return report

    @property
    def overall_status(self) -> str:
        if self.status != "Completed":
            return "fail"
        if any(instance.status == "fail" for instance in self.instances):
            return "fail"
        return "pass"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "report_id": self.report_id,
            "url": self.url,
            "status": self.status,
            "overall_status": self.overall_status,
            "type_hint": self.type_hint,
            "detections": self.detections,
            "instances": [instance.to_dict() for instance in self.instances],
            "missing_widgets": self.missing_widgets,
            "error": self.error,
            "started_at": self.started_at,
            "completed_at": self.completed_at,
        }

    def save_json(self, reports_dir: str) -> Path:
        directory = Path(reports_dir)
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / f"widget_audit_{self.report_id}.json"
        path.write_text(json.dumps(self.to_dict(), indent=2), encoding="utf-8")
        logger.info(f"Saved JSON report: {path}")
        return path


# ==================== Widget lists ====================

def normalize_widget_list(payload: Any) -> List[Dict[str, Any]]:
    """Accept a bare array, {"data": [...]}, {"widgets": [...]} or a single widget object"""
    if isinstance(payload, list):
        return [entry for entry in payload if isinstance(entry, dict)]
    if isinstance(payload, dict):
        for key in ("data", "widgets"):
            value = payload.get(key)
            if isinstance(value, list):
                return [entry for entry in value if isinstance(entry, dict)]
        return [payload]
    return []


def entry_url(entry: Mapping[str, Any]) -> Optional[str]:
    for key in URL_KEYS:
        value = entry.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def group_entries_by_url(entries: Sequence[Mapping[str, Any]]) -> Dict[str, List[Mapping[str, Any]]]:
    grouped: Dict[str, List[Mapping[str, Any]]] = {}
    for entry in entries:
        url = entry_url(entry)
        if url is None:
            logger.warning(f"Skipping widget entry without URL: {dict(entry)}")
            continue
        grouped.setdefault(url, []).append(entry)
    return grouped


async def load_widget_list(source: str) -> List[Dict[str, Any]]:
    """Read widget entries from a local JSON file or an HTTP(S) endpoint"""
    if source.startswith(("http://", "https://")):
        async with httpx.AsyncClient(timeout=30.0) as client:
            response = await client.get(source)
            response.raise_for_status()
            payload = response.json()
    else:
        payload = json.loads(Path(source).read_text(encoding="utf-8"))
    entries = normalize_widget_list(payload)
    logger.info(f"Loaded {len(entries)} widget entries from {source}")
    return entries


# ==================== Runner ====================

class WidgetAuditRunner:
    """
    Usage:
        async with WidgetAuditRunner(AuditConfig.from_env()) as runner:
            report = await runner.audit_url("https://example.com", type_hint="Carousel")
    """

    def __init__(self, config: Optional[AuditConfig] = None, sleep: Sleep = asyncio.sleep):
        self.config = config or AuditConfig()
        self.sleep = sleep
        self._playwright = None
        self._browser = None

    async def __aenter__(self) -> "WidgetAuditRunner":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def start(self) -> None:
        if self._playwright is None:
            self._playwright = await async_playwright().start()
        if self._browser is None or not self._browser.is_connected():
            self._browser = await self._playwright.chromium.launch(headless=self.config.headless)
            logger.info(f"Browser launched (headless={self.config.headless})")

    async def close(self) -> None:
        if self._browser is not None:
            try:
                await self._browser.close()
            except PlaywrightError as e:
                logger.debug(f"Browser close failed: {e}")
            self._browser = None
        if self._playwright is not None:
            await self._playwright.stop()
            self._playwright = None

    async def _recover_browser(self) -> None:
        logger.warning("Browser session lost, relaunching")
        self._browser = None
        await self.start()

    async def audit_url(
        self,
        url: str,
        type_hint: Optional[str] = None,
        configurations: Optional[Sequence[Mapping[str, Any]]] = None,
        min_reviews: int = 1,
    ) -> PageAuditReport:
        """
        Audit every widget instance on one page.

        Raises:
            NavigationError: the page could not be loaded
        """
        await self.start()
        context = await self._browser.new_context(
            viewport={"width": self.config.viewport_width, "height": self.config.viewport_height}
        )
        page = await context.new_page()
        report = PageAuditReport(url=url, type_hint=type_hint)

        try:
            detector = WidgetDetector(page, self.config, self.sleep)
            detector.start_listening()
            try:
                await page.goto(url, wait_until="domcontentloaded", timeout=self.config.navigation_timeout_ms)
            except PlaywrightError as e:
                raise NavigationError(url, str(e)) from e

            await detector.reveal_page()
            detections = await detector.detect(type_hint)
            report.detections = [d.to_dict() for d in detections]
            if not detections:
                report.status = "Widget Not Found"

            # Sequential: a modal opened by one instance must not leak into another
            for detection in detections:
                report.instances.append(await self._audit_instance(detection, page, configurations, min_reviews))
            detector.stop_listening()
        finally:
            report.completed_at = datetime.now().isoformat()
            await context.close()

        logger.info(f"Audit of {url} finished: {len(report.instances)} widget(s), status {report.overall_status}")
        return report

    async def _audit_instance(
        self,
        detection: DetectionResult,
        page: Any,
        configurations: Optional[Sequence[Mapping[str, Any]]],
        min_reviews: int,
    ) -> WidgetAuditResult:
        oracle = None
        if self.config.gemini_api_key:
            oracle = VisionOracle(self.config.gemini_api_key, self.config.gemini_model)
        controller = create_controller(detection, page, configurations, self.config, self.sleep, oracle)
        if detection.source == "hint":
            controller.log.info(f"Detection: no widget detected, auditing as hinted {detection.variant.value}")
        return await controller.run_full_audit(min_reviews)

    async def audit_widget_list(self, entries: Sequence[Mapping[str, Any]], min_reviews: int = 1) -> List[PageAuditReport]:
        """Audit each URL once; expected widgets that were not detected are listed as missing"""
        reports = []
        for url, group in group_entries_by_url(entries).items():
            expected = [resolve_entry(dict(entry)) for entry in group]
            hint = next((v.value for v in expected if v is not WidgetVariant.UNKNOWN), None)
            try:
                report = await self.audit_url(url, type_hint=hint, configurations=group, min_reviews=min_reviews)
            except NavigationError as e:
                logger.error(str(e))
                reports.append(PageAuditReport.failed(url, str(e), hint))
                continue
            except PlaywrightError as e:
                logger.error(f"Browser error while auditing {url}: {e}")
                reports.append(PageAuditReport.failed(url, str(e), hint))
                if self._browser is None or not self._browser.is_connected():
                    await self._recover_browser()
                continue

            detected = {d["variant"] for d in report.detections}
            report.missing_widgets = [
                v.value for v in expected
                if v is not WidgetVariant.UNKNOWN and v.value not in detected
            ]
            if report.missing_widgets and not report.instances:
                report.status = "Widget Not Found"
            reports.append(report)
        return reports
