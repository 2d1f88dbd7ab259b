"""
Widget Behavior Controller

Shared contract for the eight widget variants. One controller instance is
bound to one (variant, scope, configuration) triple, owns its own audit log
and review stats, and runs a fixed pipeline:

    resolve scope -> visibility -> configuration -> interactions
    -> integrity checks -> accessibility -> coverage

Every step after visibility is best-effort: an exception is turned into a
finding at the step boundary and the pipeline moves on.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Tuple

from playwright.async_api import Error as PlaywrightError

from ..brain.vision_oracle import VisionOracle, capture_widget_screenshot
from ..config import VIEWPORTS, AuditConfig, WidgetConfiguration
from ..exceptions import ExternalServiceError, FeatureNotApplicableError, WidgetNotVisibleError
from ..knowledge.selector_catalog import (
    CARD_IDENTITY_SELECTOR,
    CLONE_SELECTOR,
    DATE_SELECTOR,
    MEDIA_SELECTOR,
    MODAL_CLOSE_SELECTOR,
    MODAL_SELECTORS,
    SOCIAL_REDIRECTION_SELECTOR,
    TEXT_NODE_SELECTOR,
    css_only,
    get_variant_selectors,
)
from ..knowledge.widget_types import WidgetVariant
from ..core import browser_surface
from ..core.accessibility import AccessibilityScanner
from ..core.audit_log import AuditAccumulator, AuditFinding, DefectRecord, Severity
from ..core.browser_surface import Sleep
from ..core.integrity import (
    ACTIVE_IDENTITY_SCRIPT,
    BROKEN_MEDIA_SCRIPT,
    CARD_BOXES_SCRIPT,
    CARD_CONTENT_SCRIPT,
    FOCUS_INSIDE_SCRIPT,
    MEDIA_STATE_SCRIPT,
    MOTION_SAMPLE_SCRIPT,
    PAUSE_MEDIA_SCRIPT,
    SOCIAL_LINKS_SCRIPT,
    TEXT_ISSUES_SCRIPT,
    Box,
    find_misaligned_rows,
    find_overlaps,
    malformed_tokens,
    motion_detected,
    playback_verified,
    within_container,
)
from ..core.interaction_loops import (
    LocatorLoadMoreProbe,
    LocatorReadMoreProbe,
    ReadMoreOutcome,
    run_load_more,
    run_read_more_cycle,
)
from ..core.reconciliation import (
    FEATURE_LABELS,
    ReconcileStatus,
    ReconciliationRow,
    is_enabled,
    reconcile_features,
)
from ..core.review_classifier import ReviewStats, classify, collect_card_descriptors, fingerprint

# Configure logging
logger = logging.getLogger(__name__)

# Categories that must appear in every report, even when nothing was exercised
COVERAGE_CATEGORIES = ("Interaction", "Navigation", "Playback", "Responsiveness", "Read More", "Load More")

Step = Callable[[], Awaitable[None]]


class ControllerState(Enum):
    """Pipeline position of a controller"""
    UNINITIALIZED = "uninitialized"
    SCOPE_RESOLVED = "scope_resolved"
    VISIBILITY_CHECKED = "visibility_checked"
    CONFIG_RECONCILED = "config_reconciled"
    INTERACTIONS_RUN = "interactions_run"
    INTEGRITY_CHECKED = "integrity_checked"
    ACCESSIBILITY_SCANNED = "accessibility_scanned"
    FINALIZED = "finalized"
    HALTED = "halted"  # container never became visible


@dataclass
class WidgetAuditResult:
    """Audit output of one widget instance"""
    variant: WidgetVariant
    scope_url: str
    source: str
    state: ControllerState
    review_stats: ReviewStats
    audit_log: List[AuditFinding]
    detailed_failures: List[DefectRecord]
    reconciliation: List[ReconciliationRow] = field(default_factory=list)
    accessibility_violations: List[Dict[str, Any]] = field(default_factory=list)
    feature_rows: List[Dict[str, Any]] = field(default_factory=list)
    configuration: Dict[str, Any] = field(default_factory=dict)
    vision_verdict: Optional[Dict[str, Any]] = None

    @property
    def status(self) -> str:
        if self.state is ControllerState.HALTED:
            return "fail"
        if any(f.severity is Severity.FAIL for f in self.audit_log):
            return "fail"
        return "pass"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "variant": self.variant.value,
            "type_id": self.variant.type_id,
            "scope_url": self.scope_url,
            "source": self.source,
            "state": self.state.value,
            "status": self.status,
            "review_stats": self.review_stats.to_dict(),
            "audit_log": [f.to_dict() for f in self.audit_log],
            "detailed_failures": [d.to_dict() for d in self.detailed_failures],
            "reconciliation": [r.to_dict() for r in self.reconciliation],
            "accessibility_violations": self.accessibility_violations,
            "feature_rows": self.feature_rows,
            "configuration": self.configuration,
            "vision_verdict": self.vision_verdict,
        }


class BaseWidget:
    """
    Behavior controller base.

    Subclasses set ``variant`` and pick their interaction steps from the
    shared step methods below (arrow navigation, swipe, modal iteration,
    marquee motion, load more...), overriding a step only where the variant
    really behaves differently.
    """

    variant: WidgetVariant = WidgetVariant.UNKNOWN
    # Stacked layouts where cards overlap
    overlap_exempt: bool = False
    # Layouts without rows of equal-height cards
    alignment_exempt: bool = False
    read_more_threshold_px: float = 5

    def __init__(
        self,
        page: Any,
        scope: Any = None,
        configuration: Optional[Mapping[str, Any]] = None,
        config: Optional[AuditConfig] = None,
        source: str = "selector",
        sleep: Sleep = asyncio.sleep,
        accessibility_scanner: Optional[AccessibilityScanner] = None,
        vision_oracle: Optional[VisionOracle] = None,
    ):
        self.page = page
        self.scope = scope
        if isinstance(configuration, WidgetConfiguration):
            self.configuration = configuration
        else:
            self.configuration = WidgetConfiguration(configuration)
        self.config = config or AuditConfig()
        self.source = source
        self.sleep = sleep
        self.accessibility_scanner = accessibility_scanner or AccessibilityScanner(self.config.axe_script_url)
        self.vision_oracle = vision_oracle

        self.selectors = get_variant_selectors(self.variant)
        self.log = AuditAccumulator(label=self.variant.value)
        self.review_stats = ReviewStats()
        self.reconciliation: List[ReconciliationRow] = []
        self.accessibility_violations: List[Dict[str, Any]] = []
        self.vision_verdict: Optional[Dict[str, Any]] = None
        self.state = ControllerState.UNINITIALIZED

    # ==================== Pipeline ====================

    async def run_full_audit(self, min_reviews: int = 1) -> WidgetAuditResult:
        """Run every step in order. Only a lost page propagates."""
        await self.resolve_scope()

        try:
            await self.check_visibility(min_reviews)
        except WidgetNotVisibleError:
            self.state = ControllerState.HALTED
            return self.result()
        except Exception as e:
            logger.exception(f"[{self.variant.value}] Visibility step crashed")
            self.log.failed(f"Visibility: check aborted - {e}")
            self.state = ControllerState.HALTED
            return self.result()

        await self._run_step("Configuration", self.reconcile_configuration)
        self.state = ControllerState.CONFIG_RECONCILED

        await self.run_interactions()
        self.state = ControllerState.INTERACTIONS_RUN

        for category, step in self.integrity_steps():
            await self._run_step(category, step)
        self.state = ControllerState.INTEGRITY_CHECKED

        if self.config.run_accessibility:
            await self._run_step("Accessibility", self.run_accessibility_scan)
        self.state = ControllerState.ACCESSIBILITY_SCANNED

        for device in self.config.responsive_devices:
            await self._run_step("Responsiveness", lambda device=device: self.check_responsiveness(device))

        if self.vision_oracle is not None:
            await self._run_step("Vision", self.run_vision_check)

        self.finalize()
        return self.result()

    async def _run_step(self, category: str, step: Step) -> None:
        """Run one step; convert any exception into a finding and carry on"""
        try:
            await step()
        except FeatureNotApplicableError as e:
            self.log.info(f"{category}: {e}")
        except ExternalServiceError as e:
            self.log.info(f"{category}: incomplete coverage, {e}", is_limitation=True)
        except WidgetNotVisibleError:
            raise
        except Exception as e:
            logger.exception(f"[{self.variant.value}] {category} step crashed")
            self.log.failed(f"{category}: step failed - {e}")

    def interaction_steps(self) -> List[Tuple[str, Step]]:
        return [
            ("Read More", self.check_read_more),
            ("Playback", self.check_media_playback),
        ]

    def integrity_steps(self) -> List[Tuple[str, Step]]:
        return [
            ("Layout Integrity", self.check_layout_integrity),
            ("Alignment", self.check_alignment),
            ("Text Readability", self.check_text_readability),
            ("Media Integrity", self.check_media_integrity),
            ("Date Consistency", self.check_content_integrity),
            ("Social Redirection", self.check_social_redirection),
            ("CTA", self.check_cta),
        ]

    async def run_interactions(self) -> None:
        for category, step in self.interaction_steps():
            await self._run_step(category, step)

    def finalize(self) -> None:
        """Mark categories that produced no findings as not exercised"""
        for category in COVERAGE_CATEGORIES:
            if not self.log.has_findings(category):
                self.log.info(f"{category}: not exercised for {self.variant.value}")
        self.state = ControllerState.FINALIZED

    def result(self) -> WidgetAuditResult:
        return WidgetAuditResult(
            variant=self.variant,
            scope_url=browser_surface.scope_url(self.scope) if self.scope is not None else "",
            source=self.source,
            state=self.state,
            review_stats=self.review_stats,
            audit_log=self.log.deduplicated(),
            detailed_failures=list(self.log.detailed_failures),
            reconciliation=list(self.reconciliation),
            accessibility_violations=list(self.accessibility_violations),
            feature_rows=self.log.feature_rows(),
            configuration=self.configuration.to_dict(),
            vision_verdict=self.vision_verdict,
        )

    # ==================== Helpers ====================

    def flag(self, key: str) -> Optional[bool]:
        return is_enabled(self.configuration, key)

    def container_locator(self) -> Any:
        return self.scope.locator(self.selectors.container).first

    @property
    def primary_container_selector(self) -> str:
        return self.selectors.container.split(",")[0].strip()

    async def _container_box(self) -> Optional[Box]:
        try:
            box = await self.container_locator().bounding_box()
        except PlaywrightError:
            return None
        if not box:
            return None
        return Box("container", box["x"], box["y"], box["width"], box["height"])

    async def _card_boxes(self) -> List[Box]:
        rows = await browser_surface.evaluate_all(self.scope, self.selectors.card, CARD_BOXES_SCRIPT, CLONE_SELECTOR)
        return within_container([Box.from_dict(r) for r in rows], await self._container_box())

    async def _is_clone(self, element: Any) -> bool:
        try:
            return await element.evaluate("(el, sel) => !!el.closest(sel)", CLONE_SELECTOR)
        except PlaywrightError:
            return False

    async def _active_identity(self) -> str:
        """Identity of the cards currently shown inside the container"""
        try:
            return await self.scope.locator(self.selectors.card).evaluate_all(
                ACTIVE_IDENTITY_SCRIPT, self.primary_container_selector
            )
        except PlaywrightError:
            return ""

    async def refresh_review_stats(self) -> ReviewStats:
        """Recompute stats from the current card set"""
        descriptors = await collect_card_descriptors(self.scope, self.selectors.card)
        self.review_stats = classify(descriptors)
        return self.review_stats

    # ==================== Scope & Visibility ====================

    async def resolve_scope(self) -> Any:
        """Bind to the detected scope, or find the frame holding the container. Idempotent."""
        if self.scope is None:
            candidates = [self.page] + browser_surface.child_frames(self.page)
            for candidate in candidates:
                if await browser_surface.any_visible(candidate, self.selectors.container, limit=3):
                    self.scope = candidate
                    break
            else:
                self.scope = self.page
        if self.state is ControllerState.UNINITIALIZED:
            self.state = ControllerState.SCOPE_RESOLVED
        return self.scope

    async def check_visibility(self, min_count: int = 1) -> None:
        """Container visible within the timeout and at least ``min_count`` unique reviews"""
        await self.resolve_scope()
        timeout_ms = self.config.container_timeout_ms
        if not await browser_surface.wait_visible(self.scope, self.selectors.container, timeout_ms):
            message = f"Visibility: {self.variant.value} container not visible within {timeout_ms // 1000}s"
            self.log.failed(message)
            raise WidgetNotVisibleError(message)

        await browser_surface.wait_visible(self.scope, self.selectors.card, min(timeout_ms, 10000))
        stats = await self.refresh_review_stats()
        self.state = ControllerState.VISIBILITY_CHECKED

        if stats.total < min_count:
            self.log.failed(f"Visibility: found {stats.total} reviews, expected at least {min_count}")
        else:
            self.log.passed(
                f"Visibility: widget visible with {stats.total} reviews "
                f"({stats.text_count} text, {stats.video_count} video, {stats.audio_count} audio; minimum {min_count})"
            )

    # ==================== Configuration ====================

    async def reconcile_configuration(self) -> None:
        await self._reconcile_in(self.scope)

    async def _reconcile_in(self, scope: Any) -> None:
        rows = await reconcile_features(
            scope, self.selectors.features, self.configuration,
            fallbacks=(self.scope, self.page), timeout_ms=self.config.probe_timeout_ms,
        )
        self.reconciliation = rows
        for row in rows:
            if row.status is ReconcileStatus.PASS:
                self.log.passed(row.message)
            elif row.status is ReconcileStatus.FAIL:
                self.log.failed(row.message)
            else:
                self.log.info(row.message)

    # ==================== Read More ====================

    async def check_read_more(self) -> None:
        if self.flag("show_full_review") is False:
            raise FeatureNotApplicableError("full review toggle disabled by configuration")

        triggers = self.scope.locator(self.selectors.read_more)
        total = await browser_surface.count(self.scope, self.selectors.read_more)
        attempts = 0
        last = None
        for index in range(min(total, 20)):
            if attempts >= self.config.read_more_check_limit:
                break
            trigger = triggers.nth(index)
            try:
                if not await trigger.is_visible():
                    continue
            except PlaywrightError:
                continue
            if await self._is_clone(trigger):
                continue

            attempts += 1
            probe = LocatorReadMoreProbe(trigger, self.selectors.read_less, self.scope)
            last = await run_read_more_cycle(probe, self.sleep, self.read_more_threshold_px)
            if last.outcome is not ReadMoreOutcome.NOT_EXPANDED:
                break

        if last is None:
            self.log.info("Read More: no expandable reviews found (review text may be short)")
            return
        for severity, message in last.findings:
            self.log.record(message, severity)

    # ==================== Media Playback ====================

    async def check_media_playback(self, scope: Any = None) -> None:
        scope = scope if scope is not None else self.scope
        trigger = None
        kind = "video"
        for kind, selector in (("video", self.selectors.video_play), ("audio", self.selectors.audio_play)):
            candidate = await browser_surface.first_visible(scope, selector)
            if candidate is not None and not await self._is_clone(candidate):
                trigger = candidate
                break

        if trigger is None:
            if self.review_stats.video_count or self.review_stats.audio_count:
                self.log.info("Playback: media reviews present but no visible play control")
            else:
                self.log.info("Playback: no video or audio reviews to play")
            return

        if not await browser_surface.safe_click(trigger):
            self.log.failed(f"Playback: {kind} play control could not be clicked")
            return
        await self.sleep(1.5)

        try:
            state = await trigger.evaluate(MEDIA_STATE_SCRIPT, self.selectors.card)
        except PlaywrightError:
            # Trigger replaced by the player
            state = await self.scope.locator("body").evaluate(MEDIA_STATE_SCRIPT, self.selectors.card)

        if playback_verified(state):
            self.log.passed(f"Playback: {kind} playback verified")
        else:
            self.log.failed(f"Playback: {kind} did not start after clicking play")

        try:
            await self.scope.evaluate(PAUSE_MEDIA_SCRIPT)
        except PlaywrightError as e:
            logger.debug(f"Pause after playback failed: {e}")
        if scope is self.scope:
            await self.close_modal_if_open()

    # ==================== Modals ====================

    async def find_open_modal(self, timeout_ms: Optional[int] = None) -> Optional[Any]:
        timeout_ms = self.config.modal_timeout_ms if timeout_ms is None else timeout_ms
        for _ in range(max(1, timeout_ms // 250)):
            for selector in MODAL_SELECTORS:
                modal = await browser_surface.first_visible(self.scope, selector, limit=3)
                if modal is not None:
                    return modal
            await self.sleep(0.25)
        return None

    async def close_modal(self, modal: Any) -> bool:
        """Close control, else Escape, else an outside click. True once the modal is gone."""
        close = await browser_surface.first_visible(modal, MODAL_CLOSE_SELECTOR)
        if close is None:
            close = await browser_surface.first_visible(self.scope, MODAL_CLOSE_SELECTOR)
        if close is not None:
            await browser_surface.safe_click(close)
            if await browser_surface.wait_hidden(modal, 2000):
                return True

        await self.page.keyboard.press("Escape")
        if await browser_surface.wait_hidden(modal, 1500):
            return True

        await self.page.mouse.click(5, 5)
        return await browser_surface.wait_hidden(modal, 1500)

    async def close_modal_if_open(self) -> None:
        modal = await self.find_open_modal(timeout_ms=250)
        if modal is not None:
            await self.close_modal(modal)

    async def check_modal_cards(self) -> None:
        """Open every card's review modal (bounded), inspect it and close it"""
        cards = self.scope.locator(self.selectors.card)
        total = await browser_surface.count(self.scope, self.selectors.card)
        if total == 0:
            raise FeatureNotApplicableError("no clickable review cards")

        seen = set()
        opened = repeated = unopened = 0
        for index in range(min(total, self.config.max_modal_cards)):
            card = cards.nth(index)
            try:
                if not await card.is_visible():
                    continue
            except PlaywrightError:
                continue

            if not await browser_surface.safe_click(card):
                unopened += 1
                continue
            modal = await self.find_open_modal()
            if modal is None:
                unopened += 1
                continue

            opened += 1
            try:
                key = fingerprint(await modal.inner_text(), length=120)
            except PlaywrightError:
                key = f"modal-{index}"
            if key in seen:
                repeated += 1
            else:
                seen.add(key)
                await self.inspect_modal(modal, index)

            if not await self.close_modal(modal):
                self.log.warn(f"Interaction: review modal #{index + 1} did not close")
                break

        if opened == 0:
            self.log.failed("Interaction: clicking review cards did not open a review modal")
            return
        self.log.passed(f"Interaction: opened {opened} review modal(s), {len(seen)} unique")
        if repeated:
            self.log.info(f"Interaction: {repeated} modal(s) repeated earlier content")
        if unopened:
            self.log.info(f"Interaction: {unopened} card(s) did not open a modal")

    async def inspect_modal(self, modal: Any, index: int) -> None:
        """Feature presence, read-more cycle, playback and broken images inside one modal"""
        present = set()
        for feature, probe in self.selectors.features.items():
            if probe.page_level:
                continue
            if await browser_surface.any_visible(modal, probe.selector, limit=3):
                present.add(FEATURE_LABELS.get(feature, feature))
        if present:
            self.log.info(f"Interaction: modal #{index + 1} shows {', '.join(sorted(present))}")

        if not self.log.has_findings("Read More:"):
            trigger = await browser_surface.first_visible(modal, self.selectors.read_more)
            if trigger is not None:
                probe = LocatorReadMoreProbe(trigger, self.selectors.read_less, modal)
                cycle = await run_read_more_cycle(probe, self.sleep, self.read_more_threshold_px)
                for severity, message in cycle.findings:
                    self.log.record(message, severity)

        if not self.log.has_findings("Playback:"):
            play = await browser_surface.first_visible(modal, f"{self.selectors.video_play}, {self.selectors.audio_play}")
            if play is not None:
                await self.check_media_playback(scope=modal)

        broken = await browser_surface.evaluate_all(
            modal, "img", BROKEN_MEDIA_SCRIPT, {"clone": CLONE_SELECTOR, "card": self.selectors.card}
        )
        for item in broken:
            self.log.add_defect(DefectRecord(
                type="Broken Media",
                affected_element_id=f"Modal #{index + 1}",
                description=f"{item.get('reason')}: {item.get('src', '')}",
                severity="High",
                dom_snippet=item.get("snippet"),
                selector="img",
            ))
        if broken:
            self.log.failed(f"Media Integrity: {len(broken)} broken image(s) in review modal #{index + 1}")

    # ==================== Navigation ====================

    async def check_arrow_navigation(self) -> None:
        if not self.selectors.next_button:
            raise FeatureNotApplicableError("layout has no navigation arrows")

        next_button = await browser_surface.first_visible(self.scope, self.selectors.next_button)
        if next_button is None:
            if self.flag("is_show_arrows_buttons") is False:
                self.log.info("Navigation: arrows hidden by configuration")
            else:
                self.log.info("Navigation: no visible navigation arrows")
            return

        before = await self._active_identity()
        await browser_surface.safe_click(next_button)
        await self.sleep(1.0)
        after = await self._active_identity()
        if not before and not after:
            self.log.info("Navigation: active review could not be identified")
            return
        if after != before:
            self.log.passed("Navigation: next arrow changed the active review")
        else:
            self.log.failed("Navigation: next arrow did not change the active review")

        if not self.selectors.prev_button:
            return
        prev_button = await browser_surface.first_visible(self.scope, self.selectors.prev_button)
        if prev_button is None:
            return
        await browser_surface.safe_click(prev_button)
        await self.sleep(1.0)
        back = await self._active_identity()
        if back != after:
            self.log.passed("Navigation: previous arrow changed the active review")
        else:
            self.log.failed("Navigation: previous arrow did not change the active review")

    async def check_indicators(self) -> None:
        if not self.selectors.indicators:
            raise FeatureNotApplicableError("layout has no slide indicators")
        if await browser_surface.any_visible(self.scope, self.selectors.indicators):
            self.log.passed("Navigation: slide indicators visible")
        elif self.flag("is_show_indicators") is False:
            self.log.info("Navigation: slide indicators hidden by configuration")
        else:
            self.log.info("Navigation: no slide indicators rendered")

    async def check_swipe(self) -> None:
        box = await self._container_box()
        if box is None or box.width == 0:
            raise FeatureNotApplicableError("container has no size to swipe")

        before = await self._active_identity()
        y = box.y + box.height / 2
        mouse = self.page.mouse
        await mouse.move(box.x + box.width * 0.75, y)
        await mouse.down()
        await mouse.move(box.x + box.width * 0.25, y, steps=10)
        await mouse.up()
        await self.sleep(1.0)

        if await self._active_identity() != before:
            self.log.passed("Interaction: swipe gesture moved the slider")
        else:
            self.log.info("Interaction: swipe gesture did not move the slider")

    async def check_keyboard_navigation(self) -> None:
        target = await browser_surface.first_visible(
            self.container_locator(), 'button, a[href], [tabindex]:not([tabindex="-1"])'
        )
        if target is None:
            raise FeatureNotApplicableError("no focusable element inside the widget")

        await target.focus()
        keyboard = self.page.keyboard
        await keyboard.press("Tab")
        inside = await self.scope.evaluate(FOCUS_INSIDE_SCRIPT, self.primary_container_selector)
        if inside:
            await keyboard.press("Enter")
            await self.sleep(0.5)
            self.log.passed("Interaction: Tab keeps keyboard focus inside the widget and Enter activates it")
        else:
            self.log.info("Interaction: Tab moved keyboard focus out of the widget")
        await self.close_modal_if_open()

    async def check_marquee_motion(self) -> None:
        selector = self.selectors.marquee_row or self.selectors.container
        track = await browser_surface.first_visible(self.scope, selector)
        if track is None:
            raise FeatureNotApplicableError("marquee track not visible")

        first = await track.evaluate(MOTION_SAMPLE_SCRIPT)
        await self.sleep(self.config.marquee_sample_ms / 1000)
        second = await track.evaluate(MOTION_SAMPLE_SCRIPT)

        if motion_detected(first, second):
            self.log.passed("Interaction: marquee is moving")
        elif second.get("scrollable"):
            self.log.passed("Interaction: marquee is static but scrollable by hand")
        else:
            self.log.info("Interaction: no marquee movement detected")

    async def check_load_more(self) -> None:
        if not self.selectors.load_more:
            raise FeatureNotApplicableError("layout has no Load More control")

        probe = LocatorLoadMoreProbe(self.scope, self.selectors.load_more, self.selectors.card)
        if not await probe.button_visible():
            self.log.info("Load More: no Load More button, all reviews already shown")
            return

        result = await run_load_more(
            probe,
            self.sleep,
            max_clicks=self.config.max_load_more_clicks,
            wait_s=self.config.load_more_wait_ms / 1000,
        )
        stats = await self.refresh_review_stats()

        if result.capped:
            self.log.warn(f"Load More: stopped after {result.clicks} clicks, button still visible")
        elif result.button_still_visible:
            self.log.warn(f"Load More: button still visible but no new reviews after {result.clicks} clicks")
        else:
            self.log.passed(f"Load More: loaded {result.loaded} additional cards in {result.clicks} clicks")
        self.log.info(f"Load More: review stats recomputed, {stats.total} unique reviews")

    # ==================== Integrity ====================

    async def check_layout_integrity(self) -> None:
        if self.overlap_exempt:
            self.log.info(f"Layout Integrity: {self.variant.value} cards overlap by design, overlap check skipped")
            return

        boxes = await self._card_boxes()
        if not boxes:
            raise FeatureNotApplicableError("no visible cards to measure")

        overlaps = find_overlaps(boxes, self.config.overlap_tolerance_px)
        for first, second in overlaps:
            ids = sorted((first.id, second.id))
            self.log.add_defect(DefectRecord(
                type="Overlap",
                affected_element_id=f"{ids[0]} / {ids[1]}",
                description=f"Cards {ids[0]} and {ids[1]} overlap",
                severity="High",
                dom_snippet=second.snippet,
                selector=self.selectors.card,
            ))
        if overlaps:
            self.log.failed(f"Layout Integrity: {len(overlaps)} overlapping card pair(s) among {len(boxes)} cards")
        else:
            self.log.passed(f"Layout Integrity: no overlapping cards ({len(boxes)} checked)")

    async def check_alignment(self) -> None:
        if self.alignment_exempt:
            raise FeatureNotApplicableError(f"{self.variant.value} does not lay cards out in rows")

        boxes = await self._card_boxes()
        if len(boxes) < 2:
            raise FeatureNotApplicableError("fewer than two visible cards")

        uneven = find_misaligned_rows(boxes, height_tolerance=self.config.alignment_tolerance_px)
        for row in uneven:
            heights = ", ".join(f"{b.height:.0f}px" for b in row)
            self.log.add_defect(DefectRecord(
                type="Alignment",
                affected_element_id=f"Row at y={row[0].y:.0f}",
                description=f"Uneven card heights in one row: {heights}",
                severity="Info",
                dom_snippet=row[0].snippet,
                selector=self.selectors.card,
            ))
        if uneven:
            self.log.info(f"Alignment: {len(uneven)} row(s) with uneven card heights")
        else:
            self.log.passed("Alignment: cards in each row share the same height")

    async def check_text_readability(self) -> None:
        issues = await browser_surface.evaluate_all(self.scope, self.selectors.card, TEXT_ISSUES_SCRIPT, {
            "clone": CLONE_SELECTOR,
            "readMore": css_only(self.selectors.read_more) or ".feedspace-element-read-more",
            "text": TEXT_NODE_SELECTOR,
            "tolerance": self.config.text_overflow_tolerance_px,
        })
        added = 0
        for issue in issues:
            if self.log.add_defect(DefectRecord(
                type="Text Readability",
                affected_element_id=f"{issue.get('cardId')}:{issue.get('kind')}",
                description=issue.get("detail", ""),
                severity="Medium",
                dom_snippet=issue.get("snippet"),
                selector=TEXT_NODE_SELECTOR,
            )):
                added += 1
        if added:
            self.log.failed(f"Text Readability: {added} text issue(s) (overflow, CSS truncation or overlap)")
        else:
            self.log.passed("Text Readability: review text fully readable")

    async def check_media_integrity(self) -> None:
        broken = await browser_surface.evaluate_all(
            self.container_locator(), MEDIA_SELECTOR, BROKEN_MEDIA_SCRIPT,
            {"clone": CLONE_SELECTOR, "card": CARD_IDENTITY_SELECTOR},
        )
        added = 0
        for item in broken:
            if self.log.add_defect(DefectRecord(
                type="Broken Media",
                affected_element_id=str(item.get("cardId")),
                description=f"{item.get('reason')} ({item.get('tag')}): {item.get('src', '')}",
                severity="High",
                dom_snippet=item.get("snippet"),
                selector=MEDIA_SELECTOR,
            )):
                added += 1
        if added:
            self.log.failed(f"Media Integrity: broken media in {added} card(s)")
        else:
            self.log.passed("Media Integrity: all images and players loaded")

    async def check_content_integrity(self) -> None:
        cards = await browser_surface.evaluate_all(self.scope, self.selectors.card, CARD_CONTENT_SCRIPT, {
            "clone": CLONE_SELECTOR,
            "date": DATE_SELECTOR,
        })
        if not cards:
            raise FeatureNotApplicableError("no review cards to inspect")

        problems = 0
        for card in cards:
            card_id = str(card.get("cardId"))
            date_tokens = malformed_tokens(card.get("dateText") or "")
            if date_tokens:
                problems += self.log.add_defect(DefectRecord(
                    type="Malformed dates",
                    affected_element_id=card_id,
                    description=f"Date shows {', '.join(date_tokens)}",
                    severity="Medium",
                    dom_snippet=card.get("snippet"),
                    selector=DATE_SELECTOR,
                ))
                continue
            content_tokens = malformed_tokens(card.get("text") or "")
            if content_tokens:
                problems += self.log.add_defect(DefectRecord(
                    type="Malformed content",
                    affected_element_id=card_id,
                    description=f"Review text contains {', '.join(content_tokens)}",
                    severity="Medium",
                    dom_snippet=card.get("snippet"),
                    selector=self.selectors.card,
                ))
        if problems:
            self.log.failed(f"Date Consistency: {problems} card(s) show undefined/null/invalid values")
        else:
            self.log.passed(f"Date Consistency: {len(cards)} card(s) free of placeholder values")

    async def check_social_redirection(self) -> None:
        if not self.flag("allow_social_redirection"):
            raise FeatureNotApplicableError("social redirection not enabled")

        icons = await browser_surface.evaluate_all(self.scope, SOCIAL_REDIRECTION_SELECTOR, SOCIAL_LINKS_SCRIPT)
        if not icons:
            self.log.info("Social Redirection: no social icons rendered")
            return
        unlinked = [icon for icon in icons if not icon.get("href")]
        for icon in unlinked:
            self.log.add_defect(DefectRecord(
                type="Social Redirection",
                affected_element_id=f"Social icon #{icon.get('index', 0) + 1}",
                description="Social icon is not a link",
                severity="Low",
                dom_snippet=icon.get("snippet"),
                selector=SOCIAL_REDIRECTION_SELECTOR,
            ))
        if unlinked:
            self.log.failed(f"Social Redirection: {len(unlinked)} of {len(icons)} social icon(s) have no link")
        else:
            self.log.passed(f"Social Redirection: {len(icons)} social icon(s) link out")

    async def check_cta(self) -> None:
        cta = await browser_surface.first_visible(self.scope, self.selectors.cta, limit=3)
        if cta is not None:
            self.log.passed("CTA: inline call-to-action visible")
        elif self.flag("cta_enabled") is False:
            self.log.info("CTA: no inline call-to-action (disabled by configuration)")
        else:
            self.log.info("CTA: no inline call-to-action found on this widget")

    # ==================== Responsiveness & Accessibility ====================

    async def check_responsiveness(self, device: str) -> None:
        if device not in VIEWPORTS:
            raise FeatureNotApplicableError(f"unknown device '{device}'")
        width, height = VIEWPORTS[device]
        original = self.page.viewport_size or {
            "width": self.config.viewport_width,
            "height": self.config.viewport_height,
        }

        await self.page.set_viewport_size({"width": width, "height": height})
        try:
            await self.sleep(1.0)
            if await browser_surface.wait_visible(self.scope, self.selectors.container, 5000):
                self.log.passed(f"Responsiveness: widget visible on {device} ({width}x{height})")
            else:
                self.log.failed(f"Responsiveness: widget not visible on {device} ({width}x{height})")
        finally:
            await self.page.set_viewport_size(original)

    async def run_accessibility_scan(self) -> None:
        result = await self.accessibility_scanner.scan(self.scope, self.selectors.container)
        self.accessibility_violations = result.violations
        if result.violation_count == 0:
            self.log.passed("Accessibility: no violations found")
        else:
            rules = ", ".join(result.rule_ids()[:5])
            self.log.failed(f"Accessibility: {result.violation_count} violation(s) ({rules})")

    async def run_vision_check(self) -> None:
        """Ask the vision oracle whether the enabled features are visible in a screenshot"""
        expected = sorted({
            row.label
            for row in self.reconciliation
            if row.status is ReconcileStatus.PASS and row.observed_visible
        })
        if not expected:
            raise FeatureNotApplicableError("no visible configured features to confirm")

        image = await capture_widget_screenshot(self)
        verdict = await self.vision_oracle.analyze(image, self.variant.value, expected)
        self.vision_verdict = verdict.to_dict()
        if verdict.overall_status == "ERROR":
            raise ExternalServiceError("gemini", verdict.error or "analysis failed")

        missing = [r.get("feature") for r in verdict.feature_results if str(r.get("status", "")).upper() == "FAIL"]
        suffix = " (mock)" if verdict.mock else ""
        if missing:
            self.log.info(f"Vision: not confirmed in screenshot{suffix}: {', '.join(map(str, missing))}")
        else:
            self.log.passed(f"Vision: {len(expected)} feature(s) confirmed in screenshot{suffix}")
