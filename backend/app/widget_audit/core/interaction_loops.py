"""
Bounded interaction loops.

Each loop talks to a small probe object (measure, click, count) and an
injected sleep, has a hard iteration cap and always ends in a terminal
outcome. Locator-backed probes adapt them to Playwright elements.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional, Tuple

from ..knowledge.selector_catalog import card_ancestor_xpath
from .audit_log import Severity
from . import browser_surface
from .browser_surface import PlaywrightError, Sleep

# Configure logging
logger = logging.getLogger(__name__)


# ==================== Read More / Read Less ====================

class ReadMoreOutcome(Enum):
    FULL_CYCLE = "full_cycle"
    EXPANDED_ONLY = "expanded_only"   # no collapse control after expanding
    COLLAPSE_FAILED = "collapse_failed"
    NOT_EXPANDED = "not_expanded"


@dataclass
class CycleResult:
    outcome: ReadMoreOutcome
    baseline: float = 0.0
    expanded: float = 0.0
    collapsed: float = 0.0
    findings: List[Tuple[Severity, str]] = field(default_factory=list)


async def run_read_more_cycle(probe: Any, sleep: Sleep, threshold_px: float = 5, settle_s: float = 0.6) -> CycleResult:
    """
    Expand then collapse one review.

    ``probe`` provides: measure(), expand(), collapse_visible(), collapse().
    Expansion counts when height grows by more than ``threshold_px`` or a
    collapse control appears. A half-completed cycle is reported as info.
    """
    baseline = await probe.measure()
    await probe.expand()
    await sleep(settle_s)

    expanded = await probe.measure()
    collapse_visible = await probe.collapse_visible()
    growth = expanded - baseline
    result = CycleResult(ReadMoreOutcome.NOT_EXPANDED, baseline=baseline, expanded=expanded)

    if growth <= threshold_px and not collapse_visible:
        result.findings.append((Severity.FAIL, f"Read More: clicking did not expand the review (height {baseline:.0f}px -> {expanded:.0f}px)"))
        return result

    result.findings.append((Severity.PASS, f"Read More: expansion verified ({baseline:.0f}px -> {expanded:.0f}px)"))
    if not collapse_visible:
        result.outcome = ReadMoreOutcome.EXPANDED_ONLY
        result.findings.append((Severity.INFO, "Read More: review expanded but no Read Less control appeared"))
        return result

    await probe.collapse()
    await sleep(settle_s)
    collapsed = await probe.measure()
    result.collapsed = collapsed
    still_expanded = await probe.collapse_visible()

    if abs(collapsed - baseline) <= threshold_px or not still_expanded:
        result.outcome = ReadMoreOutcome.FULL_CYCLE
        result.findings.append((Severity.PASS, f"Read More: cycle validated, Read Less restored {collapsed:.0f}px"))
    else:
        result.outcome = ReadMoreOutcome.COLLAPSE_FAILED
        result.findings.append((Severity.INFO, f"Read More: Read Less did not restore height (baseline {baseline:.0f}px, now {collapsed:.0f}px)"))
    return result


class LocatorReadMoreProbe:
    """Read-more probe over a trigger element and its review card"""

    def __init__(self, trigger: Any, read_less_selector: str, fallback_scope: Any = None):
        self.trigger = trigger
        self.card = trigger.locator(card_ancestor_xpath())
        self.read_less_selector = read_less_selector
        self.fallback_scope = fallback_scope

    async def _card_exists(self) -> bool:
        return await browser_surface.count(self.trigger, card_ancestor_xpath()) > 0

    async def _card_or_trigger(self) -> Any:
        return self.card if await self._card_exists() else self.trigger

    async def measure(self) -> float:
        return await browser_surface.bounding_height(await self._card_or_trigger())

    async def expand(self) -> bool:
        return await browser_surface.safe_click(self.trigger)

    async def collapse_visible(self) -> bool:
        if await self._card_exists() and await browser_surface.any_visible(self.card, self.read_less_selector):
            return True
        if self.fallback_scope is not None:
            return await browser_surface.any_visible(self.fallback_scope, self.read_less_selector)
        return False

    async def collapse(self) -> bool:
        scope = self.card if await self._card_exists() else self.fallback_scope
        if scope is None:
            return False
        element = await browser_surface.first_visible(scope, self.read_less_selector)
        if element is None:
            return False
        return await browser_surface.safe_click(element)


# ==================== Load More ====================

@dataclass
class LoadMoreResult:
    clicks: int
    initial_count: int
    final_count: int
    button_still_visible: bool
    capped: bool
    stalled: bool

    @property
    def loaded(self) -> int:
        return max(self.final_count - self.initial_count, 0)


async def run_load_more(
    probe: Any,
    sleep: Sleep,
    max_clicks: int = 30,
    wait_s: float = 3.0,
    max_stalls: int = 2,
) -> LoadMoreResult:
    """
    Click "load more" while it stays visible, at most ``max_clicks`` times.

    ``probe`` provides: button_visible(), click(), card_count(), scroll_fallback().
    A click that adds no cards triggers one scroll fallback; ``max_stalls``
    consecutive stalls end the loop.
    """
    initial = await probe.card_count()
    previous = initial
    clicks = 0
    stalls = 0
    stalled = False

    while clicks < max_clicks:
        if not await probe.button_visible():
            break
        if not await probe.click():
            break
        clicks += 1
        await sleep(wait_s)

        current = await probe.card_count()
        if current <= previous:
            await probe.scroll_fallback()
            await sleep(1.0)
            current = await probe.card_count()

        if current <= previous:
            stalls += 1
            if stalls >= max_stalls:
                stalled = True
                break
        else:
            stalls = 0
        previous = max(previous, current)
        logger.debug(f"Load more click {clicks}: {current} cards")

    still_visible = await probe.button_visible()
    return LoadMoreResult(
        clicks=clicks,
        initial_count=initial,
        final_count=previous,
        button_still_visible=still_visible,
        capped=clicks >= max_clicks and still_visible,
        stalled=stalled,
    )


class LocatorLoadMoreProbe:
    """Load-more probe over a widget scope"""

    def __init__(self, scope: Any, button_selector: str, card_selector: str):
        self.scope = scope
        self.button_selector = button_selector
        self.card_selector = card_selector
        self._button: Optional[Any] = None

    async def button_visible(self) -> bool:
        self._button = await browser_surface.first_visible(self.scope, self.button_selector)
        return self._button is not None

    async def click(self) -> bool:
        if self._button is None and not await self.button_visible():
            return False
        return await browser_surface.safe_click(self._button)

    async def card_count(self) -> int:
        return await browser_surface.count(self.scope, self.card_selector)

    async def scroll_fallback(self) -> None:
        cards = self.scope.locator(self.card_selector)
        total = await browser_surface.count(self.scope, self.card_selector)
        if total:
            try:
                await cards.nth(total - 1).scroll_into_view_if_needed(timeout=2000)
            except PlaywrightError as e:
                logger.debug(f"Scroll fallback failed: {e}")
