"""
Browser Surface

Thin helpers over Playwright pages, frames and locators. A probe that times
out or hits a detached frame answers "not present" instead of raising.
"""

import logging
from typing import Any, Awaitable, Callable, List, Optional

from playwright.async_api import Error as PlaywrightError

# Configure logging
logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]


def scope_url(scope: Any) -> str:
    try:
        return scope.url or ""
    except PlaywrightError:
        return ""


def child_frames(page: Any) -> List[Any]:
    """All attached frames below the main frame, nested frames included"""
    frames = []
    main = page.main_frame
    for frame in page.frames:
        if frame is main:
            continue
        if frame.is_detached():
            continue
        frames.append(frame)
    return frames


async def count(scope: Any, selector: str) -> int:
    try:
        return await scope.locator(selector).count()
    except PlaywrightError as e:
        logger.debug(f"count({selector}) failed: {e}")
        return 0


async def first_visible(scope: Any, selector: str, limit: int = 10) -> Optional[Any]:
    """First visible element matching the selector, checking at most ``limit`` matches"""
    try:
        elements = scope.locator(selector)
        total = await elements.count()
        for index in range(min(total, limit)):
            element = elements.nth(index)
            if await element.is_visible():
                return element
    except PlaywrightError as e:
        logger.debug(f"first_visible({selector}) failed: {e}")
    return None


async def any_visible(scope: Any, selector: str, limit: int = 10, timeout_ms: int = 0) -> bool:
    """Any visible match now, else the first match within ``timeout_ms``"""
    if await first_visible(scope, selector, limit) is not None:
        return True
    return timeout_ms > 0 and await wait_visible(scope, selector, timeout_ms)


async def wait_visible(scope: Any, selector: str, timeout_ms: int) -> bool:
    """Wait for the first match to become visible. Timeout means False."""
    try:
        await scope.locator(selector).first.wait_for(state="visible", timeout=timeout_ms)
        return True
    except PlaywrightError:
        return False


async def wait_hidden(locator: Any, timeout_ms: int) -> bool:
    try:
        await locator.wait_for(state="hidden", timeout=timeout_ms)
        return True
    except PlaywrightError:
        return False


async def visible_text(scope: Any, selector: str, limit: int = 10) -> str:
    """Trimmed text of the first visible match, or empty string"""
    element = await first_visible(scope, selector, limit)
    if element is None:
        return ""
    try:
        return (await element.inner_text()).strip()
    except PlaywrightError:
        return ""


async def safe_click(locator: Any, timeout_ms: int = 3000, force: bool = False) -> bool:
    """Scroll into view and click. Falls back to a DOM click when the pointer is intercepted."""
    try:
        await locator.scroll_into_view_if_needed(timeout=timeout_ms)
        await locator.click(timeout=timeout_ms, force=force)
        return True
    except PlaywrightError as e:
        logger.debug(f"Pointer click failed, trying DOM click: {e}")
    try:
        await locator.evaluate("el => el.click()")
        return True
    except PlaywrightError as e:
        logger.debug(f"DOM click failed: {e}")
        return False


async def bounding_height(locator: Any) -> float:
    try:
        box = await locator.bounding_box()
    except PlaywrightError:
        return 0.0
    return float(box["height"]) if box else 0.0


async def evaluate_all(scope: Any, selector: str, script: str, arg: Any = None) -> List[Any]:
    """Batched DOM query over every match. Errors yield an empty list."""
    try:
        locator = scope.locator(selector)
        if arg is None:
            return await locator.evaluate_all(script)
        return await locator.evaluate_all(script, arg)
    except PlaywrightError as e:
        logger.debug(f"evaluate_all({selector}) failed: {e}")
        return []
