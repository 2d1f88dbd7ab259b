"""
Pytest configuration and shared fixtures for widget audit tests.
"""

import pytest
import sys
from dataclasses import dataclass, field
from pathlib import Path
from unittest.mock import Mock, AsyncMock
from typing import Callable, Dict, Any, List, Optional

from playwright.async_api import TimeoutError as PlaywrightTimeoutError

# Add backend app to path
sys.path.insert(0, str(Path(__file__).parent.parent / "app"))


# ==================== Fake Browser Surface ====================

@dataclass
class FakeElement:
    """One DOM element as seen through a fake locator"""
    visible: bool = True
    text: str = ""
    box: Optional[Dict[str, float]] = None
    attrs: Dict[str, str] = field(default_factory=dict)
    clicks: int = 0
    on_click: Optional[Callable[[], None]] = None


class FakeLocator:
    """Selector-keyed stand-in for a Playwright Locator"""

    def __init__(self, scope: "FakeScope", selector: str, index: Optional[int] = None):
        self.scope = scope
        self.selector = selector
        self.index = index

    def _elements(self) -> List[FakeElement]:
        return self.scope.elements.get(self.selector, [])

    def _element(self) -> Optional[FakeElement]:
        elements = self._elements()
        index = self.index or 0
        return elements[index] if index < len(elements) else None

    @property
    def first(self) -> "FakeLocator":
        return FakeLocator(self.scope, self.selector, 0)

    def nth(self, index: int) -> "FakeLocator":
        return FakeLocator(self.scope, self.selector, index)

    def locator(self, selector: str) -> "FakeLocator":
        return FakeLocator(self.scope, selector)

    async def count(self) -> int:
        if self.index is not None:
            return 1 if self._element() else 0
        return len(self._elements())

    async def is_visible(self) -> bool:
        element = self._element()
        return bool(element and element.visible)

    async def wait_for(self, state: str = "visible", timeout: float = 0) -> None:
        visible = await self.is_visible()
        if state == "visible" and not visible:
            raise PlaywrightTimeoutError(f"Timeout waiting for {self.selector}")
        if state == "hidden" and visible:
            raise PlaywrightTimeoutError(f"Timeout waiting for {self.selector} to hide")

    async def evaluate_all(self, script: str, arg: Any = None) -> Any:
        result = self.scope.evaluations.get(self.selector, [])
        # Callables pick a result per script
        if callable(result):
            return result(script, arg)
        return result

    async def evaluate(self, script: str, arg: Any = None) -> Any:
        result = self.scope.element_evaluations.get(self.selector)
        if callable(result):
            return result(script, arg)
        return result

    async def bounding_box(self) -> Optional[Dict[str, float]]:
        element = self._element()
        return element.box if element else None

    async def inner_text(self) -> str:
        element = self._element()
        return element.text if element else ""

    async def get_attribute(self, name: str) -> Optional[str]:
        element = self._element()
        return element.attrs.get(name) if element else None

    async def click(self, **kwargs) -> None:
        element = self._element()
        if element:
            element.clicks += 1
            if element.on_click:
                element.on_click()
        self.scope.clicked.append(self.selector)

    async def scroll_into_view_if_needed(self, **kwargs) -> None:
        return None

    async def focus(self) -> None:
        return None

    async def screenshot(self, **kwargs) -> bytes:
        return b"fake_screenshot_data"


class FakeScope:
    """Document or frame whose DOM is described by selector -> elements"""

    def __init__(
        self,
        elements: Optional[Dict[str, List[FakeElement]]] = None,
        evaluations: Optional[Dict[str, Any]] = None,
        element_evaluations: Optional[Dict[str, Any]] = None,
        url: str = "https://example.com/widget",
    ):
        self.elements = elements or {}
        self.evaluations = evaluations or {}
        self.element_evaluations = element_evaluations or {}
        self.url = url
        self.clicked: List[str] = []
        self.evaluate = AsyncMock(return_value=None)
        self.add_script_tag = AsyncMock()

    def locator(self, selector: str) -> FakeLocator:
        return FakeLocator(self, selector)


class FakeFrame(FakeScope):
    def __init__(self, *args, detached: bool = False, **kwargs):
        super().__init__(*args, **kwargs)
        self._detached = detached

    def is_detached(self) -> bool:
        return self._detached


class FakePage(FakeScope):
    """Main document plus child frames, keyboard, mouse and viewport"""

    def __init__(self, *args, children: Optional[List[FakeFrame]] = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.children = children or []
        self.keyboard = AsyncMock()
        self.mouse = AsyncMock()
        self.viewport_size = {"width": 1920, "height": 1080}
        self.set_viewport_size = AsyncMock()
        self.on = Mock()
        self.remove_listener = Mock()

    @property
    def main_frame(self) -> "FakePage":
        return self

    @property
    def frames(self) -> List[Any]:
        return [self] + self.children


def _to_elements(layout: Dict[str, Any]) -> Dict[str, List[FakeElement]]:
    elements = {}
    for selector, items in layout.items():
        if isinstance(items, int):
            elements[selector] = [FakeElement() for _ in range(items)]
        else:
            elements[selector] = [item if isinstance(item, FakeElement) else FakeElement(**item) for item in items]
    return elements


# ==================== Fixtures ====================

@pytest.fixture
def build_scope():
    """
    Factory for fake frames.

    ``elements`` maps a selector to an element count or a list of FakeElement
    keyword dicts; ``evaluations`` maps a selector to its evaluate_all result
    or to a ``(script, arg) -> result`` callable.
    """
    def _build(elements=None, evaluations=None, element_evaluations=None, url="https://example.com/widget"):
        return FakeFrame(_to_elements(elements or {}), evaluations, element_evaluations, url=url)
    return _build


@pytest.fixture
def build_page():
    """Factory for fake pages with optional child frames"""
    def _build(elements=None, evaluations=None, children=None, element_evaluations=None, url="https://example.com/page"):
        return FakePage(_to_elements(elements or {}), evaluations, element_evaluations, url=url, children=children)
    return _build


@pytest.fixture
def no_sleep():
    """Sleep replacement that returns immediately and records durations"""
    return AsyncMock(return_value=None)


@pytest.fixture
def audit_config():
    """Audit settings with accessibility disabled and short waits"""
    from widget_audit.config import AuditConfig

    return AuditConfig(run_accessibility=False, modal_timeout_ms=250, detector_settle_ms=0)


@pytest.fixture
def card_rows():
    """Factory for card descriptor rows as returned by the browser"""
    def _rows(count: int, video: int = 0, audio: int = 0) -> List[Dict[str, Any]]:
        rows = []
        for i in range(count):
            rows.append({
                "feed_id": f"feed-{i + 1}",
                "text": f"Review number {i + 1}",
                "html": f"<p>Review number {i + 1}</p>",
                "has_video": i < video,
                "has_audio": video <= i < video + audio,
                "is_clone": False,
            })
        return rows
    return _rows


@pytest.fixture
def sample_widget_entries() -> List[Dict[str, Any]]:
    """Widget list as exported by the developer API"""
    return [
        {
            "url": "https://example.com/reviews",
            "widget_type_id": 4,
            "configurations": {"is_show_ratings": 1, "allow_to_remove_branding": 0},
        },
        {
            "widget_url": "https://example.com/reviews",
            "type": "masonry",
            "configurations": {"show_full_review": "1"},
        },
        {
            "link": "https://example.com/other",
            "widget_type": "AvatarGroup",
        },
    ]
