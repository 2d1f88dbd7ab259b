"""
Accessibility engine adapter (axe-core injected into the widget scope).
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List

from playwright.async_api import Error as PlaywrightError

from ..exceptions import ExternalServiceError

# Configure logging
logger = logging.getLogger(__name__)

AXE_RUN_SCRIPT = """
async (selector) => {
    const target = document.querySelector(selector) || document;
    const results = await axe.run(target, {resultTypes: ['violations']});
    return results.violations.map(v => ({
        id: v.id,
        impact: v.impact,
        description: v.description,
        help: v.help,
        helpUrl: v.helpUrl,
        nodes: v.nodes.slice(0, 5).map(n => ({target: n.target, html: (n.html || '').slice(0, 200)}))
    }));
}
"""


@dataclass
class AccessibilityResult:
    violations: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def violation_count(self) -> int:
        return len(self.violations)

    def rule_ids(self) -> List[str]:
        return [v.get("id", "") for v in self.violations]


class AccessibilityScanner:
    """Runs axe-core inside a page or frame, scoped to the widget container"""

    def __init__(self, script_url: str):
        self.script_url = script_url

    async def _ensure_engine(self, scope: Any) -> None:
        loaded = await scope.evaluate("() => typeof window.axe !== 'undefined'")
        if not loaded:
            await scope.add_script_tag(url=self.script_url)

    async def scan(self, scope: Any, container_selector: str) -> AccessibilityResult:
        # axe needs a single CSS selector; use the first of a selector list
        target = container_selector.split(",")[0].strip()
        try:
            await self._ensure_engine(scope)
            violations = list(await scope.evaluate(AXE_RUN_SCRIPT, target) or [])
        except PlaywrightError as e:
            logger.warning(f"Accessibility scan failed: {e}")
            raise ExternalServiceError("axe-core", str(e)) from e

        logger.info(f"Accessibility scan of {target}: {len(violations)} violations")
        return AccessibilityResult(violations=violations)
