"""
Floating Cards widget (type 11): a docked toast stack that rotates reviews.
"""

from typing import List, Tuple

from playwright.async_api import Error as PlaywrightError

from ..core.reconciliation import normalize_flag
from ..exceptions import FeatureNotApplicableError
from ..knowledge.widget_types import WidgetVariant
from .base_widget import BaseWidget, Step


class FloatingCardsWidget(BaseWidget):
    variant = WidgetVariant.FLOATING_CARDS
    overlap_exempt = True
    alignment_exempt = True

    def interaction_steps(self) -> List[Tuple[str, Step]]:
        return [
            ("Interaction", self.check_widget_position),
            ("Interaction", self.check_modal_cards),
        ]

    async def check_widget_position(self) -> None:
        """The toast docks where ``widget_position`` says (show-<position> class)"""
        position = normalize_flag(self.configuration.get("widget_position"))
        if not isinstance(position, str):
            raise FeatureNotApplicableError("widget position not configured")

        expected = f"show-{position.lower().replace('_', '-')}"
        try:
            classes = await self.container_locator().get_attribute("class") or ""
        except PlaywrightError as e:
            raise FeatureNotApplicableError(f"container class unreadable: {e}") from e

        if expected in classes.split():
            self.log.passed(f"Interaction: floating widget docked at {position}")
        else:
            self.log.failed(f"Interaction: floating widget not docked at {position} (classes: {classes})")
