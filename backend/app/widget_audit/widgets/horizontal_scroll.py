"""
Horizontal Scroll widget (type 10): marquee rows scrolling left and right.
"""

from typing import List, Tuple

from ..core import browser_surface
from ..knowledge.widget_types import WidgetVariant
from .base_widget import BaseWidget, Step


class HorizontalScrollWidget(BaseWidget):
    variant = WidgetVariant.HORIZONTAL_SCROLL

    def interaction_steps(self) -> List[Tuple[str, Step]]:
        return [
            ("Interaction", self.check_marquee_motion),
            ("Interaction", self.check_marquee_rows),
            ("Read More", self.check_read_more),
            ("Playback", self.check_media_playback),
        ]

    async def check_marquee_rows(self) -> None:
        """Each marquee row must carry at least one review"""
        rows = self.scope.locator(self.selectors.marquee_row)
        total = await browser_surface.count(self.scope, self.selectors.marquee_row)
        if total == 0:
            self.log.info("Interaction: no marquee rows rendered")
            return

        empty = 0
        for index in range(total):
            if await browser_surface.count(rows.nth(index), ".feedspace-element-marquee-item") == 0:
                empty += 1
        if empty:
            self.log.failed(f"Interaction: {empty} of {total} marquee row(s) are empty")
        else:
            self.log.passed(f"Interaction: {total} marquee row(s) populated")
