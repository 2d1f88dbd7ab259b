"""
Vertical Scroll widget (type 9): columns of reviews scrolling top to bottom.
"""

from typing import List, Tuple

from ..knowledge.widget_types import WidgetVariant
from .base_widget import BaseWidget, Step


class VerticalScrollWidget(BaseWidget):
    variant = WidgetVariant.VERTICAL_SCROLL
    alignment_exempt = True

    def interaction_steps(self) -> List[Tuple[str, Step]]:
        return [
            ("Interaction", self.check_marquee_motion),
            ("Read More", self.check_read_more),
            ("Playback", self.check_media_playback),
        ]
