"""
Carousel widget (type 4): one row of slides with arrows and dots.
"""

from typing import List, Tuple

from ..knowledge.widget_types import WidgetVariant
from .base_widget import BaseWidget, Step


class CarouselWidget(BaseWidget):
    variant = WidgetVariant.CAROUSEL
    read_more_threshold_px = 3

    def interaction_steps(self) -> List[Tuple[str, Step]]:
        return [
            ("Navigation", self.check_arrow_navigation),
            ("Navigation", self.check_indicators),
            ("Interaction", self.check_swipe),
            ("Interaction", self.check_keyboard_navigation),
            ("Read More", self.check_read_more),
            ("Playback", self.check_media_playback),
        ]
