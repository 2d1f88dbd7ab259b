"""
Strip Slider widget (type 6): a horizontal marquee strip of compact reviews.
"""

from typing import List, Tuple

from ..knowledge.widget_types import WidgetVariant
from .base_widget import BaseWidget, Step


class StripSliderWidget(BaseWidget):
    variant = WidgetVariant.STRIP_SLIDER

    def interaction_steps(self) -> List[Tuple[str, Step]]:
        return [
            ("Interaction", self.check_marquee_motion),
            ("Interaction", self.check_keyboard_navigation),
            ("Read More", self.check_read_more),
            ("Playback", self.check_media_playback),
        ]
