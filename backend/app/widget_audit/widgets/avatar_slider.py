"""
Avatar Slider widget (type 8): a single review at a time with slide controls.
"""

from typing import List, Tuple

from ..knowledge.widget_types import WidgetVariant
from .base_widget import BaseWidget, Step


class AvatarSliderWidget(BaseWidget):
    variant = WidgetVariant.AVATAR_SLIDER
    # Only one slide is in the row at any time
    alignment_exempt = True

    def interaction_steps(self) -> List[Tuple[str, Step]]:
        return [
            ("Navigation", self.check_arrow_navigation),
            ("Navigation", self.check_indicators),
            ("Interaction", self.check_swipe),
            ("Interaction", self.check_keyboard_navigation),
            ("Read More", self.check_read_more),
            ("Playback", self.check_media_playback),
        ]
