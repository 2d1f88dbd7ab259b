"""
Masonry widget (type 5): a staggered wall of review cards with "Load More".
"""

from typing import List, Tuple

from ..knowledge.widget_types import WidgetVariant
from .base_widget import BaseWidget, Step


class MasonryWidget(BaseWidget):
    variant = WidgetVariant.MASONRY
    # Columns are staggered, rows never share a height
    alignment_exempt = True

    def interaction_steps(self) -> List[Tuple[str, Step]]:
        return [
            ("Load More", self.check_load_more),
            ("Read More", self.check_read_more),
            ("Playback", self.check_media_playback),
        ]
