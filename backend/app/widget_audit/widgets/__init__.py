"""
Widget behavior controllers, one per widget variant.
"""

from .base_widget import BaseWidget, ControllerState, WidgetAuditResult
from .avatar_group import AvatarGroupWidget
from .avatar_slider import AvatarSliderWidget
from .carousel import CarouselWidget
from .floating_cards import FloatingCardsWidget
from .horizontal_scroll import HorizontalScrollWidget
from .masonry import MasonryWidget
from .strip_slider import StripSliderWidget
from .vertical_scroll import VerticalScrollWidget
from .factory import CONTROLLERS, create_controller, match_configuration

__all__ = [
    "BaseWidget",
    "ControllerState",
    "WidgetAuditResult",
    "AvatarGroupWidget",
    "AvatarSliderWidget",
    "CarouselWidget",
    "FloatingCardsWidget",
    "HorizontalScrollWidget",
    "MasonryWidget",
    "StripSliderWidget",
    "VerticalScrollWidget",
    "CONTROLLERS",
    "create_controller",
    "match_configuration",
]
