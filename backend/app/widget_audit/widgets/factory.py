"""
Variant -> controller mapping and configuration matching.
"""

import asyncio
import logging
from typing import Any, Dict, Mapping, Optional, Sequence, Type

from ..brain.vision_oracle import VisionOracle
from ..config import AuditConfig, WidgetConfiguration
from ..core.browser_surface import Sleep
from ..core.detector import DetectionResult
from ..knowledge.widget_types import WidgetVariant, resolve_entry
from .avatar_group import AvatarGroupWidget
from .avatar_slider import AvatarSliderWidget
from .base_widget import BaseWidget
from .carousel import CarouselWidget
from .floating_cards import FloatingCardsWidget
from .horizontal_scroll import HorizontalScrollWidget
from .masonry import MasonryWidget
from .strip_slider import StripSliderWidget
from .vertical_scroll import VerticalScrollWidget

# Configure logging
logger = logging.getLogger(__name__)

CONTROLLERS: Dict[WidgetVariant, Type[BaseWidget]] = {
    WidgetVariant.CAROUSEL: CarouselWidget,
    WidgetVariant.MASONRY: MasonryWidget,
    WidgetVariant.STRIP_SLIDER: StripSliderWidget,
    WidgetVariant.AVATAR_GROUP: AvatarGroupWidget,
    WidgetVariant.AVATAR_SLIDER: AvatarSliderWidget,
    WidgetVariant.VERTICAL_SCROLL: VerticalScrollWidget,
    WidgetVariant.HORIZONTAL_SCROLL: HorizontalScrollWidget,
    WidgetVariant.FLOATING_CARDS: FloatingCardsWidget,
}


def match_configuration(
    variant: WidgetVariant,
    configurations: Optional[Sequence[Mapping[str, Any]]],
) -> WidgetConfiguration:
    """Entry whose type matches the variant, else the first entry, else empty"""
    if not configurations:
        return WidgetConfiguration()
    for entry in configurations:
        if resolve_entry(dict(entry)) is variant:
            return WidgetConfiguration.from_entry(entry)
    logger.info(f"No configuration for {variant.value}, using the first entry")
    return WidgetConfiguration.from_entry(configurations[0])


def create_controller(
    detection: DetectionResult,
    page: Any,
    configurations: Optional[Sequence[Mapping[str, Any]]] = None,
    config: Optional[AuditConfig] = None,
    sleep: Sleep = asyncio.sleep,
    vision_oracle: Optional[VisionOracle] = None,
) -> BaseWidget:
    controller_class = CONTROLLERS.get(detection.variant)
    if controller_class is None:
        raise ValueError(f"No controller for widget variant {detection.variant.value}")
    return controller_class(
        page,
        scope=detection.scope,
        configuration=match_configuration(detection.variant, configurations),
        config=config,
        source=detection.source,
        sleep=sleep,
        vision_oracle=vision_oracle,
    )
