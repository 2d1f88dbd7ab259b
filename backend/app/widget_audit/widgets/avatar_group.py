"""
Avatar Group widget (type 7): overlapping avatars, each opening a review modal.
"""

from typing import List, Tuple

from ..core import browser_surface
from ..exceptions import FeatureNotApplicableError
from ..knowledge.widget_types import WidgetVariant
from .base_widget import BaseWidget, Step


class AvatarGroupWidget(BaseWidget):
    variant = WidgetVariant.AVATAR_GROUP
    overlap_exempt = True
    alignment_exempt = True

    def interaction_steps(self) -> List[Tuple[str, Step]]:
        return [
            ("Interaction", self.check_modal_cards),
        ]

    async def reconcile_configuration(self) -> None:
        """Review details only render inside a modal: reconcile against the first one"""
        avatar = await browser_surface.first_visible(self.scope, self.selectors.card)
        if avatar is None:
            raise FeatureNotApplicableError("no avatar to open for configuration checks")

        await browser_surface.safe_click(avatar)
        modal = await self.find_open_modal()
        if modal is None:
            self.log.info("Configuration: avatar modal did not open, checking the widget itself")
            await self._reconcile_in(self.scope)
            return
        try:
            await self._reconcile_in(modal)
        finally:
            await self.close_modal(modal)
