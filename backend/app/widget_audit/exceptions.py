"""
Widget audit error taxonomy.

Only NavigationError is allowed to escape a single-URL audit. Everything raised
inside a controller pipeline is converted to a finding at the step boundary.
"""

from typing import Optional


class WidgetAuditError(Exception):
    """Base class for all widget audit errors"""


class NavigationError(WidgetAuditError):
    """The page could not be loaded, so no render scope exists"""

    def __init__(self, url: str, reason: Optional[str] = None):
        self.url = url
        self.reason = reason
        message = f"Failed to load {url}"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class WidgetNotVisibleError(WidgetAuditError):
    """Widget container never became visible. Fatal for one instance only."""


class FeatureNotApplicableError(WidgetAuditError):
    """The step does not apply to this widget (feature disabled or not rendered)"""


class ExternalServiceError(WidgetAuditError):
    """Accessibility engine or AI oracle failed; coverage is incomplete"""

    def __init__(self, service: str, message: str):
        self.service = service
        super().__init__(f"{service}: {message}")
