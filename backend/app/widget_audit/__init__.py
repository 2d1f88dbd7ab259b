"""
Feedspace Widget Audit

Detects which Feedspace review widget variants a page renders (main document
or nested frames) and audits each instance:
- Visibility and review counts (text / video / audio)
- Configuration flags vs rendered UI (direct and inverse reconciliation)
- Variant interactions: navigation, swipe, modals, marquee motion, load more,
  read more, media playback
- Layout, alignment, text, media and content integrity
- Accessibility (axe-core)
"""

from .config import AuditConfig, WidgetConfiguration
from .core.audit_log import AuditAccumulator, AuditFinding, DefectRecord, Severity
from .core.detector import DetectionResult, WidgetDetector
from .core.review_classifier import ReviewStats, classify
from .exceptions import (
    ExternalServiceError,
    FeatureNotApplicableError,
    NavigationError,
    WidgetAuditError,
    WidgetNotVisibleError,
)
from .knowledge.widget_types import WidgetVariant, resolve
from .runner import PageAuditReport, WidgetAuditRunner, load_widget_list
from .widgets import BaseWidget, WidgetAuditResult, create_controller

__all__ = [
    # Settings
    "AuditConfig",
    "WidgetConfiguration",
    # Core
    "AuditAccumulator",
    "AuditFinding",
    "DefectRecord",
    "Severity",
    "DetectionResult",
    "WidgetDetector",
    "ReviewStats",
    "classify",
    # Errors
    "WidgetAuditError",
    "NavigationError",
    "WidgetNotVisibleError",
    "FeatureNotApplicableError",
    "ExternalServiceError",
    # Knowledge
    "WidgetVariant",
    "resolve",
    # Controllers & runs
    "BaseWidget",
    "WidgetAuditResult",
    "create_controller",
    "PageAuditReport",
    "WidgetAuditRunner",
    "load_widget_list",
]

__version__ = "1.0.0"
