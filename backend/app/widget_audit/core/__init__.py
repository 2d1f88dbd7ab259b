"""
Core audit engine: detection, accumulation, classification, reconciliation.
"""

from .audit_log import AuditAccumulator, AuditFinding, DefectRecord, Severity
from .detector import DetectionResult, WidgetDetector, resolve_conflicts
from .reconciliation import ReconcileStatus, ReconciliationRow, reconcile
from .review_classifier import CardDescriptor, ReviewStats, classify

__all__ = [
    "AuditAccumulator",
    "AuditFinding",
    "DefectRecord",
    "Severity",
    "DetectionResult",
    "WidgetDetector",
    "resolve_conflicts",
    "ReconcileStatus",
    "ReconciliationRow",
    "reconcile",
    "CardDescriptor",
    "ReviewStats",
    "classify",
]
