"""
Audit Accumulator

Append-only log of audit findings plus a deduplicated list of detailed
defect records for one widget instance.
"""

import logging
from dataclasses import dataclass, field, asdict
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Set, Tuple

# Configure logging
logger = logging.getLogger(__name__)


class Severity(Enum):
    """Severity of an audit finding"""
    PASS = "pass"
    FAIL = "fail"
    INFO = "info"
    WARN = "warn"


_LOG_LEVELS = {
    Severity.PASS: logging.INFO,
    Severity.INFO: logging.INFO,
    Severity.WARN: logging.WARNING,
    Severity.FAIL: logging.ERROR,
}

# Report rows: label -> keyword searched in finding messages
REPORT_FEATURES: List[Tuple[str, str]] = [
    ("Widget container visibility", "visibility"),
    ("Branding", "branding"),
    ("CTA", "cta"),
    ("Layout Integrity", "layout integrity"),
    ("Alignment", "alignment"),
    ("Text Readability", "text readability"),
    ("Media Integrity", "media integrity"),
    ("Date Consistency", "date consistency"),
    ("Navigation", "navigation"),
    ("Load More", "load more"),
    ("Read More", "read more"),
    ("Interaction", "interaction"),
    ("Playback", "playback"),
    ("Responsiveness", "responsiveness"),
    ("Accessibility", "accessibility"),
]


@dataclass
class AuditFinding:
    """One audit log entry"""
    message: str
    severity: Severity
    is_limitation: bool = False
    timestamp: str = field(default_factory=lambda: datetime.now().isoformat())

    @property
    def category(self) -> str:
        """Text before the first colon, lowercased"""
        head, sep, _ = self.message.partition(":")
        return head.strip().lower() if sep else ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "message": self.message,
            "severity": self.severity.value,
            "is_limitation": self.is_limitation,
            "timestamp": self.timestamp,
        }


@dataclass
class DefectRecord:
    """A structural, content or media defect tied to one element"""
    type: str
    affected_element_id: str
    description: str
    severity: str = "Medium"  # High | Medium | Low | Info
    dom_snippet: Optional[str] = None
    selector: Optional[str] = None

    @property
    def identity(self) -> Tuple[str, str]:
        return (self.type, self.affected_element_id)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class AuditAccumulator:
    """
    Findings and defects for a single widget instance.

    Never shared between controllers. Findings keep insertion order; defects
    are unique per (type, affected_element_id).
    """

    def __init__(self, label: str = ""):
        self.label = label
        self.findings: List[AuditFinding] = []
        self.detailed_failures: List[DefectRecord] = []
        self._defect_ids: Set[Tuple[str, str]] = set()

    def record(self, message: str, severity: Severity, is_limitation: bool = False) -> AuditFinding:
        finding = AuditFinding(message=message, severity=severity, is_limitation=is_limitation)
        self.findings.append(finding)
        prefix = f"[WIDGET-AUDIT] [{self.label}]" if self.label else "[WIDGET-AUDIT]"
        logger.log(_LOG_LEVELS[severity], f"{prefix} {severity.value.upper()}: {message}")
        return finding

    def passed(self, message: str) -> AuditFinding:
        return self.record(message, Severity.PASS)

    def failed(self, message: str) -> AuditFinding:
        return self.record(message, Severity.FAIL)

    def info(self, message: str, is_limitation: bool = False) -> AuditFinding:
        return self.record(message, Severity.INFO, is_limitation)

    def warn(self, message: str) -> AuditFinding:
        return self.record(message, Severity.WARN)

    def add_defect(self, defect: DefectRecord) -> bool:
        """Append a defect unless one with the same identity exists. Returns True if added."""
        if defect.identity in self._defect_ids:
            return False
        self._defect_ids.add(defect.identity)
        self.detailed_failures.append(defect)
        return True

    # ==================== Summaries ====================

    def matching(self, keyword: str) -> List[AuditFinding]:
        """
        Findings of a category.

        ``keyword`` is compared to the message prefix, so "Navigation" does
        not pick up "Navigation Arrows" rows. Findings without a prefix fall
        back to a substring match.
        """
        needle = keyword.lower().strip().rstrip(":").strip()
        return [
            f for f in self.findings
            if f.category == needle or (not f.category and needle in f.message.lower())
        ]

    def has_findings(self, keyword: str) -> bool:
        return bool(self.matching(keyword))

    def summarize(self, keyword: str) -> Optional[AuditFinding]:
        """
        Latest status for a category keyword.

        The most recent ``fail`` wins when any exists, otherwise the most
        recent finding. None when the keyword never appeared.
        """
        matches = self.matching(keyword)
        if not matches:
            return None
        failures = [f for f in matches if f.severity is Severity.FAIL]
        return failures[-1] if failures else matches[-1]

    def deduplicated(self) -> List[AuditFinding]:
        """Findings unique by (category, message), keeping the latest occurrence"""
        latest: Dict[Tuple[str, str], int] = {}
        for index, finding in enumerate(self.findings):
            latest[(finding.category, finding.message)] = index
        return [self.findings[i] for i in sorted(latest.values())]

    def feature_rows(self) -> List[Dict[str, Any]]:
        rows = []
        for label, keyword in REPORT_FEATURES:
            finding = self.summarize(keyword)
            rows.append({
                "feature": label,
                "status": finding.severity.value if finding else "not checked",
                "message": finding.message if finding else "",
            })
        return rows
