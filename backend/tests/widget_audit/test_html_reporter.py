"""
Tests for the HTML audit report.
"""

from html_reporter import build_report_context, generate_html_report
from widget_audit.core.audit_log import AuditAccumulator, DefectRecord
from widget_audit.core.review_classifier import ReviewStats
from widget_audit.knowledge.widget_types import WidgetVariant
from widget_audit.runner import PageAuditReport
from widget_audit.widgets.base_widget import ControllerState, WidgetAuditResult


def make_result(state=ControllerState.FINALIZED, failing=False):
    log = AuditAccumulator("Carousel")
    log.passed("Visibility: widget visible with 4 reviews")
    if failing:
        log.failed("Layout Integrity: 1 overlapping card pair(s) among 4 cards")
        log.add_defect(DefectRecord("Overlap", "card-1 / card-2", "Cards card-1 and card-2 overlap", "High", "<div class=\"card\">"))
    return WidgetAuditResult(
        variant=WidgetVariant.CAROUSEL,
        scope_url="https://embed.feedspace.io/w/1",
        source="selector",
        state=state,
        review_stats=ReviewStats(total=4, text_count=3, video_count=1),
        audit_log=log.findings,
        detailed_failures=log.detailed_failures,
        feature_rows=log.feature_rows(),
    )


class TestReportContext:
    """Test template variables"""

    def test_counts(self):
        passing = PageAuditReport(url="https://a.test", instances=[make_result()])
        failing = PageAuditReport(url="https://b.test", instances=[make_result(failing=True)])
        broken = PageAuditReport.failed("https://c.test", "Failed to load https://c.test")

        context = build_report_context([passing, failing, broken])

        assert context["total_pages"] == 3
        assert context["total_widgets"] == 2
        assert context["passed"] == 1
        assert context["failed"] == 1
        assert context["failed_pages"] == 1


class TestGenerateHtmlReport:
    """Test rendering"""

    def test_renders_partial_audits(self, tmp_path):
        """Test halted widgets, defects and failed pages all render"""
        reports = [
            PageAuditReport(url="https://a.test", instances=[
                make_result(failing=True),
                make_result(state=ControllerState.HALTED),
            ]),
            PageAuditReport.failed("https://c.test", "Failed to load https://c.test: timeout"),
        ]
        output = tmp_path / "report.html"

        path = generate_html_report(reports, str(output))

        html = output.read_text(encoding="utf-8")
        assert path == str(output)
        assert "Widget Audit Results" in html
        assert "card-1 / card-2" in html
        assert "&lt;div class=&#34;card&#34;&gt;" in html
        assert "halted" in html
        assert "Failed to load https://c.test: timeout" in html
