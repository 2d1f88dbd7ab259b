"""
Tests for the audit accumulator.
"""

from widget_audit.core.audit_log import AuditAccumulator, DefectRecord, Severity


class TestFindings:
    """Test recording findings"""

    def test_findings_keep_insertion_order(self):
        """Test the log is append-only and ordered"""
        log = AuditAccumulator("Carousel")
        log.passed("Visibility: widget visible")
        log.info("Read More: no expandable reviews found")
        log.failed("Navigation: next arrow did not change the active review")

        assert [f.severity for f in log.findings] == [Severity.PASS, Severity.INFO, Severity.FAIL]

    def test_category_is_text_before_colon(self):
        """Test category extraction"""
        log = AuditAccumulator()
        finding = log.warn("Load More: stopped after 30 clicks")
        assert finding.category == "load more"
        assert log.info("no prefix here").category == ""

    def test_limitation_flag(self):
        """Test info findings can be marked as coverage limitations"""
        log = AuditAccumulator()
        finding = log.info("Accessibility: incomplete coverage", is_limitation=True)
        assert finding.is_limitation
        assert finding.to_dict()["is_limitation"] is True


class TestDefects:
    """Test defect deduplication"""

    def test_same_identity_added_once(self):
        """Test (type, element id) pairs are unique"""
        log = AuditAccumulator()
        first = DefectRecord(type="Overlap", affected_element_id="a / b", description="Cards overlap")
        again = DefectRecord(type="Overlap", affected_element_id="a / b", description="Still overlapping")
        other = DefectRecord(type="Broken Media", affected_element_id="a / b", description="Image failed")

        assert log.add_defect(first) is True
        assert log.add_defect(again) is False
        assert log.add_defect(other) is True
        assert len(log.detailed_failures) == 2
        assert log.detailed_failures[0].description == "Cards overlap"


class TestSummaries:
    """Test keyword summaries and report rows"""

    def test_latest_fail_wins(self):
        """Test a later pass does not mask an earlier fail"""
        log = AuditAccumulator()
        log.failed("Read More: clicking did not expand the review")
        log.passed("Read More: expansion verified (120px -> 240px)")

        summary = log.summarize("read more")
        assert summary.severity is Severity.FAIL
        assert "did not expand" in summary.message

    def test_latest_finding_without_failures(self):
        """Test the most recent finding is used when nothing failed"""
        log = AuditAccumulator()
        log.info("Playback: no video or audio reviews to play")
        log.passed("Playback: video playback verified")
        assert log.summarize("PLAYBACK").message == "Playback: video playback verified"

    def test_summarize_missing_keyword(self):
        """Test None for keywords never logged"""
        assert AuditAccumulator().summarize("navigation") is None

    def test_deduplicated_keeps_latest(self):
        """Test duplicates collapse to the last occurrence"""
        log = AuditAccumulator()
        log.info("Navigation: no visible navigation arrows")
        log.passed("Visibility: widget visible")
        log.info("Navigation: no visible navigation arrows")

        unique = log.deduplicated()
        assert [f.message for f in unique] == [
            "Visibility: widget visible",
            "Navigation: no visible navigation arrows",
        ]
        assert unique[1] is log.findings[2]

    def test_feature_rows(self):
        """Test every report row is present with a status"""
        log = AuditAccumulator()
        log.passed("Visibility: widget visible with 3 reviews")
        log.failed("Branding: 'allow_to_remove_branding' = 1, element visible (does not match configuration)")

        rows = {row["feature"]: row for row in log.feature_rows()}
        assert rows["Widget container visibility"]["status"] == "pass"
        assert rows["Branding"]["status"] == "fail"
        assert rows["Playback"]["status"] == "not checked"
        assert rows["Playback"]["message"] == ""

    def test_category_match_is_exact(self):
        """Test a keyword does not pick up longer categories that start with it"""
        log = AuditAccumulator()
        log.failed("Navigation Arrows: 'is_show_arrows_buttons' = 1, element not visible (does not match configuration)")

        assert not log.has_findings("Navigation")
        assert log.summarize("navigation") is None

        log.passed("Navigation: next arrow changed the active review")
        assert log.summarize("Navigation:").severity is Severity.PASS
        assert log.summarize("navigation arrows").severity is Severity.FAIL

    def test_unprefixed_findings_match_by_substring(self):
        log = AuditAccumulator()
        log.info("widget playback skipped")
        assert log.has_findings("playback")
