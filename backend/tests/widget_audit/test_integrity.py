"""
Tests for geometry and content integrity helpers.
"""

from widget_audit.core.integrity import (
    Box,
    find_misaligned_rows,
    find_overlaps,
    intersects,
    malformed_tokens,
    motion_detected,
    playback_verified,
    within_container,
)


def box(id, x, y, w=100, h=100):
    return Box(id, x, y, w, h)


class TestOverlaps:
    """Test overlap detection"""

    def test_touching_cards_do_not_overlap(self):
        """Test shared edges and sub-tolerance overlaps are ignored"""
        assert find_overlaps([box("a", 0, 0), box("b", 100, 0)]) == []
        assert find_overlaps([box("a", 0, 0), box("b", 96, 0)], tolerance=5) == []

    def test_overlapping_pair(self):
        """Test a pair overlapping beyond the tolerance"""
        pairs = find_overlaps([box("a", 0, 0), box("b", 50, 50), box("c", 300, 0)])
        assert [(p[0].id, p[1].id) for p in pairs] == [("a", "b")]

    def test_intersects_needs_both_axes(self):
        """Test horizontal overlap alone is not an intersection"""
        assert not intersects(box("a", 0, 0), box("b", 50, 200))

    def test_within_container(self):
        """Test zero-size and off-container boxes are dropped"""
        container = Box("container", 0, 0, 500, 200)
        boxes = [box("in", 10, 10), box("out", 900, 10), Box("empty", 10, 10, 0, 40)]
        assert [b.id for b in within_container(boxes, container)] == ["in"]
        assert [b.id for b in within_container(boxes, None)] == ["in", "out"]

    def test_from_dict(self):
        """Test parsing browser rows"""
        parsed = Box.from_dict({"id": 7, "x": "1.5", "y": 2, "width": 3, "height": 4, "snippet": None})
        assert parsed == Box("7", 1.5, 2.0, 3.0, 4.0, "")
        assert parsed.right == 4.5 and parsed.bottom == 6.0


class TestAlignment:
    """Test row alignment"""

    def test_even_row(self):
        """Test equal heights in a row"""
        assert find_misaligned_rows([box("a", 0, 0), box("b", 110, 3), box("c", 220, 0, h=103)]) == []

    def test_uneven_row(self):
        """Test a row with a much taller card"""
        rows = find_misaligned_rows([box("a", 0, 0), box("b", 110, 0, h=180), box("c", 0, 300)])
        assert len(rows) == 1
        assert {b.id for b in rows[0]} == {"a", "b"}


class TestContentChecks:
    """Test placeholder values, motion and playback"""

    def test_malformed_tokens(self):
        """Test undefined, null and Invalid Date are found as words"""
        assert malformed_tokens("Posted undefined, Invalid Date") == ["invalid date", "undefined"]
        assert malformed_tokens("nullable values are fine") == []
        assert malformed_tokens("") == []

    def test_motion_detected(self):
        """Test any changed position signal counts as motion"""
        still = {"transform": "none", "scrollLeft": 0, "childX": 10}
        assert not motion_detected(still, dict(still))
        assert motion_detected(still, dict(still, childX=4))

    def test_playback_verified(self):
        """Test readyState, currentTime and embedded players"""
        assert playback_verified({"found": True, "readyState": 1})
        assert playback_verified({"found": True, "readyState": 0, "currentTime": 0.4})
        assert not playback_verified({"found": True, "readyState": 0, "currentTime": 0})
        assert playback_verified({"found": False, "embedded": True})
        assert not playback_verified(None)
