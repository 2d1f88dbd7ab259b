"""
Tests for the bounded Read More and Load More loops.
"""

import pytest

from widget_audit.core.audit_log import Severity
from widget_audit.core.interaction_loops import ReadMoreOutcome, run_load_more, run_read_more_cycle


class ScriptedReadMore:
    """Read-more probe whose heights and collapse control follow a script"""

    def __init__(self, heights, collapse_states):
        self.heights = list(heights)
        self.collapse_states = list(collapse_states)
        self.expanded = False
        self.collapsed = False

    async def measure(self):
        return self.heights.pop(0)

    async def expand(self):
        self.expanded = True
        return True

    async def collapse_visible(self):
        return self.collapse_states.pop(0)

    async def collapse(self):
        self.collapsed = True
        return True


class ScriptedLoadMore:
    """Load-more probe with a button that stays visible for ``visible_for`` checks"""

    def __init__(self, counts, visible_for=10_000):
        self.counts = list(counts)
        self.visible_for = visible_for
        self.clicks = 0
        self.fallbacks = 0

    async def button_visible(self):
        return self.clicks < self.visible_for

    async def click(self):
        self.clicks += 1
        return True

    async def card_count(self):
        return self.counts.pop(0) if len(self.counts) > 1 else self.counts[0]

    async def scroll_fallback(self):
        self.fallbacks += 1


class TestReadMoreCycle:
    """Test the expand/collapse cycle"""

    @pytest.mark.asyncio
    async def test_full_cycle_logs_two_passes(self, no_sleep):
        """Test 120 -> 240 -> 120 with a Read Less control"""
        probe = ScriptedReadMore(heights=[120, 240, 120], collapse_states=[True, False])

        result = await run_read_more_cycle(probe, no_sleep)

        assert result.outcome is ReadMoreOutcome.FULL_CYCLE
        severities = [severity for severity, _ in result.findings]
        assert severities == [Severity.PASS, Severity.PASS]
        assert "expansion verified" in result.findings[0][1]
        assert "cycle validated" in result.findings[1][1]
        assert probe.collapsed

    @pytest.mark.asyncio
    async def test_no_expansion_fails(self, no_sleep):
        """Test growth within the threshold and no Read Less is a failure"""
        probe = ScriptedReadMore(heights=[120, 123], collapse_states=[False])

        result = await run_read_more_cycle(probe, no_sleep, threshold_px=5)

        assert result.outcome is ReadMoreOutcome.NOT_EXPANDED
        assert result.findings == [(Severity.FAIL, result.findings[0][1])]
        assert "did not expand" in result.findings[0][1]

    @pytest.mark.asyncio
    async def test_collapse_control_counts_as_expansion(self, no_sleep):
        """Test a Read Less control alone proves expansion"""
        probe = ScriptedReadMore(heights=[120, 121, 120], collapse_states=[True, False])

        result = await run_read_more_cycle(probe, no_sleep, threshold_px=3)

        assert result.outcome is ReadMoreOutcome.FULL_CYCLE

    @pytest.mark.asyncio
    async def test_missing_read_less_is_info(self, no_sleep):
        """Test a half cycle is informational, not a failure"""
        probe = ScriptedReadMore(heights=[120, 300], collapse_states=[False])

        result = await run_read_more_cycle(probe, no_sleep)

        assert result.outcome is ReadMoreOutcome.EXPANDED_ONLY
        assert [s for s, _ in result.findings] == [Severity.PASS, Severity.INFO]
        assert not probe.collapsed

    @pytest.mark.asyncio
    async def test_collapse_not_restored_is_info(self, no_sleep):
        """Test a stuck expansion after Read Less is informational"""
        probe = ScriptedReadMore(heights=[120, 300, 300], collapse_states=[True, True])

        result = await run_read_more_cycle(probe, no_sleep)

        assert result.outcome is ReadMoreOutcome.COLLAPSE_FAILED
        assert result.findings[-1][0] is Severity.INFO

    @pytest.mark.asyncio
    async def test_waits_use_injected_sleep(self, no_sleep):
        """Test settle waits go through the injected sleep"""
        probe = ScriptedReadMore(heights=[100, 200, 100], collapse_states=[True, False])
        await run_read_more_cycle(probe, no_sleep, settle_s=0.25)
        assert no_sleep.await_count == 2
        no_sleep.assert_awaited_with(0.25)


class TestLoadMore:
    """Test the load more loop"""

    @pytest.mark.asyncio
    async def test_stops_when_button_disappears(self, no_sleep):
        """Test two clicks then the button is gone"""
        probe = ScriptedLoadMore(counts=[10, 20, 30], visible_for=2)

        result = await run_load_more(probe, no_sleep, max_clicks=30)

        assert result.clicks == 2
        assert result.loaded == 20
        assert not result.button_still_visible
        assert not result.capped

    @pytest.mark.asyncio
    async def test_capped_at_max_clicks(self, no_sleep):
        """Test a button that never disappears ends after exactly 30 clicks"""
        probe = ScriptedLoadMore(counts=list(range(10, 400, 10)))

        result = await run_load_more(probe, no_sleep, max_clicks=30)

        assert result.clicks == 30
        assert probe.clicks == 30
        assert result.capped
        assert result.button_still_visible
        assert not result.stalled

    @pytest.mark.asyncio
    async def test_stalls_end_loop(self, no_sleep):
        """Test clicks that add no cards end the loop after two stalls"""
        probe = ScriptedLoadMore(counts=[10])

        result = await run_load_more(probe, no_sleep, max_clicks=30, max_stalls=2)

        assert result.stalled
        assert result.clicks == 2
        assert probe.fallbacks == 2
        assert result.loaded == 0
        assert not result.capped
