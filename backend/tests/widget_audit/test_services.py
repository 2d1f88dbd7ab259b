"""
Tests for external services: accessibility engine and vision oracle.
"""

import pytest
from unittest.mock import AsyncMock, Mock

import httpx
from playwright.async_api import Error as PlaywrightError

from widget_audit.brain.vision_oracle import (
    VisionOracle,
    build_prompt,
    capture_widget_screenshot,
    parse_verdict,
)
from widget_audit.core.accessibility import AccessibilityScanner
from widget_audit.exceptions import ExternalServiceError

AXE_URL = "https://cdn.example.com/axe.min.js"


class TestAccessibilityScanner:
    """Test axe-core injection and result handling"""

    @pytest.mark.asyncio
    async def test_injects_engine_once(self, build_scope):
        """Test the script tag is added only when axe is missing"""
        scope = build_scope()
        scope.evaluate = AsyncMock(side_effect=[False, [{"id": "label"}]])

        result = await AccessibilityScanner(AXE_URL).scan(scope, ".widget-a, .widget-b")

        scope.add_script_tag.assert_awaited_once_with(url=AXE_URL)
        assert result.rule_ids() == ["label"]
        assert scope.evaluate.await_args_list[1].args[1] == ".widget-a"

    @pytest.mark.asyncio
    async def test_already_loaded(self, build_scope):
        """Test no injection when axe is present and no violations"""
        scope = build_scope()
        scope.evaluate = AsyncMock(side_effect=[True, None])

        result = await AccessibilityScanner(AXE_URL).scan(scope, ".widget")

        scope.add_script_tag.assert_not_awaited()
        assert result.violation_count == 0

    @pytest.mark.asyncio
    async def test_engine_failure(self, build_scope):
        """Test browser errors become ExternalServiceError"""
        scope = build_scope()
        scope.evaluate = AsyncMock(return_value=False)
        scope.add_script_tag = AsyncMock(side_effect=PlaywrightError("Refused to load script (CSP)"))

        with pytest.raises(ExternalServiceError) as exc_info:
            await AccessibilityScanner(AXE_URL).scan(scope, ".widget")

        assert exc_info.value.service == "axe-core"


class TestVisionOracle:
    """Test the Gemini vision client"""

    def test_prompt_lists_features(self):
        prompt = build_prompt("Carousel", ["Ratings", "CTA"])
        assert '"Carousel"' in prompt
        assert "- Ratings\n- CTA" in prompt

    def test_parse_fenced_json(self):
        """Test markdown code fences are stripped"""
        verdict = parse_verdict('```json\n{"feature_results": [{"feature": "CTA", "status": "PASS"}], "overall_status": "pass"}\n```')
        assert verdict.overall_status == "PASS"
        assert verdict.feature_results[0]["feature"] == "CTA"

    @pytest.mark.asyncio
    async def test_mock_without_key(self):
        """Test a missing API key yields a mock verdict"""
        oracle = VisionOracle(api_key=None)

        verdict = await oracle.analyze(b"png", "Masonry", ["Ratings"])

        assert verdict.mock is True
        assert verdict.overall_status == "PASS"
        assert verdict.to_dict()["feature_results"][0]["status"] == "PASS"

    @pytest.mark.asyncio
    async def test_http_failure_is_error_verdict(self):
        """Test transport errors never raise"""
        oracle = VisionOracle(api_key="key")
        oracle._call_gemini = AsyncMock(side_effect=httpx.ConnectError("connection refused"))

        verdict = await oracle.analyze(b"png", "Masonry", ["Ratings", "CTA"])

        assert verdict.overall_status == "ERROR"
        assert [r["status"] for r in verdict.feature_results] == ["UNKNOWN", "UNKNOWN"]
        assert "connection refused" in verdict.error

    @pytest.mark.asyncio
    async def test_unparsable_answer_is_error_verdict(self):
        """Test a non-JSON answer is an error verdict"""
        oracle = VisionOracle(api_key="key")
        oracle._call_gemini = AsyncMock(return_value="I think it looks fine")

        verdict = await oracle.analyze(b"png", "Carousel", ["Ratings"])

        assert verdict.overall_status == "ERROR"

    @pytest.mark.asyncio
    async def test_screenshot_failure(self):
        """Test screenshot errors surface as ExternalServiceError"""
        locator = Mock()
        locator.screenshot = AsyncMock(side_effect=PlaywrightError("Element is not attached"))
        controller = Mock()
        controller.resolve_scope = AsyncMock()
        controller.container_locator = Mock(return_value=locator)

        with pytest.raises(ExternalServiceError):
            await capture_widget_screenshot(controller)
