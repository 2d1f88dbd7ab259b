"""
Vision Oracle

Sends a cropped widget screenshot to Gemini and asks which expected features
are visible. Treated as an opaque external service: unavailable or broken
responses never fail a widget audit.
"""

import base64
import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import httpx
from playwright.async_api import Error as PlaywrightError

from ..exceptions import ExternalServiceError

# Configure logging
logger = logging.getLogger(__name__)

GEMINI_ENDPOINT = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"


@dataclass
class VisionVerdict:
    feature_results: List[Dict[str, Any]] = field(default_factory=list)
    overall_status: str = "UNKNOWN"
    mock: bool = False
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "feature_results": self.feature_results,
            "overall_status": self.overall_status,
            "mock": self.mock,
        }
        if self.error:
            data["error"] = self.error
        return data


def build_prompt(widget_type: str, expected_features: List[str]) -> str:
    features = "\n".join(f"- {name}" for name in expected_features)
    return f"""You are auditing a screenshot of a "{widget_type}" customer review widget.

For each feature below decide whether it is visibly present:
{features}

Respond with JSON only:
{{"feature_results": [{{"feature": "<name>", "actual": "<what you see>", "status": "PASS" | "FAIL"}}],
  "overall_status": "PASS" | "FAIL"}}"""


def parse_verdict(text: str) -> VisionVerdict:
    """Parse model output, tolerating markdown code fences"""
    cleaned = text.strip()
    if cleaned.startswith("```"):
        cleaned = re.sub(r'^```\w*\n?', '', cleaned)
        cleaned = re.sub(r'\n?```$', '', cleaned)
    data = json.loads(cleaned)
    return VisionVerdict(
        feature_results=list(data.get("feature_results", [])),
        overall_status=str(data.get("overall_status", "UNKNOWN")).upper(),
    )


def mock_verdict(expected_features: List[str]) -> VisionVerdict:
    return VisionVerdict(
        feature_results=[
            {"feature": name, "actual": "Not analysed (GEMINI_API_KEY not set)", "status": "PASS"}
            for name in expected_features
        ],
        overall_status="PASS",
        mock=True,
    )


def error_verdict(expected_features: List[str], reason: str) -> VisionVerdict:
    return VisionVerdict(
        feature_results=[
            {"feature": name, "actual": "Analysis failed", "status": "UNKNOWN"}
            for name in expected_features
        ],
        overall_status="ERROR",
        error=reason,
    )


class VisionOracle:
    """Gemini generateContent client"""

    def __init__(self, api_key: Optional[str] = None, model: str = "gemini-2.0-flash", timeout: float = 60.0):
        self.api_key = api_key
        self.model = model
        self.timeout = timeout

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    async def _call_gemini(self, prompt: str, image_base64: str) -> str:
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            response = await client.post(
                GEMINI_ENDPOINT.format(model=self.model),
                params={"key": self.api_key},
                json={
                    "contents": [{
                        "parts": [
                            {"text": prompt},
                            {"inline_data": {"mime_type": "image/png", "data": image_base64}},
                        ]
                    }]
                },
            )
            if response.status_code != 200:
                raise ExternalServiceError("gemini", f"HTTP {response.status_code}: {response.text[:200]}")
            data = response.json()
            return data["candidates"][0]["content"]["parts"][0]["text"]

    async def analyze(self, image_bytes: bytes, widget_type: str, expected_features: List[str]) -> VisionVerdict:
        if not self.enabled:
            logger.info("GEMINI_API_KEY not set, returning mock vision verdict")
            return mock_verdict(expected_features)

        prompt = build_prompt(widget_type, expected_features)
        image_base64 = base64.b64encode(image_bytes).decode("ascii")
        try:
            text = await self._call_gemini(prompt, image_base64)
            return parse_verdict(text)
        except (httpx.HTTPError, ExternalServiceError, KeyError, IndexError, ValueError) as e:
            logger.error(f"Vision analysis failed: {e}")
            return error_verdict(expected_features, str(e))


async def capture_widget_screenshot(controller: Any) -> bytes:
    """PNG of the controller's widget container"""
    await controller.resolve_scope()
    try:
        return await controller.container_locator().screenshot(type="png")
    except PlaywrightError as e:
        raise ExternalServiceError("screenshot", str(e)) from e
