"""
AI vision oracle for visual feature confirmation.
"""

from .vision_oracle import VisionOracle, VisionVerdict, capture_widget_screenshot

__all__ = ["VisionOracle", "VisionVerdict", "capture_widget_screenshot"]
