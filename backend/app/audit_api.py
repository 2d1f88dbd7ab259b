"""
Widget Audit API

Endpoints to run a widget audit for one URL and read stored reports.
"""

import json
import logging
from dataclasses import replace
from pathlib import Path
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from widget_audit import AuditConfig, NavigationError, WidgetAuditRunner
from html_reporter import generate_html_report

# Configure logging
logger = logging.getLogger(__name__)

# Create router
router = APIRouter(prefix="/api/widget-audits", tags=["Widget Audits"])

# Global instances
_config: Optional[AuditConfig] = None


def get_config() -> AuditConfig:
    """Get or create audit settings"""
    global _config
    if _config is None:
        _config = AuditConfig.from_env()
    return _config


def reports_dir() -> Path:
    return Path(get_config().reports_dir)


# ==================== Request / Response Models ====================

class AuditRequest(BaseModel):
    """Single-URL widget audit request"""
    url: str
    type_hint: Optional[str] = None  # variant name, type id or "Auto"
    configurations: List[Dict[str, Any]] = Field(default_factory=list)
    min_reviews: int = 1
    headless: bool = True
    html_report: bool = False


class AuditSummary(BaseModel):
    """Short description of a stored report"""
    report_id: str
    url: str
    status: str
    overall_status: str
    widgets: int


# ==================== Endpoints ====================

@router.post("/")
async def run_audit(request: AuditRequest):
    """
    Run a widget audit for one URL.

    Detection, per-widget audits and report storage happen in this request;
    the full JSON report is returned.
    """
    config = replace(get_config(), headless=request.headless)

    try:
        async with WidgetAuditRunner(config) as runner:
            report = await runner.audit_url(
                request.url,
                type_hint=request.type_hint,
                configurations=request.configurations,
                min_reviews=request.min_reviews,
            )
    except NavigationError as e:
        raise HTTPException(status_code=502, detail=str(e))

    report.save_json(config.reports_dir)
    data = report.to_dict()
    if request.html_report:
        data["html_report"] = generate_html_report(
            [report], str(reports_dir() / f"widget_audit_{report.report_id}.html")
        )
    return data


@router.get("/", response_model=List[AuditSummary])
async def list_reports():
    """List stored widget audit reports, newest first"""
    directory = reports_dir()
    if not directory.exists():
        return []

    summaries = []
    paths = sorted(directory.glob("widget_audit_*.json"), key=lambda p: p.stat().st_mtime, reverse=True)
    for path in paths:
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Skipping unreadable report {path}: {e}")
            continue
        summaries.append(AuditSummary(
            report_id=data.get("report_id", path.stem),
            url=data.get("url", ""),
            status=data.get("status", ""),
            overall_status=data.get("overall_status", ""),
            widgets=len(data.get("instances", [])),
        ))
    return summaries


@router.get("/{report_id}")
async def get_report(report_id: str):
    """Get a specific widget audit report"""
    report_path = reports_dir() / f"widget_audit_{report_id}.json"

    if not report_path.exists():
        raise HTTPException(status_code=404, detail="Report not found")

    with open(report_path, 'r') as f:
        return json.load(f)
