"""
Tests for the widget audit HTTP API and the command-line entry point.
"""

import pytest

from fastapi import FastAPI
from fastapi.testclient import TestClient

import audit_api
import run_audit
from widget_audit.config import AuditConfig
from widget_audit.exceptions import NavigationError
from widget_audit.runner import PageAuditReport


class FakeRunner:
    """Async context manager standing in for WidgetAuditRunner"""

    def __init__(self, result):
        self.result = result
        self.configs = []

    def __call__(self, config):
        self.configs.append(config)
        return self

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return None

    async def audit_url(self, url, type_hint=None, configurations=None, min_reviews=1):
        if isinstance(self.result, Exception):
            raise self.result
        return self.result

    async def audit_widget_list(self, entries, min_reviews=1):
        return [self.result]


@pytest.fixture
def api_client(tmp_path, monkeypatch):
    """Test client with reports stored in a temporary directory"""
    monkeypatch.setattr(audit_api, "_config", AuditConfig(reports_dir=str(tmp_path)))
    app = FastAPI()
    app.include_router(audit_api.router)
    return TestClient(app)


class TestAuditApi:
    """Test the /api/widget-audits endpoints"""

    def test_run_and_fetch_report(self, api_client, monkeypatch):
        """Test a run is stored, listed and fetched by id"""
        report = PageAuditReport(url="https://example.com/reviews", type_hint="Carousel")
        runner = FakeRunner(report)
        monkeypatch.setattr(audit_api, "WidgetAuditRunner", runner)

        response = api_client.post("/api/widget-audits/", json={"url": report.url, "headless": False})

        assert response.status_code == 200
        assert response.json()["report_id"] == report.report_id
        assert runner.configs[0].headless is False

        listing = api_client.get("/api/widget-audits/").json()
        assert [item["report_id"] for item in listing] == [report.report_id]
        assert listing[0]["widgets"] == 0

        fetched = api_client.get(f"/api/widget-audits/{report.report_id}")
        assert fetched.status_code == 200
        assert fetched.json()["url"] == report.url

    def test_navigation_error_is_502(self, api_client, monkeypatch):
        monkeypatch.setattr(audit_api, "WidgetAuditRunner", FakeRunner(NavigationError("https://down.test", "timeout")))

        response = api_client.post("/api/widget-audits/", json={"url": "https://down.test"})

        assert response.status_code == 502
        assert "https://down.test" in response.json()["detail"]

    def test_missing_report_is_404(self, api_client):
        assert api_client.get("/api/widget-audits/doesnotexist").status_code == 404

    def test_empty_listing(self, api_client):
        assert api_client.get("/api/widget-audits/").json() == []


class TestCommandLine:
    """Test run_audit argument handling"""

    def test_parser_defaults(self):
        args = run_audit.build_parser().parse_args(["https://example.com"])
        assert args.type_hint == "Auto"
        assert args.min_reviews == 1
        assert not args.html

    def test_requires_url_or_widgets(self):
        with pytest.raises(SystemExit):
            run_audit.main([])

    @pytest.mark.asyncio
    async def test_run_saves_reports(self, tmp_path, monkeypatch):
        """Test a single-URL run saves its JSON report"""
        report = PageAuditReport(url="https://example.com")
        monkeypatch.setattr(run_audit, "WidgetAuditRunner", FakeRunner(report))
        args = run_audit.build_parser().parse_args([
            "https://example.com", "--reports-dir", str(tmp_path), "--devices", "Mobile,Watch", "--no-a11y",
        ])

        reports = await run_audit.run(args)

        assert reports == [report]
        assert (tmp_path / f"widget_audit_{report.report_id}.json").exists()

    @pytest.mark.asyncio
    async def test_run_navigation_failure(self, tmp_path, monkeypatch):
        """Test an unreachable page becomes a failed report"""
        monkeypatch.setattr(run_audit, "WidgetAuditRunner", FakeRunner(NavigationError("https://down.test", "timeout")))
        args = run_audit.build_parser().parse_args(["https://down.test", "--reports-dir", str(tmp_path)])

        reports = await run_audit.run(args)

        assert reports[0].status == "Failed"
        assert reports[0].type_hint == "Auto"
