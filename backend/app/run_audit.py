"""
Command-line widget audit.

    python run_audit.py https://example.com/page --type Carousel
    python run_audit.py --widgets widgets.json --html
    python run_audit.py --widgets https://api.example.com/widgets --devices Mobile,Tablet
"""

import argparse
import asyncio
import json
import logging
import os
import sys
from typing import List, Optional

from widget_audit import AuditConfig, NavigationError, PageAuditReport, WidgetAuditRunner, load_widget_list
from widget_audit.config import VIEWPORTS
from html_reporter import generate_html_report

# Configure logging
logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Audit Feedspace review widgets on web pages")
    parser.add_argument("url", nargs="?", help="Page URL to audit")
    parser.add_argument("--type", dest="type_hint", default="Auto", help="Expected widget type (name or id), default Auto")
    parser.add_argument("--config", help="JSON file with the widget configuration entry or entries")
    parser.add_argument("--widgets", help="Widget list (JSON file or URL) for a batch run")
    parser.add_argument("--min-reviews", type=int, default=1)
    parser.add_argument("--devices", default="", help=f"Comma-separated viewports to check: {', '.join(VIEWPORTS)}")
    parser.add_argument("--headed", action="store_true", help="Show the browser window")
    parser.add_argument("--no-a11y", action="store_true", help="Skip the accessibility scan")
    parser.add_argument("--html", action="store_true", help="Also write an HTML report")
    parser.add_argument("--reports-dir", help="Output directory for reports")
    return parser


async def run(args: argparse.Namespace) -> List[PageAuditReport]:
    config = AuditConfig.from_env()
    config.headless = not args.headed
    config.run_accessibility = not args.no_a11y
    if args.devices:
        config.responsive_devices = [d.strip() for d in args.devices.split(",") if d.strip() in VIEWPORTS]
    if args.reports_dir:
        config.reports_dir = args.reports_dir

    async with WidgetAuditRunner(config) as runner:
        if args.widgets:
            entries = await load_widget_list(args.widgets)
            reports = await runner.audit_widget_list(entries, min_reviews=args.min_reviews)
        else:
            configurations = None
            if args.config:
                with open(args.config, "r", encoding="utf-8") as f:
                    loaded = json.load(f)
                configurations = loaded if isinstance(loaded, list) else [loaded]
            try:
                reports = [await runner.audit_url(args.url, args.type_hint, configurations, args.min_reviews)]
            except NavigationError as e:
                logger.error(str(e))
                reports = [PageAuditReport.failed(args.url, str(e), args.type_hint)]

    for report in reports:
        report.save_json(config.reports_dir)
    if args.html and reports:
        generate_html_report(reports, os.path.join(config.reports_dir, f"widget_audit_{reports[0].report_id}.html"))
    return reports


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    if not args.url and not args.widgets:
        build_parser().error("a URL or --widgets is required")

    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )
    if sys.platform == 'win32':
        asyncio.set_event_loop_policy(asyncio.WindowsProactorEventLoopPolicy())

    reports = asyncio.run(run(args))
    for report in reports:
        print(f"[{report.overall_status.upper()}] {report.url} - {report.status}, {len(report.instances)} widget(s)")
    return 0 if all(r.overall_status == "pass" for r in reports) else 1


if __name__ == "__main__":
    sys.exit(main())
