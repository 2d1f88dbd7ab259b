import os
import sys
from datetime import datetime
from typing import List, Optional

try:
    from jinja2 import Environment, FileSystemLoader, select_autoescape
except ModuleNotFoundError as e:
    raise ModuleNotFoundError(
        f"Module 'jinja2' not found in Python interpreter {sys.executable}.\n"
        f"Install it with: {sys.executable} -m pip install jinja2"
    ) from e

from widget_audit.runner import PageAuditReport

TEMPLATE_NAME = "widget_audit_report.html"


def build_report_context(reports: List[PageAuditReport]) -> dict:
    """Flatten page reports into template variables"""
    pages = [report.to_dict() for report in reports]
    instances = [instance for page in pages for instance in page["instances"]]
    return {
        "report_title": "Widget Audit Results",
        "generation_date": datetime.now().strftime("%Y-%m-%d %H:%M:%S"),
        "pages": pages,
        "total_pages": len(pages),
        "total_widgets": len(instances),
        "passed": sum(1 for i in instances if i["status"] == "pass"),
        "failed": sum(1 for i in instances if i["status"] == "fail"),
        "failed_pages": sum(1 for p in pages if p["status"] != "Completed"),
    }


def generate_html_report(reports: List[PageAuditReport], output_path: Optional[str] = None) -> str:
    """
    Generates an HTML report for one or more page audits.
    Renders partially completed audits too (halted widgets, failed pages).

    Args:
        reports: Page audit reports to include
        output_path: Target HTML file (defaults to reports/widget_audit_<timestamp>.html)

    Returns:
        Path to generated HTML file
    """
    template_dir = os.path.join(os.path.dirname(__file__), "..", "templates")
    env = Environment(loader=FileSystemLoader(template_dir), autoescape=select_autoescape(["html"]))
    template = env.get_template(TEMPLATE_NAME)

    html_content = template.render(**build_report_context(reports))

    if output_path is None:
        stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        output_path = os.path.join("reports", f"widget_audit_{stamp}.html")
    os.makedirs(os.path.dirname(output_path) or ".", exist_ok=True)

    with open(output_path, "w", encoding="utf-8") as f:
        f.write(html_content)

    print(f"[OK] HTML report generated at: {output_path}")
    return output_path
