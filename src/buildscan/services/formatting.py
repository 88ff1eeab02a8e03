"""Plain-text scan summary rendering using Jinja2."""

from __future__ import annotations

import os
from importlib import resources
from pathlib import Path
from typing import Optional

from jinja2 import Environment, FileSystemLoader, StrictUndefined, TemplateError

from buildscan.domain.aggregation import SEVERITY_ORDER, ScanSummary
from buildscan.domain.exceptions import PipelineFatalError
from buildscan.domain.models import ReportMetadata
from buildscan.domain.sizes import ImageSizeReport, bytes_to_mb, format_mb

TEMPLATE_ENV = "BUILDSCAN_SUMMARY_TEMPLATE"
TEMPLATE_NAME = "scan_summary.txt.j2"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def format_duration(seconds: float) -> str:
    """Format seconds as "1h 2m 3s", "2m 3s" or "3s"."""
    total = int(seconds)
    hours, remainder = divmod(total, 3600)
    minutes, secs = divmod(remainder, 60)

    if hours > 0:
        return f"{hours}h {minutes}m {secs}s"
    if minutes > 0:
        return f"{minutes}m {secs}s"
    return f"{secs}s"


def format_estimate(image_report: Optional[ImageSizeReport]) -> str:
    """Describe the estimated total size, always labelled as an estimate."""
    if image_report is None or not image_report.estimate.available:
        return "N/A (missing compiled app size and virtual size)"

    estimate = image_report.estimate
    total_mb = bytes_to_mb(estimate.total_bytes)
    overhead_mb = bytes_to_mb(estimate.overhead_bytes)
    return (
        f"{total_mb:.2f} MB ({total_mb / 1024:.2f} GB, estimate: "
        f"app output + virtual size + {overhead_mb:.0f} MB overhead)"
    )


def extract_template_variables(
    image_report: Optional[ImageSizeReport],
    scan_summary: Optional[ScanSummary],
    metadata: ReportMetadata,
) -> dict:
    """Map summary inputs to template variables."""
    paths = metadata.report_paths
    variables: dict = {
        "title": "Docker Image Security Scan Summary",
        "scan_date": metadata.scan_date.strftime(DATE_FORMAT),
        "image_name": metadata.image_name,
        "build_timestamp": metadata.build_timestamp,
        "compressed_size": format_mb(image_report.compressed_bytes if image_report else 0),
        "uncompressed_size": format_mb(image_report.uncompressed_bytes if image_report else 0),
        "estimated_total": format_estimate(image_report),
        "scan_available": scan_summary is not None,
        "text_report": str(paths.text_report) if paths and paths.text_report else "N/A",
        "json_report": str(paths.json_report) if paths else "N/A",
        "summary_file": str(paths.summary) if paths else "N/A",
    }

    if scan_summary is not None:
        variables.update(
            {
                "total_count": scan_summary.total_count,
                "unique_id_count": scan_summary.unique_id_count,
                "warning_count": scan_summary.warning_count,
                "severity_rows": [
                    (severity.value, scan_summary.counts_by_severity.get(severity, 0))
                    for severity in SEVERITY_ORDER
                ],
                "top_findings": list(scan_summary.top_findings),
                "remaining_high_priority": scan_summary.remaining_high_priority,
            }
        )

    return variables


def get_template_path() -> Path:
    """Resolve the bundled summary template path, with optional override."""
    env_value = os.environ.get(TEMPLATE_ENV)
    if env_value:
        candidate = Path(env_value)
        if candidate.exists():
            return candidate
        raise FileNotFoundError(f"Template file not found at {TEMPLATE_ENV}: {candidate}")

    template = resources.files("buildscan.data") / TEMPLATE_NAME
    if template.is_file():
        return Path(str(template))

    raise FileNotFoundError(f"Bundled template {TEMPLATE_NAME} not found.")


def render_template(template_path: str | Path, variables: dict) -> str:
    """Render the text template with the provided variables."""
    template_path = Path(template_path)
    if not template_path.exists():
        raise FileNotFoundError(f"Template file not found: {template_path}")

    try:
        env = Environment(
            loader=FileSystemLoader(template_path.parent),
            autoescape=False,
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
            undefined=StrictUndefined,
        )
        template = env.get_template(template_path.name)
        return template.render(**variables)
    except TemplateError as exc:
        raise PipelineFatalError(
            message=f"Failed to render summary template: {exc}",
            source="render_template",
        ) from exc


def format_summary(
    image_report: Optional[ImageSizeReport],
    scan_summary: Optional[ScanSummary],
    metadata: ReportMetadata,
) -> str:
    """
    Render the plain-text scan summary.

    The output depends only on the arguments; the scan date comes from
    ``metadata`` so identical inputs give byte-identical text.

    Args:
        image_report: Image sizes, or None when they could not be measured
        scan_summary: Aggregated scan, or None when the scanner produced no data
        metadata: Image name, scan date and report file paths

    Returns:
        Summary text
    """
    variables = extract_template_variables(image_report, scan_summary, metadata)
    return render_template(get_template_path(), variables)
