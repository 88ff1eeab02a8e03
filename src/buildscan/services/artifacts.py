"""Resolve where scan reports are written."""

import re
from datetime import datetime
from pathlib import Path

from buildscan.domain.exceptions import PipelineFatalError
from buildscan.domain.models import ReportPaths


def get_reports_dir(target: Path) -> Path:
    """
    Resolve the reports directory, ensuring it exists.

    Raises:
        PipelineFatalError: If the directory cannot be created
    """
    path = Path(target).expanduser()
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise PipelineFatalError(
            message=f"Cannot use reports directory {path}: {e}"
        ) from e
    return path.resolve()


def safe_image_name(image_name: str) -> str:
    """Make an image reference usable in a filename."""
    return re.sub(r"[^a-zA-Z0-9-]", "_", image_name)


def build_report_paths(image_name: str, reports_dir: Path, now: datetime) -> ReportPaths:
    """
    Name the text, JSON and summary report files for one scan.

    Example: ``trivy_report_app-local_dev_2024-05-01T10-30-00.json``
    """
    timestamp = now.strftime("%Y-%m-%dT%H-%M-%S")
    stem = f"{safe_image_name(image_name)}_{timestamp}"
    return ReportPaths(
        text_report=reports_dir / f"trivy_report_{stem}.txt",
        json_report=reports_dir / f"trivy_report_{stem}.json",
        summary=reports_dir / f"scan_summary_{stem}.txt",
    )
