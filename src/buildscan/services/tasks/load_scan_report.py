"""Task to load an existing Trivy JSON report from disk."""

import json
import logging
from dataclasses import replace

from buildscan.domain.exceptions import PipelineFatalError
from buildscan.domain.models import Context
from buildscan.services.artifacts import build_report_paths, get_reports_dir
from buildscan.services.tasks import register

logger = logging.getLogger(__name__)


class LoadScanReport:
    """Read a previously written Trivy JSON report."""

    name = "load_scan_report"

    def get_status_message(self, ctx: Context) -> str:
        return "Load scan report"

    def run(self, ctx: Context) -> Context:
        path = ctx.scan_report_path
        if path is None or not path.is_file():
            raise PipelineFatalError(
                message=f"Scan report not found: {path}",
                source=self.name,
            )

        try:
            report = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            message = f"Could not parse scan report {path}: {e}"
            logger.warning(message)
            ctx.warnings.append(message)
            if ctx.log_display:
                ctx.log_display.write_warning(f"[{self.name}] WARN: {message}")
            report = None

        ctx.scan_report = report
        ctx.scan_succeeded = report is not None

        if not ctx.image_name:
            artifact_name = report.get("ArtifactName") if isinstance(report, dict) else None
            ctx.image_name = artifact_name if isinstance(artifact_name, str) else path.stem

        paths = build_report_paths(
            ctx.image_name, get_reports_dir(ctx.settings.reports_dir), ctx.started_at
        )
        text_report = path.with_suffix(".txt")
        ctx.report_paths = replace(
            paths,
            json_report=path,
            text_report=text_report if text_report.is_file() else None,
        )

        if ctx.log_display:
            ctx.log_display.write(f"[{self.name}] Loaded {path} for {ctx.image_name}")
        return ctx


# Auto-register this task
register(LoadScanReport())
