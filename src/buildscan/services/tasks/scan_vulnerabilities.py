"""Task to scan the image for vulnerabilities using Trivy."""

import json
import logging
from dataclasses import replace
from pathlib import Path

from buildscan.adapters.trivy_client import TrivyError, TrivyNotFoundError, scan_image
from buildscan.domain.exceptions import PipelineFatalError
from buildscan.domain.models import Context
from buildscan.services.artifacts import build_report_paths, get_reports_dir
from buildscan.services.tasks import register

logger = logging.getLogger(__name__)


class ScanVulnerabilities:
    """Run Trivy, keeping its text and JSON reports on disk."""

    name = "scan_vulnerabilities"

    def get_status_message(self, ctx: Context) -> str:
        return "Scan for vulnerabilities"

    def _scan(self, ctx: Context, output_format: str):
        try:
            return scan_image(
                ctx.image_name,
                output_format=output_format,
                timeout=ctx.settings.command_timeout,
            )
        except TrivyNotFoundError as e:
            raise PipelineFatalError(message=str(e), source=self.name) from e
        except TrivyError as e:
            message = f"Trivy {output_format} scan failed: {e}"
            logger.warning(message)
            ctx.warnings.append(message)
            if ctx.log_display:
                ctx.log_display.write_warning(f"[{self.name}] WARN: {message}")
            return None

    def _write(self, path: Path, content: str) -> None:
        try:
            path.write_text(content, encoding="utf-8")
        except OSError as e:
            raise PipelineFatalError(
                message=f"Failed to write report {path}: {e}",
                source=self.name,
            ) from e

    def run(self, ctx: Context) -> Context:
        if not ctx.image_name:
            raise PipelineFatalError(
                message="Cannot scan: no image name resolved",
                source=self.name,
            )

        reports_dir = get_reports_dir(ctx.settings.reports_dir)
        paths = build_report_paths(ctx.image_name, reports_dir, ctx.started_at)
        ctx.report_paths = paths

        if ctx.log_display:
            ctx.log_display.write(f"[{self.name}] Scanning {ctx.image_name} with Trivy...")

        text_report = self._scan(ctx, "table")
        if text_report is not None:
            self._write(paths.text_report, text_report)
        else:
            ctx.report_paths = replace(paths, text_report=None)

        json_report = self._scan(ctx, "json")
        if json_report is not None:
            self._write(paths.json_report, json.dumps(json_report, indent=2))
            ctx.scan_report = json_report

        ctx.scan_succeeded = text_report is not None and json_report is not None

        if ctx.log_display:
            if ctx.scan_succeeded:
                ctx.log_display.write(f"[{self.name}] Vulnerability scan completed")
            else:
                ctx.log_display.write_warning(f"[{self.name}] Scan completed with warnings")
        return ctx


# Auto-register this task
register(ScanVulnerabilities())
