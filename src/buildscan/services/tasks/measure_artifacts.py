"""Task to measure the compiled artifact directory."""

import logging

from buildscan.adapters.disk_usage import DiskUsageError, directory_size_text
from buildscan.domain.models import Context
from buildscan.services.tasks import register

logger = logging.getLogger(__name__)


class MeasureArtifacts:
    """Record the ``du -sh`` size of the compiled artifact directory."""

    name = "measure_artifacts"

    def get_status_message(self, ctx: Context) -> str:
        return "Measure compiled artifacts"

    def run(self, ctx: Context) -> Context:
        artifact_dir = ctx.settings.artifact_dir
        try:
            ctx.artifact_size_text = directory_size_text(
                artifact_dir, timeout=ctx.settings.command_timeout
            )
        except DiskUsageError as e:
            message = f"Could not measure {artifact_dir}: {e}"
            logger.warning(message)
            ctx.warnings.append(message)
            if ctx.log_display:
                ctx.log_display.write_warning(f"[{self.name}] WARN: {message}")
            return ctx

        if ctx.log_display:
            ctx.log_display.write(
                f"[{self.name}] Size of {artifact_dir}: {ctx.artifact_size_text}"
            )
        return ctx


# Auto-register this task
register(MeasureArtifacts())
