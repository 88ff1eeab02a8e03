"""Task to render and persist the plain-text scan summary."""

from buildscan.domain.exceptions import PipelineFatalError
from buildscan.domain.models import Context, ReportMetadata
from buildscan.services.formatting import format_summary
from buildscan.services.tasks import register


class WriteSummary:
    """Write the scan summary next to the raw reports."""

    name = "write_summary"

    def get_status_message(self, ctx: Context) -> str:
        return "Write scan summary"

    def run(self, ctx: Context) -> Context:
        if ctx.report_paths is None:
            raise PipelineFatalError(
                message="Cannot write summary: report paths not resolved",
                source=self.name,
            )

        build = ctx.build_metadata
        metadata = ReportMetadata(
            image_name=ctx.image_name or "N/A",
            scan_date=ctx.started_at,
            report_paths=ctx.report_paths,
            build_timestamp=(
                build.build_timestamp if build and build.image_name == ctx.image_name else None
            ),
        )
        try:
            ctx.summary_text = format_summary(ctx.image_report, ctx.scan_summary, metadata)
        except OSError as e:
            raise PipelineFatalError(
                message=f"Failed to load summary template: {e}",
                source=self.name,
            ) from e

        try:
            ctx.report_paths.summary.write_text(ctx.summary_text, encoding="utf-8")
        except OSError as e:
            raise PipelineFatalError(
                message=f"Failed to write summary {ctx.report_paths.summary}: {e}",
                source=self.name,
            ) from e

        if ctx.log_display:
            ctx.log_display.write(f"[{self.name}] Summary saved to: {ctx.report_paths.summary}")
        return ctx


# Auto-register this task
register(WriteSummary())
