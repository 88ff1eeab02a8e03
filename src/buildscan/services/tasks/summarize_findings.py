"""Task to aggregate scan findings into a ScanSummary."""

import logging
from dataclasses import replace

from buildscan.domain.aggregation import aggregate, extract_records
from buildscan.domain.models import Context
from buildscan.services.tasks import register

logger = logging.getLogger(__name__)


class SummarizeFindings:
    """Count findings by severity and pick the top critical/high ones."""

    name = "summarize_findings"

    def get_status_message(self, ctx: Context) -> str:
        return "Summarize findings"

    def run(self, ctx: Context) -> Context:
        log = ctx.log_display

        if ctx.scan_report is None:
            ctx.scan_summary = None
            if log:
                log.write_warning(f"[{self.name}] No scan data available to summarize")
            return ctx

        extraction = extract_records(ctx.scan_report)
        ctx.records = extraction.records
        ctx.warnings.extend(extraction.warnings)
        ctx.scan_summary = replace(
            aggregate(extraction.records), warning_count=len(extraction.warnings)
        )

        if extraction.warnings:
            logger.warning(
                "%d malformed or incomplete entries in scan report",
                len(extraction.warnings),
            )
            if log:
                log.write_warning(
                    f"[{self.name}] {len(extraction.warnings)} entries had missing "
                    "or malformed fields"
                )

        if log:
            summary = ctx.scan_summary
            log.write(
                f"[{self.name}] Found {summary.total_count} vulnerability(ies), "
                f"{summary.unique_id_count} unique"
            )
        return ctx


# Auto-register this task
register(SummarizeFindings())
