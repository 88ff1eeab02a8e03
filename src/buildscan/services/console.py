"""Terminal output: log display wrapper and coloured summaries."""

from typing import Literal, Optional

from rich.console import Console
from rich.table import Table
from rich.text import Text

from buildscan.domain.aggregation import SEVERITY_ORDER, Severity
from buildscan.domain.models import Context
from buildscan.domain.sizes import bytes_to_mb, format_mb
from buildscan.services.formatting import format_duration, format_estimate

SEVERITY_STYLES = {
    Severity.CRITICAL: "bold red",
    Severity.HIGH: "bright_red",
    Severity.MEDIUM: "yellow",
    Severity.LOW: "blue",
    Severity.UNKNOWN: "bright_black",
}

DIVIDER = "-" * 47


class LogDisplay:
    """Wrapper for a rich Console with helper methods."""

    def __init__(self, console: Optional[Console] = None):
        """Initialize with a rich Console (stdout by default)."""
        self.console = console or Console(highlight=False)
        # Keep our own buffer of log messages for easy text extraction
        self._log_buffer: list[str] = []
        # Track current mode to control coloring (action, task, or error)
        self._mode: Literal["action", "task", "error"] = "action"

    def set_mode(self, mode: Literal["action", "task", "error"]) -> None:
        """Set the current log mode to control coloring."""
        self._mode = mode

    def _style_for_mode(self) -> str:
        """Return the Rich style name for the current mode."""
        if self._mode == "error":
            return "bold red"
        elif self._mode == "task":
            return "blue"
        else:  # action
            return "white"

    def _emit(self, message: str, style: str) -> None:
        self.console.print(Text(message, style=style))
        self._log_buffer.append(message)

    def write(self, message: str) -> None:
        """Write a message with the current style."""
        self._emit(message, self._style_for_mode())

    def write_styled(self, message: str, style: str) -> None:
        """Write a message with an explicit style."""
        self._emit(message, style)

    def write_warning(self, message: str) -> None:
        """Write a warning in yellow."""
        self._emit(message, "yellow")

    def write_error(self, message: str) -> None:
        """Write an error message in red, then restore previous mode."""
        previous_mode = self._mode
        self.set_mode("error")
        self.write(message)
        self.set_mode(previous_mode)

    def write_divider(self) -> None:
        self._emit(DIVIDER, "bright_black")

    def write_task_section(self, title: str, *, leading_blank: bool = True) -> None:
        """Write a task section header with separators and spacing."""
        if leading_blank:
            self.write("")
        self._emit(f"===== {title} =====", "bold blue")

    def write_section(self, title: str, lines: list[str]) -> None:
        """Write a formatted section with title and lines."""
        self.write("")
        self._emit(title, "blue")
        for line in lines:
            self.write(f"   {line}")

    def print_renderable(self, renderable) -> None:
        """Print a rich renderable (not captured in the text buffer)."""
        self.console.print(renderable)

    def get_text(self) -> str:
        """Return the entire log contents as plain text."""
        return "\n".join(self._log_buffer)


def _severity_table(ctx: Context) -> Table:
    summary = ctx.scan_summary
    table = Table(show_header=True, header_style="bold", box=None, padding=(0, 3))
    table.add_column("Severity")
    table.add_column("Count", justify="right")
    for severity in SEVERITY_ORDER:
        style = SEVERITY_STYLES[severity]
        table.add_row(
            Text(severity.value, style=style),
            Text(str(summary.counts_by_severity.get(severity, 0)), style=style),
        )
    return table


def _duration_lines(ctx: Context) -> list[str]:
    lines = [
        f"{name.replace('_', ' ').capitalize():<22}{format_duration(seconds)}"
        for name, seconds in ctx.durations.items()
    ]
    lines.append(f"{'Total':<22}{format_duration(ctx.durations.total)}")
    return lines


def render_scan_summary(log: LogDisplay, ctx: Context) -> None:
    """Render the scan results for a terminal."""
    log.write("")
    log.write_styled("================ SCAN SUMMARY ================", "bold green")
    log.write(f"Scanned Image: {ctx.image_name or 'N/A'}")

    report = ctx.image_report
    if report and (report.compressed_bytes or report.uncompressed_bytes):
        log.write_section(
            "Image Sizes:",
            [
                f"Compressed:   {format_mb(report.compressed_bytes)}",
                f"Uncompressed: {format_mb(report.uncompressed_bytes)}",
                f"Estimated:    {format_estimate(report)}",
            ],
        )

    log.write("")
    log.write_styled("Vulnerability Summary:", "blue")
    summary = ctx.scan_summary
    if summary is None:
        log.write_warning("   No data available: the scanner produced no usable output.")
    elif summary.total_count == 0:
        log.write_styled("   No vulnerabilities found!", "green")
    else:
        log.write_styled(
            f"   Total: {summary.total_count} vulnerabilities "
            f"({summary.unique_id_count} unique CVEs)",
            "yellow",
        )
        log.print_renderable(_severity_table(ctx))
        if summary.warning_count:
            log.write_warning(
                f"   {summary.warning_count} malformed scanner entries were "
                "counted with placeholder values"
            )

    if ctx.report_paths:
        log.write_section(
            "Reports Generated:",
            [
                f"Text Report:  {ctx.report_paths.text_report or 'N/A'}",
                f"JSON Report:  {ctx.report_paths.json_report}",
                f"Summary:      {ctx.report_paths.summary}",
            ],
        )

    log.write_section("Durations:", _duration_lines(ctx))

    log.write_section(
        "Tips:",
        [
            "- Review the text report for human-readable details",
            "- Use the JSON report for automated processing",
            "- Check CRITICAL and HIGH severity vulnerabilities first",
        ],
    )
    log.write_styled("==============================================", "bold green")

    if summary and summary.top_findings:
        log.write("")
        log.write_styled("Top Critical/High Vulnerabilities:", "bold red")
        for finding in summary.top_findings:
            style = SEVERITY_STYLES[finding.severity]
            log.write_styled(
                f"   {finding.severity.value}: {finding.id} - {finding.title}", style
            )
            log.write_styled(f"      Package: {finding.package_name}", "bright_black")
        if summary.remaining_high_priority > 0:
            log.write_styled(
                f"   ... and {summary.remaining_high_priority} more", "bright_black"
            )
        if ctx.report_paths and ctx.report_paths.text_report:
            log.write("")
            log.write(f"Run 'cat {ctx.report_paths.text_report}' to see the full report.")


def render_estimate_summary(log: LogDisplay, ctx: Context) -> None:
    """Render the size estimate for a terminal."""
    report = ctx.image_report
    log.write("")
    log.write_styled("================ SIZE SUMMARY ================", "bold green")
    log.write(f"Image: {ctx.image_name or 'N/A'}")

    lines = [
        f"Compiled App Output Size:    {ctx.artifact_size_text or 'N/A'}",
        "  (Size of the compiled artifact directory before Docker COPY.)",
    ]
    if report and report.compressed_bytes:
        lines.append(f"Docker Inspect Virtual Size: {format_mb(report.compressed_bytes)}")
    if report and report.uncompressed_bytes:
        lines.append(f"Uncompressed Size:           {format_mb(report.uncompressed_bytes)}")
    log.write_section("Image Sizes:", lines)

    if report and report.estimate.available:
        total_mb = bytes_to_mb(report.estimated_total_bytes)
        log.write_styled(
            f"   Estimated Total Image Size:  {total_mb:.2f} MB ({total_mb / 1024:.2f} GB)",
            "bold green",
        )
        log.write_styled(
            "     (Compiled app output + virtual size + "
            f"{bytes_to_mb(report.estimate.overhead_bytes):.0f} MB for other layers/overhead.)",
            "bright_black",
        )
    else:
        log.write_warning(
            "   Could not estimate total image size "
            "(missing compiled app size and virtual size)."
        )

    log.write_section("Durations:", _duration_lines(ctx))
    log.write_styled("==============================================", "bold green")
