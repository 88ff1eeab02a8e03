"""CLI entry point."""

import argparse
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import Optional, Sequence

from rich.console import Console
from rich.logging import RichHandler

from buildscan.domain.models import Context
from buildscan.services.config import Settings
from buildscan.services.console import (
    LogDisplay,
    render_estimate_summary,
    render_scan_summary,
)
from buildscan.services.pipeline import run_pipeline

logger = logging.getLogger("buildscan")


def _non_negative_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid integer: {value!r}")
    if number < 0:
        raise argparse.ArgumentTypeError(f"must not be negative: {number}")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="buildscan",
        description="buildscan - container image size estimation and vulnerability summaries",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Show debug logging"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    scan = subparsers.add_parser("scan", help="Scan an image with Trivy and write a summary")
    scan.add_argument("--image", help="Image to scan (default: from build metadata)")
    scan.add_argument("--reports-dir", type=Path, help="Directory for report files")
    scan.add_argument("--metadata", type=Path, help="Build metadata JSON file")

    estimate = subparsers.add_parser(
        "estimate", help="Measure an image and estimate its total size"
    )
    estimate.add_argument("--image", help="Image to measure (default: IMAGE_BASE_NAME:IMAGE_TAG)")
    estimate.add_argument("--artifact-dir", type=Path, help="Compiled artifact directory")
    estimate.add_argument("--metadata", type=Path, help="Build metadata JSON file to write")
    estimate.add_argument(
        "--overhead-mb",
        type=_non_negative_int,
        help="Overhead added to the estimate in MB (default: 300)",
    )

    summarize = subparsers.add_parser(
        "summarize", help="Summarize an existing Trivy JSON report"
    )
    summarize.add_argument("report", type=Path, help="Trivy JSON report")
    summarize.add_argument("--image", help="Image name shown in the summary")
    summarize.add_argument("--reports-dir", type=Path, help="Directory for the summary file")

    return parser


def _apply_overrides(settings: Settings, args: argparse.Namespace) -> Settings:
    overrides = {}
    if getattr(args, "reports_dir", None):
        overrides["reports_dir"] = args.reports_dir
    if getattr(args, "metadata", None):
        overrides["metadata_file"] = args.metadata
    if getattr(args, "artifact_dir", None):
        overrides["artifact_dir"] = args.artifact_dir
    if getattr(args, "overhead_mb", None) is not None:
        overrides["overhead_mb"] = args.overhead_mb
    return replace(settings, **overrides)


def configure_logging(console: Console, verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def main(argv: Optional[Sequence[str]] = None, console: Optional[Console] = None) -> int:
    """Main CLI entry point."""
    args = build_parser().parse_args(argv)
    console = console or Console(highlight=False)
    configure_logging(Console(stderr=True), args.verbose)

    try:
        settings = _apply_overrides(Settings.from_env(), args)
    except ValueError as e:
        console.print(f"[red]Error: {e}[/red]")
        return 2

    log = LogDisplay(console)
    ctx = Context(
        chain=args.command,
        settings=settings,
        image_name=args.image or (settings.scan_image_name if args.command == "scan" else None),
        log_display=log,
    )
    if args.command == "summarize":
        ctx.scan_report_path = args.report

    if args.command == "estimate":
        log.write_task_section("Image Size Estimate", leading_blank=False)
    else:
        log.write_task_section("Docker Image Vulnerability Scan", leading_blank=False)

    result = run_pipeline(ctx)

    if result.succeeded:
        if args.command == "estimate":
            render_estimate_summary(log, result.ctx)
        else:
            render_scan_summary(log, result.ctx)

    if not result.succeeded:
        log.write_error(f"Fatal error in {result.failed_task}: {result.error}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
