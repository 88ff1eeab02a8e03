"""Domain models for image measurement and scanning."""

from dataclasses import dataclass, field, fields, replace
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Optional

from buildscan.domain.aggregation import ScanSummary, VulnerabilityRecord
from buildscan.domain.sizes import ImageSizeReport

if TYPE_CHECKING:
    from buildscan.services.config import Settings
    from buildscan.services.console import LogDisplay


@dataclass(frozen=True)
class StageDurations:
    """Wall-clock seconds spent in each pipeline stage."""

    check_tools: float = 0.0
    load_build_metadata: float = 0.0
    load_scan_report: float = 0.0
    measure_artifacts: float = 0.0
    measure_image: float = 0.0
    scan_vulnerabilities: float = 0.0
    summarize_findings: float = 0.0
    write_summary: float = 0.0
    save_build_metadata: float = 0.0
    total: float = 0.0

    def record(self, stage: str, seconds: float) -> "StageDurations":
        """Return a copy with ``stage`` set; unknown stages raise TypeError."""
        return replace(self, **{stage: seconds})

    def items(self) -> list[tuple[str, float]]:
        """Stages that actually ran, excluding the total, in pipeline order."""
        return [
            (f.name, getattr(self, f.name))
            for f in fields(self)
            if f.name != "total" and getattr(self, f.name) > 0
        ]


@dataclass
class BuildMetadata:
    """Metadata saved by the build step for the scan step."""

    image_name: str
    build_timestamp: Optional[str] = None
    compressed_size_mb: Optional[float] = None
    uncompressed_size_mb: Optional[float] = None
    compiled_app_size: Optional[str] = None
    build_times: dict[str, float] = field(default_factory=dict)


@dataclass(frozen=True)
class ReportPaths:
    """Files written by a scan run."""

    text_report: Optional[Path]  # None when no text report was written
    json_report: Path
    summary: Path


@dataclass(frozen=True)
class ReportMetadata:
    """Non-measured values embedded in the summary report."""

    image_name: str
    scan_date: datetime
    report_paths: Optional[ReportPaths] = None
    build_timestamp: Optional[str] = None


@dataclass
class Context:
    """Shared context passed through tasks."""

    chain: str
    settings: "Settings"
    image_name: Optional[str] = None
    started_at: datetime = field(default_factory=datetime.now)
    build_metadata: Optional[BuildMetadata] = None
    artifact_size_text: Optional[str] = None
    image_report: Optional[ImageSizeReport] = None
    scan_report_path: Optional[Path] = None
    scan_report: Optional[dict] = None
    scan_succeeded: bool = False
    records: list[VulnerabilityRecord] = field(default_factory=list)
    scan_summary: Optional[ScanSummary] = None
    report_paths: Optional[ReportPaths] = None
    summary_text: Optional[str] = None
    durations: StageDurations = field(default_factory=StageDurations)
    warnings: list[str] = field(default_factory=list)
    log_display: Optional["LogDisplay"] = None


@dataclass
class PipelineResult:
    """Final result of a pipeline run."""

    ctx: Context
    succeeded: bool
    error: Optional[str] = None
    failed_task: Optional[str] = None
