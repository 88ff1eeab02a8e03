"""Vulnerability record extraction and aggregation for Trivy reports."""

import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Iterable, Optional

logger = logging.getLogger(__name__)

TOP_FINDINGS_LIMIT = 5
NO_TITLE = "No title"


class Severity(str, Enum):
    """Vulnerability severity, declared from most to least severe."""

    CRITICAL = "CRITICAL"
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"
    UNKNOWN = "UNKNOWN"

    @property
    def rank(self) -> int:
        """Sort key; lower is more severe."""
        return SEVERITY_ORDER.index(self)

    @classmethod
    def parse(cls, value: Any) -> "Severity":
        """Map a scanner severity to a Severity, defaulting to UNKNOWN."""
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return cls.UNKNOWN
        try:
            return cls(value.strip().upper())
        except ValueError:
            # Negligible, Unknown, or any other value
            return cls.UNKNOWN


SEVERITY_ORDER: tuple[Severity, ...] = tuple(Severity)
HIGH_PRIORITY = (Severity.CRITICAL, Severity.HIGH)


@dataclass(frozen=True)
class VulnerabilityRecord:
    """A single vulnerability finding against one affected package."""

    id: str
    severity: Severity
    package_name: str = "unknown"
    title: str = NO_TITLE
    target: str = ""
    installed_version: Optional[str] = None
    fixed_version: Optional[str] = None


@dataclass(frozen=True)
class RecordExtraction:
    """Records pulled from a scan report plus any warnings raised on the way."""

    records: list[VulnerabilityRecord] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class ScanSummary:
    """Aggregated view of a vulnerability scan."""

    total_count: int
    unique_id_count: int
    severity_counts: tuple[tuple[Severity, int], ...]
    top_findings: tuple[VulnerabilityRecord, ...] = ()
    high_priority_count: int = 0
    warning_count: int = 0

    @property
    def counts_by_severity(self) -> dict[Severity, int]:
        """Counts keyed by severity, most severe first."""
        return dict(self.severity_counts)

    @property
    def remaining_high_priority(self) -> int:
        """CRITICAL/HIGH findings not shown in ``top_findings``."""
        return self.high_priority_count - len(self.top_findings)


def _text_field(entry: dict, key: str) -> Optional[str]:
    value = entry.get(key)
    if isinstance(value, str) and value.strip():
        return value
    return None


def _record_from_entry(entry: dict, target: str, warnings: list[str]) -> VulnerabilityRecord:
    vuln_id = _text_field(entry, "VulnerabilityID")
    if vuln_id is None:
        warnings.append(f"Vulnerability in {target or 'unknown target'} has no VulnerabilityID")
        vuln_id = "UNKNOWN"

    package_name = _text_field(entry, "PkgName")
    if package_name is None:
        warnings.append(f"{vuln_id}: missing PkgName")
        package_name = "unknown"

    title = _text_field(entry, "Title")
    if title is None:
        warnings.append(f"{vuln_id}: missing Title")
        title = NO_TITLE

    return VulnerabilityRecord(
        id=vuln_id,
        severity=Severity.parse(entry.get("Severity")),
        package_name=package_name,
        title=title,
        target=target,
        installed_version=_text_field(entry, "InstalledVersion"),
        fixed_version=_text_field(entry, "FixedVersion"),
    )


def extract_records(report: Any) -> RecordExtraction:
    """
    Walk a Trivy JSON report and collect vulnerability records.

    Records are returned in the order the scanner emitted them. Malformed
    parts of the report are skipped or filled with placeholders and reported
    as warnings; this function never raises.

    Args:
        report: Parsed Trivy JSON (``{"Results": [{"Vulnerabilities": [...]}]}``)

    Returns:
        RecordExtraction with records and warnings
    """
    records: list[VulnerabilityRecord] = []
    warnings: list[str] = []

    if not isinstance(report, dict):
        warnings.append(f"Scan report is not a JSON object (got {type(report).__name__})")
        return RecordExtraction(records=records, warnings=warnings)

    results = report.get("Results")
    if results is None:
        # Trivy omits Results entirely for clean images
        return RecordExtraction(records=records, warnings=warnings)
    if not isinstance(results, list):
        warnings.append("Scan report 'Results' is not a list")
        return RecordExtraction(records=records, warnings=warnings)

    for index, result in enumerate(results):
        if not isinstance(result, dict):
            warnings.append(f"Result #{index} is not a JSON object")
            continue

        target = result.get("Target") if isinstance(result.get("Target"), str) else ""
        vulnerabilities = result.get("Vulnerabilities")
        if vulnerabilities is None:
            continue
        if not isinstance(vulnerabilities, list):
            warnings.append(f"Result #{index} 'Vulnerabilities' is not a list")
            continue

        for entry in vulnerabilities:
            if not isinstance(entry, dict):
                warnings.append(f"Result #{index} contains a non-object vulnerability entry")
                continue
            records.append(_record_from_entry(entry, target, warnings))

    for warning in warnings:
        logger.debug("Scan report: %s", warning)

    return RecordExtraction(records=records, warnings=warnings)


def aggregate(records: Iterable[VulnerabilityRecord]) -> ScanSummary:
    """
    Aggregate vulnerability records into a ScanSummary.

    Every record counts toward the total, even when the same id recurs
    across packages. ``top_findings`` keeps CRITICAL before HIGH and
    first-seen order among equal severities.

    Args:
        records: Records in scanner-emitted order

    Returns:
        ScanSummary
    """
    counts: dict[Severity, int] = {severity: 0 for severity in SEVERITY_ORDER}
    seen_ids: set[str] = set()
    high_priority: list[VulnerabilityRecord] = []
    total = 0

    for record in records:
        severity = Severity.parse(record.severity)
        if severity is not record.severity:
            record = replace(record, severity=severity)

        counts[severity] += 1
        seen_ids.add(record.id)
        total += 1

        if severity in HIGH_PRIORITY:
            high_priority.append(record)

    # sorted() is stable, so encounter order survives within a severity
    ranked = sorted(high_priority, key=lambda r: r.severity.rank)

    return ScanSummary(
        total_count=total,
        unique_id_count=len(seen_ids),
        severity_counts=tuple(counts.items()),
        top_findings=tuple(ranked[:TOP_FINDINGS_LIMIT]),
        high_priority_count=len(high_priority),
    )


def summarize_report(report: Any) -> ScanSummary:
    """Extract records from a Trivy report and aggregate them."""
    extraction = extract_records(report)
    summary = aggregate(extraction.records)
    return replace(summary, warning_count=len(extraction.warnings))
