from __future__ import annotations

from buildscan.domain.aggregation import (
    NO_TITLE,
    SEVERITY_ORDER,
    Severity,
    VulnerabilityRecord,
    aggregate,
    extract_records,
    summarize_report,
)


def _record(vuln_id: str, severity, package: str = "pkg") -> VulnerabilityRecord:
    return VulnerabilityRecord(id=vuln_id, severity=severity, package_name=package, title=vuln_id)


def test_aggregate_empty() -> None:
    summary = aggregate([])

    assert summary.total_count == 0
    assert summary.unique_id_count == 0
    assert all(count == 0 for count in summary.counts_by_severity.values())
    assert list(summary.counts_by_severity) == list(SEVERITY_ORDER)
    assert summary.top_findings == ()


def test_aggregate_counts_repeated_ids() -> None:
    records = [
        _record("CVE-1", Severity.HIGH, "a"),
        _record("CVE-1", Severity.HIGH, "b"),
        _record("CVE-2", Severity.CRITICAL, "c"),
    ]

    summary = aggregate(records)

    assert summary.total_count == 3
    assert summary.unique_id_count == 2
    assert summary.counts_by_severity[Severity.CRITICAL] == 1
    assert summary.counts_by_severity[Severity.HIGH] == 2
    assert summary.counts_by_severity[Severity.MEDIUM] == 0
    assert [(f.id, f.severity) for f in summary.top_findings] == [
        ("CVE-2", Severity.CRITICAL),
        ("CVE-1", Severity.HIGH),
        ("CVE-1", Severity.HIGH),
    ]


def test_top_findings_ranked_stable_and_truncated() -> None:
    records = [_record(f"CVE-H{i}", Severity.HIGH) for i in range(7)]
    records.insert(3, _record("CVE-M", Severity.MEDIUM))
    records.append(_record("CVE-C", Severity.CRITICAL))

    summary = aggregate(records)

    assert [f.id for f in summary.top_findings] == [
        "CVE-C",
        "CVE-H0",
        "CVE-H1",
        "CVE-H2",
        "CVE-H3",
    ]
    assert summary.high_priority_count == 8
    assert summary.remaining_high_priority == 3


def test_top_findings_only_critical_and_high() -> None:
    summary = aggregate([_record("CVE-1", Severity.MEDIUM), _record("CVE-2", Severity.LOW)])
    assert summary.top_findings == ()
    assert summary.remaining_high_priority == 0


def test_unknown_severity_string_is_counted_as_unknown() -> None:
    records = [_record("CVE-1", "NEGLIGIBLE"), _record("CVE-2", "high")]

    summary = aggregate(records)

    assert summary.counts_by_severity[Severity.UNKNOWN] == 1
    assert summary.counts_by_severity[Severity.HIGH] == 1
    assert summary.top_findings[0].severity is Severity.HIGH


def test_aggregate_is_idempotent_and_consistent(sample_report) -> None:
    records = extract_records(sample_report).records

    first = aggregate(records)
    second = aggregate(records)

    assert first == second
    assert sum(first.counts_by_severity.values()) == first.total_count
    assert first.unique_id_count <= first.total_count


def test_summary_is_hashable(sample_report) -> None:
    summary = summarize_report(sample_report)

    assert hash(summary) == hash(summarize_report(sample_report))
    assert len({summary, summarize_report(sample_report)}) == 1


def test_severity_parse() -> None:
    assert Severity.parse("critical") is Severity.CRITICAL
    assert Severity.parse(" MEDIUM ") is Severity.MEDIUM
    assert Severity.parse(None) is Severity.UNKNOWN
    assert Severity.parse(3) is Severity.UNKNOWN
    assert Severity.CRITICAL.rank < Severity.HIGH.rank < Severity.UNKNOWN.rank


def test_extract_records_preserves_scanner_order(sample_report) -> None:
    extraction = extract_records(sample_report)

    assert extraction.warnings == []
    assert [(r.id, r.package_name) for r in extraction.records] == [
        ("CVE-2024-0001", "openssl"),
        ("CVE-2024-0002", "zlib"),
        ("CVE-2024-0001", "openssl-wasm"),
        ("CVE-2024-0003", "lodash"),
    ]
    first = extraction.records[0]
    assert first.target == "app-local:dev (debian 12.5)"
    assert first.installed_version == "3.0.11"
    assert first.fixed_version == "3.0.13"


def test_extract_records_tolerates_missing_and_null_sections() -> None:
    assert extract_records({}).records == []
    extraction = extract_records({"Results": [{"Target": "x", "Vulnerabilities": None}]})
    assert extraction.records == []
    assert extraction.warnings == []


def test_extract_records_malformed_input_never_raises() -> None:
    extraction = extract_records("garbage")
    assert extraction.records == []
    assert len(extraction.warnings) == 1

    extraction = extract_records({"Results": {"not": "a list"}})
    assert extraction.records == []
    assert len(extraction.warnings) == 1

    extraction = extract_records(
        {"Results": ["nope", {"Vulnerabilities": "nope"}, {"Vulnerabilities": [42]}]}
    )
    assert extraction.records == []
    assert len(extraction.warnings) == 3


def test_extract_records_fills_placeholders() -> None:
    report = {"Results": [{"Target": "t", "Vulnerabilities": [{"Severity": "HIGH"}]}]}

    extraction = extract_records(report)

    record = extraction.records[0]
    assert record.id == "UNKNOWN"
    assert record.package_name == "unknown"
    assert record.title == NO_TITLE
    assert record.severity is Severity.HIGH
    assert len(extraction.warnings) == 3


def test_summarize_report_counts_warnings(sample_report) -> None:
    sample_report["Results"][0]["Vulnerabilities"][1].pop("Title")

    summary = summarize_report(sample_report)

    assert summary.total_count == 4
    assert summary.unique_id_count == 3
    assert summary.warning_count == 1
    assert summary.top_findings[0].id == "CVE-2024-0003"
