"""Shared fixtures for buildscan tests."""

from __future__ import annotations

import io

import pytest
from rich.console import Console

from buildscan.services.config import Settings
from buildscan.services.console import LogDisplay


@pytest.fixture
def sample_report() -> dict:
    return {
        "SchemaVersion": 2,
        "ArtifactName": "app-local:dev",
        "Results": [
            {
                "Target": "app-local:dev (debian 12.5)",
                "Vulnerabilities": [
                    {
                        "VulnerabilityID": "CVE-2024-0001",
                        "PkgName": "openssl",
                        "InstalledVersion": "3.0.11",
                        "FixedVersion": "3.0.13",
                        "Severity": "HIGH",
                        "Title": "openssl: buffer overflow",
                    },
                    {
                        "VulnerabilityID": "CVE-2024-0002",
                        "PkgName": "zlib",
                        "Severity": "LOW",
                        "Title": "zlib: minor leak",
                    },
                ],
            },
            {
                "Target": "Node.js",
                "Vulnerabilities": [
                    {
                        "VulnerabilityID": "CVE-2024-0001",
                        "PkgName": "openssl-wasm",
                        "Severity": "HIGH",
                        "Title": "openssl: buffer overflow",
                    },
                    {
                        "VulnerabilityID": "CVE-2024-0003",
                        "PkgName": "lodash",
                        "Severity": "CRITICAL",
                        "Title": "lodash: prototype pollution",
                    },
                ],
            },
            {"Target": "usr/local/bin/tini", "Vulnerabilities": None},
        ],
    }


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        metadata_file=tmp_path / ".build_metadata.json",
        reports_dir=tmp_path / "reports",
        artifact_dir=tmp_path / "compiled_app_output",
        command_timeout=5,
    )


@pytest.fixture
def console() -> Console:
    return Console(file=io.StringIO(), width=120, color_system=None)


@pytest.fixture
def log_display(console: Console) -> LogDisplay:
    return LogDisplay(console)
