from __future__ import annotations

import json
import os
import subprocess
import sys
import time

import pytest

from buildscan.adapters import disk_usage, docker_client, trivy_client
from buildscan.adapters.disk_usage import DiskUsageError, directory_size_text
from buildscan.adapters.docker_client import (
    DockerError,
    DockerNotFoundError,
    history_layer_sizes,
    image_exists,
    inspect_image_size,
    save_image_size,
)
from buildscan.adapters.trivy_client import TrivyError, TrivyNotFoundError, scan_image


def _which(found: bool):
    return lambda name: f"/usr/bin/{name}" if found else None


def _completed(stdout: str):
    def fake_run(cmd, **kwargs):
        fake_run.calls.append(cmd)
        return subprocess.CompletedProcess(cmd, 0, stdout=stdout, stderr="")

    fake_run.calls = []
    return fake_run


def _failing(stderr: str = "boom"):
    def fake_run(cmd, **kwargs):
        raise subprocess.CalledProcessError(1, cmd, output="", stderr=stderr)

    return fake_run


# --- docker ---------------------------------------------------------------


def test_inspect_image_size(monkeypatch) -> None:
    monkeypatch.setattr(docker_client.shutil, "which", _which(True))
    fake_run = _completed("536870912\n")
    monkeypatch.setattr(docker_client.subprocess, "run", fake_run)

    assert inspect_image_size("app-local:dev") == 536870912
    assert fake_run.calls[0] == [
        "/usr/bin/docker",
        "image",
        "inspect",
        "app-local:dev",
        "--format",
        "{{.Size}}",
    ]


def test_inspect_image_size_rejects_garbage(monkeypatch) -> None:
    monkeypatch.setattr(docker_client.shutil, "which", _which(True))
    monkeypatch.setattr(docker_client.subprocess, "run", _completed("not a number"))

    with pytest.raises(DockerError):
        inspect_image_size("app-local:dev")


def test_docker_command_failure(monkeypatch) -> None:
    monkeypatch.setattr(docker_client.shutil, "which", _which(True))
    monkeypatch.setattr(docker_client.subprocess, "run", _failing("No such image"))

    with pytest.raises(DockerError, match="No such image"):
        inspect_image_size("missing:latest")
    assert image_exists("missing:latest") is False


def test_docker_not_installed(monkeypatch) -> None:
    monkeypatch.setattr(docker_client.shutil, "which", _which(False))

    with pytest.raises(DockerNotFoundError):
        image_exists("app-local:dev")


def test_docker_timeout(monkeypatch) -> None:
    monkeypatch.setattr(docker_client.shutil, "which", _which(True))

    def fake_run(cmd, **kwargs):
        raise subprocess.TimeoutExpired(cmd, kwargs.get("timeout"))

    monkeypatch.setattr(docker_client.subprocess, "run", fake_run)

    with pytest.raises(DockerError, match="timed out"):
        inspect_image_size("app-local:dev", timeout=1)


def test_history_layer_sizes_skips_missing(monkeypatch) -> None:
    monkeypatch.setattr(docker_client.shutil, "which", _which(True))
    monkeypatch.setattr(
        docker_client.subprocess, "run", _completed("77.8MB\n<missing>\n\n0B\n1.2kB\n")
    )

    assert history_layer_sizes("app-local:dev") == ["77.8MB", "0B", "1.2kB"]


def _saving(payload: bytes):
    def fake_run(cmd, stdout=None, **kwargs):
        fake_run.kwargs = kwargs
        stdout.write(payload)
        stdout.flush()
        return subprocess.CompletedProcess(cmd, 0, stdout=None, stderr=b"")

    return fake_run


def test_save_image_size_counts_bytes(monkeypatch) -> None:
    monkeypatch.setattr(docker_client.shutil, "which", _which(True))
    fake_run = _saving(b"x" * 3000)
    monkeypatch.setattr(docker_client.subprocess, "run", fake_run)

    assert save_image_size("app-local:dev", timeout=30) == 3000
    assert fake_run.kwargs["timeout"] == 30


def test_save_image_size_failure(monkeypatch) -> None:
    monkeypatch.setattr(docker_client.shutil, "which", _which(True))

    def fake_run(cmd, **kwargs):
        raise subprocess.CalledProcessError(1, cmd, stderr=b"no such image")

    monkeypatch.setattr(docker_client.subprocess, "run", fake_run)

    with pytest.raises(DockerError, match="no such image"):
        save_image_size("missing:latest")


@pytest.mark.skipif(sys.platform == "win32", reason="needs a POSIX shell")
def test_save_image_size_kills_stalled_docker(monkeypatch, tmp_path) -> None:
    fake_docker = tmp_path / "docker"
    fake_docker.write_text("#!/bin/sh\nexec sleep 10\n")
    fake_docker.chmod(0o755)
    monkeypatch.setenv("PATH", f"{tmp_path}{os.pathsep}{os.environ.get('PATH', '')}")

    started = time.monotonic()
    with pytest.raises(DockerError, match="timed out after 1 seconds"):
        save_image_size("app-local:dev", timeout=1)
    assert time.monotonic() - started < 5


# --- trivy ----------------------------------------------------------------


def test_scan_image_json(monkeypatch, sample_report) -> None:
    monkeypatch.setattr(trivy_client.shutil, "which", _which(True))
    fake_run = _completed(json.dumps(sample_report))
    monkeypatch.setattr(trivy_client.subprocess, "run", fake_run)

    assert scan_image("app-local:dev") == sample_report
    cmd = fake_run.calls[0]
    assert cmd[:4] == ["/usr/bin/trivy", "image", "--scanners", "vuln"]
    assert cmd[cmd.index("--format") + 1] == "json"
    assert cmd[-1] == "app-local:dev"


def test_scan_image_table(monkeypatch) -> None:
    monkeypatch.setattr(trivy_client.shutil, "which", _which(True))
    monkeypatch.setattr(trivy_client.subprocess, "run", _completed("Total: 0\n"))

    assert scan_image("app-local:dev", output_format="table") == "Total: 0\n"


@pytest.mark.parametrize("stdout", ["{broken", "   "])
def test_scan_image_bad_json(monkeypatch, stdout: str) -> None:
    monkeypatch.setattr(trivy_client.shutil, "which", _which(True))
    monkeypatch.setattr(trivy_client.subprocess, "run", _completed(stdout))

    with pytest.raises(TrivyError):
        scan_image("app-local:dev")


def test_scan_image_failure(monkeypatch) -> None:
    monkeypatch.setattr(trivy_client.shutil, "which", _which(True))
    monkeypatch.setattr(trivy_client.subprocess, "run", _failing("unable to find image"))

    with pytest.raises(TrivyError, match="unable to find image"):
        scan_image("app-local:dev")


def test_trivy_not_installed(monkeypatch) -> None:
    monkeypatch.setattr(trivy_client.shutil, "which", _which(False))

    with pytest.raises(TrivyNotFoundError):
        scan_image("app-local:dev")


# --- du -------------------------------------------------------------------


def test_directory_size_text(monkeypatch, tmp_path) -> None:
    monkeypatch.setattr(disk_usage.shutil, "which", _which(True))
    monkeypatch.setattr(disk_usage.subprocess, "run", _completed(f"412M\t{tmp_path}\n"))

    assert directory_size_text(tmp_path) == "412M"


def test_directory_size_text_missing_directory(tmp_path) -> None:
    with pytest.raises(DiskUsageError):
        directory_size_text(tmp_path / "missing")


def test_directory_size_text_failure(monkeypatch, tmp_path) -> None:
    monkeypatch.setattr(disk_usage.shutil, "which", _which(True))
    monkeypatch.setattr(disk_usage.subprocess, "run", _failing("permission denied"))

    with pytest.raises(DiskUsageError, match="permission denied"):
        directory_size_text(tmp_path)
