"""Trivy CLI adapter for image vulnerability scanning."""

import json
import shutil
import subprocess
from typing import Union


class TrivyError(Exception):
    """Base exception for Trivy-related errors."""

    pass


class TrivyNotFoundError(TrivyError):
    """Raised when Trivy CLI is not found in PATH."""

    pass


def scan_image(
    image: str, output_format: str = "json", timeout: int = 600
) -> Union[dict, str]:
    """
    Run Trivy against a container image.

    Args:
        image: Image reference to scan
        output_format: "json" for a parsed report, "table" for the text report
        timeout: Seconds before the scan is abandoned

    Returns:
        Parsed JSON report as dictionary, or raw text for non-JSON formats

    Raises:
        TrivyNotFoundError: If Trivy CLI is not available
        TrivyError: For other Trivy-related errors
    """
    trivy_path = shutil.which("trivy")
    if not trivy_path:
        raise TrivyNotFoundError(
            "Trivy CLI not found. Install from https://github.com/aquasecurity/trivy"
        )

    try:
        # trivy image --scanners vuln --format json --quiet <image>
        result = subprocess.run(
            [
                trivy_path,
                "image",
                "--scanners",
                "vuln",
                "--format",
                output_format,
                "--quiet",
                image,
            ],
            capture_output=True,
            text=True,
            timeout=timeout,
            check=True,
        )
    except subprocess.TimeoutExpired:
        raise TrivyError(f"Trivy command timed out after {timeout} seconds")
    except subprocess.CalledProcessError as e:
        error_msg = (e.stderr or e.stdout or "Unknown error").strip()
        raise TrivyError(f"Trivy command failed: {error_msg}")
    except FileNotFoundError:
        raise TrivyNotFoundError(
            "Trivy CLI not found. Install from https://github.com/aquasecurity/trivy"
        )

    if output_format != "json":
        return result.stdout

    if not result.stdout.strip():
        raise TrivyError("Trivy produced no JSON output")

    try:
        return json.loads(result.stdout)
    except json.JSONDecodeError as e:
        raise TrivyError(f"Failed to parse Trivy JSON output: {e}")
