"""du adapter for measuring compiled artifact directories."""

import shutil
import subprocess
from pathlib import Path


class DiskUsageError(Exception):
    """Raised when the directory size cannot be measured."""

    pass


def directory_size_text(directory: str | Path, timeout: int = 120) -> str:
    """
    Return the human-readable size of a directory as printed by ``du -sh``.

    Args:
        directory: Directory to measure

    Returns:
        Size text such as "412M" or "1.2G"

    Raises:
        DiskUsageError: If du is missing, fails, or the directory does not exist
    """
    path = Path(directory)
    if not path.is_dir():
        raise DiskUsageError(f"Directory does not exist: {directory}")

    du_path = shutil.which("du")
    if not du_path:
        raise DiskUsageError("du not found in PATH")

    try:
        result = subprocess.run(
            [du_path, "-sh", str(path)],
            capture_output=True,
            text=True,
            timeout=timeout,
            check=True,
        )
    except subprocess.TimeoutExpired:
        raise DiskUsageError(f"du timed out after {timeout} seconds")
    except subprocess.CalledProcessError as e:
        error_msg = (e.stderr or "Unknown error").strip()
        raise DiskUsageError(f"du failed: {error_msg}")

    # "412M\t/path/to/dir"
    fields = result.stdout.split()
    if not fields:
        raise DiskUsageError("du produced no output")
    return fields[0]
