"""Read and write the build metadata file shared by estimate and scan runs."""

import json
import logging
from pathlib import Path
from typing import Optional

from buildscan.domain.exceptions import MetadataError
from buildscan.domain.models import BuildMetadata

logger = logging.getLogger(__name__)


def _optional_float(data: dict, key: str) -> Optional[float]:
    value = data.get(key)
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        logger.warning("Ignoring non-numeric %s in build metadata: %r", key, value)
        return None


def load_build_metadata(path: Path) -> Optional[BuildMetadata]:
    """
    Load build metadata if the file exists.

    Args:
        path: Path to the metadata JSON file

    Returns:
        BuildMetadata, or None when the file does not exist

    Raises:
        MetadataError: If the file cannot be read or lacks an image name
    """
    path = Path(path)
    if not path.exists():
        return None

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise MetadataError(f"Could not read build metadata {path}: {e}") from e

    if not isinstance(data, dict):
        raise MetadataError(f"Build metadata {path} is not a JSON object")

    image_name = data.get("image_name")
    if not isinstance(image_name, str) or not image_name:
        raise MetadataError(f"Build metadata {path} has no image_name")

    build_times = data.get("build_times") or {}
    if not isinstance(build_times, dict):
        logger.warning("Ignoring malformed build_times in %s", path)
        build_times = {}

    compiled_app_size = data.get("compiled_app_size")
    return BuildMetadata(
        image_name=image_name,
        build_timestamp=data.get("build_timestamp"),
        compressed_size_mb=_optional_float(data, "compressed_size_mb"),
        uncompressed_size_mb=_optional_float(data, "uncompressed_size_mb"),
        compiled_app_size=compiled_app_size if isinstance(compiled_app_size, str) else None,
        build_times=build_times,
    )


def save_build_metadata(path: Path, metadata: BuildMetadata) -> Path:
    """Write build metadata as indented JSON and return the path."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    data = {
        "image_name": metadata.image_name,
        "build_timestamp": metadata.build_timestamp,
        "compressed_size_mb": metadata.compressed_size_mb,
        "uncompressed_size_mb": metadata.uncompressed_size_mb,
        "compiled_app_size": metadata.compiled_app_size,
        "build_times": metadata.build_times,
    }
    path.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")
    return path
