"""Size parsing and total image size estimation."""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from buildscan.domain.exceptions import SizeParseError

logger = logging.getLogger(__name__)

MIB = 1024 * 1024
DEFAULT_OVERHEAD_BYTES = 300 * MIB

_NUMBER_CHARS = "0123456789."


class SizeUnit(Enum):
    """Size units, all powers of 1024."""

    B = 1
    KB = 1024
    MB = 1024**2
    GB = 1024**3

    @property
    def multiplier(self) -> int:
        return self.value

    @classmethod
    def from_suffix(cls, suffix: str) -> "SizeUnit":
        """
        Resolve a unit suffix (case-insensitive).

        Raises:
            SizeParseError: If the suffix is not a known unit
        """
        normalized = suffix.upper()
        if normalized == "B":
            return cls.B
        elif normalized in ("KB", "K"):
            return cls.KB
        elif normalized in ("MB", "M"):
            return cls.MB
        elif normalized in ("GB", "G"):
            return cls.GB
        raise SizeParseError(suffix, f"unknown unit {suffix!r}" if suffix else "missing unit")


def parse_size_bytes(text: str) -> float:
    """
    Parse a ``<number><unit>`` string into a byte count.

    Args:
        text: Size text such as "512MB", "1.2 GB" or "77K"

    Returns:
        Number of bytes

    Raises:
        SizeParseError: If the text is not a recognised size
    """
    if not isinstance(text, str):
        raise SizeParseError(text, "not a string")

    candidate = text.strip()
    number_end = 0
    while number_end < len(candidate) and candidate[number_end] in _NUMBER_CHARS:
        number_end += 1

    number_text = candidate[:number_end]
    if not number_text:
        raise SizeParseError(text, "missing number")

    try:
        value = float(number_text)
    except ValueError:
        raise SizeParseError(text, f"invalid number {number_text!r}") from None

    try:
        unit = SizeUnit.from_suffix(candidate[number_end:].strip())
    except SizeParseError as e:
        raise SizeParseError(text, e.reason) from None
    return value * unit.multiplier


def parse_size(text: str, warnings: Optional[list[str]] = None) -> float:
    """
    Parse a size string, treating anything unparseable as unknown (0).

    Args:
        text: Size text
        warnings: Optional list that receives a message on failure

    Returns:
        Number of bytes, or 0 when the text could not be parsed
    """
    try:
        return parse_size_bytes(text)
    except SizeParseError as e:
        message = f"{e}. Returning 0 bytes."
        logger.warning(message)
        if warnings is not None:
            warnings.append(message)
        return 0


def bytes_to_mb(size_bytes: float) -> float:
    """Convert bytes to MiB."""
    return size_bytes / MIB


def format_mb(size_bytes: Optional[float]) -> str:
    """Render a byte count as "12.34 MB", or "N/A" when unknown."""
    if not size_bytes:
        return "N/A"
    return f"{bytes_to_mb(size_bytes):.2f} MB"


@dataclass(frozen=True)
class SizeEstimate:
    """Estimated total image size (artifact + virtual size + overhead)."""

    total_bytes: Optional[float]
    artifact_bytes: float = 0
    image_bytes: float = 0
    overhead_bytes: float = DEFAULT_OVERHEAD_BYTES

    @property
    def available(self) -> bool:
        return self.total_bytes is not None


def estimate_total(
    artifact_bytes: float,
    image_bytes: float,
    overhead_bytes: float = DEFAULT_OVERHEAD_BYTES,
) -> SizeEstimate:
    """
    Estimate the total image size.

    The overhead accounts for filesystem layers that neither the compiled
    artifact directory nor the engine's virtual size capture.

    Args:
        artifact_bytes: Size of the compiled artifact directory (0 = unknown)
        image_bytes: Virtual size reported by the container engine (0 = unknown)
        overhead_bytes: Fixed overhead buffer

    Returns:
        SizeEstimate; ``total_bytes`` is None when both inputs are unknown
    """
    artifact_bytes = max(artifact_bytes or 0, 0)
    image_bytes = max(image_bytes or 0, 0)

    if artifact_bytes == 0 and image_bytes == 0:
        return SizeEstimate(
            total_bytes=None,
            artifact_bytes=0,
            image_bytes=0,
            overhead_bytes=overhead_bytes,
        )

    return SizeEstimate(
        total_bytes=artifact_bytes + image_bytes + overhead_bytes,
        artifact_bytes=artifact_bytes,
        image_bytes=image_bytes,
        overhead_bytes=overhead_bytes,
    )


@dataclass(frozen=True)
class ImageSizeReport:
    """Measured and estimated sizes of a container image."""

    compressed_bytes: float = 0
    uncompressed_bytes: float = 0
    artifact_bytes: float = 0
    estimate: SizeEstimate = SizeEstimate(total_bytes=None)

    @property
    def estimated_total_bytes(self) -> Optional[float]:
        return self.estimate.total_bytes
