"""Runtime settings resolved from environment variables."""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from buildscan.domain.sizes import MIB

DEFAULT_IMAGE_BASE_NAME = "app-local"
DEFAULT_IMAGE_TAG = "dev"
DEFAULT_METADATA_FILE = ".build_metadata.json"
DEFAULT_ARTIFACT_DIR = "./compiled_app_output"
DEFAULT_OVERHEAD_MB = 300
DEFAULT_COMMAND_TIMEOUT = 600


def _env_int(env: Mapping[str, str], key: str, default: int, minimum: int = 0) -> int:
    raw = env.get(key)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{key} must be an integer, got {raw!r}")
    if value < minimum:
        raise ValueError(f"{key} must be at least {minimum}, got {value}")
    return value


@dataclass(frozen=True)
class Settings:
    """Settings for a buildscan run."""

    image_base_name: str = DEFAULT_IMAGE_BASE_NAME
    image_tag: str = DEFAULT_IMAGE_TAG
    scan_image_name: Optional[str] = None
    metadata_file: Path = Path(DEFAULT_METADATA_FILE)
    reports_dir: Path = Path(".")
    artifact_dir: Path = Path(DEFAULT_ARTIFACT_DIR)
    overhead_mb: int = DEFAULT_OVERHEAD_MB
    command_timeout: int = DEFAULT_COMMAND_TIMEOUT

    def __post_init__(self):
        if self.overhead_mb < 0:
            raise ValueError(f"overhead_mb must not be negative, got {self.overhead_mb}")
        if self.command_timeout < 1:
            raise ValueError(f"command_timeout must be positive, got {self.command_timeout}")

    @property
    def default_image_name(self) -> str:
        return f"{self.image_base_name}:{self.image_tag}"

    @property
    def overhead_bytes(self) -> int:
        return self.overhead_mb * MIB

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "Settings":
        """
        Build settings from environment variables.

        Uses IMAGE_BASE_NAME, IMAGE_TAG, SCAN_IMAGE_NAME, BUILD_METADATA_FILE,
        REPORTS_DIR, COMPILED_APP_DIR, SIZE_OVERHEAD_MB and COMMAND_TIMEOUT.
        """
        env = os.environ if env is None else env
        return cls(
            image_base_name=env.get("IMAGE_BASE_NAME") or DEFAULT_IMAGE_BASE_NAME,
            image_tag=env.get("IMAGE_TAG") or DEFAULT_IMAGE_TAG,
            scan_image_name=env.get("SCAN_IMAGE_NAME") or None,
            metadata_file=Path(env.get("BUILD_METADATA_FILE") or DEFAULT_METADATA_FILE),
            reports_dir=Path(env.get("REPORTS_DIR") or ".").expanduser(),
            artifact_dir=Path(env.get("COMPILED_APP_DIR") or DEFAULT_ARTIFACT_DIR),
            overhead_mb=_env_int(env, "SIZE_OVERHEAD_MB", DEFAULT_OVERHEAD_MB),
            command_timeout=_env_int(env, "COMMAND_TIMEOUT", DEFAULT_COMMAND_TIMEOUT, minimum=1),
        )
