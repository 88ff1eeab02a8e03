"""Task to save measured sizes for a later scan run."""

import logging
from datetime import datetime, timezone

from buildscan.domain.exceptions import MetadataError, PipelineFatalError
from buildscan.domain.models import BuildMetadata, Context
from buildscan.domain.sizes import bytes_to_mb
from buildscan.services.metadata import load_build_metadata, save_build_metadata
from buildscan.services.tasks import register

logger = logging.getLogger(__name__)


def _mb_or_none(size_bytes: float):
    return round(bytes_to_mb(size_bytes), 2) if size_bytes else None


class SaveBuildMetadata:
    """Persist image name and sizes to the build metadata file."""

    name = "save_build_metadata"

    def get_status_message(self, ctx: Context) -> str:
        return "Save build metadata"

    def run(self, ctx: Context) -> Context:
        path = ctx.settings.metadata_file

        # Build durations recorded by the build step survive a re-measure
        build_times: dict[str, float] = {}
        try:
            previous = load_build_metadata(path)
        except MetadataError as e:
            logger.debug("Replacing unreadable build metadata: %s", e)
            previous = None
        if previous and previous.image_name == ctx.image_name:
            build_times = previous.build_times

        report = ctx.image_report
        metadata = BuildMetadata(
            image_name=ctx.image_name or ctx.settings.default_image_name,
            build_timestamp=datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ"),
            compressed_size_mb=_mb_or_none(report.compressed_bytes) if report else None,
            uncompressed_size_mb=_mb_or_none(report.uncompressed_bytes) if report else None,
            compiled_app_size=ctx.artifact_size_text,
            build_times=build_times,
        )

        try:
            save_build_metadata(path, metadata)
        except OSError as e:
            raise PipelineFatalError(
                message=f"Failed to write build metadata {path}: {e}",
                source=self.name,
            ) from e

        ctx.build_metadata = metadata
        if ctx.log_display:
            ctx.log_display.write(f"[{self.name}] Build metadata saved to: {path}")
        return ctx


# Auto-register this task
register(SaveBuildMetadata())
