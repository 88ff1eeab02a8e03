"""Task to load metadata saved by a previous estimate run."""

import logging

from buildscan.domain.exceptions import MetadataError
from buildscan.domain.models import Context
from buildscan.services.metadata import load_build_metadata
from buildscan.services.tasks import register

logger = logging.getLogger(__name__)


class LoadBuildMetadata:
    """Load build metadata and resolve which image to scan."""

    name = "load_build_metadata"

    def get_status_message(self, ctx: Context) -> str:
        return "Load build metadata"

    def run(self, ctx: Context) -> Context:
        log = ctx.log_display
        path = ctx.settings.metadata_file

        try:
            metadata = load_build_metadata(path)
        except MetadataError as e:
            logger.warning("%s", e)
            ctx.warnings.append(str(e))
            if log:
                log.write_warning(f"[{self.name}] WARN: {e}")
            metadata = None

        if metadata is None:
            if log:
                log.write_warning(
                    f"[{self.name}] WARN: No build metadata found at {path}. Using default image name."
                )
        elif ctx.image_name and metadata.image_name != ctx.image_name:
            # Sizes and build time of another image must not leak into this report
            logger.info(
                "Ignoring build metadata for %s while scanning %s",
                metadata.image_name,
                ctx.image_name,
            )
            if log:
                log.write(
                    f"[{self.name}] Build metadata describes {metadata.image_name}, not {ctx.image_name}. Ignoring it."
                )
        else:
            ctx.build_metadata = metadata
            if log:
                log.write(f"[{self.name}] Found build metadata: {path}")
                if metadata.build_timestamp:
                    log.write(f"[{self.name}] Image built at: {metadata.build_timestamp}")

        # An explicit --image or SCAN_IMAGE_NAME wins over the metadata file
        if not ctx.image_name:
            ctx.image_name = (
                metadata.image_name if metadata else ctx.settings.default_image_name
            )

        if log:
            log.write(f"[{self.name}] Image to scan: {ctx.image_name}")
        return ctx


# Auto-register this task
register(LoadBuildMetadata())
