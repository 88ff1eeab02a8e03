"""Task to measure container image sizes and estimate the total."""

import logging

from buildscan.adapters.docker_client import (
    DockerError,
    DockerNotFoundError,
    history_layer_sizes,
    image_exists,
    inspect_image_size,
    save_image_size,
)
from buildscan.domain.exceptions import PipelineFatalError
from buildscan.domain.models import Context
from buildscan.domain.sizes import (
    MIB,
    ImageSizeReport,
    estimate_total,
    format_mb,
    parse_size,
)
from buildscan.services.tasks import register

logger = logging.getLogger(__name__)


class MeasureImage:
    """Measure compressed and uncompressed image size and estimate the total."""

    name = "measure_image"

    def get_status_message(self, ctx: Context) -> str:
        return "Measure image size"

    def _warn(self, ctx: Context, message: str) -> None:
        logger.warning(message)
        ctx.warnings.append(message)
        if ctx.log_display:
            ctx.log_display.write_warning(f"[{self.name}] WARN: {message}")

    def _uncompressed_bytes(self, ctx: Context, image: str) -> float:
        """Best effort: sum of history layer sizes, then docker save byte count."""
        timeout = ctx.settings.command_timeout
        try:
            layer_sizes = history_layer_sizes(image, timeout=timeout)
            total = sum(parse_size(size, ctx.warnings) for size in layer_sizes)
            if total > 0:
                return total
        except DockerError as e:
            logger.debug("docker history failed for %s: %s", image, e)

        if ctx.log_display:
            ctx.log_display.write(
                f"[{self.name}] Calculating uncompressed size using docker save "
                "(this may take a moment)..."
            )
        try:
            return save_image_size(image, timeout=timeout)
        except DockerError as e:
            self._warn(ctx, f"Could not calculate uncompressed size: {e}")
            return 0

    def _measure_with_docker(self, ctx: Context, image: str) -> tuple[float, float]:
        timeout = ctx.settings.command_timeout
        try:
            if not image_exists(image, timeout=timeout):
                raise PipelineFatalError(
                    message=f"Docker image {image} not found. Build it first or specify a different image.",
                    source=self.name,
                )
        except DockerNotFoundError as e:
            raise PipelineFatalError(message=str(e), source=self.name) from e

        try:
            compressed = inspect_image_size(image, timeout=timeout)
        except DockerError as e:
            self._warn(ctx, f"Could not get virtual size for {image}: {e}")
            compressed = 0

        return compressed, self._uncompressed_bytes(ctx, image)

    def run(self, ctx: Context) -> Context:
        if not ctx.image_name:
            ctx.image_name = ctx.settings.default_image_name
        image = ctx.image_name

        metadata = ctx.build_metadata
        if metadata and metadata.image_name != image:
            metadata = None

        if metadata and metadata.compressed_size_mb:
            compressed = metadata.compressed_size_mb * MIB
            uncompressed = (metadata.uncompressed_size_mb or 0) * MIB
            if ctx.log_display:
                ctx.log_display.write(f"[{self.name}] Using sizes recorded in build metadata")
        else:
            compressed, uncompressed = self._measure_with_docker(ctx, image)

        artifact_text = ctx.artifact_size_text or (
            metadata.compiled_app_size if metadata else None
        )
        artifact_bytes = parse_size(artifact_text, ctx.warnings) if artifact_text else 0

        estimate = estimate_total(artifact_bytes, compressed, ctx.settings.overhead_bytes)
        if not estimate.available:
            self._warn(
                ctx,
                "Could not calculate estimated total image size "
                "(missing compiled app size and virtual size)",
            )

        ctx.image_report = ImageSizeReport(
            compressed_bytes=compressed,
            uncompressed_bytes=uncompressed,
            artifact_bytes=artifact_bytes,
            estimate=estimate,
        )

        if ctx.log_display:
            ctx.log_display.write(
                f"[{self.name}] Virtual size: {format_mb(compressed)}, "
                f"uncompressed: {format_mb(uncompressed)}"
            )
        return ctx


# Auto-register this task
register(MeasureImage())
