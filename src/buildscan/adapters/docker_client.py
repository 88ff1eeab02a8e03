"""Docker CLI adapter for image introspection."""

import os
import shutil
import subprocess
import tempfile


class DockerError(Exception):
    """Base exception for Docker-related errors."""

    pass


class DockerNotFoundError(DockerError):
    """Raised when Docker CLI is not found in PATH."""

    pass


def _docker_path() -> str:
    docker_path = shutil.which("docker")
    if not docker_path:
        raise DockerNotFoundError(
            "Docker CLI not found. Install from https://docs.docker.com/get-docker/"
        )
    return docker_path


def _run_docker(args: list[str], timeout: int = 300) -> str:
    """
    Run a docker subcommand and return its stdout.

    Raises:
        DockerNotFoundError: If Docker CLI is not available
        DockerError: If the command fails or times out
    """
    docker_path = _docker_path()
    try:
        result = subprocess.run(
            [docker_path, *args],
            capture_output=True,
            text=True,
            timeout=timeout,
            check=True,
        )
    except subprocess.TimeoutExpired:
        raise DockerError(f"docker {args[0]} timed out after {timeout} seconds")
    except subprocess.CalledProcessError as e:
        error_msg = (e.stderr or e.stdout or "Unknown error").strip()
        raise DockerError(f"docker {args[0]} failed: {error_msg}")
    except FileNotFoundError:
        raise DockerNotFoundError(
            "Docker CLI not found. Install from https://docs.docker.com/get-docker/"
        )
    return result.stdout


def image_exists(image: str, timeout: int = 60) -> bool:
    """Return True if ``docker image inspect`` knows the image."""
    try:
        _run_docker(["image", "inspect", image], timeout=timeout)
    except DockerNotFoundError:
        raise
    except DockerError:
        return False
    return True


def inspect_image_size(image: str, timeout: int = 60) -> int:
    """
    Return the virtual size of an image in bytes.

    Args:
        image: Image reference or ID

    Returns:
        Size reported by ``docker image inspect --format {{.Size}}``

    Raises:
        DockerError: If the image cannot be inspected or the output is not a number
    """
    output = _run_docker(
        ["image", "inspect", image, "--format", "{{.Size}}"], timeout=timeout
    ).strip()
    try:
        return int(output)
    except ValueError:
        raise DockerError(f"Unexpected size output from docker image inspect: {output!r}")


def history_layer_sizes(image: str, timeout: int = 60) -> list[str]:
    """
    Return the per-layer size strings from ``docker history``.

    Layers reported as ``<missing>`` are skipped.
    """
    output = _run_docker(
        ["history", image, "--no-trunc", "--format", "{{.Size}}"], timeout=timeout
    )
    return [
        line.strip()
        for line in output.splitlines()
        if line.strip() and "<missing>" not in line
    ]


def save_image_size(image: str, timeout: int = 900) -> int:
    """
    Count the bytes of ``docker save`` output without keeping the archive.

    The archive is streamed to an anonymous temporary file so the timeout
    covers the whole export; docker is killed when it expires.

    Raises:
        DockerError: If docker save fails or times out
    """
    docker_path = _docker_path()
    with tempfile.TemporaryFile() as archive:
        try:
            subprocess.run(
                [docker_path, "save", image],
                stdout=archive,
                stderr=subprocess.PIPE,
                timeout=timeout,
                check=True,
            )
        except subprocess.TimeoutExpired:
            raise DockerError(f"docker save timed out after {timeout} seconds")
        except subprocess.CalledProcessError as e:
            stderr = e.stderr or b""
            if isinstance(stderr, bytes):
                stderr = stderr.decode(errors="replace")
            error_msg = stderr.strip() or "Unknown error"
            raise DockerError(f"docker save failed: {error_msg}")
        except FileNotFoundError:
            raise DockerNotFoundError(
                "Docker CLI not found. Install from https://docs.docker.com/get-docker/"
            )
        archive.flush()
        return os.fstat(archive.fileno()).st_size
