"""The build-and-extract sequence: build image, create container, copy, remove.

The steps run strictly in order and the first failure stops the sequence. In
particular a failed copy leaves the container in place unless the caller asks for
``remove_on_failure``.
"""

from __future__ import annotations

from collections.abc import Callable
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum
import hashlib
from pathlib import Path
from pathlib import PurePosixPath
import shlex
import subprocess
from typing import Any

from .docker_cli import DockerCli
from .settings import BuildSettings


class BuildStep(Enum):
    """The four steps of a run, in execution order."""

    BUILD_IMAGE = ("build image", "Building image {image_name} from {dockerfile}...")
    CREATE_CONTAINER = (
        "create container",
        "Creating container {container_name} from image {image_name}...",
    )
    COPY_ARTIFACT = (
        "copy artifact",
        "Copying {container_name}:{artifact_path} to {destination}...",
    )
    REMOVE_CONTAINER = ("remove container", "Removing container {container_name}...")

    def __init__(self, label: str, status_template: str) -> None:
        self.label = label
        self._status_template = status_template

    def status_line(self, settings: BuildSettings) -> str:
        """Render the line announcing this step for ``settings``."""
        return self._status_template.format(**settings.as_dict())


class BuildStepError(RuntimeError):
    """An external tool invocation for one of the steps failed.

    :param BuildStep step: The step that failed.
    :param int returncode: Exit status of the external tool.
    :param cmd: The command that was run.
    """

    def __init__(
        self, step: BuildStep, returncode: int, cmd: Sequence[str] | str
    ) -> None:
        self.step = step
        self.returncode = returncode
        self.cmd = cmd
        cmd_text = cmd if isinstance(cmd, str) else shlex.join(str(c) for c in cmd)
        super().__init__(
            f"Step '{step.label}' failed with exit code {returncode}: {cmd_text}"
        )


class ArtifactError(RuntimeError):
    """The copy step succeeded but the destination holds no readable artifact file."""


@dataclass(frozen=True)
class BuildResult:
    """Outcome of a successful run."""

    settings: BuildSettings
    artifact: Path
    size: int
    sha256: str
    container_removed: bool


def run_build(
    settings: BuildSettings,
    docker: DockerCli | None = None,
    *,
    keep_container: bool = False,
    remove_on_failure: bool = False,
) -> BuildResult:
    """Build the image, extract the artifact and remove the container.

    A status line is printed before every step. The first step whose external tool
    exits with a non-zero status raises :class:`BuildStepError` and no later step
    runs.

    :param BuildSettings settings: Identifiers and paths for the run.
    :param DockerCli|None docker: CLI wrapper to use; built from
        ``settings.docker_command`` if omitted.
    :param bool keep_container: Skip the removal step and leave the container for
        inspection.
    :param bool remove_on_failure: Force-remove the container if the copy step
        fails, then re-raise.
    :return: Description of the extracted artifact.
    :rtype: BuildResult
    :raises BuildStepError: If any step fails.
    :raises ArtifactError: If the copied artifact is not a readable regular file.
    :raises ValueError: If both ``keep_container`` and ``remove_on_failure`` are set.
    """
    if keep_container and remove_on_failure:
        raise ValueError("keep_container and remove_on_failure are mutually exclusive")
    cli = docker if docker is not None else DockerCli(settings.docker_command)

    _run_step(
        BuildStep.BUILD_IMAGE,
        settings,
        lambda: cli.build_image(
            settings.image_name, settings.dockerfile, settings.context_dir
        ),
    )
    _run_step(
        BuildStep.CREATE_CONTAINER,
        settings,
        lambda: cli.create_container(settings.container_name, settings.image_name),
    )
    try:
        _run_step(
            BuildStep.COPY_ARTIFACT,
            settings,
            lambda: cli.copy_from_container(
                settings.container_name, settings.artifact_path, settings.destination
            ),
        )
    except BuildStepError:
        if remove_on_failure:
            print(
                f"Force-removing container {settings.container_name} after failed copy",
                flush=True,
            )
            cli.force_remove_container(settings.container_name)
        raise

    if keep_container:
        print(f"Container kept for debugging: {settings.container_name}", flush=True)
    else:
        _run_step(
            BuildStep.REMOVE_CONTAINER,
            settings,
            lambda: cli.remove_container(settings.container_name),
        )

    artifact = _resolve_artifact(settings)
    if not artifact.is_file():
        raise ArtifactError(f"Copied artifact is not a regular file: {artifact}")
    try:
        size, digest = _measure(artifact)
    except OSError as e:
        raise ArtifactError(f"Cannot read copied artifact {artifact}: {e}") from e
    return BuildResult(
        settings=settings,
        artifact=artifact,
        size=size,
        sha256=digest,
        container_removed=not keep_container,
    )


def _run_step(
    step: BuildStep, settings: BuildSettings, action: Callable[[], Any]
) -> None:
    print(step.status_line(settings), flush=True)
    try:
        action()
    except subprocess.CalledProcessError as e:
        raise BuildStepError(step, e.returncode, e.cmd) from e


def _resolve_artifact(settings: BuildSettings) -> Path:
    # docker cp places the file inside the destination when it is a directory
    dest = settings.destination_path
    if dest.is_dir():
        return dest / PurePosixPath(settings.artifact_path).name
    return dest


def _measure(path: Path) -> tuple[int, str]:
    sha = hashlib.sha256()
    size = 0
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(8192), b""):
            sha.update(chunk)
            size += len(chunk)
    return size, sha.hexdigest()
