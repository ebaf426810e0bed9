"""Containerized cross-compilation and artifact extraction.

Builds an image from a platform-specific Dockerfile, copies the compiled
executable out of a temporary container, and removes the container.
"""

from .docker_cli import DockerCli
from .pipeline import ArtifactError
from .pipeline import BuildResult
from .pipeline import BuildStep
from .pipeline import BuildStepError
from .pipeline import run_build
from .settings import BuildSettings
from .settings import load_settings_file
from .settings import settings_for_platform


__all__ = [
    "ArtifactError",
    "BuildResult",
    "BuildSettings",
    "BuildStep",
    "BuildStepError",
    "DockerCli",
    "load_settings_file",
    "run_build",
    "settings_for_platform",
]
