"""Build settings: image and container identifiers, paths, and their defaults.

Each supported platform has a fixed set of defaults. They can be overridden from a
JSON file and from the command line, but the identifiers stay fixed for the whole
run and are never persisted.
"""

from __future__ import annotations

from dataclasses import asdict
from dataclasses import dataclass
from dataclasses import fields
from dataclasses import replace
import json
from pathlib import Path
from pathlib import PurePosixPath
from typing import Any
from typing import Final

from .naming import validate_container_name
from .naming import validate_image_name


PROGRAM_NAME: Final[str] = "RustGetSystemInfo"
DEFAULT_PLATFORM: Final[str] = "windows"
DEFAULT_DOCKER_COMMAND: Final[str] = "docker"
DEFAULT_CONTEXT_DIR: Final[str] = "."


@dataclass(frozen=True)
class PlatformTarget:
    """Defaults for cross-compiling the program for one platform."""

    image_name: str
    container_name: str
    dockerfile: str
    artifact_path: str
    destination: str


PLATFORM_TARGETS: Final[dict[str, PlatformTarget]] = {
    "windows": PlatformTarget(
        image_name="rust-get-system-info-windows",
        container_name="rust-get-system-info-windows-extract",
        dockerfile="Dockerfile.windows",
        artifact_path=f"/app/target/x86_64-pc-windows-gnu/release/{PROGRAM_NAME}.exe",
        destination=f"{PROGRAM_NAME}.exe",
    ),
    "linux": PlatformTarget(
        image_name="rust-get-system-info-linux",
        container_name="rust-get-system-info-linux-extract",
        dockerfile="Dockerfile.linux",
        artifact_path=f"/app/target/x86_64-unknown-linux-musl/release/{PROGRAM_NAME}",
        destination=PROGRAM_NAME,
    ),
}


@dataclass(frozen=True)
class BuildSettings:
    """Everything one build-and-extract run needs.

    :param str image_name: Tag applied to the built image.
    :param str container_name: Fixed name of the container to create and remove.
    :param str dockerfile: Build-definition file, relative to the working directory.
    :param str context_dir: Build context directory.
    :param str artifact_path: Absolute path of the executable inside the image.
    :param str destination: Host path the executable is copied to.
    :param str docker_command: Container CLI executable.
    """

    image_name: str
    container_name: str
    dockerfile: str
    artifact_path: str
    destination: str
    context_dir: str = DEFAULT_CONTEXT_DIR
    docker_command: str = DEFAULT_DOCKER_COMMAND

    def __post_init__(self) -> None:
        validate_image_name(self.image_name)
        validate_container_name(self.container_name)
        if not PurePosixPath(self.artifact_path).is_absolute():
            raise ValueError(
                f"artifact_path must be an absolute path, got {self.artifact_path!r}"
            )
        for name in ("dockerfile", "destination", "context_dir", "docker_command"):
            if not getattr(self, name):
                raise ValueError(f"{name} must not be empty")

    @property
    def destination_path(self) -> Path:
        """Host path of the extracted artifact.

        :return: The destination as a :class:`Path`.
        :rtype: Path
        """
        return Path(self.destination)

    def with_overrides(self, **changes: str | None) -> BuildSettings:
        """Return a copy with the non-``None`` ``changes`` applied.

        :param str|None **changes: Field values to replace.
        :return: A new, validated settings record.
        :rtype: BuildSettings
        :raises ValueError: If a key is not a settings field or a value is invalid.
        """
        _check_keys(changes)
        return replace(self, **{k: v for k, v in changes.items() if v is not None})

    def as_dict(self) -> dict[str, str]:
        """Return the settings as a plain mapping of field name to value.

        :return: Field values keyed by field name.
        :rtype: dict[str, str]
        """
        return asdict(self)


def settings_for_platform(platform: str) -> BuildSettings:
    """Return the default settings for ``platform``.

    :param str platform: One of the keys of :data:`PLATFORM_TARGETS`.
    :return: Default settings for the platform.
    :rtype: BuildSettings
    :raises ValueError: If the platform is unknown.
    """
    try:
        target = PLATFORM_TARGETS[platform]
    except KeyError:
        known = ", ".join(sorted(PLATFORM_TARGETS))
        raise ValueError(f"Unknown platform {platform!r} (known: {known})") from None
    return BuildSettings(**asdict(target))


def load_settings_file(path: str | Path, base: BuildSettings) -> BuildSettings:
    """Apply the overrides stored in a JSON file on top of ``base``.

    The file must hold a JSON object whose keys are :class:`BuildSettings` field
    names and whose values are strings.

    :param path: Path of the JSON file.
    :type path: str | Path
    :param BuildSettings base: Settings to start from.
    :return: The overridden settings.
    :rtype: BuildSettings
    :raises FileNotFoundError: If the file does not exist.
    :raises ValueError: If the file content is not a valid override object.
    """
    config_path = Path(path)
    if not config_path.is_file():
        raise FileNotFoundError(f"Settings file not found: {config_path}")

    try:
        data: Any = json.loads(config_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in {config_path}: {e}") from e

    if not isinstance(data, dict):
        raise ValueError(f"Expected a JSON object in {config_path}")
    for key, value in data.items():
        if not isinstance(value, str):
            raise ValueError(
                f"Expected a string for {key!r} in {config_path}, got {value!r}"
            )
    return base.with_overrides(**data)


def _check_keys(changes: dict[str, Any]) -> None:
    known = {f.name for f in fields(BuildSettings)}
    unknown = sorted(set(changes) - known)
    if unknown:
        raise ValueError(f"Unknown settings: {', '.join(unknown)}")
