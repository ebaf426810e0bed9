"""Thin wrapper over the docker CLI subcommands used to build and extract artifacts.

Each method runs exactly one external process and waits for it. The tool's own
output goes straight to the console; a non-zero exit status raises
:class:`subprocess.CalledProcessError`.
"""

from __future__ import annotations

from collections.abc import Sequence
from functools import cached_property
import subprocess
from subprocess import CompletedProcess

from .naming import container_path_spec


class DockerCli:
    """Run docker subcommands for the build, create, copy and remove steps.

    :param str docker_command: Executable to invoke, e.g. ``docker`` or ``podman``.
    """

    def __init__(self, docker_command: str = "docker") -> None:
        self._docker_command = docker_command

    @cached_property
    def docker_command(self) -> str:
        """Get the container CLI executable.

        :return: The executable this wrapper invokes.
        :rtype: str
        """
        return self._docker_command

    def ensure_available(self) -> str:
        """Verify the container CLI can be executed.

        :return: The version banner printed by the CLI.
        :rtype: str
        :raises FileNotFoundError: If the executable cannot be found.
        :raises subprocess.CalledProcessError: If the CLI exits with an error.
        """
        res = self._run(["--version"], capture_output=True)
        return res.stdout.strip()

    def build_image(
        self, image_name: str, dockerfile: str, context_dir: str
    ) -> CompletedProcess[str]:
        """Build an image with ``docker build``.

        :param str image_name: Tag to apply to the image.
        :param str dockerfile: Build-definition file.
        :param str context_dir: Build context directory.
        :return: Completed process result.
        :rtype: subprocess.CompletedProcess[str]
        """
        return self._run(["build", "-t", image_name, "-f", dockerfile, context_dir])

    def create_container(
        self, container_name: str, image_name: str
    ) -> CompletedProcess[str]:
        """Create a stopped container with ``docker create``.

        :param str container_name: Name to register the container under.
        :param str image_name: Image to instantiate.
        :return: Completed process result.
        :rtype: subprocess.CompletedProcess[str]
        """
        return self._run(["create", "--name", container_name, image_name])

    def copy_from_container(
        self, container_name: str, src_path: str, dest_path: str
    ) -> CompletedProcess[str]:
        """Copy a path out of a container with ``docker cp``.

        An existing file at ``dest_path`` is overwritten.

        :param str container_name: Container to copy from.
        :param str src_path: Path inside the container.
        :param str dest_path: Path on the host.
        :return: Completed process result.
        :rtype: subprocess.CompletedProcess[str]
        """
        return self._run(
            ["cp", container_path_spec(container_name, src_path), dest_path]
        )

    def remove_container(self, container_name: str) -> CompletedProcess[str]:
        """Remove a container and its writable layer with ``docker rm``.

        :param str container_name: Container to remove.
        :return: Completed process result.
        :rtype: subprocess.CompletedProcess[str]
        """
        return self._run(["rm", container_name])

    def force_remove_container(self, container_name: str) -> None:
        """Force-remove a container with ``docker rm -f``, ignoring the outcome.

        Used to discard the container after a failed copy; output is discarded and
        a non-zero exit status is not reported.

        :param str container_name: Container to remove.
        """
        subprocess.run(
            [self._docker_command, "rm", "-f", container_name],
            check=False,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
        )

    def container_exists(self, container_name: str) -> bool:
        """Tell whether a container with the given name exists, running or not."""
        return self._inspect("container", container_name)

    def image_exists(self, image_name: str) -> bool:
        """Tell whether an image with the given reference exists locally."""
        return self._inspect("image", image_name)

    def _inspect(self, kind: str, name: str) -> bool:
        res = self._run(
            [kind, "inspect", "--format", "{{.Id}}", name],
            capture_output=True,
            check=False,
        )
        return res.returncode == 0

    def _run(
        self,
        args: Sequence[str],
        *,
        capture_output: bool = False,
        check: bool = True,
    ) -> CompletedProcess[str]:
        return subprocess.run(
            [self._docker_command, *args],
            check=check,
            capture_output=capture_output,
            text=True,
        )
