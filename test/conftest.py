from pathlib import Path
from pathlib import PurePosixPath
import subprocess
from subprocess import CompletedProcess

import pytest

from crossbuild.settings import PLATFORM_TARGETS


WINDOWS_ARTIFACT_BYTES = b"MZ\x90\x00fake windows executable"
LINUX_ARTIFACT_BYTES = b"\x7fELFfake linux executable"


class FakeDocker:
    """In-memory stand-in for the container engine, driven like ``DockerCli``.

    Every built image gets the files in ``image_files``. Steps named in
    ``fail_on`` exit with ``fail_code``.
    """

    def __init__(self, image_files: dict[str, bytes]) -> None:
        self.image_files = dict(image_files)
        self.images: set[str] = set()
        self.containers: dict[str, str] = {}
        self.calls: list[str] = []
        self.fail_on: set[str] = set()
        self.fail_code = 1
        self.missing = False

    def ensure_available(self) -> str:
        if self.missing:
            raise FileNotFoundError("docker")
        return "Docker version 0.0.0-fake"

    def build_image(
        self, image_name: str, dockerfile: str, context_dir: str
    ) -> CompletedProcess[str]:
        cmd = ["docker", "build", "-t", image_name, "-f", dockerfile, context_dir]
        self._enter("build", cmd)
        self.images.add(image_name)
        return CompletedProcess(cmd, 0)

    def create_container(
        self, container_name: str, image_name: str
    ) -> CompletedProcess[str]:
        cmd = ["docker", "create", "--name", container_name, image_name]
        self._enter("create", cmd)
        if container_name in self.containers or image_name not in self.images:
            raise subprocess.CalledProcessError(125, cmd)
        self.containers[container_name] = image_name
        return CompletedProcess(cmd, 0)

    def copy_from_container(
        self, container_name: str, src_path: str, dest_path: str
    ) -> CompletedProcess[str]:
        cmd = ["docker", "cp", f"{container_name}:{src_path}", dest_path]
        self._enter("copy", cmd)
        if container_name not in self.containers or src_path not in self.image_files:
            raise subprocess.CalledProcessError(1, cmd)
        dest = Path(dest_path)
        if dest.is_dir():
            dest = dest / PurePosixPath(src_path).name
        dest.write_bytes(self.image_files[src_path])
        return CompletedProcess(cmd, 0)

    def remove_container(self, container_name: str) -> CompletedProcess[str]:
        cmd = ["docker", "rm", container_name]
        self._enter("remove", cmd)
        if container_name not in self.containers:
            raise subprocess.CalledProcessError(1, cmd)
        del self.containers[container_name]
        return CompletedProcess(cmd, 0)

    def force_remove_container(self, container_name: str) -> None:
        self.calls.append("force-remove")
        self.containers.pop(container_name, None)

    def container_exists(self, container_name: str) -> bool:
        return container_name in self.containers

    def image_exists(self, image_name: str) -> bool:
        return image_name in self.images

    def _enter(self, step: str, cmd: list[str]) -> None:
        self.calls.append(step)
        if step in self.fail_on:
            raise subprocess.CalledProcessError(self.fail_code, cmd)


@pytest.fixture
def fake_docker() -> FakeDocker:
    return FakeDocker(
        {
            PLATFORM_TARGETS["windows"].artifact_path: WINDOWS_ARTIFACT_BYTES,
            PLATFORM_TARGETS["linux"].artifact_path: LINUX_ARTIFACT_BYTES,
        }
    )
