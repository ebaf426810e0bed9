"""Command-line entry point: cross-compile in a container and extract the binary.

Run without arguments to build with the default platform settings. Every setting
can be overridden from a JSON file (``--config``) and then from individual flags.
"""

import argparse
from argparse import ArgumentParser
from collections.abc import Sequence
import os.path
import subprocess
import sys
from typing import Final

from .docker_cli import DockerCli
from .pipeline import ArtifactError
from .pipeline import BuildResult
from .pipeline import BuildStepError
from .pipeline import run_build
from .settings import DEFAULT_PLATFORM
from .settings import PLATFORM_TARGETS
from .settings import BuildSettings
from .settings import load_settings_file
from .settings import settings_for_platform


EXIT_USAGE: Final[int] = 2
EXIT_NOT_FOUND: Final[int] = 127
EXIT_INTERRUPTED: Final[int] = 130

_OVERRIDE_FLAGS: Final[dict[str, str]] = {
    "image_name": "Tag for the built image.",
    "container_name": "Fixed name of the temporary container.",
    "dockerfile": "Build-definition file.",
    "context_dir": "Build context directory.",
    "artifact_path": "Absolute path of the executable inside the image.",
    "destination": "Host path to copy the executable to.",
    "docker_command": "Container CLI executable (e.g. docker or podman).",
}


def script_entry_point() -> None:
    """Console-script entry point that delegates to :func:`main`."""
    sys.exit(main(tuple(sys.argv[1:]), sys.argv[0]))


def main(cmd_args: Sequence[str], prog_path: str) -> int:
    """Execute the command-line interface.

    :param cmd_args: Command arguments for the program.
    :type cmd_args: Sequence[str]
    :param str prog_path: The program path (i.e., sys.argv[0] or equivalent).
    :return: Exit code: 0 on success, the failing tool's exit status otherwise.
    :rtype: int
    """
    parser = _get_parser(os.path.basename(prog_path))
    parsed_args = parser.parse_args(cmd_args)

    try:
        settings = _resolve_settings(parsed_args)
    except (ValueError, FileNotFoundError) as e:
        print(f"error: {e}", file=sys.stderr)
        return EXIT_USAGE

    docker = DockerCli(settings.docker_command)
    try:
        docker.ensure_available()
    except FileNotFoundError:
        print(
            f"error: container CLI not found: {settings.docker_command}",
            file=sys.stderr,
        )
        return EXIT_NOT_FOUND
    except subprocess.CalledProcessError as e:
        print(
            f"error: {settings.docker_command} is not usable: {e.stderr.strip()}",
            file=sys.stderr,
        )
        return _exit_status(e.returncode)

    try:
        result = run_build(
            settings,
            docker,
            keep_container=parsed_args.keep_container,
            remove_on_failure=parsed_args.remove_on_failure,
        )
    except BuildStepError as e:
        print(f"error: {e}", file=sys.stderr)
        return _exit_status(e.returncode)
    except ArtifactError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("Interrupted.", file=sys.stderr)
        return EXIT_INTERRUPTED

    _print_summary(result)
    return 0


def _resolve_settings(parsed_args: argparse.Namespace) -> BuildSettings:
    settings = settings_for_platform(parsed_args.platform)
    if parsed_args.config is not None:
        settings = load_settings_file(parsed_args.config, settings)
    return settings.with_overrides(
        **{name: getattr(parsed_args, name) for name in _OVERRIDE_FLAGS}
    )


def _exit_status(returncode: int) -> int:
    # Negative codes mean the tool died from a signal.
    return returncode if returncode > 0 else 1


def _print_summary(result: BuildResult) -> None:
    print(f"Extracted {result.artifact} ({result.size} bytes)", flush=True)
    print(f"  sha256: {result.sha256}", flush=True)


def _get_parser(prog_name: str) -> ArgumentParser:
    parser = ArgumentParser(
        prog=prog_name,
        description=(
            "Build the cross-compilation image, copy the compiled executable out of "
            "a temporary container and remove the container."
        ),
        formatter_class=lambda prog: argparse.HelpFormatter(prog, width=80),
    )
    parser.add_argument(
        "--platform",
        choices=sorted(PLATFORM_TARGETS),
        default=DEFAULT_PLATFORM,
        help=f"Target platform whose defaults to use (default: {DEFAULT_PLATFORM}).",
    )
    parser.add_argument(
        "--config",
        default=None,
        metavar="PATH",
        help="JSON file with settings overrides.",
    )
    for name, help_text in _OVERRIDE_FLAGS.items():
        parser.add_argument(
            "--" + name.replace("_", "-"), dest=name, default=None, help=help_text
        )

    cleanup = parser.add_mutually_exclusive_group()
    cleanup.add_argument(
        "--keep-container",
        action="store_true",
        help="Keep the container after copying, for debugging.",
    )
    cleanup.add_argument(
        "--remove-on-failure",
        action="store_true",
        help="Remove the container even when copying the artifact fails.",
    )
    return parser
