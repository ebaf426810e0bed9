"""Validation helpers for Docker image and container identifiers."""

import re


_CONTAINER_NAME_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.-]+$")
_PATH_COMPONENT_RE = re.compile(r"^[a-z0-9]+(?:(?:[._]|__|-+)[a-z0-9]+)*$")
_TAG_RE = re.compile(r"^[A-Za-z0-9_][A-Za-z0-9_.-]{0,127}$")


def validate_container_name(name: str) -> str:
    """Check that ``name`` is usable as a Docker container name.

    Docker accepts a leading letter or digit followed by letters, digits,
    underscores, periods or hyphens.

    :param str name: Candidate container name.
    :return: The unchanged ``name``.
    :rtype: str
    :raises ValueError: If ``name`` does not match the container-name grammar.
    """
    if not _CONTAINER_NAME_RE.match(name):
        raise ValueError(f"Invalid container name: {name!r}")
    return name


def validate_image_name(name: str) -> str:
    """Check that ``name`` is a Docker image reference of the form ``repo[:tag]``.

    The repository may have several ``/``-separated lower-case components, the
    first of which may be a registry host with a port.

    :param str name: Candidate image name.
    :return: The unchanged ``name``.
    :rtype: str
    :raises ValueError: If ``name`` is not a valid image reference.
    """
    repo, tag = _split_tag(name)
    if tag is not None and not _TAG_RE.match(tag):
        raise ValueError(f"Invalid image tag in {name!r}: {tag!r}")

    components = repo.split("/")
    if len(components) > 1 and _looks_like_registry(components[0]):
        components = components[1:]
    if not all(_PATH_COMPONENT_RE.match(c) for c in components):
        raise ValueError(f"Invalid image name: {name!r}")
    return name


def container_path_spec(container_name: str, path: str) -> str:
    """Return the ``container:path`` argument understood by ``docker cp``.

    :param str container_name: Name of the container.
    :param str path: Path inside the container.
    :return: The joined copy specification.
    :rtype: str
    """
    return f"{container_name}:{path}"


def _split_tag(name: str) -> tuple[str, str | None]:
    # A colon after the last slash separates the tag; earlier ones belong to a
    # registry port.
    last_slash = name.rfind("/")
    colon = name.rfind(":")
    if colon > last_slash:
        return name[:colon], name[colon + 1 :]
    return name, None


def _looks_like_registry(component: str) -> bool:
    return "." in component or ":" in component or component == "localhost"
