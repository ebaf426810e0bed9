from assertpy import assert_that
import pytest

from crossbuild.naming import container_path_spec
from crossbuild.naming import validate_container_name
from crossbuild.naming import validate_image_name


@pytest.mark.parametrize(
    "name", ["rust-get-system-info-windows-extract", "a1", "foo.bar_baz-9"]
)
def test_valid_container_names(name: str) -> None:
    assert_that(validate_container_name(name)).is_equal_to(name)


@pytest.mark.parametrize("name", ["", "x", "_leading", "has space", "mysql:5.7"])
def test_invalid_container_names(name: str) -> None:
    assert_that(validate_container_name).raises(ValueError).when_called_with(
        name
    )


@pytest.mark.parametrize(
    "name",
    [
        "rust-get-system-info-windows",
        "alpine:latest",
        "archivebox/archivebox:0.7.2",
        "localhost:5000/team/builder:v1",
        "ghcr.io/owner/image",
        "my__image",
    ],
)
def test_valid_image_names(name: str) -> None:
    assert_that(validate_image_name(name)).is_equal_to(name)


@pytest.mark.parametrize(
    "name",
    ["", "Upper", "trailing-", "alpine:", "alpine:bad tag", "a//b", "x:" + "t" * 129],
)
def test_invalid_image_names(name: str) -> None:
    assert_that(validate_image_name).raises(ValueError).when_called_with(name)


def test_container_path_spec() -> None:
    assert_that(container_path_spec("extract", "/app/bin/tool")).is_equal_to(
        "extract:/app/bin/tool"
    )
