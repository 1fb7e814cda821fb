import pytest
from docker.errors import APIError
from image_builder.config import RetryPolicy
from image_builder.docker_utils import (
    BaseImagePuller,
    external_base_images,
    get_repo,
    parse_from_images,
    replace_repo,
)
from image_builder.errors import CommandError
from image_builder.execute import CommandExecutor
from image_builder.manifest import ImageInfo, ManifestInfo, PlatformInfo, RepoInfo

@pytest.mark.parametrize(
    "image, repo",
    [
        ("debian", "debian"),
        ("debian:12", "debian"),
        ("dotnet/runtime:8.0-alpine", "dotnet/runtime"),
        ("localhost:5000/dotnet/runtime:8.0", "localhost:5000/dotnet/runtime"),
        ("localhost:5000/dotnet/runtime", "localhost:5000/dotnet/runtime"),
        ("alpine@sha256:abc123", "alpine"),
    ],
)
def test_get_repo(image, repo):
    assert get_repo(image) == repo

def test_replace_repo_keeps_tag_and_digest():
    assert replace_repo("base:1.0", "mirror.io/base") == "mirror.io/base:1.0"
    assert replace_repo("base@sha256:abc", "mirror.io/base") == "mirror.io/base@sha256:abc"
    assert replace_repo("base", "mirror.io/base") == "mirror.io/base"

def test_parse_from_images():
    dockerfile = """
ARG BASE=debian:12
FROM --platform=linux/amd64 golang:1.22 AS build
RUN go build
FROM build AS test
FROM ${BASE}
from alpine:3.19
FROM scratch
COPY --from=build /app /app
"""
    assert parse_from_images(dockerfile) == ["golang:1.22", "alpine:3.19"]

def make_manifest(tmp_path, contents, architectures=None):
    platforms = []
    for i, content in enumerate(contents):
        dockerfile = tmp_path / f"Dockerfile.{i}"
        dockerfile.write_text(content)
        architecture = architectures[i] if architectures else "amd64"
        platforms.append(
            PlatformInfo(dockerfile_path=dockerfile, build_context_path=tmp_path, architecture=architecture)
        )
    return ManifestInfo(
        images=(ImageInfo(platforms=tuple(platforms)),),
        repos=(RepoInfo(model_name="base", name="mirror.io/base"),),
    )

def test_external_base_images_skips_internal_and_duplicates(tmp_path):
    manifest = make_manifest(
        tmp_path,
        ["FROM debian:12\n", "FROM base:1.0\n", "FROM debian:12\nFROM mirror.io/base:2.0\nFROM alpine\n"],
    )
    assert external_base_images(manifest) == [("debian:12", "linux/amd64"), ("alpine", "linux/amd64")]

def test_puller_pulls_with_docker_sdk(tmp_path, mocker):
    manifest = make_manifest(tmp_path, ["FROM debian:12\nFROM alpine:3.19\n"])
    client = mocker.MagicMock()

    puller = BaseImagePuller(CommandExecutor(), client_factory=lambda: client)
    assert puller.pull(manifest) == [("debian:12", "linux/amd64"), ("alpine:3.19", "linux/amd64")]

    assert client.images.pull.call_args_list == [
        mocker.call("debian:12", platform="linux/amd64"),
        mocker.call("alpine:3.19", platform="linux/amd64"),
    ]

def test_puller_pulls_each_platform_of_a_base_image(tmp_path, mocker):
    manifest = make_manifest(
        tmp_path,
        ["FROM debian:12\n", "FROM debian:12\n", "FROM debian:12\n"],
        architectures=["amd64", "arm64", "arm64"],
    )
    client = mocker.MagicMock()

    BaseImagePuller(CommandExecutor(), client_factory=lambda: client).pull(manifest)

    assert client.images.pull.call_args_list == [
        mocker.call("debian:12", platform="linux/amd64"),
        mocker.call("debian:12", platform="linux/arm64"),
    ]

def test_puller_retries_and_raises(tmp_path, mocker):
    manifest = make_manifest(tmp_path, ["FROM debian:12\n"])
    client = mocker.MagicMock()
    client.images.pull.side_effect = APIError("registry unavailable")
    executor = CommandExecutor(retry_policy=RetryPolicy(max_attempts=3), sleep=lambda _: None)

    with pytest.raises(CommandError):
        BaseImagePuller(executor, client_factory=lambda: client).pull(manifest)
    assert client.images.pull.call_count == 3

def test_puller_dry_run(tmp_path, mocker):
    manifest = make_manifest(tmp_path, ["FROM debian:12\n"])
    client_factory = mocker.MagicMock()

    BaseImagePuller(CommandExecutor(dry_run=True), client_factory=client_factory).pull(manifest)
    client_factory.assert_not_called()
