"""Docker helpers: image reference parsing, base-image discovery and pulls."""

from __future__ import annotations

import logging
import re
from functools import partial
from pathlib import Path
from typing import TYPE_CHECKING, Callable, List, Optional, Tuple

import docker
from docker.errors import DockerException

from .errors import CommandError

if TYPE_CHECKING:
    from .execute import CommandExecutor
    from .manifest import ManifestInfo

logger = logging.getLogger(__name__)

FROM_INSTRUCTION = re.compile(
    r"^\s*FROM\s+(?:--platform=\S+\s+)?(?P<image>\S+)(?:\s+AS\s+(?P<stage>\S+))?",
    re.IGNORECASE | re.MULTILINE,
)

_client: Optional[docker.DockerClient] = None


def docker_client() -> docker.DockerClient:
    """Returns a process-wide Docker SDK client configured from the environment."""
    global _client
    if _client is None:
        _client = docker.from_env()
    return _client


def check_docker_daemon() -> bool:
    """Returns True when the Docker daemon answers a ping."""
    try:
        return bool(docker_client().ping())
    except DockerException as e:
        logger.error("Docker daemon is not reachable: %s", e)
        return False


def get_repo(image: str) -> str:
    """Strips the tag or digest from an image reference.

    ``myregistry:5000/dotnet/runtime:6.0`` -> ``myregistry:5000/dotnet/runtime``
    """
    repo = image.split("@", 1)[0]
    last_slash = repo.rfind("/")
    last_colon = repo.rfind(":")
    if last_colon > last_slash:
        repo = repo[:last_colon]
    return repo


def replace_repo(image: str, new_repo: str) -> str:
    """Swaps the repository of an image reference, keeping its tag or digest."""
    return new_repo + image[len(get_repo(image)):]


def parse_from_images(dockerfile_content: str) -> List[str]:
    """Returns the base images referenced by FROM instructions, in order.

    Build stages, ``scratch`` and references using build arguments are skipped.
    """
    images: List[str] = []
    stages = set()
    for match in FROM_INSTRUCTION.finditer(dockerfile_content):
        image = match.group("image")
        stage = match.group("stage")
        if image.lower() not in stages and image != "scratch" and "$" not in image:
            images.append(image)
        if stage:
            stages.add(stage.lower())
    return images


def external_base_images(manifest: ManifestInfo) -> List[Tuple[str, str]]:
    """Distinct (image, platform) pairs of FROM images that no manifest repo produces."""
    internal_repos = set()
    for repo in manifest.repos:
        internal_repos.update((repo.model_name, repo.name))

    images: List[Tuple[str, str]] = []
    for image in manifest.images:
        for platform in image.platforms:
            content = Path(platform.dockerfile_path).read_text()
            for from_image in parse_from_images(content):
                pair = (from_image, platform.platform)
                if get_repo(from_image) in internal_repos or pair in images:
                    continue
                images.append(pair)
    return images


class BaseImagePuller:
    """Pulls the external base images of a filtered manifest through the Docker SDK."""

    def __init__(
        self,
        executor: CommandExecutor,
        client_factory: Callable[[], docker.DockerClient] = docker_client,
    ):
        self.executor = executor
        self.client_factory = client_factory

    def pull(self, manifest: ManifestInfo) -> List[Tuple[str, str]]:
        """Pulls every base image once for each platform that builds on it."""
        images = external_base_images(manifest)
        for image, platform in images:
            self.executor.run(
                partial(self._pull, image, platform),
                f"docker pull --platform {platform} {image}",
                retry=True,
            )
        return images

    def _pull(self, image: str, platform: str) -> None:
        try:
            self.client_factory().images.pull(image, platform=platform)
        except DockerException as e:
            raise CommandError(
                f"Failed to pull '{image}' ({platform}): {e}",
                ["docker", "pull", "--platform", platform, image],
            ) from e
