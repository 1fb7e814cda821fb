"""Rewrites base-image FROM references into a private copy of a Dockerfile."""

from __future__ import annotations

import logging
import re
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator

from ..docker_utils import get_repo, replace_repo
from ..manifest import ManifestInfo, PlatformInfo

logger = logging.getLogger(__name__)

PRIVATE_DOCKERFILE_SUFFIX = ".temp"


def override_from_reference(dockerfile_content: str, old_image: str, new_image: str) -> str:
    """
    Replaces every ``FROM <old_image>`` with ``FROM <new_image>`` across the document.

    The keyword is followed by any whitespace and an optional ``--platform=<value>`` flag,
    which is kept. Trailing whitespace on the same line is consumed. It is dropped at
    the end of a line and collapsed to a single space before a trailing clause such
    as ``AS build``.
    """
    pattern = re.compile(
        rf"FROM\s+(?P<flag>--platform=\S+\s+)?{re.escape(old_image)}(?=\s|$)"
        r"(?P<trailing>[^\S\r\n]*)(?P<eol>[\r\n]|$)?"
    )

    def substitute(match: re.Match) -> str:
        replacement = f"FROM {match.group('flag') or ''}{new_image}"
        if match.group("eol") is not None or not match.group("trailing"):
            return replacement + (match.group("eol") or "")
        return replacement + " "

    return pattern.sub(substitute, dockerfile_content)


@dataclass(frozen=True)
class RewriteResult:
    rewritten: bool
    path: Path


class DockerfileOverrider:
    """Points overridden FROM images at the qualified repos of the filtered manifest."""

    def __init__(self, manifest: ManifestInfo):
        self.manifest = manifest

    def rewrite(self, platform: PlatformInfo) -> RewriteResult:
        dockerfile_path = Path(platform.dockerfile_path)
        if not platform.overridden_from_images:
            return RewriteResult(False, dockerfile_path)

        content = dockerfile_path.read_text()
        for from_image in platform.overridden_from_images:
            repo = self.manifest.get_repo(get_repo(from_image))
            new_from_image = replace_repo(from_image, repo.name)
            logger.info("Replacing FROM `%s` with `%s`", from_image, new_from_image)
            content = override_from_reference(content, from_image, new_from_image)

        private_path = dockerfile_path.with_name(dockerfile_path.name + PRIVATE_DOCKERFILE_SUFFIX)
        logger.info("Writing updated Dockerfile: %s", private_path)
        logger.debug(content)
        try:
            private_path.write_text(content)
        except OSError:
            private_path.unlink(missing_ok=True)
            raise
        return RewriteResult(True, private_path)


@contextmanager
def private_dockerfile(overrider: DockerfileOverrider, platform: PlatformInfo) -> Iterator[Path]:
    """Yields the Dockerfile to build with; a rewritten copy is deleted on exit."""
    result = overrider.rewrite(platform)
    try:
        yield result.path
    finally:
        if result.rewritten:
            result.path.unlink()
