"""The Planner turns a manifest file into the filtered ManifestInfo view used by the orchestrator."""

from __future__ import annotations

import logging
from dataclasses import replace
from fnmatch import fnmatch
from pathlib import Path
from typing import List, Optional, Tuple

from .config import BuildOptions, ImageConfig, ManifestConfig, PlatformConfig, RepoConfig
from .docker_utils import get_repo, parse_from_images
from .manifest import ImageInfo, ManifestInfo, PlatformInfo, RepoInfo, TagInfo

logger = logging.getLogger(__name__)


class Planner:
    """Applies path/OS/architecture filters and registry overrides to a manifest."""

    def __init__(self, config: ManifestConfig, options: BuildOptions, base_dir: Path = Path(".")):
        self.config = config
        self.options = options
        self.base_dir = base_dir

    @property
    def overrides_enabled(self) -> bool:
        return bool(self.options.registry_override or self.options.repo_prefix)

    def qualify_repo_name(self, repo: RepoConfig) -> str:
        registry = self.options.registry_override or self.config.registry
        name = f"{self.options.repo_prefix or ''}{repo.name}"
        return f"{registry}/{name}" if registry else name

    def plan(self) -> ManifestInfo:
        """
        Builds the filtered view.

        1. Drops platforms that don't match the filters, then images without platforms,
           then repos without images.
        2. When a registry or repo prefix override is set, records each platform's FROM
           images that refer to a filtered repo so they can be rewritten before the build.
        """
        images: List[ImageInfo] = []
        repos: List[RepoInfo] = []

        for repo_config in self.config.repos:
            repo_name = self.qualify_repo_name(repo_config)
            repo_images = [
                image
                for image in (self._plan_image(repo_name, i) for i in repo_config.images)
                if image is not None
            ]
            if repo_images:
                images.extend(repo_images)
                repos.append(RepoInfo(model_name=repo_config.name, name=repo_name))

        manifest = ManifestInfo(images=tuple(images), repos=tuple(repos))
        if self.overrides_enabled:
            manifest = self._apply_overrides(manifest)
        return manifest

    def _plan_image(self, repo_name: str, image: ImageConfig) -> Optional[ImageInfo]:
        platforms = tuple(
            self._plan_platform(repo_name, p) for p in image.platforms if self._matches(p)
        )
        if not platforms:
            return None
        return ImageInfo(shared_tags=self._tags(repo_name, image.shared_tags), platforms=platforms)

    def _plan_platform(self, repo_name: str, platform: PlatformConfig) -> PlatformInfo:
        dockerfile_path = self.base_dir / platform.dockerfile
        if platform.build_context is not None:
            build_context = self.base_dir / platform.build_context
        else:
            build_context = dockerfile_path.parent
        return PlatformInfo(
            dockerfile_path=dockerfile_path,
            build_context_path=build_context,
            build_args=dict(platform.build_args),
            tags=self._tags(repo_name, platform.tags),
            os_type=platform.os_type,
            architecture=platform.architecture,
        )

    @staticmethod
    def _tags(repo_name: str, tags) -> Tuple[TagInfo, ...]:
        return tuple(
            TagInfo(name=t.name, fully_qualified_name=f"{repo_name}:{t.name}", is_local=t.is_local)
            for t in tags
        )

    def _matches(self, platform: PlatformConfig) -> bool:
        if self.options.os_type and platform.os_type != self.options.os_type:
            return False
        if self.options.architecture and platform.architecture != self.options.architecture:
            return False
        if not self.options.paths:
            return True

        dockerfile = platform.dockerfile.as_posix()
        directory = platform.dockerfile.parent.as_posix()
        for pattern in self.options.paths:
            prefix = pattern.rstrip("/") + "/"
            if fnmatch(dockerfile, pattern) or fnmatch(directory, pattern) or dockerfile.startswith(prefix):
                return True
        return False

    def _apply_overrides(self, manifest: ManifestInfo) -> ManifestInfo:
        renamed = {r.model_name for r in manifest.repos if r.model_name != r.name}
        images = []
        for image in manifest.images:
            platforms = []
            for platform in image.platforms:
                content = Path(platform.dockerfile_path).read_text()
                overridden = tuple(
                    dict.fromkeys(
                        from_image
                        for from_image in parse_from_images(content)
                        if get_repo(from_image) in renamed
                    )
                )
                if overridden:
                    logger.debug("%s overrides %s", platform.dockerfile_path, ", ".join(overridden))
                platforms.append(replace(platform, overridden_from_images=overridden))
            images.append(replace(image, platforms=tuple(platforms)))
        return replace(manifest, images=tuple(images))
