"""Sequences pull, build, push and summary for a filtered manifest."""

from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from .builders.docker import DockerBuilder
from .builders.dockerfile_override import DockerfileOverrider, private_dockerfile
from .builders.hooks import HookInvoker
from .config import BuildOptions
from .docker_utils import BaseImagePuller
from .execute import CommandExecutor
from .exporters.tags import pushable_tags, resolve_tags
from .identity import Identity
from .manifest import ImageInfo, ManifestInfo, PlatformInfo, TagInfo
from .report import Reporter
from .summary import BuildSummary

logger = logging.getLogger(__name__)


class BuildOrchestrator:
    """
    Builds every filtered platform of every filtered image, in manifest order.

    Any build, hook or I/O failure is fatal and propagates out of ``run``; images
    are only pushed once every platform has been built.
    """

    def __init__(
        self,
        manifest: ManifestInfo,
        options: BuildOptions,
        executor: Optional[CommandExecutor] = None,
        puller: Optional[BaseImagePuller] = None,
        builder: Optional[DockerBuilder] = None,
        hooks: Optional[HookInvoker] = None,
        identity: Optional[Identity] = None,
        reporter: Optional[Reporter] = None,
    ):
        self.manifest = manifest
        self.options = options
        self.executor = executor or CommandExecutor(options.dry_run, options.retry_policy)
        self.puller = puller or BaseImagePuller(self.executor)
        self.builder = builder or DockerBuilder(self.executor)
        self.hooks = hooks or HookInvoker(self.executor)
        self.identity = identity or Identity()
        self.reporter = reporter or Reporter()
        self.overrider = DockerfileOverrider(manifest)

    def run(self) -> BuildSummary:
        self.pull_base_images()
        built_tags = self.build_images()

        pushed_tags: Tuple[str, ...] = ()
        if built_tags:
            pushed_tags = self.push_images(built_tags)

        summary = BuildSummary(built_tags=built_tags, pushed_tags=pushed_tags)
        self.write_summary(summary)
        return summary

    def pull_base_images(self) -> None:
        if not self.options.skip_pulling:
            self.puller.pull(self.manifest)

    def build_images(self) -> Tuple[TagInfo, ...]:
        self.reporter.heading("BUILDING IMAGES")
        built_tags: List[TagInfo] = []
        for image in self.manifest.images:
            for platform in image.platforms:
                built_tags.extend(self.build_platform(image, platform))
        return tuple(built_tags)

    def build_platform(self, image: ImageInfo, platform: PlatformInfo) -> Tuple[TagInfo, ...]:
        """Builds one platform and returns its tags once the build and hooks succeed."""
        logger.debug("Building %s (%s)", platform.dockerfile_path, platform.platform)
        with private_dockerfile(self.overrider, platform) as dockerfile_path:
            self.hooks.invoke("pre-build", platform.build_context_path)

            # Shared tags are applied too; some FROM instructions depend on them.
            platform_tags = [tag.fully_qualified_name for tag in platform.tags]
            self.builder.build(
                dockerfile_path,
                platform.build_context_path,
                resolve_tags(image, platform_tags),
                platform.build_args,
                platform=platform.platform,
                retry=self.options.retry,
            )

            self.hooks.invoke("post-build", platform.build_context_path)
        return platform.tags

    def push_images(self, built_tags: Tuple[TagInfo, ...]) -> Tuple[str, ...]:
        if not self.options.push:
            return ()

        self.reporter.heading("PUSHING IMAGES")
        tags = pushable_tags(built_tags)
        with self.identity.run_as():
            for tag in tags:
                self.builder.push(tag)
        return tuple(tags)

    def write_summary(self, summary: BuildSummary) -> None:
        self.reporter.heading("IMAGES BUILT")
        if summary.built_tags:
            for tag in summary.built_tag_names:
                self.reporter.message(tag)
        else:
            self.reporter.message("No images built")
        self.reporter.message()
