"""Wrapper for executing image builds and pushes via the Docker CLI."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Optional, Sequence

from ..execute import CommandExecutor
from ..exporters.tags import get_tag_args


def get_build_args(build_args: Dict[str, str]) -> List[str]:
    args: List[str] = []
    for key, value in build_args.items():
        args += ["--build-arg", f"{key}={value}"]
    return args


class DockerBuilder:
    """Interfaces with 'docker build' and 'docker push'."""

    def __init__(self, executor: CommandExecutor):
        self.executor = executor

    def build_command(
        self,
        dockerfile_path: Path,
        context_path: Path,
        tags: Sequence[str],
        build_args: Dict[str, str],
        platform: Optional[str] = None,
    ) -> List[str]:
        platform_args = ["--platform", platform] if platform else []
        return [
            "build",
            *platform_args,
            *get_tag_args(tags),
            "-f",
            str(dockerfile_path),
            *get_build_args(build_args),
            str(context_path),
        ]

    def build(
        self,
        dockerfile_path: Path,
        context_path: Path,
        tags: Sequence[str],
        build_args: Dict[str, str],
        platform: Optional[str] = None,
        retry: bool = False,
    ) -> None:
        args = self.build_command(dockerfile_path, context_path, tags, build_args, platform)
        self.executor.execute("docker", args, retry=retry)

    def push(self, tag: str) -> None:
        self.executor.execute_with_retry("docker", ["push", tag])
