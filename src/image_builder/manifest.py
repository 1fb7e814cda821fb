"""Read-only, filtered view of a manifest consumed by the build orchestrator."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Tuple

from .errors import ConfigurationError


@dataclass(frozen=True)
class TagInfo:
    name: str
    fully_qualified_name: str
    is_local: bool = False


@dataclass(frozen=True)
class PlatformInfo:
    """A single buildable unit: Dockerfile, context, build args and tags."""

    dockerfile_path: Path
    build_context_path: Path
    build_args: Dict[str, str] = field(default_factory=dict)
    tags: Tuple[TagInfo, ...] = ()
    overridden_from_images: Tuple[str, ...] = ()
    os_type: str = "linux"
    architecture: str = "amd64"

    @property
    def platform(self) -> str:
        """Engine platform string, e.g. 'linux/arm64'."""
        return f"{self.os_type}/{self.architecture}"


@dataclass(frozen=True)
class ImageInfo:
    shared_tags: Tuple[TagInfo, ...] = ()
    platforms: Tuple[PlatformInfo, ...] = ()
    """Platforms remaining after filtering, in manifest order."""


@dataclass(frozen=True)
class RepoInfo:
    model_name: str
    """Name declared in the manifest."""

    name: str
    """Qualified name after registry and repo-prefix overrides."""


@dataclass(frozen=True)
class ManifestInfo:
    images: Tuple[ImageInfo, ...] = ()
    repos: Tuple[RepoInfo, ...] = ()

    def get_repo(self, model_name: str) -> RepoInfo:
        """Returns the filtered repo declared as ``model_name``."""
        matches: List[RepoInfo] = [r for r in self.repos if r.model_name == model_name]
        if not matches:
            raise ConfigurationError(f"Unknown repo '{model_name}' in the filtered manifest.")
        if len(matches) > 1:
            raise ConfigurationError(f"Repo '{model_name}' is declared more than once.")
        return matches[0]
