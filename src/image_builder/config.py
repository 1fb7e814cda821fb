"""Configuration schema for image-builder using Pydantic."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Optional, Union

import yaml
from pydantic import BaseModel, Field


class TagConfig(BaseModel):
    """A tag declared in the manifest."""

    name: str
    """Tag value (e.g., '1.0-amd64'); qualified with the repo name at load time."""

    is_local: bool = False
    """Local-only tags are applied at build time but never pushed."""


class PlatformConfig(BaseModel):
    """One buildable variant of an image."""

    dockerfile: Path
    """Path to the Dockerfile, relative to the manifest directory."""

    build_context: Optional[Path] = None
    """Build context directory. Defaults to the Dockerfile's directory."""

    os_type: str = "linux"
    architecture: str = "amd64"

    build_args: Dict[str, str] = Field(default_factory=dict)
    """Build arguments passed as '--build-arg key=value', in declaration order."""

    tags: List[TagConfig] = Field(default_factory=list)
    """Platform-specific tags."""


class ImageConfig(BaseModel):
    """A logical image made of one or more platform variants."""

    shared_tags: List[TagConfig] = Field(default_factory=list)
    """Tags applied to every platform build of this image."""

    platforms: List[PlatformConfig] = Field(default_factory=list)


class RepoConfig(BaseModel):
    """A repository of images."""

    name: str
    images: List[ImageConfig] = Field(default_factory=list)


class ManifestConfig(BaseModel):
    """Root object of a manifest file."""

    registry: Optional[str] = None
    """Registry that repo names are qualified with (e.g., 'myregistry.azurecr.io')."""

    repos: List[RepoConfig] = Field(default_factory=list)

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> ManifestConfig:
        """Loads and validates a ManifestConfig from a YAML file."""
        with open(path, "r") as f:
            data = yaml.safe_load(f)
        return cls.model_validate(data or {})


class RetryPolicy(BaseModel):
    """Bounded retry applied to retry-enabled external invocations."""

    max_attempts: int = Field(default=5, ge=1)
    """Total number of attempts, including the first one."""

    delay: float = Field(default=1.0, ge=0)
    """Seconds to wait before the first retry."""

    backoff: float = Field(default=2.0, ge=1)
    """Multiplier applied to the delay after each failed retry."""

    def delays(self) -> List[float]:
        """Returns the wait before each retry, in order."""
        return [self.delay * self.backoff**i for i in range(self.max_attempts - 1)]


class BuildOptions(BaseModel):
    """Runtime options of a build invocation."""

    push: bool = False
    skip_pulling: bool = False
    retry: bool = False
    """Retry failed 'docker build' invocations. Pushes and pulls always retry."""

    dry_run: bool = False

    paths: List[str] = Field(default_factory=list)
    """Dockerfile path patterns to build. Empty means all."""

    os_type: Optional[str] = None
    architecture: Optional[str] = None

    registry_override: Optional[str] = None
    repo_prefix: Optional[str] = None

    username: Optional[str] = None
    password: Optional[str] = None

    retry_policy: RetryPolicy = Field(default_factory=RetryPolicy)
