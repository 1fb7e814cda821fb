"""Error taxonomy for image-builder."""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional, Union


class ImageBuilderError(Exception):
    """Base class for fatal build orchestration errors."""


class ConfigurationError(ImageBuilderError):
    """Raised when the manifest or options cannot be resolved (e.g. an unknown repo)."""


class CommandError(ImageBuilderError):
    """Raised when an external command exits non-zero or its SDK call fails."""

    def __init__(
        self,
        message: str,
        command: Optional[List[str]] = None,
        exit_code: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.command = command or []
        self.exit_code = exit_code


class HookError(ImageBuilderError):
    """Raised when an existing build hook exits non-zero."""

    def __init__(self, script_path: Union[str, Path], cause: Optional[Exception] = None):
        super().__init__(f"Failed to execute build hook '{script_path}'")
        self.script_path = Path(script_path)
        self.cause = cause
