"""Result of a build invocation and its JSON export."""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Tuple

from .manifest import TagInfo


@dataclass(frozen=True)
class BuildSummary:
    """Outcome of a build invocation."""

    built_tags: Tuple[TagInfo, ...] = ()
    pushed_tags: Tuple[str, ...] = ()

    @property
    def built_tag_names(self) -> Tuple[str, ...]:
        return tuple(tag.fully_qualified_name for tag in self.built_tags)

    def save(self, path: Path) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump(
                {"built_tags": list(self.built_tag_names), "pushed_tags": list(self.pushed_tags)},
                f,
                indent=2,
            )
