"""Tag composition and push staging."""

from __future__ import annotations

from typing import Iterable, List, Sequence

from ..manifest import ImageInfo, TagInfo


def resolve_tags(image: ImageInfo, platform_tags: Sequence[str]) -> List[str]:
    """
    Resolves the full tag list of a platform build.

    The image's shared tags come first, in declaration order, followed by the
    platform tags. Duplicates are kept.
    """
    return [tag.fully_qualified_name for tag in image.shared_tags] + list(platform_tags)


def get_tag_args(tags: Iterable[str]) -> List[str]:
    args: List[str] = []
    for tag in tags:
        args += ["-t", tag]
    return args


def pushable_tags(built_tags: Iterable[TagInfo]) -> List[str]:
    """Fully-qualified names of built tags that aren't local-only, in build order."""
    return [tag.fully_qualified_name for tag in built_tags if not tag.is_local]
