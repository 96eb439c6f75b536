"""Per-invocation render context.

Everything the renderers need from side-fetches (downloaded image paths,
resolved link titles) plus the display time zone is passed around
explicitly in a RenderContext; nothing lives in module globals.
"""

from dataclasses import dataclass, field
from datetime import tzinfo
from pathlib import Path

from cachetools import LRUCache  # type: ignore[import-untyped]

# Enough for every distinct issue link in a very long thread
LINK_TITLE_CACHE_SIZE = 512


def new_title_cache() -> LRUCache:
    """A fresh url -> title memo, scoped to one invocation."""
    return LRUCache(maxsize=LINK_TITLE_CACHE_SIZE)


@dataclass(frozen=True)
class RenderContext:
    """Side-channel data consumed while rendering one document."""

    image_map: dict[str, Path] = field(default_factory=dict)  # attachment UUID -> local file
    link_titles: dict[str, str] = field(default_factory=dict)  # issue/PR URL -> title
    tz: tzinfo | None = None  # None = local time zone
