"""
Link hydration.

Bare issue/PR URLs in bodies are turned into markdown links carrying the
target's title: " https://github.com/o/r/issues/5" becomes
" [Fix crash](https://github.com/o/r/issues/5)". Titles are looked up
concurrently, one request per distinct URL; failed lookups leave the URL as is.
"""

import asyncio
import logging
import re
from collections.abc import Awaitable, Callable, Iterable, MutableMapping

from ghtranscript.services.github.constants import ISSUE_LINK_PARTS, ISSUE_LINK_PATTERN

logger = logging.getLogger(__name__)

# Resolves a URL to its title, or returns the URL itself when it can't
TitleLookup = Callable[[str], Awaitable[str]]


def find_issue_links(texts: Iterable[str]) -> list[str]:
    """Distinct whitespace-preceded issue/PR URLs across texts, in first-seen order."""
    seen: dict[str, None] = {}
    for text in texts:
        for match in ISSUE_LINK_PATTERN.finditer(text or ""):
            seen.setdefault(match.group(0), None)
    return list(seen)


def split_issue_link(url: str) -> tuple[str, str, int] | None:
    """Extract (owner, repo, number) from an issue/PR URL."""
    match = ISSUE_LINK_PARTS.match(url)
    if not match:
        return None
    return match.group("owner"), match.group("repo"), int(match.group("number"))


async def resolve_link_titles(
    urls: Iterable[str],
    lookup: TitleLookup,
    cache: MutableMapping[str, str] | None = None,
) -> dict[str, str]:
    """
    Look up titles for all URLs concurrently.

    Args:
        urls: Distinct issue/PR URLs
        lookup: Async title resolver returning the URL itself on failure
        cache: Optional memo shared across attempts of one invocation

    Returns:
        Mapping of URL -> title for every URL whose title differs from the URL
    """
    cache = cache if cache is not None else {}
    pending = [url for url in urls if url not in cache]

    if pending:
        results = await asyncio.gather(*(lookup(url) for url in pending), return_exceptions=True)
        for url, result in zip(pending, results):
            if isinstance(result, BaseException):
                logger.debug(f"Title lookup raised for {url}: {result}")
                result = url
            cache[url] = result

    return {url: cache[url] for url in urls if url in cache and cache[url] != url}


def apply_link_titles(text: str, titles: dict[str, str]) -> str:
    """
    Replace every " <url>" with " [<title>](<url>)".

    Only space-prefixed occurrences are rewritten. A URL immediately followed
    by a word character or one of "/#?" is left alone, so /issues/5 never
    rewrites /issues/55 or a comment permalink.
    """
    for url, title in titles.items():
        if not title or title == url:
            continue
        pattern = re.compile(" " + re.escape(url) + r"(?![\w/#?])")
        text = pattern.sub(lambda _m, t=title, u=url: f" [{t}]({u})", text)
    return text


def make_title_lookup(
    fetch_title: Callable[[str, str, int], Awaitable[str | None]],
) -> TitleLookup:
    """Adapt an (owner, repo, number) -> title fetcher into a TitleLookup."""

    async def lookup(url: str) -> str:
        parts = split_issue_link(url)
        if parts is None:
            return url
        title = await fetch_title(*parts)
        return title or url

    return lookup
