"""
Image localization.

Attachments uploaded to GitHub are only reachable through short-lived signed
URLs that appear in the rendered HTML, never in the markdown. We pull those
URLs out of the HTML, download each once into the scratch directory, and map
the attachment UUID to the local file so rendering can point markdown
references at the local copy.

Externally hosted images referenced in markdown are downloaded too, for
offline availability, but their references are not rewritten.
"""

import asyncio
import html
import logging
from collections.abc import Awaitable, Callable, Iterable
from pathlib import Path, PurePosixPath
from urllib.parse import urlsplit

from ghtranscript.services.github.constants import (
    ATTACHMENT_URL_PATTERN,
    AUTHENTICATED_IMAGE_HOST,
    AUTHENTICATED_IMAGE_PATTERN,
    DEFAULT_IMAGE_EXTENSION,
    EXTERNAL_IMAGE_PATTERN,
    IMAGE_EXTENSIONS,
    UUID_PATTERN,
)

logger = logging.getLogger(__name__)

# Downloads url to dest, returning False on any failure
Downloader = Callable[[str, Path], Awaitable[bool]]


def _dedupe(urls: Iterable[str]) -> list[str]:
    return list(dict.fromkeys(urls))


def find_authenticated_images(html_texts: Iterable[str]) -> list[str]:
    """Distinct signed image URLs from rendered HTML, entity-decoded."""
    return _dedupe(
        html.unescape(match.group(0))
        for text in html_texts
        for match in AUTHENTICATED_IMAGE_PATTERN.finditer(text or "")
    )


def find_external_images(markdown_texts: Iterable[str]) -> list[str]:
    """Distinct image URLs (by extension) in markdown, excluding GitHub's signed host."""
    return _dedupe(
        match.group(0)
        for text in markdown_texts
        for match in EXTERNAL_IMAGE_PATTERN.finditer(text or "")
        if AUTHENTICATED_IMAGE_HOST not in match.group(0)
    )


def attachment_id(url: str) -> str | None:
    """The UUID token embedded in an attachment URL's path, if any."""
    match = UUID_PATTERN.search(urlsplit(url).path)
    return match.group(0) if match else None


def image_extension(url: str) -> str:
    suffix = PurePosixPath(urlsplit(url).path).suffix.lower()
    return suffix if suffix in IMAGE_EXTENSIONS else DEFAULT_IMAGE_EXTENSION


async def localize_images(
    html_texts: Iterable[str],
    markdown_texts: Iterable[str],
    scratch_dir: Path,
    download: Downloader,
    max_concurrent: int = 8,
) -> dict[str, Path]:
    """
    Download every referenced image into scratch_dir (parallel).

    Each download writes its own file name (attachment UUID or per-image
    index), so concurrent writers never collide. Failed downloads are skipped.

    Args:
        html_texts: Rendered HTML of the body and comments
        markdown_texts: Markdown bodies to scan for external images
        scratch_dir: Existing, empty directory for this resource
        download: Raw downloader
        max_concurrent: Maximum simultaneous downloads

    Returns:
        Mapping of attachment UUID -> local path for successfully downloaded attachments
    """
    authenticated = find_authenticated_images(html_texts)
    external = find_external_images(markdown_texts)
    if not authenticated and not external:
        return {}

    jobs: list[tuple[str, Path, str | None]] = []
    seen_tokens: set[str] = set()
    for index, url in enumerate(authenticated, 1):
        token = attachment_id(url)
        # The same attachment can appear with differently signed URLs
        if token in seen_tokens:
            continue
        if token:
            seen_tokens.add(token)
        name = token or f"image-{index}"
        jobs.append((url, scratch_dir / f"{name}{image_extension(url)}", token))
    for index, url in enumerate(external, 1):
        jobs.append((url, scratch_dir / f"external-{index}{image_extension(url)}", None))

    # Use semaphore for concurrency control
    semaphore = asyncio.Semaphore(max_concurrent)

    async def fetch_with_limit(url: str, dest: Path) -> bool:
        async with semaphore:
            return await download(url, dest)

    results = await asyncio.gather(
        *(fetch_with_limit(url, dest) for url, dest, _ in jobs), return_exceptions=True
    )

    image_map: dict[str, Path] = {}
    failed = 0
    for (_, dest, token), ok in zip(jobs, results):
        if ok is not True:
            failed += 1
            continue
        if token:
            image_map[token] = dest

    logger.info(
        f"Localized {len(jobs) - failed}/{len(jobs)} image(s) "
        f"({len(authenticated)} attachment(s), {len(external)} external)"
    )
    return image_map


def apply_image_map(text: str, image_map: dict[str, Path]) -> str:
    """Point attachment references whose UUID was downloaded at the local file."""
    if not image_map:
        return text

    def substitute(match) -> str:
        local = image_map.get(match.group("id"))
        return str(local) if local is not None else match.group(0)

    return ATTACHMENT_URL_PATTERN.sub(substitute, text)
