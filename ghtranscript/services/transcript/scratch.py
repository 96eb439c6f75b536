"""Scratch directory provisioning for downloaded images."""

import logging
import shutil
import tempfile
from pathlib import Path

from ghtranscript.services.github.types import ResourceRef

logger = logging.getLogger(__name__)


def provision_scratch_dir(ref: ResourceRef, root: str | Path | None = None) -> Path:
    """
    Create an empty directory scoped to one issue or pull request.

    Any previous content for the same resource is removed first, so every
    attempt starts from a clean slate.

    Args:
        ref: The resource whose images will be stored
        root: Parent directory (default: the system temp dir)

    Returns:
        Path of the empty, writable directory
    """
    base = Path(root) if root else Path(tempfile.gettempdir())
    path = base / f"ghtranscript-{ref.slug}"

    if path.exists():
        shutil.rmtree(path)
    path.mkdir(parents=True)

    logger.debug(f"Provisioned scratch directory {path}")
    return path
