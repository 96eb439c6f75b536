"""
Transcript service package.

Turns the raw resources fetched from GitHub into one chronological markdown
document.
Usage: `from ghtranscript.services.transcript import render_document`

Module structure:
- orchestrator.py: Concurrent fetch, retry loop and the render_document entry point
- pipeline.py: Chronological merge, grouping and document assembly
- render.py: Per-kind renderers and the document header
- grouping.py: Contiguous timeline event grouping
- links.py: Issue link discovery and title hydration
- images.py: Image discovery, download and URL rewriting
- diff_policy.py: Diff verbosity and CI status sections
- scratch.py: Per-resource scratch directory
- context.py: Render context shared by all renderers
"""

from ghtranscript.services.transcript.context import RenderContext, new_title_cache
from ghtranscript.services.transcript.grouping import group_events, joins_group
from ghtranscript.services.transcript.orchestrator import (
    FetchedResources,
    RenderOutcome,
    TranscriptError,
    TranscriptOrchestrator,
    render_document,
)
from ghtranscript.services.transcript.pipeline import build_document, render_timeline

__all__ = [
    # Entry point
    "render_document",
    "TranscriptOrchestrator",
    "RenderOutcome",
    "FetchedResources",
    "TranscriptError",
    # Pipeline
    "build_document",
    "render_timeline",
    "group_events",
    "joins_group",
    # Context
    "RenderContext",
    "new_title_cache",
]
