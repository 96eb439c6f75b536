"""Command-line entry point: render one issue or pull request URL to stdout."""

import argparse
import asyncio
import logging
import sys

from ghtranscript.config import Settings, settings
from ghtranscript.services.github import InvalidResourceURL
from ghtranscript.services.transcript import TranscriptError, render_document


def setup_logging(verbose: bool = False) -> None:
    """Configure application logging."""
    # Format: timestamp - level - logger name - message
    log_format = "%(asctime)s | %(levelname)-7s | %(name)s | %(message)s"
    date_format = "%H:%M:%S"

    # stdout carries the document, so logs go to stderr
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format=log_format,
        datefmt=date_format,
        stream=sys.stderr,
        force=True,
    )

    # Reduce noise from third-party libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("hpack").setLevel(logging.WARNING)


logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ghtranscript",
        description="Render a GitHub issue or pull request as one chronological markdown document.",
    )
    parser.add_argument("url", help="Issue or pull request URL, e.g. https://github.com/o/r/pull/12")
    parser.add_argument(
        "--diff-threshold",
        type=int,
        default=None,
        help=f"Changed lines at which the diff is replaced by a file list (default: {settings.diff_threshold})",
    )
    parser.add_argument(
        "--scratch-dir",
        default=None,
        help="Parent directory for downloaded images (default: system temp dir)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def resolve_settings(args: argparse.Namespace, base: Settings = settings) -> Settings:
    """Apply CLI overrides on top of environment settings."""
    overrides = {}
    if args.scratch_dir:
        overrides["scratch_root"] = args.scratch_dir
    if args.diff_threshold is not None:
        overrides["diff_threshold"] = args.diff_threshold
    return base.model_copy(update=overrides) if overrides else base


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    config = resolve_settings(args)
    setup_logging(args.verbose or config.debug)

    if not config.authenticated:
        logger.info("GITHUB_TOKEN is not set; using unauthenticated requests (60/hour)")

    try:
        document = asyncio.run(render_document(args.url, config=config))
    except InvalidResourceURL as e:
        logger.error(str(e))
        return 2
    except TranscriptError as e:
        logger.error(str(e))
        return 1

    sys.stdout.write(document)
    return 0


if __name__ == "__main__":
    sys.exit(main())
