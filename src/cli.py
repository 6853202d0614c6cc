#!/usr/bin/env python3
"""Generate release notes for a diff from the command line.

Streams the model output to stdout while it arrives, then prints the four
extracted sections and caches them under the pull-request id.

Examples:
    release-notes generate --diff-file change.diff --id 42 --title "Fix parser"
    release-notes show --id 42
    release-notes clear --id 42
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from core.config import get_settings
from schemas.notes import ExtractedNotes, PullRequestItem
from services.notes.cache import NotesCache
from services.notes.client import ReleaseNotesClient
from services.notes.session import PullRequestNotes


logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
    stream=sys.stderr,
)
logger = logging.getLogger(__name__)


SECTION_TITLES = (
    ("developer", "Developer Notes"),
    ("marketing", "Marketing Notes"),
    ("contributors", "Contributors"),
    ("related_issues", "Related Issues"),
)


def print_notes(notes: ExtractedNotes) -> None:
    for field, title in SECTION_TITLES:
        print(f"\n{title}:\n{getattr(notes, field)}")


class _LivePrinter:
    """Writes only the newly arrived suffix of the growing text."""

    def __init__(self) -> None:
        self._shown = 0

    def __call__(self, text: str) -> None:
        sys.stdout.write(text[self._shown :])
        sys.stdout.flush()
        self._shown = len(text)


async def run_generate(args: argparse.Namespace, cache: NotesCache) -> int:
    diff = Path(args.diff_file).read_text(encoding="utf-8")
    pr = PullRequestItem(id=args.id, description=args.title, diff=diff)
    async with ReleaseNotesClient(args.api_url) as client:
        session = PullRequestNotes(pr, client, cache, on_text=_LivePrinter())
        await session.generate()

    print()
    if session.error:
        logger.error("Generation for PR %s failed: %s", pr.id, session.error)
        return 1
    if session.notes is not None:
        print_notes(session.notes)
    return 0


async def run_show(args: argparse.Namespace, cache: NotesCache) -> int:
    notes = await cache.get(args.id)
    if notes is None:
        logger.info("No cached notes for PR %s", args.id)
        return 1
    print_notes(notes)
    return 0


async def run_clear(args: argparse.Namespace, cache: NotesCache) -> int:
    removed = await cache.delete(args.id)
    logger.info(
        "Cleared notes for PR %s" if removed else "No cached notes for PR %s",
        args.id,
    )
    return 0


async def run_list(args: argparse.Namespace, cache: NotesCache) -> int:
    for key in await cache.keys():
        print(key)
    return 0


COMMANDS = {
    "generate": run_generate,
    "show": run_show,
    "clear": run_clear,
    "list": run_list,
}


def build_parser() -> argparse.ArgumentParser:
    settings = get_settings()
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument(
        "--api-url",
        default=settings.NOTES_API_URL,
        help="Base URL of the release notes relay",
    )
    parser.add_argument(
        "--cache-url",
        default=settings.NOTES_CACHE_URL,
        help="SQLAlchemy URL of the local notes cache",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    generate = subparsers.add_parser("generate", help="Generate and cache notes")
    generate.add_argument("--diff-file", required=True, help="Path to a diff file")
    generate.add_argument("--id", default="Unknown", help="Pull request id")
    generate.add_argument("--title", default="Untitled PR", help="Pull request title")

    for name, help_text in (
        ("show", "Print cached notes"),
        ("clear", "Delete cached notes"),
    ):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("--id", required=True, help="Pull request id")

    subparsers.add_parser("list", help="List cached pull requests")
    return parser


async def run(args: argparse.Namespace) -> int:
    cache = NotesCache.from_url(args.cache_url)
    try:
        await cache.init()
        return await COMMANDS[args.command](args, cache)
    finally:
        await cache.close()


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    return asyncio.run(run(args))


if __name__ == "__main__":
    sys.exit(main())
