"""Clipboard/file digitize commands: parsing, confirmation prompt, reporting."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from config import PIXEL_WORKERS
from digitize import DigitizeOutcome, ProcessedImage, digitize_clipboard, digitize_file, format_embed_link
from errors import InkporterError, LinkInsertionError
from settings_store import load_settings

logger = logging.getLogger(__name__)


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--root",
        default=".",
        help="Notes root; the output directory is relative to it (default: cwd)",
    )
    parser.add_argument(
        "-y", "--yes",
        action="store_true",
        help="Save without asking for confirmation",
    )
    parser.add_argument(
        "--no-link",
        action="store_true",
        help="Do not print an embed link after saving",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=PIXEL_WORKERS,
        help=f"Row-band threads for pixel processing (default: {PIXEL_WORKERS})",
    )


def add_digitize_subparsers(subparsers: argparse._SubParsersAction) -> None:
    clipboard_parser = subparsers.add_parser(
        "clipboard",
        help="Process the image currently on the clipboard",
    )
    _add_common_arguments(clipboard_parser)
    clipboard_parser.set_defaults(_cmd=cmd_clipboard)

    file_parser = subparsers.add_parser(
        "file",
        help="Process an image file",
    )
    file_parser.add_argument("path", help="Image file to process")
    _add_common_arguments(file_parser)
    file_parser.set_defaults(_cmd=cmd_file)


def describe(image: ProcessedImage) -> str:
    metrics = image.metadata.get("transparency", {}).get("metrics", {})
    ink = metrics.get("ink_pixels", 0)
    total = metrics.get("total_pixels", 0) or 1
    return (
        f"{image.file_name_with_extension}: {image.pixels.width}x{image.pixels.height}, "
        f"{ink / total:.1%} ink"
    )


def make_confirm(auto_yes: bool):
    async def confirm(image: ProcessedImage) -> bool:
        if auto_yes:
            return True
        prompt = f"Save {describe(image)}? [y/N] "
        try:
            answer = await asyncio.to_thread(input, prompt)
        except EOFError:
            return False
        return answer.strip().lower() in ("y", "yes")

    return confirm


def make_link_printer(root: Path):
    async def insert_link(path: Path) -> str:
        link = format_embed_link(path, root)
        print(link, file=sys.stdout)
        return link

    return insert_link


def _report(outcome: DigitizeOutcome) -> int:
    if outcome.cancelled:
        logger.info("Nothing saved.")
        return 0
    logger.info("Saved: %s", outcome.saved_path)
    return 0


def _run(coro) -> int:
    try:
        outcome = asyncio.run(coro)
    except LinkInsertionError as exc:
        logger.error("%s", exc)
        return 1
    except InkporterError as exc:
        logger.error("Inkporter error: %s", exc)
        logger.debug("Failure detail", exc_info=True)
        return 1
    except Exception as e:
        logger.exception("Unexpected error: %s", e)
        return 1
    return _report(outcome)


def cmd_clipboard(args: argparse.Namespace) -> int:
    root = Path(args.root)
    try:
        record = load_settings(args.settings)
    except InkporterError as exc:
        logger.error("%s", exc)
        return 1
    return _run(
        digitize_clipboard(
            record,
            make_confirm(args.yes),
            insert_link=None if args.no_link else make_link_printer(root),
            root=root,
            workers=args.workers,
        )
    )


def cmd_file(args: argparse.Namespace) -> int:
    root = Path(args.root)
    try:
        record = load_settings(args.settings)
    except InkporterError as exc:
        logger.error("%s", exc)
        return 1
    return _run(
        digitize_file(
            args.path,
            record,
            make_confirm(args.yes),
            insert_link=None if args.no_link else make_link_printer(root),
            root=root,
            workers=args.workers,
        )
    )
