#!/usr/bin/env python3
"""
Command-line host for Inkporter.

Usage:
    inkporter clipboard                 # Process the clipboard image, confirm, save
    inkporter file <path>               # Process an image file, confirm, save
    inkporter file <path> --yes         # Save without the confirmation prompt
    inkporter settings show             # Print current settings
    inkporter settings set <key> <val>  # Change one setting (range-checked)
    inkporter settings reset            # Restore defaults
"""

import argparse
import logging
import sys
from pathlib import Path

from logging_utils import configure_logging, add_logging_args
from cli.digitize import add_digitize_subparsers
from cli.settings import add_settings_subparser

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="inkporter",
        description="Inkporter - turn photos of handwriting into transparent PNGs",
    )
    add_logging_args(parser)
    parser.add_argument(
        "--settings",
        type=Path,
        default=None,
        help="Settings JSON file (default: ./inkporter_settings.json)",
    )
    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    add_digitize_subparsers(subparsers)
    add_settings_subparser(subparsers)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level, args.verbose, args.quiet)

    if args.command is None:
        parser.print_help()
        return 1

    if args.command == "settings" and args.settings_command is None:
        args._settings_parser.print_help()
        return 1

    cmd = getattr(args, "_cmd", None)
    if cmd is None:
        parser.print_help()
        return 1
    return cmd(args)


if __name__ == "__main__":
    sys.exit(main())
