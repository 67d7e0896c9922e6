"""Settings CLI commands."""

from __future__ import annotations

import argparse
import json
import logging

from errors import InkporterError, InvalidSettingValueError
from settings_store import InkporterSettings, load_settings, save_settings, update_setting

logger = logging.getLogger(__name__)


def add_settings_subparser(subparsers: argparse._SubParsersAction) -> None:
    settings_parser = subparsers.add_parser(
        "settings",
        help="Show or edit processing settings",
    )
    settings_subparsers = settings_parser.add_subparsers(
        dest="settings_command",
        help="Settings command",
    )

    show_parser = settings_subparsers.add_parser(
        "show",
        help="Print the current settings as JSON",
    )
    show_parser.set_defaults(_cmd=cmd_settings_show)

    set_parser = settings_subparsers.add_parser(
        "set",
        help="Change one setting (e.g. set alphaThreshold 170)",
    )
    set_parser.add_argument("key", help="Setting name (camelCase or snake_case)")
    set_parser.add_argument("value", help="New value")
    set_parser.set_defaults(_cmd=cmd_settings_set)

    reset_parser = settings_subparsers.add_parser(
        "reset",
        help="Restore all defaults",
    )
    reset_parser.set_defaults(_cmd=cmd_settings_reset)

    settings_parser.set_defaults(_settings_parser=settings_parser)


def cmd_settings_show(args: argparse.Namespace) -> int:
    try:
        record = load_settings(args.settings)
    except InkporterError as exc:
        logger.error("%s", exc)
        return 1
    print(json.dumps(record.model_dump(by_alias=True), indent=2))
    return 0


def cmd_settings_set(args: argparse.Namespace) -> int:
    try:
        record = load_settings(args.settings)
        updated = update_setting(record, args.key, args.value)
    except InvalidSettingValueError as exc:
        logger.error("%s (keeping previous value)", exc)
        return 1
    except InkporterError as exc:
        logger.error("%s", exc)
        return 1

    try:
        save_settings(updated, args.settings)
    except InkporterError as exc:
        logger.error("%s", exc)
        return 1

    if updated.preserve_ink_color and record.convert_to_grayscale and not updated.convert_to_grayscale:
        logger.info("convertToGrayscale turned off because preserveInkColor is on")
    logger.info("Updated %s", args.key)
    return 0


def cmd_settings_reset(args: argparse.Namespace) -> int:
    try:
        save_settings(InkporterSettings(), args.settings)
    except InkporterError as exc:
        logger.error("%s", exc)
        return 1
    logger.info("Settings reset to defaults")
    return 0
