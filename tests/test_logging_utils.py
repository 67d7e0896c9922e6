"""Tests for CLI logging setup."""

import argparse
import logging

import pytest

from logging_utils import add_logging_args, configure_logging, resolve_log_level


class TestResolveLogLevel:

    @pytest.mark.parametrize("verbose,quiet,expected", [
        (0, 0, logging.INFO),
        (1, 0, logging.DEBUG),
        (3, 0, logging.DEBUG),
        (0, 1, logging.WARNING),
        (0, 2, logging.ERROR),
        (0, 5, logging.ERROR),
        (1, 1, logging.INFO),
    ])
    def test_counts(self, verbose, quiet, expected):
        assert resolve_log_level(verbose=verbose, quiet=quiet) == expected

    def test_explicit_level_wins(self):
        assert resolve_log_level("Error", verbose=2) == logging.ERROR


class TestConfigureLogging:

    def test_pillow_never_below_info(self):
        configure_logging(verbose=1)
        assert logging.getLogger("PIL").level == logging.INFO
        configure_logging(quiet=2)
        assert logging.getLogger("PIL").level == logging.ERROR
        configure_logging()

    def test_parser_flags(self):
        parser = argparse.ArgumentParser()
        add_logging_args(parser)
        args = parser.parse_args(["-qq"])
        assert configure_logging(args.log_level, args.verbose, args.quiet) == logging.ERROR
        configure_logging()
