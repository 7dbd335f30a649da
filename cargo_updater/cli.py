"""
Command line interface.

Installed as ``cargo-updater`` so that cargo runs it as ``cargo updater``;
cargo passes the subcommand name as the first argument.

Usage:
    cargo updater             # Update every crate with a newer release
    cargo updater --list      # Show installed crates and their latest versions
    cargo updater --locked    # Update, honoring each crate's Cargo.lock
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Sequence

from . import __version__
from .config import Config, load_config
from .errors import UpdaterError
from .logging_config import setup_logging
from .reconcile import Reconciler, UpdatePlan
from .render import print_nothing_to_update, print_skipped, render_inventory, render_json

logger = logging.getLogger(__name__)

SUBCOMMAND = "updater"


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser, with ``updater`` as the only subcommand."""
    parser = argparse.ArgumentParser(
        prog="cargo",
        description="List and update crates installed with `cargo install`",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    subparsers = parser.add_subparsers(dest="command", metavar="updater")

    updater = subparsers.add_parser(
        SUBCOMMAND,
        help="List and update installed crates",
        description="Check crates.io for newer versions of installed crates and reinstall them",
    )
    mode = updater.add_mutually_exclusive_group()
    mode.add_argument(
        "-l", "--list",
        action="store_true",
        help="List installed crates with their latest available versions",
    )
    mode.add_argument(
        "-u", "--update",
        action="store_true",
        help="Update all crates installed from crates.io (default)",
    )
    updater.add_argument(
        "--locked",
        action="store_true",
        help="Pass --locked to `cargo install` when updating",
    )
    updater.add_argument(
        "--json",
        action="store_true",
        help="Print the list as JSON (requires --list)",
    )
    updater.add_argument(
        "--config",
        metavar="PATH",
        help="Configuration file (YAML or JSON)",
    )
    updater.add_argument(
        "--log-file",
        metavar="PATH",
        help="Also write a debug log to this file",
    )
    verbosity = updater.add_mutually_exclusive_group()
    verbosity.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Verbose output",
    )
    verbosity.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Only print warnings and errors",
    )
    updater.add_argument(
        "--version",
        action="version",
        version=f"cargo-updater {__version__}",
    )
    return parser


def cmd_list(args: argparse.Namespace, config: Config) -> int:
    """Print every installed crate with its latest version."""
    rows = Reconciler(config).list_inventory()
    if args.json:
        render_json(rows)
    else:
        render_inventory(rows)
    return 0


def cmd_update(args: argparse.Namespace, config: Config) -> int:
    """Reinstall every crate with a newer release on crates.io."""

    def report(plan: UpdatePlan) -> None:
        print_skipped(plan.skipped)
        if not plan.upgradable:
            print_nothing_to_update()

    outcome = Reconciler(config).update_installed(use_locked=args.locked, on_plan=report)
    if outcome.reinstalled and outcome.exit_code == 0:
        logger.info(f"Updated {len(outcome.reinstalled)} crates")
    return outcome.exit_code


def main(argv: Sequence[str] | None = None) -> int:
    """Main entry point; returns the process exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command != SUBCOMMAND:
        print(
            f"error: this binary is meant to be run as `cargo {SUBCOMMAND}`",
            file=sys.stderr,
        )
        parser.print_usage(sys.stderr)
        return 1

    if args.json and not args.list:
        parser.error("--json can only be used with --list")

    setup_logging(verbose=args.verbose, quiet=args.quiet, log_file=args.log_file)

    try:
        config = load_config(args.config, verbose=args.verbose)
        if args.list:
            return cmd_list(args, config)
        return cmd_update(args, config)
    except UpdaterError as e:
        logger.error(str(e))
        return 1
    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        return 130
