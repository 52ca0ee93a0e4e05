# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
CLI entrypoint for gradeline.

This is the single root command: every operation is a subcommand of
`gradeline`. No interactive prompts.

The global options (--config, --log-level, --dry-run) are inherited by every
subcommand through argparse's parent parser mechanism.

Usage:
    gradeline <subcommand> [options]
    gradeline run --config configs/grader.yaml
    gradeline run --root competitions/round1 --task bankacc --concurrency 4
    gradeline info
"""

import argparse
import sys

from gradeline.cli.commands import handle_info, handle_run
from gradeline.cli.exit_codes import USER_ERROR


def _positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be >= 1, got {number}")
    return number


def _build_global_parser() -> argparse.ArgumentParser:
    """
    Build the parent parser with global options.

    These options get inherited by every subcommand. We use a separate parent
    parser (with add_help=False) so that help text doesn't collide between the
    parent and the subcommand parsers.
    """
    parent = argparse.ArgumentParser(add_help=False)
    parent.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to YAML configuration file.",
    )
    parent.add_argument(
        "--log-level",
        type=str,
        default=None,
        dest="log_level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Set the logging verbosity level (overrides the config).",
    )
    parent.add_argument(
        "--dry-run",
        action="store_true",
        default=False,
        dest="dry_run",
        help="Discover submissions and log what would be graded, then stop.",
    )
    return parent


def _register_subcommands(
    subparsers: argparse._SubParsersAction,  # type: ignore[type-arg]
    parent: argparse.ArgumentParser,
) -> None:
    """
    Register all subcommands with their handler functions.

    Each subcommand gets the global options from the parent parser and sets
    its handler function via set_defaults(func=...).
    """
    commands = [
        ("run", "Grade every submission and write the report.", handle_run),
        ("info", "Display environment and config info.", handle_info),
    ]

    for name, help_text, handler in commands:
        parser = subparsers.add_parser(name, parents=[parent], help=help_text)
        parser.set_defaults(func=handler)

    run_parser = subparsers.choices["run"]
    run_parser.add_argument(
        "--root",
        type=str,
        default=None,
        help="Competition root directory (overrides paths.root_directory).",
    )
    run_parser.add_argument(
        "--task",
        type=str,
        default=None,
        help="Only grade submissions for this task id.",
    )
    run_parser.add_argument(
        "--concurrency",
        type=_positive_int,
        default=None,
        help="Number of submissions graded at once (overrides grading.concurrency).",
    )
    run_parser.add_argument(
        "--output",
        type=str,
        default=None,
        help="Directory for the report files (overrides paths.reports_directory).",
    )


def build_parser() -> argparse.ArgumentParser:
    parent = _build_global_parser()

    root_parser = argparse.ArgumentParser(
        prog="gradeline",
        description="gradeline: batch grader for stdin/stdout programming submissions.",
        parents=[parent],
    )
    subparsers = root_parser.add_subparsers(dest="command")
    _register_subcommands(subparsers, parent)
    return root_parser


def main(argv: list[str] | None = None) -> None:
    """
    Main CLI entrypoint. This is what pyproject.toml's [project.scripts] points to.

      1. Build the argument parser with global options and all subcommands
      2. Parse the command line
      3. Call the handler function for the chosen subcommand
      4. Exit with the handler's return code

    If no subcommand is given, we show help and exit with USER_ERROR.
    """
    root_parser = build_parser()
    args = root_parser.parse_args(argv)

    if not hasattr(args, "func") or args.func is None:
        root_parser.print_help()
        sys.exit(USER_ERROR)

    exit_code = args.func(args)
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
