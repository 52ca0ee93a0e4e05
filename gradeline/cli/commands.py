# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Subcommand handlers for the gradeline CLI.

Each function here corresponds to one CLI subcommand and returns an exit
code from cli/exit_codes.py.

No print() calls. Everything goes through the structured logger.
"""

import argparse
import logging
from pathlib import Path

from gradeline.cli.exit_codes import CONFIG_ERROR, RUNTIME_ERROR, SUCCESS, VALIDATION_ERROR
from gradeline.config.exceptions import ConfigError
from gradeline.config.loader import load_config
from gradeline.config.schema import GraderConfig, default_config
from gradeline.logging.logger import get_logger
from gradeline.runtime.bootstrap import bootstrap


def _load_config(
    args: argparse.Namespace,
    command_name: str,
) -> tuple[int, GraderConfig | None, logging.Logger]:
    """
    Load the config file (or the defaults) and apply the --root override.

    Returns a tuple of (exit_code, config, logger). If exit_code is not SUCCESS,
    the caller should return it immediately.
    """
    logger = get_logger(f"gradeline.cli.{command_name}", log_level=args.log_level or "INFO")

    if args.config is not None:
        try:
            config = load_config(Path(args.config))
        except ConfigError as err:
            logger.error(
                "Configuration error",
                extra={"command": command_name, "error": str(err)},
            )
            return CONFIG_ERROR, None, logger
    else:
        logger.debug(
            "No config provided, running with defaults",
            extra={"command": command_name},
        )
        config = default_config()

    root = getattr(args, "root", None)
    if root is not None:
        config = config.model_copy(
            update={"paths": config.paths.model_copy(update={"root_directory": root})}
        )

    return SUCCESS, config, logger


def _load_and_bootstrap(
    args: argparse.Namespace,
    command_name: str,
) -> tuple[int, GraderConfig | None, logging.Logger]:
    """
    The shared setup that grading commands need: load config, run bootstrap.

    Returns a tuple of (exit_code, config, logger). If exit_code is not SUCCESS,
    the caller should return it immediately.
    """
    exit_code, config, logger = _load_config(args, command_name)
    if exit_code != SUCCESS:
        return exit_code, None, logger

    try:
        bootstrap(config, log_level=args.log_level)
    except ValueError as err:
        logger.error(
            "Invalid logging configuration",
            extra={"command": command_name, "error": str(err)},
        )
        return CONFIG_ERROR, None, logger

    return SUCCESS, config, logger


def handle_run(args: argparse.Namespace) -> int:
    """
    Grade every submission under the submissions directory.

    Discovers submissions, evaluates them in parallel, and writes the
    report, leaderboard and records to the reports directory (or --output).
    """
    exit_code, config, logger = _load_and_bootstrap(args, "run")
    if exit_code != SUCCESS:
        return exit_code

    try:
        from gradeline.evaluation.catalog.loader import TestCatalog
        from gradeline.evaluation.compiler.harness import Compiler, build_environment
        from gradeline.evaluation.discovery.headers import discover_submissions
        from gradeline.evaluation.reporting.writer import write_report
        from gradeline.evaluation.runner.cell import ExecutionCell
        from gradeline.evaluation.runner.evaluator import Evaluator
        from gradeline.evaluation.runner.scheduler import Scheduler

        grading = config.grading
        toolchain = config.toolchain
        submissions_dir = config.paths.resolve(config.paths.submissions_directory)

        submissions = discover_submissions(
            submissions_dir,
            source_suffix=toolchain.source_suffix,
            task_id=args.task,
        )

        concurrency = args.concurrency or grading.concurrency
        logger.info(
            "Starting grading run",
            extra={
                "command": "run",
                "dry_run": args.dry_run,
                "submissions": len(submissions),
                "concurrency": concurrency,
                "submissions_dir": str(submissions_dir),
            },
        )

        if args.dry_run:
            for submission in submissions:
                logger.info(
                    "Dry run, would grade submission",
                    extra={
                        "owner": submission.owner,
                        "task_id": submission.task_id,
                        "source": str(submission.source_path),
                    },
                )
            return SUCCESS

        work_root = None
        if config.paths.work_directory is not None:
            work_root = config.paths.resolve(config.paths.work_directory)

        evaluator = Evaluator(
            config=grading,
            compiler=Compiler(toolchain),
            catalog=TestCatalog(grading.input_suffix, grading.output_suffix),
            cell=ExecutionCell(
                memory_accounting=grading.memory_accounting,
                diff_max_lines=grading.diff_max_lines,
                env=build_environment(toolchain.env),
            ),
            search_locations=config.test_location_paths(),
            work_root=work_root,
        )
        scheduler = Scheduler(
            evaluator,
            concurrency=concurrency,
            submission_timeout_seconds=grading.submission_timeout_seconds,
        )
        records = scheduler.run(submissions)

        if args.output is not None:
            output_dir = Path(args.output)
        else:
            output_dir = config.paths.resolve(config.paths.reports_directory)

        write_report(
            records,
            output_dir,
            config_snapshot=config.model_dump(mode="json", by_alias=True),
        )

        logger.info(
            "Grading run complete",
            extra={
                "submissions": len(records),
                "passed": sum(1 for r in records if r.passed),
                "output_dir": str(output_dir),
            },
        )
        return SUCCESS

    except FileNotFoundError as err:
        logger.error("Grading failed, missing files", extra={"error": str(err)})
        return VALIDATION_ERROR
    except Exception as err:
        logger.error("Grading failed", extra={"error": str(err)}, exc_info=True)
        return RUNTIME_ERROR


def handle_info(args: argparse.Namespace) -> int:
    """Display environment and configuration information."""
    exit_code, config, logger = _load_config(args, "info")
    if exit_code != SUCCESS:
        return exit_code

    from gradeline import __version__
    from gradeline.runtime.environment import get_system_info

    system_info = get_system_info()

    logger.info(
        "System information",
        extra={
            "gradeline_version": __version__,
            "python_version": system_info.python_version,
            "platform": system_info.platform,
            "architecture": system_info.architecture,
            "hostname": system_info.hostname,
            "cpu_count": system_info.cpu_count,
            "config": args.config,
            "toolchain": config.toolchain.compile_command[0],
            "test_locations": [str(p) for p in config.test_location_paths()],
        },
    )
    return SUCCESS
