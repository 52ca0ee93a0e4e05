# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Runtime bootstrap for gradeline.

The one-time setup that happens before any grading begins:
  1. Validate the environment (Python version)
  2. Apply the configured log level and file sink
  3. Ensure the reports directory exists

Every CLI command goes through this before doing anything else.
"""

from pathlib import Path

from gradeline.config.schema import GraderConfig
from gradeline.logging.logger import configure_logging, get_logger
from gradeline.runtime.environment import check_minimum_python, get_system_info
from gradeline.utils.paths import ensure_directory


def bootstrap(config: GraderConfig, log_level: str | None = None) -> None:
    """
    Run the bootstrap sequence.

    Args:
        config: The validated grader configuration.
        log_level: Overrides `global.log_level` when given (CLI flag).
    """
    check_minimum_python()

    level = log_level or config.global_config.log_level
    log_file = None
    if config.global_config.log_file is not None:
        log_file = Path(config.global_config.log_file)

    logger = get_logger("gradeline.runtime", log_level=level, log_file=log_file)
    configure_logging(level, log_file)

    system_info = get_system_info()
    logger.info(
        "gradeline bootstrap complete",
        extra={
            "project": config.global_config.project_name,
            "python_version": system_info.python_version,
            "platform": system_info.platform,
            "architecture": system_info.architecture,
            "cpu_count": system_info.cpu_count,
        },
    )

    ensure_directory(config.paths.resolve(config.paths.reports_directory))
