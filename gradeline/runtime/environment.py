# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Host checks run before a grading session, and the facts logged about the host.

The CPU count here is the one the scheduler sizes its pool from.
"""

import os
import platform
import sys
from typing import NamedTuple

REQUIRED_PYTHON = (3, 11)


class SystemInfo(NamedTuple):
    python_version: str
    platform: str
    architecture: str
    hostname: str
    cpu_count: int


def get_python_version() -> tuple[int, int, int]:
    return sys.version_info[:3]


def check_minimum_python() -> None:
    """
    Raises:
        RuntimeError: On interpreters older than REQUIRED_PYTHON.
    """
    running = get_python_version()
    if running[:2] < REQUIRED_PYTHON:
        wanted = ".".join(str(part) for part in REQUIRED_PYTHON)
        raise RuntimeError(
            f"gradeline requires Python >= {wanted}; this interpreter is "
            f"{running[0]}.{running[1]}.{running[2]}"
        )


def available_parallelism() -> int:
    """
    CPUs this process is allowed to run on.

    Uses the affinity mask where the platform has one, so a grader pinned to
    two cores by its container gets a pool of two.
    """
    if hasattr(os, "sched_getaffinity"):
        return max(1, len(os.sched_getaffinity(0)))
    return max(1, os.cpu_count() or 1)


def get_system_info() -> SystemInfo:
    return SystemInfo(
        python_version=platform.python_version(),
        platform=platform.system(),
        architecture=platform.machine(),
        hostname=platform.node(),
        cpu_count=available_parallelism(),
    )
