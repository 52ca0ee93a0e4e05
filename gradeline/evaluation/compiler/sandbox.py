# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Per-submission build directories.

Every submission is compiled and run inside its own temporary directory.
This keeps submissions from seeing each other's class files or output and
keeps the host filesystem clean. The layout is:

    gradeline_<owner>_XXXX/
    ├── src/   the compiler copies the submitted source here
    └── out/   whatever the compiler produces

Program runs also use this directory as their working directory and drop
their temporary output files here, so removing it reclaims everything a
submission created.
"""

import re
import shutil
import tempfile
from pathlib import Path
from types import TracebackType

from gradeline.evaluation.models import Submission
from gradeline.logging.logger import get_logger

logger = get_logger(__name__)

SOURCE_SUBDIR = "src"
OUTPUT_SUBDIR = "out"

_UNSAFE_PREFIX_CHARS = re.compile(r"[^A-Za-z0-9_.-]")


def create_build_dir(submission: Submission, base_dir: Path | None = None) -> Path:
    """
    Set up an empty, isolated build directory for one submission.

    Returns the path to the build directory. The caller owns it and must
    hand it to `cleanup_build_dir` (or use BuildDirectory) when done.
    """
    prefix = "gradeline_" + _UNSAFE_PREFIX_CHARS.sub("_", submission.owner) + "_"
    if base_dir is not None:
        base_dir.mkdir(parents=True, exist_ok=True)
    build_dir = Path(tempfile.mkdtemp(
        prefix=prefix,
        dir=str(base_dir) if base_dir else None,
    ))

    try:
        (build_dir / SOURCE_SUBDIR).mkdir()
        (build_dir / OUTPUT_SUBDIR).mkdir()

        logger.debug(
            "Build directory created",
            extra={"path": str(build_dir), "owner": submission.owner},
        )
        return build_dir

    except Exception:
        shutil.rmtree(build_dir, ignore_errors=True)
        raise


def cleanup_build_dir(build_dir: Path) -> None:
    """Remove a build directory and everything inside it."""
    if build_dir.is_dir():
        shutil.rmtree(build_dir, ignore_errors=True)
        logger.debug("Build directory removed", extra={"path": str(build_dir)})


class BuildDirectory:
    """
    Context manager that creates a build directory on enter and removes it on exit.

    Usage:
        with BuildDirectory(submission) as build_dir:
            result = compiler.compile(submission, build_dir)
            ...
        # directory is gone here, whether the block returned or raised
    """

    def __init__(self, submission: Submission, base_dir: Path | None = None) -> None:
        self._submission = submission
        self._base_dir = base_dir
        self._build_dir: Path | None = None

    def __enter__(self) -> Path:
        self._build_dir = create_build_dir(self._submission, self._base_dir)
        return self._build_dir

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        if self._build_dir is not None:
            cleanup_build_dir(self._build_dir)
