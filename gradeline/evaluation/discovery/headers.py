# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Submission discovery.

Participants identify themselves inside the source file with a one-line
block comment near the top:

    /* USER: alice TASK: bankacc */

The comment has to start a line within the first HEADER_SCAN_LINES lines.
Owner and task are single words (letters, digits, underscore). A file
without a valid header is not an error: it is logged and skipped, because
a submissions folder always collects stray files.
"""

import re
from pathlib import Path

from gradeline.evaluation.models import Submission
from gradeline.logging.logger import get_logger

logger = get_logger(__name__)

HEADER_SCAN_LINES = 10
HEADER_PATTERN = re.compile(r"/\*\s*USER:\s*(\w+)\s+TASK:\s*(\w+)\s*\*/")


def parse_header(source_path: Path) -> tuple[str, str] | None:
    """
    Read (owner, task_id) from a source file's header comment.

    Returns None when the file has no valid header in its first lines or
    cannot be read.
    """
    try:
        with open(source_path, encoding="utf-8", errors="replace") as f:
            for line_number, line in enumerate(f):
                if line_number >= HEADER_SCAN_LINES:
                    break
                stripped = line.strip()
                if not stripped.startswith("/*"):
                    continue
                match = HEADER_PATTERN.search(stripped)
                if match:
                    return match.group(1), match.group(2)
    except OSError as exc:
        logger.warning(
            "Cannot read submission file",
            extra={"path": str(source_path), "error": str(exc)},
        )
    return None


def discover_submissions(
    submissions_dir: Path,
    source_suffix: str = ".java",
    task_id: str | None = None,
) -> list[Submission]:
    """
    Walk `submissions_dir` recursively and build one Submission per headed file.

    Files are visited in sorted path order, so the result is the same on
    every run. With `task_id` set, only submissions for that task are kept.

    Raises:
        FileNotFoundError: If `submissions_dir` does not exist.
    """
    if not submissions_dir.is_dir():
        raise FileNotFoundError(f"Submissions directory not found: {submissions_dir}")

    submissions: list[Submission] = []
    skipped = 0

    for path in sorted(submissions_dir.rglob(f"*{source_suffix}")):
        if not path.is_file():
            continue

        header = parse_header(path)
        if header is None:
            skipped += 1
            logger.warning(
                "No valid submission header, skipping",
                extra={"path": str(path)},
            )
            continue

        owner, header_task = header
        if task_id is not None and header_task != task_id:
            continue

        submissions.append(Submission(owner=owner, task_id=header_task, source_path=path))

    logger.info(
        "Submissions discovered",
        extra={
            "directory": str(submissions_dir),
            "found": len(submissions),
            "skipped": skipped,
            "task_filter": task_id,
        },
    )
    return submissions
