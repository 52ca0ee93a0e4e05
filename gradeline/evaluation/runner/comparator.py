# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Output comparison.

The policy is lenient on layout and strict on content: CRLF becomes LF and
whitespace around the whole output is stripped, then the bytes must match
exactly. Trailing blank lines and Windows line endings never fail a
submission; a changed space between two tokens always does.
"""

import difflib
from pathlib import Path

from gradeline.logging.logger import get_logger

logger = get_logger(__name__)


def normalize_output(data: bytes) -> bytes:
    """CRLF to LF, then strip leading/trailing whitespace of the whole content."""
    return data.replace(b"\r\n", b"\n").strip()


def outputs_equal(actual_path: Path, expected_path: Path) -> bool:
    """
    Compare a program's output with the expected output.

    An unreadable file counts as a mismatch, never as an error.
    """
    try:
        actual = actual_path.read_bytes()
        expected = expected_path.read_bytes()
    except OSError as exc:
        logger.error(
            "Cannot read output for comparison",
            extra={
                "actual": str(actual_path),
                "expected": str(expected_path),
                "error": str(exc),
            },
        )
        return False

    return normalize_output(actual) == normalize_output(expected)


def describe_mismatch(actual_path: Path, expected_path: Path, max_lines: int = 20) -> str:
    """
    A unified diff of the normalized outputs, cut to `max_lines` lines.

    Meant for a human reading the report, so bytes are decoded leniently.
    """
    try:
        actual = normalize_output(actual_path.read_bytes()).decode("utf-8", errors="replace")
        expected = normalize_output(expected_path.read_bytes()).decode("utf-8", errors="replace")
    except OSError as exc:
        return f"output unavailable: {exc}"

    diff = list(difflib.unified_diff(
        expected.splitlines(),
        actual.splitlines(),
        fromfile="expected",
        tofile="actual",
        lineterm="",
    ))
    if len(diff) > max_lines:
        omitted = len(diff) - max_lines
        diff = diff[:max_lines] + [f"... ({omitted} more diff lines)"]
    return "\n".join(diff)
