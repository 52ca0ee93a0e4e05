# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Grading report writer.

Writes the results of one grading run to a directory:

    reports/
    ├── records.json          machine-readable, one entry per submission
    ├── report.txt            human-readable summary
    ├── leaderboard.csv       passed submissions ranked by time
    └── config_snapshot.yaml  the config used for this run (optional)

records.json is the authoritative output. report.txt and leaderboard.csv
are views of the same records. Every file is written atomically, so a
half-finished run never leaves a truncated report behind.
"""

import csv
import io
import json
from collections import Counter
from dataclasses import asdict
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, Sequence

import yaml

from gradeline.evaluation.models import Classification, EvaluationRecord
from gradeline.logging.logger import get_logger
from gradeline.utils.filesystem import atomic_write

logger = get_logger(__name__)

LEADERBOARD_HEADER = ("rank", "owner", "task", "time_ns", "memory_kb")

_CLASSIFICATION_LABELS = (
    (Classification.PASSED, "Passed"),
    (Classification.FAILED, "Failed"),
    (Classification.COMPILE_ERROR, "Compilation errors"),
    (Classification.RUNTIME_ERROR, "Runtime errors"),
    (Classification.TIMED_OUT, "Timeouts"),
)


def rank_records(records: Iterable[EvaluationRecord]) -> list[EvaluationRecord]:
    """Passed first, then fastest first, then owner name as a tie-break."""
    return sorted(
        records,
        key=lambda r: (not r.passed, r.representative_time_nanos, r.submission.owner),
    )


def records_to_json(records: Sequence[EvaluationRecord]) -> str:
    payload = [asdict(record) for record in records]
    return json.dumps(payload, indent=2, sort_keys=True, default=str) + "\n"


def format_leaderboard(records: Iterable[EvaluationRecord]) -> str:
    """CSV text of the passed records, ranked 1..N by representative time."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(LEADERBOARD_HEADER)

    passed = [r for r in rank_records(records) if r.passed]
    for rank, record in enumerate(passed, start=1):
        writer.writerow((
            rank,
            record.submission.owner,
            record.submission.task_id,
            record.representative_time_nanos,
            f"{record.peak_memory_bytes / 1024:.2f}",
        ))
    return buffer.getvalue()


def _format_millis(nanos: int) -> str:
    if nanos == 0:
        return "N/A"
    return f"{nanos / 1_000_000:.2f}"


def _format_kb(num_bytes: int) -> str:
    if num_bytes == 0:
        return "N/A"
    return f"{num_bytes / 1024:.2f}"


def format_report_text(records: Sequence[EvaluationRecord]) -> str:
    """
    Format records into a human-readable text report.

    Summary counts first, then averages over the passed submissions, then
    one row per submission in ranking order.
    """
    timestamp = datetime.now(tz=timezone.utc).isoformat()
    counts = Counter(record.classification for record in records)

    lines: list[str] = [
        "=" * 80,
        "GRADELINE SUBMISSION REPORT",
        f"Generated: {timestamp}",
        "=" * 80,
        "",
        "--- SUMMARY ---",
        f"Total submissions: {len(records)}",
    ]
    for classification, label in _CLASSIFICATION_LABELS:
        lines.append(f"{label}: {counts.get(classification, 0)}")

    passed = [r for r in records if r.passed]
    if passed:
        avg_time = sum(r.representative_time_nanos for r in passed) / len(passed)
        avg_memory = sum(r.peak_memory_bytes for r in passed) / len(passed)
        lines.extend([
            "",
            "--- PERFORMANCE (passed submissions only) ---",
            f"Average execution time: {avg_time / 1_000_000:.2f} ms ({avg_time:.0f} ns)",
            f"Average memory usage: {avg_memory / 1024:.2f} KB",
        ])

    lines.extend([
        "",
        "--- DETAILED RESULTS ---",
        f"{'Owner':<20} | {'Task':<15} | {'Result':<13} | {'Time (ms)':>10} | {'Memory (KB)':>11} | Compiled",
    ])
    for record in rank_records(records):
        lines.append(
            f"{record.submission.owner:<20} | {record.submission.task_id:<15} | "
            f"{record.classification.value:<13} | {_format_millis(record.representative_time_nanos):>10} | "
            f"{_format_kb(record.peak_memory_bytes):>11} | {'YES' if record.compiled else 'NO'}"
        )
        if record.reason:
            lines.append(f"    reason: {record.reason.splitlines()[0]}")

    lines.extend(["", "=" * 80])
    return "\n".join(lines) + "\n"


def write_report(
    records: Sequence[EvaluationRecord],
    output_dir: Path,
    config_snapshot: dict[str, object] | None = None,
) -> Path:
    """
    Write the full grading report to disk.

    Creates the output directory if needed. Returns the path to the
    output directory.
    """
    output_dir.mkdir(parents=True, exist_ok=True)

    atomic_write(output_dir / "records.json", records_to_json(records))
    atomic_write(output_dir / "report.txt", format_report_text(records))
    atomic_write(output_dir / "leaderboard.csv", format_leaderboard(records))

    if config_snapshot is not None:
        atomic_write(
            output_dir / "config_snapshot.yaml",
            yaml.dump(config_snapshot, default_flow_style=False, sort_keys=True),
        )

    logger.info(
        "Grading report written",
        extra={
            "output_dir": str(output_dir),
            "records": len(records),
            "passed": sum(1 for r in records if r.passed),
        },
    )
    return output_dir
