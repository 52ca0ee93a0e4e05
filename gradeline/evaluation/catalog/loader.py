# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Test catalog: finds the input/expected-output pairs for a task.

The on-disk convention is flat and positional. For task `bankacc` with the
default suffixes, every search location may hold any number of pairs:

    tests/
    ├── bankacc.in        ─┐ one test case
    ├── bankacc.out       ─┘
    ├── bankacc_big.in    ─┐ another
    ├── bankacc_big.out   ─┘
    └── bankacc_x.in         no .out next to it: skipped with a warning

Locations are searched in configured order and their results concatenated.
The same pair name in two locations is two test cases, not a duplicate.
Nothing is cached: the catalog is re-read for every submission so edits to
the test data between runs are always picked up.
"""

from pathlib import Path
from typing import Iterable

from gradeline.evaluation.models import TestCase
from gradeline.logging.logger import get_logger

logger = get_logger(__name__)


class TestCatalog:
    """Resolves the ordered test cases of a task from a list of directories."""

    __test__ = False

    def __init__(self, input_suffix: str = ".in", output_suffix: str = ".out") -> None:
        if input_suffix == output_suffix:
            raise ValueError("input and output suffixes must differ")
        self.input_suffix = input_suffix
        self.output_suffix = output_suffix

    def expected_output_for(self, input_path: Path) -> Path:
        """The sibling file whose name swaps the trailing input suffix for the output suffix."""
        base = input_path.name[: -len(self.input_suffix)]
        return input_path.with_name(base + self.output_suffix)

    def _resolve_location(self, task_id: str, location: Path) -> list[TestCase]:
        if not location.is_dir():
            logger.debug("Test location missing, skipping", extra={"location": str(location)})
            return []

        try:
            entries = sorted(location.iterdir(), key=lambda p: p.name)
        except OSError as exc:
            logger.warning(
                "Cannot list test location",
                extra={"location": str(location), "error": str(exc)},
            )
            return []

        cases: list[TestCase] = []
        for entry in entries:
            name = entry.name
            if not (name.startswith(task_id) and name.endswith(self.input_suffix)):
                continue
            if not entry.is_file():
                continue

            expected = self.expected_output_for(entry)
            if not expected.is_file():
                logger.warning(
                    "No expected output for test input, skipping",
                    extra={"task_id": task_id, "input": str(entry), "expected": str(expected)},
                )
                continue

            cases.append(TestCase(
                name=name[: -len(self.input_suffix)],
                input_path=entry,
                expected_output_path=expected,
            ))
            logger.debug(
                "Found test pair",
                extra={"task_id": task_id, "input": name, "expected": expected.name},
            )
        return cases

    def resolve(self, task_id: str, search_locations: Iterable[Path]) -> list[TestCase]:
        """
        All test cases for `task_id`, location by location, in name order
        within a location. An empty list is a valid answer.
        """
        cases: list[TestCase] = []
        for location in search_locations:
            cases.extend(self._resolve_location(task_id, Path(location)))

        if not cases:
            logger.warning("No test pairs found for task", extra={"task_id": task_id})
        return cases
