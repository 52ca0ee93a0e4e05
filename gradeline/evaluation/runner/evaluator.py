# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Submission evaluator: the heart of the grading pipeline.

For each submission the evaluator:
  1. Opens a fresh build directory
  2. Compiles the source once
  3. Resolves the task's test cases from the catalog
  4. Runs every test case in catalog order, one child process each
  5. Aggregates the outcomes into a single EvaluationRecord

Aggregation is first-failure-wins: the first test case (in catalog order)
that did not pass decides the classification, even if a later one failed
worse. That is the diagnostic a grader expects to see, so keep it.

Memory is checked last, on the aggregate: a submission whose every test
passed is still downgraded to FAILED when its peak memory is above the
limit.

Every exception raised while evaluating a submission ends up in that
submission's record as RUNTIME_ERROR, with one exception:
SubmissionTimeoutError, which belongs to the Scheduler. Both paths keep
what was known when evaluation stopped: whether the source compiled and the
outcomes of the test cases that had already run.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Sequence

from gradeline.config.schema import GradingConfig
from gradeline.evaluation.catalog.loader import TestCatalog
from gradeline.evaluation.compiler.harness import Compiler
from gradeline.evaluation.compiler.sandbox import BuildDirectory
from gradeline.evaluation.exceptions import SubmissionTimeoutError
from gradeline.evaluation.models import (
    Classification,
    EvaluationRecord,
    ExecutionOutcome,
    ExecutionStatus,
    Submission,
)
from gradeline.evaluation.runner.cell import ExecutionCell
from gradeline.evaluation.runner.deadline import Deadline
from gradeline.logging.logger import get_logger

logger = get_logger(__name__)

NO_TEST_CASES = "no test cases"
MEMORY_LIMIT_EXCEEDED = "memory limit exceeded"


@dataclass
class _Progress:
    """How far one evaluation got before it stopped."""

    compiled: bool = False
    compile_diagnostics: str = ""
    outcomes: list[ExecutionOutcome] = field(default_factory=list)


def _first_line(text: str) -> str:
    for line in text.splitlines():
        if line.strip():
            return line.strip()
    return text.strip()


def aggregate_outcomes(
    submission: Submission,
    outcomes: Sequence[ExecutionOutcome],
    memory_limit_bytes: int,
    compile_diagnostics: str = "",
) -> EvaluationRecord:
    """
    Fold per-test outcomes (in catalog order) into one record.

    Pure function: the same outcomes always give the same record.
    """
    outcomes = tuple(outcomes)

    if not outcomes:
        return EvaluationRecord(
            submission=submission,
            compiled=True,
            classification=Classification.FAILED,
            reason=NO_TEST_CASES,
            compile_diagnostics=compile_diagnostics,
        )

    first_failure = next((o for o in outcomes if not o.passed), None)
    if first_failure is not None:
        if first_failure.status is ExecutionStatus.TIMED_OUT:
            classification = Classification.TIMED_OUT
            reason = f"timed out on {first_failure.test_name}"
        elif first_failure.status is ExecutionStatus.NON_ZERO_EXIT:
            classification = Classification.RUNTIME_ERROR
            reason = first_failure.detail or f"non-zero exit on {first_failure.test_name}"
        elif first_failure.status is ExecutionStatus.WRONG_OUTPUT:
            classification = Classification.FAILED
            reason = f"wrong output on {first_failure.test_name}"
        else:
            classification = Classification.FAILED
            reason = f"launch failure on {first_failure.test_name}: {first_failure.detail}"

        return EvaluationRecord(
            submission=submission,
            compiled=True,
            classification=classification,
            reason=reason,
            outcomes=outcomes,
            compile_diagnostics=compile_diagnostics,
        )

    mean_time = sum(o.wall_time_nanos for o in outcomes) // len(outcomes)
    peak_memory = max(o.memory_bytes for o in outcomes)

    if peak_memory > memory_limit_bytes:
        return EvaluationRecord(
            submission=submission,
            compiled=True,
            classification=Classification.FAILED,
            reason=MEMORY_LIMIT_EXCEEDED,
            representative_time_nanos=mean_time,
            peak_memory_bytes=peak_memory,
            outcomes=outcomes,
            compile_diagnostics=compile_diagnostics,
        )

    return EvaluationRecord(
        submission=submission,
        compiled=True,
        classification=Classification.PASSED,
        representative_time_nanos=mean_time,
        peak_memory_bytes=peak_memory,
        outcomes=outcomes,
        compile_diagnostics=compile_diagnostics,
    )


class Evaluator:
    """Takes one submission from source file to EvaluationRecord."""

    def __init__(
        self,
        config: GradingConfig,
        compiler: Compiler,
        catalog: TestCatalog,
        cell: ExecutionCell,
        search_locations: Sequence[Path],
        work_root: Path | None = None,
    ) -> None:
        self._config = config
        self._compiler = compiler
        self._catalog = catalog
        self._cell = cell
        self._search_locations = tuple(Path(p) for p in search_locations)
        self._work_root = work_root

    @property
    def config(self) -> GradingConfig:
        return self._config

    def evaluate(self, submission: Submission, deadline: Deadline | None = None) -> EvaluationRecord:
        """
        Grade one submission. Always returns a record, except when the
        deadline runs out, which raises SubmissionTimeoutError.
        """
        logger.info(
            "Evaluating submission",
            extra={"owner": submission.owner, "task_id": submission.task_id},
        )

        progress = _Progress()
        try:
            record = self._evaluate(submission, deadline, progress)
        except SubmissionTimeoutError as exc:
            exc.compiled = progress.compiled
            exc.compile_diagnostics = progress.compile_diagnostics
            exc.outcomes = tuple(progress.outcomes)
            raise
        except Exception as exc:
            logger.error(
                "Evaluation crashed",
                extra={"owner": submission.owner, "task_id": submission.task_id, "error": str(exc)},
                exc_info=True,
            )
            record = EvaluationRecord(
                submission=submission,
                compiled=progress.compiled,
                classification=Classification.RUNTIME_ERROR,
                reason=str(exc) or type(exc).__name__,
                outcomes=tuple(progress.outcomes),
                compile_diagnostics=progress.compile_diagnostics,
            )

        logger.info(
            "Submission evaluated",
            extra={
                "owner": submission.owner,
                "task_id": submission.task_id,
                "classification": record.classification.value,
                "reason": record.reason,
                "time_ns": record.representative_time_nanos,
                "memory_bytes": record.peak_memory_bytes,
            },
        )
        return record

    def _check_deadline(self, submission: Submission, deadline: Deadline | None) -> None:
        if deadline is not None and deadline.expired():
            raise SubmissionTimeoutError(submission.owner, submission.task_id, deadline.budget_seconds)

    def _evaluate(
        self, submission: Submission, deadline: Deadline | None, progress: _Progress
    ) -> EvaluationRecord:
        with BuildDirectory(submission, self._work_root) as build_dir:
            compile_result = self._compiler.compile(submission, build_dir, deadline)
            progress.compiled = compile_result.success and compile_result.artifact is not None
            progress.compile_diagnostics = compile_result.diagnostics
            self._check_deadline(submission, deadline)

            if not compile_result.success or compile_result.artifact is None:
                logger.warning(
                    "Compilation failed",
                    extra={"owner": submission.owner, "diagnostics": compile_result.diagnostics},
                )
                return EvaluationRecord(
                    submission=submission,
                    compiled=False,
                    classification=Classification.COMPILE_ERROR,
                    reason=_first_line(compile_result.diagnostics),
                    compile_diagnostics=compile_result.diagnostics,
                )

            tests = self._catalog.resolve(submission.task_id, self._search_locations)
            if not tests:
                return aggregate_outcomes(
                    submission, (), self._config.memory_limit_bytes, compile_result.diagnostics,
                )

            outcomes = progress.outcomes
            for test in tests:
                self._check_deadline(submission, deadline)
                outcome = self._cell.run(
                    compile_result.artifact,
                    test,
                    self._config.execution_timeout_seconds,
                    self._config.memory_limit_bytes,
                    deadline,
                )
                outcomes.append(outcome)
                logger.debug(
                    "Test case finished",
                    extra={
                        "owner": submission.owner,
                        "test": test.name,
                        "status": outcome.status.value,
                        "time_ns": outcome.wall_time_nanos,
                    },
                )
            self._check_deadline(submission, deadline)

            return aggregate_outcomes(
                submission, outcomes, self._config.memory_limit_bytes, compile_result.diagnostics,
            )
