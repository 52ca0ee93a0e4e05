# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Bounded-parallelism driver for a batch of submissions.

Each submission is one task on a thread pool. A worker thread spends
nearly all its time blocked in a subprocess wait, which releases the GIL,
so threads are enough to keep `concurrency` programs running at once.

Submissions share nothing except the immutable config, the immutable test
files and the log stream. Records come back through futures and are
returned in input order.
"""

from collections import Counter
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Iterable

from gradeline.evaluation.exceptions import SubmissionTimeoutError
from gradeline.evaluation.models import Classification, EvaluationRecord, Submission
from gradeline.evaluation.runner.deadline import Deadline
from gradeline.evaluation.runner.evaluator import Evaluator
from gradeline.logging.logger import get_logger
from gradeline.runtime.environment import available_parallelism

logger = get_logger(__name__)

SUBMISSION_TIMEOUT_REASON = "submission exceeded total execution timeout"


class Scheduler:
    """Runs an Evaluator over many submissions with a fixed worker count."""

    def __init__(
        self,
        evaluator: Evaluator,
        concurrency: int | None = None,
        submission_timeout_seconds: float | None = None,
    ) -> None:
        if concurrency is not None and concurrency < 1:
            raise ValueError(f"concurrency must be >= 1, got {concurrency}")
        self._evaluator = evaluator
        self._concurrency = concurrency or available_parallelism()
        self._submission_timeout_seconds = submission_timeout_seconds

    @property
    def concurrency(self) -> int:
        return self._concurrency

    def _evaluate_one(self, submission: Submission) -> EvaluationRecord:
        # The budget starts when a worker picks the submission up, not when it was queued.
        deadline = None
        if self._submission_timeout_seconds is not None:
            deadline = Deadline.after(self._submission_timeout_seconds)

        try:
            return self._evaluator.evaluate(submission, deadline)
        except SubmissionTimeoutError as exc:
            logger.warning(
                "Submission exceeded its total budget",
                extra={
                    "owner": submission.owner,
                    "task_id": submission.task_id,
                    "budget_seconds": self._submission_timeout_seconds,
                    "tests_run": len(exc.outcomes),
                },
            )
            return EvaluationRecord(
                submission=submission,
                compiled=exc.compiled,
                classification=Classification.TIMED_OUT,
                reason=SUBMISSION_TIMEOUT_REASON,
                outcomes=exc.outcomes,
                compile_diagnostics=exc.compile_diagnostics,
            )
        except Exception as exc:
            logger.error(
                "Evaluator raised for submission",
                extra={"owner": submission.owner, "task_id": submission.task_id, "error": str(exc)},
                exc_info=True,
            )
            return EvaluationRecord(
                submission=submission,
                compiled=False,
                classification=Classification.RUNTIME_ERROR,
                reason=str(exc) or type(exc).__name__,
            )

    def run(self, submissions: Iterable[Submission]) -> list[EvaluationRecord]:
        """
        Evaluate every submission and return exactly one record per input.

        An empty input gives an empty list without starting any workers.
        """
        submissions = list(submissions)
        if not submissions:
            logger.info("No submissions to evaluate")
            return []

        logger.info(
            "Starting evaluation run",
            extra={"submissions": len(submissions), "concurrency": self._concurrency},
        )

        with ThreadPoolExecutor(
            max_workers=self._concurrency,
            thread_name_prefix="gradeline-worker",
        ) as pool:
            futures: list[Future[EvaluationRecord]] = [
                pool.submit(self._evaluate_one, submission) for submission in submissions
            ]
            records = [future.result() for future in futures]

        counts = Counter(record.classification.value for record in records)
        logger.info(
            "Evaluation run complete",
            extra={"submissions": len(records), **{c.value: counts.get(c.value, 0) for c in Classification}},
        )
        return records
