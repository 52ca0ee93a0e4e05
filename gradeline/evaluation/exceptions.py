# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Exceptions that cross component boundaries in the grading pipeline.

Almost every failure in the pipeline is turned into a data value where it
happens. The deadline is the exception: it is detected deep inside a
submission's evaluation but decided at the Scheduler boundary, so it carries
whatever the evaluation had produced when the budget ran out.
"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from gradeline.evaluation.models import ExecutionOutcome


class SubmissionTimeoutError(Exception):
    """Raised when a submission uses up its total execution budget."""

    def __init__(
        self,
        owner: str,
        task_id: str,
        budget_seconds: float,
        compiled: bool = False,
        outcomes: "tuple[ExecutionOutcome, ...]" = (),
        compile_diagnostics: str = "",
    ) -> None:
        super().__init__(
            f"Submission {owner}/{task_id} exceeded its {budget_seconds:g}s budget"
        )
        self.owner = owner
        self.task_id = task_id
        self.budget_seconds = budget_seconds
        self.compiled = compiled
        self.outcomes = outcomes
        self.compile_diagnostics = compile_diagnostics
