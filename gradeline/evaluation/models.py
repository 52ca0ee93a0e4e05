# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Data models for the grading pipeline.

These are the core types that everything in the evaluation pipeline passes
around. They're all frozen dataclasses: a submission, a test case or an
outcome never changes after it's created. If something mutates one
mid-evaluation, that's a bug.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path


@dataclass(frozen=True)
class Submission:
    """
    One program handed in by one participant for one task.

    Identity is (owner, task_id). The source file must exist and be
    readable; validating its contents is discovery's job, not ours.
    """

    owner: str
    task_id: str
    source_path: Path

    @property
    def key(self) -> tuple[str, str]:
        return (self.owner, self.task_id)


@dataclass(frozen=True)
class CompiledArtifact:
    """
    A runnable build of one submission.

    `output_dir` lives inside the submission's build directory and goes
    away with it, so an artifact must not outlive the evaluation that
    produced it.
    """

    submission: Submission
    output_dir: Path
    run_command: tuple[str, ...]
    diagnostics: tuple[str, ...] = ()


@dataclass(frozen=True)
class CompileResult:
    """What came back from trying to compile a submission."""

    success: bool
    exit_code: int
    diagnostics: str
    elapsed_seconds: float
    artifact: CompiledArtifact | None = None


@dataclass(frozen=True)
class TestCase:
    """An input file and the output a correct program prints for it."""

    __test__ = False

    name: str
    input_path: Path
    expected_output_path: Path


class ExecutionStatus(str, Enum):
    PASSED = "passed"
    WRONG_OUTPUT = "wrong_output"
    TIMED_OUT = "timed_out"
    NON_ZERO_EXIT = "non_zero_exit"
    LAUNCH_FAILURE = "launch_failure"


@dataclass(frozen=True)
class ExecutionOutcome:
    """
    The result of running one artifact against one test case.

    Timed-out and unlaunchable runs always carry zero timing and memory.
    """

    test_name: str
    status: ExecutionStatus
    wall_time_nanos: int = 0
    memory_bytes: int = 0
    detail: str | None = None
    exit_code: int | None = None

    @property
    def passed(self) -> bool:
        return self.status is ExecutionStatus.PASSED


class Classification(str, Enum):
    COMPILE_ERROR = "compile_error"
    FAILED = "failed"
    TIMED_OUT = "timed_out"
    RUNTIME_ERROR = "runtime_error"
    PASSED = "passed"


@dataclass(frozen=True)
class EvaluationRecord:
    """
    The verdict for one submission, and the only thing reporting ever sees.

    PASSED means: it compiled, every resolved test case passed, and the
    aggregated memory stayed within the limit. `reason` explains every other
    classification. Time and memory are only meaningful for PASSED records
    and for the memory-limit downgrade.
    """

    submission: Submission
    compiled: bool
    classification: Classification
    reason: str | None = None
    representative_time_nanos: int = 0
    peak_memory_bytes: int = 0
    outcomes: tuple[ExecutionOutcome, ...] = field(default_factory=tuple)
    compile_diagnostics: str = ""

    @property
    def passed(self) -> bool:
        return self.classification is Classification.PASSED
