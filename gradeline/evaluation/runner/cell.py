# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Execution cell: one compiled program, one test case, one child process.

The cell:
  1. Binds the child's stdin to the test's input file
  2. Sends stdout to a fresh temp file and stderr to another
  3. Waits up to the time limit (capped by the submission's deadline)
  4. Kills the whole process group, whether or not the child exited on its own
  5. Compares stdout with the expected output on a clean exit

Everything that can go wrong with the program itself comes back as an
ExecutionOutcome. Both temp files live in the submission's build directory
and are removed before run() returns, whichever way it returns.
"""

import os
import signal
import subprocess
import tempfile
import time
from pathlib import Path

from gradeline.evaluation.models import CompiledArtifact, ExecutionOutcome, ExecutionStatus, TestCase
from gradeline.evaluation.runner.comparator import describe_mismatch, outputs_equal
from gradeline.evaluation.runner.deadline import Deadline
from gradeline.evaluation.runner.memory import MemorySampler
from gradeline.logging.logger import get_logger
from gradeline.utils.filesystem import safe_delete

logger = get_logger(__name__)

_STDERR_DETAIL_CHARS = 2000


def _kill_process_group(proc: subprocess.Popen) -> None:
    """
    SIGKILL every process in the child's session and reap the child.

    The child leads its own process group, so this also reaches anything it
    forked and left running after it exited.
    """
    try:
        os.killpg(proc.pid, signal.SIGKILL)
    except ProcessLookupError:
        pass
    except PermissionError:
        if proc.poll() is None:
            proc.kill()
    proc.wait()


def _read_tail(path: Path, limit: int) -> str:
    try:
        data = path.read_bytes()
    except OSError:
        return ""
    text = data.decode("utf-8", errors="replace").strip()
    return text[-limit:]


class ExecutionCell:
    """Runs compiled artifacts against test cases."""

    def __init__(
        self,
        memory_accounting: str = "process_delta",
        diff_max_lines: int = 20,
        env: dict[str, str] | None = None,
    ) -> None:
        self._memory_accounting = memory_accounting
        self._diff_max_lines = diff_max_lines
        self._env = env

    def run(
        self,
        artifact: CompiledArtifact,
        test: TestCase,
        time_limit_seconds: float,
        memory_limit_bytes: int,
        deadline: Deadline | None = None,
    ) -> ExecutionOutcome:
        owner = artifact.submission.owner

        if not artifact.output_dir.is_dir():
            logger.error(
                "Compiled artifact missing",
                extra={"owner": owner, "output_dir": str(artifact.output_dir)},
            )
            return ExecutionOutcome(
                test_name=test.name,
                status=ExecutionStatus.LAUNCH_FAILURE,
                detail=f"Compiled artifact not found: {artifact.output_dir}",
            )

        work_dir = artifact.output_dir.parent
        budget = time_limit_seconds if deadline is None else deadline.cap(time_limit_seconds)

        stdout_fd, stdout_name = tempfile.mkstemp(prefix="actual_", suffix=".out", dir=str(work_dir))
        stderr_fd, stderr_name = tempfile.mkstemp(prefix="stderr_", suffix=".txt", dir=str(work_dir))
        stdout_path = Path(stdout_name)
        stderr_path = Path(stderr_name)

        try:
            try:
                stdin_file = open(test.input_path, "rb")
            except OSError as exc:
                os.close(stdout_fd)
                os.close(stderr_fd)
                return ExecutionOutcome(
                    test_name=test.name,
                    status=ExecutionStatus.LAUNCH_FAILURE,
                    detail=f"Cannot open test input: {exc}",
                )

            with stdin_file, os.fdopen(stdout_fd, "wb") as stdout_file, \
                    os.fdopen(stderr_fd, "wb") as stderr_file:
                sampler = MemorySampler(self._memory_accounting)
                sampler.before()
                start_ns = time.perf_counter_ns()
                try:
                    proc = subprocess.Popen(
                        artifact.run_command,
                        stdin=stdin_file,
                        stdout=stdout_file,
                        stderr=stderr_file,
                        cwd=str(work_dir),
                        env=self._env,
                        start_new_session=True,
                    )
                except OSError as exc:
                    logger.error(
                        "Program could not be launched",
                        extra={"owner": owner, "test": test.name, "error": str(exc)},
                    )
                    return ExecutionOutcome(
                        test_name=test.name,
                        status=ExecutionStatus.LAUNCH_FAILURE,
                        detail=f"Launch failed: {exc}",
                    )

                sampler.attach(proc.pid)
                try:
                    exit_code: int | None = proc.wait(timeout=budget)
                except subprocess.TimeoutExpired:
                    exit_code = None
                else:
                    elapsed_ns = time.perf_counter_ns() - start_ns
                finally:
                    _kill_process_group(proc)
                memory_bytes = sampler.after()

                if exit_code is None:
                    logger.warning(
                        "Test timed out",
                        extra={"owner": owner, "test": test.name, "limit_seconds": round(budget, 3)},
                    )
                    return ExecutionOutcome(
                        test_name=test.name,
                        status=ExecutionStatus.TIMED_OUT,
                        detail=f"Killed after {budget:.2f}s",
                    )

            if exit_code != 0:
                stderr_text = _read_tail(stderr_path, _STDERR_DETAIL_CHARS)
                logger.warning(
                    "Program exited with failure",
                    extra={"owner": owner, "test": test.name, "exit_code": exit_code},
                )
                detail = f"exit code {exit_code}"
                if stderr_text:
                    detail = f"{detail}: {stderr_text}"
                return ExecutionOutcome(
                    test_name=test.name,
                    status=ExecutionStatus.NON_ZERO_EXIT,
                    wall_time_nanos=elapsed_ns,
                    memory_bytes=memory_bytes,
                    detail=detail,
                    exit_code=exit_code,
                )

            if memory_bytes > memory_limit_bytes:
                logger.warning(
                    "Run exceeded memory limit",
                    extra={"owner": owner, "test": test.name, "memory_bytes": memory_bytes},
                )

            if not outputs_equal(stdout_path, test.expected_output_path):
                diff = describe_mismatch(stdout_path, test.expected_output_path, self._diff_max_lines)
                logger.debug(
                    "Output mismatch",
                    extra={"owner": owner, "test": test.name, "diff": diff},
                )
                return ExecutionOutcome(
                    test_name=test.name,
                    status=ExecutionStatus.WRONG_OUTPUT,
                    wall_time_nanos=elapsed_ns,
                    memory_bytes=memory_bytes,
                    detail=diff,
                    exit_code=exit_code,
                )

            return ExecutionOutcome(
                test_name=test.name,
                status=ExecutionStatus.PASSED,
                wall_time_nanos=elapsed_ns,
                memory_bytes=memory_bytes,
                exit_code=exit_code,
            )

        finally:
            safe_delete(stdout_path)
            safe_delete(stderr_path)
