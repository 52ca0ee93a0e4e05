# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Compile harness for submissions.

This is the part that actually runs the configured compiler on a submitted
source file. It's deliberately simple: copy the source into the build
directory, run the subprocess, capture everything, enforce a timeout,
return the result. No build caching: every submission gets a clean,
isolated build so the same source always gives the same verdict.

Every failure mode (compiler missing, compiler rejects the source,
compiler hangs, source unreadable) comes back as a CompileResult with
success=False and the diagnostic text. Nothing here raises for a bad
submission.
"""

import os
import shutil
import subprocess
import time
from pathlib import Path
from typing import Mapping, Sequence

from gradeline.config.schema import ToolchainConfig
from gradeline.evaluation.compiler.sandbox import OUTPUT_SUBDIR, SOURCE_SUBDIR
from gradeline.evaluation.models import CompiledArtifact, CompileResult, Submission
from gradeline.evaluation.runner.deadline import Deadline
from gradeline.logging.logger import get_logger
from gradeline.utils.paths import validate_path_within

logger = get_logger(__name__)


def expand_command(template: Sequence[str], values: Mapping[str, str]) -> tuple[str, ...]:
    """
    Substitute `{name}` placeholders in each argument.

    Plain string replacement rather than str.format, so arguments that
    contain other braces (inline scripts, JSON) pass through untouched.
    """
    expanded: list[str] = []
    for arg in template:
        for key, value in values.items():
            arg = arg.replace("{" + key + "}", value)
        expanded.append(arg)
    return tuple(expanded)


def build_environment(overrides: Mapping[str, str]) -> dict[str, str]:
    """The parent environment plus the toolchain's fixed overrides."""
    env = dict(os.environ)
    env.update(overrides)
    return env


class Compiler:
    """Builds one submission at a time with the configured toolchain."""

    def __init__(self, toolchain: ToolchainConfig) -> None:
        self._toolchain = toolchain
        self._env = build_environment(toolchain.env)

    @property
    def toolchain(self) -> ToolchainConfig:
        return self._toolchain

    def compile(
        self,
        submission: Submission,
        build_dir: Path,
        deadline: Deadline | None = None,
    ) -> CompileResult:
        """
        Compile `submission` inside `build_dir` (a fresh BuildDirectory).

        The timeout is the toolchain's compile timeout, capped by the
        submission's deadline when one is given.
        """
        start = time.monotonic()

        source_dir = build_dir / SOURCE_SUBDIR
        output_dir = build_dir / OUTPUT_SUBDIR
        source_copy = source_dir / submission.source_path.name

        try:
            validate_path_within(source_copy, build_dir)
            shutil.copyfile(submission.source_path, source_copy)
        except (OSError, ValueError) as exc:
            logger.warning(
                "Submission source unavailable",
                extra={"owner": submission.owner, "source": str(submission.source_path), "error": str(exc)},
            )
            return CompileResult(
                success=False,
                exit_code=-1,
                diagnostics=f"Cannot read source file {submission.source_path}: {exc}",
                elapsed_seconds=time.monotonic() - start,
            )

        values = {
            "source": str(source_copy),
            "source_dir": str(source_dir),
            "output_dir": str(output_dir),
            "stem": source_copy.stem,
        }
        command = expand_command(self._toolchain.compile_command, values)

        timeout_seconds = self._toolchain.compile_timeout_seconds
        if deadline is not None:
            timeout_seconds = deadline.cap(timeout_seconds)

        try:
            result = subprocess.run(
                command,
                capture_output=True,
                encoding="utf-8",
                errors="replace",
                timeout=timeout_seconds,
                cwd=str(build_dir),
                env=self._env,
            )

        except subprocess.TimeoutExpired:
            elapsed = time.monotonic() - start
            logger.warning(
                "Compilation timed out",
                extra={"owner": submission.owner, "timeout_seconds": round(timeout_seconds, 3)},
            )
            return CompileResult(
                success=False,
                exit_code=-1,
                diagnostics=f"Compilation timed out after {timeout_seconds:.1f}s",
                elapsed_seconds=elapsed,
            )

        except FileNotFoundError:
            elapsed = time.monotonic() - start
            logger.error(
                "Compiler not found, is the toolchain installed?",
                extra={"command": command[0], "owner": submission.owner},
            )
            return CompileResult(
                success=False,
                exit_code=-1,
                diagnostics=f"Compiler executable not found: {command[0]}",
                elapsed_seconds=elapsed,
            )

        except OSError as exc:
            elapsed = time.monotonic() - start
            logger.error(
                "Compiler could not be launched",
                extra={"command": command[0], "owner": submission.owner, "error": str(exc)},
            )
            return CompileResult(
                success=False,
                exit_code=-1,
                diagnostics=f"Compiler launch failed: {exc}",
                elapsed_seconds=elapsed,
            )

        elapsed = time.monotonic() - start
        success = result.returncode == 0
        diagnostics = "\n".join(
            part.strip() for part in (result.stdout, result.stderr) if part and part.strip()
        )

        logger.debug(
            "Compilation finished",
            extra={
                "owner": submission.owner,
                "task_id": submission.task_id,
                "success": success,
                "exit_code": result.returncode,
                "elapsed_seconds": round(elapsed, 3),
            },
        )

        if not success:
            return CompileResult(
                success=False,
                exit_code=result.returncode,
                diagnostics=diagnostics or f"Compiler exited with code {result.returncode}",
                elapsed_seconds=elapsed,
            )

        artifact = CompiledArtifact(
            submission=submission,
            output_dir=output_dir,
            run_command=expand_command(self._toolchain.run_command, values),
            diagnostics=tuple(line for line in diagnostics.splitlines() if line.strip()),
        )
        return CompileResult(
            success=True,
            exit_code=result.returncode,
            diagnostics=diagnostics,
            elapsed_seconds=elapsed,
            artifact=artifact,
        )
