# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Tests for the compile harness and build directories.

These test the subprocess isolation, timeout handling, and build directory
lifecycle without needing a JDK: the toolchain here byte-compiles Python.
"""

import sys
from pathlib import Path
from typing import Callable

import pytest

from gradeline.config.schema import ToolchainConfig
from gradeline.evaluation.compiler.harness import Compiler, expand_command
from gradeline.evaluation.compiler.sandbox import (
    OUTPUT_SUBDIR,
    SOURCE_SUBDIR,
    BuildDirectory,
    cleanup_build_dir,
    create_build_dir,
)
from gradeline.evaluation.models import Submission
from gradeline.evaluation.runner.deadline import Deadline
from gradeline.utils.paths import validate_path_within


def _submission(tmp_path: Path, owner: str = "alice") -> Submission:
    return Submission(owner=owner, task_id="bankacc", source_path=tmp_path / "missing.py")


class TestBuildDirectory:
    def test_creates_source_and_output_dirs(self, tmp_path: Path) -> None:
        build_dir = create_build_dir(_submission(tmp_path), base_dir=tmp_path / "work")
        try:
            assert build_dir.is_dir()
            assert (build_dir / SOURCE_SUBDIR).is_dir()
            assert (build_dir / OUTPUT_SUBDIR).is_dir()
            assert build_dir.parent == tmp_path / "work"
            assert build_dir.name.startswith("gradeline_alice_")
        finally:
            cleanup_build_dir(build_dir)

    def test_owner_is_sanitized_in_prefix(self, tmp_path: Path) -> None:
        build_dir = create_build_dir(_submission(tmp_path, owner="../evil"), base_dir=tmp_path)
        try:
            assert build_dir.parent == tmp_path
            assert "/" not in build_dir.name
        finally:
            cleanup_build_dir(build_dir)

    def test_cleanup_removes_directory(self, tmp_path: Path) -> None:
        build_dir = create_build_dir(_submission(tmp_path), base_dir=tmp_path)
        cleanup_build_dir(build_dir)
        assert not build_dir.exists()

    def test_cleanup_nonexistent_is_safe(self, tmp_path: Path) -> None:
        cleanup_build_dir(tmp_path / "does_not_exist")

    def test_context_manager_cleans_up(self, tmp_path: Path) -> None:
        with BuildDirectory(_submission(tmp_path), base_dir=tmp_path) as d:
            build_dir = d
            (d / OUTPUT_SUBDIR / "Main.class").write_bytes(b"\xca\xfe")
            assert d.is_dir()

        assert not build_dir.exists()

    def test_context_manager_cleans_up_on_error(self, tmp_path: Path) -> None:
        build_dir = None

        with pytest.raises(RuntimeError):
            with BuildDirectory(_submission(tmp_path), base_dir=tmp_path) as d:
                build_dir = d
                raise RuntimeError("boom")

        assert build_dir is not None
        assert not build_dir.exists()


class TestPathValidation:
    def test_valid_path(self, tmp_path: Path) -> None:
        validate_path_within(tmp_path / "src" / "Main.java", tmp_path)

    def test_rejects_traversal(self, tmp_path: Path) -> None:
        with pytest.raises(ValueError, match="outside"):
            validate_path_within(tmp_path / ".." / "etc" / "passwd", tmp_path)


class TestExpandCommand:
    def test_substitutes_placeholders(self) -> None:
        command = expand_command(
            ["java", "-cp", "{output_dir}", "{stem}"],
            {"output_dir": "/b/out", "stem": "Main"},
        )
        assert command == ("java", "-cp", "/b/out", "Main")

    def test_leaves_other_braces_alone(self) -> None:
        command = expand_command(["-c", "d = {}; print('{source}')"], {"source": "a.py"})
        assert command == ("-c", "d = {}; print('a.py')")


class TestCompiler:
    def test_successful_compile_produces_artifact(
        self,
        tmp_path: Path,
        python_toolchain: ToolchainConfig,
        write_submission: Callable[..., Submission],
    ) -> None:
        submission = write_submission("alice", "hello", "print('hi')\n")

        with BuildDirectory(submission, base_dir=tmp_path / "work") as build_dir:
            result = Compiler(python_toolchain).compile(submission, build_dir)

            assert result.success
            assert result.exit_code == 0
            assert result.artifact is not None
            assert result.artifact.output_dir == build_dir / OUTPUT_SUBDIR
            assert (build_dir / OUTPUT_SUBDIR / "alice_hello.pyc").is_file()
            assert (build_dir / SOURCE_SUBDIR / "alice_hello.py").is_file()
            assert result.artifact.run_command[-1] == str(build_dir / OUTPUT_SUBDIR / "alice_hello.pyc")

    def test_syntax_error_is_reported_not_raised(
        self,
        tmp_path: Path,
        python_toolchain: ToolchainConfig,
        write_submission: Callable[..., Submission],
    ) -> None:
        submission = write_submission("bob", "hello", "def broken(:\n")

        with BuildDirectory(submission, base_dir=tmp_path) as build_dir:
            result = Compiler(python_toolchain).compile(submission, build_dir)

        assert not result.success
        assert result.exit_code != 0
        assert result.artifact is None
        assert "SyntaxError" in result.diagnostics

    def test_missing_source_is_a_failed_compile(
        self, tmp_path: Path, python_toolchain: ToolchainConfig
    ) -> None:
        submission = _submission(tmp_path)

        with BuildDirectory(submission, base_dir=tmp_path) as build_dir:
            result = Compiler(python_toolchain).compile(submission, build_dir)

        assert not result.success
        assert "Cannot read source file" in result.diagnostics

    def test_missing_compiler_is_a_failed_compile(
        self, tmp_path: Path, write_submission: Callable[..., Submission]
    ) -> None:
        toolchain = ToolchainConfig(compile_command=["gradeline-no-such-compiler", "{source}"])
        submission = write_submission("carol", "hello", "x = 1\n")

        with BuildDirectory(submission, base_dir=tmp_path) as build_dir:
            result = Compiler(toolchain).compile(submission, build_dir)

        assert not result.success
        assert "not found" in result.diagnostics

    def test_compile_timeout(
        self, tmp_path: Path, write_submission: Callable[..., Submission]
    ) -> None:
        toolchain = ToolchainConfig(
            compile_command=[sys.executable, "-c", "import time; time.sleep(30)"],
            compile_timeout_seconds=0.5,
        )
        submission = write_submission("dave", "hello", "x = 1\n")

        with BuildDirectory(submission, base_dir=tmp_path) as build_dir:
            result = Compiler(toolchain).compile(submission, build_dir)

        assert not result.success
        assert "timed out" in result.diagnostics
        assert result.elapsed_seconds < 10

    def test_deadline_caps_compile_timeout(
        self, tmp_path: Path, write_submission: Callable[..., Submission]
    ) -> None:
        toolchain = ToolchainConfig(
            compile_command=[sys.executable, "-c", "import time; time.sleep(30)"],
            compile_timeout_seconds=60.0,
        )
        submission = write_submission("erin", "hello", "x = 1\n")

        with BuildDirectory(submission, base_dir=tmp_path) as build_dir:
            result = Compiler(toolchain).compile(submission, build_dir, Deadline.after(0.5))

        assert not result.success
        assert result.elapsed_seconds < 10

    def test_toolchain_env_overrides_reach_compiler(
        self, tmp_path: Path, write_submission: Callable[..., Submission]
    ) -> None:
        toolchain = ToolchainConfig(
            compile_command=[
                sys.executable,
                "-c",
                "import os, sys; sys.exit(0 if os.environ.get('GRADELINE_MARK') == 'x' else 1)",
            ],
            env={"GRADELINE_MARK": "x"},
        )
        submission = write_submission("frank", "hello", "x = 1\n")

        with BuildDirectory(submission, base_dir=tmp_path) as build_dir:
            result = Compiler(toolchain).compile(submission, build_dir)

        assert result.success
