# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Shared pytest fixtures for gradeline tests.

Fixtures here are available to every test file automatically.

Pipeline tests grade small Python programs instead of Java ones so the
suite runs without a JDK: the "compiler" byte-compiles the source with
py_compile and the program is the resulting .pyc run by this interpreter.
"""

import sys
import textwrap
from pathlib import Path
from typing import Callable

import pytest

from gradeline.config.schema import GradingConfig, ToolchainConfig
from gradeline.evaluation.models import Submission

BANKACC_INPUT = "8\nd 6 1000\nq 4\nd 4 500\nq 4\nw 4 750\nw 6 200\nq 6\nq 4\n"
BANKACC_EXPECTED = "s\n0\ns\n500\nf\ns\n800\n500\n"

BANKACC_SOLUTION = textwrap.dedent('''\
    """
    /* USER: alice TASK: bankacc */
    """
    import sys

    lines = sys.stdin.read().splitlines()
    count = int(lines[0])
    balances = {}
    out = []
    for line in lines[1:count + 1]:
        op, account, *rest = line.split()
        if op == "d":
            balances[account] = balances.get(account, 0) + int(rest[0])
            out.append("s")
        elif op == "w":
            amount = int(rest[0])
            if balances.get(account, 0) >= amount:
                balances[account] -= amount
                out.append("s")
            else:
                out.append("f")
        else:
            out.append(str(balances.get(account, 0)))
    print("\\n".join(out))
''')


@pytest.fixture()
def tmp_config_file(tmp_path: Path) -> Path:
    """
    Create a minimal valid config YAML file in a temp directory.

    This is the smallest config that passes schema validation.
    Tests that need specific config values should write their own files.
    """
    config_content = textwrap.dedent("""\
        global:
          config_version: "1.0.0"
          project_name: "gradeline-test"
          log_level: "DEBUG"
    """)
    config_file = tmp_path / "test_config.yaml"
    config_file.write_text(config_content, encoding="utf-8")
    return config_file


@pytest.fixture()
def invalid_config_file(tmp_path: Path) -> Path:
    """A config file that's valid YAML but fails schema validation (missing required field)."""
    config_content = textwrap.dedent("""\
        global:
          project_name: "gradeline-test"
    """)
    config_file = tmp_path / "invalid_config.yaml"
    config_file.write_text(config_content, encoding="utf-8")
    return config_file


@pytest.fixture()
def broken_yaml_file(tmp_path: Path) -> Path:
    """A file that isn't valid YAML at all."""
    config_file = tmp_path / "broken.yaml"
    config_file.write_text("{{not: yaml: at: all:::", encoding="utf-8")
    return config_file


@pytest.fixture()
def python_toolchain() -> ToolchainConfig:
    """A toolchain that 'compiles' Python sources to .pyc and runs them."""
    return ToolchainConfig(
        source_suffix=".py",
        compile_command=[
            sys.executable,
            "-c",
            "import py_compile, sys; "
            "py_compile.compile(sys.argv[1], cfile=sys.argv[2], doraise=True)",
            "{source}",
            "{output_dir}/{stem}.pyc",
        ],
        run_command=[sys.executable, "{output_dir}/{stem}.pyc"],
        compile_timeout_seconds=30.0,
    )


@pytest.fixture()
def grading_config() -> GradingConfig:
    """Default limits with a short per-test timeout so hung programs fail fast."""
    return GradingConfig(
        execution_timeout_seconds=5.0,
        submission_timeout_seconds=60.0,
    )


@pytest.fixture()
def write_submission(tmp_path: Path) -> Callable[..., Submission]:
    """Factory: write a source file under tmp_path/submissions and wrap it in a Submission."""
    submissions_dir = tmp_path / "submissions"

    def _write(owner: str, task_id: str, source: str, filename: str | None = None) -> Submission:
        submissions_dir.mkdir(parents=True, exist_ok=True)
        path = submissions_dir / (filename or f"{owner}_{task_id}.py")
        path.write_text(source, encoding="utf-8")
        return Submission(owner=owner, task_id=task_id, source_path=path)

    return _write


@pytest.fixture()
def write_test_pair(tmp_path: Path) -> Callable[..., Path]:
    """Factory: write <name>.in / <name>.out into a test location (default tmp_path/tests)."""

    def _write(name: str, input_text: str, expected_text: str, location: Path | None = None) -> Path:
        directory = location or (tmp_path / "tests")
        directory.mkdir(parents=True, exist_ok=True)
        (directory / f"{name}.in").write_text(input_text, encoding="utf-8")
        (directory / f"{name}.out").write_text(expected_text, encoding="utf-8")
        return directory

    return _write


@pytest.fixture()
def bankacc_solution() -> str:
    """A correct solution for the bankacc task, with its discovery header."""
    return BANKACC_SOLUTION


@pytest.fixture()
def bankacc_tests(write_test_pair: Callable[..., Path]) -> Path:
    """The bankacc sample test pair, written to tmp_path/tests."""
    return write_test_pair("bankacc", BANKACC_INPUT, BANKACC_EXPECTED)
