# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Type-safe configuration schemas for gradeline.

Every config section gets its own frozen pydantic model. Frozen means once
you create it, you cannot mutate it: the grading pipeline receives one
immutable value at construction time and never looks anything up from
process-wide state.

The models use pydantic v2's ConfigDict with:
  - frozen=True: immutability after construction
  - extra="forbid": unknown fields cause immediate failure
  - validate_default=True: even defaults get type-checked
"""

from pathlib import Path
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

_FROZEN = ConfigDict(frozen=True, extra="forbid", validate_default=True)


class GlobalConfig(BaseModel):
    """
    Cross-cutting settings: project identity and observability.
    """

    model_config = _FROZEN

    config_version: str = Field(
        description="Schema version for compatibility tracking, e.g. '1.0.0'"
    )
    project_name: str = Field(
        default="gradeline", description="Human-readable competition identifier"
    )
    log_level: str = Field(
        default="INFO",
        description="One of DEBUG, INFO, WARNING, ERROR, CRITICAL",
    )
    log_file: Optional[str] = Field(
        default=None,
        description="Optional path for file-based log output",
    )


class PathsConfig(BaseModel):
    """Where submissions are found and where reports land."""

    model_config = _FROZEN

    root_directory: str = Field(
        default=".", description="Competition root; other paths resolve against it"
    )
    submissions_directory: str = Field(
        default="submissions", description="Searched recursively for source files"
    )
    reports_directory: str = Field(
        default="reports", description="Report and leaderboard output"
    )
    work_directory: Optional[str] = Field(
        default=None,
        description="Parent for per-submission build directories (None = system temp)",
    )

    def resolve(self, relative: str) -> Path:
        """Resolve a configured path against the competition root."""
        path = Path(relative)
        if path.is_absolute():
            return path
        return Path(self.root_directory) / path


class GradingConfig(BaseModel):
    """
    The limits and test layout every submission is graded under.

    This is the value the Scheduler, Evaluator and ExecutionCell are built
    from. Times are seconds, memory is bytes.
    """

    model_config = _FROZEN

    execution_timeout_seconds: float = Field(
        default=10.0,
        gt=0.0,
        description="Wall-clock limit for a single test case run",
    )
    memory_limit_bytes: int = Field(
        default=64 * 1024 * 1024,
        ge=1,
        description="Aggregate memory limit checked after all test cases pass",
    )
    test_locations: list[str] = Field(
        default_factory=lambda: ["tests", "test-data", "test_files", "."],
        description="Directories searched in order for test pairs, relative to root",
    )
    input_suffix: str = Field(default=".in", min_length=1)
    output_suffix: str = Field(default=".out", min_length=1)
    concurrency: Optional[int] = Field(
        default=None,
        ge=1,
        description="Worker pool size (None = available parallelism)",
    )
    submission_timeout_seconds: Optional[float] = Field(
        default=120.0,
        gt=0.0,
        description="Total budget for one submission, compile included (None = unbounded)",
    )
    memory_accounting: Literal["process_delta", "child_peak"] = Field(
        default="process_delta",
        description="How per-run memory is sampled",
    )
    diff_max_lines: int = Field(
        default=20,
        ge=1,
        description="Longest diff kept in a wrong-output diagnostic",
    )

    @field_validator("output_suffix")
    @classmethod
    def _suffixes_differ(cls, value: str, info: ValidationInfo) -> str:
        if value == info.data.get("input_suffix"):
            raise ValueError("output_suffix must differ from input_suffix")
        return value


class ToolchainConfig(BaseModel):
    """
    The single language every submission is built and run with.

    Command templates are argument lists; `{source}`, `{source_dir}`,
    `{output_dir}` and `{stem}` are substituted literally. No shell is used.
    """

    model_config = _FROZEN

    source_suffix: str = Field(default=".java", min_length=1)
    compile_command: list[str] = Field(
        default_factory=lambda: ["javac", "-d", "{output_dir}", "{source}"],
        min_length=1,
    )
    run_command: list[str] = Field(
        default_factory=lambda: ["java", "-cp", "{output_dir}", "{stem}"],
        min_length=1,
    )
    compile_timeout_seconds: float = Field(
        default=60.0,
        gt=0.0,
        description="Max seconds to wait for the compiler before declaring failure",
    )
    env: dict[str, str] = Field(
        default_factory=dict,
        description="Environment overrides for compiler and program processes",
    )


class GraderConfig(BaseModel):
    """
    Top-level config container.

    Only `global.config_version` is required; every other section falls back
    to its defaults so a two-line YAML file is a valid competition config.
    """

    model_config = ConfigDict(
        frozen=True, extra="forbid", validate_default=True, populate_by_name=True
    )

    global_config: GlobalConfig = Field(alias="global")
    paths: PathsConfig = Field(default_factory=PathsConfig)
    grading: GradingConfig = Field(default_factory=GradingConfig)
    toolchain: ToolchainConfig = Field(default_factory=ToolchainConfig)

    def test_location_paths(self) -> list[Path]:
        return [self.paths.resolve(location) for location in self.grading.test_locations]


def default_config() -> GraderConfig:
    """The config used when the CLI is run without --config."""
    return GraderConfig.model_validate({"global": {"config_version": "1.0.0"}})
