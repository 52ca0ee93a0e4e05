# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Tests for environment checks and the bootstrap sequence.
"""

import logging
from pathlib import Path
from unittest.mock import patch

import pytest

from gradeline.config.schema import GraderConfig
from gradeline.runtime.bootstrap import bootstrap
from gradeline.runtime.environment import (
    available_parallelism,
    check_minimum_python,
    get_system_info,
)


def _config(root: Path, **global_overrides: object) -> GraderConfig:
    return GraderConfig.model_validate({
        "global": {"config_version": "1.0.0", **global_overrides},
        "paths": {"root_directory": str(root)},
    })


@pytest.fixture(autouse=True)
def _drop_file_handlers() -> None:
    """Detach file sinks bootstrap added so later tests don't write to this tmp_path."""
    yield  # type: ignore[misc]
    for name in list(logging.Logger.manager.loggerDict):
        if not name.startswith("gradeline"):
            continue
        logger = logging.getLogger(name)
        for handler in [h for h in logger.handlers if isinstance(h, logging.FileHandler)]:
            logger.removeHandler(handler)
            handler.close()


class TestEnvironment:
    def test_current_python_is_supported(self) -> None:
        check_minimum_python()

    def test_old_python_is_rejected(self) -> None:
        with patch("gradeline.runtime.environment.get_python_version", return_value=(3, 9, 0)):
            with pytest.raises(RuntimeError, match="requires Python"):
                check_minimum_python()

    def test_available_parallelism_is_positive(self) -> None:
        assert available_parallelism() >= 1

    def test_system_info_has_cpu_count(self) -> None:
        info = get_system_info()
        assert info.cpu_count >= 1
        assert info.python_version


class TestBootstrap:
    def test_creates_reports_directory(self, tmp_path: Path) -> None:
        bootstrap(_config(tmp_path))
        assert (tmp_path / "reports").is_dir()

    def test_log_file_is_created(self, tmp_path: Path) -> None:
        log_file = tmp_path / "logs" / "grader.log"
        bootstrap(_config(tmp_path, log_file=str(log_file)))
        assert log_file.is_file()

    def test_invalid_log_level_raises(self, tmp_path: Path) -> None:
        with pytest.raises(ValueError):
            bootstrap(_config(tmp_path), log_level="LOUD")
