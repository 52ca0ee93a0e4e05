# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Turns a grader YAML file into a frozen GraderConfig.

Reading and YAML parsing problems surface as ConfigLoadError; a document that
parses but does not fit the schema surfaces as ConfigValidationError. Either
one stops a grading run before the first submission is compiled.
"""

from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from gradeline.config.exceptions import ConfigLoadError, ConfigValidationError
from gradeline.config.schema import GraderConfig


def _parse_document(config_path: Path) -> dict[str, Any]:
    if not config_path.is_file():
        problem = "does not exist" if not config_path.exists() else "is not a regular file"
        raise ConfigLoadError(f"Grader config {config_path} {problem}")

    try:
        with config_path.open("r", encoding="utf-8") as handle:
            document = yaml.safe_load(handle)
    except OSError as err:
        raise ConfigLoadError(f"Grader config {config_path} could not be read: {err}") from err
    except yaml.YAMLError as err:
        raise ConfigLoadError(f"Grader config {config_path} is not valid YAML: {err}") from err

    if not isinstance(document, dict):
        raise ConfigLoadError(
            f"Grader config {config_path} must be a mapping at the top level, "
            f"found {type(document).__name__}"
        )
    return document


def load_config(config_path: Path) -> GraderConfig:
    """
    Parse and validate the grader config at `config_path`.

    Raises:
        ConfigLoadError: The file is missing, unreadable or not a YAML mapping.
        ConfigValidationError: A section has unknown keys, wrong types or
            out-of-range values.
    """
    document = _parse_document(config_path)
    try:
        return GraderConfig.model_validate(document)
    except ValidationError as err:
        raise ConfigValidationError(
            f"Grader config {config_path} has {err.error_count()} invalid field(s):\n{err}"
        ) from err
