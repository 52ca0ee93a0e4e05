# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Configuration failures.

Separate from the evaluation exceptions so the CLI can map them to
CONFIG_ERROR without importing the grading pipeline.
"""


class ConfigError(Exception):
    """Anything that keeps a grader config from being used."""


class ConfigLoadError(ConfigError):
    """The config file is missing, unreadable, or not a YAML mapping."""


class ConfigValidationError(ConfigError):
    """The YAML parsed, but a section violates the GraderConfig schema."""
