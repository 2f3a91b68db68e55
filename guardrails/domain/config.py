"""Configuration dataclasses for claude-python-guardrails.

The configuration mirrors the YAML file layout:

    exclude:
      patterns: [...]          # global globs, veto every context
      python:
        lint_skip: [...]
        test_skip: [...]
    rules:
      max_file_size: "10MB"
      skip_binary_files: true
      skip_generated_files: true
    automation:
      lint: {enabled, cooldown_seconds, timeout_seconds, preferred_tool}
      test: {enabled, cooldown_seconds, timeout_seconds, preferred_tool}

All config objects are frozen; a GuardrailsConfig is built once per
process and never mutated.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field

from guardrails.core.errors import ConfigError

__all__ = [
    "AutomationCommandConfig",
    "AutomationConfig",
    "ConfigError",
    "ExclusionConfig",
    "GuardrailsConfig",
    "PythonExclusions",
    "RulesConfig",
    "default_config",
    "parse_file_size",
]

DEFAULT_MAX_FILE_SIZE = "10MB"
DEFAULT_COOLDOWN_SECONDS = 2
DEFAULT_TIMEOUT_SECONDS = 20

_SIZE_UNITS = (
    ("KB", 1024),
    ("MB", 1024 * 1024),
    ("GB", 1024 * 1024 * 1024),
)


def parse_file_size(size_str: str) -> int:
    """Parse a size string like "10MB" into bytes.

    Units are KB, MB and GB (powers of 1024), case-insensitive. A bare
    integer is a byte count. Fractional unit values are truncated.

    Examples:
        >>> parse_file_size("10MB")
        10485760
        >>> parse_file_size("1.5kb")
        1536
        >>> parse_file_size(" 512 ")
        512

    Raises:
        ConfigError: If the string is empty, has no number, has an unknown
            unit, or is negative.
    """
    normalized = size_str.strip().upper()
    if not normalized:
        raise ConfigError("Invalid file size: empty string")

    for suffix, multiplier in _SIZE_UNITS:
        if normalized.endswith(suffix):
            number_str = normalized[: -len(suffix)].strip()
            try:
                number = float(number_str)
            except ValueError:
                raise ConfigError(
                    f"Invalid file size number in '{size_str}'"
                ) from None
            if not math.isfinite(number):
                raise ConfigError(f"Invalid file size number in '{size_str}'")
            if number < 0:
                raise ConfigError(f"File size cannot be negative: '{size_str}'")
            return int(number * multiplier)

    try:
        size = int(normalized)
    except ValueError:
        raise ConfigError(f"Invalid file size: '{size_str}'") from None
    if size < 0:
        raise ConfigError(f"File size cannot be negative: '{size_str}'")
    return size


@dataclass(frozen=True)
class PythonExclusions:
    """Python-specific skip patterns.

    Attributes:
        lint_skip: Globs excluded from linting only.
        test_skip: Globs excluded from testing only.
    """

    lint_skip: tuple[str, ...] = ()
    test_skip: tuple[str, ...] = ()


@dataclass(frozen=True)
class ExclusionConfig:
    """Glob-based exclusions.

    Attributes:
        patterns: Global globs. A match excludes the file from every context.
        python: Context-specific globs.
    """

    patterns: tuple[str, ...] = ()
    python: PythonExclusions = field(default_factory=PythonExclusions)


@dataclass(frozen=True)
class RulesConfig:
    """File-level heuristics applied after pattern checks."""

    max_file_size: str = DEFAULT_MAX_FILE_SIZE
    skip_binary_files: bool = True
    skip_generated_files: bool = True


@dataclass(frozen=True)
class AutomationCommandConfig:
    """Settings for one automated operation (lint or test).

    Attributes:
        enabled: Whether the operation runs at all.
        cooldown_seconds: Quiet period after a completed run.
        timeout_seconds: Wall-clock limit for each tool invocation.
        preferred_tool: Tool name to use when available, e.g. "ruff".
    """

    enabled: bool = True
    cooldown_seconds: int = DEFAULT_COOLDOWN_SECONDS
    timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS
    preferred_tool: str | None = None


@dataclass(frozen=True)
class AutomationConfig:
    lint: AutomationCommandConfig = field(default_factory=AutomationCommandConfig)
    test: AutomationCommandConfig = field(default_factory=AutomationCommandConfig)

    def for_operation(self, operation: str) -> AutomationCommandConfig:
        """Return the settings for "lint" or "test"."""
        if operation == "lint":
            return self.lint
        if operation == "test":
            return self.test
        raise ValueError(f"Unknown operation: {operation}")


@dataclass(frozen=True)
class GuardrailsConfig:
    """Top-level configuration."""

    exclude: ExclusionConfig = field(default_factory=ExclusionConfig)
    rules: RulesConfig = field(default_factory=RulesConfig)
    automation: AutomationConfig = field(default_factory=AutomationConfig)


def default_config() -> GuardrailsConfig:
    """Built-in configuration used when no config file is given."""
    return GuardrailsConfig(
        exclude=ExclusionConfig(
            patterns=(
                "*.pyc",
                "__pycache__/",
                ".venv/**",
                "venv/**",
                ".git/",
                "*.egg-info/",
                ".pytest_cache/",
                ".mypy_cache/",
                "target/**",
                "node_modules/**",
                "dist/**",
                "build/**",
            ),
            python=PythonExclusions(
                lint_skip=(
                    "migrations/**",
                    "*/migrations/**",
                    "*_pb2.py",
                    "*_pb2_grpc.py",
                    "*.generated.py",
                    "*_generated.py",
                ),
                test_skip=(
                    "conftest.py",
                    "**/conftest.py",
                    "test_*.py",
                    "*_test.py",
                    "tests/fixtures/**",
                    "tests/data/**",
                ),
            ),
        ),
        rules=RulesConfig(),
        automation=AutomationConfig(),
    )
