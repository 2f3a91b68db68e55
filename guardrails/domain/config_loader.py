"""YAML configuration loader for claude-python-guardrails.

This module handles loading, parsing, and validating guardrails YAML
files. It converts the raw YAML data into the frozen dataclasses in
guardrails.domain.config.

Key functions:
- load_config: Load and validate a config file from disk
- parse_config: Parse YAML text into a GuardrailsConfig
- resolve_config: Pick the config source (CLI option, env var, defaults)
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml

from guardrails.core.errors import ConfigError
from guardrails.infra.tools.env import get_config_path_from_env

from .config import (
    AutomationCommandConfig,
    AutomationConfig,
    ExclusionConfig,
    GuardrailsConfig,
    PythonExclusions,
    RulesConfig,
    default_config,
    parse_file_size,
)
from .discovery import LINTER_NAMES, TESTER_NAMES

logger = logging.getLogger(__name__)

# Fields allowed at each level of the YAML document
_ALLOWED_TOP_LEVEL_FIELDS = frozenset({"exclude", "rules", "automation"})
_ALLOWED_EXCLUDE_FIELDS = frozenset({"patterns", "python"})
_ALLOWED_PYTHON_FIELDS = frozenset({"lint_skip", "test_skip"})
_ALLOWED_RULES_FIELDS = frozenset(
    {"max_file_size", "skip_binary_files", "skip_generated_files"}
)
_ALLOWED_AUTOMATION_FIELDS = frozenset({"lint", "test"})
_ALLOWED_COMMAND_FIELDS = frozenset(
    {"enabled", "cooldown_seconds", "timeout_seconds", "preferred_tool"}
)


def load_config(config_path: Path) -> GuardrailsConfig:
    """Load and validate a guardrails config file.

    Args:
        config_path: Path to the YAML file.

    Returns:
        Validated GuardrailsConfig.

    Raises:
        ConfigError: If the file is missing, unreadable, or invalid.
    """
    try:
        content = config_path.read_text()
    except FileNotFoundError:
        raise ConfigError(f"Config file not found: {config_path}") from None
    except OSError as e:
        raise ConfigError(f"Failed to read {config_path}: {e}") from e
    logger.debug("Loaded guardrails config from %s", config_path)
    return parse_config(content)


def parse_config(content: str) -> GuardrailsConfig:
    """Parse YAML text into a validated GuardrailsConfig.

    Missing sections take their dataclass defaults. Missing pattern lists
    are empty, not the built-in defaults.

    Raises:
        ConfigError: If YAML syntax, structure, or any value is invalid.
    """
    data = _parse_yaml(content)
    _check_fields(data, _ALLOWED_TOP_LEVEL_FIELDS, "config")
    config = GuardrailsConfig(
        exclude=_parse_exclude(_section(data, "exclude", "config")),
        rules=_parse_rules(_section(data, "rules", "config")),
        automation=_parse_automation(_section(data, "automation", "config")),
    )
    _validate_config(config)
    return config


def resolve_config(explicit_path: Path | None = None) -> GuardrailsConfig:
    """Pick the active configuration.

    Order: explicit path (--config), then CLAUDE_PYTHON_GUARDRAILS_CONFIG,
    then default_config().

    Raises:
        ConfigError: If a named config file is missing or invalid.
    """
    path = explicit_path if explicit_path is not None else get_config_path_from_env()
    if path is None:
        return default_config()
    return load_config(path)


def _parse_yaml(content: str) -> dict[str, Any]:
    """Parse YAML content into a dictionary.

    Args:
        content: Raw YAML string content.

    Returns:
        Parsed dictionary. Returns empty dict for empty/null YAML.

    Raises:
        ConfigError: If YAML syntax is invalid.
    """
    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML syntax in guardrails config: {e}") from e

    # Handle empty file or file with only comments
    if data is None:
        return {}

    if not isinstance(data, dict):
        raise ConfigError(
            f"Guardrails config must be a YAML mapping, got {type(data).__name__}"
        )

    return data


def _check_fields(data: dict[str, Any], allowed: frozenset[str], where: str) -> None:
    unknown_fields = set(data.keys()) - allowed
    if unknown_fields:
        # Convert to str to handle non-string YAML keys (null, integers)
        first_unknown = sorted(str(k) for k in unknown_fields)[0]
        raise ConfigError(f"Unknown field '{first_unknown}' in {where}")


def _section(data: dict[str, Any], key: str, where: str) -> dict[str, Any]:
    """Return a nested mapping, treating a missing or null section as empty."""
    value = data.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigError(
            f"'{key}' in {where} must be a mapping, got {type(value).__name__}"
        )
    return value


def _parse_patterns(data: dict[str, Any], key: str, where: str) -> tuple[str, ...]:
    value = data.get(key)
    if value is None:
        return ()
    if not isinstance(value, list):
        raise ConfigError(
            f"{where}.{key} must be a list, got {type(value).__name__}"
        )
    for i, item in enumerate(value):
        if not isinstance(item, str):
            raise ConfigError(
                f"{where}.{key}[{i}] must be a string, got {type(item).__name__}"
            )
    return tuple(value)


def _parse_bool(data: dict[str, Any], key: str, where: str, default: bool) -> bool:
    value = data.get(key)
    if value is None:
        return default
    if not isinstance(value, bool):
        raise ConfigError(
            f"{where}.{key} must be a boolean, got {type(value).__name__}"
        )
    return value


def _parse_non_negative_int(
    data: dict[str, Any], key: str, where: str, default: int
) -> int:
    value = data.get(key)
    if value is None:
        return default
    # Reject booleans explicitly (bool is subclass of int)
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigError(
            f"{where}.{key} must be an integer, got {type(value).__name__}"
        )
    if value < 0:
        raise ConfigError(f"{where}.{key} must be non-negative, got {value}")
    return value


def _parse_exclude(data: dict[str, Any]) -> ExclusionConfig:
    _check_fields(data, _ALLOWED_EXCLUDE_FIELDS, "exclude")
    python = _section(data, "python", "exclude")
    _check_fields(python, _ALLOWED_PYTHON_FIELDS, "exclude.python")
    return ExclusionConfig(
        patterns=_parse_patterns(data, "patterns", "exclude"),
        python=PythonExclusions(
            lint_skip=_parse_patterns(python, "lint_skip", "exclude.python"),
            test_skip=_parse_patterns(python, "test_skip", "exclude.python"),
        ),
    )


def _parse_rules(data: dict[str, Any]) -> RulesConfig:
    _check_fields(data, _ALLOWED_RULES_FIELDS, "rules")
    defaults = RulesConfig()

    max_file_size = data.get("max_file_size", defaults.max_file_size)
    if isinstance(max_file_size, int) and not isinstance(max_file_size, bool):
        # Allow a bare byte count written as a YAML integer
        max_file_size = str(max_file_size)
    if not isinstance(max_file_size, str):
        raise ConfigError(
            "rules.max_file_size must be a string like '10MB', "
            f"got {type(max_file_size).__name__}"
        )

    return RulesConfig(
        max_file_size=max_file_size,
        skip_binary_files=_parse_bool(
            data, "skip_binary_files", "rules", defaults.skip_binary_files
        ),
        skip_generated_files=_parse_bool(
            data, "skip_generated_files", "rules", defaults.skip_generated_files
        ),
    )


def _parse_command_config(
    data: dict[str, Any], operation: str, known_tools: frozenset[str]
) -> AutomationCommandConfig:
    where = f"automation.{operation}"
    _check_fields(data, _ALLOWED_COMMAND_FIELDS, where)
    defaults = AutomationCommandConfig()

    preferred_tool = data.get("preferred_tool")
    if preferred_tool is not None:
        if not isinstance(preferred_tool, str):
            raise ConfigError(
                f"{where}.preferred_tool must be a string, "
                f"got {type(preferred_tool).__name__}"
            )
        if preferred_tool not in known_tools:
            valid = ", ".join(sorted(known_tools))
            raise ConfigError(
                f"Unknown {where}.preferred_tool '{preferred_tool}'. "
                f"Valid values: {valid}"
            )

    return AutomationCommandConfig(
        enabled=_parse_bool(data, "enabled", where, defaults.enabled),
        cooldown_seconds=_parse_non_negative_int(
            data, "cooldown_seconds", where, defaults.cooldown_seconds
        ),
        timeout_seconds=_parse_non_negative_int(
            data, "timeout_seconds", where, defaults.timeout_seconds
        ),
        preferred_tool=preferred_tool,
    )


def _parse_automation(data: dict[str, Any]) -> AutomationConfig:
    _check_fields(data, _ALLOWED_AUTOMATION_FIELDS, "automation")
    return AutomationConfig(
        lint=_parse_command_config(
            _section(data, "lint", "automation"), "lint", LINTER_NAMES
        ),
        test=_parse_command_config(
            _section(data, "test", "automation"), "test", TESTER_NAMES
        ),
    )


def _validate_config(config: GuardrailsConfig) -> None:
    """Cross-field checks that need the assembled config.

    Raises:
        ConfigError: If the size string is invalid or a timeout is zero.
    """
    parse_file_size(config.rules.max_file_size)
    for operation in ("lint", "test"):
        command = config.automation.for_operation(operation)
        if command.timeout_seconds == 0:
            raise ConfigError(
                f"automation.{operation}.timeout_seconds must be at least 1"
            )
