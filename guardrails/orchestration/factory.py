"""Factory for AutomationRunner.

Wires the production collaborators from the two configuration sources:

    config = resolve_config(explicit_path)      # YAML rules
    settings = GuardrailsSettings.from_env()    # environment
    runner = create_automation_runner(config, settings)
"""

from __future__ import annotations

import functools
from typing import TYPE_CHECKING

from guardrails.domain.exclusion import ExclusionEngine
from guardrails.infra.clients.analyzer import OutputAnalyzer
from guardrails.infra.tools.locking import LockGuard
from guardrails.orchestration.automation import AutomationRunner

if TYPE_CHECKING:
    from pathlib import Path

    from guardrails.domain.config import GuardrailsConfig
    from guardrails.infra.io.config import GuardrailsSettings


def create_automation_runner(
    config: GuardrailsConfig,
    settings: GuardrailsSettings,
    base_dir: Path | None = None,
) -> AutomationRunner:
    """Build an AutomationRunner with production collaborators.

    Args:
        config: Exclusion rules and per-operation automation settings.
        settings: Environment settings (AI access, lock directory).
        base_dir: Directory exclusion patterns are relative to. Defaults
            to the current working directory.

    Raises:
        ConfigError: If an exclusion pattern is invalid.
    """
    engine = ExclusionEngine.from_config(config, base_dir=base_dir)
    return AutomationRunner(
        config,
        engine,
        OutputAnalyzer(settings),
        lock_factory=functools.partial(LockGuard.try_acquire, lock_dir=settings.lock_dir),
    )
