"""Environment-derived settings for claude-python-guardrails.

Provides GuardrailsSettings for the values that come from the process
environment rather than the YAML rules file. Programmatic users (and
tests) can construct it directly; the CLI uses from_env().

Environment Variables:
    LLM_API_KEY: API key for analysis calls (fallback to ANTHROPIC_API_KEY)
    ANTHROPIC_API_KEY: Anthropic API key; AI analysis is off without a key
    LLM_BASE_URL / ANTHROPIC_BASE_URL: Base URL for the analysis API
    CLAUDE_PYTHON_GUARDRAILS_MODEL: Model used for analysis
    CLAUDE_PYTHON_GUARDRAILS_AI_TIMEOUT: HTTP timeout in seconds (default: 30)
    CLAUDE_PYTHON_GUARDRAILS_DISABLE_AI: Set to 1 to force heuristic analysis
    CLAUDE_PYTHON_GUARDRAILS_LOCK_DIR: Directory for lock files (default: temp dir)
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from guardrails.core.errors import ConfigError
from guardrails.infra.tools.env import ENV_PREFIX, get_lock_dir

DEFAULT_ANALYSIS_MODEL = "claude-haiku-4-5"
DEFAULT_ANALYSIS_TIMEOUT = 30.0


@dataclass(frozen=True)
class GuardrailsSettings:
    """Settings that come from the environment.

    Attributes:
        llm_api_key: API key for analysis calls. None disables AI analysis.
        llm_base_url: Optional base URL for routing through a proxy.
        analysis_model: Model name for analysis calls.
        analysis_timeout: HTTP timeout in seconds for analysis calls.
        ai_disabled: Force the deterministic fallbacks even with a key.
        lock_dir: Directory holding workspace lock files.
    """

    llm_api_key: str | None = None
    llm_base_url: str | None = None
    analysis_model: str = DEFAULT_ANALYSIS_MODEL
    analysis_timeout: float = DEFAULT_ANALYSIS_TIMEOUT
    ai_disabled: bool = False
    lock_dir: Path = field(default_factory=get_lock_dir)

    @property
    def ai_enabled(self) -> bool:
        """AI analysis runs only with an API key and without the kill switch."""
        return self.llm_api_key is not None and not self.ai_disabled

    @classmethod
    def from_env(cls) -> GuardrailsSettings:
        """Create settings from environment variables.

        Raises:
            ConfigError: If the analysis timeout is not a positive number.
        """
        # Treat empty strings as unset
        llm_api_key = (
            os.environ.get("LLM_API_KEY") or os.environ.get("ANTHROPIC_API_KEY") or None
        )
        llm_base_url = (
            os.environ.get("LLM_BASE_URL")
            or os.environ.get("ANTHROPIC_BASE_URL")
            or None
        )
        model = os.environ.get(f"{ENV_PREFIX}_MODEL") or DEFAULT_ANALYSIS_MODEL

        timeout = DEFAULT_ANALYSIS_TIMEOUT
        timeout_raw = os.environ.get(f"{ENV_PREFIX}_AI_TIMEOUT")
        if timeout_raw:
            try:
                timeout = float(timeout_raw)
            except ValueError:
                raise ConfigError(
                    f"{ENV_PREFIX}_AI_TIMEOUT: invalid number '{timeout_raw}'"
                ) from None
            if not timeout > 0:
                raise ConfigError(
                    f"{ENV_PREFIX}_AI_TIMEOUT must be positive, got {timeout_raw}"
                )

        disable_raw = os.environ.get(f"{ENV_PREFIX}_DISABLE_AI", "").lower()
        ai_disabled = disable_raw in ("1", "true", "yes", "on")

        return cls(
            llm_api_key=llm_api_key,
            llm_base_url=llm_base_url,
            analysis_model=model,
            analysis_timeout=timeout,
            ai_disabled=ai_disabled,
            lock_dir=get_lock_dir(),
        )
