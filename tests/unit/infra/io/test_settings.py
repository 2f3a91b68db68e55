"""Unit tests for environment-derived settings."""

from __future__ import annotations

from pathlib import Path

import pytest

from guardrails.core.errors import ConfigError
from guardrails.infra.io.config import (
    DEFAULT_ANALYSIS_MODEL,
    DEFAULT_ANALYSIS_TIMEOUT,
    GuardrailsSettings,
)

_ENV_KEYS = (
    "LLM_API_KEY",
    "ANTHROPIC_API_KEY",
    "LLM_BASE_URL",
    "ANTHROPIC_BASE_URL",
    "CLAUDE_PYTHON_GUARDRAILS_MODEL",
    "CLAUDE_PYTHON_GUARDRAILS_AI_TIMEOUT",
    "CLAUDE_PYTHON_GUARDRAILS_DISABLE_AI",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


class TestFromEnv:
    def test_defaults(self) -> None:
        settings = GuardrailsSettings.from_env()
        assert settings.llm_api_key is None
        assert settings.llm_base_url is None
        assert settings.analysis_model == DEFAULT_ANALYSIS_MODEL
        assert settings.analysis_timeout == DEFAULT_ANALYSIS_TIMEOUT
        assert not settings.ai_enabled

    def test_anthropic_key_enables_ai(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-ant")
        settings = GuardrailsSettings.from_env()
        assert settings.llm_api_key == "sk-ant"
        assert settings.ai_enabled

    def test_llm_vars_take_precedence(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-ant")
        monkeypatch.setenv("LLM_API_KEY", "sk-llm")
        monkeypatch.setenv("ANTHROPIC_BASE_URL", "https://anthropic.example")
        monkeypatch.setenv("LLM_BASE_URL", "https://proxy.example")
        settings = GuardrailsSettings.from_env()
        assert settings.llm_api_key == "sk-llm"
        assert settings.llm_base_url == "https://proxy.example"

    def test_empty_key_is_unset(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("ANTHROPIC_API_KEY", "")
        assert GuardrailsSettings.from_env().llm_api_key is None

    def test_model_override(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CLAUDE_PYTHON_GUARDRAILS_MODEL", "claude-sonnet-4-5")
        assert GuardrailsSettings.from_env().analysis_model == "claude-sonnet-4-5"

    def test_timeout_override(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CLAUDE_PYTHON_GUARDRAILS_AI_TIMEOUT", "12.5")
        assert GuardrailsSettings.from_env().analysis_timeout == 12.5

    @pytest.mark.parametrize("value", ["soon", "0", "-3", "nan"])
    def test_invalid_timeout(self, monkeypatch: pytest.MonkeyPatch, value: str) -> None:
        monkeypatch.setenv("CLAUDE_PYTHON_GUARDRAILS_AI_TIMEOUT", value)
        with pytest.raises(ConfigError, match="AI_TIMEOUT"):
            GuardrailsSettings.from_env()

    @pytest.mark.parametrize("value", ["1", "true", "YES", "on"])
    def test_disable_switch(self, monkeypatch: pytest.MonkeyPatch, value: str) -> None:
        monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-ant")
        monkeypatch.setenv("CLAUDE_PYTHON_GUARDRAILS_DISABLE_AI", value)
        settings = GuardrailsSettings.from_env()
        assert settings.ai_disabled
        assert not settings.ai_enabled

    def test_disable_switch_off_values(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CLAUDE_PYTHON_GUARDRAILS_DISABLE_AI", "0")
        assert not GuardrailsSettings.from_env().ai_disabled

    def test_lock_dir_from_env(
        self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path
    ) -> None:
        monkeypatch.setenv("CLAUDE_PYTHON_GUARDRAILS_LOCK_DIR", str(tmp_path))
        assert GuardrailsSettings.from_env().lock_dir == tmp_path
