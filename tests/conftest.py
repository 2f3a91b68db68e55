"""Pytest configuration for claude-python-guardrails tests."""

import os
import tempfile
from pathlib import Path

import pytest


def pytest_configure(config: pytest.Config) -> None:
    """Configure test environment before collection.

    Sets up environment variables to:
    - Disable Braintrust tracing and real analysis calls
    - Redirect lock files to an isolated directory
    - Ignore any config file named in the developer's environment
    """
    # Remove API keys so no test reaches the real analysis API
    for key in ("BRAINTRUST_API_KEY", "ANTHROPIC_API_KEY", "LLM_API_KEY"):
        os.environ.pop(key, None)
    os.environ.pop("CLAUDE_PYTHON_GUARDRAILS_CONFIG", None)
    os.environ.pop("CLAUDE_PYTHON_GUARDRAILS_DISABLE_AI", None)

    # Redirect lock files so tests never collide with real hook runs
    lock_dir = Path(tempfile.gettempdir()) / f"guardrails-test-locks-{os.getpid()}"
    lock_dir.mkdir(parents=True, exist_ok=True)
    os.environ["CLAUDE_PYTHON_GUARDRAILS_LOCK_DIR"] = str(lock_dir)


def pytest_collection_modifyitems(
    config: pytest.Config, items: list[pytest.Item]
) -> None:
    """Default unmarked tests to unit category."""
    for item in items:
        if any(marker in item.keywords for marker in ("unit", "integration", "e2e")):
            continue
        item.add_marker(pytest.mark.unit)


@pytest.fixture
def lock_dir(tmp_path: Path) -> Path:
    """Provide an isolated lock directory."""
    directory = tmp_path / "locks"
    directory.mkdir()
    return directory
