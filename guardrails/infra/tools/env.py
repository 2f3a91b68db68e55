"""Environment configuration and loading for claude-python-guardrails.

Paths and environment variables shared by the CLI, the lock manager and
the settings loader.
"""

import os
import tempfile
from pathlib import Path

from dotenv import load_dotenv

# User config directory (stores .env)
USER_CONFIG_DIR = Path.home() / ".config" / "claude-python-guardrails"

ENV_PREFIX = "CLAUDE_PYTHON_GUARDRAILS"
LOCK_FILE_PREFIX = "claude-python-guardrails"


# Lock directory shared by every hook invocation on this machine
# Can be overridden via CLAUDE_PYTHON_GUARDRAILS_LOCK_DIR environment variable
def get_lock_dir() -> Path:
    """Get the lock directory, respecting CLAUDE_PYTHON_GUARDRAILS_LOCK_DIR.

    Read on every call so a value loaded by load_user_env() takes effect.
    """
    return Path(os.environ.get(f"{ENV_PREFIX}_LOCK_DIR", tempfile.gettempdir()))


def get_config_path_from_env() -> Path | None:
    """Return the config file named by CLAUDE_PYTHON_GUARDRAILS_CONFIG, if any."""
    value = os.environ.get(f"{ENV_PREFIX}_CONFIG", "").strip()
    return Path(value).expanduser() if value else None


def load_user_env() -> None:
    """Load the user .env file into os.environ.

    Loads ${USER_CONFIG_DIR}/.env (typically
    ~/.config/claude-python-guardrails/.env). Existing variables win.
    """
    load_dotenv(dotenv_path=USER_CONFIG_DIR / ".env")
