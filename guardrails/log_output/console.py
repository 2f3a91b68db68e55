"""Console logging helpers for claude-python-guardrails.

Claude Code style colored output. Everything goes to stderr: Claude Code
shows a hook's stderr to the agent on exit code 2, and stdout is kept
clean for `analyze --format json`.
"""

import logging
import sys

# Set once per invocation by the --verbose callback
_verbose_enabled: bool = False

_HANDLER_NAME = "guardrails_console"
_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def set_verbose(enabled: bool) -> None:
    """Toggle output of log_verbose() messages."""
    global _verbose_enabled
    _verbose_enabled = enabled


def is_verbose_enabled() -> bool:
    """Whether --verbose was given."""
    return _verbose_enabled


class Colors:
    """Bright ANSI colors used by log()."""

    RESET = "\033[0m"
    GREEN = "\033[92m"
    YELLOW = "\033[93m"
    RED = "\033[91m"
    # Subdued style for secondary info
    MUTED = "\033[90m"


def log(
    icon: str,
    message: str,
    color: str = Colors.RESET,
    dim: bool = False,
) -> None:
    """Claude Code style logging to stderr."""
    style = Colors.MUTED if dim else ""
    print(f"{style}{color}{icon} {message}{Colors.RESET}", file=sys.stderr)


def log_verbose(icon: str, message: str, color: str = Colors.RESET) -> None:
    """Log only when verbose output is enabled."""
    if _verbose_enabled:
        log(icon, message, color)


def print_message(message: str) -> None:
    """Print an automation message to stderr without decoration."""
    print(message, file=sys.stderr)


def configure_logging(verbose: bool) -> None:
    """Route the guardrails logger namespace to stderr.

    DEBUG when verbose, WARNING otherwise. Safe to call repeatedly.
    """
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(_LOG_FORMAT, datefmt="%H:%M:%S"))
    handler.set_name(_HANDLER_NAME)

    pkg_logger = logging.getLogger("guardrails")
    pkg_logger.setLevel(logging.DEBUG if verbose else logging.WARNING)

    # Remove any previous console handler to avoid duplicates
    for existing in pkg_logger.handlers[:]:
        if existing.get_name() == _HANDLER_NAME:
            pkg_logger.removeHandler(existing)

    pkg_logger.addHandler(handler)
