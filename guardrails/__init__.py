"""claude-python-guardrails: lint and test automation hooks for Claude Code."""

__version__ = "0.1.0"
__all__ = ["__version__"]
