"""Exception hierarchy for claude-python-guardrails.

Every error the CLI reports to the user derives from GuardrailsError.
Collaborator failures (AI analysis) are recovered locally and never
surface through this hierarchy.
"""

from __future__ import annotations


class GuardrailsError(Exception):
    """Base class for all guardrails errors."""


class ConfigError(GuardrailsError):
    """Raised when configuration is invalid.

    Covers invalid YAML syntax, unknown or mistyped fields, glob patterns
    that cannot be compiled, and unparseable file size strings.
    """


class LockError(GuardrailsError):
    """Raised when a workspace lock cannot be resolved or written."""


class SpawnError(GuardrailsError):
    """Raised when an external command cannot be started.

    This is distinct from a timeout or a non-zero exit, which are normal
    command results.
    """

    def __init__(self, command: list[str], reason: str) -> None:
        self.command = command
        self.reason = reason
        super().__init__(f"Failed to spawn {' '.join(command)}: {reason}")


class AnalysisError(GuardrailsError):
    """Raised internally when an AI analysis call or its response is unusable."""
