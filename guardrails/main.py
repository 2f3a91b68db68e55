#!/usr/bin/env python3
"""
claude-python-guardrails: Claude Code hooks for Python projects.

This module is a thin shim that exposes the CLI app from guardrails.cli.
The actual implementation lives in guardrails/cli/cli.py.

Usage:
    claude-python-guardrails lint
    claude-python-guardrails test
    claude-python-guardrails analyze [--format text|json]
"""

from .cli.cli import bootstrap

# Call bootstrap at module import time so the console entrypoint
# (guardrails.main:app) loads ~/.config/claude-python-guardrails/.env
# before any command reads settings from the environment
bootstrap()

from .cli.cli import app  # noqa: E402

if __name__ == "__main__":
    app()
