"""Command-line interface for claude-python-guardrails."""
