"""Console output helpers for claude-python-guardrails."""
