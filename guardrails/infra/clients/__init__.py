"""Clients for external services used by claude-python-guardrails."""

from guardrails.infra.clients.analyzer import OutputAnalyzer
from guardrails.infra.clients.anthropic_client import create_anthropic_client

__all__ = ["OutputAnalyzer", "create_anthropic_client"]
