"""Anthropic client construction for the output analyzer.

OutputAnalyzer never builds a client itself; it calls this factory (or a
test double with the same keyword signature) on first use.
"""

from __future__ import annotations

from typing import Any

from anthropic import Anthropic


def create_anthropic_client(
    *,
    api_key: str | None = None,
    base_url: str | None = None,
    timeout: float | None = None,
) -> Any:  # noqa: ANN401 - Anthropic, or the Braintrust wrapper around it
    """Build a client from GuardrailsSettings values.

    Unset values are left out so the SDK applies its own defaults (for
    example ANTHROPIC_API_KEY from the environment). When the braintrust
    package is installed, calls are traced through its wrapper.
    """
    options: dict[str, object] = {
        name: value
        for name, value in (
            ("api_key", api_key),
            ("base_url", base_url),
            ("timeout", timeout),
        )
        if value is not None
    }
    client = Anthropic(**options)

    try:
        from braintrust import wrap_anthropic
    except ImportError:
        return client
    return wrap_anthropic(client)
