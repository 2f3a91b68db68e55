"""Claude Code hook input and response handling."""

from guardrails.infra.hooks.protocol import EDIT_TOOLS, HookInput, HookResponse

__all__ = ["EDIT_TOOLS", "HookInput", "HookResponse"]
