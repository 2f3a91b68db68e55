"""Claude Code hook payloads.

Claude Code runs PostToolUse hooks with a JSON object on stdin:

    {"hook_event_name": "PostToolUse",
     "tool_name": "Edit",
     "tool_input": {"file_path": "/abs/path.py", ...}}

Only edit tools are acted on. Anything unparseable is treated as "no
input" so the hook stays silent instead of failing the editor's turn.
"""

from __future__ import annotations

import json
import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any, TextIO

if TYPE_CHECKING:
    from guardrails.core.models import AutomationResult

logger = logging.getLogger(__name__)

POST_TOOL_USE = "PostToolUse"

# Tools that write files
EDIT_TOOLS = frozenset({"Edit", "MultiEdit", "Write", "NotebookEdit"})

# Tool name -> key in tool_input holding the edited path
FILE_PATH_KEYS: dict[str, str] = {
    "Edit": "file_path",
    "MultiEdit": "file_path",
    "Write": "file_path",
    "NotebookEdit": "notebook_path",
}


@dataclass(frozen=True)
class HookInput:
    """A parsed hook event."""

    hook_event_name: str
    tool_name: str
    tool_input: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def parse(cls, text: str) -> HookInput | None:
        """Parse hook JSON, returning None for empty or malformed input."""
        if not text.strip():
            logger.debug("No input available on stdin")
            return None
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            logger.debug("Failed to parse hook JSON: %s", e)
            return None
        if not isinstance(data, dict):
            logger.debug("Hook JSON is not an object: %s", type(data).__name__)
            return None

        event = data.get("hook_event_name")
        tool = data.get("tool_name")
        tool_input = data.get("tool_input", {})
        if not isinstance(event, str) or not isinstance(tool, str):
            logger.debug("Hook JSON missing hook_event_name or tool_name")
            return None
        if not isinstance(tool_input, dict):
            logger.debug("Hook JSON tool_input is not an object")
            return None
        return cls(hook_event_name=event, tool_name=tool, tool_input=tool_input)

    @classmethod
    def from_stdin(cls, stream: TextIO | None = None) -> HookInput | None:
        """Read and parse a hook event from stdin.

        Returns None when stdin is a terminal, empty, or malformed.
        """
        source = stream if stream is not None else sys.stdin
        if source.isatty():
            return None
        try:
            text = source.read()
        except (OSError, UnicodeDecodeError) as e:
            logger.debug("Failed to read stdin: %s", e)
            return None
        return cls.parse(text)

    def is_edit_tool(self) -> bool:
        return self.tool_name in EDIT_TOOLS

    def should_process(self) -> bool:
        """Whether this is a PostToolUse event from a file-editing tool."""
        return self.hook_event_name == POST_TOOL_USE and self.is_edit_tool()

    def file_path(self) -> Path | None:
        """The edited file, or None when the payload does not name one."""
        key = FILE_PATH_KEYS.get(self.tool_name, "file_path")
        value = self.tool_input.get(key)
        if not isinstance(value, str) or not value:
            return None
        return Path(value)


@dataclass(frozen=True)
class HookResponse:
    """Decision reported back to Claude Code."""

    action: str
    message: str | None = None

    @classmethod
    def continue_silent(cls) -> HookResponse:
        return cls(action="continue")

    @classmethod
    def block_with_error(cls, message: str) -> HookResponse:
        return cls(action="block", message=message)

    @classmethod
    def continue_with_success(cls, message: str) -> HookResponse:
        return cls(action="continue", message=message)

    @classmethod
    def from_result(cls, result: AutomationResult) -> HookResponse:
        """Failures block the agent; successes continue with their message."""
        if result.is_failure():
            return cls.block_with_error(result.message or "")
        if result.message is not None:
            return cls.continue_with_success(result.message)
        return cls.continue_silent()

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"action": self.action}
        if self.message is not None:
            data["message"] = self.message
        return data

    def to_json(self) -> str:
        return json.dumps(self.to_dict())
