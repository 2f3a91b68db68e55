"""Hook automation: from a hook event to an AutomationResult."""

from guardrails.orchestration.automation import AutomationRunner
from guardrails.orchestration.factory import create_automation_runner

__all__ = ["AutomationRunner", "create_automation_runner"]
