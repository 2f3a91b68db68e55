"""Tools package: command execution, environment, and locking utilities."""

from guardrails.infra.tools.command_runner import CommandResult, CommandRunner
from guardrails.infra.tools.env import get_lock_dir
from guardrails.infra.tools.locking import LockGuard, ProcessLock, lock_path

__all__ = [
    "CommandResult",
    "CommandRunner",
    "LockGuard",
    "ProcessLock",
    "get_lock_dir",
    "lock_path",
]
