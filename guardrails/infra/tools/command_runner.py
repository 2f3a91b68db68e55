"""Bounded subprocess execution for lint and test tools.

CommandRunner spawns a command with piped output and polls it at a fixed
interval until it exits or its wall-clock timeout passes. A timed-out
child is killed and reaped before run() returns, so no run outlives the
lock that guards it.
"""

from __future__ import annotations

import logging
import os
import signal
import subprocess
import sys
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING

from guardrails.core.errors import SpawnError

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence
    from pathlib import Path

__all__ = [
    "DEFAULT_TIMEOUT_SECONDS",
    "POLL_INTERVAL_SECONDS",
    "TIMEOUT_EXIT_CODE",
    "TIMEOUT_MESSAGE",
    "CommandResult",
    "CommandRunner",
    "run_command",
]

logger = logging.getLogger(__name__)

# Exit code reported for timed-out commands (matches coreutils `timeout`)
TIMEOUT_EXIT_CODE = 124

# Replaces captured stderr when a command is killed for running too long
TIMEOUT_MESSAGE = "Command timed out"

POLL_INTERVAL_SECONDS = 0.1

DEFAULT_TIMEOUT_SECONDS = 20.0


@dataclass
class CommandResult:
    """Result of a command execution.

    Attributes:
        command: The command that was run.
        returncode: Exit code of the process, or TIMEOUT_EXIT_CODE.
        stdout: Captured stdout (empty when timed out).
        stderr: Captured stderr, or TIMEOUT_MESSAGE when timed out.
        duration_seconds: Wall-clock time from spawn to reap.
        timed_out: Whether the command was killed by the timeout.
    """

    command: list[str]
    returncode: int
    stdout: str = ""
    stderr: str = ""
    duration_seconds: float = 0.0
    timed_out: bool = False

    @property
    def ok(self) -> bool:
        """Whether the command exited 0 within its timeout."""
        return self.returncode == 0 and not self.timed_out

    def combined_output(self) -> str:
        """Return stdout followed by stderr (when stderr is non-empty)."""
        if self.stderr:
            return f"{self.stdout}\n{self.stderr}"
        return self.stdout


class CommandRunner:
    """Runs external commands with a hard wall-clock timeout.

    Example:
        runner = CommandRunner(cwd=project_root, timeout_seconds=20)
        result = runner.run(["ruff", "check", "src/app.py"])
        if result.timed_out:
            ...
    """

    def __init__(
        self,
        cwd: Path,
        timeout_seconds: float | None = None,
        poll_interval: float = POLL_INTERVAL_SECONDS,
    ) -> None:
        """Initialize CommandRunner.

        Args:
            cwd: Working directory for every command.
            timeout_seconds: Default timeout. None uses DEFAULT_TIMEOUT_SECONDS.
            poll_interval: Seconds between completion checks.
        """
        self.cwd = cwd
        self.timeout_seconds = (
            timeout_seconds if timeout_seconds is not None else DEFAULT_TIMEOUT_SECONDS
        )
        self.poll_interval = poll_interval

    def run(
        self,
        cmd: Sequence[str],
        env: Mapping[str, str] | None = None,
        timeout: float | None = None,
    ) -> CommandResult:
        """Run a command and wait for it, killing it if it runs too long.

        communicate() with a short timeout doubles as the non-blocking wait:
        it drains both pipes while waiting, so a chatty child cannot stall
        on a full pipe, and output read so far is kept across retries.

        Args:
            cmd: Command and arguments.
            env: Full environment for the child. None inherits ours.
            timeout: Override the runner's default timeout.

        Returns:
            CommandResult with the real exit status and output, or a
            synthetic timed-out result.

        Raises:
            SpawnError: If the executable is missing or not executable.
        """
        command = list(cmd)
        effective_timeout = timeout if timeout is not None else self.timeout_seconds
        start = time.monotonic()
        deadline = start + effective_timeout

        logger.debug(
            "Running %s in %s (timeout %.1fs)", command, self.cwd, effective_timeout
        )
        try:
            proc = subprocess.Popen(
                command,
                cwd=self.cwd,
                env=dict(env) if env is not None else None,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                errors="replace",
                # Own process group so a timeout also kills grandchildren.
                start_new_session=sys.platform != "win32",
            )
        except (FileNotFoundError, PermissionError, NotADirectoryError) as e:
            raise SpawnError(command, str(e)) from e

        while True:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                return self._kill_timed_out(proc, command, start)
            try:
                stdout, stderr = proc.communicate(
                    timeout=min(self.poll_interval, remaining)
                )
            except subprocess.TimeoutExpired:
                continue
            return CommandResult(
                command=command,
                returncode=proc.returncode,
                stdout=stdout or "",
                stderr=stderr or "",
                duration_seconds=time.monotonic() - start,
            )

    def _kill_timed_out(
        self, proc: subprocess.Popen[str], command: list[str], start: float
    ) -> CommandResult:
        _kill_process_tree(proc)
        # Reap the child and close its pipes.
        proc.communicate()
        duration = time.monotonic() - start
        logger.debug("Killed %s after %.2fs", command, duration)
        return CommandResult(
            command=command,
            returncode=TIMEOUT_EXIT_CODE,
            stdout="",
            stderr=TIMEOUT_MESSAGE,
            duration_seconds=duration,
            timed_out=True,
        )


def run_command(
    cmd: Sequence[str],
    cwd: Path,
    timeout_seconds: float | None = None,
) -> CommandResult:
    """Run a command with a timeout using a one-off CommandRunner."""
    return CommandRunner(cwd=cwd, timeout_seconds=timeout_seconds).run(cmd)


def _kill_process_tree(proc: subprocess.Popen[str]) -> None:
    """SIGKILL the child's process group, falling back to the child alone."""
    if sys.platform != "win32":
        try:
            os.killpg(proc.pid, signal.SIGKILL)
            return
        except (ProcessLookupError, PermissionError):
            pass
    proc.kill()
