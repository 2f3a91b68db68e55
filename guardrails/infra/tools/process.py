"""Best-effort process liveness probes.

A lock file records the PID of the run holding it. Whether that run is
still alive is answered by a ProcessChecker. PIDs can be reused by the
OS, so a long-dead holder whose PID was recycled looks alive until the
new process exits. That is an accepted limitation of PID-based locks.
"""

from __future__ import annotations

import logging
import os
import subprocess
import sys
from collections.abc import Callable

logger = logging.getLogger(__name__)

# Answers "is a process with this PID currently running?"
ProcessChecker = Callable[[int], bool]


def is_process_running_posix(pid: int) -> bool:
    """Check liveness by sending signal 0.

    EPERM means the process exists but belongs to another user, so it
    counts as alive.
    """
    if pid <= 0:
        return False
    try:
        os.kill(pid, 0)
    except PermissionError:
        return True
    except (OSError, ProcessLookupError):
        return False
    return True


def is_process_running_windows(pid: int) -> bool:
    """Check liveness by querying the task list for the PID."""
    if pid <= 0:
        return False
    try:
        result = subprocess.run(
            ["tasklist", "/FI", f"PID eq {pid}", "/NH"],
            capture_output=True,
            text=True,
            timeout=5,
            check=False,
        )
    except (OSError, subprocess.SubprocessError) as e:
        logger.debug("tasklist query for pid %d failed: %s", pid, e)
        return False
    return str(pid) in result.stdout.split()


def default_process_checker() -> ProcessChecker:
    """Return the liveness probe for the current platform."""
    if sys.platform == "win32":
        return is_process_running_windows
    return is_process_running_posix
