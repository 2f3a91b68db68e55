"""PID and cooldown based workspace locks.

Prevents overlapping lint/test runs on the same project across separate
hook invocations. Each (workspace, operation) pair owns one lock file in
a shared temp directory:

    line 0: PID of the run currently holding the lock (or empty)
    line 1: Unix timestamp of the last completed run (or absent)

acquire() writes only the PID line. release() blanks the PID line and
writes the completion timestamp, which starts the cooldown window. The
file is never deleted; a missing file means "never run before".
"""

from __future__ import annotations

import hashlib
import logging
import os
import sys
import time
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING

from guardrails.core.errors import LockError

from .env import LOCK_FILE_PREFIX, get_lock_dir
from .process import ProcessChecker, default_process_checker

if TYPE_CHECKING:
    from collections.abc import Iterator
    from types import TracebackType

__all__ = ["LockGuard", "ProcessLock", "lock_key", "lock_path"]

logger = logging.getLogger(__name__)


def _canonicalize_workspace(workspace_dir: Path | str) -> Path:
    """Resolve a workspace directory to its canonical absolute path.

    Symlinks are resolved so that two spellings of the same directory
    share one lock.

    Raises:
        LockError: If the path does not exist or cannot be resolved.
    """
    try:
        return Path(workspace_dir).resolve(strict=True)
    except (OSError, RuntimeError) as e:
        raise LockError(f"Cannot resolve workspace {workspace_dir}: {e}") from e


def lock_key(canonical_path: Path) -> str:
    """Return the 16 hex character key for a canonical workspace path."""
    return hashlib.sha256(str(canonical_path).encode()).hexdigest()[:16]


def lock_path(
    workspace_dir: Path | str, operation: str, lock_dir: Path | None = None
) -> Path:
    """Convert a workspace and operation to its lock file path.

    Args:
        workspace_dir: Workspace directory (must exist).
        operation: Operation name, e.g. "lint" or "test".
        lock_dir: Directory holding lock files. Defaults to get_lock_dir().

    Returns:
        Path of the form {lock_dir}/claude-python-guardrails-{op}-{hash}.lock.

    Raises:
        LockError: If the workspace cannot be resolved.
    """
    canonical = _canonicalize_workspace(workspace_dir)
    directory = lock_dir if lock_dir is not None else get_lock_dir()
    return directory / f"{LOCK_FILE_PREFIX}-{operation}-{lock_key(canonical)}.lock"


def _parse_int(line: str) -> int | None:
    try:
        return int(line.strip())
    except ValueError:
        return None


@contextmanager
def _decision_lock(path: Path) -> Iterator[None]:
    """Hold an exclusive flock for a read-decide-write sequence.

    Serializes should_skip() + acquire() between cooperating processes on
    POSIX. On platforms without fcntl the sequence runs unguarded.
    """
    if sys.platform == "win32":
        yield
        return

    import fcntl

    guard_path = path.with_name(path.name + ".guard")
    try:
        fd = os.open(guard_path, os.O_RDWR | os.O_CREAT, 0o644)
    except OSError as e:
        raise LockError(f"Cannot open lock guard {guard_path}: {e}") from e
    try:
        fcntl.flock(fd, fcntl.LOCK_EX)
        yield
    finally:
        # Closing the descriptor drops the flock.
        os.close(fd)


class ProcessLock:
    """Lock file for one (workspace, operation) pair.

    Example:
        lock = ProcessLock(project_root, "lint", cooldown_seconds=2)
        if not lock.should_skip():
            lock.acquire()
            try:
                run_linter()
            finally:
                lock.release()

    Prefer LockGuard.try_acquire(), which releases on every exit path.
    """

    def __init__(
        self,
        workspace_dir: Path | str,
        operation: str,
        cooldown_seconds: int,
        *,
        lock_dir: Path | None = None,
        is_process_running: ProcessChecker | None = None,
    ) -> None:
        """Build the lock for a workspace.

        Args:
            workspace_dir: Workspace directory. Must exist.
            operation: Operation name used in the lock file name.
            cooldown_seconds: Seconds after a release during which new runs
                are skipped.
            lock_dir: Override for the shared lock directory.
            is_process_running: Override the liveness probe (for testing).

        Raises:
            LockError: If the workspace cannot be resolved.
        """
        self.workspace = _canonicalize_workspace(workspace_dir)
        self.operation = operation
        self.cooldown_seconds = cooldown_seconds
        self.path = lock_path(self.workspace, operation, lock_dir)
        self._is_process_running = (
            is_process_running
            if is_process_running is not None
            else default_process_checker()
        )

    def should_skip(self) -> bool:
        """Return True if another run is active or the cooldown has not elapsed.

        The PID line and the timestamp line are read independently. Empty or
        malformed lines are ignored, so a released lock (empty PID line)
        falls through to the cooldown check.
        """
        try:
            content = self.path.read_text()
        except FileNotFoundError:
            return False
        except OSError as e:
            logger.debug("Unreadable lock file %s treated as absent: %s", self.path, e)
            return False

        lines = content.splitlines()

        if lines:
            pid = _parse_int(lines[0])
            if pid is not None and pid > 0 and self._is_process_running(pid):
                logger.debug(
                    "%s lock for %s held by live pid %d",
                    self.operation,
                    self.workspace,
                    pid,
                )
                return True

        if len(lines) > 1:
            last_run = _parse_int(lines[1])
            if last_run is not None:
                elapsed = int(time.time()) - last_run
                if elapsed < self.cooldown_seconds:
                    logger.debug(
                        "%s for %s in cooldown (%ds of %ds elapsed)",
                        self.operation,
                        self.workspace,
                        elapsed,
                        self.cooldown_seconds,
                    )
                    return True

        return False

    def acquire(self) -> None:
        """Mark this process as the holder of the lock.

        Raises:
            LockError: If the lock file cannot be written.
        """
        self._write(str(os.getpid()))

    def release(self) -> None:
        """Clear the PID marker and record the completion time.

        Raises:
            LockError: If the lock file cannot be written.
        """
        self._write(f"\n{int(time.time())}")

    def _write(self, content: str) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(content)
        except OSError as e:
            raise LockError(f"Cannot write lock file {self.path}: {e}") from e


class LockGuard:
    """Scoped holder of a ProcessLock.

    Releases the lock when the with-block exits, whether it exits normally
    or by exception. Release failures are logged, never raised: a missed
    release only means the next run waits on a stale PID check.
    """

    def __init__(self, lock: ProcessLock) -> None:
        self.lock = lock
        self._held = True

    @classmethod
    def try_acquire(
        cls,
        workspace_dir: Path | str,
        operation: str,
        cooldown_seconds: int,
        *,
        lock_dir: Path | None = None,
        is_process_running: ProcessChecker | None = None,
    ) -> LockGuard | None:
        """Acquire the lock unless a run is active or cooling down.

        The lock directory is created on every call, and so is (on POSIX)
        the ".guard" file that serializes the skip decision. A skipped run
        leaves the lock file itself untouched.

        Returns:
            A held LockGuard, or None if the run should be skipped.

        Raises:
            LockError: If the workspace cannot be resolved or the lock file
                cannot be written.
        """
        lock = ProcessLock(
            workspace_dir,
            operation,
            cooldown_seconds,
            lock_dir=lock_dir,
            is_process_running=is_process_running,
        )
        try:
            lock.path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise LockError(f"Cannot create lock directory {lock.path.parent}: {e}") from e
        with _decision_lock(lock.path):
            if lock.should_skip():
                return None
            lock.acquire()
        return cls(lock)

    @property
    def held(self) -> bool:
        return self._held

    def release(self) -> None:
        """Release the lock once. Later calls are no-ops."""
        if not self._held:
            return
        self._held = False
        try:
            self.lock.release()
        except LockError as e:
            logger.warning("Failed to release %s lock: %s", self.lock.operation, e)

    def __enter__(self) -> LockGuard:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.release()

    def __del__(self) -> None:
        # Guards dropped without a with-block still release.
        if getattr(self, "_held", False):
            self.release()
