"""Unit tests for ProcessLock and LockGuard."""

from __future__ import annotations

import os
import sys
import time
from pathlib import Path

import pytest

from guardrails.core.errors import LockError
from guardrails.infra.tools.locking import LockGuard, ProcessLock, lock_key, lock_path


def _dead(pid: int) -> bool:
    return False


def _alive(pid: int) -> bool:
    return True


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    directory = tmp_path / "project"
    directory.mkdir()
    return directory


class TestLockPath:
    """Tests for lock file naming."""

    def test_key_is_16_hex_chars(self, workspace: Path) -> None:
        key = lock_key(workspace.resolve())
        assert len(key) == 16
        int(key, 16)

    def test_key_is_deterministic(self, workspace: Path) -> None:
        assert lock_key(workspace.resolve()) == lock_key(workspace.resolve())

    def test_distinct_workspaces_get_distinct_keys(self, tmp_path: Path) -> None:
        a = tmp_path / "a"
        b = tmp_path / "b"
        a.mkdir()
        b.mkdir()
        assert lock_key(a.resolve()) != lock_key(b.resolve())

    def test_path_format(self, workspace: Path, lock_dir: Path) -> None:
        path = lock_path(workspace, "lint", lock_dir)
        assert path.parent == lock_dir
        assert path.name.startswith("claude-python-guardrails-lint-")
        assert path.name.endswith(".lock")

    def test_symlink_shares_lock(self, workspace: Path, lock_dir: Path) -> None:
        link = workspace.parent / "link"
        link.symlink_to(workspace)
        assert lock_path(link, "test", lock_dir) == lock_path(workspace, "test", lock_dir)

    def test_operations_get_separate_files(self, workspace: Path, lock_dir: Path) -> None:
        assert lock_path(workspace, "lint", lock_dir) != lock_path(
            workspace, "test", lock_dir
        )

    def test_missing_workspace_raises(self, tmp_path: Path, lock_dir: Path) -> None:
        with pytest.raises(LockError, match="Cannot resolve workspace"):
            lock_path(tmp_path / "missing", "lint", lock_dir)


class TestProcessLock:
    """Tests for should_skip/acquire/release."""

    def test_no_file_does_not_skip(self, workspace: Path, lock_dir: Path) -> None:
        lock = ProcessLock(workspace, "lint", 2, lock_dir=lock_dir)
        assert not lock.path.exists()
        assert lock.should_skip() is False

    def test_acquire_writes_pid(self, workspace: Path, lock_dir: Path) -> None:
        lock = ProcessLock(workspace, "lint", 2, lock_dir=lock_dir)
        lock.acquire()
        assert lock.path.read_text() == str(os.getpid())

    def test_live_holder_skips_second_instance(
        self, workspace: Path, lock_dir: Path
    ) -> None:
        first = ProcessLock(workspace, "lint", 0, lock_dir=lock_dir)
        first.acquire()
        second = ProcessLock(workspace, "lint", 0, lock_dir=lock_dir)
        assert second.should_skip() is True

    def test_dead_holder_does_not_skip(self, workspace: Path, lock_dir: Path) -> None:
        lock = ProcessLock(
            workspace, "lint", 0, lock_dir=lock_dir, is_process_running=_dead
        )
        lock.path.write_text("999999")
        assert lock.should_skip() is False

    def test_release_writes_blank_pid_and_timestamp(
        self, workspace: Path, lock_dir: Path
    ) -> None:
        lock = ProcessLock(workspace, "lint", 2, lock_dir=lock_dir)
        lock.acquire()
        before = int(time.time())
        lock.release()
        pid_line, ts_line = lock.path.read_text().split("\n")
        assert pid_line == ""
        assert before <= int(ts_line) <= int(time.time())

    def test_cooldown_window(self, workspace: Path, lock_dir: Path) -> None:
        lock = ProcessLock(workspace, "test", 2, lock_dir=lock_dir)
        lock.acquire()
        lock.release()
        assert lock.should_skip() is True
        time.sleep(3)
        assert lock.should_skip() is False

    def test_old_timestamp_is_outside_cooldown(
        self, workspace: Path, lock_dir: Path
    ) -> None:
        lock = ProcessLock(workspace, "lint", 2, lock_dir=lock_dir)
        lock.path.write_text(f"\n{int(time.time()) - 10}")
        assert lock.should_skip() is False

    def test_zero_cooldown_never_skips_after_release(
        self, workspace: Path, lock_dir: Path
    ) -> None:
        lock = ProcessLock(workspace, "lint", 0, lock_dir=lock_dir)
        lock.acquire()
        lock.release()
        assert lock.should_skip() is False

    @pytest.mark.parametrize(
        "content",
        ["", "garbage", "garbage\nmore garbage", "\n\n", "-5\nabc"],
    )
    def test_malformed_content_is_ignored(
        self, workspace: Path, lock_dir: Path, content: str
    ) -> None:
        lock = ProcessLock(
            workspace, "lint", 60, lock_dir=lock_dir, is_process_running=_alive
        )
        lock.path.write_text(content)
        assert lock.should_skip() is False

    def test_pid_checker_receives_recorded_pid(
        self, workspace: Path, lock_dir: Path
    ) -> None:
        seen: list[int] = []

        def checker(pid: int) -> bool:
            seen.append(pid)
            return False

        lock = ProcessLock(
            workspace, "lint", 0, lock_dir=lock_dir, is_process_running=checker
        )
        lock.path.write_text("4242")
        lock.should_skip()
        assert seen == [4242]

    def test_write_failure_raises_lock_error(
        self, workspace: Path, tmp_path: Path
    ) -> None:
        blocker = tmp_path / "not-a-dir"
        blocker.write_text("")
        lock = ProcessLock(workspace, "lint", 0, lock_dir=blocker)
        with pytest.raises(LockError, match="Cannot write lock file"):
            lock.acquire()


class TestLockGuard:
    """Tests for LockGuard.try_acquire and scoped release."""

    def test_guard_sequence(self, workspace: Path, lock_dir: Path) -> None:
        first = LockGuard.try_acquire(workspace, "test", 1, lock_dir=lock_dir)
        assert first is not None

        second = LockGuard.try_acquire(workspace, "test", 1, lock_dir=lock_dir)
        assert second is None

        first.release()

        third = LockGuard.try_acquire(workspace, "test", 10, lock_dir=lock_dir)
        assert third is None

        fourth = LockGuard.try_acquire(workspace, "test", 0, lock_dir=lock_dir)
        assert fourth is not None
        fourth.release()

    def test_skip_leaves_lock_file_untouched(
        self, workspace: Path, lock_dir: Path
    ) -> None:
        guard = LockGuard.try_acquire(workspace, "lint", 5, lock_dir=lock_dir)
        assert guard is not None
        guard.release()
        content = guard.lock.path.read_text()

        assert LockGuard.try_acquire(workspace, "lint", 5, lock_dir=lock_dir) is None
        assert guard.lock.path.read_text() == content

    @pytest.mark.skipif(sys.platform == "win32", reason="Unix-only test")
    def test_skip_still_creates_lock_dir_and_guard_file(
        self, workspace: Path, tmp_path: Path
    ) -> None:
        nested = tmp_path / "nested" / "locks"
        guard = LockGuard.try_acquire(workspace, "lint", 5, lock_dir=nested)
        assert guard is not None
        guard.release()

        assert LockGuard.try_acquire(workspace, "lint", 5, lock_dir=nested) is None
        guard_file = guard.lock.path.with_name(guard.lock.path.name + ".guard")
        assert guard_file.exists()
        assert sorted(p.name for p in nested.iterdir()) == sorted(
            [guard.lock.path.name, guard_file.name]
        )

    def test_with_block_releases(self, workspace: Path, lock_dir: Path) -> None:
        guard = LockGuard.try_acquire(workspace, "lint", 0, lock_dir=lock_dir)
        assert guard is not None
        with guard:
            assert guard.held
        assert not guard.held
        assert guard.lock.path.read_text().startswith("\n")

    def test_with_block_releases_on_exception(
        self, workspace: Path, lock_dir: Path
    ) -> None:
        guard = LockGuard.try_acquire(workspace, "lint", 0, lock_dir=lock_dir)
        assert guard is not None
        with pytest.raises(RuntimeError), guard:
            raise RuntimeError("tool crashed")
        assert not guard.held
        assert LockGuard.try_acquire(workspace, "lint", 0, lock_dir=lock_dir)

    def test_release_is_idempotent(self, workspace: Path, lock_dir: Path) -> None:
        guard = LockGuard.try_acquire(workspace, "lint", 0, lock_dir=lock_dir)
        assert guard is not None
        guard.release()
        first = guard.lock.path.read_text()
        guard.release()
        assert guard.lock.path.read_text() == first

    def test_stale_pid_from_crashed_run_is_recovered(
        self, workspace: Path, lock_dir: Path
    ) -> None:
        path = lock_path(workspace, "lint", lock_dir)
        path.write_text("999999")

        guard = LockGuard.try_acquire(
            workspace, "lint", 0, lock_dir=lock_dir, is_process_running=_dead
        )
        assert guard is not None
        assert path.read_text() == str(os.getpid())
        guard.release()

    def test_creates_missing_lock_dir(self, workspace: Path, tmp_path: Path) -> None:
        lock_dir = tmp_path / "nested" / "locks"
        guard = LockGuard.try_acquire(workspace, "lint", 0, lock_dir=lock_dir)
        assert guard is not None
        assert lock_dir.is_dir()
        guard.release()

    def test_release_failure_is_logged_not_raised(
        self, workspace: Path, lock_dir: Path, caplog: pytest.LogCaptureFixture
    ) -> None:
        guard = LockGuard.try_acquire(workspace, "lint", 0, lock_dir=lock_dir)
        assert guard is not None

        def fail() -> None:
            raise LockError("disk full")

        guard.lock.release = fail  # type: ignore[method-assign]
        guard.release()
        assert "Failed to release lint lock" in caplog.text
