"""Unit tests for process liveness probes."""

from __future__ import annotations

import os
import subprocess
import sys
from unittest.mock import patch

import pytest

from guardrails.infra.tools.process import (
    default_process_checker,
    is_process_running_posix,
    is_process_running_windows,
)

unix_only = pytest.mark.skipif(sys.platform == "win32", reason="Unix-only test")


class TestPosixProbe:
    @unix_only
    def test_current_process_is_running(self) -> None:
        assert is_process_running_posix(os.getpid()) is True

    @pytest.mark.parametrize("pid", [0, -1])
    def test_non_positive_pid_is_not_running(self, pid: int) -> None:
        assert is_process_running_posix(pid) is False

    def test_permission_error_counts_as_alive(self) -> None:
        with patch("os.kill", side_effect=PermissionError):
            assert is_process_running_posix(1) is True

    def test_lookup_error_counts_as_dead(self) -> None:
        with patch("os.kill", side_effect=ProcessLookupError):
            assert is_process_running_posix(123456) is False


class TestWindowsProbe:
    """The tasklist probe is exercised with a patched subprocess.run."""

    def test_pid_in_output_is_running(self) -> None:
        completed = subprocess.CompletedProcess(
            args=[], returncode=0, stdout="python.exe  4321 Console  1  10,000 K\n"
        )
        with patch("subprocess.run", return_value=completed):
            assert is_process_running_windows(4321) is True

    def test_pid_substring_is_not_a_match(self) -> None:
        completed = subprocess.CompletedProcess(
            args=[], returncode=0, stdout="python.exe  43210 Console  1  10,000 K\n"
        )
        with patch("subprocess.run", return_value=completed):
            assert is_process_running_windows(4321) is False

    def test_query_failure_counts_as_dead(self) -> None:
        with patch("subprocess.run", side_effect=FileNotFoundError("tasklist")):
            assert is_process_running_windows(4321) is False


class TestDefaultChecker:
    def test_selects_windows_probe(self) -> None:
        with patch("guardrails.infra.tools.process.sys.platform", "win32"):
            assert default_process_checker() is is_process_running_windows

    def test_selects_posix_probe(self) -> None:
        with patch("guardrails.infra.tools.process.sys.platform", "linux"):
            assert default_process_checker() is is_process_running_posix
