"""In-memory fake implementations for testing.

Fakes are preferred over mocks because they implement the real call
contracts and give deterministic, behavior-based assertions.

Available fakes:
- FakeCommandRunner: Scripted command results keyed by executable/subcommand
- FakeAnthropicClient: Canned messages.create() responses, recording prompts
- fake_which: PATH lookup over a fixed set of executables

Usage:
    from tests.fakes import FakeCommandRunner

    runner = FakeCommandRunner()
    runner.set_result(["ruff", "check"], returncode=1, stdout="E501 ...")
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from guardrails.core.errors import SpawnError
from guardrails.infra.tools.command_runner import CommandResult


class FakeCommandRunner:
    """Deterministic command runner.

    Results are matched by command prefix; the longest matching prefix
    wins. Unscripted commands succeed with empty output.
    """

    def __init__(self, cwd: Path | None = None, timeout_seconds: float | None = None):
        self.cwd = cwd
        self.timeout_seconds = timeout_seconds
        self.calls: list[list[str]] = []
        self._results: list[tuple[tuple[str, ...], CommandResult]] = []
        self._missing: set[str] = set()

    def set_result(
        self,
        prefix: Sequence[str],
        returncode: int = 0,
        stdout: str = "",
        stderr: str = "",
        timed_out: bool = False,
    ) -> None:
        self._results.append(
            (
                tuple(prefix),
                CommandResult(
                    command=list(prefix),
                    returncode=returncode,
                    stdout=stdout,
                    stderr=stderr,
                    timed_out=timed_out,
                ),
            )
        )

    def set_missing(self, executable: str) -> None:
        """Make commands for executable raise SpawnError."""
        self._missing.add(executable)

    def run(self, cmd: Sequence[str]) -> CommandResult:
        command = list(cmd)
        self.calls.append(command)
        if command[0] in self._missing:
            raise SpawnError(command, "No such file or directory")
        best: CommandResult | None = None
        best_len = -1
        for prefix, result in self._results:
            if tuple(command[: len(prefix)]) == prefix and len(prefix) > best_len:
                best, best_len = result, len(prefix)
        if best is None:
            return CommandResult(command=command, returncode=0)
        return CommandResult(
            command=command,
            returncode=best.returncode,
            stdout=best.stdout,
            stderr=best.stderr,
            timed_out=best.timed_out,
        )

    def factory(self) -> Callable[..., FakeCommandRunner]:
        """Return a runner_factory that records the cwd and timeout."""

        def make(cwd: Path, timeout_seconds: float | None = None) -> FakeCommandRunner:
            self.cwd = cwd
            self.timeout_seconds = timeout_seconds
            return self

        return make


@dataclass
class _TextBlock:
    text: str


@dataclass
class _Message:
    content: list[_TextBlock]


@dataclass
class _Messages:
    client: FakeAnthropicClient

    def create(self, **kwargs: Any) -> _Message:  # noqa: ANN401
        self.client.requests.append(kwargs)
        if self.client.error is not None:
            raise self.client.error
        if not self.client.responses:
            raise AssertionError("FakeAnthropicClient has no responses queued")
        return _Message(content=[_TextBlock(self.client.responses.pop(0))])


@dataclass
class FakeAnthropicClient:
    """Stands in for anthropic.Anthropic with queued text responses."""

    responses: list[str] = field(default_factory=list)
    error: Exception | None = None
    requests: list[dict[str, Any]] = field(default_factory=list)
    factory_kwargs: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.messages = _Messages(self)

    def factory(self) -> Callable[..., FakeAnthropicClient]:
        def make(**kwargs: Any) -> FakeAnthropicClient:  # noqa: ANN401
            self.factory_kwargs = kwargs
            return self

        return make

    @property
    def prompts(self) -> list[str]:
        return [request["messages"][0]["content"] for request in self.requests]


def fake_which(available: Iterable[str]) -> Callable[[str], str | None]:
    """Build a shutil.which replacement that finds only the given names."""
    names = set(available)

    def which(name: str) -> str | None:
        return f"/usr/bin/{name}" if name in names else None

    return which


__all__ = ["FakeAnthropicClient", "FakeCommandRunner", "fake_which"]
