"""Lint and test automation for one hook invocation.

AutomationRunner turns a PostToolUse event into one AutomationResult:

    hook event -> edit-tool filter -> file path -> existence check
      -> exclusion verdict -> project discovery -> workspace lock
      -> tool run -> result message (enriched by OutputAnalyzer)

Every step that decides "nothing to do" yields NO_ACTION; a lock held by
another run or still cooling down yields SKIPPED. Only spawn failures and
lock I/O failures escape as exceptions.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Protocol

from guardrails.core.models import AutomationResult
from guardrails.domain.discovery import PythonProject, find_test_file_for_source
from guardrails.domain.exclusion import ExclusionContext
from guardrails.infra.tools.command_runner import CommandRunner
from guardrails.infra.tools.locking import LockGuard

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Sequence
    from pathlib import Path

    from guardrails.domain.config import AutomationCommandConfig, GuardrailsConfig
    from guardrails.domain.exclusion import ExclusionEngine
    from guardrails.infra.clients.analyzer import OutputAnalyzer
    from guardrails.infra.hooks.protocol import HookInput
    from guardrails.infra.tools.command_runner import CommandResult

logger = logging.getLogger(__name__)

LINT_OPERATION = "lint"
TEST_OPERATION = "test"

_STYLE_HINTS = ("style", "convention", "optional")
_COVERAGE_GAP_HINTS = ("edge case", "error handling", "boundary", "exception")
_QUALITY_GAP_HINTS = ("edge case", "error handling", "failure")

MUST_FIX_TRAILER = "⛔ Must fix all test failures before continuing"


class CommandRunnerPort(Protocol):
    """What the automation needs from a command runner."""

    def run(self, cmd: Sequence[str]) -> CommandResult: ...


class AutomationRunner:
    """Runs the lint or test automation for an edited file.

    Collaborators are injectable so tests can replace discovery, locking
    and process execution with fakes.
    """

    def __init__(
        self,
        config: GuardrailsConfig,
        engine: ExclusionEngine,
        analyzer: OutputAnalyzer,
        *,
        discover: Callable[[Path], PythonProject] = PythonProject.discover,
        lock_factory: Callable[[Path, str, int], LockGuard | None] = (
            LockGuard.try_acquire
        ),
        runner_factory: Callable[..., CommandRunnerPort] = CommandRunner,
    ) -> None:
        self.config = config
        self.engine = engine
        self.analyzer = analyzer
        self._discover = discover
        self._lock_factory = lock_factory
        self._runner_factory = runner_factory

    async def handle_lint(self, hook_input: HookInput | None) -> AutomationResult:
        """Format, auto-fix and lint the edited file."""
        return await self._handle(
            hook_input, LINT_OPERATION, ExclusionContext.LINT, self._run_lint
        )

    async def handle_test(self, hook_input: HookInput | None) -> AutomationResult:
        """Run the tests covering the edited file."""
        return await self._handle(
            hook_input, TEST_OPERATION, ExclusionContext.TEST, self._run_test
        )

    async def _handle(
        self,
        hook_input: HookInput | None,
        operation: str,
        context: ExclusionContext,
        flow: Callable[
            [PythonProject, Path, AutomationCommandConfig, CommandRunnerPort],
            Awaitable[AutomationResult],
        ],
    ) -> AutomationResult:
        op_config = self.config.automation.for_operation(operation)
        if not op_config.enabled:
            logger.debug("%s automation disabled", operation)
            return AutomationResult.no_action()

        if hook_input is None or not hook_input.should_process():
            return AutomationResult.no_action()

        file_path = hook_input.file_path()
        if file_path is None or not file_path.exists():
            logger.debug("No existing file in hook input: %s", file_path)
            return AutomationResult.no_action()

        if self.engine.should_exclude_context(file_path, context):
            logger.debug("%s excluded from %s", file_path, operation)
            return AutomationResult.no_action()

        try:
            project = self._discover(file_path.parent)
        except OSError as e:
            logger.warning("Project discovery failed for %s: %s", file_path, e)
            return AutomationResult.no_action()

        guard = self._lock_factory(project.root, operation, op_config.cooldown_seconds)
        if guard is None:
            logger.debug("%s for %s skipped by lock", operation, project.root)
            return AutomationResult.skipped()

        with guard:
            runner = self._runner_factory(
                project.root, timeout_seconds=op_config.timeout_seconds
            )
            return await flow(project, file_path, op_config, runner)

    async def _run_lint(
        self,
        project: PythonProject,
        source_file: Path,
        op_config: AutomationCommandConfig,
        runner: CommandRunnerPort,
    ) -> AutomationResult:
        linter = project.preferred_linter(op_config.preferred_tool)
        if linter is None:
            logger.debug("No Python linter found in project")
            return AutomationResult.no_action()
        if source_file.suffix != ".py":
            logger.debug("Skipping linting for non-Python file: %s", source_file)
            return AutomationResult.no_action()

        target = str(source_file)

        # Formatter and auto-fix failures are ignored; the check reports them
        formatter = project.preferred_formatter()
        if formatter is not None:
            logger.debug("Formatting %s with %s", source_file, formatter.display_name)
            await _run(runner, formatter.command_for(target))

        fix_command = linter.fix_command_for(target)
        if fix_command is not None:
            logger.debug("Auto-fixing %s with %s", source_file, linter.display_name)
            await _run(runner, fix_command)

        result = await _run(runner, linter.command_for(target))
        if result.ok:
            return AutomationResult.success(
                _lint_success_message(formatter is not None, fix_command is not None)
            )
        return await self._lint_failure(result.combined_output(), source_file)

    async def _lint_failure(self, output: str, source_file: Path) -> AutomationResult:
        if not output.strip():
            return AutomationResult.failure("⛔ Lint check failed")

        if not self.analyzer.enabled:
            return AutomationResult.failure(
                f"⛔ LINT FAILURES:\n\n{output.strip()}\n\n"
                "⚠️ Could not determine if linter is being overzealous (AI unavailable)"
            )

        analysis = await self.analyzer.analyze_lint_output(output, source_file)
        if not analysis.has_real_issues:
            return AutomationResult.success(
                f"✅ **AI Analysis Result:**\n{analysis.reasoning}\n\n"
                "👉 Linter appears overzealous. You can continue with your task."
            )

        filtered = analysis.filtered_output.strip() or output.strip()
        message = f"⛔ LINT ISSUES FOUND:\n\n{filtered}"
        if analysis.reasoning.strip():
            message += f"\n\n💡 **Analysis:**\n{analysis.reasoning}"
            if any(hint in analysis.reasoning for hint in _STYLE_HINTS):
                message += (
                    "\n\n🤔 **Note:** Some of these might be style preferences "
                    "rather than real issues."
                )
        return AutomationResult.failure(message)

    async def _run_test(
        self,
        project: PythonProject,
        source_file: Path,
        op_config: AutomationCommandConfig,
        runner: CommandRunnerPort,
    ) -> AutomationResult:
        tester = project.preferred_tester(op_config.preferred_tool)
        if tester is None:
            logger.debug("No Python tester found in project")
            return AutomationResult.no_action()
        if source_file.suffix != ".py":
            logger.debug("Skipping tests for non-Python file: %s", source_file)
            return AutomationResult.no_action()

        test_file = find_test_file_for_source(source_file, project.root)
        if test_file is None:
            logger.debug("No test file found for %s", source_file)
            return AutomationResult.success(_no_tests_message(source_file))

        logger.debug("Running %s on %s", tester.display_name, test_file)
        result = await _run(runner, tester.command_for(str(test_file)))
        output = result.combined_output()

        if not self.analyzer.enabled:
            return _basic_test_result(result.ok, output)

        analysis = await self.analyzer.analyze_test_output(
            output, project.root, source_file
        )
        if result.ok:
            message = "✅ Tests pass!\n\n"
            if analysis.coverage_analysis:
                message += f"📋 **Coverage**: {analysis.coverage_analysis}\n"
            if analysis.quality_assessment:
                message += f"🎯 **Quality**: {analysis.quality_assessment}\n\n"
            if _mentions_gaps(
                analysis.coverage_analysis, analysis.quality_assessment
            ):
                message += (
                    "⚠️ **STRONGLY CONSIDER**: Implement the missing edge cases "
                    "and error handling tests mentioned above. Robust code "
                    "requires comprehensive test coverage including failure "
                    "scenarios.\n\n"
                )
            message += "👉 Continue with your task."
            return AutomationResult.success(message)

        message = f"⛔ TESTS FAILED:\n\n📊 **Analysis**: {analysis.summary}\n\n"
        if analysis.failed_tests:
            message += "🔍 **Failed Tests**:\n"
            for test in analysis.failed_tests:
                message += (
                    f"  • {test.test_name}: {test.error_type} - "
                    f"{test.error_message}\n    💡 Fix: {test.suggested_fix}\n"
                )
            message += "\n"
        if analysis.coverage_analysis:
            message += f"📋 **Coverage**: {analysis.coverage_analysis}\n\n"
        message += f"📄 **Full Output**:\n{output.strip()}\n\n{MUST_FIX_TRAILER}"
        return AutomationResult.failure(message)


async def _run(runner: CommandRunnerPort, cmd: list[str]) -> CommandResult:
    """Run a command off the event loop."""
    result = await asyncio.to_thread(runner.run, cmd)
    if result.timed_out:
        logger.warning("%s timed out", " ".join(cmd))
    return result


def _lint_success_message(formatted: bool, autofixed: bool) -> str:
    if formatted and autofixed:
        return "✨ Formatted, auto-fixed, and verified. Continue with your task."
    if formatted:
        return "✨ Formatted and lints verified. Continue with your task."
    if autofixed:
        return "✨ Auto-fixed lint issues and verified. Continue with your task."
    return "👉 Lints pass. Continue with your task."


def _no_tests_message(source_file: Path) -> str:
    stem = source_file.stem
    return (
        f"📝 No tests found for {source_file.name}.\n\n"
        "💡 Consider creating tests at:\n"
        f"  • tests/test_{stem}.py\n"
        f"  • tests/unit/test_{stem}.py\n\n"
        "👉 Continue with your task."
    )


def _basic_test_result(passed: bool, output: str) -> AutomationResult:
    """Result for a test run when no analysis model is available."""
    if passed:
        return AutomationResult.success("👉 Tests pass. Continue with your task.")
    if output.strip():
        return AutomationResult.failure(
            f"⛔ TESTS FAILED:\n\n{output.strip()}\n\n{MUST_FIX_TRAILER}"
        )
    return AutomationResult.failure(
        "⛔ Test failures detected. Must fix before continuing"
    )


def _mentions_gaps(coverage: str, quality: str) -> bool:
    return any(hint in coverage for hint in _COVERAGE_GAP_HINTS) or any(
        hint in quality for hint in _QUALITY_GAP_HINTS
    )
