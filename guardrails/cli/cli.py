#!/usr/bin/env python3
"""
claude-python-guardrails CLI: PostToolUse hooks for Python projects.

Usage:
    claude-python-guardrails [--verbose] [--config PATH] lint
    claude-python-guardrails [--verbose] [--config PATH] test
    claude-python-guardrails [--verbose] [--config PATH] analyze [--format text|json]

Each command reads one Claude Code hook event as JSON from stdin. Exit
code 0 means nothing to report; exit code 2 means a message was written
to stderr for Claude to read.
"""

from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Annotated, Never

import typer
from tabulate import tabulate

from ..core.errors import GuardrailsError
from ..core.models import EXIT_SILENT, EXIT_WITH_MESSAGE
from ..domain.config_loader import resolve_config
from ..domain.exclusion import ExclusionContext, ExclusionEngine
from ..infra.clients.analyzer import OutputAnalyzer
from ..infra.hooks.protocol import HookInput
from ..infra.io.config import GuardrailsSettings
from ..infra.tools.env import load_user_env
from ..log_output.console import (
    Colors,
    configure_logging,
    is_verbose_enabled,
    log,
    log_verbose,
    print_message,
    set_verbose,
)
from ..orchestration.automation import LINT_OPERATION, TEST_OPERATION
from ..orchestration.factory import create_automation_runner

if TYPE_CHECKING:
    from ..core.models import ExclusionAnalysis

# Bootstrap state: tracks whether bootstrap() has been called
_bootstrapped = False


def bootstrap() -> None:
    """Initialize environment.

    This function is idempotent - calling it multiple times has no additional effect.

    Side effects:
        - Loads environment variables from ~/.config/claude-python-guardrails/.env
    """
    global _bootstrapped

    if _bootstrapped:
        return

    load_user_env()

    _bootstrapped = True


class OutputFormat(str, Enum):
    """Formats accepted by analyze --format."""

    TEXT = "text"
    JSON = "json"


@dataclass
class CliState:
    """Global options shared by every command."""

    verbose: bool = False
    config_path: Path | None = None


app = typer.Typer(
    name="claude-python-guardrails",
    help="Lint and test automation hooks for Claude Code in Python projects",
    add_completion=False,
)


def _fail(error: GuardrailsError) -> Never:
    log("✗", str(error), Colors.RED)
    raise typer.Exit(EXIT_WITH_MESSAGE)


def _state(ctx: typer.Context) -> CliState:
    return ctx.obj if isinstance(ctx.obj, CliState) else CliState()


@app.callback()
def main(
    ctx: typer.Context,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Show debug logging and the reason for silent exits",
        ),
    ] = False,
    config: Annotated[
        Path | None,
        typer.Option(
            "--config",
            help="YAML rules file (default: $CLAUDE_PYTHON_GUARDRAILS_CONFIG or built-in rules)",
            dir_okay=False,
        ),
    ] = None,
) -> None:
    """Lint and test automation hooks for Claude Code in Python projects."""
    set_verbose(verbose)
    configure_logging(verbose)
    ctx.obj = CliState(verbose=verbose, config_path=config)


def _run_automation(state: CliState, operation: str) -> Never:
    """Run one automation for the hook event on stdin and exit."""
    try:
        config = resolve_config(state.config_path)
        settings = GuardrailsSettings.from_env()
        runner = create_automation_runner(config, settings)
        hook_input = HookInput.from_stdin()
        handler = (
            runner.handle_lint if operation == LINT_OPERATION else runner.handle_test
        )
        result = asyncio.run(handler(hook_input))
    except GuardrailsError as e:
        _fail(e)

    if result.message is not None:
        print_message(result.message)
    else:
        log_verbose("ℹ️ ", f"{operation}: {result.outcome.value}")
    raise typer.Exit(result.exit_code())


@app.command()
def lint(ctx: typer.Context) -> None:
    """Format, auto-fix and lint the file named in the hook event."""
    _run_automation(_state(ctx), LINT_OPERATION)


@app.command()
def test(ctx: typer.Context) -> None:
    """Run the tests covering the file named in the hook event."""
    _run_automation(_state(ctx), TEST_OPERATION)


def _verdict(excluded: bool) -> str:
    return "❌ EXCLUDE" if excluded else "✅ INCLUDE"


def _rule_reasons(engine: ExclusionEngine, file_path: Path) -> dict[str, str | None]:
    """Rule-based exclusion reason per context (None when included)."""
    return {
        "general": engine.exclusion_reason(file_path, ExclusionContext.ANY),
        "lint": engine.exclusion_reason(file_path, ExclusionContext.LINT),
        "test": engine.exclusion_reason(file_path, ExclusionContext.TEST),
    }


def _print_text_analysis(
    file_path: Path,
    analysis: ExclusionAnalysis,
    rule_reasons: dict[str, str | None],
    ai_enabled: bool,
) -> None:
    print(f"📁 File Analysis: {file_path}")
    print("═" * 60)
    print(f"📋 File Type: {analysis.file_type}")
    print(f"🎯 Purpose: {analysis.purpose}")
    print()

    recommended = {
        "general": analysis.should_exclude_general,
        "lint": analysis.should_exclude_lint,
        "test": analysis.should_exclude_test,
    }
    rows = [
        [
            context.capitalize(),
            _verdict(recommended[context]),
            _verdict(reason is not None),
            reason or "",
        ]
        for context, reason in rule_reasons.items()
    ]
    print("🚫 Exclusion Recommendations:")
    print(
        tabulate(
            rows,
            headers=["Context", "Recommended", "Current rules", "Rule reason"],
            tablefmt="simple",
        )
    )
    print()

    print("🤔 Reasoning:")
    print(analysis.reasoning)
    print()

    print("💡 Configuration Recommendation:")
    print(analysis.exclusion_recommendation)

    if is_verbose_enabled():
        print()
        print("🔧 Debug Information:")
        print("  • Analysis completed successfully")
        print("  • File exists and is readable")
        print(f"  • AI analysis: {'enabled' if ai_enabled else 'disabled'}")


@app.command()
def analyze(
    ctx: typer.Context,
    output_format: Annotated[
        OutputFormat,
        typer.Option(
            "--format",
            "-f",
            help="Output format: text or json",
        ),
    ] = OutputFormat.TEXT,
) -> None:
    """Recommend exclusions for the file named in the hook event."""
    state = _state(ctx)

    hook_input = HookInput.from_stdin()
    if hook_input is None:
        log_verbose("ℹ️ ", "No JSON input available on stdin.")
        raise typer.Exit(EXIT_SILENT)
    if not hook_input.should_process():
        log_verbose("ℹ️ ", f"Ignoring event type: {hook_input.hook_event_name}")
        raise typer.Exit(EXIT_SILENT)

    file_path = hook_input.file_path()
    if file_path is None:
        log_verbose("❌", "No file path found in hook input")
        raise typer.Exit(EXIT_SILENT)
    if not file_path.exists():
        log_verbose("❌", f"File does not exist: {file_path}")
        raise typer.Exit(EXIT_SILENT)

    try:
        config = resolve_config(state.config_path)
        settings = GuardrailsSettings.from_env()
        engine = ExclusionEngine.from_config(config)
    except GuardrailsError as e:
        _fail(e)

    if not settings.ai_enabled:
        log_verbose(
            "⚠️ ",
            "AI analysis disabled. Set ANTHROPIC_API_KEY to enable it.\n"
            "Falling back to basic heuristic analysis...",
            Colors.YELLOW,
        )
    log_verbose("🔍", f"Analyzing file: {file_path} (format: {output_format.value})")

    analysis = asyncio.run(OutputAnalyzer(settings).analyze_file(file_path))
    rule_reasons = _rule_reasons(engine, file_path)

    if output_format is OutputFormat.JSON:
        data = analysis.to_dict()
        data["rule_exclusions"] = rule_reasons
        print(json.dumps(data, indent=2, ensure_ascii=False))
    else:
        _print_text_analysis(file_path, analysis, rule_reasons, settings.ai_enabled)
    raise typer.Exit(EXIT_SILENT)
