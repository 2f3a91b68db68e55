"""Deterministic analysis used when the AI analyzer is unavailable.

Every AI-backed analysis has a fallback here, so lint and test results
can always be reported from raw tool output alone.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from guardrails.core.models import ExclusionAnalysis, LintAnalysis, TestFailureAnalysis

if TYPE_CHECKING:
    from pathlib import Path

# Files larger than this are not sent for analysis
MAX_ANALYSIS_FILE_BYTES = 1024 * 1024

_COMPILED_EXTENSIONS = frozenset({"pyc", "pyo", "pyd"})
_FAILURE_MARKERS = ("FAILED", "ERROR", "FAIL")


def read_file_for_analysis(path: Path) -> str:
    """Read a file's text for a prompt, substituting placeholders.

    Raises:
        OSError: If the file cannot be stat'ed or opened.
    """
    if path.stat().st_size > MAX_ANALYSIS_FILE_BYTES:
        return "[File too large to analyze]"
    try:
        return path.read_text(encoding="utf-8")
    except UnicodeDecodeError:
        return f"[Binary file: {path.suffix.lstrip('.') or 'unknown'}]"


def heuristic_exclusion_analysis(path: Path) -> ExclusionAnalysis:
    """Classify a file from its name alone."""
    name = path.name
    extension = path.suffix.lstrip(".")

    if name.startswith("test_") or name.endswith("_test.py"):
        general, lint, test = False, True, True
        reasoning = (
            "Test files should be excluded from testing requirements "
            "and may have relaxed linting"
        )
    elif extension in _COMPILED_EXTENSIONS:
        general, lint, test = True, True, True
        reasoning = "Compiled Python files should be excluded from all processing"
    elif "__pycache__" in path.parts:
        general, lint, test = True, True, True
        reasoning = "Python cache files should be excluded from all processing"
    elif name.startswith("."):
        general, lint, test = True, True, True
        reasoning = "Hidden files typically don't require processing"
    elif extension == "py":
        general, lint, test = False, False, False
        reasoning = "Regular Python files should be processed normally"
    else:
        general, lint, test = True, True, True
        reasoning = "Non-Python files excluded from Python-specific processing"

    return ExclusionAnalysis(
        should_exclude_general=general,
        should_exclude_lint=lint,
        should_exclude_test=test,
        reasoning=reasoning,
        file_type=f"{extension} file" if extension else "file without extension",
        purpose="Unknown (analyzed without AI)",
        exclusion_recommendation=(
            "Based on file pattern analysis: "
            f"general={str(general).lower()}, lint={str(lint).lower()}, "
            f"test={str(test).lower()}"
        ),
    )


def conservative_exclusion_analysis(reason: str) -> ExclusionAnalysis:
    """Assume the file needs full processing when analysis failed."""
    return ExclusionAnalysis(
        should_exclude_general=False,
        should_exclude_lint=False,
        should_exclude_test=False,
        reasoning=(
            f"{reason}, using conservative defaults - "
            "assuming file needs full processing"
        ),
        file_type="Unknown (API unavailable)",
        purpose="Unknown - assuming requires full validation",
        exclusion_recommendation=(
            "⚠️ Could not analyze file due to API error. File will be processed "
            "normally. Ensure tests exist for this file if it contains business logic."
        ),
    )


def basic_lint_analysis(output: str) -> LintAnalysis:
    """Report all linter output as real issues."""
    has_issues = bool(output.strip())
    return LintAnalysis(
        has_real_issues=has_issues,
        filtered_output=output,
        reasoning="Basic analysis without AI - showing all linter output",
        issue_count=len(output.splitlines()),
        recommendations=(
            "Review the linter output above and fix the reported issues."
            if has_issues
            else "No linting issues detected."
        ),
    )


def basic_test_failure_analysis(output: str) -> TestFailureAnalysis:
    """Detect failures by keyword; individual tests are not parsed."""
    has_failures = any(marker in output for marker in _FAILURE_MARKERS)
    line_count = len(output.splitlines())
    return TestFailureAnalysis(
        has_failures=has_failures,
        summary=(
            f"Test failures detected in {line_count} lines of output"
            if has_failures
            else "No clear test failures detected"
        ),
        analysis="Basic analysis without AI - full output shown",
        recommendations=(
            "Review the test output above for specific failure details. "
            "Run tests individually with -v flag for more details."
            if has_failures
            else "Tests appear to have passed. Consider reviewing test coverage."
        ),
        coverage_analysis=(
            "AI analysis not available. Consider manually reviewing test coverage."
        ),
        quality_assessment="Unable to assess test quality without AI analysis.",
    )
