"""Shared dataclasses for claude-python-guardrails.

This module provides types used across the domain, infra and
orchestration layers to avoid circular dependencies.

Types:
- AutomationOutcome / AutomationResult: Terminal outcome of one hook run
- ExclusionAnalysis: AI (or heuristic) verdict on whether to process a file
- LintAnalysis: Interpretation of linter output
- FailedTest / TestFailureAnalysis: Interpretation of test runner output
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any

# Hook exit codes: 0 stays silent, 2 surfaces stderr to Claude
EXIT_SILENT = 0
EXIT_WITH_MESSAGE = 2


class AutomationOutcome(Enum):
    """Outcome of one lint or test automation run."""

    NO_ACTION = "no_action"
    SKIPPED = "skipped"
    SUCCESS = "success"
    FAILURE = "failure"


@dataclass(frozen=True)
class AutomationResult:
    """Terminal result of one orchestration run. Never persisted.

    Attributes:
        outcome: Which of the four outcomes occurred.
        message: Text for Claude (SUCCESS and FAILURE only).
    """

    outcome: AutomationOutcome
    message: str | None = None

    @classmethod
    def no_action(cls) -> AutomationResult:
        return cls(AutomationOutcome.NO_ACTION)

    @classmethod
    def skipped(cls) -> AutomationResult:
        return cls(AutomationOutcome.SKIPPED)

    @classmethod
    def success(cls, message: str) -> AutomationResult:
        return cls(AutomationOutcome.SUCCESS, message)

    @classmethod
    def failure(cls, message: str) -> AutomationResult:
        return cls(AutomationOutcome.FAILURE, message)

    def exit_code(self) -> int:
        """0 for NO_ACTION/SKIPPED, 2 when a message was produced."""
        if self.outcome in (AutomationOutcome.NO_ACTION, AutomationOutcome.SKIPPED):
            return EXIT_SILENT
        return EXIT_WITH_MESSAGE

    def is_failure(self) -> bool:
        return self.outcome is AutomationOutcome.FAILURE


def _str(data: dict[str, Any], key: str) -> str:
    value = data.get(key)
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def _bool(data: dict[str, Any], key: str, default: bool = False) -> bool:
    value = data.get(key, default)
    return value if isinstance(value, bool) else default


@dataclass(frozen=True)
class ExclusionAnalysis:
    """Recommendation on whether a file should be processed.

    Attributes:
        should_exclude_general: Skip the file for all processing.
        should_exclude_lint: Skip linting.
        should_exclude_test: Skip test requirements.
        reasoning: Why the recommendation was made.
        file_type: Detected file type or category.
        purpose: Primary purpose of the file.
        exclusion_recommendation: Suggested guardrails config change.
    """

    should_exclude_general: bool
    should_exclude_lint: bool
    should_exclude_test: bool
    reasoning: str
    file_type: str
    purpose: str
    exclusion_recommendation: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ExclusionAnalysis:
        return cls(
            should_exclude_general=_bool(data, "should_exclude_general"),
            should_exclude_lint=_bool(data, "should_exclude_lint"),
            should_exclude_test=_bool(data, "should_exclude_test"),
            reasoning=_str(data, "reasoning"),
            file_type=_str(data, "file_type"),
            purpose=_str(data, "purpose"),
            exclusion_recommendation=_str(data, "exclusion_recommendation"),
        )


@dataclass(frozen=True)
class LintAnalysis:
    """Linter output with false positives filtered out."""

    has_real_issues: bool
    filtered_output: str
    reasoning: str
    issue_count: int
    recommendations: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> LintAnalysis:
        issue_count = data.get("issue_count", 0)
        if isinstance(issue_count, bool) or not isinstance(issue_count, int):
            issue_count = 0
        return cls(
            has_real_issues=_bool(data, "has_real_issues", default=True),
            filtered_output=_str(data, "filtered_output"),
            reasoning=_str(data, "reasoning"),
            issue_count=max(issue_count, 0),
            recommendations=_str(data, "recommendations"),
        )


@dataclass(frozen=True)
class FailedTest:
    test_name: str
    error_type: str
    error_message: str
    suggested_fix: str

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> FailedTest:
        return cls(
            test_name=_str(data, "test_name"),
            error_type=_str(data, "error_type"),
            error_message=_str(data, "error_message"),
            suggested_fix=_str(data, "suggested_fix"),
        )


@dataclass(frozen=True)
class TestFailureAnalysis:
    """Interpretation of a test run, including coverage feedback."""

    __test__ = False  # not a pytest test class

    has_failures: bool
    summary: str
    failed_tests: tuple[FailedTest, ...] = ()
    analysis: str = ""
    recommendations: str = ""
    coverage_analysis: str = ""
    missing_tests: tuple[str, ...] = ()
    quality_assessment: str = ""

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TestFailureAnalysis:
        raw_failed = data.get("failed_tests")
        raw_missing = data.get("missing_tests")
        if not isinstance(raw_failed, list):
            raw_failed = []
        if not isinstance(raw_missing, list):
            raw_missing = []
        return cls(
            has_failures=_bool(data, "has_failures"),
            summary=_str(data, "summary"),
            failed_tests=tuple(
                FailedTest.from_dict(item)
                for item in raw_failed
                if isinstance(item, dict)
            ),
            analysis=_str(data, "analysis"),
            recommendations=_str(data, "recommendations"),
            coverage_analysis=_str(data, "coverage_analysis"),
            missing_tests=tuple(str(item) for item in raw_missing),
            quality_assessment=_str(data, "quality_assessment"),
        )


__all__ = [
    "EXIT_SILENT",
    "EXIT_WITH_MESSAGE",
    "AutomationOutcome",
    "AutomationResult",
    "ExclusionAnalysis",
    "FailedTest",
    "LintAnalysis",
    "TestFailureAnalysis",
]
