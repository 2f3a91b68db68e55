"""Unit tests for shared result and analysis models."""

from __future__ import annotations

import pytest

from guardrails.core.models import (
    AutomationOutcome,
    AutomationResult,
    ExclusionAnalysis,
    FailedTest,
    LintAnalysis,
    TestFailureAnalysis,
)


class TestAutomationResult:
    @pytest.mark.parametrize(
        ("result", "code"),
        [
            (AutomationResult.no_action(), 0),
            (AutomationResult.skipped(), 0),
            (AutomationResult.success("ok"), 2),
            (AutomationResult.failure("bad"), 2),
        ],
    )
    def test_exit_codes(self, result: AutomationResult, code: int) -> None:
        assert result.exit_code() == code

    def test_silent_outcomes_have_no_message(self) -> None:
        assert AutomationResult.no_action().message is None
        assert AutomationResult.skipped().outcome is AutomationOutcome.SKIPPED

    def test_is_failure(self) -> None:
        assert AutomationResult.failure("x").is_failure()
        assert not AutomationResult.success("x").is_failure()


class TestAnalysisFromDict:
    def test_exclusion_analysis_tolerates_missing_keys(self) -> None:
        analysis = ExclusionAnalysis.from_dict({"should_exclude_lint": True})
        assert analysis.should_exclude_lint
        assert not analysis.should_exclude_general
        assert analysis.reasoning == ""

    def test_exclusion_analysis_round_trips_through_dict(self) -> None:
        analysis = ExclusionAnalysis(True, False, True, "r", "t", "p", "rec")
        assert ExclusionAnalysis.from_dict(analysis.to_dict()) == analysis

    def test_lint_analysis_defaults_to_real_issues(self) -> None:
        analysis = LintAnalysis.from_dict({})
        assert analysis.has_real_issues
        assert analysis.issue_count == 0

    @pytest.mark.parametrize("count", ["3", -2, True, None])
    def test_lint_analysis_bad_issue_count(self, count: object) -> None:
        assert LintAnalysis.from_dict({"issue_count": count}).issue_count == 0

    def test_non_bool_flags_use_default(self) -> None:
        analysis = LintAnalysis.from_dict({"has_real_issues": "no"})
        assert analysis.has_real_issues

    def test_test_failure_analysis_parses_nested(self) -> None:
        analysis = TestFailureAnalysis.from_dict(
            {
                "has_failures": True,
                "summary": "1 failed",
                "failed_tests": [
                    {
                        "test_name": "test_add",
                        "error_type": "AssertionError",
                        "error_message": "1 != 2",
                        "suggested_fix": "fix add()",
                    },
                    "not a dict",
                ],
                "missing_tests": ["test_negative", 7],
                "coverage_analysis": None,
            }
        )
        assert analysis.has_failures
        assert analysis.failed_tests == (
            FailedTest("test_add", "AssertionError", "1 != 2", "fix add()"),
        )
        assert analysis.missing_tests == ("test_negative", "7")
        assert analysis.coverage_analysis == ""

    def test_test_failure_analysis_non_list_fields(self) -> None:
        analysis = TestFailureAnalysis.from_dict(
            {"failed_tests": "oops", "missing_tests": {"a": 1}}
        )
        assert analysis.failed_tests == ()
        assert analysis.missing_tests == ()
