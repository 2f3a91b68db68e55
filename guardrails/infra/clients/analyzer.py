"""LLM-backed interpretation of files and tool output.

OutputAnalyzer asks the analysis model three questions:

- analyze_file: should this file be excluded from linting or testing?
- analyze_lint_output: which linter findings are real issues?
- analyze_test_output: why did the tests fail and what coverage is missing?

Every method degrades to the deterministic analysis in
guardrails.domain.analysis when AI is disabled or the call fails, so
callers never need to handle analyzer errors.
"""

from __future__ import annotations

import asyncio
import json
import logging
import re
from pathlib import Path
from typing import TYPE_CHECKING, Any

from guardrails.core.errors import AnalysisError
from guardrails.core.models import ExclusionAnalysis, LintAnalysis, TestFailureAnalysis
from guardrails.domain.analysis import (
    basic_lint_analysis,
    basic_test_failure_analysis,
    conservative_exclusion_analysis,
    heuristic_exclusion_analysis,
    read_file_for_analysis,
)
from guardrails.domain.discovery import find_test_file_for_source
from guardrails.infra.clients.anthropic_client import create_anthropic_client

if TYPE_CHECKING:
    from collections.abc import Callable

    from guardrails.infra.io.config import GuardrailsSettings

logger = logging.getLogger(__name__)

MAX_RESPONSE_TOKENS = 4096

_PROJECT_MARKERS = (
    ("pyproject.toml", "Project uses pyproject.toml configuration."),
    ("setup.py", "Project uses setup.py configuration."),
    ("requirements.txt", "Project uses requirements.txt for dependencies."),
)


def _load_prompt_template(name: str) -> str:
    """Load a prompt template from the prompts directory."""
    prompt_path = Path(__file__).parent.parent.parent / "prompts" / f"{name}.md"
    return prompt_path.read_text()


def extract_json_object(response_text: str) -> dict[str, Any]:
    """Pull the JSON object out of a model response.

    Accepts a ```json fenced block, a bare object embedded in prose, or a
    response that is entirely JSON.

    Raises:
        AnalysisError: If no JSON object can be decoded.
    """
    json_match = re.search(r"```(?:json)?\s*(\{.*\})\s*```", response_text, re.DOTALL)
    if json_match:
        json_str = json_match.group(1)
    else:
        json_match = re.search(r"\{.*\}", response_text, re.DOTALL)
        json_str = json_match.group(0) if json_match else response_text

    try:
        data = json.loads(json_str)
    except json.JSONDecodeError as e:
        raise AnalysisError(
            f"Failed to parse model response: {response_text[:200]}"
        ) from e
    if not isinstance(data, dict):
        raise AnalysisError("Model response is not a JSON object")
    return data


class OutputAnalyzer:
    """Analyzes files and tool output with the configured model.

    The client is created lazily on first use, so constructing an analyzer
    with AI disabled never touches the network stack.
    """

    def __init__(
        self,
        settings: GuardrailsSettings,
        client_factory: Callable[..., Any] = create_anthropic_client,
    ) -> None:
        self.settings = settings
        self._client_factory = client_factory
        self._client: Any = None

    @property
    def enabled(self) -> bool:
        return self.settings.ai_enabled

    async def analyze_file(self, file_path: Path) -> ExclusionAnalysis:
        """Recommend exclusions for a file.

        Without AI the recommendation comes from the file name. When the
        call fails the file is conservatively kept in every check.
        """
        if not self.enabled:
            return heuristic_exclusion_analysis(file_path)

        try:
            file_content = read_file_for_analysis(file_path)
            prompt = _load_prompt_template("exclusion_analysis").format(
                file_path=file_path,
                file_name=file_path.name,
                extension=file_path.suffix.lstrip("."),
                file_content=file_content,
                project_context=_project_context(file_path.parent),
            )
            data = await self._complete(prompt)
        except Exception as e:  # noqa: BLE001 - any client error falls back
            logger.warning("File analysis failed for %s: %s", file_path, e)
            return conservative_exclusion_analysis("API analysis failed")
        return ExclusionAnalysis.from_dict(data)

    async def analyze_lint_output(
        self, output: str, file_path: Path | None = None
    ) -> LintAnalysis:
        """Separate real lint issues from false positives."""
        if not self.enabled:
            return basic_lint_analysis(output)

        try:
            prompt = _load_prompt_template("lint_analysis").format(
                file_path=file_path if file_path is not None else "unknown",
                output=output,
            )
            data = await self._complete(prompt)
        except Exception as e:  # noqa: BLE001 - any client error falls back
            logger.warning("Lint analysis failed: %s", e)
            return basic_lint_analysis(output)
        return LintAnalysis.from_dict(data)

    async def analyze_test_output(
        self,
        output: str,
        project_root: Path,
        source_file: Path | None = None,
    ) -> TestFailureAnalysis:
        """Explain test failures and review coverage of source_file."""
        if not self.enabled:
            return basic_test_failure_analysis(output)

        try:
            prompt = _load_prompt_template("test_analysis").format(
                project_root=project_root,
                source_context=_source_context(project_root, source_file),
                output=output,
            )
            data = await self._complete(prompt)
        except Exception as e:  # noqa: BLE001 - any client error falls back
            logger.warning("Test analysis failed: %s", e)
            return basic_test_failure_analysis(output)
        return TestFailureAnalysis.from_dict(data)

    async def _complete(self, prompt: str) -> dict[str, Any]:
        """Send a prompt and decode the JSON object in the reply."""
        if self._client is None:
            self._client = self._client_factory(
                api_key=self.settings.llm_api_key,
                base_url=self.settings.llm_base_url,
                timeout=self.settings.analysis_timeout,
            )

        # Use asyncio.to_thread to avoid blocking the event loop during API calls
        response = await asyncio.to_thread(
            self._client.messages.create,
            model=self.settings.analysis_model,
            max_tokens=MAX_RESPONSE_TOKENS,
            messages=[{"role": "user", "content": prompt}],
        )
        if not response.content:
            raise AnalysisError("Empty response from analysis model")
        return extract_json_object(response.content[0].text)


def _project_context(directory: Path) -> str:
    lines = [text for marker, text in _PROJECT_MARKERS if (directory / marker).exists()]
    return "\n".join(lines) if lines else "No project configuration files found."


def _read_or_none(path: Path) -> str | None:
    try:
        return read_file_for_analysis(path)
    except OSError as e:
        logger.debug("Could not read %s for analysis: %s", path, e)
        return None


def _source_context(project_root: Path, source_file: Path | None) -> str:
    """Describe the source file and its existing tests for the test prompt."""
    if source_file is None:
        return ""

    parts = [f"Source file: {source_file}"]
    source_content = _read_or_none(source_file)
    if source_content is not None:
        parts.append(f"\nSource code being tested:\n```python\n{source_content}\n```")

    test_file = find_test_file_for_source(source_file, project_root)
    test_content = _read_or_none(test_file) if test_file is not None else None
    if test_file is not None and test_content is not None:
        parts.append(
            f"\nExisting test file ({test_file}):\n```python\n{test_content}\n```"
        )
    else:
        parts.append("\n⚠️ No test file found for this source file.")
    return "\n".join(parts)
