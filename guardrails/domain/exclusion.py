"""Layered exclusion rules deciding whether a file is linted or tested.

A file is judged per context (any, lint, test) in a fixed order:

1. Global patterns. A match vetoes every context.
2. Context patterns. ANY checks the lint and test sets; LINT and TEST
   check only their own set.
3. Filesystem heuristics, only for paths that exist: size, then binary
   content, then generated-file markers.

Pattern checks short-circuit before any filesystem I/O. Paths that do
not exist are judged on patterns alone, since hook events can reference
files that are mid-deletion.
"""

from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path, PurePosixPath
from typing import TYPE_CHECKING

from pathspec import GitIgnoreSpec

from guardrails.core.errors import ConfigError

from .config import GuardrailsConfig, default_config, parse_file_size

if TYPE_CHECKING:
    from collections.abc import Sequence

__all__ = [
    "GENERATED_FILE_MARKERS",
    "ExclusionContext",
    "ExclusionEngine",
    "is_binary_file",
    "is_generated_file",
]

logger = logging.getLogger(__name__)

# Bytes sniffed for a null byte when detecting binary files
BINARY_SNIFF_BYTES = 1024

# Substrings (matched against the lowercased path and filename) that mark
# files as produced by a code generator
GENERATED_FILE_MARKERS = (
    "_pb2.py",
    "_pb2_grpc.py",
    ".generated.",
    "_generated.",
    ".pb.go",
    ".g.dart",
    "generated",
    ".gen.",
)


class ExclusionContext(Enum):
    """Processing context a file is being judged for."""

    ANY = "any"
    LINT = "lint"
    TEST = "test"


def is_binary_file(path: Path) -> bool:
    """Return True if a null byte appears in the first 1024 bytes.

    Raises:
        OSError: If the file cannot be opened or read.
    """
    with path.open("rb") as f:
        chunk = f.read(BINARY_SNIFF_BYTES)
    return b"\x00" in chunk


def is_generated_file(path: Path) -> bool:
    """Return True if the path or filename carries a generated-file marker."""
    path_str = str(path).lower()
    filename = path.name.lower()
    return any(
        marker in path_str or marker in filename for marker in GENERATED_FILE_MARKERS
    )


def _validate_pattern(pattern: str, category: str) -> None:
    if not pattern.strip():
        raise ConfigError(f"Empty glob pattern in {category}")
    # pathspec reads an unterminated "[" as a literal; treat it as a typo.
    depth = 0
    escaped = False
    for char in pattern:
        if escaped:
            escaped = False
        elif char == "\\":
            escaped = True
        elif char == "[":
            depth += 1
        elif char == "]" and depth:
            depth -= 1
    if depth:
        raise ConfigError(
            f"Invalid glob pattern in {category}: '{pattern}' (unclosed '[')"
        )


def _compile(patterns: Sequence[str], category: str) -> GitIgnoreSpec:
    """Compile one category of globs, failing on the first bad pattern.

    Raises:
        ConfigError: Naming the category and the offending pattern.
    """
    for pattern in patterns:
        if not isinstance(pattern, str):
            raise ConfigError(
                f"Glob patterns in {category} must be strings, "
                f"got {type(pattern).__name__}"
            )
        _validate_pattern(pattern, category)
        try:
            GitIgnoreSpec.from_lines([pattern])
        except ValueError as e:
            # GitWildMatchPatternError subclasses ValueError
            raise ConfigError(
                f"Invalid glob pattern in {category}: '{pattern}' ({e})"
            ) from e
    return GitIgnoreSpec.from_lines(list(patterns))


class ExclusionEngine:
    """Evaluates files against global, lint and test exclusion rules.

    Patterns use gitignore semantics and are tried against every trailing
    sub-path, so "migrations/**" catches "src/app/migrations/0001.py" and
    ".venv/**" catches "/elsewhere/proj/.venv/lib/site.py". For files under
    base_dir the sub-paths start below base_dir, so a parent directory named
    "build" does not exclude a whole project.

    Example:
        engine = ExclusionEngine(default_config())
        if not engine.should_exclude_lint(Path("src/app.py")):
            run_linter()
    """

    def __init__(
        self, config: GuardrailsConfig, base_dir: Path | None = None
    ) -> None:
        """Compile all matchers.

        Args:
            config: Rule configuration.
            base_dir: Directory relative paths are judged against. Defaults
                to the current working directory.

        Raises:
            ConfigError: If any glob pattern or the size string is invalid.
        """
        self.config = config
        self.base_dir = (base_dir if base_dir is not None else Path.cwd()).absolute()
        self._global = _compile(config.exclude.patterns, "exclude.patterns")
        self._lint = _compile(config.exclude.python.lint_skip, "exclude.python.lint_skip")
        self._test = _compile(config.exclude.python.test_skip, "exclude.python.test_skip")
        self.max_file_size_bytes = parse_file_size(config.rules.max_file_size)

    @classmethod
    def from_config(
        cls, config: GuardrailsConfig | None = None, base_dir: Path | None = None
    ) -> ExclusionEngine:
        """Build an engine, using default_config() when config is None."""
        return cls(config if config is not None else default_config(), base_dir)

    @classmethod
    def from_yaml(cls, yaml_content: str, base_dir: Path | None = None) -> ExclusionEngine:
        """Build an engine from YAML text."""
        from .config_loader import parse_config

        return cls(parse_config(yaml_content), base_dir)

    @classmethod
    def from_file(cls, config_path: Path, base_dir: Path | None = None) -> ExclusionEngine:
        """Build an engine from a YAML config file."""
        from .config_loader import load_config

        return cls(load_config(config_path), base_dir)

    def should_exclude(self, path: Path) -> bool:
        """Return True if the file is excluded from all processing."""
        return self.should_exclude_context(path, ExclusionContext.ANY)

    def should_exclude_lint(self, path: Path) -> bool:
        return self.should_exclude_context(path, ExclusionContext.LINT)

    def should_exclude_test(self, path: Path) -> bool:
        return self.should_exclude_context(path, ExclusionContext.TEST)

    def should_exclude_context(self, path: Path, context: ExclusionContext) -> bool:
        """Return True if the file should be skipped in the given context."""
        return self.exclusion_reason(path, context) is not None

    def exclusion_reason(self, path: Path, context: ExclusionContext) -> str | None:
        """Explain why the file is excluded, or return None if it is included.

        Uses the same ordering as should_exclude_context(). Nothing is
        cached; size and content checks hit the filesystem every call.
        """
        candidates = self._match_candidates(path)

        if self._matches(self._global, candidates):
            return "matches a global exclude pattern"

        if context in (ExclusionContext.ANY, ExclusionContext.LINT) and self._matches(
            self._lint, candidates
        ):
            return "matches a lint skip pattern"
        if context in (ExclusionContext.ANY, ExclusionContext.TEST) and self._matches(
            self._test, candidates
        ):
            return "matches a test skip pattern"

        if not path.exists():
            return None

        try:
            size = path.stat().st_size
        except OSError as e:
            logger.debug("Cannot stat %s: %s", path, e)
        else:
            if size > self.max_file_size_bytes:
                return f"larger than {self.config.rules.max_file_size}"

        rules = self.config.rules
        if rules.skip_binary_files:
            try:
                if is_binary_file(path):
                    return "binary file"
            except OSError as e:
                logger.debug("Cannot read %s for binary check: %s", path, e)
                return "unreadable file"

        if rules.skip_generated_files and is_generated_file(path):
            return "generated file"

        return None

    def _match_candidates(self, path: Path) -> list[str]:
        """Return the POSIX path strings a pattern may match against.

        Every trailing sub-path is a candidate, starting from the
        base-relative path for files under base_dir and from the absolute
        path otherwise. Directories above base_dir are never candidates.
        """
        absolute = path if path.is_absolute() else self.base_dir / path
        try:
            parts = PurePosixPath(absolute.relative_to(self.base_dir).as_posix()).parts
        except ValueError:
            parts = PurePosixPath(absolute.as_posix()).parts[1:]
        return ["/".join(parts[i:]) for i in range(len(parts))]

    @staticmethod
    def _matches(spec: GitIgnoreSpec, candidates: list[str]) -> bool:
        return any(spec.match_file(candidate) for candidate in candidates)
