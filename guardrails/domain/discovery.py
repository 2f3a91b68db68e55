"""Python project and tool discovery.

Finds the project root for an edited file, the lint/format/test tools
available on PATH, and the test file that exercises a source file.

Tools form a closed set described by registry tables of ToolSpec
records rather than a class hierarchy. Order in each table is priority
order.
"""

from __future__ import annotations

import logging
import shutil
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path

__all__ = [
    "FORMATTERS",
    "LINTERS",
    "LINTER_NAMES",
    "TESTERS",
    "TESTER_NAMES",
    "ProjectType",
    "PythonProject",
    "ToolSpec",
    "find_project_root",
    "find_test_file_for_source",
]

logger = logging.getLogger(__name__)

# Looks up an executable on PATH; shutil.which in production
WhichFunc = Callable[[str], "str | None"]

_PRIMARY_MARKERS = ("pyproject.toml", "setup.py", "setup.cfg")
_SECONDARY_FILE_MARKERS = ("requirements.txt", "Pipfile", "poetry.lock")
_SECONDARY_DIR_MARKERS = ("requirements",)

# How deep a git checkout is searched for .py files before it counts as a
# Python project
_GIT_PYTHON_SEARCH_DEPTH = 3

_SKIPPED_SEARCH_DIRS = frozenset({"__pycache__", "node_modules"})


class ProjectType(Enum):
    """Kind of Python project, from its packaging markers."""

    MODERN = "modern"  # pyproject.toml
    CLASSICAL = "classical"  # setup.py
    SIMPLE = "simple"  # requirements files or nothing at all
    GIT = "git"  # git checkout containing .py files


@dataclass(frozen=True)
class ToolSpec:
    """One external lint, format or test tool.

    Attributes:
        name: Identifier used for preferred_tool in config.
        executable: Program to run.
        base_args: Arguments placed before the target file.
        display_name: Human-readable name for messages.
        fix_args: Arguments for an auto-fix pass, or None when the tool
            cannot fix issues itself.
    """

    name: str
    executable: str
    base_args: tuple[str, ...] = ()
    display_name: str = ""
    fix_args: tuple[str, ...] | None = None

    @property
    def supports_autofix(self) -> bool:
        return self.fix_args is not None

    def command_for(self, target: str) -> list[str]:
        """Command that runs the tool on one file."""
        return [self.executable, *self.base_args, target]

    def fix_command_for(self, target: str) -> list[str] | None:
        """Command that auto-fixes one file, or None if unsupported."""
        if self.fix_args is None:
            return None
        return [self.executable, *self.fix_args, target]


LINTERS: tuple[ToolSpec, ...] = (
    ToolSpec(
        name="ruff",
        executable="ruff",
        base_args=("check",),
        display_name="ruff check",
        fix_args=("check", "--fix"),
    ),
    ToolSpec(name="flake8", executable="flake8", display_name="flake8"),
    ToolSpec(name="pylint", executable="pylint", display_name="pylint"),
)

FORMATTERS: tuple[ToolSpec, ...] = (
    ToolSpec(
        name="ruff format",
        executable="ruff",
        base_args=("format",),
        display_name="ruff format",
    ),
    ToolSpec(name="black", executable="black", display_name="black"),
)

# Testers whose executable is "python" run under whichever interpreter
# (python or python3) is found on PATH.
TESTERS: tuple[ToolSpec, ...] = (
    ToolSpec(name="pytest", executable="pytest", display_name="pytest"),
    ToolSpec(
        name="python -m pytest",
        executable="python",
        base_args=("-m", "pytest"),
        display_name="python -m pytest",
    ),
    ToolSpec(
        name="python -m unittest",
        executable="python",
        base_args=("-m", "unittest"),
        display_name="python -m unittest",
    ),
)

LINTER_NAMES = frozenset(tool.name for tool in LINTERS)
TESTER_NAMES = frozenset(tool.name for tool in TESTERS)


def _has_python_files(directory: Path, max_depth: int) -> bool:
    """Check for .py files within max_depth levels, skipping hidden dirs."""
    if max_depth == 0:
        return False
    try:
        entries = list(directory.iterdir())
    except OSError:
        return False
    for entry in entries:
        if entry.is_file() and entry.suffix == ".py":
            return True
    return any(
        entry.is_dir()
        and not entry.name.startswith(".")
        and _has_python_files(entry, max_depth - 1)
        for entry in entries
    )


def _is_python_project_root(directory: Path) -> bool:
    if any((directory / marker).exists() for marker in _PRIMARY_MARKERS):
        return True
    if any((directory / marker).exists() for marker in _SECONDARY_FILE_MARKERS):
        return True
    if any((directory / marker).is_dir() for marker in _SECONDARY_DIR_MARKERS):
        return True
    return (directory / ".git").exists() and _has_python_files(
        directory, _GIT_PYTHON_SEARCH_DEPTH
    )


def find_project_root(start_dir: Path) -> Path:
    """Walk up from start_dir to the nearest Python project root.

    Returns:
        The first ancestor (including start_dir) with a project marker, or
        the absolute start_dir when none is found.
    """
    start = start_dir if start_dir.is_absolute() else Path.cwd() / start_dir
    for candidate in (start, *start.parents):
        if _is_python_project_root(candidate):
            return candidate
    return start


def detect_project_type(root: Path) -> ProjectType:
    if (root / "pyproject.toml").exists():
        return ProjectType.MODERN
    if (root / "setup.py").exists():
        return ProjectType.CLASSICAL
    if any((root / marker).exists() for marker in _SECONDARY_FILE_MARKERS) or any(
        (root / marker).is_dir() for marker in _SECONDARY_DIR_MARKERS
    ):
        return ProjectType.SIMPLE
    if (root / ".git").exists():
        return ProjectType.GIT
    return ProjectType.SIMPLE


def _available(tools: tuple[ToolSpec, ...], which: WhichFunc) -> list[ToolSpec]:
    """Filter a registry table down to tools found on PATH."""
    python = next((exe for exe in ("python", "python3") if which(exe)), None)
    found: list[ToolSpec] = []
    for tool in tools:
        if tool.executable == "python":
            if python is not None:
                found.append(replace(tool, executable=python))
        elif which(tool.executable):
            found.append(tool)
    return found


def _pick(tools: list[ToolSpec], preferred: str | None) -> ToolSpec | None:
    if preferred is not None:
        for tool in tools:
            if tool.name == preferred:
                return tool
        logger.debug("Preferred tool %s not available, using default", preferred)
    return tools[0] if tools else None


@dataclass
class PythonProject:
    """A discovered Python project and the tools usable on it."""

    root: Path
    project_type: ProjectType
    linters: list[ToolSpec] = field(default_factory=list)
    formatters: list[ToolSpec] = field(default_factory=list)
    testers: list[ToolSpec] = field(default_factory=list)

    @classmethod
    def discover(
        cls, start_dir: Path, which: WhichFunc = shutil.which
    ) -> PythonProject:
        """Discover the project containing start_dir.

        Args:
            start_dir: Directory to start the upward search from, usually
                the edited file's parent.
            which: PATH lookup (injectable for tests).
        """
        root = find_project_root(start_dir)
        project = cls(
            root=root,
            project_type=detect_project_type(root),
            linters=_available(LINTERS, which),
            formatters=_available(FORMATTERS, which),
            testers=_available(TESTERS, which),
        )
        logger.debug(
            "Discovered %s project at %s (linters=%s, testers=%s)",
            project.project_type.value,
            root,
            [t.name for t in project.linters],
            [t.name for t in project.testers],
        )
        return project

    def preferred_linter(self, preferred: str | None = None) -> ToolSpec | None:
        return _pick(self.linters, preferred)

    def preferred_formatter(self) -> ToolSpec | None:
        return _pick(self.formatters, None)

    def preferred_tester(self, preferred: str | None = None) -> ToolSpec | None:
        return _pick(self.testers, preferred)

    @property
    def has_linter(self) -> bool:
        return bool(self.linters)

    @property
    def has_tester(self) -> bool:
        return bool(self.testers)


def is_test_file(path: Path) -> bool:
    """Return True if the filename already looks like a test module."""
    name = path.name
    return name.startswith("test_") or name.endswith("_test.py") or name.endswith(
        "test.py"
    )


def _find_recursive(directory: Path, names: tuple[str, ...]) -> Path | None:
    """Depth-first search for the first file named in names.

    Each directory's own files are checked before its subdirectories,
    which are visited in sorted order.
    """
    if not directory.is_dir():
        return None
    for name in names:
        candidate = directory / name
        if candidate.is_file():
            return candidate
    try:
        subdirs = sorted(p for p in directory.iterdir() if p.is_dir())
    except OSError:
        return None
    for subdir in subdirs:
        if subdir.name.startswith(".") or subdir.name in _SKIPPED_SEARCH_DIRS:
            continue
        found = _find_recursive(subdir, names)
        if found is not None:
            return found
    return None


def find_test_file_for_source(source_file: Path, project_root: Path) -> Path | None:
    """Locate the test module that covers source_file.

    A file that is already a test module is its own test. Otherwise
    test_{stem}.py, {stem}_test.py and test{stem}.py are searched for in
    tests/, test/, the project root and the source's directory, in that
    order.
    """
    if is_test_file(source_file):
        return source_file

    stem = source_file.stem
    names = (f"test_{stem}.py", f"{stem}_test.py", f"test{stem}.py")
    search_roots = (
        project_root / "tests",
        project_root / "test",
        project_root,
        source_file.parent,
    )
    for base in search_roots:
        found = _find_recursive(base, names)
        if found is not None:
            logger.debug("Found test file %s for %s", found, source_file)
            return found

    logger.debug("No test file found for %s", source_file)
    return None
