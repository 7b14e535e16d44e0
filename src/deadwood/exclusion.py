"""Decide which files take part in an analysis run.

Skipped files come from built-in build-product directories, the project's
.gitignore, config excludes and the ``exclude`` key of [tool.deadwood].
Test files are recognised separately so they can be counted and reported.
All matching is gitignore-style through pathspec.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path

import pathspec

from deadwood.config import get_analysis_excludes, get_test_patterns, load_pyproject_config

logger = logging.getLogger(__name__)

# Build products and dependency checkouts that never hold project sources
DEFAULT_EXCLUDES = [
    ".build",
    ".git",
    ".deadwood",
    ".swiftpm",
    "DerivedData",
    "Pods",
    "Carthage",
]


@dataclass
class ExclusionConfig:
    """Patterns gathered for one project, grouped by where they came from."""

    default_patterns: list[str] = field(default_factory=list)
    gitignore_patterns: list[str] = field(default_factory=list)
    pyproject_patterns: list[str] = field(default_factory=list)
    test_patterns: list[str] = field(default_factory=list)
    sources: list[str] = field(default_factory=list)

    @property
    def skip_patterns(self) -> list[str]:
        return self.default_patterns + self.gitignore_patterns + self.pyproject_patterns


def read_gitignore(project_root: Path) -> list[str]:
    """Non-comment lines of the project's .gitignore, or [] if unreadable."""
    path = project_root / ".gitignore"
    if not path.exists():
        return []
    try:
        lines = path.read_text(encoding="utf-8").splitlines()
    except (OSError, UnicodeDecodeError) as e:
        logger.debug("Could not read %s: %s", path, e)
        return []
    return [s for s in (line.strip() for line in lines) if s and not s.startswith("#")]


def read_pyproject_excludes(project_root: Path) -> list[str]:
    """The ``exclude`` key of [tool.deadwood], as a list."""
    exclude = load_pyproject_config(project_root).get("exclude")
    if not exclude:
        return []
    return list(exclude) if isinstance(exclude, list) else [str(exclude)]


class FileExcluder:
    """Decides which analyzed files are skipped, and which of them are tests."""

    def __init__(
        self,
        project_root: Path,
        include_tests: bool = False,
        config: dict | None = None,
    ) -> None:
        """Collect patterns for a project.

        Args:
            project_root: Root directory of the project.
            include_tests: If True, test files are analyzed like any other file.
            config: Loaded deadwood config supplying test and exclude patterns.
        """
        self.project_root = project_root
        self.include_tests = include_tests

        config = config or {}
        self._config = ExclusionConfig(
            default_patterns=list(DEFAULT_EXCLUDES) + get_analysis_excludes(config),
            gitignore_patterns=read_gitignore(project_root),
            pyproject_patterns=read_pyproject_excludes(project_root),
            test_patterns=list(get_test_patterns(config)),
            sources=["defaults"],
        )
        if self._config.gitignore_patterns:
            self._config.sources.append(str(project_root / ".gitignore"))
        if self._config.pyproject_patterns:
            self._config.sources.append(str(project_root / "pyproject.toml"))

        self._skip = pathspec.PathSpec.from_lines("gitwildmatch", self._config.skip_patterns)
        self._tests = pathspec.PathSpec.from_lines("gitwildmatch", self._config.test_patterns)

    def _relative(self, file_path: Path) -> str:
        try:
            return file_path.relative_to(self.project_root).as_posix()
        except ValueError:
            return file_path.as_posix()

    def should_exclude(self, file_path: Path) -> bool:
        """Check if a file is skipped regardless of test settings."""
        return self._skip.match_file(self._relative(file_path))

    def is_test_file(self, file_path: Path) -> bool:
        return self._tests.match_file(self._relative(file_path))

    def partition(self, files: list[Path]) -> tuple[list[Path], list[Path]]:
        """Split files into (analyzed, excluded tests).

        Files excluded for other reasons appear in neither list.
        """
        kept: list[Path] = []
        tests: list[Path] = []
        for file_path in files:
            if self.should_exclude(file_path):
                continue
            if not self.include_tests and self.is_test_file(file_path):
                tests.append(file_path)
            else:
                kept.append(file_path)
        logger.debug("Kept %d files, set aside %d test files", len(kept), len(tests))
        return kept, tests

    @property
    def sources(self) -> list[str]:
        """Where the loaded patterns came from."""
        return self._config.sources

    @property
    def patterns(self) -> list[str]:
        """Every skip pattern in effect."""
        return self._config.skip_patterns
