"""Select report items by id, kind, file pattern or name."""

import logging
import re
from collections import Counter
from dataclasses import dataclass
from pathlib import Path

import pathspec

from deadwood.models.declaration import Declaration, DeclarationKind
from deadwood.models.report import Report

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FilterCriteria:
    """Conditions an item must all satisfy to be selected.

    file_pattern is gitignore-style (``Sources/**/*.swift``, ``*View.swift``)
    and is matched against paths relative to root when one is given.
    name_pattern is a regular expression searched in the item name.
    """

    ids: frozenset[int] | None = None
    kinds: frozenset[DeclarationKind] | None = None
    file_pattern: str | None = None
    name_pattern: str | None = None
    include_excluded: bool = False
    root: Path | None = None

    @property
    def is_empty(self) -> bool:
        return not (self.ids or self.kinds or self.file_pattern or self.name_pattern)


class DeclarationFilter:
    """Applies FilterCriteria to declarations."""

    def __init__(self, criteria: FilterCriteria) -> None:
        self.criteria = criteria
        self._file_spec: pathspec.PathSpec | None = None
        self._name_regex: re.Pattern[str] | None = None
        self._invalid_name = False

        if criteria.file_pattern:
            patterns = [criteria.file_pattern]
            if not criteria.file_pattern.startswith(("/", "**/")):
                patterns.append(f"**/{criteria.file_pattern}")
            self._file_spec = pathspec.PathSpec.from_lines("gitwildmatch", patterns)
        if criteria.name_pattern:
            try:
                self._name_regex = re.compile(criteria.name_pattern)
            except re.error as e:
                logger.warning("Invalid name pattern %r: %s", criteria.name_pattern, e)
                self._invalid_name = True

    def matches(self, declaration: Declaration) -> bool:
        criteria = self.criteria
        if criteria.ids is not None and declaration.id not in criteria.ids:
            return False
        if criteria.kinds is not None and declaration.kind not in criteria.kinds:
            return False
        if self._file_spec is not None and not self._file_spec.match_file(
            self._relative(declaration.file)
        ):
            return False
        if self._invalid_name:
            return False
        if self._name_regex is not None and not self._name_regex.search(declaration.name):
            return False
        return True

    def _relative(self, file: str) -> str:
        path = Path(file)
        if self.criteria.root is not None:
            try:
                return path.relative_to(self.criteria.root).as_posix()
            except ValueError:
                pass
        return path.as_posix().lstrip("/")

    def apply(self, report: Report) -> list[Declaration]:
        """Matching items, unused first, then excluded when requested."""
        pool = list(report.unused)
        if self.criteria.include_excluded:
            pool.extend(report.excluded.all())
        return [d for d in pool if self.matches(d)]


def filter_report(report: Report, criteria: FilterCriteria) -> list[Declaration]:
    return DeclarationFilter(criteria).apply(report)


def summarize(declarations: list[Declaration]) -> dict[str, int]:
    """Item counts per kind, most frequent first."""
    return dict(Counter(d.kind.value for d in declarations).most_common())
