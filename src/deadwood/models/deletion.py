"""Deletion models for planned and applied source edits."""

from dataclasses import dataclass, field
from enum import Enum

from deadwood.models.declaration import Declaration


class DeletionMode(Enum):
    """How much of a declaration a request removes."""

    FULL_DECLARATION = "full"  # The declaration's whole span
    SPECIFIC_LINES = "lines"  # An explicit set of lines
    PARTIAL_LINE = "partial"  # A column range on one line
    RELATED = "related"  # A coupled fragment found by the related-code finder


@dataclass(frozen=True)
class PartialLineDeletion:
    """A column range on one line. Columns are 1-based, end exclusive."""

    line: int
    start_column: int
    end_column: int

    def __post_init__(self) -> None:
        if self.line < 1 or self.start_column < 1 or self.end_column < self.start_column:
            raise ValueError(
                f"Invalid partial deletion: line {self.line}, "
                f"columns {self.start_column}-{self.end_column}"
            )

    def to_dict(self) -> dict:
        return {
            "line": self.line,
            "start_column": self.start_column,
            "end_column": self.end_column,
        }


@dataclass(frozen=True)
class RelatedDeletion:
    """A code fragment coupled to an unused declaration."""

    file: str
    start_line: int
    end_line: int
    description: str
    parent: Declaration
    snippet: str = ""
    partial: PartialLineDeletion | None = None

    @property
    def lines(self) -> frozenset[int]:
        return frozenset(range(self.start_line, self.end_line + 1))

    @property
    def is_partial(self) -> bool:
        return self.partial is not None

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "file": self.file,
            "start_line": self.start_line,
            "end_line": self.end_line,
            "description": self.description,
            "parent": self.parent.to_dict(),
            "snippet": self.snippet,
            "partial": self.partial.to_dict() if self.partial else None,
        }


@dataclass(frozen=True)
class DeletionRequest:
    """One removal to perform. Build these with the classmethods."""

    declaration: Declaration
    mode: DeletionMode = DeletionMode.FULL_DECLARATION
    lines: frozenset[int] = frozenset()
    partial: PartialLineDeletion | None = None
    related: RelatedDeletion | None = None

    @classmethod
    def full(cls, declaration: Declaration) -> "DeletionRequest":
        return cls(declaration=declaration)

    @classmethod
    def specific_lines(cls, declaration: Declaration, lines: set[int]) -> "DeletionRequest":
        return cls(declaration=declaration, mode=DeletionMode.SPECIFIC_LINES, lines=frozenset(lines))

    @classmethod
    def partial_line(
        cls, declaration: Declaration, partial: PartialLineDeletion
    ) -> "DeletionRequest":
        return cls(declaration=declaration, mode=DeletionMode.PARTIAL_LINE, partial=partial)

    @classmethod
    def from_related(cls, related: RelatedDeletion) -> "DeletionRequest":
        return cls(declaration=related.parent, mode=DeletionMode.RELATED, related=related)

    @property
    def file(self) -> str:
        """File the edit lands in. Related fragments may live in a sibling file."""
        if self.related is not None:
            return self.related.file
        return self.declaration.file


@dataclass
class FileDeletionResult:
    """Outcome of editing a single file."""

    file: str
    requests: int = 0
    original_lines: int = 0
    modified_lines: int = 0
    lines_removed: int = 0
    partial_edits: int = 0
    unresolved: list[str] = field(default_factory=list)
    success: bool = True
    error: str | None = None
    file_deleted: bool = False

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "file": self.file,
            "requests": self.requests,
            "original_lines": self.original_lines,
            "modified_lines": self.modified_lines,
            "lines_removed": self.lines_removed,
            "partial_edits": self.partial_edits,
            "unresolved": self.unresolved,
            "success": self.success,
            "error": self.error,
            "file_deleted": self.file_deleted,
        }


@dataclass
class DeletionResult:
    """Summary across every file touched by a deletion batch."""

    file_results: list[FileDeletionResult] = field(default_factory=list)
    dry_run: bool = False

    @property
    def total_files(self) -> int:
        return len(self.file_results)

    @property
    def successful_files(self) -> int:
        return sum(1 for r in self.file_results if r.success)

    @property
    def failed_files(self) -> int:
        return self.total_files - self.successful_files

    @property
    def total_lines_removed(self) -> int:
        return sum(r.lines_removed for r in self.file_results if r.success)

    @property
    def deleted_files(self) -> list[str]:
        return [r.file for r in self.file_results if r.file_deleted]

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "dry_run": self.dry_run,
            "summary": {
                "total_files": self.total_files,
                "successful_files": self.successful_files,
                "failed_files": self.failed_files,
                "lines_removed": self.total_lines_removed,
                "deleted_files": self.deleted_files,
            },
            "files": [r.to_dict() for r in self.file_results],
        }
