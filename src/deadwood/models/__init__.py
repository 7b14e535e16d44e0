"""Data models for deadwood."""

from deadwood.models.declaration import (
    Declaration,
    DeclarationKind,
    ExclusionReason,
    normalize_identifier,
)
from deadwood.models.deletion import (
    DeletionMode,
    DeletionRequest,
    DeletionResult,
    FileDeletionResult,
    PartialLineDeletion,
    RelatedDeletion,
)
from deadwood.models.facts import DeclarationFact, FactSet, FactsFormatError, ImportFact
from deadwood.models.report import ExcludedItems, Report, ReportOptions

__all__ = [
    # Declaration models
    "Declaration",
    "DeclarationKind",
    "ExclusionReason",
    "normalize_identifier",
    # Fact models
    "DeclarationFact",
    "FactSet",
    "FactsFormatError",
    "ImportFact",
    # Deletion models
    "DeletionMode",
    "DeletionRequest",
    "DeletionResult",
    "FileDeletionResult",
    "PartialLineDeletion",
    "RelatedDeletion",
    # Report models
    "ExcludedItems",
    "Report",
    "ReportOptions",
]
