"""Turn deletion requests into per-file edit plans."""

import logging
from collections import defaultdict
from dataclasses import dataclass, field

from deadwood.analysis.related import enum_case_deletions, parameter_deletions
from deadwood.analysis.source import SourceText, declaration_span
from deadwood.extraction import SourceExtractor
from deadwood.models.declaration import DeclarationKind
from deadwood.models.deletion import (
    DeletionMode,
    DeletionRequest,
    PartialLineDeletion,
    RelatedDeletion,
)

logger = logging.getLogger(__name__)


@dataclass
class FilePlan:
    """Every edit destined for one file."""

    file: str
    whole_lines: set[int] = field(default_factory=set)
    partials: list[PartialLineDeletion] = field(default_factory=list)
    requests: int = 0
    unresolved: list[str] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.whole_lines and not self.partials

    def add(self, edits: list[RelatedDeletion]) -> None:
        for edit in edits:
            if edit.partial is not None:
                self.partials.append(edit.partial)
            else:
                self.whole_lines.update(edit.lines)


def group_by_file(requests: list[DeletionRequest]) -> dict[str, list[DeletionRequest]]:
    """Group requests by the file their edit lands in."""
    by_file: dict[str, list[DeletionRequest]] = defaultdict(list)
    for request in requests:
        by_file[request.file].append(request)
    return dict(by_file)


class DeletionPlanner:
    """Resolves requests to line and column edits.

    Spans come from the extractor when it knows them, otherwise from a
    lexical scan of the current file text. Parameters are cut out of their
    parameter clause rather than removed by line, and so is a case sharing
    a ``case`` list with others.
    """

    def __init__(self, extractor: SourceExtractor | None = None) -> None:
        self.extractor = extractor

    def plan_file(self, file: str, requests: list[DeletionRequest], text: str) -> FilePlan:
        plan = FilePlan(file=file, requests=len(requests))
        source = SourceText(text)

        for request in requests:
            declaration = request.declaration
            if (
                request.mode is DeletionMode.FULL_DECLARATION
                and declaration.kind is DeclarationKind.PARAMETER
            ):
                edits = parameter_deletions(source, declaration)
                if not edits:
                    plan.unresolved.append(declaration.qualified_name)
                plan.add(edits)
            elif (
                request.mode is DeletionMode.FULL_DECLARATION
                and declaration.kind is DeclarationKind.ENUM_CASE
                and (edits := enum_case_deletions(source, declaration))
            ):
                plan.add(edits)
            elif request.mode is DeletionMode.FULL_DECLARATION:
                span = self.span_for(request, source)
                if span is None:
                    plan.unresolved.append(declaration.qualified_name)
                    continue
                plan.whole_lines.update(range(span[0], span[1] + 1))
            elif request.mode is DeletionMode.SPECIFIC_LINES:
                plan.whole_lines.update(request.lines)
            elif request.mode is DeletionMode.PARTIAL_LINE and request.partial is not None:
                plan.partials.append(request.partial)
            elif request.mode is DeletionMode.RELATED and request.related is not None:
                related = request.related
                if related.partial is not None:
                    plan.partials.append(related.partial)
                else:
                    plan.whole_lines.update(related.lines)
            else:
                plan.unresolved.append(declaration.qualified_name)

        if plan.unresolved:
            logger.info("%s: could not locate %s", file, ", ".join(plan.unresolved))
        return plan

    def span_for(self, request: DeletionRequest, source: SourceText) -> tuple[int, int] | None:
        declaration = request.declaration
        if not 1 <= declaration.line <= source.line_count:
            return None
        if declaration.kind is DeclarationKind.IMPORT:
            # Imports span only their own lines; comments above them stay
            return declaration_span(source, declaration.line, leading_trivia=False)
        if self.extractor is not None:
            span = self.extractor.span(declaration)
            if span is not None:
                return span
        return declaration_span(source, declaration.line)
