"""Apply deletion requests across many files."""

import logging
import os
import shutil
import tempfile
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

from deadwood.deletion.editor import apply_edits, real_line_count
from deadwood.deletion.empty import is_effectively_empty
from deadwood.deletion.planner import DeletionPlanner, FilePlan, group_by_file
from deadwood.models.deletion import (
    DeletionMode,
    DeletionRequest,
    DeletionResult,
    FileDeletionResult,
)

logger = logging.getLogger(__name__)


class DeletionService:
    """Edits files in place, one file at a time per worker.

    A failure in one file is recorded in its result and never stops the
    others. With dry_run nothing is written or removed, but the results
    describe exactly what would have happened.
    """

    def __init__(self, planner: DeletionPlanner | None = None, max_workers: int = 1) -> None:
        self.planner = planner or DeletionPlanner()
        self.max_workers = max_workers

    def delete(
        self,
        requests: list[DeletionRequest],
        dry_run: bool = False,
        delete_empty_files: bool = False,
    ) -> DeletionResult:
        by_file = group_by_file(requests)
        files = sorted(by_file)

        def work(file: str) -> FileDeletionResult:
            return self.process_file(file, by_file[file], dry_run, delete_empty_files)

        if self.max_workers > 1 and len(files) > 1:
            with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
                results = list(pool.map(work, files))
        else:
            results = [work(f) for f in files]

        result = DeletionResult(file_results=results, dry_run=dry_run)
        logger.info(
            "%s %d lines across %d files (%d failed)",
            "Would remove" if dry_run else "Removed",
            result.total_lines_removed,
            result.total_files,
            result.failed_files,
        )
        return result

    def process_file(
        self,
        file: str,
        requests: list[DeletionRequest],
        dry_run: bool = False,
        delete_empty_files: bool = False,
    ) -> FileDeletionResult:
        result = FileDeletionResult(file=file, requests=len(requests))
        path = Path(file)
        try:
            text = _read_source(path)
            plan = self.planner.plan_file(file, requests, text)
            outcome = apply_edits(text, plan.whole_lines, plan.partials)

            result.original_lines = real_line_count(text)
            result.modified_lines = real_line_count(outcome.text)
            result.lines_removed = outcome.lines_removed
            result.partial_edits = outcome.partial_edits
            result.unresolved = plan.unresolved

            if delete_empty_files and is_effectively_empty(outcome.text):
                result.file_deleted = True
                if not dry_run:
                    path.unlink()
            elif not dry_run and outcome.text != text:
                _write_atomic(path, outcome.text)
        except (OSError, UnicodeDecodeError, ValueError) as e:
            logger.warning("Failed to edit %s: %s", file, e)
            result.success = False
            result.error = str(e)
        return result

    def preview(self, requests: list[DeletionRequest]) -> str:
        """Readable description of what delete() would do, file by file."""
        out: list[str] = []
        for file, file_requests in sorted(group_by_file(requests).items()):
            out.append(f"{file}:")
            plan: FilePlan | None = None
            try:
                plan = self.planner.plan_file(
                    file, file_requests, _read_source(Path(file))
                )
            except (OSError, UnicodeDecodeError) as e:
                out.append(f"  ! cannot read file: {e}")

            for request in file_requests:
                out.append(f"  - {_describe(request)}")
            if plan is not None:
                if plan.whole_lines:
                    out.append(f"    lines: {_format_lines(plan.whole_lines)}")
                for unresolved in plan.unresolved:
                    out.append(f"    ! not located: {unresolved}")
        return "\n".join(out)


def _describe(request: DeletionRequest) -> str:
    declaration = request.declaration
    label = f"{declaration.kind.value} {declaration.qualified_name}"
    if request.mode is DeletionMode.FULL_DECLARATION:
        return f"{label} (line {declaration.line})"
    if request.mode is DeletionMode.SPECIFIC_LINES:
        return f"{label} lines {_format_lines(set(request.lines))}"
    if request.mode is DeletionMode.PARTIAL_LINE and request.partial is not None:
        p = request.partial
        return f"{label} line {p.line} columns {p.start_column}-{p.end_column}"
    if request.related is not None:
        related = request.related
        where = (
            f"line {related.partial.line} columns "
            f"{related.partial.start_column}-{related.partial.end_column}"
            if related.partial
            else f"lines {related.start_line}-{related.end_line}"
        )
        return f"{related.description} ({where})"
    return label


def _format_lines(lines: set[int]) -> str:
    """Compact a line set into ranges, e.g. 1-3, 7."""
    parts: list[str] = []
    ordered = sorted(lines)
    start = prev = ordered[0] if ordered else 0
    for number in ordered[1:]:
        if number == prev + 1:
            prev = number
            continue
        parts.append(f"{start}-{prev}" if start != prev else str(start))
        start = prev = number
    if ordered:
        parts.append(f"{start}-{prev}" if start != prev else str(start))
    return ", ".join(parts)


def _read_source(path: Path) -> str:
    """File text with its line endings untouched."""
    with open(path, "r", encoding="utf-8", newline="") as f:
        return f.read()


def _write_atomic(path: Path, content: str) -> None:
    """Replace path with content, keeping its permission bits."""
    fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
            f.write(content)
        shutil.copymode(path, tmp)
        os.replace(tmp, path)
    except BaseException:
        Path(tmp).unlink(missing_ok=True)
        raise
