"""Apply planned line and column edits to source text."""

from collections import defaultdict
from dataclasses import dataclass

from deadwood.models.deletion import PartialLineDeletion

_OPEN_TIGHT = ("(", "[")
_CLOSE_TIGHT = (")", "]", ",")


@dataclass
class EditOutcome:
    """The edited text and what it took to get there."""

    text: str
    lines_removed: int = 0
    partial_edits: int = 0
    skipped_partials: int = 0


def real_line_count(text: str) -> int:
    """Lines in text, not counting the empty tail after a final newline."""
    if not text:
        return 0
    count = text.count("\n") + 1
    return count - 1 if text.endswith("\n") else count


def apply_edits(
    text: str,
    whole_lines: set[int],
    partials: list[PartialLineDeletion],
) -> EditOutcome:
    """Drop whole lines and cut column ranges out of the rest.

    A partial edit on a line that is also dropped whole is skipped. Partial
    edits on one line are merged and applied right to left.
    """
    lines = text.split("\n")
    total = real_line_count(text)
    drop = {n for n in whole_lines if 1 <= n <= total}

    by_line: dict[int, list[tuple[int, int]]] = defaultdict(list)
    skipped = 0
    for partial in partials:
        if partial.line in drop or not 1 <= partial.line <= total:
            skipped += 1
            continue
        by_line[partial.line].append((partial.start_column - 1, partial.end_column - 1))

    for line_number, spans in by_line.items():
        line = lines[line_number - 1]
        ending = "\r" if line.endswith("\r") else ""
        lines[line_number - 1] = cut_columns(line[: len(line) - len(ending)], spans) + ending

    kept = [line for index, line in enumerate(lines, start=1) if index not in drop]
    return EditOutcome(
        text="\n".join(kept),
        lines_removed=len(drop),
        partial_edits=sum(len(spans) for spans in by_line.values()),
        skipped_partials=skipped,
    )


def cut_columns(line: str, spans: list[tuple[int, int]]) -> str:
    """Remove 0-based [start, end) spans from a line and tidy each seam."""
    clamped = sorted(
        (max(0, start), min(len(line), end)) for start, end in spans if start < len(line)
    )
    merged: list[list[int]] = []
    for start, end in clamped:
        if merged and start <= merged[-1][1]:
            merged[-1][1] = max(merged[-1][1], end)
        else:
            merged.append([start, end])

    for start, end in reversed(merged):
        line = join_seam(line[:start], line[end:])
    return line


def join_seam(left: str, right: str) -> str:
    """Join two halves of a cut line.

    Whitespace at the seam collapses to at most one space. Separators left
    dangling next to brackets are dropped.
    """
    head = left.rstrip(" \t")
    tail = right.lstrip(" \t")
    had_space = head != left or tail != right

    if not head:
        return left + tail if tail else ""
    if not tail:
        return head

    if head.endswith(",") and tail.startswith(_CLOSE_TIGHT):
        return head[:-1] + tail
    if head.endswith(_OPEN_TIGHT) and tail.startswith(","):
        return head + tail[1:].lstrip(" \t")
    if head.endswith(_OPEN_TIGHT) or tail.startswith(_CLOSE_TIGHT):
        return head + tail
    return head + (" " if had_space else "") + tail
