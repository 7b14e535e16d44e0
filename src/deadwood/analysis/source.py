"""Lexical helpers over source text: masking, bracket matching and spans.

Everything here works on a masked copy of the text in which comment
bodies and string literal contents are blanked out. Offsets and line
breaks are preserved, so positions found in the masked copy are valid in
the original.
"""

import re
from bisect import bisect_right

_OPENERS = {"(": ")", "[": "]", "{": "}"}
_CLOSERS = {v: k for k, v in _OPENERS.items()}
_ATTRIBUTE_LINE = re.compile(r"^(?:@\w+(?:\([^)]*\))?\s*)+$")


def mask_source(text: str) -> str:
    """Blank out comments and string contents, keeping newlines and offsets.

    String interpolations stay visible because they contain live code.
    """
    out = list(text)
    n = len(text)
    i = 0
    while i < n:
        if text.startswith("//", i):
            end = text.find("\n", i)
            end = n if end == -1 else end
            _blank(out, i, end)
            i = end
        elif text.startswith("/*", i):
            depth, j = 1, i + 2
            while j < n and depth:
                if text.startswith("/*", j):
                    depth += 1
                    j += 2
                elif text.startswith("*/", j):
                    depth -= 1
                    j += 2
                else:
                    j += 1
            _blank(out, i, j)
            i = j
        elif text.startswith('"""', i):
            i = _mask_string(text, out, i + 3, '"""')
        elif text[i] == '"':
            i = _mask_string(text, out, i + 1, '"')
        else:
            i += 1
    return "".join(out)


def _blank(out: list[str], start: int, end: int) -> None:
    for k in range(start, end):
        if out[k] != "\n":
            out[k] = " "


def _mask_string(text: str, out: list[str], start: int, delimiter: str) -> int:
    """Blank a string body starting at start; return the offset after it."""
    n = len(text)
    multiline = len(delimiter) == 3
    j = start
    while j < n:
        if text.startswith(delimiter, j):
            return j + len(delimiter)
        ch = text[j]
        if ch == "\n" and not multiline:
            return j
        if ch == "\\" and j + 1 < n and text[j + 1] == "(":
            out[j] = " "
            depth, k = 1, j + 2
            while k < n and depth:
                if text[k] == "(":
                    depth += 1
                elif text[k] == ")":
                    depth -= 1
                k += 1
            j = k
            continue
        if ch == "\\":
            out[j] = " "
            if j + 1 < n and text[j + 1] != "\n":
                out[j + 1] = " "
            j += 2
            continue
        if ch != "\n":
            out[j] = " "
        j += 1
    return n


class SourceText:
    """Original text, its masked copy and line/column bookkeeping."""

    def __init__(self, text: str) -> None:
        self.text = text
        self.masked = mask_source(text)
        self.lines = text.split("\n")
        self.masked_lines = self.masked.split("\n")
        self._line_starts = [0]
        for index, ch in enumerate(text):
            if ch == "\n":
                self._line_starts.append(index + 1)

    @property
    def line_count(self) -> int:
        return len(self.lines)

    def position(self, offset: int) -> tuple[int, int]:
        """1-based (line, column) of an offset."""
        line = bisect_right(self._line_starts, offset)
        return line, offset - self._line_starts[line - 1] + 1

    def line_of(self, offset: int) -> int:
        return self.position(offset)[0]

    def line_start(self, line: int) -> int:
        return self._line_starts[line - 1]

    def line_end(self, line: int) -> int:
        """Offset of the newline ending a line, or the text length."""
        return self.line_start(line) + len(self.lines[line - 1])

    def is_code_blank(self, line: int) -> bool:
        """True for blank and comment-only lines."""
        return not self.masked_lines[line - 1].strip()

    def matching(self, open_offset: int) -> int | None:
        """Offset of the bracket closing the one at open_offset."""
        opener = self.masked[open_offset]
        if opener not in _OPENERS:
            raise ValueError(f"No bracket at offset {open_offset}")
        stack = [opener]
        for index in range(open_offset + 1, len(self.masked)):
            ch = self.masked[index]
            if ch in _OPENERS:
                stack.append(ch)
            elif ch in _CLOSERS:
                if not stack or stack[-1] != _CLOSERS[ch]:
                    return None
                stack.pop()
                if not stack:
                    return index
        return None

    def split_top_level(self, start: int, end: int) -> list[tuple[int, int]]:
        """Split [start, end) on depth-zero commas into raw (start, end) segments."""
        segments: list[tuple[int, int]] = []
        depth = 0
        seg_start = start
        for index in range(start, end):
            ch = self.masked[index]
            if ch in _OPENERS:
                depth += 1
            elif ch in _CLOSERS:
                depth -= 1
            elif ch == "," and depth == 0:
                segments.append((seg_start, index))
                seg_start = index + 1
        segments.append((seg_start, end))
        return segments

    def trimmed(self, start: int, end: int) -> tuple[int, int]:
        """Shrink [start, end) past surrounding whitespace in the masked text."""
        while start < end and self.masked[start].isspace():
            start += 1
        while end > start and self.masked[end - 1].isspace():
            end -= 1
        return start, end

    def statement_end(self, offset: int) -> int:
        """End offset of the statement containing offset.

        Follows brackets across lines and stops at a depth-zero newline or
        semicolon.
        """
        depth = 0
        index = offset
        n = len(self.masked)
        while index < n:
            ch = self.masked[index]
            if ch in _OPENERS:
                depth += 1
            elif ch in _CLOSERS:
                if depth == 0:
                    return index
                depth -= 1
            elif depth == 0 and ch in "\n;":
                return index
            index += 1
        return n


def declaration_span(
    source: SourceText, line: int, *, leading_trivia: bool = True
) -> tuple[int, int]:
    """Inclusive 1-based line span of the declaration starting on line.

    The span follows brackets to the end of the declaration. With
    leading_trivia, it also takes in the blank lines and comments directly
    above it.
    """
    total = source.line_count
    if line < 1 or line > total:
        raise ValueError(f"Line {line} outside 1-{total}")

    depth = 0
    current = line
    end = line
    while current <= total:
        masked = source.masked_lines[current - 1]
        for ch in masked:
            if ch in _OPENERS:
                depth += 1
            elif ch in _CLOSERS:
                depth -= 1
        end = current
        if depth > 0:
            current += 1
            continue
        if _ATTRIBUTE_LINE.match(masked.strip()):
            current += 1
            continue
        following = _next_code_line(source, current)
        if depth == 0 and following and source.masked_lines[following - 1].lstrip().startswith("{"):
            current = following
            continue
        break

    start = line
    if leading_trivia:
        while start > 1 and source.is_code_blank(start - 1):
            start -= 1
    return start, end


def _next_code_line(source: SourceText, line: int) -> int | None:
    for candidate in range(line + 1, source.line_count + 1):
        if not source.is_code_blank(candidate):
            return candidate
    return None
