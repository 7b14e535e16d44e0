"""Parse user-supplied line selections such as ``1-3 5, 7-9``."""

import re

_TOKEN = re.compile(r"^(\d+)(?:-(\d+))?$")


class LineRangeError(ValueError):
    """Raised for malformed or inverted line selections."""


def parse_line_ranges(text: str) -> set[int]:
    """Expand a selection of single lines and inclusive ranges.

    Items are separated by commas and/or whitespace. Line numbers start at 1.
    """
    tokens = [t for t in re.split(r"[,\s]+", text.strip()) if t]
    if not tokens:
        raise LineRangeError("No lines given")

    lines: set[int] = set()
    for token in tokens:
        match = _TOKEN.match(token)
        if match is None:
            raise LineRangeError(f"Invalid line or range: {token!r}")
        start = int(match.group(1))
        end = int(match.group(2)) if match.group(2) else start
        if start < 1:
            raise LineRangeError(f"Line numbers start at 1: {token!r}")
        if end < start:
            raise LineRangeError(f"Range end before start: {token!r}")
        lines.update(range(start, end + 1))
    return lines
