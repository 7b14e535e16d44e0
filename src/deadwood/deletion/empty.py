"""Detect files left with nothing but imports, comments and whitespace."""

import re

from deadwood.analysis.source import SourceText

_IMPORT_LINE = re.compile(r"^(?:@\w+(?:\([^)]*\))?\s+)*import\b")


def is_effectively_empty(text: str) -> bool:
    """True when no line holds code other than an import statement."""
    source = SourceText(text)
    for masked in source.masked_lines:
        stripped = masked.strip()
        if not stripped or _IMPORT_LINE.match(stripped):
            continue
        return False
    return True
