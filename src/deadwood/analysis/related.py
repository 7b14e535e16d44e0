"""Find code fragments that must go together with an unused declaration."""

import logging
import re
from dataclasses import dataclass
from pathlib import Path

from deadwood.analysis.source import SourceText
from deadwood.models.declaration import Declaration, DeclarationKind, normalize_identifier
from deadwood.models.deletion import PartialLineDeletion, RelatedDeletion

logger = logging.getLogger(__name__)

_TYPE_KEYWORDS = r"(?:class|struct|enum|actor|extension|protocol)"
_ANY_TYPE = re.compile(rf"\b{_TYPE_KEYWORDS}\s+`?(\w+)`?")
_INIT = re.compile(r"\binit\s*[?!]?\s*(?:<[^>{]*>)?\s*\(")
_CASE = re.compile(r"\bcase\b")
_CODER_METHODS = ("encode", "encodeIfPresent", "decode", "decodeIfPresent")
_FOR_KEY = re.compile(r"forKey\s*:\s*\.\s*`?(\w+)`?")
_EFFECTS = re.compile(r"^\s*(?:async\s*)?(?:(?:re)?throws(?:\([^)]*\))?\s*)?(?:where\b[^{]*)?$")


@dataclass(frozen=True)
class _Block:
    """A braced body: offset of the keyword, the opening and the closing brace."""

    keyword: int
    open: int
    close: int

    def contains(self, offset: int) -> bool:
        return self.open < offset < self.close


class RelatedCodeFinder:
    """Locates constructor, serialization and extension code coupled to a declaration."""

    def __init__(
        self,
        coder_receivers: frozenset[str] = frozenset({"container"}),
        search_siblings: bool = False,
    ) -> None:
        self.coder_receivers = coder_receivers
        self.search_siblings = search_siblings

    def find(self, declaration: Declaration, text: str | None = None) -> list[RelatedDeletion]:
        """Related fragments for one declaration, in file order.

        text overrides reading the declaration's file from disk.
        """
        if text is None:
            text = Path(declaration.file).read_text(encoding="utf-8")
        source = SourceText(text)

        found: list[RelatedDeletion] = []
        if declaration.kind is DeclarationKind.VARIABLE and declaration.parent_type:
            found.extend(self.init_assignments(source, declaration))
            found.extend(self.coding_keys(source, declaration))
            found.extend(self.coder_calls(source, declaration))
        elif declaration.kind in (DeclarationKind.TYPE, DeclarationKind.INTERFACE):
            found.extend(self.extensions(source, declaration))
            if self.search_siblings:
                found.extend(self._sibling_extensions(declaration))

        return _dedupe(found)

    def init_assignments(
        self, source: SourceText, declaration: Declaration
    ) -> list[RelatedDeletion]:
        """Constructor assignments to the property, plus parameters that only feed them."""
        prop = normalize_identifier(declaration.name)
        results: list[RelatedDeletion] = []

        for block in _type_blocks(source, declaration.parent_type or ""):
            nested = _nested_blocks(source, block)
            for match in _INIT.finditer(source.masked, block.open + 1, block.close):
                if any(b.contains(match.start()) for b in nested):
                    continue
                if _preceded_by_dot(source.masked, match.start()):
                    continue
                results.extend(self._init_fragments(source, declaration, prop, match.end() - 1))
        return results

    def _init_fragments(
        self, source: SourceText, declaration: Declaration, prop: str, paren: int
    ) -> list[RelatedDeletion]:
        close_paren = source.matching(paren)
        if close_paren is None:
            return []
        body_open = source.masked.find("{", close_paren)
        if body_open == -1 or not _EFFECTS.match(source.masked[close_paren + 1 : body_open]):
            return []
        body_close = source.matching(body_open)
        if body_close is None:
            return []

        params = _parameters(source, paren + 1, close_paren)
        segments = [(s, e) for _, s, e in params]
        body = source.masked[body_open + 1 : body_close]
        pattern = re.compile(
            rf"^[ \t]*((?:self[ \t]*\.[ \t]*)?`?{re.escape(prop)}`?)[ \t]*=(?!=)", re.MULTILINE
        )

        results: list[RelatedDeletion] = []
        for match in pattern.finditer(body):
            stmt_start = body_open + 1 + match.start(1)
            equals = body_open + 1 + match.end()
            stmt_end = source.statement_end(equals)
            rhs = normalize_identifier(source.text[equals:stmt_end].strip())

            assignment = _statement_deletion(
                source, stmt_start, stmt_end, declaration, "Init assignment"
            )
            if assignment is None:
                logger.debug("Skipping shared multi-line assignment at offset %d", stmt_start)
                continue
            results.append(assignment)

            for index, (binding, _, _) in enumerate(params):
                if binding != rhs:
                    continue
                if _usage_count(body, binding) != 1:
                    continue
                results.extend(
                    _element_deletion(
                        source,
                        segments,
                        index,
                        declaration,
                        f"Init parameter '{binding}' only used for this property",
                    )
                )
        return results

    def coding_keys(self, source: SourceText, declaration: Declaration) -> list[RelatedDeletion]:
        """Serialization key cases named after the property."""
        prop = normalize_identifier(declaration.name)
        results: list[RelatedDeletion] = []
        for block in _type_blocks(source, declaration.parent_type or ""):
            for keys in _type_blocks(source, "CodingKeys", keyword="enum"):
                if not block.contains(keys.keyword):
                    continue
                for match in _CASE.finditer(source.masked, keys.open + 1, keys.close):
                    end, elements, names = _case_elements(source, match.end())
                    if prop not in names:
                        continue
                    index = names.index(prop)
                    description = f"CodingKeys case '{prop}'"
                    if len(elements) == 1:
                        deletion = _statement_deletion(
                            source, match.start(), end, declaration, description, labelled=False
                        )
                        if deletion is not None:
                            results.append(deletion)
                    else:
                        results.extend(
                            _element_deletion(source, elements, index, declaration, description)
                        )
        return results

    def coder_calls(self, source: SourceText, declaration: Declaration) -> list[RelatedDeletion]:
        """encode/decode calls keyed by the property."""
        prop = normalize_identifier(declaration.name)
        receivers = "|".join(re.escape(r) for r in sorted(self.coder_receivers))
        methods = "|".join(_CODER_METHODS)
        pattern = re.compile(rf"\b(?:{receivers})\s*\.\s*({methods})\s*\(")

        results: list[RelatedDeletion] = []
        for block in _type_blocks(source, declaration.parent_type or ""):
            for match in pattern.finditer(source.masked, block.open + 1, block.close):
                close = source.matching(match.end() - 1)
                if close is None:
                    continue
                key = _FOR_KEY.search(source.masked, match.end(), close)
                if key is None or key.group(1) != prop:
                    continue
                start_line = source.line_of(match.start())
                end_line = source.line_of(close)
                kind = "Encoder" if match.group(1).startswith("encode") else "Decoder"
                results.append(
                    RelatedDeletion(
                        file=declaration.file,
                        start_line=start_line,
                        end_line=end_line,
                        description=f"{kind} call for '{prop}'",
                        parent=declaration,
                        snippet=_snippet(source, start_line, end_line),
                    )
                )
        return results

    def extensions(
        self, source: SourceText, declaration: Declaration, file: str | None = None
    ) -> list[RelatedDeletion]:
        """Every extension block of a type."""
        name = normalize_identifier(declaration.name)
        results: list[RelatedDeletion] = []
        for block in _type_blocks(source, name, keyword="extension"):
            start_line = source.line_of(block.keyword)
            end_line = source.line_of(block.close)
            results.append(
                RelatedDeletion(
                    file=file or declaration.file,
                    start_line=start_line,
                    end_line=end_line,
                    description=f"Extension of '{name}'",
                    parent=declaration,
                    snippet=source.lines[start_line - 1].strip(),
                )
            )
        return results

    def _sibling_extensions(self, declaration: Declaration) -> list[RelatedDeletion]:
        path = Path(declaration.file)
        results: list[RelatedDeletion] = []
        for sibling in sorted(path.parent.glob(f"*{path.suffix}")):
            if sibling == path or not sibling.is_file():
                continue
            try:
                text = sibling.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as e:
                logger.warning("Skipping %s while searching extensions: %s", sibling, e)
                continue
            results.extend(self.extensions(SourceText(text), declaration, file=str(sibling)))
        return results


def parameter_deletions(source: SourceText, declaration: Declaration) -> list[RelatedDeletion]:
    """Edits that take one parameter out of the clause covering its line.

    Returns an empty list when no clause on or around the line binds the name.
    """
    name = normalize_identifier(declaration.name)
    if not 1 <= declaration.line <= source.line_count:
        return []
    line_start = source.line_start(declaration.line)
    line_end = source.line_end(declaration.line)

    opener = source.masked.rfind("(", 0, line_end)
    while opener != -1:
        close = source.matching(opener)
        if close is not None and close >= line_start:
            params = _parameters(source, opener + 1, close)
            segments = [(s, e) for _, s, e in params]
            for index, (binding, start, end) in enumerate(params):
                if binding != name:
                    continue
                if source.line_of(start) <= declaration.line <= source.line_of(max(end - 1, start)):
                    return _element_deletion(
                        source, segments, index, declaration, f"Parameter '{name}'"
                    )
        opener = source.masked.rfind("(", 0, opener)
    return []


def enum_case_deletions(source: SourceText, declaration: Declaration) -> list[RelatedDeletion]:
    """Edits that take one case out of a ``case a, b, c`` list on its line.

    Returns an empty list when the case is alone in its statement; the
    whole declaration span is the right edit then.
    """
    name = normalize_identifier(declaration.name)
    if not 1 <= declaration.line <= source.line_count:
        return []
    line_start = source.line_start(declaration.line)
    line_end = source.line_end(declaration.line)

    for match in _CASE.finditer(source.masked, line_start, line_end):
        _, elements, names = _case_elements(source, match.end())
        if name not in names:
            continue
        if len(elements) == 1:
            return []
        return _element_deletion(
            source, elements, names.index(name), declaration, f"Enum case '{name}'"
        )
    return []


def _case_elements(
    source: SourceText, keyword_end: int
) -> tuple[int, list[tuple[int, int]], list[str]]:
    """(statement end, element segments, element names) after a ``case`` keyword."""
    end = source.statement_end(keyword_end)
    elements = [
        seg
        for seg in source.split_top_level(keyword_end, end)
        if source.trimmed(*seg)[0] < source.trimmed(*seg)[1]
    ]
    names = [_first_identifier(source.masked[s:e]) for s, e in elements]
    return end, elements, names


def _type_blocks(source: SourceText, name: str, keyword: str = _TYPE_KEYWORDS) -> list[_Block]:
    """Bodies of every declaration of, or extension to, the named type."""
    if not name:
        return []
    short = name.rsplit(".", 1)[-1]
    pattern = re.compile(rf"\b{keyword}\s+(?:\w+\.)*`?{re.escape(short)}`?(?![\w.])")
    blocks: list[_Block] = []
    for match in pattern.finditer(source.masked):
        open_brace = source.masked.find("{", match.end())
        if open_brace == -1 or ";" in source.masked[match.end() : open_brace]:
            continue
        close = source.matching(open_brace)
        if close is not None:
            blocks.append(_Block(match.start(), open_brace, close))
    return blocks


def _nested_blocks(source: SourceText, block: _Block) -> list[_Block]:
    nested: list[_Block] = []
    for match in _ANY_TYPE.finditer(source.masked, block.open + 1, block.close):
        open_brace = source.masked.find("{", match.end(), block.close)
        if open_brace == -1:
            continue
        close = source.matching(open_brace)
        if close is not None:
            nested.append(_Block(match.start(), open_brace, close))
    return nested


def _preceded_by_dot(masked: str, offset: int) -> bool:
    index = offset - 1
    while index >= 0 and masked[index] in " \t":
        index -= 1
    return index >= 0 and masked[index] == "."


def _parameters(source: SourceText, start: int, end: int) -> list[tuple[str, int, int]]:
    """(binding, raw start, raw end) for each parameter in a parameter clause."""
    params: list[tuple[str, int, int]] = []
    for seg_start, seg_end in source.split_top_level(start, end):
        trimmed = source.trimmed(seg_start, seg_end)
        if trimmed[0] == trimmed[1]:
            continue
        head = source.masked[trimmed[0] : trimmed[1]].split(":", 1)[0].split()
        if not head:
            continue
        params.append((normalize_identifier(head[-1]), seg_start, seg_end))
    return params


def _usage_count(body: str, name: str) -> int:
    pattern = re.compile(rf"(?<![\w.`])`?{re.escape(name)}`?(?![\w`])")
    return len(pattern.findall(body))


def _first_identifier(text: str) -> str:
    match = re.search(r"`?(\w+)`?", text)
    return match.group(1) if match else ""


def _snippet(source: SourceText, start_line: int, end_line: int) -> str:
    return " ".join(line.strip() for line in source.lines[start_line - 1 : end_line])


def _related(
    declaration: Declaration,
    description: str,
    start_line: int,
    end_line: int,
    snippet: str,
    partial: PartialLineDeletion | None = None,
) -> RelatedDeletion:
    return RelatedDeletion(
        file=declaration.file,
        start_line=start_line,
        end_line=end_line,
        description=description,
        parent=declaration,
        snippet=snippet,
        partial=partial,
    )


def _partial(source: SourceText, start: int, end: int) -> PartialLineDeletion | None:
    """Column range for [start, end), or None if it crosses a line break."""
    first_line, first_column = source.position(start)
    last_line, last_column = source.position(end)
    if first_line != last_line:
        return None
    return PartialLineDeletion(first_line, first_column, last_column)


def _statement_deletion(
    source: SourceText,
    start: int,
    end: int,
    declaration: Declaration,
    description: str,
    labelled: bool = True,
) -> RelatedDeletion | None:
    """Removal of the statement spanning [start, end).

    A statement alone on its lines drops those lines. One sharing a single
    line with other code is cut by column. None when neither is safe.
    """
    start_line = source.line_of(start)
    end_line = source.line_of(max(end - 1, start))
    snippet = _snippet(source, start_line, end_line)
    if labelled:
        description = f"{description}: {snippet}"

    cut_end = end
    if cut_end < len(source.masked) and source.masked[cut_end] == ";":
        cut_end += 1
    before = source.masked[source.line_start(start_line) : start].strip()
    after = source.masked[cut_end : source.line_end(end_line)].strip()
    if not before and not after:
        return _related(declaration, description, start_line, end_line, snippet)

    while cut_end < len(source.text) and source.text[cut_end] in " \t":
        cut_end += 1
    partial = _partial(source, start, cut_end)
    if partial is None:
        return None
    snippet = source.text[start:end].strip()
    return _related(declaration, description, start_line, start_line, snippet, partial)


def _element_deletion(
    source: SourceText,
    segments: list[tuple[int, int]],
    index: int,
    declaration: Declaration,
    description: str,
) -> list[RelatedDeletion]:
    """Removal of one element from a comma-separated list.

    An element sharing its line with others becomes a column-exact partial
    deletion that takes its trailing separator, or the leading one when it
    is last. An element on its own lines becomes a line-range deletion. A
    leading separator stranded on an earlier line is cut on its own. An
    element spanning lines it shares with other code is cut at both ends,
    and only the lines wholly inside it are dropped.
    """
    raw_start, raw_end = segments[index]
    start, end = source.trimmed(raw_start, raw_end)
    start_line, end_line = source.line_of(start), source.line_of(end - 1)
    snippet = source.text[start:end]
    is_last = index == len(segments) - 1

    if _alone_on_lines(source, start, end):
        results = [_related(declaration, description, start_line, end_line, snippet)]
        if is_last and index > 0:
            results.extend(
                _separator_deletion(source, segments[index - 1][1], declaration, description)
            )
        return results

    if start_line != end_line:
        if not is_last:
            cut_start, cut_end = start, raw_end + 1
            while cut_end < len(source.text) and source.text[cut_end] in " \t":
                cut_end += 1
        elif index > 0:
            cut_start, cut_end = segments[index - 1][1], end
        else:
            cut_start, cut_end = start, end
        return _spanning_deletion(source, cut_start, cut_end, declaration, description, snippet)

    if not is_last:
        cut_end = raw_end + 1
        while cut_end < len(source.text) and source.text[cut_end] in " \t":
            cut_end += 1
        partial = _partial(source, start, cut_end)
    elif index > 0:
        partial = _partial(source, segments[index - 1][1], end)
    else:
        partial = _partial(source, start, end)

    if partial is not None:
        return [_related(declaration, description, start_line, start_line, snippet, partial)]

    # Separator sits on another line; cut the element and the separator apart
    results = [
        _related(
            declaration, description, start_line, start_line, snippet, _partial(source, start, end)
        )
    ]
    if not is_last:
        results.extend(_separator_deletion(source, raw_end, declaration, description))
    elif index > 0:
        results.extend(
            _separator_deletion(source, segments[index - 1][1], declaration, description)
        )
    return results


def _separator_deletion(
    source: SourceText, comma: int, declaration: Declaration, description: str
) -> list[RelatedDeletion]:
    line = source.line_of(comma)
    partial = _partial(source, comma, comma + 1)
    return [_related(declaration, f"{description} (separator)", line, line, ",", partial)]


def _spanning_deletion(
    source: SourceText,
    cut_start: int,
    cut_end: int,
    declaration: Declaration,
    description: str,
    snippet: str,
) -> list[RelatedDeletion]:
    """Removal of [cut_start, cut_end) when it crosses line breaks."""
    first = source.line_of(cut_start)
    last = source.line_of(max(cut_end - 1, cut_start))
    keep_head = source.masked[source.line_start(first) : cut_start].strip()
    keep_tail = source.masked[cut_end : source.line_end(last)].strip()

    results: list[RelatedDeletion] = []
    if keep_head:
        head_end = source.line_start(first) + len(source.lines[first - 1].rstrip("\r"))
        results.append(
            _related(
                declaration, description, first, first, snippet,
                _partial(source, cut_start, head_end),
            )
        )
    whole_from = first + 1 if keep_head else first
    whole_to = last - 1 if keep_tail else last
    if whole_from <= whole_to:
        results.append(_related(declaration, description, whole_from, whole_to, snippet))
    if keep_tail:
        line = source.lines[last - 1]
        indent_end = source.line_start(last) + len(line) - len(line.lstrip(" \t"))
        results.append(
            _related(
                declaration, description, last, last, snippet,
                _partial(source, min(indent_end, cut_end), cut_end),
            )
        )
    return results


def _alone_on_lines(source: SourceText, start: int, end: int) -> bool:
    """True when nothing but a trailing separator shares the element's lines."""
    first, last = source.line_of(start), source.line_of(max(end - 1, start))
    before = source.masked[source.line_start(first) : start].strip()
    after = source.masked[end : source.line_end(last)].strip()
    return not before and after in ("", ",")


def _dedupe(found: list[RelatedDeletion]) -> list[RelatedDeletion]:
    seen: set[tuple] = set()
    unique: list[RelatedDeletion] = []
    for item in found:
        key = (item.file, item.start_line, item.end_line, item.partial)
        if key in seen:
            continue
        seen.add(key)
        unique.append(item)
    return sorted(unique, key=lambda r: (r.file, r.start_line, r.partial is not None))
