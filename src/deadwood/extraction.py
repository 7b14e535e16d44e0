"""Source extractor interface and the facts-document adapter."""

import json
import logging
from collections.abc import Iterable
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Protocol

from deadwood.models.declaration import Declaration, DeclarationKind, normalize_identifier
from deadwood.models.facts import FACTS_FORMAT_VERSION, FactSet, FactsFormatError

logger = logging.getLogger(__name__)


class SourceExtractor(Protocol):
    """Produces per-file facts and locates declaration spans."""

    def extract(self, file: str) -> FactSet:
        """Facts for one file."""
        ...

    def span(self, declaration: Declaration) -> tuple[int, int] | None:
        """Inclusive 1-based line span of a declaration, leading trivia included."""
        ...


class JsonFactsExtractor:
    """Serves facts precomputed by an external extractor.

    The facts document is ``{"version": "1.0", "files": [FactSet, ...]}``.
    File paths inside it are resolved against ``root``.
    """

    def __init__(self, fact_sets: Iterable[FactSet], root: Path | None = None) -> None:
        self.root = root
        self._facts: dict[str, FactSet] = {}
        for facts in fact_sets:
            if root is not None and not Path(facts.file).is_absolute():
                facts.file = str(root / facts.file)
            self._facts[facts.file] = facts

    @classmethod
    def load(cls, path: Path, root: Path | None = None) -> "JsonFactsExtractor":
        """Load a facts document. Raises FileNotFoundError if it is missing."""
        if not path.exists():
            raise FileNotFoundError(f"Facts file not found: {path}")
        with open(path, "r", encoding="utf-8") as f:
            try:
                data = json.load(f)
            except json.JSONDecodeError as e:
                raise FactsFormatError(f"{path} is not valid JSON: {e}") from e

        if not isinstance(data, dict) or not isinstance(data.get("files"), list):
            raise FactsFormatError(f"{path} has no 'files' list")
        version = data.get("version", FACTS_FORMAT_VERSION)
        if version != FACTS_FORMAT_VERSION:
            logger.warning("Facts format %s differs from %s", version, FACTS_FORMAT_VERSION)
        return cls((FactSet.from_dict(entry) for entry in data["files"]), root=root)

    @property
    def files(self) -> list[str]:
        return sorted(self._facts)

    def extract(self, file: str) -> FactSet:
        try:
            return self._facts[file]
        except KeyError:
            raise FileNotFoundError(f"No facts recorded for {file}") from None

    def span(self, declaration: Declaration) -> tuple[int, int] | None:
        facts = self._facts.get(declaration.file)
        if facts is None:
            return None
        name = normalize_identifier(declaration.name)
        for fact in facts.declarations:
            if (
                fact.line == declaration.line
                and fact.kind is declaration.kind
                and normalize_identifier(fact.name) == name
            ):
                return fact.span
        if declaration.kind is DeclarationKind.IMPORT:
            return (declaration.line, declaration.line)
        return None


def extract_all(
    extractor: SourceExtractor, files: Iterable[str], max_workers: int = 1
) -> list[FactSet]:
    """Extract facts for many files, optionally on a thread pool.

    Results come back in input order.
    """
    files = list(files)
    if max_workers <= 1 or len(files) <= 1:
        return [extractor.extract(f) for f in files]
    with ThreadPoolExecutor(max_workers=max_workers) as pool:
        return list(pool.map(extractor.extract, files))


def write_facts(fact_sets: Iterable[FactSet], path: Path) -> None:
    """Write a facts document."""
    data = {
        "version": FACTS_FORMAT_VERSION,
        "files": [facts.to_dict() for facts in fact_sets],
    }
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)
