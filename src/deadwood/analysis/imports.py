"""Import graph building and import liveness resolution."""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

from deadwood.models.declaration import Declaration, DeclarationKind, ExclusionReason
from deadwood.models.facts import FactSet, ImportFact
from deadwood.oracle import InterfaceOracle, NullOracle

logger = logging.getLogger(__name__)

DEFAULT_ALWAYS_NEEDED = frozenset({"Swift", "Foundation"})


@dataclass
class ImportGraph:
    """Which files import which modules."""

    # file -> imported module names
    edges: dict[str, set[str]] = field(default_factory=lambda: defaultdict(set))

    # module name -> files importing it
    reverse_edges: dict[str, set[str]] = field(default_factory=lambda: defaultdict(set))

    @classmethod
    def from_facts(cls, fact_sets: Iterable[FactSet]) -> ImportGraph:
        graph = cls()
        for facts in fact_sets:
            graph.edges.setdefault(facts.file, set())
            for fact in facts.imports:
                graph.add_edge(facts.file, fact.module)
        return graph

    def add_edge(self, file: str, module: str) -> None:
        """Add an import edge from a file to a module."""
        self.edges[file].add(module)
        self.reverse_edges[module].add(file)

    @property
    def modules(self) -> set[str]:
        return set(self.reverse_edges)


def has_transitive_ancestor_in_module(
    type_inheritances: Mapping[str, Iterable[str]],
    global_graph: Mapping[str, Iterable[str]],
    module_symbols: set[str],
) -> bool:
    """Whether any type's ancestry, followed through the global graph, reaches a module symbol.

    Cycles and unknown ancestors end a walk without a match.
    """
    visited: set[str] = set()

    def visit(name: str) -> bool:
        if name in visited:
            return False
        visited.add(name)
        if name in module_symbols:
            return True
        return any(visit(parent) for parent in global_graph.get(name, ()))

    for ancestors in type_inheritances.values():
        for ancestor in ancestors:
            if visit(ancestor):
                return True
    return False


class ImportDependencyResolver:
    """Decides which imports are needed, including cross-file leaks."""

    def __init__(
        self,
        fact_sets: list[FactSet],
        oracle: InterfaceOracle | None = None,
        always_needed: Iterable[str] = DEFAULT_ALWAYS_NEEDED,
        inheritance: Mapping[str, Iterable[str]] | None = None,
    ) -> None:
        self.fact_sets = fact_sets
        self.oracle = oracle or NullOracle()
        self.always_needed = frozenset(always_needed)
        self.inheritance = inheritance or {}
        self.graph = ImportGraph.from_facts(fact_sets)

        # Cache of module name -> exported symbols (None when unknown)
        self._cache: dict[str, set[str] | None] = {}

    def module_symbols(self, module: str) -> set[str] | None:
        """Exported symbols of a module, fetched once from the oracle."""
        if module not in self._cache:
            symbols = self.oracle.exported_symbols(module)
            if symbols is None:
                logger.info("No exported symbols known for module %s", module)
            self._cache[module] = symbols
        return self._cache[module]

    def symbol_cache(self) -> dict[str, set[str]]:
        """Known exported symbols for every imported module."""
        cache: dict[str, set[str]] = {}
        for module in sorted(self.graph.modules):
            symbols = self.module_symbols(module)
            if symbols is not None:
                cache[module] = symbols
        return cache

    def cross_file_dependent_modules(self) -> set[str]:
        """Modules some file relies on without importing them itself."""
        return find_cross_file_dependent_modules(
            self.fact_sets, self.symbol_cache(), self.always_needed
        )

    def is_import_used(
        self, facts: FactSet, fact: ImportFact, dependent: set[str] | None = None
    ) -> bool:
        module = fact.module
        if module in self.always_needed:
            return True
        if dependent is None:
            dependent = self.cross_file_dependent_modules()
        if module in dependent:
            return True
        symbols = self.module_symbols(module)
        if symbols is None:
            return True
        if facts.used_identifiers & symbols:
            return True
        return has_transitive_ancestor_in_module(facts.type_inheritance, self.inheritance, symbols)

    def unused_imports(self) -> list[Declaration]:
        """Import declarations whose module contributes nothing to their file."""
        dependent = self.cross_file_dependent_modules()
        if dependent:
            logger.debug("Cross-file dependent modules: %s", ", ".join(sorted(dependent)))

        unused: list[Declaration] = []
        for facts in self.fact_sets:
            for fact in facts.imports:
                if self.is_import_used(facts, fact, dependent):
                    continue
                unused.append(
                    Declaration(
                        name=fact.module,
                        kind=DeclarationKind.IMPORT,
                        file=facts.file,
                        line=fact.line,
                        exclusion_reason=ExclusionReason.NONE,
                    )
                )
        return unused


def find_cross_file_dependent_modules(
    fact_sets: Iterable[FactSet],
    module_symbols: Mapping[str, set[str]],
    always_needed: Iterable[str] = DEFAULT_ALWAYS_NEEDED,
) -> set[str]:
    """Modules whose symbols a file uses while only a sibling file imports them."""
    fact_sets = list(fact_sets)
    always_needed = set(always_needed)
    imported_anywhere: set[str] = set()
    for facts in fact_sets:
        imported_anywhere |= facts.imported_modules

    dependent: set[str] = set()
    for facts in fact_sets:
        imported = facts.imported_modules
        for module, symbols in module_symbols.items():
            if module in always_needed or module in imported or module in dependent:
                continue
            if module not in imported_anywhere:
                continue
            if facts.used_identifiers & symbols:
                dependent.add(module)
    return dependent
