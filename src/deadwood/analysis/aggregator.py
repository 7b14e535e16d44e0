"""Merge per-file extraction facts into project-wide graphs."""

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from functools import reduce

from deadwood.models.facts import FactSet

logger = logging.getLogger(__name__)


def union_into(target: dict[str, set[str]], source: Mapping[str, Iterable[str]]) -> None:
    """Union every value set of source into target, keyed by name."""
    for key, values in source.items():
        target.setdefault(key, set()).update(values)


@dataclass
class InterfaceGraph:
    """Interface requirements and parents, accumulated across files."""

    requirements: dict[str, set[str]] = field(default_factory=dict)
    parents: dict[str, set[str]] = field(default_factory=dict)
    project_defined: set[str] = field(default_factory=set)
    conformed: set[str] = field(default_factory=set)

    def copy(self) -> "InterfaceGraph":
        return InterfaceGraph(
            requirements={k: set(v) for k, v in self.requirements.items()},
            parents={k: set(v) for k, v in self.parents.items()},
            project_defined=set(self.project_defined),
            conformed=set(self.conformed),
        )

    def referenced(self) -> set[str]:
        """Every interface name that is conformed to or named as a parent."""
        names = set(self.conformed)
        for parents in self.parents.values():
            names |= parents
        return names


@dataclass
class GlobalGraphs:
    """Project-wide maps built from every file's facts."""

    interfaces: InterfaceGraph = field(default_factory=InterfaceGraph)
    module_imports: dict[str, set[str]] = field(default_factory=dict)
    inheritance: dict[str, set[str]] = field(default_factory=dict)
    used_identifiers: set[str] = field(default_factory=set)
    assigned_identifiers: set[str] = field(default_factory=set)

    def add(self, facts: FactSet) -> "GlobalGraphs":
        """Fold one file's facts into this graph and return it."""
        graph = self.interfaces
        union_into(graph.requirements, facts.interface_requirements)
        union_into(graph.parents, facts.interface_parents)
        graph.project_defined |= facts.project_interfaces
        graph.conformed |= facts.conformed_interfaces
        self.module_imports.setdefault(facts.file, set()).update(facts.imported_modules)
        union_into(self.inheritance, facts.type_inheritance)
        self.used_identifiers |= facts.used_identifiers
        self.assigned_identifiers |= facts.assigned_identifiers
        return self

    def merge(self, other: "GlobalGraphs") -> "GlobalGraphs":
        """Union another partial graph into this one and return it."""
        union_into(self.interfaces.requirements, other.interfaces.requirements)
        union_into(self.interfaces.parents, other.interfaces.parents)
        self.interfaces.project_defined |= other.interfaces.project_defined
        self.interfaces.conformed |= other.interfaces.conformed
        union_into(self.module_imports, other.module_imports)
        union_into(self.inheritance, other.inheritance)
        self.used_identifiers |= other.used_identifiers
        self.assigned_identifiers |= other.assigned_identifiers
        return self

    def ancestors_of(self, type_name: str) -> set[str]:
        """All transitive ancestors of a type. Terminates on cycles."""
        seen: set[str] = set()
        stack = list(self.inheritance.get(type_name, ()))
        while stack:
            current = stack.pop()
            if current in seen:
                continue
            seen.add(current)
            stack.extend(self.inheritance.get(current, ()))
        seen.discard(type_name)
        return seen


def aggregate(fact_sets: Iterable[FactSet]) -> GlobalGraphs:
    """Build the global graphs from per-file facts.

    The fold is a pure union, so input order does not matter and partial
    graphs can be combined with GlobalGraphs.merge.
    """
    graphs = reduce(lambda acc, facts: acc.add(facts), fact_sets, GlobalGraphs())
    logger.debug(
        "Aggregated %d files: %d interfaces, %d types",
        len(graphs.module_imports),
        len(graphs.interfaces.requirements),
        len(graphs.inheritance),
    )
    return graphs
