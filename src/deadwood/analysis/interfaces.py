"""Resolve the effective requirement set of every interface."""

import logging
from collections import deque

from deadwood.analysis.aggregator import InterfaceGraph
from deadwood.oracle import InterfaceOracle, NullOracle

logger = logging.getLogger(__name__)


class InterfaceResolver:
    """Expands interface requirements through the whole parent hierarchy.

    Resolution runs in three steps: pull in external interfaces from the
    oracle, close the parent graph transitively, then union requirements
    over each interface's expanded parents. The graph is updated in place.
    """

    def __init__(self, graph: InterfaceGraph, oracle: InterfaceOracle | None = None) -> None:
        self.graph = graph
        self.oracle = oracle or NullOracle()
        self.unresolved: set[str] = set()
        self._external_resolved = False
        self._direct_requirements: dict[str, set[str]] | None = None

    def resolve(self) -> InterfaceGraph:
        """Run every resolution step and return the graph."""
        self.resolve_external()
        self.close_parents()
        self.resolve_requirements()
        return self.graph

    def resolve_external(self) -> set[str]:
        """Fetch requirements for referenced interfaces the project does not define.

        Returns the names the oracle could not answer. Those are recorded
        with an empty requirement set.
        """
        if self._external_resolved:
            return self.unresolved

        graph = self.graph
        queue = deque(
            sorted(
                name
                for name in graph.referenced()
                if name not in graph.project_defined and name not in graph.requirements
            )
        )
        seen = set(queue)

        while queue:
            name = queue.popleft()
            info = self.oracle.requirements(name)
            if info is None:
                logger.info("No interface data for %s; assuming no requirements", name)
                self.unresolved.add(name)
                graph.requirements.setdefault(name, set())
                continue

            graph.requirements.setdefault(name, set()).update(info.members)
            graph.parents.setdefault(name, set()).update(info.parents)
            for parent in sorted(info.parents):
                if parent in seen or parent in graph.project_defined:
                    continue
                if parent in graph.requirements:
                    continue
                seen.add(parent)
                queue.append(parent)

        self._external_resolved = True
        return self.unresolved

    def close_parents(self) -> dict[str, set[str]]:
        """Replace each interface's parents with its transitive ancestors."""
        if not self._external_resolved:
            self.resolve_external()

        direct = {name: set(parents) for name, parents in self.graph.parents.items()}
        for name in direct:
            self.graph.parents[name] = _walk(name, direct)
        return self.graph.parents

    def resolve_requirements(self) -> dict[str, set[str]]:
        """Union each interface's requirements with those of its expanded parents."""
        if self._direct_requirements is None:
            self.close_parents()
            self._direct_requirements = {
                name: set(members) for name, members in self.graph.requirements.items()
            }

        direct = self._direct_requirements
        for name in set(direct) | set(self.graph.parents):
            effective = set(direct.get(name, ()))
            for parent in self.graph.parents.get(name, ()):
                effective |= direct.get(parent, set())
            self.graph.requirements[name] = effective
        return self.graph.requirements


def _walk(start: str, edges: dict[str, set[str]]) -> set[str]:
    """Every node reachable from start, excluding start itself."""
    visited: set[str] = set()
    stack = list(edges.get(start, ()))
    while stack:
        node = stack.pop()
        if node in visited:
            continue
        visited.add(node)
        stack.extend(edges.get(node, ()))
    visited.discard(start)
    return visited
