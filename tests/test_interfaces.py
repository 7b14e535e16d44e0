"""Tests for interface requirement resolution."""

import logging

from deadwood.analysis.aggregator import InterfaceGraph
from deadwood.analysis.interfaces import InterfaceResolver
from deadwood.oracle import CachingOracle, InterfaceInfo, JsonInterfaceOracle


class RecordingOracle:
    """Oracle double that records every lookup."""

    def __init__(self, interfaces: dict[str, InterfaceInfo]):
        self.interfaces = interfaces
        self.calls: list[str] = []

    def requirements(self, name):
        self.calls.append(name)
        return self.interfaces.get(name)

    def exported_symbols(self, module):
        return None


def _diamond() -> InterfaceGraph:
    # D refines B and C, both of which refine A
    return InterfaceGraph(
        requirements={"A": {"a"}, "B": {"b"}, "C": {"c"}, "D": {"d"}},
        parents={"B": {"A"}, "C": {"A"}, "D": {"B", "C"}},
        project_defined={"A", "B", "C", "D"},
    )


class TestClosure:
    """Tests for the transitive parent closure."""

    def test_diamond_requirements(self):
        """A diamond should yield each ancestor's requirements once."""
        graph = InterfaceResolver(_diamond()).resolve()

        assert graph.parents["D"] == {"A", "B", "C"}
        assert graph.requirements["D"] == {"a", "b", "c", "d"}
        assert graph.requirements["B"] == {"a", "b"}

    def test_idempotent(self):
        """Running the closure twice should not change the result."""
        resolver = InterfaceResolver(_diamond())
        resolver.resolve()
        parents = {k: set(v) for k, v in resolver.graph.parents.items()}
        requirements = {k: set(v) for k, v in resolver.graph.requirements.items()}

        resolver.close_parents()
        resolver.resolve_requirements()

        assert resolver.graph.parents == parents
        assert resolver.graph.requirements == requirements

    def test_cycle_terminates(self):
        """Cyclic refinement should terminate with finite sets."""
        graph = InterfaceGraph(
            requirements={"P": {"p"}, "Q": {"q"}, "R": {"r"}},
            parents={"P": {"Q"}, "Q": {"R"}, "R": {"P"}},
            project_defined={"P", "Q", "R"},
        )

        resolved = InterfaceResolver(graph).resolve()

        assert resolved.parents["P"] == {"Q", "R"}
        assert resolved.requirements["P"] == {"p", "q", "r"}


class TestExternalResolution:
    """Tests for pulling in interfaces the project does not define."""

    def test_fetches_conformed_external(self):
        """A conformed external interface should be resolved with its parents."""
        oracle = RecordingOracle(
            {
                "Hashable": InterfaceInfo(frozenset({"hash"}), frozenset({"Equatable"})),
                "Equatable": InterfaceInfo(frozenset({"=="}), frozenset()),
            }
        )
        graph = InterfaceGraph(conformed={"Hashable"})

        resolved = InterfaceResolver(graph, oracle).resolve()

        assert resolved.requirements["Hashable"] == {"hash", "=="}
        assert resolved.requirements["Equatable"] == {"=="}
        assert sorted(oracle.calls) == ["Equatable", "Hashable"]

    def test_miss_is_empty_and_logged(self, caplog):
        """An unknown interface should resolve to no requirements at info level."""
        graph = InterfaceGraph(conformed={"Mystery"})
        resolver = InterfaceResolver(graph, RecordingOracle({}))

        with caplog.at_level(logging.INFO, logger="deadwood.analysis.interfaces"):
            resolver.resolve()

        assert graph.requirements["Mystery"] == set()
        assert resolver.unresolved == {"Mystery"}
        assert any("Mystery" in r.message and r.levelno == logging.INFO for r in caplog.records)

    def test_project_interfaces_not_queried(self):
        """Project-defined parents should never be sent to the oracle."""
        oracle = RecordingOracle({})
        graph = InterfaceGraph(
            requirements={"Local": {"run"}},
            parents={"Local": {"Sendable"}},
            project_defined={"Local"},
            conformed={"Local"},
        )

        InterfaceResolver(graph, oracle).resolve()

        assert oracle.calls == ["Sendable"]

    def test_closure_first_still_resolves_external(self):
        """Calling the closure step first should run external resolution."""
        oracle = RecordingOracle(
            {"Base": InterfaceInfo(frozenset({"base"}), frozenset({"Root"})),
             "Root": InterfaceInfo(frozenset({"root"}), frozenset())}
        )
        graph = InterfaceGraph(
            requirements={"Mine": {"mine"}},
            parents={"Mine": {"Base"}},
            project_defined={"Mine"},
        )
        resolver = InterfaceResolver(graph, oracle)

        resolver.close_parents()
        resolver.resolve_requirements()

        assert graph.parents["Mine"] == {"Base", "Root"}
        assert graph.requirements["Mine"] == {"mine", "base", "root"}


class TestOracles:
    """Tests for oracle adapters."""

    def test_json_oracle_from_dict(self):
        """The JSON oracle should expose interfaces and module symbols."""
        oracle = JsonInterfaceOracle.from_dict(
            {
                "interfaces": {"Codable": {"requirements": ["encode"], "parents": ["Encodable"]}},
                "modules": {"UIKit": ["UIView"]},
            }
        )

        assert oracle.requirements("Codable") == InterfaceInfo(
            frozenset({"encode"}), frozenset({"Encodable"})
        )
        assert oracle.exported_symbols("UIKit") == {"UIView"}
        assert oracle.exported_symbols("Nope") is None

    def test_caching_oracle_memoizes_misses(self):
        """Each name should reach the wrapped oracle at most once."""
        inner = RecordingOracle({"Equatable": InterfaceInfo(frozenset({"=="}))})
        oracle = CachingOracle(inner)

        for _ in range(3):
            oracle.requirements("Equatable")
            oracle.requirements("Unknown")

        assert inner.calls == ["Equatable", "Unknown"]
        assert oracle.cached_names == {"Equatable", "Unknown"}
