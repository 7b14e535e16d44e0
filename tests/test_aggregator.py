"""Tests for the aggregator module."""

import itertools

from deadwood.analysis.aggregator import GlobalGraphs, aggregate, union_into
from deadwood.models.facts import FactSet, ImportFact


def _file_a() -> FactSet:
    return FactSet(
        file="A.swift",
        imports=[ImportFact("UIKit", 1)],
        used_identifiers={"helper"},
        interface_requirements={"Drawable": {"draw"}},
        interface_parents={"Drawable": {"Equatable"}},
        project_interfaces={"Drawable"},
        conformed_interfaces={"Equatable"},
        type_inheritance={"Circle": {"Drawable"}},
    )


def _file_b() -> FactSet:
    return FactSet(
        file="B.swift",
        imports=[ImportFact("Combine", 2)],
        used_identifiers={"render"},
        assigned_identifiers={"cache"},
        interface_requirements={"Drawable": {"bounds"}},
        interface_parents={"Drawable": {"Hashable"}},
        conformed_interfaces={"Codable"},
        type_inheritance={"Circle": {"Codable"}, "Square": {"Drawable"}},
    )


def _file_c() -> FactSet:
    return FactSet(
        file="C.swift",
        used_identifiers={"helper", "Square"},
        type_inheritance={"Square": {"Shape"}},
    )


def _snapshot(graphs: GlobalGraphs) -> tuple:
    return (
        graphs.interfaces.requirements,
        graphs.interfaces.parents,
        graphs.interfaces.project_defined,
        graphs.interfaces.conformed,
        graphs.module_imports,
        graphs.inheritance,
        graphs.used_identifiers,
        graphs.assigned_identifiers,
    )


class TestUnionInto:
    """Tests for the keyed union helper."""

    def test_unions_existing_keys(self):
        """Values for an existing key should be unioned, not replaced."""
        target = {"A": {"x"}}
        union_into(target, {"A": {"y"}, "B": {"z"}})

        assert target == {"A": {"x", "y"}, "B": {"z"}}


class TestAggregate:
    """Tests for folding fact sets into global graphs."""

    def test_name_in_two_files_accumulates_union(self):
        """An interface declared in two files should keep both requirement sets."""
        graphs = aggregate([_file_a(), _file_b()])

        assert graphs.interfaces.requirements["Drawable"] == {"draw", "bounds"}
        assert graphs.interfaces.parents["Drawable"] == {"Equatable", "Hashable"}
        assert graphs.inheritance["Circle"] == {"Drawable", "Codable"}

    def test_collects_imports_per_file(self):
        """Module imports should be keyed by file."""
        graphs = aggregate([_file_a(), _file_b(), _file_c()])

        assert graphs.module_imports == {
            "A.swift": {"UIKit"},
            "B.swift": {"Combine"},
            "C.swift": set(),
        }

    def test_collects_usage_sets(self):
        """Read and write identifiers should be unioned across files."""
        graphs = aggregate([_file_a(), _file_b()])

        assert graphs.used_identifiers == {"helper", "render"}
        assert graphs.assigned_identifiers == {"cache"}
        assert graphs.interfaces.conformed == {"Equatable", "Codable"}
        assert graphs.interfaces.project_defined == {"Drawable"}

    def test_order_independent(self):
        """Every input order should produce the same graphs."""
        expected = _snapshot(aggregate([_file_a(), _file_b(), _file_c()]))

        for order in itertools.permutations([_file_a, _file_b, _file_c]):
            assert _snapshot(aggregate([make() for make in order])) == expected

    def test_tree_reduction_matches_fold(self):
        """Merging partial graphs should equal folding everything at once."""
        left = aggregate([_file_a()])
        right = aggregate([_file_b(), _file_c()])

        merged = left.merge(right)

        assert _snapshot(merged) == _snapshot(aggregate([_file_a(), _file_b(), _file_c()]))

    def test_empty_input(self):
        """No facts should produce empty graphs."""
        graphs = aggregate([])

        assert graphs.interfaces.requirements == {}
        assert graphs.inheritance == {}
        assert graphs.used_identifiers == set()


class TestAncestors:
    """Tests for transitive ancestor lookup."""

    def test_follows_chain(self):
        """Ancestors should be followed transitively."""
        graphs = aggregate([_file_a(), _file_b(), _file_c()])

        assert graphs.ancestors_of("Square") == {"Drawable", "Shape"}

    def test_cycle_terminates(self):
        """A cyclic hierarchy should terminate and exclude the type itself."""
        graphs = aggregate(
            [FactSet(file="x", type_inheritance={"A": {"B"}, "B": {"C"}, "C": {"A"}})]
        )

        assert graphs.ancestors_of("A") == {"B", "C"}
