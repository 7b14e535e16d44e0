"""Tests for the classification engine."""

from deadwood.analysis.aggregator import aggregate
from deadwood.analysis.classifier import Classifier, ClassifierSettings
from deadwood.analysis.interfaces import InterfaceResolver
from deadwood.models.declaration import DeclarationKind, ExclusionReason
from deadwood.models.facts import DeclarationFact, FactSet


def _classify(*fact_sets: FactSet, settings: ClassifierSettings | None = None):
    fact_sets = list(fact_sets)
    graphs = aggregate(fact_sets)
    InterfaceResolver(graphs.interfaces).resolve()
    return {d.name: d for d in Classifier(fact_sets, graphs, settings).classify()}


def _decl(name, kind=DeclarationKind.FUNCTION, line=1, **kwargs) -> DeclarationFact:
    return DeclarationFact(name=name, kind=kind, line=line, **kwargs)


class TestUsage:
    """Tests for deciding whether a declaration is referenced."""

    def test_unreferenced_reported(self):
        """A declaration nobody names should be reported with no reason."""
        results = _classify(
            FactSet(file="A.swift", used_identifiers={"used"},
                    declarations=[_decl("used"), _decl("orphan", line=4)])
        )

        assert set(results) == {"orphan"}
        assert results["orphan"].exclusion_reason is ExclusionReason.NONE
        assert results["orphan"].line == 4

    def test_use_in_other_file_counts(self):
        """A use anywhere in the project should keep a declaration."""
        results = _classify(
            FactSet(file="A.swift", declarations=[_decl("helper")]),
            FactSet(file="B.swift", used_identifiers={"helper"}),
        )

        assert results == {}

    def test_private_sees_only_own_file(self):
        """A private declaration used only elsewhere should be reported."""
        results = _classify(
            FactSet(file="A.swift",
                    declarations=[_decl("helper", markers=frozenset({"private"}))]),
            FactSet(file="B.swift", used_identifiers={"helper"}),
        )

        assert "helper" in results

    def test_backticks_normalized(self):
        """An escaped name should match its plain use."""
        results = _classify(
            FactSet(file="A.swift", used_identifiers={"default"},
                    declarations=[_decl("`default`", DeclarationKind.VARIABLE)])
        )

        assert results == {}

    def test_inherited_type_is_used(self):
        """A type only referenced in an inheritance clause should be kept."""
        results = _classify(
            FactSet(file="A.swift", type_inheritance={"Circle": {"Shape"}},
                    declarations=[_decl("Shape", DeclarationKind.TYPE)])
        )

        assert results == {}


class TestExclusionReasons:
    """Tests for picking the exclusion reason."""

    def test_override_beats_platform_marker(self):
        """Override should win over every other reason."""
        results = _classify(
            FactSet(file="A.swift", declarations=[
                _decl("viewDidLoad", markers=frozenset({"override", "objc"}),
                      parent_type="Screen"),
            ])
        )

        assert results["viewDidLoad"].exclusion_reason is ExclusionReason.OVERRIDE

    def test_platform_marker_beats_interface(self):
        """A platform marker should win over an interface requirement."""
        results = _classify(
            FactSet(
                file="A.swift",
                interface_requirements={"Tappable": {"tap"}},
                project_interfaces={"Tappable"},
                type_inheritance={"Button": {"Tappable"}},
                used_identifiers={"Tappable"},
                declarations=[
                    _decl("tap", markers=frozenset({"IBAction"}), parent_type="Button"),
                ],
            )
        )

        assert results["tap"].exclusion_reason is ExclusionReason.IB_ACTION

    def test_interface_requirement_through_refinement(self):
        """A member required by an inherited parent interface should be excluded."""
        results = _classify(
            FactSet(
                file="A.swift",
                interface_requirements={"Base": {"reset"}, "Refined": {"run"}},
                interface_parents={"Refined": {"Base"}},
                project_interfaces={"Base", "Refined"},
                type_inheritance={"Worker": {"Refined"}},
                declarations=[_decl("reset", parent_type="Worker")],
            )
        )

        assert results["reset"].exclusion_reason is ExclusionReason.INTERFACE

    def test_enumerable_case(self):
        """Cases of a CaseIterable enum should be excluded."""
        results = _classify(
            FactSet(
                file="A.swift",
                type_inheritance={"Suit": {"CaseIterable"}},
                declarations=[_decl("spades", DeclarationKind.ENUM_CASE, parent_type="Suit")],
            )
        )

        assert results["spades"].exclusion_reason is ExclusionReason.ENUMERABLE

    def test_enumerable_conformance_in_later_file(self):
        """A CaseIterable extension in a later file should still exclude the cases."""
        results = _classify(
            FactSet(
                file="A.swift",
                declarations=[
                    _decl("hearts", DeclarationKind.ENUM_CASE, line=2, parent_type="Suit"),
                    _decl("spades", DeclarationKind.ENUM_CASE, line=3, parent_type="Suit"),
                ],
            ),
            FactSet(file="B.swift", type_inheritance={"Suit": {"CaseIterable"}}),
        )

        assert results["hearts"].exclusion_reason is ExclusionReason.ENUMERABLE
        assert results["spades"].exclusion_reason is ExclusionReason.ENUMERABLE

    def test_write_only_property(self):
        """A property that is only assigned should be reported as write-only."""
        results = _classify(
            FactSet(
                file="A.swift",
                assigned_identifiers={"cache"},
                declarations=[_decl("cache", DeclarationKind.VARIABLE, parent_type="Store")],
            )
        )

        assert results["cache"].exclusion_reason is ExclusionReason.WRITE_ONLY
        assert not results["cache"].is_excluded

    def test_custom_platform_marker(self):
        """Extra markers from settings should be honoured."""
        settings = ClassifierSettings()
        settings.platform_markers["GKInspectable"] = ExclusionReason.OBJC

        results = _classify(
            FactSet(file="A.swift",
                    declarations=[_decl("speed", markers=frozenset({"GKInspectable"}))]),
            settings=settings,
        )

        assert results["speed"].exclusion_reason is ExclusionReason.OBJC


class TestParameters:
    """Tests for parameter classification."""

    def test_discard_marker_skipped(self):
        """A parameter bound to the discard marker is never reported."""
        results = _classify(
            FactSet(file="A.swift", declarations=[
                _decl("value", DeclarationKind.PARAMETER, binding="_", owner="run"),
            ])
        )

        assert results == {}

    def test_used_in_body_kept(self):
        """A parameter referenced in its function body is used."""
        results = _classify(
            FactSet(file="A.swift", declarations=[
                _decl("count", DeclarationKind.PARAMETER, owner="run",
                      body_identifiers=frozenset({"count"})),
            ])
        )

        assert results == {}

    def test_unused_parameter_names_owner(self):
        """An unused parameter should carry its type and function as parent."""
        results = _classify(
            FactSet(file="A.swift", declarations=[
                _decl("with", DeclarationKind.PARAMETER, binding="other", owner="merge",
                      parent_type="Store", body_identifiers=frozenset({"self"})),
            ])
        )

        assert results["other"].parent_type == "Store.merge"
        assert results["other"].exclusion_reason is ExclusionReason.NONE

    def test_parameter_inherits_function_marker(self):
        """A parameter of an overriding function shares its exclusion."""
        results = _classify(
            FactSet(file="A.swift", declarations=[
                _decl("animated", DeclarationKind.PARAMETER, owner="viewWillAppear",
                      parent_type="Screen", markers=frozenset({"override"})),
            ])
        )

        assert results["animated"].exclusion_reason is ExclusionReason.OVERRIDE

    def test_parameter_of_interface_requirement(self):
        """A parameter of a required member is excluded as an interface item."""
        results = _classify(
            FactSet(
                file="A.swift",
                interface_requirements={"Handler": {"handle"}},
                project_interfaces={"Handler"},
                type_inheritance={"Logger": {"Handler"}},
                declarations=[
                    _decl("event", DeclarationKind.PARAMETER, owner="handle",
                          parent_type="Logger"),
                ],
            )
        )

        assert results["event"].exclusion_reason is ExclusionReason.INTERFACE
