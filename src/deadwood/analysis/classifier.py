"""Classify declarations as used, unused, or excluded with a reason."""

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

from deadwood.analysis.aggregator import GlobalGraphs
from deadwood.models.declaration import (
    Declaration,
    DeclarationKind,
    ExclusionReason,
    normalize_identifier,
)
from deadwood.models.facts import DeclarationFact, FactSet

logger = logging.getLogger(__name__)

DEFAULT_PLATFORM_MARKERS: dict[str, ExclusionReason] = {
    "objc": ExclusionReason.OBJC,
    "objcMembers": ExclusionReason.OBJC,
    "NSManaged": ExclusionReason.OBJC,
    "IBInspectable": ExclusionReason.OBJC,
    "IBAction": ExclusionReason.IB_ACTION,
    "IBSegueAction": ExclusionReason.IB_ACTION,
    "IBOutlet": ExclusionReason.IB_OUTLET,
    "main": ExclusionReason.MAIN,
}

# Kinds that can be referenced through an inheritance clause
_INHERITABLE = (DeclarationKind.TYPE, DeclarationKind.INTERFACE, DeclarationKind.TYPE_ALIAS)


@dataclass
class ClassifierSettings:
    """Knobs for the classification policy."""

    platform_markers: dict[str, ExclusionReason] = field(
        default_factory=lambda: dict(DEFAULT_PLATFORM_MARKERS)
    )
    enumerable_interfaces: frozenset[str] = frozenset({"CaseIterable"})
    discard_marker: str = "_"
    override_marker: str = "override"


def _normalized(names: Iterable[str]) -> set[str]:
    return {normalize_identifier(n) for n in names}


class Classifier:
    """Decides the fate of every declaration once the global graphs are frozen.

    Any textual match of a name counts as a use. Declarations marked
    private or fileprivate only see usages from their own file.
    """

    def __init__(
        self,
        fact_sets: list[FactSet],
        graphs: GlobalGraphs,
        settings: ClassifierSettings | None = None,
    ) -> None:
        self.fact_sets = fact_sets
        self.graphs = graphs
        self.settings = settings or ClassifierSettings()

        self._reads = _normalized(graphs.used_identifiers)
        self._writes = _normalized(graphs.assigned_identifiers)
        self._file_reads = {f.file: _normalized(f.used_identifiers) for f in fact_sets}
        self._inherited_names: set[str] = set()
        for ancestors in graphs.inheritance.values():
            self._inherited_names |= _normalized(ancestors)
        self._inherited_names |= _normalized(graphs.interfaces.conformed)
        for parents in graphs.interfaces.parents.values():
            self._inherited_names |= _normalized(parents)
        self._ancestor_cache: dict[str, set[str]] = {}

    def classify(self) -> list[Declaration]:
        """Every unreferenced declaration, each with exactly one reason."""
        results: list[Declaration] = []
        for facts in self.fact_sets:
            for fact in facts.declarations:
                declaration = self.classify_declaration(facts, fact)
                if declaration is not None:
                    results.append(declaration)
        logger.debug("Classified %d unreferenced declarations", len(results))
        return results

    def classify_declaration(
        self, facts: FactSet, fact: DeclarationFact
    ) -> Declaration | None:
        """Return the classified declaration, or None when it is used."""
        if fact.kind is DeclarationKind.PARAMETER:
            return self._classify_parameter(facts, fact)

        name = normalize_identifier(fact.name)
        if self.is_used(facts, fact):
            return None

        return Declaration(
            name=name,
            kind=fact.kind,
            file=facts.file,
            line=fact.line,
            parent_type=fact.parent_type,
            exclusion_reason=self.exclusion_reason(fact, name),
        )

    def is_used(self, facts: FactSet, fact: DeclarationFact) -> bool:
        name = normalize_identifier(fact.name)
        reads = self._file_reads.get(facts.file, set()) if fact.is_private else self._reads
        if name in reads:
            return True
        if fact.kind in _INHERITABLE and name in self._inherited_names:
            return True
        return False

    def _classify_parameter(self, facts: FactSet, fact: DeclarationFact) -> Declaration | None:
        binding = normalize_identifier(fact.binding or fact.name)
        if binding == self.settings.discard_marker:
            return None
        if binding in _normalized(fact.body_identifiers):
            return None

        owner = normalize_identifier(fact.owner) if fact.owner else None
        reason = self._marker_reason(fact.markers)
        if reason is ExclusionReason.NONE and owner and fact.parent_type:
            if self._is_interface_requirement(fact.parent_type, owner):
                reason = ExclusionReason.INTERFACE

        if owner and fact.parent_type:
            parent = f"{fact.parent_type}.{owner}"
        else:
            parent = owner or fact.parent_type
        return Declaration(
            name=binding,
            kind=DeclarationKind.PARAMETER,
            file=facts.file,
            line=fact.line,
            parent_type=parent,
            exclusion_reason=reason,
        )

    def exclusion_reason(self, fact: DeclarationFact, name: str) -> ExclusionReason:
        """Pick the strongest reason, in priority order."""
        reason = self._marker_reason(fact.markers)
        if reason is not ExclusionReason.NONE:
            return reason

        parent = fact.parent_type
        if parent and self._is_interface_requirement(parent, name):
            return ExclusionReason.INTERFACE

        if fact.kind is DeclarationKind.ENUM_CASE and parent and self._is_enumerable(parent):
            return ExclusionReason.ENUMERABLE

        if (
            fact.kind is DeclarationKind.VARIABLE
            and parent
            and name in self._writes
        ):
            return ExclusionReason.WRITE_ONLY

        return ExclusionReason.NONE

    def _marker_reason(self, markers: frozenset[str]) -> ExclusionReason:
        if self.settings.override_marker in markers:
            return ExclusionReason.OVERRIDE
        for marker, reason in self.settings.platform_markers.items():
            if marker in markers:
                return reason
        return ExclusionReason.NONE

    def conformances(self, type_name: str) -> set[str]:
        """Every interface or type the given type inherits from, transitively.

        Interface parents are followed as well, so a type conforming to a
        refined interface also conforms to its bases.
        """
        if type_name in self._ancestor_cache:
            return self._ancestor_cache[type_name]

        interfaces = self.graphs.interfaces
        seen: set[str] = set()
        stack = list(self.graphs.inheritance.get(type_name, ()))
        while stack:
            current = stack.pop()
            if current in seen:
                continue
            seen.add(current)
            stack.extend(self.graphs.inheritance.get(current, ()))
            stack.extend(interfaces.parents.get(current, ()))
        seen.discard(type_name)
        self._ancestor_cache[type_name] = seen
        return seen

    def _is_interface_requirement(self, type_name: str, member: str) -> bool:
        requirements: Mapping[str, set[str]] = self.graphs.interfaces.requirements
        if member in requirements.get(type_name, ()):
            return True
        return any(member in requirements.get(a, ()) for a in self.conformances(type_name))

    def _is_enumerable(self, type_name: str) -> bool:
        return bool(self.conformances(type_name) & self.settings.enumerable_interfaces)
