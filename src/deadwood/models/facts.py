"""Per-file extraction facts produced by a language-specific extractor."""

from dataclasses import dataclass, field

from deadwood.models.declaration import DeclarationKind

FACTS_FORMAT_VERSION = "1.0"


class FactsFormatError(ValueError):
    """Raised when a facts document cannot be decoded."""


@dataclass(frozen=True)
class ImportFact:
    """A single import statement."""

    module: str
    line: int

    def to_dict(self) -> dict:
        return {"module": self.module, "line": self.line}

    @classmethod
    def from_dict(cls, data: dict) -> "ImportFact":
        return cls(module=data["module"], line=data["line"])


@dataclass(frozen=True)
class DeclarationFact:
    """A declaration as seen by the extractor, before classification.

    For parameters, ``binding`` is the internal name used in the body,
    ``owner`` is the enclosing function, ``markers`` are the enclosing
    function's markers and ``body_identifiers`` lists every identifier the
    function body references.
    """

    name: str
    kind: DeclarationKind
    line: int
    parent_type: str | None = None
    markers: frozenset[str] = frozenset()
    start_line: int | None = None
    end_line: int | None = None
    binding: str | None = None
    owner: str | None = None
    body_identifiers: frozenset[str] = frozenset()

    @property
    def is_private(self) -> bool:
        return bool(self.markers & {"private", "fileprivate"})

    @property
    def span(self) -> tuple[int, int] | None:
        if self.start_line is None or self.end_line is None:
            return None
        return (self.start_line, self.end_line)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        data: dict = {
            "name": self.name,
            "kind": self.kind.value,
            "line": self.line,
        }
        if self.parent_type is not None:
            data["parent_type"] = self.parent_type
        if self.markers:
            data["markers"] = sorted(self.markers)
        if self.start_line is not None:
            data["start_line"] = self.start_line
        if self.end_line is not None:
            data["end_line"] = self.end_line
        if self.binding is not None:
            data["binding"] = self.binding
        if self.owner is not None:
            data["owner"] = self.owner
        if self.body_identifiers:
            data["body_identifiers"] = sorted(self.body_identifiers)
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "DeclarationFact":
        """Create from dictionary."""
        return cls(
            name=data["name"],
            kind=DeclarationKind(data["kind"]),
            line=data["line"],
            parent_type=data.get("parent_type"),
            markers=frozenset(data.get("markers", [])),
            start_line=data.get("start_line"),
            end_line=data.get("end_line"),
            binding=data.get("binding"),
            owner=data.get("owner"),
            body_identifiers=frozenset(data.get("body_identifiers", [])),
        )


@dataclass
class FactSet:
    """Everything the extractor learned about one source file."""

    file: str
    imports: list[ImportFact] = field(default_factory=list)
    used_identifiers: set[str] = field(default_factory=set)
    assigned_identifiers: set[str] = field(default_factory=set)
    interface_requirements: dict[str, set[str]] = field(default_factory=dict)
    interface_parents: dict[str, set[str]] = field(default_factory=dict)
    project_interfaces: set[str] = field(default_factory=set)
    conformed_interfaces: set[str] = field(default_factory=set)
    type_inheritance: dict[str, set[str]] = field(default_factory=dict)
    declarations: list[DeclarationFact] = field(default_factory=list)

    @property
    def imported_modules(self) -> set[str]:
        return {fact.module for fact in self.imports}

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "file": self.file,
            "imports": [i.to_dict() for i in self.imports],
            "used_identifiers": sorted(self.used_identifiers),
            "assigned_identifiers": sorted(self.assigned_identifiers),
            "interface_requirements": {
                k: sorted(v) for k, v in self.interface_requirements.items()
            },
            "interface_parents": {k: sorted(v) for k, v in self.interface_parents.items()},
            "project_interfaces": sorted(self.project_interfaces),
            "conformed_interfaces": sorted(self.conformed_interfaces),
            "type_inheritance": {k: sorted(v) for k, v in self.type_inheritance.items()},
            "declarations": [d.to_dict() for d in self.declarations],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "FactSet":
        """Create from dictionary."""
        try:
            return cls(
                file=data["file"],
                imports=[ImportFact.from_dict(i) for i in data.get("imports", [])],
                used_identifiers=set(data.get("used_identifiers", [])),
                assigned_identifiers=set(data.get("assigned_identifiers", [])),
                interface_requirements={
                    k: set(v) for k, v in data.get("interface_requirements", {}).items()
                },
                interface_parents={
                    k: set(v) for k, v in data.get("interface_parents", {}).items()
                },
                project_interfaces=set(data.get("project_interfaces", [])),
                conformed_interfaces=set(data.get("conformed_interfaces", [])),
                type_inheritance={
                    k: set(v) for k, v in data.get("type_inheritance", {}).items()
                },
                declarations=[
                    DeclarationFact.from_dict(d) for d in data.get("declarations", [])
                ],
            )
        except (KeyError, TypeError, ValueError) as e:
            raise FactsFormatError(f"Malformed facts for {data.get('file', '?')}: {e}") from e
