"""Declaration models shared by classification, reporting and deletion."""

from dataclasses import dataclass, replace
from enum import Enum


class DeclarationKind(Enum):
    """Syntactic kind of a declaration."""

    FUNCTION = "function"
    VARIABLE = "variable"
    TYPE = "type"
    INTERFACE = "interface"
    ENUM_CASE = "enum-case"
    TYPE_ALIAS = "type-alias"
    PARAMETER = "parameter"
    IMPORT = "import"


class ExclusionReason(Enum):
    """Why an unreferenced declaration is (or is not) held back from removal."""

    NONE = "none"
    OVERRIDE = "override"
    INTERFACE = "protocol"
    OBJC = "objc"
    IB_ACTION = "ibAction"
    IB_OUTLET = "ibOutlet"
    MAIN = "main"
    ENUMERABLE = "caseIterable"
    WRITE_ONLY = "writeOnly"

    @property
    def is_excluded(self) -> bool:
        """True when the reason keeps the declaration out of the unused list."""
        return self not in (ExclusionReason.NONE, ExclusionReason.WRITE_ONLY)

    @property
    def is_platform(self) -> bool:
        return self in PLATFORM_REASONS


PLATFORM_REASONS = frozenset(
    {
        ExclusionReason.OBJC,
        ExclusionReason.IB_ACTION,
        ExclusionReason.IB_OUTLET,
        ExclusionReason.MAIN,
    }
)


def normalize_identifier(name: str) -> str:
    """Strip backtick escaping so `default` and default compare equal."""
    if len(name) >= 2 and name.startswith("`") and name.endswith("`"):
        return name[1:-1]
    return name


@dataclass(frozen=True)
class Declaration:
    """A classified declaration.

    The id stays None until the declaration is written to a report, where ids
    are handed out 1-based across the unused and excluded sets.
    """

    name: str
    kind: DeclarationKind
    file: str
    line: int
    parent_type: str | None = None
    exclusion_reason: ExclusionReason = ExclusionReason.NONE
    id: int | None = None

    @property
    def is_excluded(self) -> bool:
        return self.exclusion_reason.is_excluded

    @property
    def qualified_name(self) -> str:
        if self.parent_type:
            return f"{self.parent_type}.{self.name}"
        return self.name

    @property
    def sort_key(self) -> tuple[str, int, str]:
        return (self.file, self.line, self.name)

    def with_id(self, declaration_id: int) -> "Declaration":
        """Return a copy carrying a report id."""
        return replace(self, id=declaration_id)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "name": self.name,
            "kind": self.kind.value,
            "file": self.file,
            "line": self.line,
            "parent_type": self.parent_type,
            "exclusion_reason": self.exclusion_reason.value,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Declaration":
        """Create from dictionary."""
        return cls(
            name=data["name"],
            kind=DeclarationKind(data["kind"]),
            file=data["file"],
            line=data["line"],
            parent_type=data.get("parent_type"),
            exclusion_reason=ExclusionReason(data.get("exclusion_reason", "none")),
            id=data.get("id"),
        )
