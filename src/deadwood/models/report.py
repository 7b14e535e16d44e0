"""Report models for analysis results."""

from dataclasses import dataclass, field
from datetime import datetime

from deadwood.models.declaration import Declaration, ExclusionReason

REPORT_FORMAT_VERSION = "1.0"


@dataclass(frozen=True)
class ReportOptions:
    """Analysis options recorded alongside a report."""

    include_overrides: bool = False
    include_interfaces: bool = False
    include_platform_markers: bool = False
    include_tests: bool = False
    show_excluded: bool = False

    def reports_as_unused(self, reason: ExclusionReason) -> bool:
        """Whether a declaration with this reason belongs in the unused list."""
        if not reason.is_excluded:
            return True
        if reason is ExclusionReason.OVERRIDE:
            return self.include_overrides
        if reason in (ExclusionReason.INTERFACE, ExclusionReason.ENUMERABLE):
            return self.include_interfaces
        if reason.is_platform:
            return self.include_platform_markers
        return False

    def to_dict(self) -> dict:
        return {
            "include_overrides": self.include_overrides,
            "include_interfaces": self.include_interfaces,
            "include_platform_markers": self.include_platform_markers,
            "include_tests": self.include_tests,
            "show_excluded": self.show_excluded,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ReportOptions":
        return cls(**{k: bool(data.get(k, False)) for k in cls().to_dict()})


@dataclass
class ExcludedItems:
    """Excluded declarations grouped by category."""

    overrides: list[Declaration] = field(default_factory=list)
    interface_implementations: list[Declaration] = field(default_factory=list)
    platform_items: list[Declaration] = field(default_factory=list)
    enumerable_cases: list[Declaration] = field(default_factory=list)

    def add(self, declaration: Declaration) -> None:
        reason = declaration.exclusion_reason
        if reason is ExclusionReason.OVERRIDE:
            self.overrides.append(declaration)
        elif reason is ExclusionReason.INTERFACE:
            self.interface_implementations.append(declaration)
        elif reason is ExclusionReason.ENUMERABLE:
            self.enumerable_cases.append(declaration)
        elif reason.is_platform:
            self.platform_items.append(declaration)
        else:
            raise ValueError(f"{declaration.qualified_name} is not excluded")

    def categories(self) -> list[tuple[str, list[Declaration]]]:
        return [
            ("Overrides", self.overrides),
            ("Interface implementations", self.interface_implementations),
            ("Platform items", self.platform_items),
            ("Enumerable cases", self.enumerable_cases),
        ]

    def all(self) -> list[Declaration]:
        return [d for _, items in self.categories() for d in items]

    @property
    def total(self) -> int:
        return sum(len(items) for _, items in self.categories())


@dataclass
class Report:
    """The unused and excluded declarations of one analysis run."""

    options: ReportOptions = field(default_factory=ReportOptions)
    unused: list[Declaration] = field(default_factory=list)
    excluded: ExcludedItems = field(default_factory=ExcludedItems)
    test_files_excluded: int = 0
    generated_at: datetime = field(default_factory=datetime.now)
    version: str = REPORT_FORMAT_VERSION

    @classmethod
    def from_declarations(
        cls,
        declarations: list[Declaration],
        options: ReportOptions,
        test_files_excluded: int = 0,
    ) -> "Report":
        """Partition declarations and assign ids, unused items first."""
        report = cls(options=options, test_files_excluded=test_files_excluded)
        ordered = sorted(declarations, key=lambda d: d.sort_key)
        unused = [d for d in ordered if options.reports_as_unused(d.exclusion_reason)]
        excluded = ExcludedItems()
        for declaration in ordered:
            if not options.reports_as_unused(declaration.exclusion_reason):
                excluded.add(declaration)

        next_id = 1
        for declaration in unused:
            report.unused.append(declaration.with_id(next_id))
            next_id += 1
        for _, items in excluded.categories():
            for declaration in items:
                report.excluded.add(declaration.with_id(next_id))
                next_id += 1
        return report

    def all_declarations(self) -> list[Declaration]:
        return self.unused + self.excluded.all()

    def find(self, declaration_id: int) -> Declaration | None:
        for declaration in self.all_declarations():
            if declaration.id == declaration_id:
                return declaration
        return None

    @property
    def max_id(self) -> int:
        return max((d.id or 0 for d in self.all_declarations()), default=0)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "version": self.version,
            "generated_at": self.generated_at.isoformat(),
            "options": self.options.to_dict(),
            "summary": {
                "total_unused": len(self.unused),
                "total_excluded": self.excluded.total,
                "test_files_excluded": self.test_files_excluded,
            },
            "unused": [d.to_dict() for d in self.unused],
            "excluded": {
                "overrides": [d.to_dict() for d in self.excluded.overrides],
                "interface_implementations": [
                    d.to_dict() for d in self.excluded.interface_implementations
                ],
                "platform_items": [d.to_dict() for d in self.excluded.platform_items],
                "enumerable_cases": [d.to_dict() for d in self.excluded.enumerable_cases],
            },
        }
