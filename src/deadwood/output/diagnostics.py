"""Compiler-style diagnostics for IDE build phases."""

from enum import Enum
from pathlib import Path

from deadwood.models.declaration import Declaration, DeclarationKind, ExclusionReason


class OutputFormat(Enum):
    """How results are printed."""

    CONSOLE = "console"
    XCODE = "xcode"


_KIND_LABELS = {
    DeclarationKind.FUNCTION: "function",
    DeclarationKind.VARIABLE: "variable",
    DeclarationKind.TYPE: "class/struct/enum",
    DeclarationKind.INTERFACE: "protocol",
    DeclarationKind.ENUM_CASE: "enum case",
    DeclarationKind.TYPE_ALIAS: "typealias",
    DeclarationKind.PARAMETER: "parameter",
    DeclarationKind.IMPORT: "import",
}


def format_warning(declaration: Declaration, project_root: Path) -> str:
    """One ``file:line: warning: message`` line for an unused item.

    Relative paths are made absolute against project_root so the IDE can
    jump to them.
    """
    file_path = Path(declaration.file)
    if not file_path.is_absolute():
        file_path = project_root / file_path

    label = _KIND_LABELS.get(declaration.kind, declaration.kind.value)
    message = f"Unused {label} '{declaration.name}'"
    if declaration.parent_type:
        message += f" in {declaration.parent_type}"
    if declaration.exclusion_reason is ExclusionReason.WRITE_ONLY:
        message += " [write-only]"
    return f"{file_path}:{declaration.line}: warning: {message}"


def format_diagnostics(declarations: list[Declaration], project_root: Path) -> list[str]:
    """Warning lines for every item, followed by a count when there are any."""
    lines = [format_warning(d, project_root) for d in declarations]
    if declarations:
        count = len(declarations)
        lines.append(f"warning: {count} unused declaration{'' if count == 1 else 's'} found")
    return lines
