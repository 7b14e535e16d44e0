"""Rich tree visualization for analysis reports."""

from collections import defaultdict
from pathlib import Path

from rich.console import Console
from rich.text import Text
from rich.tree import Tree

from deadwood.models.declaration import Declaration, ExclusionReason
from deadwood.models.report import Report

console = Console()

_REASON_STYLES = {
    ExclusionReason.NONE: "red",
    ExclusionReason.WRITE_ONLY: "yellow",
}


def build_results_tree(declarations: list[Declaration], project_root: Path) -> Tree:
    """Build a Rich tree showing declarations by file."""
    by_file: dict[Path, list[Declaration]] = defaultdict(list)
    for declaration in declarations:
        file_path = Path(declaration.file)
        try:
            rel_path = file_path.relative_to(project_root)
        except ValueError:
            rel_path = file_path
        by_file[rel_path].append(declaration)

    root = Tree(f"[bold]{project_root.name or project_root}[/]", guide_style="dim")

    # Track directories we've added
    dir_nodes: dict[Path, Tree] = {}

    for file_path in sorted(by_file):
        parent = root
        for i, part in enumerate(file_path.parts[:-1]):
            dir_path = Path(*file_path.parts[: i + 1])
            if dir_path not in dir_nodes:
                dir_nodes[dir_path] = parent.add(f"[bold blue]{part}/[/]")
            parent = dir_nodes[dir_path]

        file_node = parent.add(f"[yellow]{file_path.name}[/]")
        for declaration in sorted(by_file[file_path], key=lambda d: d.line):
            file_node.add(_item_text(declaration))

    return root


def _item_text(declaration: Declaration) -> Text:
    style = _REASON_STYLES.get(declaration.exclusion_reason, "dim")
    text = Text()
    text.append(f"[{declaration.id}] ", style="dim")
    text.append(declaration.qualified_name, style=style)
    text.append(f" ({declaration.kind.value}, line {declaration.line}", style="dim")
    if declaration.exclusion_reason is not ExclusionReason.NONE:
        text.append(f", {declaration.exclusion_reason.value}", style=style)
    text.append(")", style="dim")
    return text


def build_summary_tree(report: Report) -> Tree:
    """Build a summary tree grouped by kind, with excluded categories."""
    by_kind: dict[str, list[Declaration]] = defaultdict(list)
    for declaration in report.unused:
        by_kind[declaration.kind.value].append(declaration)

    root = Tree("[bold]Unused Declarations[/]", guide_style="dim")
    for kind, items in sorted(by_kind.items()):
        kind_node = root.add(f"[cyan]{kind}[/] ({len(items)} items)")
        for item in items[:3]:
            kind_node.add(f"[red]{item.qualified_name}[/] in {Path(item.file).name}:{item.line}")
        if len(items) > 3:
            kind_node.add(f"[dim]... and {len(items) - 3} more[/]")

    if report.options.show_excluded and report.excluded.total:
        excluded_node = root.add(f"[dim]Excluded ({report.excluded.total})[/]")
        for label, items in report.excluded.categories():
            if items:
                excluded_node.add(f"{label}: {len(items)}")

    if report.test_files_excluded:
        root.add(f"[dim]{report.test_files_excluded} test files excluded[/]")
    return root


def display_tree(tree: Tree) -> None:
    """Display the tree to console."""
    console.print()
    console.print(tree)
    console.print()
