"""deadwood CLI - find and remove unused declarations across a project."""

import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.prompt import Confirm, Prompt
from rich.syntax import Syntax
from rich.table import Table

from deadwood import __version__
from deadwood.analysis.classifier import ClassifierSettings
from deadwood.analysis.engine import AnalysisEngine
from deadwood.analysis.related import RelatedCodeFinder
from deadwood.config import (
    DEFAULT_CONFIG,
    get_always_needed_modules,
    get_coder_receivers,
    get_discard_marker,
    get_enumerable_interfaces,
    get_platform_markers,
    load_project_config,
    load_pyproject_config,
    merge_config,
    save_config,
    should_delete_empty_files,
    should_search_sibling_extensions,
)
from deadwood.deletion.planner import DeletionPlanner
from deadwood.deletion.service import DeletionService
from deadwood.editors import Editor, EditorLaunchError, open_in_editor
from deadwood.exclusion import FileExcluder
from deadwood.extraction import JsonFactsExtractor, extract_all
from deadwood.filtering import FilterCriteria, filter_report, summarize
from deadwood.lines import LineRangeError, parse_line_ranges
from deadwood.models.declaration import Declaration, DeclarationKind
from deadwood.models.deletion import DeletionRequest, DeletionResult
from deadwood.models.facts import FactsFormatError
from deadwood.models.report import Report, ReportOptions
from deadwood.oracle import JsonInterfaceOracle, NullOracle
from deadwood.output.diagnostics import OutputFormat, format_diagnostics
from deadwood.output.report_writer import (
    ReportFormatError,
    read_report,
    write_report,
    write_report_json,
)
from deadwood.output.tree import build_results_tree, build_summary_tree, display_tree
from deadwood.paths import (
    ensure_deadwood_dir,
    get_config_path,
    get_facts_path,
    get_interfaces_path,
    get_report_path,
)

app = typer.Typer(
    name="deadwood",
    help="Find and safely remove unused declarations across a whole project",
    no_args_is_help=True,
    rich_markup_mode="rich",
)
console = Console()
logger = logging.getLogger("deadwood")


def version_callback(value: bool) -> None:
    if value:
        console.print(f"deadwood version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
    debug: bool = typer.Option(
        False,
        "--debug",
        help="Show debug logging",
    ),
) -> None:
    """Find and safely remove unused declarations across a whole project."""
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


@app.command()
def analyze(
    path: Path = typer.Argument(
        Path("."),
        help="Path to the project to analyze",
    ),
    facts: Optional[Path] = typer.Option(
        None,
        "--facts",
        "-f",
        help="Extractor facts JSON (default: .deadwood/facts.json)",
    ),
    interfaces: Optional[Path] = typer.Option(
        None,
        "--interfaces",
        help="Interface metadata JSON (default: .deadwood/interfaces.json if present)",
    ),
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Path for the report (default: .deadwood/report.csv)",
    ),
    include_overrides: bool = typer.Option(
        False, "--include-overrides", help="Report unused overrides as unused"
    ),
    include_interfaces: bool = typer.Option(
        False,
        "--include-interfaces",
        help="Report interface implementations and enumerable cases as unused",
    ),
    include_platform_markers: bool = typer.Option(
        False,
        "--include-platform-markers",
        help="Report objc/IBAction/IBOutlet/main items as unused",
    ),
    include_tests: bool = typer.Option(False, "--include-tests", help="Analyze test files"),
    show_excluded: bool = typer.Option(
        False, "--show-excluded", help="List excluded items in the summary"
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Show full tree in CLI (default: summary only)",
    ),
    output_format: OutputFormat = typer.Option(
        OutputFormat.CONSOLE,
        "--format",
        help="console for a summary, xcode for file:line warnings in a build phase",
    ),
    json_output: Optional[Path] = typer.Option(
        None, "--json", help="Also write a JSON summary of the report to this path"
    ),
    workers: int = typer.Option(1, "--workers", "-w", help="Threads used to load facts"),
) -> None:
    """Analyze extractor facts and write a report of unused declarations."""
    path = path.resolve()
    facts_path = facts or get_facts_path(path)
    interfaces_path = interfaces or get_interfaces_path(path)
    config = _load_config(path)

    try:
        extractor = JsonFactsExtractor.load(facts_path, root=path)
        oracle = (
            JsonInterfaceOracle.load(interfaces_path)
            if interfaces is not None or interfaces_path.exists()
            else NullOracle()
        )
    except (FileNotFoundError, FactsFormatError) as e:
        console.print(f"[red]{e}[/]")
        raise typer.Exit(1)

    options = ReportOptions(
        include_overrides=include_overrides,
        include_interfaces=include_interfaces,
        include_platform_markers=include_platform_markers,
        include_tests=include_tests,
        show_excluded=show_excluded,
    )
    engine = AnalysisEngine(
        oracle=oracle,
        options=options,
        settings=ClassifierSettings(
            platform_markers=get_platform_markers(config),
            enumerable_interfaces=get_enumerable_interfaces(config),
            discard_marker=get_discard_marker(config),
        ),
        always_needed=get_always_needed_modules(config),
        excluder=FileExcluder(path, include_tests=include_tests, config=config),
    )

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
        disable=output_format is OutputFormat.XCODE,
    ) as progress:
        task = progress.add_task("Resolving declarations...", total=None)
        fact_sets = extract_all(extractor, extractor.files, max_workers=workers)
        result = engine.run(fact_sets)
        progress.update(task, completed=True)

    if output is None:
        ensure_deadwood_dir(path)
        output = get_report_path(path)
    write_report(result.report, output)
    if json_output is not None:
        write_report_json(result.report, json_output)

    if output_format is OutputFormat.XCODE:
        _echo_diagnostics(result.report.unused, path)
        return

    console.print(f"\n[green]Report saved to:[/] {output}")
    if json_output is not None:
        console.print(f"[green]JSON summary saved to:[/] {json_output}")

    if result.unresolved_interfaces:
        console.print(
            f"[dim]No interface data for: {', '.join(sorted(result.unresolved_interfaces))}[/]"
        )

    if verbose:
        display_tree(build_results_tree(result.report.unused, path))
    else:
        _display_summary(result.report)


@app.command()
def show(
    path: Path = typer.Argument(
        Path("."),
        help="Path to the analyzed project",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Show full tree view",
    ),
    show_excluded: bool = typer.Option(
        False, "--show-excluded", help="Include excluded items in the tree"
    ),
) -> None:
    """Display the report from a previous analysis run."""
    path = path.resolve()
    report = _load_report(path)

    if verbose:
        items = report.unused + (report.excluded.all() if show_excluded else [])
        display_tree(build_results_tree(items, path))
    else:
        display_tree(build_summary_tree(report))


@app.command("filter")
def filter_items(
    path: Path = typer.Argument(
        Path("."),
        help="Path to the analyzed project",
    ),
    ids: Optional[str] = typer.Option(None, "--ids", help="Item ids, e.g. '1-3 7'"),
    kind: Optional[list[str]] = typer.Option(
        None, "--kind", "-k", help="Declaration kind (repeatable)"
    ),
    file_pattern: Optional[str] = typer.Option(
        None, "--file", help="Gitignore-style file pattern, e.g. 'Sources/**/*.swift'"
    ),
    name_pattern: Optional[str] = typer.Option(
        None, "--name", help="Regular expression matched against names"
    ),
    include_excluded: bool = typer.Option(
        False, "--include-excluded", help="Also match excluded items"
    ),
    output_format: OutputFormat = typer.Option(
        OutputFormat.CONSOLE, "--format", help="console for a table, xcode for warnings"
    ),
) -> None:
    """List report items matching the given filters."""
    path = path.resolve()
    report = _load_report(path)
    criteria = _criteria(path, ids, kind, file_pattern, name_pattern, include_excluded)
    items = filter_report(report, criteria)

    if output_format is OutputFormat.XCODE:
        _echo_diagnostics(items, path)
        return

    if not items:
        console.print("[yellow]No matching items[/]")
        return

    console.print(_items_table(items, path))
    counts = ", ".join(f"{k}: {v}" for k, v in summarize(items).items())
    console.print(f"\n[bold]{len(items)}[/] items ({counts})")


@app.command()
def delete(
    path: Path = typer.Argument(
        Path("."),
        help="Path to the analyzed project",
    ),
    ids: Optional[str] = typer.Option(None, "--ids", help="Item ids, e.g. '1-3 7'"),
    kind: Optional[list[str]] = typer.Option(
        None, "--kind", "-k", help="Declaration kind (repeatable)"
    ),
    file_pattern: Optional[str] = typer.Option(
        None, "--file", help="Gitignore-style file pattern"
    ),
    name_pattern: Optional[str] = typer.Option(
        None, "--name", help="Regular expression matched against names"
    ),
    lines: Optional[str] = typer.Option(
        None, "--lines", "-l", help="Delete only these lines of a single item, e.g. '3-5 8'"
    ),
    related: bool = typer.Option(
        True,
        "--related/--no-related",
        help="Also delete initializer assignments, coding keys and extensions",
    ),
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        "-n",
        help="Show what would be removed without touching files",
    ),
    keep_empty_files: bool = typer.Option(
        False, "--keep-empty-files", help="Keep files left with only imports"
    ),
    interactive: bool = typer.Option(
        False, "--interactive", "-i", help="Confirm each item"
    ),
    editor: Editor = typer.Option(Editor.XCODE, "--editor", "-e", help="Editor for 'open'"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the confirmation prompt"),
    workers: int = typer.Option(1, "--workers", "-w", help="Files edited in parallel"),
) -> None:
    """Delete unused declarations selected by id or filters."""
    path = path.resolve()
    report = _load_report(path)
    config = _load_config(path)
    criteria = _criteria(path, ids, kind, file_pattern, name_pattern, include_excluded=False)

    if criteria.is_empty and not interactive:
        console.print("[red]Select items with --ids, --kind, --file or --name[/]")
        raise typer.Exit(1)

    items = filter_report(report, criteria)
    if not items:
        console.print("[yellow]No matching items[/]")
        return

    finder = RelatedCodeFinder(
        coder_receivers=get_coder_receivers(config),
        search_siblings=should_search_sibling_extensions(config),
    )

    if interactive:
        requests = _interactive_requests(items, finder if related else None, editor)
    elif lines is not None:
        if len(items) != 1:
            console.print("[red]--lines needs exactly one selected item[/]")
            raise typer.Exit(1)
        try:
            selected = parse_line_ranges(lines)
        except LineRangeError as e:
            console.print(f"[red]{e}[/]")
            raise typer.Exit(1)
        requests = [DeletionRequest.specific_lines(items[0], selected)]
    else:
        requests = _requests_for(items, finder if related else None)

    if not requests:
        console.print("[yellow]Nothing to delete[/]")
        return

    extractor = None
    facts_path = get_facts_path(path)
    if facts_path.exists():
        try:
            extractor = JsonFactsExtractor.load(facts_path, root=path)
        except FactsFormatError as e:
            logger.warning("Ignoring facts for span lookup: %s", e)

    service = DeletionService(DeletionPlanner(extractor), max_workers=workers)
    console.print(Panel(service.preview(requests), title="[bold]Deletion plan[/]"))

    if not dry_run and not yes and not interactive:
        if not Confirm.ask(f"\n[bold]Delete {len(items)} items?[/]", default=False):
            raise typer.Exit()

    delete_empty = should_delete_empty_files(config) and not keep_empty_files
    result = service.delete(requests, dry_run=dry_run, delete_empty_files=delete_empty)
    _display_deletion_result(result, path)
    if result.failed_files:
        raise typer.Exit(1)


@app.command("open")
def open_item(
    item_id: int = typer.Argument(..., help="Report id of the item"),
    path: Path = typer.Argument(
        Path("."),
        help="Path to the analyzed project",
    ),
    editor: Editor = typer.Option(Editor.XCODE, "--editor", "-e", help="Editor to launch"),
) -> None:
    """Open an item's declaration in an editor."""
    path = path.resolve()
    report = _load_report(path)
    declaration = report.find(item_id)
    if declaration is None:
        console.print(f"[red]No item with id {item_id}[/] (max id {report.max_id})")
        raise typer.Exit(1)
    _open(declaration, editor)


@app.command()
def init(
    path: Path = typer.Argument(
        Path("."),
        help="Path to the project",
    ),
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Path for the config file (default: .deadwood/config.json)",
    ),
    force: bool = typer.Option(False, "--force", help="Overwrite an existing config file"),
) -> None:
    """Write a config file with the defaults and show the exclusion sources in effect."""
    console.print(Panel.fit("[bold blue]deadwood - Project Setup[/]"))
    path = path.resolve()

    if output is None:
        ensure_deadwood_dir(path)
        output = get_config_path(path)
    if output.exists() and not force:
        console.print(f"[yellow]{output} already exists[/] (use --force to overwrite)")
        raise typer.Exit(1)

    config = merge_config(DEFAULT_CONFIG, load_pyproject_config(path))
    save_config(config, output)

    excluder = FileExcluder(path, config=config)
    console.print("\n[bold]Exclusion sources:[/]")
    for source in excluder.sources:
        console.print(f"  - {source}", soft_wrap=True)
    console.print(f"\n[green]Configuration saved to:[/] {output}")


def _echo_diagnostics(items: list[Declaration], root: Path) -> None:
    for line in format_diagnostics(items, root):
        typer.echo(line)


def _load_config(path: Path) -> dict:
    try:
        return load_project_config(path, get_config_path(path))
    except (OSError, ValueError) as e:
        console.print(f"[red]Cannot read {get_config_path(path)}:[/] {e}")
        raise typer.Exit(1)


def _load_report(path: Path) -> Report:
    try:
        return read_report(get_report_path(path))
    except FileNotFoundError as e:
        console.print(f"[red]{e}[/]")
        console.print("Run [bold]deadwood analyze[/] first to generate the report.")
        raise typer.Exit(1)
    except ReportFormatError as e:
        console.print(f"[red]Corrupt report:[/] {e}")
        raise typer.Exit(1)


def _criteria(
    path: Path,
    ids: str | None,
    kinds: list[str] | None,
    file_pattern: str | None,
    name_pattern: str | None,
    include_excluded: bool,
) -> FilterCriteria:
    try:
        id_set = frozenset(parse_line_ranges(ids)) if ids else None
        kind_set = frozenset(DeclarationKind(k) for k in kinds) if kinds else None
    except LineRangeError as e:
        console.print(f"[red]Invalid --ids:[/] {e}")
        raise typer.Exit(1)
    except ValueError as e:
        valid = ", ".join(k.value for k in DeclarationKind)
        console.print(f"[red]{e}[/] (valid kinds: {valid})")
        raise typer.Exit(1)
    return FilterCriteria(
        ids=id_set,
        kinds=kind_set,
        file_pattern=file_pattern,
        name_pattern=name_pattern,
        include_excluded=include_excluded,
        root=path,
    )


def _requests_for(
    items: list[Declaration], finder: RelatedCodeFinder | None
) -> list[DeletionRequest]:
    requests: list[DeletionRequest] = []
    for item in items:
        requests.append(DeletionRequest.full(item))
        if finder is not None:
            requests.extend(_related_requests(item, finder))
    return requests


def _related_requests(item: Declaration, finder: RelatedCodeFinder) -> list[DeletionRequest]:
    try:
        return [DeletionRequest.from_related(r) for r in finder.find(item)]
    except (OSError, UnicodeDecodeError) as e:
        logger.warning("Skipping related code for %s: %s", item.qualified_name, e)
        return []


def _interactive_requests(
    items: list[Declaration], finder: RelatedCodeFinder | None, editor: Editor
) -> list[DeletionRequest]:
    """Walk items one by one and collect what the user approves."""
    requests: list[DeletionRequest] = []
    approve_all = False
    for position, item in enumerate(items, start=1):
        if approve_all:
            requests.extend(_requests_for([item], finder))
            continue

        console.print(
            f"\n[bold][{position}/{len(items)}][/] [cyan]{item.qualified_name}[/] "
            f"({item.kind.value}) {item.file}:{item.line}"
        )
        _show_snippet(item)
        while True:
            choice = Prompt.ask(
                "Delete? [y]es/[n]o/[a]ll/[q]uit/[o]pen/[l]ines",
                choices=["y", "n", "a", "q", "o", "l"],
                default="n",
                show_choices=False,
            )
            if choice == "o":
                _open(item, editor)
                continue
            if choice == "l":
                try:
                    selected = parse_line_ranges(Prompt.ask("Lines"))
                except LineRangeError as e:
                    console.print(f"[red]{e}[/]")
                    continue
                requests.append(DeletionRequest.specific_lines(item, selected))
            break

        if choice == "q":
            break
        if choice in ("y", "a"):
            requests.extend(_requests_for([item], finder))
        approve_all = choice == "a"
    return requests


def _show_snippet(item: Declaration, context: int = 3) -> None:
    try:
        text = Path(item.file).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        console.print(f"[red]Cannot read {item.file}: {e}[/]")
        return
    start = max(1, item.line - context)
    end = item.line + context
    console.print(
        Syntax(
            text,
            "swift",
            line_numbers=True,
            line_range=(start, end),
            highlight_lines={item.line},
        )
    )


def _open(item: Declaration, editor: Editor) -> None:
    try:
        open_in_editor(Path(item.file), item.line, editor)
    except EditorLaunchError as e:
        console.print(f"[yellow]Could not open editor:[/] {e}")


def _relative(file: str, root: Path) -> str:
    try:
        return str(Path(file).relative_to(root))
    except ValueError:
        return file


def _items_table(items: list[Declaration], root: Path) -> Table:
    table = Table(show_header=True, header_style="bold")
    table.add_column("ID", justify="right", style="dim")
    table.add_column("Name", style="cyan")
    table.add_column("Kind")
    table.add_column("Location")
    table.add_column("Reason")
    for item in items:
        table.add_row(
            str(item.id),
            item.qualified_name,
            item.kind.value,
            f"{_relative(item.file, root)}:{item.line}",
            item.exclusion_reason.value,
        )
    return table


def _display_summary(report: Report) -> None:
    """Display analysis summary."""
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column("Key", style="cyan")
    table.add_column("Value")

    table.add_row("Unused declarations", str(len(report.unused)))
    for kind, count in summarize(report.unused).items():
        table.add_row(f"  {kind}", str(count))

    table.add_row("", "")
    table.add_row("Excluded", str(report.excluded.total))
    if report.options.show_excluded:
        for label, items in report.excluded.categories():
            table.add_row(f"  {label}", str(len(items)))
    if report.test_files_excluded:
        table.add_row("Test files excluded", str(report.test_files_excluded))

    console.print(Panel(table, title="[bold]Unused Code Summary[/]", border_style="blue"))


def _display_deletion_result(result: DeletionResult, root: Path) -> None:
    title = "Dry run" if result.dry_run else "Deletion results"
    table = Table(title=title, show_header=True, header_style="bold")
    table.add_column("File")
    table.add_column("Lines removed", justify="right")
    table.add_column("Partial edits", justify="right")
    table.add_column("Status")
    for file_result in result.file_results:
        if not file_result.success:
            status = f"[red]failed: {file_result.error}[/]"
        elif file_result.file_deleted:
            status = "[yellow]file deleted[/]"
        else:
            status = "[green]ok[/]"
        table.add_row(
            _relative(file_result.file, root),
            str(file_result.lines_removed),
            str(file_result.partial_edits),
            status,
        )
    console.print(table)
    console.print(
        f"\n[bold]{result.total_lines_removed}[/] lines across "
        f"{result.successful_files}/{result.total_files} files"
        + (f", [red]{result.failed_files} failed[/]" if result.failed_files else "")
    )


if __name__ == "__main__":
    app()
