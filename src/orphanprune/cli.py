"""orphanprune CLI - reachability analysis for TypeScript/JavaScript source trees."""

import logging
from collections import Counter
from pathlib import Path
from typing import NoReturn, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.prompt import Prompt
from rich.table import Table

from orphanprune import __version__
from orphanprune.analysis.pipeline import run_analysis
from orphanprune.config import get_trim_mode, should_backup
from orphanprune.context import AnalysisContext, build_context
from orphanprune.deletion.apply import (
    CONFIRMATION_PHRASE,
    ApplyGate,
    apply_deletions,
    display_deletion_plan,
    is_ci_environment,
)
from orphanprune.errors import ConfirmationRequired, OrphanPruneError
from orphanprune.models.deletion import DeletionResults, DeletionStatus
from orphanprune.models.report import Report, StatusFilter
from orphanprune.models.trim import TrimResults, TrimStatus
from orphanprune.output.json_writer import (
    load_report,
    render_paths,
    render_report,
    write_deletion_results,
    write_report,
    write_trim_results,
)
from orphanprune.output.tree import build_report_tree, build_trim_tree, display_tree
from orphanprune.paths import (
    ensure_orphanprune_dir,
    get_deletions_path,
    get_report_path,
    get_trims_path,
)
from orphanprune.trimming.trimmer import ExportTrimmer, TrimOptions

app = typer.Typer(
    name="orphanprune",
    help="Find and remove unreachable files in TypeScript/JavaScript projects",
    no_args_is_help=True,
    rich_markup_mode="rich",
)
console = Console()
err_console = Console(stderr=True)


def version_callback(value: bool) -> None:
    if value:
        console.print(f"orphanprune version {__version__}")
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
) -> None:
    """Find and remove unreachable files in TypeScript/JavaScript projects."""


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False, markup=False)],
        force=True,
    )


def _fail(message: str) -> NoReturn:
    console.print(f"[red]Error:[/] {message}")
    raise typer.Exit(1)


def _build_context(
    path: Path,
    config: Optional[Path],
    tsconfig: Optional[Path],
    allow: Optional[list[str]],
    include_ignored: bool,
    workers: Optional[int],
    display: Console,
) -> AnalysisContext:
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=display,
        transient=True,
    ) as progress:
        task = progress.add_task("Indexing source files...", total=None)
        context = build_context(
            path,
            config_path=config,
            tsconfig=tsconfig,
            allow=allow or [],
            include_ignored=include_ignored,
            workers=workers,
        )
        progress.update(task, completed=True)
    return context


@app.command()
def analyze(
    path: Path = typer.Argument(
        Path("."),
        help="Path to the project root",
    ),
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to config file (default: .orphanprune/config.json)",
    ),
    tsconfig: Optional[Path] = typer.Option(
        None,
        "--tsconfig",
        help="Alias table to use (default: tsconfig.json, then jsconfig.json)",
    ),
    out: Optional[Path] = typer.Option(
        None,
        "--out",
        "-o",
        help="Path for report JSON output (default: .orphanprune/report.json)",
    ),
    only: StatusFilter = typer.Option(
        StatusFilter.ALL,
        "--only",
        case_sensitive=False,
        help="Include only records with this status in the report",
    ),
    stdout: bool = typer.Option(
        False,
        "--stdout",
        help="Print the report JSON to stdout instead of writing a file",
    ),
    paths_only: bool = typer.Option(
        False,
        "--paths-only",
        help="Print DROP paths, one per line, instead of writing a report",
    ),
    allow: Optional[list[str]] = typer.Option(
        None,
        "--allow",
        "-a",
        help="Path, glob or export name to protect (repeatable)",
    ),
    include_ignored: bool = typer.Option(
        False,
        "--include-ignored",
        help="Include files normally excluded by .gitignore and config patterns",
    ),
    workers: Optional[int] = typer.Option(
        None,
        "--workers",
        "-j",
        min=1,
        help="Worker threads for indexing and reference counting",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Show full tree and debug logging",
    ),
) -> None:
    """Classify every candidate file as KEEP or DROP."""
    _setup_logging(verbose)
    machine_output = stdout or paths_only
    display = err_console if machine_output else console

    if not machine_output:
        display.print(Panel.fit("[bold blue]orphanprune - Reachability Analysis[/]"))

    try:
        context = _build_context(
            path, config, tsconfig, allow, include_ignored, workers, display
        )
        report = run_analysis(context)
    except OrphanPruneError as e:
        _fail(str(e))

    if paths_only:
        typer.echo(render_paths(report), nl=False)
        return
    if stdout:
        typer.echo(render_report(report, only))
        return

    if out is None:
        ensure_orphanprune_dir(context.project_root)
        out = get_report_path(context.project_root)
    write_report(report, out, only)
    console.print(f"\n[green]Report saved to:[/] {out}")

    _display_summary(report)
    if verbose:
        display_tree(build_report_tree(report.view(only), context.project_root.name, verbose))


@app.command()
def show(
    report_path: Optional[Path] = typer.Argument(
        None,
        help="Path to report file (default: .orphanprune/report.json)",
    ),
    only: StatusFilter = typer.Option(
        StatusFilter.ALL,
        "--only",
        case_sensitive=False,
        help="Show only records with this status",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Show export reference counts and notes",
    ),
) -> None:
    """Display a report from a previous analysis run."""
    if report_path is None:
        report_path = get_report_path(Path.cwd())

    try:
        report = load_report(report_path)
    except OrphanPruneError as e:
        _fail(str(e))

    project_name = report.metadata.project if report.metadata else report_path.parent.name
    _display_summary(report)
    display_tree(build_report_tree(report.view(only), project_name, verbose))


@app.command()
def trim(
    path: Path = typer.Argument(
        Path("."),
        help="Path to the project root",
    ),
    write: bool = typer.Option(
        False,
        "--write",
        "-w",
        help="Write changes to disk (default: dry run)",
    ),
    mode: Optional[str] = typer.Option(
        None,
        "--mode",
        "-m",
        help="Declaration handling: 'strip' the export keyword or 'delete' the declaration",
    ),
    no_backup: bool = typer.Option(
        False,
        "--no-backup",
        help="Do not snapshot files before writing",
    ),
    allow: Optional[list[str]] = typer.Option(
        None,
        "--allow",
        "-a",
        help="Path, glob or export name to protect (repeatable)",
    ),
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to config file (default: .orphanprune/config.json)",
    ),
    tsconfig: Optional[Path] = typer.Option(
        None,
        "--tsconfig",
        help="Alias table to use (default: tsconfig.json, then jsconfig.json)",
    ),
    include_ignored: bool = typer.Option(
        False,
        "--include-ignored",
        help="Include files normally excluded by .gitignore and config patterns",
    ),
    workers: Optional[int] = typer.Option(
        None,
        "--workers",
        "-j",
        min=1,
        help="Worker threads for indexing and reference counting",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Debug logging",
    ),
) -> None:
    """Remove unreferenced exports from files that are only partially used."""
    _setup_logging(verbose)
    console.print(Panel.fit("[bold blue]orphanprune - Export Trimming[/]"))

    try:
        context = _build_context(
            path, config, tsconfig, allow, include_ignored, workers, console
        )
        options = TrimOptions(
            write=write,
            mode=mode or get_trim_mode(context.config),
            backup=should_backup(context.config) and not no_backup,
        )
        report = run_analysis(context)
    except OrphanPruneError as e:
        _fail(str(e))
    except ValueError as e:
        _fail(str(e))

    console.print(f"\n[dim]Mode:[/] {options.mode} ({'write' if write else 'dry-run'})")
    results = ExportTrimmer(context, options).trim(report)

    ensure_orphanprune_dir(context.project_root)
    trims_path = get_trims_path(context.project_root)
    write_trim_results(results, trims_path)

    _display_trim_results(results)
    console.print(f"\n[green]Trim results saved to:[/] {trims_path}")
    if not write and results.count(TrimStatus.DRY_RUN):
        console.print("[dim]Dry run: use --write to apply these changes[/]")


@app.command()
def apply(
    path: Path = typer.Argument(
        Path("."),
        help="Path to the project root",
    ),
    report_path: Optional[Path] = typer.Option(
        None,
        "--report",
        "-r",
        help="Report to apply (default: .orphanprune/report.json)",
    ),
    yes: bool = typer.Option(
        False,
        "--yes",
        "-y",
        help="Confirm deletion of DROP files",
    ),
    non_interactive: bool = typer.Option(
        False,
        "--non-interactive",
        help="Trusted automation: skip the typed confirmation (CI=true does the same)",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Debug logging",
    ),
) -> None:
    """Delete the DROP files of a previously written report."""
    _setup_logging(verbose)
    path = path.resolve()
    if report_path is None:
        report_path = get_report_path(path)

    try:
        report = load_report(report_path)
    except OrphanPruneError as e:
        _fail(str(e))

    droppable = report.droppable()
    if not droppable:
        console.print("[green]No DROP files in the report. Nothing to delete.[/]")
        return

    console.print(Panel.fit("[bold red]orphanprune - Delete Unreachable Files[/]"))
    display_deletion_plan(droppable)

    non_interactive = non_interactive or is_ci_environment()
    typed_phrase = None
    if yes and not non_interactive:
        typed_phrase = _ask_confirmation(len(droppable))

    gate = ApplyGate(confirmed=yes, non_interactive=non_interactive, typed_phrase=typed_phrase)
    try:
        results = apply_deletions(path, report, gate)
    except ConfirmationRequired as e:
        _fail(str(e))

    ensure_orphanprune_dir(path)
    deletions_path = get_deletions_path(path)
    write_deletion_results(results, deletions_path)

    _display_deletion_results(results)
    console.print(f"\n[green]Deletion results saved to:[/] {deletions_path}")
    if results.git_commit_before:
        console.print(f"[dim]To undo:[/] git checkout {results.git_commit_before[:12]} -- .")


def _ask_confirmation(count: int) -> str | None:
    """Ask for the typed confirmation phrase; None when stdin is closed."""
    try:
        return Prompt.ask(
            f"\n[bold]Type {CONFIRMATION_PHRASE} to remove {count} files[/]",
            console=console,
        )
    except EOFError:
        return None


def _display_summary(report: Report) -> None:
    """Display report summary."""
    summary = report.summary

    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column("Key", style="cyan")
    table.add_column("Value")

    table.add_row("Candidates", str(summary.candidates))
    table.add_row("Kept", f"[green]{summary.kept}[/]")
    table.add_row("Droppable", f"[red]{summary.droppable}[/]")

    reason_counts = Counter(reason for record in report.records for reason in record.reasons)
    if reason_counts:
        table.add_row("", "")
        table.add_row("By reason:", "")
        for reason, count in sorted(reason_counts.items(), key=lambda item: item[0].value):
            table.add_row(f"  {reason.value}", str(count))

    console.print(Panel(table, title="[bold]Reachability Summary[/]", border_style="blue"))


def _display_trim_results(results: TrimResults) -> None:
    """Display trim entries and counts."""
    if not results.entries:
        console.print("\n[green]No partially used files to trim.[/]")
        return

    display_tree(build_trim_tree(results.entries))

    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column("Key", style="cyan")
    table.add_column("Value")
    table.add_row("Applied", str(results.count(TrimStatus.APPLIED)))
    table.add_row("Dry run", str(results.count(TrimStatus.DRY_RUN)))
    table.add_row("Skipped", str(results.count(TrimStatus.SKIPPED)))
    table.add_row("Files written", str(len(results.files_written)))
    console.print(Panel(table, title="[bold]Trim Summary[/]", border_style="blue"))


def _display_deletion_results(results: DeletionResults) -> None:
    summary = results.summary
    console.print(
        f"\n[bold]Deleted:[/] {summary.applied_count}  "
        f"[bold]Skipped:[/] {summary.skipped_count}  "
        f"[bold]Failed:[/] {summary.failed_count}"
    )
    for item in results.items:
        if item.error:
            style = "red" if item.status is DeletionStatus.FAILED else "yellow"
            console.print(
                f"  [{style}]{item.status.value}[/] {escape(item.file)}: {escape(item.error)}"
            )


if __name__ == "__main__":
    app()
