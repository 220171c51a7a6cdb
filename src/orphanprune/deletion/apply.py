"""Gated deletion of DROP files from an analysis report."""

import logging
import os
import subprocess
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from orphanprune.errors import ConfirmationRequired
from orphanprune.exclusion import is_protected_path
from orphanprune.models.classification import ClassificationRecord
from orphanprune.models.deletion import DeletionItem, DeletionResults, DeletionStatus
from orphanprune.models.report import Report
from orphanprune.paths import to_project_relative

console = Console()
logger = logging.getLogger(__name__)

# Phrase an interactive user must type to confirm deletion
CONFIRMATION_PHRASE = "DELETE"


@dataclass
class ApplyGate:
    """Two-factor confirmation for destructive runs.

    Deletion needs the explicit confirmation flag and either the trusted
    non-interactive flag or the typed confirmation phrase.
    """

    confirmed: bool = False
    non_interactive: bool = False
    typed_phrase: str | None = None

    @property
    def is_open(self) -> bool:
        if not self.confirmed:
            return False
        return self.non_interactive or self.typed_phrase == CONFIRMATION_PHRASE


def is_ci_environment(environ: dict[str, str] | None = None) -> bool:
    """True when ``CI`` is set to a truthy value."""
    env = os.environ if environ is None else environ
    return env.get("CI", "").strip().lower() in ("1", "true", "yes")


def check_gate(gate: ApplyGate) -> None:
    if gate.is_open:
        return
    if not gate.confirmed:
        raise ConfirmationRequired("Refusing to delete files without --yes")
    raise ConfirmationRequired(
        f"Refusing to delete files: pass --non-interactive or type {CONFIRMATION_PHRASE!r}"
    )


def _get_git_head(project_path: Path) -> str | None:
    """Get the current git HEAD commit hash."""
    try:
        result = subprocess.run(
            ["git", "rev-parse", "HEAD"],
            capture_output=True,
            text=True,
            check=False,
            cwd=project_path,
            timeout=5,
        )
    except (subprocess.TimeoutExpired, FileNotFoundError):
        return None
    if result.returncode == 0:
        return result.stdout.strip()
    return None


def _delete_one(project_root: Path, rel_path: str) -> DeletionItem:
    target = project_root / rel_path
    if to_project_relative(target, project_root) is None:
        return DeletionItem(rel_path, DeletionStatus.SKIPPED, "outside project root")
    if is_protected_path(rel_path):
        return DeletionItem(rel_path, DeletionStatus.SKIPPED, "protected directory")
    if not target.is_file():
        return DeletionItem(rel_path, DeletionStatus.SKIPPED, "file not found")

    try:
        target.unlink()
    except OSError as e:
        logger.error("Failed to delete %s: %s", rel_path, e)
        return DeletionItem(rel_path, DeletionStatus.FAILED, str(e))

    logger.info("Deleted %s", rel_path)
    return DeletionItem(rel_path, DeletionStatus.APPLIED)


def apply_deletions(project_root: Path, report: Report, gate: ApplyGate) -> DeletionResults:
    """Delete every DROP file of ``report``.

    Only the report's already-computed DROP subset is touched. Per-file
    failures are logged and recorded; the batch always runs to the end.

    Raises:
        ConfirmationRequired: The gate is not open.
    """
    check_gate(gate)
    project_root = project_root.resolve()

    results = DeletionResults(
        metadata={
            "project": project_root.name,
            "deleted_at": datetime.now(timezone.utc).isoformat(),
            "mode": "non_interactive" if gate.non_interactive else "typed_confirmation",
        },
        git_commit_before=_get_git_head(project_root),
    )
    for record in report.droppable():
        results.items.append(_delete_one(project_root, record.path))

    summary = results.summary
    logger.info(
        "Deletion finished: %d applied, %d skipped, %d failed",
        summary.applied_count,
        summary.skipped_count,
        summary.failed_count,
    )
    return results


def display_deletion_plan(records: list[ClassificationRecord]) -> None:
    """Display the files an apply run would delete."""
    table = Table(title="Files to Delete")
    table.add_column("File", style="cyan")
    table.add_column("Importers", justify="right")
    table.add_column("Exports", justify="right")

    for record in sorted(records, key=lambda r: r.path):
        table.add_row(
            escape(record.path), str(len(record.importers)), str(len(record.export_refs))
        )

    console.print(table)
    console.print(f"\n[bold]Total:[/] {len(records)} files")
