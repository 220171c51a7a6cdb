"""Rich tree visualization for classification results."""

from pathlib import PurePosixPath

from rich.console import Console
from rich.text import Text
from rich.tree import Tree

from orphanprune.models.classification import ClassificationRecord, Status
from orphanprune.models.trim import TrimEntry, TrimStatus

console = Console()

_TRIM_STYLES = {
    TrimStatus.APPLIED: "green",
    TrimStatus.DRY_RUN: "yellow",
    TrimStatus.SKIPPED: "dim",
}


def build_report_tree(
    records: list[ClassificationRecord],
    project_name: str,
    verbose: bool = False,
) -> Tree:
    """Build a Rich tree showing classified files by directory."""
    root = Tree(f"[bold]{project_name}[/]", guide_style="dim")

    # Track directories we've added
    dir_nodes: dict[PurePosixPath, Tree] = {}

    for record in sorted(records, key=lambda r: r.path):
        file_path = PurePosixPath(record.path)

        # Create directory nodes as needed
        parent = root
        for i, part in enumerate(file_path.parts[:-1]):
            dir_path = PurePosixPath(*file_path.parts[: i + 1])
            if dir_path not in dir_nodes:
                dir_nodes[dir_path] = parent.add(Text(f"{part}/", style="bold blue"))
            parent = dir_nodes[dir_path]

        file_node = parent.add(_record_label(record, file_path.name))

        if verbose:
            for ref in record.export_refs:
                ref_text = Text(ref.export, style="green" if ref.refs else "red")
                ref_text.append(f" ({ref.refs} refs)", style="dim")
                file_node.add(ref_text)
            for note in record.notes:
                file_node.add(Text(f"! {note}", style="yellow"))

    return root


def _record_label(record: ClassificationRecord, name: str) -> Text:
    label = Text()
    if record.status is Status.DROP:
        label.append("x ", style="red bold")
        label.append(name, style="red")
        return label

    label.append(name, style="green")
    reasons = ", ".join(reason.value for reason in record.reasons)
    label.append(f" ({reasons})", style="dim")
    return label


def build_trim_tree(entries: list[TrimEntry], title: str = "Trim Results") -> Tree:
    """Build a tree of trim entries grouped by file."""
    root = Tree(f"[bold]{title}[/]", guide_style="dim")
    file_nodes: dict[str, Tree] = {}

    for entry in entries:
        if entry.file not in file_nodes:
            file_nodes[entry.file] = root.add(Text(entry.file, style="yellow"))

        text = Text()
        text.append(entry.name, style=_TRIM_STYLES[entry.status])
        detail = entry.action.value if entry.action else entry.reason
        text.append(f" [{entry.status.value}: {detail}]", style="dim")
        file_nodes[entry.file].add(text)

    return root


def display_tree(tree: Tree) -> None:
    """Display the tree to console."""
    console.print()
    console.print(tree)
    console.print()
