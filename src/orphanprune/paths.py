"""Path normalization and centralized locations for orphanprune output files."""

import posixpath
from pathlib import Path, PurePath

# Directory name for orphanprune outputs
ORPHANPRUNE_DIR = ".orphanprune"

# File names within the .orphanprune directory
CONFIG_FILE = "config.json"
REPORT_FILE = "report.json"
TRIMS_FILE = "trims.json"
DELETIONS_FILE = "deletions.json"
BACKUPS_DIR = "backups"


def normalize_posix(path: str | PurePath) -> str:
    """Normalize separators to "/" and drop a leading "./".

    ``"src\\\\lib\\\\a.ts"``, ``"./src/lib/a.ts"`` and ``"src/lib/a.ts"`` all
    normalize to ``"src/lib/a.ts"``.
    """
    text = str(path).replace("\\", "/")
    while text.startswith("./"):
        text = text[2:]
    if not text:
        return ""
    normalized = posixpath.normpath(text)
    return "" if normalized == "." else normalized


def to_project_relative(path: str | PurePath, project_root: Path) -> str | None:
    """Convert an absolute or relative path into the project-relative form.

    Returns None when the path lies outside the project root.
    """
    candidate = Path(path)
    if not candidate.is_absolute():
        rel = normalize_posix(candidate)
        return None if rel == ".." or rel.startswith("../") else rel

    try:
        rel_path = candidate.resolve().relative_to(project_root.resolve())
    except ValueError:
        return None
    return normalize_posix(rel_path.as_posix())


def parent_dir(rel_path: str) -> str:
    """Directory part of a project-relative path ("" for root-level files)."""
    return posixpath.dirname(rel_path)


def join_relative(base_dir: str, specifier: str) -> str | None:
    """Join a relative specifier onto a project-relative directory.

    Returns None when the result escapes the project root.
    """
    joined = normalize_posix(posixpath.join(base_dir, specifier) if base_dir else specifier)
    if joined == ".." or joined.startswith("../") or joined.startswith("/"):
        return None
    return joined


def get_orphanprune_dir(project_path: Path) -> Path:
    """Get the .orphanprune directory path for a project."""
    return project_path / ORPHANPRUNE_DIR


def ensure_orphanprune_dir(project_path: Path) -> Path:
    """Ensure .orphanprune directory exists and return its path."""
    output_dir = get_orphanprune_dir(project_path)
    output_dir.mkdir(parents=True, exist_ok=True)
    return output_dir


def get_config_path(project_path: Path) -> Path:
    """Get the config.json path for a project."""
    return get_orphanprune_dir(project_path) / CONFIG_FILE


def get_report_path(project_path: Path) -> Path:
    """Get the report.json path for a project."""
    return get_orphanprune_dir(project_path) / REPORT_FILE


def get_trims_path(project_path: Path) -> Path:
    """Get the trims.json path for a project."""
    return get_orphanprune_dir(project_path) / TRIMS_FILE


def get_deletions_path(project_path: Path) -> Path:
    """Get the deletions.json path for a project."""
    return get_orphanprune_dir(project_path) / DELETIONS_FILE


def get_backup_dir(project_path: Path, run_id: str) -> Path:
    """Get the snapshot directory for one trimming run."""
    return get_orphanprune_dir(project_path) / BACKUPS_DIR / run_id
