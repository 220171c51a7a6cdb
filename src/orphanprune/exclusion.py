"""Centralized file exclusion and candidate discovery for orphanprune.

Handles default patterns, .gitignore patterns and config excludes using the
pathspec library for proper gitignore-style matching.
"""

import os
from collections.abc import Iterator
from dataclasses import dataclass, field
from pathlib import Path

import pathspec

from orphanprune.paths import normalize_posix


@dataclass
class ExclusionConfig:
    """Configuration for file exclusion."""

    gitignore_patterns: list[str] = field(default_factory=list)
    extra_patterns: list[str] = field(default_factory=list)
    default_patterns: list[str] = field(default_factory=list)
    sources: list[str] = field(default_factory=list)


# Build output, dependencies and tool state: never candidates
DEFAULT_EXCLUDES = [
    "node_modules",
    ".next",
    ".turbo",
    "dist",
    "build",
    "coverage",
    "reports",
    "cache",
    ".git",
    ".orphanprune",
    "*.d.ts",
]

# Directories the trimmer and the apply step never touch
PROTECTED_DIRS = [
    "node_modules",
    ".next",
    ".turbo",
    "dist",
    "build",
    "coverage",
    ".git",
    ".orphanprune",
    "generated",
    "__generated__",
    "vendor",
]


class FileExcluder:
    """Handles file exclusion with gitignore-style pattern matching."""

    def __init__(
        self,
        project_root: Path,
        include_ignored: bool = False,
        extra_excludes: list[str] | None = None,
    ) -> None:
        """Initialize the file excluder.

        Args:
            project_root: Root directory of the project.
            include_ignored: If True, skip .gitignore and extra patterns.
                The default patterns always apply.
            extra_excludes: Additional patterns to exclude.
        """
        self.project_root = project_root
        self.include_ignored = include_ignored
        self._config = ExclusionConfig()

        self._config.default_patterns = list(DEFAULT_EXCLUDES)
        self._config.sources.append("defaults")
        if not include_ignored:
            self._load_gitignore()
            if extra_excludes:
                self._config.extra_patterns = list(extra_excludes)
                self._config.sources.append("config")

        self._default_spec = pathspec.PathSpec.from_lines(
            "gitwildmatch", self._config.default_patterns
        )
        self._spec = pathspec.PathSpec.from_lines(
            "gitwildmatch",
            self._config.gitignore_patterns + self._config.extra_patterns,
        )

    def _load_gitignore(self) -> None:
        """Load .gitignore patterns."""
        gitignore_path = self.project_root / ".gitignore"
        if not gitignore_path.is_file():
            return

        content = gitignore_path.read_text(encoding="utf-8", errors="replace")
        self._config.gitignore_patterns = [
            line.strip()
            for line in content.splitlines()
            if line.strip() and not line.startswith("#")
        ]
        self._config.sources.append(str(gitignore_path))

    def should_exclude(self, file_path: Path | str) -> bool:
        """Check if a file should be excluded.

        Accepts absolute paths or paths relative to the project root.
        """
        rel = self._relative(file_path)
        if rel is None:
            return False
        return self._matches(self._default_spec, rel) or self._matches(self._spec, rel)

    def is_excluded_dir(self, rel_dir: str) -> bool:
        """Check a project-relative directory, for pruning during traversal."""
        return self._matches(self._default_spec, rel_dir + "/") or self._matches(
            self._spec, rel_dir + "/"
        )

    def _relative(self, file_path: Path | str) -> str | None:
        path = Path(file_path)
        if path.is_absolute():
            try:
                path = path.relative_to(self.project_root)
            except ValueError:
                return None
        return normalize_posix(path.as_posix())

    @staticmethod
    def _matches(spec: pathspec.PathSpec, rel: str) -> bool:
        if spec.match_file(rel):
            return True
        # Also check each directory component, so "dist" matches "dist/a.js"
        parts = rel.rstrip("/").split("/")
        return any(spec.match_file(part) for part in parts[:-1])

    @property
    def sources(self) -> list[str]:
        """Return list of pattern sources used."""
        return self._config.sources

    @property
    def patterns(self) -> list[str]:
        """Return all loaded patterns (for debugging)."""
        return (
            self._config.default_patterns
            + self._config.gitignore_patterns
            + self._config.extra_patterns
        )


def is_protected_path(rel_path: str) -> bool:
    """True when a project-relative path sits under a generated/dependency dir."""
    parts = normalize_posix(rel_path).split("/")[:-1]
    return any(part in PROTECTED_DIRS for part in parts)


class SourceTree:
    """Lazy, restartable iteration over candidate source files.

    Each ``iter()`` walks the directory tree afresh, pruning excluded
    directories before descending into them, and yields project-relative
    POSIX paths in sorted order. ``subdir`` limits the walk to one directory
    below the root; empty ``extensions`` accept every file.
    """

    def __init__(
        self,
        project_root: Path,
        excluder: FileExcluder,
        extensions: list[str],
        skip_index_barrels: bool = False,
        subdir: str = "",
    ) -> None:
        self.project_root = project_root
        self.excluder = excluder
        self.extensions = tuple(extensions)
        self.skip_index_barrels = skip_index_barrels
        self.subdir = normalize_posix(subdir)

    def __iter__(self) -> Iterator[str]:
        for dirpath, dirnames, filenames in os.walk(self.project_root / self.subdir):
            rel_dir = normalize_posix(os.path.relpath(dirpath, self.project_root))
            # Prune in place so os.walk never descends into excluded dirs
            dirnames[:] = sorted(
                d
                for d in dirnames
                if not self.excluder.is_excluded_dir(f"{rel_dir}/{d}" if rel_dir else d)
            )
            for name in sorted(filenames):
                if self.extensions and not name.endswith(self.extensions):
                    continue
                if self.skip_index_barrels and name.split(".", 1)[0] == "index":
                    continue
                rel = f"{rel_dir}/{name}" if rel_dir else name
                if self.excluder.should_exclude(rel):
                    continue
                yield rel

    def files(self) -> list[str]:
        """Materialize the walk as a sorted list."""
        return sorted(self)
