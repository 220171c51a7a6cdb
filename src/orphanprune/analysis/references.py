"""Whole-token reference counting and documentation path mentions."""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Iterable
from concurrent.futures import ThreadPoolExecutor
from functools import lru_cache
from pathlib import Path

from orphanprune.analysis.index import ModuleIndex
from orphanprune.exclusion import FileExcluder, SourceTree
from orphanprune.models.classification import ExportRef
from orphanprune.paths import normalize_posix

logger = logging.getLogger(__name__)

TextReader = Callable[[str], str]


@lru_cache(maxsize=4096)
def token_pattern(name: str) -> re.Pattern:
    """Match ``name`` only where it is a whole JS identifier."""
    return re.compile(rf"(?<![A-Za-z0-9_$]){re.escape(name)}(?![A-Za-z0-9_$])")


def count_tokens(name: str, text: str) -> int:
    if name not in text:
        return 0
    return len(token_pattern(name).findall(text))


class ReferenceScanner:
    """Counts how often exported names occur outside their declaring file.

    Counting is textual over the raw text of every other candidate, so
    mentions in comments and strings count. ``default`` is counted from the
    import graph instead, because the word itself says nothing about usage.
    """

    def __init__(self, index: ModuleIndex, workers: int | None = None) -> None:
        self.index = index
        self.workers = workers

    def indexed_text(self, path: str) -> str:
        candidate = self.index.get(path)
        return candidate.text if candidate else ""

    def count(
        self,
        name: str,
        owner: str,
        exclude: Iterable[str] = (),
        read: TextReader | None = None,
        paths: Iterable[str] | None = None,
    ) -> int:
        """References to ``name`` exported by ``owner``.

        ``read`` supplies file text; the default is the text captured when
        the index was built. ``paths`` are the files searched, by default
        the indexed ones; files in ``exclude`` are not searched.
        """
        if name == "default":
            return self.count_default(owner)

        read = read or self.indexed_text
        skipped = set(exclude)
        skipped.add(owner)
        return sum(
            count_tokens(name, read(path))
            for path in (self.index.paths if paths is None else paths)
            if path not in skipped
        )

    def count_default(self, owner: str) -> int:
        """Other candidates' imports, re-exports and dynamic imports binding the default export."""
        return sum(1 for edge in self.index.edges_to(owner) if edge.binds_default)

    def export_refs_many(self, paths: Iterable[str]) -> dict[str, list[ExportRef]]:
        """Reference counts for every exported name of every file in ``paths``.

        Per-name counts fan out over a thread pool; results come back in
        declaration order per file.
        """
        jobs: list[tuple[str, str, frozenset[str]]] = []
        results: dict[str, list[ExportRef]] = {}
        for path in paths:
            results[path] = []
            for name, providers in self.index.export_providers(path).items():
                jobs.append((path, name, providers))

        def run(job: tuple[str, str, frozenset[str]]) -> int:
            path, name, providers = job
            return self.count(name, path, providers)

        if self.workers == 1:
            counts = [run(job) for job in jobs]
        else:
            with ThreadPoolExecutor(max_workers=self.workers) as executor:
                counts = list(executor.map(run, jobs))

        for (path, name, _providers), refs in zip(jobs, counts):
            results[path].append(ExportRef(export=name, refs=refs))
        return results


class ReferenceCorpus:
    """Text of documentation, test and tooling files, searched for path mentions."""

    def __init__(self, texts: dict[str, str]) -> None:
        self.texts = texts

    @classmethod
    def load(
        cls,
        project_root: Path,
        directories: Iterable[str],
        excluder: FileExcluder,
    ) -> ReferenceCorpus:
        texts: dict[str, str] = {}
        for directory in directories:
            rel_root = normalize_posix(directory)
            top = project_root / rel_root
            if not rel_root or not top.is_dir():
                continue
            for rel in SourceTree(project_root, excluder, [], subdir=rel_root):
                text = _read_text_file(project_root / rel)
                if text is not None:
                    texts[rel] = text
        logger.debug("Loaded %d reference files", len(texts))
        return cls(texts)

    def mentions(self, path: str) -> list[str]:
        """Reference files that contain ``path`` verbatim, excluding the file itself."""
        return sorted(rel for rel, text in self.texts.items() if rel != path and path in text)


def _read_text_file(file_path: Path) -> str | None:
    """Read a file as text, or None for unreadable and binary files."""
    try:
        data = file_path.read_bytes()
    except OSError as e:
        logger.debug("Could not read %s: %s", file_path, e)
        return None
    if b"\x00" in data:
        return None
    return data.decode("utf-8", errors="replace")
