"""Per-run index of candidate modules and the importer graph between them."""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Callable, Iterable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from orphanprune.analysis.aliases import AliasResolver
from orphanprune.analysis.parser import FailedModule, ParseOutcome, parse_file
from orphanprune.models.module import CandidateFile
from orphanprune.paths import parent_dir

logger = logging.getLogger(__name__)

# Names bound by an edge that pulls in every export (namespace import, wildcard)
ALL_NAMES = "*"


class EdgeKind(Enum):
    """How one candidate reaches another."""

    STATIC = "static"
    SIDE_EFFECT = "side_effect"
    DYNAMIC = "dynamic"
    REEXPORT = "reexport"


@dataclass(frozen=True)
class ImportEdge:
    """A resolved import, re-export or dynamic import between two files."""

    importer: str
    target: str
    kind: EdgeKind
    names: tuple[str, ...] = ()

    @property
    def binds_default(self) -> bool:
        return self.kind is EdgeKind.DYNAMIC or "default" in self.names


def _edges_for(
    candidate: CandidateFile,
    resolve: Callable[[str, str], str | None],
) -> list[ImportEdge]:
    decls = candidate.declarations
    base_dir = parent_dir(candidate.path)
    edges: list[ImportEdge] = []

    def add(specifier: str, kind: EdgeKind, names: Iterable[str]) -> None:
        target = resolve(specifier, base_dir)
        if target is None or target == candidate.path:
            return
        edges.append(ImportEdge(candidate.path, target, kind, tuple(names)))

    for imp in decls.imports:
        if imp.side_effect:
            add(imp.specifier, EdgeKind.SIDE_EFFECT, ())
            continue
        names = imp.imported_names
        if imp.namespace:
            names.append(ALL_NAMES)
        add(imp.specifier, EdgeKind.STATIC, names)

    for reexport in decls.reexports:
        if reexport.wildcard or reexport.namespace:
            add(reexport.specifier, EdgeKind.REEXPORT, (ALL_NAMES,))
        else:
            add(reexport.specifier, EdgeKind.REEXPORT, (e.name for e in reexport.entries))

    for specifier in decls.dynamic_imports:
        add(specifier, EdgeKind.DYNAMIC, (ALL_NAMES,))

    return edges


class ModuleIndex:
    """Parsed candidates plus resolved edges, built once per analysis run.

    The index is immutable after ``build``; classification only reads it.
    """

    def __init__(
        self,
        files: dict[str, CandidateFile],
        edges: list[ImportEdge],
        resolver: AliasResolver,
    ) -> None:
        self.files = files
        self.edges = edges
        self.resolver = resolver
        self._incoming: dict[str, list[ImportEdge]] = defaultdict(list)
        for edge in edges:
            self._incoming[edge.target].append(edge)
        self._providers: dict[str, dict[str, frozenset[str]]] = {}

    @classmethod
    def build(
        cls,
        project_root: Path,
        paths: Iterable[str],
        resolver: AliasResolver,
        workers: int | None = None,
    ) -> ModuleIndex:
        """Parse every candidate and resolve its edges.

        Parsing fans out over a thread pool; ``workers=1`` runs sequentially.
        Results keep the input order regardless of completion order.
        """
        ordered = sorted(paths)
        resolver.known_files = frozenset(ordered)

        def load(rel_path: str) -> ParseOutcome:
            return parse_file(project_root / rel_path, rel_path)

        if workers == 1:
            outcomes = [load(p) for p in ordered]
        else:
            with ThreadPoolExecutor(max_workers=workers) as executor:
                outcomes = list(executor.map(load, ordered))

        files: dict[str, CandidateFile] = {}
        for outcome in outcomes:
            if isinstance(outcome, FailedModule):
                logger.warning("Skipping declarations of %s: %s", outcome.path, outcome.error)
                files[outcome.path] = CandidateFile(
                    path=outcome.path, text=outcome.text, parse_error=outcome.error
                )
            else:
                files[outcome.path] = CandidateFile(
                    path=outcome.path, text=outcome.text, declarations=outcome.declarations
                )

        edges: list[ImportEdge] = []
        for candidate in files.values():
            edges.extend(_edges_for(candidate, resolver.resolve))

        logger.debug(
            "Indexed %d files, %d edges, %d cached resolutions",
            len(files),
            len(edges),
            resolver.cache_size,
        )
        return cls(files, edges, resolver)

    def __contains__(self, path: str) -> bool:
        return path in self.files

    def __len__(self) -> int:
        return len(self.files)

    @property
    def paths(self) -> list[str]:
        return list(self.files)

    def get(self, path: str) -> CandidateFile | None:
        return self.files.get(path)

    def resolve_from(self, path: str, specifier: str) -> str | None:
        """Resolve a specifier written in ``path``."""
        return self.resolver.resolve(specifier, parent_dir(path))

    def edges_to(self, path: str, *kinds: EdgeKind) -> list[ImportEdge]:
        """Incoming edges from other candidates, optionally filtered by kind."""
        edges = [e for e in self._incoming.get(path, []) if e.importer in self.files]
        if kinds:
            edges = [e for e in edges if e.kind in kinds]
        return edges

    def importers_of(self, path: str) -> list[str]:
        """Sorted candidates whose imports, re-exports or dynamic imports reach ``path``."""
        return sorted({e.importer for e in self.edges_to(path)})

    def dynamic_import_targets(self) -> set[str]:
        return {e.target for e in self.edges if e.kind is EdgeKind.DYNAMIC}

    def export_providers(self, path: str) -> dict[str, frozenset[str]]:
        """Exported names of ``path`` mapped to the files that supply them.

        Own declarations map to an empty set. Re-exported names map to the
        re-export chain they come through, so those files can be left out of
        reference counts. Wildcard re-exports are expanded recursively
        (excluding ``default``); cycles stop expansion.
        """
        cached = self._providers.get(path)
        if cached is None:
            cached = self._collect_providers(path, frozenset())
            self._providers[path] = cached
        return cached

    def exported_names(self, path: str) -> list[str]:
        return list(self.export_providers(path))

    def _collect_providers(self, path: str, seen: frozenset[str]) -> dict[str, frozenset[str]]:
        candidate = self.files.get(path)
        if candidate is None or path in seen:
            return {}
        seen = seen | {path}
        decls = candidate.declarations
        providers: dict[str, frozenset[str]] = {}

        for decl in decls.declarations:
            providers.setdefault(decl.name, frozenset())
        for local in decls.local_exports:
            for entry in local.entries:
                providers.setdefault(entry.exported_as, frozenset())

        for reexport in decls.reexports:
            target = self.resolve_from(path, reexport.specifier)
            chain = frozenset({target}) if target else frozenset()
            if reexport.namespace:
                providers.setdefault(reexport.namespace, chain)
                continue
            upstream = self._collect_providers(target, seen) if target else {}
            if reexport.wildcard:
                for name, origin in upstream.items():
                    if name != "default":
                        providers.setdefault(name, chain | origin)
                continue
            for entry in reexport.entries:
                providers.setdefault(
                    entry.exported_as, chain | upstream.get(entry.name, frozenset())
                )

        return providers
