"""Per-run analysis context.

Everything one run needs (configuration, resolver and its memo, the module
index, the reference scanner and the write locks) lives on one object that is
built once and passed explicitly.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path

from orphanprune.analysis.aliases import AliasResolver, load_alias_table
from orphanprune.analysis.index import ModuleIndex
from orphanprune.analysis.references import ReferenceCorpus, ReferenceScanner
from orphanprune.config import (
    get_allowlist,
    get_analysis_excludes,
    get_extensions,
    get_reference_dirs,
    get_tsconfig_path,
    get_workers,
    resolve_config,
    should_skip_index_barrels,
)
from orphanprune.exclusion import FileExcluder, SourceTree

logger = logging.getLogger(__name__)


class LockRegistry:
    """One lock per project-relative path, created on first use."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[str, threading.Lock] = {}

    def lock_for(self, path: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(path)
            if lock is None:
                lock = self._locks[path] = threading.Lock()
            return lock


@dataclass
class AnalysisContext:
    project_root: Path
    config: dict
    allowlist: list[str]
    excluder: FileExcluder
    source_tree: SourceTree
    resolver: AliasResolver
    index: ModuleIndex
    scanner: ReferenceScanner
    corpus: ReferenceCorpus
    workers: int | None = None
    locks: LockRegistry = field(default_factory=LockRegistry)


def build_context(
    project_root: Path,
    config_path: Path | None = None,
    tsconfig: str | Path | None = None,
    allow: Iterable[str] = (),
    include_ignored: bool = False,
    workers: int | None = None,
) -> AnalysisContext:
    """Load configuration and index the project.

    Raises:
        ConfigurationError: The root, an explicit config file or the alias
            table is missing or malformed.
    """
    project_root = project_root.resolve()
    config = resolve_config(project_root, config_path)

    allowlist = list(dict.fromkeys([*get_allowlist(config), *allow]))
    workers = workers if workers is not None else get_workers(config)
    extensions = get_extensions(config)

    table = load_alias_table(project_root, tsconfig or get_tsconfig_path(config))
    resolver = AliasResolver(project_root=project_root, table=table, extensions=extensions)

    excluder = FileExcluder(
        project_root,
        include_ignored=include_ignored,
        extra_excludes=get_analysis_excludes(config),
    )
    source_tree = SourceTree(
        project_root,
        excluder,
        extensions,
        skip_index_barrels=should_skip_index_barrels(config),
    )

    index = ModuleIndex.build(project_root, source_tree, resolver, workers=workers)
    logger.info("Indexed %d candidate files under %s", len(index), project_root)

    return AnalysisContext(
        project_root=project_root,
        config=config,
        allowlist=allowlist,
        excluder=excluder,
        source_tree=source_tree,
        resolver=resolver,
        index=index,
        scanner=ReferenceScanner(index, workers=workers),
        corpus=ReferenceCorpus.load(project_root, get_reference_dirs(config), excluder),
        workers=workers,
    )
