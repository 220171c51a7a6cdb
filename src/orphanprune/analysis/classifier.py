"""Reachability classification of candidate files.

Each file starts undecided and collects reasons. Any single reason is
sufficient proof that the file is still in use, so the record is KEEP as soon
as one signal fires and DROP only when none does. All signals are evaluated
for every file, so reference counts and reasons are always complete.
"""

from __future__ import annotations

import fnmatch
import logging
from typing import TYPE_CHECKING

from orphanprune.analysis.index import ALL_NAMES, EdgeKind
from orphanprune.config import get_route_basenames, get_route_directories
from orphanprune.models.classification import ClassificationRecord, ExportRef, Reason

if TYPE_CHECKING:
    from orphanprune.context import AnalysisContext

logger = logging.getLogger(__name__)


def is_allowlisted(path: str, allowlist: list[str]) -> bool:
    """Exact path match or fnmatch-style glob match."""
    return any(path == entry or fnmatch.fnmatchcase(path, entry) for entry in allowlist)


def is_route_file(path: str, directories: list[str], basenames: list[str]) -> bool:
    """A reserved basename somewhere below a route directory segment."""
    *dirs, filename = path.split("/")
    stem = filename.split(".", 1)[0]
    return stem in basenames and any(segment in directories for segment in dirs)


class ReachabilityClassifier:
    """Applies every reachability signal to every indexed candidate."""

    def __init__(self, context: AnalysisContext) -> None:
        self.context = context
        self.index = context.index
        self.route_directories = get_route_directories(context.config)
        self.route_basenames = get_route_basenames(context.config)

    def classify_all(self) -> list[ClassificationRecord]:
        """Classify all candidates; records are returned sorted by path."""
        paths = sorted(self.index.paths)
        refs = self.context.scanner.export_refs_many(paths)
        dynamic_targets = self.index.dynamic_import_targets()
        return [self.classify(path, refs[path], dynamic_targets) for path in paths]

    def classify(
        self,
        path: str,
        export_refs: list[ExportRef],
        dynamic_targets: set[str],
    ) -> ClassificationRecord:
        candidate = self.index.get(path)
        record = ClassificationRecord(
            path=path,
            export_refs=export_refs,
            importers=self.index.importers_of(path),
        )

        if candidate is not None and candidate.parse_error:
            record.notes.append(
                f"parse failed, classified by path and importers only: {candidate.parse_error}"
            )

        if is_allowlisted(path, self.context.allowlist):
            record.add_reason(Reason.ALLOWLIST)

        if is_route_file(path, self.route_directories, self.route_basenames):
            record.add_reason(Reason.ROUTE_CONVENTION)

        has_dynamic = candidate is not None and bool(candidate.declarations.dynamic_imports)
        if has_dynamic or path in dynamic_targets:
            record.add_reason(Reason.DYNAMIC_IMPORT_TARGET)

        if self._is_used_barrel(path):
            record.add_reason(Reason.BARREL_REEXPORTED_AND_USED)

        if any(ref.refs > 0 for ref in export_refs):
            record.add_reason(Reason.EXPORT_REFERENCED_ELSEWHERE)

        unlisted = self._imported_names(path) - {ref.export for ref in export_refs}
        if unlisted:
            record.notes.append(
                "imported but not among parsed exports: " + ", ".join(sorted(unlisted))
            )
            record.add_reason(Reason.EXPORT_REFERENCED_ELSEWHERE)

        if self.context.corpus.mentions(path):
            record.add_reason(Reason.TEXT_REFERENCED_IN_DOCS_OR_TESTS)

        if self.index.edges_to(path, EdgeKind.SIDE_EFFECT):
            record.add_reason(Reason.SIDE_EFFECT_IMPORT)

        logger.debug(
            "%s: %s %s",
            path,
            record.status.value,
            ",".join(r.value for r in record.reasons) or "-",
        )
        return record

    def _imported_names(self, path: str) -> set[str]:
        """Names other candidates import from ``path`` by name."""
        return {
            name
            for edge in self.index.edges_to(path, EdgeKind.STATIC)
            for name in edge.names
            if name != ALL_NAMES
        }

    def _is_used_barrel(self, path: str) -> bool:
        candidate = self.index.get(path)
        if candidate is None or not candidate.is_barrel:
            return False
        if not self.index.exported_names(path):
            return False
        return bool(self.index.edges_to(path, EdgeKind.STATIC, EdgeKind.SIDE_EFFECT))
