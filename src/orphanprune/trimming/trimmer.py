"""Usage-aware removal of unused exports from partially used files."""

from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING

from orphanprune.analysis.parser import parse_module
from orphanprune.config import TRIM_MODES
from orphanprune.errors import ModuleParseError
from orphanprune.exclusion import is_protected_path
from orphanprune.models.classification import ClassificationRecord, Reason, Status
from orphanprune.models.module import ModuleDeclarations
from orphanprune.models.report import Report
from orphanprune.models.trim import SkipReason, TrimAction, TrimEntry, TrimResults, TrimStatus
from orphanprune.paths import get_backup_dir
from orphanprune.trimming.edits import (
    delete_declaration,
    is_used_locally,
    rewrite_export_list,
    strip_export_qualifier,
)

if TYPE_CHECKING:
    from orphanprune.context import AnalysisContext

logger = logging.getLogger(__name__)


@dataclass
class TrimOptions:
    """Options for a trimming run."""

    write: bool = False  # dry-run unless set
    mode: str = "strip"
    backup: bool = True

    def __post_init__(self) -> None:
        if self.mode not in TRIM_MODES:
            raise ValueError(f"mode must be one of {TRIM_MODES}, got {self.mode!r}")


def trim_targets(report: Report) -> list[ClassificationRecord]:
    """KEEP records kept by export references that also have unreferenced exports."""
    return [
        record
        for record in report.records
        if record.status is Status.KEEP
        and Reason.EXPORT_REFERENCED_ELSEWHERE in record.reasons
        and record.has_partial_usage
    ]


class ExportTrimmer:
    """Removes unreferenced exports, re-checking every name before editing.

    Edited texts are held in an in-memory working copy for the whole pass, so
    re-checks see earlier edits. Nothing reaches disk unless ``write`` is set;
    each written file is snapshotted first.
    """

    def __init__(
        self,
        context: AnalysisContext,
        options: TrimOptions | None = None,
        run_id: str | None = None,
    ) -> None:
        self.context = context
        self.options = options or TrimOptions()
        self.run_id = run_id or datetime.now().strftime("%Y%m%d-%H%M%S")
        self._working: dict[str, str] = {}
        self._original: dict[str, str] = {}
        self._recheck_paths: list[str] | None = None

    def read(self, path: str) -> str:
        """Current text of a file: the working copy if edited, else disk."""
        if path in self._working:
            return self._working[path]
        try:
            return (self.context.project_root / path).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.debug("Could not read %s for re-check: %s", path, e)
            return ""

    def recheck_paths(self) -> list[str]:
        """Files searched at mutation time: a fresh walk plus the working copy.

        Files created after indexing are included.
        """
        if self._recheck_paths is None:
            self._recheck_paths = sorted(set(self.context.source_tree) | set(self._working))
        return self._recheck_paths

    def trim(self, report: Report) -> TrimResults:
        results = TrimResults(
            metadata={
                "project": self.context.project_root.name,
                "trimmed_at": datetime.now().isoformat(),
                "run_id": self.run_id,
                "mode": self.options.mode,
                "write": self.options.write,
            }
        )
        self._recheck_paths = None

        for record in trim_targets(report):
            results.entries.extend(self.trim_file(record))

        if self.options.write:
            self._flush(results)
        return results

    def trim_file(self, record: ClassificationRecord) -> list[TrimEntry]:
        """Process every unused export of one file, in file order."""
        path = record.path
        if is_protected_path(path):
            return [
                TrimEntry(path, name, TrimStatus.SKIPPED, reason=SkipReason.PROTECTED_DIR)
                for name in record.unused_exports
            ]

        entries: list[TrimEntry] = []
        with self.context.locks.lock_for(path):
            for name in record.unused_exports:
                entries.append(self._trim_name(path, name))
        return entries

    def _trim_name(self, path: str, name: str) -> TrimEntry:
        if name in self.context.allowlist:
            return TrimEntry(path, name, TrimStatus.SKIPPED, reason=SkipReason.PROTECTED_NAME)
        if name == "default":
            return TrimEntry(path, name, TrimStatus.SKIPPED, reason=SkipReason.DEFAULT_EXPORT)

        providers = self.context.index.export_providers(path).get(name, frozenset())
        refs = self.context.scanner.count(
            name, path, providers, read=self.read, paths=self.recheck_paths()
        )
        if refs > 0:
            logger.info("Skipping %s in %s: gained %d reference(s)", name, path, refs)
            return TrimEntry(
                path, name, TrimStatus.SKIPPED, reason=SkipReason.STILL_REFERENCED, refs=refs
            )

        text = self.read(path)
        try:
            decls = parse_module(text)
        except ModuleParseError as e:
            logger.warning("Cannot trim %s: %s", path, e)
            return TrimEntry(path, name, TrimStatus.SKIPPED, reason=SkipReason.PARSE_ERROR)

        edited = self._edit(text, decls, name)
        if isinstance(edited, str):
            return TrimEntry(path, name, TrimStatus.SKIPPED, reason=edited)

        new_text, action = edited
        self._original.setdefault(path, text)
        self._working[path] = new_text
        status = TrimStatus.APPLIED if self.options.write else TrimStatus.DRY_RUN
        logger.debug("%s %s from %s (%s)", status.value, name, path, action.value)
        return TrimEntry(path, name, status, action=action)

    def _edit(
        self, text: str, decls: ModuleDeclarations, name: str
    ) -> tuple[str, TrimAction] | str:
        """Edited text and the action taken, or a skip reason."""
        for reexport in decls.reexports:
            if reexport.namespace or reexport.wildcard:
                continue
            if any(e.exported_as == name for e in reexport.entries):
                kept = [e for e in reexport.entries if e.exported_as != name]
                return (
                    rewrite_export_list(text, reexport.start, reexport.end, kept),
                    TrimAction.REEXPORT_LIST,
                )

        for local in decls.local_exports:
            if any(e.exported_as == name for e in local.entries):
                kept = [e for e in local.entries if e.exported_as != name]
                return (
                    rewrite_export_list(text, local.start, local.end, kept),
                    TrimAction.LOCAL_EXPORT_LIST,
                )

        for decl in decls.declarations:
            if decl.name != name:
                continue
            if any(o.start == decl.start and o.name != name for o in decls.declarations):
                return SkipReason.SHARED_DECLARATION
            if self.options.mode == "delete" and not is_used_locally(text, decl):
                return delete_declaration(text, decl), TrimAction.DECLARATION_DELETE
            return strip_export_qualifier(text, decl), TrimAction.DECLARATION_STRIP

        if any(r.wildcard for r in decls.reexports):
            return SkipReason.WILDCARD
        return SkipReason.NOT_FOUND

    def _flush(self, results: TrimResults) -> None:
        """Snapshot and write every file whose working copy changed."""
        backup_dir = get_backup_dir(self.context.project_root, self.run_id)
        for path in sorted(self._working):
            new_text = self._working[path]
            if new_text == self._original.get(path):
                continue
            target = self.context.project_root / path
            with self.context.locks.lock_for(path):
                if self.options.backup:
                    snapshot = backup_dir / path
                    snapshot.parent.mkdir(parents=True, exist_ok=True)
                    shutil.copy2(target, snapshot)
                    rel_snapshot = snapshot.relative_to(self.context.project_root)
                    results.backups[path] = rel_snapshot.as_posix()
                target.write_text(new_text, encoding="utf-8")
            results.files_written.append(path)
            logger.info("Trimmed %s", path)
