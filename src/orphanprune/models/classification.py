"""Data models for per-file reachability verdicts."""

from dataclasses import dataclass, field
from enum import Enum


class Status(Enum):
    """Terminal classification of a candidate file."""

    KEEP = "KEEP"
    DROP = "DROP"


class Reason(Enum):
    """Reachability signals. Any one of them is sufficient to keep a file."""

    ALLOWLIST = "ALLOWLIST"
    ROUTE_CONVENTION = "ROUTE_CONVENTION"
    DYNAMIC_IMPORT_TARGET = "DYNAMIC_IMPORT_TARGET"
    BARREL_REEXPORTED_AND_USED = "BARREL_REEXPORTED_AND_USED"
    EXPORT_REFERENCED_ELSEWHERE = "EXPORT_REFERENCED_ELSEWHERE"
    TEXT_REFERENCED_IN_DOCS_OR_TESTS = "TEXT_REFERENCED_IN_DOCS_OR_TESTS"
    SIDE_EFFECT_IMPORT = "SIDE_EFFECT_IMPORT"


@dataclass(frozen=True)
class ExportRef:
    """Reference count for one exported name."""

    export: str
    refs: int

    def to_dict(self) -> dict:
        return {"export": self.export, "refs": self.refs}

    @classmethod
    def from_dict(cls, data: dict) -> "ExportRef":
        return cls(export=data["export"], refs=int(data.get("refs", 0)))


@dataclass
class ClassificationRecord:
    """Verdict for one candidate file.

    The status is derived from the reason set: a record is DROP exactly when
    no reason has been added, and reasons can only be added.
    """

    path: str
    reasons: list[Reason] = field(default_factory=list)
    export_refs: list[ExportRef] = field(default_factory=list)
    importers: list[str] = field(default_factory=list)
    notes: list[str] = field(default_factory=list)

    @property
    def status(self) -> Status:
        return Status.KEEP if self.reasons else Status.DROP

    def add_reason(self, reason: Reason) -> None:
        if reason not in self.reasons:
            self.reasons.append(reason)

    @property
    def unused_exports(self) -> list[str]:
        return [ref.export for ref in self.export_refs if ref.refs == 0]

    @property
    def has_partial_usage(self) -> bool:
        """Some exported names are referenced elsewhere, others are not."""
        used = any(ref.refs > 0 for ref in self.export_refs)
        return used and bool(self.unused_exports)

    def to_dict(self) -> dict:
        result = {
            "path": self.path,
            "status": self.status.value,
            "reasons": [reason.value for reason in self.reasons],
            "exportRefs": [ref.to_dict() for ref in self.export_refs],
            "importers": self.importers,
        }
        if self.notes:
            result["notes"] = self.notes
        return result

    @classmethod
    def from_dict(cls, data: dict) -> "ClassificationRecord":
        record = cls(
            path=data["path"],
            reasons=[Reason(r) for r in data.get("reasons", [])],
            export_refs=[ExportRef.from_dict(r) for r in data.get("exportRefs", [])],
            importers=list(data.get("importers", [])),
            notes=list(data.get("notes", [])),
        )
        stored = data.get("status")
        if stored is not None and Status(stored) != record.status:
            raise ValueError(
                f"Inconsistent record for {record.path}: status {stored} "
                f"with reasons {data.get('reasons', [])}"
            )
        return record
