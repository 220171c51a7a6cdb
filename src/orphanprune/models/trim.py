"""Trim models for usage-aware export removal."""

from dataclasses import dataclass, field
from enum import Enum


class TrimAction(Enum):
    """How an unused export is removed."""

    REEXPORT_LIST = "reexport_list"  # name dropped from export { } from "x"
    LOCAL_EXPORT_LIST = "local_export_list"  # name dropped from export { }
    DECLARATION_STRIP = "declaration_strip"  # "export" qualifier removed
    DECLARATION_DELETE = "declaration_delete"  # whole declaration removed


class TrimStatus(Enum):
    """Outcome of one trim attempt."""

    APPLIED = "applied"
    DRY_RUN = "dry_run"  # would be applied; nothing written
    SKIPPED = "skipped"


class SkipReason:
    """Reason strings attached to skipped trims."""

    STILL_REFERENCED = "still referenced"
    PROTECTED_NAME = "protected by allowlist"
    PROTECTED_DIR = "generated or dependency directory"
    DEFAULT_EXPORT = "default exports are not trimmed"
    WILDCARD = "provided by a wildcard re-export"
    NOT_FOUND = "declaration not found"
    PARSE_ERROR = "file could not be parsed"
    SHARED_DECLARATION = "declaration also exports other names"


@dataclass
class TrimEntry:
    """A single unused export processed by the trimmer."""

    file: str
    name: str
    status: TrimStatus
    action: TrimAction | None = None
    reason: str | None = None
    refs: int = 0

    def to_dict(self) -> dict:
        return {
            "file": self.file,
            "name": self.name,
            "status": self.status.value,
            "action": self.action.value if self.action else None,
            "reason": self.reason,
            "refs": self.refs,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "TrimEntry":
        action = data.get("action")
        return cls(
            file=data["file"],
            name=data["name"],
            status=TrimStatus(data["status"]),
            action=TrimAction(action) if action else None,
            reason=data.get("reason"),
            refs=data.get("refs", 0),
        )


@dataclass
class TrimResults:
    """Complete trimming results saved to trims.json."""

    version: str = "1.0"
    metadata: dict = field(default_factory=dict)
    entries: list[TrimEntry] = field(default_factory=list)
    files_written: list[str] = field(default_factory=list)
    backups: dict[str, str] = field(default_factory=dict)  # file -> snapshot path

    def count(self, status: TrimStatus) -> int:
        return sum(1 for e in self.entries if e.status is status)

    @property
    def skipped(self) -> list[TrimEntry]:
        return [e for e in self.entries if e.status is TrimStatus.SKIPPED]

    def to_dict(self) -> dict:
        return {
            "version": self.version,
            "metadata": self.metadata,
            "summary": {
                "total": len(self.entries),
                "applied": self.count(TrimStatus.APPLIED),
                "dry_run": self.count(TrimStatus.DRY_RUN),
                "skipped": self.count(TrimStatus.SKIPPED),
                "files_written": len(self.files_written),
            },
            "entries": [e.to_dict() for e in self.entries],
            "files_written": self.files_written,
            "backups": self.backups,
        }
