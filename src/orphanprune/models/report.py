"""Data models for the analysis report."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from orphanprune.models.classification import ClassificationRecord, Status


class StatusFilter(Enum):
    """Which records a report view includes."""

    ALL = "ALL"
    DROP = "DROP"
    KEEP = "KEEP"

    def accepts(self, record: ClassificationRecord) -> bool:
        return self is StatusFilter.ALL or record.status.value == self.value


@dataclass
class ReportMetadata:
    """Metadata about the analysis run."""

    project: str
    analyzed_at: datetime
    orphanprune_version: str
    analysis_duration_ms: int
    alias_source: str | None = None

    def to_dict(self) -> dict:
        return {
            "project": self.project,
            "analyzed_at": self.analyzed_at.isoformat(),
            "orphanprune_version": self.orphanprune_version,
            "analysis_duration_ms": self.analysis_duration_ms,
            "alias_source": self.alias_source,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ReportMetadata":
        return cls(
            project=data.get("project", ""),
            analyzed_at=datetime.fromisoformat(data["analyzed_at"]),
            orphanprune_version=data.get("orphanprune_version", ""),
            analysis_duration_ms=data.get("analysis_duration_ms", 0),
            alias_source=data.get("alias_source"),
        )


@dataclass
class ReportSummary:
    """Counts over every candidate of the run."""

    candidates: int = 0
    kept: int = 0
    droppable: int = 0

    def to_dict(self) -> dict:
        return {
            "candidates": self.candidates,
            "kept": self.kept,
            "droppable": self.droppable,
        }

    @classmethod
    def from_records(cls, records: list[ClassificationRecord]) -> "ReportSummary":
        kept = sum(1 for r in records if r.status is Status.KEEP)
        return cls(candidates=len(records), kept=kept, droppable=len(records) - kept)


@dataclass
class Report:
    """Complete analysis report."""

    records: list[ClassificationRecord] = field(default_factory=list)
    metadata: ReportMetadata | None = None

    @property
    def summary(self) -> ReportSummary:
        return ReportSummary.from_records(self.records)

    def view(self, status_filter: StatusFilter = StatusFilter.ALL) -> list[ClassificationRecord]:
        """Records accepted by the filter, in path order."""
        return [r for r in self.records if status_filter.accepts(r)]

    def droppable(self) -> list[ClassificationRecord]:
        return self.view(StatusFilter.DROP)

    def drop_paths(self) -> list[str]:
        """Sorted DROP paths, for the paths-only output mode."""
        return sorted(r.path for r in self.droppable())

    def get(self, path: str) -> ClassificationRecord | None:
        for record in self.records:
            if record.path == path:
                return record
        return None

    def to_dict(self, status_filter: StatusFilter = StatusFilter.ALL) -> dict:
        result: dict = {}
        if self.metadata:
            result["metadata"] = {**self.metadata.to_dict(), "only": status_filter.value}
        result["summary"] = self.summary.to_dict()
        result["files"] = [r.to_dict() for r in self.view(status_filter)]
        return result

    @classmethod
    def from_dict(cls, data: dict) -> "Report":
        metadata = data.get("metadata")
        return cls(
            records=[ClassificationRecord.from_dict(f) for f in data.get("files", [])],
            metadata=ReportMetadata.from_dict(metadata) if metadata else None,
        )
