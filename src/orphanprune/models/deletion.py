"""Deletion models for the apply step."""

from dataclasses import dataclass, field
from enum import Enum


class DeletionStatus(Enum):
    """Status of a deletion operation."""

    APPLIED = "applied"  # File removed from disk
    SKIPPED = "skipped"  # Not attempted (missing, protected, outside root)
    FAILED = "failed"  # Removal raised an OS error


@dataclass
class DeletionItem:
    """A single DROP file processed by the apply step."""

    file: str
    status: DeletionStatus = DeletionStatus.SKIPPED
    error: str | None = None

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "file": self.file,
            "status": self.status.value,
            "error": self.error,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "DeletionItem":
        """Create from dictionary."""
        return cls(
            file=data["file"],
            status=DeletionStatus(data.get("status", "skipped")),
            error=data.get("error"),
        )


@dataclass
class DeletionSummary:
    """Summary of deletion results."""

    total_items: int = 0
    applied_count: int = 0
    skipped_count: int = 0
    failed_count: int = 0

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "total_items": self.total_items,
            "applied": self.applied_count,
            "skipped": self.skipped_count,
            "failed": self.failed_count,
        }

    @classmethod
    def from_items(cls, items: list[DeletionItem]) -> "DeletionSummary":
        return cls(
            total_items=len(items),
            applied_count=sum(1 for i in items if i.status is DeletionStatus.APPLIED),
            skipped_count=sum(1 for i in items if i.status is DeletionStatus.SKIPPED),
            failed_count=sum(1 for i in items if i.status is DeletionStatus.FAILED),
        )


@dataclass
class DeletionResults:
    """Complete deletion results saved to deletions.json."""

    version: str = "1.0"
    metadata: dict = field(default_factory=dict)
    items: list[DeletionItem] = field(default_factory=list)
    git_commit_before: str | None = None

    @property
    def summary(self) -> DeletionSummary:
        return DeletionSummary.from_items(self.items)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "version": self.version,
            "metadata": self.metadata,
            "summary": self.summary.to_dict(),
            "items": [i.to_dict() for i in self.items],
            "git_commit_before": self.git_commit_before,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "DeletionResults":
        """Create from dictionary."""
        return cls(
            version=data.get("version", "1.0"),
            metadata=data.get("metadata", {}),
            items=[DeletionItem.from_dict(i) for i in data.get("items", [])],
            git_commit_before=data.get("git_commit_before"),
        )
