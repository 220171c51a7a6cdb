"""Data models for orphanprune."""

from orphanprune.models.classification import (
    ClassificationRecord,
    ExportRef,
    Reason,
    Status,
)
from orphanprune.models.deletion import (
    DeletionItem,
    DeletionResults,
    DeletionStatus,
    DeletionSummary,
)
from orphanprune.models.module import (
    CandidateFile,
    DeclarationKind,
    ExportedDeclaration,
    ExportSpecifier,
    ImportDeclaration,
    LocalExportList,
    ModuleDeclarations,
    ReExport,
)
from orphanprune.models.report import Report, ReportMetadata, ReportSummary, StatusFilter
from orphanprune.models.trim import TrimAction, TrimEntry, TrimResults, TrimStatus

__all__ = [
    # Module models
    "CandidateFile",
    "DeclarationKind",
    "ExportedDeclaration",
    "ExportSpecifier",
    "ImportDeclaration",
    "LocalExportList",
    "ModuleDeclarations",
    "ReExport",
    # Classification models
    "ClassificationRecord",
    "ExportRef",
    "Reason",
    "Status",
    # Report models
    "Report",
    "ReportMetadata",
    "ReportSummary",
    "StatusFilter",
    # Trim models
    "TrimAction",
    "TrimEntry",
    "TrimResults",
    "TrimStatus",
    # Deletion models
    "DeletionItem",
    "DeletionResults",
    "DeletionStatus",
    "DeletionSummary",
]
