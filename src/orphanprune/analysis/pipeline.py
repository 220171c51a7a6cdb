"""Analysis entry point: classify every candidate and build the report."""

from __future__ import annotations

import logging
import time
from datetime import datetime
from typing import TYPE_CHECKING

from orphanprune import __version__
from orphanprune.analysis.classifier import ReachabilityClassifier
from orphanprune.models.report import Report, ReportMetadata

if TYPE_CHECKING:
    from orphanprune.context import AnalysisContext

logger = logging.getLogger(__name__)


def run_analysis(context: AnalysisContext) -> Report:
    """Classify all candidates of an indexed project."""
    start = time.monotonic()
    records = ReachabilityClassifier(context).classify_all()
    duration_ms = int((time.monotonic() - start) * 1000)

    report = Report(
        records=records,
        metadata=ReportMetadata(
            project=context.project_root.name,
            analyzed_at=datetime.now(),
            orphanprune_version=__version__,
            analysis_duration_ms=duration_ms,
            alias_source=context.resolver.table.source,
        ),
    )
    summary = report.summary
    logger.info(
        "Classified %d candidates: %d kept, %d droppable",
        summary.candidates,
        summary.kept,
        summary.droppable,
    )
    return report
