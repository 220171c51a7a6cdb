"""Shared fixtures for orphanprune tests."""

from collections.abc import Callable
from pathlib import Path

import pytest

from orphanprune.analysis.pipeline import run_analysis
from orphanprune.context import AnalysisContext, build_context
from orphanprune.models.report import Report


def write_files(root: Path, files: dict[str, str]) -> Path:
    """Create ``files`` (relative path -> content) under ``root``."""
    for rel_path, content in files.items():
        path = root / rel_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
    return root


def analyze(root: Path, **kwargs) -> tuple[AnalysisContext, Report]:
    """Build a context for ``root`` and classify it."""
    context = build_context(root, workers=kwargs.pop("workers", 1), **kwargs)
    return context, run_analysis(context)


@pytest.fixture
def project(tmp_path: Path) -> Callable[[dict[str, str]], Path]:
    """Factory writing a source tree into a fresh project root."""
    root = tmp_path / "project"
    root.mkdir()

    def _make(files: dict[str, str]) -> Path:
        return write_files(root, files)

    return _make
