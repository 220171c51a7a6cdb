"""Output modules for CLI display and file writing."""

from orphanprune.output.json_writer import load_report, render_paths, render_report, write_report
from orphanprune.output.tree import build_report_tree, build_trim_tree, display_tree

__all__ = [
    "build_report_tree",
    "build_trim_tree",
    "display_tree",
    "load_report",
    "render_paths",
    "render_report",
    "write_report",
]
