"""Usage-aware export trimming."""

from orphanprune.trimming.trimmer import ExportTrimmer, TrimOptions, trim_targets

__all__ = ["ExportTrimmer", "TrimOptions", "trim_targets"]
