"""Gated deletion of unreachable files."""

from orphanprune.deletion.apply import (
    CONFIRMATION_PHRASE,
    ApplyGate,
    apply_deletions,
    check_gate,
    display_deletion_plan,
    is_ci_environment,
)

__all__ = [
    "CONFIRMATION_PHRASE",
    "ApplyGate",
    "apply_deletions",
    "check_gate",
    "display_deletion_plan",
    "is_ci_environment",
]
