"""Tests for gated deletion of DROP files."""

from pathlib import Path

import pytest

from orphanprune.deletion.apply import (
    ApplyGate,
    apply_deletions,
    check_gate,
    display_deletion_plan,
    is_ci_environment,
)
from orphanprune.errors import ConfirmationRequired
from orphanprune.models.classification import ClassificationRecord, Reason
from orphanprune.models.deletion import DeletionStatus
from orphanprune.models.report import Report

from conftest import write_files

OPEN_GATE = ApplyGate(confirmed=True, non_interactive=True)


def make_report(*drop_paths: str, keep: tuple[str, ...] = ()) -> Report:
    records = [ClassificationRecord(path) for path in drop_paths]
    records += [ClassificationRecord(path, reasons=[Reason.ALLOWLIST]) for path in keep]
    return Report(records=records)


class TestApplyGate:
    """Tests for the two-factor confirmation gate."""

    @pytest.mark.parametrize(
        "gate, expected",
        [
            (ApplyGate(), False),
            (ApplyGate(confirmed=True), False),
            (ApplyGate(non_interactive=True), False),
            (ApplyGate(typed_phrase="DELETE"), False),
            (ApplyGate(confirmed=True, typed_phrase="delete"), False),
            (ApplyGate(confirmed=True, typed_phrase="DELETE"), True),
            (ApplyGate(confirmed=True, non_interactive=True), True),
        ],
    )
    def test_gate_matrix(self, gate: ApplyGate, expected: bool) -> None:
        assert gate.is_open is expected

    def test_check_gate_messages(self) -> None:
        with pytest.raises(ConfirmationRequired, match="--yes"):
            check_gate(ApplyGate())
        with pytest.raises(ConfirmationRequired, match="DELETE"):
            check_gate(ApplyGate(confirmed=True))
        check_gate(OPEN_GATE)

    @pytest.mark.parametrize(
        "environ, expected",
        [
            ({"CI": "true"}, True),
            ({"CI": "1"}, True),
            ({"CI": "TRUE "}, True),
            ({"CI": "0"}, False),
            ({"CI": ""}, False),
            ({}, False),
        ],
    )
    def test_ci_environment(self, environ: dict, expected: bool) -> None:
        assert is_ci_environment(environ) is expected


class TestApplyDeletions:
    """Tests for apply_deletions."""

    def test_closed_gate_deletes_nothing(self, tmp_path: Path) -> None:
        write_files(tmp_path, {"orphan.ts": ""})

        with pytest.raises(ConfirmationRequired):
            apply_deletions(tmp_path, make_report("orphan.ts"), ApplyGate(confirmed=True))

        assert (tmp_path / "orphan.ts").exists()

    def test_deletes_only_drop_records(self, tmp_path: Path) -> None:
        write_files(tmp_path, {"orphan.ts": "", "keep.ts": ""})

        results = apply_deletions(tmp_path, make_report("orphan.ts", keep=("keep.ts",)), OPEN_GATE)

        assert not (tmp_path / "orphan.ts").exists()
        assert (tmp_path / "keep.ts").exists()
        assert [(i.file, i.status) for i in results.items] == [
            ("orphan.ts", DeletionStatus.APPLIED)
        ]
        assert results.metadata["mode"] == "non_interactive"

    def test_skips_unsafe_and_missing(self, tmp_path: Path) -> None:
        root = tmp_path / "root"
        write_files(tmp_path, {"outside.ts": "", "root/src/generated/api.ts": ""})

        results = apply_deletions(
            root,
            make_report("../outside.ts", "src/generated/api.ts", "missing.ts"),
            OPEN_GATE,
        )

        assert [(i.file, i.status, i.error) for i in results.items] == [
            ("../outside.ts", DeletionStatus.SKIPPED, "outside project root"),
            ("src/generated/api.ts", DeletionStatus.SKIPPED, "protected directory"),
            ("missing.ts", DeletionStatus.SKIPPED, "file not found"),
        ]
        assert (tmp_path / "outside.ts").exists()
        assert (root / "src/generated/api.ts").exists()

    def test_failure_does_not_stop_batch(self, tmp_path: Path, monkeypatch) -> None:
        write_files(tmp_path, {"a/locked.ts": "", "b/free.ts": ""})
        original_unlink = Path.unlink

        def flaky_unlink(self, *args, **kwargs):
            if self.name == "locked.ts":
                raise PermissionError("locked")
            return original_unlink(self, *args, **kwargs)

        monkeypatch.setattr(Path, "unlink", flaky_unlink)

        results = apply_deletions(tmp_path, make_report("a/locked.ts", "b/free.ts"), OPEN_GATE)

        locked, free = results.items
        assert locked.status is DeletionStatus.FAILED
        assert locked.error == "locked"
        assert free.status is DeletionStatus.APPLIED
        assert results.summary.failed_count == 1
        assert results.summary.applied_count == 1

    def test_typed_confirmation_mode(self, tmp_path: Path) -> None:
        write_files(tmp_path, {"orphan.ts": ""})
        gate = ApplyGate(confirmed=True, typed_phrase="DELETE")

        results = apply_deletions(tmp_path, make_report("orphan.ts"), gate)

        assert results.metadata["mode"] == "typed_confirmation"
        assert results.summary.applied_count == 1


class TestDisplayDeletionPlan:
    """Tests for display_deletion_plan."""

    def test_bracketed_paths_printed_literally(self, capsys) -> None:
        display_deletion_plan([ClassificationRecord("app/[id]/x.ts")])

        out = capsys.readouterr().out
        assert "app/[id]/x.ts" in out
        assert "Total:" in out
