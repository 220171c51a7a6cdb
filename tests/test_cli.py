"""Tests for the orphanprune command line."""

import json

import pytest
from typer.testing import CliRunner

from orphanprune import __version__
from orphanprune.cli import app

runner = CliRunner()

FILES = {
    "keepme.ts": "export const keepValue = 1;\n",
    "orphan.ts": "export const orphanValue = 2;\n",
}

BARREL = {
    "src/lib/index.ts": "export { x, y } from './b';\n",
    "src/lib/b.ts": "export const x = 1;\nexport const y = 2;\n",
    "app/page.tsx": "import { y } from '../src/lib';\nexport default function Page() { return y; }\n",
}


@pytest.fixture(autouse=True)
def no_ci(monkeypatch) -> None:
    monkeypatch.delenv("CI", raising=False)


def analyze_cli(root, *args: str):
    return runner.invoke(app, ["analyze", str(root), "--allow", "keepme.ts", *args])


class TestVersion:
    def test_version(self) -> None:
        result = runner.invoke(app, ["--version"])

        assert result.exit_code == 0
        assert f"orphanprune version {__version__}" in result.output


class TestAnalyze:
    """Tests for the analyze command."""

    def test_writes_report(self, project) -> None:
        root = project(FILES)

        result = analyze_cli(root)

        assert result.exit_code == 0, result.output
        data = json.loads((root / ".orphanprune" / "report.json").read_text())
        statuses = {f["path"]: f["status"] for f in data["files"]}
        assert statuses == {"keepme.ts": "KEEP", "orphan.ts": "DROP"}
        assert "Reachability Summary" in result.output

    def test_custom_output_path(self, project, tmp_path) -> None:
        root = project(FILES)
        out = tmp_path / "reports" / "run.json"

        result = analyze_cli(root, "--out", str(out), "--only", "drop")

        assert result.exit_code == 0, result.output
        data = json.loads(out.read_text())
        assert [f["path"] for f in data["files"]] == ["orphan.ts"]
        assert not (root / ".orphanprune" / "report.json").exists()

    def test_paths_only(self, project) -> None:
        root = project(FILES)

        result = analyze_cli(root, "--paths-only")

        assert result.exit_code == 0, result.output
        assert "orphan.ts" in result.stdout.splitlines()
        assert "keepme.ts" not in result.stdout
        assert not (root / ".orphanprune" / "report.json").exists()

    def test_stdout_json(self, project) -> None:
        root = project(FILES)

        result = analyze_cli(root, "--stdout", "--only", "DROP")

        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert [f["path"] for f in data["files"]] == ["orphan.ts"]
        assert data["summary"]["candidates"] == 2

    def test_missing_config_fails(self, project) -> None:
        root = project(FILES)

        result = analyze_cli(root, "--config", str(root / "missing.json"))

        assert result.exit_code == 1
        assert "Error" in result.output

    def test_missing_tsconfig_fails(self, project) -> None:
        root = project(FILES)

        result = analyze_cli(root, "--tsconfig", "tsconfig.missing.json")

        assert result.exit_code == 1

    def test_missing_root_fails(self, tmp_path) -> None:
        result = runner.invoke(app, ["analyze", str(tmp_path / "nope")])
        assert result.exit_code == 1


class TestShow:
    """Tests for the show command."""

    def test_show_report(self, project) -> None:
        root = project(FILES)
        analyze_cli(root)

        result = runner.invoke(
            app, ["show", str(root / ".orphanprune" / "report.json"), "--only", "drop"]
        )

        assert result.exit_code == 0, result.output
        assert "x orphan.ts" in result.output
        assert "keepme.ts" not in result.output

    def test_show_missing_report(self, tmp_path) -> None:
        result = runner.invoke(app, ["show", str(tmp_path / "report.json")])
        assert result.exit_code == 1


class TestApply:
    """Tests for the apply command and its confirmation gate."""

    def test_requires_yes(self, project) -> None:
        root = project(FILES)
        analyze_cli(root)

        result = runner.invoke(app, ["apply", str(root)])

        assert result.exit_code == 1
        assert (root / "orphan.ts").exists()

    def test_non_interactive(self, project) -> None:
        root = project(FILES)
        analyze_cli(root)

        result = runner.invoke(app, ["apply", str(root), "--yes", "--non-interactive"])

        assert result.exit_code == 0, result.output
        assert not (root / "orphan.ts").exists()
        assert (root / "keepme.ts").exists()
        data = json.loads((root / ".orphanprune" / "deletions.json").read_text())
        assert data["summary"]["applied"] == 1

    def test_ci_counts_as_non_interactive(self, project, monkeypatch) -> None:
        root = project(FILES)
        analyze_cli(root)
        monkeypatch.setenv("CI", "true")

        result = runner.invoke(app, ["apply", str(root), "--yes"])

        assert result.exit_code == 0, result.output
        assert not (root / "orphan.ts").exists()

    def test_typed_confirmation(self, project) -> None:
        root = project(FILES)
        analyze_cli(root)

        result = runner.invoke(app, ["apply", str(root), "--yes"], input="DELETE\n")

        assert result.exit_code == 0, result.output
        assert not (root / "orphan.ts").exists()

    def test_wrong_phrase(self, project) -> None:
        root = project(FILES)
        analyze_cli(root)

        result = runner.invoke(app, ["apply", str(root), "--yes"], input="yes\n")

        assert result.exit_code == 1
        assert (root / "orphan.ts").exists()

    def test_nothing_to_delete(self, project) -> None:
        root = project({"keepme.ts": "export const keepValue = 1;\n"})
        analyze_cli(root)

        result = runner.invoke(app, ["apply", str(root), "--yes", "--non-interactive"])

        assert result.exit_code == 0
        assert "Nothing to delete" in result.output

    def test_missing_report(self, tmp_path) -> None:
        result = runner.invoke(app, ["apply", str(tmp_path), "--yes", "--non-interactive"])
        assert result.exit_code == 1


class TestTrim:
    """Tests for the trim command."""

    def test_dry_run(self, project) -> None:
        root = project(BARREL)

        result = runner.invoke(app, ["trim", str(root)])

        assert result.exit_code == 0, result.output
        assert (root / "src/lib/index.ts").read_text() == BARREL["src/lib/index.ts"]
        data = json.loads((root / ".orphanprune" / "trims.json").read_text())
        assert data["summary"]["dry_run"] == 1
        assert "--write" in result.output

    def test_write(self, project) -> None:
        root = project(BARREL)

        result = runner.invoke(app, ["trim", str(root), "--write", "--no-backup"])

        assert result.exit_code == 0, result.output
        assert (root / "src/lib/index.ts").read_text() == "export { y } from './b';\n"
        assert not (root / ".orphanprune" / "backups").exists()

    def test_invalid_mode(self, project) -> None:
        root = project(BARREL)

        result = runner.invoke(app, ["trim", str(root), "--mode", "shred"])

        assert result.exit_code == 1
