"""Tests for configuration loading."""

import json
from pathlib import Path

import pytest

from orphanprune.config import (
    DEFAULT_EXTENSIONS,
    DEFAULT_REFERENCE_DIRS,
    get_allowlist,
    get_extensions,
    get_reference_dirs,
    get_route_basenames,
    get_route_directories,
    get_trim_mode,
    get_workers,
    resolve_config,
    should_backup,
)
from orphanprune.errors import ConfigurationError


class TestResolveConfig:
    """Tests for resolve_config."""

    def test_missing_root_is_fatal(self, tmp_path: Path) -> None:
        """A root that is not a directory raises ConfigurationError."""
        with pytest.raises(ConfigurationError):
            resolve_config(tmp_path / "nope")

    def test_no_sources_gives_empty_config(self, tmp_path: Path) -> None:
        assert resolve_config(tmp_path) == {}

    def test_reads_default_config_file(self, tmp_path: Path) -> None:
        """Should read .orphanprune/config.json when present."""
        (tmp_path / ".orphanprune").mkdir()
        (tmp_path / ".orphanprune" / "config.json").write_text(
            json.dumps({"allowlist": ["src/keep.ts"]})
        )

        config = resolve_config(tmp_path)

        assert get_allowlist(config) == ["src/keep.ts"]

    def test_config_file_overrides_pyproject(self, tmp_path: Path) -> None:
        """Keys in config.json win over [tool.orphanprune]."""
        (tmp_path / "pyproject.toml").write_text(
            '[tool.orphanprune]\nallowlist = ["from-toml.ts"]\nworkers = 2\n'
        )
        explicit = tmp_path / "custom.json"
        explicit.write_text(json.dumps({"allowlist": ["from-json.ts"]}))

        config = resolve_config(tmp_path, explicit)

        assert get_allowlist(config) == ["from-json.ts"]
        assert get_workers(config) == 2

    def test_pyproject_without_table(self, tmp_path: Path) -> None:
        (tmp_path / "pyproject.toml").write_text('[project]\nname = "x"\n')
        assert resolve_config(tmp_path) == {}

    def test_missing_explicit_config_is_fatal(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigurationError, match="not found"):
            resolve_config(tmp_path, tmp_path / "missing.json")

    def test_malformed_json_is_fatal(self, tmp_path: Path) -> None:
        bad = tmp_path / "bad.json"
        bad.write_text("{not json")
        with pytest.raises(ConfigurationError):
            resolve_config(tmp_path, bad)

    def test_malformed_toml_is_fatal(self, tmp_path: Path) -> None:
        (tmp_path / "pyproject.toml").write_text("[tool.orphanprune\n")
        with pytest.raises(ConfigurationError):
            resolve_config(tmp_path)


class TestAccessors:
    """Tests for the get_* accessors."""

    def test_defaults(self) -> None:
        """An empty config falls back to defaults everywhere."""
        assert get_extensions({}) == DEFAULT_EXTENSIONS
        assert get_reference_dirs({}) == DEFAULT_REFERENCE_DIRS
        assert "routes" in get_route_directories({})
        assert "entry" in get_route_basenames({})
        assert get_trim_mode({}) == "strip"
        assert should_backup({}) is True
        assert get_workers({}) is None

    def test_allowlist_deduplicated_in_order(self) -> None:
        assert get_allowlist({"allowlist": ["b", "a", "b"]}) == ["b", "a"]

    def test_route_overrides(self) -> None:
        config = {"routes": {"directories": ["pages"], "basenames": ["index"]}}
        assert get_route_directories(config) == ["pages"]
        assert get_route_basenames(config) == ["index"]

    def test_invalid_workers(self) -> None:
        with pytest.raises(ConfigurationError):
            get_workers({"workers": 0})

    def test_invalid_trim_mode(self) -> None:
        with pytest.raises(ConfigurationError):
            get_trim_mode({"trim": {"mode": "shred"}})
