"""Tests for alias tables and module specifier resolution."""

import json
from pathlib import Path

import pytest

from orphanprune.analysis.aliases import (
    AliasResolver,
    AliasRule,
    AliasTable,
    load_alias_table,
    read_jsonc,
)
from orphanprune.errors import ConfigurationError

from conftest import write_files


class TestAliasRule:
    """Tests for single alias rules."""

    def test_wildcard_substitution(self) -> None:
        rule = AliasRule("@lib/*", "src/lib/*")
        assert rule.apply("@lib/date/format") == "src/lib/date/format"

    def test_wildcard_no_match(self) -> None:
        rule = AliasRule("@lib/*", "src/lib/*")
        assert rule.apply("@components/Button") is None
        assert rule.apply("@lib") is None

    def test_exact_rule(self) -> None:
        """Patterns without a wildcard only match the exact specifier."""
        rule = AliasRule("config", "src/config.ts")
        assert rule.apply("config") == "src/config.ts"
        assert rule.apply("config/x") is None


class TestAliasTable:
    """Tests for rule ordering and mapping."""

    def test_more_specific_pattern_wins(self) -> None:
        """"@lib/special/*" is tried before "@lib/*" regardless of declaration order."""
        table = AliasTable.from_paths(
            {"@lib/*": ["src/lib/*"], "@lib/special/*": ["src/special/*"]}
        )

        assert table.map("@lib/special/widget") == "src/special/widget"
        assert table.map("@lib/widget") == "src/lib/widget"

    def test_mapping_is_relative_to_base_dir(self) -> None:
        table = AliasTable.from_paths({"@/*": ["*"]}, base_dir="src")
        assert table.map("@/hooks/useUser") == "src/hooks/useUser"

    def test_first_target_is_used(self) -> None:
        table = AliasTable.from_paths({"@x/*": ["a/*", "b/*"], "@empty/*": []})
        assert table.map("@x/y") == "a/y"
        assert table.map("@empty/y") is None


class TestAliasResolver:
    """Tests for AliasResolver.resolve."""

    def test_resolves_alias_with_extension_probe(self, tmp_path: Path) -> None:
        write_files(tmp_path, {"src/lib/format.ts": ""})
        resolver = AliasResolver(
            project_root=tmp_path, table=AliasTable.from_paths({"@lib/*": ["src/lib/*"]})
        )

        assert resolver.resolve("@lib/format", "app") == "src/lib/format.ts"

    def test_extension_probe_order(self, tmp_path: Path) -> None:
        """.ts is probed before .tsx and .js."""
        write_files(tmp_path, {"src/a.ts": "", "src/a.js": "", "src/a.tsx": ""})
        resolver = AliasResolver(project_root=tmp_path)

        assert resolver.resolve("./a", "src") == "src/a.ts"

    def test_directory_resolves_to_index(self, tmp_path: Path) -> None:
        write_files(tmp_path, {"src/lib/index.tsx": ""})
        resolver = AliasResolver(project_root=tmp_path)

        assert resolver.resolve("./lib", "src") == "src/lib/index.tsx"
        assert resolver.resolve("./lib/index", "src") == "src/lib/index.tsx"

    def test_relative_parent_specifier(self, tmp_path: Path) -> None:
        write_files(tmp_path, {"shared/util.js": ""})
        resolver = AliasResolver(project_root=tmp_path)

        assert resolver.resolve("../../shared/util", "src/feature") == "shared/util.js"

    def test_escaping_root_is_unresolved(self, tmp_path: Path) -> None:
        resolver = AliasResolver(project_root=tmp_path)
        assert resolver.resolve("../../outside", "src") is None

    def test_at_slash_convention_without_rule(self, tmp_path: Path) -> None:
        """"@/" maps onto the base directory when no rule covers it."""
        write_files(tmp_path, {"src/components/Button.tsx": ""})
        resolver = AliasResolver(project_root=tmp_path, table=AliasTable(base_dir="src"))

        assert resolver.resolve("@/components/Button", "app") == "src/components/Button.tsx"

    def test_package_specifier_is_unresolved(self, tmp_path: Path) -> None:
        resolver = AliasResolver(project_root=tmp_path)
        assert resolver.resolve("react", "src") is None
        assert resolver.resolve("@tanstack/react-query", "src") is None

    def test_known_files_are_used_before_disk(self, tmp_path: Path) -> None:
        resolver = AliasResolver(project_root=tmp_path, known_files=frozenset({"src/a.ts"}))
        assert resolver.resolve("./a", "src") == "src/a.ts"

    def test_query_suffix_ignored(self, tmp_path: Path) -> None:
        write_files(tmp_path, {"src/worker.ts": ""})
        resolver = AliasResolver(project_root=tmp_path)

        assert resolver.resolve("./worker?worker", "src") == "src/worker.ts"

    def test_results_are_memoized(self, tmp_path: Path) -> None:
        """Each (base_dir, specifier) pair is resolved once per resolver."""
        write_files(tmp_path, {"src/a.ts": ""})
        resolver = AliasResolver(project_root=tmp_path)

        resolver.resolve("./a", "src")
        resolver.resolve("./a", "src")
        assert resolver.cache_size == 1

        (tmp_path / "src" / "a.ts").unlink()
        assert resolver.resolve("./a", "src") == "src/a.ts"

        resolver.resolve("./a", "lib")
        assert resolver.cache_size == 2


class TestReadJsonc:
    """Tests for tsconfig-style JSON parsing."""

    def test_comments_and_trailing_commas(self, tmp_path: Path) -> None:
        path = tmp_path / "tsconfig.json"
        path.write_text(
            """{
  // line comment
  "compilerOptions": {
    /* block comment */
    "paths": { "@lib/*": ["src/lib/*"], },
  },
}
"""
        )

        data = read_jsonc(path)

        assert data["compilerOptions"]["paths"] == {"@lib/*": ["src/lib/*"]}

    def test_comment_markers_inside_strings_survive(self, tmp_path: Path) -> None:
        path = tmp_path / "tsconfig.json"
        path.write_text('{"a": "http://example.com", "b": "x/*"}')

        assert read_jsonc(path) == {"a": "http://example.com", "b": "x/*"}

    def test_malformed_is_configuration_error(self, tmp_path: Path) -> None:
        path = tmp_path / "tsconfig.json"
        path.write_text('{"compilerOptions": ')

        with pytest.raises(ConfigurationError, match="Malformed"):
            read_jsonc(path)


class TestLoadAliasTable:
    """Tests for load_alias_table."""

    def test_no_config_gives_empty_table(self, tmp_path: Path) -> None:
        table = load_alias_table(tmp_path)

        assert table.rules == ()
        assert table.base_dir == ""
        assert table.source is None

    def test_reads_tsconfig(self, tmp_path: Path) -> None:
        (tmp_path / "tsconfig.json").write_text(
            json.dumps({"compilerOptions": {"baseUrl": ".", "paths": {"@/*": ["src/*"]}}})
        )

        table = load_alias_table(tmp_path)

        assert table.source == "tsconfig.json"
        assert table.map("@/lib/a") == "src/lib/a"

    def test_base_url_subdirectory(self, tmp_path: Path) -> None:
        (tmp_path / "tsconfig.json").write_text(
            json.dumps({"compilerOptions": {"baseUrl": "src", "paths": {"~/*": ["*"]}}})
        )

        table = load_alias_table(tmp_path)

        assert table.base_dir == "src"
        assert table.map("~/lib/a") == "src/lib/a"

    def test_jsconfig_fallback(self, tmp_path: Path) -> None:
        (tmp_path / "jsconfig.json").write_text(
            json.dumps({"compilerOptions": {"paths": {"@lib/*": ["lib/*"]}}})
        )

        table = load_alias_table(tmp_path)

        assert table.source == "jsconfig.json"
        assert table.map("@lib/x") == "lib/x"

    def test_extends_chain(self, tmp_path: Path) -> None:
        """Paths inherited through "extends" stay relative to the file declaring them."""
        write_files(
            tmp_path,
            {
                "config/base.json": json.dumps(
                    {"compilerOptions": {"paths": {"@lib/*": ["../src/lib/*"]}}}
                ),
                "tsconfig.json": json.dumps({"extends": "./config/base"}),
            },
        )

        table = load_alias_table(tmp_path)

        assert table.map("@lib/x") == "src/lib/x"

    def test_extends_missing_file(self, tmp_path: Path) -> None:
        (tmp_path / "tsconfig.json").write_text(json.dumps({"extends": "./nope.json"}))

        with pytest.raises(ConfigurationError):
            load_alias_table(tmp_path)

    def test_package_extends_is_ignored(self, tmp_path: Path) -> None:
        (tmp_path / "tsconfig.json").write_text(
            json.dumps(
                {"extends": "@tsconfig/next", "compilerOptions": {"paths": {"@/*": ["./*"]}}}
            )
        )

        assert load_alias_table(tmp_path).map("@/a") == "a"

    def test_explicit_missing_is_fatal(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigurationError, match="not found"):
            load_alias_table(tmp_path, "tsconfig.app.json")

    def test_explicit_path(self, tmp_path: Path) -> None:
        (tmp_path / "tsconfig.app.json").write_text(
            json.dumps({"compilerOptions": {"paths": {"#/*": ["src/*"]}}})
        )

        table = load_alias_table(tmp_path, "tsconfig.app.json")

        assert table.source == "tsconfig.app.json"
        assert table.map("#/x") == "src/x"
