"""Configuration loading for orphanprune.

Settings come from two optional sources, merged in this order (later wins):

1. ``[tool.orphanprune]`` in the project's ``pyproject.toml``
2. ``.orphanprune/config.json`` (or an explicit ``--config`` file)

Every accessor falls back to a default, so an empty dict is a valid config.
"""

import json
from pathlib import Path

import tomli

from orphanprune.errors import ConfigurationError
from orphanprune.paths import get_config_path

DEFAULT_EXTENSIONS = [".ts", ".tsx", ".js", ".jsx"]

DEFAULT_ROUTE_DIRECTORIES = ["app", "routes"]

DEFAULT_ROUTE_BASENAMES = [
    "page",
    "layout",
    "loading",
    "error",
    "not-found",
    "route",
    "template",
    "default",
    "global-error",
    "opengraph-image",
    "twitter-image",
    "icon",
    "apple-icon",
    "sitemap",
    "robots",
    "manifest",
    "middleware",
    "entry",
    "root",
]

DEFAULT_REFERENCE_DIRS = ["docs", "scripts", "tools", "tests", ".agent"]

TRIM_MODES = ("strip", "delete")


def load_config(config_path: Path) -> dict:
    """Load an orphanprune JSON configuration file."""
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError as e:
        raise ConfigurationError(f"Config file not found: {config_path}") from e
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigurationError(f"Could not read config {config_path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError(f"Config {config_path} must contain a JSON object")
    return data


def load_pyproject_table(project_root: Path) -> dict | None:
    """Return ``[tool.orphanprune]`` from pyproject.toml, or None when absent."""
    pyproject_path = project_root / "pyproject.toml"
    if not pyproject_path.is_file():
        return None

    try:
        with open(pyproject_path, "rb") as f:
            data = tomli.load(f)
    except (OSError, tomli.TOMLDecodeError) as e:
        raise ConfigurationError(f"Could not read {pyproject_path}: {e}") from e

    table = data.get("tool", {}).get("orphanprune")
    return table if isinstance(table, dict) else None


def resolve_config(project_root: Path, config_path: Path | None = None) -> dict:
    """Build the effective configuration for a project.

    An explicit ``config_path`` must exist; the default
    ``.orphanprune/config.json`` is optional.
    """
    if not project_root.is_dir():
        raise ConfigurationError(f"Project root is not a directory: {project_root}")

    config: dict = {}
    table = load_pyproject_table(project_root)
    if table is not None:
        config.update(table)

    if config_path is not None:
        config.update(load_config(config_path))
    else:
        default_path = get_config_path(project_root)
        if default_path.is_file():
            config.update(load_config(default_path))

    return config


def get_allowlist(config: dict) -> list[str]:
    """Get protected paths and symbol names (order preserved, no duplicates)."""
    return list(dict.fromkeys(config.get("allowlist", [])))


def get_analysis_excludes(config: dict) -> list[str]:
    """Get extra gitignore-style exclude patterns."""
    return config.get("exclude", [])


def get_extensions(config: dict) -> list[str]:
    """Get candidate source extensions, in resolution probe order."""
    return config.get("extensions", list(DEFAULT_EXTENSIONS))


def get_route_directories(config: dict) -> list[str]:
    """Get directory segments whose reserved files the host framework loads."""
    return config.get("routes", {}).get("directories", list(DEFAULT_ROUTE_DIRECTORIES))


def get_route_basenames(config: dict) -> list[str]:
    """Get reserved basenames under the route directories."""
    return config.get("routes", {}).get("basenames", list(DEFAULT_ROUTE_BASENAMES))


def get_reference_dirs(config: dict) -> list[str]:
    """Get documentation/test/tooling directories searched for path mentions."""
    return config.get("reference_dirs", list(DEFAULT_REFERENCE_DIRS))


def should_skip_index_barrels(config: dict) -> bool:
    """Check whether index.* barrels are left out of the candidate set."""
    return config.get("skip_index_barrels", False)


def get_workers(config: dict) -> int | None:
    """Get the worker count for parallel indexing (None = executor default)."""
    workers = config.get("workers")
    if workers is None:
        return None
    if not isinstance(workers, int) or workers < 1:
        raise ConfigurationError(f"workers must be a positive integer, got {workers!r}")
    return workers


def get_trim_mode(config: dict) -> str:
    """Get the declaration-level trim mode: "strip" or "delete"."""
    mode = config.get("trim", {}).get("mode", "strip")
    if mode not in TRIM_MODES:
        raise ConfigurationError(f"trim.mode must be one of {TRIM_MODES}, got {mode!r}")
    return mode


def should_backup(config: dict) -> bool:
    """Check if files are snapshotted before the trimmer writes them."""
    return config.get("trim", {}).get("backup", True)


def get_tsconfig_path(config: dict) -> str | None:
    """Get an explicit tsconfig/jsconfig path, relative to the project root."""
    return config.get("tsconfig")
