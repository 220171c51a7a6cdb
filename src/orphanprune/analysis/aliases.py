"""Module specifier resolution through tsconfig/jsconfig path aliases."""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Collection
from dataclasses import dataclass, field
from pathlib import Path

from orphanprune.errors import ConfigurationError
from orphanprune.paths import join_relative, normalize_posix, to_project_relative

logger = logging.getLogger(__name__)

# Convention prefix mapped onto the base directory when no rule matches
LEGACY_PREFIX = "@/"

ALIAS_CONFIG_FILES = ("tsconfig.json", "jsconfig.json")

_JSONC_COMMENTS = re.compile(r'("(?:\\.|[^"\\])*")|/\*[\s\S]*?\*/|//[^\n]*')
_JSONC_TRAILING_COMMAS = re.compile(r'("(?:\\.|[^"\\])*")|,(\s*[}\]])')


@dataclass(frozen=True)
class AliasRule:
    """One ``compilerOptions.paths`` entry: ``"@lib/*": ["src/lib/*"]``."""

    pattern: str
    target: str

    @property
    def is_wildcard(self) -> bool:
        return "*" in self.pattern

    def apply(self, specifier: str) -> str | None:
        """Return the substituted target, or None if the rule does not match."""
        if not self.is_wildcard:
            return self.target if specifier == self.pattern else None

        prefix, _, suffix = self.pattern.partition("*")
        if len(specifier) < len(prefix) + len(suffix):
            return None
        if not (specifier.startswith(prefix) and specifier.endswith(suffix)):
            return None
        middle = specifier[len(prefix) : len(specifier) - len(suffix)]
        return self.target.replace("*", middle, 1)


@dataclass(frozen=True)
class AliasTable:
    """Alias rules sorted most-specific-first, plus the directory they are relative to."""

    base_dir: str = ""
    rules: tuple[AliasRule, ...] = ()
    source: str | None = None

    @classmethod
    def from_paths(
        cls,
        paths: dict[str, list[str]],
        base_dir: str = "",
        source: str | None = None,
    ) -> AliasTable:
        rules = [
            AliasRule(pattern=pattern, target=targets[0])
            for pattern, targets in paths.items()
            if targets
        ]
        # Longest pattern first so "@lib/special/*" is tried before "@lib/*"
        rules.sort(key=lambda rule: len(rule.pattern), reverse=True)
        return cls(base_dir=normalize_posix(base_dir), rules=tuple(rules), source=source)

    def map(self, specifier: str) -> str | None:
        """Map a specifier through the first matching rule."""
        for rule in self.rules:
            mapped = rule.apply(specifier)
            if mapped is not None:
                return join_relative(self.base_dir, mapped)
        return None


def is_relative_specifier(specifier: str) -> bool:
    return specifier in (".", "..") or specifier.startswith(("./", "../"))


@dataclass
class AliasResolver:
    """Resolves module specifiers to project-relative candidate paths.

    Results are memoized by ``(base_dir, specifier)`` for the lifetime of the
    resolver, which is one analysis run.
    """

    project_root: Path
    table: AliasTable = field(default_factory=AliasTable)
    extensions: list[str] = field(default_factory=lambda: [".ts", ".tsx", ".js", ".jsx"])
    known_files: Collection[str] = field(default_factory=frozenset)
    _cache: dict[tuple[str, str], str | None] = field(default_factory=dict, repr=False)

    def resolve(self, specifier: str, base_dir: str = "") -> str | None:
        """Resolve ``specifier`` imported from ``base_dir`` to a file path.

        Returns None when nothing on disk or in the index matches.
        """
        key = (base_dir, specifier)
        if key in self._cache:
            return self._cache[key]

        base = self.resolve_base(specifier, base_dir)
        resolved = self._probe(base) if base is not None else None
        self._cache[key] = resolved
        return resolved

    def resolve_base(self, specifier: str, base_dir: str = "") -> str | None:
        """Map a specifier to a path before extension/index probing."""
        spec = _strip_query(normalize_posix_keep_dots(specifier))
        if not spec:
            return None

        if is_relative_specifier(spec):
            return join_relative(base_dir, spec)

        mapped = self.table.map(spec)
        if mapped is not None:
            return mapped

        if spec.startswith(LEGACY_PREFIX):
            return join_relative(self.table.base_dir, spec[len(LEGACY_PREFIX) :])

        return normalize_posix(spec)

    def _probe(self, base: str) -> str | None:
        base = base.rstrip("/")
        candidates: list[str] = []
        if base:
            candidates.append(base)
            candidates += [f"{base}{ext}" for ext in self.extensions]
        index_base = f"{base}/index" if base else "index"
        candidates += [f"{index_base}{ext}" for ext in self.extensions]

        for candidate in candidates:
            if candidate in self.known_files:
                return candidate
            if (self.project_root / candidate).is_file():
                return candidate
        return None

    @property
    def cache_size(self) -> int:
        return len(self._cache)


def normalize_posix_keep_dots(specifier: str) -> str:
    """Normalize separators without collapsing a leading "./" (it marks relative)."""
    return specifier.strip().replace("\\", "/")


def _strip_query(specifier: str) -> str:
    return specifier.split("?", 1)[0].split("#", 1)[0]


def find_alias_config(project_root: Path, explicit: str | Path | None = None) -> Path | None:
    """Locate the tsconfig/jsconfig holding the alias table.

    An explicit path must exist. Without one, the conventional file names are
    tried and None is returned when neither exists.
    """
    if explicit is not None:
        path = Path(explicit)
        if not path.is_absolute():
            path = project_root / path
        if not path.is_file():
            raise ConfigurationError(f"Alias config not found: {path}")
        return path

    for name in ALIAS_CONFIG_FILES:
        path = project_root / name
        if path.is_file():
            return path
    return None


def read_jsonc(path: Path) -> dict:
    """Read a JSON-with-comments file (tsconfig style)."""
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigurationError(f"Could not read {path}: {e}") from e

    text = _JSONC_COMMENTS.sub(lambda m: m.group(1) or "", text)
    text = _JSONC_TRAILING_COMMAS.sub(lambda m: m.group(1) or m.group(2), text)
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Malformed JSON in {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigurationError(f"{path} must contain a JSON object")
    return data


def _collect_compiler_options(path: Path, seen: set[Path]) -> tuple[dict, Path | None, Path | None]:
    """Merge compilerOptions along a relative ``extends`` chain.

    Returns (options, directory baseUrl is relative to, directory paths are relative to).
    """
    resolved = path.resolve()
    if resolved in seen:
        raise ConfigurationError(f"Circular extends chain at {path}")
    seen.add(resolved)

    data = read_jsonc(path)
    options: dict = {}
    base_url_dir: Path | None = None
    paths_dir: Path | None = None

    extends = data.get("extends")
    for parent in extends if isinstance(extends, list) else [extends]:
        if not isinstance(parent, str):
            continue
        if not parent.startswith("."):
            logger.debug("Skipping package extends %r in %s", parent, path)
            continue
        parent_path = (path.parent / parent).resolve()
        if parent_path.suffix != ".json":
            parent_path = parent_path.with_name(parent_path.name + ".json")
        if not parent_path.is_file():
            raise ConfigurationError(f"{path} extends missing file {parent_path}")
        parent_options, parent_base, parent_paths = _collect_compiler_options(parent_path, seen)
        options.update(parent_options)
        base_url_dir = parent_base or base_url_dir
        paths_dir = parent_paths or paths_dir

    own = data.get("compilerOptions", {}) or {}
    if "baseUrl" in own:
        base_url_dir = path.parent
    if "paths" in own:
        paths_dir = path.parent
    options.update(own)
    return options, base_url_dir, paths_dir


def load_alias_table(project_root: Path, explicit: str | Path | None = None) -> AliasTable:
    """Load the alias table from tsconfig.json / jsconfig.json.

    Returns an empty table rooted at the project root when no config exists.
    """
    config_path = find_alias_config(project_root, explicit)
    if config_path is None:
        logger.debug("No tsconfig/jsconfig in %s; using an empty alias table", project_root)
        return AliasTable()

    options, base_url_dir, paths_dir = _collect_compiler_options(config_path, set())
    if base_url_dir is not None:
        base = base_url_dir / options.get("baseUrl", ".")
    else:
        base = paths_dir or config_path.parent

    base_dir = to_project_relative(base, project_root)
    if base_dir is None:
        raise ConfigurationError(f"Alias base directory {base} lies outside {project_root}")

    paths = options.get("paths") or {}
    if not isinstance(paths, dict):
        raise ConfigurationError(f"compilerOptions.paths in {config_path} must be an object")

    source = to_project_relative(config_path, project_root) or str(config_path)
    table = AliasTable.from_paths(
        {k: list(v) for k, v in paths.items() if isinstance(v, list)},
        base_dir=base_dir,
        source=source,
    )
    logger.debug("Loaded %d alias rules from %s", len(table.rules), source)
    return table
