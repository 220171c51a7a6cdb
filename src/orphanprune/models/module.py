"""Data models for parsed modules and indexed candidate files."""

from dataclasses import dataclass, field
from enum import Enum


@dataclass(frozen=True)
class ExportSpecifier:
    """One entry of an ``export { ... }`` list.

    ``name`` is the local (or source-module) name, ``exported_as`` the name
    consumers see. ``text`` is the entry exactly as written, e.g. ``"type a as b"``.
    """

    name: str
    exported_as: str
    text: str


@dataclass(frozen=True)
class ImportDeclaration:
    """A static ``import ... from "x"`` or ``import "x"`` statement."""

    specifier: str
    default: str | None = None
    namespace: str | None = None
    names: tuple[tuple[str, str], ...] = ()  # (imported, local)
    side_effect: bool = False
    type_only: bool = False

    @property
    def imported_names(self) -> list[str]:
        names = [imported for imported, _local in self.names]
        if self.default:
            names.append("default")
        return names


@dataclass(frozen=True)
class ReExport:
    """An ``export ... from "x"`` statement."""

    specifier: str
    start: int
    end: int
    entries: tuple[ExportSpecifier, ...] = ()
    wildcard: bool = False
    namespace: str | None = None  # export * as ns from "x"
    quote: str = '"'
    type_only: bool = False

    @property
    def exported_names(self) -> list[str]:
        if self.namespace:
            return [self.namespace]
        return [entry.exported_as for entry in self.entries]


@dataclass(frozen=True)
class LocalExportList:
    """An ``export { a, b as c }`` statement without a source module."""

    start: int
    end: int
    entries: tuple[ExportSpecifier, ...] = ()
    type_only: bool = False


class DeclarationKind(Enum):
    """Kinds of exported top-level declarations."""

    CONST = "const"
    LET = "let"
    VAR = "var"
    FUNCTION = "function"
    CLASS = "class"
    INTERFACE = "interface"
    TYPE = "type"
    ENUM = "enum"
    NAMESPACE = "namespace"
    DEFAULT = "default"


@dataclass(frozen=True)
class ExportedDeclaration:
    """An exported declaration such as ``export function foo() {}``.

    ``start``/``end`` delimit the whole declaration including the ``export``
    keyword; ``qualifier_end`` is the offset right after ``export`` and its
    trailing whitespace.
    """

    name: str
    kind: DeclarationKind
    start: int
    end: int
    qualifier_end: int


@dataclass(frozen=True)
class ModuleDeclarations:
    """Everything extracted from one module's text."""

    imports: tuple[ImportDeclaration, ...] = ()
    reexports: tuple[ReExport, ...] = ()
    local_exports: tuple[LocalExportList, ...] = ()
    declarations: tuple[ExportedDeclaration, ...] = ()
    dynamic_imports: tuple[str, ...] = ()

    @property
    def exported_names(self) -> list[str]:
        """Top-level exported names, external names for re-exports.

        Wildcard re-exports are not expanded here; see ``ModuleIndex``.
        """
        names: list[str] = []
        for decl in self.declarations:
            names.append(decl.name)
        for local in self.local_exports:
            names.extend(entry.exported_as for entry in local.entries)
        for reexport in self.reexports:
            names.extend(reexport.exported_names)
        return list(dict.fromkeys(names))

    @property
    def has_exports(self) -> bool:
        return bool(self.exported_names) or any(r.wildcard for r in self.reexports)


@dataclass(frozen=True)
class CandidateFile:
    """A candidate source file, indexed once per run."""

    path: str  # project-relative POSIX
    text: str
    declarations: ModuleDeclarations = field(default_factory=ModuleDeclarations)
    parse_error: str | None = None

    @property
    def basename_stem(self) -> str:
        """File name before the first dot: "index" for "index.ts"."""
        return self.path.rsplit("/", 1)[-1].split(".", 1)[0]

    @property
    def is_barrel(self) -> bool:
        return self.basename_stem == "index"
