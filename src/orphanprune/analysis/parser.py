"""Text-level parser for JavaScript/TypeScript module declarations.

This is deliberately not a full parser. A single lexer pass produces a
*shape* view of the source with the same length and line breaks, where
comments are blanked and the contents of string, template and regex literals
are replaced by spaces. Declaration patterns are matched against the shape
view, so text inside strings and comments never looks like code, and literal
values (module specifiers) are read back from the original source at the same
offsets.

Dynamic import targets are matched against the raw text instead; targets
built from runtime expressions (string concatenation, variables) are not
detected.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path

from orphanprune.errors import ModuleParseError
from orphanprune.models.module import (
    DeclarationKind,
    ExportedDeclaration,
    ExportSpecifier,
    ImportDeclaration,
    LocalExportList,
    ModuleDeclarations,
    ReExport,
)

# Characters after which a "/" starts a regex literal rather than a division
_REGEX_PRECEDERS = set("(,=:[!&|?{};+-*%~^")
_REGEX_KEYWORDS = ("return", "typeof", "case", "do", "else", "in", "of", "void", "yield")

_NOT_MEMBER = r"(?<![\w$.])"
_LITERAL = r"(?P<q>['\"])(?P<lit>[^'\"\n]*)(?P=q)"

SIDE_EFFECT_IMPORT_RE = re.compile(_NOT_MEMBER + r"import\s*" + _LITERAL)

IMPORT_RE = re.compile(
    _NOT_MEMBER
    + r"import\s+(?P<type>type\s+)?(?P<clause>[\w$\s{},*]+?)\s*from\s*"
    + _LITERAL
)

REEXPORT_RE = re.compile(
    _NOT_MEMBER
    + r"export\s+(?P<type>type\s+)?"
    + r"(?:\*\s*(?:as\s+(?P<ns>[\w$]+)\s*)?|\{(?P<list>[^{}]*)\}\s*)"
    + r"from\s*"
    + _LITERAL
    + r"[ \t]*;?"
)

LOCAL_EXPORT_RE = re.compile(_NOT_MEMBER + r"export\s+(?P<type>type\s+)?\{(?P<list>[^{}]*)\}")
_FROM_AFTER_RE = re.compile(r"\s*from\b")
_SEMICOLON_AFTER_RE = re.compile(r"[ \t]*;")

DECLARATION_RE = re.compile(
    _NOT_MEMBER
    + r"(?P<qualifier>export\s+)"
    + r"(?P<default>default\s+)?"
    + r"(?:declare\s+)?(?:abstract\s+)?(?:async\s+)?"
    + r"(?P<kind>const\s+enum|const|let|var|function\s*\*?"
    + r"|class|interface|type|enum|namespace|module)?"
    + r"(?(kind)(?![\w$])\s*(?P<name>[\w$]+)?)"
)

DYNAMIC_IMPORT_RE = re.compile(
    _NOT_MEMBER + r"(?:import|require)\s*\(\s*(?P<q>['\"`])(?P<lit>[^'\"`]*)(?P=q)\s*\)"
)

_DECLARATOR_NAME_RE = re.compile(r"([\w$]+)\s*(?:[!:=;]|$)")

_DESTRUCTURED_NAME_RE = re.compile(r"(?:[\w$]+\s*:\s*)?(?:\.\.\.)?([\w$]+)\s*(?:=[^,]*)?(?:,|$)")

_BLOCK_KINDS = {
    DeclarationKind.FUNCTION,
    DeclarationKind.CLASS,
    DeclarationKind.INTERFACE,
    DeclarationKind.ENUM,
    DeclarationKind.NAMESPACE,
}

_VARIABLE_KINDS = (DeclarationKind.CONST, DeclarationKind.LET, DeclarationKind.VAR)

_CONTINUATION_END = tuple("=,(+-*/|&?:.<{[")
_CONTINUATION_START = tuple(".?:|&+-*/=,)]}>")


def _blank(chars: list[str], start: int, end: int) -> None:
    for i in range(start, end):
        if chars[i] != "\n":
            chars[i] = " "


def _previous_significant(chars: list[str], i: int) -> tuple[str, str]:
    """Last non-space char before ``i`` and the identifier word ending there."""
    j = i - 1
    while j >= 0 and chars[j] in " \t\r\n":
        j -= 1
    if j < 0:
        return "", ""
    end = j + 1
    while j >= 0 and (chars[j].isalnum() or chars[j] in "_$"):
        j -= 1
    return chars[end - 1], "".join(chars[j + 1 : end])


def mask_source(source: str) -> str:
    """Return the shape view: comments and literal contents blanked.

    Raises ModuleParseError on unterminated block comments or template
    literals, and on binary content.
    """
    if "\x00" in source:
        raise ModuleParseError("binary content (NUL byte)")

    chars = list(source)
    n = len(source)
    i = 0
    while i < n:
        c = source[i]
        nxt = source[i + 1] if i + 1 < n else ""

        if c == "/" and nxt == "/":
            end = source.find("\n", i)
            end = n if end == -1 else end
            _blank(chars, i, end)
            i = end
            continue

        if c == "/" and nxt == "*":
            end = source.find("*/", i + 2)
            if end == -1:
                raise ModuleParseError("unterminated block comment", i)
            _blank(chars, i, end + 2)
            i = end + 2
            continue

        if c in "'\"":
            # Quoted strings cannot span lines; an unmatched quote (JSX text
            # such as "don't") ends at the line break.
            j = i + 1
            while j < n and source[j] != c and source[j] != "\n":
                j += 2 if source[j] == "\\" else 1
            j = min(j, n)
            _blank(chars, i + 1, j)
            i = j + 1 if j < n and source[j] == c else j
            continue

        if c == "`":
            j = i + 1
            depth = 0
            while j < n:
                ch = source[j]
                if ch == "\\":
                    j += 2
                    continue
                if depth == 0 and ch == "`":
                    break
                if ch == "$" and j + 1 < n and source[j + 1] == "{":
                    depth += 1
                    j += 2
                    continue
                if depth and ch == "{":
                    depth += 1
                elif depth and ch == "}":
                    depth -= 1
                j += 1
            if j >= n:
                raise ModuleParseError("unterminated template literal", i)
            _blank(chars, i + 1, j)
            i = j + 1
            continue

        if c == "/":
            prev, word = _previous_significant(chars, i)
            if prev == "" or prev in _REGEX_PRECEDERS or word in _REGEX_KEYWORDS:
                end = _regex_end(source, i)
                if end is not None:
                    _blank(chars, i + 1, end)
                    i = end + 1
                    continue

        i += 1

    return "".join(chars)


def _regex_end(source: str, start: int) -> int | None:
    """Offset of the closing "/" of a regex literal, or None if it is not one."""
    in_class = False
    j = start + 1
    n = len(source)
    while j < n:
        ch = source[j]
        if ch == "\n":
            return None
        if ch == "\\":
            j += 2
            continue
        if ch == "[":
            in_class = True
        elif ch == "]":
            in_class = False
        elif ch == "/" and not in_class:
            return j if j > start + 1 else None
        j += 1
    return None


def _parse_specifiers(list_text: str) -> tuple[ExportSpecifier, ...]:
    entries = []
    for raw in list_text.split(","):
        text = " ".join(raw.split())
        if not text:
            continue
        body = text[5:] if text.startswith("type ") else text
        name, _, alias = body.partition(" as ")
        name = name.strip()
        alias = alias.strip() or name
        if name:
            entries.append(ExportSpecifier(name=name, exported_as=alias, text=text))
    return tuple(entries)


def _parse_import_clause(clause: str) -> tuple[str | None, str | None, tuple[tuple[str, str], ...]]:
    default: str | None = None
    namespace: str | None = None
    names: list[tuple[str, str]] = []

    brace = re.search(r"\{([^}]*)\}", clause)
    if brace:
        for entry in _parse_specifiers(brace.group(1)):
            names.append((entry.name, entry.exported_as))
        clause = clause[: brace.start()] + clause[brace.end() :]

    for part in clause.split(","):
        part = " ".join(part.split())
        if not part:
            continue
        ns = re.fullmatch(r"\*\s*as\s+([\w$]+)", part)
        if ns:
            namespace = ns.group(1)
        elif re.fullmatch(r"[\w$]+", part):
            default = part
    return default, namespace, tuple(names)


def _statement_ends_at_newline(shape: str, newline: int) -> bool:
    before = shape[:newline].rstrip()
    if not before or before.endswith(_CONTINUATION_END) or before.endswith("=>"):
        return False
    after = shape[newline:].lstrip()
    return not (after and after.startswith(_CONTINUATION_START))


def _match_brace(shape: str, open_pos: int, close: str = "}") -> int:
    opener = shape[open_pos]
    depth = 0
    for i in range(open_pos, len(shape)):
        ch = shape[i]
        if ch == opener:
            depth += 1
        elif ch == close:
            depth -= 1
            if depth == 0:
                return i
    return len(shape) - 1


def find_declaration_end(shape: str, pos: int, kind: DeclarationKind) -> int:
    """End offset (exclusive) of the declaration whose header starts at ``pos``."""
    depth = 0
    n = len(shape)
    i = pos
    while i < n:
        ch = shape[i]
        if ch == "{" and depth == 0 and kind in _BLOCK_KINDS:
            end = _match_brace(shape, i) + 1
            semi = _SEMICOLON_AFTER_RE.match(shape, end)
            return semi.end() if semi else end
        if ch in "([{":
            depth += 1
        elif ch in ")]}":
            if depth == 0:
                return i
            depth -= 1
        elif ch == ";" and depth == 0:
            return i + 1
        elif ch == "\n" and depth == 0 and kind not in _BLOCK_KINDS:
            if _statement_ends_at_newline(shape, i):
                return i
        i += 1
    return n


def _split_declarators(shape: str, start: int, end: int) -> list[tuple[int, int]]:
    """Spans of the comma-separated declarators in ``shape[start:end]``.

    Commas nested in brackets, braces or parentheses do not split.
    """
    spans: list[tuple[int, int]] = []
    depth = 0
    segment = start
    for i in range(start, end):
        ch = shape[i]
        if ch in "([{":
            depth += 1
        elif ch in ")]}":
            depth -= 1
        elif ch == "," and depth == 0:
            spans.append((segment, i))
            segment = i + 1
    spans.append((segment, end))
    return spans


def _declarator_names(source: str, shape: str, start: int, end: int) -> list[str]:
    names: list[str] = []
    for seg_start, seg_end in _split_declarators(shape, start, end):
        segment = shape[seg_start:seg_end]
        stripped = segment.lstrip()
        if stripped[:1] in ("{", "["):
            open_pos = seg_start + len(segment) - len(stripped)
            close_pos = _match_brace(shape, open_pos, "}" if stripped[0] == "{" else "]")
            inner = source[open_pos + 1 : close_pos]
            names.extend(
                found.group(1) for found in _DESTRUCTURED_NAME_RE.finditer(" ".join(inner.split()))
            )
            continue
        # Skips the tail of a generic type argument split at its comma
        simple = _DECLARATOR_NAME_RE.match(stripped)
        if simple:
            names.append(simple.group(1))
    return names


def _kind_from(text: str | None) -> DeclarationKind | None:
    if text is None:
        return None
    word = text.split()[0].rstrip("*")
    if text.startswith("const") and text.split()[-1] == "enum":
        return DeclarationKind.ENUM
    if word == "module":
        return DeclarationKind.NAMESPACE
    return DeclarationKind(word)


def _parse_declarations(source: str, shape: str) -> list[ExportedDeclaration]:
    declarations: list[ExportedDeclaration] = []
    for m in DECLARATION_RE.finditer(shape):
        kind = _kind_from(m.group("kind"))
        name = m.group("name")
        start = m.start()
        qualifier_end = m.end("qualifier")

        if m.group("default"):
            end = find_declaration_end(shape, m.end(), kind or DeclarationKind.DEFAULT)
            declarations.append(
                ExportedDeclaration(
                    name="default",
                    kind=DeclarationKind.DEFAULT,
                    start=start,
                    end=end,
                    qualifier_end=qualifier_end,
                )
            )
            continue

        if kind is None:
            continue  # export { ... }, export * ..., export = x

        if kind in _VARIABLE_KINDS:
            # One statement may declare several names; they share the span
            end = find_declaration_end(shape, m.end("kind"), kind)
            for declared in _declarator_names(source, shape, m.end("kind"), end):
                declarations.append(
                    ExportedDeclaration(
                        name=declared,
                        kind=kind,
                        start=start,
                        end=end,
                        qualifier_end=qualifier_end,
                    )
                )
            continue

        if name is None:
            continue

        end = find_declaration_end(shape, m.end(), kind)
        declarations.append(
            ExportedDeclaration(
                name=name,
                kind=kind,
                start=start,
                end=end,
                qualifier_end=qualifier_end,
            )
        )
    return declarations


def parse_module(source: str) -> ModuleDeclarations:
    """Extract imports, re-exports, exported declarations and dynamic imports."""
    shape = mask_source(source)

    def literal(m: re.Match) -> str:
        return source[m.start("lit") : m.end("lit")].strip()

    imports: list[tuple[int, ImportDeclaration]] = []
    for m in IMPORT_RE.finditer(shape):
        default, namespace, names = _parse_import_clause(m.group("clause"))
        imports.append(
            (
                m.start(),
                ImportDeclaration(
                    specifier=literal(m),
                    default=default,
                    namespace=namespace,
                    names=names,
                    type_only=bool(m.group("type")),
                ),
            )
        )
    for m in SIDE_EFFECT_IMPORT_RE.finditer(shape):
        imports.append((m.start(), ImportDeclaration(specifier=literal(m), side_effect=True)))
    imports.sort(key=lambda item: item[0])

    reexports: list[ReExport] = []
    for m in REEXPORT_RE.finditer(shape):
        list_text = m.group("list")
        entries: tuple[ExportSpecifier, ...] = ()
        if list_text is not None:
            entries = _parse_specifiers(shape[m.start("list") : m.end("list")])
        reexports.append(
            ReExport(
                specifier=literal(m),
                start=m.start(),
                end=m.end(),
                entries=entries,
                wildcard=list_text is None and m.group("ns") is None,
                namespace=m.group("ns"),
                quote=m.group("q"),
                type_only=bool(m.group("type")),
            )
        )

    local_exports: list[LocalExportList] = []
    for m in LOCAL_EXPORT_RE.finditer(shape):
        if _FROM_AFTER_RE.match(shape, m.end()):
            continue
        semi = _SEMICOLON_AFTER_RE.match(shape, m.end())
        local_exports.append(
            LocalExportList(
                start=m.start(),
                end=semi.end() if semi else m.end(),
                entries=_parse_specifiers(shape[m.start("list") : m.end("list")]),
                type_only=bool(m.group("type")),
            )
        )

    # Raw text: commented-out loaders count as well
    dynamic = [m.group("lit").strip() for m in DYNAMIC_IMPORT_RE.finditer(source)]

    return ModuleDeclarations(
        imports=tuple(imp for _pos, imp in imports),
        reexports=tuple(reexports),
        local_exports=tuple(local_exports),
        declarations=tuple(_parse_declarations(source, shape)),
        dynamic_imports=tuple(dynamic),
    )


@dataclass(frozen=True)
class ParsedModule:
    """A file that was read and parsed."""

    path: str
    text: str
    declarations: ModuleDeclarations


@dataclass(frozen=True)
class FailedModule:
    """A file that could not be read or parsed.

    ``text`` holds whatever could be read (empty for unreadable files) so
    path- and text-based signals still work.
    """

    path: str
    text: str
    error: str


ParseOutcome = ParsedModule | FailedModule


def parse_file(file_path: Path, rel_path: str) -> ParseOutcome:
    """Read and parse one candidate file."""
    try:
        source = file_path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        return FailedModule(path=rel_path, text="", error=f"Unicode decode error: {e}")
    except OSError as e:
        return FailedModule(path=rel_path, text="", error=f"Could not read file: {e}")

    try:
        declarations = parse_module(source)
    except ModuleParseError as e:
        where = f" at offset {e.offset}" if e.offset is not None else ""
        return FailedModule(path=rel_path, text=source, error=f"Parse error{where}: {e}")

    return ParsedModule(path=rel_path, text=source, declarations=declarations)
