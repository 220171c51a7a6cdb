"""Pure text edits used by the trimmer.

Every function takes the full module text and returns the edited text; none
of them touch the filesystem.
"""

from __future__ import annotations

from orphanprune.analysis.references import count_tokens
from orphanprune.models.module import ExportedDeclaration, ExportSpecifier


def remove_statement(source: str, start: int, end: int) -> str:
    """Remove ``source[start:end]`` plus its indentation and line break when it owns the line."""
    line_start = source.rfind("\n", 0, start) + 1
    if not source[line_start:start].strip():
        start = line_start

    j = end
    while j < len(source) and source[j] in " \t":
        j += 1
    if j == len(source) or source[j] == "\n":
        end = min(j + 1, len(source))

    return source[:start] + source[end:]


def rewrite_export_list(
    source: str,
    start: int,
    end: int,
    kept: list[ExportSpecifier],
) -> str:
    """Replace the ``{ ... }`` list of the statement at ``start:end``.

    The statement is removed entirely when no entries are kept.
    """
    if not kept:
        return remove_statement(source, start, end)

    statement = source[start:end]
    open_pos = statement.index("{")
    close_pos = statement.index("}", open_pos)
    entries = ", ".join(entry.text for entry in kept)
    rebuilt = statement[: open_pos + 1] + f" {entries} " + statement[close_pos:]
    return source[:start] + rebuilt + source[end:]


def strip_export_qualifier(source: str, decl: ExportedDeclaration) -> str:
    """Turn ``export function f`` into ``function f``."""
    return source[: decl.start] + source[decl.qualifier_end :]


def _jsdoc_start(source: str, start: int) -> int | None:
    """Start of a ``/** ... */`` block directly above ``start``, if any."""
    before = source[:start].rstrip()
    if not before.endswith("*/"):
        return None
    open_pos = before.rfind("/*")
    if open_pos == -1 or not before.startswith("/**", open_pos):
        return None
    return open_pos


def delete_declaration(source: str, decl: ExportedDeclaration) -> str:
    """Delete a declaration together with a directly preceding JSDoc block."""
    start = decl.start
    doc = _jsdoc_start(source, start)
    if doc is not None:
        start = doc
    return remove_statement(source, start, decl.end)


def is_used_locally(source: str, decl: ExportedDeclaration) -> bool:
    """True when the declared name occurs in its own file outside the declaration."""
    outside = source[: decl.start] + "\n" + source[decl.end :]
    return count_tokens(decl.name, outside) > 0
