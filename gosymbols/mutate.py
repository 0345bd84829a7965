"""Derive modified struct declarations without touching the originals."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import replace

from gosymbols.symbols import Symbol


def without_fields(sym: Symbol, exclude: Iterable[str]) -> Symbol:
    """Return a copy of a struct symbol with the named fields removed.

    Only the field list is rebuilt; every other node (including the kept
    fields) is shared with the original, which is never modified. Names not
    present in the struct are ignored.

    Args:
        sym: A struct type symbol.
        exclude: Names of fields to drop. Only single-name fields match.

    Returns:
        A new Symbol with the same identity wrapping the new declaration.

    Raises:
        ShapeError: If the symbol is not a struct.
    """
    excluded = set(exclude)
    st = sym.struct_type()
    kept = tuple(
        f for f in st.fields if not (len(f.names) == 1 and f.names[0] in excluded)
    )
    return sym.with_node(replace(sym.node, type=replace(st, fields=kept)))
