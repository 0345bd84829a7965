"""Render generated declarations as gofmt-style Go source."""

from __future__ import annotations

import json
import re

from gosymbols.codegen import (
    AssignStmt,
    Binary,
    Call,
    Declaration,
    Expr,
    FuncDef,
    Ident,
    IfStmt,
    QualIdent,
    ReturnStmt,
    Selector,
    Stmt,
    StringLit,
    StructDecl,
    TypeRef,
    Unary,
    VarStmt,
)

_MAJOR_VERSION = re.compile(r"^v\d+$")
_NOT_IDENT = re.compile(r"[^A-Za-z0-9_]")


def guess_package_name(import_path: str) -> str:
    """Best guess at the name a package is imported under.

    The last path segment, skipping a trailing ``/vN`` major version, with
    ``go-`` prefixes, ``-go`` / ``.go`` suffixes and other non-identifier
    characters removed.
    """
    segments = import_path.split("/")
    last = segments[-1]
    if _MAJOR_VERSION.match(last) and len(segments) > 1:
        last = segments[-2]
    last = last.removeprefix("go-").removesuffix("-go").removesuffix(".go")
    name = _NOT_IDENT.sub("", last).lower()
    return name or "pkg"


class _Imports:
    """Qualifiers handed out while rendering, keyed by import path."""

    def __init__(self, own_path: str) -> None:
        self.own_path = own_path
        self.names: dict[str, str] = {}

    def qualifier(self, import_path: str | None, package_name: str | None = None) -> str | None:
        if import_path is None or import_path == self.own_path:
            return None
        if import_path in self.names:
            return self.names[import_path]
        base = _NOT_IDENT.sub("", package_name or "") or guess_package_name(import_path)
        name = base
        n = 1
        while name in self.names.values():
            n += 1
            name = f"{base}{n}"
        self.names[import_path] = name
        return name

    def render(self) -> str:
        specs: list[str] = []
        for path in sorted(self.names):
            name = self.names[path]
            if name == path.split("/")[-1]:
                specs.append(json.dumps(path))
            else:
                specs.append(f"{name} {json.dumps(path)}")
        if not specs:
            return ""
        if len(specs) == 1:
            return f"import {specs[0]}\n"
        return "import (\n" + "".join(f"\t{s}\n" for s in specs) + ")\n"


class GoFile:
    """A Go source file being assembled from generated declarations.

    References to ``import_path`` itself are written unqualified; every
    other package a declaration refers to gets an import.
    """

    def __init__(self, import_path: str, package_name: str) -> None:
        self.import_path = import_path
        self.package_name = package_name
        self.decls: list[Declaration] = []

    def add(self, decl: Declaration) -> None:
        self.decls.append(decl)

    def render(self) -> str:
        """Return the file as Go source text (ends with a newline)."""
        imports = _Imports(self.import_path)
        bodies = [render_decl(decl, imports) for decl in self.decls]
        parts = [f"package {self.package_name}\n"]
        header = imports.render()
        if header:
            parts.append(header)
        parts.extend(bodies)
        return "\n".join(parts)


def render(decl: Declaration, import_path: str = "") -> str:
    """Render a single declaration; qualifiers are used but no imports emitted."""
    return render_decl(decl, _Imports(import_path))


def render_decl(decl: Declaration, imports: _Imports) -> str:
    if isinstance(decl, StructDecl):
        return _render_struct(decl, imports)
    return _render_func(decl, imports)


def _type(ref: TypeRef, imports: _Imports) -> str:
    qualifier = imports.qualifier(ref.import_path, ref.package_name)
    name = f"{qualifier}.{ref.name}" if qualifier else ref.name
    return ref.prefix + name


def _tag(tags: tuple[tuple[str, str], ...]) -> str:
    text = " ".join(f"{key}:{_quote(value)}" for key, value in tags)
    if "`" in text:
        return _quote(text)
    return f"`{text}`"


def _quote(value: str) -> str:
    return json.dumps(value, ensure_ascii=False)


def _render_struct(decl: StructDecl, imports: _Imports) -> str:
    if not decl.fields:
        return f"type {decl.name} struct{{}}\n"
    rows: list[list[str]] = []
    for f in decl.fields:
        cells = [f.name, _type(f.type, imports)]
        if f.tags:
            cells.append(_tag(f.tags))
        if "\n" in f.comment:
            rows.extend([f"// {line}".rstrip()] for line in f.comment.split("\n"))
        elif f.comment:
            cells.append(f"// {f.comment}")
        rows.append(cells)
    lines = "".join(f"\t{line}\n" for line in align(rows))
    return f"type {decl.name} struct {{\n{lines}}}\n"


def align(rows: list[list[str]]) -> list[str]:
    """Align cells into columns the way gofmt's tabwriter does.

    A cell is padded only when another cell follows it on the same line;
    a column's width is taken over each run of consecutive lines that have
    such a padded cell in that column.
    """
    widths = [[0] * len(row) for row in rows]
    columns = max((len(row) for row in rows), default=0)
    for col in range(columns - 1):
        i = 0
        while i < len(rows):
            if len(rows[i]) - 1 <= col:
                i += 1
                continue
            j = i
            while j < len(rows) and len(rows[j]) - 1 > col:
                j += 1
            width = max(len(rows[k][col]) for k in range(i, j))
            for k in range(i, j):
                widths[k][col] = width
            i = j
    lines: list[str] = []
    for row, row_widths in zip(rows, widths):
        padded = [cell.ljust(w + 1) for cell, w in zip(row[:-1], row_widths)]
        lines.append("".join(padded) + row[-1])
    return lines


def _render_func(fn: FuncDef, imports: _Imports) -> str:
    head = "func "
    if fn.receiver is not None:
        head += f"({fn.receiver.name} {_type(fn.receiver.type, imports)}) "
    params = ", ".join(f"{p.name} {_type(p.type, imports)}" for p in fn.params)
    head += f"{fn.name}({params})"
    if fn.result is not None:
        head += " " + _type(fn.result, imports)
    lines = [head + " {"]
    _render_block(fn.body, 1, lines, imports)
    lines.append("}")
    return "\n".join(lines) + "\n"


def _render_block(body: tuple[Stmt, ...], depth: int, lines: list[str], imports: _Imports) -> None:
    indent = "\t" * depth
    for stmt in body:
        if isinstance(stmt, VarStmt):
            lines.append(f"{indent}var {stmt.name} {_type(stmt.type, imports)}")
        elif isinstance(stmt, AssignStmt):
            lines.append(f"{indent}{_expr(stmt.target, imports)} = {_expr(stmt.value, imports)}")
        elif isinstance(stmt, ReturnStmt):
            if stmt.value is None:
                lines.append(f"{indent}return")
            else:
                lines.append(f"{indent}return {_expr(stmt.value, imports)}")
        elif isinstance(stmt, IfStmt):
            lines.append(f"{indent}if {_expr(stmt.cond, imports)} {{")
            _render_block(stmt.body, depth + 1, lines, imports)
            lines.append(f"{indent}}}")


def _expr(expr: Expr, imports: _Imports) -> str:
    if isinstance(expr, Ident):
        return expr.name
    if isinstance(expr, QualIdent):
        qualifier = imports.qualifier(expr.import_path, expr.package_name)
        return f"{qualifier}.{expr.name}" if qualifier else expr.name
    if isinstance(expr, Selector):
        return f"{_expr(expr.x, imports)}.{expr.name}"
    if isinstance(expr, Unary):
        return expr.op + _expr(expr.x, imports)
    if isinstance(expr, Binary):
        return f"{_expr(expr.left, imports)} {expr.op} {_expr(expr.right, imports)}"
    if isinstance(expr, Call):
        args = ", ".join(_expr(a, imports) for a in expr.args)
        return f"{_expr(expr.func, imports)}({args})"
    return _quote(expr.value)
