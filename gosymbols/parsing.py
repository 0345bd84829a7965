"""Tree-sitter parsing of Go files into the immutable declaration model."""

from __future__ import annotations

import re
from pathlib import Path

from tree_sitter import Node

from gosymbols.errors import ScanError
from gosymbols.languages import GO, TreeSitterLanguage
from gosymbols.models import (
    Array,
    Decl,
    FieldDecl,
    FuncDecl,
    ImportSpec,
    InterfaceType,
    MapType,
    MethodSpec,
    Named,
    Opaque,
    Pointer,
    Qualified,
    SourceFile,
    StructType,
    TypeExpr,
    TypeSpec,
    ValueExpr,
    ValueKind,
    ValueSpec,
)

# "//go:generate", "//line foo.go:10" and friends are not part of comment text.
_DIRECTIVE = re.compile(r"^(line |extern |export |[a-z0-9]+:[a-z0-9])")


def parse_file(file_path: Path, language: TreeSitterLanguage = GO) -> SourceFile:
    """Parse a Go file into a SourceFile.

    Args:
        file_path: Path to the ``.go`` file.
        language: The tree-sitter language configuration.

    Returns:
        The parsed SourceFile (``import_path`` not yet set).

    Raises:
        ScanError: If the file cannot be read or contains syntax errors.
    """
    try:
        source = file_path.read_bytes()
    except OSError as exc:
        raise ScanError(f"read {file_path}: {exc}") from exc
    return parse_source(source, file_path, language)


def parse_source(
    source: bytes, file_path: Path, language: TreeSitterLanguage = GO
) -> SourceFile:
    """Parse Go source bytes; ``file_path`` is only recorded and used in errors."""
    parser = language.get_parser()
    tree = parser.parse(source)
    root = tree.root_node

    bad = _first_error(root)
    if bad is not None:
        row, col = bad.start_point[0] + 1, bad.start_point[1] + 1
        raise ScanError(f"{file_path}:{row}:{col}: syntax error")

    try:
        return _convert_file(root, file_path)
    except UnicodeDecodeError as exc:
        raise ScanError(f"{file_path}: {exc}") from exc


def _first_error(node: Node) -> Node | None:
    """Return the first ERROR or missing node in document order."""
    if not node.has_error:
        return None
    if node.type == "ERROR" or node.is_missing:
        return node
    for child in node.children:
        found = _first_error(child)
        if found is not None:
            return found
    return node


def _convert_file(root: Node, file_path: Path) -> SourceFile:
    package_name = ""
    imports: list[ImportSpec] = []
    decls: list[Decl] = []

    for node, doc in _with_docs(root.named_children):
        if node.type == "package_clause":
            for child in node.named_children:
                if child.type == "package_identifier":
                    package_name = _text(child)
        elif node.type == "import_declaration":
            imports.extend(_import_specs(node))
        elif node.type == "type_declaration":
            decls.extend(_type_specs(node, doc))
        elif node.type == "function_declaration":
            decls.append(_function(node, doc))
        elif node.type == "method_declaration":
            decls.append(_method(node, doc))
        elif node.type == "var_declaration":
            decls.extend(_value_specs(node, ValueKind.VAR, doc))
        elif node.type == "const_declaration":
            decls.extend(_value_specs(node, ValueKind.CONST, doc))

    if not package_name:
        raise ScanError(f"{file_path}: missing package clause")

    return SourceFile(
        path=file_path,
        package_name=package_name,
        imports=tuple(imports),
        decls=tuple(decls),
    )


# Comments


def _with_docs(children: list[Node]) -> list[tuple[Node, str]]:
    """Pair each non-comment node with the doc comment directly above it."""
    paired: list[tuple[Node, str]] = []
    pending: list[Node] = []
    for child in children:
        if child.type == "comment":
            if pending and child.start_point[0] > pending[-1].end_point[0] + 1:
                pending = []
            pending.append(child)
            continue
        doc = ""
        if pending and pending[-1].end_point[0] == child.start_point[0] - 1:
            doc = comment_text(pending)
        pending = []
        paired.append((child, doc))
    return paired


def comment_text(nodes: list[Node]) -> str:
    """Return the text of a comment group with comment markers removed.

    Follows Go's ``CommentGroup.Text``: the ``//`` marker and one following
    space are dropped, ``/* */`` markers are dropped, trailing whitespace is
    removed from each line, runs of blank lines collapse to one and leading
    and trailing blank lines are removed. Compiler directives are skipped.
    """
    lines: list[str] = []
    for node in nodes:
        raw = _text(node)
        if raw.startswith("//"):
            body = raw[2:]
            if _DIRECTIVE.match(body):
                continue
            if body.startswith(" "):
                body = body[1:]
            lines.append(body)
        else:
            lines.extend(raw[2:-2].split("\n"))

    cleaned: list[str] = []
    for line in lines:
        line = line.rstrip()
        if not line and (not cleaned or not cleaned[-1]):
            continue
        cleaned.append(line)
    while cleaned and not cleaned[-1]:
        cleaned.pop()
    return "\n".join(cleaned)


# Imports


def _import_specs(node: Node) -> list[ImportSpec]:
    specs: list[ImportSpec] = []
    for child in node.named_children:
        if child.type == "import_spec":
            specs.append(_import_spec(child))
        elif child.type == "import_spec_list":
            specs.extend(
                _import_spec(spec)
                for spec in child.named_children
                if spec.type == "import_spec"
            )
    return specs


def _import_spec(node: Node) -> ImportSpec:
    path_node = node.child_by_field_name("path")
    name_node = node.child_by_field_name("name")
    alias = _text(name_node) if name_node is not None else None
    return ImportSpec(path=unquote_string(_text(path_node)), alias=alias)


_SIMPLE_ESCAPES = {
    "a": b"\a",
    "b": b"\b",
    "f": b"\f",
    "n": b"\n",
    "r": b"\r",
    "t": b"\t",
    "v": b"\v",
    "\\": b"\\",
    '"': b'"',
}
_HEX_DIGITS = frozenset("0123456789abcdefABCDEF")
_OCT_DIGITS = frozenset("01234567")


def unquote_string(literal: str) -> str:
    """Unquote a Go interpreted (``"..."``) or raw (`````...`````) string literal.

    Only Go's escapes are accepted. ``\\xhh`` and ``\\ooo`` yield raw bytes;
    bytes that are not valid UTF-8 are kept as surrogate escapes.

    Raises:
        ValueError: If the literal is malformed.
    """
    if len(literal) >= 2 and literal[0] == literal[-1] == "`":
        return literal[1:-1].replace("\r", "")
    if len(literal) < 2 or literal[0] != '"' or literal[-1] != '"':
        raise ValueError(f"invalid string literal {literal!r}")

    body = literal[1:-1]
    out = bytearray()
    i = 0
    while i < len(body):
        c = body[i]
        if c in ('"', "\n"):
            raise ValueError(f"invalid string literal {literal!r}")
        if c != "\\":
            out += c.encode("utf-8", "surrogateescape")
            i += 1
            continue
        if i + 1 >= len(body):
            raise ValueError(f"invalid string literal {literal!r}")
        esc = body[i + 1]
        if esc in _SIMPLE_ESCAPES:
            out += _SIMPLE_ESCAPES[esc]
            i += 2
        elif esc in _OCT_DIGITS:
            digits = body[i + 1 : i + 4]
            if len(digits) != 3 or not set(digits) <= _OCT_DIGITS or int(digits, 8) > 0xFF:
                raise ValueError(f"invalid octal escape in {literal!r}")
            out.append(int(digits, 8))
            i += 4
        elif esc in ("x", "u", "U"):
            size = {"x": 2, "u": 4, "U": 8}[esc]
            digits = body[i + 2 : i + 2 + size]
            if len(digits) != size or not set(digits) <= _HEX_DIGITS:
                raise ValueError(f"invalid \\{esc} escape in {literal!r}")
            value = int(digits, 16)
            if esc == "x":
                out.append(value)
            elif value > 0x10FFFF or 0xD800 <= value <= 0xDFFF:
                raise ValueError(f"invalid code point escape in {literal!r}")
            else:
                out += chr(value).encode("utf-8")
            i += 2 + size
        else:
            raise ValueError(f"unknown escape \\{esc} in {literal!r}")
    return out.decode("utf-8", "surrogateescape")


# Types


def _type_specs(node: Node, doc: str) -> list[TypeSpec]:
    """Collect specs from ``type X ...`` or a parenthesised ``type (...)`` group."""
    specs: list[TypeSpec] = []
    grouped = _is_grouped(node)
    for child, inner_doc in _with_docs(node.named_children):
        if child.type not in ("type_spec", "type_alias"):
            continue
        name = _text(child.child_by_field_name("name"))
        specs.append(
            TypeSpec(
                name=name,
                type=type_expr(child.child_by_field_name("type")),
                alias=child.type == "type_alias",
                doc=inner_doc if grouped else doc,
            )
        )
    return specs


def type_expr(node: Node) -> TypeExpr:
    """Convert a tree-sitter type node into a TypeExpr variant."""
    kind = node.type
    if kind == "type_identifier":
        return Named(_text(node))
    if kind == "qualified_type":
        return Qualified(
            package=_text(node.child_by_field_name("package")),
            name=_text(node.child_by_field_name("name")),
        )
    if kind == "pointer_type":
        return Pointer(type_expr(node.named_children[-1]))
    if kind == "slice_type":
        return Array(type_expr(node.child_by_field_name("element")))
    if kind == "array_type":
        length = node.child_by_field_name("length")
        return Array(
            type_expr(node.child_by_field_name("element")),
            length=_text(length) if length is not None else None,
        )
    if kind == "implicit_length_array_type":
        return Array(type_expr(node.child_by_field_name("element")), length="...")
    if kind == "map_type":
        return MapType(
            key=type_expr(node.child_by_field_name("key")),
            value=type_expr(node.child_by_field_name("value")),
        )
    if kind == "struct_type":
        for child in node.named_children:
            if child.type == "field_declaration_list":
                return StructType(fields=tuple(_fields(child)))
        return StructType()
    if kind == "interface_type":
        return _interface(node)
    if kind == "parenthesized_type":
        return type_expr(node.named_children[0])
    return Opaque(_collapse_whitespace(_text(node)))


def _fields(node: Node) -> list[FieldDecl]:
    """Convert a field_declaration_list, attaching doc and trailing comments."""
    fields: list[FieldDecl] = []
    pending: list[Node] = []
    trailing: list[Node] = []
    prev: Node | None = None

    for child in node.named_children:
        if child.type == "comment":
            if prev is not None and not pending and child.start_point[0] == prev.end_point[0]:
                trailing.append(child)
                continue
            if pending and child.start_point[0] > pending[-1].end_point[0] + 1:
                pending = []
            pending.append(child)
            continue
        if child.type != "field_declaration":
            continue
        if prev is not None and trailing:
            fields[-1] = _with_comment(fields[-1], comment_text(trailing))
        trailing = []

        doc = ""
        if pending and pending[-1].end_point[0] == child.start_point[0] - 1:
            doc = comment_text(pending)
        pending = []
        fields.append(_field(child, doc))
        prev = child

    if prev is not None and trailing:
        fields[-1] = _with_comment(fields[-1], comment_text(trailing))
    return fields


def _with_comment(decl: FieldDecl, comment: str) -> FieldDecl:
    return FieldDecl(
        names=decl.names, type=decl.type, tag=decl.tag, doc=decl.doc, comment=comment
    )


def _field(node: Node, doc: str) -> FieldDecl:
    names = tuple(_text(n) for n in node.children_by_field_name("name"))
    type_node = node.child_by_field_name("type")
    field_type = type_expr(type_node)
    # Embedded pointer: "*Base" puts the star outside the type field.
    if not names and any(c.type == "*" for c in node.children):
        field_type = Pointer(field_type)
    tag_node = node.child_by_field_name("tag")
    tag = None
    if tag_node is not None:
        try:
            tag = unquote_string(_text(tag_node))
        except ValueError:
            tag = ""
    return FieldDecl(names=names, type=field_type, tag=tag, doc=doc)


def _interface(node: Node) -> InterfaceType:
    methods: list[MethodSpec] = []
    embeds: list[str] = []
    for child in node.named_children:
        if child.type == "comment":
            continue
        if child.type in ("method_elem", "method_spec"):
            methods.append(
                MethodSpec(
                    name=_text(child.child_by_field_name("name")),
                    signature=_signature(child),
                )
            )
        else:
            embeds.append(_collapse_whitespace(_text(child)))
    return InterfaceType(methods=tuple(methods), embeds=tuple(embeds))


# Functions and values


def _signature(node: Node) -> str:
    """Parameters and result of a function-like node, e.g. ``(a int) error``."""
    params = node.child_by_field_name("parameters")
    result = node.child_by_field_name("result")
    sig = _collapse_whitespace(_text(params)) if params is not None else "()"
    if result is not None:
        sig += " " + _collapse_whitespace(_text(result))
    return sig


def _function(node: Node, doc: str) -> FuncDecl:
    return FuncDecl(
        name=_text(node.child_by_field_name("name")),
        signature=_signature(node),
        doc=doc,
    )


def _method(node: Node, doc: str) -> FuncDecl:
    return FuncDecl(
        name=_text(node.child_by_field_name("name")),
        signature=_signature(node),
        receiver=_receiver_type(node.child_by_field_name("receiver")),
        doc=doc,
    )


def _receiver_type(receiver: Node | None) -> str | None:
    """Base type name of a method receiver: ``(s *Server[T])`` -> ``Server``."""
    if receiver is None:
        return None
    for param in receiver.named_children:
        if param.type != "parameter_declaration":
            continue
        tp = param.child_by_field_name("type")
        while tp is not None and tp.type in ("pointer_type", "parenthesized_type"):
            tp = tp.named_children[-1]
        if tp is None:
            return None
        if tp.type == "generic_type":
            tp = tp.child_by_field_name("type")
        return _text(tp)
    return None


def _value_specs(node: Node, kind: ValueKind, doc: str) -> list[ValueSpec]:
    spec_type = "var_spec" if kind is ValueKind.VAR else "const_spec"
    specs: list[ValueSpec] = []
    children = node.named_children
    # Newer grammars wrap grouped specs in a *_spec_list node.
    if len(children) == 1 and children[0].type.endswith("_spec_list"):
        children = children[0].named_children
    grouped = _is_grouped(node)
    for child, inner_doc in _with_docs(children):
        if child.type != spec_type:
            continue
        names = tuple(
            _text(n) for n in child.children_by_field_name("name") if n.type == "identifier"
        )
        type_node = child.child_by_field_name("type")
        value_node = child.child_by_field_name("value")
        values: tuple[ValueExpr, ...] = ()
        if value_node is not None:
            exprs = (
                value_node.named_children
                if value_node.type == "expression_list"
                else [value_node]
            )
            values = tuple(ValueExpr(kind=e.type, text=_text(e)) for e in exprs)
        specs.append(
            ValueSpec(
                names=names,
                kind=kind,
                type=type_expr(type_node) if type_node is not None else None,
                values=values,
                doc=inner_doc if grouped else doc,
            )
        )
    return specs


def _is_grouped(node: Node) -> bool:
    """Whether a declaration uses the parenthesised ``kw ( ... )`` form."""
    return any(
        c.type == "(" or c.type.endswith("_spec_list") for c in node.children
    )


def _text(node: Node) -> str:
    return node.text.decode("utf-8")


def _collapse_whitespace(text: str) -> str:
    """Collapse multi-line whitespace into single spaces."""
    return re.sub(r"\s+", " ", text)
