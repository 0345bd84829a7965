"""Symbols, fields and the type-expression unwrap used to resolve them."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Protocol

from gosymbols.errors import ResolutionError, ShapeError
from gosymbols.models import (
    Array,
    Decl,
    FieldDecl,
    FuncDecl,
    InterfaceType,
    MethodSpec,
    Named,
    Package,
    Pointer,
    Qualified,
    SourceFile,
    StructType,
    TypeExpr,
    TypeSpec,
    ValueKind,
    ValueSpec,
    type_text,
)
from gosymbols.parsing import unquote_string

BUILTIN_TYPES: frozenset[str] = frozenset(
    {
        "bool",
        "string",
        "error",
        "byte",
        "rune",
        "int",
        "int8",
        "int16",
        "int32",
        "int64",
        "uint",
        "uint8",
        "uint16",
        "uint32",
        "uint64",
        "uintptr",
        "float32",
        "float64",
        "complex64",
        "complex128",
        "any",
        "interface{}",
        "struct{}",
    }
)

_LITERAL_KINDS = frozenset(
    {
        "int_literal",
        "float_literal",
        "imaginary_literal",
        "rune_literal",
        "interpreted_string_literal",
        "raw_string_literal",
        "true",
        "false",
    }
)


class Resolver(Protocol):
    """Anything that maps a (qualified) name seen in a file to a Symbol."""

    def find_symbol(self, qualified_name: str, source_file: SourceFile) -> Symbol: ...


@dataclass(frozen=True, eq=False)
class Symbol:
    """A resolved handle to a declaration.

    Built-in symbols have no package, file or node. Equality is structural
    type identity: same name, same built-in flag and, unless built-in, same
    owning import path.
    """

    name: str
    package: Package | None = None
    file: SourceFile | None = None
    node: Decl | None = None
    builtin: bool = False

    @classmethod
    def make_builtin(cls, name: str) -> Symbol:
        return cls(name=name, builtin=True)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Symbol):
            return NotImplemented
        if self.name != other.name or self.builtin != other.builtin:
            return False
        if self.builtin:
            return True
        return self.import_path == other.import_path

    def __hash__(self) -> int:
        return hash((self.name, self.builtin, None if self.builtin else self.import_path))

    def __str__(self) -> str:
        if self.builtin or self.package is None:
            return self.name
        text = f"{self.package.name}{{{self.package.import_path}}}{self.name}"
        if self.is_literal():
            text += "=" + self.literal()
        return text

    @property
    def import_path(self) -> str | None:
        return self.package.import_path if self.package is not None else None

    def with_node(self, node: Decl) -> Symbol:
        """Same identity, different declaration."""
        return replace(self, node=node)

    def renamed(self, name: str) -> Symbol:
        """Same declaration under a new name (the TypeSpec is renamed too)."""
        node = self.node
        if isinstance(node, TypeSpec):
            node = replace(node, name=name)
        return replace(self, name=name, node=node)

    def moved_to(self, package: Package) -> Symbol:
        """Same declaration, owned by another package."""
        return replace(self, package=package)

    # Kind predicates

    def is_type(self) -> bool:
        return isinstance(self.node, TypeSpec)

    def is_struct(self) -> bool:
        return isinstance(self.node, TypeSpec) and isinstance(self.node.type, StructType)

    def is_interface(self) -> bool:
        return isinstance(self.node, TypeSpec) and isinstance(self.node.type, InterfaceType)

    def is_function(self) -> bool:
        return isinstance(self.node, FuncDecl)

    def is_variable(self) -> bool:
        return isinstance(self.node, ValueSpec) and self.node.kind is ValueKind.VAR

    def is_constant(self) -> bool:
        return isinstance(self.node, ValueSpec) and self.node.kind is ValueKind.CONST

    def is_literal(self) -> bool:
        """Whether this is a var/const initialised with a basic literal."""
        value = self._value()
        return value is not None and value.kind in _LITERAL_KINDS

    def literal(self) -> str:
        """Source text of the basic literal this var/const is initialised with.

        Raises:
            ShapeError: If the symbol is not initialised with a literal.
        """
        value = self._value()
        if value is None or value.kind not in _LITERAL_KINDS:
            raise ShapeError(f"{self.name} is not a literal")
        return value.text

    def _value(self):
        if not isinstance(self.node, ValueSpec) or self.name not in self.node.names:
            return None
        index = self.node.names.index(self.name)
        if index >= len(self.node.values):
            return None
        return self.node.values[index]

    # Shape views

    def struct_type(self) -> StructType:
        """Return the struct body of this declaration.

        Raises:
            ShapeError: If the symbol is not a struct type declaration.
        """
        if not self.is_struct():
            raise ShapeError(f"{self.name} is not a struct")
        return self.node.type

    def field_names(self) -> list[str]:
        """Names of the named (non-embedded) single-name fields, in order."""
        return [f.names[0] for f in self.struct_type().fields if len(f.names) == 1]

    def fields(self, resolver: Resolver) -> list[Field]:
        """Resolve every named field of this struct.

        Embedded fields and multi-name fields (``A, B int``) are skipped.

        Raises:
            ShapeError: If the symbol is not a struct.
            ResolutionError: If any field's element type cannot be resolved;
                no partial list is returned.
        """
        st = self.struct_type()
        resolved: list[Field] = []
        for decl in st.fields:
            if len(decl.names) != 1:
                continue
            resolved.append(_wrap_field(decl, self, resolver))
        return resolved

    def methods(self) -> list[Method]:
        """Methods declared by this interface.

        Raises:
            ShapeError: If the symbol is not an interface.
        """
        if not self.is_interface():
            raise ShapeError(f"{self.name} is not an interface")
        return [Method(name=m.name, raw=m) for m in self.node.type.methods]

    def function(self) -> Function:
        """Function view of this symbol.

        Raises:
            ShapeError: If the symbol is not a function.
        """
        if not isinstance(self.node, FuncDecl):
            raise ShapeError(f"{self.name} is not a function")
        return Function(name=self.node.name, raw=self.node)


@dataclass(frozen=True)
class Field:
    """A struct field with its element type resolved."""

    name: str
    type: Symbol
    raw_type: TypeExpr
    raw: FieldDecl
    tags: dict[str, str] = field(default_factory=dict, hash=False)

    @property
    def comment(self) -> str:
        """Doc comment, then the trailing comment, separated by a blank line."""
        text = self.raw.doc
        if self.raw.comment:
            if text:
                text += "\n\n"
            text += self.raw.comment
        return text.strip()


@dataclass(frozen=True)
class Method:
    name: str
    raw: MethodSpec


@dataclass(frozen=True)
class Function:
    name: str
    raw: FuncDecl


def canonical_name(expr: TypeExpr) -> str:
    """Unwrap pointer and array layers down to a resolvable name.

    ``*[]*pkg.Item`` becomes ``pkg.Item``; literal empty struct and interface
    types collapse to their built-in spelling.

    Raises:
        ResolutionError: For maps, functions, channels and other shapes that
            have no single element name.
    """
    if isinstance(expr, (Pointer, Array)):
        return canonical_name(expr.elem)
    if isinstance(expr, Qualified):
        return f"{expr.package}.{expr.name}"
    if isinstance(expr, Named):
        return expr.name
    if isinstance(expr, StructType):
        return "struct{}"
    if isinstance(expr, InterfaceType):
        return "interface{}"
    raise ResolutionError(f"unsupported field type {type_text(expr)}")


def _wrap_field(decl: FieldDecl, owner: Symbol, resolver: Resolver) -> Field:
    name = decl.names[0]
    try:
        element = resolver.find_symbol(canonical_name(decl.type), owner.file)
    except ResolutionError as exc:
        raise ResolutionError(f"get real type of {owner.name}.{name}: {exc}") from exc
    return Field(
        name=name,
        type=element,
        raw_type=decl.type,
        raw=decl,
        tags=parse_tags(decl.tag or ""),
    )


def parse_tags(tag: str) -> dict[str, str]:
    """Parse a struct tag into a key -> value map.

    Uses the ``key:"value"`` grammar of Go's ``reflect.StructTag``: entries
    are separated by spaces and values are double-quoted Go strings. Parsing
    stops silently at the first malformed entry.
    """
    tags: dict[str, str] = {}
    while tag:
        tag = tag.lstrip(" ")
        if not tag:
            break

        i = 0
        while i < len(tag) and tag[i] > " " and tag[i] not in ':"\x7f':
            i += 1
        if i == 0 or i + 1 >= len(tag) or tag[i] != ":" or tag[i + 1] != '"':
            break
        name = tag[:i]
        tag = tag[i + 1 :]

        i = 1
        while i < len(tag) and tag[i] != '"':
            if tag[i] == "\\":
                i += 1
            i += 1
        if i >= len(tag):
            break
        quoted = tag[: i + 1]
        tag = tag[i + 1 :]

        try:
            tags[name] = unquote_string(quoted)
        except ValueError:
            break
    return tags
