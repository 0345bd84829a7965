"""Immutable declaration model for parsed Go source."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from pathlib import Path

# Type expressions: a closed set of variants. Anything the resolver cannot
# unwrap is kept as Opaque source text.


@dataclass(frozen=True)
class Named:
    """An unqualified type name such as ``int`` or ``Buffer``."""

    name: str


@dataclass(frozen=True)
class Qualified:
    """A package-qualified type name such as ``bytes.Buffer``."""

    package: str
    name: str


@dataclass(frozen=True)
class Pointer:
    """A pointer wrapper ``*elem``."""

    elem: TypeExpr


@dataclass(frozen=True)
class Array:
    """A slice (``length`` is None) or fixed-size array wrapper."""

    elem: TypeExpr
    length: str | None = None


@dataclass(frozen=True)
class MapType:
    key: TypeExpr
    value: TypeExpr


@dataclass(frozen=True)
class FieldDecl:
    """One line of a struct body.

    ``names`` is empty for embedded fields and holds several entries for
    ``A, B int`` style declarations.
    """

    names: tuple[str, ...]
    type: TypeExpr
    tag: str | None = None
    doc: str = ""
    comment: str = ""


@dataclass(frozen=True)
class StructType:
    fields: tuple[FieldDecl, ...] = ()


@dataclass(frozen=True)
class MethodSpec:
    """An interface method: its name and the signature text after the name."""

    name: str
    signature: str


@dataclass(frozen=True)
class InterfaceType:
    methods: tuple[MethodSpec, ...] = ()
    embeds: tuple[str, ...] = ()


@dataclass(frozen=True)
class Opaque:
    """Function, channel, generic and other shapes kept as source text."""

    text: str


TypeExpr = (
    Named | Qualified | Pointer | Array | MapType | StructType | InterfaceType | Opaque
)


def type_text(expr: TypeExpr) -> str:
    """Render a type expression back to Go source text."""
    if isinstance(expr, Named):
        return expr.name
    if isinstance(expr, Qualified):
        return f"{expr.package}.{expr.name}"
    if isinstance(expr, Pointer):
        return "*" + type_text(expr.elem)
    if isinstance(expr, Array):
        return f"[{expr.length or ''}]" + type_text(expr.elem)
    if isinstance(expr, MapType):
        return f"map[{type_text(expr.key)}]{type_text(expr.value)}"
    if isinstance(expr, StructType):
        if not expr.fields:
            return "struct{}"
        body = "; ".join(_field_text(f) for f in expr.fields)
        return f"struct{{ {body} }}"
    if isinstance(expr, InterfaceType):
        if not expr.methods and not expr.embeds:
            return "interface{}"
        items = [*expr.embeds, *(m.name + m.signature for m in expr.methods)]
        return f"interface{{ {'; '.join(items)} }}"
    return expr.text


def _field_text(f: FieldDecl) -> str:
    text = type_text(f.type)
    if f.names:
        text = f"{', '.join(f.names)} {text}"
    if f.tag is not None:
        text += f" `{f.tag}`"
    return text


# Top-level declarations.


class ValueKind(enum.Enum):
    """Whether a value spec comes from a ``var`` or ``const`` declaration."""

    VAR = "var"
    CONST = "const"


@dataclass(frozen=True)
class ValueExpr:
    """An initialiser expression: its tree-sitter node type and source text."""

    kind: str
    text: str


@dataclass(frozen=True)
class TypeSpec:
    name: str
    type: TypeExpr
    alias: bool = False
    doc: str = ""


@dataclass(frozen=True)
class FuncDecl:
    """A function or method declaration (body not retained)."""

    name: str
    signature: str
    receiver: str | None = None
    doc: str = ""


@dataclass(frozen=True)
class ValueSpec:
    names: tuple[str, ...]
    kind: ValueKind
    type: TypeExpr | None = None
    values: tuple[ValueExpr, ...] = ()
    doc: str = ""


Decl = TypeSpec | FuncDecl | ValueSpec


@dataclass(frozen=True)
class ImportSpec:
    """One import; ``alias`` is None unless written (``.`` and ``_`` included)."""

    path: str
    alias: str | None = None


@dataclass(frozen=True)
class SourceFile:
    """A parsed Go file.

    ``import_path`` is the import path of the owning package; it is empty
    until the file is attached to a package by the scanner.
    """

    path: Path
    package_name: str
    imports: tuple[ImportSpec, ...] = ()
    decls: tuple[Decl, ...] = ()
    import_path: str = ""

    @property
    def import_paths(self) -> list[str]:
        return [imp.path for imp in self.imports]


@dataclass(frozen=True)
class Package:
    """A scanned Go package (one directory)."""

    import_path: str
    name: str
    directory: Path
    files: tuple[SourceFile, ...] = field(default_factory=tuple)

    def find_file(self, name: str) -> SourceFile | None:
        """Return the file with the given base name, if owned by this package."""
        for f in self.files:
            if f.path.name == name:
                return f
        return None
