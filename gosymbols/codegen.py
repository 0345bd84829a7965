"""Abstract Go declarations produced by the generator and consumed by the renderer."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class TypeRef:
    """A type as written in generated code: ``prefix`` + (qualifier.)name.

    ``import_path`` is None for built-ins and types of the file being
    generated. ``package_name`` is the declared name of that package, used
    to pick the import qualifier.
    """

    name: str
    import_path: str | None = None
    package_name: str | None = None
    prefix: str = ""


# Expressions


@dataclass(frozen=True)
class Ident:
    name: str


@dataclass(frozen=True)
class QualIdent:
    """A package-level name of another package, e.g. ``errors.New``."""

    import_path: str
    name: str
    package_name: str | None = None


@dataclass(frozen=True)
class Selector:
    x: Expr
    name: str


@dataclass(frozen=True)
class Unary:
    op: str
    x: Expr


@dataclass(frozen=True)
class Binary:
    left: Expr
    op: str
    right: Expr


@dataclass(frozen=True)
class Call:
    func: Expr
    args: tuple[Expr, ...] = ()


@dataclass(frozen=True)
class StringLit:
    value: str


Expr = Ident | QualIdent | Selector | Unary | Binary | Call | StringLit

NIL = Ident("nil")


# Statements


@dataclass(frozen=True)
class VarStmt:
    name: str
    type: TypeRef


@dataclass(frozen=True)
class AssignStmt:
    target: Expr
    value: Expr


@dataclass(frozen=True)
class ReturnStmt:
    value: Expr | None = None


@dataclass(frozen=True)
class IfStmt:
    cond: Expr
    body: tuple[Stmt, ...]


Stmt = VarStmt | AssignStmt | ReturnStmt | IfStmt


# Declarations


@dataclass(frozen=True)
class StructField:
    name: str
    type: TypeRef
    tags: tuple[tuple[str, str], ...] = ()
    comment: str = ""


@dataclass(frozen=True)
class StructDecl:
    name: str
    fields: tuple[StructField, ...] = ()


@dataclass(frozen=True)
class Param:
    name: str
    type: TypeRef


@dataclass(frozen=True)
class FuncDef:
    """A function, or a method when ``receiver`` is set."""

    name: str
    params: tuple[Param, ...] = ()
    result: TypeRef | None = None
    body: tuple[Stmt, ...] = ()
    receiver: Param | None = None


Declaration = StructDecl | FuncDef
