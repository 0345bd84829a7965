"""Generate derived structs, field mappers and validators from resolved symbols."""

from __future__ import annotations

import re

from gosymbols.codegen import (
    NIL,
    AssignStmt,
    Binary,
    Call,
    FuncDef,
    Ident,
    IfStmt,
    Param,
    QualIdent,
    ReturnStmt,
    Selector,
    Stmt,
    StringLit,
    StructDecl,
    StructField,
    TypeRef,
    Unary,
    VarStmt,
)
from gosymbols.errors import GenerationConflict
from gosymbols.models import Array, Pointer, TypeExpr, TypeSpec
from gosymbols.symbols import Field, Resolver, Symbol

_GO_KEYWORDS = frozenset(
    {
        "break",
        "case",
        "chan",
        "const",
        "continue",
        "default",
        "defer",
        "else",
        "fallthrough",
        "for",
        "func",
        "go",
        "goto",
        "if",
        "import",
        "interface",
        "map",
        "package",
        "range",
        "return",
        "select",
        "struct",
        "switch",
        "type",
        "var",
    }
)


def type_prefix(expr: TypeExpr) -> str:
    """Re-create the pointer/array wrappers that the resolver unwrapped."""
    if isinstance(expr, Pointer):
        return "*" + type_prefix(expr.elem)
    if isinstance(expr, Array):
        return f"[{expr.length or ''}]" + type_prefix(expr.elem)
    return ""


def type_ref(sym: Symbol, prefix: str = "") -> TypeRef:
    """Reference to a symbol's type, qualified unless built-in."""
    if sym.builtin or sym.package is None:
        return TypeRef(name=sym.name, prefix=prefix)
    return TypeRef(
        name=sym.name,
        import_path=sym.package.import_path,
        package_name=sym.package.name,
        prefix=prefix,
    )


def field_type_ref(f: Field) -> TypeRef:
    return type_ref(f.type, type_prefix(f.raw_type))


def lower_camel(name: str) -> str:
    """Convert a field name to a parameter name: ``UserID`` -> ``userID``.

    A leading run of capitals is lowered as one word (``HTTPServer`` ->
    ``httpServer``); underscores and dashes split words. Go keywords get a
    trailing underscore.
    """
    words = [w for w in re.split(r"[_\-\s]+", name) if w]
    if not words:
        return name
    ident = _lower_head(words[0]) + "".join(w[:1].upper() + w[1:] for w in words[1:])
    if ident in _GO_KEYWORDS:
        ident += "_"
    return ident


def _lower_head(word: str) -> str:
    i = 0
    while i < len(word) and word[i].isupper():
        i += 1
    if i == len(word):
        return word.lower()
    if i <= 1:
        return word[:1].lower() + word[1:]
    return word[: i - 1].lower() + word[i - 1 :]


def generate_struct(sym: Symbol, resolver: Resolver) -> StructDecl:
    """Struct declaration named after the symbol, fields in original order.

    Raises:
        ShapeError: If the symbol is not a struct.
        ResolutionError: If a field type cannot be resolved.
    """
    fields = sym.fields(resolver)
    return StructDecl(
        name=sym.name,
        fields=tuple(
            StructField(
                name=f.name,
                type=field_type_ref(f),
                tags=tuple(sorted(f.tags.items())),
                comment=f.comment,
            )
            for f in fields
        ),
    )


def _prepare_mapping(
    source: Symbol, target: Symbol, resolver: Resolver
) -> tuple[dict[str, Field], list[Field], list[Field]]:
    """Match target fields against source fields by name.

    Returns:
        Tuple of (source fields by name, target fields, target fields with
        no source counterpart).

    Raises:
        GenerationConflict: If a shared field name has different types.
    """
    existing = {f.name: f for f in source.fields(resolver)}
    target_fields = target.fields(resolver)
    missing: list[Field] = []
    for f in target_fields:
        src = existing.get(f.name)
        if src is None:
            missing.append(f)
        elif src.type != f.type:
            raise GenerationConflict(
                f"field {f.name} has different type in source and target struct"
            )
    return existing, target_fields, missing


def _param_names(missing: list[Field], taken: set[str]) -> dict[str, str]:
    """Parameter name per target-only field; clashes get a numeric suffix."""
    used = set(taken)
    names: dict[str, str] = {}
    for f in missing:
        base = lower_camel(f.name)
        name = base
        n = 1
        while name in used:
            n += 1
            name = f"{base}{n}"
        used.add(name)
        names[f.name] = name
    return names


def _map_body(
    target_name: str,
    src_name: str,
    existing: dict[str, Field],
    target_fields: list[Field],
    params: dict[str, str],
    target: Symbol,
    by_reference: bool,
) -> tuple[Stmt, ...]:
    body: list[Stmt] = [VarStmt(target_name, type_ref(target))]
    for f in target_fields:
        if f.name in existing:
            value = Selector(Ident(src_name), f.name)
        else:
            value = Ident(params[f.name])
        body.append(AssignStmt(Selector(Ident(target_name), f.name), value))
    result = Ident(target_name)
    body.append(ReturnStmt(Unary("&", result) if by_reference else result))
    return tuple(body)


def _extra_params(missing: list[Field], params: dict[str, str]) -> tuple[Param, ...]:
    return tuple(Param(params[f.name], field_type_ref(f)) for f in missing)


def generate_mapper(
    source: Symbol,
    target: Symbol,
    resolver: Resolver,
    func_name: str,
    by_reference: bool = True,
) -> FuncDef:
    """Function converting a source struct into a target struct.

    Fields present in both are copied; target-only fields become extra
    parameters. With ``by_reference`` the source is taken and the target
    returned as pointers.

    Raises:
        GenerationConflict: If a shared field name has different types.
    """
    existing, target_fields, missing = _prepare_mapping(source, target, resolver)
    src_name = "src" + source.name
    target_name = "dest" + target.name
    params = _param_names(missing, {src_name, target_name})
    mod = "*" if by_reference else ""
    return FuncDef(
        name=func_name,
        params=(Param(src_name, type_ref(source, mod)), *_extra_params(missing, params)),
        result=type_ref(target, mod),
        body=_map_body(
            target_name, src_name, existing, target_fields, params, target, by_reference
        ),
    )


def generate_self_mapper(
    source: Symbol,
    target: Symbol,
    resolver: Resolver,
    func_name: str,
    by_reference: bool = True,
) -> FuncDef:
    """Like :func:`generate_mapper`, emitted as a method of the source type."""
    existing, target_fields, missing = _prepare_mapping(source, target, resolver)
    src_name = "src" + source.name
    target_name = "dest" + target.name
    params = _param_names(missing, {src_name, target_name})
    mod = "*" if by_reference else ""
    return FuncDef(
        name=func_name,
        receiver=Param(src_name, type_ref(source, mod)),
        params=_extra_params(missing, params),
        result=type_ref(target, mod),
        body=_map_body(
            target_name, src_name, existing, target_fields, params, target, by_reference
        ),
    )


def _is_slice(f: Field) -> bool:
    """Whether a field holds a slice, written inline or through a named type."""
    if isinstance(f.raw_type, Array):
        return f.raw_type.length is None
    if isinstance(f.raw_type, Pointer):
        return False
    node = f.type.node
    return (
        isinstance(node, TypeSpec)
        and isinstance(node.type, Array)
        and node.type.length is None
    )


def generate_validation(sym: Symbol, resolver: Resolver, required: list[str]) -> FuncDef:
    """``Validate() error`` method failing for required fields left at zero value.

    Unknown names in ``required`` are ignored. Slices, including named slice
    types, are checked by length; everything else against a zero-valued instance.
    """
    wanted = set(required)
    fields = [f for f in sym.fields(resolver) if f.name in wanted]
    receiver = Param("self", type_ref(sym, "*"))
    if not fields:
        return FuncDef(
            name="Validate",
            receiver=receiver,
            result=TypeRef("error"),
            body=(ReturnStmt(NIL),),
        )

    problems = Ident("problems")
    body: list[Stmt] = [
        VarStmt("byDefault", type_ref(sym)),
        VarStmt("problems", TypeRef("string", prefix="[]")),
    ]
    for f in fields:
        current = Selector(Ident("self"), f.name)
        if _is_slice(f):
            cond = Binary(Call(Ident("len"), (current,)), "==", Ident("0"))
        else:
            cond = Binary(current, "==", Selector(Ident("byDefault"), f.name))
        body.append(
            IfStmt(
                cond,
                (
                    AssignStmt(
                        problems,
                        Call(Ident("append"), (problems, StringLit(f"{f.name} is not defined"))),
                    ),
                ),
            )
        )
    body.append(IfStmt(Binary(problems, "==", NIL), (ReturnStmt(NIL),)))
    joined = Call(QualIdent("strings", "Join"), (problems, StringLit(", ")))
    body.append(ReturnStmt(Call(QualIdent("errors", "New"), (joined,))))
    return FuncDef(
        name="Validate",
        receiver=receiver,
        result=TypeRef("error"),
        body=tuple(body),
    )


def generate_validation_by_comment(sym: Symbol, resolver: Resolver, marker: str) -> FuncDef:
    """:func:`generate_validation` for fields whose comment contains ``marker``."""
    required = [f.name for f in sym.fields(resolver) if marker in f.comment]
    return generate_validation(sym, resolver, required)
