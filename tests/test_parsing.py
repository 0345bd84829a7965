"""Tests for tree-sitter parsing into the declaration model."""

from __future__ import annotations

from pathlib import Path

import pytest

from gosymbols.errors import ScanError
from gosymbols.models import (
    Array,
    FuncDecl,
    ImportSpec,
    InterfaceType,
    MapType,
    Named,
    Opaque,
    Pointer,
    Qualified,
    StructType,
    TypeSpec,
    ValueKind,
    ValueSpec,
    type_text,
)
from gosymbols.parsing import parse_file, parse_source, unquote_string


def _parse(code: str):
    return parse_source(code.encode("utf-8"), Path("x.go"))


def _type(code: str, name: str) -> TypeSpec:
    for decl in _parse(code).decls:
        if isinstance(decl, TypeSpec) and decl.name == name:
            return decl
    raise AssertionError(f"{name} not declared")


class TestParseFile:
    """Package clause, imports and file-level errors."""

    def test_package_name(self, tmp_path: Path) -> None:
        f = tmp_path / "a.go"
        f.write_text("package widgets\n", encoding="utf-8")
        parsed = parse_file(f)
        assert parsed.package_name == "widgets"
        assert parsed.path == f
        assert parsed.import_path == ""

    def test_single_import(self) -> None:
        parsed = _parse('package a\n\nimport "fmt"\n')
        assert parsed.imports == (ImportSpec(path="fmt"),)

    def test_grouped_imports_with_aliases(self) -> None:
        parsed = _parse(
            'package a\n\nimport (\n\t"fmt"\n\tpb "example.com/proto/v2"\n'
            '\t. "strings"\n\t_ "embed"\n)\n'
        )
        assert parsed.imports == (
            ImportSpec(path="fmt"),
            ImportSpec(path="example.com/proto/v2", alias="pb"),
            ImportSpec(path="strings", alias="."),
            ImportSpec(path="embed", alias="_"),
        )
        assert parsed.import_paths == ["fmt", "example.com/proto/v2", "strings", "embed"]

    def test_syntax_error_raises(self) -> None:
        with pytest.raises(ScanError, match="syntax error"):
            _parse("package a\n\ntype X struct {\n")

    def test_missing_package_clause_raises(self) -> None:
        with pytest.raises(ScanError, match="missing package clause"):
            _parse("")

    def test_unreadable_file_raises(self, tmp_path: Path) -> None:
        with pytest.raises(ScanError):
            parse_file(tmp_path / "missing.go")


class TestStructFields:
    """Struct bodies: names, types, tags and comments."""

    def test_field_types(self) -> None:
        spec = _type(
            "package a\n\nimport \"bytes\"\n\ntype S struct {\n\tA int\n\tB *string\n"
            "\tC []*float64\n\tD [4]bytes.Buffer\n\tE map[string]int\n\tF func() error\n}\n",
            "S",
        )
        assert isinstance(spec.type, StructType)
        types = [f.type for f in spec.type.fields]
        assert types[0] == Named("int")
        assert types[1] == Pointer(Named("string"))
        assert types[2] == Array(Pointer(Named("float64")))
        assert types[3] == Array(Qualified("bytes", "Buffer"), length="4")
        assert types[4] == MapType(Named("string"), Named("int"))
        assert isinstance(types[5], Opaque)
        assert type_text(types[5]) == "func() error"

    def test_tag_is_unquoted(self) -> None:
        spec = _type('package a\n\ntype S struct {\n\tA int `json:"a" db:"x"`\n}\n', "S")
        assert spec.type.fields[0].tag == 'json:"a" db:"x"'

    def test_interpreted_string_tag(self) -> None:
        spec = _type('package a\n\ntype S struct {\n\tA int "json:\\"a\\""\n}\n', "S")
        assert spec.type.fields[0].tag == 'json:"a"'

    def test_field_without_tag(self) -> None:
        spec = _type("package a\n\ntype S struct {\n\tA int\n}\n", "S")
        assert spec.type.fields[0].tag is None

    def test_embedded_and_multi_name_fields(self) -> None:
        spec = _type(
            "package a\n\nimport \"sync\"\n\ntype S struct {\n\tsync.Mutex\n\t*Base\n\tX, Y int\n}\n",
            "S",
        )
        fields = spec.type.fields
        assert fields[0].names == ()
        assert fields[0].type == Qualified("sync", "Mutex")
        assert fields[1].names == ()
        assert fields[1].type == Pointer(Named("Base"))
        assert fields[2].names == ("X", "Y")

    def test_doc_and_trailing_comments(self) -> None:
        spec = _type(
            """\
package a

type S struct {
	// Name of the user.
	// required
	Name string // trailing
	Age  int    // age in years

	// detached

	Email string
	/* Phone doc */
	Phone string
}
""",
            "S",
        )
        name, age, email, phone = spec.type.fields
        assert name.doc == "Name of the user.\nrequired"
        assert name.comment == "trailing"
        assert age.doc == ""
        assert age.comment == "age in years"
        assert email.doc == ""
        assert email.comment == ""
        assert phone.doc.strip() == "Phone doc"

    def test_directive_comments_are_dropped(self) -> None:
        spec = _type(
            "package a\n\ntype S struct {\n\t//go:generate stringer\n\t// Kind.\n\tKind int\n}\n",
            "S",
        )
        assert spec.type.fields[0].doc == "Kind."

    def test_empty_struct(self) -> None:
        spec = _type("package a\n\ntype S struct{}\n", "S")
        assert spec.type == StructType()


class TestDeclarations:
    """Top-level types, functions and values."""

    def test_grouped_types_and_alias(self) -> None:
        parsed = _parse(
            "package a\n\ntype (\n\t// ID doc.\n\tID int64\n\tName = string\n)\n"
        )
        id_spec, name_spec = parsed.decls
        assert id_spec == TypeSpec(name="ID", type=Named("int64"), doc="ID doc.")
        assert name_spec.alias is True

    def test_type_doc_comment(self) -> None:
        spec = _type("package a\n\n// Thing does things.\ntype Thing struct{}\n", "Thing")
        assert spec.doc == "Thing does things."

    def test_interface_methods(self) -> None:
        spec = _type(
            "package a\n\ntype Store interface {\n\tio.Closer\n\tGet(id int64) (*User, error)\n}\n",
            "Store",
        )
        assert isinstance(spec.type, InterfaceType)
        assert [m.name for m in spec.type.methods] == ["Get"]
        assert spec.type.methods[0].signature == "(id int64) (*User, error)"
        assert spec.type.embeds == ("io.Closer",)

    def test_functions_and_methods(self) -> None:
        parsed = _parse(
            "package a\n\n// New builds.\nfunc New(name string) *T { return nil }\n\n"
            "func (t *T) Close() error { return nil }\n\nfunc (l List[E]) Len() int { return 0 }\n"
        )
        new, close_, length = parsed.decls
        assert new == FuncDecl(name="New", signature="(name string) *T", doc="New builds.")
        assert close_.receiver == "T"
        assert close_.signature == "() error"
        assert length.receiver == "List"

    def test_var_and_const_specs(self) -> None:
        parsed = _parse(
            'package a\n\nconst Answer = 42\n\nvar (\n\tx, y int\n\tname string = "n"\n)\n'
        )
        answer, xy, name = parsed.decls
        assert isinstance(answer, ValueSpec)
        assert answer.kind is ValueKind.CONST
        assert answer.names == ("Answer",)
        assert answer.values[0].kind == "int_literal"
        assert answer.values[0].text == "42"
        assert xy.kind is ValueKind.VAR
        assert xy.names == ("x", "y")
        assert xy.type == Named("int")
        assert name.values[0].text == '"n"'


class TestUnquoteString:
    """Tests for Go string literal unquoting."""

    def test_raw(self) -> None:
        assert unquote_string('`a "b"`') == 'a "b"'

    def test_interpreted_with_escapes(self) -> None:
        assert unquote_string('"a\\tb\\"c"') == 'a\tb"c'

    def test_malformed(self) -> None:
        with pytest.raises(ValueError):
            unquote_string('"unterminated')

    def test_numeric_escapes(self) -> None:
        assert unquote_string('"\\x41\\101\\u00e9\\U0001F600"') == "AAé\U0001f600"

    def test_byte_escape_keeps_raw_byte(self) -> None:
        value = unquote_string('"\\xff"')
        assert value.encode("utf-8", "surrogateescape") == b"\xff"

    @pytest.mark.parametrize(
        "literal",
        [
            '"\\q"',
            "\"\\'\"",
            '"\\N{DASH}"',
            '"\\400"',
            '"\\12"',
            '"\\ud800"',
            '"\\x4"',
            '"a"b"',
            '"a\nb"',
        ],
    )
    def test_rejects_non_go_literals(self, literal: str) -> None:
        with pytest.raises(ValueError):
            unquote_string(literal)
