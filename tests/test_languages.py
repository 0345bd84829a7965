"""Tests for the language registry."""

from __future__ import annotations

from gosymbols.languages import GO, LANGUAGES, language_for_extension


class TestLanguageForExtension:
    """Tests for extension-to-language lookup."""

    def test_go_extension(self) -> None:
        lang = language_for_extension(".go")
        assert lang is not None
        assert lang.name == "go"

    def test_unknown_extension_returns_none(self) -> None:
        assert language_for_extension(".py") is None

    def test_no_dot_returns_none(self) -> None:
        assert language_for_extension("go") is None


class TestTreeSitterLanguage:
    """Tests for TreeSitterLanguage configuration."""

    def test_go_is_registered(self) -> None:
        assert LANGUAGES["go"] is GO
        assert GO.extensions == (".go",)

    def test_get_parser(self) -> None:
        assert GO.get_parser() is not None

    def test_get_parser_returns_same_instance(self) -> None:
        assert GO.get_parser() is GO.get_parser()

    def test_parser_handles_go(self) -> None:
        tree = GO.get_parser().parse(b"package main\n")
        assert tree.root_node.type == "source_file"
        assert not tree.root_node.has_error
