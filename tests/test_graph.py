"""Tests for the package registry."""

from __future__ import annotations

from pathlib import Path

import pytest

from gosymbols.graph import Registry
from gosymbols.models import ImportSpec, Package, SourceFile


def _package(import_path: str, name: str | None = None) -> Package:
    name = name or import_path.rsplit("/", 1)[-1]
    return Package(import_path=import_path, name=name, directory=Path(import_path), files=())


class TestRegistry:
    """Tests for Registry lookups."""

    def test_add_and_lookup(self) -> None:
        registry = Registry()
        pkg = _package("example.com/a")
        registry.add(pkg)
        assert "example.com/a" in registry
        assert len(registry) == 1
        assert registry.by_import("example.com/a") is pkg
        assert registry.by_import("example.com/b") is None

    def test_duplicate_rejected(self) -> None:
        registry = Registry()
        registry.add(_package("example.com/a"))
        with pytest.raises(ValueError, match="already registered"):
            registry.add(_package("example.com/a"))

    def test_iteration_sorted_by_import_path(self) -> None:
        registry = Registry()
        for path in ("zeta", "alpha", "example.com/m"):
            registry.add(_package(path))
        assert [p.import_path for p in registry] == ["alpha", "example.com/m", "zeta"]

    def test_by_package_name(self) -> None:
        registry = Registry()
        registry.add(_package("example.com/v2", name="proto"))
        registry.add(_package("example.com/other"))
        assert registry.by_package_name("proto").import_path == "example.com/v2"
        assert registry.by_package_name("missing") is None

    def test_by_package_name_in_subset(self) -> None:
        registry = Registry()
        first = _package("a/util")
        second = _package("b/util")
        registry.add(first)
        registry.add(second)
        assert registry.by_package_name("util") is first
        assert registry.by_package_name("util", [second]) is second

    def test_by_file_only_scanned_imports(self) -> None:
        registry = Registry()
        registry.add(_package("bytes"))
        registry.add(_package("example.com/m"))
        source = SourceFile(
            path=Path("x.go"),
            package_name="x",
            imports=(ImportSpec("example.com/m"), ImportSpec("bytes"), ImportSpec("fmt")),
        )
        assert [p.import_path for p in registry.by_file(source)] == ["bytes", "example.com/m"]

    def test_links_require_both_ends(self) -> None:
        registry = Registry()
        registry.add(_package("a"))
        registry.add(_package("b"))
        registry.link("a", "b")
        registry.link("a", "missing")
        assert registry.dependencies("a") == ["b"]
        assert registry.dependencies("missing") == []
        assert registry.graph.number_of_edges() == 1
