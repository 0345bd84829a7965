"""Package registry backed by the import graph."""

from __future__ import annotations

from collections.abc import Iterator

import networkx as nx

from gosymbols.models import Package, SourceFile


class Registry:
    """Scanned packages keyed by import path, plus the edges between them.

    Nodes are import paths carrying their Package under the ``package``
    attribute. An edge from A to B means a file of A imports B and both were
    scanned.
    """

    def __init__(self) -> None:
        self.graph: nx.DiGraph = nx.DiGraph()

    def add(self, package: Package) -> None:
        """Insert a package. Each import path may be added only once."""
        if package.import_path in self:
            raise ValueError(f"package {package.import_path} already registered")
        self.graph.add_node(package.import_path, package=package)

    def link(self, importer: str, imported: str) -> None:
        """Record that ``importer`` imports ``imported`` (both must be registered)."""
        if importer in self and imported in self:
            self.graph.add_edge(importer, imported)

    def __contains__(self, import_path: object) -> bool:
        return import_path in self.graph

    def __len__(self) -> int:
        return self.graph.number_of_nodes()

    def __iter__(self) -> Iterator[Package]:
        for import_path in sorted(self.graph.nodes):
            yield self.graph.nodes[import_path]["package"]

    def by_import(self, import_path: str) -> Package | None:
        """Return the package with the given import path, or None."""
        if import_path not in self.graph:
            return None
        return self.graph.nodes[import_path]["package"]

    def by_package_name(self, name: str, packages: list[Package] | None = None) -> Package | None:
        """Return the first package (by import path) whose display name matches."""
        for package in packages if packages is not None else list(self):
            if package.name == name:
                return package
        return None

    def by_file(self, source_file: SourceFile) -> list[Package]:
        """Return the scanned packages a file imports, sorted by import path."""
        wanted = set(source_file.import_paths)
        return [p for p in self if p.import_path in wanted]

    def dependencies(self, import_path: str) -> list[str]:
        """Scanned packages directly imported by the given package."""
        if import_path not in self.graph:
            return []
        return sorted(self.graph.successors(import_path))
