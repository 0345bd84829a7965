"""Project sessions: the symbol table over a scanned registry."""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

from gosymbols.discovery import SearchRoot, lookup_roots
from gosymbols.errors import ResolutionError, ScanError
from gosymbols.graph import Registry
from gosymbols.models import FuncDecl, Package, SourceFile, TypeSpec, ValueSpec
from gosymbols.scanner import scan_dir, scan_package
from gosymbols.symbols import BUILTIN_TYPES, Symbol


class Project:
    """One resolution session: a root package and every package it reached.

    Build with :meth:`by_dir` or :meth:`by_package`; the registry is
    read-only afterwards.
    """

    def __init__(self, registry: Registry, package: Package) -> None:
        self.registry = registry
        self.package = package

    @classmethod
    def by_dir(
        cls,
        directory: Path,
        *,
        search_roots: list[SearchRoot] | None = None,
        limit: int = -1,
    ) -> Project:
        """Open the package in a directory.

        Raises:
            ScanError: If the directory has no Go files or scanning fails.
        """
        registry, import_path = scan_dir(directory, search_roots, limit)
        package = registry.by_import(import_path)
        if package is None:
            raise ScanError(f"package {import_path} scanned but not registered")
        return cls(registry, package)

    @classmethod
    def by_package(
        cls,
        import_path: str,
        *,
        search_roots: list[SearchRoot] | None = None,
        limit: int = -1,
    ) -> Project:
        """Open a package by import path, looked up in the search roots."""
        if search_roots is None:
            search_roots = lookup_roots(Path.cwd())
        registry = scan_package(import_path, search_roots, limit)
        package = registry.by_import(import_path)
        if package is None:
            raise ScanError(f"package {import_path} scanned but not registered")
        return cls(registry, package)

    def find_package_import(self, name_or_alias: str, source_file: SourceFile) -> Package:
        """Resolve a qualifier used in a file to a scanned package.

        The explicit import alias wins; otherwise the display name of the
        scanned packages the file imports is matched.

        Raises:
            ResolutionError: If nothing matches or the package was not scanned.
        """
        for spec in source_file.imports:
            if spec.alias == name_or_alias:
                package = self.registry.by_import(spec.path)
                if package is None:
                    raise ResolutionError(
                        f"package {spec.path} (imported as {name_or_alias}) was not scanned"
                    )
                return package
        package = self.registry.by_package_name(
            name_or_alias, self.registry.by_file(source_file)
        )
        if package is not None:
            return package
        raise ResolutionError(
            f"failed to resolve import by package or alias {name_or_alias}"
        )

    def find_symbol(self, qualified_name: str, source_file: SourceFile) -> Symbol:
        """Resolve a possibly qualified, possibly pointer-prefixed name.

        Raises:
            ResolutionError: If the qualifier or the name cannot be resolved.
        """
        name = qualified_name.lstrip("*")
        if name in BUILTIN_TYPES:
            return Symbol.make_builtin(name)

        parts = name.split(".")
        if len(parts) == 1:
            package = self.registry.by_import(source_file.import_path)
            if package is None:
                raise ResolutionError(
                    f"package {source_file.import_path} of {source_file.path} was not scanned"
                )
        else:
            package = self.find_package_import(parts[0], source_file)
        return find_in_package(package, parts[-1])

    def find_local_symbol(self, name: str) -> Symbol:
        """Find a symbol declared in the project package by bare name."""
        return find_in_package(self.package, name)

    def names(self) -> list[str]:
        """Every top-level symbol name declared in the project package."""
        names: list[str] = []
        for source_file in _own_files(self.package):
            names.extend(name for name, _ in _declared(source_file))
        return names

    def functions(self) -> Iterator[Symbol]:
        """Every function and method declared in every scanned package."""
        for package in self.registry:
            for source_file in package.files:
                for decl in source_file.decls:
                    if isinstance(decl, FuncDecl):
                        yield Symbol(
                            name=decl.name, package=package, file=source_file, node=decl
                        )


def find_in_package(package: Package, name: str) -> Symbol:
    """Find the top-level type, function, var or const called ``name``.

    Raises:
        ResolutionError: If it is not declared, or declared more than once.
    """
    found: list[Symbol] = []
    for source_file in _own_files(package):
        for decl_name, decl in _declared(source_file):
            if decl_name == name:
                found.append(
                    Symbol(name=name, package=package, file=source_file, node=decl)
                )
    if not found:
        raise ResolutionError(f"symbol {name} not found in {package.import_path}")
    if len(found) > 1:
        where = ", ".join(sym.file.path.name for sym in found)
        raise ResolutionError(
            f"symbol {name} declared more than once in {package.import_path}: {where}"
        )
    return found[0]


def _own_files(package: Package) -> list[SourceFile]:
    """Files of the package proper, without an external ``_test`` package."""
    return [f for f in package.files if f.package_name == package.name]


def _declared(source_file: SourceFile) -> Iterator[tuple[str, TypeSpec | FuncDecl | ValueSpec]]:
    """Top-level names in file order. Methods are not top-level names."""
    for decl in source_file.decls:
        if isinstance(decl, TypeSpec):
            yield decl.name, decl
        elif isinstance(decl, FuncDecl):
            if decl.receiver is None and decl.name not in ("init", "_"):
                yield decl.name, decl
        elif isinstance(decl, ValueSpec):
            for name in decl.names:
                if name != "_":
                    yield name, decl
