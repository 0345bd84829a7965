"""Package loading and import-graph traversal."""

from __future__ import annotations

import logging
from dataclasses import replace
from pathlib import Path

from gosymbols.discovery import (
    SearchRoot,
    find_package_by_dir,
    has_source_files,
    lookup_roots,
    source_files,
)
from gosymbols.errors import ImportNotFoundError, ScanError
from gosymbols.graph import Registry
from gosymbols.models import Package, SourceFile
from gosymbols.parsing import parse_file

logger = logging.getLogger(__name__)

# cgo pseudo-package, never backed by a directory.
_CGO_IMPORT = "C"


def scan_directory(directory: Path, import_path: str) -> tuple[Package, list[str]]:
    """Parse every Go file in a directory into a Package.

    The display name is taken from the first file's package clause, replaced
    while it still carries a ``_test`` suffix so that the non-test name wins.

    Args:
        directory: Directory holding the package's files.
        import_path: Import path the package is registered under.

    Returns:
        Tuple of (package, sorted raw import paths of all its files).

    Raises:
        ScanError: If the directory has no Go files, cannot be read, or a
            file fails to parse.
    """
    paths = source_files(directory)
    if not paths:
        raise ScanError(f"no source files in {directory}")

    name = ""
    files: list[SourceFile] = []
    imports: set[str] = set()
    for path in paths:
        try:
            parsed = parse_file(path)
        except ScanError as exc:
            raise ScanError(f"scan file {path} for import {import_path}: {exc}") from exc
        if not name or name.endswith("_test"):
            name = parsed.package_name
        imports.update(parsed.import_paths)
        files.append(replace(parsed, import_path=import_path))

    package = Package(
        import_path=import_path,
        name=name,
        directory=directory,
        files=tuple(files),
    )
    return package, sorted(imports)


def scan_import(import_path: str, roots: list[SearchRoot]) -> tuple[Package, list[str]]:
    """Locate an import path in the first root that holds Go files for it.

    Raises:
        ImportNotFoundError: If no root yields a directory with Go files.
        ScanError: If the located directory fails to scan.
    """
    for root in roots:
        candidate = root.locate(import_path)
        if candidate is None or not has_source_files(candidate):
            continue
        return scan_directory(candidate, import_path)
    raise ImportNotFoundError(import_path, [str(r) for r in roots])


def scan_package(
    import_path: str,
    roots: list[SearchRoot],
    limit: int = -1,
    *,
    directory: Path | None = None,
) -> Registry:
    """Scan a package and, transitively, the packages it imports.

    Imports that cannot be located are skipped: many point at packages that
    are never queried. Everything else that goes wrong is fatal.

    Args:
        import_path: Import path of the root package.
        roots: Search roots in priority order.
        limit: Maximum number of packages to scan; negative means unlimited.
            The root package is always scanned.
        directory: Load the root package from this directory instead of
            locating it through the roots.

    Returns:
        The populated Registry.

    Raises:
        ScanError: If the root package cannot be found or any located
            package fails to scan.
    """
    registry = Registry()
    edges: list[tuple[str, str]] = []
    missing: set[str] = set()

    if directory is not None:
        package, imports = scan_directory(directory, import_path)
    else:
        try:
            package, imports = scan_import(import_path, roots)
        except ImportNotFoundError as exc:
            raise ScanError(str(exc)) from exc
    _register(registry, package, imports, edges)

    pending = [imp for imp in imports if imp != _CGO_IMPORT]
    while pending:
        if 0 <= limit <= len(registry):
            logger.debug("scan limit %d reached, %d imports left", limit, len(pending))
            break
        current = pending.pop()
        if current in registry or current in missing:
            continue
        try:
            package, imports = scan_import(current, roots)
        except ImportNotFoundError as exc:
            logger.debug("skipping %s", exc)
            missing.add(current)
            continue
        _register(registry, package, imports, edges)
        pending.extend(
            imp
            for imp in imports
            if imp != _CGO_IMPORT and imp not in registry and imp not in missing
        )

    for importer, imported in edges:
        registry.link(importer, imported)
    return registry


def _register(
    registry: Registry,
    package: Package,
    imports: list[str],
    edges: list[tuple[str, str]],
) -> None:
    registry.add(package)
    edges.extend((package.import_path, imp) for imp in imports)
    logger.debug(
        "scanned %s (%s): %d files from %s",
        package.import_path,
        package.name,
        len(package.files),
        package.directory,
    )


def scan_dir(
    directory: Path,
    roots: list[SearchRoot] | None = None,
    limit: int = -1,
) -> tuple[Registry, str]:
    """Scan the package in a directory and its imports.

    Args:
        directory: The project package directory.
        roots: Search roots; derived from the directory when None.
        limit: Maximum number of packages to scan; negative means unlimited.

    Returns:
        Tuple of (registry, import path of the directory's package).
    """
    if roots is None:
        roots = lookup_roots(directory)
    import_path = find_package_by_dir(directory, roots)
    return scan_package(import_path, roots, limit, directory=directory), import_path
