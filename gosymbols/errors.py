"""Error kinds raised while scanning, resolving and generating."""

from __future__ import annotations


class GoSymbolsError(Exception):
    """Base class for all gosymbols errors."""


class ScanError(GoSymbolsError):
    """A package directory or source file could not be scanned.

    Fatal: aborts the whole scan session.
    """


class ImportNotFoundError(GoSymbolsError):
    """An import path could not be located in any search root.

    Suppressed while traversing the import graph, since many transitive
    imports point at packages that are never queried.
    """

    def __init__(self, import_path: str, searched: list[str]) -> None:
        self.import_path = import_path
        self.searched = searched
        super().__init__(
            f"import {import_path} not found in {', '.join(searched) or '<no roots>'}"
        )


class ResolutionError(GoSymbolsError):
    """A (qualified) name could not be mapped to a declaration."""


class ShapeError(GoSymbolsError):
    """A declaration does not have the expected struct/interface/func shape."""


class GenerationConflict(GoSymbolsError):
    """Source and target declare the same field with different types."""
