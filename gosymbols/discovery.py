"""Search-root discovery: where import paths are looked up on disk."""

from __future__ import annotations

import os
import re
import subprocess
from dataclasses import dataclass
from pathlib import Path

from gosymbols.errors import ScanError
from gosymbols.languages import language_for_extension

_MODULE_LINE = re.compile(r"^\s*module\s+(\S+)")


@dataclass(frozen=True)
class SearchRoot:
    """A directory under which import paths map onto subdirectories.

    With a ``prefix`` (a Go module path) only import paths inside that
    module are served, with the prefix stripped before joining.
    """

    directory: Path
    prefix: str = ""

    def locate(self, import_path: str) -> Path | None:
        """Return the candidate directory for an import path, or None."""
        if not self.prefix:
            return self.directory.joinpath(*import_path.split("/"))
        if import_path == self.prefix:
            return self.directory
        if import_path.startswith(self.prefix + "/"):
            rest = import_path[len(self.prefix) + 1 :]
            return self.directory.joinpath(*rest.split("/"))
        return None

    def import_path_of(self, directory: Path) -> str | None:
        """Return the import path a directory has under this root, or None."""
        try:
            rel = directory.resolve().relative_to(self.directory.resolve())
        except ValueError:
            return None
        parts = [p for p in rel.parts if p != "."]
        if self.prefix:
            return "/".join([self.prefix, *parts])
        if not parts:
            return None
        return "/".join(parts)

    def __str__(self) -> str:
        if self.prefix:
            return f"{self.directory} ({self.prefix})"
        return str(self.directory)


def has_source_files(directory: Path) -> bool:
    """Whether a directory directly holds at least one Go source file."""
    if not directory.is_dir():
        return False
    return bool(source_files(directory))


def source_files(directory: Path) -> list[Path]:
    """Return the Go source files in a directory, sorted by name.

    Raises:
        ScanError: If the directory cannot be listed.
    """
    try:
        entries = sorted(directory.iterdir())
    except OSError as exc:
        raise ScanError(f"read directory {directory}: {exc}") from exc
    return [
        e
        for e in entries
        if e.is_file()
        and not e.name.startswith(".")
        and language_for_extension(e.suffix) is not None
    ]


def find_module(directory: Path) -> SearchRoot | None:
    """Walk up from directory to the nearest go.mod and return its module root."""
    current = directory.resolve()
    while True:
        go_mod = current / "go.mod"
        if go_mod.is_file():
            for line in go_mod.read_text(encoding="utf-8").splitlines():
                match = _MODULE_LINE.match(line)
                if match:
                    return SearchRoot(directory=current, prefix=match.group(1).strip('"'))
            return None
        if current.parent == current:
            return None
        current = current.parent


def find_vendor_dir(directory: Path) -> Path | None:
    """Walk up from directory to the nearest ``vendor`` directory."""
    current = directory.resolve()
    while True:
        vendor = current / "vendor"
        if vendor.is_dir():
            return vendor
        if current.parent == current:
            return None
        current = current.parent


def _go_env_goroot() -> str | None:
    """Ask the go tool for GOROOT.

    Returns:
        The GOROOT path, or None if go is unavailable or fails.
    """
    try:
        result = subprocess.run(
            ["go", "env", "GOROOT"],
            capture_output=True,
            text=True,
            timeout=10,
            check=False,
        )
    except (FileNotFoundError, subprocess.TimeoutExpired):
        return None
    if result.returncode != 0:
        return None
    return result.stdout.strip() or None


def global_roots() -> list[SearchRoot]:
    """``$GOPATH/src`` entries followed by ``$GOROOT/src``."""
    roots: list[SearchRoot] = []
    gopath = os.environ.get("GOPATH") or str(Path.home() / "go")
    for entry in gopath.split(os.pathsep):
        if entry:
            roots.append(SearchRoot(directory=Path(entry) / "src"))
    goroot = os.environ.get("GOROOT") or _go_env_goroot()
    if goroot:
        roots.append(SearchRoot(directory=Path(goroot) / "src"))
    return roots


def lookup_roots(directory: Path | None = None) -> list[SearchRoot]:
    """Build the ordered search roots for a project directory.

    Local roots come first: the enclosing Go module, then the nearest vendor
    directory. Global library roots (GOPATH, GOROOT) come last.

    Args:
        directory: Project directory; None yields only the global roots.

    Returns:
        Search roots in priority order.
    """
    roots: list[SearchRoot] = []
    if directory is not None:
        module = find_module(directory)
        if module is not None:
            vendor = module.directory / "vendor"
            if vendor.is_dir():
                roots.append(SearchRoot(directory=vendor))
            roots.append(module)
        else:
            vendor_dir = find_vendor_dir(directory)
            if vendor_dir is not None:
                roots.append(SearchRoot(directory=vendor_dir))
    return roots + global_roots()


def find_package_by_dir(directory: Path, roots: list[SearchRoot]) -> str:
    """Return the import path of a directory against the first root containing it.

    Raises:
        ScanError: If no root contains the directory.
    """
    for root in roots:
        import_path = root.import_path_of(directory)
        if import_path is not None:
            return import_path
    raise ScanError(
        f"failed to detect package for {directory} against "
        f"{', '.join(str(r) for r in roots) or '<no roots>'}"
    )
