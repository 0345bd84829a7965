"""CLI entry point for gosymbols."""

from __future__ import annotations

import logging
import shlex
from dataclasses import dataclass, field
from pathlib import Path
from typing import Annotated

import typer

from gosymbols.errors import GoSymbolsError
from gosymbols.generate import (
    generate_mapper,
    generate_self_mapper,
    generate_struct,
    generate_validation_by_comment,
)
from gosymbols.mutate import without_fields
from gosymbols.project import Project
from gosymbols.render import GoFile

app = typer.Typer(
    name="gosymbols",
    help="Derive Go structs and mappers from declarations resolved across packages.",
    no_args_is_help=True,
)

DirOption = Annotated[
    Path,
    typer.Option(
        "--dir",
        "-d",
        help="Package directory to open.",
        exists=True,
        file_okay=False,
        resolve_path=True,
    ),
]
ScanLimitOption = Annotated[
    int,
    typer.Option(
        "--scan-limit",
        envvar="SCAN_LIMIT",
        help="Maximum amount of packages to scan. -1 - all.",
    ),
]


@dataclass
class MutateOptions:
    """One ``mutate`` request: a source struct and what to derive from it."""

    source: str
    target: str
    map_: str = ""
    unmap: str = ""
    self_map: str = ""
    self_unmap: str = ""
    exclude: list[str] = field(default_factory=list)
    drop: list[str] = field(default_factory=list)
    value: bool = False
    required_by_comment: str = ""


def add_generation(out: GoFile, project: Project, opts: MutateOptions) -> None:
    """Generate the derived struct and the requested mappers into ``out``.

    Dropped fields are removed from the source as well as the target, so
    the mappers never touch them. Excluded fields are removed only from the
    target.
    """
    if not opts.source or not opts.target:
        raise typer.BadParameter("both --source and --target are required")

    sym = without_fields(project.find_local_symbol(opts.source), opts.drop)
    mutated = (
        without_fields(sym, [*opts.exclude, *opts.drop])
        .renamed(opts.target)
        .moved_to(project.package)
    )
    out.add(generate_struct(mutated, project))

    by_reference = not opts.value
    if opts.map_:
        out.add(generate_mapper(sym, mutated, project, opts.map_, by_reference))
    if opts.unmap:
        out.add(generate_mapper(mutated, sym, project, opts.unmap, by_reference))
    if opts.self_map:
        out.add(generate_self_mapper(sym, mutated, project, opts.self_map, by_reference))
    if opts.self_unmap:
        out.add(generate_self_mapper(mutated, sym, project, opts.self_unmap, by_reference))
    if opts.required_by_comment:
        out.add(generate_validation_by_comment(mutated, project, opts.required_by_comment))


def _parse_line(line: str) -> MutateOptions:
    """Parse one stdin line as ``mutate`` options."""
    command = typer.main.get_command(app).commands["mutate"]
    ctx = command.make_context("mutate", shlex.split(line))
    params = ctx.params
    return MutateOptions(
        source=params["source"],
        target=params["target"],
        map_=params["map_"],
        unmap=params["unmap"],
        self_map=params["self_map"],
        self_unmap=params["self_unmap"],
        exclude=list(params["exclude"] or []),
        drop=list(params["drop"] or []),
        value=params["value"],
        required_by_comment=params["required_by_comment"],
    )


def _open_project(directory: Path, scan_limit: int) -> Project:
    try:
        return Project.by_dir(directory, limit=scan_limit)
    except GoSymbolsError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(1) from exc


@app.callback()
def main(
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Log scanning progress to stderr."),
    ] = False,
) -> None:
    """Derive Go structs and mappers from declarations resolved across packages."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s"
        )


@app.command()
def mutate(
    args: Annotated[
        list[str] | None,
        typer.Argument(help="Pass '-' to read one set of options per line from stdin."),
    ] = None,
    directory: DirOption = Path("."),
    source: Annotated[
        str, typer.Option("--source", envvar="SOURCE_STRUCT", help="Name of source struct.")
    ] = "",
    target: Annotated[
        str, typer.Option("--target", envvar="TARGET", help="Name of target struct.")
    ] = "",
    map_: Annotated[
        str,
        typer.Option(
            "--map", envvar="MAP", help="Name of function to map from source to target."
        ),
    ] = "",
    unmap: Annotated[
        str,
        typer.Option(
            "--unmap", envvar="UNMAP", help="Name of function to map from target to source."
        ),
    ] = "",
    self_map: Annotated[
        str,
        typer.Option(
            "--self-map",
            envvar="SELF_MAP",
            help="Name of source method mapping it to target.",
        ),
    ] = "",
    self_unmap: Annotated[
        str,
        typer.Option(
            "--self-unmap",
            envvar="SELF_UNMAP",
            help="Name of target method mapping it to source.",
        ),
    ] = "",
    exclude: Annotated[
        list[str] | None,
        typer.Option("--exclude", envvar="EXCLUDE", help="Exclude fields from target."),
    ] = None,
    drop: Annotated[
        list[str] | None,
        typer.Option("--drop", envvar="DROP", help="Drop fields from source and target."),
    ] = None,
    value: Annotated[
        bool,
        typer.Option("--value", envvar="VALUE", help="Map items passed by value."),
    ] = False,
    scan_limit: ScanLimitOption = -1,
    required_by_comment: Annotated[
        str,
        typer.Option(
            "--required-by-comment",
            envvar="REQUIRED_BY_COMMENT",
            help="Add a Validate method checking fields whose comment contains this text.",
        ),
    ] = "",
) -> None:
    """Mutate a struct and generate mappers for it; prints a Go file."""
    project = _open_project(directory, scan_limit)
    out = GoFile(project.package.import_path, project.package.name)

    if args == ["-"]:
        requests = []
        for line in typer.get_text_stream("stdin"):
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            requests.append(_parse_line(line))
    else:
        requests = [
            MutateOptions(
                source=source,
                target=target,
                map_=map_,
                unmap=unmap,
                self_map=self_map,
                self_unmap=self_unmap,
                exclude=list(exclude or []),
                drop=list(drop or []),
                value=value,
                required_by_comment=required_by_comment,
            )
        ]

    try:
        for opts in requests:
            add_generation(out, project, opts)
    except GoSymbolsError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(1) from exc

    typer.echo(out.render(), nl=False)


@app.command()
def functions(directory: DirOption = Path("."), scan_limit: ScanLimitOption = -1) -> None:
    """List every function and method found in all scanned packages."""
    project = _open_project(directory, scan_limit)
    for sym in project.functions():
        fn = sym.function()
        if fn.raw.receiver:
            typer.echo(f"{fn.raw.receiver}.{fn.name}")
        else:
            typer.echo(fn.name)


app.command("methods", help="Alias of functions.")(functions)


@app.command()
def names(directory: DirOption = Path("."), scan_limit: ScanLimitOption = -1) -> None:
    """List every symbol declared in the package."""
    project = _open_project(directory, scan_limit)
    for name in project.names():
        typer.echo(name)
