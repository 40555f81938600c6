"""fn-packager CLI.

Commands:
- package: build the service artifact(s), or one function with --function
- globs: show the effective include/exclude lists
- plan: show which functions are packaged collectively or individually
"""

from __future__ import annotations

from pathlib import Path
from typing import NoReturn

import typer
from rich import print as rprint
from rich.console import Console
from rich.table import Table

from fn_packager.core import PackageContext, make_packager, package_pipeline
from fn_packager.errors import PackagingError
from fn_packager.logging import set_level

app = typer.Typer(add_completion=False, help="Package serverless services into zip artifacts")
console = Console()


def _fail(exc: Exception) -> NoReturn:
    rprint(f"[red]Error:[/red] {exc}")
    raise typer.Exit(code=1)


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging")) -> None:
    set_level("DEBUG" if verbose else "INFO")


@app.command()
def package(
    path: str = typer.Argument(".", help="Path to the service root"),
    manifest: str | None = typer.Option(None, "--manifest", help="Manifest file (service.json)"),
    out: str | None = typer.Option(None, "--out", help="Output directory (default .serverless)"),
    function: str | None = typer.Option(None, "--function", "-f", help="Package one function"),
    workers: int | None = typer.Option(None, "--workers", min=1, help="Parallel archive jobs"),
) -> None:
    ctx = PackageContext(
        service_path=Path(path),
        manifest=Path(manifest) if manifest else None,
        outdir=Path(out) if out else None,
        function=function,
        max_workers=workers,
    )
    try:
        artifacts = package_pipeline(ctx)
    except (PackagingError, FileNotFoundError) as exc:
        _fail(exc)

    table = Table(title="Artifacts")
    table.add_column("Unit", style="cyan")
    table.add_column("Kind")
    table.add_column("Path")
    for a in artifacts:
        table.add_row(a.unit, a.kind + (" (prebuilt)" if a.prebuilt else ""), str(a.path))
    console.print(table)
    if not artifacts:
        rprint("[yellow]No functions to package.[/yellow]")


@app.command()
def globs(
    path: str = typer.Argument(".", help="Path to the service root"),
    manifest: str | None = typer.Option(None, "--manifest", help="Manifest file (service.json)"),
    function: str | None = typer.Option(None, "--function", "-f", help="Function key"),
) -> None:
    try:
        packager = make_packager(
            PackageContext(Path(path), manifest=Path(manifest) if manifest else None)
        )
        if function is None:
            include, exclude = packager.get_includes(), packager.get_excludes()
        else:
            func = packager.service.get_function(function)
            include = packager.get_includes(func.package.include)
            exclude = packager.get_excludes(func.package.exclude)
    except (PackagingError, FileNotFoundError) as exc:
        _fail(exc)

    table = Table(title=f"Globs ({function or packager.service.service})")
    table.add_column("Kind", style="cyan")
    table.add_column("Pattern")
    for pat in exclude:
        table.add_row("exclude", pat)
    for pat in include:
        table.add_row("include", pat)
    console.print(table)


@app.command()
def plan(
    path: str = typer.Argument(".", help="Path to the service root"),
    manifest: str | None = typer.Option(None, "--manifest", help="Manifest file (service.json)"),
) -> None:
    try:
        packager = make_packager(
            PackageContext(Path(path), manifest=Path(manifest) if manifest else None)
        )
    except (PackagingError, FileNotFoundError) as exc:
        _fail(exc)

    collective, individual = packager.plan()
    table = Table(title=f"Packaging plan ({packager.service.service})")
    table.add_column("Function", style="cyan")
    table.add_column("Mode")
    table.add_column("Artifact")
    for key in collective:
        table.add_row(key, "collective", f"{packager.service.service}.zip")
    for key in individual:
        name = packager.service.functions[key].declared_name(key)
        table.add_row(key, "individual", f"{name}.zip")
    console.print(table)


if __name__ == "__main__":
    app()
