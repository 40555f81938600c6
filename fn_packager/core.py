"""Build orchestration: load manifest, dispatch, zip."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from fn_packager.config import load_service
from fn_packager.package.zip import ZipArchiver
from fn_packager.packager import Artifact, Packager


@dataclass
class PackageContext:
    service_path: Path
    manifest: Path | None = None
    outdir: Path | None = None
    function: str | None = None
    max_workers: int | None = None


def make_packager(ctx: PackageContext) -> Packager:
    """Load the manifest named by *ctx* and wire a Packager to a ZipArchiver."""
    service = load_service(ctx.service_path, ctx.manifest)
    archiver = ZipArchiver(ctx.service_path, ctx.outdir)
    return Packager(service, archiver, max_workers=ctx.max_workers)


def package_pipeline(ctx: PackageContext) -> list[Artifact]:
    """Package a whole service, or the single function named by `ctx.function`.

    Parameters
    ----------
    ctx: PackageContext
        Service root, optional manifest and output directory, optional
        function key and worker cap.

    Returns
    -------
    list[Artifact]
        One entry per produced or pre-built artifact.

    Raises
    ------
    FileNotFoundError
        The manifest does not exist.
    PackagingError
        Invalid manifest, unknown function key or a failed archive.
    """
    packager = make_packager(ctx)
    if ctx.function is None:
        return packager.package_service()

    func = packager.service.get_function(ctx.function)
    if func.package.artifact:
        return [
            Artifact(
                unit=ctx.function, kind="function", path=Path(func.package.artifact), prebuilt=True
            )
        ]

    # Explicit single-function runs ignore the individually flag
    path = packager.package_function(ctx.function)
    return [Artifact(unit=ctx.function, kind="function", path=path)]
