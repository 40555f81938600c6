"""Zip archiver used by the packaging dispatcher.

Walks a service directory, keeps the files selected by the include/exclude
globs and writes them into a single zip archive. Also writes a sibling
`.sha256` file with the archive's SHA-256 hex digest.

Design goals:
- Sorted arcnames for reproducible output.
- Only relative, forward-slash arcnames.
- The archiver never writes its own output back into an archive.
- Artifact names cannot escape the output directory.
"""

from __future__ import annotations

import hashlib
import zipfile
from collections.abc import Iterator, Sequence
from pathlib import Path
from typing import Protocol

from fn_packager.errors import ArchiveError
from fn_packager.globs import is_packaged
from fn_packager.logging import get_logger

log = get_logger(__name__)

DEFAULT_OUTDIR = ".serverless"


class Archiver(Protocol):
    def create_archive(
        self, exclude: Sequence[str], include: Sequence[str], artifact_name: str
    ) -> Path: ...


def sha256(path: Path) -> str:
    """Return the hex SHA-256 of *path*."""
    h = hashlib.sha256()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(1024 * 1024), b""):
            h.update(chunk)
    return h.hexdigest()


def _as_rel_arcname(root: Path, path: Path) -> str:
    return path.relative_to(root).as_posix()


def _is_within(base: Path, target: Path) -> bool:
    try:
        target.relative_to(base)
        return True
    except ValueError:
        return False


class ZipArchiver:
    """Create `<outdir>/<artifact_name>` from the files under *service_path*.

    Parameters
    ----------
    service_path: Path
        Root of the service; arcnames are relative to it.
    outdir: Path | None
        Destination directory (created if missing). Defaults to
        `<service_path>/.serverless`.
    """

    def __init__(self, service_path: Path, outdir: Path | None = None) -> None:
        self.service_path = Path(service_path).resolve()
        self.outdir = Path(outdir).resolve() if outdir else self.service_path / DEFAULT_OUTDIR

    def select_files(self, exclude: Sequence[str], include: Sequence[str]) -> Iterator[Path]:
        for fp in sorted(self.service_path.rglob("*")):
            if not fp.is_file() or _is_within(self.outdir, fp.resolve()):
                continue
            if is_packaged(_as_rel_arcname(self.service_path, fp), exclude, include):
                yield fp

    def create_archive(
        self, exclude: Sequence[str], include: Sequence[str], artifact_name: str
    ) -> Path:
        outdir = self.outdir.resolve()
        zip_path = (outdir / artifact_name).resolve()
        if zip_path == outdir or not _is_within(outdir, zip_path):
            raise ArchiveError(artifact_name, f"artifact name escapes {outdir}")
        try:
            zip_path.parent.mkdir(parents=True, exist_ok=True)
            count = 0
            with zipfile.ZipFile(
                zip_path, "w", compression=zipfile.ZIP_DEFLATED, strict_timestamps=False
            ) as z:
                for fp in self.select_files(exclude, include):
                    # keeps permission bits; pre-1980 mtimes are clamped to 1980-01-01
                    z.write(fp, arcname=_as_rel_arcname(self.service_path, fp))
                    count += 1
            digest = sha256(zip_path)
            zip_path.with_name(zip_path.name + ".sha256").write_text(digest, encoding="utf-8")
        except (OSError, ValueError, zipfile.BadZipFile, zipfile.LargeZipFile) as exc:
            raise ArchiveError(artifact_name, str(exc)) from exc

        log.info("archive written: %s (%d files)", zip_path, count)
        return zip_path
