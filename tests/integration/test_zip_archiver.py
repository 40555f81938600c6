from __future__ import annotations

import json
import os
import shutil
import zipfile
from pathlib import Path

import pytest

from fn_packager.core import PackageContext, package_pipeline
from fn_packager.errors import ArchiveError
from fn_packager.globs import get_excludes
from fn_packager.package.zip import ZipArchiver, sha256

FIXTURE = Path(__file__).resolve().parents[2] / "fixtures" / "hello-service"


@pytest.fixture()
def service_dir(tmp_path: Path) -> Path:
    root = tmp_path / "hello-service"
    shutil.copytree(FIXTURE, root)
    # Files every default exclude should drop
    (root / ".git").mkdir()
    (root / ".git" / "HEAD").write_text("ref: refs/heads/main\n", encoding="utf-8")
    (root / ".DS_Store").write_bytes(b"\x00")
    (root / "serverless.yml").write_text("service: hello\n", encoding="utf-8")
    return root


def _names(zip_path: Path) -> list[str]:
    with zipfile.ZipFile(zip_path) as z:
        return sorted(z.namelist())


def test_create_archive_applies_excludes_then_includes(service_dir: Path) -> None:
    archiver = ZipArchiver(service_dir)

    zip_path = archiver.create_archive(get_excludes(["docs/**", "*.md"]), ["docs/keep.md"], "x.zip")

    assert zip_path == service_dir / ".serverless" / "x.zip"
    assert _names(zip_path) == [
        "docs/keep.md",
        "service.json",
        "src/handler.py",
        "src/lib/text.py",
    ]
    sidecar = zip_path.with_name("x.zip.sha256")
    assert sidecar.read_text(encoding="utf-8") == sha256(zip_path)


def test_create_archive_never_packs_its_own_outdir(service_dir: Path) -> None:
    outdir = service_dir / "dist"
    archiver = ZipArchiver(service_dir, outdir)

    archiver.create_archive(get_excludes(), [], "first.zip")
    second = archiver.create_archive(get_excludes(), [], "second.zip")

    assert not any(name.startswith("dist/") for name in _names(second))


def test_create_archive_wraps_io_errors(service_dir: Path) -> None:
    blocker = service_dir / "blocked"
    blocker.write_text("not a directory", encoding="utf-8")

    with pytest.raises(ArchiveError, match="x.zip"):
        ZipArchiver(service_dir, blocker / "out").create_archive(get_excludes(), [], "x.zip")


def test_pipeline_packages_collective_and_individual(service_dir: Path, tmp_path: Path) -> None:
    out = tmp_path / "dist"

    artifacts = package_pipeline(PackageContext(service_path=service_dir, outdir=out))

    by_unit = {a.unit: a for a in artifacts}
    assert set(by_unit) == {"hello", "report"}
    assert by_unit["hello"].path == out / "hello.zip"
    assert by_unit["report"].path == out / "hello-dev-report.zip"

    assert "src/lib/text.py" in _names(out / "hello.zip")
    report_names = _names(out / "hello-dev-report.zip")
    assert "src/handler.py" in report_names
    assert "src/lib/text.py" not in report_names
    assert "README.md" not in report_names


def test_pipeline_single_function(service_dir: Path, tmp_path: Path) -> None:
    out = tmp_path / "dist"

    artifacts = package_pipeline(
        PackageContext(service_path=service_dir, outdir=out, function="greet")
    )

    assert [a.path for a in artifacts] == [out / "hello-dev-greet.zip"]
    assert not (out / "hello.zip").exists()


def test_create_archive_clamps_pre_1980_mtimes(service_dir: Path) -> None:
    handler = service_dir / "src" / "handler.py"
    os.utime(handler, (0, 0))

    zip_path = ZipArchiver(service_dir).create_archive(get_excludes(), [], "epoch.zip")

    with zipfile.ZipFile(zip_path) as z:
        assert z.getinfo("src/handler.py").date_time == (1980, 1, 1, 0, 0, 0)


def test_create_archive_keeps_permission_bits(service_dir: Path) -> None:
    handler = service_dir / "src" / "handler.py"
    handler.chmod(0o755)

    zip_path = ZipArchiver(service_dir).create_archive(get_excludes(), [], "modes.zip")

    with zipfile.ZipFile(zip_path) as z:
        assert (z.getinfo("src/handler.py").external_attr >> 16) & 0o777 == 0o755


@pytest.mark.parametrize("name", ["../../escaped.zip", "../escaped.zip", "..", "."])
def test_create_archive_rejects_names_outside_outdir(
    service_dir: Path, tmp_path: Path, name: str
) -> None:
    out = service_dir / ".serverless"

    with pytest.raises(ArchiveError, match="escapes"):
        ZipArchiver(service_dir).create_archive(get_excludes(), [], name)

    assert not (tmp_path / "escaped.zip").exists()
    assert not (service_dir / "escaped.zip").exists()
    assert not out.exists()


def test_pipeline_single_function_reports_prebuilt_artifact(
    service_dir: Path, tmp_path: Path
) -> None:
    manifest = json.loads((service_dir / "service.json").read_text(encoding="utf-8"))
    manifest["functions"]["greet"]["package"] = {"artifact": "dist/greet.zip"}
    (service_dir / "service.json").write_text(json.dumps(manifest), encoding="utf-8")
    out = tmp_path / "dist"

    artifacts = package_pipeline(
        PackageContext(service_path=service_dir, outdir=out, function="greet")
    )

    assert [(a.unit, str(a.path), a.prebuilt) for a in artifacts] == [
        ("greet", "dist/greet.zip", True)
    ]
    assert not (out / "hello-dev-greet.zip").exists()
