"""Service manifest loading and schema validation."""

from __future__ import annotations

import json
from importlib import resources
from pathlib import Path

from jsonschema import Draft202012Validator
from jsonschema.exceptions import best_match
from pydantic import ValidationError

from fn_packager.errors import ManifestError
from fn_packager.types import ServiceModel

DEFAULT_MANIFEST = "service.json"


def _service_schema() -> dict:
    with resources.files("fn_packager.schema").joinpath("service.schema.json").open(
        "r", encoding="utf-8"
    ) as f:
        return json.load(f)


def validate_service(data: dict) -> None:
    """Raise ManifestError on the most relevant schema violation in *data*."""
    err = best_match(Draft202012Validator(_service_schema()).iter_errors(data))
    if err is not None:
        where = "/".join(str(p) for p in err.path) or "<root>"
        raise ManifestError(f"Invalid manifest at {where}: {err.message}")


def parse_service(data: dict) -> ServiceModel:
    validate_service(data)
    try:
        return ServiceModel.model_validate(data)
    except ValidationError as exc:
        raise ManifestError(str(exc)) from exc


def manifest_path(service_path: Path, manifest: Path | None = None) -> Path:
    if manifest is None:
        return service_path / DEFAULT_MANIFEST
    return manifest if manifest.is_absolute() else service_path / manifest


def load_service(service_path: Path, manifest: Path | None = None) -> ServiceModel:
    """Read, validate and parse the manifest for the service at *service_path*."""
    path = manifest_path(service_path, manifest)
    if not path.exists():
        raise FileNotFoundError(f"Missing service manifest: {path}")
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ManifestError(f"{path} is not valid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise ManifestError(f"{path} must contain a JSON object")
    return parse_service(data)
