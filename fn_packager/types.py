"""Shared Pydantic models for services, functions and their packaging settings."""

from __future__ import annotations

from pydantic import BaseModel, Field

from fn_packager.errors import FunctionNotFoundError


class PackageConfig(BaseModel):
    """Service-level packaging settings.

    Attributes
    ----------
    individually: bool
        Default mode for every function that does not override it.
    include / exclude: list[str]
        Ordered glob lists; later patterns win when the archiver evaluates them.
    artifact: str | None
        Path to an already built service artifact. Collective packaging is
        skipped when set.
    """

    individually: bool = False
    include: list[str] = Field(default_factory=list)
    exclude: list[str] = Field(default_factory=list)
    artifact: str | None = None


class FunctionPackageConfig(BaseModel):
    # None means "inherit the service default"; an explicit False still overrides.
    individually: bool | None = None
    include: list[str] = Field(default_factory=list)
    exclude: list[str] = Field(default_factory=list)
    artifact: str | None = None


class FunctionModel(BaseModel):
    name: str | None = None
    handler: str | None = None
    package: FunctionPackageConfig = Field(default_factory=FunctionPackageConfig)

    def declared_name(self, key: str) -> str:
        return self.name or key


class ServiceModel(BaseModel):
    service: str
    package: PackageConfig = Field(default_factory=PackageConfig)
    functions: dict[str, FunctionModel] = Field(default_factory=dict)

    def get_function(self, key: str) -> FunctionModel:
        try:
            return self.functions[key]
        except KeyError:
            raise FunctionNotFoundError(key, list(self.functions)) from None

    def individually(self, key: str) -> bool:
        """Effective packaging mode for function *key*."""
        override = self.get_function(key).package.individually
        if override is not None:
            return override
        return self.package.individually
