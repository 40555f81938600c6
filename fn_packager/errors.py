"""Error taxonomy shared by the dispatcher, archiver and manifest loader."""

from __future__ import annotations


class PackagingError(Exception):
    """Base class for every failure raised by fn-packager."""


class FunctionNotFoundError(PackagingError, LookupError):
    def __init__(self, key: str, known: list[str] | None = None) -> None:
        self.key = key
        self.known = known or []
        hint = f" (known: {', '.join(self.known)})" if self.known else ""
        super().__init__(f"Function not found: {key}{hint}")


class ArchiveError(PackagingError):
    def __init__(self, artifact_name: str, reason: str) -> None:
        self.artifact_name = artifact_name
        super().__init__(f"Failed to write {artifact_name}: {reason}")


class ManifestError(PackagingError, ValueError):
    """Raised when a service manifest is not valid JSON or violates the schema."""
