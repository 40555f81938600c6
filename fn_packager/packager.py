"""Packaging dispatcher: one artifact per service, or one per function.

The archiver is injected, so the dispatch policy can be exercised without
touching the filesystem.
"""

from __future__ import annotations

from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from functools import partial
from pathlib import Path
from typing import Literal

from fn_packager import globs
from fn_packager.logging import get_logger
from fn_packager.package.zip import Archiver
from fn_packager.types import ServiceModel

log = get_logger(__name__)


@dataclass
class Artifact:
    unit: str
    kind: Literal["service", "function"]
    path: Path
    prebuilt: bool = False


class Packager:
    def __init__(
        self, service: ServiceModel, archiver: Archiver, max_workers: int | None = None
    ) -> None:
        self.service = service
        self.archiver = archiver
        self.max_workers = max_workers

    # --- Glob selection -----------------------------------------------------

    def get_includes(self, function_includes: list[str] | None = None) -> list[str]:
        return globs.get_includes(self.service.package.include, function_includes)

    def get_excludes(self, function_excludes: list[str] | None = None) -> list[str]:
        return globs.get_excludes(self.service.package.exclude, function_excludes)

    # --- Dispatch -----------------------------------------------------------

    def plan(self) -> tuple[list[str], list[str]]:
        """Split function keys into (collective, individual) by effective mode."""
        collective: list[str] = []
        individual: list[str] = []
        for key in self.service.functions:
            (individual if self.service.individually(key) else collective).append(key)
        return collective, individual

    def package_all(self) -> Path:
        exclude = self.get_excludes()
        include = self.get_includes()
        artifact_name = f"{self.service.service}.zip"
        return self.archiver.create_archive(exclude, include, artifact_name)

    def package_function(self, key: str) -> Path:
        func = self.service.get_function(key)
        exclude = self.get_excludes(func.package.exclude)
        include = self.get_includes(func.package.include)
        artifact_name = f"{func.declared_name(key)}.zip"
        return self.archiver.create_archive(exclude, include, artifact_name)

    def package_service(self) -> list[Artifact]:
        """Package every unit and wait for all of them.

        The first failure, in submission order, is re-raised once every unit
        has finished. Artifacts written by the other units stay on disk.
        """
        collective, individual = self.plan()
        log.info(
            "packaging %s: %d collective, %d individual",
            self.service.service,
            len(collective),
            len(individual),
        )

        artifacts: list[Artifact] = []
        jobs = []
        pending_collective = [k for k in collective if not self._prebuilt(k)]
        if pending_collective and self.service.package.artifact:
            artifacts.append(
                Artifact(
                    self.service.service, "service", Path(self.service.package.artifact), True
                )
            )
        elif pending_collective:
            jobs.append((self.service.service, "service", self.package_all))

        for key in self.service.functions:
            prebuilt = self._prebuilt(key)
            if prebuilt:
                artifacts.append(Artifact(key, "function", Path(prebuilt), True))
            elif key in individual:
                jobs.append((key, "function", partial(self.package_function, key)))

        if not jobs:
            return artifacts

        futures: list[tuple[str, str, Future[Path]]] = []
        with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
            for unit, kind, job in jobs:
                futures.append((unit, kind, pool.submit(job)))

        for unit, kind, fut in futures:
            path = fut.result()
            log.info("packaged %s %s -> %s", kind, unit, path)
            artifacts.append(Artifact(unit, kind, path))
        return artifacts

    def _prebuilt(self, key: str) -> str | None:
        return self.service.functions[key].package.artifact
