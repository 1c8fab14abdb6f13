"""Artifact import into a running Microcks instance.

Two sources:
- Explicit lists from ArtifactsConfiguration, imported in list order.
- Resource directory scan: primaries first, then secondaries only if at least
  one primary was found. Secondary artifacts without a contract to attach to
  are not imported.

Failures never propagate: each file failure is recorded on the ImportReport
and logged, a scan failure ends the batch.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

from microcks_devservice.artifacts.classifier import (
    PRIMARY_ARTIFACT_SUFFIXES,
    SECONDARY_ARTIFACT_SUFFIXES,
    ArtifactKind,
)
from microcks_devservice.artifacts.scanner import scan
from microcks_devservice.errors import (
    ArtifactImportError,
    ArtifactScanError,
    ErrorCode,
    ErrorDetail,
)
from microcks_devservice.logging_schema import LogEvent
from microcks_devservice.models import ArtifactsConfiguration

logger = logging.getLogger(__name__)


class ArtifactTarget(Protocol):
    """Instance side of the import operation."""

    async def import_as_main_artifact(self, path: Path) -> None: ...

    async def import_as_secondary_artifact(self, path: Path) -> None: ...


@dataclass
class ImportFailure:
    """A single file that could not be imported."""

    path: Path
    kind: ArtifactKind
    detail: ErrorDetail


@dataclass
class ImportReport:
    """Outcome of one import batch."""

    imported: list[tuple[Path, ArtifactKind]] = field(default_factory=list)
    failures: list[ImportFailure] = field(default_factory=list)
    error: ErrorDetail | None = None

    @property
    def ok(self) -> bool:
        return not self.failures and self.error is None

    def count(self, kind: ArtifactKind) -> int:
        return sum(1 for _, k in self.imported if k == kind)


async def _import_one(
    target: ArtifactTarget, path: Path, kind: ArtifactKind, report: ImportReport
) -> None:
    logger.info("Load '%s' as %s artifact", path, kind.value)
    try:
        if kind == ArtifactKind.PRIMARY:
            await target.import_as_main_artifact(path)
        else:
            await target.import_as_secondary_artifact(path)
    except Exception as e:
        if isinstance(e, ArtifactImportError):
            detail = e.to_detail()
        else:
            detail = ErrorDetail(code=ErrorCode.IMPORT_FAILED.value, message=str(e))
        report.failures.append(ImportFailure(path=path, kind=kind, detail=detail))
        logger.error(
            "Failed to load '%s' in microcks",
            path,
            exc_info=True,
            extra={
                "event": LogEvent.ARTIFACT_IMPORT_FAILED,
                "artifact": str(path),
                "kind": kind.value,
            },
        )
        return

    report.imported.append((path, kind))
    logger.debug(
        "Imported artifact",
        extra={"event": LogEvent.ARTIFACT_IMPORTED, "artifact": str(path), "kind": kind.value},
    )


async def _import_batch(
    target: ArtifactTarget,
    paths: Iterable[Path],
    kind: ArtifactKind,
    report: ImportReport,
) -> None:
    for path in paths:
        await _import_one(target, path, kind, report)


async def _scan_and_import(
    target: ArtifactTarget,
    resource_dirs: Sequence[Path],
    suffixes: tuple[str, ...],
    kind: ArtifactKind,
    report: ImportReport,
) -> bool:
    """Import every scanned file of one kind. Returns whether anything was found."""
    found = sorted(scan(resource_dirs, suffixes))
    await _import_batch(target, found, kind, report)
    return bool(found)


async def import_artifacts(
    target: ArtifactTarget,
    artifacts: ArtifactsConfiguration | None,
    resource_dirs: Sequence[Path] = (),
) -> ImportReport:
    """Seed a Microcks instance with artifacts.

    Args:
        target: Running instance accepting imports
        artifacts: Explicit artifact lists; scanning is used when None
        resource_dirs: Directories scanned when no explicit lists are given

    Returns:
        ImportReport with imported files, per-file failures and batch error
    """
    report = ImportReport()

    if artifacts is not None:
        await _import_batch(
            target, (Path(p) for p in artifacts.primaries), ArtifactKind.PRIMARY, report
        )
        if artifacts.secondaries is not None:
            await _import_batch(
                target,
                (Path(p) for p in artifacts.secondaries),
                ArtifactKind.SECONDARY,
                report,
            )
    else:
        try:
            found = await _scan_and_import(
                target, resource_dirs, PRIMARY_ARTIFACT_SUFFIXES, ArtifactKind.PRIMARY, report
            )
            if found:
                await _scan_and_import(
                    target,
                    resource_dirs,
                    SECONDARY_ARTIFACT_SUFFIXES,
                    ArtifactKind.SECONDARY,
                    report,
                )
        except ArtifactScanError as e:
            report.error = e.to_detail()
            logger.error(
                "Failed to load Artifacts in microcks",
                exc_info=True,
                extra={"event": LogEvent.ARTIFACT_SCAN_FAILED},
            )

    if report.failures:
        logger.warning(
            "%d artifact(s) could not be imported into microcks",
            len(report.failures),
            extra={
                "event": LogEvent.ARTIFACT_IMPORT_FAILED,
                "artifacts": [str(f.path) for f in report.failures],
            },
        )
    return report
