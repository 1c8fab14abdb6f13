"""Artifact discovery and import."""

from microcks_devservice.artifacts.classifier import (
    PRIMARY_ARTIFACT_SUFFIXES,
    SECONDARY_ARTIFACT_SUFFIXES,
    ArtifactKind,
    classify,
)
from microcks_devservice.artifacts.importer import (
    ArtifactTarget,
    ImportFailure,
    ImportReport,
    import_artifacts,
)
from microcks_devservice.artifacts.scanner import scan

__all__ = [
    "PRIMARY_ARTIFACT_SUFFIXES",
    "SECONDARY_ARTIFACT_SUFFIXES",
    "ArtifactKind",
    "ArtifactTarget",
    "ImportFailure",
    "ImportReport",
    "classify",
    "import_artifacts",
    "scan",
]
