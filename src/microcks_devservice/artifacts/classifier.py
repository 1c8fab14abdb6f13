"""Artifact classification by filename suffix."""

from enum import Enum
from os import PathLike

# Files imported as main artifacts (API contracts).
PRIMARY_ARTIFACT_SUFFIXES: tuple[str, ...] = (
    "-openapi.yml",
    "-openapi.yaml",
    "-openapi.json",
    ".proto",
    ".graphql",
    "-asyncapi.yml",
    "-asyncapi.yaml",
    "-asyncapi.json",
    "-soapui-project.xml",
)

# Files layered onto main artifacts (examples, metadata, recordings).
SECONDARY_ARTIFACT_SUFFIXES: tuple[str, ...] = (
    "postman-collection.json",
    "postman_collection.json",
    "-metadata.yml",
    "-metadata.yaml",
    ".har",
)


class ArtifactKind(str, Enum):
    """How a file is imported into Microcks."""

    PRIMARY = "primary"
    SECONDARY = "secondary"
    NONE = "none"


def ends_with_one_of(candidate: str, suffixes: tuple[str, ...] | list[str] | set[str]) -> bool:
    """Case-sensitive suffix match."""
    return any(candidate.endswith(suffix) for suffix in suffixes)


def classify(
    path: str | PathLike[str],
    primary_suffixes: tuple[str, ...] = PRIMARY_ARTIFACT_SUFFIXES,
    secondary_suffixes: tuple[str, ...] = SECONDARY_ARTIFACT_SUFFIXES,
) -> ArtifactKind:
    """Classify a file path. Primary suffixes win over secondary ones."""
    candidate = str(path)
    if ends_with_one_of(candidate, primary_suffixes):
        return ArtifactKind.PRIMARY
    if ends_with_one_of(candidate, secondary_suffixes):
        return ArtifactKind.SECONDARY
    return ArtifactKind.NONE
