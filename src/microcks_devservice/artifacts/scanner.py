"""Bounded resource directory scan for artifact files."""

import logging
import os
from collections.abc import Iterable
from pathlib import Path

from microcks_devservice.artifacts.classifier import ends_with_one_of
from microcks_devservice.errors import ArtifactScanError

logger = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 2


def _raise_walk_error(error: OSError) -> None:
    raise error


def _collect_files(root: Path, suffixes: tuple[str, ...], max_depth: int) -> set[Path]:
    """Collect regular files under root whose path ends with a suffix.

    Files directly in root are at depth 1, files in a child directory at depth 2.
    """
    collected: set[Path] = set()
    for dirpath, dirnames, filenames in os.walk(root, onerror=_raise_walk_error):
        depth = len(Path(dirpath).relative_to(root).parts) + 1
        if depth >= max_depth:
            # Files here are the deepest ones we look at
            dirnames.clear()
        if depth > max_depth:
            continue
        for filename in filenames:
            candidate = Path(dirpath) / filename
            if candidate.is_file() and ends_with_one_of(str(candidate), suffixes):
                collected.add(candidate)
    return collected


def scan(
    root_dirs: Iterable[str | Path],
    suffixes: Iterable[str],
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> set[Path]:
    """Scan resource directories for files matching any suffix.

    Roots that do not exist or are not directories contribute nothing.

    Raises:
        ArtifactScanError: A directory could not be read while walking.
    """
    suffix_tuple = tuple(suffixes)
    found: set[Path] = set()
    for root_dir in root_dirs:
        root = Path(root_dir)
        if not root.is_dir():
            logger.debug("Skipping missing resource directory: %s", root)
            continue
        try:
            found |= _collect_files(root, suffix_tuple, max_depth)
        except OSError as e:
            raise ArtifactScanError(f"Failed to scan {root}: {e}") from e
    return found
