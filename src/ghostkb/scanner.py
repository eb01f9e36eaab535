"""Collection scanning: find note files under a root and parse them.

Every call walks the filesystem again; nothing is cached between calls.
Failures for single directories or files are returned as warnings and the
walk carries on.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable
from pathlib import Path
from typing import NamedTuple

from .config import EXCLUDED_DIRS, NOTE_EXTENSION
from .models import Collection, Document
from .parser import ParseError, load_document

log = logging.getLogger(__name__)


class ScanResult(NamedTuple):
    """Note files found under a root, plus non-fatal traversal problems."""

    files: list[Path]
    warnings: list[str]


def scan_collection(
    root: Path,
    *,
    extension: str = NOTE_EXTENSION,
    excluded_dirs: Iterable[str] = EXCLUDED_DIRS,
) -> ScanResult:
    """Recursively list every note file beneath root.

    Directories whose name exactly matches an entry in excluded_dirs are not
    entered. Unreadable directories are reported and skipped.

    Args:
        root: Directory to walk.
        extension: Filename suffix identifying notes.
        excluded_dirs: Directory names to prune.

    Returns:
        ScanResult with files in sorted walk order.
    """
    excluded = set(excluded_dirs)
    files: list[Path] = []
    warnings: list[str] = []

    def on_error(error: OSError) -> None:
        message = f"Cannot read directory {error.filename}: {error.strerror or error}"
        log.warning(message)
        warnings.append(message)

    for dirpath, dirnames, filenames in os.walk(root, onerror=on_error):
        # Prune in place so os.walk never descends into excluded directories
        dirnames[:] = sorted(d for d in dirnames if d not in excluded)
        current = Path(dirpath)
        for filename in sorted(filenames):
            if filename.endswith(extension):
                files.append(current / filename)

    return ScanResult(files=files, warnings=warnings)


def read_collection(
    collection: Collection,
    *,
    extension: str = NOTE_EXTENSION,
    excluded_dirs: Iterable[str] = EXCLUDED_DIRS,
) -> tuple[list[Document], list[str]]:
    """Scan a collection and parse every note in it.

    Args:
        collection: Collection to read.
        extension: Filename suffix identifying notes.
        excluded_dirs: Directory names to prune.

    Returns:
        Tuple of (documents, warnings). Notes that fail to parse are left out
        and described in warnings.
    """
    scan = scan_collection(collection.root, extension=extension, excluded_dirs=excluded_dirs)
    documents: list[Document] = []
    warnings = list(scan.warnings)

    for path in scan.files:
        try:
            documents.append(load_document(collection.name, collection.root, path, extension))
        except ParseError as e:
            message = f"Skipping {collection.name}/{path.relative_to(collection.root).as_posix()}: {e.message}"
            log.warning(message)
            warnings.append(message)

    log.debug("Read %d documents from %s", len(documents), collection.name)
    return documents, warnings
