"""Registry of the primary collection and externally configured collections."""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable

from .config import Settings
from .models import Collection, Document
from .scanner import read_collection

log = logging.getLogger(__name__)


class CollectionRegistry:
    """Known collections, fixed at construction from Settings.

    Collection names are not required to be unique. Lookups by name return
    every match; nothing is merged or shadowed here.
    """

    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        self._primary = Collection(
            name=settings.primary_name,
            root=settings.primary_path,
            enabled=True,
            kind="primary",
        )
        self._external = [
            Collection(name=c.name, root=c.path, enabled=c.enabled, kind="external")
            for c in settings.collections
        ]

    @property
    def primary(self) -> Collection:
        return self._primary

    def all(self) -> list[Collection]:
        """Every collection, primary first, disabled ones included."""
        return [self._primary, *self._external]

    def enabled(self) -> list[Collection]:
        return [c for c in self.all() if c.enabled]

    def external(self) -> list[Collection]:
        return list(self._external)

    def find(self, names: Iterable[str]) -> list[Collection]:
        """Enabled collections whose name exactly matches one of names."""
        wanted = set(names)
        return [c for c in self.enabled() if c.name in wanted]

    def is_primary_name(self, name: str) -> bool:
        return name == self._primary.name

    def validate(self, collection: Collection) -> bool:
        """Whether the collection root was reachable at check time.

        This is an existence and permission check only; the directory may
        change right after it returns.
        """
        root = collection.root
        return root.is_dir() and os.access(root, os.R_OK | os.X_OK)

    def validate_all(self) -> list[tuple[Collection, bool]]:
        return [(c, self.validate(c)) for c in self.all()]

    def read(self, collection: Collection) -> tuple[list[Document], list[str]]:
        """Scan and parse one collection using the configured extension and exclusions."""
        return read_collection(
            collection,
            extension=self.settings.note_extension,
            excluded_dirs=self.settings.excluded_dirs,
        )

    def reachable(self, collections: Iterable[Collection]) -> tuple[list[Collection], list[str]]:
        """Split out collections that fail validate(), with one warning each."""
        ok: list[Collection] = []
        warnings: list[str] = []
        for collection in collections:
            if self.validate(collection):
                ok.append(collection)
                continue
            message = f"Collection '{collection.name}' is not accessible ({collection.root}), skipping"
            log.warning(message)
            warnings.append(message)
        return ok, warnings
