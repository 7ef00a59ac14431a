"""Cache of loaded GeoJSON documents keyed by source path.

Changing display options (offset, flip, color, altitude) re-projects the same
document; only a new path or an explicit refresh reads the source again.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Callable

from geo_ingestion.geojson import load_geojson

logger = logging.getLogger(__name__)

Loader = Callable[[str], Any]


class GeoJsonRepository:
    """Loads GeoJSON documents once per source path.

    Parameters
    ----------
    loader : callable, optional
        ``loader(path) -> document``. Defaults to reading a JSON file.
        Loader exceptions propagate to the caller and nothing is cached.
    """

    def __init__(self, loader: Loader | None = None) -> None:
        self._loader: Loader = loader or load_geojson
        self._documents: dict[str, Any] = {}
        self.loads = 0

    @staticmethod
    def _key(path: str | Path) -> str:
        return str(path)

    def __contains__(self, path: str | Path) -> bool:
        return self._key(path) in self._documents

    def __len__(self) -> int:
        return len(self._documents)

    def get(self, path: str | Path) -> Any:
        """Cached document for ``path``, loading it on first request."""
        key = self._key(path)
        if key in self._documents:
            logger.debug("GeoJSON cache hit: %s", key)
            return self._documents[key]

        document = self._loader(key)
        self.loads += 1
        self._documents[key] = document
        logger.debug("GeoJSON cache miss, loaded: %s", key)
        return document

    def refresh(self, path: str | Path) -> Any:
        """Drop any cached copy of ``path`` and load it again."""
        self.invalidate(path)
        return self.get(path)

    def invalidate(self, path: str | Path | None = None) -> None:
        """Forget one cached document, or all of them when ``path`` is None."""
        if path is None:
            count = len(self._documents)
            self._documents.clear()
            logger.debug("GeoJSON cache cleared (%d documents)", count)
            return
        self._documents.pop(self._key(path), None)
