# store_context/_singletons.py
from __future__ import annotations

import threading
from pathlib import Path
from typing import Callable, List, Optional, Tuple

from loguru import logger

from .catalog_build import load
from .config import PAGES_JSON_PATH, PRODUCTS_CSV_PATH, PRODUCTS_JSON_PATH, DocumentRecord


class CatalogCache:
    """
    Load-once holder for a document set.

    Concurrent first callers block on one in-flight load; afterwards the
    cached tuple is returned without locking. The tuple is never mutated.
    """

    def __init__(self, loader: Callable[[], List[DocumentRecord]], name: str = "catalog"):
        self._loader = loader
        self.name = name
        self._lock = threading.Lock()
        self._docs: Optional[Tuple[DocumentRecord, ...]] = None

    @property
    def loaded(self) -> bool:
        return self._docs is not None

    def ensure_loaded(self) -> Tuple[DocumentRecord, ...]:
        docs = self._docs
        if docs is not None:
            return docs
        with self._lock:
            if self._docs is None:
                self._docs = tuple(self._loader())
                logger.info("Cached {} documents for {}", len(self._docs), self.name)
            return self._docs

    def reset(self) -> None:
        """Drop the cached set; the next access reloads (re-ingestion)."""
        with self._lock:
            self._docs = None


def cache_for_path(path: Path, name: Optional[str] = None) -> CatalogCache:
    return CatalogCache(lambda: load(path), name=name or str(path))


# process-wide caches; nothing is read until first ensure_loaded()
PRODUCTS_JSON_CACHE = cache_for_path(PRODUCTS_JSON_PATH, "products.json")
PRODUCTS_CSV_CACHE = cache_for_path(PRODUCTS_CSV_PATH, "products.csv")
PAGES_CACHE = cache_for_path(PAGES_JSON_PATH, "pages.json")
