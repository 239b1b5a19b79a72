from __future__ import annotations
"""
Document sources consumed by the retrieval pipeline.

Every source answers ``fetch(query) -> List[DocumentRecord]``. Local sources
ignore the query and serve a cached catalog; the remote source runs a live
store search for it.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import httpx
from loguru import logger

from ._singletons import CatalogCache, cache_for_path
from .catalog_build import records_from_payload
from .config import (
    HTTP_CONNECT_TIMEOUT,
    HTTP_MAX_BYTES,
    HTTP_MAX_REDIRECTS,
    HTTP_READ_TIMEOUT,
    HTTP_USER_AGENT,
    DocumentRecord,
)
from .errors import SourceUnavailable


class DocumentSource(ABC):
    name: str = "source"
    # True when fetch() results depend on the query text
    query_sensitive: bool = False

    @abstractmethod
    def fetch(self, query: str) -> List[DocumentRecord]:
        ...

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name!r})"


class _CachedSource(DocumentSource):
    def __init__(self, cache: CatalogCache):
        self.cache = cache
        self.name = cache.name

    def fetch(self, query: str) -> List[DocumentRecord]:
        return list(self.cache.ensure_loaded())


class LocalStructuredSource(_CachedSource):
    """Pre-built JSON document array (or an in-memory list of entries)."""

    def __init__(self, source: Union[str, Path, List[Dict[str, Any]], CatalogCache], name: Optional[str] = None):
        if isinstance(source, CatalogCache):
            cache = source
        elif isinstance(source, list):
            entries = list(source)
            cache = CatalogCache(lambda: records_from_payload(entries), name=name or "inline")
        else:
            cache = cache_for_path(Path(source), name)
        super().__init__(cache)


class LocalTabularSource(_CachedSource):
    """CSV product export."""

    def __init__(self, source: Union[str, Path, CatalogCache], name: Optional[str] = None):
        cache = source if isinstance(source, CatalogCache) else cache_for_path(Path(source), name)
        super().__init__(cache)


def _http_client() -> httpx.Client:
    return httpx.Client(
        headers={"User-Agent": HTTP_USER_AGENT, "Accept": "application/json"},
        follow_redirects=True,
        timeout=httpx.Timeout(HTTP_READ_TIMEOUT, connect=HTTP_CONNECT_TIMEOUT),
        max_redirects=HTTP_MAX_REDIRECTS,
    )


class RemoteSearchSource(DocumentSource):
    """
    Live store search, e.g. ``https://shop/search/suggest.json``.

    The query goes in the ``q`` parameter; extra parameters (resource type,
    limit) are passed through unchanged. Any transport, status or decoding
    problem raises SourceUnavailable for the caller to absorb.
    """

    query_sensitive = True

    def __init__(self, url: str, params: Optional[Dict[str, Any]] = None, name: str = "remote"):
        self.url = url
        self.params = dict(params or {})
        self.name = name

    def _get_json(self, query: str) -> Any:
        try:
            with _http_client() as client:
                r = client.get(self.url, params={**self.params, "q": query})
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise SourceUnavailable(f"{self.name}: request failed: {e}") from e

        if r.status_code >= 400:
            raise SourceUnavailable(f"{self.name}: HTTP {r.status_code}")
        if len(r.content) > HTTP_MAX_BYTES:
            raise SourceUnavailable(f"{self.name}: {len(r.content)} bytes > {HTTP_MAX_BYTES} limit")
        try:
            return r.json()
        except ValueError as e:
            raise SourceUnavailable(f"{self.name}: response is not JSON") from e

    def fetch(self, query: str) -> List[DocumentRecord]:
        if not query or not query.strip():
            return []
        records = records_from_payload(self._get_json(query))
        logger.info("Remote search '{}' via {} -> {} records", query, self.name, len(records))
        return records
