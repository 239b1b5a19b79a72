from __future__ import annotations

"""
Retrieval pipeline: sources -> scorer -> formatter.

``ContextRetriever.retrieve(query)`` is the single entry point used by the
chat handler. It always returns a string; source failures only shrink the
context.

Zero-match policy: when the query matches nothing (including queries with
no usable terms) but documents exist, the first ``fallback_count``
documents are rendered instead. Pass ``fallback_count=0`` to get an empty
context in that case.
"""

from typing import Iterable, List, Optional, Sequence, Tuple

from loguru import logger

from . import config
from ._singletons import PAGES_CACHE, PRODUCTS_CSV_CACHE, PRODUCTS_JSON_CACHE
from .config import DocumentRecord, FieldWeights, RetrievalResult
from .errors import ContextError
from .formatting import format_ground_text, format_pages, format_products
from .normalize import normalize, rewrite_query, tokenize
from .retrieval import score
from .sources import DocumentSource, LocalStructuredSource, LocalTabularSource, RemoteSearchSource

KINDS = ("products", "pages")


def dedupe_key(doc: DocumentRecord) -> Tuple[str, str, str]:
    return (doc.handle, ",".join(doc.skus), doc.title)


def dedupe_documents(docs: Iterable[DocumentRecord]) -> List[DocumentRecord]:
    """Drop repeats by (handle, sku, title), preserving first-seen order."""
    seen = set()
    out: List[DocumentRecord] = []
    for doc in docs:
        key = dedupe_key(doc)
        if key in seen:
            continue
        seen.add(key)
        out.append(doc)
    return out


def query_variants(query: str) -> List[str]:
    """The exact query plus its domain rewrite when that differs."""
    exact = normalize(query)
    if not exact:
        return []
    rewritten = rewrite_query(exact)
    if rewritten.lower() != exact.lower():
        return [exact, rewritten]
    return [exact]


class ContextRetriever:
    def __init__(
        self,
        sources: Sequence[DocumentSource],
        *,
        kind: str = "products",
        merge: bool = False,
        top_k: int = config.DEFAULT_TOP_K,
        fallback_count: int = config.FALLBACK_COUNT,
        weights: Optional[FieldWeights] = None,
        fields: Sequence[str] = config.DEFAULT_FIELDS,
        base_url: str = config.STORE_BASE_URL,
        excerpt_chars: int = config.EXCERPT_CHARS,
        page_budget: int = config.PAGE_CHAR_BUDGET,
    ):
        if kind not in KINDS:
            raise ValueError(f"kind must be one of {KINDS}, got {kind!r}")
        self.sources = list(sources)
        self.kind = kind
        self.merge = merge
        self.top_k = top_k
        self.fallback_count = max(0, fallback_count)
        self.weights = weights or FieldWeights()
        self.fields = tuple(fields)
        self.base_url = base_url
        self.excerpt_chars = excerpt_chars
        self.page_budget = page_budget

    # ---------------------------
    # Collection
    # ---------------------------

    def _fetch_from(self, source: DocumentSource, query: str) -> List[DocumentRecord]:
        queries = query_variants(query) if source.query_sensitive else [query]
        docs: List[DocumentRecord] = []
        for q in queries:
            try:
                docs.extend(source.fetch(q))
            except ContextError as e:
                logger.warning("Source {} failed for '{}': {}", source.name, q, e)
            except Exception as e:
                logger.warning("Source {} raised {} for '{}': {}", source.name, type(e).__name__, q, e)
        return dedupe_documents(docs)

    def collect(self, query: str) -> List[DocumentRecord]:
        """
        Documents to score: the first non-empty source in priority order,
        or every source combined when ``merge`` is set.
        """
        if self.merge:
            combined: List[DocumentRecord] = []
            for source in self.sources:
                combined.extend(self._fetch_from(source, query))
            return dedupe_documents(combined)

        for source in self.sources:
            docs = self._fetch_from(source, query)
            if docs:
                logger.info("Using {} documents from {}", len(docs), source.name)
                return docs
        return []

    # ---------------------------
    # Rendering
    # ---------------------------

    def render(self, docs: Sequence[DocumentRecord]) -> str:
        if self.kind == "pages":
            return format_pages(docs, self.page_budget)
        return format_products(docs, self.base_url, self.excerpt_chars)

    # ---------------------------
    # Public API
    # ---------------------------

    def retrieve_with_ids(self, query: str) -> RetrievalResult:
        docs = self.collect(query)
        if not docs:
            logger.info("retrieve: no documents available for '{}'", query)
            return RetrievalResult()

        terms = tokenize(query)
        matched = score(terms, docs, self.weights, self.top_k, self.fields)

        fallback_used = False
        if not matched and self.fallback_count:
            matched = docs[: self.fallback_count]
            fallback_used = True

        logger.info(
            "retrieve: query='{}' terms={} docs={} -> {} {} (fallback={})",
            query, sorted(terms), len(docs), len(matched), self.kind, fallback_used,
        )
        return RetrievalResult(
            context=self.render(matched),
            handles=[d.handle for d in matched],
            fallback_used=fallback_used,
        )

    def retrieve(self, query: str) -> str:
        return self.retrieve_with_ids(query).context


# ---------------------------
# Defaults wired from config
# ---------------------------

def default_product_sources() -> List[DocumentSource]:
    sources: List[DocumentSource] = [
        LocalStructuredSource(PRODUCTS_JSON_CACHE),
        LocalTabularSource(PRODUCTS_CSV_CACHE),
    ]
    if config.REMOTE_SEARCH_URL:
        sources.append(
            RemoteSearchSource(
                config.REMOTE_SEARCH_URL,
                params={"resources[type]": "product", "resources[limit]": config.DEFAULT_TOP_K},
            )
        )
    return sources


def default_product_retriever() -> ContextRetriever:
    return ContextRetriever(default_product_sources(), kind="products")


def default_page_retriever() -> ContextRetriever:
    return ContextRetriever(
        [LocalStructuredSource(PAGES_CACHE)],
        kind="pages",
        top_k=config.PAGE_TOP_K,
        fallback_count=config.PAGE_TOP_K,
    )


def build_store_context(
    query: str,
    products: Optional[ContextRetriever] = None,
    pages: Optional[ContextRetriever] = None,
) -> str:
    """Ground text for one chat turn: product section + store-page section."""
    products = products or default_product_retriever()
    pages = pages or default_page_retriever()
    return format_ground_text(products.retrieve(query), pages.retrieve(query))
