from __future__ import annotations
"""
Render retrieved documents into compact, line-oriented context blocks.

Product blocks carry one line per populated field; page blocks are plain
title + body text under a running character budget so the result fits a
fixed-size prompt slot.
"""

from typing import List, Optional, Sequence

from loguru import logger

from .config import (
    EXCERPT_CHARS,
    PAGE_CHAR_BUDGET,
    STORE_BASE_URL,
    TRUNCATION_MARKER,
    DocumentRecord,
)

PAGE_SEPARATOR = "\n\n"


def product_url(handle: str, base_url: str = STORE_BASE_URL) -> str:
    """Compose the storefront URL for a product handle."""
    if not handle:
        return ""
    return f"{base_url.rstrip('/')}/products/{handle.strip('/')}"


def excerpt(text: str, limit: int = EXCERPT_CHARS, marker: str = TRUNCATION_MARKER) -> str:
    """Cut text to ``limit`` characters, appending ``marker`` when cut."""
    text = (text or "").strip()
    if len(text) <= limit:
        return text
    return text[:limit].rstrip() + marker


def _unique(values: Sequence[str]) -> List[str]:
    out: List[str] = []
    for v in values:
        if v and v not in out:
            out.append(v)
    return out


def format_product(
    doc: DocumentRecord,
    base_url: str = STORE_BASE_URL,
    excerpt_chars: int = EXCERPT_CHARS,
) -> str:
    lines = [f"Title: {doc.title}"]

    skus = _unique(doc.skus)
    if skus:
        lines.append(f"SKU: {', '.join(skus)}")

    prices = _unique([v.price for v in doc.variants])
    if prices:
        lines.append(f"Price: {', '.join(prices)}")

    url = product_url(doc.handle, base_url)
    if url:
        lines.append(f"URL: {url}")
    if doc.vendor:
        lines.append(f"Vendor: {doc.vendor}")
    if doc.tags:
        lines.append(f"Tags: {', '.join(doc.tags)}")
    if doc.body:
        lines.append(f"Description: {excerpt(doc.body, excerpt_chars)}")
    return "\n".join(lines)


def format_products(
    documents: Sequence[DocumentRecord],
    base_url: str = STORE_BASE_URL,
    excerpt_chars: int = EXCERPT_CHARS,
) -> str:
    """One block per product, blocks joined by a single newline."""
    return "\n".join(format_product(doc, base_url, excerpt_chars) for doc in documents)


def format_pages(documents: Sequence[DocumentRecord], budget: int = PAGE_CHAR_BUDGET) -> str:
    """
    Concatenate ``title\\nbody`` blocks while the total stays within budget.

    Stops at the first block that would overflow; later (lower-ranked)
    pages are not squeezed in after it.
    """
    parts: List[str] = []
    used = 0
    for doc in documents:
        block = f"{doc.title}\n{doc.body}".strip()
        extra = len(block) + (len(PAGE_SEPARATOR) if parts else 0)
        if used + extra > budget:
            logger.debug("Page budget {} reached after {} pages", budget, len(parts))
            break
        parts.append(block)
        used += extra
    return PAGE_SEPARATOR.join(parts)


def format_ground_text(product_text: Optional[str], page_text: Optional[str]) -> str:
    """Label and join the product and page sections, dropping empty ones."""
    sections: List[str] = []
    if product_text:
        sections.append(f"Products:\n{product_text}")
    if page_text:
        sections.append(f"Store pages:\n{page_text}")
    return "\n\n".join(sections)
