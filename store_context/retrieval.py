from __future__ import annotations
"""
Term-overlap relevance scoring over an in-memory document set.

Each selected field of a document is lower-cased into its own haystack.
Every query term found (as a substring) in a field adds that field's
weight. Substring matching is deliberate: 'spring' hits 'mainspring'.
"""

from typing import Dict, Iterable, List, Optional, Sequence, Set

from loguru import logger

from .config import DEFAULT_FIELDS, DEFAULT_TOP_K, SCORABLE_FIELDS, DocumentRecord, FieldWeights
from .pipeline_types import ScoredCandidate


# =============================================================================
# Haystacks
# =============================================================================

def field_text(record: DocumentRecord, field: str) -> str:
    """Lower-cased searchable text of one field."""
    if field == "title":
        text = record.title
    elif field == "tags":
        text = " ".join(record.tags)
    elif field == "body":
        text = record.body
    elif field == "vendor":
        text = record.vendor
    elif field == "sku":
        text = " ".join(record.skus)
    else:
        raise ValueError(f"Unknown field {field!r}; expected one of {SCORABLE_FIELDS}")
    return (text or "").lower()


def _haystacks(record: DocumentRecord, fields: Sequence[str]) -> Dict[str, str]:
    return {f: field_text(record, f) for f in fields}


def score_record(
    terms: Iterable[str],
    record: DocumentRecord,
    weights: FieldWeights,
    fields: Sequence[str] = DEFAULT_FIELDS,
) -> int:
    hay = _haystacks(record, fields)
    total = 0
    for term in terms:
        for field, text in hay.items():
            if text and term in text:
                total += weights.for_field(field)
    return total


# =============================================================================
# Public API
# =============================================================================

def rank_candidates(
    terms: Set[str],
    documents: Sequence[DocumentRecord],
    weights: Optional[FieldWeights] = None,
    fields: Sequence[str] = DEFAULT_FIELDS,
) -> List[ScoredCandidate]:
    """
    Score every document, drop zero scores and sort by score descending.

    The sort is stable, so equal scores keep catalog order.
    """
    if not terms or not documents:
        return []
    weights = weights or FieldWeights()
    ordered_terms = sorted(terms)

    scored = [
        ScoredCandidate(record=doc, score=score_record(ordered_terms, doc, weights, fields))
        for doc in documents
    ]
    ranked = sorted((c for c in scored if c.score > 0), key=lambda c: -c.score)
    logger.debug("rank_candidates: terms={} docs={} -> {} matches", ordered_terms, len(documents), len(ranked))
    return ranked


def score(
    terms: Set[str],
    documents: Sequence[DocumentRecord],
    weights: Optional[FieldWeights] = None,
    k: int = DEFAULT_TOP_K,
    fields: Sequence[str] = DEFAULT_FIELDS,
) -> List[DocumentRecord]:
    """Top-k documents for the query terms; empty when nothing overlaps."""
    return [c.record for c in rank_candidates(terms, documents, weights, fields)[:k]]
