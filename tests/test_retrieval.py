import pytest

from store_context.config import DocumentRecord, FieldWeights, Variant
from store_context.normalize import tokenize
from store_context.retrieval import rank_candidates, score, score_record


def _doc(handle, title, tags=(), body="", vendor="", skus=()):
    return DocumentRecord(
        handle=handle,
        title=title,
        tags=list(tags),
        body=body,
        vendor=vendor,
        variants=[Variant(sku=s) for s in skus],
    )


CATALOG = [
    _doc("mainspring-barrel", "Mainspring Barrel", tags=["parts"]),
    _doc("turntable-belt", "Turntable Belt", tags=["belts"]),
]


def test_title_match_returns_only_matching_document():
    ranked = rank_candidates(tokenize("need a mainspring"), CATALOG)
    assert [c.record.handle for c in ranked] == ["mainspring-barrel"]
    assert ranked[0].score >= 5


def test_no_overlap_returns_empty():
    assert score(tokenize("quartz movement"), CATALOG) == []


def test_empty_terms_return_empty():
    assert score(set(), CATALOG) == []
    assert score(tokenize("please show me the"), CATALOG) == []


def test_term_order_does_not_change_scores():
    doc = _doc("belt", "Turntable Belt", tags=["belts"], body="Flat rubber belt")
    weights = FieldWeights()
    forward = score_record(["belt", "rubber", "turntable"], doc, weights)
    backward = score_record(["turntable", "rubber", "belt"], doc, weights)
    assert forward == backward


def test_weights_sum_per_matching_field():
    doc = _doc("belt", "Turntable Belt", tags=["belts"], body="A belt for turntables")
    # 'belt' hits title (5), tags (3, substring of 'belts') and body (1)
    assert score_record(["belt"], doc, FieldWeights()) == 9


def test_substring_matching_allows_partial_words():
    ranked = rank_candidates({"spring"}, CATALOG)
    assert [c.record.handle for c in ranked] == ["mainspring-barrel"]


def test_title_matches_outrank_body_matches():
    docs = [
        _doc("manual", "Service Manual", body="covers the balance wheel"),
        _doc("wheel", "Balance Wheel"),
    ]
    assert [d.handle for d in score({"balance"}, docs)] == ["wheel", "manual"]


def test_ties_keep_catalog_order():
    docs = [_doc(f"belt-{i}", f"Belt {i}") for i in range(4)]
    assert [d.handle for d in score({"belt"}, docs)] == ["belt-0", "belt-1", "belt-2", "belt-3"]


def test_result_is_capped_at_k():
    docs = [_doc(f"belt-{i}", f"Belt {i}") for i in range(12)]
    assert len(score({"belt"}, docs, k=3)) == 3
    assert len(score({"belt"}, docs)) == 10


def test_custom_weights_change_ranking():
    docs = [
        _doc("title-hit", "Crystal Gasket"),
        _doc("tag-hit", "Sapphire Glass", tags=["crystal"]),
    ]
    weights = FieldWeights(title=1, tags=10)
    assert [d.handle for d in score({"crystal"}, docs, weights)] == ["tag-hit", "title-hit"]


def test_optional_fields_are_only_searched_when_selected():
    docs = [_doc("stem", "Winding Stem", vendor="Acme", skus=["XK2000"])]
    assert score({"xk2000"}, docs) == []
    assert score({"acme"}, docs) == []

    ranked = rank_candidates({"xk2000", "acme"}, docs, fields=("title", "vendor", "sku"))
    assert ranked[0].score == 2


def test_unknown_field_is_rejected():
    with pytest.raises(ValueError):
        score({"belt"}, CATALOG, fields=("title", "colour"))
