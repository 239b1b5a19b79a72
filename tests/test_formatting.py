from store_context.config import EXCERPT_CHARS, TRUNCATION_MARKER, DocumentRecord, Variant
from store_context.formatting import (
    excerpt,
    format_ground_text,
    format_pages,
    format_product,
    format_products,
    product_url,
)

BASE = "https://shop.test"


def test_format_product_full_block():
    doc = DocumentRecord(
        handle="mainspring-barrel",
        title="Mainspring Barrel",
        vendor="Acme",
        tags=["parts", "springs"],
        body="Fits cal. 2824",
        variants=[Variant(sku="MS-100", price="12.50"), Variant(sku="MS-120", price="13.00")],
    )
    assert format_product(doc, BASE).split("\n") == [
        "Title: Mainspring Barrel",
        "SKU: MS-100, MS-120",
        "Price: 12.50, 13.00",
        "URL: https://shop.test/products/mainspring-barrel",
        "Vendor: Acme",
        "Tags: parts, springs",
        "Description: Fits cal. 2824",
    ]


def test_absent_fields_emit_no_lines():
    doc = DocumentRecord(handle="belt", title="Turntable Belt")
    assert format_product(doc, BASE) == "Title: Turntable Belt\nURL: https://shop.test/products/belt"


def test_product_url_strips_slashes():
    assert product_url("belt", "https://shop.test/") == "https://shop.test/products/belt"
    assert product_url("", BASE) == ""


def test_body_excerpt_never_exceeds_ceiling_plus_marker():
    doc = DocumentRecord(handle="long", title="Long", body="word " * 400)
    block = format_product(doc, BASE)
    description = [line for line in block.split("\n") if line.startswith("Description: ")][0]
    text = description[len("Description: "):]
    assert text.endswith(TRUNCATION_MARKER)
    assert len(text) <= EXCERPT_CHARS + len(TRUNCATION_MARKER)


def test_excerpt_keeps_short_text():
    assert excerpt("short body", 300) == "short body"
    assert excerpt("abcdef", 3) == "abc" + TRUNCATION_MARKER


def test_products_joined_without_blank_lines():
    docs = [DocumentRecord(handle="a", title="A"), DocumentRecord(handle="b", title="B")]
    out = format_products(docs, BASE)
    assert "\n\n" not in out
    assert out.count("Title: ") == 2


def test_format_pages_respects_budget():
    # each block is "Page N\n" + 23 chars = 30 characters
    pages = [DocumentRecord(handle=f"p{i}", title=f"Page {i}", body="x" * 23) for i in range(3)]
    out = format_pages(pages, budget=65)
    assert out == "Page 0\n" + "x" * 23 + "\n\nPage 1\n" + "x" * 23
    assert len(out) <= 65


def test_format_pages_stops_at_first_overflow():
    pages = [
        DocumentRecord(handle="big", title="Big", body="y" * 100),
        DocumentRecord(handle="small", title="Small", body="z"),
    ]
    assert format_pages(pages, budget=50) == ""


def test_format_ground_text_drops_empty_sections():
    assert format_ground_text("Title: A", "") == "Products:\nTitle: A"
    assert format_ground_text("", "Shipping\nFree") == "Store pages:\nShipping\nFree"
    assert format_ground_text("", None) == ""
