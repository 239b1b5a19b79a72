# store_context/cli.py
"""
Print the ground text a chat turn would receive.

    python -m store_context.cli "need a mainspring" --products data/products_export.csv
"""
from __future__ import annotations

import argparse
from pathlib import Path
from typing import List, Optional

from . import config
from .catalog_build import build_catalog_snapshot
from .formatting import format_ground_text
from .pipeline import ContextRetriever, default_page_retriever, default_product_sources
from .sources import DocumentSource, LocalStructuredSource, LocalTabularSource, RemoteSearchSource


def _file_source(path: Path) -> DocumentSource:
    if path.suffix.lower() == ".csv":
        return LocalTabularSource(path)
    return LocalStructuredSource(path)


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="Retrieve store grounding context for a query")
    ap.add_argument("query", nargs="?", default="", help="Customer question")
    ap.add_argument("--products", type=Path, nargs="+", default=None,
                    help="Product catalog files (.json or .csv), in priority order")
    ap.add_argument("--pages", type=Path, default=None, help="Store pages JSON file")
    ap.add_argument("--remote-url", default=config.REMOTE_SEARCH_URL,
                    help="Live search endpoint queried with ?q=")
    ap.add_argument("--base-url", default=config.STORE_BASE_URL)
    ap.add_argument("--top-k", type=int, default=config.DEFAULT_TOP_K)
    ap.add_argument("--fallback", type=int, default=config.FALLBACK_COUNT,
                    help="Documents shown when nothing matches (0 disables)")
    ap.add_argument("--merge", action="store_true", help="Combine all sources instead of first non-empty")
    ap.add_argument("--show-ids", action="store_true", help="Also print matched handles")
    ap.add_argument("--build-snapshot", type=Path, metavar="CSV",
                    help="Convert a CSV export into the JSON catalog and exit")
    return ap


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    if args.build_snapshot:
        out = build_catalog_snapshot(args.build_snapshot, config.PRODUCTS_JSON_PATH)
        print(f"Wrote {out}")
        return 0

    if args.products:
        sources: List[DocumentSource] = [_file_source(p) for p in args.products]
        if args.remote_url:
            sources.append(RemoteSearchSource(args.remote_url))
    else:
        sources = default_product_sources()

    products = ContextRetriever(
        sources,
        merge=args.merge,
        top_k=args.top_k,
        fallback_count=args.fallback,
        base_url=args.base_url,
    )
    if args.pages:
        pages = ContextRetriever(
            [LocalStructuredSource(args.pages)],
            kind="pages",
            top_k=config.PAGE_TOP_K,
            fallback_count=config.PAGE_TOP_K,
        )
    else:
        pages = default_page_retriever()

    product_result = products.retrieve_with_ids(args.query)
    page_result = pages.retrieve_with_ids(args.query)

    print(format_ground_text(product_result.context, page_result.context))
    if args.show_ids:
        print(f"\nproducts: {', '.join(product_result.handles) or '-'}")
        print(f"pages: {', '.join(page_result.handles) or '-'}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
