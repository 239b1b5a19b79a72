from __future__ import annotations

import io
import json
import re
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence, Union

import pandas as pd
from loguru import logger

from .config import PRODUCTS_CSV_PATH, PRODUCTS_JSON_PATH, DocumentRecord, Variant
from .errors import MalformedRecord, SourceUnavailable
from .normalize import basic_clean, normalize


# ---------------------------
# Column detection / standardization
# ---------------------------

# Store exports differ between platforms and hand-made sheets, so each logical
# field accepts several header spellings. Earlier aliases win.
COLUMN_CANDIDATES: Dict[str, List[str]] = {
    "handle": ["handle", "product handle", "url handle", "slug"],
    "title": ["title", "product title", "name", "product name"],
    "vendor": ["vendor", "brand", "manufacturer"],
    "tags": ["tags", "tag", "keywords"],
    "body": [
        "body (html)",
        "body html",
        "body_html",
        "body",
        "description",
        "product description",
    ],
    "sku": ["variant sku", "sku", "variant_sku"],
    "price": ["variant price", "price", "variant_price"],
    "option1_name": ["option1 name", "option 1 name", "option1_name"],
    "option1_value": ["option1 value", "option 1 value", "option1_value"],
    "option2_name": ["option2 name", "option 2 name", "option2_name"],
    "option2_value": ["option2 value", "option 2 value", "option2_value"],
    "option3_name": ["option3 name", "option 3 name", "option3_name"],
    "option3_value": ["option3 value", "option 3 value", "option3_value"],
}

MAX_OPTIONS = 3

# Shopify writes this for products that have a single, unnamed variant.
_PLACEHOLDER_OPTION_VALUES = {"default title"}

_SLUG_RE = re.compile(r"[^a-z0-9]+")

Source = Union[str, Path, Sequence[Dict[str, Any]], None]


def _standardize_columns(df: pd.DataFrame) -> pd.DataFrame:
    """
    Keep only recognised columns, renamed to the canonical field names.
    Missing fields are added as empty-string columns.
    """
    col_map: Dict[str, str] = {}
    lower_to_original = {str(c).strip().lower(): c for c in df.columns}

    for canon, candidates in COLUMN_CANDIDATES.items():
        for candidate in candidates:
            original = lower_to_original.get(candidate)
            if original is not None and original not in col_map:
                col_map[original] = canon
                break

    logger.info("Standardizing columns with map: {}", col_map)

    df_std = df[list(col_map)].rename(columns=col_map)
    for canon in COLUMN_CANDIDATES:
        if canon not in df_std.columns:
            df_std[canon] = ""

    if "handle" not in col_map.values() and "title" not in col_map.values():
        logger.warning("Catalog has neither a handle nor a title column; every row will be skipped")

    return df_std.fillna("").astype(str)


# ---------------------------
# Field parsing helpers
# ---------------------------

def slugify(text: str) -> str:
    """Handle-style slug: 'Mainspring Barrel' -> 'mainspring-barrel'."""
    lowered = normalize(text).lower()
    return _SLUG_RE.sub("-", lowered).strip("-") or lowered


def split_tags(value: Any) -> List[str]:
    """Comma-separated string or list -> de-duplicated labels, first-seen order."""
    if value is None:
        return []
    if isinstance(value, str):
        parts: Iterable[Any] = value.split(",")
    elif isinstance(value, (list, tuple, set)):
        parts = value
    else:
        parts = [value]

    tags: List[str] = []
    for part in parts:
        tag = normalize(part)
        if tag and tag not in tags:
            tags.append(tag)
    return tags


def _row_options(row: Dict[str, str]) -> List[str]:
    options: List[str] = []
    for i in range(1, MAX_OPTIONS + 1):
        name = normalize(row.get(f"option{i}_name"))
        value = normalize(row.get(f"option{i}_value"))
        if not value or value.lower() in _PLACEHOLDER_OPTION_VALUES:
            continue
        options.append(f"{name}: {value}" if name else value)
    return options


def _row_variant(row: Dict[str, str]) -> Optional[Variant]:
    """
    One variant per row. Rows that only continue a product (image rows in
    Shopify exports) carry no sku, price or options and yield None.
    """
    sku = normalize(row.get("sku"))
    price = normalize(row.get("price"))
    options = _row_options(row)
    if not (sku or price or options):
        return None
    return Variant(sku=sku, price=price, options=options)


def _row_key(row: Dict[str, str]) -> str:
    handle = normalize(row.get("handle"))
    if handle:
        return handle
    title = normalize(row.get("title"))
    if title:
        return slugify(title)
    raise MalformedRecord("row has neither handle nor title")


def _new_entry(handle: str) -> Dict[str, Any]:
    return {"handle": handle, "title": "", "vendor": "", "tags": [], "body": "", "variants": []}


def _absorb(entry: Dict[str, Any], title: str, vendor: str, body: str,
            tags: List[str], variants: List[Variant]) -> None:
    """Merge one row/entry into the accumulator for its handle."""
    if not entry["title"] and title:
        entry["title"] = title
    if not entry["vendor"] and vendor:
        entry["vendor"] = vendor
    if not entry["body"] and body:
        entry["body"] = body
    for tag in tags:
        if tag not in entry["tags"]:
            entry["tags"].append(tag)
    entry["variants"].extend(variants)


def _finalize(groups: Dict[str, Dict[str, Any]]) -> List[DocumentRecord]:
    records: List[DocumentRecord] = []
    for handle, entry in groups.items():
        if not entry["title"]:
            logger.warning("Dropping '{}': no title on any of its rows", handle)
            continue
        records.append(DocumentRecord(**entry))
    return records


# ---------------------------
# Tabular (CSV export)
# ---------------------------

def parse_tabular(text: str) -> pd.DataFrame:
    """
    Parse CSV text into a string-only DataFrame.

    Quoted fields may hold commas, newlines and doubled quotes. A leading
    BOM is dropped; both LF and CRLF line endings are accepted. Rows with
    more cells than the header are skipped. An unterminated quote makes the
    whole text unparseable and raises SourceUnavailable.
    """
    if text.startswith("\ufeff"):
        text = text[1:]
    if not text.strip():
        return pd.DataFrame()
    try:
        df = pd.read_csv(
            io.StringIO(text),
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
            on_bad_lines="skip",
        )
    except pd.errors.EmptyDataError:
        return pd.DataFrame()
    except pd.errors.ParserError as e:
        # an unterminated quote rejects the whole file; the message names its row
        raise SourceUnavailable(f"unparseable CSV, no rows loaded: {e}") from e
    return df.fillna("")


def normalize_catalog_df(df_raw: pd.DataFrame) -> List[DocumentRecord]:
    """
    Group export rows into one DocumentRecord per handle.

    Rows without a handle are keyed by the slug of their title; rows with
    neither are skipped. The first non-empty title/vendor/body seen for a
    handle wins, tags are unioned and every row's variant is appended.
    """
    logger.info("Normalizing catalog dataframe with {} raw rows", len(df_raw))
    if df_raw.empty:
        return []

    df = _standardize_columns(df_raw)

    groups: Dict[str, Dict[str, Any]] = {}
    skipped = 0
    for row in df.to_dict("records"):
        try:
            key = _row_key(row)
        except MalformedRecord as e:
            skipped += 1
            logger.debug("Skipping row: {}", e)
            continue

        entry = groups.setdefault(key, _new_entry(key))
        variant = _row_variant(row)
        _absorb(
            entry,
            title=normalize(row.get("title")),
            vendor=normalize(row.get("vendor")),
            body=basic_clean(row.get("body")),
            tags=split_tags(row.get("tags")),
            variants=[variant] if variant else [],
        )

    if skipped:
        logger.warning("Skipped {} malformed catalog rows", skipped)

    records = _finalize(groups)
    logger.info("Catalog normalization complete. Final records: {}", len(records))
    return records


def _read_text(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8-sig")
    except (OSError, UnicodeDecodeError) as e:
        raise SourceUnavailable(f"cannot read {path}: {e}") from e


def load_tabular(path: Path) -> List[DocumentRecord]:
    """Load a CSV product export. Raises SourceUnavailable on I/O or parse failure."""
    logger.info("Loading tabular catalog from {}", path)
    return normalize_catalog_df(parse_tabular(_read_text(Path(path))))


# ---------------------------
# Structured (JSON / in-memory)
# ---------------------------

def _variant_options(value: Any) -> List[str]:
    # a bare string is one option, not a sequence of characters
    if isinstance(value, str):
        value = [value]
    elif not isinstance(value, (list, tuple)):
        return []
    return [normalize(o) for o in value if isinstance(o, (str, int, float))]


def _entry_variants(entry: Dict[str, Any]) -> List[Variant]:
    raw = entry.get("variants")
    if isinstance(raw, list) and raw:
        variants: List[Variant] = []
        for v in raw:
            if isinstance(v, Variant):
                variants.append(v)
            elif isinstance(v, dict):
                options = _variant_options(v.get("options"))
                variants.append(
                    Variant(
                        sku=normalize(v.get("sku")),
                        price=normalize(v.get("price")),
                        options=[o for o in options if o][:MAX_OPTIONS],
                    )
                )
        return variants

    sku = normalize(entry.get("sku"))
    price = normalize(entry.get("price"))
    if sku or price:
        return [Variant(sku=sku, price=price)]
    return []


def records_from_payload(payload: Any) -> List[DocumentRecord]:
    """
    Build records from a structured payload: a list of entries,
    ``{"products": [...]}`` / ``{"pages": [...]}``, or a predictive-search
    style ``{"resources": {"results": {...}}}`` body. ``results`` may also
    be a plain list of entries. Any other shape yields no records.
    """
    entries: List[Any]
    if isinstance(payload, dict) and isinstance(payload.get("resources"), dict):
        payload = payload["resources"].get("results") or {}

    if isinstance(payload, dict):
        entries = []
        for key in ("products", "pages", "articles", "documents"):
            value = payload.get(key)
            if isinstance(value, list):
                entries.extend(value)
    elif isinstance(payload, (list, tuple)):
        entries = list(payload)
    else:
        entries = []

    groups: Dict[str, Dict[str, Any]] = {}
    skipped = 0
    for entry in entries:
        if isinstance(entry, DocumentRecord):
            entry = entry.model_dump()
        if not isinstance(entry, dict):
            skipped += 1
            continue

        title = normalize(entry.get("title"))
        if not title:
            skipped += 1
            continue
        handle = normalize(entry.get("handle")) or slugify(title)

        body = entry.get("body") or entry.get("body_html") or entry.get("description")
        _absorb(
            groups.setdefault(handle, _new_entry(handle)),
            title=title,
            vendor=normalize(entry.get("vendor") or entry.get("brand")),
            body=basic_clean(body),
            tags=split_tags(entry.get("tags")),
            variants=_entry_variants(entry),
        )

    if skipped:
        logger.warning("Skipped {} structured entries without a title", skipped)
    return _finalize(groups)


def load_structured(source: Union[str, Path, Sequence[Dict[str, Any]]]) -> List[DocumentRecord]:
    """Load a JSON document array from disk, or accept an in-memory list."""
    if isinstance(source, (list, tuple)):
        return records_from_payload(source)

    path = Path(source)
    logger.info("Loading structured catalog from {}", path)
    try:
        payload = json.loads(_read_text(path))
    except json.JSONDecodeError as e:
        raise SourceUnavailable(f"invalid JSON in {path}: {e}") from e
    records = records_from_payload(payload)
    logger.info("Loaded {} structured records", len(records))
    return records


# ---------------------------
# Public entry point
# ---------------------------

def load(source: Source) -> List[DocumentRecord]:
    """
    Load any supported source into DocumentRecords.

    ``.csv`` paths are parsed as store exports; other paths and in-memory
    lists as structured documents. A missing or unreadable source yields an
    empty list: having no catalog is a valid state.
    """
    if source is None:
        return []
    try:
        if isinstance(source, (list, tuple)):
            return load_structured(source)
        path = Path(source)
        if path.suffix.lower() == ".csv":
            return load_tabular(path)
        return load_structured(path)
    except SourceUnavailable as e:
        logger.warning("Catalog source unavailable: {}", e)
        return []


def build_catalog_snapshot(
    raw_path: Path = PRODUCTS_CSV_PATH,
    output_path: Path = PRODUCTS_JSON_PATH,
) -> Path:
    """
    End-to-end: load CSV export -> group -> write the JSON catalog that the
    structured source reads first.
    """
    records = load_tabular(raw_path)

    logger.info("Writing catalog snapshot to {}", output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with output_path.open("w", encoding="utf-8") as f:
        json.dump([r.model_dump() for r in records], f, ensure_ascii=False, indent=2)
    logger.info("Catalog snapshot written with {} records", len(records))

    return output_path


# ---------------------------
# CLI entrypoint
# ---------------------------

if __name__ == "__main__":
    # python -m store_context.catalog_build
    build_catalog_snapshot()
