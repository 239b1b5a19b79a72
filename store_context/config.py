from __future__ import annotations

import os
from pathlib import Path
from typing import Dict, FrozenSet, List

from pydantic import BaseModel, Field


# ---------------------------
# Paths
# ---------------------------

PROJECT_ROOT = Path(__file__).resolve().parents[1]

DATA_DIR = Path(os.getenv("STORE_DATA_DIR", str(PROJECT_ROOT / "data")))
PRODUCTS_JSON_PATH = Path(os.getenv("PRODUCTS_JSON_PATH", str(DATA_DIR / "products.json")))
PRODUCTS_CSV_PATH = Path(os.getenv("PRODUCTS_CSV_PATH", str(DATA_DIR / "products_export.csv")))
PAGES_JSON_PATH = Path(os.getenv("PAGES_JSON_PATH", str(DATA_DIR / "pages.json")))


# ---------------------------
# Store endpoints
# ---------------------------

STORE_BASE_URL = os.getenv("STORE_BASE_URL", "https://example-store.com").rstrip("/")

# Live product lookup, queried with ?q=<query>. Empty disables the remote source.
REMOTE_SEARCH_URL = os.getenv("REMOTE_SEARCH_URL", "")


# ---------------------------
# HTTP hardening (remote lookup)
# ---------------------------

HTTP_CONNECT_TIMEOUT = 3.0
HTTP_READ_TIMEOUT = 7.0
HTTP_MAX_REDIRECTS = 2
HTTP_MAX_BYTES = 1_000_000  # 1 MB cap

HTTP_USER_AGENT = "store-context/1.0 (+https://example.com)"


# ---------------------------
# Retrieval settings
# ---------------------------

DEFAULT_TOP_K = int(os.getenv("CONTEXT_TOP_K", "10"))
PAGE_TOP_K = int(os.getenv("PAGE_TOP_K", "3"))

# zero-match policy: first N catalog documents instead of an empty context
FALLBACK_COUNT = int(os.getenv("CONTEXT_FALLBACK_COUNT", "5"))

DEFAULT_FIELDS = ("title", "tags", "body")
SCORABLE_FIELDS = ("title", "tags", "body", "vendor", "sku")


# ---------------------------
# Formatting
# ---------------------------

EXCERPT_CHARS = 300
TRUNCATION_MARKER = "..."
PAGE_CHAR_BUDGET = 4000


# ---------------------------
# Text processing
# ---------------------------

MAX_INPUT_CHARS = 20_000  # input size cap
MIN_TOKEN_LEN = 3

STOP_WORDS: FrozenSet[str] = frozenset(
    {
        # request phrasing
        "i", "need", "an", "a", "the", "for", "of", "to", "please", "show",
        "me", "do", "you", "have",
        # common filler
        "and", "are", "any", "can", "could", "does", "with", "what", "which",
        "your", "our", "this", "that", "these", "those", "there", "about",
        "from", "into", "want", "looking", "would", "like", "get", "some",
        "how", "who", "its", "was", "were", "will", "them", "they",
    }
)

# Domain vocabulary applied to rewritten remote queries (whole words only)
QUERY_REWRITES: Dict[str, str] = {
    "spring": "mainspring",
    "springs": "mainsprings",
}


# ---------------------------
# Pydantic models shared around the app
# ---------------------------

class Variant(BaseModel):
    """One purchasable variant of a product row."""

    sku: str = ""
    price: str = ""
    options: List[str] = Field(default_factory=list)  # "Name: Value", at most 3


class DocumentRecord(BaseModel):
    """
    Canonical shape for both product records and store pages.
    Pages simply carry no variants.
    """

    handle: str
    title: str = Field(min_length=1)
    vendor: str = ""
    tags: List[str] = Field(default_factory=list)
    body: str = ""
    variants: List[Variant] = Field(default_factory=list)

    @property
    def skus(self) -> List[str]:
        return [v.sku for v in self.variants if v.sku]


class FieldWeights(BaseModel):
    """
    Score contribution per query term found in a field.
    Title matches dominate; tags beat free text.
    """

    title: int = Field(default=5, ge=0)
    tags: int = Field(default=3, ge=0)
    body: int = Field(default=1, ge=0)
    vendor: int = Field(default=1, ge=0)
    sku: int = Field(default=1, ge=0)

    def for_field(self, field: str) -> int:
        return int(getattr(self, field, 0))


class RetrievalResult(BaseModel):
    """Context block plus the handles it was built from."""

    context: str = ""
    handles: List[str] = Field(default_factory=list)
    fallback_used: bool = False
