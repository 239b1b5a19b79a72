from __future__ import annotations

"""
Text normalisation helpers shared across catalog loading and retrieval.

Public helpers:

* normalize(text) -> str
    Whitespace collapse + trim; safe on None.

* tokenize(text) -> Set[str]
    Query/document terms: lower-cased, split on non-word characters,
    short tokens and stop words dropped.

* basic_clean(text) -> str
    HTML strip + unicode folding used on catalog bodies.

* rewrite_query(text) -> str
    Domain vocabulary rewrite used for the second remote lookup.
"""

from typing import Dict, Set
import re
import unicodedata

from bs4 import BeautifulSoup

from . import config

_WS_RE = re.compile(r"\s+")
_SPLIT_RE = re.compile(r"\W+")


# ---------------------------------------------------------------------------
# Low-level helpers
# ---------------------------------------------------------------------------


def strip_html(text: str | None) -> str:
    if not text:
        return ""
    if "<" not in text:
        return text
    soup = BeautifulSoup(text, "html.parser")
    return soup.get_text(" ", strip=True)


def _normalise_unicode(text: str) -> str:
    text = unicodedata.normalize("NFKC", text)
    text = text.replace("\u2018", "'").replace("\u2019", "'")
    text = text.replace("\u201c", '"').replace("\u201d", '"')
    text = text.replace("\u2013", "-").replace("\u2014", "-")
    return text


def _compile_rewrites(mapping: Dict[str, str]):
    compiled = []
    # Longer keys first so 'springs' is not shadowed by 'spring'.
    for src, dst in sorted(mapping.items(), key=lambda kv: -len(kv[0])):
        if not src:
            continue
        pattern = re.compile(r"(?<!\w)" + re.escape(src) + r"(?!\w)", flags=re.IGNORECASE)
        compiled.append((pattern, dst))
    return compiled


_REWRITES = _compile_rewrites(config.QUERY_REWRITES)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def normalize(text: str | None) -> str:
    """Collapse whitespace runs to a single space and trim the edges."""
    if text is None:
        return ""
    if not isinstance(text, str):
        text = str(text)
    return _WS_RE.sub(" ", text).strip()


def tokenize(text: str | None) -> Set[str]:
    """
    Turn free text into a set of lowercase query terms.

    Tokens shorter than MIN_TOKEN_LEN and anything in STOP_WORDS are
    discarded. Underscores count as word characters, as in ``\\w``.
    """
    norm = normalize(text).lower()
    if not norm:
        return set()
    return {
        tok
        for tok in _SPLIT_RE.split(norm)
        if len(tok) >= config.MIN_TOKEN_LEN and tok not in config.STOP_WORDS
    }


def basic_clean(text: str | None) -> str:
    """Light-weight clean for catalog fields.

    * strips HTML
    * normalises unicode and whitespace
    * truncates excessively long inputs
    """
    if text is None:
        return ""
    if not isinstance(text, str):
        text = str(text)

    if len(text) > config.MAX_INPUT_CHARS:
        text = text[: config.MAX_INPUT_CHARS]

    text = strip_html(text)
    text = _normalise_unicode(text)
    return normalize(text)


def rewrite_query(text: str | None) -> str:
    """Apply QUERY_REWRITES on whole words ('spring' -> 'mainspring')."""
    out = normalize(text)
    for pattern, dst in _REWRITES:
        out = pattern.sub(dst, out)
    return out
