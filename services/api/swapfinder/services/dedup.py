"""Canonicalization helpers for store and product names.

Store dedup key (availability fusion):
- canonical_store_name("Trader Joe's") == canonical_store_name("TRADER JOES") == "traderjoes"
- Lowercase, every non-letter removed. Idempotent: canon(canon(x)) == canon(x).

Product name tokens (sibling-name matching):
- Lowercase, punctuation stripped, whitespace-tokenized, marketing stopwords dropped.
- Token order is irrelevant to matching, so "Skittles Original" and
  "Original Skittles" produce the same token set.
"""

import re

# Phrases dropped before tokenizing (multi-word first)
NAME_STOP_PHRASES: tuple[str, ...] = (
    "bite size",
    "bite sized",
    "family size",
    "party size",
    "sharing size",
    "king size",
    "fun size",
    "value pack",
)

# Single-word stopwords
NAME_STOPWORDS: frozenset[str] = frozenset(
    {
        "original",
        "classic",
        "regular",
        "traditional",
        "minis",
        "mini",
        "new",
        "the",
        "and",
        "with",
        "of",
        "brand",
        "pack",
        "oz",
        "ct",
    }
)

_MIN_DISTINCTIVE_TOKEN_LEN = 3


def canonical_store_name(name: str | None) -> str:
    """Canonical dedup key for a store/merchant name.

    Case-, whitespace- and punctuation-insensitive; digits are dropped too
    ("Target #1234" and "Target" collapse to "target").

    Example:
        >>> canonical_store_name("Trader Joe's")
        'traderjoes'
    """
    if not name:
        return ""
    return re.sub(r"[^a-z]", "", name.lower())


def canonical_name_tokens(name: str | None) -> list[str]:
    """Tokenize a product name for fuzzy sibling matching.

    Returns tokens in their original order, stopwords removed, no duplicates.
    """
    if not name:
        return []

    text = name.lower()
    # Apostrophes join ("lay's" -> "lays"); other punctuation separates.
    text = re.sub(r"['’`]", "", text)
    text = re.sub(r"[^a-z0-9\s]+", " ", text)
    text = re.sub(r"\s+", " ", text).strip()

    for phrase in NAME_STOP_PHRASES:
        text = re.sub(rf"\b{re.escape(phrase)}\b", " ", text)

    tokens: list[str] = []
    for token in text.split():
        if token in NAME_STOPWORDS or token in tokens:
            continue
        tokens.append(token)
    return tokens


def distinctive_name_token(name: str | None) -> str | None:
    """Longest canonical token of a product name (first one wins ties).

    Tokens shorter than 3 characters or purely numeric are never distinctive.
    """
    best: str | None = None
    for token in canonical_name_tokens(name):
        if len(token) < _MIN_DISTINCTIVE_TOKEN_LEN or token.isdigit():
            continue
        if best is None or len(token) > len(best):
            best = token
    return best


def compute_product_dedup_key(brand: str | None, name: str | None) -> str:
    """Dedup key for externally discovered products (brand + name, no whitespace)."""
    return re.sub(r"\s+", "", f"{(brand or '').lower()}_{(name or '').lower()}")


def category_like_pattern(category: str | None) -> str | None:
    """Build an ILIKE pattern from a taxonomy-style category tag.

    "en:breakfast-cereals" -> "%breakfast%cereals%"
    """
    if not category:
        return None
    tail = category.split(":")[-1].strip()
    if not tail:
        return None
    return "%" + tail.replace("-", "%") + "%"
