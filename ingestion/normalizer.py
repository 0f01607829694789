"""
Text normalization shared by ingestion and query.

Index terms and query terms only line up when both sides run the exact
same pipeline, so every caller goes through `normalize_text` / `tokenize`.
"""

import re
import unicodedata
from typing import List

# Curly quotes folded to their straight counterparts
QUOTE_FOLDS = str.maketrans(
    {
        "“": '"',
        "”": '"',
        "‘": "'",
        "’": "'",
    }
)

# Punctuation kept next to letters, digits and whitespace
ALLOWED_PUNCT = frozenset("'-+*/().")

_WS = re.compile(r"\s+")


def _keep(ch: str) -> bool:
    return ch.isalnum() or ch.isspace() or ch in ALLOWED_PUNCT


def normalize_text(s: str) -> str:
    if not s:
        return ""
    # lowercase between two NFKC passes so the output is stable under both
    s = unicodedata.normalize("NFKC", str(s)).lower()
    s = unicodedata.normalize("NFKC", s).lower()
    s = s.translate(QUOTE_FOLDS)
    s = "".join(ch if _keep(ch) else " " for ch in s)
    return _WS.sub(" ", s).strip()


def tokenize(text: str) -> List[str]:
    return normalize_text(text).split()


def unique_terms(text: str) -> List[str]:
    """Distinct tokens in first-seen order."""
    return list(dict.fromkeys(tokenize(text)))
