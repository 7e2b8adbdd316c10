"""Punctuation- and case-tolerant comparison of reference and hypothesis text.

Recognizer output adds or drops casing and punctuation freely, neither of
which is a pronunciation error, so both sides are normalized before an
exact comparison.
"""

import re
import unicodedata

# Dashes and slashes separate words ("well-known" == "well known")
_WORD_SEPARATORS = re.compile(r"[\-\u2010-\u2015\u2212/\\]+")
# Anything that is not a letter, digit, apostrophe or whitespace
_SYMBOLS = re.compile(r"[^\w\s']|_")
# Apostrophes survive only inside words ("don't", not "'quoted'")
_STRAY_APOSTROPHES = re.compile(r"(?<!\w)'+|'+(?!\w)")
_WHITESPACE = re.compile(r"\s+")

_APOSTROPHE_VARIANTS = str.maketrans({
    "\u2018": "'",
    "\u2019": "'",
    "\u02bc": "'",
    "`": "'",
    "\u00b4": "'",
})


def normalize_text(text: str) -> str:
    """Lowercase, drop punctuation and symbols, collapse whitespace."""
    normalized = (text or "").translate(_APOSTROPHE_VARIANTS)
    normalized = unicodedata.normalize("NFKC", normalized).lower()
    normalized = _WORD_SEPARATORS.sub(" ", normalized)
    normalized = _SYMBOLS.sub("", normalized)
    normalized = _STRAY_APOSTROPHES.sub("", normalized)
    return _WHITESPACE.sub(" ", normalized).strip()


def compare_texts(reference: str, hypothesis: str) -> bool:
    """True when the hypothesis says exactly the reference's words.

    An empty hypothesis (after normalization) never matches.
    """
    normalized_hypothesis = normalize_text(hypothesis)
    if not normalized_hypothesis:
        return False
    return normalize_text(reference) == normalized_hypothesis
