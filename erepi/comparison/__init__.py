"""Reference/hypothesis text comparison."""

from .text import normalize_text, compare_texts

__all__ = ["normalize_text", "compare_texts"]
