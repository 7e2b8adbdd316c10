"""Unit tests for reference/hypothesis text comparison."""

import pytest

from erepi.comparison import compare_texts, normalize_text


@pytest.mark.unit
class TestNormalizeText:
    """Test cases for normalize_text."""

    @pytest.mark.parametrize("raw, expected", [
        ("How are you?", "how are you"),
        ("  I   like\tapples. ", "i like apples"),
        ("Don't stop!", "don't stop"),
        ("Don’t stop", "don't stop"),
        ("'Quoted' words", "quoted words"),
        ("well-known", "well known"),
        ("either/or", "either or"),
        ("It costs $5.", "it costs 5"),
        ("Ｈｅｌｌｏ", "hello"),  # full-width letters
        ("", ""),
        ("?!...", ""),
    ])
    def test_normalization(self, raw, expected):
        assert normalize_text(raw) == expected

    def test_none_is_empty(self):
        assert normalize_text(None) == ""


@pytest.mark.unit
class TestCompareTexts:
    """Test cases for compare_texts."""

    def test_case_and_punctuation_ignored(self):
        assert compare_texts("How are you?", "how are you") is True

    def test_different_words_do_not_match(self):
        assert compare_texts("How are you?", "how is you") is False

    def test_empty_hypothesis_never_matches(self):
        assert compare_texts("I like apples.", "") is False
        assert compare_texts("I like apples.", "   ") is False
        assert compare_texts("I like apples.", "...") is False

    def test_empty_reference_and_hypothesis(self):
        assert compare_texts("", "") is False

    def test_word_order_matters(self):
        assert compare_texts("How are you?", "are you how") is False

    def test_contractions_must_match(self):
        assert compare_texts("I don't know.", "I do not know") is False
        assert compare_texts("I don't know.", "i don’t know") is True

    @pytest.mark.parametrize("reference, hypothesis", [
        ("How are you?", "how are you"),
        ("How are you?", "how is you"),
        ("Thank you very much.", "Thank you, very much!"),
        ("I like apples.", ""),
    ])
    def test_normalization_invariance(self, reference, hypothesis):
        expected = compare_texts(reference, hypothesis)

        assert compare_texts(reference.upper(), hypothesis) == expected
        assert compare_texts(reference, hypothesis + "  \n") == expected
        assert compare_texts(reference, hypothesis.replace(",", "")) == expected
        # deterministic
        assert all(compare_texts(reference, hypothesis) == expected for _ in range(5))
