"""
String similarity metrics.

Pure functions over normalized strings, each returning a float in [0, 1].
Three independent signals are combined for medicine-name matching:

  1. edit_similarity         : normalized Levenshtein distance
  2. jaro_winkler_similarity : transposition tolerant, rewards common prefixes
  3. ngram_similarity        : bigram Jaccard, insensitive to token order

word_jaccard_similarity is the word-level overlap used for side-effect text.
"""

import re

from rapidfuzz.distance import JaroWinkler, Levenshtein

from adr_sentinel.constants import (
    EDIT_SIMILARITY_WEIGHT,
    JARO_WINKLER_WEIGHT,
    MIN_WORD_LENGTH,
    NGRAM_SIMILARITY_WEIGHT,
    NGRAM_SIZE,
)

_PUNCTUATION = re.compile(r"[^\w\s-]")
_WHITESPACE = re.compile(r"\s+")


def normalize_text(text: str | None) -> str:
    """Lower-case, trim, strip punctuation (hyphens kept) and collapse whitespace."""
    if not text:
        return ""
    text = _PUNCTUATION.sub("", text.strip().lower())
    return _WHITESPACE.sub(" ", text).strip()


def _clamp(value: float) -> float:
    return max(0.0, min(1.0, value))


def edit_similarity(a: str, b: str) -> float:
    """1 - levenshtein(a, b) / max(len(a), len(b))."""
    if not a and not b:
        return 1.0
    if not a or not b:
        return 0.0
    distance = Levenshtein.distance(a, b)
    return _clamp(1.0 - distance / max(len(a), len(b)))


def jaro_winkler_similarity(a: str, b: str) -> float:
    """Standard Jaro-Winkler similarity (prefix weight 0.1)."""
    if not a and not b:
        return 1.0
    if not a or not b:
        return 0.0
    # greedy character matching can depend on argument order
    if a > b:
        a, b = b, a
    return _clamp(JaroWinkler.similarity(a, b))


def ngrams(text: str, n: int = NGRAM_SIZE) -> set[str]:
    """Character n-gram shingles of text; empty when text is shorter than n."""
    return {text[i : i + n] for i in range(len(text) - n + 1)}


def ngram_similarity(a: str, b: str, n: int = NGRAM_SIZE) -> float:
    """Jaccard similarity of the n-gram shingle sets of a and b."""
    grams_a = ngrams(a, n)
    grams_b = ngrams(b, n)
    union = grams_a | grams_b
    if not union:
        return 1.0 if a == b else 0.0
    return len(grams_a & grams_b) / len(union)


def string_similarity_breakdown(a: str, b: str) -> dict[str, float]:
    """Per-metric scores plus the weighted combination for two raw strings."""
    a = normalize_text(a)
    b = normalize_text(b)
    edit = edit_similarity(a, b)
    jaro_winkler = jaro_winkler_similarity(a, b)
    ngram = ngram_similarity(a, b)

    if a == b:
        combined = 1.0
    else:
        combined = _clamp(
            edit * EDIT_SIMILARITY_WEIGHT
            + jaro_winkler * JARO_WINKLER_WEIGHT
            + ngram * NGRAM_SIMILARITY_WEIGHT
        )
    return {
        "edit": edit,
        "jaro_winkler": jaro_winkler,
        "ngram": ngram,
        "combined": combined,
    }


def combined_similarity(a: str, b: str) -> float:
    """0.4 * edit + 0.4 * Jaro-Winkler + 0.2 * bigram Jaccard.

    Exactly 1.0 when the normalized strings are equal. The shingle metric
    gets the smallest weight because it is noisy on short medicine names.
    """
    return string_similarity_breakdown(a, b)["combined"]


def significant_words(text: str) -> set[str]:
    """Lower-cased whitespace tokens longer than two characters."""
    return {w for w in text.lower().split() if len(w) >= MIN_WORD_LENGTH}


def word_jaccard_similarity(a: str | None, b: str | None) -> float:
    """Jaccard overlap of the significant words of two free-text strings."""
    if not a or not b:
        return 0.0
    words_a = significant_words(a)
    words_b = significant_words(b)
    if not words_a and not words_b:
        return 1.0
    if not words_a or not words_b:
        return 0.0
    return len(words_a & words_b) / len(words_a | words_b)
